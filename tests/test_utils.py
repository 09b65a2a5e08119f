"""
Utility Tests

Tests for timestamp helpers, validators and settings.
"""
import pytest
from datetime import datetime, timezone

from famly_sync.config import SyncSettings, TestingConfig, _env_number
from famly_sync.utils.validators import (
    encode_cursor,
    format_cursor,
    format_exif_date,
    parse_timestamp,
    try_parse_timestamp,
    validate_credentials,
    validate_height_target,
)


UTC = timezone.utc


class TestTimestamps:
    """Tests for timestamp parsing and formatting."""

    @pytest.mark.parametrize('value,expected', [
        ('2023-02-01', datetime(2023, 2, 1, tzinfo=UTC)),
        ('2023-02-01T12:00:00Z', datetime(2023, 2, 1, 12, tzinfo=UTC)),
        ('2023-02-01 12:00:00.250000', datetime(2023, 2, 1, 12, 0, 0, 250000, tzinfo=UTC)),
        ('2023-02-01T13:00:00+01:00', datetime(2023, 2, 1, 12, tzinfo=UTC)),
    ])
    def test_parse_timestamp(self, value, expected):
        assert parse_timestamp(value) == expected

    def test_parse_invalid(self):
        with pytest.raises(ValueError):
            parse_timestamp('')
        assert try_parse_timestamp('soon') is None
        assert try_parse_timestamp(None) is None

    def test_cursor_format(self):
        """Test whole-second UTC cursors with an explicit offset."""
        dt = datetime(2023, 2, 1, 12, 0, 0, 123456, tzinfo=UTC)

        assert format_cursor(dt) == '2023-02-01T12:00:00+00:00'
        assert encode_cursor(dt) == '2023-02-01T12%3A00%3A00%2B00%3A00'

    def test_exif_date(self):
        assert format_exif_date(parse_timestamp('2023-02-01T14:30:05+02:00')) == '2023:02:01 12:30:05'


class TestValidators:
    """Tests for input validators."""

    def test_height_target(self):
        assert validate_height_target('500') == (True, None, 500)
        assert validate_height_target('0')[0] is False
        assert validate_height_target('tall')[0] is False

    def test_credentials(self):
        assert validate_credentials('a@example.com', 'pw') == (True, None)
        assert validate_credentials('', 'pw')[0] is False
        assert validate_credentials('a@example.com', None)[0] is False


class TestSyncSettings:
    """Tests for SyncSettings."""

    def test_from_config(self):
        settings = SyncSettings.from_config(TestingConfig)

        assert settings.username == 'parent@example.com'
        assert settings.graphql_url == 'https://famly.test/graphql'
        assert settings.disable_exif is True

    def test_overrides_ignore_none(self):
        settings = SyncSettings.from_config(TestingConfig, username=None, height_target=500)

        assert settings.username == 'parent@example.com'
        assert settings.height_target == 500

    def test_unknown_override(self):
        with pytest.raises(TypeError):
            SyncSettings.from_config(TestingConfig, colour='blue')

    def test_masked(self):
        assert SyncSettings.from_config(TestingConfig).masked()['password'] == '***'


class TestEnvNumbers:
    """Tests for numeric settings read from the environment."""

    def test_unset_uses_default(self, monkeypatch):
        monkeypatch.delenv('FAMLY_HEIGHT_TARGET', raising=False)

        assert _env_number('FAMLY_HEIGHT_TARGET', 10000) == 10000

    def test_valid_values_parsed(self, monkeypatch):
        monkeypatch.setenv('FAMLY_MAX_WORKERS', ' 8 ')
        monkeypatch.setenv('FAMLY_REQUEST_TIMEOUT', '12.5')

        assert _env_number('FAMLY_MAX_WORKERS', 4, minimum=1) == 8
        assert _env_number('FAMLY_REQUEST_TIMEOUT', 30.0, cast=float) == 12.5

    def test_invalid_value_falls_back(self, monkeypatch):
        """Test that a malformed number does not break importing the settings."""
        monkeypatch.setenv('FAMLY_HEIGHT_TARGET', 'tall')
        monkeypatch.setenv('FAMLY_RETRY_DELAY', '2s')

        assert _env_number('FAMLY_HEIGHT_TARGET', 10000, minimum=1) == 10000
        assert _env_number('FAMLY_RETRY_DELAY', 2.0, cast=float) == 2.0

    def test_below_minimum_falls_back(self, monkeypatch):
        monkeypatch.setenv('FAMLY_MAX_WORKERS', '0')

        assert _env_number('FAMLY_MAX_WORKERS', 4, minimum=1) == 4
