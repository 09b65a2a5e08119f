"""
Tagger Tests

Tests for writing capture dates into downloaded files.
"""
import subprocess
from datetime import datetime, timezone

import pytest
from unittest.mock import Mock, patch

from famly_sync.api.errors import TagError
from famly_sync.models import DownloadedFile, MediaKind, MediaReference
from famly_sync.services.sync.tagger import ExifToolTagger, MetadataTagger, TagApplier


CAPTURED = datetime(2023, 2, 1, 12, 0, 0, 500000, tzinfo=timezone.utc)


class TestExifToolTagger:
    """Tests for ExifToolTagger."""

    def test_tagger_requires_write_dates(self):
        """Test that a tagger without write_dates cannot be created."""
        class Incomplete(MetadataTagger):
            pass

        with pytest.raises(TypeError):
            MetadataTagger()
        with pytest.raises(TypeError):
            Incomplete()
        assert isinstance(ExifToolTagger(), MetadataTagger)

    def test_build_command(self):
        """Test that all dates are set to the capture time in whole seconds."""
        cmd = ExifToolTagger('/usr/bin/exiftool').build_command('/tmp/a.jpg', CAPTURED)

        assert cmd == ['/usr/bin/exiftool', '-AllDates=2023:02:01 12:00:00', '-overwrite_original', '/tmp/a.jpg']

    @patch('famly_sync.services.sync.tagger.subprocess.run')
    def test_write_dates(self, mock_run):
        mock_run.return_value = Mock(returncode=0, stdout='1 image files updated', stderr='')

        ExifToolTagger().write_dates('/tmp/a.jpg', CAPTURED)

        mock_run.assert_called_once()

    @patch('famly_sync.services.sync.tagger.subprocess.run')
    def test_nonzero_exit(self, mock_run):
        mock_run.return_value = Mock(returncode=1, stdout='', stderr='Error: not a valid JPG')

        with pytest.raises(TagError) as exc_info:
            ExifToolTagger().write_dates('/tmp/a.jpg', CAPTURED)

        assert 'not a valid JPG' in str(exc_info.value)

    @patch('famly_sync.services.sync.tagger.subprocess.run')
    def test_missing_binary(self, mock_run):
        mock_run.side_effect = FileNotFoundError('exiftool')

        with pytest.raises(TagError):
            ExifToolTagger().write_dates('/tmp/a.jpg', CAPTURED)

    @patch('famly_sync.services.sync.tagger.subprocess.run')
    def test_timeout(self, mock_run):
        mock_run.side_effect = subprocess.TimeoutExpired('exiftool', 60)

        with pytest.raises(TagError):
            ExifToolTagger().write_dates('/tmp/a.jpg', CAPTURED)


class TestTagApplier:
    """Tests for TagApplier."""

    def _downloaded(self, kind=MediaKind.IMAGE, captured_at='2023-02-01T12:00:00+00:00'):
        ref = MediaReference(kind, 'https://x/a', 'a.jpg', captured_at)
        return DownloadedFile(local_path='/tmp/a.jpg', media_reference=ref)

    def test_apply(self):
        tagger = Mock()
        applier = TagApplier(tagger)

        assert applier.apply(self._downloaded()) is True
        tagger.write_dates.assert_called_once_with('/tmp/a.jpg', datetime(2023, 2, 1, 12, 0, tzinfo=timezone.utc))
        assert applier.tagged_count == 1

    def test_disabled(self):
        tagger = Mock()

        assert TagApplier(tagger, enabled=False).apply(self._downloaded()) is False
        tagger.write_dates.assert_not_called()

    def test_files_skipped(self):
        tagger = Mock()

        assert TagApplier(tagger).apply(self._downloaded(kind=MediaKind.FILE)) is False
        tagger.write_dates.assert_not_called()

    def test_unparseable_capture_time(self):
        """Test that an unusable timestamp is a tagging failure, not a crash."""
        with pytest.raises(TagError):
            TagApplier(Mock()).apply(self._downloaded(captured_at='sometime'))
