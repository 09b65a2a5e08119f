"""
Model Tests

Tests for models: FeedItem variants, MediaReference, Watermark, Cursor
"""
import pytest
from datetime import datetime, timedelta, timezone

from famly_sync.models import (
    Cursor,
    InlineMedia,
    MediaKind,
    MediaReference,
    ObservationRef,
    Watermark,
    parse_feed_item,
)


UTC = timezone.utc


class TestFeedItemModel:
    """Tests for parse_feed_item."""

    def test_inline_item(self, inline_item_data):
        """Test that an item without an embed carries its media inline."""
        item = parse_feed_item(inline_item_data)

        assert isinstance(item, InlineMedia)
        assert item.feed_item_id == 'fi-1'
        assert item.created_at == datetime(2023, 2, 1, 12, 0, tzinfo=UTC)
        assert item.media_count == 3

    def test_observation_item(self, observation_item_data):
        """Test that an embed.observationId selects the observation variant."""
        item = parse_feed_item(observation_item_data)

        assert isinstance(item, ObservationRef)
        assert item.observation_id == 'obs-1'
        assert item.to_dict()['kind'] == 'observation'

    def test_item_without_media(self):
        """Test that an item with no media lists is an empty inline item."""
        item = parse_feed_item({'feedItemId': 'x', 'createdDate': '2023-02-01T00:00:00Z'})

        assert isinstance(item, InlineMedia)
        assert item.media_count == 0

    def test_missing_created_date(self):
        """Test that items without a timestamp are rejected."""
        with pytest.raises(ValueError):
            parse_feed_item({'feedItemId': 'x'})

    def test_unparseable_created_date(self):
        with pytest.raises(ValueError):
            parse_feed_item({'feedItemId': 'x', 'createdDate': 'yesterday'})

    def test_offset_normalized_to_utc(self):
        """Test that non-UTC offsets are normalized."""
        item = parse_feed_item({'createdDate': '2023-02-01T14:00:00+02:00'})

        assert item.created_at == datetime(2023, 2, 1, 12, 0, tzinfo=UTC)


class TestMediaReferenceModel:
    """Tests for MediaReference."""

    def test_capture_time_parsed(self):
        ref = MediaReference(MediaKind.IMAGE, 'https://x/y.jpg', 'y.jpg', '2023-02-01 12:00:00.000000')

        assert ref.capture_time == datetime(2023, 2, 1, 12, 0, tzinfo=UTC)
        assert ref.taggable

    def test_unusable_capture_time(self):
        ref = MediaReference(MediaKind.VIDEO, 'https://x/v.mp4', 'v.mp4', 'not a date')

        assert ref.capture_time is None

    def test_files_not_taggable(self):
        """Test that documents are never tagged."""
        ref = MediaReference(MediaKind.FILE, 'https://x/d.pdf', 'd.pdf', '2023-02-01T00:00:00Z')

        assert not ref.taggable
        assert ref.to_dict()['kind'] == 'file'


class TestWatermarkModel:
    """Tests for Watermark."""

    def test_observe_tracks_both_ends(self):
        watermark = Watermark()
        t1 = datetime(2023, 2, 1, tzinfo=UTC)
        t2 = datetime(2023, 2, 5, tzinfo=UTC)
        t3 = datetime(2023, 1, 20, tzinfo=UTC)

        for t in (t1, t2, t3):
            watermark.observe(t)

        assert watermark.newest_seen == t2
        assert watermark.oldest_seen == t3

    def test_newest_never_moves_backwards(self):
        """Test that an older observation cannot lower the newest timestamp."""
        newest = datetime(2023, 3, 1, tzinfo=UTC)
        watermark = Watermark(newest_seen=newest)

        watermark.observe(datetime(2023, 2, 1, tzinfo=UTC))

        assert watermark.newest_seen == newest

    def test_round_trip_dict(self):
        watermark = Watermark(
            oldest_seen=datetime(2023, 1, 1, tzinfo=UTC),
            newest_seen=datetime(2023, 2, 1, 12, 30, tzinfo=UTC),
        )

        data = watermark.to_dict()
        assert data['newestDownload'] == '2023-02-01T12:30:00+00:00'

        restored = Watermark.from_dict(data)
        assert restored == watermark

    def test_from_dict_without_newest(self):
        """Test that a document lacking newestDownload is unusable."""
        assert Watermark.from_dict({'oldestDownload': '2023-01-01T00:00:00Z'}) is None
        assert Watermark.from_dict({'newestDownload': 'garbage'}) is None
        assert Watermark.from_dict(['not', 'a', 'dict']) is None

    def test_is_empty(self):
        assert Watermark().is_empty
        assert not Watermark(newest_seen=datetime(2023, 1, 1, tzinfo=UTC)).is_empty


class TestCursorModel:
    """Tests for Cursor."""

    def test_advance_moves_back(self):
        start = datetime(2023, 3, 1, tzinfo=UTC)
        oldest = start - timedelta(days=3)

        cursor = Cursor(start).advance(oldest)

        assert cursor.older_than == oldest

    def test_advance_without_progress(self):
        """Test that a non-decreasing cursor is refused."""
        start = datetime(2023, 3, 1, tzinfo=UTC)

        assert Cursor(start).advance(start) is None
        assert Cursor(start).advance(start + timedelta(seconds=1)) is None
