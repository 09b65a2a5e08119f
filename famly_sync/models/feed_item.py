"""
Feed item model

A feed item either carries its media inline or points at an observation
whose media has to be looked up separately. The variant is decided once,
when the raw payload is parsed.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Tuple, Union

from ..utils.validators import parse_timestamp


@dataclass(frozen=True)
class InlineMedia:
    """Feed item with images, videos and files embedded directly."""
    feed_item_id: str
    created_date: str
    created_at: datetime
    images: Tuple[Dict[str, Any], ...] = field(default_factory=tuple)
    videos: Tuple[Dict[str, Any], ...] = field(default_factory=tuple)
    files: Tuple[Dict[str, Any], ...] = field(default_factory=tuple)

    @property
    def media_count(self) -> int:
        return len(self.images) + len(self.videos) + len(self.files)

    def to_dict(self):
        return {
            'kind': 'inline',
            'feed_item_id': self.feed_item_id,
            'created_date': self.created_date,
            'images': len(self.images),
            'videos': len(self.videos),
            'files': len(self.files),
        }


@dataclass(frozen=True)
class ObservationRef:
    """Feed item whose media lives on an observation."""
    feed_item_id: str
    created_date: str
    created_at: datetime
    observation_id: str

    def to_dict(self):
        return {
            'kind': 'observation',
            'feed_item_id': self.feed_item_id,
            'created_date': self.created_date,
            'observation_id': self.observation_id,
        }


FeedItem = Union[InlineMedia, ObservationRef]


def _as_tuple(value) -> Tuple[Dict[str, Any], ...]:
    if not value:
        return ()
    return tuple(v for v in value if isinstance(v, dict))


def parse_feed_item(raw: Dict[str, Any]) -> FeedItem:
    """
    Turn a raw feed item payload into one of the two variants.

    Args:
        raw: One entry of the feed response's ``feedItems`` list

    Returns:
        InlineMedia or ObservationRef

    Raises:
        ValueError: If the item has no usable ``createdDate``
    """
    if not isinstance(raw, dict):
        raise ValueError(f'feed item is not an object: {raw!r}')

    created_date = raw.get('createdDate')
    if not created_date:
        raise ValueError(f"feed item {raw.get('feedItemId')} has no createdDate")
    created_at = parse_timestamp(created_date)

    feed_item_id = str(raw.get('feedItemId') or raw.get('id') or '')

    embed = raw.get('embed') or {}
    observation_id = embed.get('observationId') if isinstance(embed, dict) else None
    if observation_id:
        return ObservationRef(
            feed_item_id=feed_item_id,
            created_date=created_date,
            created_at=created_at,
            observation_id=str(observation_id),
        )

    return InlineMedia(
        feed_item_id=feed_item_id,
        created_date=created_date,
        created_at=created_at,
        images=_as_tuple(raw.get('images')),
        videos=_as_tuple(raw.get('videos')),
        files=_as_tuple(raw.get('files')),
    )
