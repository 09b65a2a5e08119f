"""
Watermark and cursor models
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from ..utils.validators import format_timestamp, try_parse_timestamp


@dataclass
class Watermark:
    """
    Oldest and newest qualifying item timestamps seen during a run.

    ``newest_seen`` only ever moves forward; ``oldest_seen`` only ever moves back.
    """
    oldest_seen: Optional[datetime] = None
    newest_seen: Optional[datetime] = None

    def observe(self, created_at: datetime) -> None:
        if self.oldest_seen is None or created_at < self.oldest_seen:
            self.oldest_seen = created_at
        if self.newest_seen is None or created_at > self.newest_seen:
            self.newest_seen = created_at

    @property
    def is_empty(self) -> bool:
        return self.newest_seen is None

    def to_dict(self) -> Dict[str, Any]:
        data = {'newestDownload': format_timestamp(self.newest_seen) if self.newest_seen else None}
        if self.oldest_seen is not None:
            data['oldestDownload'] = format_timestamp(self.oldest_seen)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Optional['Watermark']:
        """Build a watermark from its persisted form; None if it holds no usable newest timestamp."""
        if not isinstance(data, dict):
            return None
        newest = try_parse_timestamp(data.get('newestDownload'))
        if newest is None:
            return None
        return cls(
            oldest_seen=try_parse_timestamp(data.get('oldestDownload')),
            newest_seen=newest,
        )


@dataclass(frozen=True)
class Cursor:
    """The ``olderThan`` position of the next feed page request."""
    older_than: datetime

    def advance(self, oldest_item: datetime) -> Optional['Cursor']:
        """
        Move the cursor back to a page's oldest qualifying item.

        Returns None when that would not move strictly backwards, so the
        caller can stop instead of requesting the same page forever.
        """
        if oldest_item >= self.older_than:
            return None
        return Cursor(older_than=oldest_item)
