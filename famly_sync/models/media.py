"""
Media reference model
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from ..utils.validators import try_parse_timestamp


class MediaKind(str, Enum):
    IMAGE = 'image'
    VIDEO = 'video'
    FILE = 'file'


@dataclass(frozen=True)
class MediaReference:
    """A downloadable media item: where it lives, what to call it, when it was taken."""
    kind: MediaKind
    source_url: str
    suggested_filename: str
    captured_at: str

    @property
    def capture_time(self) -> Optional[datetime]:
        """Parsed capture timestamp, or None if the upstream value is unusable."""
        return try_parse_timestamp(self.captured_at)

    @property
    def taggable(self) -> bool:
        """Documents carry no capture metadata worth writing."""
        return self.kind is not MediaKind.FILE

    def to_dict(self):
        return {
            'kind': self.kind.value,
            'source_url': self.source_url,
            'suggested_filename': self.suggested_filename,
            'captured_at': self.captured_at,
        }

    def __repr__(self):
        return f'<MediaReference {self.kind.value} {self.suggested_filename}>'


@dataclass(frozen=True)
class DownloadedFile:
    """A media reference whose bytes are fully written to local_path."""
    local_path: str
    media_reference: MediaReference
