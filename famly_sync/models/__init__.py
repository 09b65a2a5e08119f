"""
Data models
"""
from .feed_item import FeedItem, InlineMedia, ObservationRef, parse_feed_item
from .media import MediaKind, MediaReference, DownloadedFile
from .watermark import Watermark, Cursor

__all__ = [
    'FeedItem',
    'InlineMedia',
    'ObservationRef',
    'parse_feed_item',
    'MediaKind',
    'MediaReference',
    'DownloadedFile',
    'Watermark',
    'Cursor',
]
