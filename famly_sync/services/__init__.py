"""
Service Layer

This module exports the sync run and its building blocks.
"""
from .sync_service import SyncService, FeedPaginator, PaginatorState, RunContext

from .sync.delay_manager import AdaptiveDelayManager
from .sync.session_pool import RequestSessionPool
from .sync.log_collector import SyncLogCollector
from .sync.media_queue import DownloadDispatcher, MediaDownloadQueue
from .sync.observation_resolver import ObservationResolver
from .sync.tagger import ExifToolTagger, MetadataTagger, TagApplier
from .sync.watermark_store import WatermarkStore

__all__ = [
    'SyncService',
    'FeedPaginator',
    'PaginatorState',
    'RunContext',
    'AdaptiveDelayManager',
    'RequestSessionPool',
    'SyncLogCollector',
    'DownloadDispatcher',
    'MediaDownloadQueue',
    'ObservationResolver',
    'ExifToolTagger',
    'MetadataTagger',
    'TagApplier',
    'WatermarkStore',
]
