"""
Sync Service Module - Building blocks of a sync run

This package contains:
- delay_manager: Adaptive backoff between retries
- session_pool: Pooled HTTP session with retry handling
- extractor: Feed item / observation -> media references
- observation_resolver: Batched observation lookups
- media_queue: Bounded concurrent download + tag pipeline
- tagger: Capture time metadata writer
- watermark_store: Delta watermark persistence
- log_collector: Run summary and issue log
"""
from .delay_manager import AdaptiveDelayManager
from .session_pool import RequestSessionPool
from .log_collector import SyncLogCollector
from .media_queue import DownloadDispatcher, MediaDownloadQueue
from .observation_resolver import ObservationResolver
from .tagger import ExifToolTagger, MetadataTagger, TagApplier
from .watermark_store import WatermarkStore

__all__ = [
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
