"""
Sync Service - Replicate the remote feed's media into a local folder

The run walks the feed backwards in time, one page at a time:

    FETCHING -> FILTERING -> DISPATCHING -> ADVANCING -> FETCHING ... -> DONE

This module is built from the components in ``sync``:
- sync.session_pool: HTTP pooling, timeouts and retries
- sync.extractor / sync.observation_resolver: media reference resolution
- sync.media_queue: bounded download + tag pipeline
- sync.watermark_store: delta watermark persistence
- sync.log_collector: run summary
"""
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, List, Optional, Tuple

from ..api import FeedClient, ObservationClient, Session, authenticate
from ..api.errors import FATAL_ERRORS
from ..config import Config, SyncSettings
from ..models import Cursor, FeedItem, InlineMedia, MediaReference, Watermark, parse_feed_item
from ..utils.logger import get_logger, log_sync_event
from ..utils.validators import format_cursor, parse_timestamp
from .sync.delay_manager import AdaptiveDelayManager
from .sync.extractor import extract_inline
from .sync.log_collector import SyncLogCollector
from .sync.media_queue import DownloadDispatcher, MediaDownloadQueue
from .sync.observation_resolver import ObservationResolver
from .sync.session_pool import RequestSessionPool
from .sync.tagger import ExifToolTagger, MetadataTagger, TagApplier
from .sync.watermark_store import WatermarkStore

logger = get_logger('sync')


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PaginatorState(str, Enum):
    FETCHING = 'fetching'
    FILTERING = 'filtering'
    DISPATCHING = 'dispatching'
    ADVANCING = 'advancing'
    DONE = 'done'


@dataclass
class RunContext:
    """Everything one run shares: settings, HTTP pool, session and counters."""
    settings: SyncSettings
    pool: RequestSessionPool
    collector: SyncLogCollector
    session: Optional[Session] = None


@dataclass
class PaginationResult:
    pages: int
    oldest_cursor: datetime
    watermark: Watermark


@dataclass
class PageBatch:
    """Qualifying items of one page, split by media shape."""
    items: List[FeedItem] = field(default_factory=list)
    references: List[MediaReference] = field(default_factory=list)
    observation_ids: List[str] = field(default_factory=list)
    oldest_item: Optional[datetime] = None


class FeedPaginator:
    """Backward pagination over the feed with cutoff filtering.

    Termination depends on the number of *qualifying* items (newer than the
    cutoff) on a page, not on the raw page size: a page holding only old
    items ends the run, and a mixed page advances the cursor using only its
    qualifying items.

    Items the feed sends again at or after the cursor are skipped, so each
    item is dispatched once.

    Pages are strictly sequential; the media of one page is downloaded
    concurrently and joined before the cursor advances.
    """

    def __init__(
        self,
        feed_client: FeedClient,
        resolver: ObservationResolver,
        media_queue: MediaDownloadQueue,
        collector: SyncLogCollector,
        cutoff: Optional[datetime] = None,
        baseline: Optional[Watermark] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        """
        Args:
            feed_client: Source of raw feed pages
            resolver: Observation id -> media reference lookup
            media_queue: Download + tag pipeline
            collector: Run summary collector
            cutoff: Items created at or before this are ignored entirely
            baseline: Previous watermark; its newest timestamp is kept if nothing newer shows up
            clock: Supplies the initial cursor ("now")
        """
        self.feed_client = feed_client
        self.resolver = resolver
        self.media_queue = media_queue
        self.collector = collector
        self.cutoff = cutoff
        self.clock = clock

        self.state = PaginatorState.FETCHING
        self.cursor = Cursor(older_than=clock())
        self.watermark = Watermark(newest_seen=baseline.newest_seen if baseline else None)
        self.pages = 0

    def qualifies(self, item: FeedItem) -> bool:
        """Newer than the cutoff and strictly older than the cursor.

        Items at or after the cursor were already handled on an earlier page.
        """
        if item.created_at >= self.cursor.older_than:
            return False
        return self.cutoff is None or item.created_at > self.cutoff

    def _fetch(self) -> List[dict]:
        raw_items = self.feed_client.fetch_page(self.cursor.older_than)
        self.pages += 1
        self.state = PaginatorState.FILTERING
        return raw_items

    def _filter(self, raw_items: List[dict]) -> PageBatch:
        batch = PageBatch()
        filtered = 0

        for raw in raw_items:
            try:
                item = parse_feed_item(raw)
            except ValueError as e:
                logger.warning(f"[FeedPaginator] Skipping malformed feed item: {e}")
                self.collector.add_issue(SyncLogCollector.TYPE_MALFORMED, message=str(e))
                continue

            if not self.qualifies(item):
                filtered += 1
                continue

            batch.items.append(item)
            if batch.oldest_item is None or item.created_at < batch.oldest_item:
                batch.oldest_item = item.created_at

        self.collector.record_page(items=len(raw_items), qualifying=len(batch.items), skipped=filtered)
        logger.info(
            f"[FeedPaginator] Page {self.pages}: {len(raw_items)} items, "
            f"{len(batch.items)} qualifying, {filtered} skipped"
        )

        if not batch.items:
            self.state = PaginatorState.DONE
            return batch

        for item in batch.items:
            self.watermark.observe(item.created_at)

        self.state = PaginatorState.DISPATCHING
        return batch

    def _dispatch(self, batch: PageBatch) -> None:
        issues: List[str] = []

        for item in batch.items:
            if isinstance(item, InlineMedia):
                batch.references.extend(extract_inline(item, issues))
            else:
                batch.observation_ids.append(item.observation_id)

        if batch.observation_ids:
            batch.references.extend(self.resolver.resolve(batch.observation_ids, issues))

        for message in issues:
            self.collector.add_issue(SyncLogCollector.TYPE_MALFORMED, message=message)

        futures = self.media_queue.submit_all(batch.references)
        self.media_queue.wait_completion(futures)
        self.state = PaginatorState.ADVANCING

    def _advance(self, batch: PageBatch) -> None:
        next_cursor = self.cursor.advance(batch.oldest_item)
        if next_cursor is None:
            logger.warning(
                f"[FeedPaginator] Page made no progress past {format_cursor(self.cursor.older_than)}, stopping"
            )
            self.state = PaginatorState.DONE
            return

        self.cursor = next_cursor
        self.state = PaginatorState.FETCHING

    def run(self) -> PaginationResult:
        """
        Walk the feed until a page yields no qualifying items.

        Returns:
            PaginationResult with page count, final cursor and watermark

        Raises:
            FeedFetchError, ObservationFetchError: When a request exhausts its retries
        """
        while self.state is not PaginatorState.DONE:
            raw_items = self._fetch()
            batch = self._filter(raw_items)
            if self.state is PaginatorState.DONE:
                break
            self._dispatch(batch)
            self._advance(batch)

        return PaginationResult(
            pages=self.pages,
            oldest_cursor=self.cursor.older_than,
            watermark=self.watermark,
        )


class SyncService:
    """One complete feed-to-disk replication run.

    Features:
    - Full, delta (watermark) and since-date runs
    - Two media shapes: inline feed media and observation media
    - Bounded concurrent downloads, tag after download
    - Retries with backoff on every remote call
    - Watermark written only after a fully completed run
    """

    def __init__(
        self,
        settings: SyncSettings,
        pool: Optional[RequestSessionPool] = None,
        tagger: Optional[MetadataTagger] = None,
        store: Optional[WatermarkStore] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        self.settings = settings
        self._owns_pool = pool is None
        self.pool = pool or RequestSessionPool(
            timeout=settings.request_timeout,
            max_retries=settings.max_retries,
            delay_manager=AdaptiveDelayManager(
                initial_delay=settings.retry_delay,
                max_delay=settings.retry_max_delay
            ),
            pool_maxsize=settings.max_workers,
        )
        self.tagger = tagger or ExifToolTagger(settings.exiftool_path)
        self.store = store or WatermarkStore(settings.delta_file)
        self.clock = clock

    def resolve_cutoff(self, previous: Optional[Watermark]) -> Tuple[Optional[datetime], str]:
        """
        Decide which items are new enough to download.

        An explicit since-date wins over the delta watermark; without either
        everything is downloaded.

        Returns:
            (cutoff or None, sync mode name)

        Raises:
            ValueError: If the since-date cannot be parsed
        """
        if self.settings.download_since:
            return parse_timestamp(self.settings.download_since), 'since'

        if self.settings.delta:
            if previous is not None:
                return previous.newest_seen, 'delta'
            logger.info("No previous watermark, delta run falls back to a full download")

        return None, 'full'

    def run(self) -> dict:
        """
        Execute the run.

        Returns:
            Finalized run log: summary counters, issues, oldest cursor, watermark
                and HTTP request counts

        Raises:
            AuthError, FeedFetchError, ObservationFetchError: Fatal errors;
                the watermark is left untouched
        """
        settings = self.settings
        previous = self.store.load()
        cutoff, mode = self.resolve_cutoff(previous)

        if cutoff is None:
            logger.info("Download all feed items.")
        else:
            logger.info(f"Download all feed items created after: {format_cursor(cutoff)}")

        if settings.verbose:
            logger.debug(f"Settings: {settings.masked()}")

        Config.init_paths(settings.download_folder)

        ctx = RunContext(settings=settings, pool=self.pool, collector=SyncLogCollector(sync_mode=mode))
        log_sync_event('start', {'mode': mode, 'folder': os.path.abspath(settings.download_folder)})

        try:
            ctx.session = authenticate(self.pool, settings.graphql_url, settings.username, settings.password)
            result = self._paginate(ctx, cutoff, previous)
        except FATAL_ERRORS as e:
            ctx.collector.add_issue(SyncLogCollector.TYPE_FATAL, message=str(e))
            logs = ctx.collector.finalize(completed=False)
            logger.error(f"Sync aborted: {e}. Watermark not updated. {ctx.collector.format_summary()}")
            log_sync_event('aborted', logs['summary'])
            raise
        finally:
            http_stats = self.pool.get_stats()
            logger.debug(f"HTTP requests: {http_stats}")
            if self._owns_pool:
                self.pool.close()

        if result.pages > 0 and not result.watermark.is_empty:
            self.store.save(result.watermark)

        logs = ctx.collector.finalize(completed=True)
        logs['oldest_cursor'] = format_cursor(result.oldest_cursor)
        logs['watermark'] = result.watermark.to_dict() if not result.watermark.is_empty else None
        logs['http'] = http_stats

        logger.info(
            f"Downloads finished. Oldest feed item downloaded = {logs['oldest_cursor']}. "
            f"{ctx.collector.format_summary()}"
        )
        log_sync_event('finished', logs['summary'])
        return logs

    def _paginate(self, ctx: RunContext, cutoff: Optional[datetime], previous: Optional[Watermark]) -> PaginationResult:
        settings = ctx.settings
        feed_client = FeedClient(ctx.pool, ctx.session, settings.api_base_url, settings.height_target)
        resolver = ObservationResolver(
            ObservationClient(ctx.pool, ctx.session, settings.graphql_url),
            batch_size=settings.observation_batch_size,
        )
        tag_applier = TagApplier(self.tagger, enabled=not settings.disable_exif, verbose=settings.verbose)

        with MediaDownloadQueue(
            DownloadDispatcher(ctx.pool, settings.download_folder),
            tag_applier,
            ctx.collector,
            max_workers=settings.max_workers,
        ) as media_queue:
            paginator = FeedPaginator(
                feed_client,
                resolver,
                media_queue,
                ctx.collector,
                cutoff=cutoff,
                baseline=previous,
                clock=self.clock,
            )
            result = paginator.run()
            # Nothing may still be in flight once the run is declared complete
            media_queue.wait_completion()

        return result
