"""
Media Download Queue - Bounded concurrent download + tag pipeline

This module downloads media references on a thread pool and tags each file
once its bytes are fully on disk. Failures are handled per item: a failed
download skips tagging for that item and never affects its siblings.
"""
import os
import threading
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import Dict, Iterable, List, Optional

import requests

from ...api.errors import DownloadError, TagError
from ...models import DownloadedFile, MediaReference
from ...utils.logger import get_logger
from .log_collector import SyncLogCollector

logger = get_logger('media_queue')


class DownloadDispatcher:
    """Streams one media reference into the download folder.

    Existing files with the same name are overwritten. The returned path is
    only handed out after the body is flushed and renamed into place.
    """

    CHUNK_SIZE = 8192
    PART_SUFFIX = '.part'

    def __init__(self, pool, download_folder: str):
        """
        Args:
            pool: RequestSessionPool for the GET requests
            download_folder: Target directory (must exist)
        """
        self.pool = pool
        self.download_folder = download_folder

    def target_path(self, ref: MediaReference) -> str:
        return os.path.join(self.download_folder, ref.suggested_filename)

    def download(self, ref: MediaReference) -> str:
        """
        Download one media item.

        Args:
            ref: Media reference to fetch

        Returns:
            Local path of the fully written file

        Raises:
            DownloadError: On non-success HTTP status or a stream/write error
        """
        path = self.target_path(ref)
        part_path = path + self.PART_SUFFIX

        resp = self.pool.request_with_retry(
            'GET',
            ref.source_url,
            error_cls=DownloadError,
            description=f'download {ref.suggested_filename}',
            stream=True,
        )

        try:
            with open(part_path, 'wb') as f:
                for chunk in resp.iter_content(self.CHUNK_SIZE):
                    if chunk:
                        f.write(chunk)
                f.flush()
                os.fsync(f.fileno())
            os.replace(part_path, path)
        except (requests.RequestException, OSError) as e:
            if os.path.exists(part_path):
                os.remove(part_path)
            raise DownloadError(f"download {ref.suggested_filename} failed: {e}") from e
        finally:
            resp.close()

        logger.debug(f"[MediaDownloadQueue] Downloaded {path}")
        return path


class MediaDownloadQueue:
    """Bounded thread pool running download-then-tag for each media item.

    Example:
        >>> queue = MediaDownloadQueue(dispatcher, tag_applier, collector, max_workers=4)
        >>> futures = queue.submit_all(refs)
        >>> queue.wait_completion(futures)
        >>> stats = queue.get_stats()
        >>> queue.shutdown()
    """

    MAX_WORKERS = 4  # Default concurrent download threads

    def __init__(
        self,
        dispatcher: DownloadDispatcher,
        tag_applier,
        collector: SyncLogCollector,
        max_workers: Optional[int] = None
    ):
        """
        Args:
            dispatcher: DownloadDispatcher doing the HTTP + file work
            tag_applier: TagApplier run after each successful download
            collector: Run summary collector
            max_workers: Pool size (defaults to MAX_WORKERS)
        """
        self.dispatcher = dispatcher
        self.tag_applier = tag_applier
        self.collector = collector
        self.max_workers = max_workers or self.MAX_WORKERS

        self._executor = ThreadPoolExecutor(
            max_workers=self.max_workers,
            thread_name_prefix='media_dl'
        )
        self._futures: List[Future] = []
        self._futures_lock = threading.Lock()
        self._stats = {'submitted': 0, 'completed': 0, 'failed': 0}
        self._stats_lock = threading.Lock()
        logger.debug(f"[MediaDownloadQueue] Initialized with {self.max_workers} workers")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.shutdown(wait=True)

    def _process(self, ref: MediaReference) -> Optional[DownloadedFile]:
        """Download then tag one item (runs in worker thread)."""
        try:
            local_path = self.dispatcher.download(ref)
        except DownloadError as e:
            logger.warning(f"[MediaDownloadQueue] {e}")
            self.collector.add_issue(SyncLogCollector.TYPE_DOWNLOAD_FAILED, item=ref.suggested_filename, message=str(e))
            with self._stats_lock:
                self._stats['failed'] += 1
            return None
        except Exception as e:
            logger.exception(f"[MediaDownloadQueue] Unexpected error downloading {ref.suggested_filename}: {e}")
            self.collector.add_issue(SyncLogCollector.TYPE_DOWNLOAD_FAILED, item=ref.suggested_filename, message=str(e))
            with self._stats_lock:
                self._stats['failed'] += 1
            return None

        self.collector.record_downloaded()
        downloaded = DownloadedFile(local_path=local_path, media_reference=ref)

        try:
            if self.tag_applier.apply(downloaded):
                self.collector.record_tagged()
        except TagError as e:
            logger.warning(f"[MediaDownloadQueue] Tagging failed for {local_path}: {e}")
            self.collector.add_issue(SyncLogCollector.TYPE_TAG_FAILED, item=ref.suggested_filename, message=str(e))
        except Exception as e:
            logger.exception(f"[MediaDownloadQueue] Unexpected tagging error for {local_path}: {e}")
            self.collector.add_issue(SyncLogCollector.TYPE_TAG_FAILED, item=ref.suggested_filename, message=str(e))

        with self._stats_lock:
            self._stats['completed'] += 1
        return downloaded

    def submit(self, ref: MediaReference) -> Future:
        """Submit one media reference to the queue."""
        future = self._executor.submit(self._process, ref)
        with self._futures_lock:
            self._futures.append(future)
        with self._stats_lock:
            self._stats['submitted'] += 1
        self.collector.record_submitted()
        return future

    def submit_all(self, refs: Iterable[MediaReference]) -> List[Future]:
        """Submit every reference; returns their futures in submission order."""
        return [self.submit(ref) for ref in refs]

    def wait_completion(self, futures: Optional[List[Future]] = None, timeout: Optional[float] = None) -> List[DownloadedFile]:
        """Block until the given (or all outstanding) tasks have settled.

        Args:
            futures: Futures to wait for; all outstanding ones if None
            timeout: Maximum seconds to wait. None means wait forever.

        Returns:
            DownloadedFile for every item that downloaded successfully

        Raises:
            TimeoutError: If the tasks do not settle within timeout
        """
        if futures is None:
            with self._futures_lock:
                futures = list(self._futures)

        downloaded = []
        for future in as_completed(futures, timeout=timeout):
            result = future.result()
            if result is not None:
                downloaded.append(result)

        with self._futures_lock:
            self._futures = [f for f in self._futures if not f.done()]

        logger.debug(f"[MediaDownloadQueue] Wait completed: {len(futures)} tasks settled")
        return downloaded

    def pending(self) -> int:
        with self._futures_lock:
            return len([f for f in self._futures if not f.done()])

    def get_stats(self) -> Dict:
        """Get current queue statistics.

        Returns:
            Dictionary with submitted, completed, failed, and pending counts
        """
        with self._stats_lock:
            stats = self._stats.copy()
        stats['pending'] = self.pending()
        return stats

    def shutdown(self, wait: bool = True) -> None:
        """Shutdown the thread pool.

        Args:
            wait: If True, wait for pending tasks to complete
        """
        self._executor.shutdown(wait=wait)
        logger.debug("[MediaDownloadQueue] Thread pool shutdown")
