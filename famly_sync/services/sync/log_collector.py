"""
Sync Log Collector - Run summary counters and issue log

This module tracks what a run did (pages, downloads, tagging) and the
per-item problems it recovered from, for the end-of-run summary.
"""
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ...utils.logger import get_logger

logger = get_logger('log_collector')


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SyncLogCollector:
    """Collects counters and issues for one sync run.

    Issue types:
    - Malformed feed items or media descriptors
    - Download failures
    - Tagging failures
    - Fatal errors that aborted the run

    Example:
        >>> collector = SyncLogCollector(sync_mode='delta')
        >>> collector.record_page(items=12, qualifying=10)
        >>> collector.add_issue(SyncLogCollector.TYPE_DOWNLOAD_FAILED, item='a.jpg', message='HTTP 404')
        >>> logs = collector.finalize(completed=True)
    """

    # Issue type constants
    TYPE_MALFORMED = 'malformed'             # Unusable feed item / media descriptor
    TYPE_DOWNLOAD_FAILED = 'download_failed' # Media download failure
    TYPE_TAG_FAILED = 'tag_failed'           # Metadata tagging failure
    TYPE_FATAL = 'fatal'                     # Error that aborted the run

    # Maximum issues to store (prevent memory bloat)
    MAX_ISSUES = 500

    # Maximum message length
    MAX_MESSAGE_LENGTH = 500

    _ISSUE_COUNTERS = {
        TYPE_MALFORMED: 'malformed',
        TYPE_DOWNLOAD_FAILED: 'failed',
        TYPE_TAG_FAILED: 'tag_failed',
    }

    def __init__(self, sync_mode: str = 'full'):
        """Initialize the log collector.

        Args:
            sync_mode: 'full', 'delta' or 'since'
        """
        self.sync_mode = sync_mode
        self.start_time = _now()
        self.end_time: Optional[str] = None
        self.completed = False
        self.issues: List[Dict] = []
        self.summary = {
            'pages': 0,           # Feed pages fetched
            'items': 0,           # Feed items returned
            'qualifying': 0,      # Items newer than the cutoff
            'skipped': 0,         # Items at or before the cutoff, or already handled
            'submitted': 0,       # Media items queued for download
            'downloaded': 0,      # Media items written to disk
            'failed': 0,          # Media downloads that failed
            'tagged': 0,          # Files whose metadata was written
            'tag_failed': 0,      # Files whose tagging failed
            'malformed': 0,       # Unusable items / descriptors
        }
        self._lock = threading.Lock()

    def add_issue(
        self,
        issue_type: str,
        item: Optional[str] = None,
        message: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None
    ) -> None:
        """Add an issue record.

        Args:
            issue_type: Type of issue (use TYPE_* constants)
            item: Related file name or id
            message: Error message (truncated to MAX_MESSAGE_LENGTH)
            extra: Additional context data
        """
        with self._lock:
            issue = {
                'type': issue_type,
                'time': _now(),
            }
            if item:
                issue['item'] = item
            if message:
                issue['message'] = message[:self.MAX_MESSAGE_LENGTH]
            if extra:
                issue['extra'] = extra

            if len(self.issues) < self.MAX_ISSUES:
                self.issues.append(issue)

            counter = self._ISSUE_COUNTERS.get(issue_type)
            if counter:
                self.summary[counter] += 1

    def record_page(self, items: int, qualifying: int, skipped: Optional[int] = None) -> None:
        """Record one fetched feed page.

        Args:
            items: Raw items on the page
            qualifying: Items newer than the cutoff
            skipped: Items filtered out by the cutoff or cursor (defaults to items - qualifying)
        """
        with self._lock:
            self.summary['pages'] += 1
            self.summary['items'] += items
            self.summary['qualifying'] += qualifying
            self.summary['skipped'] += (items - qualifying) if skipped is None else skipped

    def record_submitted(self, count: int = 1) -> None:
        with self._lock:
            self.summary['submitted'] += count

    def record_downloaded(self) -> None:
        with self._lock:
            self.summary['downloaded'] += 1

    def record_tagged(self) -> None:
        with self._lock:
            self.summary['tagged'] += 1

    def finalize(self, completed: bool = True) -> Dict:
        """Finalize log collection and generate final log data.

        Args:
            completed: Whether the run reached the end of the feed normally

        Returns:
            Dictionary containing sync_mode, times, outcome, summary and issues
        """
        with self._lock:
            self.end_time = _now()
            self.completed = completed
            return {
                'sync_mode': self.sync_mode,
                'start_time': self.start_time,
                'end_time': self.end_time,
                'completed': completed,
                'summary': self.summary.copy(),
                'issues': list(self.issues),
            }

    def get_summary(self) -> Dict:
        """Get current summary statistics."""
        with self._lock:
            return self.summary.copy()

    def get_issue_count(self) -> int:
        """Get total issue count."""
        with self._lock:
            return len(self.issues)

    def has_problems(self) -> bool:
        """Check if any item failed to download or tag."""
        with self._lock:
            return (
                self.summary['failed'] > 0 or
                self.summary['tag_failed'] > 0 or
                self.summary['malformed'] > 0
            )

    def format_summary(self) -> str:
        """One-line human readable summary."""
        s = self.get_summary()
        return (
            f"pages={s['pages']} downloaded={s['downloaded']} failed={s['failed']} "
            f"tagged={s['tagged']} tag_failed={s['tag_failed']} skipped={s['skipped']} "
            f"malformed={s['malformed']}"
        )
