"""
Adaptive Delay Manager - Exponential backoff between request retries

This module provides the wait times used when a request to the remote
service fails transiently. Delays grow exponentially on consecutive failures
and recover after a streak of successes.
"""
import random
import threading
from typing import Dict, Optional

from ...utils.logger import get_logger

logger = get_logger('delay_manager')


class AdaptiveDelayManager:
    """Backoff delay manager with exponential growth and fast recovery.

    Core strategies:
    1. Exponential backoff: Multiply delay on each transient failure (up to max_delay)
    2. Fast recovery: Shrink delay after N consecutive successes (down to initial_delay)
    3. Server hints: A Retry-After value overrides the computed delay

    One instance is shared by all requests of a run, so a remote that starts
    failing slows every worker down, not just the one that noticed.

    Example:
        >>> manager = AdaptiveDelayManager(initial_delay=2.0, max_delay=60.0)
        >>> manager.record_failure()      # transient failure, increase delay
        >>> wait = manager.get_delay()    # current delay with jitter
        >>> manager.record_success()      # potentially decrease delay
    """

    def __init__(
        self,
        max_delay: float = 60.0,
        initial_delay: float = 2.0,
        backoff_factor: float = 2.0,
        recovery_threshold: int = 3,
        recovery_factor: float = 0.5,
        jitter: float = 0.2
    ):
        """Initialize the delay manager.

        Args:
            max_delay: Maximum delay in seconds
            initial_delay: Starting delay value
            backoff_factor: Multiply delay by this on failure
            recovery_threshold: Consecutive successes needed to reduce delay
            recovery_factor: Multiply delay by this on recovery (< 1.0)
            jitter: Relative random spread applied by get_delay (0.2 = +/-20%)
        """
        self.max_delay = max_delay
        self.initial_delay = initial_delay
        self.backoff_factor = backoff_factor
        self.recovery_threshold = recovery_threshold
        self.recovery_factor = recovery_factor
        self.jitter = jitter

        self._current_delay = initial_delay
        self._consecutive_success = 0
        self._failure_count = 0
        self._lock = threading.Lock()

        logger.debug(
            f"[AdaptiveDelay] Initialized: max={max_delay}s, "
            f"initial={initial_delay}s, backoff={backoff_factor}x"
        )

    def record_failure(self) -> None:
        """Record a transient failure, increase delay exponentially."""
        with self._lock:
            self._failure_count += 1
            self._consecutive_success = 0
            old_delay = self._current_delay
            self._current_delay = min(
                self._current_delay * self.backoff_factor,
                self.max_delay
            )
            logger.debug(
                f"[AdaptiveDelay] Failure #{self._failure_count}: "
                f"delay {old_delay:.1f}s -> {self._current_delay:.1f}s"
            )

    def record_success(self) -> None:
        """Record a successful request, potentially reduce delay."""
        with self._lock:
            self._consecutive_success += 1

            if self._consecutive_success >= self.recovery_threshold:
                old_delay = self._current_delay
                self._current_delay = max(
                    self._current_delay * self.recovery_factor,
                    self.initial_delay
                )
                self._consecutive_success = 0

                if old_delay != self._current_delay:
                    logger.debug(
                        f"[AdaptiveDelay] Recovery: "
                        f"delay {old_delay:.1f}s -> {self._current_delay:.1f}s"
                    )

    def get_delay(self) -> float:
        """Get current delay with random jitter.

        Returns:
            Delay in seconds with jitter applied
        """
        with self._lock:
            spread = random.uniform(1.0 - self.jitter, 1.0 + self.jitter)
            return self._current_delay * spread

    def get_retry_wait(self, retry_after: Optional[float] = None) -> float:
        """Get the wait before the next retry.

        Args:
            retry_after: Server supplied Retry-After seconds, if any

        Returns:
            Seconds to wait, never more than max_delay
        """
        if retry_after is not None and retry_after >= 0:
            return min(float(retry_after), self.max_delay)
        return self.get_delay()

    def reset(self) -> None:
        """Reset to initial state."""
        with self._lock:
            self._current_delay = self.initial_delay
            self._consecutive_success = 0
            self._failure_count = 0

    def get_stats(self) -> Dict:
        """Get current statistics.

        Returns:
            Dictionary with current delay, consecutive success count, and failure count
        """
        with self._lock:
            return {
                'current_delay': self._current_delay,
                'consecutive_success': self._consecutive_success,
                'failure_count': self._failure_count,
            }
