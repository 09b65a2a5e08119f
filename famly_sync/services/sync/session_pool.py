"""
Request Session Pool - HTTP connection pooling with timeouts and retries

This module wraps a requests.Session so every call to the remote service
reuses TCP connections, carries a fixed timeout, and is retried with
exponential backoff when the failure looks transient.
"""
import threading
import time
from typing import Callable, Dict, Optional, Type

import requests
from requests.adapters import HTTPAdapter

from ...api.errors import FamlySyncError
from ...utils.logger import get_logger
from .delay_manager import AdaptiveDelayManager

logger = get_logger('session_pool')

# Status codes worth another attempt
TRANSIENT_STATUS_CODES = frozenset({408, 425, 429, 500, 502, 503, 504})


def parse_retry_after(resp: requests.Response) -> Optional[float]:
    """Read a numeric Retry-After header, if present."""
    value = resp.headers.get('Retry-After') if resp is not None else None
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


class RequestSessionPool:
    """HTTP request session pool for connection reuse.

    Uses requests.Session with connection pooling:
    1. Avoids repeated TCP handshakes
    2. Reuses SSL/TLS sessions
    3. Applies one timeout to every request
    4. Retries transient failures (connection errors, timeouts, 429, 5xx)

    One pool is created per run and shared by the API clients and the
    download workers.

    Example:
        >>> pool = RequestSessionPool(timeout=30, max_retries=3)
        >>> resp = pool.request_with_retry('GET', url, error_cls=FeedFetchError,
        ...                                description='feed page')
        >>> stats = pool.get_stats()
    """

    # Connection pool configuration
    POOL_CONNECTIONS = 10  # Number of connection pools to cache
    POOL_MAXSIZE = 10      # Max connections per host

    def __init__(
        self,
        timeout: float = 30.0,
        max_retries: int = 3,
        delay_manager: Optional[AdaptiveDelayManager] = None,
        pool_maxsize: Optional[int] = None,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        """Initialize the pool.

        Args:
            timeout: Seconds before any single request is abandoned
            max_retries: Extra attempts after the first one for transient failures
            delay_manager: Backoff source; a default one is created if omitted
            pool_maxsize: Max connections per host (at least the worker count)
            session: Pre-built session, mainly for tests
            sleep: Sleep function, mainly for tests
        """
        self.timeout = timeout
        self.max_retries = max(0, max_retries)
        self.delay_manager = delay_manager or AdaptiveDelayManager()
        self._sleep = sleep

        self._session = session or requests.Session()

        if session is None:
            maxsize = max(pool_maxsize or 0, self.POOL_MAXSIZE)
            # Retries are handled in request_with_retry
            adapter = HTTPAdapter(
                pool_connections=self.POOL_CONNECTIONS,
                pool_maxsize=maxsize,
                max_retries=0,
                pool_block=False
            )
            self._session.mount('http://', adapter)
            self._session.mount('https://', adapter)

        self._stats = {'requests': 0, 'errors': 0, 'retries': 0}
        self._stats_lock = threading.Lock()

        logger.debug(
            f"[RequestSessionPool] Initialized: timeout={timeout}s, "
            f"max_retries={self.max_retries}"
        )

    def _count(self, key: str) -> None:
        with self._stats_lock:
            self._stats[key] += 1

    def request(self, method: str, url: str, **kwargs) -> requests.Response:
        """Send one request using the pooled session and the default timeout.

        Raises:
            requests.RequestException: On request failure
        """
        kwargs.setdefault('timeout', self.timeout)
        self._count('requests')

        try:
            return self._session.request(method, url, **kwargs)
        except requests.RequestException:
            self._count('errors')
            raise

    def request_with_retry(
        self,
        method: str,
        url: str,
        error_cls: Type[FamlySyncError] = FamlySyncError,
        description: str = 'request',
        **kwargs
    ) -> requests.Response:
        """Send a request, retrying transient failures with backoff.

        Args:
            method: HTTP method
            url: Target URL
            error_cls: Error raised when the request finally fails
            description: Human readable name for log lines and errors
            **kwargs: Passed through to requests

        Returns:
            A response with a 2xx status

        Raises:
            error_cls: On a non-transient HTTP error, or once retries are exhausted
        """
        attempts = self.max_retries + 1

        for attempt in range(1, attempts + 1):
            retry_after = None
            try:
                resp = self.request(method, url, **kwargs)
            except (requests.ConnectionError, requests.Timeout) as e:
                failure = f"{type(e).__name__}: {e}"
                status = None
            except requests.RequestException as e:
                raise error_cls(f"{description} failed: {e}") from e
            else:
                if resp.ok:
                    self.delay_manager.record_success()
                    return resp

                status = resp.status_code
                if status not in TRANSIENT_STATUS_CODES:
                    resp.close()
                    raise error_cls(f"{description} failed", status_code=status)

                failure = f"HTTP {status}"
                retry_after = parse_retry_after(resp)
                resp.close()

            if attempt >= attempts:
                raise error_cls(
                    f"{description} failed after {attempts} attempts: {failure}",
                    status_code=status
                )

            wait = self.delay_manager.get_retry_wait(retry_after)
            self.delay_manager.record_failure()
            self._count('retries')
            logger.warning(
                f"[RequestSessionPool] {description}: {failure}. "
                f"Retry in {wait:.1f}s (attempt {attempt}/{attempts})"
            )
            self._sleep(wait)

        # Unreachable: the loop either returns or raises
        raise error_cls(f"{description} failed")

    def get_stats(self) -> Dict:
        """Get request statistics.

        Returns:
            Dictionary with request, error and retry counts
        """
        with self._stats_lock:
            return self._stats.copy()

    def close(self) -> None:
        """Close all connections in the pool."""
        self._session.close()
        logger.debug("[RequestSessionPool] Session pool closed")
