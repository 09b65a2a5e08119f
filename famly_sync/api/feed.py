"""
Feed endpoint client
"""
from datetime import datetime
from typing import Any, Dict, List

from ..utils.logger import get_logger
from ..utils.validators import encode_cursor, format_cursor
from .auth import Session
from .errors import FeedFetchError

logger = get_logger('feed')


class FeedClient:
    """Fetches pages of the activity feed, newest first, older than a cursor."""

    FEED_PATH = '/api/feed/feed/feed'

    def __init__(self, pool, session: Session, api_base_url: str, height_target: int = 10000):
        self.pool = pool
        self.session = session
        self.api_base_url = api_base_url.rstrip('/')
        self.height_target = height_target

    def page_url(self, older_than: datetime) -> str:
        return (
            f"{self.api_base_url}{self.FEED_PATH}"
            f"?olderThan={encode_cursor(older_than)}&heightTarget={self.height_target}"
        )

    def fetch_page(self, older_than: datetime) -> List[Dict[str, Any]]:
        """
        Fetch one page of raw feed items older than the cursor.

        Args:
            older_than: Cursor timestamp

        Returns:
            The ``feedItems`` list of the response

        Raises:
            FeedFetchError: On HTTP failure after retries or a malformed body
        """
        url = self.page_url(older_than)
        logger.info(f"Downloading feed items older than {format_cursor(older_than)}")
        logger.debug(f"Feed URL = {url}")

        resp = self.pool.request_with_retry(
            'GET',
            url,
            error_cls=FeedFetchError,
            description='feed page',
            headers=self.session.headers(),
        )

        try:
            payload = resp.json()
        except ValueError as e:
            raise FeedFetchError('Feed response is not valid JSON') from e

        items = payload.get('feedItems') if isinstance(payload, dict) else None
        if not isinstance(items, list):
            raise FeedFetchError('Feed response has no feedItems list')

        return items
