"""
Input validation and timestamp helpers
"""
from datetime import datetime, timezone
from typing import Any, Optional, Tuple
from urllib.parse import quote


def parse_timestamp(value: Any) -> datetime:
    """
    Parse an ISO-8601 style timestamp and normalize it to UTC.

    Supports:
      - YYYY-MM-DD
      - YYYY-MM-DDTHH:MM:SS (any single separator, e.g. ' ' or '_')
      - fractional seconds
      - trailing Z or a numeric UTC offset
    Naive values are assumed to be UTC.

    Args:
        value: Timestamp string (or datetime, returned normalized)

    Returns:
        Timezone-aware UTC datetime

    Raises:
        ValueError: If the value cannot be parsed
    """
    if isinstance(value, datetime):
        dt = value
    else:
        s = (value or '').strip() if isinstance(value, str) else ''
        if not s:
            raise ValueError(f'empty timestamp: {value!r}')

        if s.endswith('Z'):
            s = s[:-1] + '+00:00'

        dt = datetime.fromisoformat(s)

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def try_parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a timestamp, returning None instead of raising."""
    try:
        return parse_timestamp(value)
    except (TypeError, ValueError):
        return None


def format_timestamp(dt: datetime) -> str:
    """Render a datetime as ISO-8601 UTC with an explicit +00:00 offset."""
    return dt.astimezone(timezone.utc).isoformat()


def format_cursor(dt: datetime) -> str:
    """
    Render a pagination cursor the way the feed endpoint expects it:
    whole seconds, UTC, explicit offset (2023-02-01T12:00:00+00:00).
    """
    return dt.astimezone(timezone.utc).replace(microsecond=0, tzinfo=None).isoformat() + '+00:00'


def encode_cursor(dt: datetime) -> str:
    """URL-encode a formatted cursor for use in a query string."""
    return quote(format_cursor(dt), safe='')


def format_exif_date(dt: datetime) -> str:
    """Capture timestamp in UTC, truncated to whole seconds, EXIF style (2023:02:01 12:00:00)."""
    return dt.astimezone(timezone.utc).strftime('%Y:%m:%d %H:%M:%S')


def validate_height_target(value: Any) -> Tuple[bool, Optional[str], int]:
    """
    Validate the feed page height hint.

    Args:
        value: Raw value from the environment or command line

    Returns:
        (is_valid, error_message, height_target)
    """
    try:
        height = int(value)
    except (TypeError, ValueError):
        return False, f'height target must be an integer, got {value!r}', 0

    if height <= 0:
        return False, 'height target must be positive', 0

    return True, None, height


def validate_credentials(username: Any, password: Any) -> Tuple[bool, Optional[str]]:
    """
    Validate that both credentials are present.

    Returns:
        (is_valid, error_message)
    """
    if not username or not isinstance(username, str) or not username.strip():
        return False, 'username is required (FAMLY_USERNAME or --username)'

    if not password or not isinstance(password, str):
        return False, 'password is required (FAMLY_PASSWORD or --password)'

    return True, None
