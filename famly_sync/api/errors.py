"""
Error taxonomy

Fatal errors (AuthError, FeedFetchError, ObservationFetchError) abort a run
and leave the watermark untouched. DownloadError and TagError are recovered
per media item.
"""
from typing import Optional


class FamlySyncError(Exception):
    """Base class for every error raised by famly_sync."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self):
        if self.status_code is not None:
            return f"{self.message} (HTTP {self.status_code})"
        return self.message


class AuthError(FamlySyncError):
    """Login failed, or the service answered with a challenge we do not support."""


class FeedFetchError(FamlySyncError):
    """A feed page could not be fetched."""


class ObservationFetchError(FamlySyncError):
    """An observation batch query failed."""


class DownloadError(FamlySyncError):
    """Media bytes could not be fetched or written."""


class TagError(FamlySyncError):
    """Capture metadata could not be written into a downloaded file."""


FATAL_ERRORS = (AuthError, FeedFetchError, ObservationFetchError)
