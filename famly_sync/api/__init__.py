"""
Remote API client
"""
from .auth import Session, authenticate
from .feed import FeedClient
from .observations import ObservationClient
from .errors import (
    FamlySyncError,
    AuthError,
    FeedFetchError,
    ObservationFetchError,
    DownloadError,
    TagError,
)

__all__ = [
    'Session',
    'authenticate',
    'FeedClient',
    'ObservationClient',
    'FamlySyncError',
    'AuthError',
    'FeedFetchError',
    'ObservationFetchError',
    'DownloadError',
    'TagError',
]
