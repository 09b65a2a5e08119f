"""
Pytest Configuration and Fixtures

This module provides shared fixtures for all tests.
"""
import os
import sys
from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

# Add package to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from famly_sync.config import SyncSettings, TestingConfig


def make_response(status_code=200, json_data=None, chunks=None, headers=None):
    """Build a mocked requests.Response."""
    resp = Mock()
    resp.status_code = status_code
    resp.ok = 200 <= status_code < 400
    resp.headers = headers or {}
    resp.json.return_value = json_data
    resp.iter_content.return_value = chunks or []
    return resp


@pytest.fixture
def now():
    """Fixed 'now' used as the first feed cursor."""
    return datetime(2023, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def settings(tmp_path):
    """Testing settings writing into a temporary folder."""
    return SyncSettings.from_config(
        TestingConfig,
        download_folder=str(tmp_path / 'downloads'),
        delta_file=str(tmp_path / '.famlydownloaderdelta'),
    )


@pytest.fixture
def session():
    from famly_sync.api.auth import Session
    return Session(access_token='token-abc', installation_id='install-1')


@pytest.fixture
def fake_pool():
    """RequestSessionPool stand-in; set request_with_retry.return_value per test."""
    return Mock()


@pytest.fixture
def inline_item_data():
    """Feed item carrying one image, one video and one document."""
    return {
        'feedItemId': 'fi-1',
        'createdDate': '2023-02-01T12:00:00+00:00',
        'images': [{
            'imageId': 'abc',
            'createdAt': {'date': '2023-02-01 12:00:00.000000'},
            'prefix': 'https://img.famly.test',
            'key': 'x/y.jpg',
            'width': 800,
            'height': 600,
        }],
        'videos': [{
            'videoUrl': 'https://video.famly.test/v/clip.mp4?sig=1',
        }],
        'files': [{
            'filename': 'Document.pdf',
            'url': 'https://files.famly.test/doc/Document.pdf',
        }],
    }


@pytest.fixture
def observation_item_data():
    """Feed item that points at an observation."""
    return {
        'feedItemId': 'fi-2',
        'createdDate': '2023-02-02T08:30:00+00:00',
        'embed': {'observationId': 'obs-1'},
    }


@pytest.fixture
def observation_data():
    """Resolved observation with two images and a ready video."""
    return {
        'id': 'obs-1',
        'status': {'createdAt': '2023-02-02T08:30:00+00:00'},
        'images': [
            {
                'width': 1024,
                'height': 768,
                'secret': {
                    'prefix': 'https://obs.famly.test',
                    'key': 'k1',
                    'path': 'a/b/photo1.jpg',
                    'expires': '123',
                },
            },
            {
                'width': 1024,
                'height': 768,
                'secret': {
                    'prefix': 'https://obs.famly.test',
                    'key': 'k2',
                    'path': 'a/b/photo2.jpg',
                    'expires': '123',
                },
            },
        ],
        'video': {'videoUrl': 'https://video.famly.test/o/movie.mp4?sig=2'},
    }
