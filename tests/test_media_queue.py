"""
Media Queue Tests

Tests for downloading to disk and the download-then-tag pipeline.
"""
import os

import pytest
import requests
from unittest.mock import Mock

from conftest import make_response
from famly_sync.api.errors import DownloadError, TagError
from famly_sync.models import MediaKind, MediaReference
from famly_sync.services.sync.log_collector import SyncLogCollector
from famly_sync.services.sync.media_queue import DownloadDispatcher, MediaDownloadQueue
from famly_sync.services.sync.tagger import TagApplier


def image_ref(name='2023-02-01_abc.jpg'):
    return MediaReference(MediaKind.IMAGE, f'https://img.famly.test/{name}', name, '2023-02-01T12:00:00+00:00')


def file_ref(name='Document_2023-02-01.pdf'):
    return MediaReference(MediaKind.FILE, f'https://files.famly.test/{name}', name, '2023-02-01')


class TestDownloadDispatcher:
    """Tests for DownloadDispatcher."""

    def test_download_writes_file(self, tmp_path, fake_pool):
        fake_pool.request_with_retry.return_value = make_response(chunks=[b'abc', b'', b'def'])
        dispatcher = DownloadDispatcher(fake_pool, str(tmp_path))

        path = dispatcher.download(image_ref())

        assert path == os.path.join(str(tmp_path), '2023-02-01_abc.jpg')
        with open(path, 'rb') as f:
            assert f.read() == b'abcdef'
        assert not os.path.exists(path + '.part')
        assert fake_pool.request_with_retry.call_args.kwargs['stream'] is True

    def test_existing_file_overwritten(self, tmp_path, fake_pool):
        """Test that re-downloading replaces an existing file of the same name."""
        target = tmp_path / '2023-02-01_abc.jpg'
        target.write_bytes(b'old contents')
        fake_pool.request_with_retry.return_value = make_response(chunks=[b'new'])

        DownloadDispatcher(fake_pool, str(tmp_path)).download(image_ref())

        assert target.read_bytes() == b'new'

    def test_stream_failure_leaves_no_partial(self, tmp_path, fake_pool):
        resp = make_response()
        resp.iter_content.side_effect = requests.ConnectionError('dropped')
        fake_pool.request_with_retry.return_value = resp

        with pytest.raises(DownloadError):
            DownloadDispatcher(fake_pool, str(tmp_path)).download(image_ref())

        assert os.listdir(str(tmp_path)) == []
        resp.close.assert_called_once()

    def test_http_failure_propagates(self, tmp_path, fake_pool):
        fake_pool.request_with_retry.side_effect = DownloadError('download failed', status_code=404)

        with pytest.raises(DownloadError):
            DownloadDispatcher(fake_pool, str(tmp_path)).download(image_ref())


class TestMediaDownloadQueue:
    """Tests for MediaDownloadQueue."""

    def _queue(self, tmp_path, dispatcher=None, tagger=None, enabled=True):
        if dispatcher is None:
            dispatcher = Mock()
            dispatcher.download.side_effect = lambda ref: str(tmp_path / ref.suggested_filename)
        tagger = tagger or Mock()
        collector = SyncLogCollector()
        queue = MediaDownloadQueue(dispatcher, TagApplier(tagger, enabled=enabled), collector, max_workers=2)
        return queue, dispatcher, tagger, collector

    def test_download_then_tag(self, tmp_path):
        queue, _, tagger, collector = self._queue(tmp_path)

        with queue:
            downloaded = queue.wait_completion(queue.submit_all([image_ref('a.jpg'), image_ref('b.jpg')]))

        assert len(downloaded) == 2
        assert tagger.write_dates.call_count == 2
        summary = collector.get_summary()
        assert summary['submitted'] == 2
        assert summary['downloaded'] == 2
        assert summary['tagged'] == 2

    def test_failed_download_not_tagged(self, tmp_path):
        """Test that a failed item skips tagging and does not affect siblings."""
        dispatcher = Mock()

        def download(ref):
            if ref.suggested_filename == 'bad.jpg':
                raise DownloadError('download bad.jpg failed', status_code=500)
            return str(tmp_path / ref.suggested_filename)

        dispatcher.download.side_effect = download
        queue, _, tagger, collector = self._queue(tmp_path, dispatcher=dispatcher)

        with queue:
            downloaded = queue.wait_completion(queue.submit_all([image_ref('bad.jpg'), image_ref('good.jpg')]))

        assert [d.media_reference.suggested_filename for d in downloaded] == ['good.jpg']
        tagger.write_dates.assert_called_once()
        assert tagger.write_dates.call_args.args[0].endswith('good.jpg')
        assert collector.get_summary()['failed'] == 1

    def test_tag_failure_recorded(self, tmp_path):
        tagger = Mock()
        tagger.write_dates.side_effect = TagError('exiftool exited with 1')
        queue, _, _, collector = self._queue(tmp_path, tagger=tagger)

        with queue:
            downloaded = queue.wait_completion(queue.submit_all([image_ref()]))

        assert len(downloaded) == 1
        summary = collector.get_summary()
        assert summary['downloaded'] == 1
        assert summary['tag_failed'] == 1
        assert summary['tagged'] == 0

    def test_files_and_disabled_tagging_skip_tagger(self, tmp_path):
        queue, _, tagger, collector = self._queue(tmp_path)
        with queue:
            queue.wait_completion(queue.submit_all([file_ref()]))
        tagger.write_dates.assert_not_called()

        queue, _, tagger, collector = self._queue(tmp_path, enabled=False)
        with queue:
            queue.wait_completion(queue.submit_all([image_ref()]))
        tagger.write_dates.assert_not_called()
        assert collector.get_summary()['downloaded'] == 1

    def test_wait_all_outstanding(self, tmp_path):
        queue, _, _, _ = self._queue(tmp_path)

        with queue:
            queue.submit(image_ref('a.jpg'))
            queue.submit(image_ref('b.jpg'))
            downloaded = queue.wait_completion()

            assert len(downloaded) == 2
            assert queue.pending() == 0
            assert queue.get_stats()['completed'] == 2
