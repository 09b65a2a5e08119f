"""
Watermark Store - Persist the newest downloaded item for delta runs

The watermark is a small JSON document::

    {"newestDownload": "2023-02-01T12:00:00+00:00", "oldestDownload": "..."}

It is written atomically, and only once a run has completed.
"""
import json
import os
import tempfile
from typing import Optional

from ...models import Watermark
from ...utils.logger import get_logger

logger = get_logger('watermark_store')


class WatermarkStore:
    """JSON file backed watermark storage."""

    def __init__(self, path: str):
        self.path = path

    def load(self) -> Optional[Watermark]:
        """
        Read the previous run's watermark.

        Returns:
            The stored watermark, or None if the file is missing or unusable
            (which forces a full resync)
        """
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.info(f"No watermark at {self.path}, treating as first run")
            return None
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable watermark {self.path}: {e}")
            return None

        watermark = Watermark.from_dict(data)
        if watermark is None:
            logger.warning(f"Ignoring watermark without a usable newestDownload: {self.path}")
        return watermark

    def save(self, watermark: Watermark) -> None:
        """
        Atomically replace the stored watermark.

        Raises:
            ValueError: If the watermark holds no newest timestamp
            OSError: If the file cannot be written
        """
        if watermark.is_empty:
            raise ValueError('refusing to save an empty watermark')

        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)

        with tempfile.NamedTemporaryFile(
            'w', dir=directory, prefix='.watermark-', suffix='.tmp',
            delete=False, encoding='utf-8'
        ) as tmp:
            json.dump(watermark.to_dict(), tmp)
            tmp.flush()
            os.fsync(tmp.fileno())
            tmp_path = tmp.name

        try:
            os.replace(tmp_path, self.path)
        except OSError:
            os.remove(tmp_path)
            raise

        logger.info(f"Watermark saved: newest={watermark.to_dict()['newestDownload']} -> {self.path}")
