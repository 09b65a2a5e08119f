"""
Tag Applier - Write capture timestamps into downloaded files

Tagging is best effort: failures are logged and counted, never raised to
the page loop, and never touch pagination or the watermark.
"""
import subprocess
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from ...api.errors import TagError
from ...models import DownloadedFile
from ...utils.logger import get_logger
from ...utils.validators import format_exif_date

logger = get_logger('tagger')


class MetadataTagger(ABC):
    """Capability that sets every date field of a file to one timestamp."""

    @abstractmethod
    def write_dates(self, local_path: str, captured_at: datetime) -> None:
        """Set every date field of local_path to captured_at.

        Raises:
            TagError: If the file could not be tagged
        """


class ExifToolTagger(MetadataTagger):
    """Runs the exiftool binary, overwriting the file in place."""

    def __init__(self, executable: str = 'exiftool', timeout: float = 60.0):
        self.executable = executable
        self.timeout = timeout

    def build_command(self, local_path: str, captured_at: datetime) -> list:
        return [
            self.executable,
            f'-AllDates={format_exif_date(captured_at)}',
            '-overwrite_original',
            local_path,
        ]

    def write_dates(self, local_path: str, captured_at: datetime) -> None:
        cmd = self.build_command(local_path, captured_at)
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise TagError(f"{self.executable} not found") from e
        except subprocess.TimeoutExpired as e:
            raise TagError(f"{self.executable} timed out after {self.timeout}s on {local_path}") from e

        if result.returncode != 0:
            detail = (result.stderr or result.stdout or '').strip()[:500]
            raise TagError(f"{self.executable} exited with {result.returncode}: {detail}")


class TagApplier:
    """Applies capture dates to downloaded files through a MetadataTagger.

    Example:
        >>> applier = TagApplier(ExifToolTagger(), enabled=True)
        >>> applier.apply(downloaded_file)
    """

    PROGRESS_EVERY = 100

    def __init__(self, tagger: Optional[MetadataTagger] = None, enabled: bool = True, verbose: bool = False):
        self.tagger = tagger or ExifToolTagger()
        self.enabled = enabled
        self.verbose = verbose
        self._tagged = 0
        self._lock = threading.Lock()

    @property
    def tagged_count(self) -> int:
        with self._lock:
            return self._tagged

    def should_tag(self, downloaded: DownloadedFile) -> bool:
        return self.enabled and downloaded.media_reference.taggable

    def tag(self, local_path: str, captured_at: datetime) -> None:
        """
        Write the capture timestamp into one file.

        Raises:
            TagError: If the tagger fails
        """
        self.tagger.write_dates(local_path, captured_at)

        with self._lock:
            self._tagged += 1
            tagged = self._tagged

        if tagged % self.PROGRESS_EVERY == 0:
            logger.info(f"EXIF progress: {tagged} files complete")
        if self.verbose:
            logger.debug(f"EXIF for file completed: {local_path}")

    def apply(self, downloaded: DownloadedFile) -> bool:
        """
        Tag a downloaded file if tagging applies to it.

        Returns:
            True if the file was tagged

        Raises:
            TagError: If the capture time is unusable or the tagger fails
        """
        if not self.should_tag(downloaded):
            return False

        ref = downloaded.media_reference
        captured_at = ref.capture_time
        if captured_at is None:
            raise TagError(f"Unparseable capture time {ref.captured_at!r} for {downloaded.local_path}")

        self.tag(downloaded.local_path, captured_at)
        return True
