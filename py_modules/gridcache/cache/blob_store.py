"""
DiskBlobStore - Category-partitioned image cache on local disk.

Layout: <root>/<category>/<url basename>. The file system is the index: an
existing file is a cache hit. Two URLs sharing a basename in the same category
map to the same file.
"""

import asyncio
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Awaitable, Callable, Dict, Optional

from ..errors import DownloadError
from ..models import ArtCategory, url_basename

logger = logging.getLogger(__name__)

DownloadFn = Callable[[str], Awaitable[bytes]]


class DiskBlobStore:
    """Persists downloaded image bytes under the grid cache root."""

    def __init__(self, root, download: DownloadFn, state=None):
        """Initialize the store.

        Args:
            root: Grid cache root directory
            download: Coroutine returning the bytes at a URL
            state: Optional AppState used to publish per-app download progress
        """
        self.root = Path(root)
        self._download = download
        self._state = state
        # local path -> running download, shared by concurrent callers
        self._in_flight: Dict[Path, asyncio.Task] = {}

    def category_dir(self, category: ArtCategory) -> Path:
        return self.root / category.value

    async def ensure_layout(self) -> None:
        """Create the cache root and one directory per category. Idempotent."""
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._ensure_layout_sync)

    def _ensure_layout_sync(self) -> None:
        for directory in [self.root] + [self.category_dir(c) for c in ArtCategory]:
            if directory.is_dir():
                logger.debug(f"[BlobStore] Found cache dir {directory}")
            else:
                directory.mkdir(parents=True, exist_ok=True)
                logger.info(f"[BlobStore] Created cache dir {directory}")

    def resolve_local_path(self, category: ArtCategory, url: str) -> Path:
        """Deterministic local path for an image URL."""
        return self.category_dir(category) / url_basename(url)

    async def get_or_fetch(self, app_id: int, url: str, category: ArtCategory) -> Path:
        """Return the local path for url, downloading it first if needed.

        Raises:
            DownloadError: The download failed; nothing is written.
            OSError: The file could not be written.
        """
        local_path = self.resolve_local_path(category, url)
        if local_path.is_file():
            logger.debug(f"[BlobStore] Cache found for {url}")
            return local_path

        task = self._in_flight.get(local_path)
        if task is None:
            task = asyncio.ensure_future(self._fetch(app_id, url, local_path))
            self._in_flight[local_path] = task
            task.add_done_callback(lambda _t, p=local_path: self._in_flight.pop(p, None))
            task.add_done_callback(self._collect_result)
        else:
            logger.debug(f"[BlobStore] Joining in-flight download of {url}")

        return await asyncio.shield(task)

    @staticmethod
    def _collect_result(task: asyncio.Task) -> None:
        # Every waiter may have been cancelled; the error still has to be retrieved
        if not task.cancelled() and task.exception() is not None:
            logger.debug(f"[BlobStore] Download task finished with {task.exception()!r}")

    async def _fetch(self, app_id: int, url: str, local_path: Path) -> Path:
        logger.info(f"[BlobStore] Fetching image {url} from API")
        if self._state is not None:
            self._state.mark_downloading(app_id)
        try:
            try:
                data = await self._download(url)
            except DownloadError:
                raise
            except Exception as e:
                raise DownloadError(f"Failed to download image for app {app_id}", url, str(e)) from e

            if not data:
                raise DownloadError(f"Empty response for image of app {app_id}", url)

            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, self._write_bytes, local_path, data)
            logger.info(f"[BlobStore] Cached {len(data)} bytes to {local_path}")
            return local_path
        except Exception as e:
            logger.error(f"[BlobStore] Download failed for {url}: {e}")
            raise
        finally:
            if self._state is not None:
                self._state.clear_downloading(app_id)

    @staticmethod
    def _write_bytes(path: Path, data: bytes) -> None:
        """Write via a temp file in the same directory so readers never see a partial image."""
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=".part-")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    async def invalidate(self) -> None:
        """Recursively delete the cache root."""
        logger.info(f"[BlobStore] Clearing cache at {self.root}...")
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._remove_root)
        logger.info("[BlobStore] Cleared cache.")

    def _remove_root(self) -> None:
        if self.root.exists():
            shutil.rmtree(self.root)

    def in_flight_count(self) -> int:
        return len(self._in_flight)

    def get_cached_path(self, category: ArtCategory, url: str) -> Optional[Path]:
        """Local path if the image is already on disk, else None."""
        path = self.resolve_local_path(category, url)
        return path if path.is_file() else None
