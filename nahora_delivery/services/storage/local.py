"""
Local Image Storage Implementation

Writes uploaded images to the public uploads directory, which the
application serves as static files under /uploads.

Behavior:
    - Filenames are generated from the submission time (ms) plus a random
      9-digit suffix, keeping the original extension
    - Locators look like ``/uploads/1718000000000-123456789.jpg``
    - Deleting a missing file is not an error

Author: Khalil_Bannouri
Version: 1.0.0
"""

import asyncio
import logging
import os
import random
import time
from pathlib import Path, PurePosixPath
from typing import Optional

from nahora_delivery.core.errors import StorageError
from nahora_delivery.services.storage.base import BaseImageStorage, ImageUpload

logger = logging.getLogger(__name__)


class LocalImageStorage(BaseImageStorage):
    """
    Image storage on the local filesystem.

    Attributes:
        directory: Where files are written
        url_prefix: Public path the directory is served under
    """

    def __init__(self, directory: Path, url_prefix: str = "/uploads"):
        self.directory = Path(directory)
        self.url_prefix = url_prefix.rstrip("/")
        self.directory.mkdir(parents=True, exist_ok=True)

        logger.info(f"LocalImageStorage initialized (directory={self.directory})")

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "local"

    def _generate_filename(self, upload: ImageUpload) -> str:
        """Unique name from the current time plus a random suffix."""
        millis = int(time.time() * 1000)
        suffix = random.randint(0, 999_999_999)
        return f"{millis}-{suffix:09d}{upload.extension}"

    def _path_for(self, locator: str) -> Path:
        # Only the final component is trusted
        name = PurePosixPath(locator).name
        if not name or name in (".", ".."):
            raise StorageError(f"Invalid image locator: {locator}")
        return self.directory / name

    async def store(self, upload: ImageUpload) -> str:
        """Write the image to disk and return its public path."""
        filename = self._generate_filename(upload)
        path = self.directory / filename

        try:
            await asyncio.to_thread(path.write_bytes, upload.content)
        except OSError as e:
            raise StorageError(f"Could not save image: {e}", cause=e) from e

        locator = f"{self.url_prefix}/{filename}"
        logger.info(f"Stored image {upload.filename!r} as {locator} ({upload.size} bytes)")
        return locator

    def owns(self, locator: Optional[str]) -> bool:
        return bool(locator) and locator.startswith(f"{self.url_prefix}/")

    async def delete(self, locator: str) -> None:
        """Remove the file behind a locator."""
        path = self._path_for(locator)

        try:
            await asyncio.to_thread(path.unlink, missing_ok=True)
        except OSError as e:
            raise StorageError(f"Could not delete image {locator}: {e}", cause=e) from e

        logger.info(f"Deleted image {locator}")

    async def health_check(self) -> bool:
        return self.directory.is_dir() and os.access(self.directory, os.W_OK)
