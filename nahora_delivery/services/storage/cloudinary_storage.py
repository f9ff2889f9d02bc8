"""
Cloudinary Image Storage Implementation

Production implementation using the official Cloudinary Python SDK.
Used when IMAGE_BACKEND=cloudinary.

Requirements:
    - CLOUDINARY_CLOUD_NAME, CLOUDINARY_API_KEY, CLOUDINARY_API_SECRET

Known fragility:
    Deletion recovers the public id from the delivery URL by taking its
    last two path segments (``<folder>/<public_id>.<ext>``). This only
    works for a single-level folder and URLs without transformations.

Author: Khalil_Bannouri
Version: 1.0.0
"""

import asyncio
import io
import logging
import time
from typing import Optional
from urllib.parse import urlparse

import cloudinary
import cloudinary.api
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError

from nahora_delivery.core.config import Settings
from nahora_delivery.core.errors import StorageError
from nahora_delivery.services.storage.base import BaseImageStorage, ImageUpload

logger = logging.getLogger(__name__)


def public_id_from_url(url: str) -> str:
    """
    Recover ``folder/public_id`` from a Cloudinary delivery URL.

    Example:
        >>> public_id_from_url(
        ...     "https://res.cloudinary.com/demo/image/upload/v1/nahora-delivery-uploads/img-1-pizza.jpg"
        ... )
        'nahora-delivery-uploads/img-1-pizza'
    """
    parts = [p for p in urlparse(url).path.split("/") if p]
    if len(parts) < 2:
        raise StorageError(f"Cannot extract public id from {url}")

    folder = parts[-2]
    public_id = parts[-1].split(".")[0]
    return f"{folder}/{public_id}"


class CloudinaryImageStorage(BaseImageStorage):
    """
    Image storage on Cloudinary.

    Uploads are normalized to JPEG and placed in a fixed folder.
    SDK calls are blocking and run in a worker thread.

    Example:
        >>> storage = CloudinaryImageStorage(settings)
        >>> url = await storage.store(upload)
        'https://res.cloudinary.com/<cloud>/image/upload/v.../nahora-delivery-uploads/img-...jpg'
    """

    def __init__(self, settings: Settings):
        """
        Configure the Cloudinary SDK from settings.

        Raises:
            ValueError: If any Cloudinary credential is missing
        """
        if not (
            settings.cloudinary_cloud_name
            and settings.cloudinary_api_key
            and settings.cloudinary_api_secret
        ):
            raise ValueError(
                "CLOUDINARY_CLOUD_NAME, CLOUDINARY_API_KEY and CLOUDINARY_API_SECRET "
                "are required when IMAGE_BACKEND=cloudinary."
            )

        cloudinary.config(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
            secure=True,
        )
        self.folder = settings.cloudinary_folder

        logger.info(f"CloudinaryImageStorage initialized (folder={self.folder})")

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "cloudinary"

    def _generate_public_id(self, upload: ImageUpload) -> str:
        """``img-<ms>-<original stem>``, unique per submission."""
        millis = int(time.time() * 1000)
        return f"img-{millis}-{upload.stem}"

    async def store(self, upload: ImageUpload) -> str:
        """Upload the image and return its secure URL."""
        public_id = self._generate_public_id(upload)

        try:
            result = await asyncio.to_thread(
                cloudinary.uploader.upload,
                io.BytesIO(upload.content),
                folder=self.folder,
                public_id=public_id,
                format="jpeg",
                resource_type="image",
            )
        except CloudinaryError as e:
            logger.error(f"Cloudinary rejected {upload.filename!r}: {e}")
            raise StorageError(f"Image upload failed: {e}", cause=e) from e
        except Exception as e:
            logger.error(f"Cloudinary upload error for {upload.filename!r}: {e}")
            raise StorageError(f"Image service unreachable: {e}", cause=e) from e

        url = result.get("secure_url") or result.get("url")
        if not url:
            raise StorageError("Image service returned no URL")

        logger.info(f"Uploaded image {upload.filename!r} to Cloudinary as {result.get('public_id')}")
        return url

    def owns(self, locator: Optional[str]) -> bool:
        return bool(locator) and "cloudinary.com" in locator

    async def delete(self, locator: str) -> None:
        """Destroy the asset behind a Cloudinary URL."""
        public_id = public_id_from_url(locator)

        try:
            result = await asyncio.to_thread(cloudinary.uploader.destroy, public_id)
        except CloudinaryError as e:
            raise StorageError(f"Image delete failed: {e}", cause=e) from e
        except Exception as e:
            raise StorageError(f"Image service unreachable: {e}", cause=e) from e

        outcome = (result or {}).get("result")
        if outcome not in ("ok", "not found"):
            raise StorageError(f"Image delete for {public_id} returned {outcome!r}")

        logger.info(f"Deleted Cloudinary image {public_id} ({outcome})")

    async def health_check(self) -> bool:
        try:
            await asyncio.to_thread(cloudinary.api.ping)
            return True
        except Exception as e:
            logger.error(f"Cloudinary health check failed: {e}")
            return False
