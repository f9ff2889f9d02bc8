"""
Image Storage Factory

Provides a single entry point for obtaining an image storage backend.
The factory keeps the rest of the application agnostic about where
product images live.

Usage:
    from nahora_delivery.services.storage import get_image_storage

    # Returns LocalImageStorage or CloudinaryImageStorage based on IMAGE_BACKEND
    storage = get_image_storage(settings)

    locator = await storage.store(upload)

Backend Switching:
    - IMAGE_BACKEND=local → LocalImageStorage (<public>/uploads)
    - IMAGE_BACKEND=cloudinary → CloudinaryImageStorage

Author: Khalil_Bannouri
Version: 1.0.0
"""

import logging

from nahora_delivery.core.config import Settings, ImageBackend
from nahora_delivery.services.storage.base import BaseImageStorage, ImageUpload
from nahora_delivery.services.storage.local import LocalImageStorage
from nahora_delivery.services.storage.cloudinary_storage import (
    CloudinaryImageStorage,
    public_id_from_url,
)

logger = logging.getLogger(__name__)


def get_image_storage(settings: Settings) -> BaseImageStorage:
    """
    Build the configured image storage backend.

    Called once in the application lifespan; the instance is kept on
    ``app.state`` for the lifetime of the process.

    Returns:
        BaseImageStorage: Configured storage backend

    Raises:
        ValueError: If Cloudinary is selected but not configured
    """
    if settings.image_backend == ImageBackend.CLOUDINARY:
        logger.info("Image Storage: Using CloudinaryImageStorage")
        return CloudinaryImageStorage(settings)

    logger.info("Image Storage: Using LocalImageStorage")
    return LocalImageStorage(settings.uploads_path, url_prefix="/uploads")


__all__ = [
    "get_image_storage",
    "BaseImageStorage",
    "ImageUpload",
    "LocalImageStorage",
    "CloudinaryImageStorage",
    "public_id_from_url",
]
