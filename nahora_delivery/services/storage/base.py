"""
Image Storage Abstract Base Class

Defines the interface contract for all image storage implementations.
Both LocalImageStorage and CloudinaryImageStorage implement these methods,
so the catalog works identically regardless of which backend is active.

Design Pattern: Strategy Pattern
    - The backend is chosen once at startup from IMAGE_BACKEND
    - A product's image locator always belongs to exactly one backend

Author: Khalil_Bannouri
Version: 1.0.0
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import PurePath
from typing import Optional


@dataclass
class ImageUpload:
    """
    An image received from the admin form.

    Attributes:
        content: Raw file bytes
        filename: Original client filename (used for extension / public id)
        content_type: MIME type reported by the client
    """
    content: bytes
    filename: str
    content_type: Optional[str] = None

    @property
    def stem(self) -> str:
        """Filename without directory or extension."""
        return PurePath(self.filename).stem

    @property
    def extension(self) -> str:
        """Lower-cased extension including the dot, or empty string."""
        return PurePath(self.filename).suffix.lower()

    @property
    def size(self) -> int:
        return len(self.content)


class BaseImageStorage(ABC):
    """
    Abstract base class for image storage backends.

    Example:
        >>> storage = get_image_storage(settings)
        >>> locator = await storage.store(upload)
        >>> if storage.owns(locator):
        ...     await storage.delete(locator)
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """
        Return the name of the storage backend.

        Returns:
            str: Backend name (e.g., "local", "cloudinary")
        """
        pass

    @abstractmethod
    async def store(self, upload: ImageUpload) -> str:
        """
        Persist an image and return its locator.

        Args:
            upload: The image received from the client

        Returns:
            str: URL or path under which the image is retrievable

        Raises:
            StorageError: If the backend rejects or cannot receive the image
        """
        pass

    @abstractmethod
    def owns(self, locator: Optional[str]) -> bool:
        """
        Check whether a locator was produced by this backend.

        External URLs typed in by the admin are never owned.
        """
        pass

    @abstractmethod
    async def delete(self, locator: str) -> None:
        """
        Remove the asset a locator points to.

        Raises:
            StorageError: If the backend refuses or cannot be reached
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Verify the backend is usable.

        Returns:
            bool: True if images can be stored
        """
        pass
