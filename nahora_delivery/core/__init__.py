"""
Core module initialization.
Exports configuration, logging and error utilities.
"""

from nahora_delivery.core.config import get_settings, Settings, EnvironmentMode, ImageBackend
from nahora_delivery.core.errors import AppError, ValidationError, StorageError, DatabaseError

__all__ = [
    "get_settings",
    "Settings",
    "EnvironmentMode",
    "ImageBackend",
    "AppError",
    "ValidationError",
    "StorageError",
    "DatabaseError",
]
