"""
Application Errors

Every failure a service reports is one of these. Route handlers catch
them at their boundary and render ``{"error": message}``.
"""

from typing import Optional


class AppError(Exception):
    """Base class for all application errors."""

    def __init__(self, message: str, *, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        return self.message


class ValidationError(AppError):
    """Malformed numeric field or rejected upload."""


class StorageError(AppError):
    """Image backend unreachable or rejected the asset."""


class DatabaseError(AppError):
    """Connectivity failure or constraint violation."""
