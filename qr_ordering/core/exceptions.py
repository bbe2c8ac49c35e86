"""
Application Error Types

Services raise these; the exception handlers in ``qr_ordering.main`` turn
them into the ``{success: false, message, error}`` envelope.
"""

from typing import Optional


class AppError(Exception):
    """Base class for errors that map to an HTTP response."""

    status_code: int = 500

    def __init__(self, message: str, error: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.error = error if error is not None else message

    def to_dict(self) -> dict:
        return {
            "success": False,
            "message": self.message,
            "error": self.error,
        }


class NotFoundError(AppError):
    """Referenced table, order, menu item or category does not exist."""
    status_code = 404


class ValidationError(AppError):
    """Malformed or missing input, or a rejected status transition."""
    status_code = 400


class ConflictError(AppError):
    """Operation blocked by existing rows (references, duplicates)."""
    status_code = 400


class UnauthorizedError(AppError):
    status_code = 401


class InternalError(AppError):
    """Unexpected database or runtime failure."""
    status_code = 500
