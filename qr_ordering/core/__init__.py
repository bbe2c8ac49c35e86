"""
Core module initialization.
Exports configuration, logging and error types.
"""

from qr_ordering.core.config import EnvironmentMode, Settings, get_settings, setup_logging
from qr_ordering.core.exceptions import (
    AppError,
    ConflictError,
    InternalError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)

__all__ = [
    "get_settings",
    "setup_logging",
    "Settings",
    "EnvironmentMode",
    "AppError",
    "ConflictError",
    "InternalError",
    "NotFoundError",
    "UnauthorizedError",
    "ValidationError",
]
