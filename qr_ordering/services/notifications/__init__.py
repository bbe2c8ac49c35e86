"""
Kitchen Broadcaster Factory

Returns the local or Redis-backed relay based on NOTIFICATION_BACKEND.
The instance is cached so every request and every WebSocket shares one
observer registry.
"""

import logging
from functools import lru_cache

from qr_ordering.core.config import NotificationBackend, get_settings
from qr_ordering.services.notifications.base import (
    NEW_ORDER_EVENT,
    ORDER_STATUS_UPDATED_EVENT,
    BaseBroadcaster,
    BroadcastResult,
)
from qr_ordering.services.notifications.local import LocalBroadcaster
from qr_ordering.services.notifications.redis_relay import RedisBroadcaster

logger = logging.getLogger(__name__)


@lru_cache()
def get_broadcaster() -> BaseBroadcaster:
    """Get the configured broadcaster."""
    settings = get_settings()

    if settings.notification_backend == NotificationBackend.REDIS:
        logger.info("Broadcaster: Using RedisBroadcaster")
        return RedisBroadcaster()

    logger.info("Broadcaster: Using LocalBroadcaster")
    return LocalBroadcaster()


def reset_broadcaster() -> None:
    """Clear the cached broadcaster instance."""
    get_broadcaster.cache_clear()


__all__ = [
    "get_broadcaster",
    "reset_broadcaster",
    "BaseBroadcaster",
    "BroadcastResult",
    "LocalBroadcaster",
    "RedisBroadcaster",
    "NEW_ORDER_EVENT",
    "ORDER_STATUS_UPDATED_EVENT",
]
