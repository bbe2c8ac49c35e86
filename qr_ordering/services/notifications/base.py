"""
Kitchen Broadcaster Abstract Base Class

Defines the interface for pushing order events to connected kitchen boards.
Delivery is at-most-once and unacknowledged: observers that connect after
an event miss it and converge by re-fetching the order list.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

logger = logging.getLogger(__name__)

NEW_ORDER_EVENT = "new-order"
ORDER_STATUS_UPDATED_EVENT = "order-status-updated"


@dataclass
class BroadcastResult:
    """Result from broadcasting one event."""
    success: bool
    event: str
    delivered: int = 0
    error_message: Optional[str] = None
    provider: str = "unknown"


class BaseBroadcaster(ABC):
    """
    Abstract base class for event relays.

    Subclasses implement ``publish``; callers use ``broadcast``, which never
    raises so that a failed notification cannot fail the request that
    triggered it.
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name."""
        pass

    @abstractmethod
    async def publish(self, event: str, payload: dict[str, Any]) -> BroadcastResult:
        """Deliver one event to every current observer."""
        pass

    @abstractmethod
    async def connect(self, websocket) -> None:
        """Accept and register a kitchen board WebSocket."""
        pass

    @abstractmethod
    def disconnect(self, websocket) -> None:
        """Forget a kitchen board WebSocket."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check relay connectivity."""
        pass

    async def broadcast(self, event: str, payload: dict[str, Any]) -> BroadcastResult:
        """Best-effort publish; failures are logged and reported, not raised."""
        try:
            result = await self.publish(event, payload)
        except Exception as e:
            logger.warning(f"Broadcast of '{event}' failed via {self.provider_name}: {e}")
            return BroadcastResult(
                success=False,
                event=event,
                error_message=str(e),
                provider=self.provider_name,
            )

        if not result.success:
            logger.warning(
                f"Broadcast of '{event}' incomplete via {self.provider_name}: "
                f"{result.error_message}"
            )
        else:
            logger.debug(f"Broadcast '{event}' to {result.delivered} observer(s)")
        return result
