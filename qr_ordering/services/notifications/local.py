"""
In-Process WebSocket Broadcaster

Keeps a registry of kitchen board WebSocket connections for this process
and fans each event out to them as ``{"event": ..., "data": ...}``.
"""

import logging
from typing import Any

from fastapi import WebSocket

from qr_ordering.services.notifications.base import BaseBroadcaster, BroadcastResult

logger = logging.getLogger(__name__)


class LocalBroadcaster(BaseBroadcaster):
    """Broadcaster for kitchen boards connected to this instance."""

    def __init__(self):
        self._connections: set[WebSocket] = set()
        logger.info("LocalBroadcaster initialized")

    @property
    def provider_name(self) -> str:
        return "local"

    @property
    def observer_count(self) -> int:
        return len(self._connections)

    async def connect(self, websocket: WebSocket) -> None:
        """Accept and register a kitchen board."""
        await websocket.accept()
        self._connections.add(websocket)
        logger.info(f"Kitchen board connected ({self.observer_count} online)")

    def disconnect(self, websocket: WebSocket) -> None:
        self._connections.discard(websocket)
        logger.info(f"Kitchen board disconnected ({self.observer_count} online)")

    async def publish(self, event: str, payload: dict[str, Any]) -> BroadcastResult:
        message = {"event": event, "data": payload}
        delivered = 0
        dead = []

        # Snapshot: connect/disconnect may run while we await sends
        for websocket in list(self._connections):
            try:
                await websocket.send_json(message)
                delivered += 1
            except Exception as e:
                logger.debug(f"Dropping kitchen board after failed send: {e}")
                dead.append(websocket)

        for websocket in dead:
            self._connections.discard(websocket)

        return BroadcastResult(
            success=not dead,
            event=event,
            delivered=delivered,
            error_message=f"{len(dead)} observer(s) dropped" if dead else None,
            provider=self.provider_name,
        )

    async def health_check(self) -> bool:
        return True
