"""
Redis Broadcaster

Production relay: delivers to kitchen boards connected to this instance and
publishes the same message on Redis so other instances or bridges can fan
it out. Channels are ``<prefix>:new-order`` and
``<prefix>:order-status-updated``.
"""

import json
import logging
from typing import Any, Optional

import redis.asyncio as aioredis
from fastapi import WebSocket
from redis.exceptions import RedisError

from qr_ordering.core.config import get_settings
from qr_ordering.services.notifications.base import BaseBroadcaster, BroadcastResult
from qr_ordering.services.notifications.local import LocalBroadcaster

logger = logging.getLogger(__name__)


class RedisBroadcaster(BaseBroadcaster):
    """Local WebSocket fan-out plus Redis pub/sub."""

    def __init__(
        self,
        redis_url: Optional[str] = None,
        channel_prefix: Optional[str] = None,
        client: Optional[aioredis.Redis] = None,
    ):
        settings = get_settings()
        self.channel_prefix = channel_prefix or settings.notification_channel_prefix
        self.client = client or aioredis.from_url(redis_url or settings.redis_url)
        self.local = LocalBroadcaster()
        logger.info(f"RedisBroadcaster initialized (prefix={self.channel_prefix})")

    @property
    def provider_name(self) -> str:
        return "redis"

    def channel_for(self, event: str) -> str:
        return f"{self.channel_prefix}:{event}"

    async def connect(self, websocket: WebSocket) -> None:
        await self.local.connect(websocket)

    def disconnect(self, websocket: WebSocket) -> None:
        self.local.disconnect(websocket)

    async def publish(self, event: str, payload: dict[str, Any]) -> BroadcastResult:
        local_result = await self.local.publish(event, payload)

        try:
            receivers = await self.client.publish(
                self.channel_for(event),
                json.dumps({"event": event, "data": payload}),
            )
        except RedisError as e:
            logger.error(f"Redis publish error: {e}")
            return BroadcastResult(
                success=False,
                event=event,
                delivered=local_result.delivered,
                error_message=str(e),
                provider=self.provider_name,
            )

        return BroadcastResult(
            success=local_result.success,
            event=event,
            delivered=local_result.delivered + receivers,
            error_message=local_result.error_message,
            provider=self.provider_name,
        )

    async def health_check(self) -> bool:
        try:
            return bool(await self.client.ping())
        except RedisError:
            return False
