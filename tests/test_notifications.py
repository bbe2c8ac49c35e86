import json

import pytest
from fastapi import WebSocketDisconnect
from redis.exceptions import ConnectionError as RedisConnectionError

from qr_ordering.main import kitchen_events
from qr_ordering.services.notifications import (
    NEW_ORDER_EVENT,
    LocalBroadcaster,
    RedisBroadcaster,
    get_broadcaster,
    reset_broadcaster,
)


class FakeWebSocket:
    def __init__(self, broken=False):
        self.accepted = False
        self.broken = broken
        self.sent = []

    async def accept(self):
        self.accepted = True

    async def send_json(self, message):
        if self.broken:
            raise RuntimeError("socket closed")
        self.sent.append(message)


class FakeRedis:
    def __init__(self, fail=False):
        self.fail = fail
        self.published = []

    async def publish(self, channel, message):
        if self.fail:
            raise RedisConnectionError("connection refused")
        self.published.append((channel, message))
        return 2

    async def ping(self):
        if self.fail:
            raise RedisConnectionError("connection refused")
        return True


async def test_local_broadcast_reaches_every_board():
    relay = LocalBroadcaster()
    boards = [FakeWebSocket(), FakeWebSocket()]
    for ws in boards:
        await relay.connect(ws)

    result = await relay.broadcast(NEW_ORDER_EVENT, {"id": 7})

    assert result.success
    assert result.delivered == 2
    assert all(ws.accepted for ws in boards)
    assert all(ws.sent == [{"event": "new-order", "data": {"id": 7}}] for ws in boards)


async def test_local_broadcast_without_boards_is_noop():
    result = await LocalBroadcaster().broadcast(NEW_ORDER_EVENT, {"id": 1})
    assert result.success
    assert result.delivered == 0


async def test_broken_board_is_dropped():
    relay = LocalBroadcaster()
    healthy, broken = FakeWebSocket(), FakeWebSocket(broken=True)
    await relay.connect(healthy)
    await relay.connect(broken)

    result = await relay.broadcast(NEW_ORDER_EVENT, {"id": 1})

    assert not result.success
    assert result.delivered == 1
    assert relay.observer_count == 1
    assert len(healthy.sent) == 1


async def test_disconnect_removes_board():
    relay = LocalBroadcaster()
    ws = FakeWebSocket()
    await relay.connect(ws)
    relay.disconnect(ws)
    relay.disconnect(ws)

    await relay.broadcast(NEW_ORDER_EVENT, {"id": 1})
    assert ws.sent == []


async def test_redis_publishes_to_event_channel():
    client = FakeRedis()
    relay = RedisBroadcaster(channel_prefix="orders", client=client)
    ws = FakeWebSocket()
    await relay.connect(ws)

    result = await relay.broadcast("order-status-updated", {"id": 3, "order_status": "ready"})

    assert result.success
    assert result.delivered == 3
    channel, message = client.published[0]
    assert channel == "orders:order-status-updated"
    assert json.loads(message) == {"event": "order-status-updated", "data": {"id": 3, "order_status": "ready"}}
    assert ws.sent[0]["data"]["order_status"] == "ready"


async def test_redis_failure_is_reported_not_raised():
    relay = RedisBroadcaster(channel_prefix="orders", client=FakeRedis(fail=True))
    result = await relay.broadcast(NEW_ORDER_EVENT, {"id": 1})

    assert not result.success
    assert "connection refused" in result.error_message
    assert await relay.health_check() is False


def test_factory_caches_configured_backend():
    reset_broadcaster()
    try:
        relay = get_broadcaster()
        assert isinstance(relay, LocalBroadcaster)
        assert get_broadcaster() is relay
    finally:
        reset_broadcaster()


class DroppingWebSocket(FakeWebSocket):
    def __init__(self, error):
        super().__init__()
        self.error = error

    async def receive_text(self):
        raise self.error


async def test_kitchen_socket_leaves_registry_on_disconnect():
    relay = LocalBroadcaster()
    ws = DroppingWebSocket(WebSocketDisconnect(code=1000))

    await kitchen_events(ws, relay)

    assert ws.accepted
    assert relay.observer_count == 0


async def test_kitchen_socket_leaves_registry_on_receive_error():
    relay = LocalBroadcaster()
    ws = DroppingWebSocket(RuntimeError("connection reset"))

    with pytest.raises(RuntimeError):
        await kitchen_events(ws, relay)

    assert relay.observer_count == 0
    result = await relay.broadcast(NEW_ORDER_EVENT, {"id": 1})
    assert result.delivered == 0
    assert ws.sent == []
