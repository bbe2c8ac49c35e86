import os

# Must be set before qr_ordering is imported: settings are cached on first use
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["EXCEL_EXPORT_ENABLED"] = "false"
os.environ["NOTIFICATION_BACKEND"] = "local"

from decimal import Decimal
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from qr_ordering.database import Base, build_engine, build_session_maker, get_db
from qr_ordering.main import app
from qr_ordering.models import MenuItem, RestaurantTable
from qr_ordering.services.notifications import BaseBroadcaster, BroadcastResult, get_broadcaster


class RecordingBroadcaster(BaseBroadcaster):
    """Keeps every published event instead of sending it anywhere."""

    def __init__(self):
        self.events: list[tuple[str, dict[str, Any]]] = []

    @property
    def provider_name(self) -> str:
        return "recording"

    async def publish(self, event, payload):
        self.events.append((event, payload))
        return BroadcastResult(success=True, event=event, delivered=1, provider=self.provider_name)

    async def connect(self, websocket) -> None:
        await websocket.accept()

    def disconnect(self, websocket) -> None:
        pass

    async def health_check(self) -> bool:
        return True

    def named(self, event: str) -> list[dict[str, Any]]:
        return [payload for name, payload in self.events if name == event]


class FailingBroadcaster(RecordingBroadcaster):
    """Relay that is down."""

    async def publish(self, event, payload):
        raise ConnectionError("relay unavailable")


@pytest.fixture
async def engine():
    engine = build_engine("sqlite+aiosqlite://")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(engine):
    async with build_session_maker(engine)() as session:
        yield session


@pytest.fixture
async def seeded(db_session):
    """Tables 1-3 and a small menu."""
    db_session.add_all(
        [RestaurantTable(table_number=n, table_name=f"Table {n}", qr_code_data=f"table-{n}") for n in (1, 2, 3)]
        + [
            MenuItem(name="Coffee", price_inr=Decimal("79.00"), price_usd=Decimal("1.09"), category="Beverage"),
            MenuItem(name="Masala Dosa", price_inr=Decimal("149.00"), price_usd=Decimal("1.99"), category="Main Course"),
            MenuItem(name="Mango Lassi", price_inr=Decimal("89.00"), price_usd=Decimal("1.19"), category="Beverage"),
        ]
    )
    await db_session.commit()
    return db_session


@pytest.fixture
def broadcaster():
    return RecordingBroadcaster()


@pytest.fixture
async def client(db_session, broadcaster):
    # Override dependencies so every request uses the test session and relay
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_broadcaster] = lambda: broadcaster
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


def coffee_line(quantity: int = 2, item_id: int = 1) -> dict[str, Any]:
    return {"id": item_id, "name": "Coffee", "quantity": quantity, "price_inr": "79.00", "price_usd": "1.09"}
