from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, select

from conftest import FailingBroadcaster, coffee_line
from qr_ordering.core.config import Settings, get_settings
from qr_ordering.main import app
from qr_ordering.models import Order, OrderItem
from qr_ordering.services.notifications import (
    NEW_ORDER_EVENT,
    ORDER_STATUS_UPDATED_EVENT,
    get_broadcaster,
)
from qr_ordering.tasks import export_order_to_excel


async def place(client, table_number=1, items=None, **extra):
    body = {"table_number": table_number, "items": items if items is not None else [coffee_line()]}
    body.update(extra)
    return await client.post("/api/orders", json=body)


async def count_rows(session, model):
    return await session.scalar(select(func.count(model.id)))


async def test_health(client):
    r = await client.get("/api/health")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "OK"
    assert body["database"] == "healthy"
    assert r.headers["cache-control"].startswith("no-cache")


async def test_create_order_totals_and_defaults(seeded, client, broadcaster):
    r = await place(client)
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True

    order = body["data"]
    assert order["table_number"] == 1
    assert order["table_id"] == 1
    assert order["total_amount_inr"] == "158.00"
    assert order["total_amount_usd"] == "2.18"
    assert order["order_status"] == "pending"
    assert order["payment_method"] == "cash"
    assert order["payment_status"] == "pending"
    assert order["currency"] == "INR"
    assert len(order["items"]) == 1
    assert order["items"][0]["item_name"] == "Coffee"
    assert order["items"][0]["quantity"] == 2

    announced = broadcaster.named(NEW_ORDER_EVENT)
    assert len(announced) == 1
    assert announced[0]["id"] == order["id"]
    assert announced[0]["items"][0]["item_name"] == "Coffee"


async def test_non_cash_order_is_paid(seeded, client):
    r = await place(client, payment_method="online")
    assert r.status_code == 200
    assert r.json()["data"]["payment_status"] == "paid"


async def test_prices_are_taken_as_submitted(seeded, client):
    line = coffee_line(quantity=3)
    line["price_inr"] = "10.00"
    line["price_usd"] = "0.10"
    r = await place(client, items=[line])
    assert r.json()["data"]["total_amount_inr"] == "30.00"
    assert r.json()["data"]["total_amount_usd"] == "0.30"


async def test_total_matches_stored_lines_for_sub_cent_prices(seeded, client):
    line = coffee_line(quantity=2)
    line["price_inr"] = "0.005"
    line["price_usd"] = "0.015"
    order_id = (await place(client, items=[line])).json()["data"]["id"]

    stored = (await client.get(f"/api/orders/{order_id}")).json()["data"]
    for currency in ("inr", "usd"):
        lines_sum = sum(Decimal(i[f"price_{currency}"]) * i["quantity"] for i in stored["items"])
        assert Decimal(stored[f"total_amount_{currency}"]) == lines_sum
    assert Decimal(stored["total_amount_inr"]) == Decimal("0.02")
    assert Decimal(stored["items"][0]["price_inr"]) == Decimal("0.01")


async def test_empty_cart_creates_zero_total_order(seeded, client):
    r = await place(client, items=[])
    assert r.status_code == 200
    order = r.json()["data"]
    assert order["total_amount_inr"] == "0.00"
    assert order["items"] == []


async def test_unknown_table_is_404_and_persists_nothing(seeded, client, broadcaster):
    r = await place(client, table_number=99)
    assert r.status_code == 404
    assert r.json() == {"success": False, "message": "Table not found", "error": "Table not found"}
    assert await count_rows(seeded, Order) == 0
    assert broadcaster.events == []


async def test_failed_line_rolls_back_whole_order(seeded, client, broadcaster):
    r = await place(client, items=[coffee_line(), coffee_line(item_id=999)])
    assert r.status_code == 500
    assert r.json()["message"] == "Failed to create order"
    assert r.json()["error"]
    assert await count_rows(seeded, Order) == 0
    assert await count_rows(seeded, OrderItem) == 0
    assert broadcaster.events == []


async def test_lines_keep_request_order(seeded, client):
    items = [
        {"id": 3, "name": "Mango Lassi", "quantity": 1, "price_inr": "89.00", "price_usd": "1.19"},
        coffee_line(quantity=1),
        {"id": 2, "name": "Masala Dosa", "quantity": 2, "price_inr": "149.00", "price_usd": "1.99"},
    ]
    order_id = (await place(client, items=items)).json()["data"]["id"]

    r = await client.get(f"/api/orders/{order_id}")
    assert [line["item_name"] for line in r.json()["data"]["items"]] == [
        "Mango Lassi",
        "Coffee",
        "Masala Dosa",
    ]
    assert r.json()["data"]["total_amount_inr"] == "466.00"


async def test_malformed_body_uses_error_envelope(seeded, client):
    line = coffee_line(quantity=0)
    r = await place(client, items=[line])
    assert r.status_code == 422
    assert r.json()["success"] is False
    assert "quantity" in r.json()["error"]


async def test_list_orders_newest_first_with_filters(seeded, client):
    first = (await place(client, table_number=1)).json()["data"]["id"]
    second = (await place(client, table_number=2)).json()["data"]["id"]
    await client.put(f"/api/orders/{first}/status", json={"order_status": "preparing"})

    r = await client.get("/api/orders")
    assert [o["id"] for o in r.json()["data"]] == [second, first]
    assert all("items" in o for o in r.json()["data"])

    r = await client.get("/api/orders", params={"status": "preparing"})
    assert [o["id"] for o in r.json()["data"]] == [first]

    r = await client.get("/api/orders", params={"table_number": 2})
    assert [o["id"] for o in r.json()["data"]] == [second]

    r = await client.get("/api/orders", params={"start_date": "2999-01-01T00:00:00"})
    assert r.json()["data"] == []


async def test_get_missing_order_is_404(seeded, client):
    r = await client.get("/api/orders/12345")
    assert r.status_code == 404
    assert r.json()["message"] == "Order not found"


async def test_status_update_broadcasts_header(seeded, client, broadcaster):
    order_id = (await place(client)).json()["data"]["id"]

    r = await client.put(f"/api/orders/{order_id}/status", json={"order_status": "preparing"})
    assert r.status_code == 200
    header = r.json()["data"]
    assert header["order_status"] == "preparing"
    assert "items" not in header

    updates = broadcaster.named(ORDER_STATUS_UPDATED_EVENT)
    assert len(updates) == 1
    assert updates[0]["id"] == order_id
    assert updates[0]["order_status"] == "preparing"


async def test_any_status_accepted_by_default(seeded, client):
    order_id = (await place(client)).json()["data"]["id"]

    r = await client.put(f"/api/orders/{order_id}/status", json={"order_status": "delivered"})
    assert r.status_code == 200
    r = await client.put(f"/api/orders/{order_id}/status", json={"order_status": "on-hold"})
    assert r.status_code == 200
    assert (await client.get(f"/api/orders/{order_id}")).json()["data"]["order_status"] == "on-hold"


async def test_status_update_unknown_order_is_404(seeded, client, broadcaster):
    r = await client.put("/api/orders/777/status", json={"order_status": "ready"})
    assert r.status_code == 404
    assert r.json()["message"] == "Order not found"
    assert broadcaster.named(ORDER_STATUS_UPDATED_EVENT) == []


async def test_enforced_transitions_reject_skips(seeded, client):
    app.dependency_overrides[get_settings] = lambda: Settings(enforce_status_transitions=True)
    order_id = (await place(client)).json()["data"]["id"]

    r = await client.put(f"/api/orders/{order_id}/status", json={"order_status": "ready"})
    assert r.status_code == 400
    assert r.json()["success"] is False
    assert (await client.get(f"/api/orders/{order_id}")).json()["data"]["order_status"] == "pending"

    r = await client.put(f"/api/orders/{order_id}/status", json={"order_status": "preparing"})
    assert r.status_code == 200

    r = await client.put(f"/api/orders/{order_id}/status", json={"order_status": "pending"})
    assert r.status_code == 400


async def test_relay_failure_does_not_fail_requests(seeded, client):
    app.dependency_overrides[get_broadcaster] = lambda: FailingBroadcaster()

    r = await place(client)
    assert r.status_code == 200
    order_id = r.json()["data"]["id"]

    r = await client.put(f"/api/orders/{order_id}/status", json={"order_status": "ready"})
    assert r.status_code == 200
    assert await count_rows(seeded, Order) == 1


async def test_created_order_is_queued_for_ledger(seeded, client, monkeypatch):
    queued = []
    monkeypatch.setattr(export_order_to_excel, "delay", queued.append)
    app.dependency_overrides[get_settings] = lambda: Settings(excel_export_enabled=True)

    r = await place(client)
    assert r.status_code == 200
    assert len(queued) == 1
    assert queued[0]["order_id"] == r.json()["data"]["id"]
    assert queued[0]["items"] == "2x Coffee"


async def test_ledger_queue_failure_does_not_fail_order(seeded, client, monkeypatch):
    def broker_down(record):
        raise ConnectionRefusedError("broker unavailable")

    monkeypatch.setattr(export_order_to_excel, "delay", broker_down)
    app.dependency_overrides[get_settings] = lambda: Settings(excel_export_enabled=True)

    r = await place(client)
    assert r.status_code == 200
    assert await count_rows(seeded, Order) == 1


async def test_date_filters_bound_created_at(seeded, client):
    stamps = [
        datetime(2025, 3, 9, 20, 0),
        datetime(2025, 3, 10, 9, 0),
        datetime(2025, 3, 10, 18, 30),
        datetime(2025, 3, 11, 8, 0),
    ]
    orders = [
        Order(
            table_id=1,
            table_number=1,
            total_amount_inr=Decimal("0"),
            total_amount_usd=Decimal("0"),
            currency="INR",
            payment_method="cash",
            payment_status="pending",
            order_status="pending",
            created_at=stamp,
        )
        for stamp in stamps
    ]
    seeded.add_all(orders)
    await seeded.commit()
    ids = [o.id for o in orders]

    async def listed(**params):
        r = await client.get("/api/orders", params=params)
        assert r.status_code == 200
        return [o["id"] for o in r.json()["data"]]

    # end_date is inclusive
    assert await listed(end_date="2025-03-10T18:30:00") == [ids[2], ids[1], ids[0]]
    # a bare date is midnight, so later orders that day are excluded
    assert await listed(end_date="2025-03-10") == [ids[0]]
    assert await listed(start_date="2025-03-10") == [ids[3], ids[2], ids[1]]
    assert await listed(start_date="2025-03-10T18:30:00", end_date="2025-03-10T18:30:00") == [ids[2]]
