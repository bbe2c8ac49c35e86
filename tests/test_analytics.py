from datetime import date, datetime
from decimal import Decimal

import pytest

from conftest import coffee_line
from qr_ordering.core.exceptions import ValidationError
from qr_ordering.dependencies import get_analytics_service
from qr_ordering.main import app
from qr_ordering.models import Order, OrderItem
from qr_ordering.services.analytics import AnalyticsService, rolling_start


def make_order(table_number, created_at, lines, payment_method="cash"):
    """lines: (menu_item_id, name, quantity, price_inr, price_usd)"""
    total_inr = sum(Decimal(p) * q for _, _, q, p, _ in lines)
    total_usd = sum(Decimal(u) * q for _, _, q, _, u in lines)
    return Order(
        table_id=table_number,
        table_number=table_number,
        total_amount_inr=total_inr,
        total_amount_usd=total_usd,
        currency="INR",
        payment_method=payment_method,
        payment_status="pending" if payment_method == "cash" else "paid",
        order_status="delivered",
        created_at=created_at,
        items=[
            OrderItem(menu_item_id=mid, item_name=name, quantity=q, price_inr=Decimal(p), price_usd=Decimal(u))
            for mid, name, q, p, u in lines
        ],
    )


COFFEE = (1, "Coffee", 2, "79.00", "1.09")
DOSA = (2, "Masala Dosa", 1, "149.00", "1.99")
LASSI = (3, "Mango Lassi", 3, "89.00", "1.19")


@pytest.fixture
async def history(seeded):
    seeded.add_all(
        [
            make_order(1, datetime(2025, 3, 10, 12, 30), [COFFEE, DOSA]),
            make_order(2, datetime(2025, 3, 10, 19, 5), [LASSI], payment_method="online"),
            make_order(1, datetime(2025, 3, 22, 9, 0), [COFFEE]),
            make_order(3, datetime(2025, 7, 1, 13, 0), [DOSA]),
        ]
    )
    await seeded.commit()
    return AnalyticsService(seeded)


async def test_daily_report(history):
    report = await history.daily(date(2025, 3, 10))
    assert report["summary"] == {
        "total_orders": 2,
        "total_revenue_inr": 574.0,
        "total_revenue_usd": 7.74,
        "tables_served": 2,
    }
    assert [i["item_name"] for i in report["items"]] == ["Mango Lassi", "Coffee", "Masala Dosa"]
    assert report["items"][0]["quantity_sold"] == 3


async def test_monthly_report_breaks_down_by_day(history):
    report = await history.monthly(3, 2025)
    assert report["summary"]["total_orders"] == 3
    assert report["summary"]["total_revenue_inr"] == 732.0
    assert [(d["date"], d["orders"]) for d in report["daily"]] == [("2025-03-10", 2), ("2025-03-22", 1)]
    coffee = next(i for i in report["items"] if i["item_name"] == "Coffee")
    assert coffee["quantity_sold"] == 4


async def test_quarterly_and_yearly(history):
    q1 = await history.quarterly(1, 2025)
    q3 = await history.quarterly(3, 2025)
    assert q1["summary"]["total_orders"] == 3
    assert q3["summary"]["total_orders"] == 1

    year = await history.yearly(2025)
    assert year["summary"]["total_orders"] == 4
    assert [(m["month"], m["orders"]) for m in year["monthly"]] == [(3, 3), (7, 1)]


async def test_empty_period(history):
    report = await history.monthly(1, 2024)
    assert report["summary"]["total_orders"] == 0
    assert report["summary"]["total_revenue_inr"] == 0
    assert report["items"] == []
    assert report["daily"] == []


async def test_invalid_month(history):
    with pytest.raises(ValidationError):
        await history.monthly(13, 2025)


async def test_revenue_orders_per_day(history):
    rows = await history.revenue_orders(date(2025, 3, 1), date(2025, 3, 31))
    assert rows == [
        {"date": "2025-03-10", "revenue": 574.0, "orders": 2},
        {"date": "2025-03-22", "revenue": 158.0, "orders": 1},
    ]


async def test_top_items(history):
    rows = await history.top_items(date(2025, 1, 1), date(2025, 12, 31))
    assert [(r["item_name"], r["quantity_sold"]) for r in rows] == [
        ("Coffee", 4),
        ("Mango Lassi", 3),
        ("Masala Dosa", 2),
    ]
    assert rows[0]["revenue_inr"] == 316.0


async def test_rolling_reports_via_api(seeded, client):
    for table_number, method in ((1, "cash"), (1, "online"), (2, "cash")):
        r = await client.post(
            "/api/orders",
            json={"table_number": table_number, "items": [coffee_line()], "payment_method": method},
        )
        assert r.status_code == 200

    summary = (await client.get("/api/analytics/summary")).json()["data"]
    assert summary == {
        "total_orders": 3,
        "total_revenue_inr": 474.0,
        "tables_served": 2,
        "avg_order_value": 158.0,
    }

    methods = (await client.get("/api/analytics/payment-methods")).json()["data"]
    assert methods == {"cash": 2, "online": 1}

    hourly = (await client.get("/api/analytics/hourly-orders")).json()["data"]
    assert len(hourly) == 24
    assert sum(h["orders"] for h in hourly) == 3

    tables = (await client.get("/api/analytics/table-performance")).json()["data"]
    assert [(t["table_number"], t["total_orders"]) for t in tables] == [(1, 2), (2, 1), (3, 0)]

    categories = (await client.get("/api/analytics/category-performance", params={"currency": "USD"})).json()["data"]
    assert categories == [
        {"category": "Beverage", "total_orders": 3, "total_items": 6, "revenue_usd": 6.54}
    ]


async def test_unsupported_currency_is_400(seeded, client):
    r = await client.get("/api/analytics/summary", params={"currency": "EUR"})
    assert r.status_code == 400


async def test_unknown_period_rejected(seeded, client):
    r = await client.get("/api/analytics/summary", params={"period": "hourly"})
    assert r.status_code == 422


class BrokenAnalytics(AnalyticsService):
    async def orders_frame(self, start=None, end=None):
        raise RuntimeError("frame load failed")


async def test_report_failure_names_the_report(seeded, client):
    app.dependency_overrides[get_analytics_service] = lambda: BrokenAnalytics(seeded)

    r = await client.get("/api/analytics/summary")
    assert r.status_code == 500
    assert r.json() == {
        "success": False,
        "message": "Failed to fetch summary analytics",
        "error": "frame load failed",
    }

    r = await client.get("/api/analytics/daily", params={"date": "2025-03-10"})
    assert r.status_code == 500
    assert r.json()["message"] == "Failed to fetch daily analytics"


def test_rolling_start_windows():
    now = datetime(2025, 6, 15, 12, 0)
    assert rolling_start("daily", now) == datetime(2025, 6, 8, 12, 0)
    assert rolling_start("weekly", now) == datetime(2025, 5, 18, 12, 0)
    assert rolling_start("monthly", now) == datetime(2024, 7, 15, 12, 0)
    assert rolling_start("yearly", now) == datetime(2021, 6, 15, 12, 0)
    with pytest.raises(ValidationError):
        rolling_start("hourly", now)
