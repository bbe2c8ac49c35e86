"""
Sales Analytics

Loads the orders and order lines of a time window into pandas DataFrames
and aggregates them into the reports behind the admin dashboards:

    - calendar reports: daily / monthly / quarterly / yearly
    - rolling reports: summary, payment methods, hourly distribution,
      table performance, category performance
    - date-range reports: revenue & orders per day, top items

All amounts are returned as floats rounded to 2 decimals.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Any, Optional

import pandas as pd
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from qr_ordering.core.exceptions import ValidationError
from qr_ordering.models import CATEGORY_PLACEHOLDER_NAME, MenuItem, Order, OrderItem, RestaurantTable

logger = logging.getLogger(__name__)

ORDER_COLUMNS = [
    "id",
    "table_id",
    "table_number",
    "total_amount_inr",
    "total_amount_usd",
    "payment_method",
    "created_at",
]

LINE_COLUMNS = [
    "order_id",
    "menu_item_id",
    "item_name",
    "quantity",
    "price_inr",
    "price_usd",
    "created_at",
    "category",
]

# How far back each rolling period reaches from "now"
ROLLING_PERIODS = {
    "daily": pd.DateOffset(days=7),
    "weekly": pd.DateOffset(days=28),
    "monthly": pd.DateOffset(months=11),
    "yearly": pd.DateOffset(years=4),
}

SUPPORTED_CURRENCIES = ("INR", "USD")
TOP_ITEMS_LIMIT = 10


def rolling_start(period: str, now: Optional[datetime] = None) -> datetime:
    """
    Start of a rolling period; unknown periods are a ValidationError.

    Rolling windows are open-ended so orders stamped by the database clock
    are never cut off by a skewed application clock.
    """
    now = now or datetime.now()
    offset = ROLLING_PERIODS.get(period)
    if offset is None:
        raise ValidationError(f"Unsupported period '{period}'")
    return (pd.Timestamp(now) - offset).to_pydatetime()


def month_window(year: int, month: int) -> tuple[datetime, datetime]:
    start = datetime(year, month, 1)
    if month == 12:
        return start, datetime(year + 1, 1, 1)
    return start, datetime(year, month + 1, 1)


def _currency_key(currency: str) -> str:
    currency = (currency or "INR").upper()
    if currency not in SUPPORTED_CURRENCIES:
        raise ValidationError(f"Unsupported currency '{currency}'")
    return currency.lower()


def _records(df: pd.DataFrame) -> list[dict[str, Any]]:
    return df.round(2).to_dict("records")


class AnalyticsService:
    """Read-only reporting over orders and order lines."""

    def __init__(self, session: AsyncSession):
        self.session = session

    # =========================================================================
    # LOADERS
    # =========================================================================

    async def orders_frame(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> pd.DataFrame:
        """Orders with ``start <= created_at < end``."""
        query = select(*(getattr(Order, c) for c in ORDER_COLUMNS))
        if start is not None:
            query = query.where(Order.created_at >= start)
        if end is not None:
            query = query.where(Order.created_at < end)

        rows = (await self.session.execute(query)).all()
        df = pd.DataFrame([tuple(r) for r in rows], columns=ORDER_COLUMNS)
        df["id"] = df["id"].astype("int64")
        df["table_id"] = df["table_id"].astype("Int64")
        df["total_amount_inr"] = df["total_amount_inr"].astype(float)
        df["total_amount_usd"] = df["total_amount_usd"].astype(float)
        df["created_at"] = pd.to_datetime(df["created_at"])
        return df

    async def lines_frame(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> pd.DataFrame:
        """Order lines of orders in the window, with the menu category."""
        query = (
            select(
                OrderItem.order_id,
                OrderItem.menu_item_id,
                OrderItem.item_name,
                OrderItem.quantity,
                OrderItem.price_inr,
                OrderItem.price_usd,
                Order.created_at,
                MenuItem.category,
            )
            .join(Order, OrderItem.order_id == Order.id)
            .outerjoin(MenuItem, OrderItem.menu_item_id == MenuItem.id)
        )
        if start is not None:
            query = query.where(Order.created_at >= start)
        if end is not None:
            query = query.where(Order.created_at < end)

        rows = (await self.session.execute(query)).all()
        df = pd.DataFrame([tuple(r) for r in rows], columns=LINE_COLUMNS)
        df["order_id"] = df["order_id"].astype("int64")
        df["menu_item_id"] = df["menu_item_id"].astype("Int64")
        df["quantity"] = df["quantity"].astype(int)
        df["revenue_inr"] = df["price_inr"].astype(float) * df["quantity"]
        df["revenue_usd"] = df["price_usd"].astype(float) * df["quantity"]
        df["created_at"] = pd.to_datetime(df["created_at"])
        return df

    # =========================================================================
    # BUILDING BLOCKS
    # =========================================================================

    @staticmethod
    def summarize(orders: pd.DataFrame) -> dict[str, Any]:
        return {
            "total_orders": int(len(orders)),
            "total_revenue_inr": round(float(orders["total_amount_inr"].sum()), 2),
            "total_revenue_usd": round(float(orders["total_amount_usd"].sum()), 2),
            "tables_served": int(orders["table_number"].nunique()),
        }

    @staticmethod
    def items_sold(lines: pd.DataFrame) -> list[dict[str, Any]]:
        if lines.empty:
            return []
        grouped = (
            lines.groupby("item_name", as_index=False)
            .agg(
                quantity_sold=("quantity", "sum"),
                revenue_inr=("revenue_inr", "sum"),
                revenue_usd=("revenue_usd", "sum"),
            )
            .sort_values(["quantity_sold", "item_name"], ascending=[False, True])
        )
        return _records(grouped)

    @staticmethod
    def _breakdown(orders: pd.DataFrame, key: pd.Series, name: str) -> list[dict[str, Any]]:
        if orders.empty:
            return []
        grouped = (
            orders.assign(**{name: key})
            .groupby(name, as_index=False)
            .agg(
                orders=("id", "count"),
                revenue_inr=("total_amount_inr", "sum"),
                revenue_usd=("total_amount_usd", "sum"),
            )
            .sort_values(name)
        )
        return _records(grouped)

    async def _calendar_report(self, start: datetime, end: datetime) -> tuple[pd.DataFrame, dict]:
        orders = await self.orders_frame(start, end)
        lines = await self.lines_frame(start, end)
        report = {
            "summary": self.summarize(orders),
            "items": self.items_sold(lines),
        }
        return orders, report

    # =========================================================================
    # CALENDAR REPORTS
    # =========================================================================

    async def daily(self, target: Optional[date] = None) -> dict[str, Any]:
        target = target or date.today()
        start = datetime.combine(target, datetime.min.time())
        _, report = await self._calendar_report(start, start + timedelta(days=1))
        report["date"] = target.isoformat()
        return report

    async def monthly(self, month: Optional[int] = None, year: Optional[int] = None) -> dict[str, Any]:
        today = date.today()
        month = month or today.month
        year = year or today.year
        if not 1 <= month <= 12:
            raise ValidationError("Month must be between 1 and 12")

        orders, report = await self._calendar_report(*month_window(year, month))
        report["daily"] = self._breakdown(
            orders, orders["created_at"].dt.strftime("%Y-%m-%d"), "date"
        )
        report["month"] = month
        report["year"] = year
        return report

    async def quarterly(self, quarter: Optional[int] = None, year: Optional[int] = None) -> dict[str, Any]:
        today = date.today()
        quarter = quarter or (today.month - 1) // 3 + 1
        year = year or today.year
        if not 1 <= quarter <= 4:
            raise ValidationError("Quarter must be between 1 and 4")

        start_month = (quarter - 1) * 3 + 1
        start, _ = month_window(year, start_month)
        _, end = month_window(year, start_month + 2)

        _, report = await self._calendar_report(start, end)
        report["quarter"] = quarter
        report["year"] = year
        return report

    async def yearly(self, year: Optional[int] = None) -> dict[str, Any]:
        year = year or date.today().year
        orders, report = await self._calendar_report(datetime(year, 1, 1), datetime(year + 1, 1, 1))
        report["monthly"] = self._breakdown(orders, orders["created_at"].dt.month, "month")
        report["year"] = year
        return report

    # =========================================================================
    # ROLLING REPORTS
    # =========================================================================

    async def summary(self, period: str = "daily", currency: str = "INR") -> dict[str, Any]:
        key = _currency_key(currency)
        orders = await self.orders_frame(rolling_start(period))

        total_orders = int(len(orders))
        total_revenue = round(float(orders[f"total_amount_{key}"].sum()), 2)
        return {
            "total_orders": total_orders,
            f"total_revenue_{key}": total_revenue,
            "tables_served": int(orders["table_id"].nunique()),
            "avg_order_value": round(total_revenue / total_orders, 2) if total_orders else 0,
        }

    async def payment_methods(self, period: str = "daily") -> dict[str, int]:
        orders = await self.orders_frame(rolling_start(period))
        counts = orders["payment_method"].value_counts()
        return {str(method): int(count) for method, count in counts.items()}

    async def hourly(self, period: str = "daily") -> list[dict[str, Any]]:
        """Orders and revenue per hour of day, all 24 hours present."""
        orders = await self.orders_frame(rolling_start(period))
        hours = pd.RangeIndex(24, name="hour")

        if orders.empty:
            grouped = pd.DataFrame(
                {"orders": 0, "revenue_inr": 0.0, "revenue_usd": 0.0}, index=hours
            )
        else:
            grouped = (
                orders.groupby(orders["created_at"].dt.hour.rename("hour"))
                .agg(
                    orders=("id", "count"),
                    revenue_inr=("total_amount_inr", "sum"),
                    revenue_usd=("total_amount_usd", "sum"),
                )
                .reindex(hours, fill_value=0)
            )

        grouped = grouped.reset_index()
        grouped.insert(1, "hour_label", grouped["hour"].map(lambda h: f"{h}:00"))
        return _records(grouped)

    async def table_performance(self, period: str = "daily", currency: str = "INR") -> list[dict[str, Any]]:
        key = _currency_key(currency)
        orders = await self.orders_frame(rolling_start(period))
        rows = (
            await self.session.execute(
                select(RestaurantTable.id, RestaurantTable.table_number, RestaurantTable.table_name)
            )
        ).all()
        tables = pd.DataFrame([tuple(r) for r in rows], columns=["table_id", "table_number", "table_name"])
        if tables.empty:
            return []

        amount = f"total_amount_{key}"
        merged = tables.merge(
            orders[["id", "table_id", amount]], on="table_id", how="left"
        )
        grouped = (
            merged.groupby(["table_id", "table_number", "table_name"], as_index=False)
            .agg(
                total_orders=("id", "count"),
                **{
                    f"total_revenue_{key}": (amount, "sum"),
                    f"avg_order_value_{key}": (amount, "mean"),
                },
            )
            .fillna(0)
            .sort_values([f"total_revenue_{key}", "table_number"], ascending=[False, True])
            .drop(columns=["table_id"])
        )
        return _records(grouped)

    async def category_performance(self, period: str = "daily", currency: str = "INR") -> list[dict[str, Any]]:
        key = _currency_key(currency)
        lines = (await self.lines_frame(rolling_start(period))).dropna(subset=["category"])
        if lines.empty:
            return []

        grouped = (
            lines.groupby("category", as_index=False)
            .agg(
                total_orders=("order_id", "nunique"),
                total_items=("quantity", "sum"),
                **{f"revenue_{key}": (f"revenue_{key}", "sum")},
            )
            .sort_values(["total_orders", "category"], ascending=[False, True])
        )
        return _records(grouped)

    # =========================================================================
    # DATE-RANGE REPORTS
    # =========================================================================

    @staticmethod
    def date_range(start: Optional[date], end: Optional[date]) -> tuple[datetime, datetime]:
        """Whole days from ``start`` through ``end``; defaults to this year."""
        this_year = date.today().year
        start = start or date(this_year, 1, 1)
        end = end or date(this_year, 12, 31)
        if end < start:
            raise ValidationError("End date must not be before start date")
        return (
            datetime.combine(start, datetime.min.time()),
            datetime.combine(end + timedelta(days=1), datetime.min.time()),
        )

    async def revenue_orders(self, start: Optional[date] = None, end: Optional[date] = None) -> list[dict[str, Any]]:
        window = self.date_range(start, end)
        orders = await self.orders_frame(*window)
        if orders.empty:
            return []
        lines = await self.lines_frame(*window)

        per_day_orders = (
            orders.assign(date=orders["created_at"].dt.strftime("%Y-%m-%d"))
            .groupby("date")["id"]
            .nunique()
            .rename("orders")
        )
        per_day_revenue = (
            lines.assign(date=lines["created_at"].dt.strftime("%Y-%m-%d"))
            .groupby("date")["revenue_inr"]
            .sum()
            .rename("revenue")
        )
        combined = (
            pd.concat([per_day_revenue, per_day_orders], axis=1)
            .fillna(0)
            .reset_index()
            .rename(columns={"index": "date"})
            .sort_values("date")
        )
        combined["orders"] = combined["orders"].astype(int)
        return _records(combined[["date", "revenue", "orders"]])

    async def top_items(self, start: Optional[date] = None, end: Optional[date] = None) -> list[dict[str, Any]]:
        lines = await self.lines_frame(*self.date_range(start, end))
        rows = (
            await self.session.execute(
                select(MenuItem.id, MenuItem.name, MenuItem.category).where(
                    MenuItem.name != CATEGORY_PLACEHOLDER_NAME
                )
            )
        ).all()
        menu = pd.DataFrame([tuple(r) for r in rows], columns=["menu_item_id", "item_name", "category"])
        if menu.empty:
            return []

        sold = (
            lines.groupby("menu_item_id", as_index=False)
            .agg(quantity_sold=("quantity", "sum"), revenue_inr=("revenue_inr", "sum"))
        )
        merged = menu.merge(sold, on="menu_item_id", how="left")
        merged[["quantity_sold", "revenue_inr"]] = merged[["quantity_sold", "revenue_inr"]].fillna(0)
        merged["quantity_sold"] = merged["quantity_sold"].astype(int)

        top = (
            merged.sort_values(["quantity_sold", "item_name"], ascending=[False, True])
            .head(TOP_ITEMS_LIMIT)
        )
        return _records(top[["item_name", "quantity_sold", "revenue_inr", "category"]])
