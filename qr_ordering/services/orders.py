"""
Order Placement and Status Tracking

OrderService turns a table's cart into an order header plus its lines in
one transaction and announces it to the kitchen. StatusTracker moves an
existing order through the kitchen workflow.

Both take their session and broadcaster as constructor arguments; neither
keeps state between calls.
"""

import logging
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.sql import func

from qr_ordering.core.exceptions import (
    AppError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from qr_ordering.models import Order, OrderItem, OrderStatus, PaymentStatus, RestaurantTable
from qr_ordering.schemas import (
    ComposedOrderResponse,
    OrderCreate,
    OrderLineCreate,
    OrderResponse,
)
from qr_ordering.services.notifications import (
    NEW_ORDER_EVENT,
    ORDER_STATUS_UPDATED_EVENT,
    BaseBroadcaster,
)

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

# Used only when ENFORCE_STATUS_TRANSITIONS is on
ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.PENDING.value: {OrderStatus.PREPARING.value},
    OrderStatus.PREPARING.value: {OrderStatus.READY.value},
    OrderStatus.READY.value: {OrderStatus.DELIVERED.value},
    OrderStatus.DELIVERED.value: set(),
}


def round_amount(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_order_totals(items: Iterable[OrderLineCreate]) -> dict[str, Decimal]:
    """
    Sum price x quantity in both currencies.

    Uses the prices submitted with each line, not the current menu prices.
    Each price is rounded to the cent first so the total matches the stored
    lines.
    """
    total_inr = Decimal("0")
    total_usd = Decimal("0")
    for item in items:
        total_inr += round_amount(item.price_inr) * item.quantity
        total_usd += round_amount(item.price_usd) * item.quantity

    return {
        "total_amount_inr": round_amount(total_inr),
        "total_amount_usd": round_amount(total_usd),
    }


def payment_status_for(payment_method: str) -> str:
    """Cash is settled at the table; everything else is paid up front."""
    if payment_method == "cash":
        return PaymentStatus.PENDING.value
    return PaymentStatus.PAID.value


class OrderService:
    """Creates and reads orders."""

    def __init__(self, session: AsyncSession, broadcaster: BaseBroadcaster):
        self.session = session
        self.broadcaster = broadcaster

    @staticmethod
    def _composed_query():
        return (
            select(Order)
            .options(selectinload(Order.items))
            .execution_options(populate_existing=True)
        )

    async def create_order(self, order_data: OrderCreate) -> ComposedOrderResponse:
        """
        Persist an order header and its lines atomically.

        Raises:
            NotFoundError: no table with ``order_data.table_number``
            InternalError: any database failure; nothing is persisted
        """
        totals = calculate_order_totals(order_data.items)

        try:
            table_id = await self.session.scalar(
                select(RestaurantTable.id).where(
                    RestaurantTable.table_number == order_data.table_number
                )
            )
            if table_id is None:
                raise NotFoundError("Table not found")

            order = Order(
                table_id=table_id,
                table_number=order_data.table_number,
                total_amount_inr=totals["total_amount_inr"],
                total_amount_usd=totals["total_amount_usd"],
                currency=order_data.currency,
                payment_method=order_data.payment_method,
                payment_status=payment_status_for(order_data.payment_method),
                order_status=OrderStatus.PENDING.value,
                items=[
                    OrderItem(
                        menu_item_id=item.id,
                        item_name=item.name,
                        quantity=item.quantity,
                        price_inr=round_amount(item.price_inr),
                        price_usd=round_amount(item.price_usd),
                    )
                    for item in order_data.items
                ],
            )
            self.session.add(order)
            await self.session.commit()
        except AppError:
            await self.session.rollback()
            raise
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.exception(f"Order for table {order_data.table_number} rolled back")
            raise InternalError("Failed to create order", str(e)) from e

        logger.info(
            f"Order #{order.id} created for table {order.table_number} "
            f"({len(order_data.items)} line(s), INR {totals['total_amount_inr']})"
        )

        composed = await self.get_order(order.id)
        await self.broadcaster.broadcast(NEW_ORDER_EVENT, composed.model_dump(mode="json"))
        return composed

    async def get_order(self, order_id: int) -> ComposedOrderResponse:
        result = await self.session.execute(
            self._composed_query().where(Order.id == order_id)
        )
        order = result.scalar_one_or_none()
        if order is None:
            raise NotFoundError("Order not found")
        return ComposedOrderResponse.model_validate(order)

    async def list_orders(
        self,
        status: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        table_number: Optional[int] = None,
    ) -> list[ComposedOrderResponse]:
        """All matching orders, newest first, each with its lines."""
        query = self._composed_query().order_by(Order.created_at.desc(), Order.id.desc())

        if status:
            query = query.where(Order.order_status == status)
        if start_date is not None:
            query = query.where(Order.created_at >= start_date)
        if end_date is not None:
            query = query.where(Order.created_at <= end_date)
        if table_number is not None:
            query = query.where(Order.table_number == table_number)

        result = await self.session.execute(query)
        return [ComposedOrderResponse.model_validate(o) for o in result.scalars().all()]


class StatusTracker:
    """
    Overwrites an order's status.

    Any string is accepted unless ``enforce_transitions`` is set, in which
    case only the next step of ALLOWED_TRANSITIONS (or the current status)
    is.
    """

    def __init__(
        self,
        session: AsyncSession,
        broadcaster: BaseBroadcaster,
        enforce_transitions: bool = False,
    ):
        self.session = session
        self.broadcaster = broadcaster
        self.enforce_transitions = enforce_transitions

    @staticmethod
    def check_transition(current: str, new: str) -> None:
        if current == new:
            return
        if new not in ALLOWED_TRANSITIONS.get(current, set()):
            raise ValidationError(
                f"Cannot change order status from '{current}' to '{new}'"
            )

    async def update_status(self, order_id: int, new_status: str) -> OrderResponse:
        order = await self.session.get(Order, order_id, populate_existing=True)
        if order is None:
            raise NotFoundError("Order not found")

        if self.enforce_transitions:
            self.check_transition(order.order_status, new_status)

        previous = order.order_status
        order.order_status = new_status
        order.updated_at = func.now()
        await self.session.commit()

        await self.session.refresh(order)
        logger.info(f"Order #{order_id} status {previous} -> {new_status}")

        header = OrderResponse.model_validate(order)
        await self.broadcaster.broadcast(
            ORDER_STATUS_UPDATED_EVENT, header.model_dump(mode="json")
        )
        return header
