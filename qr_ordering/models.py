"""
SQLAlchemy Database Models

Tables, menu, orders with their line items, and users for the QR
ordering system.
"""

import enum

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from qr_ordering.database import Base


CATEGORY_PLACEHOLDER_NAME = "[Category Placeholder]"


class OrderStatus(str, enum.Enum):
    """Canonical kitchen workflow. Orders store the raw string."""
    PENDING = "pending"
    PREPARING = "preparing"
    READY = "ready"
    DELIVERED = "delivered"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"


class RestaurantTable(Base):
    """A physical table with a printed QR code."""
    __tablename__ = "restaurant_tables"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    table_number = Column(Integer, unique=True, nullable=False, index=True)
    table_name = Column(String(100), nullable=False)
    qr_code_data = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<RestaurantTable #{self.table_number} - {self.table_name}>"


class MenuItem(Base):
    """
    Menu entry priced in both INR and USD.

    ``category`` is a free-text label; a category with no real items is kept
    alive by a placeholder row (see CATEGORY_PLACEHOLDER_NAME).
    """
    __tablename__ = "menu_items"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    price_inr = Column(Numeric(10, 2), nullable=False)
    price_usd = Column(Numeric(10, 2), nullable=False)
    category = Column(String(100), nullable=True, index=True)
    image_url = Column(Text, nullable=True)  # data URLs are stored inline
    is_available = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self):
        return f"<MenuItem #{self.id} - {self.name} ({self.category})>"


class Order(Base):
    """
    Order header.

    Totals are computed once at creation from the submitted line prices
    and are never recalculated from the lines afterwards.
    """
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    table_id = Column(
        Integer,
        ForeignKey("restaurant_tables.id"),
        nullable=True,
        index=True,
    )
    table_number = Column(Integer, nullable=False, index=True)

    # =========================================================================
    # PRICING
    # =========================================================================
    total_amount_inr = Column(Numeric(10, 2), nullable=False)
    total_amount_usd = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), default="INR", nullable=False)

    # =========================================================================
    # PAYMENT & STATUS
    # =========================================================================
    payment_method = Column(String(20), default="cash", nullable=False)
    payment_status = Column(String(20), default=PaymentStatus.PENDING.value, nullable=False)
    order_status = Column(
        String(20),
        default=OrderStatus.PENDING.value,
        nullable=False,
        index=True,
    )

    # =========================================================================
    # TIMESTAMPS
    # =========================================================================
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="OrderItem.id",
    )

    def __repr__(self):
        return f"<Order #{self.id} - table {self.table_number} - {self.order_status}>"


class OrderItem(Base):
    """One line of an order, snapshotting the item's name and prices."""
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    order_id = Column(
        Integer,
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    menu_item_id = Column(
        Integer,
        ForeignKey("menu_items.id"),
        nullable=True,
        index=True,
    )
    item_name = Column(String(200), nullable=False)
    quantity = Column(Integer, nullable=False)
    price_inr = Column(Numeric(10, 2), nullable=False)
    price_usd = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    order = relationship("Order", back_populates="items")

    def __repr__(self):
        return f"<OrderItem {self.quantity} x {self.item_name} (order #{self.order_id})>"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    full_name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), default="user", nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<User {self.email} ({self.role})>"
