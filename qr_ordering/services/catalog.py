"""
Catalog Service

Admin management of tables, menu items and categories.

Categories are not a table of their own: a category is any distinct
``menu_items.category`` value. An empty category is kept alive by an
unavailable placeholder item.
"""

import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from qr_ordering.core.exceptions import ConflictError, NotFoundError, ValidationError
from qr_ordering.models import (
    CATEGORY_PLACEHOLDER_NAME,
    MenuItem,
    Order,
    OrderItem,
    RestaurantTable,
)
from qr_ordering.schemas import MenuItemCreate, TableCreate

logger = logging.getLogger(__name__)


def qr_code_payload(table_number: int) -> str:
    """Text encoded into the table's printed QR code."""
    return f"table-{table_number}"


class CatalogService:
    """CRUD over restaurant tables, menu items and categories."""

    def __init__(self, session: AsyncSession):
        self.session = session

    # =========================================================================
    # TABLES
    # =========================================================================

    async def list_tables(self) -> list[RestaurantTable]:
        result = await self.session.execute(
            select(RestaurantTable)
            .where(RestaurantTable.is_active.is_(True))
            .order_by(RestaurantTable.table_number)
        )
        return list(result.scalars().all())

    async def get_table_by_number(self, table_number: int) -> RestaurantTable:
        table = await self.session.scalar(
            select(RestaurantTable).where(RestaurantTable.table_number == table_number)
        )
        if table is None:
            raise NotFoundError("Table not found")
        return table

    async def _ensure_table_number_free(
        self, table_number: int, exclude_id: Optional[int] = None
    ) -> None:
        query = select(RestaurantTable.id).where(RestaurantTable.table_number == table_number)
        if exclude_id is not None:
            query = query.where(RestaurantTable.id != exclude_id)
        if await self.session.scalar(query) is not None:
            raise ConflictError(f"Table number {table_number} already exists")

    async def create_table(self, data: TableCreate) -> RestaurantTable:
        await self._ensure_table_number_free(data.table_number)

        table = RestaurantTable(
            table_number=data.table_number,
            table_name=data.table_name,
            qr_code_data=qr_code_payload(data.table_number),
        )
        self.session.add(table)
        await self.session.commit()
        await self.session.refresh(table)

        logger.info(f"Table #{table.table_number} created")
        return table

    async def update_table(self, table_id: int, data: TableCreate) -> RestaurantTable:
        table = await self.session.get(RestaurantTable, table_id)
        if table is None:
            raise NotFoundError("Table not found")
        await self._ensure_table_number_free(data.table_number, exclude_id=table_id)

        table.table_number = data.table_number
        table.table_name = data.table_name
        table.qr_code_data = qr_code_payload(data.table_number)
        await self.session.commit()
        await self.session.refresh(table)
        return table

    async def delete_table(self, table_id: int) -> None:
        table = await self.session.get(RestaurantTable, table_id)
        if table is None:
            raise NotFoundError("Table not found")

        has_orders = await self.session.scalar(
            select(func.count(Order.id)).where(Order.table_id == table_id)
        )
        if has_orders:
            raise ConflictError("Cannot delete table that has orders")

        await self.session.delete(table)
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise ConflictError("Cannot delete table that has orders", str(e.orig)) from e
        logger.info(f"Table #{table.table_number} deleted")

    # =========================================================================
    # MENU ITEMS
    # =========================================================================

    async def list_menu(self) -> list[MenuItem]:
        result = await self.session.execute(
            select(MenuItem).order_by(MenuItem.category, MenuItem.name)
        )
        return list(result.scalars().all())

    async def get_menu_item(self, item_id: int) -> MenuItem:
        item = await self.session.get(MenuItem, item_id)
        if item is None:
            raise NotFoundError("Menu item not found")
        return item

    async def create_menu_item(self, data: MenuItemCreate) -> MenuItem:
        item = MenuItem(**data.model_dump())
        self.session.add(item)
        await self.session.commit()
        await self.session.refresh(item)

        logger.info(f"Menu item #{item.id} '{item.name}' created")
        return item

    async def update_menu_item(self, item_id: int, data: MenuItemCreate) -> MenuItem:
        item = await self.get_menu_item(item_id)
        for field, value in data.model_dump().items():
            setattr(item, field, value)
        await self.session.commit()
        await self.session.refresh(item)
        return item

    async def delete_menu_item(self, item_id: int) -> None:
        """
        Delete a menu item that no order line references.

        The check runs here as well as in the database so the caller gets a
        meaningful message instead of an integrity error.
        """
        used = await self.session.scalar(
            select(func.count(OrderItem.id)).where(OrderItem.menu_item_id == item_id)
        )
        if used:
            raise ConflictError("Cannot delete menu item that has been used in orders")

        item = await self.get_menu_item(item_id)
        await self.session.delete(item)
        await self.session.commit()
        logger.info(f"Menu item #{item_id} deleted")

    # =========================================================================
    # CATEGORIES
    # =========================================================================

    async def list_categories(self) -> list[str]:
        result = await self.session.execute(
            select(MenuItem.category)
            .where(MenuItem.category.is_not(None))
            .distinct()
            .order_by(MenuItem.category)
        )
        return list(result.scalars().all())

    async def create_category(self, name: str) -> str:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Category name is required")

        existing = await self.session.scalar(
            select(MenuItem.id).where(MenuItem.category == name).limit(1)
        )
        if existing is not None:
            raise ConflictError("Category already exists")

        self.session.add(
            MenuItem(
                name=CATEGORY_PLACEHOLDER_NAME,
                description=f"Placeholder for {name} category",
                price_inr=Decimal("0"),
                price_usd=Decimal("0"),
                category=name,
                is_available=False,
            )
        )
        await self.session.commit()

        logger.info(f"Category '{name}' created")
        return name

    async def delete_category(self, name: str) -> None:
        in_use = await self.session.scalar(
            select(func.count(MenuItem.id)).where(
                MenuItem.category == name,
                MenuItem.name != CATEGORY_PLACEHOLDER_NAME,
            )
        )
        if in_use:
            raise ConflictError(
                f"Cannot delete category. {in_use} item(s) are using this category."
            )

        await self.session.execute(
            delete(MenuItem).where(
                MenuItem.category == name,
                MenuItem.name == CATEGORY_PLACEHOLDER_NAME,
            )
        )
        await self.session.commit()
        logger.info(f"Category '{name}' deleted")
