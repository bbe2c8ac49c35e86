"""
Default Data

Ten tables and a small sample menu so a fresh install can take orders
immediately. Rows that already exist are left alone.
"""

import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from qr_ordering.models import MenuItem, RestaurantTable
from qr_ordering.services.catalog import qr_code_payload

logger = logging.getLogger(__name__)

DEFAULT_TABLE_COUNT = 10

# name, description, price_inr, price_usd, category
DEFAULT_MENU = [
    ("Margherita Pizza", "Classic pizza with tomato, mozzarella, and basil", "299.00", "3.99", "Main Course"),
    ("Chicken Biryani", "Aromatic rice dish with spiced chicken", "349.00", "4.49", "Main Course"),
    ("Paneer Tikka", "Grilled cottage cheese with Indian spices", "249.00", "3.29", "Appetizer"),
    ("Caesar Salad", "Fresh romaine lettuce with Caesar dressing", "199.00", "2.69", "Salad"),
    ("Masala Dosa", "Crispy rice crepe with potato filling", "149.00", "1.99", "Main Course"),
    ("Chocolate Brownie", "Rich chocolate dessert with ice cream", "179.00", "2.39", "Dessert"),
    ("Mango Lassi", "Traditional yogurt-based mango drink", "89.00", "1.19", "Beverage"),
    ("Coffee", "Freshly brewed coffee", "79.00", "1.09", "Beverage"),
]


async def seed_defaults(session: AsyncSession) -> dict[str, int]:
    """
    Insert the default tables and menu items that are missing.

    Returns:
        Number of tables and menu items actually inserted
    """
    existing_tables = set(
        (await session.execute(select(RestaurantTable.table_number))).scalars().all()
    )
    existing_items = set(
        (await session.execute(select(MenuItem.name))).scalars().all()
    )

    tables = [
        RestaurantTable(
            table_number=n,
            table_name=f"Table {n}",
            qr_code_data=qr_code_payload(n),
        )
        for n in range(1, DEFAULT_TABLE_COUNT + 1)
        if n not in existing_tables
    ]
    items = [
        MenuItem(
            name=name,
            description=description,
            price_inr=Decimal(price_inr),
            price_usd=Decimal(price_usd),
            category=category,
            is_available=True,
        )
        for name, description, price_inr, price_usd, category in DEFAULT_MENU
        if name not in existing_items
    ]

    session.add_all(tables + items)
    await session.commit()

    logger.info(f"Seeded {len(tables)} table(s) and {len(items)} menu item(s)")
    return {"tables": len(tables), "menu_items": len(items)}
