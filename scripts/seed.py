"""
Database Setup Script

Creates the schema and inserts the default tables and sample menu.
Run from project root: python scripts/seed.py
"""

import asyncio
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
# Windows event loop fix
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

from qr_ordering.core.config import setup_logging
from qr_ordering.database import async_session_maker, engine, init_db
from qr_ordering.seed import seed_defaults


async def main() -> None:
    logger = setup_logging()
    await init_db()

    async with async_session_maker() as session:
        counts = await seed_defaults(session)

    await engine.dispose()
    logger.info(
        f"Database setup completed: {counts['tables']} table(s), "
        f"{counts['menu_items']} menu item(s) added"
    )


if __name__ == "__main__":
    asyncio.run(main())
