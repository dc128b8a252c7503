#!/usr/bin/env python3
"""Initialize the database with tables."""

import asyncio

from product_intel.config import get_settings
from product_intel.db.base import Database


async def init_db() -> None:
    """Create all tables."""
    database = Database(get_settings().database_url)
    try:
        await database.create_all()
    finally:
        await database.dispose()
    print("Database initialized!")


if __name__ == "__main__":
    asyncio.run(init_db())
