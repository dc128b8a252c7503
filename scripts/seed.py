#!/usr/bin/env python3
"""Seed the database with sample catalog products.

Seeded products have never been price-checked, so the next
``product-intel rescore`` picks them all up.
"""

import asyncio

from sqlalchemy import select

from product_intel.config import get_settings
from product_intel.db.base import Database
from product_intel.db.models import Product


SAMPLE_PRODUCTS = [
    {
        "id": "seed-garden-tool-set",
        "asin": "B0SEED0001",
        "title": "Premium Garden Tool Set - 5 Piece Stainless Steel",
        "brand": "Fiskars",
        "category": "Patio, Lawn & Garden > Gardening & Lawn Care > Hand Tools",
        "description": """Professional-grade garden tool set perfect for any gardener.

This 5-piece set includes a trowel, cultivator, weeder, transplanter and
pruning shears. All tools feature ergonomic handles and rust-resistant
stainless steel heads.""",
        "main_image": "https://images.unsplash.com/photo-1416879595882-3373a0480b5b?w=800",
        "images": [
            "https://images.unsplash.com/photo-1416879595882-3373a0480b5b?w=800",
            "https://images.unsplash.com/photo-1585320806297-9794b3e4eeae?w=800",
            "https://images.unsplash.com/photo-1591857177580-dc82b9ac4e1e?w=800",
        ],
        "rating": 4.6,
        "ratings_total": 3200,
        "source": "rainforest_import",
    },
    {
        "id": "seed-smart-pet-feeder",
        "asin": "B0SEED0002",
        "title": "Smart Automatic Pet Feeder with WiFi & App Control",
        "brand": "Generic",
        "category": "Pet Supplies > Dogs > Feeding & Watering Supplies",
        "description": """Never miss a feeding with our smart automatic pet feeder.

WiFi connected with smartphone app, schedules up to 6 meals per day and
holds up to 16 cups of food.""",
        "main_image": "https://images.unsplash.com/photo-1601758228041-f3b2795255f1?w=800",
        "images": [
            "https://images.unsplash.com/photo-1601758228041-f3b2795255f1?w=800",
        ],
        "rating": 4.1,
        "ratings_total": 850,
        "source": "shopify",
    },
    {
        "id": "seed-camping-hammock",
        "asin": "B0SEED0003",
        "title": "Ultralight Portable Camping Hammock with Tree Straps",
        "brand": None,
        "category": "Sports & Outdoors",
        "description": "Ultralight parachute nylon hammock. Sets up in under 2 minutes.",
        "main_image": "https://images.unsplash.com/photo-1504280390367-361c6d9f38f4?w=800",
        "images": [],
        "rating": 4.4,
        "ratings_total": 12000,
        "source": "rainforest_import",
    },
]


async def seed_products() -> None:
    """Seed the database with sample products."""
    database = Database(get_settings().database_url)
    await database.create_all()

    try:
        async with database.session_maker() as session:
            for product_data in SAMPLE_PRODUCTS:
                # Check if product already exists
                result = await session.execute(
                    select(Product).where(Product.id == product_data["id"])
                )
                existing = result.scalar_one_or_none()

                if existing:
                    print(f"Product '{product_data['id']}' already exists, skipping...")
                    continue

                session.add(Product(**product_data))
                print(f"Created product: {product_data['title']}")

            await session.commit()
            print("\nSeeding complete!")
    finally:
        await database.dispose()


if __name__ == "__main__":
    asyncio.run(seed_products())
