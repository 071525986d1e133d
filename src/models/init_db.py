"""
Database initialisation
Creates all tables and seeds the reference data (categories, pricing tiers)
"""

import asyncio
import logging
from decimal import Decimal

from sqlalchemy import func, select

import config
from src.models import engine as db
from src.models import Base, Category, PricingTier

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = [
    ("Electronics", "Phones, computers, TVs, cameras, and other electronic devices"),
    ("Vehicles", "Cars, motorcycles, bicycles, and automotive parts"),
    ("Home & Furniture", "Furniture, home decor, and household items"),
    ("Appliances", "Kitchen appliances, refrigerators, washing machines, and more"),
    ("Fashion & Accessories", "Clothing, shoes, bags, jewelry, and fashion items"),
    ("Sports & Outdoors", "Sports equipment, fitness gear, and outdoor recreation items"),
    ("Books, Music & Hobbies", "Books, musical instruments, collectibles, and hobby supplies"),
    ("Kids & Baby", "Children's toys, baby gear, and kids' clothing"),
    ("Office & Business", "Office furniture, equipment, and business supplies"),
    ("Tools & Home Improvement", "Power tools, hand tools, and home improvement supplies"),
    ("Health & Beauty", "Cosmetics, skincare, health products, and wellness items"),
    ("Pets", "Pet supplies, accessories, and pet care products"),
    ("Free Stuff", "Items available for free to anyone who can pick them up"),
    ("Miscellaneous", "Other items that don't fit into the above categories"),
]

# (name, visibility days, price in UGX, description)
DEFAULT_PRICING_TIERS = [
    ("Basic", 7, Decimal("5000"), "Listed in the feed for one week"),
    ("Standard", 30, Decimal("15000"), "Listed in the feed for a month"),
    ("Premium", 60, Decimal("30000"), "Listed in the feed for two months"),
]


async def create_tables() -> None:
    async with db.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Tables created/verified")


async def seed_reference_data() -> None:
    """
    Insert default categories and pricing tiers into empty tables
    """
    async with db.async_session_factory() as session:
        category_count = await session.scalar(select(func.count(Category.id)))
        if not category_count:
            session.add_all(
                Category(name=name, description=description)
                for name, description in DEFAULT_CATEGORIES
            )
            logger.info(f"Seeded {len(DEFAULT_CATEGORIES)} categories")

        tier_count = await session.scalar(select(func.count(PricingTier.id)))
        if not tier_count:
            session.add_all(
                PricingTier(
                    name=name,
                    visibility_days=days,
                    price=price,
                    description=description,
                )
                for name, days, price, description in DEFAULT_PRICING_TIERS
            )
            logger.info(f"Seeded {len(DEFAULT_PRICING_TIERS)} pricing tiers")

        await session.commit()


async def init_db() -> None:
    await create_tables()
    if config.settings.seed_defaults:
        await seed_reference_data()


async def main():
    logging.basicConfig(level=logging.INFO)
    await init_db()
    await db.dispose_engine()


if __name__ == "__main__":
    asyncio.run(main())
