#!/usr/bin/env python3
"""Seed product catalog script.

Creates the catalog tables if needed and seeds a deterministic demo
catalog through the catalog services.

Usage:
    python scripts/seed_catalog.py
    python scripts/seed_catalog.py --per-category 10 --seed 7
"""

import argparse
import asyncio
import random
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import structlog

from storefront.catalog.service import CatalogService, CategoryService
from storefront.catalog.sql_repository import SqlCategoryRepository, SqlProductRepository
from storefront.infrastructure.config import settings
from storefront.infrastructure.database import async_session_factory, create_tables
from storefront.infrastructure.logging import configure_logging

logger = structlog.get_logger()

BRANDS = ["Acme", "Contoso", "Northwind", "Fabrikam", "Tailwind", "Globex"]

ADJECTIVES = ["Premium", "Pro", "Ultra", "Classic", "Essential", "Smart", "Prime", "Nova"]

# (name, slug, price range, noun)
CATEGORIES = [
    ("Laptops", "laptops", (599.0, 1999.0), "Laptop"),
    ("Headphones", "headphones", (29.0, 399.0), "Headphones"),
    ("Office Chairs", "office-chairs", (199.0, 899.0), "Office Chair"),
    ("Coffee Makers", "coffee-makers", (49.0, 299.0), "Coffee Maker"),
    ("Backpacks", "backpacks", (39.0, 149.0), "Backpack"),
]


async def seed(per_category: int, seed_value: int) -> dict:
    """Seed categories and products.

    Args:
        per_category: Products generated per category.
        seed_value: Random seed, same seed gives the same catalog.

    Returns:
        Seeding result with counts.
    """
    rng = random.Random(seed_value)
    created_products = 0

    async with async_session_factory() as session:
        products_repo = SqlProductRepository(session)
        categories_repo = SqlCategoryRepository(session)
        categories = CategoryService(categories_repo, products_repo)
        catalog = CatalogService(products_repo, categories_repo)

        for order, (name, slug, (low, high), noun) in enumerate(CATEGORIES):
            category = await categories_repo.get_by_slug(slug)
            if category is None:
                category = await categories.create_category(name=name, slug=slug, order=order)

            for index in range(per_category):
                sku = f"{slug[:3].upper()}-{seed_value:03d}-{index:04d}"
                if await products_repo.get_by_sku(sku):
                    continue

                brand = rng.choice(BRANDS)
                price = round(rng.uniform(low, high), 2)
                on_sale = rng.random() < 0.25
                await catalog.create_product(
                    name=f"{brand} {rng.choice(ADJECTIVES)} {noun}",
                    description=f"A {noun.lower()} from {brand}.",
                    price=price,
                    compare_at_price=round(price * 1.2, 2) if on_sale else None,
                    image_url=f"/images/{slug}/{index}.jpg",
                    category_id=category.id,
                    brand=brand,
                    sku=sku,
                    inventory=rng.randint(0, 50),
                    specifications=[{"name": "Brand", "value": brand}],
                    free_shipping=price >= 100,
                    featured=rng.random() < 0.2,
                    on_sale=on_sale,
                )
                created_products += 1

        await session.commit()

    return {"categories": len(CATEGORIES), "products_created": created_products}


async def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Seed the storefront product catalog")
    parser.add_argument(
        "--per-category",
        type=int,
        default=8,
        help="Products per category (default: 8)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Random seed (default: 42)",
    )
    args = parser.parse_args()

    configure_logging(settings.log_level, debug=True)

    logger.info("Creating tables")
    await create_tables()

    result = await seed(args.per_category, args.seed)
    logger.info("Catalog seeded", **result)


if __name__ == "__main__":
    asyncio.run(main())
