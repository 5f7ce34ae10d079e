"""Seed the product catalog used by checkout and substitutions."""

import asyncio
from decimal import Decimal

from pickup.models.catalog import CatalogProduct
from pickup.state.catalog import ProductCatalog
from pickup.state.manager import StateManager


async def seed_catalog() -> None:
    """Seed catalog products."""
    print("Seeding product catalog...")

    state_manager = StateManager()
    await state_manager.connect()
    catalog = ProductCatalog(state_manager)

    products = [
        CatalogProduct(
            id="vape-mint-5000",
            name="Mint Disposable 5000",
            price=Decimal("19.99"),
            category="vapes",
        ),
        CatalogProduct(
            id="vape-mango-5000",
            name="Mango Disposable 5000",
            price=Decimal("19.99"),
            category="vapes",
        ),
        CatalogProduct(
            id="vape-blueberry-5000",
            name="Blueberry Disposable 5000",
            price=Decimal("19.99"),
            category="vapes",
        ),
        CatalogProduct(
            id="papers-king-size",
            name="King Size Rolling Papers",
            price=Decimal("3.49"),
            category="accessories",
        ),
        CatalogProduct(
            id="lighter-classic",
            name="Classic Lighter",
            price=Decimal("2.99"),
            category="accessories",
        ),
        CatalogProduct(
            id="grinder-4pc",
            name="4-Piece Grinder",
            price=Decimal("24.99"),
            category="accessories",
        ),
        CatalogProduct(
            id="glass-pipe-small",
            name="Small Glass Pipe",
            price=Decimal("14.99"),
            category="glass",
        ),
        CatalogProduct(
            id="kratom-caps-30",
            name="Kratom Capsules (30ct)",
            price=Decimal("29.99"),
            category="wellness",
            in_stock=False,
        ),
    ]

    for product in products:
        await catalog.save_product(product)
        print(f"  ✓ Added {product.name} (${product.price})")

    await state_manager.disconnect()
    print("✓ Catalog seeded successfully\n")


async def main() -> None:
    """Run all seed functions."""
    print("\n" + "=" * 50)
    print("  Seeding Pickup Order Data")
    print("=" * 50 + "\n")

    await seed_catalog()

    print("=" * 50)
    print("  ✓ All data seeded successfully!")
    print("=" * 50 + "\n")


if __name__ == "__main__":
    asyncio.run(main())
