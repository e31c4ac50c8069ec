"""Product data loading script.

Loads catalog JSON exports from backend/data/products/ into the MongoDB
products collection. Records are upserted by productId, so re-running the
script after editing a file updates the existing products.

Usage:
    python -m scripts.load_products           # prompts before clearing
    python -m scripts.load_products --clear    # clears the catalog without prompting
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from marketplace.database.mongodb import mongodb
from marketplace.services.catalog_service import catalog_service
from marketplace.services.data_loader import DataLoader
from marketplace.utils.logger import setup_logging

setup_logging()
logger = logging.getLogger(__name__)


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Load catalog products into MongoDB")
    parser.add_argument(
        "--clear",
        action="store_true",
        help="Delete existing catalog products before loading",
    )
    return parser.parse_args()


async def load_products(*, clear: bool = False) -> None:
    """Load catalog JSON files into the products collection."""
    try:
        logger.info("Starting product data loading...")

        data_dir = Path(__file__).parent.parent / "data" / "products"
        if not data_dir.exists():
            logger.error("Products directory not found: %s", data_dir)
            return

        logger.info("Loading products from: %s", data_dir)
        products = DataLoader.load_products_from_directory(data_dir)

        if not products:
            logger.warning("No products found to load")
            return

        logger.info("Loaded %d products from JSON files", len(products))

        await mongodb.connect()

        should_clear = clear
        if not should_clear and sys.stdin.isatty():
            should_clear = input("Clear existing catalog products? (y/n): ").lower() == "y"

        if should_clear:
            deleted = await mongodb.delete_all_products()
            logger.info("Cleared %d existing products", deleted)

        for product in products:
            await catalog_service.save_product(product)

        logger.info("Product loading completed successfully: %d products", len(products))

    except Exception as e:
        logger.error("Error loading products: %s", e)
        raise
    finally:
        await mongodb.disconnect()


if __name__ == "__main__":
    args = _parse_args()
    asyncio.run(load_products(clear=args.clear))
