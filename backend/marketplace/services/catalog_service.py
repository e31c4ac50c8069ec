"""Catalog lookups."""

import logging
from typing import Optional

from marketplace.database.mongodb import MongoDB, mongodb
from marketplace.exceptions import ProductNotFoundError
from marketplace.models.product import ProductBase

logger = logging.getLogger(__name__)


class CatalogService:
    """Resolves product pricing and ownership for the cart and favorites."""

    def __init__(self, database: Optional[MongoDB] = None) -> None:
        self.db = database or mongodb

    async def get_product(self, product_id: str) -> ProductBase:
        product = await self.db.get_product(product_id)
        if product is None:
            logger.info("Product %s not found in catalog", product_id)
            raise ProductNotFoundError(f"Product not found: {product_id}")
        return product

    async def save_product(self, product: ProductBase) -> None:
        await self.db.upsert_product(product)


# Global catalog service instance
catalog_service = CatalogService()
