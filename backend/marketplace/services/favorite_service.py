"""Buyer favorite products."""

import logging
from typing import Optional

from marketplace.database.mongodb import MongoDB, mongodb
from marketplace.models.favorite import FavoriteInDB
from marketplace.services.catalog_service import CatalogService

logger = logging.getLogger(__name__)


class FavoriteService:
    def __init__(
        self,
        database: Optional[MongoDB] = None,
        catalog: Optional[CatalogService] = None,
    ) -> None:
        self.db = database or mongodb
        self.catalog = catalog or CatalogService(self.db)

    async def add_favorite(self, buyer_id: str, product_id: str, notes: str = "") -> bool:
        """Save a product; returns False when it was already a favorite."""
        product = await self.catalog.get_product(product_id)
        added = await self.db.add_favorite(
            FavoriteInDB(
                buyerId=buyer_id,
                productId=product_id,
                manufacturerId=product.manufacturerId,
                notes=notes,
            )
        )
        if added:
            logger.info("Buyer %s saved product %s", buyer_id, product_id)
        return added

    async def remove_favorite(self, buyer_id: str, product_id: str) -> bool:
        return await self.db.remove_favorite(buyer_id, product_id)

    async def list_favorites(self, buyer_id: str) -> list[FavoriteInDB]:
        return await self.db.list_favorites(buyer_id)


# Global favorite service instance
favorite_service = FavoriteService()
