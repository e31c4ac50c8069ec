"""Buyer cart operations."""

import logging
from decimal import Decimal
from typing import Optional

from marketplace.database.mongodb import MongoDB, mongodb
from marketplace.exceptions import CartConflictError, CartItemNotFoundError, CartNotFoundError
from marketplace.models.cart import (
    CartInDB,
    CartItemCreate,
    CartLineItem,
    CartView,
    ManufacturerCartSummary,
    group_items_by_manufacturer,
)
from marketplace.services.catalog_service import CatalogService

logger = logging.getLogger(__name__)


def build_cart_view(cart: CartInDB) -> CartView:
    """Cart with its per-seller summary."""
    summaries = [
        ManufacturerCartSummary(
            manufacturerId=manufacturer_id,
            items=items,
            totalAmount=sum((item.totalPrice for item in items), Decimal("0")),
            totalItems=sum(item.quantity for item in items),
        )
        for manufacturer_id, items in group_items_by_manufacturer(cart.items).items()
    ]
    return CartView(
        buyerId=cart.buyerId,
        items=cart.items,
        totalItems=cart.totalItems,
        totalAmount=cart.totalAmount,
        version=cart.version,
        itemsByManufacturer=summaries,
    )


class CartService:
    """Add, update and remove cart lines with version-guarded writes."""

    def __init__(
        self,
        database: Optional[MongoDB] = None,
        catalog: Optional[CatalogService] = None,
    ) -> None:
        self.db = database or mongodb
        self.catalog = catalog or CatalogService(self.db)

    async def _require_cart(self, buyer_id: str) -> CartInDB:
        cart = await self.db.get_cart(buyer_id)
        if cart is None:
            raise CartNotFoundError("Cart not found")
        return cart

    async def _write(self, cart: CartInDB, items: list[CartLineItem]) -> CartView:
        written = await self.db.replace_cart_items(cart.buyerId, items, cart.version)
        if not written:
            logger.warning("Cart for %s changed since version %d", cart.buyerId, cart.version)
            raise CartConflictError("Cart was modified by another request, please retry")
        updated = cart.model_copy(update={"items": items, "version": cart.version + 1})
        return build_cart_view(updated)

    async def get_cart(self, buyer_id: str) -> CartView:
        """Return the buyer's cart; a buyer without one sees an empty cart."""
        cart = await self.db.get_cart(buyer_id)
        return build_cart_view(cart or CartInDB(buyerId=buyer_id))

    async def add_item(self, buyer_id: str, request: CartItemCreate) -> CartView:
        """Add a product, merging with an existing line that has the same specs.

        Seller and unit price always come from the catalog.
        """
        product = await self.catalog.get_product(request.productId)

        cart = await self.db.get_cart(buyer_id) or await self.db.create_cart(buyer_id)

        items = list(cart.items)
        for index, item in enumerate(items):
            if item.productId == request.productId and item.selectedSpecs == request.selectedSpecs:
                items[index] = item.model_copy(update={"quantity": item.quantity + request.quantity})
                break
        else:
            items.append(
                CartLineItem(
                    productId=request.productId,
                    manufacturerId=product.manufacturerId,
                    quantity=request.quantity,
                    unitPrice=product.pricing.basePrice,
                    selectedSpecs=request.selectedSpecs,
                    notes=request.notes,
                )
            )

        view = await self._write(cart, items)
        logger.info("Added product %s x%d to cart of %s", request.productId, request.quantity, buyer_id)
        return view

    async def update_item(self, buyer_id: str, item_id: str, quantity: int) -> CartView:
        """Change a line's quantity; zero or less removes the line."""
        cart = await self._require_cart(buyer_id)
        if cart.find_item(item_id) is None:
            raise CartItemNotFoundError("Cart item not found")

        if quantity <= 0:
            items = [item for item in cart.items if item.itemId != item_id]
        else:
            items = [
                item.model_copy(update={"quantity": quantity}) if item.itemId == item_id else item
                for item in cart.items
            ]
        return await self._write(cart, items)

    async def remove_item(self, buyer_id: str, item_id: str) -> CartView:
        cart = await self._require_cart(buyer_id)
        if cart.find_item(item_id) is None:
            raise CartItemNotFoundError("Cart item not found")
        return await self._write(cart, [item for item in cart.items if item.itemId != item_id])

    async def remove_items(self, buyer_id: str, item_ids: list[str]) -> CartView:
        """Remove several lines at once; unknown ids are ignored."""
        cart = await self._require_cart(buyer_id)
        doomed = set(item_ids)
        return await self._write(cart, [item for item in cart.items if item.itemId not in doomed])

    async def clear(self, buyer_id: str) -> CartView:
        cart = await self._require_cart(buyer_id)
        return await self._write(cart, [])


# Global cart service instance
cart_service = CartService()
