"""API routes for the marketplace backend."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from marketplace.api.dependencies import (
    get_badge_service,
    get_cart_service,
    get_checkout_service,
    get_favorite_service,
    get_identity,
    get_order_service,
    require_buyer,
    require_seller,
)
from marketplace.config import get_settings
from marketplace.database.mongodb import mongodb
from marketplace.models.cart import CartItemCreate, CartItemsRemove, CartItemUpdate, CartView
from marketplace.models.checkout import CheckoutRequest, CheckoutResponse
from marketplace.models.favorite import FavoriteInDB
from marketplace.models.order import (
    CancelOrderRequest,
    OrderInDB,
    OrderListResponse,
    OrderStatusStats,
)
from marketplace.models.request import (
    BadgeCounts,
    FavoriteCreate,
    HealthResponse,
    ProfileStats,
    SuccessResponse,
)
from marketplace.models.user import Identity
from marketplace.services.badge_service import BadgeService
from marketplace.services.cart_service import CartService
from marketplace.services.checkout_service import CheckoutService
from marketplace.services.favorite_service import FavoriteService
from marketplace.services.order_service import OrderService

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(prefix=settings.api_prefix)


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    try:
        mongodb_status = "disconnected"
        if mongodb.client is not None:
            await mongodb.client.admin.command("ping")
            mongodb_status = "connected"

        return HealthResponse(
            status="healthy" if mongodb_status == "connected" else "degraded",
            version=settings.app_version,
            services={"mongodb": mongodb_status},
        )
    except Exception as e:
        logger.error("Health check failed: %s", e)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service unhealthy",
        )


# ── Cart ──────────────────────────────────────────────────────────────────────


@router.get("/buyer/cart", response_model=CartView)
async def get_cart(
    identity: Identity = Depends(require_buyer),
    carts: CartService = Depends(get_cart_service),
) -> CartView:
    return await carts.get_cart(identity.id)


@router.post("/buyer/cart/items", response_model=CartView, status_code=status.HTTP_201_CREATED)
async def add_cart_item(
    request: CartItemCreate,
    identity: Identity = Depends(require_buyer),
    carts: CartService = Depends(get_cart_service),
) -> CartView:
    """Add a product to the cart; price and seller default to the catalog's."""
    return await carts.add_item(identity.id, request)


@router.patch("/buyer/cart/items/{item_id}", response_model=CartView)
async def update_cart_item(
    item_id: str,
    request: CartItemUpdate,
    identity: Identity = Depends(require_buyer),
    carts: CartService = Depends(get_cart_service),
) -> CartView:
    return await carts.update_item(identity.id, item_id, request.quantity)


@router.delete("/buyer/cart/items/{item_id}", response_model=CartView)
async def remove_cart_item(
    item_id: str,
    identity: Identity = Depends(require_buyer),
    carts: CartService = Depends(get_cart_service),
) -> CartView:
    return await carts.remove_item(identity.id, item_id)


@router.post("/buyer/cart/remove-multiple", response_model=CartView)
async def remove_cart_items(
    request: CartItemsRemove,
    identity: Identity = Depends(require_buyer),
    carts: CartService = Depends(get_cart_service),
) -> CartView:
    return await carts.remove_items(identity.id, request.itemIds)


# ── Checkout ──────────────────────────────────────────────────────────────────


@router.post("/buyer/checkout", response_model=CheckoutResponse)
async def process_checkout(
    request: CheckoutRequest,
    identity: Identity = Depends(require_buyer),
    checkout: CheckoutService = Depends(get_checkout_service),
) -> CheckoutResponse:
    """Convert the selected cart lines into one order per seller.

    Body:
        selectedItemIds: cart line ids to check out
        deliveryMethod: 'delivery' or 'pickup'
        paymentMethod: 'bank_transfer', 'cash_on_delivery' or 'cash_on_pickup'
        deliveryAddress: required for 'delivery'
        deliveryService: 'standard' (default), 'express' or 'economy'
        specialInstructions: optional, up to 500 characters
        currency: 'USD' (default), 'UZS' or 'EUR'
    """
    return await checkout.process_checkout(identity, request)


# ── Orders ────────────────────────────────────────────────────────────────────


@router.get("/buyer/orders", response_model=OrderListResponse)
async def list_buyer_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    order_status: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = Query(None, max_length=100),
    date_filter: Optional[str] = Query(None, alias="dateFilter", pattern="^(30|90|365)$"),
    identity: Identity = Depends(require_buyer),
    orders: OrderService = Depends(get_order_service),
) -> OrderListResponse:
    return await orders.list_buyer_orders(
        identity.id,
        page=page,
        limit=limit,
        status=order_status,
        search=search,
        date_filter=date_filter,
    )


@router.get("/seller/orders", response_model=OrderListResponse)
async def list_seller_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    order_status: Optional[str] = Query(None, alias="status"),
    identity: Identity = Depends(require_seller),
    orders: OrderService = Depends(get_order_service),
) -> OrderListResponse:
    return await orders.list_seller_orders(identity.id, page=page, limit=limit, status=order_status)


@router.get("/orders/stats", response_model=dict[str, OrderStatusStats])
async def get_order_stats(
    identity: Identity = Depends(get_identity),
    orders: OrderService = Depends(get_order_service),
) -> dict[str, OrderStatusStats]:
    return await orders.get_order_stats(identity)


@router.get("/orders/{order_number}", response_model=OrderInDB)
async def get_order(
    order_number: str,
    identity: Identity = Depends(get_identity),
    orders: OrderService = Depends(get_order_service),
) -> OrderInDB:
    return await orders.get_order(identity, order_number)


@router.post("/orders/{order_number}/cancel", response_model=OrderInDB)
async def cancel_order(
    order_number: str,
    request: CancelOrderRequest,
    identity: Identity = Depends(require_buyer),
    orders: OrderService = Depends(get_order_service),
) -> OrderInDB:
    return await orders.cancel_order(identity, order_number, request.reason)


# ── Badges & statistics ───────────────────────────────────────────────────────


@router.get("/badges", response_model=BadgeCounts)
async def get_badges(
    identity: Identity = Depends(get_identity),
    badges: BadgeService = Depends(get_badge_service),
) -> BadgeCounts:
    """Navigation badge counters; non-buyer accounts get zeros."""
    return await badges.get_badge_counts(identity)


@router.get("/buyer/profile/stats", response_model=ProfileStats)
async def get_profile_stats(
    identity: Identity = Depends(require_buyer),
    badges: BadgeService = Depends(get_badge_service),
) -> ProfileStats:
    return await badges.get_profile_stats(identity)


# ── Favorites ─────────────────────────────────────────────────────────────────


@router.get("/buyer/favorites", response_model=list[FavoriteInDB])
async def list_favorites(
    identity: Identity = Depends(require_buyer),
    favorites: FavoriteService = Depends(get_favorite_service),
) -> list[FavoriteInDB]:
    return await favorites.list_favorites(identity.id)


@router.post("/buyer/favorites", response_model=SuccessResponse)
async def add_favorite(
    request: FavoriteCreate,
    identity: Identity = Depends(require_buyer),
    favorites: FavoriteService = Depends(get_favorite_service),
) -> SuccessResponse:
    added = await favorites.add_favorite(identity.id, request.productId, request.notes)
    return SuccessResponse(
        message="Product added to favorites" if added else "Product already in favorites",
        data={"added": added},
    )


@router.delete("/buyer/favorites/{product_id}", response_model=SuccessResponse)
async def remove_favorite(
    product_id: str,
    identity: Identity = Depends(require_buyer),
    favorites: FavoriteService = Depends(get_favorite_service),
) -> SuccessResponse:
    removed = await favorites.remove_favorite(identity.id, product_id)
    return SuccessResponse(
        message="Product removed from favorites" if removed else "Product was not a favorite",
        data={"removed": removed},
    )
