"""Data models package."""

from marketplace.models.cart import (
    CartInDB,
    CartItemCreate,
    CartItemsRemove,
    CartItemUpdate,
    CartLineItem,
    CartView,
    ManufacturerCartSummary,
)
from marketplace.models.checkout import (
    CheckoutData,
    CheckoutRequest,
    CheckoutResponse,
    CreatedOrder,
    DeliveryAddress,
)
from marketplace.models.order import (
    Currency,
    DeliveryMethod,
    DeliveryService,
    OrderInDB,
    OrderLineItem,
    OrderListResponse,
    OrderStatus,
    PaymentMethod,
)
from marketplace.models.product import Pricing, Product, ProductBase
from marketplace.models.request import (
    BadgeCounts,
    ErrorResponse,
    FavoriteCreate,
    HealthResponse,
    ProfileStats,
    SuccessResponse,
)
from marketplace.models.user import Identity, UserCreate, UserInDB

__all__ = [
    # Account models
    "Identity",
    "UserCreate",
    "UserInDB",
    # Catalog models
    "Pricing",
    "Product",
    "ProductBase",
    # Cart models
    "CartInDB",
    "CartItemCreate",
    "CartItemUpdate",
    "CartItemsRemove",
    "CartLineItem",
    "CartView",
    "ManufacturerCartSummary",
    # Order models
    "Currency",
    "DeliveryMethod",
    "DeliveryService",
    "OrderInDB",
    "OrderLineItem",
    "OrderListResponse",
    "OrderStatus",
    "PaymentMethod",
    # Checkout models
    "CheckoutData",
    "CheckoutRequest",
    "CheckoutResponse",
    "CreatedOrder",
    "DeliveryAddress",
    # Request/Response models
    "BadgeCounts",
    "ErrorResponse",
    "FavoriteCreate",
    "HealthResponse",
    "ProfileStats",
    "SuccessResponse",
]
