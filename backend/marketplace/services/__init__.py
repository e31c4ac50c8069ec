"""Services package."""

from marketplace.services.badge_service import BadgeService, badge_service
from marketplace.services.cart_service import CartService, cart_service
from marketplace.services.catalog_service import CatalogService, catalog_service
from marketplace.services.checkout_service import CheckoutService, checkout_service
from marketplace.services.data_loader import DataLoader
from marketplace.services.favorite_service import FavoriteService, favorite_service
from marketplace.services.order_service import OrderService, order_service
from marketplace.services.user_service import UserService, user_service

__all__ = [
    "BadgeService",
    "badge_service",
    "CartService",
    "cart_service",
    "CatalogService",
    "catalog_service",
    "CheckoutService",
    "checkout_service",
    "DataLoader",
    "FavoriteService",
    "favorite_service",
    "OrderService",
    "order_service",
    "UserService",
    "user_service",
]
