"""Request-scoped dependencies: caller identity and service handles."""

from typing import Optional

from fastapi import Depends, Header

from marketplace.exceptions import AuthenticationError, ForbiddenError
from marketplace.models.user import Identity
from marketplace.services.badge_service import BadgeService, badge_service
from marketplace.services.cart_service import CartService, cart_service
from marketplace.services.checkout_service import CheckoutService, checkout_service
from marketplace.services.favorite_service import FavoriteService, favorite_service
from marketplace.services.order_service import OrderService, order_service


async def get_identity(
    user_id: Optional[str] = Header(None, alias="X-User-ID"),
    company_type: Optional[str] = Header(None, alias="X-Company-Type"),
    role: Optional[str] = Header(None, alias="X-User-Role"),
) -> Identity:
    """Resolve the caller once; downstream code only sees ``Identity``.

    Headers are set by the authenticating gateway in front of this service.
    """
    if not user_id or not user_id.strip():
        raise AuthenticationError("Authentication required")
    return Identity(
        id=user_id.strip(),
        companyType=(company_type or "").strip().lower() or None,
        role=(role or "").strip().lower() or None,
    )


async def require_buyer(identity: Identity = Depends(get_identity)) -> Identity:
    if not identity.is_buyer:
        raise ForbiddenError("Only buyer accounts can use this endpoint")
    return identity


async def require_seller(identity: Identity = Depends(get_identity)) -> Identity:
    if not identity.is_seller:
        raise ForbiddenError("Only manufacturer accounts can use this endpoint")
    return identity


def get_cart_service() -> CartService:
    return cart_service


def get_checkout_service() -> CheckoutService:
    return checkout_service


def get_order_service() -> OrderService:
    return order_service


def get_badge_service() -> BadgeService:
    return badge_service


def get_favorite_service() -> FavoriteService:
    return favorite_service
