"""API request and response models shared across endpoints."""

from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Error response model."""

    success: bool = False
    message: str
    code: str
    error: Optional[str] = None


class SuccessResponse(BaseModel):
    """Generic acknowledgement."""

    success: bool = True
    message: str
    data: Optional[dict[str, Any]] = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    services: dict[str, str]


class BadgeCounts(BaseModel):
    """Navigation badge counters for a buyer."""

    cartItemsCount: int = 0
    activeOrdersCount: int = 0
    unreadMessagesCount: int = 0
    favoritesCount: int = 0


class ProfileStats(BaseModel):
    """Buyer dashboard statistics."""

    totalOrders: int = 0
    activeOrders: int = 0
    totalSpent: Decimal = Decimal("0")
    favoriteProducts: int = 0


class FavoriteCreate(BaseModel):
    productId: str = Field(..., min_length=1)
    notes: str = Field(default="", max_length=500)
