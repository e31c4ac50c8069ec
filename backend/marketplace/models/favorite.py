"""Favorite product models."""

from datetime import UTC, datetime

from pydantic import BaseModel, Field


class FavoriteInDB(BaseModel):
    """A product saved by a buyer."""

    buyerId: str
    productId: str
    manufacturerId: str
    notes: str = ""
    addedAt: datetime = Field(default_factory=lambda: datetime.now(UTC))
