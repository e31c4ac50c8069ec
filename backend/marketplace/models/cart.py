"""Shopping cart data models."""

from datetime import UTC, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, computed_field

from marketplace.utils.helpers import generate_uuid


class CartLineItem(BaseModel):
    """One product, quantity and price pending checkout."""

    itemId: str = Field(default_factory=generate_uuid, description="Cart line identifier")
    productId: str
    manufacturerId: str = Field(..., description="Seller that fulfils this line")
    quantity: int = Field(..., ge=1)
    unitPrice: Decimal = Field(..., ge=0)
    selectedSpecs: dict[str, str] = Field(default_factory=dict)
    notes: str = ""
    addedAt: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @computed_field
    @property
    def totalPrice(self) -> Decimal:
        return self.unitPrice * self.quantity


class CartInDB(BaseModel):
    """Buyer cart as stored in database."""

    buyerId: str
    items: list[CartLineItem] = Field(default_factory=list)
    version: int = Field(default=0, ge=0, description="Incremented on every write")
    createdAt: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updatedAt: datetime = Field(default_factory=lambda: datetime.now(UTC))
    lastActivity: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @computed_field
    @property
    def totalItems(self) -> int:
        return len(self.items)

    @computed_field
    @property
    def totalAmount(self) -> Decimal:
        return sum((item.totalPrice for item in self.items), Decimal("0"))

    def find_item(self, item_id: str) -> Optional[CartLineItem]:
        for item in self.items:
            if item.itemId == item_id:
                return item
        return None


def group_items_by_manufacturer(items: list[CartLineItem]) -> dict[str, list[CartLineItem]]:
    """Partition cart lines by seller, keeping first-appearance order."""
    groups: dict[str, list[CartLineItem]] = {}
    for item in items:
        groups.setdefault(item.manufacturerId, []).append(item)
    return groups


class CartItemCreate(BaseModel):
    """Add-to-cart request."""

    productId: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1, le=100000)
    selectedSpecs: dict[str, str] = Field(default_factory=dict)
    notes: str = Field(default="", max_length=1000)

    model_config = {
        "json_schema_extra": {
            "example": {
                "productId": "prod_cotton_yarn",
                "quantity": 20,
                "selectedSpecs": {"color": "raw white"},
                "notes": "Pack in 50kg bales",
            }
        }
    }


class CartItemUpdate(BaseModel):
    """Quantity change for one cart line; zero or less removes it."""

    quantity: int


class CartItemsRemove(BaseModel):
    """Bulk removal request."""

    itemIds: list[str] = Field(..., min_length=1)


class ManufacturerCartSummary(BaseModel):
    """Cart lines belonging to one seller."""

    manufacturerId: str
    items: list[CartLineItem]
    totalAmount: Decimal
    totalItems: int


class CartView(BaseModel):
    """Cart as returned to the buyer."""

    buyerId: str
    items: list[CartLineItem]
    totalItems: int
    totalAmount: Decimal
    version: int
    itemsByManufacturer: list[ManufacturerCartSummary]
