"""Catalog product data models."""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class Pricing(BaseModel):
    """Product pricing block."""

    basePrice: Decimal = Field(..., ge=0, description="List price per unit")
    currency: str = Field(default="USD", pattern="^(USD|UZS|EUR|CNY|KZT)$")
    priceType: str = Field(default="fixed", pattern="^(fixed|negotiable|quote_based)$")
    minimumOrderQuantity: int = Field(default=1, ge=1)


class ProductBase(BaseModel):
    """Base catalog product owned by a manufacturer."""

    productId: str = Field(..., description="Unique product identifier")
    name: str = Field(..., min_length=1, max_length=200)
    description: str = Field(default="", max_length=2000)
    manufacturerId: str = Field(..., description="Seller that fulfils this product")
    category: str = Field(..., min_length=1, max_length=100)
    pricing: Pricing
    status: str = Field(default="active", pattern="^(draft|active|inactive|discontinued)$")


class Product(ProductBase):
    """Product as returned to API callers."""

    manufacturerName: Optional[str] = None

    model_config = {
        "json_schema_extra": {
            "example": {
                "productId": "prod_cotton_yarn",
                "name": "Combed cotton yarn Ne 30/1",
                "description": "Ring-spun combed cotton yarn for knitting.",
                "manufacturerId": "mfr_001",
                "category": "textiles_clothing",
                "pricing": {
                    "basePrice": "10.00",
                    "currency": "USD",
                    "priceType": "fixed",
                    "minimumOrderQuantity": 1,
                },
                "status": "active",
            }
        }
    }
