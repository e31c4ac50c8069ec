"""Checkout request and response models.

Enumerated fields arrive as plain strings so the checkout service can report
which one is wrong with its own error code instead of a generic 422.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class DeliveryAddress(BaseModel):
    """Address captured on the checkout form."""

    fullAddress: str = Field(default="", max_length=500)
    city: str = Field(default="", max_length=100)
    district: str = Field(default="", max_length=100)
    country: Optional[str] = Field(None, max_length=100)
    postalCode: str = Field(default="", max_length=20)
    name: str = Field(default="", max_length=100)
    phoneNumber: str = Field(default="", max_length=30)


class CheckoutRequest(BaseModel):
    """Checkout form submitted by a buyer."""

    selectedItemIds: list[str] = Field(default_factory=list)
    deliveryMethod: str = ""
    paymentMethod: str = ""
    deliveryAddress: Optional[DeliveryAddress] = None
    deliveryService: Optional[str] = None
    specialInstructions: Optional[str] = None
    currency: str = "USD"

    model_config = {
        "json_schema_extra": {
            "example": {
                "selectedItemIds": ["5b0f6c1e-4d1f-4c55-9a39-1f6f8f8f2a10"],
                "deliveryMethod": "delivery",
                "deliveryService": "express",
                "paymentMethod": "bank_transfer",
                "deliveryAddress": {
                    "fullAddress": "12 Amir Temur Ave",
                    "city": "Tashkent",
                    "district": "Yunusabad",
                    "name": "Dilshod Karimov",
                    "phoneNumber": "+998901234567",
                },
                "specialInstructions": "Deliver before noon",
                "currency": "USD",
            }
        }
    }


class CreatedOrder(BaseModel):
    """Summary of one order produced by a checkout."""

    orderNumber: str
    seller: str
    subtotal: Decimal
    taxAmount: Decimal
    shippingCost: Decimal
    totalAmount: Decimal
    currency: str
    status: str
    paymentMethod: str
    estimatedDelivery: datetime


class CheckoutData(BaseModel):
    orders: list[CreatedOrder]
    redirectUrl: str


class CheckoutResponse(BaseModel):
    """Successful checkout response."""

    success: bool = True
    message: str
    data: CheckoutData
