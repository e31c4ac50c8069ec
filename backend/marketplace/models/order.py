"""Order data models."""

from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class OrderStatus(str, Enum):
    """Lifecycle states of an order."""

    DRAFT = "draft"
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    MANUFACTURING = "manufacturing"
    READY_TO_SHIP = "ready_to_ship"
    SHIPPED = "shipped"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"
    DISPUTED = "disputed"


ACTIVE_ORDER_STATUSES = (
    OrderStatus.PENDING.value,
    OrderStatus.CONFIRMED.value,
    OrderStatus.PROCESSING.value,
    OrderStatus.MANUFACTURING.value,
    OrderStatus.SHIPPED.value,
)

CANCELLABLE_ORDER_STATUSES = (
    OrderStatus.PENDING.value,
    OrderStatus.CONFIRMED.value,
    OrderStatus.PROCESSING.value,
)


class DeliveryMethod(str, Enum):
    DELIVERY = "delivery"
    PICKUP = "pickup"


class DeliveryService(str, Enum):
    STANDARD = "standard"
    EXPRESS = "express"
    ECONOMY = "economy"


class PaymentMethod(str, Enum):
    BANK_TRANSFER = "bank_transfer"
    CASH_ON_DELIVERY = "cash_on_delivery"
    CASH_ON_PICKUP = "cash_on_pickup"


class Currency(str, Enum):
    USD = "USD"
    UZS = "UZS"
    EUR = "EUR"


class Specification(BaseModel):
    name: str
    value: str


class OrderLineItem(BaseModel):
    """Snapshot of a cart line at order-creation time."""

    productId: str
    quantity: int = Field(..., ge=1)
    unitPrice: Decimal = Field(..., ge=0)
    totalPrice: Decimal = Field(..., ge=0)
    specifications: list[Specification] = Field(default_factory=list)
    customRequirements: str = ""

    model_config = {"frozen": True}


class StatusHistoryEntry(BaseModel):
    status: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updatedBy: Optional[str] = None
    notes: str = ""


class ShippingAddress(BaseModel):
    street: str = ""
    city: str = ""
    state: str = ""
    country: str = ""
    postalCode: str = ""
    contactPerson: str = ""
    contactPhone: str = ""


class ShippingInfo(BaseModel):
    method: str = Field(..., pattern="^(standard|express|economy|freight|pickup|custom)$")
    address: Optional[ShippingAddress] = None
    estimatedDelivery: datetime
    shippingNotes: str = ""


class BankDetails(BaseModel):
    bankName: str
    accountNumber: str
    swiftCode: str
    routingNumber: str


class PaymentInfo(BaseModel):
    method: PaymentMethod
    terms: str = Field(default="net_30", pattern="^(immediate|net_15|net_30|net_60|net_90|custom)$")
    status: str = Field(default="pending", pattern="^(pending|partial|paid|overdue|refunded)$")
    dueDate: Optional[datetime] = None
    bankDetails: Optional[BankDetails] = None

    model_config = {"use_enum_values": True}


class Cancellation(BaseModel):
    reason: str = ""
    cancelledBy: str
    cancelledDate: datetime = Field(default_factory=lambda: datetime.now(UTC))


class OrderInDB(BaseModel):
    """Order model as stored in database."""

    orderNumber: str = Field(..., description="Unique human-readable order number")
    checkoutId: Optional[str] = Field(None, description="Checkout call that produced this order")
    buyerId: str
    sellerId: str
    items: list[OrderLineItem] = Field(..., min_length=1)
    subtotal: Decimal = Field(..., ge=0)
    taxAmount: Decimal = Field(default=Decimal("0"), ge=0)
    shippingCost: Decimal = Field(default=Decimal("0"), ge=0)
    discountAmount: Decimal = Field(default=Decimal("0"), ge=0)
    totalAmount: Decimal = Field(..., ge=0)
    currency: Currency = Currency.USD
    status: OrderStatus = OrderStatus.PENDING
    statusHistory: list[StatusHistoryEntry] = Field(default_factory=list)
    shipping: ShippingInfo
    payment: PaymentInfo
    specialInstructions: str = ""
    requestedDeliveryDate: Optional[datetime] = None
    cancellation: Optional[Cancellation] = None
    createdAt: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updatedAt: datetime = Field(default_factory=lambda: datetime.now(UTC))

    model_config = {
        "use_enum_values": True,
        "json_schema_extra": {
            "example": {
                "orderNumber": "ORD-1760860800000-7QZK",
                "buyerId": "buyer_001",
                "sellerId": "mfr_001",
                "items": [
                    {
                        "productId": "prod_cotton_yarn",
                        "quantity": 2,
                        "unitPrice": "10.00",
                        "totalPrice": "20.00",
                        "specifications": [{"name": "color", "value": "raw white"}],
                        "customRequirements": "",
                    }
                ],
                "subtotal": "20.00",
                "taxAmount": "2.00",
                "shippingCost": "0.00",
                "totalAmount": "22.00",
                "currency": "USD",
                "status": "pending",
            }
        },
    }

    @property
    def can_be_cancelled(self) -> bool:
        return self.status in CANCELLABLE_ORDER_STATUSES


class OrderListItem(BaseModel):
    """Row in an order listing."""

    orderNumber: str
    buyerId: str
    sellerId: str
    itemCount: int
    totalAmount: Decimal
    currency: str
    status: str
    orderDate: datetime
    expectedDelivery: Optional[datetime] = None


class Pagination(BaseModel):
    currentPage: int
    totalPages: int
    totalItems: int
    hasNext: bool
    hasPrev: bool


class OrderListResponse(BaseModel):
    orders: list[OrderListItem]
    pagination: Pagination


class CancelOrderRequest(BaseModel):
    reason: str = Field(default="", max_length=500)


class OrderStatusStats(BaseModel):
    count: int
    totalValue: Decimal
