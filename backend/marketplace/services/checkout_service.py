"""Checkout: turn selected cart lines into one order per seller.

Flow of ``process_checkout``:
  1. validate the form (no database access yet)
  2. read the cart and keep the selected lines
  3. group lines by seller and price each group (subtotal, tax, shipping)
  4. insert one ``pending`` order per group, one at a time
  5. pull the converted lines from the cart, guarded by the cart version

When step 4 or 5 fails, orders already inserted by the same call are deleted
before the error is reported, so a failed checkout leaves neither orders nor a
modified cart behind.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from marketplace.config import Settings, get_settings
from marketplace.database.mongodb import MongoDB, mongodb
from marketplace.exceptions import (
    CartConflictError,
    CartEmptyError,
    CartNotFoundError,
    CheckoutError,
    EmptySelectionError,
    InstructionsTooLongError,
    InvalidCurrencyError,
    InvalidDeliveryMethodError,
    InvalidDeliveryServiceError,
    InvalidPaymentMethodError,
    MarketplaceError,
    MissingDeliveryAddressError,
    OrderNumberConflictError,
    SelectionNotFoundError,
    TooManyItemsError,
)
from marketplace.models.cart import CartLineItem, group_items_by_manufacturer
from marketplace.models.checkout import (
    CheckoutData,
    CheckoutRequest,
    CheckoutResponse,
    CreatedOrder,
    DeliveryAddress,
)
from marketplace.models.order import (
    BankDetails,
    Currency,
    DeliveryMethod,
    DeliveryService,
    OrderInDB,
    OrderLineItem,
    OrderStatus,
    PaymentInfo,
    PaymentMethod,
    ShippingAddress,
    ShippingInfo,
    Specification,
    StatusHistoryEntry,
)
from marketplace.models.user import Identity, UserInDB
from marketplace.services.user_service import UserService
from marketplace.utils.helpers import (
    generate_order_number,
    generate_uuid,
    quantize_money,
    sanitize_text,
    utcnow,
)

logger = logging.getLogger(__name__)

PICKUP_SHIPPING_NOTE = "Customer will pickup from warehouse"
ORDER_CREATED_NOTE = "Order created via checkout"


@dataclass(frozen=True)
class CheckoutPlan:
    """A validated checkout request."""

    selected_item_ids: tuple[str, ...]
    delivery_method: DeliveryMethod
    payment_method: PaymentMethod
    delivery_service: DeliveryService
    currency: Currency
    delivery_address: Optional[DeliveryAddress]
    special_instructions: str

    @property
    def tier(self) -> str:
        """Key into the delivery-days table."""
        if self.delivery_method is DeliveryMethod.PICKUP:
            return DeliveryMethod.PICKUP.value
        return self.delivery_service.value


@dataclass(frozen=True)
class GroupTotals:
    subtotal: Decimal
    tax_amount: Decimal
    shipping_cost: Decimal

    @property
    def total_amount(self) -> Decimal:
        return self.subtotal + self.tax_amount + self.shipping_cost


def compute_group_totals(
    items: list[CartLineItem], tax_rate: Decimal, shipping_cost: Decimal
) -> GroupTotals:
    """Price one seller group."""
    subtotal = sum((item.unitPrice * item.quantity for item in items), Decimal("0"))
    return GroupTotals(
        subtotal=subtotal,
        tax_amount=quantize_money(subtotal * tax_rate),
        shipping_cost=shipping_cost,
    )


def estimate_delivery(now: datetime, tier: str, settings: Settings) -> datetime:
    """Now plus the fixed number of days configured for the tier."""
    days = settings.checkout_delivery_days.get(tier, settings.checkout_delivery_days["standard"])
    return now + timedelta(days=days)


class CheckoutService:
    """Order aggregator behind ``POST /buyer/checkout``."""

    def __init__(
        self,
        database: Optional[MongoDB] = None,
        users: Optional[UserService] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.db = database or mongodb
        self.users = users or UserService(self.db)
        self.settings = settings or get_settings()

    # ── Validation ─────────────────────────────────────────────────────────────

    def validate_request(self, request: CheckoutRequest) -> CheckoutPlan:
        """Check the form before touching the database."""
        if not request.selectedItemIds:
            raise EmptySelectionError("No items selected for checkout")
        if len(request.selectedItemIds) > self.settings.checkout_max_selected_items:
            raise TooManyItemsError(
                f"Too many items selected (max {self.settings.checkout_max_selected_items})"
            )

        try:
            delivery_method = DeliveryMethod(request.deliveryMethod)
        except ValueError:
            raise InvalidDeliveryMethodError("Invalid delivery method") from None

        try:
            payment_method = PaymentMethod(request.paymentMethod)
        except ValueError:
            raise InvalidPaymentMethodError("Invalid payment method") from None

        # The service tier only matters for delivery orders
        delivery_service = DeliveryService.STANDARD
        if delivery_method is DeliveryMethod.DELIVERY and request.deliveryService:
            try:
                delivery_service = DeliveryService(request.deliveryService)
            except ValueError:
                raise InvalidDeliveryServiceError("Invalid delivery service") from None
        if (
            delivery_method is DeliveryMethod.DELIVERY
            and delivery_service.value not in self.settings.checkout_shipping_fees
        ):
            raise InvalidDeliveryServiceError("Delivery service is not offered")

        try:
            currency = Currency(request.currency or Currency.USD.value)
        except ValueError:
            raise InvalidCurrencyError("Invalid currency") from None

        instructions = request.specialInstructions or ""
        max_length = self.settings.checkout_max_instructions_length
        if len(instructions) > max_length:
            raise InstructionsTooLongError(
                f"Special instructions must be less than {max_length} characters"
            )

        if delivery_method is DeliveryMethod.DELIVERY and request.deliveryAddress is None:
            raise MissingDeliveryAddressError("Delivery address is required for delivery orders")

        return CheckoutPlan(
            selected_item_ids=tuple(dict.fromkeys(request.selectedItemIds)),
            delivery_method=delivery_method,
            payment_method=payment_method,
            delivery_service=delivery_service,
            currency=currency,
            delivery_address=request.deliveryAddress,
            special_instructions=sanitize_text(instructions),
        )

    # ── Order assembly ─────────────────────────────────────────────────────────

    def shipping_cost(self, plan: CheckoutPlan) -> Decimal:
        if plan.delivery_method is DeliveryMethod.PICKUP:
            return Decimal("0")
        return self.settings.checkout_shipping_fees[plan.delivery_service.value]

    def _shipping_info(
        self, plan: CheckoutPlan, estimated: datetime, buyer: Optional[UserInDB]
    ) -> ShippingInfo:
        if plan.delivery_method is DeliveryMethod.PICKUP:
            return ShippingInfo(
                method=DeliveryMethod.PICKUP.value,
                estimatedDelivery=estimated,
                shippingNotes=PICKUP_SHIPPING_NOTE,
            )

        address = plan.delivery_address or DeliveryAddress()
        contact_person = sanitize_text(address.name)
        contact_phone = sanitize_text(address.phoneNumber)
        if buyer is not None:
            contact_person = contact_person or buyer.contactPerson or buyer.companyName
            contact_phone = contact_phone or buyer.phone

        return ShippingInfo(
            method=plan.delivery_service.value,
            estimatedDelivery=estimated,
            address=ShippingAddress(
                street=sanitize_text(address.fullAddress),
                city=sanitize_text(address.city),
                state=sanitize_text(address.district),
                country=sanitize_text(address.country) or self.settings.checkout_default_country,
                postalCode=sanitize_text(address.postalCode),
                contactPerson=contact_person or "",
                contactPhone=contact_phone or "",
            ),
        )

    def _payment_info(self, plan: CheckoutPlan, now: datetime, estimated: datetime) -> PaymentInfo:
        if plan.payment_method is PaymentMethod.CASH_ON_DELIVERY:
            terms, due_date = "immediate", estimated
        else:
            terms = "net_30"
            due_date = now + timedelta(days=self.settings.checkout_net_payment_days)

        bank_details = None
        if plan.payment_method is PaymentMethod.BANK_TRANSFER:
            bank_details = BankDetails(
                bankName=self.settings.bank_name,
                accountNumber=self.settings.bank_account_number,
                swiftCode=self.settings.bank_swift_code,
                routingNumber=self.settings.bank_routing_number,
            )

        return PaymentInfo(
            method=plan.payment_method,
            terms=terms,
            status="pending",
            dueDate=due_date,
            bankDetails=bank_details,
        )

    def build_order(
        self,
        *,
        buyer_id: str,
        seller_id: str,
        items: list[CartLineItem],
        plan: CheckoutPlan,
        now: datetime,
        checkout_id: str,
        buyer: Optional[UserInDB] = None,
    ) -> OrderInDB:
        """Assemble the order for one seller group."""
        estimated = estimate_delivery(now, plan.tier, self.settings)
        totals = compute_group_totals(items, self.settings.checkout_tax_rate, self.shipping_cost(plan))

        return OrderInDB(
            orderNumber=generate_order_number(now),
            checkoutId=checkout_id,
            buyerId=buyer_id,
            sellerId=seller_id,
            items=[
                OrderLineItem(
                    productId=item.productId,
                    quantity=item.quantity,
                    unitPrice=item.unitPrice,
                    totalPrice=item.unitPrice * item.quantity,
                    specifications=[
                        Specification(name=name, value=value)
                        for name, value in item.selectedSpecs.items()
                    ],
                    customRequirements=item.notes,
                )
                for item in items
            ],
            subtotal=totals.subtotal,
            taxAmount=totals.tax_amount,
            shippingCost=totals.shipping_cost,
            totalAmount=totals.total_amount,
            currency=plan.currency,
            status=OrderStatus.PENDING,
            statusHistory=[
                StatusHistoryEntry(
                    status=OrderStatus.PENDING.value,
                    timestamp=now,
                    updatedBy=buyer_id,
                    notes=ORDER_CREATED_NOTE,
                )
            ],
            shipping=self._shipping_info(plan, estimated, buyer),
            payment=self._payment_info(plan, now, estimated),
            specialInstructions=plan.special_instructions,
            requestedDeliveryDate=estimated,
            createdAt=now,
            updatedAt=now,
        )

    # ── Persistence ────────────────────────────────────────────────────────────

    async def _insert_with_retry(self, order: OrderInDB) -> OrderInDB:
        """Insert, regenerating the order number once on a collision."""
        try:
            await self.db.insert_order(order)
            return order
        except OrderNumberConflictError:
            retry = order.model_copy(update={"orderNumber": generate_order_number()})
            logger.info("Retrying order %s as %s", order.orderNumber, retry.orderNumber)
            await self.db.insert_order(retry)
            return retry

    async def _compensate(self, created: list[OrderInDB]) -> None:
        if not created:
            return
        numbers = [order.orderNumber for order in created]
        try:
            deleted = await self.db.delete_orders(numbers)
            logger.warning("Rolled back %d checkout order(s): %s", deleted, numbers)
        except Exception as e:
            logger.error("Failed to roll back checkout orders %s: %s", numbers, e)

    async def process_checkout(self, identity: Identity, request: CheckoutRequest) -> CheckoutResponse:
        """Convert the selected cart lines into one order per seller."""
        plan = self.validate_request(request)
        buyer_id = identity.id

        cart = await self.db.get_cart(buyer_id)
        if cart is None:
            raise CartNotFoundError("Cart not found")
        if not cart.items:
            raise CartEmptyError("Your cart is empty")

        wanted = set(plan.selected_item_ids)
        selected = [item for item in cart.items if item.itemId in wanted]
        if not selected:
            raise SelectionNotFoundError("Selected items not found in cart")

        buyer = await self.users.get_user(buyer_id)
        now = utcnow()
        checkout_id = generate_uuid()
        created: list[OrderInDB] = []

        try:
            for seller_id, items in group_items_by_manufacturer(selected).items():
                order = self.build_order(
                    buyer_id=buyer_id,
                    seller_id=seller_id,
                    items=items,
                    plan=plan,
                    now=now,
                    checkout_id=checkout_id,
                    buyer=buyer,
                )
                created.append(await self._insert_with_retry(order))

            removed = await self.db.remove_cart_items(
                buyer_id, [item.itemId for item in selected], cart.version
            )
            if not removed:
                raise CartConflictError("Cart was modified during checkout, please retry")

        except MarketplaceError as e:
            logger.warning("Checkout %s for %s failed: %s", checkout_id, buyer_id, e.message)
            await self._compensate(created)
            raise
        except Exception as e:
            logger.error("Checkout %s for %s failed: %s", checkout_id, buyer_id, e, exc_info=True)
            await self._compensate(created)
            raise CheckoutError("Failed to process checkout") from e

        logger.info(
            "Checkout %s for %s created %d order(s): %s",
            checkout_id,
            buyer_id,
            len(created),
            [order.orderNumber for order in created],
        )

        return CheckoutResponse(
            message=f"{len(created)} order(s) created successfully",
            data=CheckoutData(
                orders=[
                    CreatedOrder(
                        orderNumber=order.orderNumber,
                        seller=order.sellerId,
                        subtotal=order.subtotal,
                        taxAmount=order.taxAmount,
                        shippingCost=order.shippingCost,
                        totalAmount=order.totalAmount,
                        currency=order.currency,
                        status=order.status,
                        paymentMethod=order.payment.method,
                        estimatedDelivery=order.shipping.estimatedDelivery,
                    )
                    for order in created
                ],
                redirectUrl=self.settings.checkout_redirect_url,
            ),
        )


# Global checkout service instance
checkout_service = CheckoutService()
