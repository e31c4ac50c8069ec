"""Tests for CheckoutService: grouping, pricing, validation and compensation.

Runs against the in-memory FakeMongoDB, no database needed.
"""

from datetime import timedelta
from decimal import Decimal

import pytest

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
    MissingDeliveryAddressError,
    OrderNumberConflictError,
    SelectionNotFoundError,
    TooManyItemsError,
)
from marketplace.models.cart import CartItemCreate
from marketplace.models.checkout import CheckoutRequest, DeliveryAddress
from marketplace.models.product import Pricing, ProductBase
from marketplace.models.user import UserCreate
from marketplace.services.cart_service import CartService
from marketplace.services.checkout_service import (
    CheckoutService,
    compute_group_totals,
    estimate_delivery,
)
from marketplace.utils.helpers import utcnow
from tests.fakes import make_line, seed_cart

ADDRESS = DeliveryAddress(fullAddress="12 Amir Temur Ave", city="Tashkent", district="Yunusabad")


@pytest.fixture()
def service(db, settings) -> CheckoutService:
    return CheckoutService(database=db, settings=settings)


@pytest.fixture()
def three_line_cart(db, buyer):
    """Two lines from seller A, one from seller B."""
    return seed_cart(
        db,
        buyer.id,
        [
            make_line("prod_yarn", "mfr_A", 2, "10.00"),
            make_line("prod_thread", "mfr_A", 1, "5.00"),
            make_line("prod_box", "mfr_B", 4, "7.50"),
        ],
    )


def _pickup(item_ids, **overrides) -> CheckoutRequest:
    fields = {
        "selectedItemIds": item_ids,
        "deliveryMethod": "pickup",
        "paymentMethod": "cash_on_pickup",
    }
    fields.update(overrides)
    return CheckoutRequest(**fields)


def _delivery(item_ids, **overrides) -> CheckoutRequest:
    fields = {
        "selectedItemIds": item_ids,
        "deliveryMethod": "delivery",
        "paymentMethod": "bank_transfer",
        "deliveryService": "standard",
        "deliveryAddress": ADDRESS,
    }
    fields.update(overrides)
    return CheckoutRequest(**fields)


def _ids(cart):
    return [item.itemId for item in cart.items]


class TestCheckoutScenario:

    async def test_two_sellers_pickup(self, service, db, buyer, three_line_cart):
        response = await service.process_checkout(buyer, _pickup(_ids(three_line_cart)))

        assert response.success is True
        assert response.data.redirectUrl == "/buyer/orders"
        assert len(response.data.orders) == 2

        order_a, order_b = response.data.orders
        assert order_a.seller == "mfr_A"
        assert order_a.subtotal == Decimal("25.00")
        assert order_a.taxAmount == Decimal("2.50")
        assert order_a.shippingCost == Decimal("0")
        assert order_a.totalAmount == Decimal("27.50")

        assert order_b.seller == "mfr_B"
        assert order_b.subtotal == Decimal("30.00")
        assert order_b.taxAmount == Decimal("3.00")
        assert order_b.shippingCost == Decimal("0")
        assert order_b.totalAmount == Decimal("33.00")

        assert db.carts[buyer.id].items == []

    async def test_orders_persisted_pending(self, service, db, buyer, three_line_cart):
        response = await service.process_checkout(buyer, _pickup(_ids(three_line_cart)))

        for created in response.data.orders:
            stored = db.orders[created.orderNumber]
            assert stored.status == "pending"
            assert stored.buyerId == buyer.id
            assert stored.statusHistory[0].status == "pending"
            assert stored.statusHistory[0].updatedBy == buyer.id
            assert stored.payment.method == "cash_on_pickup"
            assert stored.shipping.method == "pickup"
            assert stored.shipping.shippingNotes == "Customer will pickup from warehouse"

    async def test_orders_share_checkout_id(self, service, db, buyer, three_line_cart):
        await service.process_checkout(buyer, _pickup(_ids(three_line_cart)))

        checkout_ids = {order.checkoutId for order in db.orders.values()}
        assert len(checkout_ids) == 1
        assert None not in checkout_ids


class TestCheckoutInvariants:

    async def test_subtotals_cover_exactly_the_selection(self, service, db, buyer, three_line_cart):
        selected = [three_line_cart.items[0], three_line_cart.items[2]]
        response = await service.process_checkout(
            buyer, _pickup([item.itemId for item in selected])
        )

        expected = sum((item.unitPrice * item.quantity for item in selected), Decimal("0"))
        assert sum((order.subtotal for order in response.data.orders), Decimal("0")) == expected

    async def test_total_is_subtotal_plus_tax_plus_shipping(self, service, db, buyer, three_line_cart):
        response = await service.process_checkout(
            buyer, _delivery(_ids(three_line_cart), deliveryService="express")
        )

        for order in response.data.orders:
            assert order.totalAmount == order.subtotal + order.taxAmount + order.shippingCost
            assert order.shippingCost == Decimal("15.00")

    async def test_one_order_per_seller_with_only_its_items(self, service, db, buyer):
        cart = seed_cart(
            db,
            buyer.id,
            [
                make_line("p1", "mfr_A", 1, "1.00"),
                make_line("p2", "mfr_B", 1, "2.00"),
                make_line("p3", "mfr_C", 1, "3.00"),
                make_line("p4", "mfr_B", 1, "4.00"),
            ],
        )

        response = await service.process_checkout(buyer, _pickup(_ids(cart)))

        assert [order.seller for order in response.data.orders] == ["mfr_A", "mfr_B", "mfr_C"]
        by_seller = {order.sellerId: order for order in db.orders.values()}
        assert [item.productId for item in by_seller["mfr_B"].items] == ["p2", "p4"]
        assert [item.productId for item in by_seller["mfr_A"].items] == ["p1"]

    async def test_unselected_items_stay_in_cart(self, service, db, buyer, three_line_cart):
        keep = three_line_cart.items[1]
        selected = [three_line_cart.items[0].itemId, three_line_cart.items[2].itemId]

        await service.process_checkout(buyer, _pickup(selected))

        remaining = db.carts[buyer.id].items
        assert [item.itemId for item in remaining] == [keep.itemId]
        assert remaining[0].quantity == keep.quantity

    async def test_cart_version_bumped(self, service, db, buyer, three_line_cart):
        await service.process_checkout(buyer, _pickup(_ids(three_line_cart)))
        assert db.carts[buyer.id].version == three_line_cart.version + 1

    async def test_duplicate_selected_ids_count_once(self, service, db, buyer, three_line_cart):
        first = three_line_cart.items[0].itemId
        response = await service.process_checkout(buyer, _pickup([first, first]))

        assert len(response.data.orders) == 1
        assert response.data.orders[0].subtotal == Decimal("20.00")

    async def test_pickup_has_no_shipping_cost(self, service, db, buyer, three_line_cart):
        response = await service.process_checkout(
            buyer, _pickup(_ids(three_line_cart), deliveryService="express")
        )
        assert all(order.shippingCost == 0 for order in response.data.orders)

    @pytest.mark.parametrize(
        ("delivery_service", "days", "fee"),
        [("express", 2, "15.00"), ("standard", 5, "8.00"), ("economy", 10, "3.00")],
    )
    async def test_delivery_estimate_and_fee(
        self, service, db, buyer, three_line_cart, delivery_service, days, fee
    ):
        await service.process_checkout(
            buyer, _delivery(_ids(three_line_cart), deliveryService=delivery_service)
        )

        for order in db.orders.values():
            assert order.shipping.estimatedDelivery - order.createdAt == timedelta(days=days)
            assert order.requestedDeliveryDate == order.shipping.estimatedDelivery
            assert order.shippingCost == Decimal(fee)
            assert order.shipping.method == delivery_service

    async def test_pickup_estimate_is_one_day(self, service, db, buyer, three_line_cart):
        await service.process_checkout(buyer, _pickup(_ids(three_line_cart)))

        for order in db.orders.values():
            assert order.shipping.estimatedDelivery - order.createdAt == timedelta(days=1)


class TestCheckoutPaymentAndShipping:

    async def test_bank_transfer_net_30_with_bank_details(self, service, db, buyer, settings):
        cart = seed_cart(db, buyer.id, [make_line("p1", "mfr_A", 1, "10.00")])

        await service.process_checkout(buyer, _delivery(_ids(cart)))

        (order,) = db.orders.values()
        assert order.payment.terms == "net_30"
        assert order.payment.status == "pending"
        assert order.payment.dueDate - order.createdAt == timedelta(days=30)
        assert order.payment.bankDetails.swiftCode == settings.bank_swift_code

    async def test_cash_on_delivery_due_on_arrival(self, service, db, buyer):
        cart = seed_cart(db, buyer.id, [make_line("p1", "mfr_A", 1, "10.00")])

        await service.process_checkout(
            buyer, _delivery(_ids(cart), paymentMethod="cash_on_delivery")
        )

        (order,) = db.orders.values()
        assert order.payment.terms == "immediate"
        assert order.payment.dueDate == order.shipping.estimatedDelivery
        assert order.payment.bankDetails is None

    async def test_address_falls_back_to_buyer_contact(self, service, db, buyer):
        await db.create_user(
            UserCreate(
                userId=buyer.id,
                companyName="Tashkent Textile Trading",
                companyType="distributor",
                contactPerson="Dilshod Karimov",
                email="dilshod@example.com",
                phone="+998901234567",
            )
        )
        cart = seed_cart(db, buyer.id, [make_line("p1", "mfr_A", 1, "10.00")])

        await service.process_checkout(buyer, _delivery(_ids(cart)))

        (order,) = db.orders.values()
        address = order.shipping.address
        assert address.street == "12 Amir Temur Ave"
        assert address.state == "Yunusabad"
        assert address.country == "Uzbekistan"
        assert address.contactPerson == "Dilshod Karimov"
        assert address.contactPhone == "+998901234567"

    async def test_special_instructions_are_escaped(self, service, db, buyer):
        cart = seed_cart(db, buyer.id, [make_line("p1", "mfr_A", 1, "10.00")])

        await service.process_checkout(
            buyer, _pickup(_ids(cart), specialInstructions="  <b>fragile</b> ")
        )

        (order,) = db.orders.values()
        assert order.specialInstructions == "&lt;b&gt;fragile&lt;/b&gt;"

    async def test_escaped_instructions_keep_their_full_text(self, service, db, buyer):
        instructions = ("Fragile & keep dry " * 26).strip()
        assert len(instructions) < 500
        cart = seed_cart(db, buyer.id, [make_line("p1", "mfr_A", 1, "10.00")])

        await service.process_checkout(buyer, _pickup(_ids(cart), specialInstructions=instructions))

        (order,) = db.orders.values()
        assert order.specialInstructions == instructions.replace("&", "&amp;")
        assert order.specialInstructions.endswith("&amp; keep dry")

    async def test_escaped_address_is_not_cut(self, service, db, buyer):
        street = ("Block 7 & 8 " * 41).strip()
        cart = seed_cart(db, buyer.id, [make_line("p1", "mfr_A", 1, "10.00")])
        address = ADDRESS.model_copy(update={"fullAddress": street})

        await service.process_checkout(buyer, _delivery(_ids(cart), deliveryAddress=address))

        (order,) = db.orders.values()
        assert order.shipping.address.street == street.replace("&", "&amp;")

    async def test_specs_become_order_specifications(self, service, db, buyer):
        cart = seed_cart(
            db,
            buyer.id,
            [make_line("p1", "mfr_A", 3, "2.00", selectedSpecs={"color": "red"}, notes="bales")],
        )

        await service.process_checkout(buyer, _pickup(_ids(cart), currency="UZS"))

        (order,) = db.orders.values()
        assert order.currency == "UZS"
        (line,) = order.items
        assert line.totalPrice == Decimal("6.00")
        assert [(attr.name, attr.value) for attr in line.specifications] == [("color", "red")]
        assert line.customRequirements == "bales"


class TestCheckoutCatalogPricing:

    async def test_orders_priced_from_catalog_not_client(self, service, db, buyer):
        db.products["p1"] = ProductBase(
            productId="p1",
            name="Denim roll",
            manufacturerId="mfr_A",
            category="textiles_clothing",
            pricing=Pricing(basePrice=Decimal("100.00")),
        )
        request = CartItemCreate.model_validate(
            {"productId": "p1", "quantity": 10, "unitPrice": "0.01", "manufacturerId": "mfr_Z"}
        )
        view = await CartService(database=db).add_item(buyer.id, request)

        await service.process_checkout(buyer, _pickup([view.items[0].itemId]))

        (order,) = db.orders.values()
        assert order.sellerId == "mfr_A"
        assert order.subtotal == Decimal("1000.00")


class TestCheckoutValidation:

    async def test_empty_selection(self, service, db, buyer, three_line_cart):
        with pytest.raises(EmptySelectionError) as exc_info:
            await service.process_checkout(buyer, _pickup([]))

        assert exc_info.value.code == "EMPTY_SELECTION"
        assert exc_info.value.status_code == 400
        assert db.orders == {}

    async def test_empty_selection_reported_before_other_problems(self, service, buyer):
        with pytest.raises(EmptySelectionError):
            await service.process_checkout(
                buyer, CheckoutRequest(selectedItemIds=[], deliveryMethod="teleport")
            )

    async def test_too_many_items(self, service, buyer):
        with pytest.raises(TooManyItemsError):
            await service.process_checkout(buyer, _pickup([f"id-{n}" for n in range(51)]))

    async def test_invalid_delivery_method(self, service, buyer):
        with pytest.raises(InvalidDeliveryMethodError):
            await service.process_checkout(buyer, _pickup(["x"], deliveryMethod="drone"))

    async def test_invalid_payment_touches_nothing(self, service, db, buyer, three_line_cart):
        with pytest.raises(InvalidPaymentMethodError) as exc_info:
            await service.process_checkout(
                buyer, _pickup(_ids(three_line_cart), paymentMethod="crypto")
            )

        assert exc_info.value.code == "INVALID_PAYMENT_METHOD"
        assert db.calls == {}
        assert db.orders == {}
        assert len(db.carts[buyer.id].items) == 3

    async def test_invalid_delivery_service(self, service, buyer):
        with pytest.raises(InvalidDeliveryServiceError):
            await service.process_checkout(buyer, _delivery(["x"], deliveryService="overnight"))

    async def test_pickup_ignores_delivery_service(self, service, db, buyer, three_line_cart):
        response = await service.process_checkout(
            buyer, _pickup(_ids(three_line_cart), deliveryService="overnight")
        )
        assert len(response.data.orders) == 2

    async def test_invalid_currency(self, service, buyer):
        with pytest.raises(InvalidCurrencyError):
            await service.process_checkout(buyer, _pickup(["x"], currency="GBP"))

    async def test_instructions_too_long(self, service, buyer):
        with pytest.raises(InstructionsTooLongError):
            await service.process_checkout(buyer, _pickup(["x"], specialInstructions="a" * 501))

    async def test_delivery_needs_address(self, service, buyer):
        with pytest.raises(MissingDeliveryAddressError):
            await service.process_checkout(buyer, _delivery(["x"], deliveryAddress=None))

    async def test_cart_not_found(self, service, buyer):
        with pytest.raises(CartNotFoundError) as exc_info:
            await service.process_checkout(buyer, _pickup(["x"]))
        assert exc_info.value.status_code == 404

    async def test_cart_empty(self, service, db, buyer):
        seed_cart(db, buyer.id, [])
        with pytest.raises(CartEmptyError):
            await service.process_checkout(buyer, _pickup(["x"]))

    async def test_selection_not_in_cart(self, service, db, buyer, three_line_cart):
        with pytest.raises(SelectionNotFoundError) as exc_info:
            await service.process_checkout(buyer, _pickup(["not-in-cart"]))

        assert exc_info.value.status_code == 404
        assert db.orders == {}


class TestCheckoutFailures:

    async def test_failed_second_group_rolls_back_first(self, service, db, buyer, three_line_cart):
        db.fail_on("insert_order", RuntimeError("write concern timeout"), after=1)

        with pytest.raises(CheckoutError) as exc_info:
            await service.process_checkout(buyer, _pickup(_ids(three_line_cart)))

        assert exc_info.value.status_code == 500
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert db.orders == {}
        assert len(db.deleted_order_numbers) == 1
        cart = db.carts[buyer.id]
        assert len(cart.items) == 3
        assert cart.version == three_line_cart.version

    async def test_concurrent_cart_change_rolls_back(self, service, db, buyer, three_line_cart, monkeypatch):
        async def stale_version(*args, **kwargs):
            return False

        monkeypatch.setattr(db, "remove_cart_items", stale_version)

        with pytest.raises(CartConflictError) as exc_info:
            await service.process_checkout(buyer, _pickup(_ids(three_line_cart)))

        assert exc_info.value.code == "CART_CONFLICT"
        assert db.orders == {}
        assert len(db.deleted_order_numbers) == 2

    async def test_second_checkout_of_same_cart_conflicts(
        self, service, db, buyer, three_line_cart, monkeypatch
    ):
        await service.process_checkout(buyer, _pickup(_ids(three_line_cart)))
        first_orders = set(db.orders)

        # a second request that read the cart before the first one wrote it
        async def stale_read(buyer_id):
            return three_line_cart

        monkeypatch.setattr(db, "get_cart", stale_read)

        with pytest.raises(CartConflictError):
            await service.process_checkout(buyer, _pickup(_ids(three_line_cart)))

        assert set(db.orders) == first_orders

    async def test_order_number_collision_retried_once(self, service, db, buyer):
        cart = seed_cart(db, buyer.id, [make_line("p1", "mfr_A", 1, "10.00")])
        db.fail_on("insert_order", OrderNumberConflictError("taken"), times=1)

        response = await service.process_checkout(buyer, _pickup(_ids(cart)))

        assert db.calls["insert_order"] == 2
        assert list(db.orders) == [response.data.orders[0].orderNumber]

    async def test_order_number_collision_twice_fails(self, service, db, buyer):
        cart = seed_cart(db, buyer.id, [make_line("p1", "mfr_A", 1, "10.00")])
        db.fail_on("insert_order", OrderNumberConflictError("taken"), times=2)

        with pytest.raises(OrderNumberConflictError) as exc_info:
            await service.process_checkout(buyer, _pickup(_ids(cart)))

        assert exc_info.value.status_code == 409
        assert db.orders == {}
        assert len(db.carts[buyer.id].items) == 1

    async def test_rollback_failure_still_reports_checkout_error(self, service, db, buyer, three_line_cart):
        db.fail_on("insert_order", RuntimeError("primary stepped down"), after=1)
        db.fail_on("delete_orders", RuntimeError("still down"))

        with pytest.raises(CheckoutError):
            await service.process_checkout(buyer, _pickup(_ids(three_line_cart)))


class TestPricingHelpers:

    def test_tax_rounds_half_up_to_cents(self):
        items = [make_line("p1", "mfr_A", 1, "0.05")]
        totals = compute_group_totals(items, Decimal("0.10"), Decimal("0"))
        assert totals.tax_amount == Decimal("0.01")

    def test_totals_are_exact_decimals(self):
        items = [make_line("p1", "mfr_A", 3, "0.10"), make_line("p2", "mfr_A", 1, "0.20")]
        totals = compute_group_totals(items, Decimal("0.10"), Decimal("8.00"))
        assert totals.subtotal == Decimal("0.50")
        assert totals.total_amount == Decimal("8.55")

    def test_estimate_delivery_uses_tier_table(self, settings):
        now = utcnow()
        assert estimate_delivery(now, "economy", settings) == now + timedelta(days=10)
        assert estimate_delivery(now, "unknown", settings) == now + timedelta(days=5)
