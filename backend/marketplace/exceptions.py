"""Marketplace error taxonomy.

Every error carries a machine-readable ``code`` and the HTTP status the API
layer answers with. Services raise these; ``marketplace.api.errors`` turns
them into ``{"success": false, "message": ..., "code": ...}`` responses.
"""

from typing import Optional


class MarketplaceError(Exception):
    """Base class for all errors reported to API callers."""

    code = "MARKETPLACE_ERROR"
    status_code = 500

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ValidationError(MarketplaceError):
    code = "VALIDATION_ERROR"
    status_code = 400


class NotFoundError(MarketplaceError):
    code = "NOT_FOUND"
    status_code = 404


class ConflictError(MarketplaceError):
    code = "CONFLICT"
    status_code = 409


class AuthenticationError(MarketplaceError):
    code = "UNAUTHENTICATED"
    status_code = 401


class ForbiddenError(MarketplaceError):
    code = "FORBIDDEN"
    status_code = 403


# Checkout validation

class EmptySelectionError(ValidationError):
    code = "EMPTY_SELECTION"


class TooManyItemsError(ValidationError):
    code = "TOO_MANY_ITEMS"


class InvalidDeliveryMethodError(ValidationError):
    code = "INVALID_DELIVERY_METHOD"


class InvalidPaymentMethodError(ValidationError):
    code = "INVALID_PAYMENT_METHOD"


class InvalidDeliveryServiceError(ValidationError):
    code = "INVALID_DELIVERY_SERVICE"


class InvalidCurrencyError(ValidationError):
    code = "INVALID_CURRENCY"


class InstructionsTooLongError(ValidationError):
    code = "INSTRUCTIONS_TOO_LONG"


class MissingDeliveryAddressError(ValidationError):
    code = "MISSING_DELIVERY_ADDRESS"


class CartEmptyError(ValidationError):
    code = "CART_EMPTY"


class OrderNotCancellableError(ValidationError):
    code = "ORDER_NOT_CANCELLABLE"


# Lookups

class CartNotFoundError(NotFoundError):
    code = "CART_NOT_FOUND"


class SelectionNotFoundError(NotFoundError):
    code = "SELECTION_NOT_FOUND"


class CartItemNotFoundError(NotFoundError):
    code = "CART_ITEM_NOT_FOUND"


class ProductNotFoundError(NotFoundError):
    code = "PRODUCT_NOT_FOUND"


class OrderNotFoundError(NotFoundError):
    code = "ORDER_NOT_FOUND"


# Conflicts

class CartConflictError(ConflictError):
    code = "CART_CONFLICT"


class OrderNumberConflictError(ConflictError):
    code = "ORDER_NUMBER_CONFLICT"


class CheckoutError(MarketplaceError):
    """Unexpected failure while converting a cart into orders."""

    code = "CHECKOUT_ERROR"
    status_code = 500
