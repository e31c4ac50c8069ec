"""Utility helper functions."""

import html
import secrets
import string
import uuid
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal
_ORDER_TOKEN_ALPHABET = string.digits + string.ascii_uppercase
CENTS = Decimal("0.01")


def generate_uuid() -> str:
    """Generate a unique UUID."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def generate_order_number(now: datetime | None = None) -> str:
    """Build a human-readable order number: ``ORD-<epoch millis>-<4 chars>``."""
    now = now or utcnow()
    millis = int(now.timestamp() * 1000)
    token = "".join(secrets.choice(_ORDER_TOKEN_ALPHABET) for _ in range(4))
    return f"ORD-{millis}-{token}"


def quantize_money(amount: Decimal) -> Decimal:
    """Round a money amount to cents."""
    return Decimal(amount).quantize(CENTS, rounding=ROUND_HALF_UP)


def sanitize_text(text: str | None) -> str:
    """Trim and escape HTML-significant characters.

    Length limits apply to the raw input; the escaped result is never cut.
    """
    if not text:
        return ""
    return html.escape(text.strip(), quote=True)
