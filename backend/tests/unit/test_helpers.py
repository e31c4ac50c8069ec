"""Tests for utility helpers."""

import re
from datetime import UTC, datetime
from decimal import Decimal

from marketplace.utils.helpers import (
    generate_order_number,
    quantize_money,
    sanitize_text,
    utcnow,
)

ORDER_NUMBER = re.compile(r"^ORD-\d+-[0-9A-Z]{4}$")


def test_order_number_format():
    now = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)
    number = generate_order_number(now)
    assert ORDER_NUMBER.match(number)
    assert number.split("-")[1] == str(int(now.timestamp() * 1000))


def test_order_numbers_differ_within_the_same_millisecond():
    now = utcnow()
    numbers = {generate_order_number(now) for _ in range(50)}
    assert len(numbers) > 1


def test_quantize_money_rounds_half_up():
    assert quantize_money(Decimal("2.505")) == Decimal("2.51")
    assert quantize_money(Decimal("2.504")) == Decimal("2.50")
    assert str(quantize_money(Decimal("3"))) == "3.00"


def test_sanitize_text():
    assert sanitize_text("  <script>alert('x')</script> ") == (
        "&lt;script&gt;alert(&#x27;x&#x27;)&lt;/script&gt;"
    )
    assert sanitize_text(None) == ""
    assert sanitize_text(" a & b ") == "a &amp; b"


def test_utcnow_is_aware():
    assert utcnow().tzinfo is not None

