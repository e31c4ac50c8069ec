"""Utilities package."""

from marketplace.utils.helpers import (
    generate_order_number,
    generate_uuid,
    quantize_money,
    sanitize_text,
    utcnow,
)
from marketplace.utils.logger import setup_logging

__all__ = [
    "setup_logging",
    "generate_uuid",
    "generate_order_number",
    "quantize_money",
    "sanitize_text",
    "utcnow",
]
