"""
Validators package.

Provides boundary validation for order creation input.
"""

from app.validators.order import (
    ensure_order_input,
    validate_custom_expiration,
    validate_decimal,
    validate_quantity,
    validate_rate_valid_seconds,
)


__all__ = [
    "ensure_order_input",
    "validate_custom_expiration",
    "validate_decimal",
    "validate_quantity",
    "validate_rate_valid_seconds",
]
