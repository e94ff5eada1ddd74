"""
Order input validators.

Boundary validation for order creation. Each validator returns a tuple of
(is_valid, parsed_value, error_message); ensure_order_input raises
ValidationError for the first failure.
"""

from decimal import Decimal, InvalidOperation
from typing import Any

from app.config.constants import (
    ORDER_EXPIRATION_MAX_SECONDS,
    ORDER_EXPIRATION_MIN_SECONDS,
    ORDER_MAX_QUANTITY,
)
from app.utils.exceptions import ValidationError


def validate_custom_expiration(value: Any) -> tuple[bool, int | None, str | None]:
    """
    Validate an order expiration window.

    Args:
        value: Seconds (int or numeric string)

    Returns:
        Tuple of (is_valid, seconds, error_message)

    Examples:
        >>> validate_custom_expiration(3600)
        (True, 3600, None)
        >>> validate_custom_expiration(0)
        (False, None, 'Expiration must be between 1 and 604800 seconds')
    """
    if isinstance(value, bool):
        return False, None, "Expiration must be an integer number of seconds"

    try:
        seconds = int(value)
    except (TypeError, ValueError):
        return False, None, "Expiration must be an integer number of seconds"

    if isinstance(value, float) and value != seconds:
        return False, None, "Expiration must be an integer number of seconds"

    if not ORDER_EXPIRATION_MIN_SECONDS <= seconds <= ORDER_EXPIRATION_MAX_SECONDS:
        return False, None, (
            f"Expiration must be between {ORDER_EXPIRATION_MIN_SECONDS} "
            f"and {ORDER_EXPIRATION_MAX_SECONDS} seconds"
        )

    return True, seconds, None


def validate_rate_valid_seconds(value: Any) -> tuple[bool, int | None, str | None]:
    """
    Validate a rate-lock window.

    Same bounds as the expiration window.

    Args:
        value: Seconds

    Returns:
        Tuple of (is_valid, seconds, error_message)
    """
    is_valid, seconds, error = validate_custom_expiration(value)
    if not is_valid:
        return False, None, (error or "").replace("Expiration", "Rate window")
    return True, seconds, None


def validate_quantity(value: Any) -> tuple[bool, int | None, str | None]:
    """
    Validate an order quantity.

    Args:
        value: Quantity

    Returns:
        Tuple of (is_valid, quantity, error_message)
    """
    if isinstance(value, bool):
        return False, None, "Quantity must be a positive integer"

    try:
        quantity = int(value)
    except (TypeError, ValueError):
        return False, None, "Quantity must be a positive integer"

    if quantity <= 0:
        return False, None, "Quantity must be a positive integer"

    if quantity > ORDER_MAX_QUANTITY:
        return False, None, f"Quantity cannot exceed {ORDER_MAX_QUANTITY}"

    return True, quantity, None


def validate_decimal(
    value: Any,
    field: str,
    allow_zero: bool = True,
) -> tuple[bool, Decimal | None, str | None]:
    """
    Validate a monetary or rate value.

    Floats are converted through str() so that 0.1 becomes Decimal("0.1").

    Args:
        value: Decimal, int, float or numeric string
        field: Field name used in the error message
        allow_zero: Accept exactly zero

    Returns:
        Tuple of (is_valid, decimal_value, error_message)
    """
    if value is None or isinstance(value, bool):
        return False, None, f"{field} is required"

    try:
        parsed = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        return False, None, f"{field} must be a number"

    if not parsed.is_finite():
        return False, None, f"{field} must be a finite number"

    if parsed < 0 or (parsed == 0 and not allow_zero):
        qualifier = "non-negative" if allow_zero else "positive"
        return False, None, f"{field} must be {qualifier}"

    return True, parsed, None


def ensure_order_input(
    *,
    quantity: Any,
    exchange_rate: Any,
    rate_valid_seconds: Any,
    custom_expiration: Any,
    amount: Any = None,
) -> dict[str, Any]:
    """
    Validate order creation input and return parsed values.

    Args:
        quantity: Units of the product
        exchange_rate: Payment currency units per fiat unit (> 0)
        rate_valid_seconds: Rate-lock window
        custom_expiration: Requested expiration window
        amount: Optional explicit amount in the payment currency

    Returns:
        Dict with parsed quantity, exchange_rate, rate_valid_seconds,
        custom_expiration and amount (None if not given)

    Raises:
        ValidationError: On the first invalid field
    """
    checks = [
        ("quantity", validate_quantity(quantity)),
        ("exchange_rate", validate_decimal(exchange_rate, "Exchange rate", allow_zero=False)),
        ("rate_valid_seconds", validate_rate_valid_seconds(rate_valid_seconds)),
        ("custom_expiration", validate_custom_expiration(custom_expiration)),
    ]
    if amount is not None:
        checks.append(("amount", validate_decimal(amount, "Amount")))

    parsed: dict[str, Any] = {"amount": None}
    for field, (is_valid, value, error) in checks:
        if not is_valid:
            raise ValidationError(error, field=field)
        parsed[field] = value

    return parsed
