"""Unit tests for order input validators."""

from decimal import Decimal

import pytest

from app.validators.order import (
    ensure_order_input,
    validate_custom_expiration,
    validate_decimal,
    validate_quantity,
    validate_rate_valid_seconds,
)
from app.utils.exceptions import ValidationError


class TestExpirationValidation:
    """Tests for expiration and rate-lock windows."""

    @pytest.mark.parametrize("value", [1, 600, "3600", 604800])
    def test_valid_windows(self, value):
        """Windows within 1 second and 7 days are accepted."""
        is_valid, seconds, error = validate_custom_expiration(value)
        assert is_valid
        assert seconds == int(value)
        assert error is None

    @pytest.mark.parametrize("value", [0, -5, 604801])
    def test_out_of_range(self, value):
        """Windows outside the range are rejected."""
        is_valid, seconds, error = validate_custom_expiration(value)
        assert not is_valid
        assert seconds is None
        assert "between" in error

    @pytest.mark.parametrize("value", [None, "soon", True, 1.5])
    def test_not_an_integer(self, value):
        """Non-integral input is rejected."""
        is_valid, _, _ = validate_custom_expiration(value)
        assert not is_valid

    def test_rate_window_message(self):
        """Rate-lock errors name the rate window."""
        is_valid, _, error = validate_rate_valid_seconds(0)
        assert not is_valid
        assert error.startswith("Rate window")


class TestQuantityValidation:
    """Tests for validate_quantity."""

    def test_valid_quantity(self):
        """Positive integers are accepted."""
        assert validate_quantity("3") == (True, 3, None)

    @pytest.mark.parametrize("value", [0, -1, "x", False])
    def test_invalid_quantity(self, value):
        """Zero, negative and non-numeric quantities are rejected."""
        is_valid, _, _ = validate_quantity(value)
        assert not is_valid

    def test_quantity_cap(self):
        """Quantities above the cap are rejected."""
        is_valid, _, error = validate_quantity(1001)
        assert not is_valid
        assert "exceed" in error


class TestDecimalValidation:
    """Tests for validate_decimal."""

    def test_float_goes_through_str(self):
        """0.1 is parsed exactly."""
        assert validate_decimal(0.1, "Amount") == (True, Decimal("0.1"), None)

    def test_zero_rejected_when_not_allowed(self):
        """Exchange rates must be positive."""
        is_valid, _, error = validate_decimal(0, "Exchange rate", allow_zero=False)
        assert not is_valid
        assert error == "Exchange rate must be positive"

    @pytest.mark.parametrize("value", ["NaN", "Infinity"])
    def test_non_finite_rejected(self, value):
        """NaN and infinity are rejected."""
        is_valid, _, _ = validate_decimal(value, "Amount")
        assert not is_valid

    def test_negative_rejected(self):
        """Negative amounts are rejected."""
        is_valid, _, error = validate_decimal("-1", "Amount")
        assert not is_valid
        assert error == "Amount must be non-negative"


class TestEnsureOrderInput:
    """Tests for ensure_order_input."""

    def test_returns_parsed_values(self):
        """All fields come back parsed."""
        parsed = ensure_order_input(
            quantity="2",
            exchange_rate="2.5",
            rate_valid_seconds=600,
            custom_expiration="3600",
        )
        assert parsed == {
            "amount": None,
            "quantity": 2,
            "exchange_rate": Decimal("2.5"),
            "rate_valid_seconds": 600,
            "custom_expiration": 3600,
        }

    def test_first_error_names_field(self):
        """ValidationError carries the failing field."""
        with pytest.raises(ValidationError) as exc_info:
            ensure_order_input(
                quantity=1,
                exchange_rate="0",
                rate_valid_seconds=600,
                custom_expiration=600,
            )
        assert exc_info.value.context["field"] == "exchange_rate"

    def test_explicit_amount_validated(self):
        """An explicit amount is validated too."""
        with pytest.raises(ValidationError):
            ensure_order_input(
                quantity=1,
                exchange_rate="1",
                rate_valid_seconds=600,
                custom_expiration=600,
                amount="-3",
            )
