"""Unit tests for the order transition table."""

import pytest

from app.models import OrderStatus
from app.services.order import TRANSITIONS, can_transition, ensure_transition, is_terminal
from app.utils.exceptions import InvalidTransitionError

ALLOWED = {
    (OrderStatus.CREATED, OrderStatus.AWAITING_PAYMENT),
    (OrderStatus.CREATED, OrderStatus.EXPIRED),
    (OrderStatus.CREATED, OrderStatus.FAILED),
    (OrderStatus.AWAITING_PAYMENT, OrderStatus.PAID),
    (OrderStatus.AWAITING_PAYMENT, OrderStatus.EXPIRED),
    (OrderStatus.AWAITING_PAYMENT, OrderStatus.FAILED),
    (OrderStatus.PAID, OrderStatus.REFUNDED),
}


class TestTransitionTable:
    """Tests for TRANSITIONS and its helpers."""

    def test_every_status_has_an_entry(self):
        """Each status must appear as a source in the table."""
        assert set(TRANSITIONS) == set(OrderStatus)

    @pytest.mark.parametrize("current", list(OrderStatus))
    @pytest.mark.parametrize("target", list(OrderStatus))
    def test_edges_match_table(self, current, target):
        """can_transition is true exactly for the listed edges."""
        assert can_transition(current, target) == ((current, target) in ALLOWED)

    @pytest.mark.parametrize(
        "status",
        [OrderStatus.EXPIRED, OrderStatus.FAILED, OrderStatus.REFUNDED],
    )
    def test_terminal_statuses(self, status):
        """Terminal statuses have no outgoing edges."""
        assert is_terminal(status)

    @pytest.mark.parametrize(
        "status",
        [OrderStatus.CREATED, OrderStatus.AWAITING_PAYMENT, OrderStatus.PAID],
    )
    def test_non_terminal_statuses(self, status):
        """Open and paid orders can still move."""
        assert not is_terminal(status)

    def test_created_cannot_jump_to_paid(self):
        """Payment must be observed before an order is paid."""
        assert not can_transition(OrderStatus.CREATED, OrderStatus.PAID)

    def test_accepts_string_values(self):
        """Persisted string values are accepted as statuses."""
        assert can_transition("AWAITING_PAYMENT", "PAID")


class TestEnsureTransition:
    """Tests for ensure_transition."""

    def test_valid_edge_passes(self):
        """Allowed edge raises nothing."""
        ensure_transition(OrderStatus.PAID, OrderStatus.REFUNDED)

    def test_invalid_edge_raises_with_context(self):
        """Rejected edge carries both statuses and caller context."""
        with pytest.raises(InvalidTransitionError) as exc_info:
            ensure_transition(OrderStatus.EXPIRED, OrderStatus.PAID, order_id=7)

        error = exc_info.value
        assert error.context == {
            "from_status": "EXPIRED",
            "to_status": "PAID",
            "order_id": 7,
        }
        assert "EXPIRED" in error.message
