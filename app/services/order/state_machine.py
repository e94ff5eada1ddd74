"""
Order state machine.

The transition table is the single source of truth for which status
changes are legal. Guards that depend on order data (expiry, transaction
id) live in OrderService.transition.
"""

from app.models.enums import OrderStatus
from app.utils.exceptions import InvalidTransitionError

TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.CREATED: frozenset(
        {OrderStatus.AWAITING_PAYMENT, OrderStatus.EXPIRED, OrderStatus.FAILED}
    ),
    OrderStatus.AWAITING_PAYMENT: frozenset(
        {OrderStatus.PAID, OrderStatus.EXPIRED, OrderStatus.FAILED}
    ),
    OrderStatus.PAID: frozenset({OrderStatus.REFUNDED}),
    OrderStatus.EXPIRED: frozenset(),
    OrderStatus.FAILED: frozenset(),
    OrderStatus.REFUNDED: frozenset(),
}


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    """
    Check whether the table allows current -> target.

    Staying in the same status is not an edge; callers treat it as a no-op
    before consulting the table.

    Args:
        current: Current status
        target: Requested status

    Returns:
        True if the edge exists
    """
    return target in TRANSITIONS[OrderStatus(current)]


def is_terminal(status: OrderStatus) -> bool:
    """True for statuses with no outgoing edges."""
    return not TRANSITIONS[OrderStatus(status)]


def ensure_transition(current: OrderStatus, target: OrderStatus, **context) -> None:
    """
    Raise InvalidTransitionError unless current -> target is an edge.

    Args:
        current: Current status
        target: Requested status
        **context: Identifiers attached to the error

    Raises:
        InvalidTransitionError: Edge not in the table
    """
    if not can_transition(current, target):
        raise InvalidTransitionError(
            f"Cannot move order from {current} to {target}",
            from_status=str(current),
            to_status=str(target),
            **context,
        )
