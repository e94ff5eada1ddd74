"""
Order services package.

- state_machine: Transition table and table checks
- status_history: Append-only transition log
- order_service: Order creation, transitions, expiration sweep
"""

from app.services.order.order_service import OrderService
from app.services.order.state_machine import (
    TRANSITIONS,
    can_transition,
    ensure_transition,
    is_terminal,
)
from app.services.order.status_history import StatusHistoryRecorder

__all__ = [
    "OrderService",
    "StatusHistoryRecorder",
    "TRANSITIONS",
    "can_transition",
    "ensure_transition",
    "is_terminal",
]
