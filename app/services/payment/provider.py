"""Payment provider contract.

Gateways are external collaborators: the core only asks them for the
current state of an order's payment and never calls them inside a
database transaction.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import StrEnum
from typing import Any, Protocol, runtime_checkable

from app.models.enums import PaymentType
from app.models.order import Order


class SnapshotStatus(StrEnum):
    """Payment state as reported by a provider."""

    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"


@dataclass(frozen=True)
class PaymentSnapshot:
    """Provider view of one order's payment."""

    status: SnapshotStatus
    amount: Decimal | None = None
    transaction_id: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)

    def to_payment_data(self) -> dict[str, Any]:
        """Serialize for Order.payment_data (JSON column)."""
        return {
            "status": str(self.status),
            "amount": str(self.amount) if self.amount is not None else None,
            "transaction_id": self.transaction_id,
            "raw": self.raw,
        }


@runtime_checkable
class PaymentProvider(Protocol):
    """Source of payment snapshots for one payment type."""

    payment_type: PaymentType

    async def fetch_snapshot(self, order: Order) -> PaymentSnapshot | None:
        """Return the payment state of an order, or None if unknown."""
        ...
