"""Payment services package.

- provider: PaymentProvider protocol and PaymentSnapshot
- registry: Providers registered at startup, by payment type
- reconciler: Applies snapshots to open orders
"""

from app.services.payment.provider import (
    PaymentProvider,
    PaymentSnapshot,
    SnapshotStatus,
)
from app.services.payment.reconciler import PaymentReconciler
from app.services.payment.registry import (
    clear_providers,
    get_providers,
    load_provider_modules,
    register_provider,
)

__all__ = [
    "PaymentProvider",
    "PaymentReconciler",
    "PaymentSnapshot",
    "SnapshotStatus",
    "clear_providers",
    "get_providers",
    "load_provider_modules",
    "register_provider",
]
