"""
Services.

Business logic layer.
"""

# Referral graph
from app.services.referral import ReferralGraphManager, ReferralQueryManager
from app.services.invite_code_service import InviteCodeService

# Users and catalog
from app.services.user import UserService
from app.services.product_service import ProductService

# Orders
from app.services.order import OrderService, StatusHistoryRecorder
from app.services.fulfillment_service import FulfillmentService

# Payments
from app.services.payment import (
    PaymentProvider,
    PaymentReconciler,
    PaymentSnapshot,
)

__all__ = [
    "FulfillmentService",
    "InviteCodeService",
    "OrderService",
    "PaymentProvider",
    "PaymentReconciler",
    "PaymentSnapshot",
    "ProductService",
    "ReferralGraphManager",
    "ReferralQueryManager",
    "StatusHistoryRecorder",
    "UserService",
]
