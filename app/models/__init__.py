"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from app.models.base import Base
from app.models.enums import (
    FulfillmentStatus,
    OrderStatus,
    PaymentType,
    ProductType,
)
from app.models.invite_code import InviteCode
from app.models.order import Order
from app.models.order_status_history import OrderStatusHistory
from app.models.product import Product
from app.models.user import User
from app.models.user_ancestor import UserAncestor
from app.models.user_order import UserOrder

__all__ = [
    # Base
    "Base",
    # Enums
    "FulfillmentStatus",
    "OrderStatus",
    "PaymentType",
    "ProductType",
    # Referral
    "User",
    "UserAncestor",
    "InviteCode",
    # Orders
    "Order",
    "OrderStatusHistory",
    "Product",
    "UserOrder",
]
