"""
Domain enumerations.

The enum members are the authoritative contract; their string values are
only the persisted / wire representation.
"""

from enum import StrEnum


class OrderStatus(StrEnum):
    """Payment lifecycle of an order."""

    CREATED = "CREATED"
    AWAITING_PAYMENT = "AWAITING_PAYMENT"
    PAID = "PAID"
    EXPIRED = "EXPIRED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class PaymentType(StrEnum):
    """How an order is paid."""

    TON = "TON"
    USDT = "USDT"
    STARS = "STARS"
    FIAT = "FIAT"


class FulfillmentStatus(StrEnum):
    """Delivery state of a user order, independent of payment."""

    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class ProductType(StrEnum):
    """What a product delivers."""

    COIN = "COIN"
    SUBSCRIPTION = "SUBSCRIPTION"
    COIN_AND_SUBSCRIPTION = "COIN_AND_SUBSCRIPTION"
