"""
Domain constants for the storefront core.

Limits and formats shared by validators, services and jobs.
"""

from decimal import Decimal

# =============================================================================
# ORDER EXPIRATION (seconds)
# =============================================================================
# Accepted range for a caller-supplied order expiration window

ORDER_EXPIRATION_MIN_SECONDS = 1
ORDER_EXPIRATION_MAX_SECONDS = 604800  # 7 days

# Default rate-lock / expiration window for new orders
ORDER_DEFAULT_EXPIRATION_SECONDS = 3600


# =============================================================================
# ORDER LIMITS
# =============================================================================

# Open (non-terminal) orders a user may hold for a single product
ORDER_MAX_OPEN_PER_PRODUCT = 10

# Upper bound for a single order line
ORDER_MAX_QUANTITY = 1000


# =============================================================================
# INVITE CODES
# =============================================================================

INVITE_CODE_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
INVITE_CODE_LENGTH = 10

# Attempts to find a free code before giving up
INVITE_CODE_MAX_ATTEMPTS = 5


# =============================================================================
# EXTERNAL PAYMENT IDS
# =============================================================================
# Payload attached to provider invoices / transfer comments

EXTERNAL_PAYMENT_ID_ALPHABET = (
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789_-"
)
EXTERNAL_PAYMENT_ID_LENGTH = 8
EXTERNAL_PAYMENT_ID_MAX_ATTEMPTS = 5


# =============================================================================
# MONEY
# =============================================================================

# Quantum for crypto amounts (amount = fiat * rate)
AMOUNT_QUANTUM = Decimal("0.000000001")

# Quantum for fiat prices
FIAT_QUANTUM = Decimal("0.01")


# =============================================================================
# FULFILLMENT
# =============================================================================

# VIP days granted per unit when a subscription product carries no explicit value
DEFAULT_SUBSCRIPTION_DAYS = 30
