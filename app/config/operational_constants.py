"""
Operational constants.

Technical constants for background jobs: time limits, retries, batch sizes.
"""

# =============================================================================
# DRAMATIQ TIME LIMITS (milliseconds)
# =============================================================================

DRAMATIQ_TIME_LIMIT_STANDARD = 300_000  # 5 min
DRAMATIQ_TIME_LIMIT_LONG = 600_000  # 10 min


# =============================================================================
# RETRY CONFIGURATIONS
# =============================================================================

DEFAULT_MAX_RETRIES = 3

# Provider polling hits external services
PAYMENT_POLL_MAX_RETRIES = 5

# Backoff bounds for dramatiq Retries middleware (milliseconds)
RETRY_MIN_BACKOFF_MS = 1_000
RETRY_MAX_BACKOFF_MS = 60_000


# =============================================================================
# BATCH SIZES
# =============================================================================

# Orders handled by one expiration sweep run
EXPIRATION_SWEEP_BATCH_SIZE = 500

# Orders polled against the provider per run
PAYMENT_POLL_BATCH_SIZE = 100

# Paid orders delivered per fulfillment run
FULFILLMENT_BATCH_SIZE = 100
