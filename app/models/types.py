"""
Standard type definitions for database models.

Provides consistent types for monetary and rate fields across all models.
"""

from sqlalchemy import DECIMAL, JSON

# Fiat money type for prices and fiat order amounts
# Precision: 18 digits total, 2 after decimal point
# Range: up to 9,999,999,999,999,999.99
FiatMoneyType = DECIMAL(18, 2)

# Crypto amount type for order amounts in the payment currency
# Precision: 36 digits total, 18 after decimal point
# Suitable for: TON, USDT, Stars
CryptoMoneyType = DECIMAL(36, 18)

# Exchange rate type (payment currency units per 1 fiat unit)
# Precision: 28 digits total, 12 after decimal point
ExchangeRateType = DECIMAL(28, 12)

# Opaque JSON payloads (provider snapshots, transition metadata)
JsonType = JSON
