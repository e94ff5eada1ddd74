"""
Random identifier generation.

Invite codes and provider payment payloads.
"""

import secrets

from app.config.constants import (
    EXTERNAL_PAYMENT_ID_ALPHABET,
    EXTERNAL_PAYMENT_ID_LENGTH,
    INVITE_CODE_ALPHABET,
    INVITE_CODE_LENGTH,
)


def random_string(alphabet: str, length: int) -> str:
    """
    Generate a cryptographically random string.

    Args:
        alphabet: Allowed characters
        length: Result length

    Returns:
        Random string of the given length
    """
    if length <= 0:
        raise ValueError("length must be positive")
    return "".join(secrets.choice(alphabet) for _ in range(length))


def generate_invite_code(length: int = INVITE_CODE_LENGTH) -> str:
    """Generate an invite code (lowercase alphanumeric)."""
    return random_string(INVITE_CODE_ALPHABET, length)


def generate_external_payment_id(length: int = EXTERNAL_PAYMENT_ID_LENGTH) -> str:
    """Generate a URL-safe payload identifying an order at the provider."""
    return random_string(EXTERNAL_PAYMENT_ID_ALPHABET, length)
