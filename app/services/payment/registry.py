"""Payment provider registry.

Providers are registered once at process startup and looked up by payment
type. Worker processes import the modules listed in
settings.payment_provider_modules; each such module calls
register_provider() at import time.
"""

import importlib

from loguru import logger

from app.models.enums import PaymentType
from app.services.payment.provider import PaymentProvider

_providers: dict[PaymentType, PaymentProvider] = {}


def register_provider(provider: PaymentProvider) -> None:
    """
    Register (or replace) the provider for its payment type.

    Args:
        provider: Provider instance

    Raises:
        TypeError: Object does not implement PaymentProvider
    """
    if not isinstance(provider, PaymentProvider):
        raise TypeError(f"{provider!r} does not implement PaymentProvider")

    payment_type = PaymentType(provider.payment_type)
    if payment_type in _providers:
        logger.warning(f"Replacing payment provider for {payment_type}")
    _providers[payment_type] = provider
    logger.info(f"Payment provider registered for {payment_type}")


def load_provider_modules(module_paths: list[str]) -> int:
    """
    Import provider modules so they register themselves.

    Args:
        module_paths: Dotted module paths

    Returns:
        Number of providers registered afterwards

    Raises:
        ImportError: A configured module cannot be imported
    """
    for path in module_paths:
        importlib.import_module(path)
        logger.info(f"Payment provider module loaded: {path}")
    return len(_providers)


def get_providers() -> list[PaymentProvider]:
    """Get all registered providers."""
    return list(_providers.values())


def clear_providers() -> None:
    """Unregister every provider."""
    _providers.clear()
