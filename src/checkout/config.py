"""Checkout settings.

Values are read from the environment first, then from the ``[custom]`` table
of the domain configuration, then fall back to the defaults below.
"""

import os

from checkout.domain import checkout

_DEFAULTS = {
    "CURRENCY": "USD",
    "PRICE_EPSILON": 0.01,
    "PROVIDER_TIMEOUT_SECONDS": 10.0,
    "REQUIRE_SERVER_CART": False,
    "PAYMENT_GATEWAY": "fake",
    "STRIPE_API_KEY": None,
    "STRIPE_WEBHOOK_SECRET": None,
}

_TRUTHY = {"1", "true", "yes", "on"}


def setting(name: str):
    """Return the raw value of a checkout setting."""
    if name in os.environ:
        return os.environ[name]
    custom = checkout.config.get("custom") or {}
    if name in custom:
        return custom[name]
    return _DEFAULTS.get(name)


def currency() -> str:
    return str(setting("CURRENCY")).upper()


def price_epsilon() -> float:
    return float(setting("PRICE_EPSILON"))


def provider_timeout() -> float:
    return float(setting("PROVIDER_TIMEOUT_SECONDS"))


def require_server_cart() -> bool:
    value = setting("REQUIRE_SERVER_CART")
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUTHY


def payment_gateway_name() -> str:
    return str(setting("PAYMENT_GATEWAY")).lower()
