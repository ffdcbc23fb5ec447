"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations:
- FakeGateway for development and testing (PAYMENT_GATEWAY=fake)
- StripeGateway for production (PAYMENT_GATEWAY=stripe)
"""

from checkout import config
from checkout.gateway.port import PaymentGateway

_current_gateway: PaymentGateway | None = None


def _build_gateway() -> PaymentGateway:
    name = config.payment_gateway_name()
    if name == "stripe":
        from checkout.gateway.stripe_adapter import StripeGateway

        api_key = config.setting("STRIPE_API_KEY")
        if not api_key:
            raise RuntimeError("PAYMENT_GATEWAY=stripe requires STRIPE_API_KEY")
        return StripeGateway(
            api_key=api_key,
            webhook_secret=config.setting("STRIPE_WEBHOOK_SECRET"),
            timeout=config.provider_timeout(),
        )
    if name == "fake":
        from checkout.gateway.fake_adapter import FakeGateway

        return FakeGateway()
    raise ValueError(f"Unknown payment gateway: {name}")


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway. Defaults to the configured one."""
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = _build_gateway()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to default gateway."""
    global _current_gateway
    _current_gateway = None
