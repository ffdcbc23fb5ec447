"""Checkout domain API package."""

from checkout.api.routes import (
    checkout_router,
    coupon_router,
    intent_router,
    order_router,
    payment_router,
)

__all__ = ["checkout_router", "order_router", "payment_router", "intent_router", "coupon_router"]
