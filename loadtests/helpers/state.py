"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance maintains its own state — no cross-user sharing.
"""

from dataclasses import dataclass, field


@dataclass
class CheckoutState:
    """Tracks one buyer's way from cart to a paid order."""

    order_id: str | None = None
    total: float = 0.0
    payment_intent_ids: list[str] = field(default_factory=list)
    provider_ref: str | None = None
    current_status: str = "Pending"


@dataclass
class FulfillmentState:
    """Tracks an order a seller is working through."""

    order_id: str | None = None
    current_status: str = "Confirmed"
