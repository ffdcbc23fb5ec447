"""Checkout bounded context — cart materialization, order ledger and payment coordination.

Turns a client-held cart into a durable Order, reconciles it with the payment
provider's asynchronous intent state, and drives the Order through its
fulfillment lifecycle with an append-only status history.
"""

import structlog
from protean.domain import Domain

checkout = Domain(name="checkout")

logger = structlog.get_logger(__name__)
