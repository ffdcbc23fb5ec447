"""Domain events for the Order aggregate.

Every status event carries ``order_id``, ``status`` and ``changed_at`` and is
raised together with the StatusTransition it records. Downstream
notification logic subscribes to these events; the coordinator itself sends
no messages.
"""

from protean.fields import DateTime, Float, Identifier, String, Text

from checkout.domain import checkout


@checkout.event(part_of="Order")
class OrderPlaced:
    """A cart was materialized into a new Pending order."""

    __version__ = 1

    order_id = Identifier(required=True)
    buyer_id = Identifier(required=True)
    status = String(required=True)
    changed_at = DateTime(required=True)
    actor = String(required=True)
    items = Text(required=True)  # JSON: list of item dicts
    subtotal = Float(required=True)
    discount = Float()
    total = Float(required=True)
    currency = String(default="USD")
    coupon_code = String()


@checkout.event(part_of="Order")
class PaymentIntentAttached:
    """A payment intent became the order's current payment attempt."""

    __version__ = 1

    order_id = Identifier(required=True)
    payment_intent_id = Identifier(required=True)
    payment_ref = String(required=True)


@checkout.event(part_of="Order")
class OrderConfirmed:
    """The order's payment succeeded."""

    __version__ = 1

    order_id = Identifier(required=True)
    status = String(required=True)
    changed_at = DateTime(required=True)
    actor = String(required=True)
    notes = String()
    payment_intent_id = Identifier(required=True)


@checkout.event(part_of="Order")
class OrderProcessing:
    """A seller started preparing the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    status = String(required=True)
    changed_at = DateTime(required=True)
    actor = String(required=True)
    notes = String()


@checkout.event(part_of="Order")
class OrderShipped:
    """The order left the seller with a tracking number."""

    __version__ = 1

    order_id = Identifier(required=True)
    status = String(required=True)
    changed_at = DateTime(required=True)
    actor = String(required=True)
    notes = String()
    tracking_number = String(required=True)
    estimated_delivery = String()  # ISO date string


@checkout.event(part_of="Order")
class OrderDelivered:
    """The order reached the buyer."""

    __version__ = 1

    order_id = Identifier(required=True)
    status = String(required=True)
    changed_at = DateTime(required=True)
    actor = String(required=True)
    notes = String()


@checkout.event(part_of="Order")
class OrderCancelled:
    """The order was cancelled before shipping."""

    __version__ = 1

    order_id = Identifier(required=True)
    status = String(required=True)
    changed_at = DateTime(required=True)
    actor = String(required=True)
    notes = String()
