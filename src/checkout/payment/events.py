"""Domain events for the PaymentIntent aggregate."""

from protean.fields import DateTime, Float, Identifier, String

from checkout.domain import checkout


@checkout.event(part_of="PaymentIntent")
class PaymentIntentCreated:
    __version__ = 1

    payment_intent_id = Identifier(required=True)
    order_id = Identifier(required=True)
    amount = Float(required=True)
    currency = String(required=True)
    provider_ref = String(required=True)
    created_at = DateTime(required=True)


@checkout.event(part_of="PaymentIntent")
class PaymentIntentProcessing:
    __version__ = 1

    payment_intent_id = Identifier(required=True)
    order_id = Identifier(required=True)
    changed_at = DateTime(required=True)


@checkout.event(part_of="PaymentIntent")
class PaymentIntentSucceeded:
    __version__ = 1

    payment_intent_id = Identifier(required=True)
    order_id = Identifier(required=True)
    amount = Float(required=True)
    changed_at = DateTime(required=True)


@checkout.event(part_of="PaymentIntent")
class PaymentIntentFailed:
    __version__ = 1

    payment_intent_id = Identifier(required=True)
    order_id = Identifier(required=True)
    changed_at = DateTime(required=True)


@checkout.event(part_of="PaymentIntent")
class PaymentIntentCanceled:
    __version__ = 1

    payment_intent_id = Identifier(required=True)
    order_id = Identifier(required=True)
    changed_at = DateTime(required=True)
