"""Payment intent creation — command and handler.

Idempotent per order: while the order's current intent is still open, the
same intent is handed back instead of a new one being created.
"""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from checkout.domain import checkout
from checkout.errors import PaymentNotAllowed
from checkout.gateway import get_gateway
from checkout.order.order import Order, OrderStatus
from checkout.payment.intent import IntentStatus, PaymentIntent, intents_for_order


@checkout.command(part_of="PaymentIntent")
class CreatePaymentIntent:
    order_id = Identifier(required=True)


def _handle(intent: PaymentIntent, client_secret: str, reused: bool) -> dict:
    return {
        "payment_intent_id": str(intent.id),
        "order_id": str(intent.order_id),
        "provider_ref": intent.provider_ref,
        "client_secret": client_secret,
        "amount": intent.amount,
        "currency": intent.currency,
        "status": intent.status,
        "reused": reused,
    }


@checkout.command_handler(part_of=PaymentIntent)
class CreatePaymentIntentHandler:
    @handle(CreatePaymentIntent)
    def create_payment_intent(self, command):
        order_repo = current_domain.repository_for(Order)
        order = order_repo.get(command.order_id)

        if OrderStatus(order.status) != OrderStatus.PENDING:
            raise PaymentNotAllowed(f"Order is {order.status}; it is not awaiting payment")

        gateway = get_gateway()
        intents = intents_for_order(order.id)

        if any(IntentStatus(i.status) == IntentStatus.SUCCEEDED for i in intents):
            raise PaymentNotAllowed("This order has already been paid")

        open_intent = next((i for i in intents if i.is_open), None)
        if open_intent is not None:
            return _handle(open_intent, gateway.retrieve_client_secret(open_intent.provider_ref), reused=True)

        amount = order.total
        if amount <= 0:
            raise PaymentNotAllowed("Nothing to pay: the order total is zero")

        attempt = len(intents) + 1
        provider_intent = gateway.create_intent(
            amount=amount,
            currency=order.currency,
            idempotency_key=f"order-{order.id}-attempt-{attempt}",
            metadata={"order_id": str(order.id)},
        )

        intent = PaymentIntent.create(
            order_id=order.id,
            attempt=attempt,
            amount=amount,
            currency=order.currency,
            provider_ref=provider_intent.provider_ref,
        )
        order.attach_payment_intent(payment_intent_id=intent.id, payment_ref=intent.provider_ref)

        current_domain.repository_for(PaymentIntent).add(intent)
        order_repo.add(order)
        return _handle(intent, provider_intent.client_secret, reused=False)
