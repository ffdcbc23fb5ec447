"""Order payment reference — command and handler."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from checkout.domain import checkout
from checkout.order.order import Order


@checkout.command(part_of="Order")
class AttachPaymentIntent:
    order_id = Identifier(required=True)
    payment_intent_id = Identifier(required=True)
    payment_ref = String(required=True, max_length=255)


@checkout.command_handler(part_of=Order)
class AttachPaymentIntentHandler:
    @handle(AttachPaymentIntent)
    def attach_payment_intent(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.attach_payment_intent(
            payment_intent_id=command.payment_intent_id,
            payment_ref=command.payment_ref,
        )
        repo.add(order)
