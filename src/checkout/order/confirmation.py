"""Order confirmation — command and handler.

Only the payment bridge sends this command, after the order's current
payment intent reported success. The handler checks the intent itself
rather than trusting the caller.
"""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from checkout.domain import checkout
from checkout.errors import UnauthorizedTransition
from checkout.order.order import Order, TransitionActor
from checkout.payment.intent import IntentStatus, PaymentIntent


@checkout.command(part_of="Order")
class ConfirmOrder:
    order_id = Identifier(required=True)
    payment_intent_id = Identifier(required=True)
    actor = String(default=TransitionActor.PAYMENT_BRIDGE.value)
    notes = String(max_length=500)


@checkout.command_handler(part_of=Order)
class ConfirmOrderHandler:
    @handle(ConfirmOrder)
    def confirm_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        try:
            intent = current_domain.repository_for(PaymentIntent).get(command.payment_intent_id)
        except ObjectNotFoundError:
            raise UnauthorizedTransition("Only a recorded payment intent can confirm an order")
        if str(intent.order_id) != str(order.id):
            raise UnauthorizedTransition("The payment intent belongs to another order")
        if IntentStatus(intent.status) != IntentStatus.SUCCEEDED:
            raise UnauthorizedTransition("Only a succeeded payment intent can confirm an order")

        order.confirm(
            actor=command.actor,
            payment_intent_id=command.payment_intent_id,
            notes=command.notes,
        )
        repo.add(order)
