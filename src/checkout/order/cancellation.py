"""Order cancellation — command and handler."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from checkout.domain import checkout
from checkout.order.order import Order


@checkout.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    actor = String(required=True, max_length=50)
    reason = String(max_length=500)


@checkout.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.cancel(actor=command.actor, reason=command.reason)
        repo.add(order)
