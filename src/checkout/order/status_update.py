"""Generic status update — command and handler.

Admin and seller screens request a target status rather than a specific
transition. The aggregate maps the target onto the matching transition
and applies the same guards.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from checkout.domain import checkout
from checkout.order.order import Order


@checkout.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=20)
    actor = String(required=True, max_length=50)
    notes = String(max_length=500)
    tracking_number = String(max_length=255)
    estimated_delivery = String(max_length=10)  # ISO date string


@checkout.command_handler(part_of=Order)
class UpdateOrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_order_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.transition_to(
            command.status,
            actor=command.actor,
            notes=command.notes,
            tracking_number=command.tracking_number,
            estimated_delivery=command.estimated_delivery,
        )
        repo.add(order)
        return order.status
