"""Order fulfillment — commands and handler.

Sellers and administrators move a confirmed order through processing,
shipment and delivery.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from checkout.domain import checkout
from checkout.order.order import Order


@checkout.command(part_of="Order")
class MarkProcessing:
    """Signal that the seller has started preparing the order."""

    order_id = Identifier(required=True)
    actor = String(required=True, max_length=50)
    notes = String(max_length=500)


@checkout.command(part_of="Order")
class RecordShipment:
    """Record that the order was handed to a carrier."""

    order_id = Identifier(required=True)
    actor = String(required=True, max_length=50)
    tracking_number = String(max_length=255)
    estimated_delivery = String(max_length=10)  # ISO date string
    notes = String(max_length=500)


@checkout.command(part_of="Order")
class RecordDelivery:
    """Record that the buyer received the order."""

    order_id = Identifier(required=True)
    actor = String(required=True, max_length=50)
    notes = String(max_length=500)


@checkout.command_handler(part_of=Order)
class RecordFulfillmentHandler:
    @handle(MarkProcessing)
    def mark_processing(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.mark_processing(actor=command.actor, notes=command.notes)
        repo.add(order)

    @handle(RecordShipment)
    def record_shipment(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.ship(
            actor=command.actor,
            tracking_number=command.tracking_number,
            estimated_delivery=command.estimated_delivery,
            notes=command.notes,
        )
        repo.add(order)

    @handle(RecordDelivery)
    def record_delivery(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.deliver(actor=command.actor, notes=command.notes)
        repo.add(order)
