"""Order placement — command and handler."""

import json

from protean import handle
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from checkout.domain import checkout
from checkout.order.order import Order


@checkout.command(part_of="Order")
class PlaceOrder:
    buyer_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of resolved item dicts
    shipping_address = Text(required=True)  # JSON: address dict
    discount = Float(default=0.0)
    coupon_code = String(max_length=50)
    currency = String(max_length=3, default="USD")


@checkout.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        items_data = json.loads(command.items) if isinstance(command.items, str) else command.items
        shipping_address = (
            json.loads(command.shipping_address)
            if isinstance(command.shipping_address, str)
            else command.shipping_address
        )

        order = Order.place(
            buyer_id=command.buyer_id,
            items_data=items_data,
            shipping_address=shipping_address,
            discount=command.discount or 0.0,
            coupon_code=command.coupon_code,
            currency=command.currency or "USD",
        )
        current_domain.repository_for(Order).add(order)
        return str(order.id)
