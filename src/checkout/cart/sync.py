"""Cart store operations — push lines, then create the order from the stored cart.

CheckoutCart re-checks every stored item against the catalog and places the
order and closes the cart in one unit of work, so a failure leaves no order
behind.
"""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from checkout import config
from checkout.cart.cart import CartStatus, ShoppingCart
from checkout.catalog import get_catalog
from checkout.coupon.validator import CouponValidator
from checkout.domain import checkout
from checkout.errors import ProductNotFound
from checkout.order.order import Order


@checkout.command(part_of="ShoppingCart")
class PushCartLines:
    buyer_id = Identifier(required=True)
    lines = Text(required=True)  # JSON: list of resolved item dicts


@checkout.command(part_of="ShoppingCart")
class CheckoutCart:
    buyer_id = Identifier(required=True)
    shipping_address = Text(required=True)  # JSON: address dict
    coupon_code = String(max_length=50)


def active_cart_for(buyer_id):
    repo = current_domain.repository_for(ShoppingCart)
    carts = repo._dao.query.filter(buyer_id=str(buyer_id), status=CartStatus.ACTIVE.value).all().items
    return carts[0] if carts else None


@checkout.command_handler(part_of=ShoppingCart)
class CartSyncHandler:
    @handle(PushCartLines)
    def push_cart_lines(self, command):
        lines = json.loads(command.lines) if isinstance(command.lines, str) else command.lines

        cart = active_cart_for(command.buyer_id) or ShoppingCart.open(command.buyer_id)
        cart.push_lines(lines)
        current_domain.repository_for(ShoppingCart).add(cart)
        return str(cart.id)

    @handle(CheckoutCart)
    def checkout_cart(self, command):
        cart = active_cart_for(command.buyer_id)
        if cart is None or not cart.items:
            raise ValidationError({"cart": ["Your cart is empty"]})

        catalog = get_catalog()
        for item in cart.items:
            if catalog.lookup_by_key(str(item.product_id)) is None:
                raise ProductNotFound(f"Item unavailable: {item.name}")

        discount = 0.0
        coupon_code = None
        if command.coupon_code:
            applied = CouponValidator().validate(
                command.coupon_code,
                cart.subtotal,
                buyer_id=command.buyer_id,
                product_ids=[str(item.product_id) for item in cart.items],
            )
            discount, coupon_code = applied.discount, applied.code

        shipping_address = (
            json.loads(command.shipping_address)
            if isinstance(command.shipping_address, str)
            else command.shipping_address
        )
        order = Order.place(
            buyer_id=command.buyer_id,
            items_data=cart.to_items(),
            shipping_address=shipping_address,
            discount=discount,
            coupon_code=coupon_code,
            currency=config.currency(),
        )
        cart.check_out(order.id, coupon_code)

        current_domain.repository_for(Order).add(order)
        current_domain.repository_for(ShoppingCart).add(cart)
        return str(order.id)
