"""Domain events for the server-side ShoppingCart."""

from protean.fields import DateTime, Identifier, Integer, String

from checkout.domain import checkout


@checkout.event(part_of="ShoppingCart")
class CartLinesPushed:
    """A client cart was copied into the server-side cart store."""

    __version__ = 1

    cart_id = Identifier(required=True)
    buyer_id = Identifier(required=True)
    line_count = Integer(required=True)
    pushed_at = DateTime(required=True)


@checkout.event(part_of="ShoppingCart")
class CartCheckedOut:
    """The stored cart became an order."""

    __version__ = 1

    cart_id = Identifier(required=True)
    buyer_id = Identifier(required=True)
    order_id = Identifier(required=True)
    coupon_code = String()
    checked_out_at = DateTime(required=True)
