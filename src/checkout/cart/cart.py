"""Shopping Cart aggregate (CQRS) — the server-side cart store.

Used only by the cart-sync checkout path: the client's lines are pushed
here first and the order is then created from the stored cart. A buyer has
at most one Active cart; pushing lines again replaces its contents.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from checkout.cart.events import CartCheckedOut, CartLinesPushed
from checkout.domain import checkout


class CartStatus(Enum):
    ACTIVE = "Active"
    CHECKED_OUT = "CheckedOut"


@checkout.entity(part_of="ShoppingCart")
class CartItem:
    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    seller_id = String(max_length=255)


@checkout.aggregate
class ShoppingCart:
    buyer_id = Identifier(required=True)
    items = HasMany(CartItem)
    status = String(choices=CartStatus, default=CartStatus.ACTIVE.value)
    order_id = Identifier()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def checked_out_cart_must_have_items(self):
        if self.status == CartStatus.CHECKED_OUT.value and not self.items:
            raise ValidationError({"cart": ["Cannot check out an empty cart"]})

    @classmethod
    def open(cls, buyer_id):
        now = datetime.now(UTC)
        return cls(
            buyer_id=buyer_id,
            status=CartStatus.ACTIVE.value,
            created_at=now,
            updated_at=now,
        )

    @property
    def subtotal(self) -> float:
        return round(sum(i.unit_price * i.quantity for i in self.items), 2)

    def push_lines(self, resolved_lines):
        """Replace the cart contents with already-resolved lines."""
        if CartStatus(self.status) != CartStatus.ACTIVE:
            raise ValidationError({"status": ["Lines can only be pushed to an active cart"]})
        if not resolved_lines:
            raise ValidationError({"cart": ["Your cart is empty"]})

        for item in list(self.items):
            self.remove_items(item)
        for line in resolved_lines:
            self.add_items(
                CartItem(
                    product_id=line["product_id"],
                    name=line["name"],
                    unit_price=float(line["price"]),
                    quantity=int(line["qty"]),
                    seller_id=line.get("seller_id") or None,
                )
            )

        now = datetime.now(UTC)
        self.updated_at = now
        self.raise_(
            CartLinesPushed(
                cart_id=str(self.id),
                buyer_id=str(self.buyer_id),
                line_count=len(resolved_lines),
                pushed_at=now,
            )
        )

    def to_items(self) -> list[dict]:
        return [
            {
                "product_id": str(i.product_id),
                "name": i.name,
                "price": i.unit_price,
                "qty": i.quantity,
                "seller_id": i.seller_id or "",
            }
            for i in self.items
        ]

    def check_out(self, order_id, coupon_code=None):
        if CartStatus(self.status) != CartStatus.ACTIVE:
            raise ValidationError({"status": ["Only an active cart can be checked out"]})
        if not self.items:
            raise ValidationError({"cart": ["Cannot check out an empty cart"]})

        now = datetime.now(UTC)
        self.status = CartStatus.CHECKED_OUT.value
        self.order_id = order_id
        self.updated_at = now
        self.raise_(
            CartCheckedOut(
                cart_id=str(self.id),
                buyer_id=str(self.buyer_id),
                order_id=str(order_id),
                coupon_code=coupon_code,
                checked_out_at=now,
            )
        )
