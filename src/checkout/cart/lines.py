"""Client-held cart data: lines and the session that carries them into checkout.

Both are transient values. The session is passed explicitly into the
materializer instead of being read from any ambient cart state.
"""

from dataclasses import dataclass, field

from protean.exceptions import ValidationError


@dataclass(frozen=True)
class CartLine:
    """One line of a client cart.

    ``product_ref`` is either an authoritative catalog key or an opaque
    client-local key (for instance a locally generated SKU such as "SP-1").
    """

    product_ref: str
    name: str
    unit_price: float
    quantity: int
    seller_id: str | None = None

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValidationError({"name": ["Cart line must have a product name"]})
        if self.quantity is None or int(self.quantity) < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})
        if self.unit_price is None or float(self.unit_price) < 0:
            raise ValidationError({"unit_price": ["Unit price cannot be negative"]})

    @classmethod
    def from_dict(cls, data: dict) -> "CartLine":
        return cls(
            product_ref=str(data.get("product_ref") or ""),
            name=data.get("name") or "",
            unit_price=float(data.get("unit_price", 0.0)),
            quantity=int(data.get("quantity", 1)),
            seller_id=data.get("seller_id"),
        )


@dataclass(frozen=True)
class CartSession:
    """A buyer's cart as submitted at checkout."""

    buyer_id: str
    lines: tuple[CartLine, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not self.buyer_id:
            raise ValidationError({"buyer_id": ["Checkout requires a buyer"]})
        if not self.lines:
            raise ValidationError({"cart": ["Your cart is empty"]})
        # Accept any iterable of lines but keep the value immutable
        object.__setattr__(self, "lines", tuple(self.lines))
