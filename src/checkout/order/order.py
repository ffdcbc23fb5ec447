"""Order aggregate (CQRS) — the ledger's single source of truth for an order.

State Machine:
    PENDING → CONFIRMED → PROCESSING → SHIPPED → DELIVERED
    CANCELLED (from PENDING, CONFIRMED, PROCESSING)

DELIVERED and CANCELLED are terminal. Every accepted transition appends
exactly one StatusTransition in the same method call that changes
``status``, so the last history entry always matches the current status.
Orders are never deleted; the subtotal and item prices are snapshots taken
at placement and never recomputed from the catalog.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import (
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    ValueObject,
)

from checkout.domain import checkout
from checkout.errors import (
    InvalidTransition,
    MissingTrackingNumber,
    OrderAlreadyTerminal,
    PaymentNotAllowed,
    UnauthorizedTransition,
)
from checkout.order.events import (
    OrderCancelled,
    OrderConfirmed,
    OrderDelivered,
    OrderPlaced,
    OrderProcessing,
    OrderShipped,
    PaymentIntentAttached,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


class TransitionActor(Enum):
    BUYER = "Buyer"
    SELLER = "Seller"
    ADMIN = "Admin"
    PAYMENT_BRIDGE = "PaymentBridge"
    SYSTEM = "System"


HAPPY_PATH = [
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
]

# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

TERMINAL_STATES = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}

# Who may request each target status
_PERMITTED_ACTORS = {
    OrderStatus.CONFIRMED: {TransitionActor.PAYMENT_BRIDGE},
    OrderStatus.PROCESSING: {TransitionActor.SELLER, TransitionActor.ADMIN},
    OrderStatus.SHIPPED: {TransitionActor.SELLER, TransitionActor.ADMIN},
    OrderStatus.DELIVERED: {TransitionActor.SELLER, TransitionActor.ADMIN},
    OrderStatus.CANCELLED: {TransitionActor.BUYER, TransitionActor.ADMIN, TransitionActor.SYSTEM},
}


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@checkout.value_object(part_of="Order")
class ShippingAddress:
    """Delivery address captured at checkout; later address-book edits do not touch it."""

    full_name = String(max_length=255)
    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    postal_code = String(required=True, max_length=20)
    country = String(required=True, max_length=100)
    phone = String(max_length=30)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@checkout.entity(part_of="Order")
class OrderItem:
    """A purchased product with the price it had when the order was placed."""

    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    price = Float(required=True, min_value=0.0)
    qty = Integer(required=True, min_value=1)
    seller_id = String(max_length=255)


@checkout.entity(part_of="Order")
class StatusTransition:
    """One recorded status change. Entries are appended, never edited."""

    sequence = Integer(required=True, min_value=1)
    status = String(required=True, choices=OrderStatus)
    changed_at = DateTime(required=True)
    actor = String(required=True, choices=TransitionActor)
    notes = String(max_length=500)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@checkout.aggregate
class Order:
    buyer_id = Identifier(required=True)
    items = HasMany(OrderItem)
    subtotal = Float(required=True, min_value=0.0)
    discount = Float(default=0.0, min_value=0.0)
    currency = String(max_length=3, default="USD")
    coupon_code = String(max_length=50)
    shipping_address = ValueObject(ShippingAddress)
    status = String(
        choices=OrderStatus,
        default=OrderStatus.PENDING.value,
    )
    status_history = HasMany(StatusTransition)
    tracking_number = String(max_length=255)
    estimated_delivery = String(max_length=10)  # ISO date string
    cancellation_reason = String(max_length=500)
    payment_intent_id = Identifier()
    payment_ref = String(max_length=255)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        buyer_id,
        items_data,
        shipping_address,
        discount=0.0,
        coupon_code=None,
        currency="USD",
    ):
        """Place a new Pending order.

        Args:
            buyer_id: The buyer placing the order.
            items_data: List of dicts with product_id, name, price, qty, seller_id.
            shipping_address: Dict with street, city, state, postal_code, country.
            discount: Coupon discount already validated for this subtotal.
            coupon_code: The applied coupon, if any.
            currency: ISO currency code of all amounts.
        """
        if not items_data:
            raise ValidationError({"items": ["An order needs at least one item"]})

        now = datetime.now(UTC)
        subtotal = round(sum(float(item["price"]) * int(item["qty"]) for item in items_data), 2)
        discount = round(max(0.0, min(float(discount or 0.0), subtotal)), 2)

        order = cls(
            buyer_id=buyer_id,
            subtotal=subtotal,
            discount=discount,
            currency=currency,
            coupon_code=coupon_code,
            shipping_address=ShippingAddress(**shipping_address),
            status=OrderStatus.PENDING.value,
            created_at=now,
            updated_at=now,
        )
        for item in items_data:
            order.add_items(
                OrderItem(
                    product_id=item["product_id"],
                    name=item["name"],
                    price=float(item["price"]),
                    qty=int(item["qty"]),
                    seller_id=item.get("seller_id") or None,
                )
            )
        order._append_transition(OrderStatus.PENDING, TransitionActor.BUYER, now, "Order placed")

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                buyer_id=str(buyer_id),
                status=OrderStatus.PENDING.value,
                changed_at=now,
                actor=TransitionActor.BUYER.value,
                items=json.dumps(items_data),
                subtotal=subtotal,
                discount=discount,
                total=order.total,
                currency=currency,
                coupon_code=coupon_code,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Derived values
    # -------------------------------------------------------------------
    @property
    def total(self) -> float:
        return round(max(0.0, self.subtotal - (self.discount or 0.0)), 2)

    @property
    def is_terminal(self) -> bool:
        return OrderStatus(self.status) in TERMINAL_STATES

    def timeline(self):
        """Status history in the order it was recorded."""
        return sorted(self.status_history or [], key=lambda t: t.sequence)

    def seller_ids(self) -> set[str]:
        return {item.seller_id for item in self.items if item.seller_id}

    # -------------------------------------------------------------------
    # Transition guard and history
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target: OrderStatus, actor: TransitionActor) -> None:
        current = OrderStatus(self.status)

        if current in TERMINAL_STATES:
            raise OrderAlreadyTerminal(f"Order is already {current.value}; no further changes are allowed")
        if target not in _PERMITTED_ACTORS:
            raise InvalidTransition(f"Cannot transition from {current.value} to {target.value}")
        if actor not in _PERMITTED_ACTORS[target]:
            raise UnauthorizedTransition(f"{actor.value} is not allowed to move an order to {target.value}")
        if target not in _VALID_TRANSITIONS[current]:
            raise InvalidTransition(f"Cannot transition from {current.value} to {target.value}")

    def _append_transition(self, status: OrderStatus, actor: TransitionActor, changed_at, notes=None) -> None:
        self.add_status_history(
            StatusTransition(
                sequence=len(self.status_history or []) + 1,
                status=status.value,
                changed_at=changed_at,
                actor=actor.value,
                notes=notes,
            )
        )
        self.status = status.value
        self.updated_at = changed_at

    @staticmethod
    def _actor(actor) -> TransitionActor:
        try:
            return TransitionActor(actor.value if isinstance(actor, TransitionActor) else actor)
        except ValueError:
            raise UnauthorizedTransition(f"Unknown actor {actor!r}") from None

    # -------------------------------------------------------------------
    # Payment reference
    # -------------------------------------------------------------------
    def attach_payment_intent(self, payment_intent_id, payment_ref):
        """Make an intent the current payment attempt. Only while awaiting payment."""
        if OrderStatus(self.status) != OrderStatus.PENDING:
            raise PaymentNotAllowed(f"Order is {self.status}; it is not awaiting payment")

        self.payment_intent_id = payment_intent_id
        self.payment_ref = payment_ref
        self.updated_at = datetime.now(UTC)

        self.raise_(
            PaymentIntentAttached(
                order_id=str(self.id),
                payment_intent_id=str(payment_intent_id),
                payment_ref=payment_ref,
            )
        )

    # -------------------------------------------------------------------
    # Lifecycle transitions
    # -------------------------------------------------------------------
    def confirm(self, actor, payment_intent_id, notes=None):
        """Confirm the order after its current payment intent succeeded."""
        actor = self._actor(actor)
        self._assert_can_transition(OrderStatus.CONFIRMED, actor)
        if not payment_intent_id or str(payment_intent_id) != str(self.payment_intent_id):
            raise UnauthorizedTransition("Only the order's current payment intent can confirm it")

        now = datetime.now(UTC)
        self._append_transition(OrderStatus.CONFIRMED, actor, now, notes)
        self.raise_(
            OrderConfirmed(
                order_id=str(self.id),
                status=OrderStatus.CONFIRMED.value,
                changed_at=now,
                actor=actor.value,
                notes=notes,
                payment_intent_id=str(payment_intent_id),
            )
        )

    def mark_processing(self, actor, notes=None):
        """A seller started preparing the order."""
        actor = self._actor(actor)
        self._assert_can_transition(OrderStatus.PROCESSING, actor)

        now = datetime.now(UTC)
        self._append_transition(OrderStatus.PROCESSING, actor, now, notes)
        self.raise_(
            OrderProcessing(
                order_id=str(self.id),
                status=OrderStatus.PROCESSING.value,
                changed_at=now,
                actor=actor.value,
                notes=notes,
            )
        )

    def ship(self, actor, tracking_number, estimated_delivery=None, notes=None):
        """Record shipment. The tracking number is part of the same transition."""
        actor = self._actor(actor)
        self._assert_can_transition(OrderStatus.SHIPPED, actor)
        if not tracking_number or not str(tracking_number).strip():
            raise MissingTrackingNumber("A tracking number is required to ship an order")

        now = datetime.now(UTC)
        self.tracking_number = str(tracking_number).strip()
        if estimated_delivery:
            self.estimated_delivery = estimated_delivery
        self._append_transition(OrderStatus.SHIPPED, actor, now, notes)
        self.raise_(
            OrderShipped(
                order_id=str(self.id),
                status=OrderStatus.SHIPPED.value,
                changed_at=now,
                actor=actor.value,
                notes=notes,
                tracking_number=self.tracking_number,
                estimated_delivery=estimated_delivery,
            )
        )

    def deliver(self, actor, notes=None):
        """Record that the buyer received the order."""
        actor = self._actor(actor)
        self._assert_can_transition(OrderStatus.DELIVERED, actor)

        now = datetime.now(UTC)
        self._append_transition(OrderStatus.DELIVERED, actor, now, notes)
        self.raise_(
            OrderDelivered(
                order_id=str(self.id),
                status=OrderStatus.DELIVERED.value,
                changed_at=now,
                actor=actor.value,
                notes=notes,
            )
        )

    def cancel(self, actor, reason=None):
        """Cancel the order. Not possible once it has shipped."""
        actor = self._actor(actor)
        self._assert_can_transition(OrderStatus.CANCELLED, actor)

        now = datetime.now(UTC)
        self.cancellation_reason = reason
        self._append_transition(OrderStatus.CANCELLED, actor, now, reason)
        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                status=OrderStatus.CANCELLED.value,
                changed_at=now,
                actor=actor.value,
                notes=reason,
            )
        )

    def transition_to(
        self,
        target,
        actor,
        notes=None,
        tracking_number=None,
        estimated_delivery=None,
        payment_intent_id=None,
    ):
        """Apply a transition named by its target status."""
        try:
            target = OrderStatus(target.value if isinstance(target, OrderStatus) else target)
        except ValueError:
            raise InvalidTransition(f"Unknown order status {target!r}") from None

        if target == OrderStatus.CONFIRMED:
            self.confirm(actor, payment_intent_id, notes)
        elif target == OrderStatus.PROCESSING:
            self.mark_processing(actor, notes)
        elif target == OrderStatus.SHIPPED:
            self.ship(actor, tracking_number, estimated_delivery, notes)
        elif target == OrderStatus.DELIVERED:
            self.deliver(actor, notes)
        elif target == OrderStatus.CANCELLED:
            self.cancel(actor, notes)
        else:
            # PENDING is only ever the initial state
            self._assert_can_transition(target, self._actor(actor))
