"""Order Ledger — the entry point for creating, reading and transitioning orders.

Writes go through the domain's command handlers. Each write to an existing
order runs under that order's lock for the whole load, transition and
commit, so concurrent requests on one order are applied in turn and the
loser sees the winner's state.
"""

import json

import structlog
from protean.utils.globals import current_domain

from checkout import config
from checkout.order.cancellation import CancelOrder
from checkout.order.confirmation import ConfirmOrder
from checkout.order.creation import PlaceOrder
from checkout.order.fulfillment import MarkProcessing, RecordDelivery, RecordShipment
from checkout.order.locking import order_lock
from checkout.order.order import Order, TransitionActor
from checkout.order.payment import AttachPaymentIntent
from checkout.order.status_update import UpdateOrderStatus

logger = structlog.get_logger(__name__)

# Upper bound on orders scanned for one listing
_LISTING_LIMIT = 1000


class OrderLedger:
    # -------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------
    def place(self, buyer_id, items, shipping_address, discount=0.0, coupon_code=None, currency=None) -> str:
        """Create a Pending order from already-resolved items. Returns the order id."""
        order_id = current_domain.process(
            PlaceOrder(
                buyer_id=buyer_id,
                items=json.dumps(items),
                shipping_address=json.dumps(shipping_address),
                discount=discount,
                coupon_code=coupon_code,
                currency=currency or config.currency(),
            ),
            asynchronous=False,
        )
        logger.info("Order placed", order_id=order_id, buyer_id=str(buyer_id))
        return order_id

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def get(self, order_id) -> Order:
        return current_domain.repository_for(Order).get(order_id)

    def orders_for_buyer(self, buyer_id) -> list[Order]:
        repo = current_domain.repository_for(Order)
        orders = repo._dao.query.filter(buyer_id=str(buyer_id)).limit(_LISTING_LIMIT).all().items
        return sorted(orders, key=lambda o: o.created_at, reverse=True)

    def orders_for_seller(self, seller_id) -> list[Order]:
        """Orders that contain at least one item sold by ``seller_id``."""
        repo = current_domain.repository_for(Order)
        orders = repo._dao.query.limit(_LISTING_LIMIT).all().items
        matching = [o for o in orders if str(seller_id) in o.seller_ids()]
        return sorted(matching, key=lambda o: o.created_at, reverse=True)

    # -------------------------------------------------------------------
    # Writes on an existing order
    # -------------------------------------------------------------------
    def _apply(self, order_id, command):
        with order_lock(order_id):
            result = current_domain.process(command, asynchronous=False)
        logger.info(
            "Order command applied",
            order_id=str(order_id),
            command=command.__class__.__name__,
        )
        return result

    def attach_payment_intent(self, order_id, payment_intent_id, payment_ref):
        return self._apply(
            order_id,
            AttachPaymentIntent(
                order_id=order_id,
                payment_intent_id=payment_intent_id,
                payment_ref=payment_ref,
            ),
        )

    def confirm(self, order_id, payment_intent_id, notes=None):
        return self._apply(
            order_id,
            ConfirmOrder(
                order_id=order_id,
                payment_intent_id=payment_intent_id,
                actor=TransitionActor.PAYMENT_BRIDGE.value,
                notes=notes,
            ),
        )

    def mark_processing(self, order_id, actor, notes=None):
        return self._apply(order_id, MarkProcessing(order_id=order_id, actor=_actor_value(actor), notes=notes))

    def ship(self, order_id, actor, tracking_number, estimated_delivery=None, notes=None):
        return self._apply(
            order_id,
            RecordShipment(
                order_id=order_id,
                actor=_actor_value(actor),
                tracking_number=tracking_number,
                estimated_delivery=estimated_delivery,
                notes=notes,
            ),
        )

    def deliver(self, order_id, actor, notes=None):
        return self._apply(order_id, RecordDelivery(order_id=order_id, actor=_actor_value(actor), notes=notes))

    def cancel(self, order_id, actor, reason=None):
        return self._apply(order_id, CancelOrder(order_id=order_id, actor=_actor_value(actor), reason=reason))

    def request_transition(
        self,
        order_id,
        status,
        actor,
        notes=None,
        tracking_number=None,
        estimated_delivery=None,
    ):
        """Apply the transition that leads to ``status``. Returns the new status."""
        return self._apply(
            order_id,
            UpdateOrderStatus(
                order_id=order_id,
                status=getattr(status, "value", status),
                actor=_actor_value(actor),
                notes=notes,
                tracking_number=tracking_number,
                estimated_delivery=estimated_delivery,
            ),
        )


def _actor_value(actor) -> str:
    return getattr(actor, "value", actor)
