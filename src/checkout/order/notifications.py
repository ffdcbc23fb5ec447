"""Status notices — announces every recorded status change.

Each status event is raised together with the StatusTransition it records,
so one notice is published per history entry.
"""

import structlog
from protean.utils.mixins import handle

from checkout.domain import checkout
from checkout.notices import StatusNotice, get_feed
from checkout.order.events import (
    OrderCancelled,
    OrderConfirmed,
    OrderDelivered,
    OrderPlaced,
    OrderProcessing,
    OrderShipped,
)
from checkout.order.order import Order

logger = structlog.get_logger(__name__)


@checkout.event_handler(part_of=Order)
class OrderStatusNoticeHandler:
    def _publish(self, event) -> None:
        notice = StatusNotice(
            order_id=str(event.order_id),
            status=event.status,
            changed_at=event.changed_at,
        )
        get_feed().publish(notice)
        logger.debug("Status notice published", order_id=notice.order_id, status=notice.status)

    @handle(OrderPlaced)
    def on_order_placed(self, event: OrderPlaced) -> None:
        self._publish(event)

    @handle(OrderConfirmed)
    def on_order_confirmed(self, event: OrderConfirmed) -> None:
        self._publish(event)

    @handle(OrderProcessing)
    def on_order_processing(self, event: OrderProcessing) -> None:
        self._publish(event)

    @handle(OrderShipped)
    def on_order_shipped(self, event: OrderShipped) -> None:
        self._publish(event)

    @handle(OrderDelivered)
    def on_order_delivered(self, event: OrderDelivered) -> None:
        self._publish(event)

    @handle(OrderCancelled)
    def on_order_cancelled(self, event: OrderCancelled) -> None:
        self._publish(event)
