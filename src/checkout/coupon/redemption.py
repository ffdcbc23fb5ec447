"""Coupon redemption — counts every order placed with a coupon."""

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from checkout.coupon.coupon import Coupon
from checkout.domain import checkout
from checkout.order.events import OrderPlaced

logger = structlog.get_logger(__name__)


@checkout.event_handler(part_of=Coupon, stream_category="checkout::order")
class CouponRedemptionHandler:
    @handle(OrderPlaced)
    def on_order_placed(self, event: OrderPlaced) -> None:
        if not event.coupon_code:
            return

        repo = current_domain.repository_for(Coupon)
        try:
            coupon = repo.get(event.coupon_code)
        except ObjectNotFoundError:
            logger.warning("Order placed with unknown coupon", order_id=str(event.order_id), code=event.coupon_code)
            return

        coupon.record_use(event.order_id)
        repo.add(coupon)
        logger.info("Coupon redeemed", code=coupon.code, order_id=str(event.order_id), usage_count=coupon.usage_count)
