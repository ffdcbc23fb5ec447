"""Coupon validator — evaluates a code against a subtotal at a point in time.

Read-only: the caller persists the resulting discount into the Order
snapshot, and redemptions are counted when the order is placed. Rejections
are raised in a fixed order: unknown code, inactive, expired, usage limit
reached, minimum subtotal not met, not applicable to the products, buyer's
own limit reached. Product and buyer checks only run when the caller
supplies them.
"""

from dataclasses import dataclass
from datetime import UTC, datetime

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from checkout.coupon.coupon import Coupon, normalize_code
from checkout.errors import (
    CouponExpired,
    CouponInactive,
    CouponNotApplicable,
    CouponNotFound,
    MinimumNotMet,
    UsageLimitReached,
)
from checkout.order.order import Order, OrderStatus


@dataclass(frozen=True)
class CouponDiscount:
    code: str
    discount: float


def uses_by_buyer(code: str, buyer_id) -> int:
    """Orders the buyer placed with ``code`` that were not cancelled."""
    repo = current_domain.repository_for(Order)
    return (
        repo._dao.query.filter(buyer_id=str(buyer_id), coupon_code=code)
        .exclude(status=OrderStatus.CANCELLED.value)
        .all()
        .total
    )


class CouponValidator:
    def validate(
        self,
        code: str,
        subtotal: float,
        now: datetime | None = None,
        buyer_id=None,
        product_ids=None,
    ) -> CouponDiscount:
        now = now or datetime.now(UTC)
        normalized = normalize_code(code)

        try:
            coupon = current_domain.repository_for(Coupon).get(normalized)
        except ObjectNotFoundError:
            raise CouponNotFound(f"Coupon {normalized or code!r} does not exist") from None

        if not coupon.active or not coupon.has_started(now):
            raise CouponInactive(f"Coupon {normalized} is not active")
        if coupon.is_expired(now):
            raise CouponExpired(f"Coupon {normalized} has expired")
        if coupon.is_used_up():
            raise UsageLimitReached(f"Coupon {normalized} has reached its usage limit")
        if not coupon.meets_minimum(subtotal):
            raise MinimumNotMet(f"Coupon {normalized} requires a subtotal of at least {coupon.min_subtotal:.2f}")
        if product_ids and not coupon.applies_to(product_ids):
            raise CouponNotApplicable(f"Coupon {normalized} does not apply to the items in your cart")
        if buyer_id and coupon.per_buyer_limit and uses_by_buyer(normalized, buyer_id) >= coupon.per_buyer_limit:
            raise UsageLimitReached(f"You have already used coupon {normalized}")

        return CouponDiscount(code=normalized, discount=coupon.discount_for(subtotal))
