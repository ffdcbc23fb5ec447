"""Coupon aggregate (CQRS) — coupon definitions read by the checkout.

Definitions are maintained by administrators; the checkout only evaluates
them against a subtotal and the current time. Codes are stored upper-case.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, List, String

from checkout.coupon.events import CouponDeactivated, CouponDefined, CouponRedeemed
from checkout.domain import checkout


class DiscountType(Enum):
    PERCENT = "percent"
    FIXED = "fixed"


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


def as_utc(value: datetime | None) -> datetime | None:
    """Treat naive timestamps as UTC so they compare with aware ones."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


@checkout.aggregate
class Coupon:
    code = String(identifier=True, required=True, max_length=50)
    discount_type = String(choices=DiscountType, required=True)
    value = Float(required=True, min_value=0.0)
    min_subtotal = Float(min_value=0.0)
    max_discount = Float(min_value=0.0)  # Cap for percent coupons
    starts_at = DateTime()
    expires_at = DateTime()
    usage_limit = Integer(min_value=1)  # Orders allowed across all buyers
    usage_count = Integer(default=0, min_value=0)
    per_buyer_limit = Integer(min_value=1)
    applicable_products = List(content_type=String)
    excluded_products = List(content_type=String)
    active = Boolean(default=True)
    created_at = DateTime()

    @invariant.post
    def percent_discount_cannot_exceed_one_hundred(self):
        if self.discount_type == DiscountType.PERCENT.value and self.value is not None and self.value > 100:
            raise ValidationError({"value": ["Percent discount cannot exceed 100"]})

    @classmethod
    def define(
        cls,
        code,
        discount_type,
        value,
        min_subtotal=None,
        max_discount=None,
        starts_at=None,
        expires_at=None,
        usage_limit=None,
        per_buyer_limit=None,
        applicable_products=None,
        excluded_products=None,
    ):
        normalized = normalize_code(code)
        if not normalized:
            raise ValidationError({"code": ["Coupon code is required"]})

        coupon = cls(
            code=normalized,
            discount_type=discount_type,
            value=value,
            min_subtotal=min_subtotal,
            max_discount=max_discount,
            starts_at=starts_at,
            expires_at=expires_at,
            usage_limit=usage_limit,
            usage_count=0,
            per_buyer_limit=per_buyer_limit,
            applicable_products=[str(p) for p in applicable_products or []],
            excluded_products=[str(p) for p in excluded_products or []],
            active=True,
            created_at=datetime.now(UTC),
        )
        coupon.raise_(
            CouponDefined(
                code=normalized,
                discount_type=discount_type,
                value=value,
                min_subtotal=min_subtotal,
                max_discount=max_discount,
                starts_at=starts_at,
                expires_at=expires_at,
                usage_limit=usage_limit,
                per_buyer_limit=per_buyer_limit,
            )
        )
        return coupon

    def deactivate(self):
        if not self.active:
            raise ValidationError({"active": ["Coupon is already inactive"]})

        self.active = False
        self.raise_(
            CouponDeactivated(
                code=self.code,
                deactivated_at=datetime.now(UTC),
            )
        )

    def has_started(self, now: datetime) -> bool:
        return self.starts_at is None or as_utc(now) >= as_utc(self.starts_at)

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and as_utc(now) > as_utc(self.expires_at)

    def meets_minimum(self, subtotal: float) -> bool:
        return not self.min_subtotal or subtotal >= self.min_subtotal

    def discount_for(self, subtotal: float) -> float:
        """Discount this coupon grants on ``subtotal``; never more than the subtotal itself."""
        if DiscountType(self.discount_type) == DiscountType.PERCENT:
            discount = subtotal * self.value / 100
            if self.max_discount:
                discount = min(discount, self.max_discount)
        else:
            discount = self.value

        return round(max(0.0, min(discount, subtotal)), 2)

    def is_used_up(self) -> bool:
        return bool(self.usage_limit) and (self.usage_count or 0) >= self.usage_limit

    def applies_to(self, product_ids) -> bool:
        """False when any product is excluded, or none is among the applicable ones."""
        ids = {str(p) for p in product_ids}
        if ids & set(self.excluded_products or []):
            return False
        return not self.applicable_products or bool(ids & set(self.applicable_products))

    def record_use(self, order_id) -> None:
        self.usage_count = (self.usage_count or 0) + 1
        self.raise_(
            CouponRedeemed(
                code=self.code,
                order_id=str(order_id),
                usage_count=self.usage_count,
                redeemed_at=datetime.now(UTC),
            )
        )
