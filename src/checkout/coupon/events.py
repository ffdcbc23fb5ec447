"""Domain events for the Coupon aggregate."""

from protean.fields import DateTime, Float, Integer, String

from checkout.domain import checkout


@checkout.event(part_of="Coupon")
class CouponDefined:
    """An administrator defined a new coupon."""

    __version__ = 1

    code = String(required=True)
    discount_type = String(required=True)
    value = Float(required=True)
    min_subtotal = Float()
    max_discount = Float()
    starts_at = DateTime()
    expires_at = DateTime()
    usage_limit = Integer()
    per_buyer_limit = Integer()


@checkout.event(part_of="Coupon")
class CouponDeactivated:
    """A coupon was switched off and no longer validates."""

    __version__ = 1

    code = String(required=True)
    deactivated_at = DateTime(required=True)


@checkout.event(part_of="Coupon")
class CouponRedeemed:
    """An order was placed with this coupon."""

    __version__ = 1

    code = String(required=True)
    order_id = String(required=True)
    usage_count = Integer(required=True)
    redeemed_at = DateTime(required=True)
