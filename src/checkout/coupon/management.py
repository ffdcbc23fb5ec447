"""Coupon definition management — commands and handler (administrators only)."""

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import DateTime, Float, Integer, List, String
from protean.utils.globals import current_domain

from checkout.coupon.coupon import Coupon, normalize_code
from checkout.domain import checkout


@checkout.command(part_of="Coupon")
class DefineCoupon:
    code = String(required=True, max_length=50)
    discount_type = String(required=True, max_length=20)
    value = Float(required=True, min_value=0.0)
    min_subtotal = Float()
    max_discount = Float()
    starts_at = DateTime()
    expires_at = DateTime()
    usage_limit = Integer(min_value=1)
    per_buyer_limit = Integer(min_value=1)
    applicable_products = List(content_type=String)
    excluded_products = List(content_type=String)


@checkout.command(part_of="Coupon")
class DeactivateCoupon:
    code = String(required=True, max_length=50)


@checkout.command_handler(part_of=Coupon)
class CouponManagementHandler:
    @handle(DefineCoupon)
    def define_coupon(self, command):
        repo = current_domain.repository_for(Coupon)
        code = normalize_code(command.code)

        try:
            repo.get(code)
        except ObjectNotFoundError:
            pass
        else:
            raise ValidationError({"code": ["Coupon code already exists"]})

        coupon = Coupon.define(
            code=code,
            discount_type=command.discount_type,
            value=command.value,
            min_subtotal=command.min_subtotal,
            max_discount=command.max_discount,
            starts_at=command.starts_at,
            expires_at=command.expires_at,
            usage_limit=command.usage_limit,
            per_buyer_limit=command.per_buyer_limit,
            applicable_products=command.applicable_products,
            excluded_products=command.excluded_products,
        )
        repo.add(coupon)
        return coupon.code

    @handle(DeactivateCoupon)
    def deactivate_coupon(self, command):
        repo = current_domain.repository_for(Coupon)
        coupon = repo.get(normalize_code(command.code))
        coupon.deactivate()
        repo.add(coupon)
