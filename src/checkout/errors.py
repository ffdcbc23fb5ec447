"""Checkout error taxonomy.

Domain rejections subclass Protean's ValidationError so they carry the usual
``messages`` dict keyed by field, and expose a stable ``code`` for API
mapping. Transient provider failures are plain exceptions: they are retried
by the caller and never recorded as a ledger outcome.
"""

from protean.exceptions import ValidationError


class CheckoutError(ValidationError):
    """Base class for every rejection the coordinator reports to a caller."""

    code = "checkout_error"
    field = "checkout"

    def __init__(self, message: str, field: str | None = None) -> None:
        self.message = message
        super().__init__({field or self.field: [message]})


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------
class ResolutionError(CheckoutError):
    code = "resolution_error"
    field = "items"


class ProductNotFound(ResolutionError):
    code = "product_not_found"


# ---------------------------------------------------------------------------
# Coupons
# ---------------------------------------------------------------------------
class CouponRejected(CheckoutError):
    code = "coupon_rejected"
    field = "coupon_code"


class CouponNotFound(CouponRejected):
    code = "coupon_not_found"


class CouponExpired(CouponRejected):
    code = "coupon_expired"


class CouponInactive(CouponRejected):
    code = "coupon_inactive"


class MinimumNotMet(CouponRejected):
    code = "minimum_not_met"


class UsageLimitReached(CouponRejected):
    code = "usage_limit_reached"


class CouponNotApplicable(CouponRejected):
    code = "coupon_not_applicable"


# ---------------------------------------------------------------------------
# Order transitions
# ---------------------------------------------------------------------------
class TransitionError(CheckoutError):
    code = "transition_error"
    field = "status"


class InvalidTransition(TransitionError):
    code = "invalid_transition"


class MissingTrackingNumber(TransitionError):
    code = "missing_tracking_number"
    field = "tracking_number"


class UnauthorizedTransition(TransitionError):
    code = "unauthorized_transition"


class OrderAlreadyTerminal(TransitionError):
    code = "order_already_terminal"


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------
class PaymentNotAllowed(CheckoutError):
    code = "payment_not_allowed"
    field = "payment"


class ProviderUnavailable(Exception):
    """The payment provider could not be reached or did not answer in time."""


# ---------------------------------------------------------------------------
# Materialization
# ---------------------------------------------------------------------------
class SystemicCheckoutFailure(Exception):
    """A failure of the checkout path itself rather than of the buyer's cart.

    Only failures of this kind make the materializer try its next strategy.
    """


class InvalidWebhookSignature(Exception):
    """A provider callback whose signature does not verify."""
