"""Translation of checkout errors into HTTP responses.

Every rejection leaves the API as one HTTPException with a single
actionable ``detail`` message.
"""

from contextlib import contextmanager

from fastapi import HTTPException
from protean.exceptions import ObjectNotFoundError, ValidationError

from checkout.errors import (
    CheckoutError,
    CouponRejected,
    InvalidTransition,
    InvalidWebhookSignature,
    MissingTrackingNumber,
    OrderAlreadyTerminal,
    PaymentNotAllowed,
    ProviderUnavailable,
    ResolutionError,
    SystemicCheckoutFailure,
    UnauthorizedTransition,
)

# Most specific first
_STATUS_CODES = [
    (ResolutionError, 422),
    (CouponRejected, 422),
    (MissingTrackingNumber, 422),
    (UnauthorizedTransition, 403),
    (InvalidTransition, 409),
    (OrderAlreadyTerminal, 409),
    (PaymentNotAllowed, 409),
]


def _first_message(exc: ValidationError) -> str:
    if isinstance(exc, CheckoutError):
        return exc.message
    for messages in (exc.messages or {}).values():
        if messages:
            return str(messages[0])
    return "Invalid request"


def status_code_for(exc: ValidationError) -> int:
    for error_type, status_code in _STATUS_CODES:
        if isinstance(exc, error_type):
            return status_code
    return 400


@contextmanager
def domain_errors():
    """Raise HTTPException for any checkout error escaping the block."""
    try:
        yield
    except ValidationError as exc:
        raise HTTPException(status_code=status_code_for(exc), detail=_first_message(exc)) from exc
    except ObjectNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Not found") from exc
    except InvalidWebhookSignature as exc:
        raise HTTPException(status_code=401, detail="Invalid webhook signature") from exc
    except ProviderUnavailable as exc:
        raise HTTPException(
            status_code=503, detail="The payment provider is not responding; please try again"
        ) from exc
    except SystemicCheckoutFailure as exc:
        raise HTTPException(status_code=503, detail="Checkout is temporarily unavailable; please try again") from exc
