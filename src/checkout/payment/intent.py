"""PaymentIntent aggregate (CQRS) — one attempt to collect payment for an order.

State Machine:
    REQUIRES_PAYMENT → PROCESSING → SUCCEEDED
    REQUIRES_PAYMENT / PROCESSING → FAILED | CANCELED

SUCCEEDED, FAILED and CANCELED are terminal. An order has at most one
non-terminal intent at a time; a new one may be created only after the
previous intent failed or was canceled. The provider's client secret is
never stored here, only the opaque ``provider_ref`` used to re-query it.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import DateTime, Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from checkout.domain import checkout
from checkout.payment.events import (
    PaymentIntentCanceled,
    PaymentIntentCreated,
    PaymentIntentFailed,
    PaymentIntentProcessing,
    PaymentIntentSucceeded,
)


class IntentStatus(Enum):
    REQUIRES_PAYMENT = "requires_payment"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"


OPEN_STATUSES = {IntentStatus.REQUIRES_PAYMENT, IntentStatus.PROCESSING}
TERMINAL_STATUSES = {IntentStatus.SUCCEEDED, IntentStatus.FAILED, IntentStatus.CANCELED}


@checkout.aggregate
class PaymentIntent:
    order_id = Identifier(required=True)
    attempt = Integer(required=True, min_value=1)
    amount = Float(required=True, min_value=0.0)
    currency = String(max_length=3, default="USD")
    status = String(choices=IntentStatus, default=IntentStatus.REQUIRES_PAYMENT.value)
    provider_ref = String(required=True, max_length=255)
    created_at = DateTime()
    updated_at = DateTime()
    settled_at = DateTime()

    @classmethod
    def create(cls, order_id, attempt, amount, currency, provider_ref):
        now = datetime.now(UTC)
        intent = cls(
            order_id=order_id,
            attempt=attempt,
            amount=amount,
            currency=currency,
            provider_ref=provider_ref,
            status=IntentStatus.REQUIRES_PAYMENT.value,
            created_at=now,
            updated_at=now,
        )
        intent.raise_(
            PaymentIntentCreated(
                payment_intent_id=str(intent.id),
                order_id=str(order_id),
                amount=amount,
                currency=currency,
                provider_ref=provider_ref,
                created_at=now,
            )
        )
        return intent

    @property
    def is_open(self) -> bool:
        return IntentStatus(self.status) in OPEN_STATUSES

    @property
    def is_terminal(self) -> bool:
        return IntentStatus(self.status) in TERMINAL_STATUSES

    def record_status(self, reported: str) -> bool:
        """Apply a status reported by the provider. Returns True if anything changed.

        Reports for a terminal intent, and reports that would move it
        backwards, are ignored.
        """
        reported = IntentStatus(reported)
        current = IntentStatus(self.status)

        if current in TERMINAL_STATUSES or reported == current:
            return False
        if reported == IntentStatus.REQUIRES_PAYMENT:
            # Provider asks for another payment method; still the same open attempt
            return False

        now = datetime.now(UTC)
        self.status = reported.value
        self.updated_at = now

        if reported == IntentStatus.PROCESSING:
            self.raise_(
                PaymentIntentProcessing(payment_intent_id=str(self.id), order_id=str(self.order_id), changed_at=now)
            )
        elif reported == IntentStatus.SUCCEEDED:
            self.settled_at = now
            self.raise_(
                PaymentIntentSucceeded(
                    payment_intent_id=str(self.id),
                    order_id=str(self.order_id),
                    amount=self.amount,
                    changed_at=now,
                )
            )
        elif reported == IntentStatus.FAILED:
            self.settled_at = now
            self.raise_(PaymentIntentFailed(payment_intent_id=str(self.id), order_id=str(self.order_id), changed_at=now))
        else:
            self.settled_at = now
            self.raise_(
                PaymentIntentCanceled(payment_intent_id=str(self.id), order_id=str(self.order_id), changed_at=now)
            )
        return True


def intents_for_order(order_id) -> list[PaymentIntent]:
    """All intents ever created for an order, oldest attempt first."""
    repo = current_domain.repository_for(PaymentIntent)
    intents = repo._dao.query.filter(order_id=str(order_id)).all().items
    return sorted(intents, key=lambda i: i.attempt)


def intent_for_provider_ref(provider_ref) -> PaymentIntent | None:
    repo = current_domain.repository_for(PaymentIntent)
    intents = repo._dao.query.filter(provider_ref=str(provider_ref)).all().items
    return intents[0] if intents else None
