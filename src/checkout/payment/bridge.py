"""Payment Intent Bridge — keeps the provider's view of a payment and the ledger in step.

Both confirmation paths end in ``confirm()``:

    pull   the client returns from the provider and asks us to check
    push   the provider calls the webhook with the new status

``confirm()`` runs under the order's lock, so whichever path arrives first
applies the change and the other finds nothing left to do.

Outcomes of a confirmation:

    confirmed          intent succeeded, order moved to Confirmed
    already_confirmed  duplicate report; nothing changed
    pending            provider still waiting or processing; poll again
    failed / canceled  intent is terminal, order stays Pending
    inconclusive       provider unreachable; nothing changed, retry later
    rejected           payment succeeded but the order could not be
                       confirmed (e.g. cancelled first); needs a refund
"""

import time
from dataclasses import dataclass

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from checkout.errors import InvalidWebhookSignature, PaymentNotAllowed, ProviderUnavailable, TransitionError
from checkout.gateway import get_gateway
from checkout.gateway.port import PaymentGateway
from checkout.order.ledger import OrderLedger
from checkout.order.locking import order_lock
from checkout.order.order import OrderStatus
from checkout.payment.cancellation import CancelPaymentIntent
from checkout.payment.creation import CreatePaymentIntent
from checkout.payment.intent import IntentStatus, PaymentIntent, intent_for_provider_ref, intents_for_order
from checkout.payment.status import RecordIntentStatus

logger = structlog.get_logger(__name__)

CONFIRMED = "confirmed"
ALREADY_CONFIRMED = "already_confirmed"
PENDING = "pending"
FAILED = "failed"
CANCELED = "canceled"
INCONCLUSIVE = "inconclusive"
REJECTED = "rejected"

RETRYABLE_OUTCOMES = {PENDING, INCONCLUSIVE}


@dataclass(frozen=True)
class IntentHandle:
    """What the buyer's client needs to complete payment. The secret is not stored."""

    payment_intent_id: str
    order_id: str
    provider_ref: str
    client_secret: str
    amount: float
    currency: str
    status: str
    reused: bool = False


@dataclass(frozen=True)
class ConfirmationResult:
    outcome: str
    intent_status: str | None = None
    order_status: str | None = None
    changed: bool = False
    detail: str | None = None


class PaymentIntentBridge:
    def __init__(self, gateway: PaymentGateway | None = None, ledger: OrderLedger | None = None) -> None:
        self._gateway = gateway
        self.ledger = ledger or OrderLedger()

    @property
    def gateway(self) -> PaymentGateway:
        return self._gateway or get_gateway()

    # -------------------------------------------------------------------
    # Intent lifecycle
    # -------------------------------------------------------------------
    def create_intent(self, order_id) -> IntentHandle:
        """Create an intent for the order's total, or return the open one."""
        with order_lock(order_id):
            result = current_domain.process(CreatePaymentIntent(order_id=order_id), asynchronous=False)

        logger.info(
            "Payment intent ready",
            order_id=str(order_id),
            payment_intent_id=result["payment_intent_id"],
            amount=result["amount"],
            reused=result["reused"],
        )
        return IntentHandle(**result)

    def cancel_intent(self, payment_intent_id) -> str:
        """Abandon an open intent. The order is left as it is."""
        intent = current_domain.repository_for(PaymentIntent).get(payment_intent_id)
        if IntentStatus(intent.status) == IntentStatus.SUCCEEDED:
            raise PaymentNotAllowed("The payment already succeeded and cannot be canceled")

        with order_lock(intent.order_id):
            status = current_domain.process(
                CancelPaymentIntent(payment_intent_id=payment_intent_id),
                asynchronous=False,
            )

        if status == IntentStatus.SUCCEEDED.value:
            # Paid while the buyer was leaving; let the ledger hear about it
            self.confirm(intent.provider_ref)
        logger.info("Payment intent canceled", payment_intent_id=str(payment_intent_id), status=status)
        return status

    def payment_history(self, order_id) -> list[PaymentIntent]:
        """All payment attempts for an existing order, oldest first."""
        self.ledger.get(order_id)
        return intents_for_order(order_id)

    # -------------------------------------------------------------------
    # Confirmation
    # -------------------------------------------------------------------
    def confirm(self, provider_ref: str, reported_status: str | None = None) -> ConfirmationResult:
        """Reconcile one intent with the provider.

        ``reported_status`` comes from a verified provider callback; without
        it the provider is queried.
        """
        intent = intent_for_provider_ref(provider_ref)
        if intent is None:
            raise ObjectNotFoundError(f"No payment intent with provider reference {provider_ref}")

        with order_lock(intent.order_id):
            intent = current_domain.repository_for(PaymentIntent).get(intent.id)
            status = IntentStatus(intent.status)

            if status == IntentStatus.SUCCEEDED:
                return self._settle_success(intent, changed=False)
            if status in (IntentStatus.FAILED, IntentStatus.CANCELED):
                return self._result(intent, status.value, changed=False)

            if reported_status is None:
                try:
                    reported_status = self.gateway.get_intent_status(provider_ref)
                except ProviderUnavailable as exc:
                    logger.warning(
                        "Payment status check inconclusive",
                        provider_ref=provider_ref,
                        order_id=str(intent.order_id),
                        error=str(exc),
                    )
                    return self._result(intent, INCONCLUSIVE, changed=False, detail=str(exc))

            changed = current_domain.process(
                RecordIntentStatus(payment_intent_id=intent.id, status=reported_status),
                asynchronous=False,
            )
            intent = current_domain.repository_for(PaymentIntent).get(intent.id)
            status = IntentStatus(intent.status)

            if status == IntentStatus.SUCCEEDED:
                return self._settle_success(intent, changed=changed)
            if status in (IntentStatus.FAILED, IntentStatus.CANCELED):
                logger.info(
                    "Payment attempt ended without payment",
                    order_id=str(intent.order_id),
                    payment_intent_id=str(intent.id),
                    status=status.value,
                )
                return self._result(intent, status.value, changed=changed)
            return self._result(intent, PENDING, changed=changed)

    def _settle_success(self, intent: PaymentIntent, changed: bool) -> ConfirmationResult:
        """The intent succeeded; make sure the order reflects it exactly once."""
        order = self.ledger.get(intent.order_id)
        order_status = OrderStatus(order.status)

        if order_status != OrderStatus.PENDING:
            if order_status == OrderStatus.CANCELLED:
                return self._reject(intent, order.status, "Order was cancelled before the payment succeeded")
            return self._result(intent, ALREADY_CONFIRMED, changed=changed, order_status=order.status)

        if str(order.payment_intent_id) != str(intent.id):
            return self._reject(intent, order.status, "Payment is not the order's current payment attempt")

        try:
            self.ledger.confirm(intent.order_id, payment_intent_id=intent.id, notes="Payment received")
        except TransitionError as exc:
            return self._reject(intent, order.status, exc.message)

        logger.info("Order confirmed by payment", order_id=str(intent.order_id), payment_intent_id=str(intent.id))
        return self._result(intent, CONFIRMED, changed=True, order_status=OrderStatus.CONFIRMED.value)

    def _reject(self, intent: PaymentIntent, order_status: str, detail: str) -> ConfirmationResult:
        logger.warning(
            "Captured payment refused by ledger; refund required",
            order_id=str(intent.order_id),
            payment_intent_id=str(intent.id),
            amount=intent.amount,
            order_status=order_status,
            detail=detail,
        )
        return ConfirmationResult(
            outcome=REJECTED,
            intent_status=intent.status,
            order_status=order_status,
            changed=False,
            detail=detail,
        )

    def _result(self, intent, outcome, changed, order_status=None, detail=None) -> ConfirmationResult:
        if order_status is None:
            order_status = self.ledger.get(intent.order_id).status
        return ConfirmationResult(
            outcome=outcome,
            intent_status=intent.status,
            order_status=order_status,
            changed=changed,
            detail=detail,
        )

    # -------------------------------------------------------------------
    # Push and poll helpers
    # -------------------------------------------------------------------
    def handle_webhook(self, payload: str, signature: str) -> ConfirmationResult | None:
        """Verify a provider callback and feed it into ``confirm()``.

        Returns None for callbacks that do not concern a payment intent.
        Raises InvalidWebhookSignature when the signature does not verify.
        """
        gateway = self.gateway
        if not gateway.verify_webhook_signature(payload, signature):
            raise InvalidWebhookSignature("Invalid webhook signature")

        notice = gateway.parse_webhook(payload)
        if notice is None:
            return None
        return self.confirm(notice.provider_ref, reported_status=notice.status)

    def poll_confirmation(
        self,
        provider_ref: str,
        attempts: int = 5,
        initial_delay: float = 0.5,
        sleep=time.sleep,
    ) -> ConfirmationResult:
        """Confirm, retrying with exponential backoff while the outcome is pending or inconclusive."""
        delay = initial_delay
        result = self.confirm(provider_ref)
        for _ in range(max(attempts, 1) - 1):
            if result.outcome not in RETRYABLE_OUTCOMES:
                break
            sleep(delay)
            delay *= 2
            result = self.confirm(provider_ref)
        return result
