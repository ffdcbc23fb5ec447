"""Stripe payment gateway adapter.

Uses stripe-python's StripeClient with a bounded HTTP timeout. Stripe's
intent statuses are translated into the coordinator's vocabulary:

    succeeded                                   → succeeded
    processing, requires_capture                → processing
    requires_payment_method + last_payment_error → failed
    requires_payment_method, requires_action,
    requires_confirmation                       → requires_payment
    canceled                                    → canceled

Connection failures and timeouts raise ProviderUnavailable.
"""

import json

import stripe
import structlog

from checkout.errors import ProviderUnavailable
from checkout.gateway.port import (
    CANCELED,
    FAILED,
    PROCESSING,
    REQUIRES_PAYMENT,
    SUCCEEDED,
    PaymentGateway,
    ProviderIntent,
    WebhookNotice,
)

logger = structlog.get_logger(__name__)

_STATUS_MAP = {
    "succeeded": SUCCEEDED,
    "processing": PROCESSING,
    "requires_capture": PROCESSING,
    "requires_action": REQUIRES_PAYMENT,
    "requires_confirmation": REQUIRES_PAYMENT,
    "requires_payment_method": REQUIRES_PAYMENT,
    "canceled": CANCELED,
}

_INTENT_EVENTS = {
    "payment_intent.succeeded",
    "payment_intent.processing",
    "payment_intent.payment_failed",
    "payment_intent.canceled",
    "payment_intent.requires_action",
}


def map_stripe_status(status: str, last_payment_error=None) -> str:
    if status == "requires_payment_method" and last_payment_error:
        return FAILED
    mapped = _STATUS_MAP.get(status)
    if mapped is None:
        # An unrecognised status is not evidence of failure; keep checking
        logger.warning("Unrecognised Stripe intent status", stripe_status=status)
        return PROCESSING
    return mapped


def _to_minor_units(amount: float) -> int:
    return int(round(amount * 100))


class StripeGateway(PaymentGateway):
    """Production Stripe gateway adapter."""

    def __init__(
        self,
        api_key: str,
        webhook_secret: str | None = None,
        timeout: float = 10.0,
        client=None,
    ) -> None:
        self.webhook_secret = webhook_secret
        self.client = client or stripe.StripeClient(
            api_key,
            http_client=stripe.RequestsClient(timeout=timeout),
            max_network_retries=0,
        )

    def _call(self, operation: str, fn, *args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except (stripe.APIConnectionError, stripe.RateLimitError, stripe.APIError) as exc:
            logger.warning("Stripe unreachable", operation=operation, error=str(exc))
            raise ProviderUnavailable(f"Payment provider unavailable during {operation}") from exc

    def create_intent(
        self,
        amount: float,
        currency: str,
        idempotency_key: str,
        metadata: dict | None = None,
    ) -> ProviderIntent:
        intent = self._call(
            "create_intent",
            self.client.payment_intents.create,
            params={
                "amount": _to_minor_units(amount),
                "currency": currency.lower(),
                "metadata": metadata or {},
                "automatic_payment_methods": {"enabled": True},
            },
            options={"idempotency_key": idempotency_key},
        )
        return ProviderIntent(
            provider_ref=intent.id,
            client_secret=intent.client_secret,
            status=map_stripe_status(intent.status, intent.last_payment_error),
        )

    def get_intent_status(self, provider_ref: str) -> str:
        intent = self._call("get_intent_status", self.client.payment_intents.retrieve, provider_ref)
        return map_stripe_status(intent.status, intent.last_payment_error)

    def retrieve_client_secret(self, provider_ref: str) -> str:
        intent = self._call("retrieve_client_secret", self.client.payment_intents.retrieve, provider_ref)
        return intent.client_secret

    def cancel_intent(self, provider_ref: str) -> str:
        try:
            intent = self._call("cancel_intent", self.client.payment_intents.cancel, provider_ref)
        except stripe.InvalidRequestError:
            # No longer cancelable, e.g. the payment already went through
            return self.get_intent_status(provider_ref)
        return map_stripe_status(intent.status, intent.last_payment_error)

    def verify_webhook_signature(self, payload: str, signature: str) -> bool:
        if not self.webhook_secret:
            logger.warning("Stripe webhook secret is not configured")
            return False
        try:
            stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except stripe.SignatureVerificationError as exc:
            logger.warning("Invalid Stripe webhook signature", error=str(exc))
            return False
        except ValueError as exc:
            logger.warning("Malformed Stripe webhook payload", error=str(exc))
            return False
        return True

    def parse_webhook(self, payload: str) -> WebhookNotice | None:
        event = json.loads(payload)
        event_type = event.get("type", "")
        if event_type not in _INTENT_EVENTS:
            return None

        intent = event.get("data", {}).get("object", {})
        return WebhookNotice(
            provider_ref=intent.get("id"),
            status=map_stripe_status(intent.get("status"), intent.get("last_payment_error")),
            event_type=event_type,
        )
