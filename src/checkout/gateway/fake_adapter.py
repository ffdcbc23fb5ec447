"""Configurable fake payment gateway for development and testing.

This adapter simulates a provider's payment intents without any external
calls. Intents start as ``requires_payment``; tests drive them with
``set_status()`` (the buyer paid, the card was declined, ...) and can make
the provider unreachable with ``configure(reachable=False)``.
"""

import json
from uuid import uuid4

from checkout.errors import ProviderUnavailable
from checkout.gateway.port import (
    CANCELED,
    PROVIDER_STATUSES,
    REQUIRES_PAYMENT,
    SUCCEEDED,
    PaymentGateway,
    ProviderIntent,
    WebhookNotice,
)

TEST_SIGNATURE = "test-signature"


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.reachable: bool = True
        self.initial_status: str = REQUIRES_PAYMENT
        self.intents: dict[str, dict] = {}
        self.calls: list[dict] = []

    def configure(self, reachable: bool = True, initial_status: str = REQUIRES_PAYMENT) -> None:
        """Configure gateway behavior at runtime."""
        if initial_status not in PROVIDER_STATUSES:
            raise ValueError(f"Unknown provider status: {initial_status}")
        self.reachable = reachable
        self.initial_status = initial_status

    def set_status(self, provider_ref: str, status: str) -> None:
        """Simulate the provider moving an intent to ``status``."""
        if status not in PROVIDER_STATUSES:
            raise ValueError(f"Unknown provider status: {status}")
        self.intents[provider_ref]["status"] = status

    def _ensure_reachable(self) -> None:
        if not self.reachable:
            raise ProviderUnavailable("Payment provider is unreachable")

    def _intent(self, provider_ref: str) -> dict:
        try:
            return self.intents[provider_ref]
        except KeyError:
            raise ValueError(f"Unknown payment intent: {provider_ref}") from None

    def create_intent(
        self,
        amount: float,
        currency: str,
        idempotency_key: str,
        metadata: dict | None = None,
    ) -> ProviderIntent:
        self.calls.append(
            {
                "method": "create_intent",
                "amount": amount,
                "currency": currency,
                "idempotency_key": idempotency_key,
                "metadata": metadata or {},
            }
        )
        self._ensure_reachable()

        # Same key, same intent; the way a real provider honours idempotency keys
        for ref, intent in self.intents.items():
            if intent["idempotency_key"] == idempotency_key:
                return ProviderIntent(provider_ref=ref, client_secret=intent["client_secret"], status=intent["status"])

        ref = f"fake_pi_{uuid4().hex[:16]}"
        secret = f"{ref}_secret_{uuid4().hex[:12]}"
        self.intents[ref] = {
            "amount": amount,
            "currency": currency,
            "status": self.initial_status,
            "client_secret": secret,
            "idempotency_key": idempotency_key,
        }
        return ProviderIntent(provider_ref=ref, client_secret=secret, status=self.initial_status)

    def get_intent_status(self, provider_ref: str) -> str:
        self.calls.append({"method": "get_intent_status", "provider_ref": provider_ref})
        self._ensure_reachable()
        return self._intent(provider_ref)["status"]

    def retrieve_client_secret(self, provider_ref: str) -> str:
        self.calls.append({"method": "retrieve_client_secret", "provider_ref": provider_ref})
        self._ensure_reachable()
        return self._intent(provider_ref)["client_secret"]

    def cancel_intent(self, provider_ref: str) -> str:
        self.calls.append({"method": "cancel_intent", "provider_ref": provider_ref})
        self._ensure_reachable()
        intent = self._intent(provider_ref)
        if intent["status"] != SUCCEEDED:
            intent["status"] = CANCELED
        return intent["status"]

    def verify_webhook_signature(self, payload: str, signature: str) -> bool:  # noqa: ARG002
        return signature == TEST_SIGNATURE

    def parse_webhook(self, payload: str) -> WebhookNotice | None:
        body = json.loads(payload)
        if not body.get("provider_ref") or body.get("status") not in PROVIDER_STATUSES:
            return None
        return WebhookNotice(provider_ref=body["provider_ref"], status=body["status"], event_type=body.get("type"))
