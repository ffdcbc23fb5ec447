"""Payment gateway port (abstract interface).

Defines the contract that all payment provider adapters must implement.
This enables swapping between FakeGateway (dev/test) and StripeGateway
(production) without changing any domain or application code.

Adapters report intent status in the coordinator's own vocabulary (see
PROVIDER_STATUSES), never in the provider's. Unreachable providers and
timeouts raise ProviderUnavailable; they are never reported as "failed".
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

REQUIRES_PAYMENT = "requires_payment"
PROCESSING = "processing"
SUCCEEDED = "succeeded"
FAILED = "failed"
CANCELED = "canceled"

PROVIDER_STATUSES = (REQUIRES_PAYMENT, PROCESSING, SUCCEEDED, FAILED, CANCELED)


@dataclass(frozen=True)
class ProviderIntent:
    """A payment intent as created at the provider."""

    provider_ref: str
    client_secret: str
    status: str = REQUIRES_PAYMENT


@dataclass(frozen=True)
class WebhookNotice:
    """The part of a provider callback the coordinator acts upon."""

    provider_ref: str
    status: str
    event_type: str | None = None


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def create_intent(
        self,
        amount: float,
        currency: str,
        idempotency_key: str,
        metadata: dict | None = None,
    ) -> ProviderIntent:
        """Create a payment intent for ``amount`` in ``currency``."""
        ...

    @abstractmethod
    def get_intent_status(self, provider_ref: str) -> str:
        """Return the intent's current status as one of PROVIDER_STATUSES."""
        ...

    @abstractmethod
    def retrieve_client_secret(self, provider_ref: str) -> str:
        """Return the client secret of an existing intent, for handing to the buyer."""
        ...

    @abstractmethod
    def cancel_intent(self, provider_ref: str) -> str:
        """Cancel the intent at the provider. Returns the resulting status."""
        ...

    @abstractmethod
    def verify_webhook_signature(
        self,
        payload: str,
        signature: str,
    ) -> bool:
        """Verify that a webhook payload is authentically from the gateway."""
        ...

    @abstractmethod
    def parse_webhook(self, payload: str) -> WebhookNotice | None:
        """Extract the intent reference and status from a verified payload.

        Returns None for callbacks that do not concern a payment intent.
        """
        ...
