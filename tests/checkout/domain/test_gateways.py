"""Tests for the payment gateway adapters and registry."""

import json
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
import stripe

from checkout.errors import ProviderUnavailable
from checkout.gateway import get_gateway, reset_gateway, set_gateway
from checkout.gateway.fake_adapter import TEST_SIGNATURE, FakeGateway
from checkout.gateway.port import ProviderIntent
from checkout.gateway.stripe_adapter import StripeGateway, map_stripe_status


class TestFakeGateway:
    def test_create_intent(self):
        gateway = FakeGateway()
        intent = gateway.create_intent(amount=15.0, currency="USD", idempotency_key="order-1-attempt-1")
        assert isinstance(intent, ProviderIntent)
        assert intent.status == "requires_payment"
        assert intent.client_secret.startswith(intent.provider_ref)

    def test_idempotency_key_returns_same_intent(self):
        gateway = FakeGateway()
        first = gateway.create_intent(amount=15.0, currency="USD", idempotency_key="key-1")
        second = gateway.create_intent(amount=15.0, currency="USD", idempotency_key="key-1")
        assert first.provider_ref == second.provider_ref
        assert len(gateway.intents) == 1

    def test_set_status_is_reported(self):
        gateway = FakeGateway()
        intent = gateway.create_intent(amount=15.0, currency="USD", idempotency_key="key-1")
        gateway.set_status(intent.provider_ref, "succeeded")
        assert gateway.get_intent_status(intent.provider_ref) == "succeeded"

    def test_unreachable_provider(self):
        gateway = FakeGateway()
        intent = gateway.create_intent(amount=15.0, currency="USD", idempotency_key="key-1")
        gateway.configure(reachable=False)
        with pytest.raises(ProviderUnavailable):
            gateway.get_intent_status(intent.provider_ref)

    def test_cancel_keeps_succeeded_intent(self):
        gateway = FakeGateway()
        intent = gateway.create_intent(amount=15.0, currency="USD", idempotency_key="key-1")
        gateway.set_status(intent.provider_ref, "succeeded")
        assert gateway.cancel_intent(intent.provider_ref) == "succeeded"

    def test_unknown_status_is_rejected(self):
        gateway = FakeGateway()
        with pytest.raises(ValueError):
            gateway.configure(initial_status="paid")

    def test_webhook_signature(self):
        gateway = FakeGateway()
        assert gateway.verify_webhook_signature("{}", TEST_SIGNATURE) is True
        assert gateway.verify_webhook_signature("{}", "forged") is False

    def test_parse_webhook(self):
        notice = FakeGateway().parse_webhook(json.dumps({"provider_ref": "fake_pi_1", "status": "succeeded"}))
        assert notice.provider_ref == "fake_pi_1"
        assert notice.status == "succeeded"

    def test_parse_unrelated_webhook(self):
        assert FakeGateway().parse_webhook(json.dumps({"type": "customer.created"})) is None


class TestStripeStatusMapping:
    @pytest.mark.parametrize(
        "stripe_status, expected",
        [
            ("succeeded", "succeeded"),
            ("processing", "processing"),
            ("requires_capture", "processing"),
            ("requires_action", "requires_payment"),
            ("requires_confirmation", "requires_payment"),
            ("requires_payment_method", "requires_payment"),
            ("canceled", "canceled"),
        ],
    )
    def test_mapping(self, stripe_status, expected):
        assert map_stripe_status(stripe_status) == expected

    def test_declined_payment_is_failed(self):
        assert map_stripe_status("requires_payment_method", {"code": "card_declined"}) == "failed"

    def test_unrecognised_status_is_not_failure(self):
        assert map_stripe_status("something_new") == "processing"


def _stripe_intent(status="requires_payment_method", last_payment_error=None):
    return SimpleNamespace(
        id="pi_123",
        client_secret="pi_123_secret_abc",
        status=status,
        last_payment_error=last_payment_error,
    )


class TestStripeGateway:
    def test_create_intent_uses_minor_units(self):
        client = MagicMock()
        client.payment_intents.create.return_value = _stripe_intent()
        gateway = StripeGateway(api_key="sk_test", client=client)

        intent = gateway.create_intent(amount=15.0, currency="USD", idempotency_key="order-1-attempt-1")

        kwargs = client.payment_intents.create.call_args.kwargs
        assert kwargs["params"]["amount"] == 1500
        assert kwargs["params"]["currency"] == "usd"
        assert kwargs["options"] == {"idempotency_key": "order-1-attempt-1"}
        assert intent.provider_ref == "pi_123"
        assert intent.status == "requires_payment"

    def test_get_intent_status(self):
        client = MagicMock()
        client.payment_intents.retrieve.return_value = _stripe_intent(status="succeeded")
        gateway = StripeGateway(api_key="sk_test", client=client)
        assert gateway.get_intent_status("pi_123") == "succeeded"

    def test_connection_error_is_provider_unavailable(self):
        client = MagicMock()
        client.payment_intents.retrieve.side_effect = stripe.APIConnectionError("timed out")
        gateway = StripeGateway(api_key="sk_test", client=client)
        with pytest.raises(ProviderUnavailable):
            gateway.get_intent_status("pi_123")

    @pytest.mark.parametrize(
        "error",
        [stripe.APIError("Stripe 503", http_status=503), stripe.RateLimitError("Too many requests")],
    )
    def test_transient_server_errors_are_provider_unavailable(self, error):
        client = MagicMock()
        client.payment_intents.retrieve.side_effect = error
        gateway = StripeGateway(api_key="sk_test", client=client)
        with pytest.raises(ProviderUnavailable):
            gateway.get_intent_status("pi_123")

    def test_request_errors_are_not_masked(self):
        client = MagicMock()
        client.payment_intents.retrieve.side_effect = stripe.InvalidRequestError("No such intent", param="id")
        gateway = StripeGateway(api_key="sk_test", client=client)
        with pytest.raises(stripe.InvalidRequestError):
            gateway.get_intent_status("pi_123")

    def test_cancel_of_settled_intent_reports_its_status(self):
        client = MagicMock()
        client.payment_intents.cancel.side_effect = stripe.InvalidRequestError("cannot cancel", param=None)
        client.payment_intents.retrieve.return_value = _stripe_intent(status="succeeded")
        gateway = StripeGateway(api_key="sk_test", client=client)
        assert gateway.cancel_intent("pi_123") == "succeeded"

    def test_webhook_without_secret_is_rejected(self):
        gateway = StripeGateway(api_key="sk_test", client=MagicMock())
        assert gateway.verify_webhook_signature("{}", "t=1,v1=abc") is False

    def test_invalid_webhook_signature(self):
        gateway = StripeGateway(api_key="sk_test", webhook_secret="whsec_test", client=MagicMock())
        assert gateway.verify_webhook_signature('{"id": "evt_1"}', "t=1,v1=abc") is False

    def test_parse_failed_payment_webhook(self):
        payload = json.dumps(
            {
                "type": "payment_intent.payment_failed",
                "data": {
                    "object": {
                        "id": "pi_123",
                        "status": "requires_payment_method",
                        "last_payment_error": {"code": "card_declined"},
                    }
                },
            }
        )
        notice = StripeGateway(api_key="sk_test", client=MagicMock()).parse_webhook(payload)
        assert notice.provider_ref == "pi_123"
        assert notice.status == "failed"

    def test_parse_unrelated_webhook(self):
        payload = json.dumps({"type": "charge.refunded", "data": {"object": {"id": "ch_1"}}})
        assert StripeGateway(api_key="sk_test", client=MagicMock()).parse_webhook(payload) is None


class TestGatewayRegistry:
    def test_default_is_fake(self, monkeypatch):
        monkeypatch.setenv("PAYMENT_GATEWAY", "fake")
        reset_gateway()
        assert isinstance(get_gateway(), FakeGateway)

    def test_stripe_requires_api_key(self, monkeypatch):
        monkeypatch.setenv("PAYMENT_GATEWAY", "stripe")
        monkeypatch.delenv("STRIPE_API_KEY", raising=False)
        reset_gateway()
        with pytest.raises(RuntimeError):
            get_gateway()

    def test_stripe_is_built_from_settings(self, monkeypatch):
        monkeypatch.setenv("PAYMENT_GATEWAY", "stripe")
        monkeypatch.setenv("STRIPE_API_KEY", "sk_test_123")
        reset_gateway()
        assert isinstance(get_gateway(), StripeGateway)

    def test_set_gateway(self):
        gateway = FakeGateway()
        set_gateway(gateway)
        assert get_gateway() is gateway
