"""Checkout load test scenarios.

Stateful SequentialTaskSet journeys from a client cart to a settled
payment: a straight purchase, a declined card followed by a retry, a
checkout with a coupon, and an abandoned payment.
"""

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import checkout_data, coupon_data
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import CheckoutState


class _CheckoutJourney(SequentialTaskSet):
    """Shared steps: check out, open a payment intent, settle it at the fake provider."""

    coupon_code: str | None = None

    def on_start(self):
        self.state = CheckoutState()

    def checkout(self):
        with self.client.post(
            "/checkout",
            json=checkout_data(self.coupon_code),
            catch_response=True,
            name="POST /checkout",
        ) as resp:
            if resp.status_code == 201:
                body = resp.json()
                self.state.order_id = body["order_id"]
                self.state.total = body["total"]
            else:
                resp.failure(f"Checkout failed: {resp.status_code} — {extract_error_detail(resp)}")
                self.interrupt()

    def create_intent(self):
        with self.client.post(
            f"/orders/{self.state.order_id}/payment-intents",
            catch_response=True,
            name="POST /orders/{id}/payment-intents",
        ) as resp:
            if resp.status_code == 201:
                body = resp.json()
                self.state.payment_intent_ids.append(body["payment_intent_id"])
                self.state.provider_ref = body["provider_ref"]
            else:
                resp.failure(f"Create intent failed: {resp.status_code} — {extract_error_detail(resp)}")
                self.interrupt()

    def settle(self, status: str):
        with self.client.post(
            "/payments/gateway/simulate",
            json={"provider_ref": self.state.provider_ref, "status": status},
            catch_response=True,
            name=f"POST /payments/gateway/simulate ({status})",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Simulate failed: {resp.status_code} — {extract_error_detail(resp)}")
                self.interrupt()

    def confirm(self, expected_outcome: str):
        with self.client.post(
            "/payments/confirm",
            json={"provider_ref": self.state.provider_ref},
            catch_response=True,
            name="POST /payments/confirm",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Confirm failed: {resp.status_code} — {extract_error_detail(resp)}")
                return
            body = resp.json()
            self.state.current_status = body["order_status"]
            if body["outcome"] != expected_outcome:
                resp.failure(f"Expected {expected_outcome}, got {body['outcome']}")

    def view_order(self):
        self.client.get(f"/orders/{self.state.order_id}", name="GET /orders/{id}")


class PurchaseJourney(_CheckoutJourney):
    """Checkout -> Intent -> Provider succeeds -> Confirm -> View order."""

    @task
    def step_checkout(self):
        self.checkout()

    @task
    def step_intent(self):
        self.create_intent()

    @task
    def step_pay(self):
        self.settle("succeeded")
        self.confirm("confirmed")

    @task
    def step_confirm_again(self):
        # Duplicate confirmation, as a redirect and a webhook would produce
        self.confirm("already_confirmed")

    @task
    def step_view(self):
        self.view_order()
        self.interrupt()


class DeclinedRetryJourney(_CheckoutJourney):
    """Checkout -> Intent declined -> New intent -> Provider succeeds -> Confirm."""

    @task
    def step_checkout(self):
        self.checkout()

    @task
    def step_declined(self):
        self.create_intent()
        self.settle("failed")
        self.confirm("failed")

    @task
    def step_retry(self):
        self.create_intent()
        self.settle("succeeded")
        self.confirm("confirmed")
        self.interrupt()


class CouponJourney(_CheckoutJourney):
    """Define coupon -> Checkout with it -> Pay."""

    @task
    def step_define_coupon(self):
        payload = coupon_data()
        with self.client.post("/coupons", json=payload, catch_response=True, name="POST /coupons") as resp:
            if resp.status_code == 201:
                self.coupon_code = resp.json()["code"]
            else:
                resp.failure(f"Define coupon failed: {resp.status_code} — {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def step_checkout(self):
        self.checkout()

    @task
    def step_pay(self):
        self.create_intent()
        self.settle("succeeded")
        self.confirm("confirmed")
        self.interrupt()


class AbandonedPaymentJourney(_CheckoutJourney):
    """Checkout -> Intent -> Buyer walks away (intent canceled, order stays Pending)."""

    @task
    def step_checkout(self):
        self.checkout()

    @task
    def step_intent(self):
        self.create_intent()

    @task
    def step_abandon(self):
        intent_id = self.state.payment_intent_ids[-1]
        with self.client.post(
            f"/payment-intents/{intent_id}/cancel",
            catch_response=True,
            name="POST /payment-intents/{id}/cancel",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Cancel intent failed: {resp.status_code} — {extract_error_detail(resp)}")
        self.interrupt()


class CheckoutUser(HttpUser):
    """Buyers going through checkout, weighted towards successful purchases."""

    wait_time = between(0.5, 2.0)
    tasks = {
        PurchaseJourney: 6,
        DeclinedRetryJourney: 2,
        CouponJourney: 2,
        AbandonedPaymentJourney: 1,
    }
