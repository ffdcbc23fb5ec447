"""Fulfillment load test scenarios.

A seller takes a freshly paid order through Processing, Shipped and
Delivered, and a buyer cancels a paid order before it ships.
"""

from locust import HttpUser, between, task

from loadtests.data_generators import tracking_number
from loadtests.helpers.response import extract_error_detail
from loadtests.scenarios.checkout import _CheckoutJourney


class _PaidOrderJourney(_CheckoutJourney):
    def update_status(self, status: str, actor: str, **extra):
        with self.client.put(
            f"/orders/{self.state.order_id}/status",
            json={"status": status, "actor": actor, **extra},
            catch_response=True,
            name=f"PUT /orders/{{id}}/status ({status})",
        ) as resp:
            if resp.status_code == 200:
                self.state.current_status = resp.json()["status"]
            else:
                resp.failure(f"{status} failed: {resp.status_code} — {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def step_paid_order(self):
        self.checkout()
        self.create_intent()
        self.settle("succeeded")
        self.confirm("confirmed")


class FulfillmentJourney(_PaidOrderJourney):
    """Paid order -> Processing -> Shipped -> Delivered -> Seller listing."""

    @task
    def step_processing(self):
        self.update_status("Processing", "Seller")

    @task
    def step_shipped(self):
        self.update_status("Shipped", "Seller", tracking_number=tracking_number())

    @task
    def step_delivered(self):
        self.update_status("Delivered", "Seller")
        self.client.get("/orders", params={"seller_id": "seller-lt-1"}, name="GET /orders?seller_id")
        self.interrupt()


class CancellationJourney(_PaidOrderJourney):
    """Paid order -> Buyer cancels -> Late seller action is refused."""

    @task
    def step_cancel(self):
        self.update_status("Cancelled", "Buyer", notes="Changed my mind")

    @task
    def step_late_processing(self):
        with self.client.put(
            f"/orders/{self.state.order_id}/status",
            json={"status": "Processing", "actor": "Seller"},
            catch_response=True,
            name="PUT /orders/{id}/status (after cancel)",
        ) as resp:
            if resp.status_code == 409:
                resp.success()
            else:
                resp.failure(f"Expected 409 after cancellation, got {resp.status_code}")
        self.interrupt()


class SellerUser(HttpUser):
    """Sellers fulfilling orders, with the occasional cancellation."""

    wait_time = between(1.0, 3.0)
    tasks = {FulfillmentJourney: 4, CancellationJourney: 1}
