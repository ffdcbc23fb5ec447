"""Application tests for the order ledger: reads, transitions and status notices."""

import threading

import pytest

from checkout.errors import (
    CheckoutError,
    InvalidTransition,
    MissingTrackingNumber,
    OrderAlreadyTerminal,
    UnauthorizedTransition,
)
from checkout.order.ledger import OrderLedger
from checkout.order.locking import held_lock_count, order_lock
from checkout.order.order import OrderStatus, TransitionActor
from checkout.payment.bridge import PaymentIntentBridge


def _items(seller_id="seller-1", price=10.0):
    return [{"product_id": "prod-001", "name": "Widget", "price": price, "qty": 1, "seller_id": seller_id}]


def _open_intent(order_id, gateway, paid=True):
    handle = PaymentIntentBridge(gateway=gateway).create_intent(order_id)
    if paid:
        gateway.set_status(handle.provider_ref, "succeeded")
    return handle


def _race(*operations):
    """Start every operation at once, each in its own thread and domain context."""
    from checkout.domain import checkout

    barrier = threading.Barrier(len(operations))
    outcomes = [None] * len(operations)

    def run(index, operation):
        with checkout.domain_context():
            barrier.wait(timeout=5)
            try:
                outcomes[index] = operation()
            except CheckoutError as exc:
                outcomes[index] = exc

    threads = [threading.Thread(target=run, args=(i, op)) for i, op in enumerate(operations)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)
    return outcomes


@pytest.fixture()
def ledger():
    return OrderLedger()


@pytest.fixture()
def confirmed_order(ledger, shipping_address, gateway):
    order_id = ledger.place(buyer_id="buyer-001", items=_items(), shipping_address=shipping_address)
    handle = _open_intent(order_id, gateway)
    assert PaymentIntentBridge(gateway=gateway).confirm(handle.provider_ref).outcome == "confirmed"
    return order_id


class TestReads:
    def test_orders_for_buyer_newest_first(self, ledger, shipping_address):
        first = ledger.place(buyer_id="buyer-001", items=_items(), shipping_address=shipping_address)
        second = ledger.place(buyer_id="buyer-001", items=_items(), shipping_address=shipping_address)
        ledger.place(buyer_id="buyer-002", items=_items(), shipping_address=shipping_address)

        orders = ledger.orders_for_buyer("buyer-001")

        assert {str(o.id) for o in orders} == {first, second}
        assert orders[0].created_at >= orders[1].created_at

    def test_orders_for_seller(self, ledger, shipping_address):
        mine = ledger.place(buyer_id="buyer-001", items=_items("seller-1"), shipping_address=shipping_address)
        ledger.place(buyer_id="buyer-001", items=_items("seller-2"), shipping_address=shipping_address)

        assert [str(o.id) for o in ledger.orders_for_seller("seller-1")] == [mine]
        assert ledger.orders_for_seller("seller-3") == []

    def test_placed_order_uses_configured_currency(self, ledger, shipping_address, monkeypatch):
        monkeypatch.setenv("CURRENCY", "eur")
        order_id = ledger.place(buyer_id="buyer-001", items=_items(), shipping_address=shipping_address)
        assert ledger.get(order_id).currency == "EUR"


class TestFulfillment:
    def test_happy_path(self, ledger, confirmed_order, feed):
        ledger.mark_processing(confirmed_order, TransitionActor.SELLER)
        ledger.ship(confirmed_order, TransitionActor.SELLER, tracking_number="TRACK-123")
        ledger.deliver(confirmed_order, TransitionActor.SELLER, notes="Left at the door")

        order = ledger.get(confirmed_order)
        assert order.status == OrderStatus.DELIVERED.value
        assert order.tracking_number == "TRACK-123"
        timeline = order.timeline()
        assert [t.status for t in timeline] == ["Pending", "Confirmed", "Processing", "Shipped", "Delivered"]
        assert [t.sequence for t in timeline] == [1, 2, 3, 4, 5]
        assert timeline[-1].notes == "Left at the door"
        assert [n.status for n in feed.for_order(confirmed_order)] == [t.status for t in timeline]

    def test_request_transition_by_status(self, ledger, confirmed_order):
        assert ledger.request_transition(confirmed_order, "Processing", TransitionActor.ADMIN) == "Processing"
        status = ledger.request_transition(
            confirmed_order,
            OrderStatus.SHIPPED,
            "Seller",
            tracking_number="TRACK-9",
            estimated_delivery="2026-11-01",
        )
        assert status == "Shipped"

    def test_request_transition_requires_tracking(self, ledger, confirmed_order):
        ledger.mark_processing(confirmed_order, TransitionActor.SELLER)
        with pytest.raises(MissingTrackingNumber):
            ledger.request_transition(confirmed_order, "Shipped", TransitionActor.SELLER)
        assert ledger.get(confirmed_order).status == OrderStatus.PROCESSING.value

    def test_skipping_a_state_is_refused(self, ledger, confirmed_order):
        with pytest.raises(InvalidTransition):
            ledger.request_transition(confirmed_order, "Delivered", TransitionActor.SELLER)
        assert len(ledger.get(confirmed_order).timeline()) == 2

    def test_unknown_status_is_refused(self, ledger, confirmed_order):
        with pytest.raises(InvalidTransition):
            ledger.request_transition(confirmed_order, "Teleported", TransitionActor.ADMIN)

    def test_buyer_cannot_ship(self, ledger, confirmed_order):
        ledger.mark_processing(confirmed_order, TransitionActor.SELLER)
        with pytest.raises(UnauthorizedTransition):
            ledger.ship(confirmed_order, TransitionActor.BUYER, tracking_number="TRACK-1")

    def test_manual_confirmation_is_refused(self, ledger, shipping_address):
        order_id = ledger.place(buyer_id="buyer-001", items=_items(), shipping_address=shipping_address)
        with pytest.raises(UnauthorizedTransition):
            ledger.request_transition(order_id, "Confirmed", TransitionActor.ADMIN)
        assert ledger.get(order_id).status == OrderStatus.PENDING.value


class TestCancellation:
    def test_cancel_records_reason(self, ledger, confirmed_order):
        ledger.cancel(confirmed_order, TransitionActor.ADMIN, reason="Out of stock")

        order = ledger.get(confirmed_order)
        assert order.status == OrderStatus.CANCELLED.value
        assert order.cancellation_reason == "Out of stock"

    def test_cancelled_order_is_final(self, ledger, confirmed_order):
        ledger.cancel(confirmed_order, TransitionActor.BUYER)
        with pytest.raises(OrderAlreadyTerminal):
            ledger.mark_processing(confirmed_order, TransitionActor.SELLER)

    def test_delivered_order_cannot_be_cancelled(self, ledger, confirmed_order):
        ledger.mark_processing(confirmed_order, TransitionActor.SELLER)
        ledger.ship(confirmed_order, TransitionActor.SELLER, tracking_number="TRACK-1")
        ledger.deliver(confirmed_order, TransitionActor.SELLER)

        with pytest.raises(OrderAlreadyTerminal):
            ledger.cancel(confirmed_order, TransitionActor.ADMIN)
        assert len(ledger.get(confirmed_order).timeline()) == 5


class TestOrderLock:
    def test_lock_is_reentrant(self, confirmed_order):
        with order_lock(confirmed_order):
            with order_lock(confirmed_order):
                pass

    def test_writers_on_one_order_are_serialized(self, confirmed_order):
        entered = threading.Event()
        release = threading.Event()
        events = []

        def holder():
            with order_lock(confirmed_order):
                events.append("holder")
                entered.set()
                release.wait(timeout=5)

        def contender():
            with order_lock(confirmed_order):
                events.append("contender")

        first = threading.Thread(target=holder)
        first.start()
        entered.wait(timeout=5)
        second = threading.Thread(target=contender)
        second.start()
        second.join(timeout=0.2)

        assert events == ["holder"]
        release.set()
        first.join(timeout=5)
        second.join(timeout=5)
        assert events == ["holder", "contender"]

    def test_other_orders_do_not_wait(self):
        acquired = []

        def other():
            with order_lock("order-b"):
                acquired.append("order-b")

        with order_lock("order-a"):
            thread = threading.Thread(target=other)
            thread.start()
            thread.join(timeout=5)
        assert acquired == ["order-b"]

    def test_lock_registry_forgets_released_orders(self, ledger, shipping_address):
        for _ in range(20):
            order_id = ledger.place(buyer_id="buyer-001", items=_items(), shipping_address=shipping_address)
            ledger.cancel(order_id, TransitionActor.BUYER)
        assert held_lock_count() == 0

    def test_held_lock_stays_registered(self):
        with order_lock("order-a"):
            assert held_lock_count() == 1
        assert held_lock_count() == 0


class TestConfirmation:
    def test_unpaid_intent_cannot_confirm(self, ledger, shipping_address, gateway):
        order_id = ledger.place(buyer_id="buyer-001", items=_items(), shipping_address=shipping_address)
        handle = _open_intent(order_id, gateway, paid=False)

        with pytest.raises(UnauthorizedTransition):
            ledger.confirm(order_id, handle.payment_intent_id)

        order = ledger.get(order_id)
        assert order.status == OrderStatus.PENDING.value
        assert len(order.timeline()) == 1

    def test_unknown_intent_cannot_confirm(self, ledger, shipping_address):
        order_id = ledger.place(buyer_id="buyer-001", items=_items(), shipping_address=shipping_address)
        with pytest.raises(UnauthorizedTransition):
            ledger.confirm(order_id, "pi-001")
        assert ledger.get(order_id).status == OrderStatus.PENDING.value

    def test_another_orders_payment_cannot_confirm(self, ledger, shipping_address, gateway):
        unpaid = ledger.place(buyer_id="buyer-001", items=_items(), shipping_address=shipping_address)
        _open_intent(unpaid, gateway, paid=False)
        paid = ledger.place(buyer_id="buyer-002", items=_items(), shipping_address=shipping_address)
        handle = _open_intent(paid, gateway)
        PaymentIntentBridge(gateway=gateway).confirm(handle.provider_ref)

        with pytest.raises(UnauthorizedTransition):
            ledger.confirm(unpaid, handle.payment_intent_id)
        assert ledger.get(unpaid).status == OrderStatus.PENDING.value


class TestConcurrentWriters:
    def test_payment_and_cancellation_race(self, ledger, shipping_address, gateway):
        order_id = ledger.place(buyer_id="buyer-001", items=_items(), shipping_address=shipping_address)
        handle = _open_intent(order_id, gateway)
        bridge = PaymentIntentBridge(gateway=gateway)

        def cancel():
            ledger.cancel(order_id, TransitionActor.BUYER, reason="Changed my mind")
            return "cancelled"

        confirmed, cancelled = _race(lambda: bridge.confirm(handle.provider_ref).outcome, cancel)

        assert cancelled == "cancelled"
        statuses = [t.status for t in ledger.get(order_id).timeline()]
        if confirmed == "rejected":
            # Cancellation went first; the late payment is refused, not recorded
            assert statuses == ["Pending", "Cancelled"]
        else:
            assert confirmed == "confirmed"
            assert statuses == ["Pending", "Confirmed", "Cancelled"]

    def test_duplicate_confirmations_record_one_transition(self, ledger, shipping_address, gateway):
        order_id = ledger.place(buyer_id="buyer-001", items=_items(), shipping_address=shipping_address)
        handle = _open_intent(order_id, gateway)
        bridge = PaymentIntentBridge(gateway=gateway)

        outcomes = _race(
            lambda: bridge.confirm(handle.provider_ref).outcome,
            lambda: bridge.confirm(handle.provider_ref).outcome,
        )

        assert sorted(outcomes) == ["already_confirmed", "confirmed"]
        assert [t.status for t in ledger.get(order_id).timeline()] == ["Pending", "Confirmed"]

    def test_competing_cancellations_record_one_transition(self, ledger, confirmed_order):
        def cancel():
            ledger.cancel(confirmed_order, TransitionActor.ADMIN, reason="Out of stock")
            return "cancelled"

        outcomes = _race(cancel, cancel)

        assert outcomes.count("cancelled") == 1
        assert sum(isinstance(o, (OrderAlreadyTerminal, InvalidTransition)) for o in outcomes) == 1
        assert [t.status for t in ledger.get(confirmed_order).timeline()] == ["Pending", "Confirmed", "Cancelled"]
