"""Tests for Order placement, totals and status history."""

import json

import pytest
from protean.exceptions import ValidationError

from checkout.errors import PaymentNotAllowed
from checkout.order.events import OrderPlaced, PaymentIntentAttached
from checkout.order.order import Order, OrderStatus, TransitionActor

ADDRESS = {"street": "1 Market St", "city": "Springfield", "postal_code": "62701", "country": "US"}


def _items():
    return [
        {"product_id": "prod-001", "name": "Widget", "price": 10.0, "qty": 2, "seller_id": "seller-1"},
        {"product_id": "prod-002", "name": "Gadget", "price": 5.5, "qty": 1, "seller_id": "seller-2"},
    ]


def _place(**overrides):
    kwargs = {"buyer_id": "buyer-001", "items_data": _items(), "shipping_address": ADDRESS}
    kwargs.update(overrides)
    return Order.place(**kwargs)


class TestPlaceOrder:
    def test_new_order_is_pending(self):
        order = _place()
        assert order.status == OrderStatus.PENDING.value

    def test_subtotal_is_sum_of_item_prices(self):
        order = _place()
        assert order.subtotal == 25.5

    def test_items_keep_price_snapshot(self):
        order = _place()
        prices = sorted(item.price for item in order.items)
        assert prices == [5.5, 10.0]

    def test_total_subtracts_discount(self):
        order = _place(discount=5.0, coupon_code="SAVE5")
        assert order.discount == 5.0
        assert order.total == 20.5
        assert order.coupon_code == "SAVE5"

    def test_discount_is_clamped_to_subtotal(self):
        order = _place(discount=100.0)
        assert order.discount == order.subtotal
        assert order.total == 0.0

    def test_initial_history_entry_is_pending(self):
        order = _place()
        history = order.timeline()
        assert len(history) == 1
        assert history[0].status == OrderStatus.PENDING.value
        assert history[0].actor == TransitionActor.BUYER.value
        assert history[0].sequence == 1

    def test_shipping_address_is_captured(self):
        order = _place()
        assert order.shipping_address.city == "Springfield"

    def test_seller_ids(self):
        order = _place()
        assert order.seller_ids() == {"seller-1", "seller-2"}

    def test_raises_order_placed(self):
        order = _place()
        events = [e for e in order._events if isinstance(e, OrderPlaced)]
        assert len(events) == 1
        assert events[0].status == OrderStatus.PENDING.value
        assert events[0].total == 25.5
        assert len(json.loads(events[0].items)) == 2

    def test_order_without_items_is_rejected(self):
        with pytest.raises(ValidationError):
            _place(items_data=[])

    def test_incomplete_address_is_rejected(self):
        with pytest.raises(ValidationError):
            _place(shipping_address={"street": "1 Market St"})


class TestAttachPaymentIntent:
    def test_attach_records_reference(self):
        order = _place()
        order._events.clear()
        order.attach_payment_intent("pi-001", "fake_pi_001")
        assert order.payment_intent_id == "pi-001"
        assert order.payment_ref == "fake_pi_001"
        assert isinstance(order._events[-1], PaymentIntentAttached)

    def test_attach_does_not_change_status(self):
        order = _place()
        order.attach_payment_intent("pi-001", "fake_pi_001")
        assert order.status == OrderStatus.PENDING.value
        assert len(order.timeline()) == 1

    def test_cannot_attach_after_cancellation(self):
        order = _place()
        order.cancel(TransitionActor.BUYER, "Changed my mind")
        with pytest.raises(PaymentNotAllowed):
            order.attach_payment_intent("pi-001", "fake_pi_001")
