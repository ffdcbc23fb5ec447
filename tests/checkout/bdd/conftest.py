"""Shared BDD fixtures and step definitions for the Checkout domain."""

import pytest
from protean import current_domain
from pytest_bdd import given, parsers, then, when

from checkout.cart.lines import CartLine, CartSession
from checkout.cart.materializer import CartMaterializer
from checkout.coupon.management import DefineCoupon
from checkout.order.ledger import OrderLedger
from checkout.payment.bridge import PaymentIntentBridge

BUYER = "buyer-001"


# ---------------------------------------------------------------------------
# Scenario state
# ---------------------------------------------------------------------------
@pytest.fixture()
def context():
    """What the scenario has done so far: the order, intent and last result."""
    return {"order_id": None, "intent": None, "result": None}


@pytest.fixture()
def error():
    """Container for the error raised by the last When step."""
    return {"exc": None}


@pytest.fixture()
def ledger():
    return OrderLedger()


@pytest.fixture()
def bridge():
    return PaymentIntentBridge()


def _checkout(context, shipping_address, qty, name, price, coupon_code=None):
    session = CartSession(
        buyer_id=BUYER,
        lines=[CartLine(product_ref=f"SP-{name}", name=name, unit_price=price, quantity=qty)],
    )
    placed = CartMaterializer().materialize(session, shipping_address, coupon_code=coupon_code)
    context["order_id"] = placed.order_id


# ---------------------------------------------------------------------------
# Given steps — catalog and coupons
# ---------------------------------------------------------------------------
@given(parsers.cfparse('the catalog lists "{name}" at {price:f}'))
def _(catalog, name, price):
    catalog.add(name, price, seller_id="seller-1")


@given(parsers.cfparse('a fixed coupon "{code}" worth {value:f}'))
def _(code, value):
    current_domain.process(DefineCoupon(code=code, discount_type="fixed", value=value), asynchronous=False)


# ---------------------------------------------------------------------------
# Given steps — orders and payments
# ---------------------------------------------------------------------------
@given(parsers.cfparse('the buyer checked out {qty:d} "{name}" at {price:f}'))
def _(context, shipping_address, qty, name, price):
    _checkout(context, shipping_address, qty, name, price)


@given(parsers.cfparse('the buyer checked out {qty:d} "{name}" at {price:f} with coupon "{code}"'))
def _(context, shipping_address, qty, name, price, code):
    _checkout(context, shipping_address, qty, name, price, coupon_code=code)


@given("a payment intent was created")
@when("a new payment intent is created")
def _(context, bridge):
    context["intent"] = bridge.create_intent(context["order_id"])


@given(parsers.cfparse('the provider reports the payment as "{status}"'))
@when(parsers.cfparse('the provider reports the payment as "{status}"'))
def _(context, gateway, status):
    gateway.set_status(context["intent"].provider_ref, status)


@given("the provider is unreachable")
def _(gateway):
    gateway.configure(reachable=False)


@given("the payment was confirmed")
@when("the payment is confirmed")
def _(context, bridge):
    context["result"] = bridge.confirm(context["intent"].provider_ref)


@given("the order was paid")
def _(context, bridge, gateway):
    intent = bridge.create_intent(context["order_id"])
    gateway.set_status(intent.provider_ref, "succeeded")
    bridge.confirm(intent.provider_ref)


@given(parsers.cfparse('the order was cancelled by the "{actor}"'))
def _(context, ledger, actor):
    ledger.cancel(context["order_id"], actor, reason="No longer needed")


# ---------------------------------------------------------------------------
# Then steps — order state
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def _(context, ledger, status):
    assert ledger.get(context["order_id"]).status == status


@then(parsers.cfparse("the order history has {count:d} entries"))
def _(context, ledger, count):
    assert len(ledger.get(context["order_id"]).timeline()) == count


@then(parsers.cfparse('the order history reads "{statuses}"'))
def _(context, ledger, statuses):
    recorded = [t.status for t in ledger.get(context["order_id"]).timeline()]
    assert recorded == [s.strip() for s in statuses.split(",")]
