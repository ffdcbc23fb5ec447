"""FastAPI routes for the Checkout domain — checkout, orders, payments and coupons."""

import os

from fastapi import APIRouter, Header, HTTPException, Query, Request
from protean.utils.globals import current_domain

from checkout.api.errors import domain_errors
from checkout.api.schemas import (
    CheckoutRequest,
    CheckoutResponse,
    ConfirmationResponse,
    ConfirmPaymentRequest,
    CouponCodeResponse,
    CouponDiscountResponse,
    DefineCouponRequest,
    OrderListResponse,
    OrderResponse,
    PaymentAttemptResponse,
    PaymentHistoryResponse,
    PaymentIntentResponse,
    SimulatePaymentRequest,
    StatusResponse,
    UpdateStatusRequest,
    ValidateCouponRequest,
)
from checkout.cart.lines import CartLine, CartSession
from checkout.cart.materializer import CartMaterializer
from checkout.coupon.management import DeactivateCoupon, DefineCoupon
from checkout.coupon.validator import CouponValidator
from checkout.gateway import get_gateway
from checkout.gateway.fake_adapter import FakeGateway
from checkout.order.ledger import OrderLedger
from checkout.payment.bridge import PaymentIntentBridge


def _order_response(order) -> OrderResponse:
    address = order.shipping_address
    return OrderResponse(
        order_id=str(order.id),
        buyer_id=str(order.buyer_id),
        status=order.status,
        items=[
            {
                "product_id": str(item.product_id),
                "name": item.name,
                "price": item.price,
                "qty": item.qty,
                "seller_id": item.seller_id,
            }
            for item in order.items
        ],
        subtotal=order.subtotal,
        discount=order.discount or 0.0,
        total=order.total,
        currency=order.currency,
        coupon_code=order.coupon_code,
        shipping_address=address.to_dict() if address else None,
        tracking_number=order.tracking_number,
        estimated_delivery=order.estimated_delivery,
        payment_ref=order.payment_ref,
        status_history=[
            {"status": t.status, "changed_at": t.changed_at, "actor": t.actor, "notes": t.notes}
            for t in order.timeline()
        ],
        created_at=order.created_at,
    )


def _confirmation_response(result) -> ConfirmationResponse:
    return ConfirmationResponse(
        outcome=result.outcome,
        intent_status=result.intent_status,
        order_status=result.order_status,
        changed=result.changed,
        detail=result.detail,
    )


# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])


@checkout_router.post("", status_code=201, response_model=CheckoutResponse)
async def checkout(body: CheckoutRequest) -> CheckoutResponse:
    """Turn a client cart into a Pending order."""
    with domain_errors():
        session = CartSession(
            buyer_id=body.buyer_id,
            lines=[CartLine(**line.model_dump()) for line in body.lines],
        )
        placed = CartMaterializer().materialize(
            session,
            shipping_address=body.shipping_address.model_dump(exclude_none=True),
            coupon_code=body.coupon_code,
        )
    return CheckoutResponse(
        order_id=placed.order_id,
        status=placed.status,
        subtotal=placed.subtotal,
        discount=placed.discount,
        total=placed.total,
        currency=placed.currency,
    )


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.get("", response_model=OrderListResponse)
async def list_orders(
    buyer_id: str | None = Query(default=None),
    seller_id: str | None = Query(default=None),
) -> OrderListResponse:
    """List a buyer's orders, or the orders containing a seller's items."""
    ledger = OrderLedger()
    if buyer_id:
        orders = ledger.orders_for_buyer(buyer_id)
    elif seller_id:
        orders = ledger.orders_for_seller(seller_id)
    else:
        raise HTTPException(status_code=400, detail="Specify buyer_id or seller_id")
    return OrderListResponse(orders=[_order_response(o) for o in orders])


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str) -> OrderResponse:
    """Fetch one order with its status history."""
    with domain_errors():
        order = OrderLedger().get(order_id)
    return _order_response(order)


@order_router.put("/{order_id}/status", response_model=StatusResponse)
async def update_order_status(order_id: str, body: UpdateStatusRequest) -> StatusResponse:
    """Move an order to the requested status, if the actor may do so."""
    with domain_errors():
        status = OrderLedger().request_transition(
            order_id,
            body.status,
            actor=body.actor,
            notes=body.notes,
            tracking_number=body.tracking_number,
            estimated_delivery=body.estimated_delivery,
        )
    return StatusResponse(status=status)


@order_router.post("/{order_id}/payment-intents", status_code=201, response_model=PaymentIntentResponse)
async def create_payment_intent(order_id: str) -> PaymentIntentResponse:
    """Create a payment intent for the order, or return the one still open."""
    with domain_errors():
        handle = PaymentIntentBridge().create_intent(order_id)
    return PaymentIntentResponse(
        payment_intent_id=handle.payment_intent_id,
        order_id=handle.order_id,
        provider_ref=handle.provider_ref,
        client_secret=handle.client_secret,
        amount=handle.amount,
        currency=handle.currency,
        status=handle.status,
        reused=handle.reused,
    )


@order_router.get("/{order_id}/payment-intents", response_model=PaymentHistoryResponse)
async def list_payment_intents(order_id: str) -> PaymentHistoryResponse:
    """Every payment attempt made for the order, oldest first. Client secrets are never listed."""
    with domain_errors():
        intents = PaymentIntentBridge().payment_history(order_id)
    return PaymentHistoryResponse(
        order_id=order_id,
        attempts=[
            PaymentAttemptResponse(
                payment_intent_id=str(intent.id),
                attempt=intent.attempt,
                provider_ref=intent.provider_ref,
                amount=intent.amount,
                currency=intent.currency,
                status=intent.status,
                created_at=intent.created_at,
                settled_at=intent.settled_at,
            )
            for intent in intents
        ],
    )


# ---------------------------------------------------------------------------
# Payment Router
# ---------------------------------------------------------------------------
payment_router = APIRouter(prefix="/payments", tags=["payments"])


@payment_router.post("/confirm", response_model=ConfirmationResponse)
async def confirm_payment(body: ConfirmPaymentRequest) -> ConfirmationResponse:
    """Ask the provider for the intent's status and apply it."""
    with domain_errors():
        result = PaymentIntentBridge().confirm(body.provider_ref)
    return _confirmation_response(result)


@payment_router.post("/webhook", response_model=ConfirmationResponse | StatusResponse)
async def payment_webhook(request: Request, x_gateway_signature: str = Header(default="")):
    """Process a payment provider callback."""
    payload = (await request.body()).decode("utf-8")
    with domain_errors():
        result = PaymentIntentBridge().handle_webhook(payload, x_gateway_signature)
    if result is None:
        return StatusResponse(status="ignored")
    return _confirmation_response(result)


@payment_router.post("/gateway/simulate", response_model=StatusResponse)
async def simulate_payment(body: SimulatePaymentRequest) -> StatusResponse:
    """Move a FakeGateway intent to a status (non-production only).

    Stands in for the buyer completing or failing payment at the provider
    during manual and load testing.
    """
    if os.environ.get("PROTEAN_ENV") == "production":
        raise HTTPException(status_code=403, detail="Gateway simulation not available in production")

    gateway = get_gateway()
    if not isinstance(gateway, FakeGateway):
        raise HTTPException(status_code=400, detail="Gateway simulation only available for FakeGateway")

    try:
        gateway.set_status(body.provider_ref, body.status)
    except KeyError:
        raise HTTPException(status_code=404, detail="Not found") from None
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return StatusResponse(status=body.status)


# ---------------------------------------------------------------------------
# Payment Intent Router
# ---------------------------------------------------------------------------
intent_router = APIRouter(prefix="/payment-intents", tags=["payments"])


@intent_router.post("/{payment_intent_id}/cancel", response_model=StatusResponse)
async def cancel_payment_intent(payment_intent_id: str) -> StatusResponse:
    """Abandon a payment attempt. The order stays Pending."""
    with domain_errors():
        status = PaymentIntentBridge().cancel_intent(payment_intent_id)
    return StatusResponse(status=status)


# ---------------------------------------------------------------------------
# Coupon Router
# ---------------------------------------------------------------------------
coupon_router = APIRouter(prefix="/coupons", tags=["coupons"])


@coupon_router.post("", status_code=201, response_model=CouponCodeResponse)
async def define_coupon(body: DefineCouponRequest) -> CouponCodeResponse:
    """Define a new coupon."""
    with domain_errors():
        code = current_domain.process(DefineCoupon(**body.model_dump()), asynchronous=False)
    return CouponCodeResponse(code=code)


@coupon_router.delete("/{code}", response_model=StatusResponse)
async def deactivate_coupon(code: str) -> StatusResponse:
    """Deactivate a coupon; it is kept for orders that used it."""
    with domain_errors():
        current_domain.process(DeactivateCoupon(code=code), asynchronous=False)
    return StatusResponse(status="deactivated")


@coupon_router.post("/validate", response_model=CouponDiscountResponse)
async def validate_coupon(body: ValidateCouponRequest) -> CouponDiscountResponse:
    """Preview the discount a coupon gives for a subtotal."""
    with domain_errors():
        applied = CouponValidator().validate(
            body.code,
            body.subtotal,
            buyer_id=body.buyer_id,
            product_ids=body.product_ids,
        )
    return CouponDiscountResponse(code=applied.code, discount=applied.discount)
