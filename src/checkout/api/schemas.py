"""Pydantic request/response schemas for the Checkout API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class CartLineSchema(BaseModel):
    product_ref: str
    name: str
    unit_price: float = Field(ge=0)
    quantity: int = Field(ge=1)
    seller_id: str | None = None


class AddressSchema(BaseModel):
    full_name: str | None = None
    street: str
    city: str
    state: str | None = None
    postal_code: str
    country: str
    phone: str | None = None


class OrderItemSchema(BaseModel):
    product_id: str
    name: str
    price: float
    qty: int
    seller_id: str | None = None


class StatusTransitionSchema(BaseModel):
    status: str
    changed_at: datetime
    actor: str
    notes: str | None = None


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------
class CheckoutRequest(BaseModel):
    buyer_id: str
    lines: list[CartLineSchema] = Field(min_length=1)
    shipping_address: AddressSchema
    coupon_code: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "buyer_id": "buyer-001",
                    "lines": [{"product_ref": "SP-1", "name": "Widget", "unit_price": 10.0, "quantity": 2}],
                    "shipping_address": {
                        "street": "1 Market St",
                        "city": "Springfield",
                        "postal_code": "12345",
                        "country": "US",
                    },
                    "coupon_code": "SAVE5",
                }
            ]
        }
    }


class CheckoutResponse(BaseModel):
    order_id: str
    status: str
    subtotal: float
    discount: float
    total: float
    currency: str


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class OrderResponse(BaseModel):
    order_id: str
    buyer_id: str
    status: str
    items: list[OrderItemSchema]
    subtotal: float
    discount: float
    total: float
    currency: str
    coupon_code: str | None = None
    shipping_address: AddressSchema | None = None
    tracking_number: str | None = None
    estimated_delivery: str | None = None
    payment_ref: str | None = None
    status_history: list[StatusTransitionSchema]
    created_at: datetime | None = None


class OrderListResponse(BaseModel):
    orders: list[OrderResponse]


class UpdateStatusRequest(BaseModel):
    status: str
    actor: str
    notes: str | None = None
    tracking_number: str | None = None
    estimated_delivery: str | None = None


class StatusResponse(BaseModel):
    status: str


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------
class PaymentIntentResponse(BaseModel):
    payment_intent_id: str
    order_id: str
    provider_ref: str
    client_secret: str
    amount: float
    currency: str
    status: str
    reused: bool


class PaymentAttemptResponse(BaseModel):
    payment_intent_id: str
    attempt: int
    provider_ref: str | None = None
    amount: float
    currency: str
    status: str
    created_at: datetime | None = None
    settled_at: datetime | None = None


class PaymentHistoryResponse(BaseModel):
    order_id: str
    attempts: list[PaymentAttemptResponse]


class ConfirmPaymentRequest(BaseModel):
    provider_ref: str


class ConfirmationResponse(BaseModel):
    outcome: str
    intent_status: str | None = None
    order_status: str | None = None
    changed: bool
    detail: str | None = None


# ---------------------------------------------------------------------------
# Coupons
# ---------------------------------------------------------------------------
class DefineCouponRequest(BaseModel):
    code: str
    discount_type: str  # percent, fixed
    value: float = Field(gt=0)
    min_subtotal: float | None = Field(default=None, ge=0)
    max_discount: float | None = Field(default=None, gt=0)
    starts_at: datetime | None = None
    expires_at: datetime | None = None
    usage_limit: int | None = Field(default=None, ge=1)
    per_buyer_limit: int | None = Field(default=None, ge=1)
    applicable_products: list[str] = Field(default_factory=list)
    excluded_products: list[str] = Field(default_factory=list)


class CouponCodeResponse(BaseModel):
    code: str


class ValidateCouponRequest(BaseModel):
    code: str
    subtotal: float = Field(ge=0)
    buyer_id: str | None = None
    product_ids: list[str] = Field(default_factory=list)


class CouponDiscountResponse(BaseModel):
    code: str
    discount: float


class SimulatePaymentRequest(BaseModel):
    provider_ref: str
    status: str  # requires_payment, processing, succeeded, failed, canceled
