"""Faker-based data generators for Locust load test scenarios.

Each generator produces payloads that match the field names expected by
the API's Pydantic request schemas. Cart lines carry authoritative product
keys (UUIDs), so checkout does not depend on what the in-memory catalog of
the target holds.
"""

import random
import uuid

from faker import Faker

fake = Faker()


def buyer_id() -> str:
    """Generate unique buyer IDs like 'buyer-lt-a1b2c3d4'."""
    return f"buyer-lt-{uuid.uuid4().hex[:8]}"


def seller_id() -> str:
    return f"seller-lt-{random.randint(1, 20)}"


def address_data() -> dict:
    """Generate an AddressSchema payload."""
    return {
        "full_name": fake.name()[:100],
        "street": fake.street_address()[:255],
        "city": fake.city()[:100],
        "state": fake.state_abbr(),
        "postal_code": fake.zipcode()[:20],
        "country": "US",
    }


def cart_line() -> dict:
    return {
        "product_ref": str(uuid.uuid4()),
        "name": fake.word().capitalize() + " " + random.choice(["Lamp", "Mug", "Chair", "Desk", "Shelf"]),
        "unit_price": round(random.uniform(5.0, 150.0), 2),
        "quantity": random.randint(1, 3),
        "seller_id": seller_id(),
    }


def checkout_data(coupon_code: str | None = None) -> dict:
    """Generate a CheckoutRequest payload with 1-4 lines."""
    payload = {
        "buyer_id": buyer_id(),
        "lines": [cart_line() for _ in range(random.randint(1, 4))],
        "shipping_address": address_data(),
    }
    if coupon_code:
        payload["coupon_code"] = coupon_code
    return payload


def coupon_data() -> dict:
    """Generate a fixed-amount DefineCouponRequest payload with a unique code."""
    return {
        "code": f"LT{uuid.uuid4().hex[:8].upper()}",
        "discount_type": "fixed",
        "value": float(random.choice([2, 5, 10])),
    }


def tracking_number() -> str:
    return f"TRK-{uuid.uuid4().hex[:12].upper()}"
