"""Checkout FastAPI application.

Web server that processes checkout, order and payment commands synchronously
via HTTP. Each request runs inside the checkout domain context.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV controls which config overlay is applied.
import os

from checkout.domain import checkout  # noqa: E402
from checkout.utils.logging import add_context, clear_context, configure_logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

configure_logging(log_dir=os.environ.get("LOG_DIR"))
checkout.init()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Checkout API",
    description="Checkout, order ledger and payment coordination",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_UNSCOPED_PATHS = ("/health", "/docs", "/redoc", "/openapi.json")


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the checkout domain context for each request."""
    clear_context()
    add_context(method=request.method, path=request.url.path)
    if request.url.path.startswith(_UNSCOPED_PATHS):
        return await call_next(request)
    with checkout.domain_context():
        response = await call_next(request)
    return response


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from checkout.api import (  # noqa: E402
    checkout_router,
    coupon_router,
    intent_router,
    order_router,
    payment_router,
)

app.include_router(checkout_router)
app.include_router(order_router)
app.include_router(payment_router)
app.include_router(intent_router)
app.include_router(coupon_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domains": {
                "checkout": {"name": checkout.name},
            },
        }
    )
