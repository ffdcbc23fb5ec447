"""Cart Materializer — turns a submitted cart into a Pending order.

Strategies are tried in order, each wrapped so that its outcome is an
explicit StrategyResult:

    1. DirectOrderCreation  resolve lines, validate coupon, place order
    2. CartSyncCreation     resolve lines, validate coupon, push lines into
                            the cart store, then check out the stored cart

Only a systemic failure lets the next strategy run. A rejection of the
buyer's cart (unknown product, bad coupon, invalid line) stops the attempt
at once. On failure the direct path's error is raised and the errors of
later strategies are only logged.

Materialization is all-or-nothing: every line is resolved before anything
is written, and the order is the last write of each strategy.
"""

import json
from dataclasses import dataclass

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from checkout import config
from checkout.cart.lines import CartSession
from checkout.cart.sync import CheckoutCart, PushCartLines
from checkout.catalog.resolver import ProductResolver
from checkout.coupon.validator import CouponValidator
from checkout.errors import SystemicCheckoutFailure
from checkout.order.ledger import OrderLedger

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class StrategyResult:
    strategy: str
    order_id: str | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.order_id is not None and self.error is None

    @property
    def fallback_eligible(self) -> bool:
        """Only failures of the checkout path itself may be retried another way."""
        return self.error is not None and not isinstance(self.error, ValidationError)


@dataclass(frozen=True)
class MaterializedOrder:
    order_id: str
    strategy: str
    subtotal: float
    discount: float
    total: float
    currency: str
    status: str


class DirectOrderCreation:
    name = "direct"

    def __init__(self, resolver: ProductResolver, coupons: CouponValidator, ledger: OrderLedger) -> None:
        self.resolver = resolver
        self.coupons = coupons
        self.ledger = ledger

    def __call__(self, session: CartSession, shipping_address: dict, coupon_code=None) -> str:
        if config.require_server_cart():
            raise SystemicCheckoutFailure("Direct order creation is disabled; a server-side cart is required")

        resolved = self.resolver.resolve_all(session.lines)
        subtotal = round(sum(line.line_total for line in resolved), 2)

        discount, applied_code = 0.0, None
        if coupon_code:
            applied = self.coupons.validate(
                coupon_code,
                subtotal,
                buyer_id=session.buyer_id,
                product_ids=[line.product_id for line in resolved],
            )
            discount, applied_code = applied.discount, applied.code

        return self.ledger.place(
            buyer_id=session.buyer_id,
            items=[line.to_item() for line in resolved],
            shipping_address=shipping_address,
            discount=discount,
            coupon_code=applied_code,
        )


class CartSyncCreation:
    name = "cart_sync"

    def __init__(self, resolver: ProductResolver, coupons: CouponValidator) -> None:
        self.resolver = resolver
        self.coupons = coupons

    def __call__(self, session: CartSession, shipping_address: dict, coupon_code=None) -> str:
        resolved = self.resolver.resolve_all(session.lines)
        if coupon_code:
            # A rejected coupon must not leave the pushed lines behind
            self.coupons.validate(
                coupon_code,
                round(sum(line.line_total for line in resolved), 2),
                buyer_id=session.buyer_id,
                product_ids=[line.product_id for line in resolved],
            )

        current_domain.process(
            PushCartLines(
                buyer_id=session.buyer_id,
                lines=json.dumps([line.to_item() for line in resolved]),
            ),
            asynchronous=False,
        )
        return current_domain.process(
            CheckoutCart(
                buyer_id=session.buyer_id,
                shipping_address=json.dumps(shipping_address),
                coupon_code=coupon_code,
            ),
            asynchronous=False,
        )


class CartMaterializer:
    def __init__(self, strategies=None, ledger: OrderLedger | None = None) -> None:
        self.ledger = ledger or OrderLedger()
        if strategies is None:
            resolver = ProductResolver()
            strategies = [
                DirectOrderCreation(resolver, CouponValidator(), self.ledger),
                CartSyncCreation(resolver, CouponValidator()),
            ]
        self.strategies = list(strategies)

    @staticmethod
    def _attempt(strategy, session, shipping_address, coupon_code) -> StrategyResult:
        try:
            order_id = strategy(session, shipping_address, coupon_code)
        except Exception as exc:
            return StrategyResult(strategy=strategy.name, error=exc)
        return StrategyResult(strategy=strategy.name, order_id=order_id)

    def materialize(self, session: CartSession, shipping_address: dict, coupon_code=None) -> MaterializedOrder:
        results: list[StrategyResult] = []

        for strategy in self.strategies:
            result = self._attempt(strategy, session, shipping_address, coupon_code)
            results.append(result)

            if result.ok:
                order = self.ledger.get(result.order_id)
                logger.info(
                    "Cart materialized",
                    order_id=result.order_id,
                    buyer_id=str(session.buyer_id),
                    strategy=result.strategy,
                    total=order.total,
                )
                return MaterializedOrder(
                    order_id=str(order.id),
                    strategy=result.strategy,
                    subtotal=order.subtotal,
                    discount=order.discount or 0.0,
                    total=order.total,
                    currency=order.currency,
                    status=order.status,
                )

            if not result.fallback_eligible:
                break

            logger.warning(
                "Checkout strategy failed",
                strategy=result.strategy,
                buyer_id=str(session.buyer_id),
                error=str(result.error),
            )

        first = results[0]
        for later in results[1:]:
            logger.error(
                "Fallback checkout strategy failed",
                strategy=later.strategy,
                buyer_id=str(session.buyer_id),
                error=str(later.error),
            )
        raise first.error
