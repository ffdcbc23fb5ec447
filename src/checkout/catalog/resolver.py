"""Product resolver — maps a cart line's product reference to a catalog identifier.

A cart line either already carries an authoritative catalog key, or an
opaque client-local key that must be matched against the catalog by name
and price:

    Authoritative(product_id)   → used as-is, no catalog query
    LocalAlias(name, unit_price) → exact name match, then substring match,
                                   then nearest price within epsilon

Resolution is a pure lookup. A line that cannot be resolved raises
ProductNotFound; callers abort the whole checkout rather than dropping it.
"""

from dataclasses import dataclass

import structlog

from checkout import config
from checkout.cart.lines import CartLine
from checkout.catalog import get_catalog
from checkout.catalog.port import CatalogPort, CatalogProduct
from checkout.errors import ProductNotFound

logger = structlog.get_logger(__name__)

# Absorbs float noise when comparing a price distance against epsilon
_FLOAT_TOLERANCE = 1e-9


@dataclass(frozen=True)
class Authoritative:
    product_id: str


@dataclass(frozen=True)
class LocalAlias:
    name: str
    unit_price: float


ProductRef = Authoritative | LocalAlias


@dataclass(frozen=True)
class ResolvedLine:
    """A cart line bound to an authoritative product, with its price snapshot."""

    product_id: str
    name: str
    price: float
    quantity: int
    seller_id: str | None = None

    @property
    def line_total(self) -> float:
        return round(self.price * self.quantity, 2)

    def to_item(self) -> dict:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "price": self.price,
            "qty": self.quantity,
            "seller_id": self.seller_id or "",
        }


def classify(line: CartLine, catalog: CatalogPort) -> ProductRef:
    """Tag a line's raw reference once, at the boundary."""
    if catalog.is_catalog_key(line.product_ref):
        return Authoritative(product_id=str(line.product_ref))
    return LocalAlias(name=line.name.strip(), unit_price=float(line.unit_price))


class ProductResolver:
    def __init__(self, catalog: CatalogPort | None = None, epsilon: float | None = None) -> None:
        self._catalog = catalog
        self._epsilon = epsilon

    @property
    def catalog(self) -> CatalogPort:
        return self._catalog or get_catalog()

    @property
    def epsilon(self) -> float:
        return self._epsilon if self._epsilon is not None else config.price_epsilon()

    def resolve(self, line: CartLine) -> ResolvedLine:
        ref = classify(line, self.catalog)

        if isinstance(ref, Authoritative):
            return ResolvedLine(
                product_id=ref.product_id,
                name=line.name,
                price=round(float(line.unit_price), 2),
                quantity=int(line.quantity),
                seller_id=line.seller_id,
            )

        product = self._match_alias(ref)
        logger.debug(
            "Resolved local product reference",
            product_ref=line.product_ref,
            product_id=product.product_id,
        )
        return ResolvedLine(
            product_id=product.product_id,
            name=product.name,
            price=round(float(product.price), 2),
            quantity=int(line.quantity),
            seller_id=product.seller_id,
        )

    def resolve_all(self, lines) -> list[ResolvedLine]:
        """Resolve every line or raise on the first one that cannot be resolved."""
        return [self.resolve(line) for line in lines]

    def _match_alias(self, ref: LocalAlias) -> CatalogProduct:
        wanted = ref.name.lower()
        candidates = [p for p in self.catalog.search_by_name(ref.name) if p.name]

        exact = [p for p in candidates if p.name.lower() == wanted]
        pool = exact or [p for p in candidates if wanted in p.name.lower()]

        if not pool:
            raise ProductNotFound(f"Item unavailable: {ref.name}")
        if len(pool) == 1:
            return pool[0]

        distances = [(abs(float(p.price) - ref.unit_price), p) for p in pool]
        by_distance = sorted(
            (pair for pair in distances if pair[0] <= self.epsilon + _FLOAT_TOLERANCE),
            key=lambda pair: pair[0],
        )
        if not by_distance:
            raise ProductNotFound(f"Item unavailable: {ref.name}")
        if len(by_distance) > 1 and abs(by_distance[0][0] - by_distance[1][0]) <= _FLOAT_TOLERANCE:
            raise ProductNotFound(f"Item unavailable: {ref.name} matches more than one product")
        return by_distance[0][1]
