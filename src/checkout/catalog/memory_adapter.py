"""In-memory catalog adapter for development and testing."""

from uuid import uuid4

from checkout.catalog.port import CatalogPort, CatalogProduct


class InMemoryCatalog(CatalogPort):
    """Catalog held in a dict; records every query for test assertions."""

    def __init__(self) -> None:
        self.products: dict[str, CatalogProduct] = {}
        self.calls: list[dict] = []

    def add(self, name: str, price: float, seller_id: str | None = None, product_id: str | None = None) -> CatalogProduct:
        product = CatalogProduct(
            product_id=product_id or str(uuid4()),
            name=name,
            price=price,
            seller_id=seller_id,
        )
        self.products[product.product_id] = product
        return product

    def set_price(self, product_id: str, price: float) -> None:
        """Change a product's catalog price (placed orders keep their snapshot)."""
        product = self.products[product_id]
        self.products[product_id] = CatalogProduct(
            product_id=product.product_id,
            name=product.name,
            price=price,
            seller_id=product.seller_id,
        )

    def remove(self, product_id: str) -> None:
        self.products.pop(product_id, None)

    def lookup_by_key(self, key: str) -> CatalogProduct | None:
        self.calls.append({"method": "lookup_by_key", "key": key})
        return self.products.get(str(key))

    def search_by_name(self, name: str) -> list[CatalogProduct]:
        self.calls.append({"method": "search_by_name", "name": name})
        needle = name.strip().lower()
        return [p for p in self.products.values() if needle in p.name.lower()]
