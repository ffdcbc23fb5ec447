"""Catalog adapter factory.

Provides get_catalog() / set_catalog() so the product resolver can run
against the in-memory catalog (development and tests) or a real catalog
service client.
"""

from checkout.catalog.port import CatalogPort

_current_catalog: CatalogPort | None = None


def get_catalog() -> CatalogPort:
    """Return the current catalog. Defaults to InMemoryCatalog."""
    global _current_catalog
    if _current_catalog is None:
        from checkout.catalog.memory_adapter import InMemoryCatalog

        _current_catalog = InMemoryCatalog()
    return _current_catalog


def set_catalog(catalog: CatalogPort) -> None:
    """Override the active catalog (useful for tests)."""
    global _current_catalog
    _current_catalog = catalog


def reset_catalog() -> None:
    """Reset to default catalog."""
    global _current_catalog
    _current_catalog = None
