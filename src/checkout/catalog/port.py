"""Catalog port (abstract interface).

The product catalog is owned by another service; the coordinator only needs
to look products up by their authoritative key or search them by name.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class CatalogProduct:
    """A product as the catalog currently describes it."""

    product_id: str
    name: str
    price: float
    seller_id: str | None = None


class CatalogPort(ABC):
    """Abstract catalog interface."""

    @abstractmethod
    def lookup_by_key(self, key: str) -> CatalogProduct | None:
        """Return the product stored under ``key``, or None when it does not exist."""
        ...

    @abstractmethod
    def search_by_name(self, name: str) -> list[CatalogProduct]:
        """Return products whose name contains ``name`` (case-insensitive)."""
        ...

    def is_catalog_key(self, key: str | None) -> bool:
        """Whether ``key`` has the catalog's authoritative identifier format (a UUID)."""
        if not key:
            return False
        try:
            UUID(str(key))
        except ValueError:
            return False
        return True
