from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from processed_or_not.domain.models import NormalizedProduct, SearchHistoryEntry


class AbstractProductRepository(ABC):
    @abstractmethod
    async def save(self, product: NormalizedProduct) -> NormalizedProduct:
        """Inserts or replaces a product, keyed by its barcode."""
        ...

    @abstractmethod
    async def find_by_barcode(self, barcode: str) -> NormalizedProduct | None:
        """Finds a stored product by barcode."""
        ...


class AbstractSearchHistoryRepository(ABC):
    @abstractmethod
    async def add(self, entry: SearchHistoryEntry) -> SearchHistoryEntry:
        """Records one search."""
        ...

    @abstractmethod
    async def list_for_tenant(self, tenant_id: str, limit: int = 50) -> list[SearchHistoryEntry]:
        """Returns the tenant's most recent searches, newest first."""
        ...
