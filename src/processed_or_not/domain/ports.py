# src/processed_or_not/domain/ports.py
from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable

from processed_or_not.domain.models import (
    DataSource,
    InputType,
    NormalizedProduct,
    ProgressEntry,
    ProgressEvent,
)


class ProductSourcePort(ABC):
    """
    Abstrakte Schnittstelle für externe Produktdatenquellen.
    Jeder Adapter MUSS dieses Interface implementieren.
    Der Orchestrator kennt ausschließlich dieses Interface.
    """

    #: Stabiler Anzeigename, erscheint in currentSource/completedSources
    name: str
    source: DataSource

    @abstractmethod
    async def fetch_by_id(self, product_id: str) -> NormalizedProduct:
        """
        Ruft ein Produkt anhand seines Barcodes (oder der source-spezifischen ID) ab.

        Raises:
            ProductNotFoundError: Wenn das Produkt nicht gefunden wurde.
            ExternalApiError: Bei Kommunikationsproblemen mit der externen API.
        """
        ...

    @abstractmethod
    async def search(self, query: str, limit: int = 10) -> list[NormalizedProduct]:
        """Sucht nach Produkten anhand eines Suchbegriffs."""
        ...

    async def lookup(self, query: str, input_type: InputType) -> NormalizedProduct:
        """Einzeltreffer: Barcode per fetch_by_id, Freitext per erstem Suchergebnis."""
        if input_type is InputType.BARCODE:
            return await self.fetch_by_id(query)
        results = await self.search(query, limit=1)
        if not results:
            raise ProductNotFoundError(query, self.source)
        return results[0]


ProgressListener = Callable[[ProgressEvent], None]


class ProgressStorePort(ABC):
    """
    Key-basierter Speicher für den Live-Fortschritt von Lookups.

    Implementierungen sind prozesslokal: Polling und Subscription müssen den
    Prozess erreichen, der den Lookup ausführt. Ein verteiltes Backend muss nur
    denselben reset/update/get-Vertrag erfüllen.
    """

    @abstractmethod
    def reset(self, key: str, total_sources: int = 0) -> int:
        """Startet einen neuen Lauf für `key` und gibt dessen run_id zurück."""
        ...

    @abstractmethod
    def update(self, key: str, *, run_id: int | None = None, **fields: object) -> ProgressEntry | None:
        """Übernimmt `fields` in den Eintrag. None bei verworfenem (veraltetem) Update."""
        ...

    @abstractmethod
    def get(self, key: str) -> ProgressEntry | None: ...

    @abstractmethod
    def complete(
        self,
        key: str,
        found: bool,
        source_name: str | None = None,
        *,
        error: str | None = None,
        run_id: int | None = None,
    ) -> ProgressEntry | None: ...

    @abstractmethod
    def is_current(self, key: str, run_id: int) -> bool: ...

    @abstractmethod
    def add_listener(self, listener: ProgressListener) -> None: ...

    @abstractmethod
    def remove_listener(self, listener: ProgressListener) -> None: ...


# ---------------------------------------------------------------------------
# Custom Domain Exceptions
# ---------------------------------------------------------------------------


class ProductNotFoundError(Exception):
    def __init__(self, product_id: str, source: str):
        super().__init__(f"Product '{product_id}' not found in source '{source}'")
        self.product_id = product_id
        self.source = source


class ExternalApiError(Exception):
    def __init__(self, source: str, detail: str):
        super().__init__(f"External API error from '{source}': {detail}")
        self.source = source
        self.detail = detail


class ProductAlreadyExistsError(Exception):
    def __init__(self, barcode: str):
        super().__init__(f"Product with barcode '{barcode}' already exists")
        self.barcode = barcode
