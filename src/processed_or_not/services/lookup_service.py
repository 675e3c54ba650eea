from __future__ import annotations

import logging

from processed_or_not.core.metrics import STORED_PRODUCT_HITS
from processed_or_not.domain.models import (
    DataSource,
    InputType,
    LookupOutcome,
    SearchHistoryEntry,
)
from processed_or_not.domain.ports import ProductSourcePort, ProgressStorePort
from processed_or_not.repositories.base import (
    AbstractProductRepository,
    AbstractSearchHistoryRepository,
)
from processed_or_not.services.input_detector import detect_input_type, normalize_key
from processed_or_not.services.lookup_orchestrator import LookupOrchestrator
from processed_or_not.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

STORED_SOURCE_NAME = "Product store"


class LookupService:
    """
    Einstiegspunkt für eine Produktsuche (Barcode oder Freitext).

    Ablauf: Key normalisieren, gespeichertes Produkt prüfen (nur Barcodes),
    Progress-Eintrag zurücksetzen, Orchestrator starten, Treffer speichern,
    Suchhistorie schreiben.
    """

    def __init__(
        self,
        adapter_registry: dict[DataSource, ProductSourcePort],
        orchestrator: LookupOrchestrator,
        progress_store: ProgressStorePort,
        product_repository: AbstractProductRepository,
        history_repository: AbstractSearchHistoryRepository,
        barcode_lookup_order: list[str],
        text_lookup_order: list[str],
        notification_service: NotificationService | None = None,
    ) -> None:
        self._adapter_registry = adapter_registry
        self._orchestrator = orchestrator
        self._store = progress_store
        self._products = product_repository
        self._history = history_repository
        self._lookup_order = {
            InputType.BARCODE: barcode_lookup_order,
            InputType.TEXT: text_lookup_order,
        }
        self._notification_service = notification_service

    def resolve_adapters(self, input_type: InputType) -> list[ProductSourcePort]:
        """Übersetzt die konfigurierte Reihenfolge in Adapter; unbekannte Quellen werden übersprungen."""
        adapters: list[ProductSourcePort] = []
        for source_name in self._lookup_order[input_type]:
            try:
                source_enum = DataSource(source_name)
            except ValueError:
                logger.warning("Invalid source '%s' in %s lookup order", source_name, input_type)
                continue

            adapter = self._adapter_registry.get(source_enum)
            if not adapter:
                logger.warning("No adapter registered for source '%s'", source_name)
                continue
            adapters.append(adapter)
        return adapters

    async def lookup(self, raw_input: str, tenant_id: str | None = None) -> LookupOutcome:
        key = normalize_key(raw_input)
        if not key:
            raise ValueError("Search input must not be empty")
        input_type = detect_input_type(key)

        if input_type is InputType.BARCODE:
            stored = await self._products.find_by_barcode(key)
            if stored is not None:
                STORED_PRODUCT_HITS.inc()
                run_id = self._store.reset(key, total_sources=0)
                self._store.complete(key, found=True, run_id=run_id)
                outcome = LookupOutcome(
                    key=key,
                    input_type=input_type,
                    found=True,
                    product=stored,
                    source_name=STORED_SOURCE_NAME,
                    from_store=True,
                )
                await self._record(tenant_id, outcome)
                return outcome

        adapters = self.resolve_adapters(input_type)
        # Reset vor dem Start: Poller sehen sofort einen frischen Lauf statt eines alten Ergebnisses
        run_id = self._store.reset(key, total_sources=len(adapters))
        outcome = await self._orchestrator.run(key, adapters, input_type=input_type, run_id=run_id)

        if outcome.superseded:
            return outcome

        if outcome.found and outcome.product is not None:
            product = outcome.product
            if input_type is InputType.BARCODE and product.barcode != key:
                product = product.model_copy(update={"barcode": key})
                outcome = outcome.model_copy(update={"product": product})
            if product.barcode:
                await self._products.save(product)
        elif self._notification_service is not None:
            await self._notification_service.notify_exhausted(outcome)

        await self._record(tenant_id, outcome)
        return outcome

    async def _record(self, tenant_id: str | None, outcome: LookupOutcome) -> None:
        if tenant_id is None:
            return
        await self._history.add(
            SearchHistoryEntry(
                tenant_id=tenant_id,
                query=outcome.key,
                input_type=outcome.input_type,
                found=outcome.found,
                source_name=outcome.source_name,
            )
        )
