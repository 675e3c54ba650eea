# src/processed_or_not/api/dependencies.py
from functools import lru_cache

import httpx
from fastapi import Depends

from processed_or_not.adapters.ean_search import EanSearchAdapter
from processed_or_not.adapters.open_food_facts import OpenFoodFactsAdapter
from processed_or_not.adapters.upc_itemdb import UpcItemDbAdapter
from processed_or_not.adapters.usda_fooddata import UsdaFoodDataAdapter
from processed_or_not.core.config import Settings, get_settings
from processed_or_not.domain.models import DataSource
from processed_or_not.domain.ports import ProductSourcePort, ProgressStorePort
from processed_or_not.repositories.base import (
    AbstractProductRepository,
    AbstractSearchHistoryRepository,
)
from processed_or_not.repositories.sqlite_product_repository import SQLiteProductRepository
from processed_or_not.repositories.sqlite_search_history_repository import (
    SQLiteSearchHistoryRepository,
)
from processed_or_not.services.lookup_orchestrator import LookupOrchestrator
from processed_or_not.services.lookup_service import LookupService
from processed_or_not.services.notification_service import NotificationService
from processed_or_not.services.product_service import ProductService
from processed_or_not.services.progress_broadcaster import ProgressBroadcaster
from processed_or_not.services.progress_store import InMemoryProgressStore


# Shared HTTP Client (Connection Pooling)
@lru_cache
def get_http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        headers={"User-Agent": "ProcessedOrNot-Scanner/1.0"},
        follow_redirects=True,
    )


def get_off_adapter(
    client: httpx.AsyncClient = Depends(get_http_client),
) -> OpenFoodFactsAdapter:
    return OpenFoodFactsAdapter(http_client=client)


def get_usda_adapter(
    client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
) -> UsdaFoodDataAdapter:
    return UsdaFoodDataAdapter(http_client=client, api_key=settings.usda_api_key)


def get_upc_adapter(
    client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
) -> UpcItemDbAdapter:
    return UpcItemDbAdapter(http_client=client, base_url=settings.upc_itemdb_url)


def get_ean_search_adapter(
    client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
) -> EanSearchAdapter | None:
    if not settings.ean_search_api_key:
        return None
    return EanSearchAdapter(http_client=client, api_key=settings.ean_search_api_key)


def get_adapter_registry(
    off: OpenFoodFactsAdapter = Depends(get_off_adapter),
    usda: UsdaFoodDataAdapter = Depends(get_usda_adapter),
    upc: UpcItemDbAdapter = Depends(get_upc_adapter),
    ean_search: EanSearchAdapter | None = Depends(get_ean_search_adapter),
) -> dict[DataSource, ProductSourcePort]:
    """Liefert die Registry aller verfügbaren Adapter."""
    registry: dict[DataSource, ProductSourcePort] = {
        DataSource.OPEN_FOOD_FACTS: off,
        DataSource.USDA_FOODDATA: usda,
        DataSource.UPC_ITEMDB: upc,
    }
    if ean_search is not None:
        registry[DataSource.EAN_SEARCH] = ean_search
    return registry


# Singleton Progress Store + Broadcaster (prozesslokal)
@lru_cache
def get_progress_store() -> InMemoryProgressStore:
    return InMemoryProgressStore(ttl_seconds=get_settings().progress_ttl_seconds)


@lru_cache
def get_progress_broadcaster() -> ProgressBroadcaster:
    return ProgressBroadcaster(get_progress_store())


def get_lookup_orchestrator(
    store: ProgressStorePort = Depends(get_progress_store),
    settings: Settings = Depends(get_settings),
) -> LookupOrchestrator:
    return LookupOrchestrator(store=store, adapter_timeout=settings.adapter_timeout_seconds)


# Singleton Repositories (Initialisiert beim ersten Zugriff)
_product_repository: AbstractProductRepository | None = None
_history_repository: AbstractSearchHistoryRepository | None = None


async def get_product_repository(
    settings: Settings = Depends(get_settings),
) -> AbstractProductRepository:
    global _product_repository
    if _product_repository is None:
        repo = SQLiteProductRepository(database_url=settings.database_url)
        await repo.initialize()
        _product_repository = repo
    return _product_repository


async def get_history_repository(
    settings: Settings = Depends(get_settings),
) -> AbstractSearchHistoryRepository:
    global _history_repository
    if _history_repository is None:
        repo = SQLiteSearchHistoryRepository(database_url=settings.database_url)
        await repo.initialize()
        _history_repository = repo
    return _history_repository


def get_notification_service(
    client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
) -> NotificationService:
    return NotificationService(http_client=client, settings=settings)


def get_lookup_service(
    adapter_registry: dict[DataSource, ProductSourcePort] = Depends(get_adapter_registry),
    orchestrator: LookupOrchestrator = Depends(get_lookup_orchestrator),
    store: ProgressStorePort = Depends(get_progress_store),
    product_repository: AbstractProductRepository = Depends(get_product_repository),
    history_repository: AbstractSearchHistoryRepository = Depends(get_history_repository),
    notification_service: NotificationService = Depends(get_notification_service),
    settings: Settings = Depends(get_settings),
) -> LookupService:
    return LookupService(
        adapter_registry=adapter_registry,
        orchestrator=orchestrator,
        progress_store=store,
        product_repository=product_repository,
        history_repository=history_repository,
        barcode_lookup_order=settings.barcode_lookup_order,
        text_lookup_order=settings.text_lookup_order,
        notification_service=notification_service,
    )


def get_product_service(
    repository: AbstractProductRepository = Depends(get_product_repository),
) -> ProductService:
    return ProductService(repository=repository)
