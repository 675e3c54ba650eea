# src/processed_or_not/adapters/ean_search.py
from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import BaseModel, Field

from processed_or_not.domain.models import DataSource, NormalizedProduct
from processed_or_not.domain.ports import ExternalApiError, ProductNotFoundError, ProductSourcePort

logger = logging.getLogger(__name__)

_BASE_URL = "https://api.ean-search.org/api"


class _EanProduct(BaseModel):
    ean: str | None = None
    name: str | None = None
    category_name: str | None = Field(default=None, alias="categoryName")
    error: str | None = None

    model_config = {"populate_by_name": True}


class EanSearchAdapter(ProductSourcePort):
    """Adapter für ean-search.org. Nur aktiv, wenn ein API-Token konfiguriert ist."""

    name = "EAN-Search"
    source = DataSource.EAN_SEARCH

    def __init__(self, http_client: httpx.AsyncClient, api_key: str) -> None:
        self._client = http_client
        self._api_key = api_key

    async def fetch_by_id(self, product_id: str) -> NormalizedProduct:
        data = await self._get({"op": "barcode-lookup", "ean": product_id})
        # Antwort ist eine Liste; unbekannte Codes kommen als [{"error": "..."}]
        items = data if isinstance(data, list) else [data]
        for raw in items:
            product = _EanProduct.model_validate(raw)
            if product.error is None and product.name:
                return self._normalize(product, barcode=product_id)
        raise ProductNotFoundError(product_id, self.source)

    async def search(self, query: str, limit: int = 10) -> list[NormalizedProduct]:
        data = await self._get({"op": "product-search", "name": query})
        raw_list = data.get("productlist", []) if isinstance(data, dict) else data
        products = []
        for raw in raw_list[:limit]:
            try:
                product = _EanProduct.model_validate(raw)
            except Exception:
                logger.warning("Skipping malformed EAN-Search result", exc_info=True)
                continue
            if product.error is None and product.name:
                products.append(self._normalize(product))
        return products

    async def _get(self, params: dict[str, str]) -> Any:
        try:
            response = await self._client.get(
                _BASE_URL,
                params={"token": self._api_key, "format": "json", **params},
                headers={"Accept": "application/json"},
                timeout=10.0,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ExternalApiError(self.source, str(e)) from e
        except httpx.RequestError as e:
            raise ExternalApiError(self.source, f"Connection error: {e}") from e
        return response.json()

    def _normalize(self, raw: _EanProduct, barcode: str | None = None) -> NormalizedProduct:
        code = barcode or raw.ean or ""
        return NormalizedProduct(
            id=code,
            source=self.source,
            name=raw.name,
            barcode=code or None,
        )
