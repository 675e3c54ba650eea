# src/processed_or_not/adapters/upc_itemdb.py
from __future__ import annotations

import httpx
from pydantic import BaseModel, Field

from processed_or_not.domain.models import DataSource, NormalizedProduct
from processed_or_not.domain.ports import ExternalApiError, ProductNotFoundError, ProductSourcePort

# UPCitemdb meldet unbekannte/ungültige Codes als 400 bzw. 404
_NOT_FOUND_STATUS = frozenset({400, 404})


class _UpcItem(BaseModel):
    ean: str | None = None
    upc: str | None = None
    title: str | None = None
    brand: str | None = None
    description: str | None = None
    images: list[str] = Field(default_factory=list)


class _UpcResponse(BaseModel):
    code: str | None = None
    items: list[_UpcItem] = Field(default_factory=list)


class UpcItemDbAdapter(ProductSourcePort):
    """
    Adapter für UPCitemdb (kommerzieller Fallback).
    Liefert Name, Marke und Bild, aber keine Zutaten oder Nährwerte.
    """

    name = "UPC Database"
    source = DataSource.UPC_ITEMDB

    def __init__(self, http_client: httpx.AsyncClient, base_url: str) -> None:
        self._client = http_client
        self._base_url = base_url.rstrip("/")

    async def fetch_by_id(self, product_id: str) -> NormalizedProduct:
        raw = await self._get("lookup", {"upc": product_id}, product_id)
        if not raw.items:
            raise ProductNotFoundError(product_id, self.source)
        return self._normalize(raw.items[0], barcode=product_id)

    async def search(self, query: str, limit: int = 10) -> list[NormalizedProduct]:
        try:
            raw = await self._get("search", {"s": query}, query)
        except ProductNotFoundError:
            return []
        return [self._normalize(item) for item in raw.items[:limit]]

    async def _get(self, endpoint: str, params: dict[str, str], ident: str) -> _UpcResponse:
        url = f"{self._base_url}/{endpoint}"
        try:
            response = await self._client.get(url, params=params, timeout=10.0)
            if response.status_code in _NOT_FOUND_STATUS:
                raise ProductNotFoundError(ident, self.source)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ExternalApiError(self.source, str(e)) from e
        except httpx.RequestError as e:
            raise ExternalApiError(self.source, f"Connection error: {e}") from e

        return _UpcResponse.model_validate(response.json())

    def _normalize(self, item: _UpcItem, barcode: str | None = None) -> NormalizedProduct:
        code = barcode or item.ean or item.upc or ""
        return NormalizedProduct(
            id=code,
            source=self.source,
            name=item.title or item.brand,
            brand=item.brand or None,
            barcode=code or None,
            image_url=item.images[0] if item.images else None,
        )
