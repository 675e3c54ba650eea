# src/processed_or_not/adapters/open_food_facts.py
from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx
from pydantic import BaseModel, Field

from processed_or_not.domain.models import DataSource, NormalizedProduct
from processed_or_not.domain.ports import ExternalApiError, ProductNotFoundError, ProductSourcePort

logger = logging.getLogger(__name__)

_BASE_URL = "https://world.openfoodfacts.org"

# ---------------------------------------------------------------------------
# Interne Rohdaten-Schemas (für typisiertes Parsing der OFF-Response)
# ---------------------------------------------------------------------------


class _OffProduct(BaseModel):
    code: str | None = None
    product_name: str | None = None
    brands: str | None = None
    ingredients_text: str | None = None
    image_url: str | None = None
    # OFF-Nährwerte sind inkonsistent typisiert (Zahlen, Strings, Einheiten), daher roh
    nutriments: dict[str, Any] = Field(default_factory=dict)


class _OffResponse(BaseModel):
    status: int  # 1 = found, 0 = not found
    product: _OffProduct | None = None


def _safe_decimal(value: Any) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return None


def extract_per_100g(nutriments: dict[str, Any]) -> dict[str, Decimal]:
    """Behält nur die numerischen 100g-Werte einer OFF-Nährwerttabelle."""
    values: dict[str, Decimal] = {}
    for key, raw in nutriments.items():
        if not key.endswith("_100g"):
            continue
        value = _safe_decimal(raw)
        if value is not None:
            values[key] = value
    return values


class OpenFoodFactsAdapter(ProductSourcePort):
    """
    Adapter für die Open Food Facts API.
    Primäre Quelle: wird in beiden Lookup-Reihenfolgen zuerst gefragt.
    """

    name = "OpenFoodFacts"
    source = DataSource.OPEN_FOOD_FACTS

    def __init__(self, http_client: httpx.AsyncClient) -> None:
        self._client = http_client

    async def fetch_by_id(self, product_id: str) -> NormalizedProduct:
        """product_id entspricht dem EAN/UPC Barcode."""
        url = f"{_BASE_URL}/api/v0/product/{product_id}.json"
        try:
            response = await self._client.get(url, timeout=10.0)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ExternalApiError(self.source, str(e)) from e
        except httpx.RequestError as e:
            raise ExternalApiError(self.source, f"Connection error: {e}") from e

        raw = _OffResponse.model_validate(response.json())

        if raw.status == 0 or raw.product is None:
            raise ProductNotFoundError(product_id, self.source)

        return self._normalize(product_id, raw.product)

    async def search(self, query: str, limit: int = 10) -> list[NormalizedProduct]:
        url = f"{_BASE_URL}/cgi/search.pl"
        params = {
            "search_terms": query,
            "search_simple": 1,
            "action": "process",
            "json": 1,
            "page_size": limit,
            "fields": "code,product_name,brands,ingredients_text,image_url,nutriments",
        }
        try:
            response = await self._client.get(url, params=params, timeout=15.0)
            response.raise_for_status()
        except (httpx.HTTPStatusError, httpx.RequestError) as e:
            raise ExternalApiError(self.source, str(e)) from e

        data = response.json()
        products = []
        for raw_product in data.get("products", []):
            try:
                off_product = _OffProduct.model_validate(raw_product)
                if off_product.code:
                    products.append(self._normalize(off_product.code, off_product))
            except Exception:
                logger.warning("Skipping malformed product in OFF search results", exc_info=True)

        return products

    def _normalize(self, product_id: str, raw: _OffProduct) -> NormalizedProduct:
        return NormalizedProduct(
            id=product_id,
            source=self.source,
            name=raw.product_name or None,
            brand=raw.brands or None,
            barcode=product_id,
            ingredients_text=raw.ingredients_text or None,
            nutriments=extract_per_100g(raw.nutriments),
            image_url=raw.image_url or None,
        )
