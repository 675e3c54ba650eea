# src/processed_or_not/adapters/usda_fooddata.py
from __future__ import annotations

import logging
from decimal import Decimal

import httpx
from pydantic import BaseModel, Field

from processed_or_not.domain.models import DataSource, NormalizedProduct
from processed_or_not.domain.ports import ExternalApiError, ProductNotFoundError, ProductSourcePort

logger = logging.getLogger(__name__)

_BASE_URL = "https://api.nal.usda.gov/fdc/v1"

# USDA Nutrient Number -> (OFF-Schlüssel, Faktor)
_NUTRIENT_MAP: dict[int, tuple[str, Decimal]] = {
    1008: ("energy-kcal_100g", Decimal("1")),
    1003: ("proteins_100g", Decimal("1")),
    1005: ("carbohydrates_100g", Decimal("1")),
    1004: ("fat_100g", Decimal("1")),
    1258: ("saturated-fat_100g", Decimal("1")),
    1079: ("fiber_100g", Decimal("1")),
    2000: ("sugars_100g", Decimal("1")),
    1093: ("sodium_100g", Decimal("0.001")),  # mg -> g
}

# GTIN-Varianten, unter denen USDA denselben Barcode ablegt
_GTIN_WIDTHS = (12, 13, 14)


class _UsdaSearchNutrient(BaseModel):
    nutrient_id: int = Field(alias="nutrientId")
    value: float | None = None

    model_config = {"populate_by_name": True}


class _UsdaFoodItem(BaseModel):
    fdc_id: int = Field(alias="fdcId")
    description: str
    brand_owner: str | None = Field(default=None, alias="brandOwner")
    brand_name: str | None = Field(default=None, alias="brandName")
    gtin_upc: str | None = Field(default=None, alias="gtinUpc")
    ingredients: str | None = None
    food_nutrients: list[_UsdaSearchNutrient] = Field(default_factory=list, alias="foodNutrients")

    model_config = {"populate_by_name": True}


def gtin_matches(candidate: str | None, barcode: str) -> bool:
    if not candidate:
        return False
    if candidate == barcode:
        return True
    return any(candidate == barcode.zfill(width) for width in _GTIN_WIDTHS)


class UsdaFoodDataAdapter(ProductSourcePort):
    """Adapter für die USDA FoodData Central API (Branded Foods)."""

    name = "USDA FoodData Central"
    source = DataSource.USDA_FOODDATA

    def __init__(self, http_client: httpx.AsyncClient, api_key: str) -> None:
        self._client = http_client
        self._api_key = api_key

    async def fetch_by_id(self, product_id: str) -> NormalizedProduct:
        """
        USDA kennt keinen direkten Barcode-Endpoint: Suche über Branded Foods,
        danach exakter GTIN-Abgleich (inkl. Zero-Padding auf 12/13/14 Stellen).
        """
        foods = await self._search_raw(
            {"query": product_id, "dataType": "Branded", "pageSize": 25}
        )
        for food in foods:
            if gtin_matches(food.gtin_upc, product_id):
                return self._normalize(food, barcode=product_id)
        raise ProductNotFoundError(product_id, self.source)

    async def search(self, query: str, limit: int = 10) -> list[NormalizedProduct]:
        foods = await self._search_raw({"query": query, "pageSize": limit})
        return [self._normalize(food) for food in foods]

    async def _search_raw(self, params: dict[str, str | int]) -> list[_UsdaFoodItem]:
        url = f"{_BASE_URL}/foods/search"
        try:
            response = await self._client.get(
                url, params={"api_key": self._api_key, **params}, timeout=15.0
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ExternalApiError(self.source, str(e)) from e
        except httpx.RequestError as e:
            raise ExternalApiError(self.source, f"Connection error: {e}") from e

        result = []
        for food_data in response.json().get("foods", []):
            try:
                result.append(_UsdaFoodItem.model_validate(food_data))
            except Exception:
                logger.warning("Skipping malformed USDA food item", exc_info=True)
        return result

    def _normalize(self, raw: _UsdaFoodItem, barcode: str | None = None) -> NormalizedProduct:
        return NormalizedProduct(
            id=str(raw.fdc_id),
            source=self.source,
            name=raw.description or None,
            brand=raw.brand_owner or raw.brand_name,
            barcode=barcode or raw.gtin_upc,
            ingredients_text=raw.ingredients or None,
            nutriments=self._extract_nutrients(raw.food_nutrients),
        )

    @staticmethod
    def _extract_nutrients(food_nutrients: list[_UsdaSearchNutrient]) -> dict[str, Decimal]:
        values: dict[str, Decimal] = {}
        for fn in food_nutrients:
            mapping = _NUTRIENT_MAP.get(fn.nutrient_id)
            if mapping and fn.value is not None:
                key, factor = mapping
                values[key] = Decimal(str(fn.value)) * factor
        return values
