# src/processed_or_not/services/product_service.py
from __future__ import annotations

from processed_or_not.domain.models import DataSource, ManualProductCreate, NormalizedProduct
from processed_or_not.domain.ports import ProductAlreadyExistsError
from processed_or_not.repositories.base import AbstractProductRepository
from processed_or_not.services.input_detector import normalize_key


class ProductService:
    def __init__(self, repository: AbstractProductRepository) -> None:
        self._repo = repository

    async def create_manual_product(self, payload: ManualProductCreate) -> NormalizedProduct:
        barcode = normalize_key(payload.barcode)
        if await self._repo.find_by_barcode(barcode) is not None:
            raise ProductAlreadyExistsError(barcode)

        product = NormalizedProduct(
            id=barcode,
            source=DataSource.MANUAL,
            name=payload.name,
            brand=payload.brand,
            barcode=barcode,
            ingredients_text=payload.ingredients_text,
            nutriments=payload.nutriments,
            image_url=payload.image_url,
        )
        return await self._repo.save(product)
