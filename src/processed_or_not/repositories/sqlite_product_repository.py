from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from processed_or_not.domain.models import NormalizedProduct
from processed_or_not.repositories.base import AbstractProductRepository
from processed_or_not.repositories.orm import Base, ProductORM


class SQLiteProductRepository(AbstractProductRepository):
    """
    Speicher für gefundene und manuell angelegte Produkte.
    Ein gespeichertes Produkt beantwortet spätere Barcode-Lookups ohne externe Abfrage.
    """

    def __init__(self, database_url: str) -> None:
        self.engine = create_async_engine(database_url)
        self.async_session_maker = async_sessionmaker(self.engine, expire_on_commit=False)

    async def initialize(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def save(self, product: NormalizedProduct) -> NormalizedProduct:
        if not product.barcode:
            raise ValueError("Only products with a barcode can be stored")
        async with self.async_session_maker() as session, session.begin():
            await session.merge(
                ProductORM(
                    barcode=product.barcode,
                    source=product.source.value,
                    updated_at=datetime.now(UTC),
                    data=product.model_dump_json(),
                )
            )
        return product

    async def find_by_barcode(self, barcode: str) -> NormalizedProduct | None:
        async with self.async_session_maker() as session:
            result = await session.execute(select(ProductORM).where(ProductORM.barcode == barcode))
            orm_product = result.scalar_one_or_none()
            if orm_product:
                return NormalizedProduct.model_validate_json(orm_product.data)
            return None
