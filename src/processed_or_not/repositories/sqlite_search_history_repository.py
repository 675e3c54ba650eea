from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from processed_or_not.domain.models import SearchHistoryEntry
from processed_or_not.repositories.base import AbstractSearchHistoryRepository
from processed_or_not.repositories.orm import Base, SearchHistoryORM


class SQLiteSearchHistoryRepository(AbstractSearchHistoryRepository):
    def __init__(self, database_url: str) -> None:
        self.engine = create_async_engine(database_url)
        self.async_session_maker = async_sessionmaker(self.engine, expire_on_commit=False)

    async def initialize(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def add(self, entry: SearchHistoryEntry) -> SearchHistoryEntry:
        async with self.async_session_maker() as session, session.begin():
            session.add(
                SearchHistoryORM(
                    id=entry.id,
                    tenant_id=entry.tenant_id,
                    searched_at=entry.searched_at,
                    data=entry.model_dump_json(),
                )
            )
        return entry

    async def list_for_tenant(self, tenant_id: str, limit: int = 50) -> list[SearchHistoryEntry]:
        async with self.async_session_maker() as session:
            result = await session.execute(
                select(SearchHistoryORM)
                .where(SearchHistoryORM.tenant_id == tenant_id)
                .order_by(SearchHistoryORM.searched_at.desc())
                .limit(limit)
            )
            return [SearchHistoryEntry.model_validate_json(row.data) for row in result.scalars()]
