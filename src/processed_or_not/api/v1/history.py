from typing import Annotated

from fastapi import APIRouter, Depends, Query, Security

from processed_or_not.api.dependencies import get_history_repository
from processed_or_not.core.security import get_tenant_id
from processed_or_not.domain.models import SearchHistoryEntry
from processed_or_not.repositories.base import AbstractSearchHistoryRepository

router = APIRouter(prefix="/history", tags=["History"])

TenantDep = Annotated[str, Security(get_tenant_id)]
HistoryRepoDep = Annotated[AbstractSearchHistoryRepository, Depends(get_history_repository)]


@router.get("/", response_model=list[SearchHistoryEntry])
async def list_search_history(
    tenant_id: TenantDep,
    repository: HistoryRepoDep,
    limit: int = Query(50, ge=1, le=200),
) -> list[SearchHistoryEntry]:
    return await repository.list_for_tenant(tenant_id, limit=limit)
