from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, Security, status

from processed_or_not.api.dependencies import get_lookup_service, get_product_service
from processed_or_not.core.security import get_tenant_id, limiter, lookup_rate_limit
from processed_or_not.domain.models import (
    LookupFailureDetail,
    ManualProductCreate,
    NormalizedProduct,
    ProductLookupResponse,
)
from processed_or_not.domain.ports import ProductAlreadyExistsError
from processed_or_not.services.lookup_service import LookupService
from processed_or_not.services.product_service import ProductService

router = APIRouter(prefix="/products", tags=["Products"])

TenantDep = Annotated[str, Security(get_tenant_id)]
LookupServiceDep = Annotated[LookupService, Depends(get_lookup_service)]
ProductServiceDep = Annotated[ProductService, Depends(get_product_service)]


@router.get("/{product_input}", response_model=ProductLookupResponse)
@limiter.limit(lookup_rate_limit)
async def lookup_product(
    request: Request,
    tenant_id: TenantDep,
    service: LookupServiceDep,
    product_input: str,
) -> ProductLookupResponse:
    """
    Sucht ein Produkt per Barcode oder Freitext über alle konfigurierten Quellen.
    Der Fortschritt ist währenddessen über /progress/{key} abrufbar.
    """
    try:
        outcome = await service.lookup(product_input, tenant_id=tenant_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if outcome.superseded:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Search for '{outcome.key}' was superseded by a newer search.",
        )

    if not outcome.found or outcome.product is None:
        detail = LookupFailureDetail(
            message="Product not found in any database. You can add this product manually.",
            tried_sources=outcome.tried_sources,
            errors=outcome.errors,
        )
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=detail.model_dump(mode="json")
        )

    return ProductLookupResponse(
        product=outcome.product,
        lookup_source=outcome.source_name or "",
        from_store=outcome.from_store,
    )


@router.post("/", response_model=NormalizedProduct, status_code=status.HTTP_201_CREATED)
async def create_manual_product(
    tenant_id: TenantDep,
    service: ProductServiceDep,
    payload: ManualProductCreate,
) -> NormalizedProduct:
    """
    Erstellt ein manuelles Produkt für einen Barcode, den keine Quelle kennt.
    """
    try:
        return await service.create_manual_product(payload)
    except ProductAlreadyExistsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
