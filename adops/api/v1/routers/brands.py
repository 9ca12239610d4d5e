from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from adops.api import deps
from adops.schemas.brands import BrandCreate, BrandDTO, BrandListResponse
from adops.services import brands

router = APIRouter(prefix="/brands", tags=["brands"])


@router.post("", response_model=BrandDTO, status_code=status.HTTP_201_CREATED, summary="Create a brand")
async def create_brand(
    payload: BrandCreate,
    ctx: deps.AccountContext = Depends(deps.get_account_context),
    db: AsyncSession = Depends(deps.get_db_session),
) -> BrandDTO:
    brand = await brands.create_brand(db, ctx, payload)
    return BrandDTO.model_validate(brand)


@router.get("", response_model=BrandListResponse, summary="List brands visible to the caller")
async def list_brands(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=200),
    search: str | None = Query(default=None),
    ctx: deps.AccountContext = Depends(deps.get_account_context),
    db: AsyncSession = Depends(deps.get_db_session),
) -> BrandListResponse:
    rows, total = await brands.list_brands(db, ctx, page=page, limit=limit, search=search)
    return BrandListResponse(
        items=[BrandDTO.model_validate(row) for row in rows],
        total=total,
        page=page,
        limit=limit,
    )


@router.get("/{brand_id}", response_model=BrandDTO, summary="Get a brand")
async def get_brand(
    brand_id: int,
    ctx: deps.AccountContext = Depends(deps.get_account_context),
    db: AsyncSession = Depends(deps.get_db_session),
) -> BrandDTO:
    brand = await brands.get_brand(db, ctx, brand_id)
    return BrandDTO.model_validate(brand)
