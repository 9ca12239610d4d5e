from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from adops.api import deps
from adops.core.exceptions import Conflict, NotFound, UnauthorizedAction
from adops.core.logging import get_audit_logger
from adops.models.brand import Brand
from adops.models.parent_company import ParentCompany
from adops.models.user_account import UserType
from adops.models.user_account_brand import UserAccountBrand
from adops.schemas.brands import BrandCreate

audit_logger = get_audit_logger()


def ensure_publisher(ctx: deps.AccountContext) -> None:
    if ctx.membership.user_type != UserType.PUBLISHER.value:
        raise UnauthorizedAction("Advertiser cannot perform this action")


async def create_brand(db: AsyncSession, ctx: deps.AccountContext, payload: BrandCreate) -> Brand:
    ensure_publisher(ctx)
    existing = await db.execute(
        select(Brand.id).where(Brand.account_id == ctx.account_id, Brand.name == payload.name)
    )
    if existing.scalar_one_or_none() is not None:
        raise Conflict("Brand name already exists", details={"name": payload.name})
    if payload.parent_company_id is not None:
        parent = await db.execute(
            select(ParentCompany.id).where(
                ParentCompany.id == payload.parent_company_id,
                ParentCompany.account_id == ctx.account_id,
            )
        )
        if parent.scalar_one_or_none() is None:
            raise NotFound("Parent company not found", details={"parent_company_id": payload.parent_company_id})

    brand = Brand(
        account_id=ctx.account_id,
        parent_company_id=payload.parent_company_id,
        name=payload.name,
        type=payload.type,
        asset_url=payload.asset_url,
        status=payload.status,
        publisher_share_perc=payload.publisher_share_perc,
        allow_all_products=payload.allow_all_products,
        custom_id=payload.custom_id,
        metadata_json=payload.metadata,
    )
    db.add(brand)
    await db.commit()
    await db.refresh(brand)
    audit_logger.info("brand.created", extra={"brand_id": brand.id, "brand_name": brand.name})
    return brand


def _visible_brands(ctx: deps.AccountContext, search: str | None) -> Select:
    stmt = select(Brand).where(Brand.account_id == ctx.account_id)
    if not ctx.membership.allow_all_brands:
        stmt = stmt.join(UserAccountBrand, UserAccountBrand.brand_id == Brand.id).where(
            UserAccountBrand.user_brand_access_id == ctx.membership.id
        )
    if search:
        stmt = stmt.where(Brand.name.ilike(f"%{search}%"))
    return stmt


async def list_brands(
    db: AsyncSession,
    ctx: deps.AccountContext,
    *,
    page: int = 1,
    limit: int = 20,
    search: str | None = None,
) -> tuple[list[Brand], int]:
    """Members flagged ``allow_all_brands`` see every brand; others only their grants."""
    stmt = _visible_brands(ctx, search)
    total = (await db.execute(select(func.count()).select_from(stmt.subquery()))).scalar_one()
    rows = (
        await db.execute(stmt.order_by(Brand.name.asc(), Brand.id.asc()).offset((page - 1) * limit).limit(limit))
    ).scalars().all()
    return list(rows), total


async def get_brand(db: AsyncSession, ctx: deps.AccountContext, brand_id: int) -> Brand:
    if not ctx.membership.allow_all_brands:
        granted = await db.execute(
            select(UserAccountBrand.id).where(
                UserAccountBrand.user_brand_access_id == ctx.membership.id,
                UserAccountBrand.brand_id == brand_id,
            )
        )
        if granted.scalar_one_or_none() is None:
            raise UnauthorizedAction("Access denied to this brand", details={"id": brand_id})
    brand = (
        await db.execute(select(Brand).where(Brand.id == brand_id, Brand.account_id == ctx.account_id))
    ).scalar_one_or_none()
    if brand is None:
        raise NotFound("Brand not found", details={"id": brand_id})
    return brand
