from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from adops.api import deps
from adops.core.access_levels import AccessLevel, PermissionType
from adops.core.exceptions import Conflict, NotFound, UnauthorizedAction, ValidationFailed
from adops.core.logging import get_audit_logger
from adops.models.account import Account
from adops.models.brand import Brand
from adops.models.user import User
from adops.models.user_account import UserAccount, UserType
from adops.models.user_account_brand import UserAccountBrand
from adops.models.user_permission import UserPermission
from adops.schemas.permissions import PermissionEntry
from adops.schemas.users import UserCreate
from adops.services import authz, jobs, permission_store
from adops.services.permission_store import PermissionGrant

audit_logger = get_audit_logger()


@dataclass(slots=True)
class Member:
    user: User
    membership: UserAccount
    brands: list[int] = field(default_factory=list)
    permissions: list[PermissionGrant] = field(default_factory=list)


def validate_brand_configuration(allow_all_brands: bool, brands: list[int]) -> None:
    if allow_all_brands and brands:
        raise ValidationFailed("brands should be empty when allow_all_brands is true")
    if not allow_all_brands and not brands:
        raise ValidationFailed("brands is required when allow_all_brands is false")


async def _ensure_brands_exist(db: AsyncSession, account_id: int, brand_ids: Iterable[int]) -> None:
    wanted = set(brand_ids)
    if not wanted:
        return
    stmt = select(Brand.id).where(Brand.account_id == account_id, Brand.id.in_(wanted))
    found = set((await db.execute(stmt)).scalars().all())
    missing = sorted(wanted - found)
    if missing:
        raise NotFound(f"Brand with ID {missing[0]} not found", details={"brand_ids": missing})


async def check_assignable(
    db: AsyncSession, ctx: deps.AccountContext, entries: Iterable[PermissionEntry]
) -> list[PermissionGrant]:
    """Validate each requested grant and make sure the caller ranks at or above it."""
    own = await permission_store.list_permissions(db, ctx.user_id, ctx.account_id)
    grants = []
    for entry in entries:
        grant = permission_store.validate_grant(entry.permission_type, entry.access_level)
        assigner_level = authz.default_gate.level_for(own, grant.permission_type)
        if not authz.default_gate.can_assign(assigner_level, grant.permission_type, grant.access_level):
            raise UnauthorizedAction(
                f"Cannot assign {grant.access_level} for {grant.permission_type} above your own access level",
                details={
                    "permission_type": grant.permission_type,
                    "access_level": grant.access_level,
                    "assigner_level": assigner_level,
                },
            )
        grants.append(grant)
    return grants


async def _find_or_create_user(db: AsyncSession, account_id: int, payload: UserCreate) -> User:
    email = payload.email.lower()
    user = (await db.execute(select(User).where(User.email == email))).scalar_one_or_none()
    if user is not None:
        return user
    user = User(
        email=email,
        name=payload.name,
        first_name=payload.first_name,
        last_name=payload.last_name,
        current_account_id=account_id,
        is_active=True,
    )
    db.add(user)
    await db.flush()
    return user


async def create_user(db: AsyncSession, ctx: deps.AccountContext, payload: UserCreate) -> Member:
    brands = sorted(set(payload.brands))
    validate_brand_configuration(payload.allow_all_brands, brands)
    grants = await check_assignable(db, ctx, payload.permissions)
    await _ensure_brands_exist(db, ctx.account_id, brands)

    user = await _find_or_create_user(db, ctx.account_id, payload)
    existing = await db.execute(
        select(UserAccount.id).where(UserAccount.user_id == user.id, UserAccount.account_id == ctx.account_id)
    )
    if existing.scalar_one_or_none() is not None:
        raise Conflict("User with this email already exists in the account", details={"email": user.email})

    membership = UserAccount(
        user_id=user.id,
        account_id=ctx.account_id,
        role_type=payload.role_type.value,
        user_type=payload.user_type.value,
        allow_all_brands=payload.allow_all_brands,
        active=True,
        timezone_name=payload.timezone_name,
    )
    db.add(membership)
    await db.flush()
    for brand_id in brands:
        db.add(UserAccountBrand(user_brand_access_id=membership.id, brand_id=brand_id))
    for grant in grants:
        await permission_store.upsert_permission(
            db, user.id, ctx.account_id, grant.permission_type, grant.access_level
        )
    await db.commit()

    audit_logger.info(
        "user.created",
        extra={"target_user_id": user.id, "membership_id": membership.id, "role_type": membership.role_type},
    )
    account = await db.get(Account, ctx.account_id)
    await jobs.schedule_welcome_email(
        {"id": user.id, "email": user.email, "name": user.display_name},
        {"id": ctx.account_id, "name": account.name if account else ""},
    )
    return Member(user=user, membership=membership, brands=brands, permissions=grants)


async def _target_membership(db: AsyncSession, account_id: int, user_id: int) -> UserAccount:
    stmt = select(UserAccount).where(UserAccount.user_id == user_id, UserAccount.account_id == account_id)
    membership = (await db.execute(stmt)).scalar_one_or_none()
    if membership is None:
        raise NotFound("User not found in this account", details={"user_id": user_id})
    return membership


async def set_user_permissions(
    db: AsyncSession, ctx: deps.AccountContext, user_id: int, entries: Iterable[PermissionEntry]
) -> list[PermissionGrant]:
    await _target_membership(db, ctx.account_id, user_id)
    grants = await check_assignable(db, ctx, entries)
    for grant in grants:
        await permission_store.upsert_permission(db, user_id, ctx.account_id, grant.permission_type, grant.access_level)
    await db.commit()
    audit_logger.info(
        "permissions.updated",
        extra={
            "target_user_id": user_id,
            "grants": {grant.permission_type: grant.access_level for grant in grants},
        },
    )
    return await permission_store.list_permissions(db, user_id, ctx.account_id)


async def get_user_permissions(db: AsyncSession, ctx: deps.AccountContext, user_id: int) -> list[PermissionGrant]:
    if user_id != ctx.user_id:
        await authz.ensure_authorized(
            db, ctx.user_id, ctx.account_id, PermissionType.USER_MANAGEMENT, AccessLevel.VIEW_ACCESS
        )
        await _target_membership(db, ctx.account_id, user_id)
    return await permission_store.list_permissions(db, user_id, ctx.account_id)


async def list_users(db: AsyncSession, ctx: deps.AccountContext) -> list[Member]:
    """Advertiser viewers only see advertiser members."""
    stmt = (
        select(User, UserAccount)
        .join(UserAccount, UserAccount.user_id == User.id)
        .where(UserAccount.account_id == ctx.account_id)
        .order_by(User.email.asc())
    )
    if ctx.is_advertiser:
        stmt = stmt.where(UserAccount.user_type == UserType.ADVERTISER.value)
    rows = (await db.execute(stmt)).all()
    members = [Member(user=user, membership=membership) for user, membership in rows]
    if not members:
        return members

    by_membership = {member.membership.id: member for member in members}
    brand_rows = await db.execute(
        select(UserAccountBrand.user_brand_access_id, UserAccountBrand.brand_id)
        .where(UserAccountBrand.user_brand_access_id.in_(list(by_membership)))
        .order_by(UserAccountBrand.brand_id.asc())
    )
    for membership_id, brand_id in brand_rows.all():
        by_membership[membership_id].brands.append(brand_id)

    by_user = {member.user.id: member for member in members}
    permission_rows = await db.execute(
        select(UserPermission)
        .where(UserPermission.account_id == ctx.account_id, UserPermission.user_id.in_(list(by_user)))
        .order_by(UserPermission.permission_type.asc())
    )
    for row in permission_rows.scalars().all():
        by_user[row.user_id].permissions.append(PermissionGrant(row.permission_type, row.access_level))
    return members
