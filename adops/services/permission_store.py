from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from adops.core.access_levels import DEFAULT_LATTICE, AccessLevel, AccessLevelLattice, PermissionType
from adops.core.exceptions import InvalidPermission
from adops.models.user_permission import UserPermission


@dataclass(frozen=True, slots=True)
class PermissionGrant:
    permission_type: str
    access_level: str


def to_grants(rows: Iterable[UserPermission]) -> list[PermissionGrant]:
    return [PermissionGrant(row.permission_type, row.access_level) for row in rows]


def validate_grant(
    permission_type: PermissionType | str,
    access_level: AccessLevel | str,
    lattice: AccessLevelLattice = DEFAULT_LATTICE,
) -> PermissionGrant:
    type_value = getattr(permission_type, "value", permission_type)
    level_value = getattr(access_level, "value", access_level)
    if not lattice.is_valid(type_value, level_value):
        raise InvalidPermission(
            f"Invalid access level '{level_value}' for permission type '{type_value}'",
            details={"permission_type": type_value, "access_level": level_value},
        )
    return PermissionGrant(type_value, level_value)


async def list_permissions(db: AsyncSession, user_id: int, account_id: int) -> list[PermissionGrant]:
    stmt = (
        select(UserPermission)
        .where(UserPermission.user_id == user_id, UserPermission.account_id == account_id)
        .order_by(UserPermission.permission_type.asc())
    )
    return to_grants((await db.execute(stmt)).scalars().all())


async def get_access_level(
    db: AsyncSession, user_id: int, account_id: int, permission_type: PermissionType | str
) -> str | None:
    type_value = getattr(permission_type, "value", permission_type)
    stmt = select(UserPermission.access_level).where(
        UserPermission.user_id == user_id,
        UserPermission.account_id == account_id,
        UserPermission.permission_type == type_value,
    )
    return (await db.execute(stmt)).scalar_one_or_none()


async def upsert_permission(
    db: AsyncSession,
    user_id: int,
    account_id: int,
    permission_type: PermissionType | str,
    access_level: AccessLevel | str,
) -> UserPermission:
    """Set the single row for (user, account, type); caller commits."""
    grant = validate_grant(permission_type, access_level)
    stmt = select(UserPermission).where(
        UserPermission.user_id == user_id,
        UserPermission.account_id == account_id,
        UserPermission.permission_type == grant.permission_type,
    )
    row = (await db.execute(stmt)).scalar_one_or_none()
    if row is None:
        row = UserPermission(
            user_id=user_id,
            account_id=account_id,
            permission_type=grant.permission_type,
            access_level=grant.access_level,
        )
        db.add(row)
    else:
        row.access_level = grant.access_level
    await db.flush()
    return row
