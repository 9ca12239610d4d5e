"""Which brands a member may see inside an account.

An empty explicit grant list resolves to unrestricted access even when the
membership's ``allow_all_brands`` flag is false, and a failed lookup also
resolves to unrestricted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from adops.models.user_account import UserAccount
from adops.models.user_account_brand import UserAccountBrand

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BrandScope:
    unrestricted: bool
    brand_ids: frozenset[int] = frozenset()

    @classmethod
    def restricted_to(cls, brand_ids: Iterable[int]) -> "BrandScope":
        return cls(unrestricted=False, brand_ids=frozenset(brand_ids))

    def allows(self, brand_id: int) -> bool:
        return self.unrestricted or brand_id in self.brand_ids

    def allows_any(self, brand_ids: Iterable[int]) -> bool:
        if self.unrestricted:
            return True
        return not self.brand_ids.isdisjoint(brand_ids)


UNRESTRICTED = BrandScope(unrestricted=True)


async def _granted_brand_ids(db: AsyncSession, user_id: int, account_id: int) -> list[int]:
    stmt = (
        select(UserAccountBrand.brand_id)
        .join(UserAccount, UserAccount.id == UserAccountBrand.user_brand_access_id)
        .where(UserAccount.user_id == user_id, UserAccount.account_id == account_id)
    )
    return list((await db.execute(stmt)).scalars().all())


async def accessible_brands(db: AsyncSession, user_id: int, account_id: int) -> BrandScope:
    try:
        brand_ids = await _granted_brand_ids(db, user_id, account_id)
    except SQLAlchemyError:
        logger.exception(
            "Brand grant lookup failed; treating member as unrestricted",
            extra={"lookup_user_id": user_id, "lookup_account_id": account_id},
        )
        return UNRESTRICTED
    if not brand_ids:
        return UNRESTRICTED
    return BrandScope.restricted_to(brand_ids)


async def has_brand_access(db: AsyncSession, user_id: int, account_id: int, brand_id: int) -> bool:
    return (await accessible_brands(db, user_id, account_id)).allows(brand_id)


@dataclass(slots=True)
class BrandAccessSummary:
    accessible_brand_ids: list[int]
    has_access_to_all_brands: bool
    total_accessible_brands: int | None


async def brand_access_summary(db: AsyncSession, user_id: int, account_id: int) -> BrandAccessSummary:
    scope = await accessible_brands(db, user_id, account_id)
    if scope.unrestricted:
        return BrandAccessSummary(accessible_brand_ids=[], has_access_to_all_brands=True, total_accessible_brands=None)
    ids = sorted(scope.brand_ids)
    return BrandAccessSummary(accessible_brand_ids=ids, has_access_to_all_brands=False, total_accessible_brands=len(ids))


class BrandMembershipResolver:
    """Session-bound resolver that memoises scopes for the lifetime of one request."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self._cache: dict[tuple[int, int], BrandScope] = {}

    async def accessible_brands(self, user_id: int, account_id: int) -> BrandScope:
        key = (user_id, account_id)
        if key not in self._cache:
            self._cache[key] = await accessible_brands(self.db, user_id, account_id)
        return self._cache[key]

    async def has_brand_access(self, user_id: int, account_id: int, brand_id: int) -> bool:
        return (await self.accessible_brands(user_id, account_id)).allows(brand_id)

    def invalidate(self) -> None:
        self._cache.clear()
