from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from adops.core.access_levels import AccessLevel, PermissionType
from adops.core.context import set_account_id, set_user_id
from adops.core.exceptions import UnauthorizedAction
from adops.core.security import decode_token
from adops.db.session import get_db
from adops.models.user import User
from adops.models.user_account import UserAccount, UserType
from adops.services import authz
from adops.services.brand_membership import BrandMembershipResolver
from adops.services.catalog import SqlCatalog
from adops.services.hierarchy_acl import HierarchyACLEngine
from adops.services.storage.adapter import StorageAdapter
from adops.services.storage.service import get_storage_adapter


@dataclass(slots=True)
class AccountContext:
    account_id: int
    user: User
    membership: UserAccount

    @property
    def user_id(self) -> int:
        return self.user.id

    @property
    def is_advertiser(self) -> bool:
        return self.membership.user_type == UserType.ADVERTISER.value


bearer_scheme = HTTPBearer(auto_error=False)


async def get_db_session(db: AsyncSession = Depends(get_db)) -> AsyncSession:
    return db


async def get_token_payload(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> dict:
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    try:
        return decode_token(credentials.credentials)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc


async def get_current_user(
    payload: dict = Depends(get_token_payload),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    user = (await db.execute(select(User).where(User.id == user_id))).scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Inactive user")
    set_user_id(user.id)
    return user


async def get_membership(db: AsyncSession, user_id: int, account_id: int) -> UserAccount | None:
    stmt = select(UserAccount).where(UserAccount.user_id == user_id, UserAccount.account_id == account_id)
    return (await db.execute(stmt)).scalar_one_or_none()


def _resolve_account_id(header_value: str | None, payload: dict, user: User) -> int:
    candidate = header_value or payload.get("acc") or user.current_account_id
    if candidate in (None, ""):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Account resolution failed: provide X-Account-ID header",
        )
    try:
        return int(candidate)
    except (TypeError, ValueError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid account id")


async def get_account_context(
    account_header: str | None = Header(default=None, alias="X-Account-ID"),
    payload: dict = Depends(get_token_payload),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> AccountContext:
    account_id = _resolve_account_id(account_header, payload, user)
    membership = await get_membership(db, user.id, account_id)
    if membership is None or not membership.active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is not a member of this account",
        )
    set_account_id(account_id)
    return AccountContext(account_id=account_id, user=user, membership=membership)


async def get_acl_engine(db: AsyncSession = Depends(get_db_session)) -> HierarchyACLEngine:
    return HierarchyACLEngine(SqlCatalog(db), BrandMembershipResolver(db))


def require_access(permission_type: PermissionType, required_level: AccessLevel):
    """Dependency factory: the caller needs ``permission_type`` at ``required_level`` or above."""

    async def dependency(
        ctx: AccountContext = Depends(get_account_context),
        db: AsyncSession = Depends(get_db_session),
    ) -> AccountContext:
        allowed = await authz.authorize_action(
            db, ctx.user_id, ctx.account_id, permission_type, required_level
        )
        if not allowed:
            raise UnauthorizedAction(
                f"Missing permission: {permission_type.value} >= {required_level.value}",
                details={
                    "permission_type": permission_type.value,
                    "required_level": required_level.value,
                },
            )
        return ctx

    return dependency


def get_storage() -> StorageAdapter:
    return get_storage_adapter()
