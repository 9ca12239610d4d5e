from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from adops.api import deps
from adops.core.access_levels import DEFAULT_LATTICE, AccessLevel, PermissionType
from adops.schemas.permissions import (
    AuthorizeRequest,
    AuthorizeResponse,
    PermissionCatalogResponse,
    PermissionEntry,
    RoleAssignabilityResponse,
    RoleDiffDTO,
    UserPermissionsResponse,
)
from adops.schemas.users import SetPermissionRequest
from adops.services import authz, permission_store, users
from adops.services.permission_store import PermissionGrant

router = APIRouter(prefix="/permissions", tags=["permissions"])


def _permissions_response(user_id: int, account_id: int, grants: list[PermissionGrant]) -> UserPermissionsResponse:
    return UserPermissionsResponse(
        user_id=user_id,
        account_id=account_id,
        permissions=[
            PermissionEntry(permission_type=grant.permission_type, access_level=grant.access_level)
            for grant in grants
        ],
    )


@router.get("/catalog", response_model=PermissionCatalogResponse, summary="Access levels per permission type")
async def permission_catalog() -> PermissionCatalogResponse:
    return PermissionCatalogResponse(lattices=DEFAULT_LATTICE.as_catalog())


@router.get("/me", response_model=UserPermissionsResponse, summary="Caller's permissions in this account")
async def my_permissions(
    ctx: deps.AccountContext = Depends(deps.get_account_context),
    db: AsyncSession = Depends(deps.get_db_session),
) -> UserPermissionsResponse:
    grants = await permission_store.list_permissions(db, ctx.user_id, ctx.account_id)
    return _permissions_response(ctx.user_id, ctx.account_id, grants)


@router.get(
    "/users/{user_id}",
    response_model=UserPermissionsResponse,
    summary="A member's permissions in this account",
)
async def user_permissions(
    user_id: int,
    ctx: deps.AccountContext = Depends(deps.get_account_context),
    db: AsyncSession = Depends(deps.get_db_session),
) -> UserPermissionsResponse:
    grants = await users.get_user_permissions(db, ctx, user_id)
    return _permissions_response(user_id, ctx.account_id, grants)


@router.put(
    "/users/{user_id}",
    response_model=UserPermissionsResponse,
    summary="Set a member's permissions",
)
async def set_user_permissions(
    user_id: int,
    payload: SetPermissionRequest,
    ctx: deps.AccountContext = Depends(
        deps.require_access(PermissionType.USER_MANAGEMENT, AccessLevel.FULL_ACCESS)
    ),
    db: AsyncSession = Depends(deps.get_db_session),
) -> UserPermissionsResponse:
    grants = await users.set_user_permissions(db, ctx, user_id, payload.permissions)
    return _permissions_response(user_id, ctx.account_id, grants)


@router.post("/authorize", response_model=AuthorizeResponse, summary="Check one permission for the caller")
async def authorize(
    payload: AuthorizeRequest,
    ctx: deps.AccountContext = Depends(deps.get_account_context),
    db: AsyncSession = Depends(deps.get_db_session),
) -> AuthorizeResponse:
    allowed = await authz.authorize_action(
        db, ctx.user_id, ctx.account_id, payload.permission_type, payload.required_level
    )
    return AuthorizeResponse(allowed=allowed)


@router.get(
    "/role-assignability",
    response_model=RoleAssignabilityResponse,
    summary="Which roles the caller may hand out",
)
async def role_assignability(
    ctx: deps.AccountContext = Depends(deps.get_account_context),
    db: AsyncSession = Depends(deps.get_db_session),
) -> RoleAssignabilityResponse:
    outcome = await authz.can_assign_roles(db, ctx.user_id, ctx.account_id)
    return RoleAssignabilityResponse(
        show_operator=outcome.show_operator,
        show_admin=outcome.show_admin,
        diffs=[
            RoleDiffDTO(
                permission_type=diff.permission_type,
                current_level=diff.current_level,
                operator_default_level=diff.operator_default_level,
                admin_default_level=diff.admin_default_level,
            )
            for diff in outcome.diffs
        ],
    )
