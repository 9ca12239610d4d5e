from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from adops.api import deps
from adops.core.access_levels import AccessLevel, PermissionType
from adops.schemas.permissions import PermissionEntry
from adops.schemas.users import MemberDTO, MemberListResponse, UserCreate
from adops.services import users

router = APIRouter(prefix="/users", tags=["users"])


def member_dto(member: users.Member) -> MemberDTO:
    return MemberDTO(
        user_id=member.user.id,
        email=member.user.email,
        name=member.user.display_name,
        membership_id=member.membership.id,
        role_type=member.membership.role_type,
        user_type=member.membership.user_type,
        allow_all_brands=member.membership.allow_all_brands,
        active=member.membership.active,
        brands=member.brands,
        permissions=[
            PermissionEntry(permission_type=grant.permission_type, access_level=grant.access_level)
            for grant in member.permissions
        ],
        created_at=member.membership.created_at,
    )


@router.post("", response_model=MemberDTO, status_code=status.HTTP_201_CREATED, summary="Add a user to the account")
async def create_user(
    payload: UserCreate,
    ctx: deps.AccountContext = Depends(
        deps.require_access(PermissionType.USER_MANAGEMENT, AccessLevel.FULL_ACCESS)
    ),
    db: AsyncSession = Depends(deps.get_db_session),
) -> MemberDTO:
    member = await users.create_user(db, ctx, payload)
    return member_dto(member)


@router.get("", response_model=MemberListResponse, summary="List account members")
async def list_users(
    ctx: deps.AccountContext = Depends(
        deps.require_access(PermissionType.USER_MANAGEMENT, AccessLevel.VIEW_ACCESS)
    ),
    db: AsyncSession = Depends(deps.get_db_session),
) -> MemberListResponse:
    members = await users.list_users(db, ctx)
    items = [member_dto(member) for member in members]
    return MemberListResponse(items=items, total=len(items))
