from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from adops.models.user_account import RoleType, UserType
from adops.schemas.permissions import PermissionEntry


class UserCreate(BaseModel):
    email: EmailStr
    name: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    role_type: RoleType = RoleType.OPERATOR
    user_type: UserType = UserType.PUBLISHER
    allow_all_brands: bool = False
    brands: list[int] = Field(default_factory=list)
    permissions: list[PermissionEntry] = Field(default_factory=list)
    timezone_name: str | None = None


class SetPermissionRequest(BaseModel):
    permissions: list[PermissionEntry] = Field(min_length=1)


class MemberDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: int
    email: str
    name: str | None = None
    membership_id: int
    role_type: str
    user_type: str
    allow_all_brands: bool
    active: bool
    brands: list[int] = Field(default_factory=list)
    permissions: list[PermissionEntry] = Field(default_factory=list)
    created_at: datetime | None = None


class MemberListResponse(BaseModel):
    items: list[MemberDTO]
    total: int
