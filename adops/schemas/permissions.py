from pydantic import BaseModel

from adops.core.access_levels import AccessLevel, PermissionType


class PermissionEntry(BaseModel):
    permission_type: PermissionType
    access_level: AccessLevel


class PermissionCatalogResponse(BaseModel):
    lattices: dict[str, list[str]]


class UserPermissionsResponse(BaseModel):
    user_id: int
    account_id: int
    permissions: list[PermissionEntry]


class AuthorizeRequest(BaseModel):
    permission_type: PermissionType
    required_level: AccessLevel


class AuthorizeResponse(BaseModel):
    allowed: bool


class RoleDiffDTO(BaseModel):
    permission_type: str
    current_level: str
    operator_default_level: str | None = None
    admin_default_level: str | None = None


class RoleAssignabilityResponse(BaseModel):
    show_operator: bool
    show_admin: bool
    diffs: list[RoleDiffDTO]
