"""Domain errors raised by services and mapped to the JSON envelope at the HTTP edge."""

from __future__ import annotations

from typing import Any, Iterable


class DomainError(Exception):
    status_code: int = 400
    code: str = "bad_request"

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class AclViolation(DomainError):
    """A brand ACL would break the parent-subset rule."""

    status_code = 400
    code = "acl_violation"

    def __init__(
        self,
        message: str,
        *,
        invalid_brand_ids: Iterable[int] = (),
        parent_brand_ids: Iterable[int] = (),
    ) -> None:
        self.invalid_brand_ids = sorted(invalid_brand_ids)
        self.parent_brand_ids = sorted(parent_brand_ids)
        super().__init__(
            message,
            details={
                "invalid_brand_ids": self.invalid_brand_ids,
                "parent_brand_ids": self.parent_brand_ids,
            },
        )


class InvalidPermission(DomainError):
    status_code = 400
    code = "invalid_permission"


class ValidationFailed(DomainError):
    status_code = 400
    code = "bad_request"


class DuplicateName(DomainError):
    status_code = 409
    code = "duplicate_name"

    @classmethod
    def folder(cls, name: str, parent_id: int | None) -> "DuplicateName":
        return cls(
            f'Folder with name "{name}" already exists in this location',
            details={"name": name, "parent_id": parent_id},
        )

    @classmethod
    def file(cls, original_filename: str, folder_id: int | None) -> "DuplicateName":
        return cls(
            f'File with name "{original_filename}" already exists in this folder',
            details={"original_filename": original_filename, "folder_id": folder_id},
        )


class Conflict(DomainError):
    status_code = 409
    code = "conflict"


class NotFound(DomainError):
    status_code = 404
    code = "not_found"


class NodeNotFound(NotFound):
    code = "node_not_found"


class UnauthorizedAction(DomainError):
    status_code = 403
    code = "forbidden"


class UnknownPermissionType(LookupError):
    def __init__(self, permission_type: Any) -> None:
        super().__init__(f"No access-level lattice configured for {permission_type!r}")
        self.permission_type = permission_type


class UnknownAccessLevel(LookupError):
    def __init__(self, permission_type: Any, level: Any) -> None:
        super().__init__(f"Access level {level!r} is not part of the lattice for {permission_type!r}")
        self.permission_type = permission_type
        self.level = level


__all__ = [
    "DomainError",
    "AclViolation",
    "InvalidPermission",
    "ValidationFailed",
    "DuplicateName",
    "Conflict",
    "NotFound",
    "NodeNotFound",
    "UnauthorizedAction",
    "UnknownPermissionType",
    "UnknownAccessLevel",
]
