from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from adops.core.access_levels import DEFAULT_LATTICE, AccessLevel, AccessLevelLattice, PermissionType
from adops.core.exceptions import UnauthorizedAction
from adops.models.user_account import RoleType
from adops.services import permission_store
from adops.services.permission_store import PermissionGrant

logger = logging.getLogger(__name__)


ROLE_DEFAULT_PERMISSIONS: dict[RoleType, dict[PermissionType, AccessLevel]] = {
    RoleType.OPERATOR: {
        PermissionType.ACCOUNT_SETTINGS: AccessLevel.NO_ACCESS,
        PermissionType.USER_MANAGEMENT: AccessLevel.VIEW_ACCESS,
    },
    RoleType.ADMIN: {
        PermissionType.ACCOUNT_SETTINGS: AccessLevel.FULL_ACCESS,
        PermissionType.USER_MANAGEMENT: AccessLevel.FULL_ACCESS,
    },
}


def _value(item) -> str:
    return getattr(item, "value", item)


@dataclass(frozen=True, slots=True)
class Requirement:
    permission_type: str
    required_level: str


@dataclass(slots=True)
class RequirementResult:
    permission_type: str
    required_level: str
    user_level: str | None
    has_access: bool


@dataclass(slots=True)
class MultiCheckResult:
    all_valid: bool
    results: list[RequirementResult] = field(default_factory=list)


@dataclass(slots=True)
class RoleDiff:
    permission_type: str
    current_level: str
    operator_default_level: str | None
    admin_default_level: str | None


@dataclass(slots=True)
class RoleAssignability:
    show_operator: bool
    show_admin: bool
    diffs: list[RoleDiff] = field(default_factory=list)


class AuthorizationGate:
    """Pure permission decisions over a user's grants; holds no state beyond its lattice."""

    def __init__(self, lattice: AccessLevelLattice = DEFAULT_LATTICE) -> None:
        self.lattice = lattice

    @staticmethod
    def level_for(user_permissions: Iterable[PermissionGrant], permission_type) -> str | None:
        target = _value(permission_type)
        for grant in user_permissions:
            if _value(grant.permission_type) == target:
                return _value(grant.access_level)
        return None

    def authorize(
        self,
        user_permissions: Iterable[PermissionGrant],
        permission_type: PermissionType | str,
        required_level: AccessLevel | str,
    ) -> bool:
        have = self.level_for(user_permissions, permission_type)
        if have is None:
            return False
        return self.lattice.meets_or_exceeds(permission_type, have, required_level)

    def can_assign(
        self,
        assigner_level: AccessLevel | str | None,
        permission_type: PermissionType | str,
        level_being_assigned: AccessLevel | str,
    ) -> bool:
        """An assigner may only grant levels at or below their own rank."""
        try:
            target_rank = self.lattice.rank(permission_type, level_being_assigned)
        except LookupError as exc:
            logger.warning("Permission assignment denied: %s", exc)
            return False
        try:
            assigner_rank = self.lattice.rank(permission_type, assigner_level) if assigner_level else 0
        except LookupError:
            assigner_rank = 0
        return assigner_rank >= target_rank

    def check_multiple(
        self,
        user_permissions: Iterable[PermissionGrant],
        required: Sequence[Requirement],
    ) -> MultiCheckResult:
        grants = list(user_permissions)
        results = [
            RequirementResult(
                permission_type=_value(req.permission_type),
                required_level=_value(req.required_level),
                user_level=self.level_for(grants, req.permission_type),
                has_access=self.authorize(grants, req.permission_type, req.required_level),
            )
            for req in required
        ]
        return MultiCheckResult(all_valid=all(item.has_access for item in results), results=results)

    def role_assignability(
        self,
        user_permissions: Iterable[PermissionGrant],
        role_defaults: Mapping[RoleType, Mapping[PermissionType, AccessLevel]] = ROLE_DEFAULT_PERMISSIONS,
    ) -> RoleAssignability:
        grants = list(user_permissions)
        operator = role_defaults.get(RoleType.OPERATOR, {})
        admin = role_defaults.get(RoleType.ADMIN, {})
        outcome = RoleAssignability(show_operator=True, show_admin=True)
        for permission_type in dict.fromkeys([*operator, *admin]):
            current = self.level_for(grants, permission_type) or AccessLevel.NO_ACCESS.value
            operator_level = operator.get(permission_type)
            admin_level = admin.get(permission_type)
            blocks_operator = operator_level is not None and not self.can_assign(
                current, permission_type, operator_level
            )
            blocks_admin = admin_level is not None and not self.can_assign(current, permission_type, admin_level)
            if blocks_operator:
                outcome.show_operator = False
            if blocks_admin:
                outcome.show_admin = False
            if blocks_operator or blocks_admin:
                outcome.diffs.append(
                    RoleDiff(
                        permission_type=_value(permission_type),
                        current_level=current,
                        operator_default_level=_value(operator_level) if operator_level else None,
                        admin_default_level=_value(admin_level) if admin_level else None,
                    )
                )
        return outcome


default_gate = AuthorizationGate()


async def authorize_action(
    db: AsyncSession,
    user_id: int,
    account_id: int,
    permission_type: PermissionType | str,
    required_level: AccessLevel | str,
) -> bool:
    grants = await permission_store.list_permissions(db, user_id, account_id)
    allowed = default_gate.authorize(grants, permission_type, required_level)
    if not allowed:
        logger.info(
            "Authorization denied",
            extra={
                "permission_type": _value(permission_type),
                "required_level": _value(required_level),
            },
        )
    return allowed


async def ensure_authorized(
    db: AsyncSession,
    user_id: int,
    account_id: int,
    permission_type: PermissionType | str,
    required_level: AccessLevel | str,
    message: str | None = None,
) -> None:
    if not await authorize_action(db, user_id, account_id, permission_type, required_level):
        raise UnauthorizedAction(
            message or f"Missing permission: {_value(permission_type)} >= {_value(required_level)}",
            details={
                "permission_type": _value(permission_type),
                "required_level": _value(required_level),
            },
        )


async def can_assign_roles(db: AsyncSession, user_id: int, account_id: int) -> RoleAssignability:
    grants = await permission_store.list_permissions(db, user_id, account_id)
    return default_gate.role_assignability(grants)
