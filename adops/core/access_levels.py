"""Permission types and their ordered access levels.

Each permission type owns a totally ordered sequence of access levels, weakest
first. ``AccessLevelLattice`` answers ordering questions over an injected
mapping and never mutates it, so one instance can be shared freely.
"""

from __future__ import annotations

import logging
from enum import Enum
from types import MappingProxyType
from typing import Iterable, Mapping, Sequence

from adops.core.exceptions import UnknownAccessLevel, UnknownPermissionType

logger = logging.getLogger(__name__)


class PermissionType(str, Enum):
    AD_INVENTORY_PLACEMENTS = "ad_inventory_placements"
    AUDIENCE_KEYS_VALUES = "audience_keys_values"
    ALL_PUBLISHER_CAMPAIGNS = "all_publisher_campaigns"
    ALL_ADVERTISER_CAMPAIGNS = "all_advertiser_campaigns"
    CREATIVE_TEMPLATE = "creative_template"
    REPORT_GENERATION = "report_generation"
    ADVERTISER_MANAGEMENT = "advertiser_management"
    ACCOUNT_SETUP = "account_setup"
    ACCOUNT_SETTINGS = "account_settings"
    USER_MANAGEMENT = "user_management"
    APPROVAL_REQUESTS = "approval_requests"
    WALLET = "wallet"
    INSIGHT_DASHBOARD = "insight_dashboard"
    PUBLIC_API_ACCESS = "public_api_access"
    YIELD_MANAGEMENT = "yield_management"
    OFFSITE_INTEGRATIONS = "offsite_integrations"
    OFFSITE_CAMPAIGNS = "offsite_campaigns"


class AccessLevel(str, Enum):
    NO_ACCESS = "no_access"
    VIEW_ACCESS = "view_access"
    FULL_ACCESS = "full_access"
    CAMPAIGN_LEVEL = "campaign_level"
    COMPREHENSIVE_ACCESS = "comprehensive_access"
    CREATIVE_REQUESTS = "creative_requests"
    ALL_REQUESTS = "all_requests"
    MANAGE_WALLET = "manage_wallet"


_STANDARD = (AccessLevel.NO_ACCESS, AccessLevel.VIEW_ACCESS, AccessLevel.FULL_ACCESS)

DEFAULT_LEVELS: Mapping[PermissionType, Sequence[AccessLevel]] = {
    PermissionType.AD_INVENTORY_PLACEMENTS: _STANDARD,
    PermissionType.AUDIENCE_KEYS_VALUES: _STANDARD,
    PermissionType.ALL_PUBLISHER_CAMPAIGNS: _STANDARD,
    PermissionType.ALL_ADVERTISER_CAMPAIGNS: _STANDARD,
    PermissionType.CREATIVE_TEMPLATE: _STANDARD,
    PermissionType.REPORT_GENERATION: (
        AccessLevel.NO_ACCESS,
        AccessLevel.CAMPAIGN_LEVEL,
        AccessLevel.FULL_ACCESS,
        AccessLevel.COMPREHENSIVE_ACCESS,
    ),
    PermissionType.ADVERTISER_MANAGEMENT: _STANDARD,
    PermissionType.ACCOUNT_SETUP: _STANDARD,
    PermissionType.ACCOUNT_SETTINGS: _STANDARD,
    PermissionType.USER_MANAGEMENT: _STANDARD,
    PermissionType.APPROVAL_REQUESTS: (
        AccessLevel.NO_ACCESS,
        AccessLevel.CREATIVE_REQUESTS,
        AccessLevel.ALL_REQUESTS,
    ),
    PermissionType.WALLET: (
        AccessLevel.NO_ACCESS,
        AccessLevel.VIEW_ACCESS,
        AccessLevel.MANAGE_WALLET,
        AccessLevel.FULL_ACCESS,
    ),
    PermissionType.INSIGHT_DASHBOARD: (AccessLevel.NO_ACCESS, AccessLevel.VIEW_ACCESS),
    PermissionType.PUBLIC_API_ACCESS: (AccessLevel.NO_ACCESS, AccessLevel.FULL_ACCESS),
    PermissionType.YIELD_MANAGEMENT: _STANDARD,
    PermissionType.OFFSITE_INTEGRATIONS: _STANDARD,
    PermissionType.OFFSITE_CAMPAIGNS: _STANDARD,
}


def _coerce(enum_cls, value):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return None


class AccessLevelLattice:
    def __init__(self, levels: Mapping[PermissionType | str, Iterable[AccessLevel | str]]) -> None:
        table: dict[PermissionType, tuple[AccessLevel, ...]] = {}
        for raw_type, raw_levels in levels.items():
            permission_type = PermissionType(raw_type)
            ordered = tuple(AccessLevel(level) for level in raw_levels)
            if len(set(ordered)) != len(ordered):
                raise ValueError(f"Duplicate access level in lattice for {permission_type.value}")
            table[permission_type] = ordered
        self._levels = MappingProxyType(table)

    def permission_types(self) -> tuple[PermissionType, ...]:
        return tuple(self._levels)

    def allowed_levels(self, permission_type: PermissionType | str) -> tuple[AccessLevel, ...]:
        key = _coerce(PermissionType, permission_type)
        if key is None or key not in self._levels:
            raise UnknownPermissionType(permission_type)
        return self._levels[key]

    def rank(self, permission_type: PermissionType | str, level: AccessLevel | str) -> int:
        levels = self.allowed_levels(permission_type)
        key = _coerce(AccessLevel, level)
        if key is None or key not in levels:
            raise UnknownAccessLevel(permission_type, level)
        return levels.index(key)

    def is_valid(self, permission_type: PermissionType | str, level: AccessLevel | str) -> bool:
        try:
            self.rank(permission_type, level)
        except LookupError:
            return False
        return True

    def meets_or_exceeds(
        self,
        permission_type: PermissionType | str,
        have: AccessLevel | str | None,
        required: AccessLevel | str,
    ) -> bool:
        """True iff ``have`` ranks at or above ``required``; any unknown input denies."""
        try:
            required_rank = self.rank(permission_type, required)
        except LookupError as exc:
            logger.warning("Access check denied by lattice configuration: %s", exc)
            return False
        if have is None:
            return False
        try:
            have_rank = self.rank(permission_type, have)
        except UnknownAccessLevel:
            return False
        return have_rank >= required_rank

    def as_catalog(self) -> dict[str, list[str]]:
        return {
            permission_type.value: [level.value for level in levels]
            for permission_type, levels in self._levels.items()
        }


DEFAULT_LATTICE = AccessLevelLattice(DEFAULT_LEVELS)

__all__ = [
    "PermissionType",
    "AccessLevel",
    "AccessLevelLattice",
    "DEFAULT_LEVELS",
    "DEFAULT_LATTICE",
]
