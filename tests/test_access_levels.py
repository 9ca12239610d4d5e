import pytest

from adops.core.access_levels import (
    DEFAULT_LATTICE,
    DEFAULT_LEVELS,
    AccessLevel,
    AccessLevelLattice,
    PermissionType,
)
from adops.core.exceptions import UnknownAccessLevel, UnknownPermissionType


def test_every_permission_type_has_a_lattice() -> None:
    assert set(DEFAULT_LATTICE.permission_types()) == set(PermissionType)
    for permission_type in PermissionType:
        assert DEFAULT_LATTICE.allowed_levels(permission_type)[0] is AccessLevel.NO_ACCESS


def test_report_generation_order() -> None:
    assert DEFAULT_LATTICE.allowed_levels(PermissionType.REPORT_GENERATION) == (
        AccessLevel.NO_ACCESS,
        AccessLevel.CAMPAIGN_LEVEL,
        AccessLevel.FULL_ACCESS,
        AccessLevel.COMPREHENSIVE_ACCESS,
    )


def test_rank_accepts_raw_strings() -> None:
    assert DEFAULT_LATTICE.rank("wallet", "manage_wallet") == 2
    assert DEFAULT_LATTICE.rank(PermissionType.WALLET, AccessLevel.FULL_ACCESS) == 3


def test_rank_unknown_inputs_raise() -> None:
    with pytest.raises(UnknownPermissionType):
        DEFAULT_LATTICE.rank("not_a_type", "view_access")
    with pytest.raises(UnknownAccessLevel):
        DEFAULT_LATTICE.rank(PermissionType.INSIGHT_DASHBOARD, AccessLevel.FULL_ACCESS)


@pytest.mark.parametrize(
    "permission_type,have,required,expected",
    [
        (PermissionType.WALLET, AccessLevel.MANAGE_WALLET, AccessLevel.VIEW_ACCESS, True),
        (PermissionType.WALLET, AccessLevel.VIEW_ACCESS, AccessLevel.MANAGE_WALLET, False),
        (PermissionType.USER_MANAGEMENT, AccessLevel.FULL_ACCESS, AccessLevel.FULL_ACCESS, True),
        (PermissionType.APPROVAL_REQUESTS, AccessLevel.CREATIVE_REQUESTS, AccessLevel.ALL_REQUESTS, False),
        (PermissionType.REPORT_GENERATION, AccessLevel.COMPREHENSIVE_ACCESS, AccessLevel.CAMPAIGN_LEVEL, True),
    ],
)
def test_meets_or_exceeds(permission_type, have, required, expected) -> None:
    assert DEFAULT_LATTICE.meets_or_exceeds(permission_type, have, required) is expected


def test_meets_or_exceeds_denies_unknown_inputs() -> None:
    assert DEFAULT_LATTICE.meets_or_exceeds("not_a_type", "full_access", "view_access") is False
    assert DEFAULT_LATTICE.meets_or_exceeds(PermissionType.WALLET, None, AccessLevel.NO_ACCESS) is False
    # campaign_level is not a wallet level
    assert DEFAULT_LATTICE.meets_or_exceeds(PermissionType.WALLET, "campaign_level", "no_access") is False
    assert DEFAULT_LATTICE.meets_or_exceeds(PermissionType.WALLET, "full_access", "campaign_level") is False


def test_is_valid() -> None:
    assert DEFAULT_LATTICE.is_valid("public_api_access", "full_access")
    assert not DEFAULT_LATTICE.is_valid("public_api_access", "view_access")
    assert not DEFAULT_LATTICE.is_valid("unknown", "view_access")


def test_lattice_is_isolated_from_its_source_mapping() -> None:
    levels = {"wallet": ["no_access", "view_access"]}
    lattice = AccessLevelLattice(levels)
    levels["wallet"].append("full_access")
    assert lattice.allowed_levels("wallet") == (AccessLevel.NO_ACCESS, AccessLevel.VIEW_ACCESS)
    assert not lattice.is_valid("wallet", "full_access")


def test_duplicate_levels_rejected() -> None:
    with pytest.raises(ValueError):
        AccessLevelLattice({PermissionType.WALLET: [AccessLevel.NO_ACCESS, AccessLevel.NO_ACCESS]})


def test_catalog_lists_levels_in_order() -> None:
    catalog = DEFAULT_LATTICE.as_catalog()
    assert len(catalog) == len(DEFAULT_LEVELS)
    assert catalog["approval_requests"] == ["no_access", "creative_requests", "all_requests"]
