import pytest

from adops.core.access_levels import AccessLevel, PermissionType
from adops.core.exceptions import InvalidPermission
from adops.models.user_permission import UserPermission
from adops.services import permission_store
from adops.services.permission_store import PermissionGrant

from conftest import FakeAsyncSession, FakeResult


def test_validate_grant_accepts_enums_and_strings() -> None:
    assert permission_store.validate_grant(PermissionType.WALLET, AccessLevel.MANAGE_WALLET) == PermissionGrant(
        "wallet", "manage_wallet"
    )
    assert permission_store.validate_grant("insight_dashboard", "view_access") == PermissionGrant(
        "insight_dashboard", "view_access"
    )


def test_validate_grant_rejects_level_outside_lattice() -> None:
    with pytest.raises(InvalidPermission) as exc_info:
        permission_store.validate_grant("insight_dashboard", "full_access")

    assert exc_info.value.details == {"permission_type": "insight_dashboard", "access_level": "full_access"}


@pytest.mark.asyncio
async def test_list_permissions_maps_rows() -> None:
    db = FakeAsyncSession()
    db.on_execute_return(
        FakeResult(
            items=[
                UserPermission(user_id=1, account_id=1, permission_type="user_management", access_level="view_access"),
                UserPermission(user_id=1, account_id=1, permission_type="wallet", access_level="full_access"),
            ]
        )
    )

    grants = await permission_store.list_permissions(db, 1, 1)

    assert grants == [
        PermissionGrant("user_management", "view_access"),
        PermissionGrant("wallet", "full_access"),
    ]


@pytest.mark.asyncio
async def test_get_access_level() -> None:
    db = FakeAsyncSession()
    db.on_execute_return(FakeResult(scalar="view_access"))

    assert await permission_store.get_access_level(db, 1, 1, PermissionType.USER_MANAGEMENT) == "view_access"


@pytest.mark.asyncio
async def test_get_access_level_missing_grant() -> None:
    assert await permission_store.get_access_level(FakeAsyncSession(), 1, 1, "wallet") is None


@pytest.mark.asyncio
async def test_upsert_inserts_new_row() -> None:
    db = FakeAsyncSession()

    row = await permission_store.upsert_permission(db, 2, 1, "wallet", "view_access")

    assert db.added == [row]
    assert (row.permission_type, row.access_level) == ("wallet", "view_access")
    assert row.id is not None
    assert db.committed is False


@pytest.mark.asyncio
async def test_upsert_updates_existing_row() -> None:
    existing = UserPermission(id=7, user_id=2, account_id=1, permission_type="wallet", access_level="view_access")
    db = FakeAsyncSession()
    db.on_execute_return(FakeResult(scalar=existing))

    row = await permission_store.upsert_permission(db, 2, 1, PermissionType.WALLET, AccessLevel.FULL_ACCESS)

    assert row is existing
    assert existing.access_level == "full_access"
    assert db.added == []


@pytest.mark.asyncio
async def test_upsert_validates_before_touching_the_session() -> None:
    db = FakeAsyncSession()

    with pytest.raises(InvalidPermission):
        await permission_store.upsert_permission(db, 2, 1, "wallet", "campaign_level")

    assert db.executed == []
