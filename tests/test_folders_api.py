from adops.api import deps
from adops.main import app
from adops.models.user import User

from conftest import FakeResult, entity_handler, make_user


def test_create_folder_returns_created_node(client, catalog) -> None:
    response = client.post(
        "/api/v1/folders",
        json={"name": "Spring Campaign", "selected_brands": [20, 10, 10], "description": "Q2"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["code"] == "created"
    data = body["data"]
    assert data["name"] == "Spring Campaign"
    assert data["allow_all_brands"] is False
    assert data["brand_access"] == [10, 20]
    assert data["owner_name"] == "Test User"
    assert catalog.brands_of(catalog.folders[data["id"]]) == {10, 20}


def test_create_folder_outside_parent_brands(client, catalog) -> None:
    parent = catalog.add_folder(name="F1", brands={10, 20})

    response = client.post(
        "/api/v1/folders",
        json={"name": "F2", "parent_id": parent.id, "selected_brands": [20, 30]},
    )

    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "acl_violation"
    assert body["data"] is None
    assert body["details"]["invalid_brand_ids"] == [30]
    assert body["details"]["parent_brand_ids"] == [10, 20]


def test_create_folder_duplicate_name(client, catalog) -> None:
    catalog.add_folder(name="Assets", allow_all_brands=True)

    response = client.post("/api/v1/folders", json={"name": "Assets", "allow_all_brands": True})

    assert response.status_code == 409
    assert response.json()["code"] == "duplicate_name"


def test_create_folder_invalid_status(client) -> None:
    response = client.post("/api/v1/folders", json={"name": "X", "status": "hidden"})

    assert response.status_code == 400
    assert response.json()["message"].startswith("Invalid status")


def test_advertiser_cannot_create_all_brands_folder(client, advertiser_ctx) -> None:
    async def _advertiser():
        return advertiser_ctx

    app.dependency_overrides[deps.get_account_context] = _advertiser

    response = client.post("/api/v1/folders", json={"name": "Open", "allow_all_brands": True})

    assert response.status_code == 403
    assert response.json()["code"] == "forbidden"


def test_list_folders_hides_other_brands(client, catalog, resolver, fake_db) -> None:
    catalog.add_folder(name="Visible", brands={10})
    catalog.add_folder(name="Hidden", brands={20})
    catalog.add_folder(name="Everyone", allow_all_brands=True)
    resolver.restrict(1, {10})
    fake_db.on_execute(entity_handler(User, FakeResult(items=[make_user()])))

    response = client.get("/api/v1/folders")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["total"] == 2
    assert [item["name"] for item in data["items"]] == ["Everyone", "Visible"]
    assert all(item["owner_name"] == "Test User" for item in data["items"])


def test_get_folder_not_found(client) -> None:
    response = client.get("/api/v1/folders/999")

    assert response.status_code == 404
    assert response.json()["message"] == "Folder not found"


def test_get_folder_without_brand_access(client, catalog, resolver) -> None:
    folder = catalog.add_folder(name="Secret", brands={20})
    resolver.restrict(1, {10})

    response = client.get(f"/api/v1/folders/{folder.id}")

    assert response.status_code == 403
    assert response.json()["message"] == "Access denied to this folder"


def test_folder_contents_with_type_filter(client, catalog, storage) -> None:
    folder = catalog.add_folder(name="Media", allow_all_brands=True)
    catalog.add_folder(name="Sub", parent_id=folder.id, allow_all_brands=True)
    catalog.add_file(original_filename="clip.mp4", name="1_clip.mp4", folder_id=folder.id, allow_all_brands=True)
    catalog.add_file(original_filename="logo.png", name="1_logo.png", folder_id=folder.id, allow_all_brands=True)

    response = client.get(f"/api/v1/folders/{folder.id}/contents", params={"type": "videos"})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["folder"]["id"] == folder.id
    assert [item["name"] for item in data["folders"]] == ["Sub"]
    assert [item["original_filename"] for item in data["files"]] == ["clip.mp4"]
    assert data["files"][0]["file_url"].startswith("http://testserver/api/v1/files/local-content?")
    assert data["summary"] == {"total_folders": 1, "total_files": 1, "total_items": 2}


def test_folder_contents_rejects_unknown_type(client, catalog) -> None:
    folder = catalog.add_folder(name="Media", allow_all_brands=True)

    response = client.get(f"/api/v1/folders/{folder.id}/contents", params={"type": "audio"})

    assert response.status_code == 400
    assert response.json()["message"].startswith("Invalid type")


def test_set_folder_acl_cascades(client, catalog) -> None:
    top = catalog.add_folder(name="F1", brands={10, 20})
    child = catalog.add_folder(name="F2", parent_id=top.id, brands={10, 20})

    response = client.put(f"/api/v1/folders/{top.id}/acl", json={"selected_brands": [20]})

    assert response.status_code == 200
    assert response.json()["data"]["brand_access"] == [20]
    assert catalog.brands_of(child) == {20}


def test_set_folder_acl_requires_ownership(client, catalog, resolver) -> None:
    folder = catalog.add_folder(name="Theirs", owner_id=9, brands={10})
    child = catalog.add_folder(name="Nested", parent_id=folder.id, owner_id=9, brands={10})
    resolver.restrict(1, {20})

    assert client.get(f"/api/v1/folders/{folder.id}").status_code == 403
    response = client.put(f"/api/v1/folders/{folder.id}/acl", json={"selected_brands": [20]})

    assert response.status_code == 404
    assert response.json()["message"] == "Folder not found or access denied"
    assert catalog.brands_of(folder) == {10}
    assert catalog.brands_of(child) == {10}
    assert catalog.rollbacks == 1


def test_patch_folder_owned_by_someone_else(client, catalog) -> None:
    folder = catalog.add_folder(name="Theirs", owner_id=9, allow_all_brands=True)

    response = client.patch(f"/api/v1/folders/{folder.id}", json={"status": "archived"})

    assert response.status_code == 404
    assert response.json()["message"] == "Folder not found or access denied"
    assert folder.status == "active"


def test_patch_folder_metadata(client, catalog) -> None:
    folder = catalog.add_folder(name="Mine", allow_all_brands=True)

    response = client.patch(
        f"/api/v1/folders/{folder.id}", json={"description": "updated", "selected_brands": [3]}
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["description"] == "updated"
    assert data["allow_all_brands"] is False
    assert data["brand_access"] == [3]


def test_folder_brand_access_lists_brand_names(client, catalog, fake_db) -> None:
    folder = catalog.add_folder(name="Mine", brands={20, 10})
    fake_db.on_execute_return(FakeResult(rows=[(10, "Acme"), (20, "Globex")]))

    response = client.get(f"/api/v1/folders/{folder.id}/brand-access")

    assert response.status_code == 200
    assert response.json()["data"] == {
        "id": folder.id,
        "allow_all_brands": False,
        "brands": [{"id": 10, "name": "Acme"}, {"id": 20, "name": "Globex"}],
    }


def test_my_brand_access_unrestricted(client) -> None:
    response = client.get("/api/v1/folders/brand-access/me")

    assert response.status_code == 200
    assert response.json()["data"] == {
        "accessible_brand_ids": [],
        "has_access_to_all_brands": True,
        "total_accessible_brands": None,
    }
