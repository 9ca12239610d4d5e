from datetime import datetime, timezone

import pytest

from adops.services.storage.adapter import LocalFileSystemAdapter, sign_local_url, verify_local_url_signature
from adops.services.storage.key_generator import KeyGenerator


def test_storage_name_keeps_only_the_extension() -> None:
    moment = datetime(2026, 10, 18, tzinfo=timezone.utc)
    name = KeyGenerator.storage_name("Summer Promo (final).MP4", now=moment)

    stamp, rest = name.split("_", 1)
    assert stamp == str(int(moment.timestamp() * 1000))
    assert rest.endswith(".mp4")
    assert len(rest) == 16 + len(".mp4")


def test_storage_name_without_extension() -> None:
    assert KeyGenerator.storage_name("README").endswith(".bin")


def test_file_object_key_layout() -> None:
    assert KeyGenerator.file_object_key(3, None, "n.png") == "accounts/3/files/root/n.png"
    assert KeyGenerator.file_object_key(3, 12, "n.png") == "accounts/3/files/folder_12/n.png"


def test_local_adapter_round_trip(tmp_path) -> None:
    adapter = LocalFileSystemAdapter(str(tmp_path), "http://files.local/", signing_key="k")
    stored = adapter.put_object("accounts/1/a.bin", b"abc")

    assert (stored.provider, stored.size, stored.content_type) == ("local", 3, "application/octet-stream")
    assert adapter.generate_download_url("accounts/1/a.bin").startswith(
        "http://files.local/api/v1/files/local-content?key=accounts%2F1%2Fa.bin"
    )
    assert adapter.object_exists("accounts/1/a.bin")
    adapter.delete_object("accounts/1/a.bin")
    assert not adapter.object_exists("accounts/1/a.bin")


@pytest.mark.parametrize("key", ["../escape.txt", "/etc/passwd", "accounts\\1\\a.bin"])
def test_local_adapter_rejects_unsafe_keys(tmp_path, key) -> None:
    adapter = LocalFileSystemAdapter(str(tmp_path), "http://files.local")
    with pytest.raises(ValueError):
        adapter.put_object(key, b"x")
    assert adapter.object_exists(key) is False


def test_signed_url_verification() -> None:
    key = "accounts/1/a.bin"
    expires = int(datetime.now(timezone.utc).timestamp()) + 60
    signature = sign_local_url("k", key, expires)

    assert verify_local_url_signature("k", key, expires, signature)
    assert not verify_local_url_signature("other", key, expires, signature)
    assert not verify_local_url_signature("k", key, expires - 120, signature)
