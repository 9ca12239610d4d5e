from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
import hashlib
import hmac
import time
from urllib.parse import urlencode

LOCAL_CONTENT_PATH = "/api/v1/files/local-content"
DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class StoredObject:
    provider: str
    bucket: str | None
    key: str
    size: int
    content_type: str


def sign_local_url(secret_key: str, object_key: str, expires: int) -> str:
    digest = hmac.new(secret_key.encode("utf-8"), digestmod=hashlib.sha256)
    digest.update(f"{expires}\n{object_key}".encode("utf-8"))
    return digest.hexdigest()


def verify_local_url_signature(secret_key: str, object_key: str, expires: int, signature: str) -> bool:
    """False once ``expires`` has passed or when the signature does not match."""
    if expires < int(time.time()):
        return False
    return hmac.compare_digest(sign_local_url(secret_key, object_key, expires), signature)


class StorageAdapter(ABC):
    provider: str
    bucket: str | None = None

    @abstractmethod
    def put_object(self, object_key: str, data: bytes, content_type: str | None = None) -> StoredObject:
        pass

    @abstractmethod
    def object_exists(self, object_key: str) -> bool:
        pass

    @abstractmethod
    def generate_download_url(self, object_key: str, expires_in: int = 3600) -> str:
        pass

    @abstractmethod
    def delete_object(self, object_key: str) -> None:
        pass

    def _stored(self, object_key: str, data: bytes, content_type: str | None) -> StoredObject:
        return StoredObject(
            provider=self.provider,
            bucket=self.bucket,
            key=object_key,
            size=len(data),
            content_type=content_type or DEFAULT_CONTENT_TYPE,
        )


class LocalFileSystemAdapter(StorageAdapter):
    """Objects live under ``base_path``; downloads go through HMAC-signed links."""

    provider = "local"
    bucket = "local"

    def __init__(self, base_path: str, base_url: str, *, signing_key: str = ""):
        self.root = Path(base_path).resolve()
        self.base_url = base_url.rstrip("/")
        self.signing_key = signing_key
        self.root.mkdir(parents=True, exist_ok=True)

    def resolve_path(self, object_key: str) -> Path:
        segments = object_key.split("/")
        if (
            not object_key
            or "\\" in object_key
            or object_key.startswith("/")
            or any(segment in ("", ".", "..") for segment in segments)
        ):
            raise ValueError(f"Invalid object key: {object_key!r}")
        path = self.root.joinpath(*segments).resolve()
        if not path.is_relative_to(self.root):
            raise ValueError(f"Invalid object key: {object_key!r}")
        return path

    def put_object(self, object_key: str, data: bytes, content_type: str | None = None) -> StoredObject:
        path = self.resolve_path(object_key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return self._stored(object_key, data, content_type)

    def object_exists(self, object_key: str) -> bool:
        try:
            return self.resolve_path(object_key).is_file()
        except ValueError:
            return False

    def generate_download_url(self, object_key: str, expires_in: int = 3600) -> str:
        expires = int(time.time()) + expires_in
        query = urlencode(
            {
                "key": object_key,
                "expires": expires,
                "signature": sign_local_url(self.signing_key, object_key, expires),
            }
        )
        return f"{self.base_url}{LOCAL_CONTENT_PATH}?{query}"

    def delete_object(self, object_key: str) -> None:
        self.resolve_path(object_key).unlink(missing_ok=True)


class GCSStorageAdapter(StorageAdapter):
    provider = "gcs"

    def __init__(self, bucket: str, *, signed_url_expiry_seconds: int = 900):
        # google-cloud-storage is only imported when the gcs provider is selected
        from google.cloud import storage
        import google.auth
        import google.auth.transport.requests

        self.bucket = bucket
        self.signed_url_expiry_seconds = signed_url_expiry_seconds
        self.credentials, project = google.auth.default()
        self._refresh_request = google.auth.transport.requests.Request()
        self._bucket = storage.Client(project=project, credentials=self.credentials).bucket(bucket)

    def _signer(self) -> dict:
        # Key-file credentials sign locally, metadata-server credentials go through IAM signBlob.
        if hasattr(self.credentials, "sign_bytes"):
            return {"credentials": self.credentials}
        if not self.credentials.valid:
            self.credentials.refresh(self._refresh_request)
        email = getattr(self.credentials, "service_account_email", None)
        if not email:
            raise RuntimeError("Default credentials expose no service account email for URL signing")
        return {"service_account_email": email, "access_token": self.credentials.token}

    def put_object(self, object_key: str, data: bytes, content_type: str | None = None) -> StoredObject:
        stored = self._stored(object_key, data, content_type)
        self._bucket.blob(object_key).upload_from_string(data, content_type=stored.content_type)
        return stored

    def object_exists(self, object_key: str) -> bool:
        return self._bucket.blob(object_key).exists()

    def generate_download_url(self, object_key: str, expires_in: int | None = None) -> str:
        return self._bucket.blob(object_key).generate_signed_url(
            version="v4",
            expiration=timedelta(seconds=expires_in or self.signed_url_expiry_seconds),
            method="GET",
            **self._signer(),
        )

    def delete_object(self, object_key: str) -> None:
        from google.api_core.exceptions import NotFound

        try:
            self._bucket.blob(object_key).delete()
        except NotFound:
            pass
