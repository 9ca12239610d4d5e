from adops.core.settings import settings
from adops.services.storage.adapter import GCSStorageAdapter, LocalFileSystemAdapter, StorageAdapter


def get_storage_adapter(provider: str | None = None, *, bucket_override: str | None = None) -> StorageAdapter:
    provider = provider or settings.storage_provider
    if provider == "gcs":
        bucket = bucket_override or settings.gcs_bucket
        if not bucket:
            raise ValueError("GCS bucket is not configured")
        return GCSStorageAdapter(
            bucket=bucket,
            signed_url_expiry_seconds=settings.gcs_signed_url_expiry_seconds,
        )
    return LocalFileSystemAdapter(
        base_path=settings.local_upload_dir,
        base_url=settings.public_base_url,
        signing_key=settings.secret_key,
    )
