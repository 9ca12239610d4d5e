from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from adops.schemas.common import BrandAclInput
from adops.schemas.folders import FolderDTO


class FileUpload(BrandAclInput):
    filename: str = Field(min_length=1, max_length=255)
    file_data: str | None = None
    storage_key: str | None = None
    mime_type: str | None = None
    folder_id: int | None = None
    description: str | None = None

    @model_validator(mode="after")
    def _payload_present(self):
        if not self.file_data and not self.storage_key:
            raise ValueError("file_data or storage_key is required")
        return self


class FileMetadataUpdate(BaseModel):
    status: str | None = None
    description: str | None = None
    metadata: dict[str, Any] | None = None
    allow_all_brands: bool | None = None
    selected_brands: list[int] | None = None


class FileDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    account_id: int
    folder_id: int | None = None
    owner_id: int | None = None
    owner_name: str | None = None
    name: str
    original_filename: str
    storage_provider: str | None = None
    file_size: int | None = None
    content_type: str | None = None
    description: str | None = None
    status: str
    allow_all_brands: bool
    brand_access: list[int] = Field(default_factory=list)
    file_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_view(cls, view, owner_name: str | None = None, file_url: str | None = None) -> "FileDTO":
        return cls.model_validate(view.node).model_copy(
            update={
                "allow_all_brands": view.acl.allow_all_brands,
                "brand_access": sorted(view.acl.brand_ids),
                "owner_name": owner_name,
                "file_url": file_url,
            }
        )


class FileListResponse(BaseModel):
    items: list[FileDTO]
    total: int


class ContentsSummary(BaseModel):
    total_folders: int
    total_files: int
    total_items: int


class FolderContentsResponse(BaseModel):
    folder: FolderDTO | None = None
    folders: list[FolderDTO]
    files: list[FileDTO]
    summary: ContentsSummary
