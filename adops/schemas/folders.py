from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from adops.schemas.common import BrandAclInput


class FolderCreate(BrandAclInput):
    name: str = Field(min_length=1, max_length=255)
    parent_id: int | None = None
    description: str | None = None
    status: str = "active"


class AclUpdate(BrandAclInput):
    pass


class FolderMetadataUpdate(BaseModel):
    status: str | None = None
    description: str | None = None
    allow_all_brands: bool | None = None
    selected_brands: list[int] | None = None


class FolderDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    account_id: int
    parent_id: int | None = None
    owner_id: int | None = None
    owner_name: str | None = None
    name: str
    description: str | None = None
    status: str
    allow_all_brands: bool
    brand_access: list[int] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_view(cls, view, owner_name: str | None = None) -> "FolderDTO":
        return cls.model_validate(view.node).model_copy(
            update={
                "allow_all_brands": view.acl.allow_all_brands,
                "brand_access": sorted(view.acl.brand_ids),
                "owner_name": owner_name,
            }
        )


class FolderListResponse(BaseModel):
    items: list[FolderDTO]
    total: int


class BrandRef(BaseModel):
    id: int
    name: str | None = None


class NodeBrandAccessResponse(BaseModel):
    id: int
    allow_all_brands: bool
    brands: list[BrandRef]


class BrandAccessSummaryResponse(BaseModel):
    accessible_brand_ids: list[int]
    has_access_to_all_brands: bool
    total_accessible_brands: int | None = None
