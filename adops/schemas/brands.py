from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class BrandCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    parent_company_id: int | None = None
    type: str | None = None
    asset_url: str | None = None
    status: str = "active"
    publisher_share_perc: Decimal | None = Field(default=None, ge=0, le=100)
    allow_all_products: bool = False
    custom_id: str | None = None
    metadata: dict[str, Any] | None = None


class BrandDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    account_id: int
    parent_company_id: int | None = None
    name: str
    type: str | None = None
    asset_url: str | None = None
    status: str
    publisher_share_perc: Decimal | None = None
    allow_all_products: bool
    custom_id: str | None = None
    created_at: datetime | None = None


class BrandListResponse(BaseModel):
    items: list[BrandDTO]
    total: int
    page: int
    limit: int
