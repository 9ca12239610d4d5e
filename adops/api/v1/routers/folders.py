from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from adops.api import deps
from adops.schemas.files import ContentsSummary, FileDTO, FolderContentsResponse
from adops.schemas.folders import (
    AclUpdate,
    BrandAccessSummaryResponse,
    BrandRef,
    FolderCreate,
    FolderDTO,
    FolderListResponse,
    FolderMetadataUpdate,
    NodeBrandAccessResponse,
)
from adops.services import folders
from adops.services.brand_membership import brand_access_summary
from adops.services.files import download_url
from adops.services.folders import NodeBrandAccess
from adops.services.hierarchy_acl import HierarchyACLEngine, NodeView
from adops.services.storage.adapter import StorageAdapter

router = APIRouter(prefix="/folders", tags=["folders"])


def folder_dto(view: NodeView, owners: dict[int, str] | None = None) -> FolderDTO:
    return FolderDTO.from_view(view, (owners or {}).get(view.node.owner_id))


def brand_access_response(access: NodeBrandAccess) -> NodeBrandAccessResponse:
    return NodeBrandAccessResponse(
        id=access.id,
        allow_all_brands=access.allow_all_brands,
        brands=[BrandRef(id=brand_id, name=name) for brand_id, name in access.brands],
    )


@router.get("", response_model=FolderListResponse, summary="List visible folders under a parent")
async def list_folders(
    parent_id: int | None = Query(default=None),
    ctx: deps.AccountContext = Depends(deps.get_account_context),
    engine: HierarchyACLEngine = Depends(deps.get_acl_engine),
    db: AsyncSession = Depends(deps.get_db_session),
) -> FolderListResponse:
    views = await folders.list_folders(engine, ctx, parent_id)
    owners = await folders.owner_names(db, [view.node.owner_id for view in views])
    items = [folder_dto(view, owners) for view in views]
    return FolderListResponse(items=items, total=len(items))


@router.post(
    "",
    response_model=FolderDTO,
    status_code=status.HTTP_201_CREATED,
    summary="Create a folder",
)
async def create_folder(
    payload: FolderCreate,
    ctx: deps.AccountContext = Depends(deps.get_account_context),
    engine: HierarchyACLEngine = Depends(deps.get_acl_engine),
) -> FolderDTO:
    view = await folders.create_folder(engine, ctx, payload)
    return folder_dto(view, {ctx.user_id: ctx.user.display_name})


@router.get(
    "/brand-access/me",
    response_model=BrandAccessSummaryResponse,
    summary="Brands the caller can see in this account",
)
async def my_brand_access(
    ctx: deps.AccountContext = Depends(deps.get_account_context),
    db: AsyncSession = Depends(deps.get_db_session),
) -> BrandAccessSummaryResponse:
    summary = await brand_access_summary(db, ctx.user_id, ctx.account_id)
    return BrandAccessSummaryResponse(
        accessible_brand_ids=summary.accessible_brand_ids,
        has_access_to_all_brands=summary.has_access_to_all_brands,
        total_accessible_brands=summary.total_accessible_brands,
    )


@router.get("/{folder_id}", response_model=FolderDTO, summary="Get a folder")
async def get_folder(
    folder_id: int,
    ctx: deps.AccountContext = Depends(deps.get_account_context),
    engine: HierarchyACLEngine = Depends(deps.get_acl_engine),
    db: AsyncSession = Depends(deps.get_db_session),
) -> FolderDTO:
    view = await folders.get_folder(engine, ctx, folder_id)
    owners = await folders.owner_names(db, [view.node.owner_id])
    return folder_dto(view, owners)


@router.get(
    "/{folder_id}/contents",
    response_model=FolderContentsResponse,
    summary="Visible subfolders and files of a folder",
)
async def get_folder_contents(
    folder_id: int,
    type: str = Query(default="all", description="all, images, videos or docs"),
    ctx: deps.AccountContext = Depends(deps.get_account_context),
    engine: HierarchyACLEngine = Depends(deps.get_acl_engine),
    db: AsyncSession = Depends(deps.get_db_session),
    storage: StorageAdapter = Depends(deps.get_storage),
) -> FolderContentsResponse:
    contents = await folders.get_folder_contents(engine, ctx, folder_id, type)
    listing = contents.listing
    owners = await folders.owner_names(
        db,
        [contents.folder.node.owner_id]
        + [view.node.owner_id for view in listing.folders]
        + [view.node.owner_id for view in listing.files],
    )
    return FolderContentsResponse(
        folder=folder_dto(contents.folder, owners),
        folders=[folder_dto(view, owners) for view in listing.folders],
        files=[
            FileDTO.from_view(view, owners.get(view.node.owner_id), download_url(storage, view.node))
            for view in listing.files
        ],
        summary=ContentsSummary(
            total_folders=len(listing.folders),
            total_files=len(listing.files),
            total_items=len(listing.folders) + len(listing.files),
        ),
    )


@router.put("/{folder_id}/acl", response_model=FolderDTO, summary="Replace a folder's brand ACL")
async def set_folder_acl(
    folder_id: int,
    payload: AclUpdate,
    ctx: deps.AccountContext = Depends(deps.get_account_context),
    engine: HierarchyACLEngine = Depends(deps.get_acl_engine),
) -> FolderDTO:
    view = await folders.set_folder_acl(engine, ctx, folder_id, payload)
    return folder_dto(view)


@router.patch("/{folder_id}", response_model=FolderDTO, summary="Update folder metadata")
async def update_folder(
    folder_id: int,
    payload: FolderMetadataUpdate,
    ctx: deps.AccountContext = Depends(deps.get_account_context),
    engine: HierarchyACLEngine = Depends(deps.get_acl_engine),
) -> FolderDTO:
    view = await folders.update_folder_metadata(engine, ctx, folder_id, payload)
    return folder_dto(view, {ctx.user_id: ctx.user.display_name})


@router.get(
    "/{folder_id}/brand-access",
    response_model=NodeBrandAccessResponse,
    summary="Brands attached to a folder the caller owns",
)
async def folder_brand_access(
    folder_id: int,
    ctx: deps.AccountContext = Depends(deps.get_account_context),
    engine: HierarchyACLEngine = Depends(deps.get_acl_engine),
    db: AsyncSession = Depends(deps.get_db_session),
) -> NodeBrandAccessResponse:
    access = await folders.get_folder_brand_access(db, engine, ctx, folder_id)
    return brand_access_response(access)
