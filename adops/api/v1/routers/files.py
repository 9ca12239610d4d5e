from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from adops.api import deps
from adops.api.v1.routers.folders import brand_access_response, folder_dto
from adops.core.settings import settings
from adops.schemas.files import (
    ContentsSummary,
    FileDTO,
    FileListResponse,
    FileMetadataUpdate,
    FileUpload,
    FolderContentsResponse,
)
from adops.schemas.folders import AclUpdate, NodeBrandAccessResponse
from adops.services import files, folders
from adops.services.hierarchy_acl import HierarchyACLEngine, NodeView
from adops.services.storage.adapter import LocalFileSystemAdapter, StorageAdapter, verify_local_url_signature

router = APIRouter(prefix="/files", tags=["files"])


def file_dto(view: NodeView, storage: StorageAdapter, owners: dict[int, str] | None = None) -> FileDTO:
    return FileDTO.from_view(view, (owners or {}).get(view.node.owner_id), files.download_url(storage, view.node))


@router.get("", response_model=FileListResponse, summary="List visible files in a folder")
async def list_files(
    folder_id: int | None = Query(default=None),
    type: str = Query(default="all", description="all, images, videos or docs"),
    ctx: deps.AccountContext = Depends(deps.get_account_context),
    engine: HierarchyACLEngine = Depends(deps.get_acl_engine),
    db: AsyncSession = Depends(deps.get_db_session),
    storage: StorageAdapter = Depends(deps.get_storage),
) -> FileListResponse:
    views = await files.list_files(engine, ctx, folder_id, type)
    owners = await folders.owner_names(db, [view.node.owner_id for view in views])
    items = [file_dto(view, storage, owners) for view in views]
    return FileListResponse(items=items, total=len(items))


@router.post(
    "",
    response_model=FileDTO,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a file",
)
async def upload_file(
    payload: FileUpload,
    ctx: deps.AccountContext = Depends(deps.get_account_context),
    engine: HierarchyACLEngine = Depends(deps.get_acl_engine),
    storage: StorageAdapter = Depends(deps.get_storage),
) -> FileDTO:
    view = await files.upload_file(engine, ctx, payload, storage)
    return file_dto(view, storage, {ctx.user_id: ctx.user.display_name})


@router.get(
    "/hierarchy",
    response_model=FolderContentsResponse,
    summary="Visible folders and files directly under a parent",
)
async def list_hierarchy(
    parent_id: int | None = Query(default=None),
    type: str = Query(default="all", description="all, images, videos or docs"),
    ctx: deps.AccountContext = Depends(deps.get_account_context),
    engine: HierarchyACLEngine = Depends(deps.get_acl_engine),
    db: AsyncSession = Depends(deps.get_db_session),
    storage: StorageAdapter = Depends(deps.get_storage),
) -> FolderContentsResponse:
    listing = await files.list_hierarchy(engine, ctx, parent_id, type)
    owners = await folders.owner_names(
        db, [view.node.owner_id for view in (*listing.folders, *listing.files)]
    )
    return FolderContentsResponse(
        folder=None,
        folders=[folder_dto(view, owners) for view in listing.folders],
        files=[file_dto(view, storage, owners) for view in listing.files],
        summary=ContentsSummary(
            total_folders=len(listing.folders),
            total_files=len(listing.files),
            total_items=len(listing.folders) + len(listing.files),
        ),
    )


@router.get("/local-content", summary="Serve a locally stored file through a signed URL")
async def get_local_content(
    key: str = Query(...),
    expires: int = Query(...),
    signature: str = Query(...),
):
    if settings.storage_provider != "local":
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not supported")
    if not verify_local_url_signature(settings.secret_key, key, expires, signature):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid or expired URL signature")
    adapter = LocalFileSystemAdapter(base_path=settings.local_upload_dir, base_url="")
    try:
        path = adapter.resolve_path(key)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    if not path.exists():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")
    return FileResponse(path)


@router.get("/{file_id}", response_model=FileDTO, summary="Get a file with its download URL")
async def get_file(
    file_id: int,
    ctx: deps.AccountContext = Depends(deps.get_account_context),
    engine: HierarchyACLEngine = Depends(deps.get_acl_engine),
    db: AsyncSession = Depends(deps.get_db_session),
    storage: StorageAdapter = Depends(deps.get_storage),
) -> FileDTO:
    view = await files.get_file(engine, ctx, file_id)
    owners = await folders.owner_names(db, [view.node.owner_id])
    return file_dto(view, storage, owners)


@router.put("/{file_id}/acl", response_model=FileDTO, summary="Replace a file's brand ACL")
async def set_file_acl(
    file_id: int,
    payload: AclUpdate,
    ctx: deps.AccountContext = Depends(deps.get_account_context),
    engine: HierarchyACLEngine = Depends(deps.get_acl_engine),
    storage: StorageAdapter = Depends(deps.get_storage),
) -> FileDTO:
    view = await files.set_file_acl(engine, ctx, file_id, payload)
    return file_dto(view, storage)


@router.patch("/{file_id}", response_model=FileDTO, summary="Update file metadata")
async def update_file(
    file_id: int,
    payload: FileMetadataUpdate,
    ctx: deps.AccountContext = Depends(deps.get_account_context),
    engine: HierarchyACLEngine = Depends(deps.get_acl_engine),
    storage: StorageAdapter = Depends(deps.get_storage),
) -> FileDTO:
    view = await files.update_file_metadata(engine, ctx, file_id, payload)
    return file_dto(view, storage, {ctx.user_id: ctx.user.display_name})


@router.get(
    "/{file_id}/brand-access",
    response_model=NodeBrandAccessResponse,
    summary="Brands attached to a file the caller owns",
)
async def file_brand_access(
    file_id: int,
    ctx: deps.AccountContext = Depends(deps.get_account_context),
    engine: HierarchyACLEngine = Depends(deps.get_acl_engine),
    db: AsyncSession = Depends(deps.get_db_session),
) -> NodeBrandAccessResponse:
    access = await files.get_file_brand_access(db, engine, ctx, file_id)
    return brand_access_response(access)
