from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from adops.api import deps
from adops.core.exceptions import NotFound, UnauthorizedAction, ValidationFailed
from adops.models.brand import Brand
from adops.models.folder import Folder, NodeStatus
from adops.models.user import User
from adops.schemas.folders import AclUpdate, FolderCreate, FolderMetadataUpdate
from adops.services.catalog import NodeKind, NodeRef
from adops.services.content_filters import matches_content_filter, normalize_content_filter
from adops.services.hierarchy_acl import HIDDEN_STATUSES, HierarchyACLEngine, NodeAcl, NodeView, VisibleListing

VALID_STATUSES = tuple(item.value for item in NodeStatus)


@dataclass(slots=True)
class FolderContents:
    folder: NodeView
    listing: VisibleListing


@dataclass(slots=True)
class NodeBrandAccess:
    id: int
    allow_all_brands: bool
    brands: list[tuple[int, str | None]]


def validate_status(status: str) -> str:
    if status not in VALID_STATUSES:
        raise ValidationFailed(
            "Invalid status. Must be one of: " + ", ".join(VALID_STATUSES),
            details={"status": status},
        )
    return status


def requested_acl(ctx: deps.AccountContext, allow_all_brands: bool, selected_brands: Iterable[int] | None) -> NodeAcl:
    if allow_all_brands and ctx.is_advertiser:
        raise UnauthorizedAction('Advertisers cannot set "allow all brands" access')
    return NodeAcl.from_flags(allow_all_brands, selected_brands)


def metadata_acl(ctx: deps.AccountContext, payload) -> NodeAcl | None:
    if payload.allow_all_brands is None and payload.selected_brands is None:
        return None
    return requested_acl(ctx, bool(payload.allow_all_brands), payload.selected_brands)


async def owner_names(db: AsyncSession, owner_ids: Iterable[int | None]) -> dict[int, str]:
    ids = {owner_id for owner_id in owner_ids if owner_id is not None}
    if not ids:
        return {}
    users = (await db.execute(select(User).where(User.id.in_(ids)))).scalars().all()
    return {user.id: user.display_name for user in users}


async def brand_names(db: AsyncSession, account_id: int, brand_ids: Iterable[int]) -> list[tuple[int, str | None]]:
    ids = sorted(set(brand_ids))
    if not ids:
        return []
    stmt = select(Brand.id, Brand.name).where(Brand.account_id == account_id, Brand.id.in_(ids))
    found = {row[0]: row[1] for row in (await db.execute(stmt)).all()}
    return [(brand_id, found.get(brand_id)) for brand_id in ids]


async def create_folder(engine: HierarchyACLEngine, ctx: deps.AccountContext, payload: FolderCreate) -> NodeView:
    validate_status(payload.status)
    acl = requested_acl(ctx, payload.allow_all_brands, payload.selected_brands)
    return await engine.create_folder(
        ctx.account_id,
        ctx.user_id,
        payload.name,
        payload.parent_id,
        acl,
        status=payload.status,
        description=payload.description,
    )


async def set_folder_acl(
    engine: HierarchyACLEngine, ctx: deps.AccountContext, folder_id: int, payload: AclUpdate
) -> NodeView:
    acl = requested_acl(ctx, payload.allow_all_brands, payload.selected_brands)
    return await engine.set_acl(NodeRef(NodeKind.FOLDER, folder_id), ctx.account_id, acl, owner_id=ctx.user_id)


async def get_folder(engine: HierarchyACLEngine, ctx: deps.AccountContext, folder_id: int) -> NodeView:
    folder = await engine.catalog.get_node(NodeRef(NodeKind.FOLDER, folder_id), ctx.account_id)
    if folder is None or folder.status in HIDDEN_STATUSES:
        raise NotFound("Folder not found", details={"id": folder_id})
    acl = await engine.ensure_visible(ctx.account_id, ctx.user_id, folder, "Access denied to this folder")
    return NodeView(folder, acl)


async def update_folder_metadata(
    engine: HierarchyACLEngine, ctx: deps.AccountContext, folder_id: int, payload: FolderMetadataUpdate
) -> NodeView:
    """Owner-only update of status, description and optionally the brand ACL."""
    values = {}
    if payload.status is not None:
        values["status"] = validate_status(payload.status)
    if "description" in payload.model_fields_set:
        values["description"] = payload.description
    return await engine.update_node(
        NodeRef(NodeKind.FOLDER, folder_id),
        ctx.account_id,
        values,
        metadata_acl(ctx, payload),
        owner_id=ctx.user_id,
    )


async def list_folders(
    engine: HierarchyACLEngine, ctx: deps.AccountContext, parent_id: int | None = None
) -> list[NodeView]:
    listing = await engine.list_visible(ctx.account_id, ctx.user_id, parent_id)
    return listing.folders


async def get_folder_contents(
    engine: HierarchyACLEngine,
    ctx: deps.AccountContext,
    folder_id: int,
    content_filter: str | None = None,
) -> FolderContents:
    content_filter = normalize_content_filter(content_filter)
    folder = await get_folder(engine, ctx, folder_id)
    listing = await engine.list_visible(ctx.account_id, ctx.user_id, folder_id)
    listing.files = [view for view in listing.files if matches_content_filter(view.node, content_filter)]
    return FolderContents(folder=folder, listing=listing)


async def get_owned_node(
    engine: HierarchyACLEngine, ctx: deps.AccountContext, ref: NodeRef
):
    node = await engine.catalog.get_node(ref, ctx.account_id)
    if node is None or node.owner_id != ctx.user_id:
        raise NotFound(f"{ref.kind.value.capitalize()} not found or access denied", details={"id": ref.id})
    return node


async def get_folder_brand_access(
    db: AsyncSession, engine: HierarchyACLEngine, ctx: deps.AccountContext, folder_id: int
) -> NodeBrandAccess:
    folder: Folder = await get_owned_node(engine, ctx, NodeRef(NodeKind.FOLDER, folder_id))
    acl = await engine.node_acl(folder)
    return NodeBrandAccess(
        id=folder.id,
        allow_all_brands=acl.allow_all_brands,
        brands=await brand_names(db, ctx.account_id, acl.brand_ids),
    )
