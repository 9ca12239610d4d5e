from __future__ import annotations

import base64
import binascii
import logging
import re
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from adops.api import deps
from adops.core.exceptions import NotFound, ValidationFailed
from adops.core.settings import settings
from adops.models.file import File
from adops.schemas.files import FileMetadataUpdate, FileUpload
from adops.schemas.folders import AclUpdate
from adops.services.catalog import NodeKind, NodeRef
from adops.services.content_filters import matches_content_filter, normalize_content_filter
from adops.services.folders import (
    NodeBrandAccess,
    brand_names,
    get_owned_node,
    metadata_acl,
    requested_acl,
    validate_status,
)
from adops.services.hierarchy_acl import HIDDEN_STATUSES, HierarchyACLEngine, NodeView, VisibleListing
from adops.services.storage.adapter import DEFAULT_CONTENT_TYPE, StorageAdapter
from adops.services.storage.key_generator import KeyGenerator

logger = logging.getLogger(__name__)
_DATA_URL = re.compile(r"^data:(?P<mime>[^;,]+)?(?:;[^,]*)?,(?P<data>.*)$", re.DOTALL)


@dataclass(slots=True)
class DecodedPayload:
    data: bytes
    content_type: str


def decode_file_data(file_data: str, mime_type: str | None = None) -> DecodedPayload:
    """Accept either a ``data:`` URL or bare base64."""
    if not file_data:
        raise ValidationFailed("File data is required")
    content_type = mime_type or DEFAULT_CONTENT_TYPE
    encoded = file_data
    match = _DATA_URL.match(file_data)
    if match:
        encoded = match.group("data")
        content_type = match.group("mime") or content_type
    try:
        data = base64.b64decode(encoded, validate=False)
    except (binascii.Error, ValueError) as exc:
        raise ValidationFailed("File data is not valid base64") from exc
    return DecodedPayload(data=data, content_type=content_type)


def _check_size(size: int) -> None:
    limit = settings.max_upload_size_mb * 1024 * 1024
    if size > limit:
        raise ValidationFailed(
            f"File exceeds the {settings.max_upload_size_mb} MB upload limit",
            details={"size": size, "limit": limit},
        )


async def upload_file(
    engine: HierarchyACLEngine,
    ctx: deps.AccountContext,
    payload: FileUpload,
    adapter: StorageAdapter,
) -> NodeView:
    acl = requested_acl(ctx, payload.allow_all_brands, payload.selected_brands)
    storage_name = KeyGenerator.storage_name(payload.filename)

    if payload.file_data:
        decoded = decode_file_data(payload.file_data, payload.mime_type)
        _check_size(len(decoded.data))
        object_key = KeyGenerator.file_object_key(ctx.account_id, payload.folder_id, storage_name)
        stored = adapter.put_object(object_key, decoded.data, decoded.content_type)
        content_type, size = stored.content_type, stored.size
    else:
        object_key = payload.storage_key
        if not object_key.startswith(f"accounts/{ctx.account_id}/"):
            raise ValidationFailed("Storage key does not belong to this account")
        if not adapter.object_exists(object_key):
            raise ValidationFailed("Uploaded object not found", details={"storage_key": object_key})
        content_type, size = payload.mime_type or DEFAULT_CONTENT_TYPE, None

    logger.info(
        "File payload stored",
        extra={"object_key": object_key, "storage_provider": adapter.provider, "file_size": size},
    )
    try:
        return await engine.create_file(
            ctx.account_id,
            ctx.user_id,
            payload.filename,
            payload.folder_id,
            acl,
            name=storage_name,
            storage_key=object_key,
            storage_provider=adapter.provider,
            file_size=size,
            content_type=content_type,
            description=payload.description,
        )
    except Exception:
        if payload.file_data:
            adapter.delete_object(object_key)
        raise


def download_url(adapter: StorageAdapter, node: File) -> str | None:
    if not node.storage_key:
        return None
    if node.storage_provider and node.storage_provider != adapter.provider:
        logger.warning(
            "File stored with a different provider",
            extra={"file_id": node.id, "storage_provider": node.storage_provider},
        )
        return None
    return adapter.generate_download_url(node.storage_key)


async def set_file_acl(
    engine: HierarchyACLEngine, ctx: deps.AccountContext, file_id: int, payload: AclUpdate
) -> NodeView:
    acl = requested_acl(ctx, payload.allow_all_brands, payload.selected_brands)
    return await engine.set_acl(NodeRef(NodeKind.FILE, file_id), ctx.account_id, acl, owner_id=ctx.user_id)


async def update_file_metadata(
    engine: HierarchyACLEngine, ctx: deps.AccountContext, file_id: int, payload: FileMetadataUpdate
) -> NodeView:
    values = {}
    if payload.status is not None:
        values["status"] = validate_status(payload.status)
    if "description" in payload.model_fields_set:
        values["description"] = payload.description
    if "metadata" in payload.model_fields_set:
        values["metadata_json"] = payload.metadata
    return await engine.update_node(
        NodeRef(NodeKind.FILE, file_id),
        ctx.account_id,
        values,
        metadata_acl(ctx, payload),
        owner_id=ctx.user_id,
    )


async def get_file(engine: HierarchyACLEngine, ctx: deps.AccountContext, file_id: int) -> NodeView:
    node = await engine.catalog.get_node(NodeRef(NodeKind.FILE, file_id), ctx.account_id)
    if node is None or node.status in HIDDEN_STATUSES:
        raise NotFound("File not found", details={"id": file_id})
    acl = await engine.ensure_visible(ctx.account_id, ctx.user_id, node, "Access denied to this file")
    return NodeView(node, acl)


async def list_files(
    engine: HierarchyACLEngine,
    ctx: deps.AccountContext,
    folder_id: int | None = None,
    content_filter: str | None = None,
) -> list[NodeView]:
    content_filter = normalize_content_filter(content_filter)
    listing = await engine.list_visible(ctx.account_id, ctx.user_id, folder_id)
    return [view for view in listing.files if matches_content_filter(view.node, content_filter)]


async def list_hierarchy(
    engine: HierarchyACLEngine,
    ctx: deps.AccountContext,
    parent_id: int | None = None,
    content_filter: str | None = None,
) -> VisibleListing:
    """Visible folders and files directly under ``parent_id`` (the root when None)."""
    content_filter = normalize_content_filter(content_filter)
    listing = await engine.list_visible(ctx.account_id, ctx.user_id, parent_id)
    listing.files = [view for view in listing.files if matches_content_filter(view.node, content_filter)]
    return listing


async def get_file_brand_access(
    db: AsyncSession, engine: HierarchyACLEngine, ctx: deps.AccountContext, file_id: int
) -> NodeBrandAccess:
    node = await get_owned_node(engine, ctx, NodeRef(NodeKind.FILE, file_id))
    acl = await engine.node_acl(node)
    return NodeBrandAccess(
        id=node.id,
        allow_all_brands=acl.allow_all_brands,
        brands=await brand_names(db, ctx.account_id, acl.brand_ids),
    )
