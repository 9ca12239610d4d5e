"""Brand ACLs over the folder/file tree.

Every node is either ALL_BRANDS or RESTRICTED to an explicit brand set. A
node under a RESTRICTED parent may not be ALL_BRANDS, and its brand set must
be a subset of the parent's whenever the parent's set is non-empty. Narrowing
a folder cascades down the subtree and only ever removes brands.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Protocol

from adops.core.exceptions import AclViolation, DuplicateName, NodeNotFound, UnauthorizedAction
from adops.core.logging import get_audit_logger
from adops.models.file import File
from adops.models.folder import Folder, NodeStatus
from adops.services.brand_membership import BrandScope
from adops.services.catalog import FileSystemCatalog, Node, NodeKind, NodeRef, parent_id_of

logger = logging.getLogger(__name__)
audit_logger = get_audit_logger()

HIDDEN_STATUSES = frozenset({NodeStatus.DELETED.value})


class AclMode(str, Enum):
    ALL_BRANDS = "all_brands"
    RESTRICTED = "restricted"


@dataclass(frozen=True, slots=True)
class NodeAcl:
    mode: AclMode
    brand_ids: frozenset[int] = frozenset()

    @classmethod
    def all_brands(cls) -> "NodeAcl":
        return cls(AclMode.ALL_BRANDS)

    @classmethod
    def restricted(cls, brand_ids: Iterable[int] = ()) -> "NodeAcl":
        return cls(AclMode.RESTRICTED, frozenset(brand_ids))

    @classmethod
    def from_flags(cls, allow_all_brands: bool, brand_ids: Iterable[int] | None = None) -> "NodeAcl":
        if allow_all_brands:
            return cls.all_brands()
        return cls.restricted(brand_ids or ())

    @property
    def allow_all_brands(self) -> bool:
        return self.mode is AclMode.ALL_BRANDS


class ScopeResolver(Protocol):
    async def accessible_brands(self, user_id: int, account_id: int) -> BrandScope: ...


@dataclass(slots=True)
class NodeView:
    node: Node
    acl: NodeAcl


@dataclass(slots=True)
class VisibleListing:
    folders: list[NodeView] = field(default_factory=list)
    files: list[NodeView] = field(default_factory=list)


def validate_against_parent(parent_acl: NodeAcl | None, child_acl: NodeAcl) -> None:
    if parent_acl is None or parent_acl.mode is AclMode.ALL_BRANDS:
        return
    if child_acl.mode is AclMode.ALL_BRANDS:
        raise AclViolation(
            'Cannot set "allow all brands" when parent folder has restricted access',
            parent_brand_ids=parent_acl.brand_ids,
        )
    if not parent_acl.brand_ids:
        return
    invalid = child_acl.brand_ids - parent_acl.brand_ids
    if invalid:
        shown = ", ".join(str(brand_id) for brand_id in sorted(invalid))
        allowed = ", ".join(str(brand_id) for brand_id in sorted(parent_acl.brand_ids))
        raise AclViolation(
            f"Selected brands [{shown}] are not allowed. Parent folder only allows brands [{allowed}]",
            invalid_brand_ids=invalid,
            parent_brand_ids=parent_acl.brand_ids,
        )


def is_visible(acl: NodeAcl, scope: BrandScope | None) -> bool:
    if acl.mode is AclMode.ALL_BRANDS or not acl.brand_ids:
        return True
    if scope is None:
        return False
    return scope.allows_any(acl.brand_ids)


class HierarchyACLEngine:
    def __init__(self, catalog: FileSystemCatalog, resolver: ScopeResolver) -> None:
        self.catalog = catalog
        self.resolver = resolver

    async def node_acl(self, node: Node) -> NodeAcl:
        if node.allow_all_brands:
            return NodeAcl.all_brands()
        return NodeAcl.restricted(await self.catalog.get_brand_set(NodeRef.of(node)))

    async def _load_parent(self, account_id: int, parent_id: int | None, *, for_update: bool = False) -> Folder | None:
        if parent_id is None:
            return None
        parent = await self.catalog.get_node(
            NodeRef(NodeKind.FOLDER, parent_id), account_id, for_update=for_update
        )
        if parent is None:
            raise NodeNotFound("Parent folder not found", details={"parent_id": parent_id})
        return parent

    async def _parent_acl(self, parent: Folder | None) -> NodeAcl | None:
        return None if parent is None else await self.node_acl(parent)

    async def create_folder(
        self,
        account_id: int,
        owner_id: int,
        name: str,
        parent_id: int | None,
        acl: NodeAcl,
        *,
        status: str = NodeStatus.ACTIVE.value,
        description: str | None = None,
    ) -> NodeView:
        try:
            parent = await self._load_parent(account_id, parent_id, for_update=True)
            if await self.catalog.find_folder_by_name(account_id, parent_id, name) is not None:
                raise DuplicateName.folder(name, parent_id)
            validate_against_parent(await self._parent_acl(parent), acl)
            folder = await self.catalog.create_folder(
                account_id=account_id,
                parent_id=parent_id,
                owner_id=owner_id,
                name=name,
                description=description,
                status=status,
                allow_all_brands=acl.allow_all_brands,
            )
            if acl.mode is AclMode.RESTRICTED and acl.brand_ids:
                await self.catalog.set_brand_set(NodeRef.of(folder), acl.brand_ids)
            await self.catalog.commit()
        except Exception:
            await self.catalog.rollback()
            raise
        audit_logger.info(
            "folder.created",
            extra={"folder_id": folder.id, "parent_id": parent_id, "acl_mode": acl.mode.value},
        )
        return NodeView(folder, acl)

    async def create_file(
        self,
        account_id: int,
        owner_id: int,
        original_filename: str,
        folder_id: int | None,
        acl: NodeAcl,
        **storage: Any,
    ) -> NodeView:
        """Register a stored payload as a file node. ``storage`` carries key, size, content type."""
        try:
            parent = await self._load_parent(account_id, folder_id, for_update=True)
            if await self.catalog.find_file_by_original_name(account_id, folder_id, original_filename) is not None:
                raise DuplicateName.file(original_filename, folder_id)
            validate_against_parent(await self._parent_acl(parent), acl)
            node = await self.catalog.create_file(
                account_id=account_id,
                folder_id=folder_id,
                owner_id=owner_id,
                original_filename=original_filename,
                allow_all_brands=acl.allow_all_brands,
                **storage,
            )
            if acl.mode is AclMode.RESTRICTED and acl.brand_ids:
                await self.catalog.set_brand_set(NodeRef.of(node), acl.brand_ids)
            await self.catalog.commit()
        except Exception:
            await self.catalog.rollback()
            raise
        audit_logger.info(
            "file.created",
            extra={"file_id": node.id, "folder_id": folder_id, "acl_mode": acl.mode.value},
        )
        return NodeView(node, acl)

    async def _apply_acl(self, ref: NodeRef, node: Node, account_id: int, acl: NodeAcl) -> int:
        parent = await self._load_parent(account_id, parent_id_of(node))
        validate_against_parent(await self._parent_acl(parent), acl)
        await self.catalog.set_mode(ref, acl.allow_all_brands)
        await self.catalog.set_brand_set(ref, acl.brand_ids if acl.mode is AclMode.RESTRICTED else ())
        if acl.mode is AclMode.RESTRICTED and ref.kind is NodeKind.FOLDER:
            return await self._cascade(account_id, node.id, acl.brand_ids)
        return 0

    def _audit_acl(self, ref: NodeRef, acl: NodeAcl, touched: int) -> None:
        audit_logger.info(
            "acl.updated",
            extra={
                "node_kind": ref.kind.value,
                "node_id": ref.id,
                "acl_mode": acl.mode.value,
                "brand_ids": sorted(acl.brand_ids),
                "descendants_rewritten": touched,
            },
        )

    async def _lock_node(self, ref: NodeRef, account_id: int, owner_id: int | None) -> Node:
        """With ``owner_id`` set, nodes owned by someone else are reported as missing."""
        node = await self.catalog.get_node(ref, account_id, for_update=True)
        if owner_id is not None and (node is None or node.owner_id != owner_id):
            raise NodeNotFound(f"{ref.kind.value.capitalize()} not found or access denied", details={"id": ref.id})
        if node is None:
            raise NodeNotFound(f"{ref.kind.value.capitalize()} not found", details={"id": ref.id})
        return node

    async def set_acl(
        self, ref: NodeRef, account_id: int, acl: NodeAcl, *, owner_id: int | None = None
    ) -> NodeView:
        """Validate, persist and cascade one ACL change inside a single transaction."""
        try:
            node = await self._lock_node(ref, account_id, owner_id)
            touched = await self._apply_acl(ref, node, account_id, acl)
            await self.catalog.commit()
        except Exception:
            await self.catalog.rollback()
            raise
        self._audit_acl(ref, acl, touched)
        return NodeView(node, acl)

    async def update_node(
        self,
        ref: NodeRef,
        account_id: int,
        values: dict[str, Any],
        acl: NodeAcl | None = None,
        *,
        owner_id: int | None = None,
    ) -> NodeView:
        """Apply metadata and an optional ACL change together."""
        try:
            node = await self._lock_node(ref, account_id, owner_id)
            if values:
                await self.catalog.update_node(ref, **values)
            touched = 0
            if acl is not None:
                touched = await self._apply_acl(ref, node, account_id, acl)
            await self.catalog.commit()
        except Exception:
            await self.catalog.rollback()
            raise
        if acl is not None:
            self._audit_acl(ref, acl, touched)
        return NodeView(node, acl or await self.node_acl(node))

    async def _cascade(self, account_id: int, folder_id: int, bound: frozenset[int]) -> int:
        """Force every descendant to RESTRICTED, keeping only brands still within ``bound``."""
        children = await self.catalog.get_children(account_id, folder_id, for_update=True)
        refs = [NodeRef.of(node) for node in (*children.folders, *children.files)]
        current = await self.catalog.get_brand_sets(refs)
        touched = 0
        for child in (*children.folders, *children.files):
            ref = NodeRef.of(child)
            narrowed = current.get(ref, frozenset()) & bound
            if child.allow_all_brands:
                await self.catalog.set_mode(ref, False)
            if narrowed != current.get(ref, frozenset()):
                logger.debug(
                    "Narrowing descendant brand set",
                    extra={"node_kind": ref.kind.value, "node_id": ref.id, "brand_ids": sorted(narrowed)},
                )
                await self.catalog.set_brand_set(ref, narrowed)
            touched += 1
            if isinstance(child, Folder):
                # An empty set bounds nothing, so grandchildren stay under the inherited bound.
                touched += await self._cascade(account_id, child.id, narrowed or bound)
        return touched

    async def list_visible(self, account_id: int, user_id: int, parent_id: int | None) -> VisibleListing:
        if parent_id is not None:
            await self._load_parent(account_id, parent_id)
        children = await self.catalog.get_children(account_id, parent_id)
        folders = [node for node in children.folders if node.status not in HIDDEN_STATUSES]
        files = [node for node in children.files if node.status not in HIDDEN_STATUSES]
        return await self.filter_visible(account_id, user_id, folders, files)

    async def filter_visible(
        self,
        account_id: int,
        user_id: int,
        folders: Iterable[Folder],
        files: Iterable[File],
    ) -> VisibleListing:
        folders, files = list(folders), list(files)
        restricted = [NodeRef.of(node) for node in (*folders, *files) if not node.allow_all_brands]
        brand_sets = await self.catalog.get_brand_sets(restricted) if restricted else {}
        scope: BrandScope | None = None
        if any(brand_sets.values()):
            scope = await self.resolver.accessible_brands(user_id, account_id)

        def _views(nodes) -> list[NodeView]:
            views = []
            for node in nodes:
                if node.allow_all_brands:
                    acl = NodeAcl.all_brands()
                else:
                    acl = NodeAcl.restricted(brand_sets.get(NodeRef.of(node), frozenset()))
                if is_visible(acl, scope):
                    views.append(NodeView(node, acl))
            return views

        return VisibleListing(folders=_views(folders), files=_views(files))

    async def ensure_visible(
        self, account_id: int, user_id: int, node: Node, message: str = "You do not have access to this item"
    ) -> NodeAcl:
        acl = await self.node_acl(node)
        scope = None
        if acl.mode is AclMode.RESTRICTED and acl.brand_ids:
            scope = await self.resolver.accessible_brands(user_id, account_id)
        if not is_visible(acl, scope):
            raise UnauthorizedAction(message, details={"id": node.id})
        return acl
