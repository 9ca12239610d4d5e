"""Folder/file metadata store used by the hierarchy ACL engine.

The catalog only reads and writes rows. It knows nothing about ACL rules.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Protocol, Union

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from adops.core.exceptions import DuplicateName
from adops.models.brand_access import FileBrandAccess, FolderBrandAccess
from adops.models.file import File
from adops.models.folder import Folder

Node = Union[Folder, File]


class NodeKind(str, Enum):
    FOLDER = "folder"
    FILE = "file"


@dataclass(frozen=True, slots=True)
class NodeRef:
    kind: NodeKind
    id: int

    @classmethod
    def of(cls, node: Node) -> "NodeRef":
        return cls(NodeKind.FILE if isinstance(node, File) else NodeKind.FOLDER, node.id)


@dataclass(slots=True)
class Children:
    folders: list[Folder] = field(default_factory=list)
    files: list[File] = field(default_factory=list)


def parent_id_of(node: Node) -> int | None:
    return node.folder_id if isinstance(node, File) else node.parent_id


class FileSystemCatalog(Protocol):
    async def get_node(self, ref: NodeRef, account_id: int | None = None, *, for_update: bool = False) -> Node | None: ...

    async def get_children(
        self, account_id: int, parent_id: int | None, *, for_update: bool = False
    ) -> Children: ...

    async def get_brand_set(self, ref: NodeRef) -> frozenset[int]: ...

    async def get_brand_sets(self, refs: Iterable[NodeRef]) -> dict[NodeRef, frozenset[int]]: ...

    async def set_brand_set(self, ref: NodeRef, brand_ids: Iterable[int]) -> None: ...

    async def set_mode(self, ref: NodeRef, allow_all_brands: bool) -> None: ...

    async def update_node(self, ref: NodeRef, **values: Any) -> Node | None: ...

    async def create_folder(self, **values: Any) -> Folder: ...

    async def create_file(self, **values: Any) -> File: ...

    async def find_folder_by_name(self, account_id: int, parent_id: int | None, name: str) -> Folder | None: ...

    async def find_file_by_original_name(
        self, account_id: int, folder_id: int | None, original_filename: str
    ) -> File | None: ...

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...


_ACCESS = {
    NodeKind.FOLDER: (FolderBrandAccess, FolderBrandAccess.folder_id),
    NodeKind.FILE: (FileBrandAccess, FileBrandAccess.file_id),
}
_MODELS = {NodeKind.FOLDER: Folder, NodeKind.FILE: File}
_NAME_INDEXES = {
    NodeKind.FOLDER: ("uq_folders_account_parent_name", "uq_folders_account_root_name"),
    NodeKind.FILE: ("uq_files_account_folder_original", "uq_files_account_root_original"),
}


def _violates_name_index(exc: IntegrityError, kind: NodeKind) -> bool:
    detail = str(exc.orig)
    return any(index in detail for index in _NAME_INDEXES[kind])


class SqlCatalog:
    """SQLAlchemy-backed catalog. All writes share the caller's session and transaction."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_node(self, ref: NodeRef, account_id: int | None = None, *, for_update: bool = False) -> Node | None:
        model = _MODELS[ref.kind]
        stmt = select(model).where(model.id == ref.id)
        if account_id is not None:
            stmt = stmt.where(model.account_id == account_id)
        if for_update:
            stmt = stmt.with_for_update()
        return (await self.db.execute(stmt)).scalar_one_or_none()

    async def get_children(
        self, account_id: int, parent_id: int | None, *, for_update: bool = False
    ) -> Children:
        folder_stmt = select(Folder).where(Folder.account_id == account_id)
        file_stmt = select(File).where(File.account_id == account_id)
        if parent_id is None:
            folder_stmt = folder_stmt.where(Folder.parent_id.is_(None))
            file_stmt = file_stmt.where(File.folder_id.is_(None))
        else:
            folder_stmt = folder_stmt.where(Folder.parent_id == parent_id)
            file_stmt = file_stmt.where(File.folder_id == parent_id)
        folder_stmt = folder_stmt.order_by(Folder.name.asc(), Folder.id.asc())
        file_stmt = file_stmt.order_by(File.original_filename.asc(), File.id.asc())
        if for_update:
            folder_stmt = folder_stmt.with_for_update()
            file_stmt = file_stmt.with_for_update()
        folders = list((await self.db.execute(folder_stmt)).scalars().all())
        files = list((await self.db.execute(file_stmt)).scalars().all())
        return Children(folders=folders, files=files)

    async def get_brand_set(self, ref: NodeRef) -> frozenset[int]:
        model, key = _ACCESS[ref.kind]
        stmt = select(model.brand_id).where(key == ref.id)
        return frozenset((await self.db.execute(stmt)).scalars().all())

    async def get_brand_sets(self, refs: Iterable[NodeRef]) -> dict[NodeRef, frozenset[int]]:
        wanted: dict[NodeKind, list[int]] = {}
        for ref in refs:
            wanted.setdefault(ref.kind, []).append(ref.id)
        found: dict[NodeRef, set[int]] = {}
        for kind, ids in wanted.items():
            for node_id in ids:
                found[NodeRef(kind, node_id)] = set()
            model, key = _ACCESS[kind]
            stmt = select(key, model.brand_id).where(key.in_(ids))
            for node_id, brand_id in (await self.db.execute(stmt)).all():
                found[NodeRef(kind, node_id)].add(brand_id)
        return {ref: frozenset(brands) for ref, brands in found.items()}

    async def set_brand_set(self, ref: NodeRef, brand_ids: Iterable[int]) -> None:
        model, key = _ACCESS[ref.kind]
        await self.db.execute(delete(model).where(key == ref.id))
        column = "folder_id" if ref.kind is NodeKind.FOLDER else "file_id"
        for brand_id in sorted(set(brand_ids)):
            self.db.add(model(**{column: ref.id, "brand_id": brand_id}))
        await self.db.flush()

    async def set_mode(self, ref: NodeRef, allow_all_brands: bool) -> None:
        node = await self.db.get(_MODELS[ref.kind], ref.id)
        if node is None:
            return
        node.allow_all_brands = allow_all_brands
        await self.db.flush()

    async def update_node(self, ref: NodeRef, **values: Any) -> Node | None:
        node = await self.db.get(_MODELS[ref.kind], ref.id)
        if node is None:
            return None
        for key, value in values.items():
            setattr(node, key, value)
        await self.db.flush()
        return node

    async def create_folder(self, **values: Any) -> Folder:
        folder = Folder(**values)
        self.db.add(folder)
        try:
            await self.db.flush()
        except IntegrityError as exc:
            # A concurrent insert won the race past find_folder_by_name.
            if _violates_name_index(exc, NodeKind.FOLDER):
                raise DuplicateName.folder(folder.name, folder.parent_id) from exc
            raise
        return folder

    async def create_file(self, **values: Any) -> File:
        node = File(**values)
        self.db.add(node)
        try:
            await self.db.flush()
        except IntegrityError as exc:
            if _violates_name_index(exc, NodeKind.FILE):
                raise DuplicateName.file(node.original_filename, node.folder_id) from exc
            raise
        return node

    async def find_folder_by_name(self, account_id: int, parent_id: int | None, name: str) -> Folder | None:
        stmt = select(Folder).where(Folder.account_id == account_id, Folder.name == name)
        if parent_id is None:
            stmt = stmt.where(Folder.parent_id.is_(None))
        else:
            stmt = stmt.where(Folder.parent_id == parent_id)
        return (await self.db.execute(stmt.limit(1))).scalars().first()

    async def find_file_by_original_name(
        self, account_id: int, folder_id: int | None, original_filename: str
    ) -> File | None:
        stmt = select(File).where(File.account_id == account_id, File.original_filename == original_filename)
        if folder_id is None:
            stmt = stmt.where(File.folder_id.is_(None))
        else:
            stmt = stmt.where(File.folder_id == folder_id)
        return (await self.db.execute(stmt.limit(1))).scalars().first()

    async def commit(self) -> None:
        await self.db.commit()

    async def rollback(self) -> None:
        await self.db.rollback()
