"""Deep module for folder operations: create, rename, move, and tree reads.

Keeps two stores in step without a shared transaction: the relational
folder index (plus the ``folder_path`` pointer on materials) and the
directory tree on the shared drive. For rename and move the physical rename
always happens first; all index writes for the operation then go out in a
single commit. If that commit fails the directory is renamed back.

Callers never manage path strings, descendant rewrites, or material
pointers themselves.
"""

import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Set

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..exceptions import (
    CyclicMoveError,
    DatabaseBusyError,
    DestinationExistsError,
    InvalidNameError,
    PartialFailureError,
    PhysicalCreateFailedError,
    PhysicalRenameFailedError,
    SelfParentError,
)
from ..models.folder import Folder, utcnow
from ..models.material import Material
from ..repositories.folder_repository import FolderRepository
from ..repositories.material_repository import MaterialRepository
from ..schemas.folder import FolderTreeNode
from ..storage.physical_tree import PhysicalTreeAdapter
from .folder_paths import build_folder_path, rebase_child_path, sanitize_folder_name
from .folder_tree_cache import FolderTreeCache

logger = logging.getLogger(__name__)

ChildIndex = Dict[str, List[Folder]]


class FolderService:
    """All folder operations behind a simple interface.

    Public methods:
        create_folder          -- sanitize, insert, mkdir
        update_folder_name     -- rename in place; rewrites descendants and materials
        move_folder            -- re-parent; rewrites descendants and materials
        get_folders            -- hierarchical tree (cached)
        get_folders_flat       -- flat list (uncached)
        get_folder             -- lookup by id
        get_folder_id_by_path  -- lookup by materialized path
        list_materials         -- materials bound to a folder
    """

    def __init__(
        self,
        db: Session,
        storage: PhysicalTreeAdapter,
        tree_cache: Optional[FolderTreeCache] = None,
    ):
        self.db = db
        self.storage = storage
        self.tree_cache = tree_cache if tree_cache is not None else FolderTreeCache()
        self.folder_repo = FolderRepository(db)
        self.material_repo = MaterialRepository(db)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_folders(self) -> List[FolderTreeNode]:
        return self.tree_cache.get_tree(self.folder_repo)

    def get_folders_flat(self) -> List[Folder]:
        return self.folder_repo.get_all()

    def get_folder(self, folder_id: str) -> Folder:
        return self.folder_repo.get_by_id(folder_id)

    def get_folder_id_by_path(self, path: str) -> Optional[str]:
        folder = self.folder_repo.get_by_path(path)
        return folder.id if folder else None

    def list_materials(self, folder_id: str) -> List[Material]:
        folder = self.folder_repo.get_by_id(folder_id)
        return self.material_repo.list_by_folder_path(folder.path)

    # ------------------------------------------------------------------
    # Mutators
    # ------------------------------------------------------------------

    def create_folder(self, name: str, parent_id: str, created_by: str) -> Folder:
        """Create a folder row and its directory.

        The row is flushed first and committed only after the directory
        exists; a failed mkdir rolls the row back instead of leaving
        metadata without a physical backing. A failed commit removes the
        directory again when this call created it and raises
        ``DatabaseBusyError``.
        """
        sanitized = sanitize_folder_name(name)
        if not sanitized:
            logger.warning("Rejected folder name", extra={"raw_name": name})
            raise InvalidNameError(name)

        parent_id = (parent_id or "").strip()
        parent_path = self.folder_repo.get_by_id(parent_id).path if parent_id else ""
        path = build_folder_path(parent_path, sanitized)

        if self.folder_repo.get_by_path(path) is not None:
            raise DestinationExistsError(path)

        directory = self.storage.folder_dir(path)
        try:
            folder = self.folder_repo.add(
                folder_id=self._generate_folder_id(),
                name=sanitized,
                parent_id=parent_id,
                path=path,
                created_by=created_by,
                created_date=utcnow(),
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Folder insert failed", extra={"path": path, "error": str(e)})
            raise DatabaseBusyError("create_folder", e) from e

        # An existing directory is adopted and must survive a failed commit.
        created_dir = not self.storage.dir_exists(directory)
        try:
            self.storage.ensure_dir(directory)
        except PhysicalCreateFailedError:
            self.db.rollback()
            raise

        try:
            self.db.commit()
        except IntegrityError as e:
            # Lost a race with a concurrent create of the same path; the
            # directory belongs to the winner.
            self.db.rollback()
            raise DestinationExistsError(path) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            if created_dir:
                self.storage.remove_dir(directory)
            logger.error(
                "Folder commit failed; directory creation undone",
                extra={"path": path, "directory_removed": created_dir, "error": str(e)},
            )
            raise DatabaseBusyError("create_folder", e) from e

        self.db.refresh(folder)
        logger.info(
            "Folder created",
            extra={"folder_id": folder.id, "path": path, "raw_name": name},
        )
        return folder

    def update_folder_name(self, folder_id: str, new_name: str) -> Folder:
        """Rename a folder. Same name after sanitization is a no-op with no I/O."""
        folder = self.folder_repo.get_by_id(folder_id)

        sanitized = sanitize_folder_name(new_name)
        if not sanitized:
            logger.warning("Rejected folder name", extra={"folder_id": folder_id, "raw_name": new_name})
            raise InvalidNameError(new_name)

        if sanitized == folder.name:
            logger.debug("Folder name unchanged", extra={"folder_id": folder_id})
            return folder

        parent_path = self._parent_path(folder)
        new_path = build_folder_path(parent_path, sanitized)
        return self._relocate(folder, new_path, new_name=sanitized)

    def move_folder(self, folder_id: str, target_parent_id: str) -> Folder:
        """Re-parent a folder (``""`` moves it to the root). The name is kept.

        Creating a missing branch for the target raises
        ``PhysicalCreateFailedError`` before anything is renamed.
        """
        target_parent_id = (target_parent_id or "").strip()
        folder = self.folder_repo.get_by_id(folder_id)

        if target_parent_id == folder_id:
            raise SelfParentError(folder_id)

        children_by_parent = self._child_index()
        if target_parent_id and target_parent_id in self._descendant_ids(folder_id, children_by_parent):
            raise CyclicMoveError(folder_id, target_parent_id)

        if (folder.parent_id or "") == target_parent_id:
            logger.debug("Folder already under target parent", extra={"folder_id": folder_id})
            return folder

        target_parent_path = (
            self.folder_repo.get_by_id(target_parent_id).path if target_parent_id else ""
        )
        new_path = build_folder_path(target_parent_path, folder.name)
        return self._relocate(
            folder,
            new_path,
            new_parent_id=target_parent_id,
            children_by_parent=children_by_parent,
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _generate_folder_id() -> str:
        return f"folder-{uuid.uuid4().hex[:12]}"

    def _parent_path(self, folder: Folder) -> str:
        if not folder.parent_id:
            return ""
        parent = self.folder_repo.get_by_id_optional(folder.parent_id)
        return parent.path if parent else ""

    def _child_index(self) -> ChildIndex:
        """One flat scan grouped by parent_id; propagation then runs in memory."""
        children_by_parent: ChildIndex = {}
        for row in self.folder_repo.get_all():
            children_by_parent.setdefault(row.parent_id or "", []).append(row)
        return children_by_parent

    @staticmethod
    def _descendant_ids(folder_id: str, children_by_parent: ChildIndex) -> Set[str]:
        """Depth-first walk over the parent relation."""
        found: Set[str] = set()
        stack = [folder_id]
        while stack:
            current = stack.pop()
            for child in children_by_parent.get(current, []):
                if child.id not in found:
                    found.add(child.id)
                    stack.append(child.id)
        return found

    def _relocate(
        self,
        folder: Folder,
        new_path: str,
        new_name: Optional[str] = None,
        new_parent_id: Optional[str] = None,
        children_by_parent: Optional[ChildIndex] = None,
    ) -> Folder:
        """Shared tail of rename and move: guard, rename, propagate, commit."""
        old_path = folder.path
        old_dir = self.storage.folder_dir(old_path)
        new_dir = self.storage.folder_dir(new_path)

        existing = self.folder_repo.get_by_path(new_path)
        if self.storage.dir_exists(new_dir) or (existing is not None and existing.id != folder.id):
            logger.warning(
                "Destination already exists",
                extra={"folder_id": folder.id, "new_path": new_path, "directory": str(new_dir)},
            )
            raise DestinationExistsError(new_path)

        if new_parent_id is not None:
            # The logical target may exist while its branch is not on disk yet.
            self.storage.ensure_dir(new_dir.parent)

        # Filesystem first: on failure nothing in the index has changed.
        self.storage.rename_dir(old_dir, new_dir)

        try:
            now = utcnow()
            if children_by_parent is None:
                children_by_parent = self._child_index()
            descendants = self._propagate(folder.id, old_path, new_path, children_by_parent, now)
            materials = self.material_repo.retarget_folder_path(old_path, new_path, now)

            folder.path = new_path
            if new_name is not None:
                folder.name = new_name
            if new_parent_id is not None:
                folder.parent_id = new_parent_id
            folder.updated_date = now
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            compensated = self._compensate(new_dir, old_dir)
            raise PartialFailureError(old_path, new_path, compensated, e) from e

        self.db.refresh(folder)
        logger.info(
            "Folder relocated",
            extra={
                "folder_id": folder.id,
                "old_path": old_path,
                "new_path": new_path,
                "descendants": descendants,
                "materials": materials,
            },
        )
        return folder

    def _propagate(
        self,
        parent_id: str,
        old_parent_path: str,
        new_parent_path: str,
        children_by_parent: ChildIndex,
        now: datetime,
    ) -> int:
        """Pre-order rewrite of every descendant's path and material pointers.

        Returns the number of descendant folders rewritten.
        """
        count = 0
        for child in children_by_parent.get(parent_id, []):
            child_old_path = child.path
            child_new_path = rebase_child_path(child_old_path, old_parent_path, new_parent_path)

            self._relocate_child_dir(child_old_path, child_new_path)
            child.path = child_new_path
            child.updated_date = now
            self.material_repo.retarget_folder_path(child_old_path, child_new_path, now)

            count += 1 + self._propagate(
                child.id, child_old_path, child_new_path, children_by_parent, now
            )
        return count

    def _relocate_child_dir(self, old_path: str, new_path: str) -> None:
        """Best effort: a failure is logged and propagation carries on."""
        old_dir = self.storage.folder_dir(old_path)
        new_dir = self.storage.folder_dir(new_path)

        # Normal case: the ancestor's rename already carried this directory along.
        if not self.storage.dir_exists(old_dir) and self.storage.dir_exists(new_dir):
            return

        try:
            self.storage.rename_dir(old_dir, new_dir)
        except PhysicalRenameFailedError as e:
            logger.warning(
                "Descendant directory not relocated",
                extra={"old_path": old_path, "new_path": new_path, "error": e.message},
            )

    def _compensate(self, new_dir: Path, old_dir: Path) -> bool:
        """Rename the directory back after a failed index commit."""
        try:
            self.storage.rename_dir(new_dir, old_dir)
        except PhysicalRenameFailedError:
            logger.critical(
                "Compensating rename failed; index and filesystem disagree",
                extra={"directory": str(new_dir), "expected": str(old_dir)},
            )
            return False
        logger.error(
            "Index update failed; directory renamed back",
            extra={"directory": str(old_dir)},
        )
        return True
