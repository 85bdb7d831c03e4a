"""Fingerprint-invalidated cache of the hierarchical folder tree.

The fingerprint is ``MAX(created_date)`` over all folders: one aggregate
query instead of a full scan. Renames and moves do not touch
``created_date``, so with the default settings they stay invisible to
readers until a folder is created somewhere or the cache is reset.
``track_updates=True`` adds ``MAX(updated_date)`` to the fingerprint and
closes that gap.
"""

import logging
import threading
from typing import Any, Dict, List, Optional, Tuple

from ..models.folder import Folder
from ..repositories.folder_repository import FolderRepository
from ..schemas.folder import FolderTreeNode

logger = logging.getLogger(__name__)


def build_folder_tree(folders: List[Folder]) -> List[FolderTreeNode]:
    """Group flat rows by parent_id into a forest.

    Root folders have an empty parent_id. A folder whose parent row is
    missing is dropped from the tree (it still appears in the flat list).
    """
    nodes: Dict[str, FolderTreeNode] = {
        folder.id: FolderTreeNode(
            id=folder.id,
            name=folder.name,
            parent_id=folder.parent_id or "",
            path=folder.path,
            created_by=folder.created_by,
            created_date=folder.created_date,
            children=[],
        )
        for folder in folders
    }

    roots: List[FolderTreeNode] = []
    for folder in folders:
        node = nodes[folder.id]
        if not folder.parent_id:
            roots.append(node)
            continue
        parent = nodes.get(folder.parent_id)
        if parent is None:
            logger.warning(
                "Folder parent missing from index; omitted from tree",
                extra={"folder_id": folder.id, "parent_id": folder.parent_id},
            )
            continue
        parent.children.append(node)
    return roots


class FolderTreeCache:
    """Process-wide tree cache, owned by the application and injected into services.

    Create one per application (see ``main.create_app``); tests create their
    own and call ``reset()`` as needed.
    """

    def __init__(self, track_updates: bool = False):
        self.track_updates = track_updates
        self._lock = threading.Lock()
        self._data: Optional[List[FolderTreeNode]] = None
        self._fingerprint: Optional[Tuple[Any, ...]] = None

    @property
    def fingerprint(self) -> Optional[Tuple[Any, ...]]:
        return self._fingerprint

    @property
    def is_warm(self) -> bool:
        return self._data is not None

    def get_tree(self, repo: FolderRepository) -> List[FolderTreeNode]:
        """Return the cached tree, rebuilding it when the fingerprint moved."""
        fingerprint = repo.fingerprint(include_updates=self.track_updates)

        with self._lock:
            if self._data is not None and self._fingerprint == fingerprint:
                logger.debug("Folder tree cache hit")
                return self._data

        folders = repo.get_all()
        tree = build_folder_tree(folders)

        with self._lock:
            self._data = tree
            self._fingerprint = fingerprint

        logger.debug(
            "Folder tree cache rebuilt",
            extra={"folder_count": len(folders), "root_count": len(tree)},
        )
        return tree

    def reset(self) -> None:
        """Drop cached data; the next read rebuilds."""
        with self._lock:
            self._data = None
            self._fingerprint = None
