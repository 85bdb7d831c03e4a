"""FastAPI dependencies wiring the folder service to its collaborators.

The tree cache lives on ``app.state`` so that each application instance
owns exactly one; tests override ``get_storage`` to point at a temp dir.
"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from ..core.config import settings
from ..database import get_db
from ..services.folder_service import FolderService
from ..services.folder_tree_cache import FolderTreeCache
from ..storage.physical_tree import PhysicalTreeAdapter


def get_storage() -> PhysicalTreeAdapter:
    return PhysicalTreeAdapter(settings.storage_root)


def get_folder_cache(request: Request) -> FolderTreeCache:
    return request.app.state.folder_cache


def get_folder_service(
    db: Session = Depends(get_db),
    storage: PhysicalTreeAdapter = Depends(get_storage),
    tree_cache: FolderTreeCache = Depends(get_folder_cache),
) -> FolderService:
    return FolderService(db, storage, tree_cache)
