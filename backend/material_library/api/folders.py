"""Folder API: tree, flat list, lookups, create, rename, and move.

Single router for all folder operations. Delegates to FolderService (deep
module); domain errors surface through the LibraryException handler.
"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import List

from ..schemas.folder import (
    FolderCreate,
    FolderIdResponse,
    FolderMove,
    FolderRename,
    FolderResponse,
    FolderTreeNode,
    MaterialLocationResponse,
)
from ..services.folder_service import FolderService
from .deps import get_folder_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/folders", tags=["folders"])


# -- Reads ----------------------------------------------------------------

@router.get("/tree", response_model=List[FolderTreeNode])
def get_folder_tree(service: FolderService = Depends(get_folder_service)):
    """Hierarchical folder tree (served from the fingerprint cache)."""
    return service.get_folders()


@router.get("", response_model=List[FolderResponse])
def list_folders(service: FolderService = Depends(get_folder_service)):
    """Flat folder list, ordered by path. Always read from the index."""
    return service.get_folders_flat()


@router.get("/by-path", response_model=FolderIdResponse)
def get_folder_id_by_path(
    path: str = Query(..., min_length=1),
    service: FolderService = Depends(get_folder_service),
):
    folder_id = service.get_folder_id_by_path(path)
    if folder_id is None:
        raise HTTPException(status_code=404, detail=f"No folder at path: {path}")
    return FolderIdResponse(id=folder_id)


@router.get("/{folder_id}", response_model=FolderResponse)
def get_folder(folder_id: str, service: FolderService = Depends(get_folder_service)):
    return service.get_folder(folder_id)


@router.get("/{folder_id}/materials", response_model=List[MaterialLocationResponse])
def list_folder_materials(folder_id: str, service: FolderService = Depends(get_folder_service)):
    """Materials whose folder_path equals this folder's path."""
    return service.list_materials(folder_id)


# -- Mutations ------------------------------------------------------------

@router.post("", response_model=FolderResponse, status_code=201)
def create_folder(data: FolderCreate, service: FolderService = Depends(get_folder_service)):
    return service.create_folder(data.name, data.parent_id, data.created_by)


@router.put("/{folder_id}/name", response_model=FolderResponse)
def rename_folder(
    folder_id: str,
    data: FolderRename,
    service: FolderService = Depends(get_folder_service),
):
    """Rename a folder; descendants and contained materials follow."""
    return service.update_folder_name(folder_id, data.name)


@router.put("/{folder_id}/move", response_model=FolderResponse)
def move_folder(
    folder_id: str,
    data: FolderMove,
    service: FolderService = Depends(get_folder_service),
):
    """Move a folder under another parent (empty parent_id = root)."""
    return service.move_folder(folder_id, data.parent_id)
