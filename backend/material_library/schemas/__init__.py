"""Pydantic schemas for API validation."""

from .folder import (
    FolderCreate,
    FolderRename,
    FolderMove,
    FolderResponse,
    FolderIdResponse,
    FolderTreeNode,
    MaterialLocationResponse,
)

__all__ = [
    "FolderCreate",
    "FolderRename",
    "FolderMove",
    "FolderResponse",
    "FolderIdResponse",
    "FolderTreeNode",
    "MaterialLocationResponse",
]
