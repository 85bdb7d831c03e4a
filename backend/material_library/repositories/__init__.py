"""Data access repositories."""

from .base import BaseRepository
from .folder_repository import FolderRepository
from .material_repository import MaterialRepository

__all__ = [
    "BaseRepository",
    "FolderRepository",
    "MaterialRepository",
]
