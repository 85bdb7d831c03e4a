"""Business logic services."""

from .folder_service import FolderService
from .folder_tree_cache import FolderTreeCache

__all__ = ["FolderService", "FolderTreeCache"]
