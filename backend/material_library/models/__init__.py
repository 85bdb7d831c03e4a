"""Database models."""

from .folder import Folder
from .material import Material

__all__ = ["Folder", "Material"]
