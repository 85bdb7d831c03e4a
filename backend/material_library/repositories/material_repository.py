"""Repository for material location records."""

from datetime import datetime
from typing import List

from sqlalchemy.orm import Session

from ..models.material import Material


class MaterialRepository:
    """Data access for the folder_path pointer on materials."""

    def __init__(self, db: Session):
        self.db = db

    def list_by_folder_path(self, folder_path: str) -> List[Material]:
        """Materials bound to exactly this folder path (not its descendants)."""
        return (
            self.db.query(Material)
            .filter(Material.folder_path == folder_path)
            .order_by(Material.title)
            .all()
        )

    def retarget_folder_path(self, old_path: str, new_path: str, now: datetime) -> int:
        """Point every material at *old_path* to *new_path*. Exact match only.

        Materials inside descendant folders carry the descendant's own path and
        are retargeted when that descendant is propagated.
        """
        if not old_path:
            return 0

        materials = self.db.query(Material).filter(Material.folder_path == old_path).all()
        for material in materials:
            material.folder_path = new_path
            material.updated_date = now
        return len(materials)
