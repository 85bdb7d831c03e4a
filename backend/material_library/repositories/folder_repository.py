"""Repository for the folder index.

Write methods only add or flush; committing is the service's job so that
one rename or move lands in a single transaction.
"""

from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import func

from ..exceptions import FolderNotFoundError
from ..models.folder import Folder
from .base import BaseRepository


class FolderRepository(BaseRepository[Folder]):
    """Data access layer for folder rows."""

    model_class = Folder
    not_found_error = FolderNotFoundError

    def add(
        self,
        folder_id: str,
        name: str,
        parent_id: str,
        path: str,
        created_by: str,
        created_date: datetime,
    ) -> Folder:
        """Stage a new folder row (flushed, not committed)."""
        folder = Folder(
            id=folder_id,
            name=name,
            parent_id=parent_id or "",
            path=path,
            created_by=created_by,
            created_date=created_date,
            updated_date=created_date,
        )
        self.db.add(folder)
        self.db.flush()
        return folder

    def get_by_path(self, path: str) -> Optional[Folder]:
        """Get folder by full materialized path."""
        return self.db.query(Folder).filter(Folder.path == path).first()

    def get_all(self) -> List[Folder]:
        """Full scan, ordered by path."""
        return self.db.query(Folder).order_by(Folder.path).all()

    def fingerprint(self, include_updates: bool = False) -> Tuple[Optional[datetime], ...]:
        """Cheap aggregate used to decide whether a cached tree is still valid.

        ``MAX(created_date)`` alone does not move on rename or move.
        """
        if include_updates:
            row = self.db.query(
                func.max(Folder.created_date), func.max(Folder.updated_date)
            ).one()
            return (row[0], row[1])
        return (self.db.query(func.max(Folder.created_date)).scalar(),)
