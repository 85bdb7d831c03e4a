"""Folder model: one row per directory of the shared materials tree."""

from datetime import datetime, timezone

from sqlalchemy import Column, Index, String, Text, DateTime
from ..database import Base


def utcnow() -> datetime:
    """Timestamp with microsecond precision, set in application code.

    A server-side ``now()`` only has second resolution on SQLite, which
    would let two folders created in the same second share a fingerprint.
    """
    return datetime.now(timezone.utc)


class Folder(Base):
    """Relational index entry for a folder.

    ``path`` is materialized: ``parent.path + "/" + name``, or just ``name``
    for root folders. Root folders store ``parent_id = ""`` rather than NULL.
    """

    __tablename__ = "folders"
    __table_args__ = (
        Index("ix_folders_parent_id", "parent_id"),
        Index("ix_folders_created_date", "created_date"),
    )

    id = Column(String(50), primary_key=True)  # folder-{hex12}
    name = Column(String(255), nullable=False)
    parent_id = Column(String(50), nullable=False, default="")
    path = Column(Text, nullable=False, unique=True)

    created_by = Column(String(255), nullable=False)
    # created_date never changes after insert; it is the tree cache fingerprint.
    created_date = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_date = Column(DateTime(timezone=True), nullable=False, default=utcnow)
