"""Material model (location-relevant subset)."""

from sqlalchemy import Column, Index, String, Text, DateTime
from ..database import Base
from .folder import utcnow


class Material(Base):
    """A learning material stored on the shared drive.

    ``folder_path`` is a string pointer into the folder path namespace, not a
    foreign key: it must equal some ``Folder.path`` exactly. An empty value
    means the material is uncategorized.
    """

    __tablename__ = "materials"
    __table_args__ = (
        Index("ix_materials_folder_path", "folder_path"),
    )

    id = Column(String(50), primary_key=True)
    title = Column(String(255), nullable=False)
    folder_path = Column(Text, nullable=False, default="")

    created_by = Column(String(255), nullable=False)
    created_date = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_date = Column(DateTime(timezone=True), nullable=False, default=utcnow)
