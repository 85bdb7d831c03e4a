"""Folder and tree schemas."""

from pydantic import BaseModel, field_validator
from datetime import datetime
from typing import Optional, List


def _empty_if_none(v: Optional[str]) -> str:
    return (v or "").strip()


class FolderCreate(BaseModel):
    """Request to create a folder. ``name`` is sanitized by the service."""
    name: str
    parent_id: str = ""
    created_by: str

    @field_validator('parent_id', mode='before')
    @classmethod
    def normalize_parent_id(cls, v: Optional[str]) -> str:
        return _empty_if_none(v)

    @field_validator('created_by')
    @classmethod
    def validate_created_by(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("created_by cannot be empty")
        return v


class FolderRename(BaseModel):
    """Request to rename a folder."""
    name: str


class FolderMove(BaseModel):
    """Request to move a folder under a new parent."""
    parent_id: str = ""  # "" = root level

    @field_validator('parent_id', mode='before')
    @classmethod
    def normalize_parent_id(cls, v: Optional[str]) -> str:
        return _empty_if_none(v)


class FolderResponse(BaseModel):
    """Folder in API responses."""
    id: str
    name: str
    parent_id: str = ""
    path: str
    created_by: str
    created_date: datetime

    class Config:
        from_attributes = True


class FolderIdResponse(BaseModel):
    """Result of a path lookup."""
    id: str


class FolderTreeNode(BaseModel):
    """A folder with its nested children."""
    id: str
    name: str
    parent_id: str = ""
    path: str
    created_by: str
    created_date: datetime
    children: List['FolderTreeNode'] = []

    class Config:
        from_attributes = True


class MaterialLocationResponse(BaseModel):
    """Location-relevant view of a material."""
    id: str
    title: str
    folder_path: str
    updated_date: datetime

    class Config:
        from_attributes = True
