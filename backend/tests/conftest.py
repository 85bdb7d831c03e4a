"""Shared test fixtures for the material library test suite.

Every test gets its own in-memory SQLite database (StaticPool keeps the
single connection alive across threads for the TestClient) and its own
storage root under pytest's tmp_path, so the index and the directory tree
start empty and isolated.
"""

import os

# Force a throwaway database and no storage root before any app imports.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["STORAGE_ROOT"] = ""
os.environ["LOG_FORMAT"] = "text"
os.environ["FOLDER_CACHE_TRACK_UPDATES"] = "false"

import uuid

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from material_library import models  # noqa: F401  (registers tables on Base)
from material_library.api.deps import get_storage
from material_library.database import Base, get_db
from material_library.main import create_app
from material_library.models import Folder, Material
from material_library.services.folder_service import FolderService
from material_library.services.folder_tree_cache import FolderTreeCache
from material_library.storage.physical_tree import PhysicalTreeAdapter


@pytest.fixture()
def engine():
    """Fresh in-memory database per test."""
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def db(engine):
    """Per-test database session."""
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


@pytest.fixture()
def storage_root(tmp_path):
    root = tmp_path / "drive"
    root.mkdir()
    return root


@pytest.fixture()
def storage(storage_root) -> PhysicalTreeAdapter:
    return PhysicalTreeAdapter(storage_root)


@pytest.fixture()
def tree_cache() -> FolderTreeCache:
    return FolderTreeCache()


@pytest.fixture()
def service(db, storage, tree_cache) -> FolderService:
    return FolderService(db, storage, tree_cache)


@pytest.fixture()
def client(db, storage):
    """FastAPI TestClient with the DB and storage dependencies overridden."""
    app = create_app()

    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def make_material(db, folder_path: str, title: str = "Material") -> Material:
    """Factory for a material bound to *folder_path*."""
    material = Material(
        id=f"mat-{uuid.uuid4().hex[:8]}",
        title=title,
        folder_path=folder_path,
        created_by="user1",
    )
    db.add(material)
    db.commit()
    db.refresh(material)
    return material


def assert_index_consistent(db) -> None:
    """Path invariant, path uniqueness, and acyclicity over every folder row."""
    folders = {f.id: f for f in db.query(Folder).all()}

    paths = [f.path for f in folders.values()]
    assert len(paths) == len(set(paths)), f"duplicate paths: {sorted(paths)}"

    for folder in folders.values():
        if folder.parent_id:
            parent = folders[folder.parent_id]
            assert folder.path == f"{parent.path}/{folder.name}"
        else:
            assert folder.path == folder.name

        seen = {folder.id}
        current = folder
        while current.parent_id:
            assert current.parent_id not in seen, f"cycle through {folder.id}"
            seen.add(current.parent_id)
            current = folders[current.parent_id]
