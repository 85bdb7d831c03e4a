"""Tests for the folder API endpoints."""

from sqlalchemy.exc import OperationalError

from material_library.api.deps import get_storage
from material_library.storage.physical_tree import PhysicalTreeAdapter
from tests.conftest import make_material


def _create(client, name, parent_id="", created_by="user1"):
    resp = client.post(
        "/api/folders",
        json={"name": name, "parent_id": parent_id, "created_by": created_by},
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


class TestCreate:

    def test_create_root_folder(self, client, storage):
        data = _create(client, "Security")
        assert data["id"].startswith("folder-")
        assert data["path"] == "Security"
        assert data["parent_id"] == ""
        assert data["created_by"] == "user1"
        assert storage.dir_exists(storage.folder_dir("Security"))

    def test_null_parent_means_root(self, client):
        resp = client.post(
            "/api/folders",
            json={"name": "Security", "parent_id": None, "created_by": "user1"},
        )
        assert resp.status_code == 201
        assert resp.json()["path"] == "Security"

    def test_create_nested_folder(self, client):
        parent = _create(client, "Security")
        child = _create(client, "Malware", parent["id"])
        assert child["path"] == "Security/Malware"

    def test_invalid_name_returns_400(self, client):
        resp = client.post("/api/folders", json={"name": "...", "created_by": "user1"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "INVALID_NAME"

    def test_missing_parent_returns_404(self, client):
        resp = client.post(
            "/api/folders",
            json={"name": "X", "parent_id": "folder-missing", "created_by": "user1"},
        )
        assert resp.status_code == 404
        assert resp.json()["error"] == "FOLDER_NOT_FOUND"

    def test_duplicate_returns_409(self, client):
        _create(client, "Security")
        resp = client.post("/api/folders", json={"name": "Security", "created_by": "user2"})
        assert resp.status_code == 409
        assert resp.json()["error"] == "DESTINATION_EXISTS"

    def test_blank_creator_rejected(self, client):
        resp = client.post("/api/folders", json={"name": "Security", "created_by": "  "})
        assert resp.status_code == 422

    def test_locked_database_returns_503(self, client, db, storage, monkeypatch):
        def _failing_commit():
            raise OperationalError("INSERT INTO folders", {}, Exception("database is locked"))

        monkeypatch.setattr(db, "commit", _failing_commit)

        resp = client.post("/api/folders", json={"name": "Security", "created_by": "user1"})

        assert resp.status_code == 503
        assert resp.json()["error"] == "DATABASE_BUSY"
        assert not storage.dir_exists(storage.folder_dir("Security"))


class TestReads:

    def test_tree(self, client):
        parent = _create(client, "Security")
        _create(client, "Malware", parent["id"])
        _create(client, "Archive")

        resp = client.get("/api/folders/tree")

        assert resp.status_code == 200
        tree = resp.json()
        assert [n["name"] for n in tree] == ["Archive", "Security"]
        assert [n["path"] for n in tree[1]["children"]] == ["Security/Malware"]

    def test_flat_list(self, client):
        parent = _create(client, "B")
        _create(client, "C", parent["id"])
        _create(client, "A")
        resp = client.get("/api/folders")
        assert resp.status_code == 200
        assert [f["path"] for f in resp.json()] == ["A", "B", "B/C"]

    def test_get_folder(self, client):
        created = _create(client, "Security")
        resp = client.get(f"/api/folders/{created['id']}")
        assert resp.status_code == 200
        assert resp.json()["name"] == "Security"

    def test_get_missing_folder_returns_404(self, client):
        resp = client.get("/api/folders/folder-missing")
        assert resp.status_code == 404
        body = resp.json()
        assert body["error"] == "FOLDER_NOT_FOUND"
        assert body["details"]["folder_id"] == "folder-missing"

    def test_lookup_by_path(self, client):
        parent = _create(client, "Sécurité")
        child = _create(client, "Malware", parent["id"])
        resp = client.get("/api/folders/by-path", params={"path": "Sécurité/Malware"})
        assert resp.status_code == 200
        assert resp.json() == {"id": child["id"]}

    def test_lookup_by_unknown_path_returns_404(self, client):
        resp = client.get("/api/folders/by-path", params={"path": "Nowhere"})
        assert resp.status_code == 404

    def test_folder_materials(self, client, db):
        folder = _create(client, "Security")
        make_material(db, "Security", "Threat model")
        make_material(db, "", "Loose notes")
        resp = client.get(f"/api/folders/{folder['id']}/materials")
        assert resp.status_code == 200
        assert [m["title"] for m in resp.json()] == ["Threat model"]


class TestRename:

    def test_rename_propagates(self, client, db, storage):
        parent = _create(client, "Security")
        child = _create(client, "Malware", parent["id"])
        make_material(db, "Security/Malware", "Sample")

        resp = client.put(f"/api/folders/{parent['id']}/name", json={"name": "Sécurité "})

        assert resp.status_code == 200
        assert resp.json()["path"] == "Sécurité"
        assert client.get(f"/api/folders/{child['id']}").json()["path"] == "Sécurité/Malware"
        materials = client.get(f"/api/folders/{child['id']}/materials").json()
        assert [m["folder_path"] for m in materials] == ["Sécurité/Malware"]
        assert storage.dir_exists(storage.folder_dir("Sécurité/Malware"))

    def test_rename_collision_returns_409(self, client):
        a = _create(client, "A")
        _create(client, "B")
        resp = client.put(f"/api/folders/{a['id']}/name", json={"name": "B"})
        assert resp.status_code == 409
        assert resp.json()["error"] == "DESTINATION_EXISTS"

    def test_rename_missing_returns_404(self, client):
        resp = client.put("/api/folders/folder-missing/name", json={"name": "B"})
        assert resp.status_code == 404

    def test_rename_missing_directory_returns_503(self, client, storage):
        a = _create(client, "A")
        storage.folder_dir("A").rmdir()
        resp = client.put(f"/api/folders/{a['id']}/name", json={"name": "B"})
        assert resp.status_code == 503
        assert resp.json()["error"] == "PHYSICAL_RENAME_FAILED"
        assert client.get(f"/api/folders/{a['id']}").json()["path"] == "A"


class TestMove:

    def test_move_under_parent(self, client, storage):
        a = _create(client, "A")
        b = _create(client, "B")
        resp = client.put(f"/api/folders/{b['id']}/move", json={"parent_id": a["id"]})
        assert resp.status_code == 200
        assert resp.json()["path"] == "A/B"
        assert resp.json()["parent_id"] == a["id"]
        assert storage.dir_exists(storage.folder_dir("A/B"))

    def test_move_to_root(self, client):
        a = _create(client, "A")
        b = _create(client, "B", a["id"])
        resp = client.put(f"/api/folders/{b['id']}/move", json={"parent_id": None})
        assert resp.status_code == 200
        assert resp.json()["path"] == "B"

    def test_move_into_itself_returns_400(self, client):
        a = _create(client, "A")
        resp = client.put(f"/api/folders/{a['id']}/move", json={"parent_id": a["id"]})
        assert resp.status_code == 400
        assert resp.json()["error"] == "SELF_PARENT"

    def test_move_into_descendant_returns_400(self, client):
        a = _create(client, "A")
        b = _create(client, "B", a["id"])
        resp = client.put(f"/api/folders/{a['id']}/move", json={"parent_id": b["id"]})
        assert resp.status_code == 400
        assert resp.json()["error"] == "CYCLIC_MOVE"

    def test_move_to_missing_parent_returns_404(self, client):
        a = _create(client, "A")
        resp = client.put(f"/api/folders/{a['id']}/move", json={"parent_id": "folder-missing"})
        assert resp.status_code == 404


class TestStorageNotConfigured:

    def test_mutations_return_503(self, client):
        client.app.dependency_overrides[get_storage] = lambda: PhysicalTreeAdapter("")
        resp = client.post("/api/folders", json={"name": "Security", "created_by": "user1"})
        assert resp.status_code == 503
        assert resp.json()["error"] == "STORAGE_NOT_CONFIGURED"

    def test_reads_still_work(self, client):
        client.app.dependency_overrides[get_storage] = lambda: PhysicalTreeAdapter("")
        assert client.get("/api/folders/tree").status_code == 200
        assert client.get("/api/folders").json() == []
