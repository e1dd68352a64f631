# tests/test_app.py
import mongomock
import pytest
from fastapi.testclient import TestClient

from database import Database
from main import create_app


def test_health(client):
    r = client.get("/api/health")
    assert r.status_code == 200
    assert r.json() == {"success": True, "status": "API is running"}


def test_banner(client):
    r = client.get("/")
    assert r.status_code == 200
    assert r.json() == {"name": "Catalog API", "version": "1.0.0", "status": "online"}


def test_unknown_route(client):
    r = client.get("/api/nothing-here")
    assert r.status_code == 404
    assert r.json() == {"success": False, "message": "route not found"}


def test_indexes_created_on_startup(client, db):
    assert "name_1" in db["categories"].index_information()
    assert "category_1_active_1" in db["products"].index_information()
    keys = [dict(ix["key"]) for ix in db["products"].index_information().values()]
    assert {"name": "text", "description": "text"} in keys


@pytest.mark.parametrize("method, path", [
    ("PATCH", "/api/categories/5f00a1b2c3d4e5f6a7b8c9d0"),
    ("POST", "/"),
    ("DELETE", "/api/categories"),
])
def test_unsupported_method_is_unknown_route(client, method, path):
    r = client.request(method, path)
    assert r.status_code == 404
    assert r.json() == {"success": False, "message": "route not found"}


def test_uploads_dir_created_on_startup_only(db, uploads_dir):
    app = create_app(db)
    assert not uploads_dir.exists()
    with TestClient(app):
        assert uploads_dir.is_dir()


def test_unexpected_error_is_normalized(monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "production")
    app = create_app(Database(client=mongomock.MongoClient(), name="catalog_test"))

    @app.get("/boom")
    def boom():
        raise RuntimeError("kaboom")

    with TestClient(app) as c:
        r = c.get("/boom")
    assert r.status_code == 500
    assert r.json() == {"success": False, "message": "an unexpected error occurred"}


def test_database_closed_on_shutdown(db):
    with TestClient(create_app(db)) as c:
        assert c.get("/api/health").status_code == 200
        assert db.client is not None
    assert db._client is None
