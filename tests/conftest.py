import mongomock
import pytest
from fastapi.testclient import TestClient

import config
from database import Database
from main import create_app


@pytest.fixture(autouse=True)
def uploads_dir(tmp_path, monkeypatch):
    path = tmp_path / "uploads"
    monkeypatch.setattr(config, "UPLOADS_DIR", path)
    return path


@pytest.fixture
def db():
    return Database(client=mongomock.MongoClient(), name="catalog_test")


@pytest.fixture
def client(db):
    with TestClient(create_app(db)) as c:
        yield c


@pytest.fixture
def category(client):
    r = client.post("/api/categories", json={"name": "Frutas", "description": "Frutas frescas"})
    assert r.status_code == 201
    return r.json()["data"]
