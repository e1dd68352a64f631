# tests/test_validators.py
import pytest
from bson import ObjectId
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from errors import ApiError, register_error_handlers
from validators import parse_object_id, validate_object_id

app = FastAPI()
register_error_handlers(app)


@app.get("/items/{id}", dependencies=[Depends(validate_object_id())])
def get_item(id: str):
    return {"id": id}


@app.get("/owners/{owner_id}", dependencies=[Depends(validate_object_id("owner_id"))])
def get_owner(owner_id: str):
    return {"id": owner_id}


client = TestClient(app)


def test_valid_id_passes_through():
    oid = str(ObjectId())
    r = client.get(f"/items/{oid}")
    assert r.status_code == 200
    assert r.json() == {"id": oid}


@pytest.mark.parametrize("bad", ["123", "not-an-id", "z" * 24, "a" * 25])
def test_malformed_id_is_rejected(bad):
    r = client.get(f"/items/{bad}")
    assert r.status_code == 400
    assert r.json() == {"success": False, "message": "invalid id"}


def test_message_names_the_parameter():
    r = client.get("/owners/123")
    assert r.status_code == 400
    assert r.json()["message"] == "invalid owner_id"


def test_parse_object_id():
    oid = ObjectId()
    assert parse_object_id(str(oid)) == oid
    with pytest.raises(ApiError) as info:
        parse_object_id("bad", "invalid category id")
    assert info.value.status_code == 400
    assert info.value.message == "invalid category id"
