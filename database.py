"""
MongoDB access for the catalog.

A ``Database`` is built once at process start, connected in the app lifespan
and handed to the routes through the ``get_db`` dependency.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import Request
from pydantic import BaseModel
from pymongo import ASCENDING, TEXT, MongoClient, ReturnDocument

logger = logging.getLogger(__name__)

CATEGORIES = "categories"
PRODUCTS = "products"

Sort = Sequence[Tuple[str, int]]


class CastError(InvalidId):
    """A value could not be converted to the type stored at ``path``."""

    def __init__(self, path: str, value: Any):
        super().__init__(f"cast to ObjectId failed for value {value!r} at path {path!r}")
        self.path = path
        self.value = value


def to_object_id(value: Union[str, ObjectId], path: str = "_id") -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(value)
    except (InvalidId, TypeError) as exc:
        raise CastError(path, value) from exc


def serialize(value: Any) -> Any:
    """Make a stored document JSON friendly: ``_id`` becomes ``id`` and ObjectIds become strings."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, list):
        return [serialize(v) for v in value]
    if isinstance(value, dict):
        out = {}
        for k, v in value.items():
            out["id" if k == "_id" else k] = serialize(v)
        return out
    return value


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Database:
    def __init__(
        self,
        url: Optional[str] = None,
        name: str = "catalog",
        client: Optional[MongoClient] = None,
    ):
        self.url = url
        self.name = name
        self._client = client

    @property
    def client(self) -> MongoClient:
        if self._client is None:
            raise RuntimeError("database is not connected")
        return self._client

    @property
    def db(self):
        return self.client[self.name]

    def __getitem__(self, collection: str):
        return self.db[collection]

    def connect(self) -> None:
        if self._client is None:
            self._client = MongoClient(self.url, tz_aware=True)
        self._client.admin.command("ping")
        logger.info("MongoDB connected, database: %s", self.name)

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
            logger.info("MongoDB connection closed")

    def ensure_indexes(self) -> None:
        self[CATEGORIES].create_index("name", unique=True)
        self[PRODUCTS].create_index([("category", ASCENDING), ("active", ASCENDING)])
        self[PRODUCTS].create_index([("name", TEXT), ("description", TEXT)])

    # Documents

    def create_document(self, collection: str, data: Union[BaseModel, Dict[str, Any]]) -> Dict[str, Any]:
        doc = data.model_dump() if isinstance(data, BaseModel) else dict(data)
        now = _now()
        doc["created_at"] = now
        doc["updated_at"] = now
        result = self[collection].insert_one(doc)
        # Re-read so the caller sees what was stored (timestamps are truncated to ms).
        return self[collection].find_one({"_id": result.inserted_id})

    def get_documents(
        self,
        collection: str,
        filter_dict: Optional[Dict[str, Any]] = None,
        sort: Optional[Sort] = None,
    ) -> List[Dict[str, Any]]:
        cursor = self[collection].find(filter_dict or {})
        if sort:
            cursor = cursor.sort(list(sort))
        return list(cursor)

    def find_one(self, collection: str, filter_dict: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self[collection].find_one(filter_dict)

    def find_by_id(self, collection: str, doc_id: Union[str, ObjectId]) -> Optional[Dict[str, Any]]:
        return self[collection].find_one({"_id": to_object_id(doc_id)})

    def update_document(
        self, collection: str, doc_id: Union[str, ObjectId], changes: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        changes = dict(changes)
        changes["updated_at"] = _now()
        return self[collection].find_one_and_update(
            {"_id": to_object_id(doc_id)},
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )

    def delete_document(self, collection: str, doc_id: Union[str, ObjectId]) -> bool:
        res = self[collection].delete_one({"_id": to_object_id(doc_id)})
        return res.deleted_count > 0

    def count_documents(self, collection: str, filter_dict: Dict[str, Any]) -> int:
        return self[collection].count_documents(filter_dict)


def get_db(request: Request) -> Database:
    return request.app.state.db
