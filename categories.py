import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Response
from pydantic import ValidationError
from pymongo.errors import DuplicateKeyError

from database import CATEGORIES, PRODUCTS, Database, get_db, serialize
from errors import bad_request, field_errors, not_found, validation
from schemas import Category as CategorySchema, CategoryIn
from validators import validate_object_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/categories", tags=["categories"])

CATEGORY_NOT_FOUND = "category not found"
DUPLICATE_NAME = "a category with this name already exists"


def _validated(data: Dict[str, Any]) -> CategorySchema:
    try:
        return CategorySchema(**data)
    except ValidationError as exc:
        raise validation(errors=field_errors(exc.errors())) from exc


@router.get("")
def list_categories(db: Database = Depends(get_db)):
    docs = db.get_documents(CATEGORIES, sort=[("name", 1)])
    return {"success": True, "count": len(docs), "data": serialize(docs)}


@router.get("/{id}", dependencies=[Depends(validate_object_id())])
def get_category(id: str, db: Database = Depends(get_db)):
    doc = db.find_by_id(CATEGORIES, id)
    if not doc:
        raise not_found(CATEGORY_NOT_FOUND)
    # Products are looked up on every read, never stored on the category.
    doc["products"] = db.get_documents(PRODUCTS, {"category": doc["_id"]}, sort=[("created_at", -1)])
    return {"success": True, "data": serialize(doc)}


@router.post("", status_code=201)
def create_category(payload: CategoryIn, db: Database = Depends(get_db)):
    category = _validated(payload.model_dump(exclude_none=True))
    try:
        doc = db.create_document(CATEGORIES, category)
    except DuplicateKeyError as exc:
        raise bad_request(DUPLICATE_NAME) from exc
    logger.info("category created: %s (%s)", doc["name"], doc["_id"])
    return {"success": True, "data": serialize(doc)}


@router.put("/{id}", dependencies=[Depends(validate_object_id())])
def update_category(id: str, payload: CategoryIn, db: Database = Depends(get_db)):
    existing = db.find_by_id(CATEGORIES, id)
    if not existing:
        raise not_found(CATEGORY_NOT_FOUND)

    changes = payload.model_dump(exclude_unset=True)
    merged = {k: existing[k] for k in CategorySchema.model_fields if existing.get(k) is not None}
    merged.update(changes)
    category = _validated(merged)

    try:
        doc = db.update_document(CATEGORIES, id, category.model_dump(include=set(changes)))
    except DuplicateKeyError as exc:
        raise bad_request(DUPLICATE_NAME) from exc
    if doc is None:
        raise not_found(CATEGORY_NOT_FOUND)
    return {"success": True, "data": serialize(doc)}


@router.delete("/{id}", status_code=204, dependencies=[Depends(validate_object_id())])
def delete_category(id: str, db: Database = Depends(get_db)):
    existing = db.find_by_id(CATEGORIES, id)
    if not existing:
        raise not_found(CATEGORY_NOT_FOUND)
    if db.count_documents(PRODUCTS, {"category": existing["_id"]}) > 0:
        raise bad_request("cannot delete a category with associated products")
    db.delete_document(CATEGORIES, existing["_id"])
    logger.info("category deleted: %s", id)
    return Response(status_code=204)
