import logging
import re
from typing import Any, Dict, List, Optional

from bson import ObjectId
from fastapi import APIRouter, Depends, Response
from pydantic import ValidationError

from database import CATEGORIES, PRODUCTS, Database, get_db, serialize, to_object_id
from errors import field_errors, not_found, validation
from schemas import Product as ProductSchema, ProductIn
from validators import parse_object_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["products"])

PRODUCT_NOT_FOUND = "product not found"
NEWEST_FIRST = [("created_at", -1), ("_id", -1)]


def _validated(data: Dict[str, Any]) -> ProductSchema:
    try:
        return ProductSchema(**data)
    except ValidationError as exc:
        raise validation(errors=field_errors(exc.errors())) from exc


def _check_category(db: Database, value: str) -> ObjectId:
    category_id = parse_object_id(value, "invalid category id")
    if db.find_by_id(CATEGORIES, category_id) is None:
        raise not_found("category not found")
    return category_id


def _populate(db: Database, docs: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Replace each product's category id with ``{id, name, description}``."""
    ids = list({d["category"] for d in docs if d.get("category") is not None})
    categories = {}
    if ids:
        for c in db.get_documents(CATEGORIES, {"_id": {"$in": ids}}):
            categories[c["_id"]] = {"_id": c["_id"], "name": c["name"], "description": c.get("description")}
    for d in docs:
        d["category"] = categories.get(d.get("category"))
    return docs


def _listing(db: Database, filter_dict: Dict[str, Any]):
    docs = _populate(db, db.get_documents(PRODUCTS, filter_dict, sort=NEWEST_FIRST))
    return {"success": True, "count": len(docs), "data": serialize(docs)}


@router.get("")
def list_products(
    category: Optional[str] = None,
    active: Optional[str] = None,
    search: Optional[str] = None,
    db: Database = Depends(get_db),
):
    filter_dict: Dict[str, Any] = {}
    if category:
        filter_dict["category"] = to_object_id(category, path="category")
    if active is not None:
        filter_dict["active"] = active == "true"
    if search:
        pattern = {"$regex": re.escape(search), "$options": "i"}
        filter_dict["$or"] = [{"name": pattern}, {"description": pattern}]
    return _listing(db, filter_dict)


@router.get("/category/{name}")
def list_products_by_category_name(name: str, db: Database = Depends(get_db)):
    category = db.find_one(CATEGORIES, {"name": {"$regex": f"^{re.escape(name)}$", "$options": "i"}})
    if not category:
        return {"success": True, "count": 0, "data": []}
    return _listing(db, {"category": category["_id"], "active": True})


@router.get("/{id}")
def get_product(id: str, db: Database = Depends(get_db)):
    product_id = parse_object_id(id)
    doc = db.find_by_id(PRODUCTS, product_id)
    if not doc:
        raise not_found(PRODUCT_NOT_FOUND)
    return {"success": True, "data": serialize(_populate(db, [doc])[0])}


@router.post("", status_code=201)
def create_product(payload: ProductIn, db: Database = Depends(get_db)):
    data = payload.model_dump(exclude_none=True)
    if "category" in data:
        _check_category(db, data["category"])

    fields = _validated(data).model_dump()
    fields["category"] = ObjectId(fields["category"])
    doc = db.create_document(PRODUCTS, fields)
    logger.info("product created: %s (%s)", doc["name"], doc["_id"])
    return {"success": True, "data": serialize(_populate(db, [doc])[0])}


@router.put("/{id}")
def update_product(id: str, payload: ProductIn, db: Database = Depends(get_db)):
    product_id = parse_object_id(id)
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("category") is not None:
        _check_category(db, changes["category"])

    existing = db.find_by_id(PRODUCTS, product_id)
    if not existing:
        raise not_found(PRODUCT_NOT_FOUND)

    merged = {k: existing[k] for k in ProductSchema.model_fields if existing.get(k) is not None}
    merged["category"] = str(existing["category"])
    merged.update(changes)
    fields = _validated(merged).model_dump(include=set(changes))
    if "category" in fields:
        fields["category"] = ObjectId(fields["category"])

    doc = db.update_document(PRODUCTS, product_id, fields)
    if doc is None:
        raise not_found(PRODUCT_NOT_FOUND)
    return {"success": True, "data": serialize(_populate(db, [doc])[0])}


@router.delete("/{id}", status_code=204)
def delete_product(id: str, db: Database = Depends(get_db)):
    product_id = parse_object_id(id)
    if not db.delete_document(PRODUCTS, product_id):
        raise not_found(PRODUCT_NOT_FOUND)
    logger.info("product deleted: %s", id)
    return Response(status_code=204)
