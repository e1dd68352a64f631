# tests/test_schemas.py
import pytest
from bson import ObjectId
from pydantic import ValidationError

from schemas import Category, Product

CATEGORY_ID = str(ObjectId())


def test_category_defaults_and_trim():
    c = Category(name="  Frutas  ", description=" Frescas ")
    assert c.name == "Frutas"
    assert c.description == "Frescas"
    assert c.image == "default-category.jpg"
    assert c.active is True


@pytest.mark.parametrize("data", [
    {},
    {"name": "   "},
    {"name": "a" * 51},
    {"name": "ok", "description": "d" * 201},
])
def test_category_rejects(data):
    with pytest.raises(ValidationError):
        Category(**data)


def test_category_name_limit_is_inclusive():
    assert Category(name="a" * 50).name == "a" * 50


def test_product_defaults():
    p = Product(name="Banana", price=5.99, category=CATEGORY_ID)
    assert p.quantity == 0
    assert p.image == "default-product.jpg"
    assert p.active is True


@pytest.mark.parametrize("overrides", [
    {"price": 0},
    {"price": -1},
    {"quantity": -1},
    {"name": "n" * 101},
    {"description": "d" * 501},
    {"name": ""},
])
def test_product_rejects(overrides):
    data = {"name": "Banana", "price": 5.99, "quantity": 1, "category": CATEGORY_ID}
    data.update(overrides)
    with pytest.raises(ValidationError):
        Product(**data)


def test_product_requires_name_price_category():
    with pytest.raises(ValidationError) as info:
        Product()
    missing = {e["loc"][0] for e in info.value.errors()}
    assert missing == {"name", "price", "category"}
