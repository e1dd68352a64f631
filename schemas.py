from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

# Document schemas. Each is validated before anything is written to MongoDB.

class Category(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=50, description="Unique category name")
    description: Optional[str] = Field(None, max_length=200)
    image: str = Field("default-category.jpg", description="Image file name")
    active: bool = True

class Product(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    price: float = Field(..., gt=0)
    quantity: int = Field(0, ge=0)
    category: str = Field(..., description="Id of an existing category")
    image: str = Field("default-product.jpg", description="Image file name")
    active: bool = True

# Request bodies. Fields are all optional here so that missing or out of
# range values are reported by the document schemas above.

class CategoryIn(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None

class ProductIn(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    quantity: Optional[int] = None
    category: Optional[str] = None
    image: Optional[str] = None
    active: Optional[bool] = None
