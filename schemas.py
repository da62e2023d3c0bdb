"""
Database Schemas for the Restaurant Menu

Each stored model below corresponds to a MongoDB collection; the collection
name is listed in COLLECTIONS. The *Input / *Update models describe what the
admin surface accepts for each entity.
"""
from typing import Annotated, List, Optional, Type, TypeVar, Union
from pydantic import AfterValidator, BaseModel, Field, HttpUrl, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError

from errors import ValidationError

_http_url = TypeAdapter(HttpUrl)


def _non_blank(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value


def _valid_url(value: str) -> str:
    value = _non_blank(value)
    try:
        _http_url.validate_python(value)
    except PydanticValidationError:
        raise ValueError("must be a valid http(s) URL")
    return value


NonBlank = Annotated[str, AfterValidator(_non_blank)]
ImageUrl = Annotated[str, AfterValidator(_valid_url)]


# ===================== Stored documents =====================
class Category(BaseModel):
    name: str = Field(..., description="Category name")
    image: str = Field(..., description="Category image URL")


class Subcategory(BaseModel):
    name: str = Field(..., description="Subcategory name")
    category_id: str = Field(..., description="Reference to category _id")


class Product(BaseModel):
    title: str = Field(..., description="Product title")
    image: str = Field(..., description="Product image URL")
    price: float = Field(..., gt=0)
    description: str = ""
    category_id: str = Field(..., description="Reference to category _id")
    subcategory_id: str = Field(..., description="Reference to subcategory _id")


class Extra(BaseModel):
    """Additive surcharge on top of the product price."""
    name: str
    price: float = Field(..., ge=0)
    product_id: str = Field(..., description="Reference to product _id")


class Verre(BaseModel):
    """Serving-size variant carrying its own full price."""
    name: str
    price: float = Field(..., ge=0)
    product_id: str = Field(..., description="Reference to product _id")


class AdminSettings(BaseModel):
    username: str = Field(..., description="Administrator login")
    password_hash: str = Field(..., description="BCrypt password hash")


COLLECTIONS = {
    Category: "categories",
    Subcategory: "subcategories",
    Product: "products",
    Extra: "product_extras",
    Verre: "product_verres",
    AdminSettings: "admin_settings",
}


# ===================== Inputs =====================
class CategoryInput(BaseModel):
    name: NonBlank
    image: ImageUrl
    subcategories: List[str] = []


class CategoryUpdate(BaseModel):
    name: Optional[NonBlank] = None
    image: Optional[ImageUrl] = None


class SubcategoryInput(BaseModel):
    name: NonBlank


class AddonInput(BaseModel):
    name: NonBlank
    price: float = Field(..., ge=0)


class ProductInput(BaseModel):
    title: NonBlank
    image: ImageUrl
    price: float = Field(..., gt=0)
    description: Optional[str] = ""
    category_id: NonBlank
    subcategory_id: NonBlank
    extras: List[AddonInput] = []
    verres: List[AddonInput] = []

    @field_validator("description")
    @classmethod
    def strip_description(cls, value: Optional[str]) -> str:
        return (value or "").strip()


class ProductUpdate(BaseModel):
    title: Optional[NonBlank] = None
    image: Optional[ImageUrl] = None
    price: Optional[float] = Field(None, gt=0)
    description: Optional[str] = None
    category_id: Optional[NonBlank] = None
    subcategory_id: Optional[NonBlank] = None


class AdminCredentialsInput(BaseModel):
    username: NonBlank
    password: str = Field(..., min_length=1)


class AdminCredentialsView(BaseModel):
    username: str
    password: str = ""


M = TypeVar("M", bound=BaseModel)


def parse_input(model: Type[M], data: Union[M, dict]) -> M:
    """Validate `data` as `model`, raising the API's ValidationError on failure."""
    if isinstance(data, model):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump(exclude_unset=True)
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise ValidationError(f"Invalid {model.__name__}: {fields}", detail=str(e))
