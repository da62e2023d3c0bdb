"""
Catalog operations for categories, subcategories, products and their add-ons.

Input is validated before any storage call; storage failures propagate as
StorageError (NotFoundError for a missing parent document).
"""

from typing import Dict, Iterable, List, Optional, Union

from loguru import logger

import config
from database import (
    create_document,
    create_documents,
    get_documents,
    get_document_by_id,
    count_documents,
    update_document,
    delete_document,
    delete_documents,
)
from errors import ConflictError, NotFoundError, ValidationError
from schemas import (
    COLLECTIONS,
    AddonInput,
    Category,
    CategoryInput,
    CategoryUpdate,
    Extra,
    Product,
    ProductInput,
    ProductUpdate,
    Subcategory,
    SubcategoryInput,
    Verre,
    parse_input,
)

CATEGORIES = COLLECTIONS[Category]
SUBCATEGORIES = COLLECTIONS[Subcategory]
PRODUCTS = COLLECTIONS[Product]
EXTRAS = COLLECTIONS[Extra]
VERRES = COLLECTIONS[Verre]


def _require(collection_name: str, resource: str, _id: str) -> dict:
    doc = get_document_by_id(collection_name, _id)
    if doc is None:
        raise NotFoundError(resource, _id)
    return doc


def _check_subcategory_belongs(category_id: str, subcategory_id: str) -> None:
    _require(CATEGORIES, "Category", category_id)
    subcategory = _require(SUBCATEGORIES, "Subcategory", subcategory_id)
    if subcategory["category_id"] != category_id:
        raise ValidationError(
            "Subcategory does not belong to category",
            detail=f"Subcategory '{subcategory_id}' belongs to category '{subcategory['category_id']}', not '{category_id}'",
        )


# ===================== Categories =====================

def create_category(name: str, image: str) -> dict:
    fields = parse_input(CategoryInput, {"name": name, "image": image})
    category = create_document(CATEGORIES, Category(name=fields.name, image=fields.image))
    logger.info("Created category {} ({})", category["_id"], category["name"])
    return category


def update_category(category_id: str, fields: Union[CategoryUpdate, dict]) -> dict:
    patch = parse_input(CategoryUpdate, fields).model_dump(exclude_unset=True, exclude_none=True)
    if not patch:
        return _require(CATEGORIES, "Category", category_id)
    category = update_document(CATEGORIES, category_id, patch)
    if category is None:
        raise NotFoundError("Category", category_id)
    return category


def delete_category(category_id: str, policy: Optional[str] = None) -> None:
    """Delete a category; `policy` decides what happens to its subcategories and products.

    cascade  -- remove subcategories, products and the products' add-ons
    restrict -- refuse while anything still references the category
    orphan   -- remove the category row only
    """
    policy = policy or config.CATEGORY_DELETE_POLICY
    if policy not in config.DELETE_POLICIES:
        raise ValidationError(f"Unknown delete policy '{policy}'")
    _require(CATEGORIES, "Category", category_id)

    children = {"category_id": category_id}
    if policy == "restrict":
        subcategories = count_documents(SUBCATEGORIES, children)
        products = count_documents(PRODUCTS, children)
        if subcategories or products:
            raise ConflictError(
                "Category still has subcategories or products",
                detail=f"{subcategories} subcategories, {products} products reference category '{category_id}'",
            )
    elif policy == "cascade":
        for product in get_documents(PRODUCTS, children):
            _delete_addons(product["_id"])
        delete_documents(PRODUCTS, children)
        delete_documents(SUBCATEGORIES, children)

    delete_document(CATEGORIES, category_id)
    logger.info("Deleted category {} (policy={})", category_id, policy)


def get_categories() -> List[dict]:
    categories = get_documents(CATEGORIES)
    for category in categories:
        category["subcategories"] = get_subcategories_by_category(category["_id"])
    return categories


# ===================== Subcategories =====================

def get_subcategories_by_category(category_id: str) -> List[dict]:
    return get_documents(SUBCATEGORIES, {"category_id": category_id})


def create_subcategories(names: Iterable[str], category_id: str) -> List[dict]:
    """Insert one subcategory per non-blank name, skipping the write when none remain."""
    rows = [
        Subcategory(name=name.strip(), category_id=category_id)
        for name in names
        if name and name.strip()
    ]
    if not rows:
        return []
    _require(CATEGORIES, "Category", category_id)
    return create_documents(SUBCATEGORIES, rows)


def create_subcategory(category_id: str, fields: Union[SubcategoryInput, dict]) -> dict:
    data = parse_input(SubcategoryInput, fields)
    _require(CATEGORIES, "Category", category_id)
    return create_document(SUBCATEGORIES, Subcategory(name=data.name, category_id=category_id))


def update_subcategory(subcategory_id: str, fields: Union[SubcategoryInput, dict]) -> dict:
    data = parse_input(SubcategoryInput, fields)
    subcategory = update_document(SUBCATEGORIES, subcategory_id, {"name": data.name})
    if subcategory is None:
        raise NotFoundError("Subcategory", subcategory_id)
    return subcategory


def delete_subcategory(subcategory_id: str) -> None:
    _require(SUBCATEGORIES, "Subcategory", subcategory_id)
    for product in get_documents(PRODUCTS, {"subcategory_id": subcategory_id}):
        delete_product(product["_id"])
    delete_document(SUBCATEGORIES, subcategory_id)


# ===================== Products =====================

def _with_addons(product: dict) -> dict:
    # Sequential reads; handlers are synchronous and run in the server thread pool
    product["extras"] = get_documents(EXTRAS, {"product_id": product["_id"]})
    product["verres"] = get_documents(VERRES, {"product_id": product["_id"]})
    return product


def get_products(filter_dict: Optional[dict] = None) -> List[dict]:
    return [_with_addons(p) for p in get_documents(PRODUCTS, filter_dict)]


def create_product(data: Union[ProductInput, dict]) -> dict:
    """Create a product, then its extras and verres once the product id exists."""
    data = parse_input(ProductInput, data)
    _check_subcategory_belongs(data.category_id, data.subcategory_id)

    product = create_document(
        PRODUCTS,
        Product(**data.model_dump(exclude={"extras", "verres"})),
    )
    product_id = product["_id"]
    product["extras"] = create_documents(
        EXTRAS, [Extra(name=e.name, price=e.price, product_id=product_id) for e in data.extras]
    )
    product["verres"] = create_documents(
        VERRES, [Verre(name=v.name, price=v.price, product_id=product_id) for v in data.verres]
    )
    logger.info("Created product {} ({})", product_id, product["title"])
    return product


def update_product(product_id: str, fields: Union[ProductUpdate, dict]) -> dict:
    patch = parse_input(ProductUpdate, fields).model_dump(exclude_unset=True, exclude_none=True)
    if "description" in patch:
        patch["description"] = patch["description"].strip()
    current = _require(PRODUCTS, "Product", product_id)
    if not patch:
        return _with_addons(current)

    if "category_id" in patch or "subcategory_id" in patch:
        _check_subcategory_belongs(
            patch.get("category_id", current["category_id"]),
            patch.get("subcategory_id", current["subcategory_id"]),
        )
    product = update_document(PRODUCTS, product_id, patch)
    if product is None:
        raise NotFoundError("Product", product_id)
    return _with_addons(product)


def _delete_addons(product_id: str) -> None:
    delete_documents(EXTRAS, {"product_id": product_id})
    delete_documents(VERRES, {"product_id": product_id})


def delete_product(product_id: str) -> None:
    _delete_addons(product_id)
    if not delete_document(PRODUCTS, product_id):
        raise NotFoundError("Product", product_id)
    logger.info("Deleted product {}", product_id)


# ===================== Add-ons =====================

def create_product_extra(product_id: str, fields: Union[AddonInput, dict]) -> dict:
    data = parse_input(AddonInput, fields)
    _require(PRODUCTS, "Product", product_id)
    return create_document(EXTRAS, Extra(name=data.name, price=data.price, product_id=product_id))


def create_product_verre(product_id: str, fields: Union[AddonInput, dict]) -> dict:
    data = parse_input(AddonInput, fields)
    _require(PRODUCTS, "Product", product_id)
    return create_document(VERRES, Verre(name=data.name, price=data.price, product_id=product_id))


def delete_product_extra(extra_id: str) -> None:
    if not delete_document(EXTRAS, extra_id):
        raise NotFoundError("Extra", extra_id)


def delete_product_verre(verre_id: str) -> None:
    if not delete_document(VERRES, verre_id):
        raise NotFoundError("Verre", verre_id)


# ===================== Menu views =====================

def group_products_by_subcategory(category: dict, products: List[dict]) -> Dict[str, List[dict]]:
    """Map each of the category's subcategory ids to its products, in their original order."""
    groups = {sub["_id"]: [] for sub in category.get("subcategories", [])}
    for product in products:
        group = groups.get(product.get("subcategory_id"))
        if group is not None:
            group.append(product)
    return groups


def get_category_menu(category_id: str) -> dict:
    category = _require(CATEGORIES, "Category", category_id)
    category["subcategories"] = get_subcategories_by_category(category_id)
    groups = group_products_by_subcategory(category, get_products({"category_id": category_id}))
    category["sections"] = [
        {"subcategory": sub, "products": groups[sub["_id"]]}
        for sub in category["subcategories"]
        if groups[sub["_id"]]
    ]
    return category
