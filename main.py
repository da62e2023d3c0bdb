import sys
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Depends, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from loguru import logger
from pydantic import BaseModel

import config
import database
import catalog
from credentials import get_admin_credentials, verify_admin_credentials, update_admin_credentials
from errors import MenuError
from schemas import (
    COLLECTIONS,
    AddonInput,
    AdminCredentialsInput,
    AdminCredentialsView,
    CategoryInput,
    CategoryUpdate,
    ProductInput,
    ProductUpdate,
    SubcategoryInput,
)

logger.remove()
logger.add(sys.stderr, level=config.LOG_LEVEL)

app = FastAPI(title="Restaurant Menu API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(MenuError)
async def menu_error_handler(request: Request, exc: MenuError):
    if exc.status_code >= 500:
        logger.error("{} {} failed: {}", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# ===================== Admin gate =====================
security = HTTPBasic()


def require_admin(credentials: HTTPBasicCredentials = Depends(security)) -> str:
    if not verify_admin_credentials(credentials.username, credentials.password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )
    return credentials.username


class SubcategoryBatch(BaseModel):
    names: List[str]


# ===================== Public Endpoints =====================
@app.get("/")
def root():
    return {"message": "Restaurant Menu API running"}


@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": None,
        "database_name": None,
        "connection_status": "Not Connected",
        "collections": []
    }
    try:
        if database.db is not None:
            response["database"] = "✅ Available"
            response["connection_status"] = "Connected"
            response["collections"] = database.db.list_collection_names()
        else:
            response["database"] = "⚠️  Available but not initialized"
    except Exception as e:
        response["database"] = f"❌ Error: {str(e)[:80]}"
    response["database_url"] = "✅ Set" if config.DATABASE_URL else "❌ Not Set"
    response["database_name"] = "✅ Set" if config.DATABASE_NAME else "❌ Not Set"
    return response


@app.get("/categories")
def list_categories():
    return catalog.get_categories()


@app.get("/categories/{category_id}/menu")
def category_menu(category_id: str):
    return catalog.get_category_menu(category_id)


@app.get("/products")
def list_products(category: Optional[str] = None, subcategory: Optional[str] = None):
    filter_q = {}
    if category:
        filter_q["category_id"] = category
    if subcategory:
        filter_q["subcategory_id"] = subcategory
    return catalog.get_products(filter_q)


# ===================== Auth =====================
@app.post("/admin/login", response_model=AdminCredentialsView)
def login(username: str = Depends(require_admin)):
    return get_admin_credentials()


@app.get("/admin/credentials", response_model=AdminCredentialsView)
def read_credentials(username: str = Depends(require_admin)):
    return get_admin_credentials()


@app.put("/admin/credentials", response_model=AdminCredentialsView)
def rotate_credentials(payload: AdminCredentialsInput, username: str = Depends(require_admin)):
    return update_admin_credentials(payload.username, payload.password)


# ===================== Categories =====================
@app.post("/admin/categories", status_code=201)
def create_category(payload: CategoryInput, username: str = Depends(require_admin)):
    category = catalog.create_category(payload.name, payload.image)
    category["subcategories"] = catalog.create_subcategories(payload.subcategories, category["_id"])
    return category


@app.patch("/admin/categories/{category_id}")
def update_category(category_id: str, payload: CategoryUpdate, username: str = Depends(require_admin)):
    return catalog.update_category(category_id, payload)


@app.delete("/admin/categories/{category_id}")
def remove_category(category_id: str, policy: Optional[str] = None, username: str = Depends(require_admin)):
    catalog.delete_category(category_id, policy)
    return {"deleted": True}


# ===================== Subcategories =====================
@app.post("/admin/categories/{category_id}/subcategories", status_code=201)
def create_subcategories(category_id: str, payload: SubcategoryBatch, username: str = Depends(require_admin)):
    return catalog.create_subcategories(payload.names, category_id)


@app.post("/admin/categories/{category_id}/subcategory", status_code=201)
def create_subcategory(category_id: str, payload: SubcategoryInput, username: str = Depends(require_admin)):
    return catalog.create_subcategory(category_id, payload)


@app.patch("/admin/subcategories/{subcategory_id}")
def rename_subcategory(subcategory_id: str, payload: SubcategoryInput, username: str = Depends(require_admin)):
    return catalog.update_subcategory(subcategory_id, payload)


@app.delete("/admin/subcategories/{subcategory_id}")
def remove_subcategory(subcategory_id: str, username: str = Depends(require_admin)):
    catalog.delete_subcategory(subcategory_id)
    return {"deleted": True}


# ===================== Products =====================
@app.post("/admin/products", status_code=201)
def create_product(payload: ProductInput, username: str = Depends(require_admin)):
    return catalog.create_product(payload)


@app.patch("/admin/products/{product_id}")
def update_product(product_id: str, payload: ProductUpdate, username: str = Depends(require_admin)):
    return catalog.update_product(product_id, payload)


@app.delete("/admin/products/{product_id}")
def delete_product(product_id: str, username: str = Depends(require_admin)):
    catalog.delete_product(product_id)
    return {"deleted": True}


@app.post("/admin/products/{product_id}/extras", status_code=201)
def add_extra(product_id: str, payload: AddonInput, username: str = Depends(require_admin)):
    return catalog.create_product_extra(product_id, payload)


@app.delete("/admin/extras/{extra_id}")
def delete_extra(extra_id: str, username: str = Depends(require_admin)):
    catalog.delete_product_extra(extra_id)
    return {"deleted": True}


@app.post("/admin/products/{product_id}/verres", status_code=201)
def add_verre(product_id: str, payload: AddonInput, username: str = Depends(require_admin)):
    return catalog.create_product_verre(product_id, payload)


@app.delete("/admin/verres/{verre_id}")
def delete_verre(verre_id: str, username: str = Depends(require_admin)):
    catalog.delete_product_verre(verre_id)
    return {"deleted": True}


# ===================== Schema Export for Docs =====================
@app.get("/schema")
def get_schema():
    return {
        "collections": list(COLLECTIONS.values()),
        "notes": "Each stored class in schemas.py maps to the MongoDB collection listed here."
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
