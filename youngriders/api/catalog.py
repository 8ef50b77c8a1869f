from __future__ import annotations
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from ..deps import get_db, is_admin, require_permission
from ..model.catalog import FEATURED_PRODUCTS
from ..model.db import Database

router = APIRouter(prefix="/api")

products_admin = Depends(require_permission("products"))
categories_admin = Depends(require_permission("categories"))


# ----------------------------
# Categories
# ----------------------------
@router.get("/categories")
async def list_categories(request: Request, db: Database = Depends(get_db)):
    # anonymous visitors only see what the webshop shows
    if is_admin(request):
        return await db.categories.list_all()
    return await db.categories.list_active()


@router.get("/categories/{slug}")
async def get_category(slug: str, db: Database = Depends(get_db)):
    category = await db.categories.get_by_slug(slug)
    if category is None:
        raise HTTPException(404, detail="category not found")
    return category


@router.post("/categories", status_code=201, dependencies=[categories_admin])
async def create_category(payload: dict, db: Database = Depends(get_db)):
    return await db.categories.create(payload)


@router.put("/categories/{category_id}", dependencies=[categories_admin])
async def update_category(category_id: str, payload: dict,
                          db: Database = Depends(get_db)):
    return await db.categories.update(category_id, payload)


@router.post("/categories/{category_id}/active",
             dependencies=[categories_admin])
async def toggle_category(category_id: str, payload: dict,
                          db: Database = Depends(get_db)):
    return await db.categories.set_active(category_id,
                                          bool(payload.get("active")))


@router.delete("/categories/{category_id}", dependencies=[categories_admin])
async def delete_category(category_id: str, db: Database = Depends(get_db)):
    await db.categories.delete(category_id)
    return {"success": True}


# ----------------------------
# Products
# ----------------------------
@router.get("/products")
async def list_products(request: Request, category: Optional[str] = None,
                        db: Database = Depends(get_db)):
    if category:
        products = await db.products.by_category(category)
    else:
        products = await db.products.list_all()
    if not is_admin(request):
        products = [p for p in products if p.get("active")]
    return products


@router.get("/featured-products")
async def featured_products(db: Database = Depends(get_db)):
    return await db.products.featured(limit=FEATURED_PRODUCTS)


@router.get("/products/{slug}")
async def get_product(slug: str, db: Database = Depends(get_db)):
    product = await db.products.get_by_slug(slug)
    if product is None:
        raise HTTPException(404, detail="product not found")
    return product


@router.post("/products", status_code=201, dependencies=[products_admin])
async def create_product(payload: dict, db: Database = Depends(get_db)):
    category_id = payload.get("categoryId")
    if category_id and await db.categories.get(category_id) is None:
        raise HTTPException(400, detail="unknown category")
    return await db.products.create(payload)


@router.put("/products/{product_id}", dependencies=[products_admin])
async def update_product(product_id: str, payload: dict,
                         db: Database = Depends(get_db)):
    return await db.products.update(product_id, payload)


@router.post("/products/{product_id}/active", dependencies=[products_admin])
async def toggle_product(product_id: str, payload: dict,
                         db: Database = Depends(get_db)):
    return await db.products.set_active(product_id,
                                        bool(payload.get("active")))


@router.put("/products/{product_id}/stock", dependencies=[products_admin])
async def update_stock(product_id: str, payload: dict,
                       db: Database = Depends(get_db)):
    size = payload.get("size")
    if not size:
        raise HTTPException(400, detail="size is required")
    try:
        stock = int(payload.get("stock"))
    except (TypeError, ValueError):
        raise HTTPException(400, detail="stock must be a number")
    return await db.products.update_stock(product_id, size, stock)


@router.delete("/products/{product_id}", dependencies=[products_admin])
async def delete_product(product_id: str, db: Database = Depends(get_db)):
    await db.products.delete(product_id)
    return {"success": True}
