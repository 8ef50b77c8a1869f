from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional

from ..helpers import new_id, now_iso, slugify
from ..infra.jsonstore import JsonTable
from .errors import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

Product = Dict[str, Any]
Category = Dict[str, Any]

FEATURED_PRODUCTS = 4


class _SluggedStore:
    """Rows with a unique `slug`, created/updated timestamps and `active`."""

    kind = "row"

    def __init__(self, table: JsonTable) -> None:
        self.table = table

    async def list_all(self) -> List[Dict[str, Any]]:
        return self.table.read()

    async def list_active(self) -> List[Dict[str, Any]]:
        return [r for r in self.table.read() if r.get("active")]

    async def get(self, row_id: str) -> Optional[Dict[str, Any]]:
        return next((r for r in self.table.read() if r.get("id") == row_id),
                    None)

    async def get_by_slug(self, slug: str) -> Optional[Dict[str, Any]]:
        return next((r for r in self.table.read() if r.get("slug") == slug),
                    None)

    def _prepare(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return data

    async def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        if not data.get("name"):
            raise ValidationError("name is required")
        data = self._prepare(dict(data))
        slug = data.get("slug") or slugify(data["name"])
        now = now_iso()
        row = {"active": True, **data, "slug": slug, "id": new_id(),
               "createdAt": now, "updatedAt": now}

        async with self.table.gated():
            rows = self.table.read()
            if any(r.get("slug") == slug for r in rows):
                raise ConflictError(
                    f'a {self.kind} with slug "{slug}" already exists'
                )
            rows.append(row)
            self.table.write(rows)
        logger.info("%s %s created (%s)", self.kind, row["id"], slug)
        return row

    async def update(self, row_id: str,
                     data: Dict[str, Any]) -> Dict[str, Any]:
        data = self._prepare({
            k: v for k, v in data.items() if k not in ("id", "createdAt")
        })
        async with self.table.gated():
            rows = self.table.read()
            index = next(
                (i for i, r in enumerate(rows) if r.get("id") == row_id), None
            )
            if index is None:
                raise NotFoundError(f"{self.kind} {row_id} not found")
            slug = data.get("slug")
            if slug and slug != rows[index].get("slug") and any(
                r.get("slug") == slug and r.get("id") != row_id for r in rows
            ):
                raise ConflictError(
                    f'a {self.kind} with slug "{slug}" already exists'
                )
            rows[index] = {**rows[index], **data, "updatedAt": now_iso()}
            self.table.write(rows)
            return rows[index]

    async def set_active(self, row_id: str, active: bool) -> Dict[str, Any]:
        return await self.update(row_id, {"active": bool(active)})

    async def delete(self, row_id: str) -> None:
        async with self.table.gated():
            rows = self.table.read()
            kept = [r for r in rows if r.get("id") != row_id]
            if len(kept) == len(rows):
                raise NotFoundError(f"{self.kind} {row_id} not found")
            self.table.write(kept)
        logger.info("%s %s deleted", self.kind, row_id)


class CategoryStore(_SluggedStore):
    kind = "category"

    def __init__(self, table: JsonTable, products: JsonTable) -> None:
        super().__init__(table)
        self.products = products

    def _prepare(self, data: Dict[str, Any]) -> Dict[str, Any]:
        if "isClothing" in data:
            data["isClothing"] = bool(data["isClothing"])
        return data

    async def delete(self, row_id: str) -> None:
        # lock order: products, then categories
        async with self.products.gated():
            if any(p.get("categoryId") == row_id
                   for p in self.products.read()):
                raise ConflictError("category still has products")
            await super().delete(row_id)


class ProductStore(_SluggedStore):
    kind = "product"

    def _prepare(self, data: Dict[str, Any]) -> Dict[str, Any]:
        if "price" in data:
            try:
                data["price"] = float(data["price"])
            except (TypeError, ValueError):
                raise ValidationError("price must be a number")
        for size in data.get("sizes") or []:
            if not isinstance(size, dict):
                raise ValidationError("sizes must be objects")
            try:
                size["stock"] = int(size.get("stock") or 0)
            except (TypeError, ValueError):
                raise ValidationError("stock must be a number")
        return data

    async def by_category(self, category_id: str) -> List[Product]:
        return [p for p in self.table.read()
                if p.get("categoryId") == category_id]

    async def featured(self, limit: Optional[int] = None) -> List[Product]:
        rows = [p for p in self.table.read()
                if p.get("active") and p.get("featured")]
        return rows[:limit] if limit else rows

    async def update_stock(self, product_id: str, size_name: str,
                           stock: int) -> Product:
        async with self.table.gated():
            rows = self.table.read()
            product = next(
                (p for p in rows if p.get("id") == product_id), None
            )
            if product is None:
                raise NotFoundError(f"product {product_id} not found")
            sizes = product.setdefault("sizes", [])
            entry = next((s for s in sizes if s.get("name") == size_name),
                         None)
            if entry is None:
                sizes.append({"name": size_name, "stock": int(stock)})
            else:
                entry["stock"] = int(stock)
            product["updatedAt"] = now_iso()
            self.table.write(rows)
        return product
