from __future__ import annotations
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException

from .. import config
from ..deps import get_db, require_permission
from ..helpers import ct_equal, is_valid_email
from ..model.db import Database
from ..model.orders import group_for_print

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

orders_admin = Depends(require_permission("orders"))

CUSTOMER_FIELDS = ("name", "email", "phone")


def _order_line(payload: Dict[str, Any], *, color: str, base_price: float,
                is_crew: bool = False) -> Dict[str, Any]:
    missing = [f for f in CUSTOMER_FIELDS if not payload.get(f)]
    if missing:
        raise HTTPException(
            400, detail=f"missing required fields: {', '.join(missing)}"
        )
    if not all(isinstance(payload[f], str) for f in CUSTOMER_FIELDS):
        raise HTTPException(400, detail="name, email and phone must be text")
    if not is_valid_email(payload["email"]):
        raise HTTPException(400, detail="invalid email address")
    size = payload.get("size")
    if size not in config.SIZES:
        raise HTTPException(400, detail="invalid size")
    delivery = payload.get("delivery") or "pickup"
    if delivery not in ("pickup", "shipping"):
        raise HTTPException(400, detail="delivery must be pickup or shipping")
    if delivery == "shipping" and not payload.get("address"):
        raise HTTPException(400, detail="address is required for shipping")

    shipping = config.SHIPPING_COST if delivery == "shipping" else 0
    line = {
        "name": payload["name"].strip(),
        "email": payload["email"].strip(),
        "phone": payload["phone"].strip(),
        "address": payload.get("address") if delivery == "shipping"
        else "Ophalen",
        "color": color,
        "size": size,
        "quantity": 1,
        "delivery": delivery,
        "notes": payload.get("notes") or "",
        "price": base_price + shipping,
    }
    if is_crew:
        line["isCrew"] = True
    return line


# ----------------------------
# Public ordering
# ----------------------------
@router.post("/orders", status_code=201)
async def place_order(payload: dict, db: Database = Depends(get_db)):
    color = payload.get("color")
    if color not in config.HOODIE_COLORS:
        raise HTTPException(400, detail="invalid color")
    line = _order_line(payload, color=color, base_price=config.HOODIE_PRICE)
    order = await db.orders.add_order(line)
    return order


@router.post("/crew-orders", status_code=201)
async def place_crew_order(payload: dict, db: Database = Depends(get_db)):
    code = payload.get("accessCode") or ""
    if not ct_equal(code, config.CREW_ACCESS_CODE):
        raise HTTPException(400, detail="invalid access code")
    line = _order_line(payload, color=config.CREW_COLOR, base_price=0,
                       is_crew=True)
    order = await db.orders.add_order(line)
    logger.info("crew order %s placed", order["orderId"])
    return order


# ----------------------------
# Back-office
# ----------------------------
@router.get("/orders", dependencies=[orders_admin])
async def list_orders(status: Optional[str] = None,
                      db: Database = Depends(get_db)):
    return await db.orders.list_orders(status)


@router.get("/orders/print", dependencies=[orders_admin])
async def print_orders(status: str = "betaald",
                       db: Database = Depends(get_db)):
    return group_for_print(await db.orders.list_orders(), status)


@router.get("/orders/counts", dependencies=[orders_admin])
async def order_counts(db: Database = Depends(get_db)):
    return await db.orders.status_counts()


@router.get("/recent-orders", dependencies=[orders_admin])
async def recent_orders(limit: int = 10, db: Database = Depends(get_db)):
    return await db.orders.recent(max(1, min(limit, 100)))


@router.get("/orders/{order_id}")
async def order_status(order_id: str, db: Database = Depends(get_db)):
    lines = await db.orders.by_order_id(order_id)
    if not lines:
        raise HTTPException(404, detail="order not found")
    return {
        "orderId": order_id,
        "status": lines[0].get("status"),
        "name": lines[0].get("name"),
        "lines": [
            {k: line.get(k) for k in (
                "id", "color", "size", "quantity", "delivery", "price",
                "status", "trackingNumber",
            )}
            for line in lines
        ],
        "total": round(sum(
            float(line.get("price") or 0) * int(line.get("quantity") or 1)
            for line in lines
        ), 2),
    }


@router.put("/orders/{order_id}/status", dependencies=[orders_admin])
async def set_order_status(order_id: str, payload: dict,
                           db: Database = Depends(get_db)):
    return await db.orders.set_status(order_id, payload.get("status") or "")


@router.delete("/orders/{order_id}", dependencies=[orders_admin])
async def delete_order(order_id: str, db: Database = Depends(get_db)):
    deleted = await db.orders.delete_order_group(order_id)
    if not deleted:
        raise HTTPException(404, detail="order not found")
    return {"success": True, "deleted": deleted}


@router.put("/orders/lines/{line_id}", dependencies=[orders_admin])
async def update_order_line(line_id: str, payload: dict,
                            db: Database = Depends(get_db)):
    return await db.orders.update_order(line_id, payload)


@router.post("/orders/lines/{line_id}/tracking", dependencies=[orders_admin])
async def set_tracking(line_id: str, payload: dict,
                       db: Database = Depends(get_db)):
    number = (payload.get("trackingNumber") or "").strip()
    if not number:
        raise HTTPException(400, detail="trackingNumber is required")
    return await db.orders.update_tracking(line_id, number)


@router.post("/orders/lines/{line_id}/tracking-sent",
             dependencies=[orders_admin])
async def tracking_sent(line_id: str, db: Database = Depends(get_db)):
    return await db.orders.mark_tracking_sent(line_id)


@router.post("/orders/lines/{line_id}/supplier", dependencies=[orders_admin])
async def ordered_from_supplier(line_id: str, payload: dict,
                                db: Database = Depends(get_db)):
    return await db.orders.set_ordered_from_supplier(
        line_id, bool(payload.get("orderedFromSupplier", True))
    )


@router.delete("/orders/lines/{line_id}", dependencies=[orders_admin])
async def delete_order_line(line_id: str, db: Database = Depends(get_db)):
    if not await db.orders.delete_order(line_id):
        raise HTTPException(404, detail="order line not found")
    return {"success": True}
