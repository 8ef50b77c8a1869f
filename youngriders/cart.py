"""
Session-backed shopping cart.

The cart is a list of plain dicts stored under `request.session["cart"]`,
so it survives page loads for as long as the session cookie does.
"""
from __future__ import annotations
from typing import Any, Dict, List, MutableMapping, TypedDict

from . import config
from .helpers import now_ts

SESSION_KEY = "cart"

CartItem = Dict[str, Any]


class CartTotals(TypedDict):
    total_items: int
    subtotal: float
    shipping: float
    total: float


def get_items(session: MutableMapping[str, Any]) -> List[CartItem]:
    return list(session.get(SESSION_KEY) or [])


def _save(session: MutableMapping[str, Any], items: List[CartItem]) -> None:
    session[SESSION_KEY] = items


def make_item(color: str, size: str, quantity: int,
              delivery: str) -> CartItem:
    if color not in config.HOODIE_COLORS:
        raise ValueError(f"unknown color: {color}")
    if size not in config.SIZES:
        raise ValueError(f"unknown size: {size}")
    if delivery not in ("pickup", "shipping"):
        raise ValueError("delivery must be pickup or shipping")
    if quantity < 1:
        raise ValueError("quantity must be at least 1")
    return {
        "color": color,
        "colorName": config.HOODIE_COLORS[color],
        "size": size,
        "price": config.HOODIE_PRICE,
        "quantity": quantity,
        "delivery": delivery,
        "shippingCost": config.SHIPPING_COST if delivery == "shipping" else 0,
    }


def add_item(session: MutableMapping[str, Any],
             new_item: CartItem) -> List[CartItem]:
    items = get_items(session)
    # same color, size and delivery method -> one line
    for item in items:
        if (item["color"], item["size"], item["delivery"]) == \
                (new_item["color"], new_item["size"], new_item["delivery"]):
            item["quantity"] += new_item["quantity"]
            break
    else:
        items.append({
            **new_item,
            "id": f"{new_item['color']}-{new_item['size']}-"
                  f"{new_item['delivery']}-{int(now_ts() * 1000)}",
        })
    _save(session, items)
    return items


def remove_item(session: MutableMapping[str, Any],
                item_id: str) -> List[CartItem]:
    items = [i for i in get_items(session) if i["id"] != item_id]
    _save(session, items)
    return items


def update_quantity(session: MutableMapping[str, Any], item_id: str,
                    quantity: int) -> List[CartItem]:
    if quantity <= 0:
        return remove_item(session, item_id)
    items = get_items(session)
    for item in items:
        if item["id"] == item_id:
            item["quantity"] = quantity
    _save(session, items)
    return items


def clear(session: MutableMapping[str, Any]) -> None:
    session.pop(SESSION_KEY, None)


def totals(items: List[CartItem]) -> CartTotals:
    subtotal = sum(i["price"] * i["quantity"] for i in items)
    shipping = sum(i["shippingCost"] * i["quantity"] for i in items)
    return {
        "total_items": sum(i["quantity"] for i in items),
        "subtotal": round(subtotal, 2),
        "shipping": round(shipping, 2),
        "total": round(subtotal + shipping, 2),
    }
