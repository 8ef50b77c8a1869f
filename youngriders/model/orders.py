# model/orders.py
from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional, TypedDict

from ..helpers import new_order_number, now_iso, short_id
from ..infra.jsonstore import JsonTable
from .errors import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

Order = Dict[str, Any]

# nieuw -> betaald -> besteld -> verzonden | afgehaald
STATUS_NEW = "nieuw"
STATUSES = ("nieuw", "betaald", "besteld", "verzonden", "afgehaald",
            "geannuleerd")
DELIVERY_METHODS = ("pickup", "shipping")

ORDER_NUMBERS = 10_000  # ORDER-0000 .. ORDER-9999

SIZE_ORDER = {"s": 1, "m": 2, "l": 3, "xl": 4, "xxl": 5, "xxxl": 6}


class PrintGroup(TypedDict):
    color: str
    size: str
    isCrew: bool
    count: int


class PrintSummary(TypedDict):
    status: str
    groups: List[PrintGroup]
    total_items: int
    crew_items: int
    regular_items: int


def group_for_print(orders: List[Order], status: str = "all") -> PrintSummary:
    """Sum quantities per (color, size, crew) for the supplier print-out.

    Crew groups come first, then colors alphabetically, then sizes from
    s up to xxxl.
    """
    groups: Dict[tuple, PrintGroup] = {}
    for order in orders:
        if status != "all" and order.get("status") != status:
            continue
        key = (order.get("color", ""), order.get("size", ""),
               bool(order.get("isCrew")))
        group = groups.get(key)
        if group is None:
            group = {"color": key[0], "size": key[1], "isCrew": key[2],
                     "count": 0}
            groups[key] = group
        group["count"] += int(order.get("quantity") or 1)

    ordered = sorted(
        groups.values(),
        key=lambda g: (not g["isCrew"], g["color"],
                       SIZE_ORDER.get(g["size"], len(SIZE_ORDER) + 1)),
    )
    crew = sum(g["count"] for g in ordered if g["isCrew"])
    regular = sum(g["count"] for g in ordered if not g["isCrew"])
    return {
        "status": status,
        "groups": ordered,
        "total_items": crew + regular,
        "crew_items": crew,
        "regular_items": regular,
    }


def _free_order_number(orders: List[Order]) -> str:
    # caller holds the orders gate
    taken = {o.get("orderId") for o in orders}
    if len(taken) >= ORDER_NUMBERS:
        raise ConflictError("no free order numbers left")
    order_id = new_order_number()
    while order_id in taken:
        order_id = new_order_number()
    return order_id


def _newest_first(orders: List[Order]) -> List[Order]:
    return sorted(orders, key=lambda o: o.get("date") or "", reverse=True)


class OrderStore:
    def __init__(self, table: JsonTable) -> None:
        self.table = table

    async def list_orders(self, status: Optional[str] = None) -> List[Order]:
        orders = self.table.read()
        if status and status != "all":
            orders = [o for o in orders if o.get("status") == status]
        return _newest_first(orders)

    async def get_order(self, line_id: str) -> Optional[Order]:
        return next(
            (o for o in self.table.read() if o.get("id") == line_id), None
        )

    async def by_order_id(self, order_id: str) -> List[Order]:
        return [o for o in self.table.read() if o.get("orderId") == order_id]

    async def recent(self, limit: int = 10) -> List[Order]:
        return _newest_first(self.table.read())[:limit]

    async def status_counts(self) -> Dict[str, int]:
        orders = self.table.read()
        counts = {"all": len(orders)}
        for status in STATUSES:
            counts[status] = sum(1 for o in orders if o.get("status") == status)
        return counts

    async def add_orders(self, lines: List[Dict[str, Any]],
                         order_id: Optional[str] = None) -> List[Order]:
        """Persist the lines of one checkout under a shared order id.

        Without `order_id` a fresh `ORDER-NNNN` number is drawn that no
        stored line uses yet.
        """
        created = []
        for data in lines:
            if data.get("delivery", "pickup") not in DELIVERY_METHODS:
                raise ValidationError("delivery must be pickup or shipping")
            created.append({
                "status": STATUS_NEW,
                "date": now_iso(),
                "quantity": 1,
                **data,
                "id": data.get("id") or short_id(),
            })
        async with self.table.gated():
            orders = self.table.read()
            if order_id is None:
                order_id = _free_order_number(orders)
            for line in created:
                line["orderId"] = order_id
            orders.extend(created)
            self.table.write(orders)
        logger.info("order %s stored with %d line(s)",
                    created[0]["orderId"] if created else "-", len(created))
        return created

    async def add_order(self, data: Dict[str, Any],
                        order_id: Optional[str] = None) -> Order:
        return (await self.add_orders([data], order_id))[0]

    async def _update_line(self, line_id: str,
                           changes: Dict[str, Any]) -> Order:
        async with self.table.gated():
            orders = self.table.read()
            for i, order in enumerate(orders):
                if order.get("id") == line_id:
                    orders[i] = {**order, **changes}
                    self.table.write(orders)
                    return orders[i]
        raise NotFoundError(f"order {line_id} not found")

    async def update_order(self, line_id: str,
                           data: Dict[str, Any]) -> Order:
        data = {k: v for k, v in data.items() if k != "id"}
        if "status" in data and data["status"] not in STATUSES:
            raise ValidationError(f"unknown status: {data['status']}")
        return await self._update_line(line_id, data)

    async def set_status(self, order_id: str, status: str) -> List[Order]:
        """Move every line of an order to `status`."""
        if status not in STATUSES:
            raise ValidationError(f"unknown status: {status}")
        async with self.table.gated():
            orders = self.table.read()
            touched = []
            for order in orders:
                if order.get("orderId") == order_id or \
                        order.get("id") == order_id:
                    order["status"] = status
                    touched.append(order)
            if not touched:
                raise NotFoundError(f"order {order_id} not found")
            self.table.write(orders)
        logger.info("order %s -> %s", order_id, status)
        return touched

    async def update_tracking(self, line_id: str,
                              tracking_number: str) -> Order:
        # a new number has not been sent to the customer yet
        return await self._update_line(line_id, {
            "trackingNumber": tracking_number,
            "trackingSent": False,
        })

    async def mark_tracking_sent(self, line_id: str) -> Order:
        return await self._update_line(line_id, {"trackingSent": True})

    async def set_ordered_from_supplier(self, line_id: str,
                                        ordered: bool = True) -> Order:
        return await self._update_line(
            line_id, {"orderedFromSupplier": bool(ordered)}
        )

    async def delete_order(self, line_id: str) -> bool:
        async with self.table.gated():
            orders = self.table.read()
            kept = [o for o in orders if o.get("id") != line_id]
            if len(kept) == len(orders):
                return False
            self.table.write(kept)
        return True

    async def delete_order_group(self, order_id: str) -> int:
        async with self.table.gated():
            orders = self.table.read()
            kept = [o for o in orders if o.get("orderId") != order_id]
            deleted = len(orders) - len(kept)
            if deleted:
                self.table.write(kept)
        return deleted
