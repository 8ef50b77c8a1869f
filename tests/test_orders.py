import asyncio

import pytest

from youngriders import config
from youngriders.model.errors import NotFoundError, ValidationError
from youngriders.model.orders import group_for_print

CUSTOMER = {"name": "Jan Jansen", "email": "jan@example.com",
            "phone": "0687654321"}


def line(color, size, status="betaald", **extra):
    return {"color": color, "size": size, "status": status, **extra}


def test_group_for_print_sums_quantities():
    orders = [
        line("black", "l", quantity=2),
        line("black", "l"),
        line("lilac", "m", status="nieuw"),
    ]
    summary = group_for_print(orders, "betaald")
    assert summary["groups"] == [
        {"color": "black", "size": "l", "isCrew": False, "count": 3},
    ]
    assert summary["total_items"] == 3
    assert summary["regular_items"] == 3
    assert summary["crew_items"] == 0


def test_group_for_print_ordering():
    orders = [
        line("lilac", "xl"),
        line("black", "xxl"),
        line("black", "s"),
        line("olive", "m", isCrew=True),
        line("burgundy", "m", quantity=4),
    ]
    summary = group_for_print(orders, "all")
    assert [(g["color"], g["size"], g["isCrew"]) for g in summary["groups"]] \
        == [
            ("olive", "m", True),
            ("black", "s", False),
            ("black", "xxl", False),
            ("burgundy", "m", False),
            ("lilac", "xl", False),
        ]
    assert summary["crew_items"] == 1
    assert summary["total_items"] == 8


def test_add_orders_share_order_id(db):
    lines = [{**CUSTOMER, "color": "black", "size": "l", "price": 50},
             {**CUSTOMER, "color": "lilac", "size": "s", "price": 53.5,
              "delivery": "shipping"}]
    created = asyncio.run(db.orders.add_orders(lines, "ORDER-0042"))
    assert {o["orderId"] for o in created} == {"ORDER-0042"}
    assert all(o["status"] == "nieuw" for o in created)
    assert len({o["id"] for o in created}) == 2
    assert asyncio.run(db.orders.by_order_id("ORDER-0042")) == created


def test_set_status_updates_every_line(db):
    async def scenario():
        await db.orders.add_orders(
            [{**CUSTOMER, "color": "black", "size": "m"}] * 2, "ORDER-0001"
        )
        await db.orders.set_status("ORDER-0001", "betaald")
        with pytest.raises(ValidationError):
            await db.orders.set_status("ORDER-0001", "kwijt")
        with pytest.raises(NotFoundError):
            await db.orders.set_status("ORDER-9999", "betaald")
        return await db.orders.status_counts()

    counts = asyncio.run(scenario())
    assert counts["all"] == 2
    assert counts["betaald"] == 2
    assert counts["nieuw"] == 0


def test_tracking_resets_sent_flag(db):
    async def scenario():
        order = await db.orders.add_order(
            {**CUSTOMER, "color": "black", "size": "m"}, "ORDER-0002"
        )
        await db.orders.update_tracking(order["id"], "3SABC")
        await db.orders.mark_tracking_sent(order["id"])
        return await db.orders.update_tracking(order["id"], "3SXYZ")

    order = asyncio.run(scenario())
    assert order["trackingNumber"] == "3SXYZ"
    assert order["trackingSent"] is False


def test_delete_order_group(db):
    async def scenario():
        await db.orders.add_orders(
            [{**CUSTOMER, "color": "black", "size": "m"}] * 3, "ORDER-0003"
        )
        return await db.orders.delete_order_group("ORDER-0003")

    assert asyncio.run(scenario()) == 3
    assert asyncio.run(db.orders.list_orders()) == []


def test_place_order_api(client):
    r = client.post("/api/orders", json={**CUSTOMER, "color": "ocean-blue",
                                         "size": "xl"})
    assert r.status_code == 201
    order = r.json()
    assert order["price"] == config.HOODIE_PRICE
    assert order["address"] == "Ophalen"

    status = client.get(f"/api/orders/{order['orderId']}").json()
    assert status["status"] == "nieuw"
    assert status["total"] == config.HOODIE_PRICE


def test_place_order_validation(client):
    r = client.post("/api/orders", json={**CUSTOMER, "color": "pink",
                                         "size": "l"})
    assert r.status_code == 400
    r = client.post("/api/orders", json={**CUSTOMER, "color": "black",
                                         "size": "l", "delivery": "shipping"})
    assert r.status_code == 400
    assert r.json() == {"error": "address is required for shipping"}


def test_crew_order_needs_access_code(client):
    r = client.post("/api/crew-orders", json={**CUSTOMER, "size": "m",
                                              "accessCode": "wrong"})
    assert r.status_code == 400

    r = client.post("/api/crew-orders", json={
        **CUSTOMER, "size": "m", "accessCode": config.CREW_ACCESS_CODE,
    })
    assert r.status_code == 201
    order = r.json()
    assert order["color"] == "olive"
    assert order["isCrew"] is True
    assert order["price"] == 0


def test_admin_order_routes(admin_client):
    order = admin_client.post("/api/orders", json={
        **CUSTOMER, "color": "black", "size": "l",
    }).json()
    r = admin_client.put(f"/api/orders/{order['orderId']}/status",
                         json={"status": "betaald"})
    assert r.status_code == 200

    summary = admin_client.get("/api/orders/print?status=betaald").json()
    assert summary["groups"] == [
        {"color": "black", "size": "l", "isCrew": False, "count": 1},
    ]
    assert admin_client.get("/api/orders/counts").json()["betaald"] == 1
    assert len(admin_client.get("/api/recent-orders").json()) == 1


def test_order_list_requires_permission(client):
    assert client.get("/api/orders").status_code == 401


def test_drawn_order_numbers_never_collide(db, monkeypatch):
    numbers = iter(["ORDER-0001", "ORDER-0001", "ORDER-0002"])
    monkeypatch.setattr("youngriders.model.orders.new_order_number",
                        lambda: next(numbers))

    async def scenario():
        first = await db.orders.add_order({**CUSTOMER, "color": "black",
                                           "size": "m"})
        second = await db.orders.add_order({**CUSTOMER, "color": "lilac",
                                            "size": "l"})
        return first, second

    first, second = asyncio.run(scenario())
    assert first["orderId"] == "ORDER-0001"
    assert second["orderId"] == "ORDER-0002"
    assert asyncio.run(db.orders.by_order_id("ORDER-0001")) == [first]
    assert asyncio.run(db.orders.by_order_id("ORDER-0002")) == [second]


def test_place_order_rejects_non_text_customer_fields(client):
    r = client.post("/api/orders", json={**CUSTOMER, "name": 42,
                                         "color": "black", "size": "l"})
    assert r.status_code == 400
    assert r.json() == {"error": "name, email and phone must be text"}
