from youngriders import config

CUSTOMER = {"name": "Jan Jansen", "email": "jan@example.com",
            "phone": "0687654321"}


def add_to_cart(client, **fields):
    form = {"color": "black", "size": "l", "quantity": "1",
            "delivery": "pickup", **fields}
    r = client.post("/cart/add", data=form, follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/cart"


def test_empty_cart_redirects_back(client):
    r = client.get("/checkout", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/cart?error=empty"
    r = client.post("/checkout", data=CUSTOMER, follow_redirects=False)
    assert r.headers["location"] == "/cart?error=empty"


def test_checkout_creates_one_line_per_item(client):
    add_to_cart(client, quantity="2")
    add_to_cart(client)
    add_to_cart(client, color="lilac", size="s", delivery="shipping")

    r = client.get("/cart")
    assert r.status_code == 200
    assert "Zwart" in r.text

    r = client.post("/checkout", data={
        **CUSTOMER, "street": "Hoofdstraat", "house_number": "1",
        "postal_code": "7511 AA", "city": "Enschede",
    }, follow_redirects=False)
    assert r.status_code == 303
    location = r.headers["location"]
    assert location.startswith("/order-confirmation/ORDER-")
    order_id = location.rsplit("/", 1)[1]

    status = client.get(f"/api/orders/{order_id}").json()
    lines = sorted(status["lines"], key=lambda x: x["color"])
    assert [(x["color"], x["quantity"]) for x in lines] == \
        [("black", 3), ("lilac", 1)]
    assert lines[0]["price"] == config.HOODIE_PRICE
    assert lines[1]["price"] == config.HOODIE_PRICE + config.SHIPPING_COST

    stored = client.app.state.db.orders.table.read()
    addresses = {o["color"]: o["address"] for o in stored}
    assert addresses == {"black": "Ophalen",
                         "lilac": "Hoofdstraat 1, 7511 AA Enschede"}

    # cart is emptied
    assert client.get("/checkout", follow_redirects=False).status_code == 303
    assert client.get(location).status_code == 200


def test_shipping_requires_address(client):
    add_to_cart(client, delivery="shipping")
    r = client.post("/checkout", data=CUSTOMER)
    assert r.status_code == 400
    assert client.app.state.db.orders.table.read() == []


def test_cart_update_and_remove(client):
    add_to_cart(client)
    r = client.get("/cart")
    assert r.status_code == 200
    # the item id is rendered into the update form
    marker = 'name="item_id" value="'
    start = r.text.index(marker) + len(marker)
    item_id = r.text[start:r.text.index('"', start)]

    client.post("/cart/update", data={"item_id": item_id, "quantity": "4"})
    assert "&euro; 200.00" in client.get("/cart").text
    client.post("/cart/remove", data={"item_id": item_id})
    assert "Er zit nog niets" in client.get("/cart").text


def test_bad_cart_item_is_rejected(client):
    r = client.post("/cart/add", data={"color": "pink", "size": "l"})
    assert r.status_code == 400
