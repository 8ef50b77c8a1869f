from conftest import ADMIN


def test_bootstrap_admin_can_log_in(client):
    r = client.post("/api/admin/login", json=ADMIN)
    assert r.status_code == 200
    assert r.json()["success"] is True
    assert "passwordHash" not in r.json()["user"]

    session = client.get("/api/admin/check-session").json()
    assert session["authenticated"] is True
    assert session["user"]["username"] == ADMIN["username"]


def test_wrong_password(client):
    r = client.post("/api/admin/login",
                    json={"username": ADMIN["username"], "password": "x"})
    assert r.status_code == 401
    assert r.json()["success"] is False
    assert client.get("/api/admin/check-session").json() == \
        {"authenticated": False}


def test_logout(admin_client):
    admin_client.post("/api/admin/logout")
    assert admin_client.get("/api/admin/check-session").json() == \
        {"authenticated": False}
    assert admin_client.get("/api/admin/users").status_code == 401


def test_users_crud_and_permissions(admin_client):
    r = admin_client.post("/api/admin/users", json={
        "username": "winkel", "password": "shop123",
        "permissions": ["orders"],
    })
    assert r.status_code == 201
    user = r.json()
    assert "passwordHash" not in user

    r = admin_client.post("/api/admin/users", json={
        "username": "winkel", "password": "again",
    })
    assert r.status_code == 409

    usernames = [u["username"] for u in
                 admin_client.get("/api/admin/users").json()]
    assert usernames == [ADMIN["username"], "winkel"]

    # a user without the users permission gets 403
    admin_client.post("/api/admin/logout")
    admin_client.post("/api/admin/login",
                      json={"username": "winkel", "password": "shop123"})
    assert admin_client.get("/api/admin/users").status_code == 403
    assert admin_client.get("/api/orders").status_code == 200


def test_admin_pages_redirect_to_login(client):
    r = client.get("/admin/orders", follow_redirects=False)
    assert r.status_code == 307
    assert r.headers["location"] == "/admin/login?next=/admin/orders"


def test_html_login_flow(client):
    r = client.post("/admin/login", data={**ADMIN, "next": "/admin/rides"},
                    follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/admin/rides"
    assert client.get("/admin").status_code == 200
    assert client.get("/admin/orders/print").status_code == 200

    r = client.get("/admin/logout", follow_redirects=False)
    assert r.headers["location"] == "/"
    r = client.post("/admin/login", data={"username": "admin",
                                          "password": "nope"})
    assert r.status_code == 401


def test_login_ignores_off_site_next(client):
    for target in ("//evil.example", "/\\evil.example", "https://evil.example"):
        r = client.post("/admin/login", data={**ADMIN, "next": target},
                        follow_redirects=False)
        assert r.status_code == 303
        assert r.headers["location"] == "/admin"
