import asyncio

import pytest

from youngriders.model.errors import ValidationError
from youngriders.model.siteconfig import DEFAULT_CONFIG

from conftest import ADMIN


def test_missing_keys_filled_from_defaults(db):
    db.site_config.table.write({"shopClosed": True})
    config = asyncio.run(db.site_config.get())
    assert config["shopClosed"] is True
    assert config["maintenanceMode"] is False
    assert config["logoPath"] == DEFAULT_CONFIG["logoPath"]


def test_toggles_require_booleans(db):
    with pytest.raises(ValidationError):
        asyncio.run(db.site_config.set_shop_closed("yes"))
    with pytest.raises(ValidationError):
        asyncio.run(db.site_config.update_maintenance_password(""))


def test_public_config_hides_password(client):
    config = client.get("/api/site-config").json()
    assert "maintenancePassword" not in config
    assert client.get("/api/site-status").json() == \
        {"maintenanceMode": False, "shopClosed": False}


def test_site_settings_actions(admin_client):
    r = admin_client.post("/api/admin/site-settings",
                          json={"action": "setShopClosed", "value": "true"})
    assert r.status_code == 400
    r = admin_client.post("/api/admin/site-settings",
                          json={"action": "reboot", "value": True})
    assert r.status_code == 400
    r = admin_client.post("/api/admin/site-settings",
                          json={"action": "updateMaintenancePassword",
                                "value": "nieuw-wachtwoord"})
    assert r.status_code == 200
    assert "maintenancePassword" not in r.json()["config"]


def set_flag(client, action, value):
    r = client.post("/api/admin/site-settings",
                    json={"action": action, "value": value})
    assert r.status_code == 200


def test_shop_closed_gate(admin_client):
    set_flag(admin_client, "setShopClosed", True)
    r = admin_client.get("/", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/shop-closed"
    assert admin_client.get("/webshop", follow_redirects=False) \
        .headers["location"] == "/shop-closed"
    assert admin_client.get("/shop-closed").status_code == 200
    # the API stays reachable
    assert admin_client.get("/api/site-status").json()["shopClosed"] is True

    set_flag(admin_client, "setShopClosed", False)
    assert admin_client.get("/", follow_redirects=False).status_code == 200
    r = admin_client.get("/shop-closed", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/"


def test_maintenance_gate_and_bypass(admin_client):
    set_flag(admin_client, "setMaintenanceMode", True)
    # admins are let through
    assert admin_client.get("/", follow_redirects=False).status_code == 200

    admin_client.post("/api/admin/logout")
    r = admin_client.get("/rides", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/maintenance"
    assert admin_client.get("/maintenance").status_code == 200

    r = admin_client.post("/api/check-maintenance-password",
                          json={"password": "wrong"})
    assert r.json() == {"success": False}
    r = admin_client.post("/api/check-maintenance-password",
                          json={"password": DEFAULT_CONFIG[
                              "maintenancePassword"]})
    assert r.json() == {"success": True}
    assert "maintenance_bypass=true" in r.headers["set-cookie"]
    assert admin_client.get("/rides", follow_redirects=False) \
        .status_code == 200


def test_maintenance_form_sets_cookie(client):
    client.post("/api/admin/login", json=ADMIN)
    set_flag(client, "setMaintenanceMode", True)
    client.post("/api/admin/logout")

    r = client.post("/maintenance", data={"password": "nope"})
    assert r.status_code == 401
    r = client.post("/maintenance", data={
        "password": DEFAULT_CONFIG["maintenancePassword"],
    }, follow_redirects=False)
    assert r.status_code == 303
    assert client.get("/", follow_redirects=False).status_code == 200


def test_upload_site_image(admin_client, tmp_path):
    r = admin_client.post(
        "/api/upload-site-image",
        files={"file": ("logo.png", b"\x89PNG fake", "image/png")},
        data={"type": "logo"},
    )
    assert r.status_code == 200
    path = r.json()["path"]
    assert path.startswith("/uploads/site/logo-") and path.endswith(".png")
    assert (tmp_path / "uploads" / path[len("/uploads/"):]).exists()
    assert admin_client.get("/api/site-config").json()["logoPath"] == path

    r = admin_client.post(
        "/api/upload-site-image",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        data={"type": "logo"},
    )
    assert r.status_code == 400


def test_update_site_images(admin_client):
    r = admin_client.post("/api/update-site-images",
                          json={"homeHeroImage": "/uploads/site/a.jpg",
                                "bogus": "/x"})
    config = r.json()["config"]
    assert config["homeHeroImage"] == "/uploads/site/a.jpg"
    assert "bogus" not in config
