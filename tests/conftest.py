import pytest
from fastapi.testclient import TestClient

from youngriders import config
from youngriders.model.db import Database

ADMIN = {"username": "admin", "password": "test-password"}


@pytest.fixture
def data_dir(tmp_path):
    return str(tmp_path / "data")


@pytest.fixture
def db(data_dir):
    database = Database(data_dir)
    database.ensure()
    return database


@pytest.fixture
def app_config(tmp_path, data_dir, monkeypatch):
    monkeypatch.setattr(config, "DATA_DIR", data_dir)
    monkeypatch.setattr(config, "UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.setattr(config, "ADMIN_USERNAME", ADMIN["username"])
    monkeypatch.setattr(config, "ADMIN_PASSWORD", ADMIN["password"])


@pytest.fixture
def client(app_config):
    from youngriders.server import app
    with TestClient(app) as c:
        yield c


@pytest.fixture
def admin_client(client):
    r = client.post("/api/admin/login", json=ADMIN)
    assert r.status_code == 200
    return client


@pytest.fixture
def make_ride(admin_client):
    def _make(**fields):
        payload = {
            "title": "Voorjaarsrit",
            "date": "2099-04-12",
            "time": "10:00",
            "startLocation": "Enschede",
            "distance": "150 km",
            "spots": 10,
            **fields,
        }
        r = admin_client.post("/api/rides", json=payload)
        assert r.status_code == 201, r.text
        return r.json()
    return _make


RIDER = {
    "firstName": "Sanne",
    "lastName": "de Vries",
    "email": "sanne@example.com",
    "phone": "0612345678",
    "motorcycle": "Yamaha MT-07",
}
