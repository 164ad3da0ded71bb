from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, Iterator

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from bayorder.api.deps import reset_dependencies
from bayorder.api.main import app


@pytest.fixture
def client(monkeypatch) -> Iterator[TestClient]:
    monkeypatch.setenv("STORE_BACKEND", "memory")
    monkeypatch.setenv("JWT_SECRET_KEY", "api-test-secret")
    monkeypatch.setenv("ADMIN_USERNAME", "admin")
    monkeypatch.setenv("ADMIN_PASSWORD", "admin123")
    monkeypatch.setenv("ADMIN_EMAIL", "admin@bayorder.app")
    monkeypatch.setenv("TABLE_ORDER_POLICY", "shared")
    monkeypatch.delenv("REDIS_URL", raising=False)
    reset_dependencies()
    with TestClient(app) as test_client:
        yield test_client
    reset_dependencies()


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def login(client) -> Callable[[str, str], dict]:
    def _login(username: str, password: str) -> dict:
        response = client.post("/v1/auth/login", json={"username": username, "password": password})
        assert response.status_code == 200, response.text
        return response.json()

    return _login


@pytest.fixture
def admin_headers(login) -> dict[str, str]:
    return bearer(login("admin", "admin123")["token"])


@pytest.fixture
def onboarded(client, admin_headers, login) -> dict:
    """A fresh cafe with three tables, its owner signed in and one menu item."""
    created = client.post(
        "/v1/admin/cafes",
        json={"name": "Dockside", "address": "2 Pier Rd", "tableCount": 3},
        headers=admin_headers,
    )
    assert created.status_code == 201, created.text
    cafe = created.json()
    owner = login(cafe["ownerUsername"], cafe["ownerPassword"])
    owner_headers = bearer(owner["token"])

    item = client.post(
        f"/v1/cafes/{cafe['cafeId']}/menu/items",
        json={"name": "Latte", "price": "4.00", "category": "Coffee"},
        headers=owner_headers,
    )
    assert item.status_code == 201, item.text

    guest = client.post("/v1/auth/anonymous").json()
    return {
        "cafe": cafe,
        "owner": owner,
        "owner_headers": owner_headers,
        "guest_headers": bearer(guest["token"]),
        "item_id": item.json()["itemId"],
    }
