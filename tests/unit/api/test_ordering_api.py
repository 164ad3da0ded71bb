from __future__ import annotations

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))


def _order_url(cafe_id: str, table_id: str = "T1") -> str:
    return f"/v1/cafes/{cafe_id}/tables/{table_id}/orders"


def test_customer_reads_cafe_and_menu(client, onboarded) -> None:
    cafe_id = onboarded["cafe"]["cafeId"]

    cafe = client.get(f"/v1/cafes/{cafe_id}")
    menu = client.get(f"/v1/cafes/{cafe_id}/menu")

    assert cafe.status_code == 200
    assert cafe.json()["tableStatus"] == {"T1": "Vacant", "T2": "Vacant", "T3": "Vacant"}
    assert cafe.json()["ownerLinked"] is True
    assert [item["name"] for item in menu.json()["items"]] == ["Latte"]
    assert menu.json()["categories"] == ["Coffee"]


def test_placing_an_order_needs_a_token(client, onboarded) -> None:
    response = client.post(
        _order_url(onboarded["cafe"]["cafeId"]),
        json={"lines": [{"itemId": onboarded["item_id"]}]},
    )

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHENTICATED"


def test_order_lifecycle_over_http(client, onboarded) -> None:
    cafe_id = onboarded["cafe"]["cafeId"]
    guest, owner = onboarded["guest_headers"], onboarded["owner_headers"]

    placed = client.post(
        _order_url(cafe_id),
        json={"lines": [{"itemId": onboarded["item_id"], "quantity": 2}]},
        headers={**guest, "Idempotency-Key": "tap-1"},
    )
    assert placed.status_code == 201, placed.text
    order = placed.json()
    assert order["status"] == "Pending"
    assert order["total"] == {"amountCents": 800, "currency": "USD"}

    replay = client.post(
        _order_url(cafe_id),
        json={"lines": [{"itemId": onboarded["item_id"], "quantity": 2}]},
        headers={**guest, "Idempotency-Key": "tap-1"},
    )
    assert replay.status_code == 201
    assert replay.json()["orderId"] == order["orderId"]

    assert client.get(f"/v1/cafes/{cafe_id}").json()["tableStatus"]["T1"] == "Occupied"
    tracked = client.get(f"{_order_url(cafe_id)}/latest").json()
    assert tracked["phase"] == "active"

    queue = client.get(f"/v1/cafes/{cafe_id}/orders", headers=owner).json()["orders"]
    assert [entry["orderId"] for entry in queue] == [order["orderId"]]

    paid = client.patch(f"/v1/orders/{order['orderId']}/status", json={"status": "Paid"}, headers=owner)
    assert paid.status_code == 200
    assert paid.json()["status"] == "Paid"

    rejected = client.patch(f"/v1/orders/{order['orderId']}/status", json={"status": "Preparing"}, headers=owner)
    assert rejected.status_code == 409
    assert rejected.json()["error"]["code"] == "INVALID_ORDER_TRANSITION"

    assert client.get(f"/v1/cafes/{cafe_id}").json()["tableStatus"]["T1"] == "Vacant"
    assert client.get(f"{_order_url(cafe_id)}/latest").json()["phase"] == "complete"
    summary = client.get(f"/v1/cafes/{cafe_id}/sales-summary", headers=owner).json()
    assert summary["totalOrders"] == 1
    assert summary["popularItems"] == [{"name": "Latte", "count": 2}]


def test_idempotency_key_reused_with_other_cart(client, onboarded) -> None:
    cafe_id = onboarded["cafe"]["cafeId"]
    headers = {**onboarded["guest_headers"], "Idempotency-Key": "tap-2"}
    client.post(_order_url(cafe_id), json={"lines": [{"itemId": onboarded["item_id"]}]}, headers=headers)

    response = client.post(
        _order_url(cafe_id),
        json={"lines": [{"itemId": onboarded["item_id"], "quantity": 3}]},
        headers=headers,
    )

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "IDEMPOTENCY_KEY_REPLAY_DIFFERENT_PAYLOAD"


def test_empty_cart_is_a_validation_error(client, onboarded) -> None:
    response = client.post(
        _order_url(onboarded["cafe"]["cafeId"]),
        json={"lines": []},
        headers=onboarded["guest_headers"],
    )

    assert response.status_code == 400
    body = response.json()
    assert body["error"]["code"] == "INVALID_REQUEST"
    assert body["requestId"]


def test_unknown_table_and_cafe(client, onboarded) -> None:
    cafe_id = onboarded["cafe"]["cafeId"]

    unknown_table = client.post(
        _order_url(cafe_id, "T99"),
        json={"lines": [{"itemId": onboarded["item_id"]}]},
        headers=onboarded["guest_headers"],
    )
    unknown_cafe = client.get("/v1/cafes/nope")

    assert unknown_table.status_code == 404
    assert unknown_table.json()["error"]["code"] == "TABLE_NOT_FOUND"
    assert unknown_cafe.status_code == 404
    assert unknown_cafe.json()["error"]["code"] == "CAFE_NOT_FOUND"


def test_call_server_and_acknowledge(client, onboarded) -> None:
    cafe_id = onboarded["cafe"]["cafeId"]
    owner = onboarded["owner_headers"]

    raised = client.post(f"/v1/cafes/{cafe_id}/tables/T2/requests", headers=onboarded["guest_headers"])
    assert raised.status_code == 201
    request_id = raised.json()["requestId"]

    open_requests = client.get(f"/v1/cafes/{cafe_id}/requests", headers=owner).json()["requests"]
    assert [entry["requestId"] for entry in open_requests] == [request_id]

    acknowledged = client.post(f"/v1/requests/{request_id}/acknowledge", headers=owner)
    assert acknowledged.json()["status"] == "done"
    assert client.get(f"/v1/cafes/{cafe_id}/requests", headers=owner).json()["requests"] == []


def test_owner_routes_reject_guests(client, onboarded) -> None:
    cafe_id = onboarded["cafe"]["cafeId"]

    response = client.get(f"/v1/cafes/{cafe_id}/orders", headers=onboarded["guest_headers"])

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "PERMISSION_DENIED"
