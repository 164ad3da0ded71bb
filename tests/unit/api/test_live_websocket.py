from __future__ import annotations

import sys
from pathlib import Path

import pytest
from starlette.websockets import WebSocketDisconnect

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))


def test_latest_order_stream_follows_new_orders(client, onboarded) -> None:
    cafe_id = onboarded["cafe"]["cafeId"]
    token = onboarded["guest_headers"]["Authorization"].split(" ", 1)[1]

    with client.websocket_connect(f"/ws/live?query=latestOrder&cafeId={cafe_id}&tableId=T1&token={token}") as ws:
        initial = ws.receive_json()
        assert initial == {"type": "snapshot", "query": "latestOrder", "documents": []}

        placed = client.post(
            f"/v1/cafes/{cafe_id}/tables/T1/orders",
            json={"lines": [{"itemId": onboarded["item_id"]}]},
            headers=onboarded["guest_headers"],
        )
        update = ws.receive_json()

    assert update["documents"][0]["id"] == placed.json()["orderId"]
    assert update["documents"][0]["data"]["status"] == "Pending"


def test_owner_queue_stream_requires_owner(client, onboarded) -> None:
    cafe_id = onboarded["cafe"]["cafeId"]

    with pytest.raises(WebSocketDisconnect) as closed:
        with client.websocket_connect(f"/ws/live?query=activeOrders&cafeId={cafe_id}") as ws:
            ws.receive_json()

    assert closed.value.code == 1008


def test_unknown_live_query_is_refused(client) -> None:
    with pytest.raises(WebSocketDisconnect) as closed:
        with client.websocket_connect("/ws/live?query=everything&cafeId=x") as ws:
            ws.receive_json()

    assert closed.value.code == 1008
