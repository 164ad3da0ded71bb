from __future__ import annotations

import concurrent.futures
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from bayorder.application.mappers.cafe_mapper import cafe_to_document
from bayorder.application.mappers.collections import CAFES, ORDERS
from bayorder.application.ports.store import (
    DELETE_FIELD,
    SERVER_TIMESTAMP,
    DocumentExistsError,
    PreconditionFailedError,
    Query,
    WriteBatch,
)
from bayorder.application.use_cases.advance_order_status import AdvanceOrderStatus
from bayorder.application.use_cases.place_order import PlaceOrder, TableOccupiedError, TableOrderPolicy
from bayorder.application.ports.identity import Identity, Role
from bayorder.domain.cafe.entities import Cafe, default_tables
from bayorder.domain.common.ids import MenuItemId, TableId, UserId
from bayorder.domain.common.money import Money
from bayorder.domain.order.entities import OrderLine, OrderStatus
from bayorder.infrastructure.store.sql import SqlDocumentStore

pytestmark = pytest.mark.integration

OWNER = Identity(uid=UserId("it-owner"), role=Role.OWNER, token="unused")
LATTE = OrderLine(item_id=MenuItemId("itm_latte"), name="Latte", quantity=1, unit_price=Money(400))


@pytest.fixture
def store():
    sql_store = SqlDocumentStore()
    yield sql_store
    sql_store.close()


@pytest.fixture
def cafe(store, cafe_id) -> Cafe:
    created = Cafe(
        cafe_id=cafe_id,
        name="Integration Cafe",
        address="1 Test Rd",
        tables=default_tables(2),
        owner_user_id=OWNER.uid,
        table_count=2,
    )
    store.commit(WriteBatch().create(CAFES, str(cafe_id), cafe_to_document(created)))
    return created


def test_round_trip_with_nested_updates(store, cafe_id) -> None:
    doc_id = f"{cafe_id}-doc"
    store.commit(
        WriteBatch().create("scratch", doc_id, {"a": {"b": 1, "c": 2}, "stamp": SERVER_TIMESTAMP})
    )
    store.commit(WriteBatch().update("scratch", doc_id, {"a.b": 5, "a.c": DELETE_FIELD, "a.d": "x"}))

    document = store.get("scratch", doc_id)

    assert document.data["a"] == {"b": 5, "d": "x"}
    assert isinstance(document.get("stamp"), str)
    store.commit(WriteBatch().delete("scratch", doc_id))
    assert store.get("scratch", doc_id) is None


def test_failed_batch_writes_nothing(store, cafe, cafe_id) -> None:
    batch = (
        WriteBatch()
        .create("scratch", f"{cafe_id}-new", {"cafeId": str(cafe_id)})
        .create(CAFES, str(cafe_id), {"name": "duplicate"})
    )

    with pytest.raises(DocumentExistsError):
        store.commit(batch)
    assert store.get("scratch", f"{cafe_id}-new") is None

    with pytest.raises(PreconditionFailedError):
        store.commit(
            WriteBatch()
            .require(CAFES, str(cafe_id), "tableStatus.T1", "Occupied")
            .update(CAFES, str(cafe_id), {"name": "changed"})
        )
    assert store.get(CAFES, str(cafe_id)).get("name") == "Integration Cafe"


def test_queries_filter_order_and_limit(store, cafe_id) -> None:
    batch = WriteBatch()
    for index, rank in enumerate([3, 1, 2]):
        batch.create("scratch", f"{cafe_id}-{index}", {"cafeId": str(cafe_id), "rank": rank})
    batch.create("scratch", f"{cafe_id}-text", {"cafeId": str(cafe_id), "rank": "high"})
    batch.create("scratch", f"{cafe_id}-none", {"cafeId": str(cafe_id)})
    store.commit(batch)

    base = Query(collection="scratch").where("cafeId", "==", str(cafe_id))

    ordered = store.query(base.where("rank", ">", 1).order("rank", descending=True))
    assert [document.get("rank") for document in ordered] == [3, 2]
    assert len(store.query(base.order("rank").limited(2))) == 2
    assert len(store.query(base.order("rank"))) == 4
    assert [document.id for document in store.query(base.where("rank", "==", "high"))] == [f"{cafe_id}-text"]


def test_order_lifecycle_against_postgres(store, cafe) -> None:
    order = PlaceOrder(store).execute(cafe.cafe_id, TableId("T1"), [LATTE])
    assert store.get(CAFES, str(cafe.cafe_id)).get("tableStatus.T1") == "Occupied"

    paid = AdvanceOrderStatus(store).execute(OWNER, order.order_id, OrderStatus.PAID)

    assert paid.paid_at is not None
    assert store.get(CAFES, str(cafe.cafe_id)).get("tableStatus.T1") == "Vacant"
    assert store.get(ORDERS, str(order.order_id)).get("status") == "Paid"


def test_concurrent_orders_on_exclusive_table(store, cafe) -> None:
    place = PlaceOrder(store, TableOrderPolicy.EXCLUSIVE)

    def _place_once(_: int) -> str:
        try:
            place.execute(cafe.cafe_id, TableId("T2"), [LATTE])
            return "PLACED"
        except TableOccupiedError:
            return "OCCUPIED"

    with concurrent.futures.ThreadPoolExecutor(max_workers=2) as executor:
        results = list(executor.map(_place_once, [0, 1]))

    assert sorted(results) == ["OCCUPIED", "PLACED"]


def test_concurrent_submissions_with_same_key_create_one_order(store, cafe) -> None:
    place = PlaceOrder(store)

    with concurrent.futures.ThreadPoolExecutor(max_workers=2) as executor:
        orders = list(
            executor.map(
                lambda _: place.execute(cafe.cafe_id, TableId("T1"), [LATTE], idempotency_key="double-tap"),
                [0, 1],
            )
        )

    assert orders[0].order_id == orders[1].order_id
    placed = store.query(Query(collection=ORDERS).where("cafeId", "==", str(cafe.cafe_id)))
    assert len(placed) == 1
