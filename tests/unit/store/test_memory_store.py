from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from bayorder.application.ports.store import (
    DELETE_FIELD,
    SERVER_TIMESTAMP,
    DocumentExistsError,
    DocumentNotFoundError,
    FieldOp,
    PreconditionFailedError,
    Query,
    WriteBatch,
    document_query,
)


def test_create_stamps_server_timestamp_with_store_clock(store, clock) -> None:
    expected = clock.now
    store.commit(WriteBatch().create("orders", "o1", {"status": "Pending", "createdAt": SERVER_TIMESTAMP}))

    document = store.get("orders", "o1")

    assert document is not None
    assert document.get("createdAt") == expected.isoformat(timespec="microseconds")


def test_create_fails_when_document_exists(store) -> None:
    store.commit(WriteBatch().create("orders", "o1", {"status": "Pending"}))

    with pytest.raises(DocumentExistsError):
        store.commit(WriteBatch().create("orders", "o1", {"status": "Paid"}))

    assert store.get("orders", "o1").get("status") == "Pending"


def test_failed_batch_applies_nothing(store) -> None:
    batch = (
        WriteBatch()
        .create("orders", "o1", {"status": "Pending"})
        .update("cafes", "missing", {"tableStatus.T1": "Occupied"})
    )

    with pytest.raises(DocumentNotFoundError):
        store.commit(batch)

    assert store.get("orders", "o1") is None


def test_update_writes_nested_paths_and_deletes_fields(store) -> None:
    store.commit(WriteBatch().create("cafes", "c1", {"tableStatus": {"T1": "Vacant", "T2": "Vacant"}}))

    store.commit(
        WriteBatch().update("cafes", "c1", {"tableStatus.T1": "Occupied", "tableStatus.T2": DELETE_FIELD})
    )

    assert store.get("cafes", "c1").data == {"tableStatus": {"T1": "Occupied"}}


def test_require_guards_the_whole_batch(store) -> None:
    store.commit(WriteBatch().create("cafes", "c1", {"tableStatus": {"T1": "Occupied"}}))
    batch = (
        WriteBatch()
        .require("cafes", "c1", "tableStatus.T1", "Vacant")
        .create("orders", "o1", {"status": "Pending"})
    )

    with pytest.raises(PreconditionFailedError):
        store.commit(batch)
    assert store.get("orders", "o1") is None


def test_reads_return_copies(store) -> None:
    store.commit(WriteBatch().create("menuItems", "m1", {"modifiers": [{"name": "Size"}]}))

    store.get("menuItems", "m1").data["modifiers"].append({"name": "Milk"})

    assert store.get("menuItems", "m1").data == {"modifiers": [{"name": "Size"}]}


def test_query_filters_orders_and_limits(store) -> None:
    batch = WriteBatch()
    for doc_id, status, created in [
        ("o1", "Paid", "2026-03-01T09:00:00.000000+00:00"),
        ("o2", "Pending", "2026-03-01T09:05:00.000000+00:00"),
        ("o3", "Preparing", "2026-03-01T09:01:00.000000+00:00"),
    ]:
        batch.create("orders", doc_id, {"cafeId": "c1", "status": status, "createdAt": created})
    batch.create("orders", "o4", {"cafeId": "c2", "status": "Pending", "createdAt": "2026-03-01T09:10:00.000000+00:00"})
    batch.create("orders", "o5", {"cafeId": "c1", "createdAt": "2026-03-01T09:20:00.000000+00:00"})
    store.commit(batch)

    active = store.query(
        Query(collection="orders")
        .where("cafeId", FieldOp.EQ, "c1")
        .where("status", FieldOp.NE, "Paid")
        .order("createdAt")
    )
    newest = store.query(
        Query(collection="orders").where("cafeId", "==", "c1").order("createdAt", descending=True).limited(1)
    )

    assert [document.id for document in active] == ["o3", "o2"]
    assert [document.id for document in newest] == ["o5"]


def test_ordering_drops_documents_missing_the_field(store) -> None:
    store.commit(
        WriteBatch()
        .create("requests", "r1", {"cafeId": "c1", "createdAt": "2026-03-01T09:00:00.000000+00:00"})
        .create("requests", "r2", {"cafeId": "c1"})
    )

    ordered = store.query(Query(collection="requests").order("createdAt"))

    assert [document.id for document in ordered] == ["r1"]


def test_type_mismatch_never_matches_range_filters(store) -> None:
    store.commit(WriteBatch().create("menuItems", "m1", {"price": "4.00"}).create("menuItems", "m2", {"price": 4.0}))

    cheap = store.query(Query(collection="menuItems").where("price", FieldOp.LT, 5))

    assert [document.id for document in cheap] == ["m2"]


def test_subscribe_delivers_initial_and_changed_results_only(store) -> None:
    store.commit(WriteBatch().create("cafes", "c1", {"name": "Harbour"}))
    snapshots: list[list[str]] = []

    subscription = store.subscribe(
        document_query("cafes", "c1"),
        lambda documents: snapshots.append([document.get("name") for document in documents]),
    )
    store.commit(WriteBatch().create("cafes", "c2", {"name": "Other"}))
    store.commit(WriteBatch().update("cafes", "c1", {"name": "Harbour Cafe"}))
    subscription.unsubscribe()
    store.commit(WriteBatch().update("cafes", "c1", {"name": "Closed"}))

    assert snapshots == [["Harbour"], ["Harbour Cafe"]]
    assert not subscription.active
    assert store.live_queries.size == 0


def test_failing_snapshot_callback_does_not_break_commit(store) -> None:
    def explode(_documents) -> None:
        raise RuntimeError("listener bug")

    store.subscribe(Query(collection="orders"), explode)
    store.commit(WriteBatch().create("orders", "o1", {"status": "Pending"}))

    assert store.get("orders", "o1") is not None


def test_query_errors_reach_the_error_callback(store) -> None:
    errors: list[Exception] = []
    broken = Query(collection="orders").where("status", FieldOp.EQ, "Pending")

    def failing_runner(_query):
        raise RuntimeError("index missing")

    standing = store.subscribe(broken, lambda documents: None, errors.append)
    standing.refresh(failing_runner)

    assert [str(error) for error in errors] == ["index missing"]
