from __future__ import annotations

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from bayorder.application.live.latest_order import LatestOrderReducer, TrackingPhase
from bayorder.application.live.snapshots import ChangeKind, SnapshotDiffer
from bayorder.application.ports.store import Document
from bayorder.domain.common.ids import CafeId, MenuItemId, OrderId, TableId
from bayorder.domain.common.money import Money
from bayorder.domain.order.entities import Order, OrderLine, OrderStatus


def _order(order_id: str, status: OrderStatus) -> Order:
    line = OrderLine(item_id=MenuItemId("itm_latte"), name="Latte", quantity=1, unit_price=Money(400))
    return Order(
        order_id=OrderId(order_id),
        cafe_id=CafeId("cafe_001"),
        table_id=TableId("T1"),
        status=status,
        lines=(line,),
        total=Money(400),
        created_at=None,
    )


def test_reducer_walks_through_an_order_lifecycle() -> None:
    reducer = LatestOrderReducer()

    phases = [
        reducer.apply(_order("A", status)).phase
        for status in (OrderStatus.PENDING, OrderStatus.PREPARING, OrderStatus.READY_FOR_DELIVERY, OrderStatus.PAID)
    ]

    assert phases == [TrackingPhase.ACTIVE, TrackingPhase.ACTIVE, TrackingPhase.ACTIVE, TrackingPhase.COMPLETE]
    assert reducer.state.order.order_id == "A"


def test_paid_order_seen_twice_clears_the_view() -> None:
    reducer = LatestOrderReducer()
    reducer.apply(_order("A", OrderStatus.READY_FOR_DELIVERY))
    reducer.apply(_order("A", OrderStatus.PAID))

    state = reducer.apply(_order("A", OrderStatus.PAID))

    assert state.phase == TrackingPhase.NONE
    assert state.order is None


def test_paid_order_on_first_sight_is_complete() -> None:
    reducer = LatestOrderReducer()

    assert reducer.apply(_order("A", OrderStatus.PAID)).phase == TrackingPhase.COMPLETE
    assert reducer.apply(_order("B", OrderStatus.PENDING)).phase == TrackingPhase.ACTIVE
    assert reducer.apply(None).phase == TrackingPhase.NONE


def test_differ_reports_only_real_transitions() -> None:
    differ = SnapshotDiffer()
    first = [Document("a", {"status": "new"}), Document("b", {"status": "new"})]

    added = differ.apply(first)
    assert [(change.kind, change.document.id) for change in added] == [
        (ChangeKind.ADDED, "a"),
        (ChangeKind.ADDED, "b"),
    ]
    assert differ.primed is True

    assert differ.apply([Document("a", {"status": "new"}), Document("b", {"status": "new"})]) == []

    changes = differ.apply([Document("b", {"status": "done"}), Document("c", {"status": "new"})])
    assert [(change.kind, change.document.id) for change in changes] == [
        (ChangeKind.REMOVED, "a"),
        (ChangeKind.MODIFIED, "b"),
        (ChangeKind.ADDED, "c"),
    ]
    assert changes[0].document.data == {"status": "new"}


def test_differ_reset_forgets_history() -> None:
    differ = SnapshotDiffer()
    differ.apply([Document("a", {})])

    differ.reset()

    assert differ.primed is False
    assert [change.kind for change in differ.apply([Document("a", {})])] == [ChangeKind.ADDED]
