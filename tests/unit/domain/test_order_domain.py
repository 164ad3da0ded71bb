from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from bayorder.domain.common.ids import CafeId, MenuItemId, OrderId, TableId
from bayorder.domain.common.money import Money
from bayorder.domain.order.entities import (
    OrderLine,
    OrderStatus,
    OrderTransitionError,
    create_pending_order,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _order():
    return create_pending_order(
        OrderId("ord_1"),
        CafeId("cafe_001"),
        TableId("T1"),
        [
            OrderLine(MenuItemId("itm_latte"), "Latte", 2, Money.from_decimal("4.00")),
            OrderLine(MenuItemId("itm_croissant"), "Croissant", 1, Money.from_decimal("4.25")),
        ],
    )


def test_new_order_is_pending_with_derived_total() -> None:
    order = _order()

    assert order.status == OrderStatus.PENDING
    assert order.total == Money(amount_cents=1225)
    assert order.item_count == 3
    assert order.created_at is None


def test_order_requires_lines() -> None:
    with pytest.raises(ValueError):
        create_pending_order(OrderId("ord_x"), CafeId("c"), TableId("T1"), [])


def test_status_moves_forward_and_may_skip_steps() -> None:
    order = _order()

    ready = order.advance(OrderStatus.READY_FOR_DELIVERY, NOW)
    assert ready.status == OrderStatus.READY_FOR_DELIVERY
    assert ready.paid_at is None

    paid = ready.advance(OrderStatus.PAID, NOW)
    assert paid.status == OrderStatus.PAID
    assert paid.paid_at == NOW
    assert not paid.is_active


def test_status_never_moves_backward() -> None:
    preparing = _order().advance(OrderStatus.PREPARING, NOW)

    with pytest.raises(OrderTransitionError):
        preparing.advance(OrderStatus.PENDING, NOW)


def test_same_status_is_a_no_op() -> None:
    order = _order()
    assert order.advance(OrderStatus.PENDING, NOW) is order


@pytest.mark.parametrize(
    ("status", "step"),
    [
        (OrderStatus.PENDING, 1),
        (OrderStatus.PREPARING, 2),
        (OrderStatus.READY_FOR_DELIVERY, 3),
        (OrderStatus.PAID, None),
    ],
)
def test_progress_step(status: OrderStatus, step: int | None) -> None:
    assert status.progress_step == step


def test_next_statuses_lists_everything_ahead() -> None:
    assert OrderStatus.PREPARING.next_statuses() == [OrderStatus.READY_FOR_DELIVERY, OrderStatus.PAID]
    assert OrderStatus.PAID.next_statuses() == []


def test_line_quantity_must_be_positive() -> None:
    with pytest.raises(ValueError):
        OrderLine(MenuItemId("itm"), "X", 0, Money.from_decimal("1.00"))
