from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum

from bayorder.domain.common.ids import CafeId, MenuItemId, OrderId, TableId
from bayorder.domain.common.money import Money
from bayorder.domain.menu.entities import Customization


class OrderStatus(str, Enum):
    PENDING = "Pending"
    PREPARING = "Preparing"
    READY_FOR_DELIVERY = "Ready for Delivery"
    PAID = "Paid"

    @property
    def rank(self) -> int:
        return _STATUS_ORDER.index(self)

    @property
    def is_terminal(self) -> bool:
        return self == OrderStatus.PAID

    @property
    def progress_step(self) -> int | None:
        """Step on the customer's three-step progress bar; Paid has its own screen."""
        if self.is_terminal:
            return None
        return self.rank + 1

    def next_statuses(self) -> list[OrderStatus]:
        return list(_STATUS_ORDER[self.rank + 1 :])


_STATUS_ORDER = (
    OrderStatus.PENDING,
    OrderStatus.PREPARING,
    OrderStatus.READY_FOR_DELIVERY,
    OrderStatus.PAID,
)

PROGRESS_STEPS = 3


@dataclass(frozen=True)
class OrderLine:
    item_id: MenuItemId
    name: str
    quantity: int
    unit_price: Money
    customizations: tuple[Customization, ...] = ()

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise ValueError("quantity must be >= 1")

    @property
    def line_total(self) -> Money:
        return self.unit_price.times(self.quantity)


@dataclass(frozen=True)
class Order:
    order_id: OrderId
    cafe_id: CafeId
    table_id: TableId
    status: OrderStatus
    lines: tuple[OrderLine, ...]
    total: Money
    created_at: datetime | None
    paid_at: datetime | None = None
    idempotency_key: str | None = None

    def __post_init__(self) -> None:
        if not self.lines:
            raise ValueError("order must contain at least one line")

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    @property
    def is_active(self) -> bool:
        return not self.status.is_terminal

    def advance(self, new_status: OrderStatus, now: datetime) -> Order:
        if new_status == self.status:
            return self
        if new_status.rank < self.status.rank:
            raise OrderTransitionError(
                f"cannot move order {self.order_id} from {self.status.value} back to {new_status.value}"
            )
        if new_status == OrderStatus.PAID:
            return replace(self, status=new_status, paid_at=now)
        return replace(self, status=new_status)


def order_total(lines: list[OrderLine] | tuple[OrderLine, ...]) -> Money:
    if not lines:
        raise ValueError("order must contain at least one line")
    currency = lines[0].unit_price.currency
    return Money(
        amount_cents=sum(line.line_total.amount_cents for line in lines),
        currency=currency,
    )


def create_pending_order(
    order_id: OrderId,
    cafe_id: CafeId,
    table_id: TableId,
    lines: list[OrderLine],
    idempotency_key: str | None = None,
) -> Order:
    """Build a new order; ``created_at`` stays unset until the store stamps it."""
    frozen_lines = tuple(lines)
    return Order(
        order_id=order_id,
        cafe_id=cafe_id,
        table_id=table_id,
        status=OrderStatus.PENDING,
        lines=frozen_lines,
        total=order_total(frozen_lines),
        created_at=None,
        idempotency_key=idempotency_key,
    )


class OrderTransitionError(Exception):
    pass
