from __future__ import annotations

import itertools
import time
from dataclasses import dataclass, replace
from typing import Callable, Iterable, Sequence

from bayorder.domain.common.ids import MenuItemId
from bayorder.domain.common.money import DEFAULT_CURRENCY, Money
from bayorder.domain.menu.entities import Customization, MenuItem
from bayorder.domain.order.entities import Order, OrderLine


@dataclass(frozen=True)
class CartLine:
    unique_id: str
    item: MenuItem
    quantity: int
    customizations: tuple[Customization, ...]
    unit_price: Money

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise ValueError("quantity must be >= 1")

    @property
    def item_id(self) -> MenuItemId:
        return self.item.item_id

    @property
    def is_plain(self) -> bool:
        return not self.customizations

    @property
    def line_total(self) -> Money:
        return self.unit_price.times(self.quantity)

    def to_order_line(self) -> OrderLine:
        return OrderLine(
            item_id=self.item.item_id,
            name=self.item.name,
            quantity=self.quantity,
            unit_price=self.unit_price,
            customizations=self.customizations,
        )


def _epoch_millis() -> int:
    return time.time_ns() // 1_000_000


class Cart:
    """In-memory cart for one customer session.

    Plain lines (no customizations) of the same menu item merge by quantity;
    every customized add becomes its own line. ``total`` and ``item_count``
    are derived from the lines on every read, so they can never drift.
    """

    def __init__(
        self,
        currency: str = DEFAULT_CURRENCY,
        clock_ms: Callable[[], int] = _epoch_millis,
    ) -> None:
        self._currency = currency
        self._clock_ms = clock_ms
        self._sequence = itertools.count(1)
        self._lines: list[CartLine] = []

    @property
    def lines(self) -> list[CartLine]:
        return list(self._lines)

    @property
    def is_empty(self) -> bool:
        return not self._lines

    @property
    def total(self) -> Money:
        total = Money.zero(self._currency)
        for line in self._lines:
            total = total + line.line_total
        return total

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self._lines)

    def line(self, unique_id: str) -> CartLine | None:
        for candidate in self._lines:
            if candidate.unique_id == unique_id:
                return candidate
        return None

    def plain_line_for(self, item_id: MenuItemId) -> CartLine | None:
        for candidate in self._lines:
            if candidate.item_id == item_id and candidate.is_plain:
                return candidate
        return None

    def add_simple_item(self, item: MenuItem) -> CartLine:
        existing = self.plain_line_for(item.item_id)
        if existing is not None:
            merged = replace(existing, quantity=existing.quantity + 1)
            self._lines = [merged if line.unique_id == existing.unique_id else line for line in self._lines]
            return merged

        line = CartLine(
            unique_id=self._next_unique_id(item.item_id),
            item=item,
            quantity=1,
            customizations=(),
            unit_price=item.price,
        )
        self._lines.append(line)
        return line

    def add_customized_item(
        self,
        item: MenuItem,
        customizations: Sequence[Customization],
        notes: str | None = None,
    ) -> CartLine:
        applied = list(customizations)
        unit_price = item.price
        for customization in applied:
            unit_price = unit_price + customization.price_adjustment
        if notes and notes.strip():
            applied.append(Customization.notes(notes.strip()))

        line = CartLine(
            unique_id=self._next_unique_id(item.item_id),
            item=item,
            quantity=1,
            customizations=tuple(applied),
            unit_price=unit_price,
        )
        self._lines.append(line)
        return line

    def update_quantity(self, unique_id: str, delta: int) -> bool:
        """Adjust a line's quantity; returns True when the cart ends up empty."""
        updated: list[CartLine] = []
        found = False
        for line in self._lines:
            if line.unique_id != unique_id:
                updated.append(line)
                continue
            found = True
            quantity = line.quantity + delta
            if quantity > 0:
                updated.append(replace(line, quantity=quantity))
        if not found:
            raise CartLineNotFoundError(f"cart line {unique_id} not found")
        self._lines = updated
        return self.is_empty

    def remove_line(self, unique_id: str) -> None:
        remaining = [line for line in self._lines if line.unique_id != unique_id]
        if len(remaining) == len(self._lines):
            raise CartLineNotFoundError(f"cart line {unique_id} not found")
        self._lines = remaining

    def clear(self) -> None:
        self._lines = []

    def load_from_order(self, order: Order, menu: Iterable[MenuItem]) -> None:
        """Replace the cart with a previous order, keeping that order's prices."""
        menu_by_id = {item.item_id: item for item in menu}
        lines: list[CartLine] = []
        for order_line in order.lines:
            item = menu_by_id.get(order_line.item_id)
            if item is None:
                item = MenuItem(
                    item_id=order_line.item_id,
                    cafe_id=order.cafe_id,
                    name=order_line.name,
                    description="",
                    price=order_line.unit_price,
                    category="",
                )
            lines.append(
                CartLine(
                    unique_id=self._next_unique_id(order_line.item_id),
                    item=item,
                    quantity=order_line.quantity,
                    customizations=order_line.customizations,
                    unit_price=order_line.unit_price,
                )
            )
        self._lines = lines

    def to_order_lines(self) -> list[OrderLine]:
        return [line.to_order_line() for line in self._lines]

    def _next_unique_id(self, item_id: MenuItemId) -> str:
        return f"{item_id}-{self._clock_ms()}-{next(self._sequence)}"


class CartLineNotFoundError(Exception):
    pass
