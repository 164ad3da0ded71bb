from __future__ import annotations

import logging

from bayorder.application.dto.requests import PlaceOrderLineRequest, PlaceOrderRequest
from bayorder.application.mappers.collections import MENU_ITEMS
from bayorder.application.mappers.menu_mapper import menu_item_from_document
from bayorder.application.ports.store import DocumentStore
from bayorder.application.use_cases.manage_menu import InvalidMenuItemError, MenuItemNotFoundError
from bayorder.application.use_cases.place_order import PlaceOrder, TableOrderPolicy
from bayorder.domain.cart.cart import Cart
from bayorder.domain.common.ids import CafeId, TableId
from bayorder.domain.menu.entities import MenuItem
from bayorder.domain.order.entities import Order

logger = logging.getLogger(__name__)


class SubmitCart:
    """Server-side checkout: rebuild the cart from menu documents, then place it.

    Prices always come from the stored menu item, never from the client.
    """

    def __init__(self, store: DocumentStore, policy: TableOrderPolicy = TableOrderPolicy.SHARED) -> None:
        self._store = store
        self._place_order = PlaceOrder(store, policy)

    def execute(
        self,
        cafe_id: CafeId,
        table_id: TableId,
        request: PlaceOrderRequest,
        idempotency_key: str | None = None,
    ) -> Order:
        cart = Cart()
        for line in request.lines:
            item = self._load_orderable_item(cafe_id, line.item_id)
            _add_line(cart, item, line)
        return self._place_order.execute(
            cafe_id,
            table_id,
            cart.to_order_lines(),
            idempotency_key=idempotency_key,
        )

    def _load_orderable_item(self, cafe_id: CafeId, item_id: str) -> MenuItem:
        document = self._store.get(MENU_ITEMS, item_id)
        if document is None:
            raise MenuItemNotFoundError(f"menu item {item_id} not found")
        item = menu_item_from_document(document)
        if item.cafe_id != cafe_id:
            raise MenuItemNotFoundError(f"menu item {item_id} not found in cafe {cafe_id}")
        if not item.available:
            raise InvalidMenuItemError(f"menu item {item.name} is not available")
        return item


def _add_line(cart: Cart, item: MenuItem, line: PlaceOrderLineRequest) -> None:
    has_notes = bool(line.notes and line.notes.strip())
    if not item.is_customizable and not line.choices and not has_notes:
        added = cart.add_simple_item(item)
    else:
        try:
            customizations = item.resolve_customizations(line.choices)
        except ValueError as exc:
            raise InvalidMenuItemError(str(exc)) from exc
        added = cart.add_customized_item(item, customizations, notes=line.notes)
    if line.quantity > 1:
        cart.update_quantity(added.unique_id, line.quantity - 1)
