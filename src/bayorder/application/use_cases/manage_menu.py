from __future__ import annotations

import logging

from bayorder.application.dto.requests import MenuItemRequest
from bayorder.application.live.queries import menu_query
from bayorder.application.mappers.collections import MENU_ITEMS
from bayorder.application.mappers.menu_mapper import (
    menu_item_from_document,
    menu_item_from_request,
    menu_item_to_document,
)
from bayorder.application.ports.identity import Identity
from bayorder.application.ports.store import DocumentStore, WriteBatch
from bayorder.application.use_cases.access import load_cafe, require_owner
from bayorder.domain.common.ids import CafeId, MenuItemId
from bayorder.domain.menu.entities import MenuItem

logger = logging.getLogger(__name__)


class MenuItemNotFoundError(Exception):
    pass


class InvalidMenuItemError(Exception):
    pass


def _load_item(store: DocumentStore, item_id: MenuItemId) -> MenuItem:
    document = store.get(MENU_ITEMS, str(item_id))
    if document is None:
        raise MenuItemNotFoundError(f"menu item {item_id} not found")
    return menu_item_from_document(document)


def _build_item(item_id: MenuItemId, cafe_id: CafeId, request: MenuItemRequest) -> MenuItem:
    try:
        return menu_item_from_request(item_id, cafe_id, request)
    except ValueError as exc:
        raise InvalidMenuItemError(str(exc)) from exc


class ListMenuItems:
    """Menu of a cafe ordered by category.

    Customers only ever see available items; owners may ask for the full list.
    """

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    def execute(
        self,
        cafe_id: CafeId,
        identity: Identity | None = None,
        include_unavailable: bool = False,
    ) -> list[MenuItem]:
        if include_unavailable:
            require_owner(load_cafe(self._store, cafe_id), identity)
        documents = self._store.query(menu_query(cafe_id, include_unavailable))
        return [menu_item_from_document(document) for document in documents]


class CreateMenuItem:
    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    def execute(self, identity: Identity | None, cafe_id: CafeId, request: MenuItemRequest) -> MenuItem:
        require_owner(load_cafe(self._store, cafe_id), identity)
        item = _build_item(MenuItemId(self._store.new_id()), cafe_id, request)
        self._store.commit(WriteBatch().create(MENU_ITEMS, str(item.item_id), menu_item_to_document(item)))
        logger.info("menu_item_created", extra={"cafe_id": str(cafe_id), "item_id": str(item.item_id)})
        return item


class UpdateMenuItem:
    """Replace an item's details.

    Orders already placed keep their own line snapshot, so price edits only
    affect future carts.
    """

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    def execute(self, identity: Identity | None, item_id: MenuItemId, request: MenuItemRequest) -> MenuItem:
        current = _load_item(self._store, item_id)
        require_owner(load_cafe(self._store, current.cafe_id), identity)
        item = _build_item(item_id, current.cafe_id, request)
        self._store.commit(WriteBatch().set(MENU_ITEMS, str(item_id), menu_item_to_document(item)))
        logger.info("menu_item_updated", extra={"cafe_id": str(item.cafe_id), "item_id": str(item_id)})
        return item


class SetMenuItemAvailability:
    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    def execute(self, identity: Identity | None, item_id: MenuItemId, available: bool) -> MenuItem:
        current = _load_item(self._store, item_id)
        require_owner(load_cafe(self._store, current.cafe_id), identity)
        if current.available != available:
            self._store.commit(WriteBatch().update(MENU_ITEMS, str(item_id), {"available": available}))
        return _load_item(self._store, item_id)


class DeleteMenuItem:
    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    def execute(self, identity: Identity | None, item_id: MenuItemId) -> None:
        current = _load_item(self._store, item_id)
        require_owner(load_cafe(self._store, current.cafe_id), identity)
        self._store.commit(WriteBatch().delete(MENU_ITEMS, str(item_id)))
        logger.info("menu_item_deleted", extra={"cafe_id": str(current.cafe_id), "item_id": str(item_id)})
