from __future__ import annotations

import logging
import os
from urllib.parse import urlencode

from bayorder.application.mappers.cafe_mapper import table_status_path
from bayorder.application.mappers.collections import CAFES
from bayorder.application.ports.identity import Identity
from bayorder.application.ports.store import (
    DELETE_FIELD,
    MISSING,
    DocumentStore,
    PreconditionFailedError,
    WriteBatch,
)
from bayorder.application.use_cases.access import load_cafe, require_owner
from bayorder.domain.cafe.entities import Cafe, TableAlreadyExistsError, TableState
from bayorder.domain.common.ids import CafeId, TableId

logger = logging.getLogger(__name__)


class InvalidCafeDetailsError(Exception):
    pass


def customer_app_url() -> str:
    return os.getenv("CUSTOMER_APP_URL", "https://bay-order.vercel.app")


def qr_target_url(base_url: str, cafe_id: CafeId | str, table_id: TableId | str) -> str:
    query = urlencode({"cafeId": str(cafe_id), "tableId": str(table_id)})
    return f"{base_url.rstrip('/')}/order?{query}"


class UpdateCafeDetails:
    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    def execute(self, identity: Identity | None, cafe_id: CafeId, name: str, address: str) -> Cafe:
        cafe = load_cafe(self._store, cafe_id)
        require_owner(cafe, identity)
        if not name.strip() or not address.strip():
            raise InvalidCafeDetailsError("cafe name and address are required")
        self._store.commit(
            WriteBatch().update(CAFES, str(cafe_id), {"name": name.strip(), "address": address.strip()})
        )
        return load_cafe(self._store, cafe_id)


class AddTable:
    """Register a new table key; it starts Vacant. Existing keys are rejected."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    def execute(self, identity: Identity | None, cafe_id: CafeId, table_id: TableId) -> Cafe:
        cafe = load_cafe(self._store, cafe_id)
        require_owner(cafe, identity)
        try:
            updated = cafe.add_table(table_id)
        except ValueError as exc:
            raise InvalidCafeDetailsError(str(exc)) from exc

        key = TableId(table_id.strip())
        batch = (
            WriteBatch()
            .require(CAFES, str(cafe_id), table_status_path(key), MISSING)
            .update(
                CAFES,
                str(cafe_id),
                {table_status_path(key): TableState.VACANT.value, "tableCount": updated.table_count},
            )
        )
        try:
            self._store.commit(batch)
        except PreconditionFailedError as exc:
            raise TableAlreadyExistsError(f"table {key} already exists in cafe {cafe_id}") from exc

        logger.info("table_added", extra={"cafe_id": str(cafe_id), "table_id": str(key)})
        return updated


class RemoveTable:
    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    def execute(self, identity: Identity | None, cafe_id: CafeId, table_id: TableId) -> Cafe:
        cafe = load_cafe(self._store, cafe_id)
        require_owner(cafe, identity)
        updated = cafe.remove_table(table_id)
        self._store.commit(
            WriteBatch().update(
                CAFES,
                str(cafe_id),
                {table_status_path(table_id): DELETE_FIELD, "tableCount": updated.table_count},
            )
        )
        logger.info("table_removed", extra={"cafe_id": str(cafe_id), "table_id": str(table_id)})
        return updated


class ListTableQrTargets:
    def __init__(self, store: DocumentStore, base_url: str | None = None) -> None:
        self._store = store
        self._base_url = base_url or customer_app_url()

    def execute(self, identity: Identity | None, cafe_id: CafeId) -> list[tuple[TableId, str]]:
        cafe = load_cafe(self._store, cafe_id)
        require_owner(cafe, identity)
        return [
            (table_id, qr_target_url(self._base_url, cafe_id, table_id))
            for table_id, _ in cafe.sorted_tables()
        ]
