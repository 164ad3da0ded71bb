from __future__ import annotations

import hashlib
import json
import logging
from enum import Enum
from typing import Sequence

from bayorder.application.mappers.cafe_mapper import table_status_path
from bayorder.application.mappers.collections import CAFES, IDEMPOTENCY_KEYS, ORDERS
from bayorder.application.mappers.order_mapper import order_from_document, order_to_document
from bayorder.application.metrics.order_lifecycle import record_order_placed, record_submission_failed
from bayorder.application.ports.store import (
    SERVER_TIMESTAMP,
    DocumentExistsError,
    DocumentStore,
    PreconditionFailedError,
    StoreError,
    WriteBatch,
)
from bayorder.application.use_cases.access import load_cafe
from bayorder.domain.cafe.entities import TableState
from bayorder.domain.common.ids import CafeId, OrderId, TableId
from bayorder.domain.order.entities import Order, OrderLine, create_pending_order

logger = logging.getLogger(__name__)


class TableOrderPolicy(str, Enum):
    SHARED = "shared"
    EXCLUSIVE = "exclusive"


class EmptyCartError(Exception):
    pass


class UnknownTableError(Exception):
    pass


class TableOccupiedError(Exception):
    pass


class IdempotencyReplayMismatchError(Exception):
    pass


class StaleIdempotencyKeyError(Exception):
    pass


class PlaceOrder:
    """Commit a cart as a Pending order and mark its table Occupied, atomically."""

    def __init__(
        self,
        store: DocumentStore,
        policy: TableOrderPolicy = TableOrderPolicy.SHARED,
    ) -> None:
        self._store = store
        self._policy = policy

    def execute(
        self,
        cafe_id: CafeId,
        table_id: TableId,
        lines: Sequence[OrderLine],
        idempotency_key: str | None = None,
    ) -> Order:
        if not lines:
            raise EmptyCartError("cannot place an order from an empty cart")

        cafe = load_cafe(self._store, cafe_id)
        if not cafe.has_table(table_id):
            raise UnknownTableError(f"table {table_id} does not exist in cafe {cafe_id}")

        order = create_pending_order(
            order_id=OrderId(self._store.new_id()),
            cafe_id=cafe_id,
            table_id=table_id,
            lines=list(lines),
            idempotency_key=idempotency_key,
        )
        order_document = order_to_document(order)
        payload_hash = _payload_hash(order_document)

        # key record before the table precondition
        batch = WriteBatch()
        if idempotency_key:
            batch.create(
                IDEMPOTENCY_KEYS,
                idempotency_record_id(cafe_id, table_id, idempotency_key),
                {
                    "cafeId": str(cafe_id),
                    "tableId": str(table_id),
                    "orderId": str(order.order_id),
                    "payloadHash": payload_hash,
                    "createdAt": SERVER_TIMESTAMP,
                },
            )
        if self._policy == TableOrderPolicy.EXCLUSIVE:
            batch.require(CAFES, str(cafe_id), table_status_path(table_id), TableState.VACANT.value)
        batch.create(ORDERS, str(order.order_id), order_document)
        batch.update(CAFES, str(cafe_id), {table_status_path(table_id): TableState.OCCUPIED.value})

        try:
            self._store.commit(batch)
        except PreconditionFailedError as exc:
            record_submission_failed(str(cafe_id), "table_occupied")
            raise TableOccupiedError(f"table {table_id} already has an active order") from exc
        except DocumentExistsError:
            if not idempotency_key:
                raise
            return self._replay(cafe_id, table_id, idempotency_key, payload_hash)

        record_order_placed(order)
        logger.info(
            "order_placed",
            extra={"cafe_id": str(cafe_id), "table_id": str(table_id), "order_id": str(order.order_id)},
        )
        return self._reload(order)

    def _replay(self, cafe_id: CafeId, table_id: TableId, key: str, payload_hash: str) -> Order:
        record = self._store.get(IDEMPOTENCY_KEYS, idempotency_record_id(cafe_id, table_id, key))
        if record is None:
            raise StaleIdempotencyKeyError(f"idempotency record for {key} was removed")
        if record.get("payloadHash") != payload_hash:
            record_submission_failed(str(cafe_id), "idempotency_mismatch")
            raise IdempotencyReplayMismatchError(f"idempotency key replay with different payload: {key}")
        existing = self._store.get(ORDERS, str(record.get("orderId")))
        if existing is None:
            record_submission_failed(str(cafe_id), "stale_idempotency_key")
            raise StaleIdempotencyKeyError(f"order for idempotency key {key} no longer exists")
        logger.info(
            "order_submission_replayed",
            extra={"cafe_id": str(cafe_id), "table_id": str(table_id), "order_id": existing.id},
        )
        return order_from_document(existing)

    def _reload(self, order: Order) -> Order:
        try:
            document = self._store.get(ORDERS, str(order.order_id))
        except StoreError:
            logger.warning("order_reload_failed", extra={"order_id": str(order.order_id)})
            return order
        if document is None:
            return order
        return order_from_document(document)


def idempotency_record_id(cafe_id: CafeId, table_id: TableId, key: str) -> str:
    return f"{cafe_id}:{table_id}:{key}"


def _payload_hash(order_document: dict) -> str:
    normalized = {key: order_document[key] for key in ("cafeId", "tableId", "items", "total")}
    canonical = json.dumps(normalized, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
