from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from bayorder.application.mappers.cafe_mapper import table_status_path
from bayorder.application.mappers.collections import CAFES, ORDERS
from bayorder.application.mappers.order_mapper import order_from_document
from bayorder.application.metrics.order_lifecycle import record_time_to_paid, record_transition
from bayorder.application.ports.identity import Identity
from bayorder.application.ports.store import (
    SERVER_TIMESTAMP,
    DocumentStore,
    PreconditionFailedError,
    WriteBatch,
)
from bayorder.application.use_cases.access import load_cafe, require_owner
from bayorder.domain.cafe.entities import TableState
from bayorder.domain.common.ids import OrderId
from bayorder.domain.order.entities import Order, OrderStatus, OrderTransitionError

logger = logging.getLogger(__name__)


class OrderNotFoundError(Exception):
    pass


class InvalidOrderTransitionError(Exception):
    pass


class OrderConflictError(Exception):
    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AdvanceOrderStatus:
    """Move an order forward along Pending → Preparing → Ready for Delivery → Paid.

    The write carries a precondition on the status that was read; a concurrent
    transition by another staff device fails it and the order is re-read.
    Paying an order also stamps ``paidAt`` and frees the table in the same
    batch.
    """

    def __init__(self, store: DocumentStore, clock: Callable[[], datetime] = _utcnow) -> None:
        self._store = store
        self._clock = clock

    def execute(self, identity: Identity | None, order_id: OrderId, new_status: OrderStatus) -> Order:
        order = self._load(order_id)
        cafe = load_cafe(self._store, order.cafe_id)
        require_owner(cafe, identity)

        if order.status == new_status:
            return order

        now = self._clock()
        try:
            advanced = order.advance(new_status, now)
        except OrderTransitionError as exc:
            raise InvalidOrderTransitionError(str(exc)) from exc

        batch = WriteBatch()
        batch.require(ORDERS, str(order_id), "status", order.status.value)
        if new_status == OrderStatus.PAID:
            batch.update(ORDERS, str(order_id), {"status": new_status.value, "paidAt": SERVER_TIMESTAMP})
            if cafe.has_table(order.table_id):
                batch.update(
                    CAFES,
                    str(cafe.cafe_id),
                    {table_status_path(order.table_id): TableState.VACANT.value},
                )
            else:
                logger.warning(
                    "paid_order_table_missing",
                    extra={"order_id": str(order_id), "table_id": str(order.table_id)},
                )
        else:
            batch.update(ORDERS, str(order_id), {"status": new_status.value})

        try:
            self._store.commit(batch)
        except PreconditionFailedError as exc:
            current = self._load(order_id)
            if current.status == new_status:
                return current
            raise OrderConflictError(
                f"order {order_id} changed to {current.status.value} while updating"
            ) from exc

        record_transition(from_status=order.status, to_status=new_status)
        if new_status == OrderStatus.PAID:
            record_time_to_paid(order, now=now)
        logger.info(
            "order_status_changed",
            extra={
                "order_id": str(order_id),
                "cafe_id": str(order.cafe_id),
                "table_id": str(order.table_id),
                "from_status": order.status.value,
                "to_status": new_status.value,
            },
        )

        persisted = self._store.get(ORDERS, str(order_id))
        return order_from_document(persisted) if persisted is not None else advanced

    def _load(self, order_id: OrderId) -> Order:
        document = self._store.get(ORDERS, str(order_id))
        if document is None:
            raise OrderNotFoundError(f"order {order_id} not found")
        return order_from_document(document)
