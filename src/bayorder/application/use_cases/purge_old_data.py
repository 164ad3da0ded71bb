from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable

from bayorder.application.mappers.collections import IDEMPOTENCY_KEYS, ORDERS, REQUESTS
from bayorder.application.metrics.order_lifecycle import record_purged
from bayorder.application.ports.identity import Identity
from bayorder.application.ports.store import DocumentStore, FieldOp, Query, WriteBatch
from bayorder.application.use_cases.access import CafeNotFoundError, load_cafe
from bayorder.domain.common.ids import CafeId

logger = logging.getLogger(__name__)

PURGE_BATCH_SIZE = 100


class CallableErrorCode(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    INVALID_ARGUMENT = "invalid-argument"
    NOT_FOUND = "not-found"
    PERMISSION_DENIED = "permission-denied"
    INTERNAL = "internal"


class CallableError(Exception):
    def __init__(self, code: CallableErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.details = {"status": code.value}


@dataclass(frozen=True)
class PurgeResult:
    success: bool
    deleted_count: int


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PurgeOldData:
    """Owner-invoked request/response function removing aged orders and requests.

    Idempotency records of the same age go too but are not counted in
    ``deleted_count``. Deletes run in batches of ``PURGE_BATCH_SIZE`` until a
    batch comes back short. A failing batch stops the purge; batches already
    committed stay deleted and nothing is retried.
    """

    def __init__(
        self,
        store: DocumentStore,
        clock: Callable[[], datetime] = _utcnow,
        batch_size: int = PURGE_BATCH_SIZE,
    ) -> None:
        self._store = store
        self._clock = clock
        self._batch_size = batch_size

    def execute(self, caller: Identity | None, cafe_id: Any, days_to_keep: Any) -> PurgeResult:
        if caller is None:
            raise CallableError(
                CallableErrorCode.UNAUTHENTICATED,
                "You must be logged in to perform this action.",
            )
        if not cafe_id or not days_to_keep:
            raise CallableError(
                CallableErrorCode.INVALID_ARGUMENT,
                "Missing 'cafeId' or 'daysToKeep' parameter.",
            )
        if isinstance(days_to_keep, bool) or not isinstance(days_to_keep, int) or days_to_keep < 0:
            raise CallableError(
                CallableErrorCode.INVALID_ARGUMENT,
                "'daysToKeep' must be a positive whole number of days.",
            )

        try:
            try:
                cafe = load_cafe(self._store, CafeId(str(cafe_id)))
            except CafeNotFoundError as exc:
                raise CallableError(CallableErrorCode.NOT_FOUND, "Cafe not found.") from exc
            if cafe.owner_user_id != caller.uid:
                raise CallableError(
                    CallableErrorCode.PERMISSION_DENIED,
                    "You are not the owner of this cafe.",
                )

            cutoff = self._clock() - timedelta(days=days_to_keep)
            orders_deleted = self._delete_matching(self._aged(ORDERS, cafe.cafe_id, cutoff))
            requests_deleted = self._delete_matching(self._aged(REQUESTS, cafe.cafe_id, cutoff))
            keys_deleted = self._delete_matching(self._aged(IDEMPOTENCY_KEYS, cafe.cafe_id, cutoff))
        except CallableError:
            raise
        except Exception as exc:
            logger.exception("purge_failed", extra={"cafe_id": str(cafe_id)})
            raise CallableError(
                CallableErrorCode.INTERNAL,
                "An internal server error occurred.",
            ) from exc

        record_purged(ORDERS, orders_deleted)
        record_purged(REQUESTS, requests_deleted)
        record_purged(IDEMPOTENCY_KEYS, keys_deleted)
        logger.info(
            "purge_complete",
            extra={
                "cafe_id": str(cafe_id),
                "orders_deleted": orders_deleted,
                "requests_deleted": requests_deleted,
                "idempotency_keys_deleted": keys_deleted,
            },
        )
        return PurgeResult(success=True, deleted_count=orders_deleted + requests_deleted)

    def _aged(self, collection: str, cafe_id: CafeId, cutoff: datetime) -> Query:
        return (
            Query(collection=collection)
            .where("cafeId", FieldOp.EQ, str(cafe_id))
            .where("createdAt", FieldOp.LT, cutoff)
        )

    def _delete_matching(self, query: Query) -> int:
        deleted = 0
        while True:
            documents = self._store.query(query.limited(self._batch_size))
            if not documents:
                return deleted
            batch = WriteBatch()
            for document in documents:
                batch.delete(query.collection, document.id)
            self._store.commit(batch)
            deleted += len(documents)
            if len(documents) < self._batch_size:
                return deleted
