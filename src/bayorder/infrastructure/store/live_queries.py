from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Iterable

from bayorder.application.metrics.order_lifecycle import record_live_subscriptions
from bayorder.application.ports.store import Document, ErrorCallback, Query, SnapshotCallback

logger = logging.getLogger(__name__)

QueryRunner = Callable[[Query], list[Document]]


class StandingQuery:
    def __init__(
        self,
        hub: LiveQueryHub,
        query: Query,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback | None,
    ) -> None:
        self.query = query
        self._hub = hub
        self._on_snapshot = on_snapshot
        self._on_error = on_error
        self._last: list[tuple[str, dict[str, Any]]] | None = None
        self._active = True
        self._lock = threading.RLock()

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        if not self._active:
            return
        self._active = False
        self._hub.detach(self)

    def refresh(self, runner: QueryRunner, force: bool = False) -> None:
        with self._lock:
            if not self._active:
                return
            try:
                documents = runner(self.query)
            except Exception as exc:
                logger.warning(
                    "live_query_error",
                    extra={"collection": self.query.collection, "error": str(exc)},
                )
                if self._on_error is not None:
                    self._call(self._on_error, exc)
                return

            fingerprint = [(document.id, document.data) for document in documents]
            if not force and fingerprint == self._last:
                return
            self._last = fingerprint
            self._call(self._on_snapshot, documents)

    def _call(self, callback: Callable[[Any], None], argument: Any) -> None:
        try:
            callback(argument)
        except Exception:
            logger.exception("live_query_callback_failed", extra={"collection": self.query.collection})


class LiveQueryHub:
    """Standing queries re-run whenever their collection changes.

    Each subscriber gets the full ordered result set on attach and again
    whenever that result differs from the last one it was sent.
    """

    def __init__(self, runner: QueryRunner) -> None:
        self._runner = runner
        self._queries: list[StandingQuery] = []
        self._lock = threading.Lock()

    def subscribe(
        self,
        query: Query,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback | None = None,
    ) -> StandingQuery:
        standing = StandingQuery(self, query, on_snapshot, on_error)
        with self._lock:
            self._queries.append(standing)
            count = len(self._queries)
        record_live_subscriptions(count)
        standing.refresh(self._runner, force=True)
        return standing

    def detach(self, standing: StandingQuery) -> None:
        with self._lock:
            self._queries = [candidate for candidate in self._queries if candidate is not standing]
            count = len(self._queries)
        record_live_subscriptions(count)

    def notify(self, collections: Iterable[str]) -> None:
        touched = set(collections)
        with self._lock:
            affected = [standing for standing in self._queries if standing.query.collection in touched]
        for standing in affected:
            standing.refresh(self._runner)

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._queries)
