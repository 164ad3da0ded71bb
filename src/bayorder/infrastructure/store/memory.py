from __future__ import annotations

import copy
import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Callable

from bayorder.application.ports.publisher import ChangeFeed
from bayorder.application.ports.store import (
    Document,
    DocumentStore,
    ErrorCallback,
    Query,
    SnapshotCallback,
    WriteBatch,
    apply_operation,
)
from bayorder.infrastructure.messaging.local_change_feed import LocalChangeFeed
from bayorder.infrastructure.store.evaluation import run_query
from bayorder.infrastructure.store.live_queries import LiveQueryHub, StandingQuery

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryDocumentStore(DocumentStore):
    """Process-local document store.

    A batch is applied to a copy of the touched collections and swapped in
    under one lock, so readers see all of it or none of it.
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = _utcnow,
        feed: ChangeFeed | None = None,
    ) -> None:
        self._clock = clock
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._lock = threading.RLock()
        self._hub = LiveQueryHub(self.query)
        self._feed = feed or LocalChangeFeed()
        self._feed.start(self._hub.notify)

    @property
    def live_queries(self) -> LiveQueryHub:
        return self._hub

    def new_id(self) -> str:
        return uuid.uuid4().hex

    def get(self, collection: str, doc_id: str) -> Document | None:
        with self._lock:
            data = self._collections.get(collection, {}).get(doc_id)
            if data is None:
                return None
            return Document(doc_id, copy.deepcopy(data))

    def query(self, query: Query) -> list[Document]:
        with self._lock:
            documents = [
                Document(doc_id, data) for doc_id, data in self._collections.get(query.collection, {}).items()
            ]
            selected = run_query(documents, query)
            return [Document(document.id, copy.deepcopy(document.data)) for document in selected]

    def commit(self, batch: WriteBatch) -> None:
        if not len(batch):
            return
        now = self._clock()
        with self._lock:
            staged: dict[str, dict[str, dict[str, Any]]] = {}
            for op in batch.operations:
                documents = staged.get(op.collection)
                if documents is None:
                    documents = dict(self._collections.get(op.collection, {}))
                    staged[op.collection] = documents
                result = apply_operation(documents.get(op.doc_id), op, now)
                if result is None:
                    documents.pop(op.doc_id, None)
                else:
                    documents[op.doc_id] = result
            self._collections.update(staged)

        logger.debug("batch_committed", extra={"operations": len(batch)})
        self._feed.publish(batch.collections)

    def subscribe(
        self,
        query: Query,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback | None = None,
    ) -> StandingQuery:
        return self._hub.subscribe(query, on_snapshot, on_error)

    def close(self) -> None:
        self._feed.stop()
