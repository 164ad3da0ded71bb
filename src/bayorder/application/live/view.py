from __future__ import annotations

import itertools
import logging
import threading
from typing import Callable

from bayorder.application.live.notices import Notice, default_notice_message, notice_kind_for
from bayorder.application.ports.identity import Identity
from bayorder.application.ports.store import Document, DocumentStore, Query, StoreError, Subscription

logger = logging.getLogger(__name__)

UpdateListener = Callable[[str], None]
SnapshotHandler = Callable[[list[Document]], None]
StandingQuery = tuple[str, Query, SnapshotHandler]


class LiveView:
    """A client view holding a fixed set of standing queries.

    Subclasses list their queries in ``standing_queries``. A failing query or
    snapshot handler becomes a ``Notice`` and leaves every other subscription
    attached. ``close`` detaches everything; ``rebind`` re-attaches under a
    new identity.
    """

    def __init__(
        self,
        store: DocumentStore,
        identity: Identity | None = None,
        on_update: UpdateListener | None = None,
    ) -> None:
        self._store = store
        self._identity = identity
        self._on_update = on_update
        self._subscriptions: list[Subscription] = []
        self._notices: list[Notice] = []
        self._notice_ids = itertools.count(1)
        self._lock = threading.RLock()

    @property
    def identity(self) -> Identity | None:
        return self._identity

    @property
    def notices(self) -> list[Notice]:
        with self._lock:
            return list(self._notices)

    @property
    def is_attached(self) -> bool:
        return any(subscription.active for subscription in self._subscriptions)

    def standing_queries(self) -> list[StandingQuery]:
        raise NotImplementedError

    def reset_state(self) -> None:
        pass

    def attach(self) -> None:
        for name, query, handler in self.standing_queries():
            try:
                subscription = self._store.subscribe(
                    query,
                    self._snapshot_callback(name, handler),
                    self._error_callback(name),
                )
            except StoreError as exc:
                logger.warning("live_query_attach_failed", extra={"query": name, "error": str(exc)})
                self.raise_notice(exc, name)
                continue
            self._subscriptions.append(subscription)

    def close(self) -> None:
        subscriptions, self._subscriptions = self._subscriptions, []
        for subscription in subscriptions:
            subscription.unsubscribe()
        with self._lock:
            self.reset_state()

    def rebind(self, identity: Identity | None) -> None:
        self.close()
        self._identity = identity
        self.attach()

    def raise_notice(self, exc: BaseException, source: str, message: str | None = None) -> Notice:
        kind = notice_kind_for(exc)
        notice = Notice(
            notice_id=next(self._notice_ids),
            kind=kind,
            source=source,
            message=message or default_notice_message(kind),
        )
        with self._lock:
            self._notices.append(notice)
        self._emit("notices")
        return notice

    def dismiss_notice(self, notice_id: int) -> None:
        with self._lock:
            self._notices = [notice for notice in self._notices if notice.notice_id != notice_id]
        self._emit("notices")

    def _snapshot_callback(self, name: str, handler: SnapshotHandler) -> Callable[[list[Document]], None]:
        def deliver(documents: list[Document]) -> None:
            try:
                with self._lock:
                    handler(documents)
            except Exception as exc:
                logger.exception("live_snapshot_handler_failed", extra={"query": name})
                self.raise_notice(exc, name)
                return
            self._emit(name)

        return deliver

    def _error_callback(self, name: str) -> Callable[[Exception], None]:
        def fail(exc: Exception) -> None:
            logger.warning("live_query_error", extra={"query": name, "error": str(exc)})
            self.raise_notice(exc, name)

        return fail

    def _emit(self, topic: str) -> None:
        if self._on_update is None:
            return
        try:
            self._on_update(topic)
        except Exception:
            logger.exception("live_update_listener_failed", extra={"topic": topic})
