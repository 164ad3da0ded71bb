from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from fastapi import WebSocket, WebSocketDisconnect
from starlette.concurrency import run_in_threadpool

from bayorder.application.ports.store import Document, DocumentStore, Query, Subscription

logger = logging.getLogger(__name__)

_CLOSED = object()


@dataclass(eq=False)
class LiveConnection:
    websocket: WebSocket
    query_name: str
    outbox: asyncio.Queue[Any] = field(default_factory=asyncio.Queue)
    subscription: Subscription | None = None


def snapshot_message(query_name: str, documents: list[Document]) -> dict[str, Any]:
    return {
        "type": "snapshot",
        "query": query_name,
        "documents": [{"id": document.id, "data": document.data} for document in documents],
    }


def error_message(query_name: str, exc: Exception) -> dict[str, Any]:
    return {"type": "error", "query": query_name, "message": str(exc)}


class ConnectionManager:
    """Bridges store subscriptions, which fire on store threads, onto websocket sends."""

    def __init__(self) -> None:
        self._connections: set[LiveConnection] = set()
        self._lock = asyncio.Lock()

    async def register(self, store: DocumentStore, connection: LiveConnection, query: Query) -> None:
        await connection.websocket.accept()
        loop = asyncio.get_running_loop()

        def deliver(message: Any) -> None:
            loop.call_soon_threadsafe(connection.outbox.put_nowait, message)

        # the initial query runs synchronously inside subscribe
        connection.subscription = await run_in_threadpool(
            store.subscribe,
            query,
            lambda documents: deliver(snapshot_message(connection.query_name, documents)),
            lambda exc: deliver(error_message(connection.query_name, exc)),
        )
        async with self._lock:
            self._connections.add(connection)
        logger.info("ws_client_connected", extra={"query": connection.query_name})

    async def unregister(self, connection: LiveConnection) -> None:
        async with self._lock:
            if connection not in self._connections:
                return
            self._connections.discard(connection)
        if connection.subscription is not None:
            connection.subscription.unsubscribe()
        connection.outbox.put_nowait(_CLOSED)
        logger.info("ws_client_disconnected", extra={"query": connection.query_name})

    async def pump(self, connection: LiveConnection) -> None:
        while True:
            message = await connection.outbox.get()
            if message is _CLOSED:
                return
            try:
                await connection.websocket.send_json(message)
            except (WebSocketDisconnect, RuntimeError):
                logger.info("ws_send_after_close", extra={"query": connection.query_name})
                return

    @property
    def size(self) -> int:
        return len(self._connections)
