from __future__ import annotations

import asyncio
import logging
from contextlib import suppress

from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect
from starlette.concurrency import run_in_threadpool

from bayorder.api.deps import get_store, identity_from_token
from bayorder.api.ws.manager import ConnectionManager, LiveConnection
from bayorder.application.live.queries import (
    active_orders_query,
    all_cafes_query,
    cafe_query,
    latest_order_query,
    menu_query,
    new_requests_query,
)
from bayorder.application.ports.identity import Identity
from bayorder.application.ports.store import Query
from bayorder.application.use_cases.access import (
    CafeNotFoundError,
    PermissionDeniedError,
    load_cafe,
    require_admin,
    require_owner,
)
from bayorder.domain.common.ids import CafeId, TableId

router = APIRouter()
logger = logging.getLogger(__name__)

_POLICY_VIOLATION = 1008


class LiveQueryRequestError(Exception):
    pass


def _require(params: dict[str, str], name: str) -> str:
    value = (params.get(name) or "").strip()
    if not value:
        raise LiveQueryRequestError(f"{name} query parameter is required")
    return value


def resolve_live_query(query_name: str, params: dict[str, str], identity: Identity | None) -> Query:
    store = get_store()
    if query_name == "cafes":
        require_admin(identity)
        return all_cafes_query()

    cafe_id = CafeId(_require(params, "cafeId"))
    if query_name == "cafe":
        return cafe_query(cafe_id)
    if query_name == "menu":
        return menu_query(cafe_id)
    if query_name == "latestOrder":
        return latest_order_query(cafe_id, TableId(_require(params, "tableId")))
    if query_name == "activeOrders":
        require_owner(load_cafe(store, cafe_id), identity)
        return active_orders_query(cafe_id)
    if query_name == "newRequests":
        require_owner(load_cafe(store, cafe_id), identity)
        return new_requests_query(cafe_id)
    raise LiveQueryRequestError(f"unknown live query {query_name!r}")


def _authorize_live_query(query_name: str, params: dict[str, str]) -> Query:
    return resolve_live_query(query_name, params, identity_from_token(params.get("token")))


@router.websocket("/ws/live")
async def live_endpoint(websocket: WebSocket) -> None:
    params = dict(websocket.query_params)
    query_name = params.get("query", "")
    try:
        query = await run_in_threadpool(_authorize_live_query, query_name, params)
    except (LiveQueryRequestError, PermissionDeniedError, CafeNotFoundError) as exc:
        await websocket.close(code=_POLICY_VIOLATION, reason=str(exc))
        return
    except HTTPException as exc:
        await websocket.close(code=_POLICY_VIOLATION, reason=str(exc.detail))
        return

    manager: ConnectionManager = websocket.app.state.ws_manager
    connection = LiveConnection(websocket=websocket, query_name=query_name)
    await manager.register(get_store(), connection, query)
    sender = asyncio.create_task(manager.pump(connection))
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("ws_connection_error", extra={"query": query_name})
    finally:
        await manager.unregister(connection)
        sender.cancel()
        with suppress(asyncio.CancelledError):
            await sender
