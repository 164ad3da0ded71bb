from __future__ import annotations

import logging
import os
from functools import lru_cache

from fastapi import Depends, Header, HTTPException, status

from bayorder.application.ports.identity import Identity, InvalidTokenError
from bayorder.application.ports.publisher import ChangeFeed
from bayorder.application.ports.store import DocumentStore
from bayorder.application.use_cases.place_order import TableOrderPolicy
from bayorder.infrastructure.identity.jwt_provider import JwtIdentityProvider
from bayorder.infrastructure.messaging.redis_change_feed import RedisChangeFeed
from bayorder.infrastructure.messaging.redis_connection import redis_url
from bayorder.infrastructure.store.memory import InMemoryDocumentStore
from bayorder.infrastructure.store.sql import SqlDocumentStore

logger = logging.getLogger(__name__)

_BEARER_PREFIX = "bearer "


def store_backend() -> str:
    return os.getenv("STORE_BACKEND", "postgres").strip().lower()


def _change_feed() -> ChangeFeed | None:
    if redis_url() is None:
        return None
    return RedisChangeFeed()


@lru_cache(maxsize=1)
def get_store() -> DocumentStore:
    backend = store_backend()
    if backend == "memory":
        store: DocumentStore = InMemoryDocumentStore()
    elif backend == "postgres":
        store = SqlDocumentStore(feed=_change_feed())
    else:
        raise RuntimeError(f"unsupported STORE_BACKEND {backend!r}")
    logger.info("store_configured", extra={"backend": backend})
    return store


@lru_cache(maxsize=1)
def get_identity_provider() -> JwtIdentityProvider:
    return JwtIdentityProvider(get_store())


def table_order_policy() -> TableOrderPolicy:
    return TableOrderPolicy(os.getenv("TABLE_ORDER_POLICY", TableOrderPolicy.SHARED.value).strip().lower())


def reset_dependencies() -> None:
    """Drop the cached store and provider so the next request rebuilds them."""
    if get_store.cache_info().currsize:
        get_store().close()
    get_store.cache_clear()
    get_identity_provider.cache_clear()


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    if not authorization.lower().startswith(_BEARER_PREFIX):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="expected a bearer token")
    return authorization[len(_BEARER_PREFIX):].strip() or None


def identity_from_token(token: str | None) -> Identity | None:
    if token is None:
        return None
    try:
        return get_identity_provider().verify_token(token)
    except InvalidTokenError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc


def optional_identity(authorization: str | None = Header(default=None)) -> Identity | None:
    return identity_from_token(_bearer_token(authorization))


def current_identity(identity: Identity | None = Depends(optional_identity)) -> Identity:
    if identity is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="sign-in required")
    return identity
