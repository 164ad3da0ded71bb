from __future__ import annotations

import logging
import threading
from typing import Iterable

import redis

from bayorder.application.ports.publisher import ChangeFeed, ChangeHandler
from bayorder.infrastructure.messaging.redis_connection import get_redis_client

logger = logging.getLogger(__name__)

CHANNEL_PREFIX = "changes:"


def _decode_value(value: bytes | str | None) -> str | None:
    if value is None:
        return None
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


def change_channel(collection: str) -> str:
    return f"{CHANNEL_PREFIX}{collection}"


class RedisChangeFeed(ChangeFeed):
    """Cross-process change notifications over Redis pub/sub.

    Every process publishes the collections its commits touched and runs one
    listener thread that reconnects with capped exponential backoff.
    """

    def __init__(self, timeout_seconds: float = 1.0, max_backoff_seconds: float = 5.0) -> None:
        self._timeout_seconds = timeout_seconds
        self._max_backoff_seconds = max_backoff_seconds
        self._handler: ChangeHandler | None = None
        self._stopping = threading.Event()
        self._thread: threading.Thread | None = None

    def publish(self, collections: Iterable[str]) -> None:
        client = get_redis_client(timeout_seconds=self._timeout_seconds)
        for collection in sorted(set(collections)):
            try:
                client.publish(change_channel(collection), collection)
            except redis.RedisError:
                logger.exception("change_publish_failed", extra={"collection": collection})

    def start(self, handler: ChangeHandler) -> None:
        if self._thread is not None:
            return
        self._handler = handler
        self._stopping.clear()
        self._thread = threading.Thread(target=self._listen, name="redis-change-feed", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stopping.set()
        if self._thread is not None:
            self._thread.join(timeout=self._max_backoff_seconds + 1.0)
            self._thread = None

    def _listen(self) -> None:
        backoff_seconds = 1.0
        while not self._stopping.is_set():
            pubsub = None
            try:
                pubsub = get_redis_client(timeout_seconds=self._timeout_seconds).pubsub()
                pubsub.psubscribe(f"{CHANNEL_PREFIX}*")
                logger.info("change_feed_subscribed", extra={"pattern": f"{CHANNEL_PREFIX}*"})
                backoff_seconds = 1.0

                while not self._stopping.is_set():
                    message = pubsub.get_message(ignore_subscribe_messages=True, timeout=1.0)
                    if message is None:
                        continue
                    channel = _decode_value(message.get("channel"))
                    if not channel or not channel.startswith(CHANNEL_PREFIX):
                        logger.warning("change_feed_invalid_channel", extra={"channel": channel})
                        continue
                    self._dispatch({channel[len(CHANNEL_PREFIX):]})
            except redis.RedisError:
                logger.exception("change_feed_error", extra={"backoff_seconds": backoff_seconds})
                self._stopping.wait(backoff_seconds)
                backoff_seconds = min(backoff_seconds * 2, self._max_backoff_seconds)
            finally:
                if pubsub is not None:
                    pubsub.close()

    def _dispatch(self, collections: set[str]) -> None:
        handler = self._handler
        if handler is None:
            return
        try:
            handler(collections)
        except Exception:
            logger.exception("change_feed_handler_failed", extra={"collections": sorted(collections)})
