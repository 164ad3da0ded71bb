from __future__ import annotations

import logging
from typing import Iterable

from bayorder.application.ports.publisher import ChangeFeed, ChangeHandler

logger = logging.getLogger(__name__)


class LocalChangeFeed(ChangeFeed):
    """Delivers change notifications on the committing thread, in-process only."""

    def __init__(self) -> None:
        self._handler: ChangeHandler | None = None

    def start(self, handler: ChangeHandler) -> None:
        self._handler = handler

    def stop(self) -> None:
        self._handler = None

    def publish(self, collections: Iterable[str]) -> None:
        handler = self._handler
        touched = set(collections)
        if handler is None or not touched:
            return
        handler(touched)
