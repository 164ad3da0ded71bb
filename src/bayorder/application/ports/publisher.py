from __future__ import annotations

from typing import Callable, Iterable, Protocol

ChangeHandler = Callable[[set[str]], None]


class ChangePublisher(Protocol):
    """Announces which collections a committed batch touched."""

    def publish(self, collections: Iterable[str]) -> None: ...


class ChangeFeed(ChangePublisher, Protocol):
    def start(self, handler: ChangeHandler) -> None: ...

    def stop(self) -> None: ...
