from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from bayorder.domain.order.entities import Order, OrderStatus


class TrackingPhase(str, Enum):
    NONE = "none"
    ACTIVE = "active"
    COMPLETE = "complete"


@dataclass(frozen=True)
class TrackedOrder:
    phase: TrackingPhase
    order: Order | None = None

    @classmethod
    def none(cls) -> TrackedOrder:
        return cls(phase=TrackingPhase.NONE)


class LatestOrderReducer:
    """Resolves the "latest order for this table" query into what the customer sees.

    A Paid order is shown as complete once, when it follows a non-paid state.
    If the newest document is still that Paid order on the next change, the
    view clears so an old paid order never reads as a live one.
    """

    def __init__(self) -> None:
        self._state = TrackedOrder.none()

    @property
    def state(self) -> TrackedOrder:
        return self._state

    def apply(self, incoming: Order | None) -> TrackedOrder:
        previous = self._state.order
        if incoming is None:
            self._state = TrackedOrder.none()
        elif incoming.status != OrderStatus.PAID:
            self._state = TrackedOrder(TrackingPhase.ACTIVE, incoming)
        elif previous is None or previous.status != OrderStatus.PAID:
            self._state = TrackedOrder(TrackingPhase.COMPLETE, incoming)
        else:
            self._state = TrackedOrder.none()
        return self._state

    def reset(self) -> None:
        self._state = TrackedOrder.none()
