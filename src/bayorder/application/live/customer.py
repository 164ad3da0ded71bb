from __future__ import annotations

import logging
import threading
import uuid

from bayorder.application.live.latest_order import LatestOrderReducer, TrackedOrder
from bayorder.application.live.notices import EntryConfigurationError
from bayorder.application.live.queries import cafe_query, latest_order_query, menu_query
from bayorder.application.live.snapshots import SnapshotDiffer
from bayorder.application.live.view import LiveView, StandingQuery, UpdateListener
from bayorder.application.mappers.cafe_mapper import cafe_from_document
from bayorder.application.mappers.menu_mapper import menu_item_from_document
from bayorder.application.mappers.order_mapper import order_from_document
from bayorder.application.ports.identity import IdentityProvider
from bayorder.application.ports.store import Document, DocumentStore, StoreError
from bayorder.application.use_cases.access import CafeNotFoundError, PermissionDeniedError, load_cafe
from bayorder.application.use_cases.place_order import (
    EmptyCartError,
    IdempotencyReplayMismatchError,
    PlaceOrder,
    StaleIdempotencyKeyError,
    TableOccupiedError,
    TableOrderPolicy,
    UnknownTableError,
)
from bayorder.application.use_cases.service_requests import RaiseServiceRequest
from bayorder.domain.cafe.entities import Cafe
from bayorder.domain.cart.cart import Cart
from bayorder.domain.common.ids import CafeId, TableId
from bayorder.domain.menu.entities import MenuItem
from bayorder.domain.order.entities import Order
from bayorder.domain.service_request.entities import ServiceRequest

logger = logging.getLogger(__name__)

_ACTION_ERRORS = (
    StoreError,
    CafeNotFoundError,
    PermissionDeniedError,
    UnknownTableError,
    TableOccupiedError,
    IdempotencyReplayMismatchError,
    StaleIdempotencyKeyError,
)


class CustomerSession(LiveView):
    """Everything a customer device at one table sees and does.

    Entry parameters are checked before any I/O. ``start`` signs in
    anonymously, confirms the cafe exists and attaches the cafe, menu and
    latest-order queries.
    """

    def __init__(
        self,
        store: DocumentStore,
        identity_provider: IdentityProvider,
        cafe_id: str | None,
        table_id: str | None,
        policy: TableOrderPolicy = TableOrderPolicy.SHARED,
        on_update: UpdateListener | None = None,
    ) -> None:
        cafe_key = (cafe_id or "").strip()
        table_key = (table_id or "").strip()
        if not cafe_key or not table_key:
            raise EntryConfigurationError("both cafeId and tableId are required")
        super().__init__(store, on_update=on_update)
        self._identity_provider = identity_provider
        self.cafe_id = CafeId(cafe_key)
        self.table_id = TableId(table_key)
        self.cart = Cart()
        self.cafe: Cafe | None = None
        self.menu: list[MenuItem] = []
        self.confirmation: Order | None = None
        self._differ = SnapshotDiffer()
        self._reducer = LatestOrderReducer()
        self._submitting = threading.Lock()
        self._place_order = PlaceOrder(store, policy)
        self._raise_request = RaiseServiceRequest(store)

    @property
    def tracked_order(self) -> TrackedOrder:
        return self._reducer.state

    @property
    def submitting(self) -> bool:
        return self._submitting.locked()

    def start(self) -> CustomerSession:
        identity = self._identity_provider.sign_in_anonymously()
        load_cafe(self._store, self.cafe_id)
        self.rebind(identity)
        logger.info(
            "customer_session_started",
            extra={"cafe_id": str(self.cafe_id), "table_id": str(self.table_id)},
        )
        return self

    def standing_queries(self) -> list[StandingQuery]:
        return [
            ("cafe", cafe_query(self.cafe_id), self._on_cafe),
            ("menu", menu_query(self.cafe_id), self._on_menu),
            ("latestOrder", latest_order_query(self.cafe_id, self.table_id), self._on_latest_order),
        ]

    def reset_state(self) -> None:
        self.cafe = None
        self.menu = []
        self._differ.reset()
        self._reducer.reset()

    def menu_item(self, item_id: str) -> MenuItem | None:
        for item in self.menu:
            if item.item_id == item_id:
                return item
        return None

    def place_order(self) -> Order | None:
        if not self._submitting.acquire(blocking=False):
            logger.info("order_submission_in_flight", extra={"cafe_id": str(self.cafe_id)})
            return None
        try:
            if self.cart.is_empty:
                self.raise_notice(EmptyCartError("cart is empty"), "placeOrder", "Your cart is empty.")
                return None
            try:
                order = self._place_order.execute(
                    self.cafe_id,
                    self.table_id,
                    self.cart.to_order_lines(),
                    idempotency_key=uuid.uuid4().hex,
                )
            except _ACTION_ERRORS as exc:
                logger.warning(
                    "order_submission_failed",
                    extra={"cafe_id": str(self.cafe_id), "table_id": str(self.table_id), "error": str(exc)},
                )
                self.raise_notice(exc, "placeOrder", "Order failed! Please check connectivity or call staff.")
                return None
            self.cart.clear()
            self.confirmation = order
            self._emit("confirmation")
            return order
        finally:
            self._submitting.release()

    def dismiss_confirmation(self) -> None:
        self.confirmation = None
        self._emit("confirmation")

    def call_server(self) -> ServiceRequest | None:
        try:
            return self._raise_request.execute(self.cafe_id, self.table_id)
        except _ACTION_ERRORS as exc:
            logger.warning(
                "call_server_failed",
                extra={"cafe_id": str(self.cafe_id), "table_id": str(self.table_id), "error": str(exc)},
            )
            self.raise_notice(exc, "callServer", "Failed to call server. Please try again.")
            return None

    def reorder(self) -> bool:
        order = self._reducer.state.order
        if order is None:
            return False
        self.cart.load_from_order(order, self.menu)
        self._emit("cart")
        return True

    def _on_cafe(self, documents: list[Document]) -> None:
        self.cafe = cafe_from_document(documents[0]) if documents else None

    def _on_menu(self, documents: list[Document]) -> None:
        self.menu = [menu_item_from_document(document) for document in documents]

    def _on_latest_order(self, documents: list[Document]) -> None:
        if not self._differ.apply(documents):
            return
        incoming = order_from_document(documents[0]) if documents else None
        self._reducer.apply(incoming)
