from __future__ import annotations

import logging

from bayorder.application.live.queries import (
    active_orders_query,
    all_cafes_query,
    cafe_query,
    new_requests_query,
    paid_orders_query,
)
from bayorder.application.live.snapshots import ChangeKind, SnapshotDiffer
from bayorder.application.live.view import LiveView, StandingQuery, UpdateListener
from bayorder.application.mappers.cafe_mapper import cafe_from_document
from bayorder.application.mappers.order_mapper import order_from_document
from bayorder.application.mappers.request_mapper import service_request_from_document
from bayorder.application.ports.identity import AccountExistsError, Identity, IdentityProvider
from bayorder.application.ports.store import Document, DocumentStore, StoreError
from bayorder.application.use_cases.access import (
    CafeNotFoundError,
    PermissionDeniedError,
    find_cafe_for_owner,
)
from bayorder.application.use_cases.advance_order_status import (
    AdvanceOrderStatus,
    InvalidOrderTransitionError,
    OrderConflictError,
    OrderNotFoundError,
)
from bayorder.application.use_cases.onboard_cafe import OnboardCafe
from bayorder.application.use_cases.sales_summary import SalesSummary, compute_sales_summary
from bayorder.application.use_cases.service_requests import (
    AcknowledgeServiceRequest,
    ServiceRequestNotFoundError,
)
from bayorder.domain.cafe.entities import Cafe
from bayorder.domain.common.ids import CafeId, OrderId, ServiceRequestId
from bayorder.domain.order.entities import Order, OrderStatus
from bayorder.domain.service_request.entities import ServiceRequest

logger = logging.getLogger(__name__)

_STAFF_ACTION_ERRORS = (
    StoreError,
    CafeNotFoundError,
    PermissionDeniedError,
    OrderNotFoundError,
    InvalidOrderTransitionError,
    OrderConflictError,
    ServiceRequestNotFoundError,
)


class OwnerDashboard(LiveView):
    """Live kitchen queue, call-server alerts, table grid and sales for one cafe."""

    def __init__(
        self,
        store: DocumentStore,
        identity: Identity,
        cafe_id: CafeId,
        on_update: UpdateListener | None = None,
    ) -> None:
        super().__init__(store, identity, on_update)
        self.cafe_id = cafe_id
        self.cafe: Cafe | None = None
        self.active_orders: list[Order] = []
        self.new_requests: list[ServiceRequest] = []
        self.alerts: list[ServiceRequest] = []
        self.sales: SalesSummary = compute_sales_summary([])
        self._request_differ = SnapshotDiffer()
        self._advance = AdvanceOrderStatus(store)
        self._acknowledge = AcknowledgeServiceRequest(store)

    @classmethod
    def for_owner(
        cls,
        store: DocumentStore,
        identity: Identity,
        on_update: UpdateListener | None = None,
    ) -> OwnerDashboard:
        cafe = find_cafe_for_owner(store, identity.uid)
        if cafe is None:
            raise CafeNotFoundError(f"no cafe is linked to user {identity.uid}")
        dashboard = cls(store, identity, cafe.cafe_id, on_update)
        dashboard.attach()
        return dashboard

    def standing_queries(self) -> list[StandingQuery]:
        return [
            ("activeOrders", active_orders_query(self.cafe_id), self._on_active_orders),
            ("newRequests", new_requests_query(self.cafe_id), self._on_new_requests),
            ("cafe", cafe_query(self.cafe_id), self._on_cafe),
            ("paidOrders", paid_orders_query(self.cafe_id), self._on_paid_orders),
        ]

    def reset_state(self) -> None:
        self.cafe = None
        self.active_orders = []
        self.new_requests = []
        self.alerts = []
        self.sales = compute_sales_summary([])
        self._request_differ.reset()

    def orders_with_status(self, status: OrderStatus) -> list[Order]:
        return [order for order in self.active_orders if order.status == status]

    def advance(self, order_id: OrderId, status: OrderStatus) -> Order | None:
        try:
            return self._advance.execute(self._identity, order_id, status)
        except _STAFF_ACTION_ERRORS as exc:
            logger.warning(
                "order_status_update_failed",
                extra={"order_id": str(order_id), "to_status": status.value, "error": str(exc)},
            )
            self.raise_notice(exc, "advanceOrder", "Failed to update order status.")
            return None

    def acknowledge(self, request_id: ServiceRequestId) -> ServiceRequest | None:
        try:
            return self._acknowledge.execute(self._identity, request_id)
        except _STAFF_ACTION_ERRORS as exc:
            logger.warning(
                "service_request_ack_failed",
                extra={"request_id": str(request_id), "error": str(exc)},
            )
            self.raise_notice(exc, "acknowledgeRequest", "Failed to clear the request.")
            return None

    def clear_alerts(self) -> None:
        self.alerts = []
        self._emit("alerts")

    def _on_active_orders(self, documents: list[Document]) -> None:
        self.active_orders = [order_from_document(document) for document in documents]

    def _on_new_requests(self, documents: list[Document]) -> None:
        primed = self._request_differ.primed
        changes = self._request_differ.apply(documents)
        self.new_requests = [service_request_from_document(document) for document in documents]
        if primed:
            self.alerts.extend(
                service_request_from_document(change.document)
                for change in changes
                if change.kind == ChangeKind.ADDED
            )

    def _on_cafe(self, documents: list[Document]) -> None:
        self.cafe = cafe_from_document(documents[0]) if documents else None

    def _on_paid_orders(self, documents: list[Document]) -> None:
        self.sales = compute_sales_summary(order_from_document(document) for document in documents)


class AdminConsole(LiveView):
    def __init__(
        self,
        store: DocumentStore,
        identity_provider: IdentityProvider,
        identity: Identity,
        on_update: UpdateListener | None = None,
    ) -> None:
        super().__init__(store, identity, on_update)
        self.cafes: list[Cafe] = []
        self._onboard = OnboardCafe(store, identity_provider)

    def standing_queries(self) -> list[StandingQuery]:
        return [("cafes", all_cafes_query(), self._on_cafes)]

    def reset_state(self) -> None:
        self.cafes = []

    def onboard(self, name: str, address: str, table_count: int) -> Cafe | None:
        try:
            return self._onboard.execute(self._identity, name, address, table_count)
        except (StoreError, PermissionDeniedError, AccountExistsError, ValueError) as exc:
            logger.warning("cafe_onboarding_failed", extra={"error": str(exc)})
            self.raise_notice(exc, "onboardCafe", "Failed to add cafe.")
            return None

    def _on_cafes(self, documents: list[Document]) -> None:
        self.cafes = [cafe_from_document(document) for document in documents]
