from __future__ import annotations

from bayorder.application.live.latest_order import LatestOrderReducer, TrackedOrder
from bayorder.application.live.queries import active_orders_query, latest_order_query, new_requests_query
from bayorder.application.mappers.order_mapper import order_from_document
from bayorder.application.mappers.request_mapper import service_request_from_document
from bayorder.application.ports.identity import Identity
from bayorder.application.ports.store import DocumentStore
from bayorder.application.use_cases.access import load_cafe, require_owner
from bayorder.domain.common.ids import CafeId, TableId
from bayorder.domain.order.entities import Order, OrderStatus
from bayorder.domain.service_request.entities import ServiceRequest


class ListActiveOrders:
    """One-shot read of the owner's order board; live clients subscribe to the same query."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    def execute(
        self,
        identity: Identity | None,
        cafe_id: CafeId,
        status: OrderStatus | None = None,
    ) -> list[Order]:
        require_owner(load_cafe(self._store, cafe_id), identity)
        orders = [order_from_document(document) for document in self._store.query(active_orders_query(cafe_id))]
        if status is None:
            return orders
        return [order for order in orders if order.status == status]


class ListNewServiceRequests:
    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    def execute(self, identity: Identity | None, cafe_id: CafeId) -> list[ServiceRequest]:
        require_owner(load_cafe(self._store, cafe_id), identity)
        return [service_request_from_document(document) for document in self._store.query(new_requests_query(cafe_id))]


class GetTrackedOrder:
    """Latest order for a table as a freshly opened customer screen would show it."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    def execute(self, cafe_id: CafeId, table_id: TableId) -> TrackedOrder:
        load_cafe(self._store, cafe_id)
        documents = self._store.query(latest_order_query(cafe_id, table_id))
        return LatestOrderReducer().apply(order_from_document(documents[0]) if documents else None)
