from __future__ import annotations

import logging

from bayorder.application.mappers.collections import REQUESTS
from bayorder.application.mappers.request_mapper import (
    service_request_from_document,
    service_request_to_document,
)
from bayorder.application.metrics.order_lifecycle import record_service_request
from bayorder.application.ports.identity import Identity
from bayorder.application.ports.store import DocumentStore, WriteBatch
from bayorder.application.use_cases.access import load_cafe, require_owner
from bayorder.application.use_cases.place_order import UnknownTableError
from bayorder.domain.common.ids import CafeId, ServiceRequestId, TableId
from bayorder.domain.service_request.entities import (
    ServiceRequest,
    ServiceRequestStatus,
    create_server_call,
)

logger = logging.getLogger(__name__)


class ServiceRequestNotFoundError(Exception):
    pass


class RaiseServiceRequest:
    """Customer "call server" tap. Every tap is a new alert document."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    def execute(self, cafe_id: CafeId, table_id: TableId) -> ServiceRequest:
        cafe = load_cafe(self._store, cafe_id)
        if not cafe.has_table(table_id):
            raise UnknownTableError(f"table {table_id} does not exist in cafe {cafe_id}")
        request = create_server_call(
            request_id=ServiceRequestId(self._store.new_id()),
            cafe_id=cafe_id,
            table_id=table_id,
        )
        batch = WriteBatch().create(REQUESTS, str(request.request_id), service_request_to_document(request))
        self._store.commit(batch)

        record_service_request(str(cafe_id), ServiceRequestStatus.NEW.value)
        logger.info(
            "service_request_raised",
            extra={"cafe_id": str(cafe_id), "table_id": str(table_id), "request_id": str(request.request_id)},
        )
        return request


class AcknowledgeServiceRequest:
    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    def execute(self, identity: Identity | None, request_id: ServiceRequestId) -> ServiceRequest:
        document = self._store.get(REQUESTS, str(request_id))
        if document is None:
            raise ServiceRequestNotFoundError(f"service request {request_id} not found")
        request = service_request_from_document(document)
        require_owner(load_cafe(self._store, request.cafe_id), identity)

        if not request.is_open:
            return request

        acknowledged = request.acknowledge()
        self._store.commit(
            WriteBatch().update(REQUESTS, str(request_id), {"status": acknowledged.status.value})
        )
        record_service_request(str(request.cafe_id), acknowledged.status.value)
        logger.info(
            "service_request_acknowledged",
            extra={"cafe_id": str(request.cafe_id), "request_id": str(request_id)},
        )
        return acknowledged
