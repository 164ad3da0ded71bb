from __future__ import annotations

from typing import Any

from bayorder.application.dto.responses import ServiceRequestResponse
from bayorder.application.ports.store import SERVER_TIMESTAMP, Document, decode_timestamp
from bayorder.domain.common.ids import CafeId, ServiceRequestId, TableId
from bayorder.domain.service_request.entities import (
    ServiceRequest,
    ServiceRequestStatus,
    ServiceRequestType,
)


def service_request_to_document(request: ServiceRequest) -> dict[str, Any]:
    return {
        "cafeId": str(request.cafe_id),
        "tableId": str(request.table_id),
        "type": request.type.value,
        "status": request.status.value,
        "createdAt": request.created_at if request.created_at is not None else SERVER_TIMESTAMP,
    }


def service_request_from_document(document: Document) -> ServiceRequest:
    data = document.data
    return ServiceRequest(
        request_id=ServiceRequestId(document.id),
        cafe_id=CafeId(str(data.get("cafeId", ""))),
        table_id=TableId(str(data.get("tableId", ""))),
        type=ServiceRequestType(data.get("type", ServiceRequestType.SERVER_CALL.value)),
        status=ServiceRequestStatus(data.get("status", ServiceRequestStatus.NEW.value)),
        created_at=decode_timestamp(data.get("createdAt")),
    )


def to_service_request_response(request: ServiceRequest) -> ServiceRequestResponse:
    return ServiceRequestResponse(
        requestId=str(request.request_id),
        cafeId=str(request.cafe_id),
        tableId=str(request.table_id),
        type=request.type.value,
        status=request.status.value,
        createdAt=request.created_at,
    )
