from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum

from bayorder.domain.common.ids import CafeId, ServiceRequestId, TableId


class ServiceRequestType(str, Enum):
    SERVER_CALL = "server-call"


class ServiceRequestStatus(str, Enum):
    NEW = "new"
    DONE = "done"


@dataclass(frozen=True)
class ServiceRequest:
    request_id: ServiceRequestId
    cafe_id: CafeId
    table_id: TableId
    type: ServiceRequestType
    status: ServiceRequestStatus
    created_at: datetime | None

    @property
    def is_open(self) -> bool:
        return self.status == ServiceRequestStatus.NEW

    def acknowledge(self) -> ServiceRequest:
        if self.status == ServiceRequestStatus.DONE:
            return self
        return replace(self, status=ServiceRequestStatus.DONE)


def create_server_call(
    request_id: ServiceRequestId,
    cafe_id: CafeId,
    table_id: TableId,
) -> ServiceRequest:
    if not table_id:
        raise ValueError("table_id must be non-empty")
    return ServiceRequest(
        request_id=request_id,
        cafe_id=cafe_id,
        table_id=table_id,
        type=ServiceRequestType.SERVER_CALL,
        status=ServiceRequestStatus.NEW,
        created_at=None,
    )
