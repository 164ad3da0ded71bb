from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from bayorder.api.deps import current_identity, get_store
from bayorder.application.dto.requests import AddTableRequest, CafeDetailsRequest, UpdateOrderStatusRequest
from bayorder.application.dto.responses import (
    CafeResponse,
    OrderListResponse,
    OrderResponse,
    QrTargetResponse,
    SalesSummaryResponse,
    ServiceRequestListResponse,
    ServiceRequestResponse,
)
from bayorder.application.mappers.cafe_mapper import to_cafe_response
from bayorder.application.mappers.order_mapper import to_order_response
from bayorder.application.mappers.request_mapper import to_service_request_response
from bayorder.application.ports.identity import Identity
from bayorder.application.use_cases.advance_order_status import AdvanceOrderStatus
from bayorder.application.use_cases.cafe_settings import (
    AddTable,
    ListTableQrTargets,
    RemoveTable,
    UpdateCafeDetails,
)
from bayorder.application.use_cases.queues import ListActiveOrders, ListNewServiceRequests
from bayorder.application.use_cases.sales_summary import GetSalesSummary, to_sales_summary_response
from bayorder.application.use_cases.service_requests import AcknowledgeServiceRequest
from bayorder.domain.common.ids import CafeId, OrderId, ServiceRequestId, TableId
from bayorder.domain.order.entities import OrderStatus

router = APIRouter(tags=["owner"])


@router.get("/v1/cafes/{cafe_id}/orders", response_model=OrderListResponse)
def list_active_orders(
    cafe_id: str,
    status: OrderStatus | None = Query(default=None),
    identity: Identity = Depends(current_identity),
) -> OrderListResponse:
    orders = ListActiveOrders(get_store()).execute(identity, CafeId(cafe_id), status)
    return OrderListResponse(orders=[to_order_response(order) for order in orders])


@router.patch("/v1/orders/{order_id}/status", response_model=OrderResponse)
def update_order_status(
    order_id: str,
    request_dto: UpdateOrderStatusRequest,
    identity: Identity = Depends(current_identity),
) -> OrderResponse:
    order = AdvanceOrderStatus(get_store()).execute(identity, OrderId(order_id), request_dto.status)
    return to_order_response(order)


@router.get("/v1/cafes/{cafe_id}/requests", response_model=ServiceRequestListResponse)
def list_new_requests(cafe_id: str, identity: Identity = Depends(current_identity)) -> ServiceRequestListResponse:
    requests = ListNewServiceRequests(get_store()).execute(identity, CafeId(cafe_id))
    return ServiceRequestListResponse(requests=[to_service_request_response(request) for request in requests])


@router.post("/v1/requests/{request_id}/acknowledge", response_model=ServiceRequestResponse)
def acknowledge_request(request_id: str, identity: Identity = Depends(current_identity)) -> ServiceRequestResponse:
    request = AcknowledgeServiceRequest(get_store()).execute(identity, ServiceRequestId(request_id))
    return to_service_request_response(request)


@router.put("/v1/cafes/{cafe_id}/details", response_model=CafeResponse)
def update_cafe_details(
    cafe_id: str,
    request_dto: CafeDetailsRequest,
    identity: Identity = Depends(current_identity),
) -> CafeResponse:
    cafe = UpdateCafeDetails(get_store()).execute(identity, CafeId(cafe_id), request_dto.name, request_dto.address)
    return to_cafe_response(cafe)


@router.post("/v1/cafes/{cafe_id}/tables", response_model=CafeResponse, status_code=201)
def add_table(
    cafe_id: str,
    request_dto: AddTableRequest,
    identity: Identity = Depends(current_identity),
) -> CafeResponse:
    cafe = AddTable(get_store()).execute(identity, CafeId(cafe_id), TableId(request_dto.table_id.strip()))
    return to_cafe_response(cafe)


@router.delete("/v1/cafes/{cafe_id}/tables/{table_id}", response_model=CafeResponse)
def remove_table(cafe_id: str, table_id: str, identity: Identity = Depends(current_identity)) -> CafeResponse:
    cafe = RemoveTable(get_store()).execute(identity, CafeId(cafe_id), TableId(table_id))
    return to_cafe_response(cafe)


@router.get("/v1/cafes/{cafe_id}/qr-codes", response_model=list[QrTargetResponse])
def list_qr_targets(cafe_id: str, identity: Identity = Depends(current_identity)) -> list[QrTargetResponse]:
    targets = ListTableQrTargets(get_store()).execute(identity, CafeId(cafe_id))
    return [QrTargetResponse(tableId=str(table_id), url=url) for table_id, url in targets]


@router.get("/v1/cafes/{cafe_id}/sales-summary", response_model=SalesSummaryResponse)
def sales_summary(cafe_id: str, identity: Identity = Depends(current_identity)) -> SalesSummaryResponse:
    summary = GetSalesSummary(get_store()).execute(identity, CafeId(cafe_id))
    return to_sales_summary_response(CafeId(cafe_id), summary)
