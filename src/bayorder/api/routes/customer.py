from __future__ import annotations

from fastapi import APIRouter, Depends, Header, status

from bayorder.api.deps import current_identity, get_store, table_order_policy
from bayorder.application.dto.requests import PlaceOrderRequest
from bayorder.application.dto.responses import (
    CafeResponse,
    OrderResponse,
    ServiceRequestResponse,
    TrackedOrderResponse,
)
from bayorder.application.mappers.cafe_mapper import to_cafe_response
from bayorder.application.mappers.order_mapper import to_order_response
from bayorder.application.mappers.request_mapper import to_service_request_response
from bayorder.application.ports.identity import Identity
from bayorder.application.use_cases.access import load_cafe
from bayorder.application.use_cases.checkout import SubmitCart
from bayorder.application.use_cases.queues import GetTrackedOrder
from bayorder.application.use_cases.service_requests import RaiseServiceRequest
from bayorder.domain.common.ids import CafeId, TableId

router = APIRouter(prefix="/v1/cafes/{cafe_id}", tags=["customer"])


@router.get("", response_model=CafeResponse)
def get_cafe(cafe_id: str) -> CafeResponse:
    return to_cafe_response(load_cafe(get_store(), CafeId(cafe_id)))


@router.post(
    "/tables/{table_id}/orders",
    response_model=OrderResponse,
    status_code=status.HTTP_201_CREATED,
)
def place_order(
    cafe_id: str,
    table_id: str,
    request_dto: PlaceOrderRequest,
    idempotency_key: str | None = Header(default=None, alias="Idempotency-Key"),
    _: Identity = Depends(current_identity),
) -> OrderResponse:
    order = SubmitCart(get_store(), table_order_policy()).execute(
        cafe_id=CafeId(cafe_id),
        table_id=TableId(table_id),
        request=request_dto,
        idempotency_key=idempotency_key,
    )
    return to_order_response(order)


@router.get("/tables/{table_id}/orders/latest", response_model=TrackedOrderResponse)
def latest_order(cafe_id: str, table_id: str) -> TrackedOrderResponse:
    tracked = GetTrackedOrder(get_store()).execute(CafeId(cafe_id), TableId(table_id))
    return TrackedOrderResponse(
        phase=tracked.phase.value,
        order=to_order_response(tracked.order) if tracked.order is not None else None,
    )


@router.post(
    "/tables/{table_id}/requests",
    response_model=ServiceRequestResponse,
    status_code=status.HTTP_201_CREATED,
)
def call_server(
    cafe_id: str,
    table_id: str,
    _: Identity = Depends(current_identity),
) -> ServiceRequestResponse:
    request = RaiseServiceRequest(get_store()).execute(CafeId(cafe_id), TableId(table_id))
    return to_service_request_response(request)
