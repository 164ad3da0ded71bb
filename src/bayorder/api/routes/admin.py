from __future__ import annotations

from fastapi import APIRouter, Depends, status

from bayorder.api.deps import current_identity, get_identity_provider, get_store
from bayorder.application.dto.requests import OnboardCafeRequest
from bayorder.application.dto.responses import AdminCafeListResponse, AdminCafeResponse
from bayorder.application.mappers.cafe_mapper import to_admin_cafe_response
from bayorder.application.ports.identity import Identity
from bayorder.application.use_cases.onboard_cafe import ListCafes, OnboardCafe

router = APIRouter(prefix="/v1/admin", tags=["admin"])


@router.get("/cafes", response_model=AdminCafeListResponse)
def list_cafes(identity: Identity = Depends(current_identity)) -> AdminCafeListResponse:
    cafes = ListCafes(get_store()).execute(identity)
    return AdminCafeListResponse(cafes=[to_admin_cafe_response(cafe) for cafe in cafes])


@router.post("/cafes", response_model=AdminCafeResponse, status_code=status.HTTP_201_CREATED)
def onboard_cafe(
    request_dto: OnboardCafeRequest,
    identity: Identity = Depends(current_identity),
) -> AdminCafeResponse:
    cafe = OnboardCafe(get_store(), get_identity_provider()).execute(
        identity,
        request_dto.name,
        request_dto.address,
        request_dto.table_count,
    )
    return to_admin_cafe_response(cafe)
