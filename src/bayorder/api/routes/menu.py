from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status

from bayorder.api.deps import current_identity, get_store, optional_identity
from bayorder.application.dto.requests import MenuItemAvailabilityRequest, MenuItemRequest
from bayorder.application.dto.responses import MenuItemResponse, MenuResponse
from bayorder.application.mappers.menu_mapper import to_menu_item_response, to_menu_response
from bayorder.application.ports.identity import Identity
from bayorder.application.use_cases.manage_menu import (
    CreateMenuItem,
    DeleteMenuItem,
    ListMenuItems,
    SetMenuItemAvailability,
    UpdateMenuItem,
)
from bayorder.domain.common.ids import CafeId, MenuItemId

router = APIRouter(tags=["menu"])


@router.get("/v1/cafes/{cafe_id}/menu", response_model=MenuResponse)
def get_menu(
    cafe_id: str,
    include_unavailable: bool = Query(default=False, alias="includeUnavailable"),
    identity: Identity | None = Depends(optional_identity),
) -> MenuResponse:
    items = ListMenuItems(get_store()).execute(
        CafeId(cafe_id),
        identity=identity,
        include_unavailable=include_unavailable,
    )
    return to_menu_response(CafeId(cafe_id), items)


@router.post(
    "/v1/cafes/{cafe_id}/menu/items",
    response_model=MenuItemResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_menu_item(
    cafe_id: str,
    request_dto: MenuItemRequest,
    identity: Identity = Depends(current_identity),
) -> MenuItemResponse:
    return to_menu_item_response(CreateMenuItem(get_store()).execute(identity, CafeId(cafe_id), request_dto))


@router.put("/v1/menu/items/{item_id}", response_model=MenuItemResponse)
def update_menu_item(
    item_id: str,
    request_dto: MenuItemRequest,
    identity: Identity = Depends(current_identity),
) -> MenuItemResponse:
    return to_menu_item_response(UpdateMenuItem(get_store()).execute(identity, MenuItemId(item_id), request_dto))


@router.patch("/v1/menu/items/{item_id}/availability", response_model=MenuItemResponse)
def set_availability(
    item_id: str,
    request_dto: MenuItemAvailabilityRequest,
    identity: Identity = Depends(current_identity),
) -> MenuItemResponse:
    item = SetMenuItemAvailability(get_store()).execute(identity, MenuItemId(item_id), request_dto.available)
    return to_menu_item_response(item)


@router.delete("/v1/menu/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_menu_item(item_id: str, identity: Identity = Depends(current_identity)) -> Response:
    DeleteMenuItem(get_store()).execute(identity, MenuItemId(item_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
