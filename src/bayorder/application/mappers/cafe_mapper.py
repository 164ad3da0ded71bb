from __future__ import annotations

from typing import Any

from bayorder.application.dto.responses import AdminCafeResponse, CafeResponse
from bayorder.application.ports.store import Document
from bayorder.domain.cafe.entities import PENDING_OWNER, Cafe, OwnerCredentials, TableState
from bayorder.domain.common.ids import CafeId, TableId, UserId


def cafe_to_document(cafe: Cafe) -> dict[str, Any]:
    return {
        "name": cafe.name,
        "address": cafe.address,
        "tableStatus": {str(table_id): state.value for table_id, state in cafe.tables.items()},
        "tableCount": cafe.table_count,
        "ownerUserId": str(cafe.owner_user_id),
        "ownerUsername": cafe.credentials.username if cafe.credentials else None,
        "ownerPassword": cafe.credentials.password if cafe.credentials else None,
    }


def cafe_from_document(document: Document) -> Cafe:
    data = document.data
    tables: dict[TableId, TableState] = {}
    for table_id, raw_state in (data.get("tableStatus") or {}).items():
        # older documents wrote "available" for freshly added tables
        state = TableState.OCCUPIED if raw_state == TableState.OCCUPIED.value else TableState.VACANT
        tables[TableId(table_id)] = state

    username = data.get("ownerUsername")
    password = data.get("ownerPassword")
    credentials = None
    if username and password is not None:
        credentials = OwnerCredentials(username=str(username), password=str(password))

    return Cafe(
        cafe_id=CafeId(document.id),
        name=str(data.get("name") or ""),
        address=str(data.get("address") or ""),
        tables=tables,
        owner_user_id=UserId(str(data.get("ownerUserId") or PENDING_OWNER)),
        credentials=credentials,
        table_count=int(data.get("tableCount") or len(tables)),
    )


def table_status_path(table_id: TableId | str) -> str:
    return f"tableStatus.{table_id}"


def to_cafe_response(cafe: Cafe) -> CafeResponse:
    return CafeResponse(
        cafeId=str(cafe.cafe_id),
        name=cafe.name,
        address=cafe.address,
        tableStatus={str(table_id): state.value for table_id, state in cafe.sorted_tables()},
        tableCount=cafe.table_count,
        ownerLinked=cafe.owner_linked,
    )


def to_admin_cafe_response(cafe: Cafe) -> AdminCafeResponse:
    base = to_cafe_response(cafe)
    return AdminCafeResponse(
        **base.model_dump(),
        ownerUserId=str(cafe.owner_user_id),
        ownerUsername=cafe.credentials.username if cafe.credentials else None,
        ownerPassword=cafe.credentials.password if cafe.credentials else None,
    )
