from __future__ import annotations

from bayorder.application.mappers.collections import CAFES, MENU_ITEMS, ORDERS, REQUESTS
from bayorder.application.ports.store import FieldOp, Query, document_query
from bayorder.domain.common.ids import CafeId, TableId
from bayorder.domain.order.entities import OrderStatus
from bayorder.domain.service_request.entities import ServiceRequestStatus


def cafe_query(cafe_id: CafeId) -> Query:
    return document_query(CAFES, str(cafe_id))


def all_cafes_query() -> Query:
    return Query(collection=CAFES)


def menu_query(cafe_id: CafeId, include_unavailable: bool = False) -> Query:
    query = Query(collection=MENU_ITEMS).where("cafeId", FieldOp.EQ, str(cafe_id))
    if not include_unavailable:
        query = query.where("available", FieldOp.EQ, True)
    return query.order("category")


def latest_order_query(cafe_id: CafeId, table_id: TableId) -> Query:
    return (
        Query(collection=ORDERS)
        .where("cafeId", FieldOp.EQ, str(cafe_id))
        .where("tableId", FieldOp.EQ, str(table_id))
        .order("createdAt", descending=True)
        .limited(1)
    )


def active_orders_query(cafe_id: CafeId) -> Query:
    # status names sort Pending, Preparing, Ready for Delivery
    return (
        Query(collection=ORDERS)
        .where("cafeId", FieldOp.EQ, str(cafe_id))
        .where("status", FieldOp.NE, OrderStatus.PAID.value)
        .order("status")
        .order("createdAt")
    )


def paid_orders_query(cafe_id: CafeId) -> Query:
    return (
        Query(collection=ORDERS)
        .where("cafeId", FieldOp.EQ, str(cafe_id))
        .where("status", FieldOp.EQ, OrderStatus.PAID.value)
    )


def new_requests_query(cafe_id: CafeId) -> Query:
    return (
        Query(collection=REQUESTS)
        .where("cafeId", FieldOp.EQ, str(cafe_id))
        .where("status", FieldOp.EQ, ServiceRequestStatus.NEW.value)
        .order("createdAt", descending=True)
    )
