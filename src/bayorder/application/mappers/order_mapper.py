from __future__ import annotations

from typing import Any

from bayorder.application.dto.responses import (
    CustomizationResponse,
    OrderLineResponse,
    OrderResponse,
)
from bayorder.application.mappers.money_codec import (
    customization_from_document,
    customization_to_document,
    money_from_document,
    money_to_document,
    to_money_response,
)
from bayorder.application.ports.store import SERVER_TIMESTAMP, Document, decode_timestamp
from bayorder.domain.common.ids import CafeId, MenuItemId, OrderId, TableId
from bayorder.domain.common.money import DEFAULT_CURRENCY
from bayorder.domain.menu.entities import SingleSelection
from bayorder.domain.order.entities import Order, OrderLine, OrderStatus


def order_to_document(order: Order) -> dict[str, Any]:
    """Serialize a new order; ``createdAt`` is left to the store's clock."""
    document: dict[str, Any] = {
        "cafeId": str(order.cafe_id),
        "tableId": str(order.table_id),
        "items": [
            {
                "id": str(line.item_id),
                "name": line.name,
                "quantity": line.quantity,
                "price": money_to_document(line.unit_price),
                "customizations": [customization_to_document(c) for c in line.customizations],
            }
            for line in order.lines
        ],
        "total": money_to_document(order.total),
        "currency": order.total.currency,
        "status": order.status.value,
        "createdAt": order.created_at if order.created_at is not None else SERVER_TIMESTAMP,
    }
    if order.paid_at is not None:
        document["paidAt"] = order.paid_at
    if order.idempotency_key:
        document["idempotencyKey"] = order.idempotency_key
    return document


def order_from_document(document: Document) -> Order:
    data = document.data
    currency = str(data.get("currency") or DEFAULT_CURRENCY)
    lines = tuple(
        OrderLine(
            item_id=MenuItemId(str(item.get("id", ""))),
            name=str(item.get("name", "")),
            quantity=int(item.get("quantity", 1)),
            unit_price=money_from_document(item.get("price"), currency),
            customizations=tuple(
                customization_from_document(raw, currency) for raw in item.get("customizations") or []
            ),
        )
        for item in data.get("items") or []
    )
    return Order(
        order_id=OrderId(document.id),
        cafe_id=CafeId(str(data.get("cafeId", ""))),
        table_id=TableId(str(data.get("tableId", ""))),
        status=OrderStatus(data.get("status", OrderStatus.PENDING.value)),
        lines=lines,
        total=money_from_document(data.get("total"), currency),
        created_at=decode_timestamp(data.get("createdAt")),
        paid_at=decode_timestamp(data.get("paidAt")),
        idempotency_key=data.get("idempotencyKey"),
    )


def to_order_response(order: Order) -> OrderResponse:
    return OrderResponse(
        orderId=str(order.order_id),
        cafeId=str(order.cafe_id),
        tableId=str(order.table_id),
        status=order.status.value,
        progressStep=order.status.progress_step,
        lines=[
            OrderLineResponse(
                itemId=str(line.item_id),
                name=line.name,
                quantity=line.quantity,
                unitPrice=to_money_response(line.unit_price),
                lineTotal=to_money_response(line.line_total),
                customizations=[
                    CustomizationResponse(
                        modifierName=c.modifier_name,
                        selection=(
                            c.selection.label
                            if isinstance(c.selection, SingleSelection)
                            else list(c.selection.labels)
                        ),
                        priceAdjustment=to_money_response(c.price_adjustment),
                    )
                    for c in line.customizations
                ],
            )
            for line in order.lines
        ],
        total=to_money_response(order.total),
        createdAt=order.created_at,
        paidAt=order.paid_at,
    )
