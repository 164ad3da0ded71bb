from __future__ import annotations

from typing import Any

from bayorder.application.dto.requests import MenuItemRequest
from bayorder.application.dto.responses import (
    MenuItemResponse,
    MenuResponse,
    ModifierGroupResponse,
    ModifierOptionResponse,
)
from bayorder.application.mappers.money_codec import (
    money_from_document,
    money_to_document,
    to_money_response,
)
from bayorder.application.ports.store import Document
from bayorder.domain.common.ids import CafeId, MenuItemId
from bayorder.domain.common.money import DEFAULT_CURRENCY, Money
from bayorder.domain.menu.entities import MenuItem, ModifierGroup, ModifierOption, SelectionType


def menu_item_to_document(item: MenuItem) -> dict[str, Any]:
    return {
        "cafeId": str(item.cafe_id),
        "name": item.name,
        "description": item.description,
        "price": money_to_document(item.price),
        "currency": item.price.currency,
        "category": item.category,
        "available": item.available,
        "modifiers": [
            {
                "name": group.name,
                "type": group.type.value,
                "options": [
                    {
                        "label": option.label,
                        "priceAdjustment": money_to_document(option.price_adjustment),
                    }
                    for option in group.options
                ],
            }
            for group in item.modifiers
        ],
    }


def menu_item_from_document(document: Document) -> MenuItem:
    data = document.data
    currency = str(data.get("currency") or DEFAULT_CURRENCY)
    modifiers = tuple(
        ModifierGroup(
            name=str(group.get("name", "")),
            type=SelectionType(group.get("type", SelectionType.RADIO.value)),
            options=tuple(
                ModifierOption(
                    label=str(option.get("label", "")),
                    price_adjustment=money_from_document(option.get("priceAdjustment"), currency),
                )
                for option in group.get("options") or []
            ),
        )
        for group in data.get("modifiers") or []
    )
    return MenuItem(
        item_id=MenuItemId(document.id),
        cafe_id=CafeId(str(data.get("cafeId", ""))),
        name=str(data.get("name", "")),
        description=str(data.get("description") or ""),
        price=money_from_document(data.get("price"), currency),
        category=str(data.get("category") or ""),
        available=bool(data.get("available", True)),
        modifiers=modifiers,
    )


def to_menu_item_response(item: MenuItem) -> MenuItemResponse:
    return MenuItemResponse(
        itemId=str(item.item_id),
        cafeId=str(item.cafe_id),
        name=item.name,
        description=item.description,
        price=to_money_response(item.price),
        category=item.category,
        available=item.available,
        modifiers=[
            ModifierGroupResponse(
                name=group.name,
                type=group.type.value,
                options=[
                    ModifierOptionResponse(
                        label=option.label,
                        priceAdjustment=to_money_response(option.price_adjustment),
                    )
                    for option in group.options
                ],
            )
            for group in item.modifiers
        ],
    )


def to_menu_response(cafe_id: CafeId, items: list[MenuItem]) -> MenuResponse:
    categories: list[str] = []
    for item in items:
        if item.category not in categories:
            categories.append(item.category)
    return MenuResponse(
        cafeId=str(cafe_id),
        categories=categories,
        items=[to_menu_item_response(item) for item in items],
    )


def menu_item_from_request(item_id: MenuItemId, cafe_id: CafeId, request: MenuItemRequest) -> MenuItem:
    return MenuItem(
        item_id=item_id,
        cafe_id=cafe_id,
        name=request.name.strip(),
        description=request.description,
        price=Money.from_decimal(request.price),
        category=request.category.strip() or "Uncategorized",
        available=request.available,
        modifiers=tuple(
            ModifierGroup(
                name=group.name.strip(),
                type=group.type,
                options=tuple(
                    ModifierOption(
                        label=option.label,
                        price_adjustment=Money.from_decimal(option.price_adjustment),
                    )
                    for option in group.options
                ),
            )
            for group in request.modifiers
        ),
    )
