from __future__ import annotations

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from bayorder.domain.menu.entities import SelectionType
from bayorder.domain.order.entities import OrderStatus


def _to_camel(value: str) -> str:
    parts = value.split("_")
    return parts[0] + "".join(part.capitalize() for part in parts[1:])


class CamelBaseModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=_to_camel,
        populate_by_name=True,
    )


class PlaceOrderLineRequest(CamelBaseModel):
    item_id: str
    quantity: int = Field(default=1, ge=1)
    choices: dict[str, str | list[str]] = Field(default_factory=dict)
    notes: str | None = None


class PlaceOrderRequest(CamelBaseModel):
    lines: list[PlaceOrderLineRequest] = Field(min_length=1)


class UpdateOrderStatusRequest(CamelBaseModel):
    status: OrderStatus


class ModifierOptionRequest(CamelBaseModel):
    label: str = Field(min_length=1)
    price_adjustment: Decimal = Field(default=Decimal("0"), ge=0)


class ModifierGroupRequest(CamelBaseModel):
    name: str = Field(min_length=1)
    type: SelectionType
    options: list[ModifierOptionRequest] = Field(default_factory=list)


class MenuItemRequest(CamelBaseModel):
    name: str = Field(min_length=1)
    description: str = ""
    price: Decimal = Field(ge=0)
    category: str = "Uncategorized"
    available: bool = True
    modifiers: list[ModifierGroupRequest] = Field(default_factory=list)


class MenuItemAvailabilityRequest(CamelBaseModel):
    available: bool


class CafeDetailsRequest(CamelBaseModel):
    name: str = Field(min_length=1)
    address: str = ""


class AddTableRequest(CamelBaseModel):
    table_id: str = Field(min_length=1, max_length=50)


class OnboardCafeRequest(CamelBaseModel):
    name: str = Field(min_length=1)
    address: str = ""
    table_count: int = Field(default=5, ge=1, le=200)


class LoginRequest(CamelBaseModel):
    username: str
    password: str


class PurgeOldDataRequest(CamelBaseModel):
    # raw values; PurgeOldData reports bad input as invalid-argument
    cafe_id: Any = None
    days_to_keep: Any = None
