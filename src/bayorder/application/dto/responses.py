from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class MoneyResponse(BaseModel):
    amountCents: int
    currency: str


class CustomizationResponse(BaseModel):
    modifierName: str
    selection: str | list[str]
    priceAdjustment: MoneyResponse


class ModifierOptionResponse(BaseModel):
    label: str
    priceAdjustment: MoneyResponse


class ModifierGroupResponse(BaseModel):
    name: str
    type: str
    options: list[ModifierOptionResponse] = Field(default_factory=list)


class MenuItemResponse(BaseModel):
    itemId: str
    cafeId: str
    name: str
    description: str = ""
    price: MoneyResponse
    category: str
    available: bool
    modifiers: list[ModifierGroupResponse] = Field(default_factory=list)


class MenuResponse(BaseModel):
    cafeId: str
    categories: list[str] = Field(default_factory=list)
    items: list[MenuItemResponse] = Field(default_factory=list)


class OrderLineResponse(BaseModel):
    itemId: str
    name: str
    quantity: int
    unitPrice: MoneyResponse
    lineTotal: MoneyResponse
    customizations: list[CustomizationResponse] = Field(default_factory=list)


class OrderResponse(BaseModel):
    orderId: str
    cafeId: str
    tableId: str
    status: str
    progressStep: int | None = None
    lines: list[OrderLineResponse] = Field(default_factory=list)
    total: MoneyResponse
    createdAt: datetime | None = None
    paidAt: datetime | None = None


class OrderListResponse(BaseModel):
    orders: list[OrderResponse] = Field(default_factory=list)


class TrackedOrderResponse(BaseModel):
    phase: str
    order: OrderResponse | None = None


class CafeResponse(BaseModel):
    cafeId: str
    name: str
    address: str
    tableStatus: dict[str, str] = Field(default_factory=dict)
    tableCount: int
    ownerLinked: bool


class AdminCafeResponse(CafeResponse):
    ownerUserId: str
    ownerUsername: str | None = None
    ownerPassword: str | None = None


class AdminCafeListResponse(BaseModel):
    cafes: list[AdminCafeResponse] = Field(default_factory=list)


class ServiceRequestResponse(BaseModel):
    requestId: str
    cafeId: str
    tableId: str
    type: str
    status: str
    createdAt: datetime | None = None


class ServiceRequestListResponse(BaseModel):
    requests: list[ServiceRequestResponse] = Field(default_factory=list)


class PopularItemResponse(BaseModel):
    name: str
    count: int


class SalesSummaryResponse(BaseModel):
    cafeId: str
    totalRevenue: MoneyResponse
    totalOrders: int
    popularItems: list[PopularItemResponse] = Field(default_factory=list)


class PurgeOldDataResponse(BaseModel):
    success: bool
    deletedCount: int


class AuthResponse(BaseModel):
    token: str
    uid: str
    role: str
    cafeId: str | None = None


class QrTargetResponse(BaseModel):
    tableId: str
    url: str
