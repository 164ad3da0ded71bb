from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable

from bayorder.application.dto.responses import PopularItemResponse, SalesSummaryResponse
from bayorder.application.live.queries import paid_orders_query
from bayorder.application.mappers.money_codec import to_money_response
from bayorder.application.mappers.order_mapper import order_from_document
from bayorder.application.ports.identity import Identity
from bayorder.application.ports.store import DocumentStore
from bayorder.application.use_cases.access import load_cafe, require_owner
from bayorder.domain.common.ids import CafeId
from bayorder.domain.common.money import DEFAULT_CURRENCY, Money
from bayorder.domain.order.entities import Order, OrderStatus

POPULAR_ITEMS_LIMIT = 5


@dataclass(frozen=True)
class SalesSummary:
    total_revenue: Money
    total_orders: int
    popular_items: list[tuple[str, int]] = field(default_factory=list)


def compute_sales_summary(orders: Iterable[Order], currency: str = DEFAULT_CURRENCY) -> SalesSummary:
    """Revenue, order count and the five best sellers by quantity, over Paid orders."""
    revenue = Money.zero(currency)
    count = 0
    quantities: Counter[str] = Counter()
    for order in orders:
        if order.status != OrderStatus.PAID:
            continue
        revenue = revenue + order.total
        count += 1
        for line in order.lines:
            quantities[line.name] += line.quantity
    return SalesSummary(
        total_revenue=revenue,
        total_orders=count,
        popular_items=quantities.most_common(POPULAR_ITEMS_LIMIT),
    )


def to_sales_summary_response(cafe_id: CafeId, summary: SalesSummary) -> SalesSummaryResponse:
    return SalesSummaryResponse(
        cafeId=str(cafe_id),
        totalRevenue=to_money_response(summary.total_revenue),
        totalOrders=summary.total_orders,
        popularItems=[PopularItemResponse(name=name, count=qty) for name, qty in summary.popular_items],
    )


class GetSalesSummary:
    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    def execute(self, identity: Identity | None, cafe_id: CafeId) -> SalesSummary:
        require_owner(load_cafe(self._store, cafe_id), identity)
        documents = self._store.query(paid_orders_query(cafe_id))
        return compute_sales_summary(order_from_document(document) for document in documents)
