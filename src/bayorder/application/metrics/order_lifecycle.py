from __future__ import annotations

from datetime import datetime, timezone

from prometheus_client import Counter, Gauge, Histogram

from bayorder.domain.order.entities import Order, OrderStatus

ORDERS_PLACED_TOTAL = Counter(
    "bayorder_orders_placed_total",
    "Total number of orders committed.",
    ["cafe_id"],
)

ORDER_SUBMISSION_FAILED_TOTAL = Counter(
    "bayorder_order_submission_failed_total",
    "Total number of order submissions rejected or aborted.",
    ["cafe_id", "reason"],
)

ORDER_TRANSITION_TOTAL = Counter(
    "bayorder_order_transition_total",
    "Total number of order lifecycle transitions.",
    ["from", "to"],
)

ORDER_TIME_TO_PAID_SECONDS = Histogram(
    "bayorder_order_time_to_paid_seconds",
    "Time between order placement and payment.",
)

SERVICE_REQUESTS_TOTAL = Counter(
    "bayorder_service_requests_total",
    "Total number of call-server requests by outcome.",
    ["cafe_id", "status"],
)

PURGED_DOCUMENTS_TOTAL = Counter(
    "bayorder_purged_documents_total",
    "Total number of documents removed by the bulk purge.",
    ["collection"],
)

LIVE_SUBSCRIPTIONS = Gauge(
    "bayorder_live_subscriptions",
    "Standing queries currently attached to the store.",
)


def record_order_placed(order: Order) -> None:
    ORDERS_PLACED_TOTAL.labels(cafe_id=str(order.cafe_id)).inc()


def record_submission_failed(cafe_id: str, reason: str) -> None:
    ORDER_SUBMISSION_FAILED_TOTAL.labels(cafe_id=cafe_id, reason=reason).inc()


def record_transition(from_status: OrderStatus, to_status: OrderStatus) -> None:
    ORDER_TRANSITION_TOTAL.labels(**{"from": from_status.value, "to": to_status.value}).inc()


def record_time_to_paid(order: Order, now: datetime | None = None) -> None:
    if order.created_at is None:
        return
    current = now or datetime.now(timezone.utc)
    ORDER_TIME_TO_PAID_SECONDS.observe(max((current - order.created_at).total_seconds(), 0.0))


def record_service_request(cafe_id: str, status: str) -> None:
    SERVICE_REQUESTS_TOTAL.labels(cafe_id=cafe_id, status=status).inc()


def record_purged(collection: str, count: int) -> None:
    if count:
        PURGED_DOCUMENTS_TOTAL.labels(collection=collection).inc(count)


def record_live_subscriptions(count: int) -> None:
    LIVE_SUBSCRIPTIONS.set(count)
