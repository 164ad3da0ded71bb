from __future__ import annotations

from functools import cmp_to_key
from typing import Any, Iterable

from bayorder.application.ports.store import (
    DOCUMENT_ID,
    MISSING,
    Document,
    FieldFilter,
    FieldOp,
    Query,
    SortKey,
    read_path,
)


def field_value(document: Document, field_path: str) -> Any:
    if field_path == DOCUMENT_ID:
        return document.id
    return read_path(document.data, field_path)


def _type_rank(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, bool):
        return 1
    if isinstance(value, (int, float)):
        return 2
    if isinstance(value, str):
        return 3
    return 4


def _comparable(left: Any, right: Any) -> bool:
    return _type_rank(left) == _type_rank(right) and _type_rank(left) in (1, 2, 3)


def matches_filter(document: Document, field_filter: FieldFilter) -> bool:
    """Documents lacking the field never match, including for ``!=``."""
    actual = field_value(document, field_filter.field)
    if actual is MISSING:
        return False
    expected = field_filter.value
    if field_filter.op == FieldOp.EQ:
        return _type_rank(actual) == _type_rank(expected) and actual == expected
    if field_filter.op == FieldOp.NE:
        return not (_type_rank(actual) == _type_rank(expected) and actual == expected)
    if not _comparable(actual, expected):
        return False
    if field_filter.op == FieldOp.LT:
        return actual < expected
    if field_filter.op == FieldOp.LTE:
        return actual <= expected
    if field_filter.op == FieldOp.GT:
        return actual > expected
    return actual >= expected


def _compare_values(left: Any, right: Any) -> int:
    left_rank, right_rank = _type_rank(left), _type_rank(right)
    if left_rank != right_rank:
        return -1 if left_rank < right_rank else 1
    if left_rank in (0, 4):
        return 0
    if left == right:
        return 0
    return -1 if left < right else 1


def _sort_comparator(order_by: tuple[SortKey, ...]):
    def compare(left: Document, right: Document) -> int:
        for key in order_by:
            result = _compare_values(field_value(left, key.field), field_value(right, key.field))
            if result:
                return -result if key.descending else result
        return _compare_values(left.id, right.id)

    return compare


def run_query(documents: Iterable[Document], query: Query) -> list[Document]:
    """Evaluate filters, ordering and limit over one collection's documents.

    Ordering by a field drops documents that lack it.
    """
    selected = [
        document
        for document in documents
        if all(matches_filter(document, field_filter) for field_filter in query.filters)
        and all(field_value(document, key.field) is not MISSING for key in query.order_by)
    ]
    selected.sort(key=cmp_to_key(_sort_comparator(query.order_by)))
    if query.limit is not None:
        selected = selected[: query.limit]
    return selected
