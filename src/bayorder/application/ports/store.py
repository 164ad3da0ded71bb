from __future__ import annotations

import copy
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Protocol

DOCUMENT_ID = "__name__"


class _Sentinel:
    def __init__(self, name: str) -> None:
        self._name = name

    def __repr__(self) -> str:
        return self._name

    def __copy__(self) -> _Sentinel:
        return self

    def __deepcopy__(self, memo: dict[int, Any]) -> _Sentinel:
        return self


SERVER_TIMESTAMP: Any = _Sentinel("SERVER_TIMESTAMP")
DELETE_FIELD: Any = _Sentinel("DELETE_FIELD")
MISSING: Any = _Sentinel("MISSING")


def encode_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def decode_timestamp(value: Any) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class FieldOp(str, Enum):
    EQ = "=="
    NE = "!="
    LT = "<"
    LTE = "<="
    GT = ">"
    GTE = ">="


@dataclass(frozen=True)
class FieldFilter:
    field: str
    op: FieldOp
    value: Any


@dataclass(frozen=True)
class SortKey:
    field: str
    descending: bool = False


@dataclass(frozen=True)
class Query:
    """Filtered, ordered, limited view over one flat collection."""

    collection: str
    filters: tuple[FieldFilter, ...] = ()
    order_by: tuple[SortKey, ...] = ()
    limit: int | None = None

    def where(self, field_path: str, op: FieldOp | str, value: Any) -> Query:
        if isinstance(value, datetime):
            value = encode_timestamp(value)
        return replace(self, filters=(*self.filters, FieldFilter(field_path, FieldOp(op), value)))

    def order(self, field_path: str, descending: bool = False) -> Query:
        return replace(self, order_by=(*self.order_by, SortKey(field_path, descending)))

    def limited(self, limit: int) -> Query:
        if limit < 1:
            raise ValueError("limit must be >= 1")
        return replace(self, limit=limit)

    def key(self) -> str:
        filters = ",".join(f"{f.field}{f.op.value}{f.value!r}" for f in self.filters)
        order = ",".join(f"{s.field}:{'desc' if s.descending else 'asc'}" for s in self.order_by)
        return f"{self.collection}?{filters}#{order}@{self.limit}"


def document_query(collection: str, doc_id: str) -> Query:
    return Query(collection=collection).where(DOCUMENT_ID, FieldOp.EQ, doc_id)


@dataclass(frozen=True)
class Document:
    id: str
    data: dict[str, Any]

    def get(self, field_path: str, default: Any = None) -> Any:
        value = read_path(self.data, field_path)
        return default if value is MISSING else value


def read_path(data: dict[str, Any], field_path: str) -> Any:
    current: Any = data
    for part in field_path.split("."):
        if not isinstance(current, dict) or part not in current:
            return MISSING
        current = current[part]
    return current


def write_path(data: dict[str, Any], field_path: str, value: Any) -> None:
    parts = field_path.split(".")
    current = data
    for part in parts[:-1]:
        child = current.get(part)
        if not isinstance(child, dict):
            child = {}
            current[part] = child
        current = child
    if value is DELETE_FIELD:
        current.pop(parts[-1], None)
    else:
        current[parts[-1]] = value


def resolve_server_values(data: Any, now: datetime) -> Any:
    if data is SERVER_TIMESTAMP:
        return encode_timestamp(now)
    if isinstance(data, datetime):
        return encode_timestamp(data)
    if isinstance(data, dict):
        return {key: resolve_server_values(value, now) for key, value in data.items()}
    if isinstance(data, (list, tuple)):
        return [resolve_server_values(value, now) for value in data]
    return data


class WriteKind(str, Enum):
    CREATE = "create"
    SET = "set"
    UPDATE = "update"
    DELETE = "delete"
    REQUIRE = "require"


@dataclass(frozen=True)
class WriteOp:
    kind: WriteKind
    collection: str
    doc_id: str
    data: dict[str, Any] = field(default_factory=dict)


class WriteBatch:
    """Ordered list of document mutations committed all-or-nothing.

    ``require`` adds a precondition: the commit fails with
    ``PreconditionFailedError`` unless the field currently holds the value.
    """

    def __init__(self) -> None:
        self._ops: list[WriteOp] = []

    @property
    def operations(self) -> list[WriteOp]:
        return list(self._ops)

    @property
    def collections(self) -> set[str]:
        return {op.collection for op in self._ops if op.kind != WriteKind.REQUIRE}

    def __len__(self) -> int:
        return len(self._ops)

    def create(self, collection: str, doc_id: str, data: dict[str, Any]) -> WriteBatch:
        self._ops.append(WriteOp(WriteKind.CREATE, collection, doc_id, copy.deepcopy(data)))
        return self

    def set(self, collection: str, doc_id: str, data: dict[str, Any]) -> WriteBatch:
        self._ops.append(WriteOp(WriteKind.SET, collection, doc_id, copy.deepcopy(data)))
        return self

    def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> WriteBatch:
        if not fields:
            raise ValueError("update needs at least one field")
        self._ops.append(WriteOp(WriteKind.UPDATE, collection, doc_id, dict(fields)))
        return self

    def delete(self, collection: str, doc_id: str) -> WriteBatch:
        self._ops.append(WriteOp(WriteKind.DELETE, collection, doc_id))
        return self

    def require(self, collection: str, doc_id: str, field_path: str, expected: Any) -> WriteBatch:
        self._ops.append(WriteOp(WriteKind.REQUIRE, collection, doc_id, {field_path: expected}))
        return self


def apply_operation(current: dict[str, Any] | None, op: WriteOp, now: datetime) -> dict[str, Any] | None:
    """Apply one write to a document's current data; ``None`` means absent."""
    if op.kind == WriteKind.CREATE:
        if current is not None:
            raise DocumentExistsError(f"{op.collection}/{op.doc_id} already exists")
        return resolve_server_values(op.data, now)
    if op.kind == WriteKind.SET:
        return resolve_server_values(op.data, now)
    if op.kind == WriteKind.UPDATE:
        if current is None:
            raise DocumentNotFoundError(f"{op.collection}/{op.doc_id} does not exist")
        updated = copy.deepcopy(current)
        for field_path, value in op.data.items():
            resolved = value if value is DELETE_FIELD else resolve_server_values(value, now)
            write_path(updated, field_path, resolved)
        return updated
    if op.kind == WriteKind.DELETE:
        return None
    if current is None:
        raise PreconditionFailedError(f"{op.collection}/{op.doc_id} does not exist")
    for field_path, expected in op.data.items():
        actual = read_path(current, field_path)
        if actual != expected:
            raise PreconditionFailedError(
                f"{op.collection}/{op.doc_id}.{field_path} is {actual!r}, expected {expected!r}"
            )
    return current


SnapshotCallback = Callable[[list[Document]], None]
ErrorCallback = Callable[[Exception], None]


class Subscription(Protocol):
    def unsubscribe(self) -> None: ...

    @property
    def active(self) -> bool: ...


class DocumentStore(Protocol):
    def new_id(self) -> str: ...

    def get(self, collection: str, doc_id: str) -> Document | None: ...

    def query(self, query: Query) -> list[Document]: ...

    def commit(self, batch: WriteBatch) -> None: ...

    def subscribe(
        self,
        query: Query,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback | None = None,
    ) -> Subscription: ...


class StoreError(Exception):
    pass


class StoreUnavailableError(StoreError):
    pass


class StorePermissionError(StoreError):
    pass


class DocumentNotFoundError(StoreError):
    pass


class DocumentExistsError(StoreError):
    pass


class PreconditionFailedError(StoreError):
    pass
