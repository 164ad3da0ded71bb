from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Iterator

from sqlalchemy import Engine, Float, and_, cast, func, or_, select, tuple_
from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from bayorder.application.ports.publisher import ChangeFeed
from bayorder.application.ports.store import (
    DOCUMENT_ID,
    Document,
    DocumentExistsError,
    DocumentStore,
    ErrorCallback,
    FieldFilter,
    FieldOp,
    Query,
    SnapshotCallback,
    StoreError,
    StoreUnavailableError,
    WriteBatch,
    WriteOp,
    apply_operation,
)
from bayorder.infrastructure.db.models.document import DocumentModel
from bayorder.infrastructure.db.session import get_engine
from bayorder.infrastructure.messaging.local_change_feed import LocalChangeFeed
from bayorder.infrastructure.observability.otel import get_tracer
from bayorder.infrastructure.store.live_queries import LiveQueryHub, StandingQuery

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _json_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    return "string"


def _field_expression(field_path: str) -> Any:
    return DocumentModel.data[tuple(field_path.split("."))]


def _typed_comparison(expression: Any, op: FieldOp, value: Any) -> ColumnElement[bool]:
    json_type = _json_type(value)
    if json_type == "number":
        operand: Any = cast(expression.astext, Float)
    elif json_type == "boolean":
        operand = expression.astext
        value = "true" if value else "false"
    elif json_type == "null":
        return func.jsonb_typeof(expression) == "null"
    else:
        operand = expression.astext.collate("C")

    if op == FieldOp.EQ:
        return operand == value
    if op == FieldOp.NE:
        return operand != value
    if op == FieldOp.LT:
        return operand < value
    if op == FieldOp.LTE:
        return operand <= value
    if op == FieldOp.GT:
        return operand > value
    return operand >= value


def _filter_clause(field_filter: FieldFilter) -> ColumnElement[bool]:
    if field_filter.field == DOCUMENT_ID:
        return _typed_comparison_on_id(field_filter.op, str(field_filter.value))

    expression = _field_expression(field_filter.field)
    same_type = func.jsonb_typeof(expression) == _json_type(field_filter.value)
    if field_filter.op == FieldOp.NE:
        return and_(
            expression.isnot(None),
            or_(~same_type, _typed_comparison(expression, FieldOp.NE, field_filter.value)),
        )
    return and_(same_type, _typed_comparison(expression, field_filter.op, field_filter.value))


def _typed_comparison_on_id(op: FieldOp, value: str) -> ColumnElement[bool]:
    column = DocumentModel.id
    if op == FieldOp.EQ:
        return column == value
    if op == FieldOp.NE:
        return column != value
    if op == FieldOp.LT:
        return column < value
    if op == FieldOp.LTE:
        return column <= value
    if op == FieldOp.GT:
        return column > value
    return column >= value


class SqlDocumentStore(DocumentStore):
    """Document store over one PostgreSQL JSONB table.

    A batch runs in a single transaction. Existing rows it touches are locked
    up front; a concurrent create of the same key fails on the primary key.
    """

    def __init__(
        self,
        engine: Engine | None = None,
        feed: ChangeFeed | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._engine = engine or get_engine()
        self._clock = clock
        self._hub = LiveQueryHub(self.query)
        self._feed = feed or LocalChangeFeed()
        self._feed.start(self._hub.notify)

    @property
    def live_queries(self) -> LiveQueryHub:
        return self._hub

    def new_id(self) -> str:
        return uuid.uuid4().hex

    def get(self, collection: str, doc_id: str) -> Document | None:
        statement = select(DocumentModel).where(
            DocumentModel.collection == collection,
            DocumentModel.id == doc_id,
        )
        with _store_errors(), Session(self._engine) as session:
            model = session.execute(statement).scalar_one_or_none()
            if model is None:
                return None
            return Document(model.id, dict(model.data))

    def query(self, query: Query) -> list[Document]:
        statement = select(DocumentModel).where(DocumentModel.collection == query.collection)
        for field_filter in query.filters:
            statement = statement.where(_filter_clause(field_filter))
        for key in query.order_by:
            expression = _field_expression(key.field)
            statement = statement.where(expression.isnot(None))
            statement = statement.order_by(expression.desc() if key.descending else expression.asc())
        statement = statement.order_by(DocumentModel.id.asc())
        if query.limit is not None:
            statement = statement.limit(query.limit)

        with _store_errors(), Session(self._engine) as session:
            models = session.execute(statement).scalars().all()
            return [Document(model.id, dict(model.data)) for model in models]

    def commit(self, batch: WriteBatch) -> None:
        if not len(batch):
            return
        now = self._clock()
        operations = batch.operations
        keys = sorted({(op.collection, op.doc_id) for op in operations})

        span_attributes = {"store.operations": len(batch), "store.collections": sorted(batch.collections)}
        with get_tracer().start_as_current_span("store.commit", attributes=span_attributes):
            self._commit_keys(operations, keys, now)

        logger.debug("batch_committed", extra={"operations": len(batch)})
        self._feed.publish(batch.collections)

    def _commit_keys(self, operations: list[WriteOp], keys: list[tuple[str, str]], now: datetime) -> None:
        with _store_errors(), Session(self._engine) as session:
            with session.begin():
                statement = (
                    select(DocumentModel)
                    .where(tuple_(DocumentModel.collection, DocumentModel.id).in_(keys))
                    .order_by(DocumentModel.collection, DocumentModel.id)
                    .with_for_update()
                )
                existing = {
                    (model.collection, model.id): model for model in session.execute(statement).scalars()
                }
                state: dict[tuple[str, str], dict[str, Any] | None] = {
                    key: dict(model.data) for key, model in existing.items()
                }
                for op in operations:
                    key = (op.collection, op.doc_id)
                    state[key] = apply_operation(state.get(key), op, now)

                for key, data in state.items():
                    model = existing.get(key)
                    if data is None:
                        if model is not None:
                            session.delete(model)
                    elif model is None:
                        session.add(DocumentModel(collection=key[0], id=key[1], data=data))
                    elif model.data != data:
                        model.data = data
                        model.updated_at = now

    def subscribe(
        self,
        query: Query,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback | None = None,
    ) -> StandingQuery:
        return self._hub.subscribe(query, on_snapshot, on_error)

    def close(self) -> None:
        self._feed.stop()


@contextmanager
def _store_errors() -> Iterator[None]:
    try:
        yield
    except IntegrityError as exc:
        raise DocumentExistsError(str(exc.orig)) from exc
    except (OperationalError, InterfaceError) as exc:
        raise StoreUnavailableError(str(exc)) from exc
    except DBAPIError as exc:
        raise StoreError(str(exc)) from exc
