from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum

from bayorder.domain.common.ids import CafeId, TableId, UserId

PENDING_OWNER = UserId("pending")


class TableState(str, Enum):
    VACANT = "Vacant"
    OCCUPIED = "Occupied"


@dataclass(frozen=True)
class OwnerCredentials:
    username: str
    password: str


@dataclass(frozen=True)
class Cafe:
    cafe_id: CafeId
    name: str
    address: str
    tables: dict[TableId, TableState] = field(default_factory=dict)
    owner_user_id: UserId = PENDING_OWNER
    credentials: OwnerCredentials | None = None
    table_count: int = 0

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("cafe name must be non-empty")

    @property
    def owner_linked(self) -> bool:
        return self.owner_user_id != PENDING_OWNER

    def is_owned_by(self, user_id: UserId | None) -> bool:
        return user_id is not None and self.owner_linked and self.owner_user_id == user_id

    def has_table(self, table_id: TableId) -> bool:
        return table_id in self.tables

    def table_state(self, table_id: TableId) -> TableState:
        try:
            return self.tables[table_id]
        except KeyError:
            raise TableNotFoundError(f"table {table_id} does not exist in cafe {self.cafe_id}") from None

    def sorted_tables(self) -> list[tuple[TableId, TableState]]:
        return sorted(self.tables.items(), key=lambda entry: _table_sort_key(entry[0]))

    def occupied_tables(self) -> list[TableId]:
        return [table_id for table_id, state in self.sorted_tables() if state == TableState.OCCUPIED]

    def add_table(self, table_id: TableId) -> Cafe:
        key = TableId(table_id.strip())
        if not key:
            raise ValueError("table id must be non-empty")
        if "." in key:
            raise ValueError("table id must not contain '.'")
        if key in self.tables:
            raise TableAlreadyExistsError(f"table {key} already exists in cafe {self.cafe_id}")
        tables = dict(self.tables)
        tables[key] = TableState.VACANT
        return replace(self, tables=tables, table_count=len(tables))

    def remove_table(self, table_id: TableId) -> Cafe:
        self.table_state(table_id)
        tables = {key: state for key, state in self.tables.items() if key != table_id}
        return replace(self, tables=tables, table_count=len(tables))


def default_tables(count: int) -> dict[TableId, TableState]:
    if count < 1:
        raise ValueError("a cafe needs at least one table")
    return {TableId(f"T{index}"): TableState.VACANT for index in range(1, count + 1)}


def _table_sort_key(table_id: str) -> tuple[str, int, str]:
    prefix = table_id.rstrip("0123456789")
    suffix = table_id[len(prefix):]
    return (prefix, int(suffix) if suffix else -1, table_id)


class TableNotFoundError(Exception):
    pass


class TableAlreadyExistsError(Exception):
    pass
