from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Iterator

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from bayorder.application.mappers.cafe_mapper import cafe_to_document
from bayorder.application.mappers.collections import CAFES, MENU_ITEMS
from bayorder.application.mappers.menu_mapper import menu_item_to_document
from bayorder.application.ports.identity import Identity, Role
from bayorder.application.ports.store import WriteBatch
from bayorder.domain.cafe.entities import Cafe, OwnerCredentials, default_tables
from bayorder.domain.common.ids import CafeId, MenuItemId, UserId
from bayorder.domain.common.money import Money
from bayorder.domain.menu.entities import MenuItem, ModifierGroup, ModifierOption, SelectionType
from bayorder.infrastructure.store.memory import InMemoryDocumentStore

CAFE_ID = CafeId("cafe_001")
OWNER_UID = UserId("owner_001")


class SteppingClock:
    """Starts at a fixed instant and moves one second per call."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + timedelta(seconds=1)
        return current

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


def sample_menu(cafe_id: CafeId = CAFE_ID) -> list[MenuItem]:
    return [
        MenuItem(
            item_id=MenuItemId("itm_latte"),
            cafe_id=cafe_id,
            name="Latte",
            description="",
            price=Money.from_decimal("4.00"),
            category="Coffee",
        ),
        MenuItem(
            item_id=MenuItemId("itm_croissant"),
            cafe_id=cafe_id,
            name="Croissant",
            description="",
            price=Money.from_decimal("3.50"),
            category="Bakery",
            modifiers=(
                ModifierGroup(
                    name="Extras",
                    type=SelectionType.CHECKBOX,
                    options=(ModifierOption("Almond", Money.from_decimal("0.75")),),
                ),
            ),
        ),
        MenuItem(
            item_id=MenuItemId("itm_flatwhite"),
            cafe_id=cafe_id,
            name="Flat White",
            description="",
            price=Money.from_decimal("3.80"),
            category="Coffee",
            modifiers=(
                ModifierGroup(
                    name="Milk",
                    type=SelectionType.RADIO,
                    options=(
                        ModifierOption("Whole"),
                        ModifierOption("Oat", Money.from_decimal("0.60")),
                    ),
                ),
            ),
        ),
        MenuItem(
            item_id=MenuItemId("itm_muffin"),
            cafe_id=cafe_id,
            name="Muffin",
            description="",
            price=Money.from_decimal("2.90"),
            category="Bakery",
            available=False,
        ),
    ]


def seed_cafe(
    store: InMemoryDocumentStore,
    cafe_id: CafeId = CAFE_ID,
    owner_uid: UserId = OWNER_UID,
    table_count: int = 3,
    with_menu: bool = True,
) -> Cafe:
    cafe = Cafe(
        cafe_id=cafe_id,
        name="Harbour Cafe",
        address="1 Quay St",
        tables=default_tables(table_count),
        owner_user_id=owner_uid,
        credentials=OwnerCredentials(username="cafe_abc123", password="pw123456"),
        table_count=table_count,
    )
    batch = WriteBatch().create(CAFES, str(cafe_id), cafe_to_document(cafe))
    if with_menu:
        for item in sample_menu(cafe_id):
            batch.create(MENU_ITEMS, str(item.item_id), menu_item_to_document(item))
    store.commit(batch)
    return cafe


def make_identity(uid: str, role: Role = Role.OWNER) -> Identity:
    return Identity(uid=UserId(uid), role=role, token=f"token-{uid}")


@pytest.fixture
def clock() -> SteppingClock:
    return SteppingClock()


@pytest.fixture
def store(clock: SteppingClock) -> Iterator[InMemoryDocumentStore]:
    memory_store = InMemoryDocumentStore(clock=clock)
    yield memory_store
    memory_store.close()


@pytest.fixture
def cafe(store: InMemoryDocumentStore) -> Cafe:
    return seed_cafe(store)


@pytest.fixture
def owner() -> Identity:
    return make_identity(str(OWNER_UID))


@pytest.fixture
def stranger() -> Identity:
    return make_identity("someone_else")


@pytest.fixture
def admin() -> Identity:
    return make_identity("admin_001", Role.ADMIN)


@pytest.fixture
def seed() -> Callable[..., Cafe]:
    return seed_cafe


@pytest.fixture
def identity_for() -> Callable[..., Identity]:
    return make_identity


@pytest.fixture
def menu() -> dict[str, MenuItem]:
    return {str(item.item_id): item for item in sample_menu()}
