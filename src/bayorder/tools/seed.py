from __future__ import annotations

from bayorder.api.deps import get_identity_provider, get_store
from bayorder.application.mappers.cafe_mapper import cafe_to_document
from bayorder.application.mappers.collections import CAFES, MENU_ITEMS
from bayorder.application.mappers.menu_mapper import menu_item_to_document
from bayorder.application.ports.identity import AccountExistsError, Role
from bayorder.application.ports.store import SERVER_TIMESTAMP, WriteBatch
from bayorder.application.use_cases.onboard_cafe import owner_email
from bayorder.application.use_cases.sign_in import ensure_admin_account
from bayorder.domain.cafe.entities import Cafe, OwnerCredentials, default_tables
from bayorder.domain.common.ids import CafeId, MenuItemId
from bayorder.domain.common.money import Money
from bayorder.domain.menu.entities import MenuItem, ModifierGroup, ModifierOption, SelectionType

DEMO_CAFE_ID = CafeId("demo-cafe")
DEMO_CREDENTIALS = OwnerCredentials(username="cafe_demo01", password="demo1234")


def demo_cafe() -> Cafe:
    return Cafe(
        cafe_id=DEMO_CAFE_ID,
        name="Demo Cafe",
        address="1 Harbour Road",
        tables=default_tables(6),
        credentials=DEMO_CREDENTIALS,
        table_count=6,
    )


def demo_menu() -> list[MenuItem]:
    return [
        MenuItem(
            item_id=MenuItemId("demo-latte"),
            cafe_id=DEMO_CAFE_ID,
            name="Latte",
            description="Double shot, steamed milk",
            price=Money.from_decimal("4.00"),
            category="Coffee",
            modifiers=(
                ModifierGroup(
                    name="Size",
                    type=SelectionType.RADIO,
                    options=(
                        ModifierOption("Regular"),
                        ModifierOption("Large", Money.from_decimal("0.50")),
                    ),
                ),
            ),
        ),
        MenuItem(
            item_id=MenuItemId("demo-croissant"),
            cafe_id=DEMO_CAFE_ID,
            name="Croissant",
            description="Baked every morning",
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
            item_id=MenuItemId("demo-tea"),
            cafe_id=DEMO_CAFE_ID,
            name="Green Tea",
            description="Loose leaf",
            price=Money.from_decimal("2.75"),
            category="Tea",
            available=False,
        ),
    ]


def main() -> None:
    store = get_store()
    provider = get_identity_provider()
    ensure_admin_account(provider)

    cafe = demo_cafe()
    try:
        owner_uid = provider.register_account(owner_email(DEMO_CREDENTIALS.username), DEMO_CREDENTIALS.password, Role.OWNER)
        print(f"registered demo owner {owner_uid}")
    except AccountExistsError:
        print("demo owner already registered")

    batch = WriteBatch()
    cafe_document = cafe_to_document(cafe)
    cafe_document["createdAt"] = SERVER_TIMESTAMP
    batch.set(CAFES, str(cafe.cafe_id), cafe_document)
    for item in demo_menu():
        batch.set(MENU_ITEMS, str(item.item_id), menu_item_to_document(item))
    store.commit(batch)

    print(f"seed complete: cafe {cafe.cafe_id}, owner login {DEMO_CREDENTIALS.username}/{DEMO_CREDENTIALS.password}")


if __name__ == "__main__":
    main()
