from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from bayorder.domain.cart.cart import Cart, CartLineNotFoundError
from bayorder.domain.common.ids import CafeId, MenuItemId, OrderId, TableId
from bayorder.domain.common.money import Money
from bayorder.domain.menu.entities import Customization, MultiSelection
from bayorder.domain.order.entities import OrderLine, create_pending_order


def _fixed_clock() -> int:
    return 1_700_000_000_000


def test_plain_adds_merge_and_customized_adds_stay_separate(menu) -> None:
    cart = Cart(clock_ms=_fixed_clock)
    latte = menu["itm_latte"]
    croissant = menu["itm_croissant"]

    cart.add_simple_item(latte)
    merged = cart.add_simple_item(latte)
    almond = croissant.resolve_customizations({"Extras": ["Almond"]})
    first = cart.add_customized_item(croissant, almond)
    second = cart.add_customized_item(croissant, almond)

    assert len(cart.lines) == 3
    assert cart.lines[0].quantity == 2
    assert merged == cart.lines[0]
    assert first.unique_id != second.unique_id
    assert first.unit_price == Money.from_decimal("4.25")
    assert cart.item_count == 4
    assert cart.total == Money.from_decimal("16.50")


def test_demo_cart_totals_twelve_twenty_five(menu) -> None:
    cart = Cart()
    latte = menu["itm_latte"]
    croissant = menu["itm_croissant"]

    cart.add_simple_item(latte)
    cart.add_simple_item(latte)
    cart.add_customized_item(croissant, croissant.resolve_customizations({"Extras": ["Almond"]}))

    assert cart.total == Money(amount_cents=1225)
    assert [line.quantity for line in cart.lines] == [2, 1]


def test_update_quantity_to_zero_removes_line_and_reports_empty(menu) -> None:
    cart = Cart()
    line = cart.add_simple_item(menu["itm_latte"])

    assert cart.update_quantity(line.unique_id, 2) is False
    assert cart.lines[0].quantity == 3
    assert cart.update_quantity(line.unique_id, -3) is True
    assert cart.is_empty
    assert cart.total == Money.zero()


def test_unknown_line_ids_raise(menu) -> None:
    cart = Cart()
    cart.add_simple_item(menu["itm_latte"])

    with pytest.raises(CartLineNotFoundError):
        cart.update_quantity("nope", 1)
    with pytest.raises(CartLineNotFoundError):
        cart.remove_line("nope")
    assert cart.item_count == 1


def test_notes_are_appended_as_a_customization_without_price(menu) -> None:
    cart = Cart()
    croissant = menu["itm_croissant"]

    line = cart.add_customized_item(croissant, [], notes="  warm please ")

    assert line.customizations == (Customization.notes("warm please"),)
    assert line.unit_price == croissant.price


def test_remove_line_and_clear(menu) -> None:
    cart = Cart()
    latte = cart.add_simple_item(menu["itm_latte"])
    cart.add_simple_item(menu["itm_croissant"])

    cart.remove_line(latte.unique_id)
    assert [line.item_id for line in cart.lines] == [MenuItemId("itm_croissant")]

    cart.clear()
    assert cart.is_empty


def test_load_from_order_keeps_previous_prices(menu) -> None:
    cheaper_latte = OrderLine(
        item_id=MenuItemId("itm_latte"),
        name="Latte",
        quantity=2,
        unit_price=Money.from_decimal("3.60"),
    )
    almond = Customization(
        modifier_name="Extras",
        selection=MultiSelection(("Almond",)),
        price_adjustment=Money.from_decimal("0.75"),
    )
    croissant = OrderLine(
        item_id=MenuItemId("itm_croissant"),
        name="Croissant",
        quantity=1,
        unit_price=Money.from_decimal("4.25"),
        customizations=(almond,),
    )
    order = create_pending_order(
        OrderId("ord_1"),
        CafeId("cafe_001"),
        TableId("T1"),
        [cheaper_latte, croissant],
    )

    cart = Cart()
    cart.add_simple_item(menu["itm_flatwhite"])
    cart.load_from_order(order, menu.values())

    assert [line.item_id for line in cart.lines] == [MenuItemId("itm_latte"), MenuItemId("itm_croissant")]
    assert cart.lines[0].unit_price == Money.from_decimal("3.60")
    assert cart.lines[1].customizations == (almond,)
    assert cart.total == Money.from_decimal("11.45")


def test_load_from_order_with_item_no_longer_on_menu() -> None:
    order = create_pending_order(
        OrderId("ord_2"),
        CafeId("cafe_001"),
        TableId("T1"),
        [OrderLine(MenuItemId("itm_retired"), "Scone", 1, Money.from_decimal("2.00"))],
    )

    cart = Cart()
    cart.load_from_order(order, [])

    assert cart.lines[0].item.name == "Scone"
    assert cart.to_order_lines() == list(order.lines)


def test_to_order_lines_snapshots_names_and_prices(menu) -> None:
    cart = Cart()
    cart.add_simple_item(menu["itm_latte"])

    (line,) = cart.to_order_lines()

    assert line.name == "Latte"
    assert line.unit_price == Money.from_decimal("4.00")
    assert line.line_total == Money.from_decimal("4.00")
