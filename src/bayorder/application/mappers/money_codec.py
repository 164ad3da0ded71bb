from __future__ import annotations

from typing import Any

from bayorder.application.dto.responses import MoneyResponse
from bayorder.domain.common.money import DEFAULT_CURRENCY, Money
from bayorder.domain.menu.entities import Customization, MultiSelection, SingleSelection


def money_to_document(value: Money) -> float:
    return value.to_float()


def money_from_document(value: Any, currency: str = DEFAULT_CURRENCY) -> Money:
    return Money.from_decimal(value or 0, currency=currency)


def to_money_response(value: Money) -> MoneyResponse:
    return MoneyResponse(amountCents=value.amount_cents, currency=value.currency)


def customization_to_document(customization: Customization) -> dict[str, Any]:
    selection = customization.selection
    return {
        "modifierName": customization.modifier_name,
        "selection": selection.label if isinstance(selection, SingleSelection) else list(selection.labels),
        "priceAdjustment": money_to_document(customization.price_adjustment),
    }


def customization_from_document(data: dict[str, Any], currency: str = DEFAULT_CURRENCY) -> Customization:
    raw = data.get("selection", "")
    if isinstance(raw, (list, tuple)):
        selection: SingleSelection | MultiSelection = MultiSelection(tuple(str(label) for label in raw))
    else:
        selection = SingleSelection(str(raw))
    return Customization(
        modifier_name=str(data.get("modifierName", "")),
        selection=selection,
        price_adjustment=money_from_document(data.get("priceAdjustment"), currency),
    )
