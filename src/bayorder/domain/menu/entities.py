from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Sequence, Union

from bayorder.domain.common.ids import CafeId, MenuItemId
from bayorder.domain.common.money import Money

NOTES_MODIFIER_NAME = "Notes"


class SelectionType(str, Enum):
    RADIO = "radio"
    CHECKBOX = "checkbox"


@dataclass(frozen=True)
class ModifierOption:
    label: str
    price_adjustment: Money = field(default_factory=Money.zero)


@dataclass(frozen=True)
class ModifierGroup:
    name: str
    type: SelectionType
    options: tuple[ModifierOption, ...] = ()

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("modifier group name must be non-empty")
        labels = [option.label for option in self.options]
        if len(labels) != len(set(labels)):
            raise ValueError(f"duplicate option labels in modifier group {self.name}")

    def option(self, label: str) -> ModifierOption:
        for candidate in self.options:
            if candidate.label == label:
                return candidate
        raise ValueError(f"unknown option {label!r} for modifier group {self.name!r}")


@dataclass(frozen=True)
class SingleSelection:
    label: str


@dataclass(frozen=True)
class MultiSelection:
    labels: tuple[str, ...]


Selection = Union[SingleSelection, MultiSelection]


@dataclass(frozen=True)
class Customization:
    modifier_name: str
    selection: Selection
    price_adjustment: Money = field(default_factory=Money.zero)

    @classmethod
    def notes(cls, text: str) -> Customization:
        return cls(modifier_name=NOTES_MODIFIER_NAME, selection=SingleSelection(text))


@dataclass(frozen=True)
class MenuItem:
    item_id: MenuItemId
    cafe_id: CafeId
    name: str
    description: str
    price: Money
    category: str
    available: bool = True
    modifiers: tuple[ModifierGroup, ...] = ()

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("name must be non-empty")
        names = [group.name for group in self.modifiers]
        if len(names) != len(set(names)):
            raise ValueError("modifier group names must be unique per item")

    @property
    def is_customizable(self) -> bool:
        return bool(self.modifiers)

    def modifier(self, name: str) -> ModifierGroup:
        for group in self.modifiers:
            if group.name == name:
                return group
        raise ValueError(f"unknown modifier group {name!r} for item {self.item_id}")

    def resolve_customizations(
        self,
        choices: Mapping[str, str | Sequence[str]],
    ) -> list[Customization]:
        """Turn a ``{group name: label(s)}`` choice map into priced customizations.

        Radio groups require exactly one label; checkbox groups take zero or
        more. Groups are emitted in the item's declared order, and checkbox
        groups with nothing ticked are left out.
        """
        for name in choices:
            self.modifier(name)

        customizations: list[Customization] = []
        for group in self.modifiers:
            raw = choices.get(group.name)
            if group.type == SelectionType.RADIO:
                if raw is None:
                    raise ValueError(f"modifier group {group.name!r} requires a selection")
                if not isinstance(raw, str):
                    raise ValueError(f"modifier group {group.name!r} takes exactly one option")
                option = group.option(raw)
                customizations.append(
                    Customization(
                        modifier_name=group.name,
                        selection=SingleSelection(option.label),
                        price_adjustment=option.price_adjustment,
                    )
                )
                continue

            if raw is None:
                continue
            labels = (raw,) if isinstance(raw, str) else tuple(raw)
            if len(labels) != len(set(labels)):
                raise ValueError(f"duplicate options selected for {group.name!r}")
            if not labels:
                continue
            options = [group.option(label) for label in labels]
            delta = Money.zero(self.price.currency)
            for option in options:
                delta = delta + option.price_adjustment
            customizations.append(
                Customization(
                    modifier_name=group.name,
                    selection=MultiSelection(labels),
                    price_adjustment=delta,
                )
            )
        return customizations
