from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

DEFAULT_CURRENCY = "USD"


@dataclass(frozen=True)
class Money:
    amount_cents: int
    currency: str = DEFAULT_CURRENCY

    def __post_init__(self) -> None:
        if self.amount_cents < 0:
            raise ValueError("amount_cents must be >= 0")
        if len(self.currency) != 3 or not self.currency.isalpha() or not self.currency.isupper():
            raise ValueError("currency must be a 3-letter uppercase code")

    @classmethod
    def zero(cls, currency: str = DEFAULT_CURRENCY) -> Money:
        return cls(amount_cents=0, currency=currency)

    @classmethod
    def from_decimal(cls, value: float | int | str | Decimal, currency: str = DEFAULT_CURRENCY) -> Money:
        cents = (Decimal(str(value)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        return cls(amount_cents=int(cents), currency=currency)

    def to_decimal(self) -> Decimal:
        return Decimal(self.amount_cents) / 100

    def to_float(self) -> float:
        return float(self.to_decimal())

    def __add__(self, other: Money) -> Money:
        self._check_currency(other)
        return Money(amount_cents=self.amount_cents + other.amount_cents, currency=self.currency)

    def times(self, quantity: int) -> Money:
        return Money(amount_cents=self.amount_cents * quantity, currency=self.currency)

    def _check_currency(self, other: Money) -> None:
        if other.currency != self.currency:
            raise ValueError("currency mismatch")


def sum_money(values: list[Money], currency: str = DEFAULT_CURRENCY) -> Money:
    total = Money.zero(currency)
    for value in values:
        total = total + value
    return total
