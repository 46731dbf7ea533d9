"""Money, the package Decimal context, and refined numeric/string types.

All financial arithmetic runs under FORWARD_DECIMAL_CONTEXT (prec=28,
ROUND_HALF_EVEN, traps on InvalidOperation/DivisionByZero/Overflow).
Conversion to a currency's minor unit is a separate, fixed rule:
truncation toward zero (ROUND_DOWN). Independent validators must agree
on settlement amounts to the cent, so that rule is not configurable.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_DOWN, ROUND_HALF_EVEN
from decimal import (
    Context,
    Decimal,
    DivisionByZero,
    InvalidOperation,
    Overflow,
    localcontext,
)
from typing import final

from forwardledger.core.result import Err, Ok

FORWARD_DECIMAL_CONTEXT = Context(
    prec=28,
    rounding=ROUND_HALF_EVEN,
    Emin=-999999,
    Emax=999999,
    capitals=1,
    clamp=0,
    flags=[],
    traps=[InvalidOperation, DivisionByZero, Overflow],
)


@final
@dataclass(frozen=True, slots=True, order=True)
class NonEmptyStr:
    """String constrained to be non-empty."""

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or not self.value:
            raise TypeError("NonEmptyStr requires non-empty string")

    @staticmethod
    def parse(raw: str) -> Ok[NonEmptyStr] | Err[str]:
        if not isinstance(raw, str) or not raw:
            return Err("NonEmptyStr requires non-empty string")
        return Ok(NonEmptyStr(value=raw))


def is_finite_decimal(value: object) -> bool:
    return isinstance(value, Decimal) and value.is_finite()


# ISO 4217 minor units; unknown codes default to 2.
_ISO4217_MINOR_UNITS: dict[str, int] = {
    "USD": 2, "EUR": 2, "GBP": 2, "CHF": 2, "CAD": 2, "AUD": 2, "SEK": 2,
    "SGD": 2, "HKD": 2, "NOK": 2, "DKK": 2, "NZD": 2,
    "JPY": 0, "KRW": 0,
    "BHD": 3, "KWD": 3, "OMR": 3,
}


def minor_units(currency: str) -> int:
    """Number of decimal places in the currency's minor unit."""
    return _ISO4217_MINOR_UNITS.get(currency, 2)


@final
@dataclass(frozen=True, slots=True)
class Money:
    """Immutable monetary amount with currency."""

    amount: Decimal
    currency: NonEmptyStr

    def __post_init__(self) -> None:
        if not is_finite_decimal(self.amount):
            raise TypeError(f"Money.amount must be finite Decimal, got {self.amount!r}")
        if not isinstance(self.currency, NonEmptyStr):
            raise TypeError(
                f"Money.currency must be NonEmptyStr, got {type(self.currency).__name__}"
            )

    @staticmethod
    def create(amount: Decimal, currency: str) -> Ok[Money] | Err[str]:
        """Create Money, rejecting non-Decimal, NaN and Infinity."""
        if not isinstance(amount, Decimal):
            return Err(f"Money.amount must be Decimal, got {type(amount).__name__}")
        if not amount.is_finite():
            return Err(f"Money.amount must be finite, got {amount}")
        match NonEmptyStr.parse(currency):
            case Err(e):
                return Err(f"Money.currency: {e}")
            case Ok(c):
                return Ok(Money(amount=amount, currency=c))

    def truncate_to_minor_unit(self) -> Money:
        return truncate_to_minor_unit(self)


def truncate_to_minor_unit(money: Money) -> Money:
    """Quantize to the ISO 4217 minor unit, truncating toward zero.

    14.999 USD -> 14.99 USD; -14.999 USD -> -14.99 USD.
    """
    quantizer = Decimal(10) ** -minor_units(money.currency.value)
    with localcontext(FORWARD_DECIMAL_CONTEXT):
        truncated = money.amount.quantize(quantizer, rounding=ROUND_DOWN)
    return Money(amount=truncated, currency=money.currency)
