"""ForwardRecord — the ledger state of one bilateral forward contract.

A record is immutable. Successive versions of the same logical contract
share a LinearId; every other field except `paid` is fixed at creation.
__post_init__ enforces types only. Whether the values make a legal
contract (positive price, distinct parties, paid bounds) is decided by
the validator, so a bad record is a rejection and never an exception.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal, localcontext
from enum import Enum
from typing import final

from forwardledger.core.money import FORWARD_DECIMAL_CONTEXT, Money, NonEmptyStr, is_finite_decimal
from forwardledger.core.party import Party
from forwardledger.core.result import Err, Ok
from forwardledger.core.types import UtcDatetime


class SettlementType(Enum):
    CASH = "cash"
    PHYSICAL = "physical"


class Position(Enum):
    """Side of the trade held by the initiator. The acceptor holds the other."""

    BUY = "buy"
    SELL = "sell"


@final
@dataclass(frozen=True, slots=True, order=True)
class LinearId:
    """Stable identifier shared by every version of one contract."""

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or not self.value:
            raise TypeError("LinearId requires non-empty string")

    @staticmethod
    def new() -> LinearId:
        return LinearId(value=str(uuid.uuid4()))


# ---------------------------------------------------------------------------
# Price terms: fixed per-unit delivery price, or a total agreed amount
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class FixedPrice:
    """Delivery price per unit of the instrument."""

    price: Decimal
    currency: NonEmptyStr

    def __post_init__(self) -> None:
        if not is_finite_decimal(self.price):
            raise TypeError(f"FixedPrice.price must be finite Decimal, got {self.price!r}")


@final
@dataclass(frozen=True, slots=True)
class AgreedAmount:
    """Total consideration for the whole quantity."""

    amount: Money


type PriceTerms = FixedPrice | AgreedAmount


# ---------------------------------------------------------------------------
# ForwardRecord
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class ForwardRecord:
    initiator: Party
    acceptor: Party
    instrument: NonEmptyStr
    quantity: Decimal
    price_terms: PriceTerms
    settlement_timestamp: UtcDatetime
    settlement_type: SettlementType
    paid: Decimal = Decimal(0)
    initiator_position: Position = Position.SELL
    linear_id: LinearId = field(default_factory=LinearId.new)

    def __post_init__(self) -> None:
        if not isinstance(self.initiator, Party) or not isinstance(self.acceptor, Party):
            raise TypeError("ForwardRecord: initiator and acceptor must be Party")
        if not isinstance(self.instrument, NonEmptyStr):
            raise TypeError("ForwardRecord.instrument must be NonEmptyStr")
        if not is_finite_decimal(self.quantity):
            raise TypeError(f"ForwardRecord.quantity must be finite Decimal, got {self.quantity!r}")
        if not isinstance(self.price_terms, FixedPrice | AgreedAmount):
            raise TypeError(
                f"ForwardRecord.price_terms must be FixedPrice or AgreedAmount, "
                f"got {type(self.price_terms).__name__}"
            )
        if not isinstance(self.settlement_timestamp, UtcDatetime):
            raise TypeError("ForwardRecord.settlement_timestamp must be UtcDatetime")
        if not isinstance(self.settlement_type, SettlementType):
            raise TypeError("ForwardRecord.settlement_type must be SettlementType")
        if not is_finite_decimal(self.paid):
            raise TypeError(f"ForwardRecord.paid must be finite Decimal, got {self.paid!r}")
        if not isinstance(self.initiator_position, Position):
            raise TypeError("ForwardRecord.initiator_position must be Position")
        if not isinstance(self.linear_id, LinearId):
            raise TypeError("ForwardRecord.linear_id must be LinearId")

    @staticmethod
    def create(
        initiator: Party,
        acceptor: Party,
        instrument: str,
        quantity: Decimal,
        price_terms: PriceTerms,
        settlement_timestamp: datetime,
        settlement_type: SettlementType,
        initiator_position: Position = Position.SELL,
    ) -> Ok[ForwardRecord] | Err[str]:
        """Smart constructor for a fresh record (paid = 0, new linear id)."""
        match NonEmptyStr.parse(instrument):
            case Err(e):
                return Err(f"ForwardRecord.instrument: {e}")
            case Ok(inst):
                pass
        match UtcDatetime.parse(settlement_timestamp):
            case Err(e):
                return Err(f"ForwardRecord.settlement_timestamp: {e}")
            case Ok(ts):
                pass
        try:
            return Ok(ForwardRecord(
                initiator=initiator,
                acceptor=acceptor,
                instrument=inst,
                quantity=quantity,
                price_terms=price_terms,
                settlement_timestamp=ts,
                settlement_type=settlement_type,
                initiator_position=initiator_position,
            ))
        except TypeError as e:
            return Err(str(e))

    @property
    def currency(self) -> str:
        match self.price_terms:
            case FixedPrice(currency=c):
                return c.value
            case AgreedAmount(amount=m):
                return m.currency.value

    @property
    def price_figure(self) -> Decimal:
        """The number the parties agreed on: unit price or total amount."""
        match self.price_terms:
            case FixedPrice(price=p):
                return p
            case AgreedAmount(amount=m):
                return m.amount

    @property
    def delivery_price(self) -> Decimal:
        """Per-unit delivery price. Zero when quantity is zero."""
        match self.price_terms:
            case FixedPrice(price=p):
                return p
            case AgreedAmount(amount=m):
                if self.quantity == 0:
                    return Decimal(0)
                with localcontext(FORWARD_DECIMAL_CONTEXT):
                    return m.amount / self.quantity

    @property
    def agreed_amount(self) -> Money:
        match self.price_terms:
            case FixedPrice(price=p, currency=c):
                with localcontext(FORWARD_DECIMAL_CONTEXT):
                    return Money(amount=p * self.quantity, currency=c)
            case AgreedAmount(amount=m):
                return m

    @property
    def buyer(self) -> Party:
        return self.initiator if self.initiator_position is Position.BUY else self.acceptor

    @property
    def seller(self) -> Party:
        return self.acceptor if self.initiator_position is Position.BUY else self.initiator

    @property
    def participants(self) -> tuple[Party, Party]:
        return (self.initiator, self.acceptor)

    def with_paid(self, paid: Decimal) -> ForwardRecord:
        """Next version of this contract with a new paid amount."""
        return replace(self, paid=paid)

    def same_terms(self, other: ForwardRecord) -> bool:
        """True iff every field except `paid` is equal."""
        return replace(self, paid=Decimal(0)) == replace(other, paid=Decimal(0))
