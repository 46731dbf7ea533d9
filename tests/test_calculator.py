"""Tests for forwardledger.contract.calculator — cash settlement amounts."""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal

from hypothesis import given
from hypothesis import strategies as st

from forwardledger.contract.calculator import compute_owed
from forwardledger.contract.commands import SpotPrice
from forwardledger.contract.states import (
    AgreedAmount,
    FixedPrice,
    ForwardRecord,
    Position,
    SettlementType,
)
from forwardledger.core.keys import KeyPair
from forwardledger.core.money import Money, NonEmptyStr, truncate_to_minor_unit
from forwardledger.core.party import Party
from forwardledger.core.result import unwrap
from forwardledger.core.serialization import derive_seed
from forwardledger.core.types import UtcDatetime

P1 = unwrap(Party.create("P1", KeyPair.from_seed(derive_seed("P1")).public_key))
P2 = unwrap(Party.create("P2", KeyPair.from_seed(derive_seed("P2")).public_key))
_T = UtcDatetime(value=datetime(2025, 6, 30, 12, 0, tzinfo=UTC))
_USD = NonEmptyStr(value="USD")


def _positive(max_value: str = "100000") -> st.SearchStrategy[Decimal]:
    return st.decimals(
        min_value=Decimal("0.0001"), max_value=Decimal(max_value), places=4,
        allow_nan=False, allow_infinity=False,
    )


def _record(
    price: Decimal = Decimal("100"),
    quantity: Decimal = Decimal("10"),
    position: Position = Position.SELL,
    currency: str = "USD",
) -> ForwardRecord:
    return ForwardRecord(
        initiator=P1,
        acceptor=P2,
        instrument=NonEmptyStr(value="X"),
        quantity=quantity,
        price_terms=FixedPrice(price=price, currency=NonEmptyStr(value=currency)),
        settlement_timestamp=_T,
        settlement_type=SettlementType.CASH,
        initiator_position=position,
    )


def _spot(value: Decimal) -> SpotPrice:
    return SpotPrice(instrument=NonEmptyStr(value="X"), as_of=_T, value=value)


class TestComputeOwed:
    def test_equal_prices_owe_nothing(self) -> None:
        ob = compute_owed(_record(), _spot(Decimal("100")))
        assert ob.amount.amount == 0
        assert ob.payer is None
        assert ob.payee is None
        assert ob.is_zero

    def test_spot_above_seller_pays(self) -> None:
        ob = compute_owed(_record(), _spot(Decimal("120")))
        assert ob.amount == Money(amount=Decimal("200"), currency=_USD)
        assert ob.payer == P1
        assert ob.payee == P2

    def test_spot_below_buyer_pays(self) -> None:
        ob = compute_owed(_record(), _spot(Decimal("80")))
        assert ob.amount.amount == Decimal("200")
        assert ob.payer == P2
        assert ob.payee == P1

    def test_initiator_buying_reverses_roles(self) -> None:
        ob = compute_owed(_record(position=Position.BUY), _spot(Decimal("120")))
        assert ob.payer == P2
        assert ob.payee == P1

    def test_truncates_to_cents(self) -> None:
        ob = compute_owed(_record(quantity=Decimal("3")), _spot(Decimal("100.3333")))
        assert ob.amount.amount == Decimal("0.99")

    def test_truncates_jpy_to_whole_units(self) -> None:
        ob = compute_owed(_record(currency="JPY", quantity=Decimal("1")), _spot(Decimal("100.9")))
        assert ob.amount.amount == Decimal("0")
        assert ob.payer is None

    def test_agreed_amount_terms(self) -> None:
        record = ForwardRecord(
            initiator=P1,
            acceptor=P2,
            instrument=NonEmptyStr(value="X"),
            quantity=Decimal("4"),
            price_terms=AgreedAmount(Money(amount=Decimal("400"), currency=_USD)),
            settlement_timestamp=_T,
            settlement_type=SettlementType.CASH,
        )
        ob = compute_owed(record, _spot(Decimal("110")))
        assert ob.amount.amount == Decimal("40")

    @given(_positive(), _positive(), _positive("1000"))
    def test_magnitude_and_direction(
        self, delivery: Decimal, spot: Decimal, quantity: Decimal,
    ) -> None:
        ob = compute_owed(_record(price=delivery, quantity=quantity), _spot(spot))
        expected = truncate_to_minor_unit(
            Money(amount=abs(spot - delivery) * quantity, currency=_USD),
        )
        assert ob.amount.amount == expected.amount
        assert ob.amount.amount >= 0
        if ob.amount.amount == 0:
            assert ob.payer is None
        elif spot > delivery:
            assert (ob.payer, ob.payee) == (P1, P2)
        else:
            assert (ob.payer, ob.payee) == (P2, P1)

    @given(_positive(), _positive("1000"))
    def test_spot_at_delivery_is_zero(self, delivery: Decimal, quantity: Decimal) -> None:
        ob = compute_owed(_record(price=delivery, quantity=quantity), _spot(delivery))
        assert ob.amount.amount == 0
        assert ob.payer is None
