"""Cash settlement arithmetic.

The party whose side moved against them pays the difference between the
spot and the delivery price on the whole quantity. Spot above delivery:
the seller pays the buyer. Spot below: the buyer pays the seller. Equal:
nothing is owed.

Arithmetic runs under FORWARD_DECIMAL_CONTEXT and the result is truncated
toward zero at the currency's minor unit, so every validator reaches the
same figure to the cent.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import localcontext
from typing import final

from forwardledger.contract.commands import SpotPrice
from forwardledger.contract.states import ForwardRecord
from forwardledger.core.money import FORWARD_DECIMAL_CONTEXT, Money, truncate_to_minor_unit
from forwardledger.core.party import Party


@final
@dataclass(frozen=True, slots=True)
class SettlementObligation:
    """amount is never negative. payer/payee are None when nothing is owed."""

    amount: Money
    payer: Party | None
    payee: Party | None

    @property
    def is_zero(self) -> bool:
        return self.amount.amount == 0


def compute_owed(record: ForwardRecord, spot: SpotPrice) -> SettlementObligation:
    """Amount owed on cash settlement of record at spot, and who pays whom."""
    with localcontext(FORWARD_DECIMAL_CONTEXT):
        diff = spot.value - record.delivery_price
        raw = abs(diff * record.quantity)
    owed = truncate_to_minor_unit(Money(amount=raw, currency=record.agreed_amount.currency))

    if owed.amount == 0:
        return SettlementObligation(amount=owed, payer=None, payee=None)
    if diff > 0:
        return SettlementObligation(amount=owed, payer=record.seller, payee=record.buyer)
    return SettlementObligation(amount=owed, payer=record.buyer, payee=record.seller)
