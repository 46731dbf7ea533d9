"""Workflow data types for the forward maturity scheduler.

All types: @final @dataclass(frozen=True, slots=True). They cross the
Temporal boundary through workflow.converter.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import final

from forwardledger.contract.states import ForwardRecord, LinearId, SettlementType
from forwardledger.core.types import UtcDatetime


class MaturityOutcome(Enum):
    """Terminal states of the maturity workflow."""

    SETTLED = "Settled"
    FAILED = "Failed"


@final
@dataclass(frozen=True, slots=True)
class MaturityInput:
    """One forward to settle at its settlement timestamp.

    The linear id doubles as the Temporal workflow id, so a contract is
    never scheduled twice.
    """

    linear_id: LinearId
    settlement_timestamp: UtcDatetime
    settlement_type: SettlementType

    @staticmethod
    def for_record(record: ForwardRecord) -> MaturityInput:
        return MaturityInput(
            linear_id=record.linear_id,
            settlement_timestamp=record.settlement_timestamp,
            settlement_type=record.settlement_type,
        )

    @property
    def workflow_id(self) -> str:
        return f"forward-maturity-{self.linear_id.value}"


@final
@dataclass(frozen=True, slots=True)
class SettlementRequestOutput:
    """Activity result: a committed tx id, or why settlement failed."""

    tx_id: str | None = None
    error: str | None = None
    error_code: str | None = None

    def __post_init__(self) -> None:
        if (self.tx_id is None) == (self.error is None):
            raise TypeError("SettlementRequestOutput needs exactly one of tx_id, error")


@final
@dataclass(frozen=True, slots=True)
class MaturityResult:
    linear_id: LinearId
    outcome: MaturityOutcome
    settled_at: UtcDatetime
    tx_id: str | None = None
    reason: str | None = None
