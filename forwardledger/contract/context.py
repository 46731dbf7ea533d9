"""Validation context: the clock reading and policy a verdict is made under.

Validation reads no ambient state. The same proposal, command and context
always produce the same verdict, error timestamps included.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import final

from forwardledger.core.keys import PublicKey
from forwardledger.core.types import UtcDatetime


class SettlementMode(Enum):
    """Whether a settlement may leave a partially paid record behind."""

    PARTIAL_ALLOWED = "partial_allowed"
    FULL_ONLY = "full_only"


@final
@dataclass(frozen=True, slots=True)
class ValidationPolicy:
    require_future_settlement: bool = True
    settlement_mode: SettlementMode = SettlementMode.PARTIAL_ALLOWED

    @property
    def allows_partial(self) -> bool:
        return self.settlement_mode is SettlementMode.PARTIAL_ALLOWED


@final
@dataclass(frozen=True, slots=True)
class ValidationContext:
    """now is the instant the validating node attests to.

    oracle_key is the key the network trusts for spot prices. Cash
    settlement is impossible without one.
    """

    now: UtcDatetime
    oracle_key: PublicKey | None = None
    policy: ValidationPolicy = ValidationPolicy()

    def __post_init__(self) -> None:
        if not isinstance(self.now, UtcDatetime):
            raise TypeError("ValidationContext.now must be UtcDatetime")
        if self.oracle_key is not None and not isinstance(self.oracle_key, PublicKey):
            raise TypeError("ValidationContext.oracle_key must be PublicKey or None")
