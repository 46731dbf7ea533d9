"""Commands a proposal may carry, and the oracle's price claim.

The forward commands form a closed set. Anything else attached as the
governing command of a forward transition is rejected as unrecognized.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import final

from forwardledger.core.keys import PublicKey
from forwardledger.core.money import NonEmptyStr, is_finite_decimal
from forwardledger.core.result import Err, Ok
from forwardledger.core.types import UtcDatetime


class CommandTag(Enum):
    CREATE = "Create"
    SETTLE = "Settle"
    SETTLE_CASH = "SettleCash"
    SETTLE_PHYSICAL = "SettlePhysical"
    ORACLE = "Oracle"


@final
@dataclass(frozen=True, slots=True)
class SpotPrice:
    """The oracle's observed price of an instrument at an instant."""

    instrument: NonEmptyStr
    as_of: UtcDatetime
    value: Decimal

    def __post_init__(self) -> None:
        if not isinstance(self.instrument, NonEmptyStr):
            raise TypeError("SpotPrice.instrument must be NonEmptyStr")
        if not isinstance(self.as_of, UtcDatetime):
            raise TypeError("SpotPrice.as_of must be UtcDatetime")
        if not is_finite_decimal(self.value):
            raise TypeError(f"SpotPrice.value must be finite Decimal, got {self.value!r}")

    @staticmethod
    def create(instrument: str, as_of: datetime, value: Decimal) -> Ok[SpotPrice] | Err[str]:
        match NonEmptyStr.parse(instrument):
            case Err(e):
                return Err(f"SpotPrice.instrument: {e}")
            case Ok(inst):
                pass
        match UtcDatetime.parse(as_of):
            case Err(e):
                return Err(f"SpotPrice.as_of: {e}")
            case Ok(ts):
                pass
        if not is_finite_decimal(value):
            return Err(f"SpotPrice.value must be finite Decimal, got {value!r}")
        return Ok(SpotPrice(instrument=inst, as_of=ts, value=value))

    @property
    def key(self) -> tuple[str, UtcDatetime]:
        return (self.instrument.value, self.as_of)


# ---------------------------------------------------------------------------
# Command payloads
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class Create:
    """Issue a new forward."""


@final
@dataclass(frozen=True, slots=True)
class Settle:
    """Generic settlement: record a payment or extinguish the forward."""


@final
@dataclass(frozen=True, slots=True)
class SettleCash:
    """Cash settlement against an oracle-attested spot price."""


@final
@dataclass(frozen=True, slots=True)
class SettlePhysical:
    """Physical delivery. Asset movement happens outside this contract."""


@final
@dataclass(frozen=True, slots=True)
class OracleCommand:
    """The oracle's claim, carried in the proposal it later signs."""

    spot: SpotPrice


type ForwardCommand = Create | Settle | SettleCash | SettlePhysical

_TAGS: dict[type, CommandTag] = {
    Create: CommandTag.CREATE,
    Settle: CommandTag.SETTLE,
    SettleCash: CommandTag.SETTLE_CASH,
    SettlePhysical: CommandTag.SETTLE_PHYSICAL,
    OracleCommand: CommandTag.ORACLE,
}


def command_tag(value: object) -> CommandTag | None:
    """Tag for a known command payload, None for anything else."""
    return _TAGS.get(type(value))


@final
@dataclass(frozen=True, slots=True)
class Command:
    """A command payload and the keys that must sign for it."""

    value: object
    signers: frozenset[PublicKey]

    def __post_init__(self) -> None:
        if not isinstance(self.signers, frozenset):
            raise TypeError("Command.signers must be frozenset")
        if not all(isinstance(k, PublicKey) for k in self.signers):
            raise TypeError("Command.signers must contain only PublicKey")

    @staticmethod
    def of(value: object, *signers: PublicKey) -> Command:
        return Command(value=value, signers=frozenset(signers))

    @staticmethod
    def create(value: object, signers: Iterable[PublicKey]) -> Ok[Command] | Err[str]:
        keys = frozenset(signers)
        if not keys:
            return Err("Command requires at least one signer")
        try:
            return Ok(Command(value=value, signers=keys))
        except TypeError as e:
            return Err(str(e))

    @property
    def tag(self) -> CommandTag | None:
        return command_tag(self.value)

    @property
    def type_name(self) -> str:
        return type(self.value).__name__
