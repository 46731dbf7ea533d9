"""Error value hierarchy — domain functions return these, they never raise them.

Every error is a frozen dataclass that can be pattern-matched, logged and
serialized. ForwardError is the base; the five contract/attestation
classes mirror the rejection taxonomy a counterparty or notary sees.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import final

from forwardledger.core.types import UtcDatetime


@dataclass(frozen=True, slots=True)
class ForwardError:
    """Base error value. NOT @final — has subclasses."""

    message: str
    code: str
    timestamp: UtcDatetime
    source: str  # "module.function" that produced this error

    def with_context(self, context: str) -> ForwardError:
        """Return a copy with context prepended to message."""
        return replace(self, message=f"{context}: {self.message}")

    def to_dict(self) -> dict[str, object]:
        return {
            "message": self.message,
            "code": self.code,
            "timestamp": self.timestamp.value.isoformat(),
            "source": self.source,
        }


@final
@dataclass(frozen=True, slots=True)
class FieldViolation:
    """Describes a single field validation failure."""

    path: str  # e.g. "rows[3].as_of"
    constraint: str  # e.g. "must be ISO 8601"
    actual_value: str


@final
@dataclass(frozen=True, slots=True)
class ValidationError(ForwardError):
    """Input data (configuration, price feeds) failed to parse."""

    fields: tuple[FieldViolation, ...]

    def to_dict(self) -> dict[str, object]:
        return {
            **ForwardError.to_dict(self),
            "fields": [
                {"path": f.path, "constraint": f.constraint, "actual_value": f.actual_value}
                for f in self.fields
            ],
        }


@final
@dataclass(frozen=True, slots=True)
class ShapeViolation(ForwardError):
    """Wrong number or type of inputs/outputs/commands for the command.

    The proposal is malformed; no variation of its field values can fix it.
    """

    command: str
    expected: str
    actual: str

    def to_dict(self) -> dict[str, object]:
        return {
            **ForwardError.to_dict(self),
            "command": self.command,
            "expected": self.expected,
            "actual": self.actual,
        }


@final
@dataclass(frozen=True, slots=True)
class InvariantViolation(ForwardError):
    """A business rule failed: price, parties, maturity, paid amounts."""

    command: str
    rule: str

    def to_dict(self) -> dict[str, object]:
        return {**ForwardError.to_dict(self), "command": self.command, "rule": self.rule}


@final
@dataclass(frozen=True, slots=True)
class AuthorizationViolation(ForwardError):
    """The signer set does not match what the command requires."""

    required: tuple[str, ...]
    actual: tuple[str, ...]

    def to_dict(self) -> dict[str, object]:
        return {
            **ForwardError.to_dict(self),
            "required": list(self.required),
            "actual": list(self.actual),
        }


@final
@dataclass(frozen=True, slots=True)
class AttestationViolation(ForwardError):
    """Filtered view or oracle price check failed.

    May indicate a stale price feed or a malicious proposal.
    """

    tx_id: str

    def to_dict(self) -> dict[str, object]:
        return {**ForwardError.to_dict(self), "tx_id": self.tx_id}


@final
@dataclass(frozen=True, slots=True)
class UnrecognizedCommand(ForwardError):
    """Command outside the closed set — a protocol/version mismatch."""

    command_type: str

    def to_dict(self) -> dict[str, object]:
        return {**ForwardError.to_dict(self), "command_type": self.command_type}


@final
@dataclass(frozen=True, slots=True)
class PersistenceError(ForwardError):
    """Storage or finality collaborator failed."""

    operation: str

    def to_dict(self) -> dict[str, object]:
        return {**ForwardError.to_dict(self), "operation": self.operation}


type ContractViolation = (
    ShapeViolation | InvariantViolation | AuthorizationViolation | UnrecognizedCommand
)
