"""Shared rejection helpers for the forward validator.

Each helper builds one Err in the contract taxonomy stamped with the
validation context's clock, so rule lists stay one line per rule.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from forwardledger.contract.context import ValidationContext
from forwardledger.contract.states import ForwardRecord
from forwardledger.core.errors import (
    AuthorizationViolation,
    InvariantViolation,
    ShapeViolation,
    UnrecognizedCommand,
)
from forwardledger.core.keys import PublicKey
from forwardledger.core.result import Err, Ok, first_err

_SOURCE = "contract.validator.validate"


def require[E](condition: bool, reject: Callable[[], Err[E]]) -> Ok[None] | Err[E]:
    """Ok(None) if condition holds, else the rejection built by reject."""
    return Ok(None) if condition else reject()


def shape_err(
    ctx: ValidationContext, command: str, message: str, expected: str, actual: str,
) -> Err[ShapeViolation]:
    return Err(ShapeViolation(
        message=f"{command}: {message}", code="SHAPE_VIOLATION",
        timestamp=ctx.now, source=_SOURCE,
        command=command, expected=expected, actual=actual,
    ))


def invariant_err(
    ctx: ValidationContext, command: str, rule: str, message: str,
) -> Err[InvariantViolation]:
    return Err(InvariantViolation(
        message=f"{command}: {message}", code="INVARIANT_VIOLATION",
        timestamp=ctx.now, source=_SOURCE,
        command=command, rule=rule,
    ))


def auth_err(
    ctx: ValidationContext,
    command: str,
    message: str,
    required: Iterable[PublicKey],
    actual: Iterable[PublicKey],
) -> Err[AuthorizationViolation]:
    return Err(AuthorizationViolation(
        message=f"{command}: {message}", code="AUTHORIZATION_VIOLATION",
        timestamp=ctx.now, source=_SOURCE,
        required=tuple(k.hex for k in sorted(required)),
        actual=tuple(k.hex for k in sorted(actual)),
    ))


def unrecognized_err(ctx: ValidationContext, type_name: str) -> Err[UnrecognizedCommand]:
    return Err(UnrecognizedCommand(
        message=f"Unrecognized forward command: {type_name}",
        code="UNRECOGNIZED_COMMAND",
        timestamp=ctx.now, source=_SOURCE,
        command_type=type_name,
    ))


def matured(
    ctx: ValidationContext, command: str, record: ForwardRecord,
) -> Ok[None] | Err[InvariantViolation]:
    """Settlement is only legal at or after the settlement timestamp."""
    return require(
        ctx.now >= record.settlement_timestamp,
        lambda: invariant_err(
            ctx, command, "MATURITY",
            f"forward must have matured before settlement "
            f"(settles {record.settlement_timestamp.isoformat()}, "
            f"now {ctx.now.isoformat()})",
        ),
    )


def both_parties_sign(
    ctx: ValidationContext, command: str, record: ForwardRecord, signers: frozenset[PublicKey],
) -> Ok[None] | Err[AuthorizationViolation]:
    required = frozenset(p.owning_key for p in record.participants)
    return require(
        required <= signers,
        lambda: auth_err(ctx, command, "both counterparties must sign", required, signers),
    )


def terms_unchanged(
    ctx: ValidationContext, command: str, old: ForwardRecord, new: ForwardRecord,
) -> Ok[None] | Err[InvariantViolation]:
    return first_err([
        lambda: require(
            old.linear_id == new.linear_id,
            lambda: invariant_err(
                ctx, command, "LINEAR_ID",
                "output must continue the input's linear id",
            ),
        ),
        lambda: require(
            old.same_terms(new),
            lambda: invariant_err(
                ctx, command, "TERMS_UNCHANGED",
                "only the paid amount may change between versions",
            ),
        ),
    ])
