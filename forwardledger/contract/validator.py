"""Forward contract validator.

validate(proposal, command, context) decides whether a proposal legally
creates, pays down or extinguishes a ForwardRecord under one command.
Each branch is an ordered list of rules; the first failing rule is the
rejection. Later rules may assume every earlier rule held, so shape
checks always come first and the record fields are only read once the
proposal is known to carry records where they belong.

The validator is pure. It never raises on a well-typed proposal, and the
same inputs always produce the same verdict.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from decimal import Decimal, DecimalException, localcontext

from forwardledger.contract._rules import (
    auth_err,
    both_parties_sign,
    invariant_err,
    matured,
    require,
    shape_err,
    terms_unchanged,
    unrecognized_err,
)
from forwardledger.contract.calculator import SettlementObligation, compute_owed
from forwardledger.contract.commands import (
    Command,
    CommandTag,
)
from forwardledger.contract.context import ValidationContext
from forwardledger.contract.proposal import CashTransfer, Proposal
from forwardledger.contract.states import ForwardRecord, SettlementType
from forwardledger.core.errors import ContractViolation
from forwardledger.core.money import FORWARD_DECIMAL_CONTEXT
from forwardledger.core.result import Err, Ok, first_err

logger = logging.getLogger(__name__)

type Verdict = Ok[None] | Err[ContractViolation]
type Rule = Callable[[], Verdict]


def validate(proposal: Proposal, command: Command, context: ValidationContext) -> Verdict:
    """Accept (Ok(None)) or reject (Err) proposal under command.

    Amounts too large for FORWARD_DECIMAL_CONTEXT are rejected as
    AMOUNT_RANGE rather than raised.
    """
    tag = command.tag
    if tag is None or tag is CommandTag.ORACLE:
        return unrecognized_err(context, command.type_name)

    match first_err([
        lambda: _command_attached(proposal, command, context),
        lambda: _oracle_commands_signed(proposal, context),
    ]):
        case Err() as e:
            return e
        case Ok():
            pass

    try:
        match tag:
            case CommandTag.CREATE:
                return _verify_create(proposal, command, context)
            case CommandTag.SETTLE:
                return _verify_settle(proposal, command, context)
            case CommandTag.SETTLE_CASH:
                return _verify_settle_cash(proposal, command, context)
            case _:
                return _verify_settle_physical(proposal, command, context)
    except DecimalException as e:
        logger.debug("%s amounts out of decimal range: %r", command.type_name, e)
        return invariant_err(
            context, command.type_name, "AMOUNT_RANGE",
            "amounts exceed the supported decimal range",
        )


def verify_proposal(proposal: Proposal, context: ValidationContext) -> Verdict:
    """Validate a proposal under its single forward command.

    Oracle commands ride along with a forward command; they never govern
    a transition on their own.
    """
    governing = proposal.forward_commands()
    if len(governing) != 1:
        return shape_err(
            context, "Proposal", "exactly one forward command must govern the transition",
            "1 forward command", f"{len(governing)} forward commands",
        )
    verdict = validate(proposal, governing[0], context)
    match verdict:
        case Err(e):
            logger.debug("Rejected %s proposal: %s", governing[0].type_name, e.message)
        case Ok():
            logger.debug("Accepted %s proposal", governing[0].type_name)
    return verdict


# ---------------------------------------------------------------------------
# Global checks
# ---------------------------------------------------------------------------


def _command_attached(proposal: Proposal, command: Command, ctx: ValidationContext) -> Verdict:
    return require(
        command in proposal.commands,
        lambda: shape_err(
            ctx, command.type_name, "command is not attached to the proposal",
            "command in proposal", "absent",
        ),
    )


def _oracle_commands_signed(proposal: Proposal, ctx: ValidationContext) -> Verdict:
    """An oracle claim is worthless unless the oracle must sign for it."""
    for oc in proposal.oracle_commands():
        if ctx.oracle_key is None or ctx.oracle_key not in oc.signers:
            required = () if ctx.oracle_key is None else (ctx.oracle_key,)
            return auth_err(
                ctx, "OracleCommand", "oracle key must be a required signer",
                required, oc.signers,
            )
    return Ok(None)


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


def _verify_create(proposal: Proposal, command: Command, ctx: ValidationContext) -> Verdict:
    name = "Create"
    outputs = proposal.outputs
    match first_err([
        lambda: require(
            not proposal.inputs,
            lambda: shape_err(
                ctx, name, "no inputs may be consumed when issuing a forward",
                "0 inputs", f"{len(proposal.inputs)} inputs",
            ),
        ),
        lambda: require(
            len(outputs) == 1,
            lambda: shape_err(
                ctx, name, "exactly one output must be created",
                "1 output", f"{len(outputs)} outputs",
            ),
        ),
        lambda: require(
            isinstance(outputs[0], ForwardRecord),
            lambda: shape_err(
                ctx, name, "output must be a ForwardRecord",
                "ForwardRecord", type(outputs[0]).__name__,
            ),
        ),
    ]):
        case Err() as e:
            return e
        case Ok():
            pass

    out: ForwardRecord = outputs[0]  # type: ignore[assignment]
    parties = frozenset(p.owning_key for p in out.participants)
    rules: list[Rule] = [
        lambda: require(
            out.price_figure > 0,
            lambda: invariant_err(ctx, name, "POSITIVE_PRICE", "price must be positive"),
        ),
        lambda: require(
            out.quantity > 0,
            lambda: invariant_err(ctx, name, "POSITIVE_QUANTITY", "quantity must be positive"),
        ),
        lambda: require(
            out.initiator != out.acceptor
            and out.initiator.owning_key != out.acceptor.owning_key,
            lambda: invariant_err(
                ctx, name, "DISTINCT_PARTIES", "initiator and acceptor must differ",
            ),
        ),
        lambda: require(
            out.paid == 0,
            lambda: invariant_err(ctx, name, "ZERO_PAID", "a new forward must have paid = 0"),
        ),
        lambda: require(
            command.signers == parties,
            lambda: auth_err(
                ctx, name, "signers must be exactly the initiator and the acceptor",
                parties, command.signers,
            ),
        ),
    ]
    if ctx.policy.require_future_settlement:
        rules.append(lambda: require(
            out.settlement_timestamp > ctx.now,
            lambda: invariant_err(
                ctx, name, "FUTURE_SETTLEMENT",
                f"settlement timestamp {out.settlement_timestamp.isoformat()} "
                f"must be after {ctx.now.isoformat()}",
            ),
        ))
    return first_err(rules)


# ---------------------------------------------------------------------------
# Shared settlement shape
# ---------------------------------------------------------------------------


def _single_record_input(proposal: Proposal, name: str, ctx: ValidationContext) -> Verdict:
    inputs = proposal.inputs
    return first_err([
        lambda: require(
            len(inputs) == 1,
            lambda: shape_err(
                ctx, name, "exactly one forward must be consumed",
                "1 input", f"{len(inputs)} inputs",
            ),
        ),
        lambda: require(
            isinstance(inputs[0], ForwardRecord),
            lambda: shape_err(
                ctx, name, "input must be a ForwardRecord",
                "ForwardRecord", type(inputs[0]).__name__,
            ),
        ),
    ])


def _record_outputs(
    proposal: Proposal, name: str, ctx: ValidationContext, *, allow: int,
) -> Verdict:
    """Outputs are at most `allow` ForwardRecords and nothing else."""
    outputs = proposal.outputs
    records = proposal.outputs_of_type(ForwardRecord)
    return first_err([
        lambda: require(
            len(records) == len(outputs),
            lambda: shape_err(
                ctx, name, "only ForwardRecord outputs may be produced",
                "ForwardRecord outputs",
                ", ".join(type(o).__name__ for o in outputs),
            ),
        ),
        lambda: require(
            len(records) <= allow,
            lambda: shape_err(
                ctx, name,
                "settlement may leave at most one record" if allow else
                "settlement must fully extinguish the forward",
                f"at most {allow} outputs", f"{len(records)} outputs",
            ),
        ),
    ])


def _paid_bounds(
    ctx: ValidationContext, name: str, old: ForwardRecord, new: ForwardRecord,
) -> Verdict:
    cap = old.agreed_amount.amount
    return first_err([
        lambda: require(
            new.paid >= old.paid,
            lambda: invariant_err(ctx, name, "PAID_MONOTONIC", "paid amount cannot decrease"),
        ),
        lambda: require(
            new.paid <= cap,
            lambda: invariant_err(
                ctx, name, "PAID_BOUND",
                f"paid {new.paid} exceeds agreed amount {cap}",
            ),
        ),
        lambda: require(
            new.paid < cap,
            lambda: invariant_err(
                ctx, name, "FULLY_PAID_EXTINGUISHED",
                f"paid {new.paid} reaches the agreed amount; no record may remain",
            ),
        ),
    ])


# ---------------------------------------------------------------------------
# Settle (generic)
# ---------------------------------------------------------------------------


def _verify_settle(proposal: Proposal, command: Command, ctx: ValidationContext) -> Verdict:
    name = "Settle"
    partial = ctx.policy.allows_partial
    expected_outputs = 1 if partial else 0
    match first_err([
        lambda: _single_record_input(proposal, name, ctx),
        lambda: _record_outputs(proposal, name, ctx, allow=expected_outputs),
        lambda: require(
            len(proposal.outputs) == expected_outputs,
            lambda: shape_err(
                ctx, name,
                "exactly one successor record must be produced" if partial else
                "settlement must fully extinguish the forward",
                f"{expected_outputs} outputs", f"{len(proposal.outputs)} outputs",
            ),
        ),
    ]):
        case Err() as e:
            return e
        case Ok():
            pass

    old: ForwardRecord = proposal.inputs[0]  # type: ignore[assignment]
    rules: list[Rule] = [lambda: matured(ctx, name, old)]
    if proposal.outputs:
        new: ForwardRecord = proposal.outputs[0]  # type: ignore[assignment]
        rules += [
            lambda: terms_unchanged(ctx, name, old, new),
            lambda: _paid_bounds(ctx, name, old, new),
        ]
    rules.append(lambda: both_parties_sign(ctx, name, old, command.signers))
    return first_err(rules)


# ---------------------------------------------------------------------------
# SettlePhysical
# ---------------------------------------------------------------------------


def _verify_settle_physical(
    proposal: Proposal, command: Command, ctx: ValidationContext,
) -> Verdict:
    name = "SettlePhysical"
    records_out = proposal.outputs_of_type(ForwardRecord)
    match first_err([
        lambda: _single_record_input(proposal, name, ctx),
        lambda: require(
            not records_out,
            lambda: shape_err(
                ctx, name, "physical delivery must fully extinguish the forward",
                "0 ForwardRecord outputs", f"{len(records_out)} ForwardRecord outputs",
            ),
        ),
    ]):
        case Err() as e:
            return e
        case Ok():
            pass

    old: ForwardRecord = proposal.inputs[0]  # type: ignore[assignment]
    return first_err([
        lambda: require(
            old.settlement_type is SettlementType.PHYSICAL,
            lambda: invariant_err(
                ctx, name, "SETTLEMENT_TYPE", "forward is not physically settled",
            ),
        ),
        lambda: matured(ctx, name, old),
        lambda: both_parties_sign(ctx, name, old, command.signers),
    ])


# ---------------------------------------------------------------------------
# SettleCash
# ---------------------------------------------------------------------------


def _verify_settle_cash(proposal: Proposal, command: Command, ctx: ValidationContext) -> Verdict:
    name = "SettleCash"
    oracle_cmds = proposal.oracle_commands()
    allow = 1 if ctx.policy.allows_partial else 0
    match first_err([
        lambda: _single_record_input(proposal, name, ctx),
        lambda: _record_outputs(proposal, name, ctx, allow=allow),
        lambda: require(
            len(oracle_cmds) == 1,
            lambda: shape_err(
                ctx, name, "exactly one oracle price must accompany cash settlement",
                "1 OracleCommand", f"{len(oracle_cmds)} OracleCommands",
            ),
        ),
    ]):
        case Err() as e:
            return e
        case Ok():
            pass

    old: ForwardRecord = proposal.inputs[0]  # type: ignore[assignment]
    oracle_cmd = oracle_cmds[0]
    spot = oracle_cmd.value.spot  # type: ignore[attr-defined]
    match first_err([
        lambda: require(
            old.settlement_type is SettlementType.CASH,
            lambda: invariant_err(ctx, name, "SETTLEMENT_TYPE", "forward is not cash settled"),
        ),
        lambda: matured(ctx, name, old),
        lambda: require(
            ctx.oracle_key is not None,
            lambda: auth_err(
                ctx, name, "no trusted oracle is configured", (), oracle_cmd.signers,
            ),
        ),
        lambda: require(
            spot.instrument == old.instrument,
            lambda: invariant_err(
                ctx, name, "SPOT_INSTRUMENT",
                f"oracle price is for {spot.instrument.value}, "
                f"forward is on {old.instrument.value}",
            ),
        ),
        lambda: require(
            spot.as_of == old.settlement_timestamp,
            lambda: invariant_err(
                ctx, name, "SPOT_TIMESTAMP",
                f"oracle price is as of {spot.as_of.isoformat()}, "
                f"forward settles {old.settlement_timestamp.isoformat()}",
            ),
        ),
    ]):
        case Err() as e:
            return e
        case Ok():
            pass

    obligation = compute_owed(old, spot)
    match _transfers_follow(ctx, name, proposal.transfers, obligation):
        case Err() as e:
            return e
        case Ok(transferred):
            pass

    owed = obligation.amount.amount
    rules: list[Rule]
    if proposal.outputs:
        new: ForwardRecord = proposal.outputs[0]  # type: ignore[assignment]
        with localcontext(FORWARD_DECIMAL_CONTEXT):
            increase = new.paid - old.paid
        rules = [
            lambda: terms_unchanged(ctx, name, old, new),
            lambda: require(
                transferred > 0,
                lambda: invariant_err(
                    ctx, name, "PARTIAL_PAYMENT", "a partial settlement must transfer cash",
                ),
            ),
            lambda: require(
                increase == transferred,
                lambda: invariant_err(
                    ctx, name, "PAID_MATCHES_TRANSFER",
                    f"paid increased by {increase} but {transferred} was transferred",
                ),
            ),
            lambda: require(
                new.paid <= old.agreed_amount.amount,
                lambda: invariant_err(
                    ctx, name, "PAID_BOUND",
                    f"paid {new.paid} exceeds agreed amount {old.agreed_amount.amount}",
                ),
            ),
            lambda: require(
                new.paid < owed,
                lambda: invariant_err(
                    ctx, name, "FULLY_PAID_EXTINGUISHED",
                    f"paid {new.paid} reaches the amount owed {owed}; "
                    "no record may remain",
                ),
            ),
        ]
    else:
        with localcontext(FORWARD_DECIMAL_CONTEXT):
            total = old.paid + transferred
        rules = [
            lambda: require(
                total == owed,
                lambda: invariant_err(
                    ctx, name, "FULL_PAYMENT",
                    f"full settlement must pay {owed}, paid {total}",
                ),
            ),
        ]
    rules.append(lambda: both_parties_sign(ctx, name, old, command.signers))
    return first_err(rules)


def _transfers_follow(
    ctx: ValidationContext,
    name: str,
    transfers: tuple[CashTransfer, ...],
    obligation: SettlementObligation,
) -> Ok[Decimal] | Err[ContractViolation]:
    """Sum of transfers, all of which must flow payer -> payee in currency."""
    total = Decimal(0)
    for i, t in enumerate(transfers):
        if obligation.payer is None:
            return invariant_err(
                ctx, name, "NOTHING_OWED", "no cash may move when nothing is owed",
            )
        if t.payer != obligation.payer or t.payee != obligation.payee:
            return invariant_err(
                ctx, name, "TRANSFER_DIRECTION",
                f"transfers[{i}] must go from {obligation.payer} to {obligation.payee}",
            )
        if t.amount.currency != obligation.amount.currency:
            return invariant_err(
                ctx, name, "TRANSFER_CURRENCY",
                f"transfers[{i}] is in {t.amount.currency.value}, "
                f"settlement is in {obligation.amount.currency.value}",
            )
        if t.amount.amount <= 0:
            return invariant_err(
                ctx, name, "TRANSFER_AMOUNT", f"transfers[{i}] must be positive",
            )
        with localcontext(FORWARD_DECIMAL_CONTEXT):
            total += t.amount.amount
    return Ok(total)
