"""Tests for forwardledger.contract.validator — the forward rule engine."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from decimal import Decimal

from hypothesis import given
from hypothesis import strategies as st

from forwardledger.contract.commands import (
    Command,
    CommandTag,
    Create,
    OracleCommand,
    Settle,
    SettleCash,
    SettlePhysical,
    SpotPrice,
)
from forwardledger.contract.context import SettlementMode, ValidationContext, ValidationPolicy
from forwardledger.contract.proposal import CashTransfer, Proposal
from forwardledger.contract.states import (
    AgreedAmount,
    FixedPrice,
    ForwardRecord,
    LinearId,
    SettlementType,
)
from forwardledger.contract.validator import validate, verify_proposal
from forwardledger.core.errors import (
    AuthorizationViolation,
    ForwardError,
    InvariantViolation,
    ShapeViolation,
    UnrecognizedCommand,
)
from forwardledger.core.keys import KeyPair
from forwardledger.core.money import Money, NonEmptyStr
from forwardledger.core.party import Party
from forwardledger.core.result import Err, Ok
from forwardledger.core.serialization import derive_seed
from forwardledger.core.types import UtcDatetime

# ---------------------------------------------------------------------------
# Test helpers
# ---------------------------------------------------------------------------

K1, K2, K3 = (KeyPair.from_seed(derive_seed(n)).public_key for n in ("P1", "P2", "P3"))
P1, P2, P3 = (
    Party(name=NonEmptyStr(value=n), owning_key=k) for n, k in (("P1", K1), ("P2", K2), ("P3", K3))
)
ORACLE = KeyPair.from_seed(derive_seed("oracle"))

_T = UtcDatetime(value=datetime(2025, 6, 30, 12, 0, tzinfo=UTC))
_BEFORE = UtcDatetime(value=datetime(2025, 6, 1, tzinfo=UTC))
_AFTER = UtcDatetime(value=datetime(2025, 7, 1, tzinfo=UTC))
_USD = NonEmptyStr(value="USD")


def _prices(max_value: str = "100000") -> st.SearchStrategy[Decimal]:
    return st.decimals(
        min_value=Decimal("0.0001"), max_value=Decimal(max_value), places=4,
        allow_nan=False, allow_infinity=False,
    )


@dataclass(frozen=True)
class _Exercise:
    """A command payload outside the forward command set."""


def _ctx(
    now: UtcDatetime = _AFTER, policy: ValidationPolicy | None = None,
) -> ValidationContext:
    return ValidationContext(
        now=now, oracle_key=ORACLE.public_key, policy=policy or ValidationPolicy(),
    )


_FULL_ONLY = ValidationPolicy(settlement_mode=SettlementMode.FULL_ONLY)


def _record(**overrides: object) -> ForwardRecord:
    base = ForwardRecord(
        initiator=P1,
        acceptor=P2,
        instrument=NonEmptyStr(value="X"),
        quantity=Decimal("10"),
        price_terms=FixedPrice(price=Decimal("100"), currency=_USD),
        settlement_timestamp=_T,
        settlement_type=SettlementType.CASH,
        linear_id=LinearId(value="fwd-1"),
    )
    return dataclasses.replace(base, **overrides)


def _usd(amount: str) -> Money:
    return Money(amount=Decimal(amount), currency=_USD)


def _pay(payer: object, payee: object, amount: str, currency: str = "USD") -> CashTransfer:
    return CashTransfer(
        payer=payer,  # type: ignore[arg-type]
        payee=payee,  # type: ignore[arg-type]
        amount=Money(amount=Decimal(amount), currency=NonEmptyStr(value=currency)),
    )


def _create(
    record: ForwardRecord | None = None,
    *,
    signers: tuple[object, ...] = (K1, K2),
    inputs: tuple[object, ...] = (),
    outputs: tuple[object, ...] | None = None,
) -> tuple[Proposal, Command]:
    cmd = Command.of(Create(), *signers)  # type: ignore[arg-type]
    record = record or _record()
    return Proposal(
        inputs=inputs,
        outputs=(record,) if outputs is None else outputs,
        commands=(cmd,),
    ), cmd


def _settle(
    value: object,
    inputs: tuple[object, ...],
    outputs: tuple[object, ...] = (),
    *,
    signers: tuple[object, ...] = (K1, K2),
) -> tuple[Proposal, Command]:
    cmd = Command.of(value, *signers)  # type: ignore[arg-type]
    return Proposal(inputs=inputs, outputs=outputs, commands=(cmd,)), cmd


def _oracle_cmd(
    value: str = "120",
    *,
    instrument: str = "X",
    as_of: UtcDatetime = _T,
    signers: tuple[object, ...] | None = None,
) -> Command:
    spot = SpotPrice(instrument=NonEmptyStr(value=instrument), as_of=as_of, value=Decimal(value))
    keys = (ORACLE.public_key,) if signers is None else signers
    return Command.of(OracleCommand(spot=spot), *keys)  # type: ignore[arg-type]


def _cash(
    record: ForwardRecord | None = None,
    *,
    outputs: tuple[object, ...] = (),
    transfers: tuple[CashTransfer, ...] = (),
    oracle: tuple[Command, ...] | None = None,
    signers: tuple[object, ...] = (K1, K2),
) -> tuple[Proposal, Command]:
    cmd = Command.of(SettleCash(), *signers)  # type: ignore[arg-type]
    return Proposal(
        inputs=(record or _record(),),
        outputs=outputs,
        commands=(cmd, *(oracle if oracle is not None else (_oracle_cmd(),))),
        transfers=transfers,
    ), cmd


def _rejected[E: ForwardError](result: Ok[None] | Err[object], cls: type[E]) -> E:
    assert isinstance(result, Err), f"expected rejection, got {result}"
    assert isinstance(result.error, cls), f"expected {cls.__name__}, got {result.error}"
    return result.error


def _rule(result: Ok[None] | Err[object]) -> str:
    return _rejected(result, InvariantViolation).rule


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


class TestCreate:
    def test_valid_creation_accepted(self) -> None:
        proposal, cmd = _create()
        assert validate(proposal, cmd, _ctx(_BEFORE)) == Ok(None)

    def test_agreed_amount_accepted(self) -> None:
        proposal, cmd = _create(_record(price_terms=AgreedAmount(_usd("1000"))))
        assert validate(proposal, cmd, _ctx(_BEFORE)) == Ok(None)

    def test_input_rejected(self) -> None:
        proposal, cmd = _create(inputs=(_record(),))
        err = _rejected(validate(proposal, cmd, _ctx(_BEFORE)), ShapeViolation)
        assert err.expected == "0 inputs"

    def test_two_outputs_rejected(self) -> None:
        proposal, cmd = _create(outputs=(_record(), _record(linear_id=LinearId("fwd-2"))))
        _rejected(validate(proposal, cmd, _ctx(_BEFORE)), ShapeViolation)

    def test_no_output_rejected(self) -> None:
        proposal, cmd = _create(outputs=())
        _rejected(validate(proposal, cmd, _ctx(_BEFORE)), ShapeViolation)

    def test_non_record_output_rejected(self) -> None:
        proposal, cmd = _create(outputs=("cash-state",))
        err = _rejected(validate(proposal, cmd, _ctx(_BEFORE)), ShapeViolation)
        assert err.actual == "str"

    def test_zero_price_rejected(self) -> None:
        proposal, cmd = _create(_record(price_terms=FixedPrice(Decimal("0"), _USD)))
        assert _rule(validate(proposal, cmd, _ctx(_BEFORE))) == "POSITIVE_PRICE"

    def test_negative_agreed_amount_rejected(self) -> None:
        proposal, cmd = _create(_record(price_terms=AgreedAmount(_usd("-1"))))
        assert _rule(validate(proposal, cmd, _ctx(_BEFORE))) == "POSITIVE_PRICE"

    def test_zero_quantity_rejected(self) -> None:
        proposal, cmd = _create(_record(quantity=Decimal(0)))
        assert _rule(validate(proposal, cmd, _ctx(_BEFORE))) == "POSITIVE_QUANTITY"

    def test_same_party_rejected(self) -> None:
        proposal, cmd = _create(_record(acceptor=P1), signers=(K1,))
        assert _rule(validate(proposal, cmd, _ctx(_BEFORE))) == "DISTINCT_PARTIES"

    def test_nonzero_paid_rejected(self) -> None:
        proposal, cmd = _create(_record(paid=Decimal("1")))
        assert _rule(validate(proposal, cmd, _ctx(_BEFORE))) == "ZERO_PAID"

    def test_missing_signer_rejected(self) -> None:
        proposal, cmd = _create(signers=(K1,))
        err = _rejected(validate(proposal, cmd, _ctx(_BEFORE)), AuthorizationViolation)
        assert err.required == tuple(sorted((K1.hex, K2.hex)))
        assert err.actual == (K1.hex,)

    def test_extra_signer_rejected(self) -> None:
        proposal, cmd = _create(signers=(K1, K2, K3))
        _rejected(validate(proposal, cmd, _ctx(_BEFORE)), AuthorizationViolation)

    def test_past_settlement_rejected(self) -> None:
        proposal, cmd = _create()
        assert _rule(validate(proposal, cmd, _ctx(_AFTER))) == "FUTURE_SETTLEMENT"

    def test_settlement_at_now_rejected(self) -> None:
        proposal, cmd = _create()
        assert _rule(validate(proposal, cmd, _ctx(_T))) == "FUTURE_SETTLEMENT"

    def test_past_settlement_allowed_by_policy(self) -> None:
        proposal, cmd = _create()
        policy = ValidationPolicy(require_future_settlement=False)
        assert validate(proposal, cmd, _ctx(_AFTER, policy)) == Ok(None)

    @given(
        _prices(),
        _prices("1000"),
        st.sampled_from(["none", "input", "outputs", "price", "parties", "signers"]),
    )
    def test_flipping_one_condition_flips_verdict(
        self, price: Decimal, quantity: Decimal, broken: str,
    ) -> None:
        record = _record(price_terms=FixedPrice(price, _USD), quantity=quantity)
        match broken:
            case "input":
                proposal, cmd = _create(record, inputs=(record,))
            case "outputs":
                proposal, cmd = _create(record, outputs=(record, record))
            case "price":
                bad = _record(price_terms=FixedPrice(-price, _USD), quantity=quantity)
                proposal, cmd = _create(bad)
            case "parties":
                proposal, cmd = _create(dataclasses.replace(record, acceptor=P1), signers=(K1,))
            case "signers":
                proposal, cmd = _create(record, signers=(K1, K3))
            case _:
                proposal, cmd = _create(record)
        result = validate(proposal, cmd, _ctx(_BEFORE))
        if broken == "none":
            assert result == Ok(None)
        else:
            assert isinstance(result, Err)


# ---------------------------------------------------------------------------
# Global checks
# ---------------------------------------------------------------------------


class TestGlobalChecks:
    def test_unrecognized_command(self) -> None:
        proposal, cmd = _settle(_Exercise(), (_record(),))
        err = _rejected(validate(proposal, cmd, _ctx()), UnrecognizedCommand)
        assert err.command_type == "_Exercise"
        assert err.code == "UNRECOGNIZED_COMMAND"

    def test_oracle_command_cannot_govern(self) -> None:
        oracle_cmd = _oracle_cmd()
        proposal = Proposal(inputs=(_record(),), commands=(oracle_cmd,))
        _rejected(validate(proposal, oracle_cmd, _ctx()), UnrecognizedCommand)

    def test_command_tags(self) -> None:
        assert Command.of(SettleCash(), K1).tag is CommandTag.SETTLE_CASH
        assert _oracle_cmd().tag is CommandTag.ORACLE
        assert Command.of(_Exercise(), K1).tag is None

    def test_detached_command_rejected(self) -> None:
        proposal, _ = _create()
        stray = Command.of(Create(), K1, K3)
        _rejected(validate(proposal, stray, _ctx(_BEFORE)), ShapeViolation)

    def test_oracle_command_without_oracle_signer_rejected(self) -> None:
        proposal, cmd = _cash(oracle=(_oracle_cmd(signers=(K1,)),))
        _rejected(validate(proposal, cmd, _ctx()), AuthorizationViolation)

    def test_oracle_command_with_no_trusted_oracle_rejected(self) -> None:
        proposal, cmd = _cash(transfers=(_pay(P1, P2, "200"),))
        ctx = ValidationContext(now=_AFTER, oracle_key=None)
        _rejected(validate(proposal, cmd, ctx), AuthorizationViolation)

    def test_rejection_is_deterministic(self) -> None:
        proposal, cmd = _settle(Settle(), (_record(),), (_record(paid=Decimal("-1")),))
        first = validate(proposal, cmd, _ctx())
        second = validate(proposal, cmd, _ctx())
        assert isinstance(first, Err)
        assert first == second
        assert first.error.timestamp == _AFTER


class TestVerifyProposal:
    def test_single_forward_command(self) -> None:
        proposal, _ = _cash(transfers=(_pay(P1, P2, "200"),))
        assert verify_proposal(proposal, _ctx()) == Ok(None)

    def test_no_forward_command(self) -> None:
        proposal = Proposal(inputs=(_record(),), commands=(_oracle_cmd(),))
        _rejected(verify_proposal(proposal, _ctx()), ShapeViolation)

    def test_two_forward_commands(self) -> None:
        proposal = Proposal(
            outputs=(_record(),),
            commands=(Command.of(Create(), K1, K2), Command.of(Settle(), K1, K2)),
        )
        _rejected(verify_proposal(proposal, _ctx(_BEFORE)), ShapeViolation)


# ---------------------------------------------------------------------------
# Maturity gate
# ---------------------------------------------------------------------------


def _perfect_settlement(kind: str) -> tuple[Proposal, Command]:
    match kind:
        case "settle":
            return _settle(Settle(), (_record(),), (_record(paid=Decimal("100")),))
        case "physical":
            physical = _record(settlement_type=SettlementType.PHYSICAL)
            return _settle(SettlePhysical(), (physical,))
        case _:
            return _cash(transfers=(_pay(P1, P2, "200"),))


class TestMaturityGate:
    @given(
        st.datetimes(
            min_value=datetime(2020, 1, 1), max_value=datetime(2025, 12, 31), timezones=st.just(UTC),
        ).filter(lambda d: d < _T.value),
        st.sampled_from(["settle", "physical", "cash"]),
    )
    def test_premature_settlement_always_rejected(self, now: datetime, kind: str) -> None:
        proposal, cmd = _perfect_settlement(kind)
        err = _rejected(validate(proposal, cmd, _ctx(UtcDatetime(value=now))), InvariantViolation)
        assert err.rule == "MATURITY"
        assert "must have matured" in err.message

    def test_settlement_exactly_at_maturity_accepted(self) -> None:
        for kind in ("settle", "physical", "cash"):
            proposal, cmd = _perfect_settlement(kind)
            assert validate(proposal, cmd, _ctx(_T)) == Ok(None), kind

    def test_one_microsecond_early_rejected(self) -> None:
        proposal, cmd = _perfect_settlement("settle")
        early = UtcDatetime(value=_T.value - timedelta(microseconds=1))
        assert _rule(validate(proposal, cmd, _ctx(early))) == "MATURITY"


# ---------------------------------------------------------------------------
# Settle (generic)
# ---------------------------------------------------------------------------


class TestSettle:
    def test_partial_payment_accepted(self) -> None:
        proposal, cmd = _settle(Settle(), (_record(),), (_record(paid=Decimal("500")),))
        assert validate(proposal, cmd, _ctx()) == Ok(None)

    def test_no_output_rejected_when_partial_allowed(self) -> None:
        proposal, cmd = _settle(Settle(), (_record(),))
        _rejected(validate(proposal, cmd, _ctx()), ShapeViolation)

    def test_two_inputs_rejected(self) -> None:
        proposal, cmd = _settle(
            Settle(), (_record(), _record(linear_id=LinearId("fwd-2"))), (_record(),),
        )
        _rejected(validate(proposal, cmd, _ctx()), ShapeViolation)

    def test_non_record_input_rejected(self) -> None:
        proposal, cmd = _settle(Settle(), ("cash-state",), (_record(),))
        _rejected(validate(proposal, cmd, _ctx()), ShapeViolation)

    def test_linear_id_change_rejected(self) -> None:
        proposal, cmd = _settle(
            Settle(), (_record(),), (_record(linear_id=LinearId("fwd-2"), paid=Decimal("1")),),
        )
        assert _rule(validate(proposal, cmd, _ctx())) == "LINEAR_ID"

    def test_term_change_rejected(self) -> None:
        proposal, cmd = _settle(Settle(), (_record(),), (_record(quantity=Decimal("11")),))
        assert _rule(validate(proposal, cmd, _ctx())) == "TERMS_UNCHANGED"

    def test_settlement_timestamp_change_rejected(self) -> None:
        moved = _record(settlement_timestamp=_AFTER)
        proposal, cmd = _settle(Settle(), (_record(),), (moved,))
        assert _rule(validate(proposal, cmd, _ctx())) == "TERMS_UNCHANGED"

    def test_paid_decrease_rejected(self) -> None:
        proposal, cmd = _settle(
            Settle(), (_record(paid=Decimal("10")),), (_record(paid=Decimal("5")),),
        )
        assert _rule(validate(proposal, cmd, _ctx())) == "PAID_MONOTONIC"

    def test_overpayment_rejected(self) -> None:
        proposal, cmd = _settle(Settle(), (_record(),), (_record(paid=Decimal("1000.01")),))
        assert _rule(validate(proposal, cmd, _ctx())) == "PAID_BOUND"

    def test_fully_paid_record_cannot_remain(self) -> None:
        proposal, cmd = _settle(Settle(), (_record(),), (_record(paid=Decimal("1000")),))
        assert _rule(validate(proposal, cmd, _ctx())) == "FULLY_PAID_EXTINGUISHED"

    def test_missing_counterparty_signature_rejected(self) -> None:
        proposal, cmd = _settle(
            Settle(), (_record(),), (_record(paid=Decimal("1")),), signers=(K1,),
        )
        _rejected(validate(proposal, cmd, _ctx()), AuthorizationViolation)

    def test_additional_signers_allowed(self) -> None:
        proposal, cmd = _settle(
            Settle(), (_record(),), (_record(paid=Decimal("1")),), signers=(K1, K2, K3),
        )
        assert validate(proposal, cmd, _ctx()) == Ok(None)

    def test_full_only_extinguishes(self) -> None:
        proposal, cmd = _settle(Settle(), (_record(),))
        assert validate(proposal, cmd, _ctx(policy=_FULL_ONLY)) == Ok(None)

    def test_full_only_rejects_successor(self) -> None:
        proposal, cmd = _settle(Settle(), (_record(),), (_record(paid=Decimal("1")),))
        _rejected(validate(proposal, cmd, _ctx(policy=_FULL_ONLY)), ShapeViolation)


# ---------------------------------------------------------------------------
# SettlePhysical
# ---------------------------------------------------------------------------


class TestSettlePhysical:
    def _physical(self) -> ForwardRecord:
        return _record(settlement_type=SettlementType.PHYSICAL)

    def test_extinguishing_delivery_accepted(self) -> None:
        proposal, cmd = _settle(SettlePhysical(), (self._physical(),))
        assert validate(proposal, cmd, _ctx()) == Ok(None)

    def test_other_outputs_allowed(self) -> None:
        proposal, cmd = _settle(SettlePhysical(), (self._physical(),), ("delivery-receipt",))
        assert validate(proposal, cmd, _ctx()) == Ok(None)

    def test_remaining_record_rejected(self) -> None:
        proposal, cmd = _settle(SettlePhysical(), (self._physical(),), (self._physical(),))
        _rejected(validate(proposal, cmd, _ctx()), ShapeViolation)

    def test_no_input_rejected(self) -> None:
        proposal, cmd = _settle(SettlePhysical(), ())
        _rejected(validate(proposal, cmd, _ctx()), ShapeViolation)

    def test_cash_record_rejected(self) -> None:
        proposal, cmd = _settle(SettlePhysical(), (_record(),))
        assert _rule(validate(proposal, cmd, _ctx())) == "SETTLEMENT_TYPE"

    def test_missing_signer_rejected(self) -> None:
        proposal, cmd = _settle(SettlePhysical(), (self._physical(),), signers=(K2,))
        _rejected(validate(proposal, cmd, _ctx()), AuthorizationViolation)


# ---------------------------------------------------------------------------
# SettleCash
# ---------------------------------------------------------------------------


class TestSettleCash:
    def test_full_settlement_accepted(self) -> None:
        proposal, cmd = _cash(transfers=(_pay(P1, P2, "200"),))
        assert validate(proposal, cmd, _ctx()) == Ok(None)

    def test_split_transfers_accepted(self) -> None:
        proposal, cmd = _cash(transfers=(_pay(P1, P2, "120"), _pay(P1, P2, "80")))
        assert validate(proposal, cmd, _ctx()) == Ok(None)

    def test_partial_then_full_chain(self) -> None:
        first, cmd1 = _cash(
            outputs=(_record(paid=Decimal("50")),), transfers=(_pay(P1, P2, "50"),),
        )
        assert validate(first, cmd1, _ctx()) == Ok(None)
        second, cmd2 = _cash(_record(paid=Decimal("50")), transfers=(_pay(P1, P2, "150"),))
        assert validate(second, cmd2, _ctx()) == Ok(None)

    def test_partial_reaching_owed_must_extinguish(self) -> None:
        proposal, cmd = _cash(
            outputs=(_record(paid=Decimal("200")),), transfers=(_pay(P1, P2, "200"),),
        )
        assert _rule(validate(proposal, cmd, _ctx())) == "FULLY_PAID_EXTINGUISHED"

    def test_partial_without_cash_rejected(self) -> None:
        proposal, cmd = _cash(outputs=(_record(),))
        assert _rule(validate(proposal, cmd, _ctx())) == "PARTIAL_PAYMENT"

    def test_paid_increase_must_match_transfer(self) -> None:
        proposal, cmd = _cash(
            outputs=(_record(paid=Decimal("60")),), transfers=(_pay(P1, P2, "50"),),
        )
        assert _rule(validate(proposal, cmd, _ctx())) == "PAID_MATCHES_TRANSFER"

    def test_partial_paid_capped_by_agreed_amount(self) -> None:
        # spot 500 owes 4000 against an agreed amount of 1000
        proposal, cmd = _cash(
            outputs=(_record(paid=Decimal("2000")),),
            transfers=(_pay(P1, P2, "2000"),),
            oracle=(_oracle_cmd("500"),),
        )
        assert _rule(validate(proposal, cmd, _ctx())) == "PAID_BOUND"

    def test_partial_up_to_agreed_amount_accepted(self) -> None:
        proposal, cmd = _cash(
            outputs=(_record(paid=Decimal("999")),),
            transfers=(_pay(P1, P2, "999"),),
            oracle=(_oracle_cmd("500"),),
        )
        assert validate(proposal, cmd, _ctx()) == Ok(None)

    def test_partial_term_change_rejected(self) -> None:
        proposal, cmd = _cash(
            outputs=(_record(paid=Decimal("50"), instrument=NonEmptyStr("Y")),),
            transfers=(_pay(P1, P2, "50"),),
        )
        assert _rule(validate(proposal, cmd, _ctx())) == "TERMS_UNCHANGED"

    def test_underpayment_rejected(self) -> None:
        proposal, cmd = _cash(transfers=(_pay(P1, P2, "199.99"),))
        assert _rule(validate(proposal, cmd, _ctx())) == "FULL_PAYMENT"

    def test_wrong_direction_rejected(self) -> None:
        proposal, cmd = _cash(transfers=(_pay(P2, P1, "200"),))
        assert _rule(validate(proposal, cmd, _ctx())) == "TRANSFER_DIRECTION"

    def test_third_party_payee_rejected(self) -> None:
        proposal, cmd = _cash(transfers=(_pay(P1, P3, "200"),))
        assert _rule(validate(proposal, cmd, _ctx())) == "TRANSFER_DIRECTION"

    def test_wrong_currency_rejected(self) -> None:
        proposal, cmd = _cash(transfers=(_pay(P1, P2, "200", "EUR"),))
        assert _rule(validate(proposal, cmd, _ctx())) == "TRANSFER_CURRENCY"

    def test_non_positive_transfer_rejected(self) -> None:
        proposal, cmd = _cash(transfers=(_pay(P1, P2, "200"), _pay(P1, P2, "0")))
        assert _rule(validate(proposal, cmd, _ctx())) == "TRANSFER_AMOUNT"

    def test_spot_below_buyer_pays(self) -> None:
        proposal, cmd = _cash(
            oracle=(_oracle_cmd("90"),), transfers=(_pay(P2, P1, "100"),),
        )
        assert validate(proposal, cmd, _ctx()) == Ok(None)

    def test_nothing_owed_extinguishes_without_cash(self) -> None:
        proposal, cmd = _cash(oracle=(_oracle_cmd("100"),))
        assert validate(proposal, cmd, _ctx()) == Ok(None)

    def test_nothing_owed_rejects_transfers(self) -> None:
        proposal, cmd = _cash(oracle=(_oracle_cmd("100"),), transfers=(_pay(P1, P2, "1"),))
        assert _rule(validate(proposal, cmd, _ctx())) == "NOTHING_OWED"

    def test_missing_oracle_price_rejected(self) -> None:
        proposal, cmd = _cash(oracle=())
        _rejected(validate(proposal, cmd, _ctx()), ShapeViolation)

    def test_two_oracle_prices_rejected(self) -> None:
        proposal, cmd = _cash(oracle=(_oracle_cmd("120"), _oracle_cmd("121")))
        _rejected(validate(proposal, cmd, _ctx()), ShapeViolation)

    def test_spot_for_other_instrument_rejected(self) -> None:
        proposal, cmd = _cash(oracle=(_oracle_cmd(instrument="Y"),))
        assert _rule(validate(proposal, cmd, _ctx())) == "SPOT_INSTRUMENT"

    def test_spot_at_other_time_rejected(self) -> None:
        proposal, cmd = _cash(oracle=(_oracle_cmd(as_of=_BEFORE),))
        assert _rule(validate(proposal, cmd, _ctx())) == "SPOT_TIMESTAMP"

    def test_physical_record_rejected(self) -> None:
        proposal, cmd = _cash(_record(settlement_type=SettlementType.PHYSICAL))
        assert _rule(validate(proposal, cmd, _ctx())) == "SETTLEMENT_TYPE"

    def test_missing_counterparty_signature_rejected(self) -> None:
        proposal, cmd = _cash(transfers=(_pay(P1, P2, "200"),), signers=(K1,))
        _rejected(validate(proposal, cmd, _ctx()), AuthorizationViolation)

    def test_non_record_output_rejected(self) -> None:
        proposal, cmd = _cash(outputs=("cash-state",), transfers=(_pay(P1, P2, "200"),))
        _rejected(validate(proposal, cmd, _ctx()), ShapeViolation)

    def test_full_only_rejects_successor(self) -> None:
        proposal, cmd = _cash(
            outputs=(_record(paid=Decimal("50")),), transfers=(_pay(P1, P2, "50"),),
        )
        _rejected(validate(proposal, cmd, _ctx(policy=_FULL_ONLY)), ShapeViolation)

    def test_full_only_accepts_full_payment(self) -> None:
        proposal, cmd = _cash(transfers=(_pay(P1, P2, "200"),))
        assert validate(proposal, cmd, _ctx(policy=_FULL_ONLY)) == Ok(None)


# ---------------------------------------------------------------------------
# Amounts outside the decimal context
# ---------------------------------------------------------------------------


class TestAmountRange:
    def test_huge_spot_rejected(self) -> None:
        proposal, cmd = _cash(oracle=(_oracle_cmd("1E+27"),))
        assert _rule(validate(proposal, cmd, _ctx())) == "AMOUNT_RANGE"

    def test_huge_price_rejected(self) -> None:
        record = _record(price_terms=FixedPrice(price=Decimal("9E+999999"), currency=_USD))
        proposal, cmd = _cash(record, transfers=(_pay(P1, P2, "200"),))
        assert _rule(validate(proposal, cmd, _ctx())) == "AMOUNT_RANGE"

    def test_huge_quantity_rejected_on_settle(self) -> None:
        huge = Decimal("9E+999999")
        proposal, cmd = _settle(
            Settle(), (_record(quantity=huge),), (_record(quantity=huge, paid=Decimal("1")),),
        )
        assert _rule(validate(proposal, cmd, _ctx())) == "AMOUNT_RANGE"

    @given(
        st.integers(min_value=20, max_value=999_999),
        st.sampled_from(["spot", "quantity", "price"]),
    )
    def test_large_magnitudes_never_raise(self, exponent: int, field: str) -> None:
        big = Decimal(f"9E+{exponent}")
        match field:
            case "spot":
                proposal, cmd = _cash(oracle=(_oracle_cmd(str(big)),))
            case "quantity":
                proposal, cmd = _cash(_record(quantity=big))
            case _:
                proposal, cmd = _cash(
                    _record(price_terms=FixedPrice(price=big, currency=_USD)),
                )
        assert _rule(validate(proposal, cmd, _ctx())) in {"AMOUNT_RANGE", "FULL_PAYMENT"}
