"""In-memory implementations of the collaborator protocols.

Test doubles that let the whole lifecycle (issue, attest, settle, commit)
run in one process. All classes are @final. None of them are production
code.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from decimal import DecimalException, localcontext
from typing import final

from forwardledger.contract.calculator import compute_owed
from forwardledger.contract.commands import Command, OracleCommand, SettleCash, SettlePhysical
from forwardledger.contract.context import ValidationContext, ValidationPolicy
from forwardledger.contract.proposal import CashTransfer, Proposal
from forwardledger.contract.signatures import SignedProposal, verify_signatures
from forwardledger.contract.states import ForwardRecord, LinearId, SettlementType
from forwardledger.contract.validator import verify_proposal
from forwardledger.core.errors import ForwardError, PersistenceError
from forwardledger.core.keys import KeyPair, PublicKey
from forwardledger.core.money import FORWARD_DECIMAL_CONTEXT, Money
from forwardledger.core.result import Err, Ok
from forwardledger.core.serialization import content_hash
from forwardledger.core.types import UtcDatetime
from forwardledger.oracle.service import OracleAttestationService, build_oracle_view

logger = logging.getLogger(__name__)


def _persistence_error(
    operation: str, detail: str, code: str = "PERSISTENCE_ERROR",
) -> PersistenceError:
    return PersistenceError(
        message=detail,
        code=code,
        timestamp=UtcDatetime.now(),
        source=f"memory_adapter.{operation}",
        operation=operation,
    )


@final
class InMemoryRecordVault:
    """Latest unconsumed version of each forward, keyed by linear id."""

    def __init__(self, records: Iterable[ForwardRecord] = ()) -> None:
        self._records: dict[LinearId, ForwardRecord] = {r.linear_id: r for r in records}

    def current(self, linear_id: LinearId) -> Ok[ForwardRecord] | Err[PersistenceError]:
        record = self._records.get(linear_id)
        if record is None:
            return Err(_persistence_error(
                "current", f"No unconsumed forward for {linear_id.value}", "RECORD_NOT_FOUND",
            ))
        return Ok(record)

    def apply(self, proposal: Proposal) -> Ok[None] | Err[PersistenceError]:
        for record in proposal.inputs_of_type(ForwardRecord):
            self._records.pop(record.linear_id, None)
        for record in proposal.outputs_of_type(ForwardRecord):
            self._records[record.linear_id] = record
        return Ok(None)

    def unconsumed(self) -> Ok[tuple[ForwardRecord, ...]] | Err[PersistenceError]:
        return Ok(tuple(self._records.values()))

    def count(self) -> int:
        """Test-only helper."""
        return len(self._records)


@final
class InMemoryFinalityService:
    """Validates, checks signatures, and commits each record version once."""

    def __init__(
        self,
        oracle_key: PublicKey | None,
        *,
        policy: ValidationPolicy | None = None,
        clock: Callable[[], UtcDatetime] = UtcDatetime.now,
        vault: InMemoryRecordVault | None = None,
    ) -> None:
        self._oracle_key = oracle_key
        self._policy = policy or ValidationPolicy()
        self._clock = clock
        self._vault = vault
        self._lock = threading.Lock()
        self._consumed: dict[str, str] = {}  # record content hash -> tx id
        self._committed: list[str] = []

    def commit(self, signed: SignedProposal) -> Ok[str] | Err[ForwardError]:
        ctx = ValidationContext(
            now=self._clock(), oracle_key=self._oracle_key, policy=self._policy,
        )
        proposal = signed.proposal
        match verify_proposal(proposal, ctx):
            case Err(e):
                logger.warning("Finality rejected proposal: %s", e.message)
                return Err(e)
            case Ok():
                pass
        match verify_signatures(signed, ctx.now):
            case Err(e):
                logger.warning("Finality rejected signatures: %s", e.message)
                return Err(e)
            case Ok():
                pass
        match proposal.tx_id():
            case Err(e):
                return Err(_persistence_error("commit", e))
            case Ok(tx_id):
                pass

        hashes: list[str] = []
        for state in proposal.inputs:
            match content_hash(state):
                case Err(e):
                    return Err(_persistence_error("commit", e))
                case Ok(h):
                    hashes.append(h)

        with self._lock:
            for h in hashes:
                if h in self._consumed:
                    logger.warning(
                        "Double spend: tx=%s input %s already consumed by %s",
                        tx_id[:12], h[:12], self._consumed[h][:12],
                    )
                    return Err(_persistence_error(
                        "commit",
                        f"Input {h[:12]} already consumed by {self._consumed[h]}",
                        "DOUBLE_SPEND",
                    ))
            if self._vault is not None:
                for record in proposal.inputs_of_type(ForwardRecord):
                    match self._vault.current(record.linear_id):
                        case Ok(latest) if latest == record:
                            pass
                        case _:
                            return Err(_persistence_error(
                                "commit",
                                f"Input {record.linear_id.value} is not the current version",
                                "STALE_INPUT",
                            ))
                self._vault.apply(proposal)
            for h in hashes:
                self._consumed[h] = tx_id
            self._committed.append(tx_id)

        logger.info("Committed tx=%s inputs=%d outputs=%d",
                    tx_id[:12], len(proposal.inputs), len(proposal.outputs))
        return Ok(tx_id)

    def committed(self) -> tuple[str, ...]:
        """Test-only helper."""
        return tuple(self._committed)


@final
class InMemorySettlementInitiator:
    """Settles a matured forward in full with locally held keys.

    Stands in for signature collection between nodes: it holds both
    counterparties' key pairs and calls the oracle service in process.
    """

    def __init__(
        self,
        key_pairs: Iterable[KeyPair],
        vault: InMemoryRecordVault,
        finality: InMemoryFinalityService,
        oracle: OracleAttestationService | None = None,
    ) -> None:
        self._keys: dict[PublicKey, KeyPair] = {kp.public_key: kp for kp in key_pairs}
        self._vault = vault
        self._finality = finality
        self._oracle = oracle

    async def settle(self, linear_id: LinearId) -> Ok[str] | Err[ForwardError]:
        match self._vault.current(linear_id):
            case Err(e):
                return Err(e)
            case Ok(record):
                pass

        match self._settlement_proposal(record):
            case Err(e):
                return Err(e)
            case Ok(signed):
                pass

        match signed.proposal.tx_id():
            case Err(e):
                return Err(_persistence_error("settle", e))
            case Ok(tx_id):
                pass
        for party in record.participants:
            key_pair = self._keys.get(party.owning_key)
            if key_pair is None:
                return Err(_persistence_error(
                    "settle", f"No signing key held for {party}", "KEY_UNAVAILABLE",
                ))
            signed = signed.with_signature(key_pair.sign_transaction(tx_id))

        return self._finality.commit(signed)

    def _settlement_proposal(self, record: ForwardRecord) -> Ok[SignedProposal] | Err[ForwardError]:
        parties = (record.initiator.owning_key, record.acceptor.owning_key)
        if record.settlement_type is SettlementType.PHYSICAL:
            return Ok(SignedProposal(proposal=Proposal(
                inputs=(record,),
                commands=(Command.of(SettlePhysical(), *parties),),
            )))

        if self._oracle is None:
            return Err(_persistence_error(
                "settle", "Cash settlement needs an oracle", "ORACLE_UNAVAILABLE",
            ))
        match self._oracle.query(record.instrument.value, record.settlement_timestamp):
            case Err(e):
                return Err(e)
            case Ok(spot):
                pass

        try:
            obligation = compute_owed(record, spot)
            with localcontext(FORWARD_DECIMAL_CONTEXT):
                remaining = obligation.amount.amount - record.paid
        except DecimalException as e:
            return Err(_persistence_error(
                "settle", f"Amount owed out of decimal range: {e!r}", "AMOUNT_RANGE",
            ))
        transfers: tuple[CashTransfer, ...] = ()
        if remaining > 0 and obligation.payer is not None and obligation.payee is not None:
            transfers = (CashTransfer(
                payer=obligation.payer,
                payee=obligation.payee,
                amount=Money(amount=remaining, currency=obligation.amount.currency),
            ),)
        proposal = Proposal(
            inputs=(record,),
            commands=(
                Command.of(SettleCash(), *parties),
                Command.of(OracleCommand(spot=spot), self._oracle.public_key),
            ),
            transfers=transfers,
        )

        match build_oracle_view(proposal, self._oracle.public_key):
            case Err(e):
                return Err(_persistence_error("settle", e))
            case Ok(view):
                pass
        match self._oracle.attest(view):
            case Err(e):
                return Err(e)
            case Ok(oracle_sig):
                return Ok(SignedProposal(proposal=proposal, signatures=(oracle_sig,)))
