"""Signature aggregation over a proposal's transaction id.

A proposal is ready for the finality service once every key required by
its commands (counterparties and, for cash settlement, the oracle) has a
valid signature over the transaction id.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import final

from forwardledger.contract.proposal import Proposal
from forwardledger.core.errors import AuthorizationViolation
from forwardledger.core.keys import PublicKey, TransactionSignature
from forwardledger.core.result import Err, Ok
from forwardledger.core.types import UtcDatetime

_SOURCE = "contract.signatures.verify_signatures"


@final
@dataclass(frozen=True, slots=True)
class SignedProposal:
    proposal: Proposal
    signatures: tuple[TransactionSignature, ...] = ()

    def with_signature(self, signature: TransactionSignature) -> SignedProposal:
        return replace(self, signatures=(*self.signatures, signature))

    def signed_by(self) -> frozenset[PublicKey]:
        return frozenset(s.by for s in self.signatures)


def required_signers(proposal: Proposal) -> frozenset[PublicKey]:
    return proposal.signers()


def _reject(
    message: str,
    code: str,
    at: UtcDatetime,
    required: frozenset[PublicKey],
    actual: frozenset[PublicKey],
) -> Err[AuthorizationViolation]:
    return Err(AuthorizationViolation(
        message=message, code=code, timestamp=at, source=_SOURCE,
        required=tuple(k.hex for k in sorted(required)),
        actual=tuple(k.hex for k in sorted(actual)),
    ))


def verify_signatures(
    signed: SignedProposal,
    at: UtcDatetime,
    *,
    allow_missing: frozenset[PublicKey] = frozenset(),
) -> Ok[None] | Err[AuthorizationViolation]:
    """Every signature is valid over the tx id and every required key has signed.

    allow_missing lists keys still expected to sign later (a party
    checking a proposal before countersigning it).
    """
    required = required_signers(signed.proposal)
    present = signed.signed_by()
    match signed.proposal.tx_id():
        case Err(e):
            return _reject(f"Cannot compute transaction id: {e}", "UNHASHABLE_PROPOSAL",
                           at, required, present)
        case Ok(tx_id):
            pass

    for sig in signed.signatures:
        if sig.tx_id != tx_id:
            return _reject(
                f"Signature by {sig.by.short} is over {sig.tx_id[:12]}, not {tx_id[:12]}",
                "WRONG_TRANSACTION", at, required, present,
            )
        if not sig.is_valid():
            return _reject(
                f"Invalid signature by {sig.by.short}", "INVALID_SIGNATURE",
                at, required, present,
            )

    missing = required - present - allow_missing
    if missing:
        return _reject(
            f"Missing signatures from {', '.join(sorted(k.short for k in missing))}",
            "MISSING_SIGNATURE", at, required, present,
        )
    return Ok(None)
