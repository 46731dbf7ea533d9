"""Collaborator protocols for the forward ledger.

The validator and oracle never call storage, transport or finality
directly. Orchestration code depends on these abstractions and hands the
pure core whatever it needs.

All protocols return Ok[T] | Err[...]. Infrastructure failures are values,
never exceptions.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from forwardledger.contract.proposal import Proposal
from forwardledger.contract.signatures import SignedProposal
from forwardledger.contract.states import ForwardRecord, LinearId
from forwardledger.core.errors import ForwardError, PersistenceError
from forwardledger.core.result import Err, Ok


@runtime_checkable
class RecordVault(Protocol):
    """Unconsumed forward records known to this node.

    Invariants:
      - current() returns the latest unconsumed version for a linear id,
        or Err if the contract is unknown or fully settled.
      - apply() consumes a finalized proposal's inputs and stores its
        outputs in one step.
    """

    def current(self, linear_id: LinearId) -> Ok[ForwardRecord] | Err[PersistenceError]: ...

    def apply(self, proposal: Proposal) -> Ok[None] | Err[PersistenceError]: ...

    def unconsumed(self) -> Ok[tuple[ForwardRecord, ...]] | Err[PersistenceError]: ...


@runtime_checkable
class FinalityService(Protocol):
    """Orders and commits fully signed proposals.

    Guarantees that no record version is consumed by two committed
    proposals. Returns the committed transaction id.
    """

    def commit(self, signed: SignedProposal) -> Ok[str] | Err[ForwardError]: ...


@runtime_checkable
class SettlementInitiator(Protocol):
    """Builds, signs and commits the settlement of a matured forward."""

    async def settle(self, linear_id: LinearId) -> Ok[str] | Err[ForwardError]: ...
