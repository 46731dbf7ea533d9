"""Proposal — a candidate ledger transition.

Inputs are consumed record versions, outputs the versions produced.
Cash movement rides alongside as explicit transfers so a validator can
check that a settlement actually paid what it claims. The privacy salt
blinds every leaf of the transaction's hash tree; its root is the id
that counterparties and the oracle sign.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import final

from forwardledger.contract.commands import Command, CommandTag
from forwardledger.core.keys import PublicKey, new_privacy_salt
from forwardledger.core.money import Money
from forwardledger.core.party import Party
from forwardledger.core.result import Err, Ok
from forwardledger.disclosure.filtered import ComponentGroup, ComponentTree


@final
@dataclass(frozen=True, slots=True)
class CashTransfer:
    """Payment from payer to payee carried by the transaction."""

    payer: Party
    payee: Party
    amount: Money

    def __post_init__(self) -> None:
        if not isinstance(self.payer, Party) or not isinstance(self.payee, Party):
            raise TypeError("CashTransfer: payer and payee must be Party")
        if not isinstance(self.amount, Money):
            raise TypeError("CashTransfer.amount must be Money")


@final
@dataclass(frozen=True, slots=True)
class Proposal:
    inputs: tuple[object, ...] = ()
    outputs: tuple[object, ...] = ()
    commands: tuple[Command, ...] = ()
    transfers: tuple[CashTransfer, ...] = ()
    privacy_salt: str = field(default_factory=new_privacy_salt)

    def inputs_of_type[T](self, cls: type[T]) -> tuple[T, ...]:
        return tuple(s for s in self.inputs if isinstance(s, cls))

    def outputs_of_type[T](self, cls: type[T]) -> tuple[T, ...]:
        return tuple(s for s in self.outputs if isinstance(s, cls))

    def oracle_commands(self) -> tuple[Command, ...]:
        return tuple(c for c in self.commands if c.tag is CommandTag.ORACLE)

    def forward_commands(self) -> tuple[Command, ...]:
        """Every command that is not an oracle claim."""
        return tuple(c for c in self.commands if c.tag is not CommandTag.ORACLE)

    def signers(self) -> frozenset[PublicKey]:
        """Union of the keys required by every command."""
        return frozenset(k for c in self.commands for k in c.signers)

    def component_groups(self) -> dict[ComponentGroup, tuple[object, ...]]:
        return {
            ComponentGroup.INPUTS: self.inputs,
            ComponentGroup.OUTPUTS: self.outputs,
            ComponentGroup.COMMANDS: self.commands,
            ComponentGroup.TRANSFERS: self.transfers,
            ComponentGroup.SIGNERS: tuple(sorted(self.signers())),
        }

    def tree(self) -> Ok[ComponentTree] | Err[str]:
        """The full hash tree; its id is this proposal's transaction id."""
        return ComponentTree.build(self.component_groups(), self.privacy_salt)

    def tx_id(self) -> Ok[str] | Err[str]:
        return self.tree().map(lambda t: t.id)
