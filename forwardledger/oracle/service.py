"""Oracle attestation service.

The oracle is shown a filtered view of a proposal: its own price claims
and nothing else. It checks the view against the transaction id, checks
each claimed price against its store, and only then signs the id. It
never sees the counterparties, the quantity or the delivery price.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from decimal import Decimal

from forwardledger.contract.commands import Command, OracleCommand, SpotPrice
from forwardledger.contract.proposal import Proposal
from forwardledger.core.errors import AttestationViolation
from forwardledger.core.keys import KeyPair, PublicKey, TransactionSignature
from forwardledger.core.money import NonEmptyStr
from forwardledger.core.result import Err, Ok
from forwardledger.core.types import UtcDatetime
from forwardledger.disclosure.filtered import ComponentGroup, FilteredView
from forwardledger.disclosure.protocols import DisclosureScheme, MerkleDisclosure
from forwardledger.oracle.spot import SpotPriceStore

logger = logging.getLogger(__name__)

_SOURCE = "oracle.service.OracleAttestationService"


def oracle_claim_predicate(oracle_key: PublicKey) -> Callable[[object], bool]:
    """Accept exactly the OracleCommands that oracle_key must sign."""

    def accepts(component: object) -> bool:
        return (
            isinstance(component, Command)
            and isinstance(component.value, OracleCommand)
            and oracle_key in component.signers
        )

    return accepts


def build_oracle_view(
    proposal: Proposal,
    oracle_key: PublicKey,
    scheme: DisclosureScheme | None = None,
) -> Ok[FilteredView] | Err[str]:
    """The view a counterparty sends the oracle for this proposal."""
    scheme = scheme or MerkleDisclosure()
    match scheme.commit(proposal.component_groups(), proposal.privacy_salt):
        case Err() as e:
            return e
        case Ok(tree):
            return Ok(scheme.reveal(tree, oracle_claim_predicate(oracle_key)))


class OracleAttestationService:
    """Signs transaction ids whose disclosed price claims match the store."""

    def __init__(
        self,
        key_pair: KeyPair,
        store: SpotPriceStore,
        scheme: DisclosureScheme | None = None,
    ) -> None:
        self._key_pair = key_pair
        self._store = store
        self._scheme = scheme or MerkleDisclosure()

    @property
    def public_key(self) -> PublicKey:
        return self._key_pair.public_key

    def query(self, instrument: str, as_of: UtcDatetime) -> Ok[SpotPrice] | Err[AttestationViolation]:
        """The price a party should put in its OracleCommand."""
        value = self._store.lookup(instrument, as_of)
        if value is None:
            return self._reject(
                "", f"unknown instrument/time: {instrument} @ {as_of.isoformat()}",
                "UNKNOWN_SPOT",
            )
        return Ok(SpotPrice(instrument=NonEmptyStr(value=instrument), as_of=as_of, value=value))

    def attest(self, view: FilteredView) -> Ok[TransactionSignature] | Err[AttestationViolation]:
        """Sign view.tx_id iff every step passes. Never signs a partial view."""
        match self._scheme.verify(view, oracle_claim_predicate(self.public_key)):
            case Err(e):
                logger.warning("Attestation rejected: tx=%s %s", view.tx_id[:12], e.message)
                return Err(e)
            case Ok(disclosed):
                pass

        if not disclosed:
            return self._reject(view.tx_id, "view discloses no oracle command", "NO_CLAIM")
        outside = [g.group.name for g in view.groups if g.group is not ComponentGroup.COMMANDS]
        if outside:
            return self._reject(
                view.tx_id, f"price claims disclosed outside commands: {outside}",
                "EXTRANEOUS_DISCLOSURE",
            )

        snapshot = self._store.snapshot()
        for component in disclosed:
            spot: SpotPrice = component.value.spot  # type: ignore[attr-defined]
            known: Decimal | None = snapshot.lookup(spot.instrument.value, spot.as_of)
            if known is None:
                return self._reject(
                    view.tx_id,
                    f"unknown instrument/time: {spot.instrument.value} @ {spot.as_of.isoformat()}",
                    "UNKNOWN_SPOT",
                )
            if known != spot.value:
                return self._reject(
                    view.tx_id,
                    f"price mismatch for {spot.instrument.value} @ {spot.as_of.isoformat()}: "
                    f"claimed {spot.value}, observed {known}",
                    "PRICE_MISMATCH",
                )

        logger.info(
            "Attested tx=%s claims=%d snapshot=v%d",
            view.tx_id[:12], len(disclosed), snapshot.version,
        )
        return Ok(self._key_pair.sign_transaction(view.tx_id))

    def _reject(self, tx_id: str, message: str, code: str) -> Err[AttestationViolation]:
        logger.warning("Attestation rejected: tx=%s %s: %s", tx_id[:12] or "-", code, message)
        return Err(AttestationViolation(
            message=message, code=code,
            timestamp=UtcDatetime.now(), source=_SOURCE, tx_id=tx_id,
        ))
