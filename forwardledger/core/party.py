"""Ledger identities.

The core treats identities as opaque comparable values bound to a public
key. Key custody and name resolution belong to an external identity
service.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import final

from forwardledger.core.keys import PublicKey
from forwardledger.core.money import NonEmptyStr
from forwardledger.core.result import Err, Ok


@final
@dataclass(frozen=True, slots=True, order=True)
class Party:
    """A named legal identity and the key it signs with."""

    name: NonEmptyStr
    owning_key: PublicKey

    def __post_init__(self) -> None:
        if not isinstance(self.name, NonEmptyStr):
            raise TypeError(f"Party.name must be NonEmptyStr, got {type(self.name).__name__}")
        if not isinstance(self.owning_key, PublicKey):
            raise TypeError(
                f"Party.owning_key must be PublicKey, got {type(self.owning_key).__name__}"
            )

    @staticmethod
    def create(name: str, owning_key: PublicKey) -> Ok[Party] | Err[str]:
        match NonEmptyStr.parse(name):
            case Err(e):
                return Err(f"Party.name: {e}")
            case Ok(n):
                return Ok(Party(name=n, owning_key=owning_key))

    def __str__(self) -> str:
        return self.name.value
