"""Ed25519 keys and transaction signatures.

A PublicKey is the hex of a raw 32-byte Ed25519 public key, which makes it
comparable, hashable and canonically serializable. Parties sign the
transaction id (the hash-tree root), never the transaction content.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from typing import final

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from forwardledger.core.result import Err, Ok

_ED25519_KEY_BYTES = 32


@final
@dataclass(frozen=True, slots=True, order=True)
class PublicKey:
    """Raw Ed25519 public key, hex encoded."""

    hex: str

    def __post_init__(self) -> None:
        try:
            raw = bytes.fromhex(self.hex)
        except (TypeError, ValueError) as e:
            raise TypeError(f"PublicKey requires hex string: {e}") from e
        if len(raw) != _ED25519_KEY_BYTES:
            raise TypeError(f"PublicKey must be {_ED25519_KEY_BYTES} bytes, got {len(raw)}")

    @staticmethod
    def parse(raw: str) -> Ok[PublicKey] | Err[str]:
        try:
            return Ok(PublicKey(hex=raw.lower()))
        except TypeError as e:
            return Err(str(e))

    def verify(self, signature: bytes, message: bytes) -> bool:
        """True iff signature is this key's Ed25519 signature over message."""
        key = Ed25519PublicKey.from_public_bytes(bytes.fromhex(self.hex))
        try:
            key.verify(signature, message)
        except InvalidSignature:
            return False
        return True

    @property
    def short(self) -> str:
        """Abbreviated form for log lines."""
        return self.hex[:12]


@final
class KeyPair:
    """Ed25519 signing key. Not a dataclass — private material stays out of reprs."""

    __slots__ = ("_private", "public_key")

    def __init__(self, private: Ed25519PrivateKey) -> None:
        self._private = private
        raw = private.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)
        self.public_key = PublicKey(hex=raw.hex())

    @staticmethod
    def generate() -> KeyPair:
        return KeyPair(Ed25519PrivateKey.generate())

    @staticmethod
    def from_seed(seed: bytes) -> KeyPair:
        """Deterministic key from a 32-byte seed (tests, fixtures)."""
        return KeyPair(Ed25519PrivateKey.from_private_bytes(seed))

    def sign(self, message: bytes) -> bytes:
        return self._private.sign(message)

    def sign_transaction(self, tx_id: str) -> TransactionSignature:
        """Sign over a transaction id (hex hash-tree root)."""
        return TransactionSignature(
            tx_id=tx_id,
            by=self.public_key,
            signature=self.sign(bytes.fromhex(tx_id)).hex(),
        )

    def __repr__(self) -> str:
        return f"KeyPair(public_key={self.public_key.short}…)"


@final
@dataclass(frozen=True, slots=True)
class TransactionSignature:
    """A signature by one key over one transaction id."""

    tx_id: str
    by: PublicKey
    signature: str  # hex

    def is_valid(self) -> bool:
        try:
            message = bytes.fromhex(self.tx_id)
            sig = bytes.fromhex(self.signature)
        except ValueError:
            return False
        return self.by.verify(sig, message)


def new_privacy_salt() -> str:
    """Fresh 32-byte random salt, hex encoded."""
    return secrets.token_hex(32)
