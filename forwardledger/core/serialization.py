"""Canonical serialization and content-addressed hashing.

canonical_bytes(obj) -> Result[bytes, str]: deterministic JSON bytes.
content_hash(obj) -> Result[str, str]: SHA-256 hex of canonical bytes.

Hash-tree leaves and record versions are identified through these, so the
encoding must not depend on insertion order, set iteration order, or how
a Decimal happens to be written (1.50 and 1.5 encode identically).
"""

from __future__ import annotations

import dataclasses
import hashlib
import json
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from forwardledger.core.result import Err, Ok
from forwardledger.core.types import FrozenMap, UtcDatetime


def _dumps(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"))


def _to_serializable(obj: object) -> Any:  # noqa: PLR0911
    """Recursively convert a domain object to a JSON-compatible Python value."""
    if obj is None:
        return None
    # bool before int (bool is subclass of int)
    if isinstance(obj, bool | int | str):
        return obj
    if isinstance(obj, Decimal):
        if not obj.is_finite():
            raise TypeError(f"non-finite Decimal {obj}")
        if obj == 0:
            return "0"
        return str(obj.normalize())
    if isinstance(obj, bytes):
        return obj.hex()
    if isinstance(obj, UtcDatetime):
        return obj.isoformat()
    if isinstance(obj, datetime):
        if obj.tzinfo is None:
            raise TypeError("Cannot serialize naive datetime — use UtcDatetime")
        return obj.astimezone(UTC).isoformat()
    if isinstance(obj, tuple | list):
        return [_to_serializable(x) for x in obj]
    if isinstance(obj, frozenset | set):
        return sorted((_to_serializable(x) for x in obj), key=_dumps)
    if isinstance(obj, FrozenMap):
        return {str(k): _to_serializable(v) for k, v in obj.items()}
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, dict):
        return {str(k): _to_serializable(v) for k, v in sorted(obj.items())}
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        result: dict[str, Any] = {"_type": type(obj).__name__}
        for f in sorted(dataclasses.fields(obj), key=lambda f: f.name):
            result[f.name] = _to_serializable(getattr(obj, f.name))
        return result
    raise TypeError(f"Cannot serialize {type(obj).__name__}")


def canonical_bytes(obj: object) -> Ok[bytes] | Err[str]:
    """Convert any domain value to canonical JSON bytes.

    Returns Err on unsupported types. Type names are part of the encoding,
    so renaming a dataclass changes every hash that covers it.
    """
    try:
        serializable = _to_serializable(obj)
    except TypeError as e:
        return Err(f"Unsupported type in canonical serialization: {e}")
    return Ok(_dumps(serializable).encode("utf-8"))


def content_hash(obj: object) -> Ok[str] | Err[str]:
    """SHA-256 hex digest of canonical_bytes(obj)."""
    match canonical_bytes(obj):
        case Err() as e:
            return e
        case Ok(b):
            return Ok(hashlib.sha256(b).hexdigest())


def derive_seed(name: str) -> bytes:
    """Deterministic 32-byte seed from an identifier string."""
    return hashlib.sha256(name.encode("utf-8")).digest()
