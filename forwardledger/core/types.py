"""Core types: UtcDatetime, FrozenMap."""

from __future__ import annotations

from bisect import bisect_left
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, ClassVar, final

from forwardledger.core.result import Err, Ok


@final
@dataclass(frozen=True, slots=True, order=True)
class UtcDatetime:
    """Timezone-aware UTC datetime. Naive datetimes are rejected."""

    value: datetime

    def __post_init__(self) -> None:
        if not isinstance(self.value, datetime):
            raise TypeError(f"UtcDatetime requires datetime, got {type(self.value).__name__}")
        if self.value.tzinfo is None:
            raise TypeError("UtcDatetime requires timezone-aware datetime, got naive")

    @staticmethod
    def parse(raw: datetime) -> Ok[UtcDatetime] | Err[str]:
        """Parse a datetime, rejecting naive (no tzinfo) datetimes."""
        if raw.tzinfo is None:
            return Err("UtcDatetime requires timezone-aware datetime, got naive")
        return Ok(UtcDatetime(value=raw.astimezone(UTC)))

    @staticmethod
    def now() -> UtcDatetime:
        return UtcDatetime(value=datetime.now(tz=UTC))

    def isoformat(self) -> str:
        return self.value.astimezone(UTC).isoformat()


@final
@dataclass(frozen=True, slots=True)
class FrozenMap[K, V]:
    """Immutable sorted mapping with deterministic iteration.

    Entries are a sorted tuple of (key, value) pairs; lookups bisect on
    the key column.
    """

    _entries: tuple[tuple[K, V], ...]

    EMPTY: ClassVar[FrozenMap[Any, Any]]

    @staticmethod
    def create(items: dict[K, V] | Iterable[tuple[K, V]]) -> Ok[FrozenMap[K, V]] | Err[str]:
        """Build from a dict or (key, value) pairs. Duplicate keys: last wins."""
        d = items if isinstance(items, dict) else dict(items)
        try:
            entries = tuple(sorted(d.items(), key=lambda kv: kv[0]))
        except TypeError as e:
            return Err(f"FrozenMap keys must be comparable: {e}")
        return Ok(FrozenMap(_entries=entries))

    def _index(self, key: K) -> int | None:
        try:
            i = bisect_left(self._entries, key, key=lambda kv: kv[0])
        except TypeError:
            return None
        if i < len(self._entries) and self._entries[i][0] == key:
            return i
        return None

    def get(self, key: K, default: V | None = None) -> V | None:
        i = self._index(key)
        return default if i is None else self._entries[i][1]

    def __getitem__(self, key: K) -> V:
        i = self._index(key)
        if i is None:
            raise KeyError(key)
        return self._entries[i][1]

    def __contains__(self, key: object) -> bool:
        return self._index(key) is not None  # type: ignore[arg-type]

    def __iter__(self) -> Iterator[K]:
        return (k for k, _ in self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def items(self) -> tuple[tuple[K, V], ...]:
        return self._entries

    def merged(self, other: Iterable[tuple[K, V]]) -> Ok[FrozenMap[K, V]] | Err[str]:
        """New map with other's entries layered on top of this one."""
        d = dict(self._entries)
        d.update(other)
        return FrozenMap.create(d)


FrozenMap.EMPTY = FrozenMap(_entries=())
