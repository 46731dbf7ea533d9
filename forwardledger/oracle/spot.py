"""Spot price store — the oracle's view of the market.

Prices are held in an immutable snapshot keyed by (instrument, as-of).
Updates build a new snapshot and swap it in under a lock, so a reader
that takes one snapshot for a whole attestation never sees a torn set.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import final

from dateutil.parser import isoparse

from forwardledger.contract.commands import SpotPrice
from forwardledger.core.errors import FieldViolation, ValidationError
from forwardledger.core.result import Err, Ok
from forwardledger.core.types import FrozenMap, UtcDatetime

logger = logging.getLogger(__name__)

type SpotKey = tuple[str, UtcDatetime]


@final
@dataclass(frozen=True, slots=True)
class SpotPriceSnapshot:
    """Immutable set of prices as of one version of the store."""

    prices: FrozenMap[SpotKey, Decimal]
    version: int = 0

    def lookup(self, instrument: str, as_of: UtcDatetime) -> Decimal | None:
        return self.prices.get((instrument, as_of))

    def __len__(self) -> int:
        return len(self.prices)


def _snapshot(
    entries: Iterable[SpotPrice], base: FrozenMap[SpotKey, Decimal], version: int,
) -> SpotPriceSnapshot:
    match base.merged((p.key, p.value) for p in entries):
        case Err(e):
            # keys are (str, UtcDatetime), so this only fires on a programming error
            raise TypeError(e)
        case Ok(prices):
            return SpotPriceSnapshot(prices=prices, version=version)


@final
class SpotPriceStore:
    """Read-mostly, thread-safe price table."""

    def __init__(self, prices: Iterable[SpotPrice] = ()) -> None:
        self._lock = threading.Lock()
        self._current = _snapshot(prices, FrozenMap.EMPTY, 0)

    def snapshot(self) -> SpotPriceSnapshot:
        with self._lock:
            return self._current

    def lookup(self, instrument: str, as_of: UtcDatetime) -> Decimal | None:
        return self.snapshot().lookup(instrument, as_of)

    def update(self, prices: Iterable[SpotPrice]) -> SpotPriceSnapshot:
        """Add or overwrite prices atomically."""
        with self._lock:
            self._current = _snapshot(prices, self._current.prices, self._current.version + 1)
            logger.info(
                "Spot prices updated: version=%d entries=%d",
                self._current.version, len(self._current),
            )
            return self._current

    def replace(self, prices: Iterable[SpotPrice]) -> SpotPriceSnapshot:
        """Swap in a whole new price set atomically."""
        with self._lock:
            self._current = _snapshot(prices, FrozenMap.EMPTY, self._current.version + 1)
            logger.info(
                "Spot prices replaced: version=%d entries=%d",
                self._current.version, len(self._current),
            )
            return self._current


# ---------------------------------------------------------------------------
# Feed parsing
# ---------------------------------------------------------------------------


def _parse_row(
    i: int, row: Mapping[str, str],
) -> Ok[SpotPrice] | Err[tuple[FieldViolation, ...]]:
    violations: list[FieldViolation] = []

    instrument = row.get("instrument", "")
    if not instrument:
        violations.append(FieldViolation(f"rows[{i}].instrument", "must be non-empty", ""))

    raw_as_of = row.get("as_of", "")
    as_of: datetime | None = None
    try:
        as_of = isoparse(raw_as_of)
    except (ValueError, OverflowError):
        violations.append(FieldViolation(f"rows[{i}].as_of", "must be ISO 8601", raw_as_of))
    if as_of is not None and as_of.tzinfo is None:
        violations.append(
            FieldViolation(f"rows[{i}].as_of", "must carry a UTC offset", raw_as_of),
        )

    raw_value = row.get("value", "")
    value: Decimal | None = None
    try:
        value = Decimal(raw_value)
    except InvalidOperation:
        violations.append(FieldViolation(f"rows[{i}].value", "must be a decimal", raw_value))
    if value is not None and not value.is_finite():
        violations.append(FieldViolation(f"rows[{i}].value", "must be finite", raw_value))

    if violations:
        return Err(tuple(violations))
    match SpotPrice.create(instrument, as_of, value):  # type: ignore[arg-type]
        case Err(e):
            return Err((FieldViolation(f"rows[{i}]", e, str(dict(row))),))
        case Ok(spot):
            return Ok(spot)


def load_spot_prices(
    rows: Iterable[Mapping[str, str]],
) -> Ok[tuple[SpotPrice, ...]] | Err[ValidationError]:
    """Parse feed rows {"instrument", "as_of", "value"} into SpotPrices.

    Values are parsed straight from their decimal text so no precision is
    lost before the settlement calculator truncates. Every bad field is
    reported, not just the first.
    """
    prices: list[SpotPrice] = []
    violations: list[FieldViolation] = []
    for i, row in enumerate(rows):
        match _parse_row(i, row):
            case Err(fields):
                violations.extend(fields)
            case Ok(spot):
                prices.append(spot)
    if violations:
        return Err(ValidationError(
            message=f"Spot price feed has {len(violations)} invalid field(s)",
            code="INVALID_SPOT_FEED",
            timestamp=UtcDatetime.now(),
            source="oracle.spot.load_spot_prices",
            fields=tuple(violations),
        ))
    return Ok(tuple(prices))
