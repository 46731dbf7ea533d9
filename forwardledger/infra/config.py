"""Runtime configuration for a forward ledger node.

Pure configuration data with defaults. load_config reads FORWARD_*
environment variables; anything unset keeps its default. Secrets (key
seeds) are never part of the config.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import final

from forwardledger.contract.context import SettlementMode, ValidationPolicy
from forwardledger.core.errors import FieldViolation, ValidationError
from forwardledger.core.keys import PublicKey
from forwardledger.core.result import Err, Ok
from forwardledger.core.types import UtcDatetime

TASK_QUEUE: str = "forward-maturity"

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_LOG_LEVELS: frozenset[str] = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})
_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off"})


@final
@dataclass(frozen=True, slots=True)
class TemporalConfig:
    """Connection settings for the maturity scheduler's Temporal client."""

    target_host: str = "localhost:7233"
    namespace: str = "default"
    task_queue: str = TASK_QUEUE


@final
@dataclass(frozen=True, slots=True)
class ForwardConfig:
    temporal: TemporalConfig = field(default_factory=TemporalConfig)
    policy: ValidationPolicy = field(default_factory=ValidationPolicy)
    oracle_key: PublicKey | None = None
    log_level: str = "INFO"


def _flag(
    env: Mapping[str, str], name: str, default: bool, violations: list[FieldViolation],
) -> bool:
    raw = env.get(name)
    if raw is None:
        return default
    if raw.lower() in _TRUE:
        return True
    if raw.lower() in _FALSE:
        return False
    violations.append(FieldViolation(name, "must be a boolean", raw))
    return default


def load_config(env: Mapping[str, str] | None = None) -> Ok[ForwardConfig] | Err[ValidationError]:
    """Build a ForwardConfig from environment variables.

    FORWARD_TEMPORAL_HOST, FORWARD_TEMPORAL_NAMESPACE, FORWARD_TASK_QUEUE,
    FORWARD_REQUIRE_FUTURE_SETTLEMENT, FORWARD_SETTLEMENT_MODE
    (partial_allowed | full_only), FORWARD_ORACLE_KEY (hex Ed25519 public
    key), FORWARD_LOG_LEVEL.
    """
    env = os.environ if env is None else env
    violations: list[FieldViolation] = []

    defaults = TemporalConfig()
    temporal = TemporalConfig(
        target_host=env.get("FORWARD_TEMPORAL_HOST", defaults.target_host),
        namespace=env.get("FORWARD_TEMPORAL_NAMESPACE", defaults.namespace),
        task_queue=env.get("FORWARD_TASK_QUEUE", defaults.task_queue),
    )

    require_future = _flag(env, "FORWARD_REQUIRE_FUTURE_SETTLEMENT", True, violations)

    mode = SettlementMode.PARTIAL_ALLOWED
    raw_mode = env.get("FORWARD_SETTLEMENT_MODE")
    if raw_mode is not None:
        try:
            mode = SettlementMode(raw_mode.lower())
        except ValueError:
            violations.append(FieldViolation(
                "FORWARD_SETTLEMENT_MODE",
                f"must be one of {sorted(m.value for m in SettlementMode)}",
                raw_mode,
            ))

    oracle_key: PublicKey | None = None
    raw_key = env.get("FORWARD_ORACLE_KEY")
    if raw_key:
        match PublicKey.parse(raw_key):
            case Err(e):
                violations.append(FieldViolation("FORWARD_ORACLE_KEY", e, raw_key))
            case Ok(k):
                oracle_key = k

    log_level = env.get("FORWARD_LOG_LEVEL", "INFO").upper()
    if log_level not in _LOG_LEVELS:
        violations.append(FieldViolation(
            "FORWARD_LOG_LEVEL", f"must be one of {sorted(_LOG_LEVELS)}", log_level,
        ))

    if violations:
        return Err(ValidationError(
            message=f"Invalid configuration: {len(violations)} field(s)",
            code="INVALID_CONFIG",
            timestamp=UtcDatetime.now(),
            source="infra.config.load_config",
            fields=tuple(violations),
        ))
    return Ok(ForwardConfig(
        temporal=temporal,
        policy=ValidationPolicy(
            require_future_settlement=require_future, settlement_mode=mode,
        ),
        oracle_key=oracle_key,
        log_level=log_level,
    ))


def configure_logging(level: str = "INFO") -> None:
    """Root handler for processes started from the command line."""
    logging.basicConfig(level=level, format=_LOG_FORMAT)
    logging.getLogger("forwardledger").setLevel(level)
