"""Activity implementations for the forward maturity workflow.

Activities are thin IO wrappers around a SettlementInitiator. Domain
rejections come back as values in SettlementRequestOutput and are not
retried; only unexpected exceptions reach Temporal's retry policy.
"""

from __future__ import annotations

from temporalio import activity

from forwardledger.core.result import Err, Ok
from forwardledger.infra.protocols import SettlementInitiator
from forwardledger.workflow.types import MaturityInput, SettlementRequestOutput


class MaturityActivities:
    """Activities bound to the node's settlement initiator."""

    def __init__(self, initiator: SettlementInitiator) -> None:
        self._initiator = initiator

    @activity.defn(name="request_settlement")
    async def request_settlement(self, inp: MaturityInput) -> SettlementRequestOutput:
        """Build, sign and commit the settlement of a matured forward.

        Timeout: 60s | Retries: 3 on exceptions only
        Idempotent: yes (a second commit of the same input is a double
        spend and comes back as an error value)
        """
        activity.logger.info(
            "Requesting %s settlement of forward %s",
            inp.settlement_type.value, inp.linear_id.value,
        )
        match await self._initiator.settle(inp.linear_id):
            case Err(e):
                activity.logger.warning(
                    "Settlement of %s failed: %s %s", inp.linear_id.value, e.code, e.message,
                )
                return SettlementRequestOutput(error=e.message, error_code=e.code)
            case Ok(tx_id):
                return SettlementRequestOutput(tx_id=tx_id)
