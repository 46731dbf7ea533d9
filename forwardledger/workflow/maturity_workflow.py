"""Durable workflow that settles a forward at maturity.

Steps: sleep until the settlement timestamp -> request settlement.
The contract itself holds no timer. This workflow is the external
scheduler that wakes at the settlement timestamp and drives the
validator-gated settlement path.

Determinism contract: NO I/O, NO randomness, NO system clock access
(workflow.now() only). All external interaction goes through activities.
"""

from __future__ import annotations

import asyncio
from datetime import timedelta

from temporalio import workflow
from temporalio.common import RetryPolicy

with workflow.unsafe.imports_passed_through():
    from forwardledger.core.types import UtcDatetime
    from forwardledger.workflow.activities import MaturityActivities
    from forwardledger.workflow.types import (
        MaturityInput,
        MaturityOutcome,
        MaturityResult,
    )

SETTLEMENT_TIMEOUT: timedelta = timedelta(seconds=60)

SETTLEMENT_RETRY = RetryPolicy(
    initial_interval=timedelta(seconds=2),
    backoff_coefficient=2.0,
    maximum_interval=timedelta(seconds=30),
    maximum_attempts=3,
)


def _workflow_utc_now() -> UtcDatetime:
    """Replay-safe UTC timestamp from Temporal's logical clock."""
    return UtcDatetime(value=workflow.now())


@workflow.defn(name="ForwardMaturity")
class ForwardMaturityWorkflow:
    """Every scheduled forward reaches exactly one terminal outcome."""

    def __init__(self) -> None:
        self._status: str = "SCHEDULED"

    @workflow.query
    def get_status(self) -> str:
        return self._status

    @workflow.run
    async def run(self, inp: MaturityInput) -> MaturityResult:
        delay = inp.settlement_timestamp.value - workflow.now()
        if delay > timedelta(0):
            self._status = "WAITING"
            workflow.logger.info(
                "Forward %s matures in %s", inp.linear_id.value, delay,
            )
            await asyncio.sleep(delay.total_seconds())

        self._status = "SETTLING"
        out = await workflow.execute_activity_method(
            MaturityActivities.request_settlement,
            inp,
            start_to_close_timeout=SETTLEMENT_TIMEOUT,
            retry_policy=SETTLEMENT_RETRY,
        )

        if out.error is not None:
            self._status = "FAILED"
            return MaturityResult(
                linear_id=inp.linear_id,
                outcome=MaturityOutcome.FAILED,
                settled_at=_workflow_utc_now(),
                reason=out.error,
            )
        self._status = "SETTLED"
        return MaturityResult(
            linear_id=inp.linear_id,
            outcome=MaturityOutcome.SETTLED,
            settled_at=_workflow_utc_now(),
            tx_id=out.tx_id,
        )
