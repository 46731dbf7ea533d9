"""Worker and client wiring for the forward maturity scheduler.

Usage::

    import asyncio
    from forwardledger.workflow.worker import run_worker

    asyncio.run(run_worker(initiator))
"""

from __future__ import annotations

import logging

from temporalio.client import Client, WorkflowHandle
from temporalio.worker import Worker

from forwardledger.contract.states import ForwardRecord
from forwardledger.infra.config import TemporalConfig
from forwardledger.infra.protocols import SettlementInitiator
from forwardledger.workflow.activities import MaturityActivities
from forwardledger.workflow.converter import FORWARD_DATA_CONVERTER
from forwardledger.workflow.maturity_workflow import ForwardMaturityWorkflow
from forwardledger.workflow.types import MaturityInput, MaturityResult

logger = logging.getLogger(__name__)


async def connect(config: TemporalConfig | None = None) -> Client:
    config = config or TemporalConfig()
    return await Client.connect(
        config.target_host, namespace=config.namespace,
        data_converter=FORWARD_DATA_CONVERTER,
    )


def build_worker(client: Client, initiator: SettlementInitiator, task_queue: str) -> Worker:
    activities = MaturityActivities(initiator)
    return Worker(
        client,
        task_queue=task_queue,
        workflows=[ForwardMaturityWorkflow],
        activities=[activities.request_settlement],
    )


async def run_worker(
    initiator: SettlementInitiator, config: TemporalConfig | None = None,
) -> None:
    """Connect to Temporal and run the worker until interrupted."""
    config = config or TemporalConfig()
    client = await connect(config)
    logger.info(
        "Starting maturity worker: host=%s namespace=%s queue=%s",
        config.target_host, config.namespace, config.task_queue,
    )
    await build_worker(client, initiator, config.task_queue).run()


async def schedule_maturity(
    client: Client, record: ForwardRecord, task_queue: str,
) -> WorkflowHandle[ForwardMaturityWorkflow, MaturityResult]:
    """Start the maturity workflow for a newly committed forward."""
    inp = MaturityInput.for_record(record)
    logger.info(
        "Scheduling settlement of %s at %s",
        record.linear_id.value, record.settlement_timestamp.isoformat(),
    )
    return await client.start_workflow(
        ForwardMaturityWorkflow.run, inp, id=inp.workflow_id, task_queue=task_queue,
    )
