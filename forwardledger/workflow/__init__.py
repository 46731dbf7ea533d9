"""forwardledger.workflow — Temporal maturity scheduler for forwards."""

from forwardledger.workflow.activities import MaturityActivities as MaturityActivities
from forwardledger.workflow.converter import FORWARD_DATA_CONVERTER as FORWARD_DATA_CONVERTER
from forwardledger.workflow.maturity_workflow import (
    ForwardMaturityWorkflow as ForwardMaturityWorkflow,
)
from forwardledger.workflow.types import MaturityInput as MaturityInput
from forwardledger.workflow.types import MaturityOutcome as MaturityOutcome
from forwardledger.workflow.types import MaturityResult as MaturityResult
from forwardledger.workflow.types import SettlementRequestOutput as SettlementRequestOutput
from forwardledger.workflow.worker import build_worker as build_worker
from forwardledger.workflow.worker import run_worker as run_worker
from forwardledger.workflow.worker import schedule_maturity as schedule_maturity
