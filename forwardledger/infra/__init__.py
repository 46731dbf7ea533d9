"""forwardledger.infra — collaborator protocols, in-memory doubles, configuration."""

from forwardledger.infra.config import TASK_QUEUE as TASK_QUEUE
from forwardledger.infra.config import ForwardConfig as ForwardConfig
from forwardledger.infra.config import TemporalConfig as TemporalConfig
from forwardledger.infra.config import configure_logging as configure_logging
from forwardledger.infra.config import load_config as load_config
from forwardledger.infra.memory_adapter import InMemoryFinalityService as InMemoryFinalityService
from forwardledger.infra.memory_adapter import InMemoryRecordVault as InMemoryRecordVault
from forwardledger.infra.memory_adapter import (
    InMemorySettlementInitiator as InMemorySettlementInitiator,
)
from forwardledger.infra.protocols import FinalityService as FinalityService
from forwardledger.infra.protocols import RecordVault as RecordVault
from forwardledger.infra.protocols import SettlementInitiator as SettlementInitiator
