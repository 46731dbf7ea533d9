"""forwardledger.contract — forward records, commands and the validator."""

from forwardledger.contract.calculator import SettlementObligation as SettlementObligation
from forwardledger.contract.calculator import compute_owed as compute_owed
from forwardledger.contract.commands import Command as Command
from forwardledger.contract.commands import CommandTag as CommandTag
from forwardledger.contract.commands import Create as Create
from forwardledger.contract.commands import ForwardCommand as ForwardCommand
from forwardledger.contract.commands import OracleCommand as OracleCommand
from forwardledger.contract.commands import Settle as Settle
from forwardledger.contract.commands import SettleCash as SettleCash
from forwardledger.contract.commands import SettlePhysical as SettlePhysical
from forwardledger.contract.commands import SpotPrice as SpotPrice
from forwardledger.contract.commands import command_tag as command_tag
from forwardledger.contract.context import SettlementMode as SettlementMode
from forwardledger.contract.context import ValidationContext as ValidationContext
from forwardledger.contract.context import ValidationPolicy as ValidationPolicy
from forwardledger.contract.proposal import CashTransfer as CashTransfer
from forwardledger.contract.proposal import Proposal as Proposal
from forwardledger.contract.signatures import SignedProposal as SignedProposal
from forwardledger.contract.signatures import required_signers as required_signers
from forwardledger.contract.signatures import verify_signatures as verify_signatures
from forwardledger.contract.states import AgreedAmount as AgreedAmount
from forwardledger.contract.states import FixedPrice as FixedPrice
from forwardledger.contract.states import ForwardRecord as ForwardRecord
from forwardledger.contract.states import LinearId as LinearId
from forwardledger.contract.states import Position as Position
from forwardledger.contract.states import PriceTerms as PriceTerms
from forwardledger.contract.states import SettlementType as SettlementType
from forwardledger.contract.validator import validate as validate
from forwardledger.contract.validator import verify_proposal as verify_proposal
