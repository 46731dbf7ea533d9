"""forwardledger.oracle — spot prices and the attestation service."""

from forwardledger.oracle.service import OracleAttestationService as OracleAttestationService
from forwardledger.oracle.service import build_oracle_view as build_oracle_view
from forwardledger.oracle.service import oracle_claim_predicate as oracle_claim_predicate
from forwardledger.oracle.spot import SpotPriceSnapshot as SpotPriceSnapshot
from forwardledger.oracle.spot import SpotPriceStore as SpotPriceStore
from forwardledger.oracle.spot import load_spot_prices as load_spot_prices
