"""forwardledger.core — public API for all core types."""

from forwardledger.core.errors import (
    AttestationViolation as AttestationViolation,
)
from forwardledger.core.errors import (
    AuthorizationViolation as AuthorizationViolation,
)
from forwardledger.core.errors import (
    ContractViolation as ContractViolation,
)
from forwardledger.core.errors import (
    FieldViolation as FieldViolation,
)
from forwardledger.core.errors import (
    ForwardError as ForwardError,
)
from forwardledger.core.errors import (
    InvariantViolation as InvariantViolation,
)
from forwardledger.core.errors import (
    PersistenceError as PersistenceError,
)
from forwardledger.core.errors import (
    ShapeViolation as ShapeViolation,
)
from forwardledger.core.errors import (
    UnrecognizedCommand as UnrecognizedCommand,
)
from forwardledger.core.errors import (
    ValidationError as ValidationError,
)
from forwardledger.core.keys import KeyPair as KeyPair
from forwardledger.core.keys import PublicKey as PublicKey
from forwardledger.core.keys import TransactionSignature as TransactionSignature
from forwardledger.core.keys import new_privacy_salt as new_privacy_salt
from forwardledger.core.money import FORWARD_DECIMAL_CONTEXT as FORWARD_DECIMAL_CONTEXT
from forwardledger.core.money import Money as Money
from forwardledger.core.money import NonEmptyStr as NonEmptyStr
from forwardledger.core.money import truncate_to_minor_unit as truncate_to_minor_unit
from forwardledger.core.party import Party as Party
from forwardledger.core.result import Err as Err
from forwardledger.core.result import Ok as Ok
from forwardledger.core.result import Result as Result
from forwardledger.core.result import first_err as first_err
from forwardledger.core.result import unwrap as unwrap
from forwardledger.core.serialization import canonical_bytes as canonical_bytes
from forwardledger.core.serialization import content_hash as content_hash
from forwardledger.core.serialization import derive_seed as derive_seed
from forwardledger.core.types import FrozenMap as FrozenMap
from forwardledger.core.types import UtcDatetime as UtcDatetime
