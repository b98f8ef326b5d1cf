"""
core - Core utilities and models for SEALEDARB.

This package contains:
- models.py: Data models (SwapHop, RevealParameters, Commitment, Event)
- constants.py: Protocol limits, defaults and enums
- exceptions.py: Typed exceptions with error codes
- math.py: Integer wei arithmetic helpers
- validators.py: Address and amount validation
- logging.py: Structured JSON logging
"""

from core.constants import (
    EventName,
    ExecutionMode,
    MAX_COMMIT_AGE_BLOCKS,
    MAX_SWAP_DEADLINE,
    MAX_SWAP_HOPS,
    MIN_DELAY_BLOCKS,
)
from core.exceptions import (
    AuthorizationError,
    CommitmentError,
    ConfigError,
    ErrorCode,
    LedgerError,
    PathError,
    ProfitError,
    ReentrancyError,
    SealedArbError,
    TimingError,
    VenueRevertError,
)
from core.logging import get_logger, setup_logging
from core.models import (
    Commitment,
    Event,
    RevealParameters,
    SwapHop,
    SwapPath,
)

__all__ = [
    # Constants
    "EventName",
    "ExecutionMode",
    "MAX_COMMIT_AGE_BLOCKS",
    "MAX_SWAP_DEADLINE",
    "MAX_SWAP_HOPS",
    "MIN_DELAY_BLOCKS",
    # Exceptions
    "AuthorizationError",
    "CommitmentError",
    "ConfigError",
    "ErrorCode",
    "LedgerError",
    "PathError",
    "ProfitError",
    "ReentrancyError",
    "SealedArbError",
    "TimingError",
    "VenueRevertError",
    # Models
    "Commitment",
    "Event",
    "RevealParameters",
    "SwapHop",
    "SwapPath",
    # Logging
    "get_logger",
    "setup_logging",
]
