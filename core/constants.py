# PATH: core/constants.py
"""
Constants for SEALEDARB.

Protocol limits and defaults. Runtime-tunable values are loaded through
config/settings.py; the values here are the fallbacks and hard bounds.
"""

from enum import Enum
from typing import Final

# =============================================================================
# COMMIT-REVEAL WINDOW (in blocks)
# =============================================================================

# Reveal must land at least this many blocks after the commit
MIN_DELAY_BLOCKS: Final[int] = 1

# Commitments older than this many blocks are expired
MAX_COMMIT_AGE_BLOCKS: Final[int] = 10

# =============================================================================
# SWAP LIMITS
# =============================================================================

MAX_SWAP_HOPS: Final[int] = 5

# Seconds
MAX_SWAP_DEADLINE: Final[int] = 600
DEFAULT_SWAP_DEADLINE: Final[int] = 300

# =============================================================================
# FLASH LOANS
# =============================================================================

BPS_DENOMINATOR: Final[int] = 10_000

# Aave V3 flash loan premium
FLASH_LOAN_PREMIUM_BPS: Final[int] = 9

# =============================================================================
# HOST LEDGER
# =============================================================================

ZERO_ADDRESS: Final[str] = "0x" + "00" * 20

DEFAULT_BLOCK_TIME_SECONDS: Final[int] = 12
GENESIS_TIMESTAMP: Final[int] = 1_700_000_000

# Rate scale used by fixed-rate venues: amount_out = amount_in * rate / RATE_SCALE
RATE_SCALE: Final[int] = 10 ** 18


class ExecutionMode(str, Enum):
    """How an arbitrage is funded."""
    COMMIT_REVEAL = "commit-reveal"
    FLASH_LOAN = "flash-loan"


class EventName(str, Enum):
    """Canonical event names written to the chain log."""
    COMMITTED = "Committed"
    COMMIT_CANCELLED = "CommitCancelled"
    COMMITMENT_RECOVERED = "CommitmentRecovered"
    EXPIRED_COMMITMENTS_CLEANED = "ExpiredCommitmentsCleaned"
    REVEALED = "Revealed"
    ARBITRAGE_EXECUTED = "ArbitrageExecuted"
    MINIMUM_PROFIT_UPDATED = "MinimumProfitUpdated"
    SWAP_DEADLINE_UPDATED = "SwapDeadlineUpdated"
    VENUE_ADDED = "VenueAdded"
    VENUE_REMOVED = "VenueRemoved"
    PAUSED = "Paused"
    UNPAUSED = "Unpaused"
    OWNERSHIP_TRANSFER_STARTED = "OwnershipTransferStarted"
    OWNERSHIP_TRANSFERRED = "OwnershipTransferred"
    TOKEN_WITHDRAWN = "TokenWithdrawn"
    TRANSFER = "Transfer"
    APPROVAL = "Approval"
    FLASH_LOAN = "FlashLoan"
