# PATH: core/exceptions.py
"""
Typed exceptions for SEALEDARB.

Every failure carries an ErrorCode so callers can tell failures apart
without parsing messages. Subclasses follow the failure taxonomy:

- PathError: malformed swap path (structural)
- TimingError: too recent, expired, stale deadline (temporal)
- ProfitError: profit below floor, venue output short (economic)
- LedgerError: balances, allowances, lender repayment
- AuthorizationError: unapproved venue, wrong committer, wrong lender
- CommitmentError: commitment lifecycle lookups
- ReentrancyError: reentrant entry while a call is in flight
- ConfigError: invalid configuration

A failed commitment lookup is always COMMITMENT_NOT_FOUND, whether the hash
was never committed, the parameters differ, or the caller is not the
committer. There is no separate "wrong hash" code. INVALID_BYTES32 is an
input-shape failure for values that cannot be 32 bytes at all.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Canonical error codes."""
    # Path structure
    EMPTY_PATH = "EMPTY_PATH"
    PATH_TOO_LONG = "PATH_TOO_LONG"
    ASSET_MISMATCH_START = "ASSET_MISMATCH_START"
    ASSET_MISMATCH_END = "ASSET_MISMATCH_END"
    DISCONTINUOUS_PATH = "DISCONTINUOUS_PATH"
    INSUFFICIENT_SLIPPAGE_PROTECTION = "INSUFFICIENT_SLIPPAGE_PROTECTION"

    # Timing
    COMMITMENT_TOO_RECENT = "COMMITMENT_TOO_RECENT"
    COMMITMENT_EXPIRED = "COMMITMENT_EXPIRED"
    INVALID_DEADLINE = "INVALID_DEADLINE"
    TRANSACTION_TOO_OLD = "TRANSACTION_TOO_OLD"

    # Economic
    INSUFFICIENT_PROFIT = "INSUFFICIENT_PROFIT"
    INSUFFICIENT_OUTPUT = "INSUFFICIENT_OUTPUT"
    VENUE_OUTPUT_MISMATCH = "VENUE_OUTPUT_MISMATCH"
    VENUE_REVERTED = "VENUE_REVERTED"
    INVALID_AMOUNT = "INVALID_AMOUNT"

    # Ledger
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    INSUFFICIENT_ALLOWANCE = "INSUFFICIENT_ALLOWANCE"
    LENDER_CALLBACK_FAILED = "LENDER_CALLBACK_FAILED"

    # Authorization
    UNAUTHORIZED_VENUE = "UNAUTHORIZED_VENUE"
    UNAUTHORIZED_COMMITTER = "UNAUTHORIZED_COMMITTER"
    INVALID_LENDER_CALLER = "INVALID_LENDER_CALLER"
    INVALID_LENDER_INITIATOR = "INVALID_LENDER_INITIATOR"
    NOT_OWNER = "NOT_OWNER"
    NOT_PENDING_OWNER = "NOT_PENDING_OWNER"
    CONTRACT_PAUSED = "CONTRACT_PAUSED"
    VENUE_ALREADY_APPROVED = "VENUE_ALREADY_APPROVED"
    VENUE_NOT_APPROVED = "VENUE_NOT_APPROVED"

    # Commitments
    COMMITMENT_NOT_FOUND = "COMMITMENT_NOT_FOUND"
    COMMITMENT_ALREADY_EXISTS = "COMMITMENT_ALREADY_EXISTS"
    COMMITMENT_NOT_EXPIRED = "COMMITMENT_NOT_EXPIRED"

    # Concurrency
    REENTRANT_CALL = "REENTRANT_CALL"

    # Input / config
    INVALID_ADDRESS = "INVALID_ADDRESS"
    INVALID_BYTES32 = "INVALID_BYTES32"
    INVALID_SWAP_DEADLINE = "INVALID_SWAP_DEADLINE"
    INVALID_MINIMUM_PROFIT = "INVALID_MINIMUM_PROFIT"
    INVALID_CONFIG = "INVALID_CONFIG"


class SealedArbError(Exception):
    """Base exception for SEALEDARB."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def __str__(self):
        return f"[{self.code.value}] {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for logs and CLI output."""
        return {
            "error_code": self.code.value,
            "error_type": type(self).__name__,
            "message": self.message,
            "details": self.details,
        }


class PathError(SealedArbError):
    """Swap path is structurally invalid."""
    pass


class TimingError(SealedArbError):
    """Call is too early, too late, or carries a stale deadline."""
    pass


class ProfitError(SealedArbError):
    """Execution did not produce enough output or profit."""
    pass


class LedgerError(SealedArbError):
    """Token balance, allowance, or lender repayment failure."""
    pass


class VenueRevertError(ProfitError):
    """A venue rejected the swap."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(ErrorCode.VENUE_REVERTED, message, details)


class AuthorizationError(SealedArbError):
    """Caller or venue is not allowed to perform the action."""
    pass


class CommitmentError(SealedArbError):
    """Commitment lookup or lifecycle failure."""
    pass


class ReentrancyError(SealedArbError):
    """Entry point re-entered while a call is in flight."""

    def __init__(self, message: str = "Reentrant call rejected", details: Optional[Dict[str, Any]] = None):
        super().__init__(ErrorCode.REENTRANT_CALL, message, details)


class ConfigError(SealedArbError):
    """Configuration value is invalid."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(ErrorCode.INVALID_CONFIG, message, details)
