# PATH: execution/__init__.py
"""
SEALEDARB execution layer.

This module contains the contract pipeline:
- path_validator: Swap path structure and venue checks
- profit_ledger: Realized profit verification and tracking
- commitments: Commit-reveal state machine and hash binding
- executor: Hop-by-hop swap execution and quoting
- guard: Reentrancy guard
- base: Shared contract shell (owner, pause, allowlist, admin)
- commit_reveal: Commit-reveal arbitrage contract
- flash_loan: Flash-loan arbitrage contract
"""

from execution.path_validator import SwapPathValidator
from execution.profit_ledger import ProfitLedger
from execution.commitments import (
    CommitmentRegistry,
    compute_commitment_hash,
)
from execution.executor import SwapExecutor
from execution.guard import ReentrancyGuard
from execution.base import (
    BaseArbitrage,
    VenueAllowlist,
    entrypoint,
    owner_only,
)
from execution.commit_reveal import CommitRevealArbitrage
from execution.flash_loan import (
    FlashLoanArbitrage,
    decode_callback_params,
    encode_callback_params,
)

__all__ = [
    # Pipeline
    "SwapPathValidator",
    "ProfitLedger",
    "CommitmentRegistry",
    "compute_commitment_hash",
    "SwapExecutor",
    "ReentrancyGuard",
    # Contracts
    "BaseArbitrage",
    "VenueAllowlist",
    "entrypoint",
    "owner_only",
    "CommitRevealArbitrage",
    "FlashLoanArbitrage",
    "decode_callback_params",
    "encode_callback_params",
]
