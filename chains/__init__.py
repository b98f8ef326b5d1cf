"""
chains/ - Simulated host chain.

Modules:
- ledger: Block height, clock, event log, atomic transactions
- tokens: ERC20-style balances and allowances
- venues: Liquidity venues (fixed-rate router)
- lender: Single-asset flash lender
"""

from chains.ledger import (
    Chain,
    Stateful,
)
from chains.tokens import (
    TokenInfo,
    TokenLedger,
)
from chains.venues import (
    RateVenue,
    Venue,
)
from chains.lender import (
    FlashLender,
    FlashLoanReceiver,
)

__all__ = [
    # Ledger
    "Chain",
    "Stateful",
    # Tokens
    "TokenInfo",
    "TokenLedger",
    # Venues
    "RateVenue",
    "Venue",
    # Lender
    "FlashLender",
    "FlashLoanReceiver",
]
