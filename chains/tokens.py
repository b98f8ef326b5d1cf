# PATH: chains/tokens.py
"""
chains/tokens.py - ERC20-style token balances and allowances.

All tokens on the simulated chain live in one ledger keyed by token address.
Balances and allowances are covered by Chain.atomic().
"""

import copy
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple

from core.constants import EventName
from core.exceptions import ErrorCode, LedgerError
from core.validators import normalize_address, require_uint

if TYPE_CHECKING:
    from chains.ledger import Chain


@dataclass(frozen=True)
class TokenInfo:
    """Token metadata."""
    address: str
    symbol: str
    decimals: int = 18


class TokenLedger:
    """
    Balances and allowances for every token on the chain.

    Any address can be used as a token; unknown tokens simply have zero
    balances. create_token() registers metadata for display.
    """

    def __init__(self, chain: "Chain"):
        self._chain = chain
        self._tokens: Dict[str, TokenInfo] = {}
        self._balances: Dict[str, Dict[str, int]] = {}
        self._allowances: Dict[Tuple[str, str, str], int] = {}
        chain.register(self)

    # Stateful protocol

    def snapshot_state(self) -> Any:
        return (copy.deepcopy(self._balances), dict(self._allowances))

    def restore_state(self, snapshot: Any) -> None:
        balances, allowances = snapshot
        self._balances = balances
        self._allowances = allowances

    # -------------------------------------------------------------------------
    # Metadata
    # -------------------------------------------------------------------------

    def create_token(self, symbol: str, decimals: int = 18, address: Optional[str] = None) -> str:
        """Register a token and return its address."""
        token = normalize_address(address, "token") if address else self._chain.new_address(f"token:{symbol}")
        self._tokens[token] = TokenInfo(address=token, symbol=symbol, decimals=decimals)
        return token

    def info(self, token: str) -> Optional[TokenInfo]:
        return self._tokens.get(normalize_address(token, "token"))

    def symbol_of(self, token: str) -> str:
        info = self.info(token)
        return info.symbol if info else token

    def decimals_of(self, token: str) -> int:
        info = self.info(token)
        return info.decimals if info else 18

    # -------------------------------------------------------------------------
    # Balances
    # -------------------------------------------------------------------------

    def balance_of(self, token: str, holder: str) -> int:
        token = normalize_address(token, "token")
        holder = normalize_address(holder, "holder")
        return self._balances.get(token, {}).get(holder, 0)

    def mint(self, token: str, to: str, amount: int) -> None:
        token = normalize_address(token, "token")
        to = normalize_address(to, "to")
        require_uint(amount)
        holders = self._balances.setdefault(token, {})
        holders[to] = holders.get(to, 0) + amount

    def transfer(self, token: str, sender: str, to: str, amount: int) -> None:
        """Move `amount` of `token` from sender to `to`."""
        token = normalize_address(token, "token")
        sender = normalize_address(sender, "sender")
        to = normalize_address(to, "to")
        require_uint(amount)

        holders = self._balances.setdefault(token, {})
        balance = holders.get(sender, 0)
        if balance < amount:
            raise LedgerError(
                ErrorCode.INSUFFICIENT_BALANCE,
                f"Insufficient {self.symbol_of(token)} balance: {balance} < {amount}",
                details={"token": token, "holder": sender, "balance": balance, "amount": amount},
            )

        holders[sender] = balance - amount
        holders[to] = holders.get(to, 0) + amount
        self._chain.emit(EventName.TRANSFER, token, sender=sender, to=to, amount=amount)

    # -------------------------------------------------------------------------
    # Allowances
    # -------------------------------------------------------------------------

    def allowance(self, token: str, owner: str, spender: str) -> int:
        key = (
            normalize_address(token, "token"),
            normalize_address(owner, "owner"),
            normalize_address(spender, "spender"),
        )
        return self._allowances.get(key, 0)

    def approve(self, token: str, owner: str, spender: str, amount: int) -> None:
        """Set spender's allowance over owner's tokens (overwrites)."""
        key = (
            normalize_address(token, "token"),
            normalize_address(owner, "owner"),
            normalize_address(spender, "spender"),
        )
        require_uint(amount)
        self._allowances[key] = amount
        self._chain.emit(EventName.APPROVAL, key[0], owner=key[1], spender=key[2], amount=amount)

    def transfer_from(self, token: str, spender: str, owner: str, to: str, amount: int) -> None:
        """Spend allowance to move owner's tokens."""
        current = self.allowance(token, owner, spender)
        if current < amount:
            raise LedgerError(
                ErrorCode.INSUFFICIENT_ALLOWANCE,
                f"Insufficient allowance: {current} < {amount}",
                details={"token": token, "owner": owner, "spender": spender, "allowance": current},
            )
        self.transfer(token, owner, to, amount)
        key = (
            normalize_address(token, "token"),
            normalize_address(owner, "owner"),
            normalize_address(spender, "spender"),
        )
        self._allowances[key] = current - amount
