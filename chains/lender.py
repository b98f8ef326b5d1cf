# PATH: chains/lender.py
"""
chains/lender.py - Single-asset flash lender (Aave V3 flashLoanSimple shape).

FLASH LOAN CONTRACT:
====================
  flash_loan_simple(receiver, asset, amount, params, initiator)
    1. transfer `amount` of `asset` to receiver
    2. receiver.execute_operation(caller=lender, asset, amount, premium,
                                  initiator, params) must return True
    3. pull amount + premium back from receiver via allowance
  Any failure in 1-3 rolls back the whole loan.

Premium = amount * premium_bps / 10_000 (9 bps by default).
====================
"""

from typing import TYPE_CHECKING, Any, Optional, Protocol

from core.constants import EventName, FLASH_LOAN_PREMIUM_BPS
from core.exceptions import ErrorCode, LedgerError
from core.logging import get_logger
from core.math import bps_of
from core.validators import normalize_address

if TYPE_CHECKING:
    from chains.ledger import Chain

logger = get_logger("sealedarb.lender")


class FlashLoanReceiver(Protocol):
    """Contract able to receive a flash loan."""

    address: str

    def execute_operation(
        self,
        caller: str,
        asset: str,
        amount: int,
        premium: int,
        initiator: str,
        params: Any,
    ) -> bool:
        ...


class FlashLender:
    """Pool lending its own balances for the duration of one call."""

    def __init__(
        self,
        chain: "Chain",
        premium_bps: int = FLASH_LOAN_PREMIUM_BPS,
        address: Optional[str] = None,
    ):
        self._chain = chain
        self.premium_bps = premium_bps
        self.address = normalize_address(address, "lender") if address else chain.new_address("lender")
        chain.deploy(self)

    def premium_for(self, amount: int) -> int:
        return bps_of(amount, self.premium_bps)

    def flash_loan_simple(
        self,
        receiver: FlashLoanReceiver,
        asset: str,
        amount: int,
        params: Any,
        initiator: str,
    ) -> int:
        """
        Lend `amount` of `asset` to receiver for one callback.

        Returns:
            Premium collected
        """
        asset = normalize_address(asset, "asset")
        tokens = self._chain.tokens
        premium = self.premium_for(amount)

        with self._chain.atomic():
            available = tokens.balance_of(asset, self.address)
            if available < amount:
                raise LedgerError(
                    ErrorCode.INSUFFICIENT_BALANCE,
                    f"Lender liquidity too low: {available} < {amount}",
                    details={"asset": asset, "available": available, "amount": amount},
                )

            tokens.transfer(asset, self.address, receiver.address, amount)

            ok = receiver.execute_operation(
                caller=self.address,
                asset=asset,
                amount=amount,
                premium=premium,
                initiator=initiator,
                params=params,
            )
            if not ok:
                raise LedgerError(
                    ErrorCode.LENDER_CALLBACK_FAILED,
                    "Flash loan receiver returned false",
                    details={"receiver": receiver.address},
                )

            tokens.transfer_from(
                asset,
                spender=self.address,
                owner=receiver.address,
                to=self.address,
                amount=amount + premium,
            )
            self._chain.emit(
                EventName.FLASH_LOAN,
                self.address,
                receiver=receiver.address,
                initiator=initiator,
                asset=asset,
                amount=amount,
                premium=premium,
            )

        logger.debug(
            "Flash loan repaid",
            extra={"context": {"asset": asset, "amount": amount, "premium": premium}},
        )
        return premium
