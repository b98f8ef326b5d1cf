# PATH: execution/flash_loan.py
"""
Flash-loan arbitrage contract.

BORROW / REPAY CONTRACT:
========================
execute_arbitrage(sender, asset, amount_in, path, min_profit, deadline)
  amount_in == 0          -> INVALID_AMOUNT
  deadline < now          -> TRANSACTION_TOO_OLD
  validate path           -> PathError / UNAUTHORIZED_VENUE
  lender.flash_loan_simple(self, asset, amount_in, params, initiator=self)
    execute_operation(caller, asset, amount, premium, initiator, params)
      caller != lender    -> INVALID_LENDER_CALLER
      initiator != self   -> INVALID_LENDER_INITIATOR
      run swaps, verify profit with fee = premium
      approve amount + premium to the lender
  emit ArbitrageExecuted(asset, amount, profit)

The callback params are the ABI encoding of (swap_path, min_profit,
deadline), decoded with eth-abi inside the callback.
========================
"""

from typing import Any, Optional, Sequence, Tuple

from eth_abi import decode, encode

from chains.ledger import Chain
from chains.lender import FlashLender
from config.settings import ArbitrageConfig
from core.constants import EventName, ExecutionMode
from core.exceptions import AuthorizationError, ErrorCode, ProfitError, TimingError
from core.logging import log_execution
from core.models import SwapHop, SwapPath, as_swap_path
from core.validators import normalize_address, require_uint
from execution.base import BaseArbitrage, entrypoint
from execution.profit_ledger import ProfitLedger

CALLBACK_PARAMS_ABI_TYPES = ["(address,address,address,uint256)[]", "uint256", "uint256"]


def encode_callback_params(path: Sequence[SwapHop], min_profit: int, deadline: int) -> bytes:
    return encode(
        CALLBACK_PARAMS_ABI_TYPES,
        [[hop.as_abi_tuple() for hop in path], min_profit, deadline],
    )


def decode_callback_params(data: bytes) -> Tuple[SwapPath, int, int]:
    raw_path, min_profit, deadline = decode(CALLBACK_PARAMS_ABI_TYPES, data)
    path = as_swap_path(
        SwapHop(venue=venue, token_in=token_in, token_out=token_out, minimum_out=minimum_out)
        for venue, token_in, token_out, minimum_out in raw_path
    )
    return path, min_profit, deadline


class FlashLoanArbitrage(BaseArbitrage):
    """Arbitrage funded by a single-asset flash loan repaid in the same call."""

    def __init__(
        self,
        chain: Chain,
        owner: str,
        lender: FlashLender,
        config: Optional[ArbitrageConfig] = None,
        name: str = "flash_loan",
    ):
        super().__init__(chain, owner, config=config, name=name)
        self.lender = lender

    @entrypoint()
    def execute_arbitrage(
        self,
        sender: str,
        asset: str,
        amount_in: int,
        path: Sequence[SwapHop],
        min_profit: int,
        deadline: int,
    ) -> int:
        """
        Borrow `amount_in` of `asset`, run the path and repay with premium.

        Returns:
            Realized profit, net of the premium
        """
        asset = normalize_address(asset, "asset")
        if require_uint(amount_in, "amount_in") == 0:
            raise ProfitError(ErrorCode.INVALID_AMOUNT, "Amount must be positive")
        if deadline < self.chain.timestamp:
            raise TimingError(
                ErrorCode.TRANSACTION_TOO_OLD,
                "Deadline has passed",
                details={"deadline": deadline, "timestamp": self.chain.timestamp},
            )

        path = as_swap_path(path)
        self.validator.validate(asset, path)

        before = self.profits.total_profit
        premium = self.lender.flash_loan_simple(
            self,
            asset,
            amount_in,
            encode_callback_params(path, require_uint(min_profit, "min_profit"), deadline),
            initiator=self.address,
        )
        profit = self.profits.total_profit - before

        self.chain.emit(
            EventName.ARBITRAGE_EXECUTED,
            self.address,
            asset=asset,
            amount=amount_in,
            profit=profit,
        )
        log_execution(
            self.logger,
            ExecutionMode.FLASH_LOAN.value,
            asset,
            amount_in,
            profit,
            len(path),
            premium=premium,
        )
        return profit

    def execute_operation(
        self,
        caller: str,
        asset: str,
        amount: int,
        premium: int,
        initiator: str,
        params: Any,
    ) -> bool:
        """Lender callback. Holds the borrowed funds for its duration."""
        if normalize_address(caller, "caller") != self.lender.address:
            raise AuthorizationError(
                ErrorCode.INVALID_LENDER_CALLER,
                "Callback not sent by the flash lender",
                details={"caller": caller},
            )
        if normalize_address(initiator, "initiator") != self.address:
            raise AuthorizationError(
                ErrorCode.INVALID_LENDER_INITIATOR,
                "Flash loan not initiated by this contract",
                details={"initiator": initiator},
            )
        if amount == 0:
            raise ProfitError(ErrorCode.INVALID_AMOUNT, "Amount must be positive")

        path, min_profit, deadline = decode_callback_params(params)
        if deadline < self.chain.timestamp:
            raise TimingError(
                ErrorCode.TRANSACTION_TOO_OLD,
                "Deadline has passed",
                details={"deadline": deadline, "timestamp": self.chain.timestamp},
            )

        asset = normalize_address(asset, "asset")
        with self.chain.atomic():
            self._execute_and_verify(asset, amount, path, min_profit, deadline, fee=premium)
            self.chain.tokens.approve(asset, self.address, self.lender.address, amount + premium)
        return True

    def calculate_expected_profit(
        self, asset: str, amount_in: int, path: Sequence[SwapHop]
    ) -> Tuple[int, int]:
        """
        Quoted (profit, flash_loan_fee). Never raises.

        The fee is reported even when the path is invalid.
        """
        fee = self.lender.premium_for(amount_in) if isinstance(amount_in, int) and amount_in > 0 else 0
        quoted = self.executor.quote(asset, amount_in, path)
        if quoted == 0:
            return 0, fee
        return ProfitLedger.project(amount_in, quoted, fee), fee
