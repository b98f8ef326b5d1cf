# PATH: execution/profit_ledger.py
"""
Profit verification and tracking.

PROFIT CONTRACT:
================
  realized = end_balance - start_balance - fee
  floor    = max(caller_min_profit, minimum_profit)

  end_balance <= start_balance + fee  -> INSUFFICIENT_PROFIT (break-even or loss)
  realized < floor                    -> INSUFFICIENT_PROFIT
  otherwise total_profit += realized and realized is returned

total_profit never decreases. minimum_profit is owner-configured and applies
to every call, even when the caller asks for nothing.
================
"""

from typing import Any, Dict

from core.exceptions import ErrorCode, ProfitError
from core.validators import require_uint


class ProfitLedger:
    """Cumulative realized profit and the process-wide floor."""

    def __init__(self, minimum_profit: int = 0):
        self._minimum_profit = require_uint(minimum_profit, "minimum_profit")
        self._total_profit = 0

    # Stateful protocol

    def snapshot_state(self) -> Any:
        return (self._total_profit, self._minimum_profit)

    def restore_state(self, snapshot: Any) -> None:
        self._total_profit, self._minimum_profit = snapshot

    @property
    def total_profit(self) -> int:
        return self._total_profit

    @property
    def minimum_profit(self) -> int:
        return self._minimum_profit

    def set_minimum_profit(self, value: int) -> int:
        """Replace the floor. Returns the previous value."""
        previous = self._minimum_profit
        self._minimum_profit = require_uint(value, "minimum_profit")
        return previous

    def required_floor(self, caller_min_profit: int) -> int:
        return max(caller_min_profit, self._minimum_profit)

    def verify_and_record(
        self,
        start_balance: int,
        end_balance: int,
        caller_min_profit: int,
        fee: int = 0,
    ) -> int:
        """
        Check realized profit against the floor and record it.

        Args:
            start_balance: Asset balance before the swaps
            end_balance: Asset balance after the swaps
            caller_min_profit: Per-call floor
            fee: Cost owed out of end_balance (flash loan premium)

        Returns:
            Realized profit

        Raises:
            ProfitError(INSUFFICIENT_PROFIT)
        """
        baseline = start_balance + fee
        floor = self.required_floor(caller_min_profit)
        details: Dict[str, Any] = {
            "start_balance": start_balance,
            "end_balance": end_balance,
            "fee": fee,
            "required": floor,
        }

        if end_balance <= baseline:
            raise ProfitError(
                ErrorCode.INSUFFICIENT_PROFIT,
                "Execution did not return more than it cost",
                details={**details, "profit": 0},
            )

        realized = end_balance - baseline
        if realized < floor:
            raise ProfitError(
                ErrorCode.INSUFFICIENT_PROFIT,
                f"Profit {realized} below required {floor}",
                details={**details, "profit": realized},
            )

        self._total_profit += realized
        return realized

    @staticmethod
    def project(amount_in: int, quoted_out: int, fee: int = 0) -> int:
        """Expected profit from quoted amounts. Never raises; 0 when unprofitable."""
        expected = quoted_out - amount_in - fee
        return expected if expected > 0 else 0
