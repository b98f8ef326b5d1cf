# PATH: execution/executor.py
"""
Swap executor.

EXECUTION CONTRACT:
===================
run(asset, amount_in, path, deadline):
  amount = amount_in
  for each hop:
    approve hop.venue for `amount` of hop.token_in
    venue.swap_exact_tokens_for_tokens(holder, amount, hop.minimum_out,
                                       [token_in, token_out], holder, deadline)
    reported < hop.minimum_out           -> INSUFFICIENT_OUTPUT
    holder balance grew by < reported    -> VENUE_OUTPUT_MISMATCH
    amount = reported
  return amount

The venue's reported output feeds the next hop, never the declared
minimum. Any venue failure propagates and aborts the enclosing transaction.

quote() walks get_amounts_out over the same hops and never raises.
===================
"""

from typing import TYPE_CHECKING, Sequence

from core.exceptions import ErrorCode, ProfitError, SealedArbError
from core.logging import get_logger
from core.models import SwapHop, as_swap_path

if TYPE_CHECKING:
    from chains.ledger import Chain
    from execution.path_validator import SwapPathValidator

logger = get_logger("sealedarb.executor")


class SwapExecutor:
    """
    Drives a hop list through venue calls on behalf of a holder.

    Args:
        chain: Host chain (token ledger, deployed venues)
        holder: Address that pays for and receives every hop
        validator: Used by quote() to reject malformed paths
    """

    def __init__(self, chain: "Chain", holder: str, validator: "SwapPathValidator"):
        self._chain = chain
        self._holder = holder
        self._validator = validator

    def run(self, asset: str, amount_in: int, path: Sequence[SwapHop], deadline: int) -> int:
        """
        Execute every hop in order.

        Returns:
            Output of the final hop, in units of `asset`
        """
        tokens = self._chain.tokens
        amount = amount_in

        for index, hop in enumerate(path):
            venue = self._chain.contract_at(hop.venue)
            before = tokens.balance_of(hop.token_out, self._holder)

            tokens.approve(hop.token_in, self._holder, hop.venue, amount)
            amounts = venue.swap_exact_tokens_for_tokens(
                sender=self._holder,
                amount_in=amount,
                amount_out_min=hop.minimum_out,
                path=[hop.token_in, hop.token_out],
                to=self._holder,
                deadline=deadline,
            )
            reported = amounts[-1]

            if reported < hop.minimum_out:
                raise ProfitError(
                    ErrorCode.INSUFFICIENT_OUTPUT,
                    f"Hop {index} returned {reported}, minimum {hop.minimum_out}",
                    details={"hop": index, "venue": hop.venue, "amount_out": reported,
                             "minimum_out": hop.minimum_out},
                )

            received = tokens.balance_of(hop.token_out, self._holder) - before
            if received < reported:
                raise ProfitError(
                    ErrorCode.VENUE_OUTPUT_MISMATCH,
                    f"Hop {index} reported {reported} but delivered {received}",
                    details={"hop": index, "venue": hop.venue, "reported": reported,
                             "received": received},
                )

            logger.debug(
                "Hop executed",
                extra={"context": {
                    "hop": index,
                    "venue": hop.venue,
                    "amount_in": amount,
                    "amount_out": reported,
                }},
            )
            amount = reported

        return amount

    def quote(self, asset: str, amount_in: int, path: Sequence[SwapHop]) -> int:
        """Quoted final output, or 0 for bad inputs, an invalid path or a failing/zero quote."""
        if isinstance(amount_in, bool) or not isinstance(amount_in, int) or amount_in <= 0:
            return 0
        try:
            path = as_swap_path(path)
        except TypeError:
            return 0
        if not self._validator.is_valid_structure(asset, path):
            return 0

        amount = amount_in
        for hop in path:
            try:
                venue = self._chain.contract_at(hop.venue)
                amounts = venue.get_amounts_out(amount, [hop.token_in, hop.token_out])
            except SealedArbError as e:
                logger.debug(
                    "Quote failed",
                    extra={"context": {"venue": hop.venue, "error": str(e)}},
                )
                return 0
            amount = amounts[-1]
            if amount == 0:
                return 0
        return amount
