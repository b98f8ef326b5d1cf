# PATH: chains/venues.py
"""
chains/venues.py - Liquidity venues.

VENUE CONTRACT (Uniswap V2 router call shape):
==============================================
  get_amounts_out(amount_in, path) -> [amount_in, ..., amount_out]
  swap_exact_tokens_for_tokens(sender, amount_in, amount_out_min, path, to, deadline)
      -> [amount_in, ..., amount_out]
    - pulls amount_in of path[0] from sender (needs allowance)
    - pays amount_out of path[-1] to `to`
    - raises VenueRevertError on expired deadline, missing pair,
      output below amount_out_min or empty liquidity
==============================================

RateVenue quotes every pair from a fixed 18-decimal rate:
amount_out = amount_in * rate / 1e18.
"""

from typing import TYPE_CHECKING, Dict, List, Optional, Protocol, Sequence, Tuple

from core.exceptions import VenueRevertError
from core.math import apply_rate
from core.validators import normalize_address

if TYPE_CHECKING:
    from chains.ledger import Chain


class Venue(Protocol):
    """Anything the swap executor can route a hop through."""

    address: str

    def get_amounts_out(self, amount_in: int, path: Sequence[str]) -> List[int]:
        ...

    def swap_exact_tokens_for_tokens(
        self,
        sender: str,
        amount_in: int,
        amount_out_min: int,
        path: Sequence[str],
        to: str,
        deadline: int,
    ) -> List[int]:
        ...


class RateVenue:
    """
    Fixed-rate router.

    Pays out of its own token balances, so it must be funded with the
    output tokens it is expected to deliver.
    """

    def __init__(self, chain: "Chain", name: str = "venue", address: Optional[str] = None):
        self._chain = chain
        self.name = name
        self.address = normalize_address(address, "venue") if address else chain.new_address(f"venue:{name}")
        self._rates: Dict[Tuple[str, str], int] = {}
        chain.deploy(self)

    def set_exchange_rate(self, token_in: str, token_out: str, rate: int) -> None:
        key = (normalize_address(token_in, "token_in"), normalize_address(token_out, "token_out"))
        self._rates[key] = rate

    def rate(self, token_in: str, token_out: str) -> Optional[int]:
        key = (normalize_address(token_in, "token_in"), normalize_address(token_out, "token_out"))
        return self._rates.get(key)

    def get_amounts_out(self, amount_in: int, path: Sequence[str]) -> List[int]:
        if len(path) < 2:
            raise VenueRevertError("Invalid path")

        amounts = [amount_in]
        for token_in, token_out in zip(path, path[1:]):
            rate = self.rate(token_in, token_out)
            if rate is None:
                raise VenueRevertError(
                    "Pair not supported",
                    details={"venue": self.address, "token_in": token_in, "token_out": token_out},
                )
            amounts.append(apply_rate(amounts[-1], rate))
        return amounts

    def swap_exact_tokens_for_tokens(
        self,
        sender: str,
        amount_in: int,
        amount_out_min: int,
        path: Sequence[str],
        to: str,
        deadline: int,
    ) -> List[int]:
        if deadline < self._chain.timestamp:
            raise VenueRevertError("Transaction expired", details={"deadline": deadline})

        amounts = self.get_amounts_out(amount_in, path)
        if amounts[-1] < amount_out_min:
            raise VenueRevertError(
                "Insufficient output amount",
                details={"amount_out": amounts[-1], "amount_out_min": amount_out_min},
            )

        tokens = self._chain.tokens
        if tokens.balance_of(path[-1], self.address) < amounts[-1]:
            raise VenueRevertError(
                "Insufficient liquidity",
                details={"venue": self.address, "token_out": path[-1], "amount_out": amounts[-1]},
            )

        tokens.transfer_from(path[0], spender=self.address, owner=sender, to=self.address, amount=amount_in)
        tokens.transfer(path[-1], self.address, to, amounts[-1])
        return amounts
