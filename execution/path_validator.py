# PATH: execution/path_validator.py
"""
Swap path validation.

PATH CONTRACT:
==============
A path is an ordered list of 1..max_hops hops that starts and ends in the
funding asset, so profit is measured in one unit.

Checks, in order (first failure wins):
  EMPTY_PATH                        no hops
  PATH_TOO_LONG                     more than max_hops hops
  ASSET_MISMATCH_START              path[0].token_in != asset
  ASSET_MISMATCH_END                path[-1].token_out != asset
  DISCONTINUOUS_PATH                path[i].token_out != path[i+1].token_in
  UNAUTHORIZED_VENUE                venue not in the allowlist
  INSUFFICIENT_SLIPPAGE_PROTECTION  hop.minimum_out == 0

Validation is pure: no state is read except allowlist membership and
nothing is written.
==============
"""

from typing import Callable, Sequence

from core.constants import MAX_SWAP_HOPS
from core.exceptions import AuthorizationError, ErrorCode, PathError, SealedArbError
from core.models import SwapHop
from core.validators import normalize_address


class SwapPathValidator:
    """
    Structural and authorization checks on a swap path.

    Args:
        is_approved: Venue membership test (the contract's allowlist)
        max_hops: Upper bound on path length
    """

    def __init__(self, is_approved: Callable[[str], bool], max_hops: int = MAX_SWAP_HOPS):
        self._is_approved = is_approved
        self.max_hops = max_hops

    def validate(self, asset: str, path: Sequence[SwapHop]) -> None:
        """
        Raise on the first violated rule.

        Raises:
            PathError: structural violations and missing slippage floors
            AuthorizationError: unapproved venue
        """
        self.validate_structure(asset, path)

        approved = set()
        for index, hop in enumerate(path):
            if hop.venue in approved:
                continue
            if not self._is_approved(hop.venue):
                raise AuthorizationError(
                    ErrorCode.UNAUTHORIZED_VENUE,
                    f"Venue {hop.venue} is not approved",
                    details={"hop": index, "venue": hop.venue},
                )
            approved.add(hop.venue)

        for index, hop in enumerate(path):
            if hop.minimum_out == 0:
                raise PathError(
                    ErrorCode.INSUFFICIENT_SLIPPAGE_PROTECTION,
                    f"Hop {index} has no minimum output",
                    details={"hop": index},
                )

    def validate_structure(self, asset: str, path: Sequence[SwapHop]) -> None:
        """Shape checks only: length, endpoints and continuity."""
        if len(path) == 0:
            raise PathError(ErrorCode.EMPTY_PATH, "Swap path is empty")

        if len(path) > self.max_hops:
            raise PathError(
                ErrorCode.PATH_TOO_LONG,
                f"Swap path has {len(path)} hops, max {self.max_hops}",
                details={"hops": len(path), "max_hops": self.max_hops},
            )

        asset = normalize_address(asset, "asset")
        if path[0].token_in != asset:
            raise PathError(
                ErrorCode.ASSET_MISMATCH_START,
                "Swap path does not start with the funding asset",
                details={"asset": asset, "token_in": path[0].token_in},
            )

        if path[-1].token_out != asset:
            raise PathError(
                ErrorCode.ASSET_MISMATCH_END,
                "Swap path does not end with the funding asset",
                details={"asset": asset, "token_out": path[-1].token_out},
            )

        for index in range(len(path) - 1):
            if path[index].token_out != path[index + 1].token_in:
                raise PathError(
                    ErrorCode.DISCONTINUOUS_PATH,
                    f"Hop {index} output does not feed hop {index + 1}",
                    details={
                        "hop": index,
                        "token_out": path[index].token_out,
                        "next_token_in": path[index + 1].token_in,
                    },
                )

    def is_valid_structure(self, asset: str, path: Sequence[SwapHop]) -> bool:
        """Non-raising structural check, for read-only projections."""
        try:
            self.validate_structure(asset, path)
        except SealedArbError:
            return False
        return True
