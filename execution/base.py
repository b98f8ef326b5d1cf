# PATH: execution/base.py
"""
Shared contract shell for both execution modes.

ENTRY POINT CONTRACT:
=====================
Every state-mutating entry point runs as:

  with guard.hold(entry):      REENTRANT_CALL if a call is already in flight
      with chain.atomic():     all registered state rolls back on failure
          paused?              CONTRACT_PAUSED (unless the entry is pause-exempt)
          body

The guard is held outside the atomic block, so a rejected reentrant
call changes nothing and the outer call continues.

Admin setters are owner-only (NOT_OWNER) single-field mutations and stay
callable while paused.
=====================
"""

import functools
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, TypeVar

from chains.ledger import Chain
from config.settings import ArbitrageConfig
from core.constants import EventName
from core.exceptions import (
    AuthorizationError,
    ErrorCode,
    SealedArbError,
    TimingError,
)
from core.logging import get_logger, log_error
from core.models import SwapHop
from core.validators import normalize_address, require_nonzero_address, require_uint
from execution.executor import SwapExecutor
from execution.guard import ReentrancyGuard
from execution.path_validator import SwapPathValidator
from execution.profit_ledger import ProfitLedger

F = TypeVar("F", bound=Callable[..., Any])


def entrypoint(pausable: bool = True) -> Callable[[F], F]:
    """Wrap a contract method with the reentrancy guard, an atomic transaction and the pause check."""

    def decorator(method: F) -> F:
        @functools.wraps(method)
        def wrapper(self: "BaseArbitrage", sender: str, *args: Any, **kwargs: Any) -> Any:
            try:
                with self.guard.hold(method.__name__), self.chain.atomic():
                    if pausable and self._paused:
                        raise AuthorizationError(ErrorCode.CONTRACT_PAUSED, "Contract is paused")
                    return method(self, normalize_address(sender, "sender"), *args, **kwargs)
            except SealedArbError as e:
                log_error(self.logger, e.code.value, e.message, entry=method.__name__, sender=sender)
                raise

        return wrapper  # type: ignore[return-value]

    return decorator


def owner_only(method: F) -> F:
    """Admin setter: NOT_OWNER unless sender is the owner; runs atomically."""

    @functools.wraps(method)
    def wrapper(self: "BaseArbitrage", sender: str, *args: Any, **kwargs: Any) -> Any:
        sender = normalize_address(sender, "sender")
        if sender != self._owner:
            raise AuthorizationError(
                ErrorCode.NOT_OWNER,
                "Caller is not the owner",
                details={"sender": sender, "entry": method.__name__},
            )
        with self.chain.atomic():
            return method(self, sender, *args, **kwargs)

    return wrapper  # type: ignore[return-value]


class VenueAllowlist:
    """Insertion-ordered set of approved venue addresses."""

    def __init__(self) -> None:
        # dict keeps insertion order and gives O(1) membership
        self._venues: Dict[str, None] = {}

    def snapshot_state(self) -> Any:
        return dict(self._venues)

    def restore_state(self, snapshot: Any) -> None:
        self._venues = snapshot

    def add(self, venue: str) -> None:
        self._venues[venue] = None

    def remove(self, venue: str) -> None:
        del self._venues[venue]

    def __contains__(self, venue: object) -> bool:
        return venue in self._venues

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._venues))

    def __len__(self) -> int:
        return len(self._venues)


class BaseArbitrage:
    """
    Contract state shared by both execution modes.

    Args:
        chain: Host chain the contract is deployed on
        owner: Initial owner address
        config: Window sizes, limits and fees (defaults when None)
        name: Label used for address derivation and logging
    """

    def __init__(
        self,
        chain: Chain,
        owner: str,
        config: Optional[ArbitrageConfig] = None,
        name: str = "arbitrage",
    ):
        self.chain = chain
        self.config = config or ArbitrageConfig()
        self.address = chain.new_address(name)
        self.logger = get_logger(f"sealedarb.{name}", contract=self.address)

        self._owner = require_nonzero_address(owner, "owner")
        self._pending_owner: Optional[str] = None
        self._paused = False
        self._swap_deadline = self.config.default_swap_deadline

        self.venues = VenueAllowlist()
        self.profits = ProfitLedger(self.config.minimum_profit)
        self.guard = ReentrancyGuard(owner=self.address)
        self.validator = SwapPathValidator(self.is_approved_venue, self.config.max_swap_hops)
        self.executor = SwapExecutor(chain, self.address, self.validator)

        chain.register(self)
        chain.register(self.venues)
        chain.register(self.profits)
        chain.deploy(self)

    # Stateful protocol

    def snapshot_state(self) -> Any:
        return (self._owner, self._pending_owner, self._paused, self._swap_deadline)

    def restore_state(self, snapshot: Any) -> None:
        self._owner, self._pending_owner, self._paused, self._swap_deadline = snapshot

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    @property
    def owner(self) -> str:
        return self._owner

    @property
    def pending_owner(self) -> Optional[str]:
        return self._pending_owner

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def swap_deadline(self) -> int:
        return self._swap_deadline

    @property
    def total_profit(self) -> int:
        return self.profits.total_profit

    @property
    def minimum_profit(self) -> int:
        return self.profits.minimum_profit

    def approved_venues(self) -> List[str]:
        return list(self.venues)

    def is_approved_venue(self, venue: str) -> bool:
        return normalize_address(venue, "venue") in self.venues

    def balance_of(self, token: str) -> int:
        return self.chain.tokens.balance_of(token, self.address)

    # -------------------------------------------------------------------------
    # Shared execution
    # -------------------------------------------------------------------------

    def _venue_deadline(self, deadline: int) -> int:
        return min(deadline, self.chain.timestamp + self._swap_deadline)

    def _execute_and_verify(
        self,
        asset: str,
        amount_in: int,
        path: Sequence[SwapHop],
        min_profit: int,
        deadline: int,
        fee: int = 0,
    ) -> int:
        """Run the swaps from this contract's balance and record realized profit."""
        start = self.balance_of(asset)
        self.executor.run(asset, amount_in, path, self._venue_deadline(deadline))
        end = self.balance_of(asset)
        return self.profits.verify_and_record(start, end, min_profit, fee)

    # -------------------------------------------------------------------------
    # Admin
    # -------------------------------------------------------------------------

    @owner_only
    def add_approved_venue(self, sender: str, venue: Any) -> str:
        """Approve a venue, given as an address or a deployed venue object."""
        address = require_nonzero_address(getattr(venue, "address", venue), "venue")
        if address in self.venues:
            raise AuthorizationError(
                ErrorCode.VENUE_ALREADY_APPROVED,
                f"Venue {address} is already approved",
                details={"venue": address},
            )
        self.venues.add(address)
        self.chain.emit(EventName.VENUE_ADDED, self.address, venue=address)
        self.logger.info("Venue approved", extra={"context": {"venue": address}})
        return address

    @owner_only
    def remove_approved_venue(self, sender: str, venue: Any) -> str:
        address = normalize_address(getattr(venue, "address", venue), "venue")
        if address not in self.venues:
            raise AuthorizationError(
                ErrorCode.VENUE_NOT_APPROVED,
                f"Venue {address} is not approved",
                details={"venue": address},
            )
        self.venues.remove(address)
        self.chain.emit(EventName.VENUE_REMOVED, self.address, venue=address)
        self.logger.info("Venue removed", extra={"context": {"venue": address}})
        return address

    @owner_only
    def set_minimum_profit(self, sender: str, value: int) -> None:
        """Replace the process-wide profit floor. Must be positive."""
        if require_uint(value, "minimum_profit") == 0:
            raise SealedArbError(ErrorCode.INVALID_MINIMUM_PROFIT, "Minimum profit must be positive")
        previous = self.profits.set_minimum_profit(value)
        self.chain.emit(
            EventName.MINIMUM_PROFIT_UPDATED,
            self.address,
            old_value=previous,
            new_value=value,
        )
        self.logger.info(
            "Minimum profit updated",
            extra={"context": {"old_value": previous, "new_value": value}},
        )

    @owner_only
    def set_swap_deadline(self, sender: str, seconds: int) -> None:
        """Venue-call deadline offset, 1..max_swap_deadline seconds."""
        if isinstance(seconds, bool) or not isinstance(seconds, int) or not (
            1 <= seconds <= self.config.max_swap_deadline
        ):
            raise TimingError(
                ErrorCode.INVALID_SWAP_DEADLINE,
                f"Swap deadline must be within 1..{self.config.max_swap_deadline} seconds",
                details={"value": seconds},
            )
        previous = self._swap_deadline
        self._swap_deadline = seconds
        self.chain.emit(
            EventName.SWAP_DEADLINE_UPDATED,
            self.address,
            old_value=previous,
            new_value=seconds,
        )

    @owner_only
    def pause(self, sender: str) -> None:
        self._paused = True
        self.chain.emit(EventName.PAUSED, self.address, account=sender)
        self.logger.warning("Contract paused", extra={"context": {"by": sender}})

    @owner_only
    def unpause(self, sender: str) -> None:
        self._paused = False
        self.chain.emit(EventName.UNPAUSED, self.address, account=sender)
        self.logger.info("Contract unpaused", extra={"context": {"by": sender}})

    @owner_only
    def withdraw_token(self, sender: str, token: str, to: str, amount: int) -> None:
        """Send `amount` of the contract's `token` balance to `to`."""
        token = normalize_address(token, "token")
        to = require_nonzero_address(to, "to")
        self.chain.tokens.transfer(token, self.address, to, amount)
        self.chain.emit(EventName.TOKEN_WITHDRAWN, self.address, token=token, to=to, amount=amount)
        self.logger.info(
            "Token withdrawn",
            extra={"context": {"token": token, "to": to, "amount": amount}},
        )

    @owner_only
    def transfer_ownership(self, sender: str, new_owner: str) -> None:
        """Start a two-step transfer. new_owner must call accept_ownership()."""
        self._pending_owner = require_nonzero_address(new_owner, "new_owner")
        self.chain.emit(
            EventName.OWNERSHIP_TRANSFER_STARTED,
            self.address,
            previous_owner=self._owner,
            new_owner=self._pending_owner,
        )

    def accept_ownership(self, sender: str) -> None:
        sender = normalize_address(sender, "sender")
        if self._pending_owner is None or sender != self._pending_owner:
            raise AuthorizationError(
                ErrorCode.NOT_PENDING_OWNER,
                "Caller is not the pending owner",
                details={"sender": sender},
            )
        with self.chain.atomic():
            previous = self._owner
            self._owner = sender
            self._pending_owner = None
            self.chain.emit(
                EventName.OWNERSHIP_TRANSFERRED,
                self.address,
                previous_owner=previous,
                new_owner=sender,
            )
        self.logger.info(
            "Ownership transferred",
            extra={"context": {"previous_owner": previous, "new_owner": sender}},
        )
