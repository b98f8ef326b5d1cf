# PATH: chains/ledger.py
"""
chains/ledger.py - Simulated host chain.

Provides:
- Block height and timestamp, advanced explicitly with mine()
- Append-only event log
- Deterministic address derivation
- Atomic (nestable) transactions over every registered stateful component

ATOMICITY CONTRACT:
===================
Components holding persistent state register with the chain and implement
snapshot_state() / restore_state(snapshot). Chain.atomic() snapshots all of
them on entry; if the block raises, every component is restored and the
exception propagates. Atomic blocks nest: a failing inner block restores only
what changed inside it, so a caller that catches the inner failure keeps its
own progress.

Block height and timestamp are host-controlled and never rolled back.
===================
"""

from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Protocol, Tuple

from eth_utils import keccak, to_normalized_address

from core.constants import DEFAULT_BLOCK_TIME_SECONDS, GENESIS_TIMESTAMP
from core.exceptions import VenueRevertError
from core.logging import get_logger
from core.models import Event

logger = get_logger("sealedarb.chain")


class Stateful(Protocol):
    """Component whose state is covered by Chain.atomic()."""

    def snapshot_state(self) -> Any:
        ...

    def restore_state(self, snapshot: Any) -> None:
        ...


class Chain:
    """
    In-process stand-in for the host chain.

    Every call into a contract is serialized by the caller; the chain only
    provides time, storage rollback and the event log.
    """

    def __init__(
        self,
        block_number: int = 1,
        timestamp: int = GENESIS_TIMESTAMP,
        block_time_seconds: int = DEFAULT_BLOCK_TIME_SECONDS,
    ):
        self._block_number = block_number
        self._timestamp = timestamp
        self._block_time_seconds = block_time_seconds
        self._events: List[Event] = []
        self._stateful: List[Stateful] = []
        self._address_nonce = 0
        self._atomic_depth = 0
        self._contracts: Dict[str, Any] = {}

        # Local import: tokens module depends on this one
        from chains.tokens import TokenLedger

        self.tokens = TokenLedger(self)

    # -------------------------------------------------------------------------
    # Time
    # -------------------------------------------------------------------------

    @property
    def block_number(self) -> int:
        return self._block_number

    @property
    def timestamp(self) -> int:
        return self._timestamp

    def mine(self, blocks: int = 1, seconds_per_block: Optional[int] = None) -> int:
        """Advance the chain by `blocks` blocks. Returns the new height."""
        if blocks < 0:
            raise ValueError("Cannot mine a negative number of blocks")
        step = self._block_time_seconds if seconds_per_block is None else seconds_per_block
        self._block_number += blocks
        self._timestamp += blocks * step
        return self._block_number

    def advance_time(self, seconds: int) -> int:
        """Move the clock forward without producing blocks."""
        if seconds < 0:
            raise ValueError("Cannot move time backwards")
        self._timestamp += seconds
        return self._timestamp

    # -------------------------------------------------------------------------
    # Addresses
    # -------------------------------------------------------------------------

    def new_address(self, label: str = "account") -> str:
        """Derive a fresh deterministic address."""
        self._address_nonce += 1
        digest = keccak(text=f"{label}:{self._address_nonce}")
        return to_normalized_address(digest[-20:])

    def deploy(self, contract: Any) -> str:
        """Make a contract reachable by its `address` attribute."""
        address = to_normalized_address(contract.address)
        self._contracts[address] = contract
        return address

    def contract_at(self, address: str) -> Any:
        """
        Resolve a deployed contract.

        Raises:
            VenueRevertError if nothing is deployed at the address
        """
        contract = self._contracts.get(to_normalized_address(address))
        if contract is None:
            raise VenueRevertError("Call to non-contract address", details={"address": address})
        return contract

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def emit(self, name: str, emitter: str, **args: Any) -> Event:
        """Append an event at the current block."""
        event = Event(
            name=str(name.value if hasattr(name, "value") else name),
            emitter=emitter,
            block_number=self._block_number,
            args=dict(args),
        )
        self._events.append(event)
        return event

    @property
    def events(self) -> Tuple[Event, ...]:
        return tuple(self._events)

    def events_named(self, name: str, emitter: Optional[str] = None) -> List[Event]:
        """Events matching name (and emitter, if given)."""
        name = str(name.value if hasattr(name, "value") else name)
        return [
            e for e in self._events
            if e.name == name and (emitter is None or e.emitter == emitter)
        ]

    # -------------------------------------------------------------------------
    # Atomic transactions
    # -------------------------------------------------------------------------

    def register(self, component: Stateful) -> None:
        """Put a component's state under Chain.atomic()."""
        if component not in self._stateful:
            self._stateful.append(component)

    @property
    def in_transaction(self) -> bool:
        return self._atomic_depth > 0

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """
        Run a block atomically.

        On any exception, all registered state and the event log are
        restored to their values at entry, then the exception propagates.
        """
        event_mark = len(self._events)
        snapshots = [(c, c.snapshot_state()) for c in self._stateful]
        self._atomic_depth += 1
        try:
            yield
        except BaseException as exc:
            for component, snapshot in reversed(snapshots):
                component.restore_state(snapshot)
            del self._events[event_mark:]
            logger.debug(
                "Transaction rolled back",
                extra={"context": {
                    "depth": self._atomic_depth,
                    "error": str(exc),
                    "block_number": self._block_number,
                }},
            )
            raise
        finally:
            self._atomic_depth -= 1
