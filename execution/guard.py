# PATH: execution/guard.py
"""
Reentrancy guard.

Held for the full duration of a top-level entry point. A second acquisition
while held fails immediately with REENTRANT_CALL; it never blocks or queues.
The failed acquisition leaves the outer hold untouched, so the call already
in flight continues normally.
"""

from contextlib import contextmanager
from typing import Iterator, Optional

from core.exceptions import ReentrancyError


class ReentrancyGuard:
    """Scoped mutual-exclusion flag, used as `with guard.hold(entry):` or `with guard:`."""

    def __init__(self, owner: str = ""):
        self._owner = owner
        self._held = False
        self._entry: Optional[str] = None

    @property
    def held(self) -> bool:
        return self._held

    def acquire(self, entry: str = "") -> None:
        if self._held:
            raise ReentrancyError(
                details={"contract": self._owner, "held_by": self._entry, "attempted": entry},
            )
        self._held = True
        self._entry = entry

    def release(self) -> None:
        self._held = False
        self._entry = None

    @contextmanager
    def hold(self, entry: str = "") -> Iterator["ReentrancyGuard"]:
        """Hold the guard for one entry point. A rejected acquire releases nothing."""
        self.acquire(entry)
        try:
            yield self
        finally:
            self.release()

    def __enter__(self) -> "ReentrancyGuard":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.release()
        return False
