# PATH: core/models.py
"""
Core data models for SEALEDARB.

All token amounts are integers in the token's smallest unit (wei). NO FLOATS.

SwapHop and RevealParameters are frozen: once a path is built it cannot be
changed, so the parameters hashed at commit time are the parameters executed
at reveal time.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Tuple

from core.validators import normalize_address, require_uint, to_bytes32


@dataclass(frozen=True)
class SwapHop:
    """One swap leg: sell token_in for token_out on venue."""

    venue: str
    token_in: str
    token_out: str
    minimum_out: int

    def __post_init__(self):
        object.__setattr__(self, "venue", normalize_address(self.venue, "venue"))
        object.__setattr__(self, "token_in", normalize_address(self.token_in, "token_in"))
        object.__setattr__(self, "token_out", normalize_address(self.token_out, "token_out"))
        require_uint(self.minimum_out, "minimum_out")

    def as_abi_tuple(self) -> Tuple[str, str, str, int]:
        return (self.venue, self.token_in, self.token_out, self.minimum_out)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "venue": self.venue,
            "token_in": self.token_in,
            "token_out": self.token_out,
            "minimum_out": self.minimum_out,
        }


SwapPath = Tuple[SwapHop, ...]


def as_swap_path(hops: Iterable[SwapHop]) -> SwapPath:
    """Freeze an iterable of hops into a SwapPath."""
    return tuple(hops)


@dataclass(frozen=True)
class RevealParameters:
    """
    Trade parameters hidden behind a commitment.

    The commitment hash covers every field plus the committer address, so
    changing any single field at reveal time produces a different hash.
    """

    asset: str
    amount_in: int
    swap_path: SwapPath
    min_profit: int
    deadline: int
    salt: bytes

    def __post_init__(self):
        object.__setattr__(self, "asset", normalize_address(self.asset, "asset"))
        object.__setattr__(self, "swap_path", as_swap_path(self.swap_path))
        object.__setattr__(self, "salt", to_bytes32(self.salt, "salt"))
        require_uint(self.amount_in, "amount_in")
        require_uint(self.min_profit, "min_profit")
        require_uint(self.deadline, "deadline")

    def as_abi_tuple(self) -> Tuple[Any, ...]:
        return (
            self.asset,
            self.amount_in,
            [hop.as_abi_tuple() for hop in self.swap_path],
            self.min_profit,
            self.deadline,
            self.salt,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "asset": self.asset,
            "amount_in": self.amount_in,
            "swap_path": [hop.to_dict() for hop in self.swap_path],
            "min_profit": self.min_profit,
            "deadline": self.deadline,
            "salt": "0x" + self.salt.hex(),
        }


@dataclass
class Commitment:
    """Pending commitment owned by its committer."""

    hash: bytes
    committed_at: int
    committer: str
    revealed: bool = False

    @property
    def hash_hex(self) -> str:
        return "0x" + self.hash.hex()

    def age(self, block_number: int) -> int:
        """Blocks elapsed since the commit."""
        return block_number - self.committed_at

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hash": self.hash_hex,
            "committed_at": self.committed_at,
            "committer": self.committer,
            "revealed": self.revealed,
        }


@dataclass(frozen=True)
class Event:
    """Entry in the append-only chain log."""

    name: str
    emitter: str
    block_number: int
    args: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "emitter": self.emitter,
            "block_number": self.block_number,
            "args": {
                k: ("0x" + v.hex() if isinstance(v, bytes) else v)
                for k, v in self.args.items()
            },
        }
