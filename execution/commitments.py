# PATH: execution/commitments.py
"""
Commitment registry.

COMMITMENT LIFECYCLE CONTRACT:
==============================

States:
  (absent)  → PENDING   commit / batch_commit
  PENDING   → (deleted) consume (reveal), cancel, reclaim, cleanup_expired

Hash binding:
  hash = keccak256(committer_address || abi.encode(RevealParameters))

  The committer is part of the preimage, so a reveal by anyone else, or
  with any field changed, derives a hash that is simply not stored. All of
  those cases fail COMMITMENT_NOT_FOUND and are indistinguishable.

Windows (blocks, evaluated lazily at access time):
  height <  committed_at + min_delay       → COMMITMENT_TOO_RECENT
  height >  committed_at + max_commit_age  → COMMITMENT_EXPIRED
  reclaim / cleanup require height > committed_at + max_commit_age

Deletion:
  Entries are deleted, not flagged. A separate revealed[hash] flag is kept
  for audit. A deleted hash can never be consumed again: replay fails
  COMMITMENT_NOT_FOUND.

  consume() deletes before the trade runs. When the trade fails, the
  enclosing Chain.atomic() restores the entry, so only a successful reveal
  (or cancel / reclaim / cleanup) consumes a commitment.
==============================
"""

import copy
from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional, Union

from eth_abi import encode
from eth_utils import keccak, to_canonical_address

from core.constants import (
    EventName,
    MAX_COMMIT_AGE_BLOCKS,
    MAX_SWAP_DEADLINE,
    MIN_DELAY_BLOCKS,
)
from core.exceptions import (
    AuthorizationError,
    CommitmentError,
    ErrorCode,
    SealedArbError,
    TimingError,
)
from core.logging import get_logger, log_commitment
from core.models import Commitment, RevealParameters
from core.validators import normalize_address, to_bytes32

if TYPE_CHECKING:
    from chains.ledger import Chain

logger = get_logger("sealedarb.commitments")

REVEAL_PARAMS_ABI_TYPE = (
    "(address,uint256,(address,address,address,uint256)[],uint256,uint256,bytes32)"
)

HashLike = Union[bytes, bytearray, str]


def compute_commitment_hash(committer: str, params: RevealParameters) -> bytes:
    """
    Derive the commitment hash for a committer and parameter set.

    keccak256(abi.encodePacked(committer, abi.encode(params)))
    """
    committer = normalize_address(committer, "committer")
    encoded = encode([REVEAL_PARAMS_ABI_TYPE], [params.as_abi_tuple()])
    return keccak(to_canonical_address(committer) + encoded)


class CommitmentRegistry:
    """
    Pending commitments keyed by hash.

    Args:
        chain: Host chain (block height, clock, event log)
        emitter: Address events are emitted under (the owning contract)
        min_delay_blocks: Blocks that must pass before a reveal
        max_commit_age_blocks: Blocks after which a commitment expires
        max_swap_deadline: Furthest a reveal deadline may lie in the future (seconds)
    """

    def __init__(
        self,
        chain: "Chain",
        emitter: str,
        min_delay_blocks: int = MIN_DELAY_BLOCKS,
        max_commit_age_blocks: int = MAX_COMMIT_AGE_BLOCKS,
        max_swap_deadline: int = MAX_SWAP_DEADLINE,
    ):
        self._chain = chain
        self._emitter = emitter
        self.min_delay_blocks = min_delay_blocks
        self.max_commit_age_blocks = max_commit_age_blocks
        self.max_swap_deadline = max_swap_deadline
        self._commitments: Dict[bytes, Commitment] = {}
        self._revealed: Dict[bytes, bool] = {}
        chain.register(self)

    # Stateful protocol

    def snapshot_state(self) -> Any:
        return (copy.deepcopy(self._commitments), dict(self._revealed))

    def restore_state(self, snapshot: Any) -> None:
        self._commitments, self._revealed = snapshot

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    def __contains__(self, commitment_hash: HashLike) -> bool:
        return to_bytes32(commitment_hash, "commitment_hash") in self._commitments

    def __len__(self) -> int:
        return len(self._commitments)

    def get(self, commitment_hash: HashLike) -> Optional[Commitment]:
        """Copy of the pending commitment, or None."""
        record = self._commitments.get(to_bytes32(commitment_hash, "commitment_hash"))
        return copy.copy(record) if record else None

    def is_revealed(self, commitment_hash: HashLike) -> bool:
        return self._revealed.get(to_bytes32(commitment_hash, "commitment_hash"), False)

    def is_expired(self, record: Commitment) -> bool:
        return record.age(self._chain.block_number) > self.max_commit_age_blocks

    # -------------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------------

    def commit(self, committer: str, commitment_hash: HashLike) -> Commitment:
        """
        Store a new pending commitment at the current height.

        Raises:
            CommitmentError(COMMITMENT_ALREADY_EXISTS)
        """
        key = to_bytes32(commitment_hash, "commitment_hash")
        if key in self._commitments:
            raise CommitmentError(
                ErrorCode.COMMITMENT_ALREADY_EXISTS,
                "Commitment already exists",
                details={"commitment_hash": "0x" + key.hex()},
            )
        return self._store(committer, key)

    def batch_commit(self, committer: str, hashes: Iterable[HashLike]) -> int:
        """
        Commit every hash not already present.

        Existing hashes (including repeats within the batch) are skipped.

        Returns:
            Number of commitments created
        """
        created = 0
        for commitment_hash in hashes:
            key = to_bytes32(commitment_hash, "commitment_hash")
            if key in self._commitments:
                continue
            self._store(committer, key)
            created += 1
        return created

    def _store(self, committer: str, key: bytes) -> Commitment:
        committer = normalize_address(committer, "committer")
        record = Commitment(hash=key, committed_at=self._chain.block_number, committer=committer)
        self._commitments[key] = record
        self._chain.emit(
            EventName.COMMITTED,
            self._emitter,
            commitment_hash=key,
            block_number=record.committed_at,
            committer=committer,
        )
        log_commitment(logger, "created", record.hash_hex, committer, record.committed_at)
        return copy.copy(record)

    # -------------------------------------------------------------------------
    # Consumption
    # -------------------------------------------------------------------------

    def consume(self, caller: str, params: RevealParameters) -> Commitment:
        """
        Validate and delete the commitment matching (caller, params).

        Raises:
            CommitmentError(COMMITMENT_NOT_FOUND): no commitment for the derived hash
            TimingError(COMMITMENT_TOO_RECENT | COMMITMENT_EXPIRED | INVALID_DEADLINE)

        Returns:
            The consumed commitment, marked revealed
        """
        key = compute_commitment_hash(caller, params)
        record = self._commitments.get(key)
        if record is None:
            raise CommitmentError(
                ErrorCode.COMMITMENT_NOT_FOUND,
                "Commitment not found",
                details={"commitment_hash": "0x" + key.hex()},
            )

        height = self._chain.block_number
        if record.age(height) < self.min_delay_blocks:
            raise TimingError(
                ErrorCode.COMMITMENT_TOO_RECENT,
                f"Reveal must wait {self.min_delay_blocks} block(s) after commit",
                details={"committed_at": record.committed_at, "block_number": height},
            )

        if self.is_expired(record):
            raise TimingError(
                ErrorCode.COMMITMENT_EXPIRED,
                f"Commitment older than {self.max_commit_age_blocks} blocks",
                details={"committed_at": record.committed_at, "block_number": height},
            )

        now = self._chain.timestamp
        if params.deadline < now or params.deadline > now + self.max_swap_deadline:
            raise TimingError(
                ErrorCode.INVALID_DEADLINE,
                "Deadline is in the past or too far in the future",
                details={
                    "deadline": params.deadline,
                    "timestamp": now,
                    "max_swap_deadline": self.max_swap_deadline,
                },
            )

        del self._commitments[key]
        self._revealed[key] = True
        record.revealed = True
        log_commitment(logger, "consumed", record.hash_hex, record.committer, height)
        return record

    def cancel(self, caller: str, commitment_hash: HashLike) -> Commitment:
        """
        Delete an unrevealed commitment owned by caller.

        Raises:
            CommitmentError(COMMITMENT_NOT_FOUND)
            AuthorizationError(UNAUTHORIZED_COMMITTER)
        """
        key, record = self._owned(caller, commitment_hash)
        del self._commitments[key]
        self._chain.emit(
            EventName.COMMIT_CANCELLED,
            self._emitter,
            commitment_hash=key,
            committer=record.committer,
        )
        log_commitment(logger, "cancelled", record.hash_hex, record.committer, self._chain.block_number)
        return record

    def reclaim(self, caller: str, commitment_hash: HashLike) -> Commitment:
        """
        Delete an expired commitment owned by caller.

        Raises:
            CommitmentError(COMMITMENT_NOT_FOUND | COMMITMENT_NOT_EXPIRED)
            AuthorizationError(UNAUTHORIZED_COMMITTER)
        """
        key, record = self._owned(caller, commitment_hash)
        if not self.is_expired(record):
            raise CommitmentError(
                ErrorCode.COMMITMENT_NOT_EXPIRED,
                "Commitment has not expired yet",
                details={
                    "committed_at": record.committed_at,
                    "expires_after": record.committed_at + self.max_commit_age_blocks,
                    "block_number": self._chain.block_number,
                },
            )
        del self._commitments[key]
        log_commitment(logger, "reclaimed", record.hash_hex, record.committer, self._chain.block_number)
        return record

    def cleanup_expired(self, hashes: Iterable[HashLike]) -> int:
        """
        Delete every listed commitment that is present and expired.

        Permissionless. Absent, live and malformed hashes are skipped.

        Returns:
            Number deleted
        """
        deleted = 0
        for commitment_hash in hashes:
            try:
                key = to_bytes32(commitment_hash, "commitment_hash")
            except SealedArbError:
                continue
            record = self._commitments.get(key)
            if record is None or not self.is_expired(record):
                continue
            del self._commitments[key]
            deleted += 1

        if deleted:
            self._chain.emit(EventName.EXPIRED_COMMITMENTS_CLEANED, self._emitter, count=deleted)
            logger.info(
                "Expired commitments cleaned",
                extra={"context": {"count": deleted, "block_number": self._chain.block_number}},
            )
        return deleted

    def _owned(self, caller: str, commitment_hash: HashLike):
        key = to_bytes32(commitment_hash, "commitment_hash")
        record = self._commitments.get(key)
        if record is None:
            raise CommitmentError(
                ErrorCode.COMMITMENT_NOT_FOUND,
                "Commitment not found",
                details={"commitment_hash": "0x" + key.hex()},
            )
        if normalize_address(caller, "caller") != record.committer:
            raise AuthorizationError(
                ErrorCode.UNAUTHORIZED_COMMITTER,
                "Only the committer may modify this commitment",
                details={"commitment_hash": record.hash_hex},
            )
        return key, record
