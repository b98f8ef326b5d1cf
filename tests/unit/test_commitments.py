# PATH: tests/unit/test_commitments.py
"""
Tests for the commitment registry and hash binding.

Run: python -m pytest tests/unit/test_commitments.py -v
"""

import dataclasses

import pytest
from eth_abi import encode
from eth_utils import keccak

from chains import Chain
from core.constants import EventName
from core.exceptions import AuthorizationError, CommitmentError, ErrorCode, TimingError
from core.models import RevealParameters, SwapHop
from execution.commitments import (
    REVEAL_PARAMS_ABI_TYPE,
    CommitmentRegistry,
    compute_commitment_hash,
)

WETH = "0x" + "11" * 20
USDC = "0x" + "22" * 20
VENUE = "0x" + "aa" * 20
ALICE = "0x" + "a1" * 20
BOB = "0x" + "b0" * 20
EMITTER = "0x" + "ee" * 20
SALT = b"\x01" * 32


@pytest.fixture
def chain():
    return Chain()


@pytest.fixture
def registry(chain):
    return CommitmentRegistry(chain, EMITTER, min_delay_blocks=1, max_commit_age_blocks=10)


@pytest.fixture
def params(chain):
    return RevealParameters(
        asset=WETH,
        amount_in=10 ** 18,
        swap_path=(
            SwapHop(VENUE, WETH, USDC, 1_900 * 10 ** 6),
            SwapHop(VENUE, USDC, WETH, 99 * 10 ** 16),
        ),
        min_profit=0,
        deadline=chain.timestamp + 300,
        salt=SALT,
    )


# =============================================================================
# HASH BINDING
# =============================================================================

class TestCommitmentHash:

    def test_is_32_bytes_and_deterministic(self, params):
        first = compute_commitment_hash(ALICE, params)
        assert len(first) == 32
        assert compute_commitment_hash(ALICE, params) == first

    def test_matches_packed_sender_and_abi_encoded_params(self, params):
        encoded = encode([REVEAL_PARAMS_ABI_TYPE], [params.as_abi_tuple()])
        expected = keccak(bytes.fromhex(ALICE[2:]) + encoded)
        assert compute_commitment_hash(ALICE, params) == expected

    def test_struct_encoding_is_dynamic(self, params):
        # A struct holding a dynamic array is encoded behind a 0x20 offset word
        encoded = encode([REVEAL_PARAMS_ABI_TYPE], [params.as_abi_tuple()])
        assert encoded[:32] == (32).to_bytes(32, "big")

    def test_checksum_and_lowercase_committer_agree(self, params):
        upper = "0x" + ALICE[2:].upper()
        assert compute_commitment_hash(upper, params) == compute_commitment_hash(ALICE, params)

    def test_committer_bound(self, params):
        assert compute_commitment_hash(ALICE, params) != compute_commitment_hash(BOB, params)

    @pytest.mark.parametrize(
        "field,value",
        [
            ("asset", USDC),
            ("amount_in", 10 ** 18 + 1),
            ("min_profit", 1),
            ("salt", b"\x02" * 32),
        ],
    )
    def test_every_field_bound(self, params, field, value):
        perturbed = dataclasses.replace(params, **{field: value})
        assert compute_commitment_hash(ALICE, perturbed) != compute_commitment_hash(ALICE, params)

    def test_deadline_bound(self, params):
        perturbed = dataclasses.replace(params, deadline=params.deadline + 1)
        assert compute_commitment_hash(ALICE, perturbed) != compute_commitment_hash(ALICE, params)

    def test_path_bound(self, params):
        first, second = params.swap_path
        perturbed = dataclasses.replace(
            params,
            swap_path=(first, dataclasses.replace(second, minimum_out=second.minimum_out + 1)),
        )
        assert compute_commitment_hash(ALICE, perturbed) != compute_commitment_hash(ALICE, params)


# =============================================================================
# LIFECYCLE
# =============================================================================

class TestCommit:

    def test_commit_records_height_and_committer(self, chain, registry, params):
        h = compute_commitment_hash(ALICE, params)
        record = registry.commit(ALICE, h)

        assert record.committed_at == chain.block_number
        assert record.committer == ALICE
        assert record.revealed is False
        assert h in registry
        assert len(registry) == 1

        events = chain.events_named(EventName.COMMITTED)
        assert len(events) == 1
        assert events[0].args == {"commitment_hash": h, "block_number": chain.block_number, "committer": ALICE}
        assert events[0].emitter == EMITTER

    def test_accepts_hex_hash(self, registry, params):
        h = compute_commitment_hash(ALICE, params)
        registry.commit(ALICE, "0x" + h.hex())
        assert h in registry

    def test_duplicate_rejected(self, registry, params):
        h = compute_commitment_hash(ALICE, params)
        registry.commit(ALICE, h)
        with pytest.raises(CommitmentError) as exc_info:
            registry.commit(BOB, h)
        assert exc_info.value.code == ErrorCode.COMMITMENT_ALREADY_EXISTS

    def test_batch_skips_existing_and_repeats(self, registry):
        a, b, c = b"\xaa" * 32, b"\xbb" * 32, b"\xcc" * 32
        registry.commit(ALICE, a)
        created = registry.batch_commit(ALICE, [a, b, b, c])
        assert created == 2
        assert len(registry) == 3

    def test_get_returns_copy(self, registry):
        h = b"\x01" * 32
        registry.commit(ALICE, h)
        record = registry.get(h)
        record.committer = BOB
        assert registry.get(h).committer == ALICE
        assert registry.get(b"\x02" * 32) is None


class TestConsume:

    def test_consume_after_delay(self, chain, registry, params):
        h = registry.commit(ALICE, compute_commitment_hash(ALICE, params)).hash
        chain.mine(1)
        record = registry.consume(ALICE, params)

        assert record.hash == h
        assert record.revealed is True
        assert h not in registry
        assert registry.is_revealed(h) is True

    def test_same_block_too_recent(self, registry, params):
        registry.commit(ALICE, compute_commitment_hash(ALICE, params))
        with pytest.raises(TimingError) as exc_info:
            registry.consume(ALICE, params)
        assert exc_info.value.code == ErrorCode.COMMITMENT_TOO_RECENT

    def test_max_age_boundary(self, chain, registry, params):
        registry.commit(ALICE, compute_commitment_hash(ALICE, params))
        chain.mine(10, seconds_per_block=0)
        registry.consume(ALICE, params)

    def test_expired(self, chain, registry, params):
        registry.commit(ALICE, compute_commitment_hash(ALICE, params))
        chain.mine(11, seconds_per_block=0)
        with pytest.raises(TimingError) as exc_info:
            registry.consume(ALICE, params)
        assert exc_info.value.code == ErrorCode.COMMITMENT_EXPIRED

    def test_wrong_caller_not_found(self, chain, registry, params):
        registry.commit(ALICE, compute_commitment_hash(ALICE, params))
        chain.mine(1)
        with pytest.raises(CommitmentError) as exc_info:
            registry.consume(BOB, params)
        assert exc_info.value.code == ErrorCode.COMMITMENT_NOT_FOUND

    def test_wrong_params_not_found(self, chain, registry, params):
        registry.commit(ALICE, compute_commitment_hash(ALICE, params))
        chain.mine(1)
        with pytest.raises(CommitmentError) as exc_info:
            registry.consume(ALICE, dataclasses.replace(params, min_profit=1))
        assert exc_info.value.code == ErrorCode.COMMITMENT_NOT_FOUND

    def test_replay_not_found(self, chain, registry, params):
        registry.commit(ALICE, compute_commitment_hash(ALICE, params))
        chain.mine(1)
        registry.consume(ALICE, params)
        with pytest.raises(CommitmentError) as exc_info:
            registry.consume(ALICE, params)
        assert exc_info.value.code == ErrorCode.COMMITMENT_NOT_FOUND

    def test_past_deadline(self, chain, registry, params):
        params = dataclasses.replace(params, deadline=chain.timestamp + 5)
        registry.commit(ALICE, compute_commitment_hash(ALICE, params))
        chain.mine(1)  # 12 seconds pass
        with pytest.raises(TimingError) as exc_info:
            registry.consume(ALICE, params)
        assert exc_info.value.code == ErrorCode.INVALID_DEADLINE

    def test_deadline_too_far(self, chain, registry, params):
        params = dataclasses.replace(params, deadline=chain.timestamp + 10_000)
        registry.commit(ALICE, compute_commitment_hash(ALICE, params))
        chain.mine(1)
        with pytest.raises(TimingError) as exc_info:
            registry.consume(ALICE, params)
        assert exc_info.value.code == ErrorCode.INVALID_DEADLINE

    def test_failed_consume_keeps_entry(self, registry, params):
        h = registry.commit(ALICE, compute_commitment_hash(ALICE, params)).hash
        with pytest.raises(TimingError):
            registry.consume(ALICE, params)
        assert h in registry

    def test_rollback_restores_consumed_entry(self, chain, registry, params):
        h = registry.commit(ALICE, compute_commitment_hash(ALICE, params)).hash
        chain.mine(1)
        with pytest.raises(RuntimeError):
            with chain.atomic():
                registry.consume(ALICE, params)
                raise RuntimeError("trade failed")
        assert h in registry
        assert registry.is_revealed(h) is False
        registry.consume(ALICE, params)


class TestCancelReclaimCleanup:

    def test_cancel(self, chain, registry):
        h = b"\x01" * 32
        registry.commit(ALICE, h)
        registry.cancel(ALICE, h)
        assert h not in registry
        assert registry.is_revealed(h) is False
        assert len(chain.events_named(EventName.COMMIT_CANCELLED)) == 1

    def test_cancel_by_other_unauthorized(self, registry):
        h = b"\x01" * 32
        registry.commit(ALICE, h)
        with pytest.raises(AuthorizationError) as exc_info:
            registry.cancel(BOB, h)
        assert exc_info.value.code == ErrorCode.UNAUTHORIZED_COMMITTER

    def test_cancel_missing(self, registry):
        with pytest.raises(CommitmentError) as exc_info:
            registry.cancel(ALICE, b"\x01" * 32)
        assert exc_info.value.code == ErrorCode.COMMITMENT_NOT_FOUND

    def test_cancelled_cannot_be_consumed(self, chain, registry, params):
        h = registry.commit(ALICE, compute_commitment_hash(ALICE, params)).hash
        registry.cancel(ALICE, h)
        chain.mine(1)
        with pytest.raises(CommitmentError) as exc_info:
            registry.consume(ALICE, params)
        assert exc_info.value.code == ErrorCode.COMMITMENT_NOT_FOUND

    def test_reclaim_requires_expiry(self, chain, registry):
        h = b"\x01" * 32
        registry.commit(ALICE, h)
        chain.mine(10)
        with pytest.raises(CommitmentError) as exc_info:
            registry.reclaim(ALICE, h)
        assert exc_info.value.code == ErrorCode.COMMITMENT_NOT_EXPIRED
        chain.mine(1)
        record = registry.reclaim(ALICE, h)
        assert record.committer == ALICE
        assert h not in registry

    def test_reclaim_by_other_unauthorized(self, chain, registry):
        h = b"\x01" * 32
        registry.commit(ALICE, h)
        chain.mine(11)
        with pytest.raises(AuthorizationError):
            registry.reclaim(BOB, h)

    def test_cleanup_counts_only_expired(self, chain, registry):
        old, fresh, missing = b"\x01" * 32, b"\x02" * 32, b"\x03" * 32
        registry.commit(ALICE, old)
        chain.mine(5)
        registry.commit(BOB, fresh)
        chain.mine(6)

        assert registry.cleanup_expired([old, fresh, missing]) == 1
        assert old not in registry
        assert fresh in registry

        events = chain.events_named(EventName.EXPIRED_COMMITMENTS_CLEANED)
        assert [e.args["count"] for e in events] == [1]

    def test_cleanup_nothing_emits_nothing(self, chain, registry):
        registry.commit(ALICE, b"\x01" * 32)
        assert registry.cleanup_expired([b"\x01" * 32]) == 0
        assert chain.events_named(EventName.EXPIRED_COMMITMENTS_CLEANED) == []
