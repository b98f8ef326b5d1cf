# PATH: execution/commit_reveal.py
"""
Commit-reveal arbitrage contract.

REVEAL CONTRACT:
================
  1. consume commitment     COMMITMENT_NOT_FOUND / TOO_RECENT / EXPIRED / INVALID_DEADLINE
  2. validate swap path     PathError / UNAUTHORIZED_VENUE
  3. execute swaps          venue failures, INSUFFICIENT_OUTPUT, VENUE_OUTPUT_MISMATCH
  4. verify profit          INSUFFICIENT_PROFIT
  5. emit Revealed

Capital comes from this contract's own balance of `asset`; traders fund
it before revealing and profit stays in the contract until the owner
withdraws it. The whole reveal is one atomic transaction, so a failure in
steps 2-4 also undoes the deletion in step 1 and the commitment stays
consumable.

cancel_commit, recover_commitment and cleanup_expired_commitments remain
available while paused.
================
"""

from typing import Iterable, Optional, Sequence

from chains.ledger import Chain
from config.settings import ArbitrageConfig
from core.constants import EventName, ExecutionMode
from core.logging import log_execution
from core.models import RevealParameters, SwapHop
from core.validators import normalize_address, require_uint
from execution.base import BaseArbitrage, entrypoint
from execution.commitments import CommitmentRegistry, HashLike, compute_commitment_hash
from execution.profit_ledger import ProfitLedger


class CommitRevealArbitrage(BaseArbitrage):
    """Arbitrage whose parameters stay hidden until the reveal block."""

    def __init__(
        self,
        chain: Chain,
        owner: str,
        config: Optional[ArbitrageConfig] = None,
        name: str = "commit_reveal",
    ):
        super().__init__(chain, owner, config=config, name=name)
        self.commitments = CommitmentRegistry(
            chain,
            self.address,
            min_delay_blocks=self.config.min_delay_blocks,
            max_commit_age_blocks=self.config.max_commit_age_blocks,
            max_swap_deadline=self.config.max_swap_deadline,
        )

    # -------------------------------------------------------------------------
    # Commitments
    # -------------------------------------------------------------------------

    @entrypoint()
    def commit(self, sender: str, commitment_hash: HashLike) -> bytes:
        return self.commitments.commit(sender, commitment_hash).hash

    @entrypoint()
    def batch_commit(self, sender: str, commitment_hashes: Iterable[HashLike]) -> int:
        """Commit several hashes at once. Returns how many were new."""
        return self.commitments.batch_commit(sender, commitment_hashes)

    @entrypoint(pausable=False)
    def cancel_commit(self, sender: str, commitment_hash: HashLike) -> None:
        self.commitments.cancel(sender, commitment_hash)

    @entrypoint()
    def reveal(self, sender: str, params: RevealParameters) -> int:
        """
        Disclose committed parameters and execute the trade.

        Returns:
            Realized profit in units of params.asset
        """
        record = self.commitments.consume(sender, params)
        self.validator.validate(params.asset, params.swap_path)

        profit = self._execute_and_verify(
            params.asset,
            params.amount_in,
            params.swap_path,
            params.min_profit,
            params.deadline,
        )

        self.chain.emit(
            EventName.REVEALED,
            self.address,
            commitment_hash=record.hash,
            asset=params.asset,
            amount_in=params.amount_in,
            profit=profit,
        )
        log_execution(
            self.logger,
            ExecutionMode.COMMIT_REVEAL.value,
            params.asset,
            params.amount_in,
            profit,
            len(params.swap_path),
            commitment_hash=record.hash_hex,
            committer=record.committer,
        )
        return profit

    @entrypoint(pausable=False)
    def recover_commitment(self, sender: str, commitment_hash: HashLike, asset: str, amount: int) -> None:
        """
        Delete an expired commitment and return `amount` of `asset` to its committer.

        The transfer comes out of this contract's balance and fails
        INSUFFICIENT_BALANCE when the contract holds less.
        """
        record = self.commitments.reclaim(sender, commitment_hash)
        asset = normalize_address(asset, "asset")
        require_uint(amount, "amount")
        if amount:
            self.chain.tokens.transfer(asset, self.address, record.committer, amount)

        self.chain.emit(
            EventName.COMMITMENT_RECOVERED,
            self.address,
            commitment_hash=record.hash,
            committer=record.committer,
            asset=asset,
            amount=amount,
        )
        self.logger.info(
            "Commitment recovered",
            extra={"context": {
                "commitment_hash": record.hash_hex,
                "committer": record.committer,
                "amount": amount,
            }},
        )

    @entrypoint(pausable=False)
    def cleanup_expired_commitments(self, sender: str, commitment_hashes: Iterable[HashLike]) -> int:
        """Permissionless storage cleanup. Returns the number deleted."""
        return self.commitments.cleanup_expired(commitment_hashes)

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    def commitment_hash(self, committer: str, params: RevealParameters) -> bytes:
        return compute_commitment_hash(committer, params)

    def calculate_expected_profit(self, asset: str, amount_in: int, path: Sequence[SwapHop]) -> int:
        """Quoted profit for a path, 0 when invalid or unprofitable. Never raises."""
        quoted = self.executor.quote(asset, amount_in, path)
        if quoted == 0:
            return 0
        return ProfitLedger.project(amount_in, quoted)
