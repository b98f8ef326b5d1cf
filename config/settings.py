"""
config/settings.py - Arbitrage contract configuration.

Window sizes, swap limits and fees, with YAML defaults and environment
overrides (SEALEDARB_MIN_DELAY_BLOCKS, SEALEDARB_MAX_COMMIT_AGE_BLOCKS, ...).
A .env file in the working directory is honoured.
"""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict

import yaml
from dotenv import load_dotenv

from core.constants import (
    DEFAULT_SWAP_DEADLINE,
    FLASH_LOAN_PREMIUM_BPS,
    MAX_COMMIT_AGE_BLOCKS,
    MAX_SWAP_DEADLINE,
    MAX_SWAP_HOPS,
    MIN_DELAY_BLOCKS,
)
from core.exceptions import ConfigError

ENV_PREFIX = "SEALEDARB_"
DEFAULT_CONFIG_PATH = Path(__file__).parent / "arbitrage.yaml"


@dataclass
class ArbitrageConfig:
    """Contract configuration."""

    # Commit-reveal window (blocks)
    min_delay_blocks: int = MIN_DELAY_BLOCKS
    max_commit_age_blocks: int = MAX_COMMIT_AGE_BLOCKS

    # Swap limits
    max_swap_hops: int = MAX_SWAP_HOPS
    max_swap_deadline: int = MAX_SWAP_DEADLINE  # seconds
    default_swap_deadline: int = DEFAULT_SWAP_DEADLINE  # seconds

    # Profit floor (wei of the funding asset)
    minimum_profit: int = 0

    # Flash loans
    flash_loan_premium_bps: int = FLASH_LOAN_PREMIUM_BPS

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Raise ConfigError on inconsistent values."""
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ConfigError(
                    f"{f.name} must be a non-negative integer, got {value!r}",
                    details={"field": f.name},
                )

        if self.max_commit_age_blocks < self.min_delay_blocks:
            raise ConfigError(
                "max_commit_age_blocks must be >= min_delay_blocks",
                details={
                    "min_delay_blocks": self.min_delay_blocks,
                    "max_commit_age_blocks": self.max_commit_age_blocks,
                },
            )
        if not 1 <= self.max_swap_hops <= MAX_SWAP_HOPS:
            raise ConfigError(f"max_swap_hops must be within 1..{MAX_SWAP_HOPS}")
        if not 1 <= self.default_swap_deadline <= self.max_swap_deadline:
            raise ConfigError("default_swap_deadline must be within 1..max_swap_deadline")

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def _env_overrides() -> Dict[str, Any]:
    overrides = {}
    for f in fields(ArbitrageConfig):
        raw = os.environ.get(ENV_PREFIX + f.name.upper())
        if raw is None:
            continue
        try:
            overrides[f.name] = int(raw)
        except ValueError as exc:
            raise ConfigError(
                f"{ENV_PREFIX}{f.name.upper()} must be an integer, got {raw!r}",
                details={"field": f.name},
            ) from exc
    return overrides


def load_arbitrage_config(config_path: Path | None = None, use_env: bool = True) -> ArbitrageConfig:
    """
    Load contract configuration.

    Precedence: environment > YAML file > built-in defaults.

    Args:
        config_path: Path to a YAML file (default: config/arbitrage.yaml)
        use_env: Apply SEALEDARB_* environment overrides

    Returns:
        Validated ArbitrageConfig
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    data: Dict[str, Any] = {}
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            data = (yaml.safe_load(f) or {}).get("contract", {})

    known = {f.name for f in fields(ArbitrageConfig)}
    unknown = set(data) - known
    if unknown:
        raise ConfigError(f"Unknown config keys: {sorted(unknown)}")

    if use_env:
        load_dotenv()
        data.update(_env_overrides())

    return ArbitrageConfig(**data)
