# PATH: tests/conftest.py
"""
Pytest configuration and fixtures for SEALEDARB tests.

The `market` fixture deploys the round-trip market used across the
integration tests:

    WETH (18) / USDC (6) / DAI (18)
    router_a: WETH->USDC at 2000, USDC->WETH at 1/1980 (~1% edge)
              USDC->DAI at 1.01
    router_b: DAI->WETH at 1/1980
"""

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Dict

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from chains import Chain, FlashLender, RateVenue  # noqa: E402
from config.settings import ArbitrageConfig  # noqa: E402
from core.logging import clear_global_context  # noqa: E402
from execution import CommitRevealArbitrage, FlashLoanArbitrage  # noqa: E402

ETHER = 10 ** 18
USDC_UNIT = 10 ** 6

# amount_out = amount_in * rate / 1e18
WETH_TO_USDC = 2000 * USDC_UNIT                 # 1 WETH -> 2000 USDC
USDC_TO_WETH = 505 * 10 ** 24                   # 2000 USDC -> 1.01 WETH
USDC_TO_DAI = 101 * 10 ** 28                    # 2000 USDC -> 2020 DAI
DAI_TO_WETH = 505 * 10 ** 12                    # 2020 DAI -> 1.0201 WETH


def pytest_configure(config):
    """Configure pytest."""
    # Add custom markers
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )


@dataclass
class Market:
    chain: Chain
    owner: str
    trader: str
    other: str
    weth: str
    usdc: str
    dai: str
    router_a: RateVenue
    router_b: RateVenue
    lender: FlashLender

    @property
    def tokens(self):
        return self.chain.tokens

    def balances(self, holder: str) -> Dict[str, int]:
        return {
            "WETH": self.tokens.balance_of(self.weth, holder),
            "USDC": self.tokens.balance_of(self.usdc, holder),
            "DAI": self.tokens.balance_of(self.dai, holder),
        }


@pytest.fixture(autouse=True)
def _reset_log_context():
    yield
    clear_global_context()


@pytest.fixture
def chain() -> Chain:
    return Chain()


@pytest.fixture
def market(chain: Chain) -> Market:
    tokens = chain.tokens
    weth = tokens.create_token("WETH", 18)
    usdc = tokens.create_token("USDC", 6)
    dai = tokens.create_token("DAI", 18)

    router_a = RateVenue(chain, name="router_a")
    router_a.set_exchange_rate(weth, usdc, WETH_TO_USDC)
    router_a.set_exchange_rate(usdc, weth, USDC_TO_WETH)
    router_a.set_exchange_rate(usdc, dai, USDC_TO_DAI)

    router_b = RateVenue(chain, name="router_b")
    router_b.set_exchange_rate(dai, weth, DAI_TO_WETH)

    for venue in (router_a, router_b):
        tokens.mint(weth, venue.address, 1_000 * ETHER)
        tokens.mint(usdc, venue.address, 10_000_000 * USDC_UNIT)
        tokens.mint(dai, venue.address, 10_000_000 * ETHER)

    lender = FlashLender(chain)
    tokens.mint(weth, lender.address, 10_000 * ETHER)

    trader = chain.new_address("trader")
    tokens.mint(weth, trader, 100 * ETHER)

    return Market(
        chain=chain,
        owner=chain.new_address("owner"),
        trader=trader,
        other=chain.new_address("other"),
        weth=weth,
        usdc=usdc,
        dai=dai,
        router_a=router_a,
        router_b=router_b,
        lender=lender,
    )


@pytest.fixture
def config() -> ArbitrageConfig:
    return ArbitrageConfig()


@pytest.fixture
def commit_reveal(market: Market, config: ArbitrageConfig) -> CommitRevealArbitrage:
    contract = CommitRevealArbitrage(market.chain, market.owner, config=config)
    contract.add_approved_venue(market.owner, market.router_a)
    contract.add_approved_venue(market.owner, market.router_b)
    return contract


@pytest.fixture
def flash_loan(market: Market, config: ArbitrageConfig) -> FlashLoanArbitrage:
    contract = FlashLoanArbitrage(market.chain, market.owner, market.lender, config=config)
    contract.add_approved_venue(market.owner, market.router_a)
    contract.add_approved_venue(market.owner, market.router_b)
    return contract
