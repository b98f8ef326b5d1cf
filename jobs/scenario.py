"""
jobs/scenario.py - Build a simulated deployment from a scenario file.

A scenario names tokens, venues (rates and liquidity), a trade path and
initial funding. Amounts are human units of the relevant token; venue
rates are raw 18-decimal fixed-point integers.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from chains import Chain, FlashLender, RateVenue
from config.settings import ArbitrageConfig
from core.constants import ExecutionMode
from core.exceptions import ConfigError
from core.logging import get_logger
from core.math import format_units, to_units
from core.models import RevealParameters, SwapHop
from execution import CommitRevealArbitrage, FlashLoanArbitrage

logger = get_logger("sealedarb.scenario")


@dataclass
class Deployment:
    """Everything a scenario run needs, wired onto one chain."""

    name: str
    mode: ExecutionMode
    chain: Chain
    owner: str
    trader: str
    lender: FlashLender
    contract: Union[CommitRevealArbitrage, FlashLoanArbitrage]
    tokens: Dict[str, str] = field(default_factory=dict)
    venues: Dict[str, RateVenue] = field(default_factory=dict)
    params: Optional[RevealParameters] = None

    @property
    def asset_decimals(self) -> int:
        return self.chain.tokens.decimals_of(self.params.asset)

    def fmt(self, amount: int) -> str:
        return format_units(amount, self.asset_decimals)


def _require(data: Dict[str, Any], key: str, where: str) -> Any:
    if key not in data:
        raise ConfigError(f"Scenario is missing '{key}' in {where}")
    return data[key]


def _lookup(table: Dict[str, Any], key: str, kind: str) -> Any:
    if key not in table:
        raise ConfigError(f"Scenario references unknown {kind} '{key}'", details={kind: key})
    return table[key]


def build_deployment(
    scenario: Dict[str, Any],
    mode: ExecutionMode = ExecutionMode.COMMIT_REVEAL,
    config: Optional[ArbitrageConfig] = None,
) -> Deployment:
    """
    Deploy tokens, venues, lender and the arbitrage contract for a scenario.

    Args:
        scenario: Parsed scenario YAML
        mode: Which contract to deploy
        config: Contract configuration (defaults when None)

    Returns:
        Deployment with the trade parameters resolved to addresses and units
    """
    config = config or ArbitrageConfig()
    chain = Chain()
    ledger = chain.tokens

    owner = chain.new_address("owner")
    trader = chain.new_address("trader")

    tokens: Dict[str, str] = {}
    for symbol, spec in _require(scenario, "tokens", "scenario").items():
        tokens[symbol] = ledger.create_token(symbol, decimals=int((spec or {}).get("decimals", 18)))

    def units(symbol: str, amount: Any) -> int:
        return to_units(amount, ledger.decimals_of(_lookup(tokens, symbol, "token")))

    venues: Dict[str, RateVenue] = {}
    for venue_name, spec in _require(scenario, "venues", "scenario").items():
        venue = RateVenue(chain, name=venue_name)
        for rate in spec.get("rates", []):
            venue.set_exchange_rate(
                _lookup(tokens, rate["from"], "token"),
                _lookup(tokens, rate["to"], "token"),
                int(rate["rate"]),
            )
        for symbol, amount in (spec.get("liquidity") or {}).items():
            ledger.mint(_lookup(tokens, symbol, "token"), venue.address, units(symbol, amount))
        venues[venue_name] = venue

    lender = FlashLender(chain, premium_bps=config.flash_loan_premium_bps)

    if mode == ExecutionMode.FLASH_LOAN:
        contract: Union[CommitRevealArbitrage, FlashLoanArbitrage] = FlashLoanArbitrage(
            chain, owner, lender, config=config
        )
    else:
        contract = CommitRevealArbitrage(chain, owner, config=config)

    for venue in venues.values():
        contract.add_approved_venue(owner, venue)

    funding = scenario.get("funding") or {}
    for symbol, amount in (funding.get("trader") or {}).items():
        ledger.mint(_lookup(tokens, symbol, "token"), trader, units(symbol, amount))
    for symbol, amount in (funding.get("lender") or {}).items():
        ledger.mint(_lookup(tokens, symbol, "token"), lender.address, units(symbol, amount))

    trade = _require(scenario, "trade", "scenario")
    asset_symbol = _require(trade, "asset", "trade")
    path: List[SwapHop] = [
        SwapHop(
            venue=_lookup(venues, hop["venue"], "venue").address,
            token_in=_lookup(tokens, hop["from"], "token"),
            token_out=_lookup(tokens, hop["to"], "token"),
            minimum_out=units(hop["to"], hop["minimum_out"]),
        )
        for hop in _require(trade, "path", "trade")
    ]

    params = RevealParameters(
        asset=_lookup(tokens, asset_symbol, "token"),
        amount_in=units(asset_symbol, _require(trade, "amount_in", "trade")),
        swap_path=tuple(path),
        min_profit=units(asset_symbol, trade.get("min_profit", "0")),
        deadline=chain.timestamp + config.default_swap_deadline,
        salt=_require(trade, "salt", "trade"),
    )

    deployment = Deployment(
        name=scenario.get("name", "scenario"),
        mode=mode,
        chain=chain,
        owner=owner,
        trader=trader,
        lender=lender,
        contract=contract,
        tokens=tokens,
        venues=venues,
        params=params,
    )
    logger.info(
        "Scenario deployed",
        extra={"context": {
            "scenario": deployment.name,
            "mode": mode.value,
            "contract": contract.address,
            "venues": len(venues),
            "hops": len(path),
        }},
    )
    return deployment


def run_commit_reveal(deployment: Deployment) -> Dict[str, Any]:
    """commit -> mine past the delay -> fund the contract -> reveal."""
    chain = deployment.chain
    contract = deployment.contract
    params = deployment.params

    commitment_hash = contract.commitment_hash(deployment.trader, params)
    contract.commit(deployment.trader, commitment_hash)
    committed_at = chain.block_number

    chain.mine(contract.config.min_delay_blocks)
    chain.tokens.transfer(params.asset, deployment.trader, contract.address, params.amount_in)
    profit = contract.reveal(deployment.trader, params)

    return {
        "commitment_hash": "0x" + commitment_hash.hex(),
        "committed_at": committed_at,
        "revealed_at": chain.block_number,
        "profit": profit,
        "profit_formatted": deployment.fmt(profit),
    }


def run_flash_loan(deployment: Deployment) -> Dict[str, Any]:
    """Borrow, execute and repay in one call."""
    contract = deployment.contract
    params = deployment.params

    profit = contract.execute_arbitrage(
        deployment.trader,
        params.asset,
        params.amount_in,
        params.swap_path,
        params.min_profit,
        params.deadline,
    )
    fee = deployment.lender.premium_for(params.amount_in)
    return {
        "flash_loan_fee": fee,
        "profit": profit,
        "profit_formatted": deployment.fmt(profit),
    }


def simulate(deployment: Deployment) -> Dict[str, Any]:
    """Run the scenario's trade in the deployment's mode and summarize it."""
    if deployment.mode == ExecutionMode.FLASH_LOAN:
        outcome = run_flash_loan(deployment)
    else:
        outcome = run_commit_reveal(deployment)

    contract = deployment.contract
    params = deployment.params
    return {
        "scenario": deployment.name,
        "mode": deployment.mode.value,
        "contract": contract.address,
        "asset": params.asset,
        "amount_in": params.amount_in,
        "hops": len(params.swap_path),
        **outcome,
        "total_profit": contract.total_profit,
        "contract_balance": contract.balance_of(params.asset),
        "events": [e.name for e in deployment.chain.events if e.emitter == contract.address],
    }
