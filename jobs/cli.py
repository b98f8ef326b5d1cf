#!/usr/bin/env python3
"""
jobs/cli.py - CLI entrypoint for scenario simulation.

Usage:
    sealedarb hash --scenario config/scenarios/two_hop.yaml
    sealedarb quote --scenario config/scenarios/triangular.yaml --mode flash-loan
    sealedarb simulate --scenario config/scenarios/two_hop.yaml --mode commit-reveal
"""

import json
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import click

from config import load_scenario
from config.settings import ArbitrageConfig, load_arbitrage_config
from core.constants import ExecutionMode
from core.exceptions import SealedArbError
from core.logging import get_logger, set_global_context, setup_logging
from jobs.scenario import Deployment, build_deployment, simulate

logger = get_logger("sealedarb.cli")

MODES = [m.value for m in ExecutionMode]

scenario_option = click.option(
    "--scenario",
    "-s",
    "scenario_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Scenario YAML file",
)
mode_option = click.option(
    "--mode",
    "-m",
    default=ExecutionMode.COMMIT_REVEAL.value,
    type=click.Choice(MODES),
    help="Execution mode",
)


def _emit(payload: Dict[str, Any]) -> None:
    click.echo(json.dumps(payload, indent=2, default=str))


def _fail(error: SealedArbError) -> None:
    _emit({"ok": False, "error": error.to_dict()})
    sys.exit(1)


def _deploy(ctx: click.Context, scenario_path: Path, mode: str) -> Deployment:
    config: ArbitrageConfig = ctx.obj["config"]
    return build_deployment(load_scenario(scenario_path), ExecutionMode(mode), config)


@click.group()
@click.option(
    "--config",
    "-c",
    "config_path",
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Contract config YAML (default: config/arbitrage.yaml)",
)
@click.option(
    "--log-level",
    "-l",
    default="WARNING",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Log level",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], log_level: str) -> None:
    """
    SEALEDARB scenario tools.

    Deploys a simulated chain from a scenario file and runs the arbitrage
    contracts against it.
    """
    ctx.ensure_object(dict)
    ctx.obj["log_level"] = log_level
    setup_logging(level=log_level, json_output=False)
    try:
        ctx.obj["config"] = load_arbitrage_config(config_path)
    except SealedArbError as e:
        _fail(e)


@cli.command("hash")
@scenario_option
@click.pass_context
def hash_command(ctx: click.Context, scenario_path: Path) -> None:
    """Print the commitment hash for the scenario's trade."""
    try:
        deployment = _deploy(ctx, scenario_path, ExecutionMode.COMMIT_REVEAL.value)
        commitment_hash = deployment.contract.commitment_hash(deployment.trader, deployment.params)
    except SealedArbError as e:
        _fail(e)
        return

    _emit({
        "scenario": deployment.name,
        "committer": deployment.trader,
        "commitment_hash": "0x" + commitment_hash.hex(),
        "params": deployment.params.to_dict(),
    })


@cli.command("quote")
@scenario_option
@mode_option
@click.pass_context
def quote_command(ctx: click.Context, scenario_path: Path, mode: str) -> None:
    """Print the expected profit of the scenario's trade."""
    try:
        deployment = _deploy(ctx, scenario_path, mode)
    except SealedArbError as e:
        _fail(e)
        return

    params = deployment.params
    result: Dict[str, Any] = {"scenario": deployment.name, "mode": mode}
    if deployment.mode == ExecutionMode.FLASH_LOAN:
        profit, fee = deployment.contract.calculate_expected_profit(
            params.asset, params.amount_in, params.swap_path
        )
        result["flash_loan_fee"] = fee
    else:
        profit = deployment.contract.calculate_expected_profit(
            params.asset, params.amount_in, params.swap_path
        )
    result["expected_profit"] = profit
    result["expected_profit_formatted"] = deployment.fmt(profit)
    _emit(result)


@cli.command("simulate")
@scenario_option
@mode_option
@click.option(
    "--json-logs/--no-json-logs",
    default=False,
    help="Use JSON log format",
)
@click.pass_context
def simulate_command(ctx: click.Context, scenario_path: Path, mode: str, json_logs: bool) -> None:
    """Run the scenario's trade end to end and print a summary."""
    setup_logging(level=ctx.obj["log_level"], json_output=json_logs)
    set_global_context(service="sealedarb", mode=mode, scenario=scenario_path.stem)

    try:
        deployment = _deploy(ctx, scenario_path, mode)
        summary = simulate(deployment)
    except SealedArbError as e:
        logger.error(
            f"Simulation failed: {e}",
            extra={"context": {"error_code": e.code.value}},
        )
        _fail(e)
        return

    _emit({"ok": True, **summary})


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
