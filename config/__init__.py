"""
Configuration loading utilities for SEALEDARB.
"""

from pathlib import Path
from typing import Any, Dict

import yaml


CONFIG_DIR = Path(__file__).parent


def load_yaml(filename: str) -> Dict[str, Any]:
    """
    Load a YAML configuration file.

    Args:
        filename: Name of file in config directory, or an absolute path

    Returns:
        Parsed YAML as dict
    """
    filepath = Path(filename)
    if not filepath.is_absolute():
        filepath = CONFIG_DIR / filename
    if not filepath.exists():
        raise FileNotFoundError(f"Config file not found: {filepath}")

    with open(filepath, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_arbitrage_defaults() -> Dict[str, Any]:
    """Load arbitrage.yaml."""
    return load_yaml("arbitrage.yaml")


def load_scenario(path: Path) -> Dict[str, Any]:
    """
    Load a simulation scenario.

    Args:
        path: Path to a scenario YAML file

    Returns:
        Scenario configuration dict
    """
    return load_yaml(str(Path(path).resolve()))
