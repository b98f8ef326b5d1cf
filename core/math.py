# PATH: core/math.py
"""
Math utilities for SEALEDARB.

Integer wei arithmetic only. Decimal is used for display, never for
settlement.
"""

from decimal import Decimal, InvalidOperation
from typing import Union

from core.constants import BPS_DENOMINATOR, RATE_SCALE
from core.exceptions import ErrorCode, SealedArbError


def bps_of(amount: int, bps: int) -> int:
    """
    Fee of `bps` basis points on `amount`, rounded down.

    Example: bps_of(10 * 10**18, 9) -> 9 * 10**15 (0.009 ETH)
    """
    return amount * bps // BPS_DENOMINATOR


def apply_rate(amount: int, rate: int) -> int:
    """Convert an amount through an 18-decimal fixed-point rate, rounded down."""
    return amount * rate // RATE_SCALE


def to_units(value: Union[str, int, Decimal], decimals: int = 18) -> int:
    """
    Parse a human amount into integer units.

    Example: to_units("1.5", 18) -> 1500000000000000000

    Raises:
        SealedArbError(INVALID_AMOUNT) for unparseable or fractional-unit values
    """
    try:
        scaled = Decimal(str(value)) * (Decimal(10) ** decimals)
    except (InvalidOperation, ValueError) as exc:
        raise SealedArbError(
            ErrorCode.INVALID_AMOUNT,
            f"Cannot parse amount: {value!r}",
        ) from exc

    if scaled != scaled.to_integral_value():
        raise SealedArbError(
            ErrorCode.INVALID_AMOUNT,
            f"Amount {value} has more than {decimals} decimals",
        )
    return int(scaled)


def format_units(amount: int, decimals: int = 18) -> str:
    """
    Format integer units as a plain decimal string.

    Example: format_units(1500000000000000000) -> "1.5"
    """
    value = Decimal(amount) / (Decimal(10) ** decimals)
    return format(value.normalize(), "f")
