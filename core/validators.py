# PATH: core/validators.py
"""
Input validators for SEALEDARB.

Addresses are normalized to lowercase 0x-hex everywhere so equality checks
on tokens, venues and callers never depend on checksum casing.
"""

from typing import Any, Union

from eth_utils import is_address, is_hex, to_bytes, to_normalized_address

from core.constants import ZERO_ADDRESS
from core.exceptions import ErrorCode, SealedArbError


def is_valid_address(address: Any) -> bool:
    """
    Check if value is a valid Ethereum address.

    Accepts lowercase, uppercase or correctly checksummed 0x-hex strings.
    """
    if not isinstance(address, str):
        return False
    return is_address(address)


def normalize_address(address: Any, field_name: str = "address") -> str:
    """
    Normalize an address to lowercase 0x-hex.

    Raises:
        SealedArbError(INVALID_ADDRESS) if the value is not an address
    """
    if not is_valid_address(address):
        raise SealedArbError(
            ErrorCode.INVALID_ADDRESS,
            f"Invalid {field_name}: {address!r}",
            details={"field": field_name, "value": str(address)},
        )
    return to_normalized_address(address)


def require_nonzero_address(address: Any, field_name: str = "address") -> str:
    """Normalize an address and reject the zero address."""
    normalized = normalize_address(address, field_name)
    if normalized == ZERO_ADDRESS:
        raise SealedArbError(
            ErrorCode.INVALID_ADDRESS,
            f"Zero address not allowed for {field_name}",
            details={"field": field_name},
        )
    return normalized


def to_bytes32(value: Union[bytes, bytearray, str], field_name: str = "value") -> bytes:
    """
    Coerce a 32-byte value given as bytes or 0x-hex.

    Raises:
        SealedArbError(INVALID_BYTES32) if the value is not exactly 32 bytes
    """
    if isinstance(value, (bytes, bytearray)):
        raw = bytes(value)
    elif isinstance(value, str) and is_hex(value):
        raw = to_bytes(hexstr=value)
    else:
        raise SealedArbError(
            ErrorCode.INVALID_BYTES32,
            f"{field_name} must be bytes or 0x-hex, got {type(value).__name__}",
            details={"field": field_name},
        )

    if len(raw) != 32:
        raise SealedArbError(
            ErrorCode.INVALID_BYTES32,
            f"{field_name} must be 32 bytes, got {len(raw)}",
            details={"field": field_name, "length": len(raw)},
        )
    return raw


def require_uint(value: Any, field_name: str = "amount") -> int:
    """Reject negative or non-integer amounts (bool is not an amount)."""
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise SealedArbError(
            ErrorCode.INVALID_AMOUNT,
            f"{field_name} must be a non-negative integer, got {value!r}",
            details={"field": field_name},
        )
    return value
