"""
Normalization helpers for amounts, addresses and payment identifiers.
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Union

from eth_utils import to_checksum_address

from .errors import InvalidInput

__all__ = [
    "MAX_PAYMENT_ID_LENGTH",
    "MAX_UINT256",
    "TOKEN_DECIMALS",
    "checksum_address",
    "format_amount",
    "normalize_amount",
    "validate_payment_id",
]

TOKEN_DECIMALS = 6
MAX_PAYMENT_ID_LENGTH = 100
MAX_UINT256 = 2**256 - 1
_UINT256_DIGITS = len(str(MAX_UINT256))

_HEX_ADDRESS = re.compile(r"^[0-9a-fA-F]{40}$")


def normalize_amount(
    amount: Union[str, int, Decimal],
    decimals: int = TOKEN_DECIMALS,
) -> int:
    """
    Convert a decimal token amount into base units.

    ``"10.5"`` becomes ``10500000`` for a 6-decimal token. More fractional
    digits than ``decimals`` is an error, never a silent truncation.
    """
    if isinstance(amount, bool) or not isinstance(amount, (str, int, Decimal)):
        raise InvalidInput("amount", f"Invalid amount: {amount!r} is not a valid number")

    raw = amount.strip() if isinstance(amount, str) else amount
    try:
        value = Decimal(raw)
    except InvalidOperation as exc:
        raise InvalidInput(
            "amount", f"Invalid amount: {amount} is not a valid number"
        ) from exc

    if not value.is_finite():
        raise InvalidInput("amount", f"Invalid amount: {amount} is not a valid number")
    if value <= 0:
        raise InvalidInput("amount", f"Invalid amount: {amount} must be greater than 0")

    _, digits, exponent = value.as_tuple()
    if exponent < -decimals:
        raise InvalidInput(
            "amount",
            f"Invalid amount: {amount} has too many decimal places (max {decimals})",
        )

    # Integer scaling; Decimal context arithmetic keeps only 28 digits.
    if value.adjusted() + decimals >= _UINT256_DIGITS:
        raise InvalidInput("amount", f"Invalid amount: {amount} does not fit in uint256")
    units = int("".join(map(str, digits))) * 10 ** (exponent + decimals)
    if units > MAX_UINT256:
        raise InvalidInput("amount", f"Invalid amount: {amount} does not fit in uint256")
    return units


def format_amount(units: int, decimals: int = TOKEN_DECIMALS) -> str:
    """Render base units as a plain decimal string (``10500000`` -> ``"10.5"``)."""
    whole, fraction = divmod(units, 10**decimals)
    if not fraction:
        return str(whole)
    return f"{whole}.{fraction:0{decimals}d}".rstrip("0")


def checksum_address(address: str, field: str = "address") -> str:
    if not isinstance(address, str):
        raise InvalidInput(field, f"Invalid {field}: {address!r}")
    value = address.strip()
    if value[:2].lower() == "0x":
        value = value[2:]
    if not _HEX_ADDRESS.match(value):
        raise InvalidInput(field, f"Invalid {field}: {address}")
    return to_checksum_address("0x" + value.lower())


def validate_payment_id(payment_id: str) -> str:
    if not isinstance(payment_id, str):
        raise InvalidInput("payment_id", "Invalid payment ID: must be a string")
    trimmed = payment_id.strip()
    if not trimmed:
        raise InvalidInput("payment_id", "Invalid payment ID: cannot be empty")
    if len(trimmed) > MAX_PAYMENT_ID_LENGTH:
        raise InvalidInput(
            "payment_id",
            f"Invalid payment ID: longer than {MAX_PAYMENT_ID_LENGTH} characters",
        )
    return trimmed
