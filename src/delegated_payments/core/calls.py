"""
ABI encoding of the individual calls that make up a payment batch.
"""

from __future__ import annotations

from eth_abi import encode
from eth_utils import function_signature_to_4byte_selector

from .errors import InvalidInput
from .values import MAX_UINT256, checksum_address, validate_payment_id

__all__ = [
    "BATCH_EXECUTE_MODE",
    "COMMIT_SIGNATURE",
    "EXECUTE_SIGNATURE",
    "REVEAL_SIGNATURE",
    "TRANSFER_SIGNATURE",
    "encode_commit",
    "encode_execute",
    "encode_reveal",
    "encode_transfer",
    "selector",
]

COMMIT_SIGNATURE = "commit(address,uint256,string)"
TRANSFER_SIGNATURE = "transfer(address,uint256)"
REVEAL_SIGNATURE = "reveal(address,uint256,string)"
EXECUTE_SIGNATURE = "execute(bytes32,bytes)"

# ERC-7579 execution mode: call type 0x01 (batch), default exec type, no selector/payload.
BATCH_EXECUTE_MODE = b"\x01" + b"\x00" * 31


def selector(signature: str) -> bytes:
    return bytes(function_signature_to_4byte_selector(signature))


def _check_amount(amount: int) -> int:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidInput("amount", f"Invalid amount: {amount!r} is not an integer")
    if amount < 0 or amount > MAX_UINT256:
        raise InvalidInput("amount", f"Invalid amount: {amount} is out of uint256 range")
    return amount


def encode_commit(recipient: str, amount: int, payment_id: str) -> bytes:
    recipient = checksum_address(recipient, "recipient")
    amount = _check_amount(amount)
    payment_id = validate_payment_id(payment_id)
    return selector(COMMIT_SIGNATURE) + encode(
        ["address", "uint256", "string"], [recipient, amount, payment_id]
    )


def encode_transfer(recipient: str, amount: int) -> bytes:
    recipient = checksum_address(recipient, "recipient")
    amount = _check_amount(amount)
    return selector(TRANSFER_SIGNATURE) + encode(
        ["address", "uint256"], [recipient, amount]
    )


def encode_reveal(recipient: str, amount: int, payment_id: str) -> bytes:
    recipient = checksum_address(recipient, "recipient")
    amount = _check_amount(amount)
    payment_id = validate_payment_id(payment_id)
    return selector(REVEAL_SIGNATURE) + encode(
        ["address", "uint256", "string"], [recipient, amount, payment_id]
    )


def encode_execute(mode: bytes, packed: bytes) -> bytes:
    """Encode ``execute(bytes32 mode, bytes executionCalldata)``."""
    if len(mode) != 32:
        raise InvalidInput("mode", f"Execution mode must be 32 bytes, got {len(mode)}")
    return selector(EXECUTE_SIGNATURE) + encode(["bytes32", "bytes"], [mode, packed])
