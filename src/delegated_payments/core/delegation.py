"""
Classification of an account's on-chain code into a delegation state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol, Union

from hexbytes import HexBytes

from .errors import DelegationMismatch
from .values import checksum_address

__all__ = [
    "DELEGATION_DESIGNATOR",
    "DelegatedTo",
    "DelegationState",
    "HasOtherCode",
    "NotDelegated",
    "classify_code",
    "inspect",
    "require_delegation",
]

DELEGATION_DESIGNATOR = bytes.fromhex("ef0100")
_DESIGNATED_CODE_LENGTH = len(DELEGATION_DESIGNATOR) + 20


@dataclass(frozen=True)
class NotDelegated:
    pass


@dataclass(frozen=True)
class DelegatedTo:
    target: str


@dataclass(frozen=True)
class HasOtherCode:
    code: bytes


DelegationState = Union[NotDelegated, DelegatedTo, HasOtherCode]


class CodeReader(Protocol):
    async def get_code(self, address: str) -> bytes: ...


def classify_code(code: bytes) -> DelegationState:
    """
    Map raw account code to a delegation state.

    Only code of exactly 23 bytes (``0xef0100`` plus a 20-byte address) is a
    designator. Longer or shorter code starting with ``0xef0100`` cannot be
    deployed (EIP-3541) and is reported as :class:`HasOtherCode`.
    """
    code = bytes(HexBytes(code))
    if not code:
        return NotDelegated()
    if code.startswith(DELEGATION_DESIGNATOR) and len(code) == _DESIGNATED_CODE_LENGTH:
        target = code[len(DELEGATION_DESIGNATOR):]
        return DelegatedTo(checksum_address(target.hex()))
    return HasOtherCode(code)


async def inspect(rpc: CodeReader, address: str) -> DelegationState:
    """
    Fetch the code at ``address`` and classify it.

    RPC failures propagate unchanged: "could not determine" is never reported
    as :class:`NotDelegated`.
    """
    address = checksum_address(address)
    code = await rpc.get_code(address)
    state = classify_code(code)
    logging.debug("Delegation state for %s: %s", address, state)
    return state


def require_delegation(state: DelegationState, expected: str) -> str:
    """Return the delegation target if it equals ``expected``; raise otherwise."""
    expected = checksum_address(expected, "delegation_target")
    if isinstance(state, DelegatedTo) and state.target == expected:
        return state.target
    raise DelegationMismatch(state, expected)
