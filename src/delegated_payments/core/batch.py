"""
Assembly of the commit -> transfer -> reveal batch and its execute payload.

The commit/reveal contract binds the token transfer that sits between its two
calls, so the order of the batch is fixed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Tuple

from eth_abi import encode

from .calls import (
    BATCH_EXECUTE_MODE,
    encode_commit,
    encode_execute,
    encode_reveal,
    encode_transfer,
)
from .values import checksum_address

__all__ = [
    "CallBatch",
    "CallEntry",
    "build_batch",
    "build_execute_calldata",
    "pack_batch",
]

_EXECUTION_ARRAY_TYPE = "(address,uint256,bytes)[]"


@dataclass(frozen=True)
class CallEntry:
    target: str
    value: int
    data: bytes

    def as_tuple(self) -> Tuple[str, int, bytes]:
        return (self.target, self.value, self.data)


@dataclass(frozen=True)
class CallBatch:
    commit: CallEntry
    transfer: CallEntry
    reveal: CallEntry

    @property
    def entries(self) -> Tuple[CallEntry, CallEntry, CallEntry]:
        return (self.commit, self.transfer, self.reveal)

    def __iter__(self) -> Iterator[CallEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return 3


def build_batch(
    event_contract: str,
    token_contract: str,
    recipient: str,
    amount: int,
    payment_id: str,
) -> CallBatch:
    event_contract = checksum_address(event_contract, "event_contract")
    token_contract = checksum_address(token_contract, "token_contract")
    return CallBatch(
        commit=CallEntry(event_contract, 0, encode_commit(recipient, amount, payment_id)),
        transfer=CallEntry(token_contract, 0, encode_transfer(recipient, amount)),
        reveal=CallEntry(event_contract, 0, encode_reveal(recipient, amount, payment_id)),
    )


def pack_batch(batch: CallBatch) -> bytes:
    return encode([_EXECUTION_ARRAY_TYPE], [[entry.as_tuple() for entry in batch]])


def build_execute_calldata(batch: CallBatch) -> bytes:
    return encode_execute(BATCH_EXECUTE_MODE, pack_batch(batch))
