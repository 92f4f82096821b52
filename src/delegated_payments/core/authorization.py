"""
EIP-7702 authorization construction and signing.

The signed digest is ``keccak(0x05 || rlp([chain_id, address, nonce]))``. The
RLP encoding is produced here directly: it only ever needs two integers and a
20-byte string, which always fit a short list for realistic chain ids.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Tuple, Union

from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_utils import keccak

from .errors import SigningError
from .values import checksum_address

__all__ = [
    "AUTHORIZATION_MAGIC",
    "Authorization",
    "authorization_digest",
    "authorization_nonce",
    "build_authorization",
    "encode_authorization_tuple",
    "encode_scalar",
    "load_signer",
    "rlp_encode_bytes",
    "rlp_encode_list",
    "split_signature",
]

AUTHORIZATION_MAGIC = b"\x05"

_SHORT_LIMIT = 55


def encode_scalar(value: int) -> bytes:
    """Minimal big-endian encoding; zero is the empty string."""
    if value < 0:
        raise ValueError(f"Cannot encode negative integer {value}")
    if value == 0:
        return b""
    return value.to_bytes((value.bit_length() + 7) // 8, "big")


def rlp_encode_bytes(data: bytes) -> bytes:
    if len(data) == 1 and data[0] < 0x80:
        return data
    if len(data) > _SHORT_LIMIT:
        raise ValueError(f"String of {len(data)} bytes exceeds short RLP encoding")
    return bytes([0x80 + len(data)]) + data


def rlp_encode_list(items: Tuple[bytes, ...]) -> bytes:
    """Wrap already-encoded ``items`` in a short list header."""
    payload = b"".join(items)
    if len(payload) > _SHORT_LIMIT:
        raise ValueError(
            f"List payload of {len(payload)} bytes exceeds short RLP list encoding"
        )
    return bytes([0xC0 + len(payload)]) + payload


def encode_authorization_tuple(chain_id: int, address: str, nonce: int) -> bytes:
    address_bytes = bytes.fromhex(checksum_address(address, "delegation_target")[2:])
    return rlp_encode_list(
        (
            rlp_encode_bytes(encode_scalar(chain_id)),
            rlp_encode_bytes(address_bytes),
            rlp_encode_bytes(encode_scalar(nonce)),
        )
    )


def authorization_digest(chain_id: int, address: str, nonce: int) -> bytes:
    return keccak(AUTHORIZATION_MAGIC + encode_authorization_tuple(chain_id, address, nonce))


def split_signature(signature: bytes) -> Tuple[int, bytes, bytes]:
    """Split a 65-byte ``r || s || v`` signature into ``(y_parity, r, s)``."""
    signature = bytes(signature)
    if len(signature) != 65:
        raise SigningError(f"Expected a 65-byte signature, got {len(signature)} bytes")
    r = signature[:32]
    s = signature[32:64]
    v = signature[64]
    if v == 27:
        y_parity = 0
    elif v == 28:
        y_parity = 1
    else:
        y_parity = v % 2
    return y_parity, r, s


def authorization_nonce(current_nonce: int, *, sponsored: bool = False) -> int:
    """
    Nonce to place in an authorization.

    When the signer also sends the transaction, the transaction consumes
    ``current_nonce`` before the authorization list is processed, so the
    authorization must carry ``current_nonce + 1``.
    """
    return current_nonce if sponsored else current_nonce + 1


@dataclass(frozen=True)
class Authorization:
    chain_id: int
    address: str
    nonce: int
    y_parity: int
    r: bytes
    s: bytes

    def as_transaction_field(self) -> Dict[str, Any]:
        """Entry for the ``authorizationList`` of a set-code transaction."""
        return {
            "chainId": self.chain_id,
            "address": self.address,
            "nonce": self.nonce,
            "yParity": self.y_parity,
            "r": int.from_bytes(self.r, "big"),
            "s": int.from_bytes(self.s, "big"),
        }


def load_signer(signer: Union[str, LocalAccount]) -> LocalAccount:
    if isinstance(signer, LocalAccount):
        return signer
    try:
        return Account.from_key(signer)
    except Exception as exc:  # noqa: BLE001
        raise SigningError("Private key is malformed") from exc


def build_authorization(
    signer: Union[str, LocalAccount],
    delegation_target: str,
    chain_id: int,
    nonce: int,
) -> Authorization:
    account = load_signer(signer)
    target = checksum_address(delegation_target, "delegation_target")
    try:
        digest = authorization_digest(chain_id, target, nonce)
    except ValueError as exc:
        raise SigningError(f"Cannot encode authorization: {exc}") from exc

    try:
        signed = account.unsafe_sign_hash(digest)
    except Exception as exc:  # noqa: BLE001
        raise SigningError(f"Failed to sign authorization: {exc}") from exc

    y_parity, r, s = split_signature(signed.signature)
    logging.debug(
        "Signed authorization for %s -> %s (chain %s, nonce %s)",
        account.address,
        target,
        chain_id,
        nonce,
    )
    return Authorization(
        chain_id=chain_id,
        address=target,
        nonce=nonce,
        y_parity=y_parity,
        r=r,
        s=s,
    )
