"""
JSON-RPC transport and the wallet client that signs and submits transactions.

The transport is a plain ``requests`` session; each call runs in a worker
thread so callers can ``await`` it without blocking the event loop.
"""

from __future__ import annotations

import asyncio
import itertools
import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Tuple

import requests
from eth_account.signers.local import LocalAccount
from hexbytes import HexBytes

from .authorization import Authorization
from .errors import NetworkError, RpcError, SubmissionReverted
from .values import checksum_address

__all__ = [
    "DEFAULT_RPC_TIMEOUT",
    "JsonRpcClient",
    "PaymentRpc",
    "TransactionRequest",
    "WalletClient",
]

DEFAULT_RPC_TIMEOUT = 30

# Geth/Erigon report reverted execution with code 3 and the revert data attached.
_EXECUTION_REVERTED = 3
# Codes nodes use when they refuse a transaction itself: geth-style -32000
# (nonce too low, insufficient funds, ...) and EIP-1474 -32003.
_TRANSACTION_REJECTED = {_EXECUTION_REVERTED, -32000, -32003}


def _to_int(value: Any) -> int:
    if isinstance(value, int):
        return value
    return int(value, 16)


def _post_json(
    session: requests.Session,
    url: str,
    body: Dict[str, Any],
    timeout: float,
) -> Dict[str, Any]:
    try:
        response = session.post(url, json=body, timeout=timeout)
    except requests.RequestException as exc:
        raise NetworkError(f"RPC request to {url} failed: {exc}") from exc
    if response.status_code >= 400:
        raise NetworkError(f"RPC node responded with {response.status_code}: {response.text}")
    try:
        return response.json()
    except json.JSONDecodeError as exc:
        raise NetworkError(f"Failed to parse JSON from RPC node at {url}: {response.text}") from exc


class JsonRpcClient:
    """
    Minimal Ethereum JSON-RPC client.
    """

    def __init__(
        self,
        rpc_url: str,
        *,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_RPC_TIMEOUT,
    ) -> None:
        self.rpc_url = rpc_url
        self.session = session or requests.Session()
        self.timeout = timeout
        self._ids = itertools.count(1)

    def request(self, method: str, params: List[Any]) -> Any:
        body = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        logging.debug("RPC %s %s", method, params)
        payload = _post_json(self.session, self.rpc_url, body, self.timeout)
        error = payload.get("error")
        if error:
            raise RpcError(method, error.get("code"), error.get("message", ""), error.get("data"))
        if "result" not in payload:
            raise NetworkError(f"RPC response for {method} has no result: {payload}")
        return payload["result"]

    async def call(self, method: str, *params: Any) -> Any:
        return await asyncio.to_thread(self.request, method, list(params))

    async def chain_id(self) -> int:
        return _to_int(await self.call("eth_chainId"))

    async def get_code(self, address: str, block: str = "latest") -> bytes:
        return bytes(HexBytes(await self.call("eth_getCode", address, block)))

    async def get_transaction_count(self, address: str, block: str = "latest") -> int:
        return _to_int(await self.call("eth_getTransactionCount", address, block))

    async def estimate_gas(self, transaction: Dict[str, Any]) -> int:
        return _to_int(await self.call("eth_estimateGas", transaction))

    async def max_priority_fee(self) -> int:
        return _to_int(await self.call("eth_maxPriorityFeePerGas"))

    async def base_fee(self) -> int:
        block = await self.call("eth_getBlockByNumber", "latest", False)
        if not block or "baseFeePerGas" not in block:
            raise NetworkError("Latest block has no baseFeePerGas; EIP-1559 is required")
        return _to_int(block["baseFeePerGas"])

    async def send_raw_transaction(self, raw: bytes) -> str:
        return await self.call("eth_sendRawTransaction", HexBytes(raw).to_0x_hex())

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        return await self.call("eth_getTransactionReceipt", tx_hash)


@dataclass(frozen=True)
class TransactionRequest:
    to: str
    data: bytes
    value: int = 0
    gas: Optional[int] = None
    nonce: Optional[int] = None
    authorization_list: Tuple[Authorization, ...] = field(default_factory=tuple)


class PaymentRpc(Protocol):
    async def get_code(self, address: str) -> bytes: ...

    async def get_transaction_count(self, address: str) -> int: ...

    async def send_transaction(self, request: TransactionRequest) -> str: ...

    async def wait_for_receipt(self, tx_hash: str, timeout: float) -> Dict[str, Any]: ...


def _revert_from(exc: RpcError) -> SubmissionReverted:
    return SubmissionReverted(f"Transaction rejected: {exc.rpc_message}", data=exc.data)


class WalletClient:
    """
    Signs transactions locally with ``account`` and broadcasts them.

    Fees follow the usual EIP-1559 heuristic (twice the base fee plus the
    node's suggested tip); the gas limit is estimated unless the request
    carries one.
    """

    def __init__(
        self,
        account: LocalAccount,
        rpc: JsonRpcClient,
        *,
        chain_id: int,
        poll_interval: float = 2.0,
    ) -> None:
        self.account = account
        self.rpc = rpc
        self.chain_id = chain_id
        self.poll_interval = poll_interval

    @property
    def address(self) -> str:
        return self.account.address

    async def get_code(self, address: str) -> bytes:
        return await self.rpc.get_code(address)

    async def get_transaction_count(self, address: str) -> int:
        return await self.rpc.get_transaction_count(address)

    async def build_transaction(self, request: TransactionRequest) -> Dict[str, Any]:
        to = checksum_address(request.to, "to")
        nonce = request.nonce
        if nonce is None:
            nonce = await self.rpc.get_transaction_count(self.address)
        priority_fee = await self.rpc.max_priority_fee()
        base_fee = await self.rpc.base_fee()

        transaction: Dict[str, Any] = {
            "chainId": self.chain_id,
            "nonce": nonce,
            "to": to,
            "value": request.value,
            "data": HexBytes(request.data).to_0x_hex(),
            "maxPriorityFeePerGas": priority_fee,
            "maxFeePerGas": base_fee * 2 + priority_fee,
        }
        if request.authorization_list:
            transaction["type"] = 4
            transaction["authorizationList"] = [
                auth.as_transaction_field() for auth in request.authorization_list
            ]

        if request.gas is not None:
            transaction["gas"] = request.gas
        else:
            try:
                transaction["gas"] = await self.rpc.estimate_gas(
                    {
                        "from": self.address,
                        "to": to,
                        "value": hex(request.value),
                        "data": transaction["data"],
                    }
                )
            except RpcError as exc:
                if exc.code == _EXECUTION_REVERTED or "revert" in exc.rpc_message.lower():
                    raise _revert_from(exc) from exc
                raise
        return transaction

    async def send_transaction(self, request: TransactionRequest) -> str:
        transaction = await self.build_transaction(request)
        signed = self.account.sign_transaction(transaction)
        logging.info(
            "Broadcasting %s transaction from %s (nonce %s, gas %s)",
            "set-code" if request.authorization_list else "EIP-1559",
            self.address,
            transaction["nonce"],
            transaction["gas"],
        )
        try:
            return await self.rpc.send_raw_transaction(signed.raw_transaction)
        except RpcError as exc:
            if exc.code in _TRANSACTION_REJECTED:
                raise _revert_from(exc) from exc
            raise

    async def wait_for_receipt(self, tx_hash: str, timeout: float) -> Dict[str, Any]:
        deadline = time.monotonic() + timeout
        while True:
            receipt = await self.rpc.get_transaction_receipt(tx_hash)
            if receipt is not None:
                if _to_int(receipt.get("status", "0x1")) == 0:
                    raise SubmissionReverted(
                        f"Transaction {tx_hash} reverted", receipt=receipt
                    )
                return receipt
            if time.monotonic() >= deadline:
                raise NetworkError(f"Timed out waiting for receipt of {tx_hash}")
            await asyncio.sleep(self.poll_interval)
