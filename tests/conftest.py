"""
Shared fixtures: a throwaway signer, a synthetic registry and an in-memory RPC.
"""

import asyncio
from typing import Any, Dict, List, Optional

import pytest
from eth_account import Account

from delegated_payments.core.delegation import DELEGATION_DESIGNATOR
from delegated_payments.core.errors import NetworkError
from delegated_payments.core.networks import NetworkConfig, NetworkRegistry
from delegated_payments.core.rpc import TransactionRequest

TEST_PRIVATE_KEY = "0x0123456789abcdef0123456789abcdef0123456789abcdef0123456789abcdef"
TEST_SENDER = "0xFCAd0B19bB29D4674531d6f115237E16AfCE377c"
TEST_EVENTOR = "0x" + "11" * 20
TEST_DELEGATOR = "0x" + "22" * 20
TEST_USDC = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"
TEST_RECIPIENT = "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045"
TEST_TX_HASH = "0x" + "ab" * 32


def designated_code(target: str) -> bytes:
    return DELEGATION_DESIGNATOR + bytes.fromhex(target[2:])


class FakeRpc:
    """Records every call; returns canned code, nonce and hash."""

    def __init__(
        self,
        code: bytes = b"",
        nonce: int = 7,
        tx_hash: str = TEST_TX_HASH,
        fail_on: Optional[str] = None,
        delay: float = 0.0,
    ) -> None:
        self.code = code
        self.nonce = nonce
        self.tx_hash = tx_hash
        self.fail_on = fail_on
        self.delay = delay
        self.calls: List[str] = []
        self.sent: List[TransactionRequest] = []
        self.receipts: List[str] = []
        self.active = 0
        self.max_active = 0

    async def _enter(self, name: str) -> None:
        self.calls.append(name)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        finally:
            self.active -= 1
        if self.fail_on == name:
            raise NetworkError(f"{name} failed")

    async def get_code(self, address: str) -> bytes:
        await self._enter("get_code")
        return self.code

    async def get_transaction_count(self, address: str) -> int:
        await self._enter("get_transaction_count")
        return self.nonce

    async def send_transaction(self, request: TransactionRequest) -> str:
        await self._enter("send_transaction")
        self.sent.append(request)
        return self.tx_hash

    async def wait_for_receipt(self, tx_hash: str, timeout: float) -> Dict[str, Any]:
        await self._enter("wait_for_receipt")
        self.receipts.append(tx_hash)
        return {"transactionHash": tx_hash, "status": "0x1"}


@pytest.fixture
def private_key():
    return TEST_PRIVATE_KEY


@pytest.fixture
def account(private_key):
    return Account.from_key(private_key)


@pytest.fixture
def network_config():
    return NetworkConfig(
        name="ethereum",
        display_name="Ethereum",
        chain_id=1,
        rpc_url="http://localhost:8545",
        token_address=TEST_USDC,
        delegation_target=TEST_DELEGATOR,
        event_contract_address=TEST_EVENTOR,
    )


@pytest.fixture
def registry(network_config):
    return NetworkRegistry([network_config])
