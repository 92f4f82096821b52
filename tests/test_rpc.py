from typing import Any, Dict
from unittest.mock import MagicMock

import pytest
import requests

from delegated_payments.core.authorization import build_authorization
from delegated_payments.core.errors import NetworkError, RpcError, SubmissionReverted
from delegated_payments.core.rpc import JsonRpcClient, TransactionRequest, WalletClient

from tests.conftest import TEST_DELEGATOR, TEST_SENDER, TEST_TX_HASH


def _response(payload: Any, status_code: int = 200) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.text = str(payload)
    response.json.return_value = payload
    return response


def _session(results: Dict[str, Any]) -> MagicMock:
    """Session whose ``post`` answers by JSON-RPC method name."""
    session = MagicMock(spec=requests.Session)

    def post(url, json, timeout):
        value = results[json["method"]]
        if isinstance(value, dict) and "error" in value:
            return _response({"jsonrpc": "2.0", "id": json["id"], **value})
        return _response({"jsonrpc": "2.0", "id": json["id"], "result": value})

    session.post.side_effect = post
    return session


def _methods(session: MagicMock):
    return [call.kwargs["json"]["method"] for call in session.post.call_args_list]


_FEES = {
    "eth_getTransactionCount": "0x7",
    "eth_maxPriorityFeePerGas": "0x3b9aca00",
    "eth_getBlockByNumber": {"number": "0x10", "baseFeePerGas": "0x77359400"},
    "eth_estimateGas": "0x186a0",
    "eth_sendRawTransaction": TEST_TX_HASH,
}


@pytest.mark.asyncio
async def test_get_code_and_nonce():
    session = _session({"eth_getCode": "0xef0100" + "22" * 20, "eth_getTransactionCount": "0x2a"})
    client = JsonRpcClient("http://node", session=session)
    assert await client.get_code(TEST_SENDER) == bytes.fromhex("ef0100" + "22" * 20)
    assert await client.get_transaction_count(TEST_SENDER) == 42
    body = session.post.call_args_list[0].kwargs["json"]
    assert body["params"] == [TEST_SENDER, "latest"]
    assert session.post.call_args_list[0].kwargs["timeout"] == 30


@pytest.mark.asyncio
async def test_transport_failure_is_network_error():
    session = MagicMock(spec=requests.Session)
    session.post.side_effect = requests.ConnectionError("refused")
    client = JsonRpcClient("http://node", session=session)
    with pytest.raises(NetworkError):
        await client.get_code(TEST_SENDER)


@pytest.mark.asyncio
async def test_http_error_is_network_error():
    session = MagicMock(spec=requests.Session)
    session.post.return_value = _response({}, status_code=502)
    client = JsonRpcClient("http://node", session=session)
    with pytest.raises(NetworkError):
        await client.chain_id()


@pytest.mark.asyncio
async def test_rpc_error_object():
    session = _session({"eth_getCode": {"error": {"code": -32000, "message": "header not found"}}})
    client = JsonRpcClient("http://node", session=session)
    with pytest.raises(RpcError) as exc_info:
        await client.get_code(TEST_SENDER)
    assert exc_info.value.code == -32000
    assert isinstance(exc_info.value, NetworkError)


@pytest.mark.asyncio
async def test_build_transaction_for_existing_delegation(account):
    session = _session(_FEES)
    wallet = WalletClient(account, JsonRpcClient("http://node", session=session), chain_id=1)
    transaction = await wallet.build_transaction(TransactionRequest(to=TEST_SENDER, data=b"\x01\x02"))
    assert transaction["chainId"] == 1
    assert transaction["nonce"] == 7
    assert transaction["to"] == TEST_SENDER
    assert transaction["data"] == "0x0102"
    assert transaction["gas"] == 100_000
    assert transaction["maxPriorityFeePerGas"] == 1_000_000_000
    assert transaction["maxFeePerGas"] == 2 * 2_000_000_000 + 1_000_000_000
    assert "authorizationList" not in transaction


@pytest.mark.asyncio
async def test_build_transaction_with_authorization(account):
    session = _session(_FEES)
    wallet = WalletClient(account, JsonRpcClient("http://node", session=session), chain_id=1)
    auth = build_authorization(account, TEST_DELEGATOR, 1, 8)
    transaction = await wallet.build_transaction(
        TransactionRequest(
            to=TEST_SENDER, data=b"", gas=500_000, nonce=7, authorization_list=(auth,)
        )
    )
    assert transaction["type"] == 4
    assert transaction["nonce"] == 7
    assert "eth_getTransactionCount" not in _methods(session)
    assert transaction["gas"] == 500_000
    assert transaction["authorizationList"] == [auth.as_transaction_field()]
    assert "eth_estimateGas" not in _methods(session)


@pytest.mark.asyncio
async def test_send_transaction_broadcasts_signed_payload(account):
    session = _session(_FEES)
    wallet = WalletClient(account, JsonRpcClient("http://node", session=session), chain_id=1)
    tx_hash = await wallet.send_transaction(TransactionRequest(to=TEST_SENDER, data=b"\x01"))
    assert tx_hash == TEST_TX_HASH
    raw = session.post.call_args_list[-1].kwargs["json"]["params"][0]
    assert raw.startswith("0x02")


@pytest.mark.asyncio
async def test_estimate_gas_revert_is_submission_reverted(account):
    results = dict(_FEES)
    results["eth_estimateGas"] = {
        "error": {"code": 3, "message": "execution reverted", "data": "0x08c379a0"}
    }
    wallet = WalletClient(account, JsonRpcClient("http://node", session=_session(results)), chain_id=1)
    with pytest.raises(SubmissionReverted) as exc_info:
        await wallet.send_transaction(TransactionRequest(to=TEST_SENDER, data=b"\x01"))
    assert exc_info.value.data == "0x08c379a0"


@pytest.mark.asyncio
async def test_rejected_broadcast_is_submission_reverted(account):
    results = dict(_FEES)
    results["eth_sendRawTransaction"] = {"error": {"code": -32000, "message": "nonce too low"}}
    wallet = WalletClient(account, JsonRpcClient("http://node", session=_session(results)), chain_id=1)
    with pytest.raises(SubmissionReverted, match="nonce too low"):
        await wallet.send_transaction(TransactionRequest(to=TEST_SENDER, data=b"\x01"))


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        {"code": -32005, "message": "request limit exceeded"},
        {"code": -32603, "message": "internal error"},
    ],
)
async def test_node_side_broadcast_errors_stay_network_errors(account, error):
    results = dict(_FEES)
    results["eth_sendRawTransaction"] = {"error": error}
    wallet = WalletClient(account, JsonRpcClient("http://node", session=_session(results)), chain_id=1)
    with pytest.raises(RpcError) as exc_info:
        await wallet.send_transaction(TransactionRequest(to=TEST_SENDER, data=b"\x01"))
    assert exc_info.value.code == error["code"]
    assert not isinstance(exc_info.value, SubmissionReverted)


@pytest.mark.asyncio
async def test_wait_for_receipt(account):
    session = _session({"eth_getTransactionReceipt": {"status": "0x1", "transactionHash": TEST_TX_HASH}})
    wallet = WalletClient(account, JsonRpcClient("http://node", session=session), chain_id=1)
    receipt = await wallet.wait_for_receipt(TEST_TX_HASH, timeout=1)
    assert receipt["transactionHash"] == TEST_TX_HASH


@pytest.mark.asyncio
async def test_wait_for_receipt_reverted(account):
    session = _session({"eth_getTransactionReceipt": {"status": "0x0"}})
    wallet = WalletClient(account, JsonRpcClient("http://node", session=session), chain_id=1)
    with pytest.raises(SubmissionReverted) as exc_info:
        await wallet.wait_for_receipt(TEST_TX_HASH, timeout=1)
    assert exc_info.value.receipt == {"status": "0x0"}


@pytest.mark.asyncio
async def test_wait_for_receipt_times_out(account):
    session = _session({"eth_getTransactionReceipt": None})
    wallet = WalletClient(
        account, JsonRpcClient("http://node", session=session), chain_id=1, poll_interval=0.01
    )
    with pytest.raises(NetworkError, match="Timed out"):
        await wallet.wait_for_receipt(TEST_TX_HASH, timeout=0.05)
