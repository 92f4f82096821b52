"""
Path selection and submission of delegated batch payments.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Dict, Optional, Union

from eth_account.signers.local import LocalAccount

from .authorization import authorization_nonce, build_authorization, load_signer
from .batch import CallBatch, build_batch, build_execute_calldata
from .delegation import inspect, require_delegation
from .errors import DelegationMismatch, PaymentError
from .networks import Network, NetworkConfig, NetworkRegistry
from .rpc import JsonRpcClient, PaymentRpc, TransactionRequest, WalletClient
from .values import checksum_address, format_amount, normalize_amount, validate_payment_id

__all__ = [
    "DEFAULT_DELEGATION_GAS_LIMIT",
    "DEFAULT_RECEIPT_TIMEOUT",
    "DRY_RUN_SENTINEL",
    "EXISTING_DELEGATION",
    "NEW_DELEGATION",
    "PaymentDispatcher",
    "PaymentRequest",
    "PaymentResult",
    "ValidatedPayment",
]

EXISTING_DELEGATION = "existing-delegation"
NEW_DELEGATION = "new-delegation"
DRY_RUN_SENTINEL = "dry-run"

DEFAULT_DELEGATION_GAS_LIMIT = 500_000
DEFAULT_RECEIPT_TIMEOUT = 120

RpcFactory = Callable[[NetworkConfig, LocalAccount], PaymentRpc]


@dataclass(frozen=True)
class ValidatedPayment:
    amount: int
    recipient: str
    payment_id: str
    network: Network


@dataclass(frozen=True)
class PaymentRequest:
    amount: Union[str, int, Decimal]
    recipient: str
    payment_id: str
    network: Union[str, Network] = Network.ETHEREUM
    dry_run: bool = False

    def validate(self) -> ValidatedPayment:
        return ValidatedPayment(
            amount=normalize_amount(self.amount),
            recipient=checksum_address(self.recipient, "recipient"),
            payment_id=validate_payment_id(self.payment_id),
            network=Network.parse(self.network),
        )

    @classmethod
    def from_message(cls, data: Dict[str, Any]) -> "PaymentRequest":
        """Build a request from the extension message shape (``isDryRun`` etc.)."""
        return cls(
            amount=data.get("amount", ""),
            recipient=data.get("recipient", ""),
            payment_id=data.get("paymentId", ""),
            network=data.get("network", Network.ETHEREUM),
            dry_run=bool(data.get("isDryRun", False)),
        )


@dataclass(frozen=True)
class PaymentResult:
    success: bool
    tx_hash: Optional[str] = None
    method: Optional[str] = None
    network: Optional[str] = None
    network_name: Optional[str] = None
    sender_address: Optional[str] = None
    calldata: Optional[bytes] = None
    batch: Optional[CallBatch] = None
    error: Optional[str] = None

    @property
    def is_dry_run(self) -> bool:
        return self.tx_hash == DRY_RUN_SENTINEL

    @classmethod
    def from_error(cls, exc: BaseException) -> "PaymentResult":
        return cls(success=False, error=str(exc) or type(exc).__name__)

    def as_message(self) -> Dict[str, Any]:
        """Response shape returned to the extension popup."""
        message: Dict[str, Any] = {"success": self.success}
        if self.tx_hash is not None and not self.is_dry_run:
            message["txHash"] = self.tx_hash
        if self.method is not None:
            message["method"] = self.method
        if self.network_name is not None:
            message["networkName"] = self.network_name
        if self.sender_address is not None:
            message["senderAddress"] = self.sender_address
        if self.error is not None:
            message["error"] = self.error
        return message


def default_rpc_factory(config: NetworkConfig, account: LocalAccount) -> WalletClient:
    return WalletClient(account, JsonRpcClient(config.rpc_url), chain_id=config.chain_id)


class PaymentDispatcher:
    """
    Builds the commit/transfer/reveal batch and submits it from the signer's
    own account, installing the delegation first when needed.
    """

    def __init__(
        self,
        registry: NetworkRegistry,
        signer: Union[str, LocalAccount],
        rpc_factory: Optional[RpcFactory] = None,
        *,
        delegation_gas_limit: int = DEFAULT_DELEGATION_GAS_LIMIT,
        wait_for_receipt: bool = False,
        receipt_timeout: float = DEFAULT_RECEIPT_TIMEOUT,
    ) -> None:
        self.registry = registry
        self.account = load_signer(signer)
        self.rpc_factory = rpc_factory or default_rpc_factory
        self.delegation_gas_limit = delegation_gas_limit
        self.wait_for_receipt = wait_for_receipt
        self.receipt_timeout = receipt_timeout

    @property
    def sender_address(self) -> str:
        return self.account.address

    async def submit(self, request: PaymentRequest) -> PaymentResult:
        payment = request.validate()
        network = self.registry.resolve(payment.network)

        batch = build_batch(
            network.require_event_contract(),
            network.token_address,
            payment.recipient,
            payment.amount,
            payment.payment_id,
        )
        calldata = build_execute_calldata(batch)
        sender = self.sender_address
        logging.info(
            "Paying %s USDC to %s on %s from %s (payment id %s)",
            format_amount(payment.amount),
            payment.recipient,
            network.display_name,
            sender,
            payment.payment_id,
        )

        rpc = self.rpc_factory(network, self.account)
        state = await inspect(rpc, sender)
        try:
            require_delegation(state, network.delegation_target)
            method = EXISTING_DELEGATION
        except DelegationMismatch as mismatch:
            logging.info("No matching delegation (%s); a new one will be installed", mismatch.state)
            method = NEW_DELEGATION

        def result(tx_hash: str) -> PaymentResult:
            return PaymentResult(
                success=True,
                tx_hash=tx_hash,
                method=method,
                network=network.name,
                network_name=network.display_name,
                sender_address=sender,
                calldata=calldata,
                batch=batch,
            )

        if request.dry_run:
            logging.info("Dry run: would submit via %s", method)
            return result(DRY_RUN_SENTINEL)

        if method == EXISTING_DELEGATION:
            transaction = TransactionRequest(to=sender, data=calldata)
        else:
            current_nonce = await rpc.get_transaction_count(sender)
            authorization = build_authorization(
                self.account,
                network.delegation_target,
                network.chain_id,
                authorization_nonce(current_nonce),
            )
            transaction = TransactionRequest(
                to=sender,
                data=calldata,
                gas=self.delegation_gas_limit,
                nonce=current_nonce,
                authorization_list=(authorization,),
            )

        tx_hash = await rpc.send_transaction(transaction)
        logging.info("Transaction sent via %s: %s", method, tx_hash)

        if self.wait_for_receipt:
            await rpc.wait_for_receipt(tx_hash, self.receipt_timeout)
            logging.info("Transaction %s confirmed", tx_hash)

        return result(tx_hash)

    async def submit_safely(self, request: PaymentRequest) -> PaymentResult:
        """Like :meth:`submit` but converts payment errors into a failed result."""
        try:
            return await self.submit(request)
        except PaymentError as exc:
            logging.error("Payment failed: %s", exc)
            return PaymentResult.from_error(exc)
