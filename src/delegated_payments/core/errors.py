"""
Exception hierarchy shared by every layer of the payment builder.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

__all__ = [
    "ConfigError",
    "ConfigurationMissing",
    "DelegationMismatch",
    "InvalidInput",
    "NetworkError",
    "PaymentError",
    "RpcError",
    "SigningError",
    "SubmissionReverted",
]


class PaymentError(Exception):
    """Base class for all errors raised while building or sending a payment."""


class InvalidInput(PaymentError, ValueError):
    """Raised when a caller-supplied field fails validation."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(message)


class ConfigError(PaymentError):
    """Raised when the supplied configuration is invalid."""


class ConfigurationMissing(ConfigError):
    """Raised when a required key, endpoint or contract address is absent."""


class NetworkError(PaymentError):
    """Raised when an RPC call fails or cannot be completed."""


class RpcError(NetworkError):
    """The node answered with a JSON-RPC error object."""

    def __init__(
        self,
        method: str,
        code: Optional[int],
        message: str,
        data: Any = None,
    ) -> None:
        self.method = method
        self.code = code
        self.rpc_message = message
        self.data = data
        super().__init__(f"{method} failed ({code}): {message}")


class DelegationMismatch(PaymentError):
    """The account is not delegated to the expected target."""

    def __init__(self, state: Any, expected: str) -> None:
        self.state = state
        self.expected = expected
        super().__init__(f"Account delegation {state!r} does not match {expected}")


class SigningError(PaymentError):
    """Raised when the key is malformed or signing fails."""


class SubmissionReverted(PaymentError):
    """The chain rejected or reverted the transaction."""

    def __init__(
        self,
        message: str,
        *,
        data: Any = None,
        receipt: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.data = data
        self.receipt = receipt
        super().__init__(message)
