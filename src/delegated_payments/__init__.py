"""
Public facade for the delegated payments package.

The most useful pieces are re-exported so integrators can
``from delegated_payments import ...`` without navigating the package.
"""

from .api import create_dispatcher, send_payment, submit_payment
from .core import (
    DEFAULT_REGISTRY,
    DRY_RUN_SENTINEL,
    EXISTING_DELEGATION,
    NEW_DELEGATION,
    ConfigError,
    ConfigurationMissing,
    DelegationMismatch,
    InvalidInput,
    Network,
    NetworkConfig,
    NetworkError,
    NetworkRegistry,
    PaymentDispatcher,
    PaymentError,
    PaymentRelay,
    PaymentRequest,
    PaymentResult,
    SenderConfig,
    SenderParameters,
    SigningError,
    SubmissionReverted,
    load_sender_config,
)

__all__ = (
    "ConfigError",
    "ConfigurationMissing",
    "DEFAULT_REGISTRY",
    "DRY_RUN_SENTINEL",
    "DelegationMismatch",
    "EXISTING_DELEGATION",
    "InvalidInput",
    "NEW_DELEGATION",
    "Network",
    "NetworkConfig",
    "NetworkError",
    "NetworkRegistry",
    "PaymentDispatcher",
    "PaymentError",
    "PaymentRelay",
    "PaymentRequest",
    "PaymentResult",
    "SenderConfig",
    "SenderParameters",
    "SigningError",
    "SubmissionReverted",
    "create_dispatcher",
    "load_sender_config",
    "send_payment",
    "submit_payment",
)
