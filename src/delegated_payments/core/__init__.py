"""
Core primitives that build, sign and dispatch delegated batch payments.
"""

from .authorization import (
    Authorization,
    authorization_digest,
    authorization_nonce,
    build_authorization,
    split_signature,
)
from .batch import CallBatch, CallEntry, build_batch, build_execute_calldata, pack_batch
from .calls import (
    BATCH_EXECUTE_MODE,
    encode_commit,
    encode_execute,
    encode_reveal,
    encode_transfer,
)
from .config import SenderConfig, SenderParameters, load_sender_config
from .delegation import (
    DELEGATION_DESIGNATOR,
    DelegatedTo,
    DelegationState,
    HasOtherCode,
    NotDelegated,
    classify_code,
    inspect,
)
from .dispatcher import (
    DRY_RUN_SENTINEL,
    EXISTING_DELEGATION,
    NEW_DELEGATION,
    PaymentDispatcher,
    PaymentRequest,
    PaymentResult,
)
from .environment import SenderEnvironment, build_environment, load_env_file
from .errors import (
    ConfigError,
    ConfigurationMissing,
    DelegationMismatch,
    InvalidInput,
    NetworkError,
    PaymentError,
    RpcError,
    SigningError,
    SubmissionReverted,
)
from .networks import DEFAULT_REGISTRY, Network, NetworkConfig, NetworkRegistry
from .relay import PaymentRelay
from .rpc import JsonRpcClient, TransactionRequest, WalletClient
from .values import checksum_address, format_amount, normalize_amount, validate_payment_id

__all__ = [
    "Authorization",
    "BATCH_EXECUTE_MODE",
    "CallBatch",
    "CallEntry",
    "ConfigError",
    "ConfigurationMissing",
    "DEFAULT_REGISTRY",
    "DELEGATION_DESIGNATOR",
    "DRY_RUN_SENTINEL",
    "DelegatedTo",
    "DelegationMismatch",
    "DelegationState",
    "EXISTING_DELEGATION",
    "HasOtherCode",
    "InvalidInput",
    "JsonRpcClient",
    "NEW_DELEGATION",
    "Network",
    "NetworkConfig",
    "NetworkError",
    "NetworkRegistry",
    "NotDelegated",
    "PaymentDispatcher",
    "PaymentError",
    "PaymentRelay",
    "PaymentRequest",
    "PaymentResult",
    "RpcError",
    "SenderConfig",
    "SenderEnvironment",
    "SenderParameters",
    "SigningError",
    "SubmissionReverted",
    "TransactionRequest",
    "WalletClient",
    "authorization_digest",
    "authorization_nonce",
    "build_authorization",
    "build_batch",
    "build_environment",
    "build_execute_calldata",
    "checksum_address",
    "classify_code",
    "encode_commit",
    "encode_execute",
    "encode_reveal",
    "encode_transfer",
    "format_amount",
    "inspect",
    "load_env_file",
    "load_sender_config",
    "normalize_amount",
    "pack_batch",
    "split_signature",
    "validate_payment_id",
]
