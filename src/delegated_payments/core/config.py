"""
Configuration objects and helpers for the payment sender.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from eth_account import Account

from .dispatcher import (
    DEFAULT_DELEGATION_GAS_LIMIT,
    DEFAULT_RECEIPT_TIMEOUT,
    PaymentDispatcher,
    RpcFactory,
)
from .environment import build_environment
from .errors import ConfigError, ConfigurationMissing, InvalidInput
from .networks import DEFAULT_REGISTRY, Network, NetworkRegistry
from .values import checksum_address

__all__ = [
    "SenderConfig",
    "SenderParameters",
    "load_sender_config",
]

_PARAMETER_TO_ENV_KEY = {
    "private_key": "PRIVATE_KEY",
    "network": "NETWORK",
    "rpc_url": "RPC_URL",
    "delegation_target": "DELEGATOR_ADDRESS",
    "event_contract_address": "EVENTOR_ADDRESS",
    "delegation_gas_limit": "DELEGATION_GAS_LIMIT",
    "wait_for_receipt": "WAIT_FOR_RECEIPT",
    "receipt_timeout": "RECEIPT_TIMEOUT_SECONDS",
}

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Network):
        return value.value
    return str(value)


@dataclass(frozen=True)
class SenderParameters:
    """
    Explicit parameter bundle for :func:`load_sender_config`; every field that
    is not ``None`` overrides the matching environment variable.
    """

    private_key: Optional[str] = None
    network: Optional[str] = None
    rpc_url: Optional[str] = None
    delegation_target: Optional[str] = None
    event_contract_address: Optional[str] = None
    delegation_gas_limit: Optional[int | str] = None
    wait_for_receipt: Optional[bool | str] = None
    receipt_timeout: Optional[float | str] = None

    def as_overrides(self) -> Dict[str, str]:
        overrides: Dict[str, str] = {}
        for field_name, env_key in _PARAMETER_TO_ENV_KEY.items():
            value = getattr(self, field_name)
            if value is None:
                continue
            overrides[env_key] = _stringify(value)
        return overrides


def _normalize_private_key(raw_key: Optional[str]) -> str:
    if raw_key is None or not raw_key.strip():
        raise ConfigurationMissing(
            "Private key not configured. Please set PRIVATE_KEY in your .env file"
        )
    key = raw_key.strip()
    if not key.startswith("0x"):
        key = "0x" + key
    if len(key) != 66:
        raise ConfigError(
            f"Invalid private key length: expected 66 characters (including 0x prefix), got {len(key)}"
        )
    try:
        int(key, 16)
    except ValueError as exc:
        raise ConfigError("PRIVATE_KEY must be a valid hexadecimal string") from exc
    return key


def _optional_address(raw: Optional[str], env_key: str) -> Optional[str]:
    if raw is None:
        return None
    try:
        return checksum_address(raw, env_key)
    except InvalidInput as exc:
        raise ConfigError(f"{env_key} is not a valid EVM address") from exc


def _parse_bool(raw: str, env_key: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigError(f"{env_key} must be a boolean, got '{raw}'")


def _parse_number(raw: str, env_key: str, kind: type) -> Any:
    try:
        value = kind(raw)
    except ValueError as exc:
        raise ConfigError(f"{env_key} must be a number, got '{raw}'") from exc
    if value <= 0:
        raise ConfigError(f"{env_key} must be greater than zero")
    return value


@dataclass(frozen=True)
class SenderConfig:
    private_key: str
    sender_address: str
    network: Network = Network.ETHEREUM
    rpc_url: Optional[str] = None
    delegation_target: Optional[str] = None
    event_contract_address: Optional[str] = None
    delegation_gas_limit: int = DEFAULT_DELEGATION_GAS_LIMIT
    wait_for_receipt: bool = False
    receipt_timeout: float = DEFAULT_RECEIPT_TIMEOUT

    def __repr__(self) -> str:
        return (
            f"SenderConfig(sender_address={self.sender_address!r}, "
            f"network={self.network.value!r}, rpc_url={self.rpc_url!r}, "
            f"delegation_target={self.delegation_target!r}, "
            f"event_contract_address={self.event_contract_address!r})"
        )

    def build_registry(self, base: NetworkRegistry = DEFAULT_REGISTRY) -> NetworkRegistry:
        """Apply the configured overrides to the default network of ``base``."""
        return base.with_overrides(
            self.network,
            rpc_url=self.rpc_url,
            delegation_target=self.delegation_target,
            event_contract_address=self.event_contract_address,
        )

    def create_dispatcher(
        self,
        *,
        registry: Optional[NetworkRegistry] = None,
        rpc_factory: Optional[RpcFactory] = None,
    ) -> PaymentDispatcher:
        return PaymentDispatcher(
            self.build_registry(registry or DEFAULT_REGISTRY),
            self.private_key,
            rpc_factory,
            delegation_gas_limit=self.delegation_gas_limit,
            wait_for_receipt=self.wait_for_receipt,
            receipt_timeout=self.receipt_timeout,
        )

    @classmethod
    def from_mapping(cls, values: Mapping[str, str]) -> "SenderConfig":
        def get(key: str) -> Optional[str]:
            value = values.get(key)
            return value if value else None

        private_key = _normalize_private_key(get("PRIVATE_KEY"))
        try:
            sender_address = Account.from_key(private_key).address
        except Exception as exc:  # noqa: BLE001
            raise ConfigError("PRIVATE_KEY is not a valid secp256k1 key") from exc

        try:
            network = Network.parse(get("NETWORK") or Network.ETHEREUM)
        except InvalidInput as exc:
            raise ConfigError(str(exc)) from exc

        gas_raw = get("DELEGATION_GAS_LIMIT")
        timeout_raw = get("RECEIPT_TIMEOUT_SECONDS")
        wait_raw = get("WAIT_FOR_RECEIPT")

        return cls(
            private_key=private_key,
            sender_address=sender_address,
            network=network,
            rpc_url=(get("RPC_URL") or "").rstrip("/") or None,
            delegation_target=_optional_address(get("DELEGATOR_ADDRESS"), "DELEGATOR_ADDRESS"),
            event_contract_address=_optional_address(get("EVENTOR_ADDRESS"), "EVENTOR_ADDRESS"),
            delegation_gas_limit=(
                _parse_number(gas_raw, "DELEGATION_GAS_LIMIT", int)
                if gas_raw
                else DEFAULT_DELEGATION_GAS_LIMIT
            ),
            wait_for_receipt=_parse_bool(wait_raw, "WAIT_FOR_RECEIPT") if wait_raw else False,
            receipt_timeout=(
                _parse_number(timeout_raw, "RECEIPT_TIMEOUT_SECONDS", float)
                if timeout_raw
                else DEFAULT_RECEIPT_TIMEOUT
            ),
        )

    @classmethod
    def from_env(
        cls,
        *,
        env_file: Optional[str] = ".env",
        overrides: Optional[Mapping[str, str]] = None,
        base: Optional[Mapping[str, str]] = None,
        parameters: Optional[SenderParameters] = None,
    ) -> "SenderConfig":
        merged_overrides = dict(overrides or {})
        if parameters is not None:
            merged_overrides.update(parameters.as_overrides())

        environment = build_environment(
            env_file=env_file,
            base=base,
            overrides=merged_overrides,
        )
        return cls.from_mapping(environment.variables)


def load_sender_config(
    *,
    env_file: Optional[str] = ".env",
    overrides: Optional[Mapping[str, str]] = None,
    base: Optional[Mapping[str, str]] = None,
    parameters: Optional[SenderParameters] = None,
    **fields: Any,
) -> SenderConfig:
    """
    Convenience wrapper around :meth:`SenderConfig.from_env`.

    Keyword ``fields`` are the attribute names of :class:`SenderParameters`
    and take precedence over ``parameters``.
    """
    unknown = set(fields) - set(_PARAMETER_TO_ENV_KEY)
    if unknown:
        raise TypeError(f"Unknown sender parameter(s): {', '.join(sorted(unknown))}")
    explicit = {key: value for key, value in fields.items() if value is not None}
    if explicit:
        merged = dict(parameters.__dict__) if parameters is not None else {}
        merged.update(explicit)
        parameters = SenderParameters(**merged)
    return SenderConfig.from_env(
        env_file=env_file,
        overrides=overrides,
        base=base,
        parameters=parameters,
    )
