"""
Supported networks and their contract addresses.

Every network shares the same delegation target: the stateless EIP-7702
batch executor, deployed at the same address on each chain. The commit/reveal
contract ("eventor") is deployment specific and is supplied through
configuration (``EVENTOR_ADDRESS``) or a custom registry.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, Mapping, Optional, Union

from .errors import ConfigurationMissing, InvalidInput
from .values import checksum_address

__all__ = [
    "DEFAULT_DELEGATION_TARGET",
    "DEFAULT_REGISTRY",
    "Network",
    "NetworkConfig",
    "NetworkRegistry",
]

DEFAULT_DELEGATION_TARGET = "0x63c0c19a282a1B52b07dD5a65b58948A07DAE32B"

_ALIASES = {"mainnet": "ethereum"}


class Network(str, Enum):
    ETHEREUM = "ethereum"
    ARBITRUM = "arbitrum"
    AVALANCHE = "avalanche"
    BASE = "base"
    CELO = "celo"
    LINEA = "linea"
    OPTIMISM = "optimism"
    POLYGON = "polygon"
    UNICHAIN = "unichain"
    WORLDCHAIN = "worldchain"

    @classmethod
    def parse(cls, value: Union[str, "Network"]) -> "Network":
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        key = _ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError as exc:
            supported = ", ".join(member.value for member in cls)
            raise InvalidInput(
                "network",
                f"Unsupported network: {value}. Supported networks: {supported}",
            ) from exc


@dataclass(frozen=True)
class NetworkConfig:
    name: str
    display_name: str
    chain_id: int
    rpc_url: str
    token_address: str
    delegation_target: str = DEFAULT_DELEGATION_TARGET
    event_contract_address: Optional[str] = None

    def with_overrides(
        self,
        *,
        rpc_url: Optional[str] = None,
        delegation_target: Optional[str] = None,
        event_contract_address: Optional[str] = None,
    ) -> "NetworkConfig":
        changes: Dict[str, str] = {}
        if rpc_url:
            changes["rpc_url"] = rpc_url
        if delegation_target:
            changes["delegation_target"] = checksum_address(
                delegation_target, "delegation_target"
            )
        if event_contract_address:
            changes["event_contract_address"] = checksum_address(
                event_contract_address, "event_contract_address"
            )
        return replace(self, **changes) if changes else self

    def require_event_contract(self) -> str:
        if not self.event_contract_address:
            raise ConfigurationMissing(
                f"No commit/reveal contract configured for {self.name}; "
                "set EVENTOR_ADDRESS"
            )
        return self.event_contract_address


class NetworkRegistry(Mapping[Network, NetworkConfig]):
    """
    Read-only lookup of :class:`NetworkConfig` by :class:`Network`.

    Keys may be given as enum members or plain strings; unknown keys raise
    :class:`InvalidInput` rather than ``KeyError``.
    """

    def __init__(self, configs: Iterable[NetworkConfig]) -> None:
        entries: Dict[Network, NetworkConfig] = {}
        for config in configs:
            entries[Network.parse(config.name)] = config
        self._entries = MappingProxyType(entries)

    def __getitem__(self, key: Union[str, Network]) -> NetworkConfig:
        network = Network.parse(key)
        try:
            return self._entries[network]
        except KeyError as exc:
            raise InvalidInput(
                "network", f"Network {network.value} is not configured"
            ) from exc

    def __contains__(self, key: object) -> bool:
        try:
            return Network.parse(key) in self._entries  # type: ignore[arg-type]
        except InvalidInput:
            return False

    def get(self, key, default=None):  # type: ignore[override]
        return self[key] if key in self else default

    def __iter__(self) -> Iterator[Network]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def resolve(self, key: Union[str, Network]) -> NetworkConfig:
        """Return the config for ``key`` after checking it is usable for payments."""
        config = self[key]
        config.require_event_contract()
        return config

    def with_overrides(
        self,
        key: Union[str, Network],
        *,
        rpc_url: Optional[str] = None,
        delegation_target: Optional[str] = None,
        event_contract_address: Optional[str] = None,
    ) -> "NetworkRegistry":
        network = Network.parse(key)
        updated = dict(self._entries)
        updated[network] = self[network].with_overrides(
            rpc_url=rpc_url,
            delegation_target=delegation_target,
            event_contract_address=event_contract_address,
        )
        return NetworkRegistry(updated.values())


DEFAULT_REGISTRY = NetworkRegistry(
    [
        NetworkConfig(
            name="ethereum",
            display_name="Ethereum",
            chain_id=1,
            rpc_url="https://eth.llamarpc.com",
            token_address="0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
        ),
        NetworkConfig(
            name="arbitrum",
            display_name="Arbitrum One",
            chain_id=42161,
            rpc_url="https://arb1.arbitrum.io/rpc",
            token_address="0xaf88d065e77c8cC2239327C5EDb3A432268e5831",
        ),
        NetworkConfig(
            name="avalanche",
            display_name="Avalanche C-Chain",
            chain_id=43114,
            rpc_url="https://avalanche-c-chain-rpc.publicnode.com",
            token_address="0xB97EF9Ef8734C71904D8002F8b6Bc66Dd9c48a6E",
        ),
        NetworkConfig(
            name="base",
            display_name="Base",
            chain_id=8453,
            rpc_url="https://mainnet.base.org",
            token_address="0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",
        ),
        NetworkConfig(
            name="celo",
            display_name="Celo",
            chain_id=42220,
            rpc_url="https://forno.celo.org",
            token_address="0xcebA9300f2b948710d2653dD7B07f33A8B32118C",
        ),
        NetworkConfig(
            name="linea",
            display_name="Linea",
            chain_id=59144,
            rpc_url="https://rpc.linea.build",
            token_address="0x176211869cA2b568f2A7D4EE941E073a821EE1ff",
        ),
        NetworkConfig(
            name="optimism",
            display_name="OP Mainnet",
            chain_id=10,
            rpc_url="https://mainnet.optimism.io",
            token_address="0x0b2C639c533813f4Aa9D7837CAf62653d097Ff85",
        ),
        NetworkConfig(
            name="polygon",
            display_name="Polygon PoS",
            chain_id=137,
            rpc_url="https://polygon-rpc.com",
            token_address="0x3c499c542cEF5E3811e1192ce70d8cC03d5c3359",
        ),
        NetworkConfig(
            name="unichain",
            display_name="Unichain",
            chain_id=130,
            rpc_url="https://unichain-rpc.publicnode.com",
            token_address="0x078D782b760474a361dDA0AF3839290b0EF57AD6",
        ),
        NetworkConfig(
            name="worldchain",
            display_name="World Chain",
            chain_id=480,
            rpc_url="https://worldchain-mainnet.g.alchemy.com/public",
            token_address="0x79A02482A880bCe3F13E09da970dC34dB4cD24D1",
        ),
    ]
)
