import pytest

from delegated_payments.core.config import SenderConfig, SenderParameters, load_sender_config
from delegated_payments.core.dispatcher import DEFAULT_DELEGATION_GAS_LIMIT
from delegated_payments.core.errors import ConfigError, ConfigurationMissing
from delegated_payments.core.networks import DEFAULT_REGISTRY, Network

from tests.conftest import TEST_DELEGATOR, TEST_EVENTOR, TEST_PRIVATE_KEY, TEST_SENDER


def _config(**values) -> SenderConfig:
    mapping = {"PRIVATE_KEY": TEST_PRIVATE_KEY}
    mapping.update(values)
    return SenderConfig.from_mapping(mapping)


def test_defaults():
    config = _config()
    assert config.sender_address == TEST_SENDER
    assert config.network is Network.ETHEREUM
    assert config.rpc_url is None
    assert config.delegation_gas_limit == DEFAULT_DELEGATION_GAS_LIMIT
    assert config.wait_for_receipt is False


def test_private_key_without_prefix():
    config = _config(PRIVATE_KEY=TEST_PRIVATE_KEY[2:])
    assert config.private_key == TEST_PRIVATE_KEY


def test_missing_private_key():
    with pytest.raises(ConfigurationMissing):
        SenderConfig.from_mapping({})
    with pytest.raises(ConfigurationMissing):
        SenderConfig.from_mapping({"PRIVATE_KEY": "   "})


@pytest.mark.parametrize("key", ["0x1234", "0x" + "zz" * 32])
def test_malformed_private_key(key):
    with pytest.raises(ConfigError):
        _config(PRIVATE_KEY=key)


def test_private_key_is_not_in_repr():
    assert TEST_PRIVATE_KEY[2:] not in repr(_config())


def test_overrides_are_parsed():
    config = _config(
        NETWORK="mainnet",
        RPC_URL="http://localhost:8545/",
        DELEGATOR_ADDRESS=TEST_DELEGATOR,
        EVENTOR_ADDRESS=TEST_EVENTOR.upper().replace("0X", "0x"),
        DELEGATION_GAS_LIMIT="750000",
        WAIT_FOR_RECEIPT="yes",
        RECEIPT_TIMEOUT_SECONDS="45",
    )
    assert config.network is Network.ETHEREUM
    assert config.rpc_url == "http://localhost:8545"
    assert config.delegation_target == TEST_DELEGATOR
    assert config.event_contract_address == TEST_EVENTOR
    assert config.delegation_gas_limit == 750_000
    assert config.wait_for_receipt is True
    assert config.receipt_timeout == 45.0


@pytest.mark.parametrize(
    "values",
    [
        {"NETWORK": "moon"},
        {"EVENTOR_ADDRESS": "0x1234"},
        {"DELEGATION_GAS_LIMIT": "lots"},
        {"DELEGATION_GAS_LIMIT": "0"},
        {"WAIT_FOR_RECEIPT": "maybe"},
    ],
)
def test_invalid_values(values):
    with pytest.raises(ConfigError):
        _config(**values)


def test_build_registry_applies_overrides_to_default_network():
    config = _config(NETWORK="base", RPC_URL="http://base-node", EVENTOR_ADDRESS=TEST_EVENTOR)
    registry = config.build_registry()
    assert registry.resolve("base").rpc_url == "http://base-node"
    assert registry["ethereum"] == DEFAULT_REGISTRY["ethereum"]


def test_create_dispatcher():
    config = _config(EVENTOR_ADDRESS=TEST_EVENTOR, DELEGATION_GAS_LIMIT="600000")
    dispatcher = config.create_dispatcher()
    assert dispatcher.sender_address == TEST_SENDER
    assert dispatcher.delegation_gas_limit == 600_000
    assert dispatcher.registry.resolve("ethereum").event_contract_address == TEST_EVENTOR


def test_load_sender_config_layers_sources(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text(
        f"PRIVATE_KEY={TEST_PRIVATE_KEY}\nNETWORK=polygon\nRPC_URL=http://from-file\n",
        encoding="utf-8",
    )
    config = load_sender_config(
        env_file=str(env_file),
        base={"RPC_URL": "http://from-env"},
        overrides={"NETWORK": "base"},
        event_contract_address=TEST_EVENTOR,
    )
    assert config.network is Network.BASE
    assert config.rpc_url == "http://from-env"
    assert config.event_contract_address == TEST_EVENTOR


def test_parameters_override_environment():
    config = load_sender_config(
        env_file=None,
        base={"PRIVATE_KEY": TEST_PRIVATE_KEY, "NETWORK": "polygon"},
        parameters=SenderParameters(network="arbitrum", wait_for_receipt=True),
    )
    assert config.network is Network.ARBITRUM
    assert config.wait_for_receipt is True


def test_load_sender_config_rejects_unknown_fields():
    with pytest.raises(TypeError):
        load_sender_config(env_file=None, base={}, colour="blue")
