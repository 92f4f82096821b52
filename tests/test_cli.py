import pytest

from delegated_payments import cli

from tests.conftest import TEST_PRIVATE_KEY, TEST_RECIPIENT, TEST_EVENTOR, FakeRpc


@pytest.fixture
def env_file(tmp_path):
    path = tmp_path / ".env"
    path.write_text(
        f"PRIVATE_KEY={TEST_PRIVATE_KEY}\nEVENTOR_ADDRESS={TEST_EVENTOR}\n",
        encoding="utf-8",
    )
    return str(path)


@pytest.fixture
def fake_dispatcher(monkeypatch):
    rpc = FakeRpc()

    def create_dispatcher(*, config):
        return config.create_dispatcher(rpc_factory=lambda network, account: rpc)

    monkeypatch.setattr(cli, "create_dispatcher", create_dispatcher)
    return rpc


def test_parser_requires_payment_id():
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(["1", TEST_RECIPIENT])


def test_invalid_amount_fails_fast(env_file, fake_dispatcher):
    code = cli.run_cli(["1.0000001", TEST_RECIPIENT, "-p", "order-42", "--env-file", env_file])
    assert code == 1
    assert fake_dispatcher.calls == []


def test_missing_private_key(tmp_path, monkeypatch, fake_dispatcher):
    monkeypatch.delenv("PRIVATE_KEY", raising=False)
    code = cli.run_cli(
        ["1", TEST_RECIPIENT, "-p", "order-42", "--env-file", str(tmp_path / "missing")]
    )
    assert code == 1


def test_dry_run(env_file, fake_dispatcher):
    code = cli.run_cli(
        ["10.5", TEST_RECIPIENT, "-p", "order-42", "--dry-run", "--env-file", env_file]
    )
    assert code == 0
    assert fake_dispatcher.calls == ["get_code"]
    assert fake_dispatcher.sent == []


def test_send(env_file, fake_dispatcher):
    code = cli.run_cli(
        ["10.5", TEST_RECIPIENT, "-p", "order-42", "--network", "ethereum", "--env-file", env_file]
    )
    assert code == 0
    assert len(fake_dispatcher.sent) == 1


def test_network_failure_exit_code(env_file, fake_dispatcher):
    fake_dispatcher.fail_on = "get_code"
    code = cli.run_cli(["1", TEST_RECIPIENT, "-p", "order-42", "--env-file", env_file])
    assert code == 1


def test_set_override(env_file, fake_dispatcher):
    code = cli.run_cli(
        [
            "1",
            TEST_RECIPIENT,
            "-p",
            "x",
            "--env-file",
            env_file,
            "--set",
            "DELEGATION_GAS_LIMIT=650000",
        ]
    )
    assert code == 0
    assert fake_dispatcher.sent[0].gas == 650_000

