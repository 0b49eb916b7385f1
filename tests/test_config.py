from pathlib import Path

import pytest

from contract_deployer.config import ETHERSCAN_API_URL, load_settings
from contract_deployer.errors import ConfigError

KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"


def test_unknown_network_lists_known_ones():
    with pytest.raises(ConfigError, match="goerli, localhost, sepolia"):
        load_settings("mainnet", env={"TESTNET_PRIVATE_KEY": KEY})


def test_private_key_is_required():
    with pytest.raises(ConfigError, match="TESTNET_PRIVATE_KEY"):
        load_settings("localhost", env={})


@pytest.mark.parametrize("bad_key", ["not-a-key", "0x1234", KEY[:-1] + "g"])
def test_malformed_private_key_is_a_config_error(bad_key):
    with pytest.raises(ConfigError, match="not a 32-byte hex private key") as excinfo:
        load_settings("localhost", env={"TESTNET_PRIVATE_KEY": bad_key})
    assert bad_key not in str(excinfo.value)


def test_private_key_without_prefix_is_accepted():
    settings = load_settings("localhost", env={"TESTNET_PRIVATE_KEY": KEY[2:]})
    assert settings.private_key == KEY[2:]


def test_infura_networks_need_infura_key():
    with pytest.raises(ConfigError, match="INFURA_KEY"):
        load_settings("sepolia", env={"TESTNET_PRIVATE_KEY": KEY})


def test_sepolia_settings_from_environment():
    settings = load_settings(
        "sepolia",
        env={"TESTNET_PRIVATE_KEY": KEY, "INFURA_KEY": "abc", "ETHERSCAN_API_KEY": "scan"},
    )

    assert settings.rpc_url == "https://sepolia.infura.io/v3/abc"
    assert settings.network.chain_id == 11155111
    assert settings.network.explorer_url == "https://sepolia.etherscan.io"
    assert settings.etherscan_api_url == ETHERSCAN_API_URL
    assert settings.gas_limit == 7_000_000
    assert settings.state_dir == Path("networks")
    assert settings.verification_enabled


def test_secrets_are_not_in_repr():
    settings = load_settings("localhost", env={"TESTNET_PRIVATE_KEY": KEY, "ETHERSCAN_API_KEY": "secret-scan-key"})
    assert KEY not in repr(settings)
    assert "secret-scan-key" not in repr(settings)


def test_overrides_are_coerced():
    settings = load_settings(
        "localhost",
        env={
            "TESTNET_PRIVATE_KEY": KEY,
            "DEPLOY_RPC_URL": "http://node:8545",
            "DEPLOY_STATE_DIR": "state",
            "DEPLOY_GAS_LIMIT": "5000000",
            "DEPLOY_VERIFY_DELAY": "0",
        },
    )

    assert settings.rpc_url == "http://node:8545"
    assert settings.state_dir == Path("state")
    assert settings.gas_limit == 5_000_000
    assert settings.verify_delay == 0


def test_invalid_override_is_a_config_error():
    with pytest.raises(ConfigError, match="Invalid deployment settings"):
        load_settings("localhost", env={"TESTNET_PRIVATE_KEY": KEY, "DEPLOY_GAS_LIMIT": "-1"})


def test_verification_needs_explorer_and_api_key():
    local = load_settings("localhost", env={"TESTNET_PRIVATE_KEY": KEY, "ETHERSCAN_API_KEY": "secret-scan-key"})
    remote = load_settings("goerli", env={"TESTNET_PRIVATE_KEY": KEY, "INFURA_KEY": "abc"})

    assert not local.verification_enabled
    assert not remote.verification_enabled
