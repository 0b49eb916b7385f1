# config.py
# Network table and environment-driven settings.
#
# Credentials come from the environment (or a local .env file) and are never
# written to the checkpoint files. The network name is the only selector:
# it picks the RPC endpoint, the explorer and the state directory.

import os
from pathlib import Path
from typing import Mapping

from dotenv import load_dotenv
from eth_utils import is_hexstr, remove_0x_prefix
from pydantic import BaseModel, Field, ValidationError

from contract_deployer.errors import ConfigError

load_dotenv()

ETHERSCAN_API_URL = "https://api.etherscan.io/v2/api"


class NetworkSpec(BaseModel):
    """Static description of a deployment target."""

    name: str
    chain_id: int
    rpc_url: str | None = Field(
        default=None,
        description="RPC endpoint. May contain {infura_key}.",
    )
    explorer_url: str | None = Field(default=None, description="Block explorer base URL.")


NETWORKS: dict[str, NetworkSpec] = {
    "localhost": NetworkSpec(
        name="localhost",
        chain_id=31337,
        rpc_url="http://127.0.0.1:8545",
    ),
    "goerli": NetworkSpec(
        name="goerli",
        chain_id=5,
        rpc_url="https://goerli.infura.io/v3/{infura_key}",
        explorer_url="https://goerli.etherscan.io",
    ),
    "sepolia": NetworkSpec(
        name="sepolia",
        chain_id=11155111,
        rpc_url="https://sepolia.infura.io/v3/{infura_key}",
        explorer_url="https://sepolia.etherscan.io",
    ),
}


class DeploySettings(BaseModel):
    """Everything a run needs, resolved for a single network."""

    network: NetworkSpec
    rpc_url: str
    private_key: str = Field(..., repr=False)
    etherscan_api_key: str | None = Field(default=None, repr=False)
    etherscan_api_url: str = ETHERSCAN_API_URL
    state_dir: Path = Path("networks")
    artifacts_dir: Path = Path("artifacts")
    gas_limit: int = Field(default=7_000_000, gt=0)
    verify_delay: float = Field(default=30.0, ge=0)
    receipt_timeout: float = Field(default=300.0, gt=0)

    @property
    def verification_enabled(self) -> bool:
        return bool(self.network.explorer_url and self.etherscan_api_key)


def _resolve_rpc_url(spec: NetworkSpec, env: Mapping[str, str]) -> str:
    override = env.get("DEPLOY_RPC_URL")
    if override:
        return override
    if not spec.rpc_url:
        raise ConfigError(f"Network '{spec.name}' has no RPC URL; set DEPLOY_RPC_URL.")
    if "{infura_key}" in spec.rpc_url:
        infura_key = env.get("INFURA_KEY")
        if not infura_key:
            raise ConfigError(f"INFURA_KEY is required for network '{spec.name}'.")
        return spec.rpc_url.format(infura_key=infura_key)
    return spec.rpc_url


def load_settings(network: str, env: Mapping[str, str] | None = None) -> DeploySettings:
    """
    Resolve settings for `network` from the environment.

    Raises ConfigError for unknown networks, missing credentials, or values
    that fail validation.
    """
    env = os.environ if env is None else env

    spec = NETWORKS.get(network)
    if spec is None:
        known = ", ".join(sorted(NETWORKS))
        raise ConfigError(f"Unknown network '{network}'. Known networks: {known}.")

    private_key = env.get("TESTNET_PRIVATE_KEY")
    if not private_key:
        raise ConfigError("TESTNET_PRIVATE_KEY is not set.")
    if not (is_hexstr(private_key) and len(remove_0x_prefix(private_key)) == 64):
        # The value itself is never echoed.
        raise ConfigError("TESTNET_PRIVATE_KEY is not a 32-byte hex private key.")

    overrides = {
        "state_dir": env.get("DEPLOY_STATE_DIR"),
        "artifacts_dir": env.get("DEPLOY_ARTIFACTS_DIR"),
        "gas_limit": env.get("DEPLOY_GAS_LIMIT"),
        "verify_delay": env.get("DEPLOY_VERIFY_DELAY"),
        "receipt_timeout": env.get("DEPLOY_RECEIPT_TIMEOUT"),
        "etherscan_api_url": env.get("ETHERSCAN_API_URL"),
    }

    try:
        return DeploySettings(
            network=spec,
            rpc_url=_resolve_rpc_url(spec, env),
            private_key=private_key,
            etherscan_api_key=env.get("ETHERSCAN_API_KEY") or None,
            **{key: value for key, value in overrides.items() if value},
        )
    except ValidationError as exc:
        raise ConfigError(f"Invalid deployment settings: {exc}") from exc
