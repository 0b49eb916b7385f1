# network.py
# Chain access for the orchestrator.
#
# The orchestrator only sees the NetworkClient protocol. Web3NetworkClient is
# the production implementation: it signs locally with one account, submits
# the transaction and blocks until the receipt is mined. Every failure mode
# (revert, RPC error, mining timeout) surfaces as DeploymentFailed or
# CallFailed so the step is left incomplete and retried on the next run.

from typing import Any, Protocol, Sequence

from eth_account import Account
from eth_utils import to_checksum_address
from web3 import Web3
from web3.exceptions import TimeExhausted, Web3Exception

from contract_deployer.artifacts import ArtifactStore
from contract_deployer.config import DeploySettings
from contract_deployer.errors import CallFailed, DeploymentError, DeploymentFailed


class NetworkClient(Protocol):
    def get_signers(self) -> list[str]:
        ...

    def deploy(self, contract: str, args: Sequence[Any], signer: str) -> str:
        ...

    def call(
        self, address: str, contract: str, method: str, args: Sequence[Any], signer: str
    ) -> None:
        ...


class Web3NetworkClient:
    """
    NetworkClient backed by web3.py and a single local signing key.

    Example:
        artifacts = ArtifactStore("artifacts")
        client = Web3NetworkClient.from_settings(load_settings("sepolia"), artifacts)
        address = client.deploy("AdminControl", [], client.get_signers()[0])
    """

    def __init__(
        self,
        web3: Web3,
        account: Any,
        artifacts: ArtifactStore,
        gas_limit: int = 7_000_000,
        receipt_timeout: float = 300.0,
        poll_latency: float = 2.0,
    ) -> None:
        self._web3 = web3
        self._account = account
        self._artifacts = artifacts
        self._gas_limit = gas_limit
        self._receipt_timeout = receipt_timeout
        self._poll_latency = poll_latency

    @classmethod
    def from_settings(cls, settings: DeploySettings, artifacts: ArtifactStore) -> "Web3NetworkClient":
        web3 = Web3(Web3.HTTPProvider(settings.rpc_url))
        return cls(
            web3,
            Account.from_key(settings.private_key),
            artifacts,
            gas_limit=settings.gas_limit,
            receipt_timeout=settings.receipt_timeout,
        )

    # ------------------------------------------------------------------
    # NetworkClient
    # ------------------------------------------------------------------

    def get_signers(self) -> list[str]:
        return [self._account.address]

    def deploy(self, contract: str, args: Sequence[Any], signer: str) -> str:
        self._check_signer(signer, DeploymentFailed)
        artifact = self._artifacts.get(contract)
        try:
            factory = self._web3.eth.contract(abi=artifact.abi, bytecode=artifact.bytecode)
            transaction = factory.constructor(*args).build_transaction(self._tx_params())
            receipt = self._send_and_wait(transaction)
        except TimeExhausted as exc:
            raise DeploymentFailed(
                f"Timed out after {self._receipt_timeout}s waiting for {contract} to be mined."
            ) from exc
        except (Web3Exception, ValueError, OSError) as exc:
            raise DeploymentFailed(f"Deploying {contract} failed: {exc}") from exc

        tx_hash = Web3.to_hex(receipt["transactionHash"])
        if receipt["status"] != 1:
            raise DeploymentFailed(f"{contract} deployment reverted (tx {tx_hash}).")
        if not receipt.get("contractAddress"):
            raise DeploymentFailed(f"{contract} receipt has no contract address (tx {tx_hash}).")
        return to_checksum_address(receipt["contractAddress"])

    def call(
        self, address: str, contract: str, method: str, args: Sequence[Any], signer: str
    ) -> None:
        self._check_signer(signer, CallFailed)
        artifact = self._artifacts.get(contract)
        try:
            instance = self._web3.eth.contract(address=to_checksum_address(address), abi=artifact.abi)
            function = getattr(instance.functions, method)(*args)
            transaction = function.build_transaction(self._tx_params())
            receipt = self._send_and_wait(transaction)
        except TimeExhausted as exc:
            raise CallFailed(
                f"Timed out after {self._receipt_timeout}s waiting for {contract}.{method} to be mined."
            ) from exc
        except (Web3Exception, ValueError, OSError) as exc:
            raise CallFailed(f"{contract}.{method} at {address} failed: {exc}") from exc

        if receipt["status"] != 1:
            tx_hash = Web3.to_hex(receipt["transactionHash"])
            raise CallFailed(f"{contract}.{method} at {address} reverted (tx {tx_hash}).")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _check_signer(self, signer: str, error: type[DeploymentError]) -> None:
        if signer != self._account.address:
            raise error(f"Signer {signer} is not the configured account {self._account.address}.")

    def _tx_params(self) -> dict[str, Any]:
        sender = self._account.address
        return {
            "from": sender,
            "nonce": self._web3.eth.get_transaction_count(sender, "pending"),
            "gas": self._gas_limit,
        }

    def _send_and_wait(self, transaction: dict[str, Any]) -> Any:
        signed = self._account.sign_transaction(transaction)
        tx_hash = self._web3.eth.send_raw_transaction(signed.raw_transaction)
        return self._web3.eth.wait_for_transaction_receipt(
            tx_hash,
            timeout=self._receipt_timeout,
            poll_latency=self._poll_latency,
        )
