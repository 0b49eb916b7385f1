# verify.py
# Block-explorer source verification (Etherscan-compatible API).
#
# Verification is cosmetic: it makes deployed contracts readable on the
# explorer. EtherscanVerifier.verify() therefore never raises; every problem
# is returned as a failed VerificationOutcome and the run continues.
#
# Flow: submit standard-JSON input (verifysourcecode) → poll the returned
# guid (checkverifystatus) until it leaves the queue. Transport errors,
# throttling and "not indexed yet" answers are retried with backoff.

import json
import random
import time
from typing import Any, Callable, Protocol, Sequence

import httpx
from eth_abi import encode

from contract_deployer import display
from contract_deployer.artifacts import ArtifactStore
from contract_deployer.config import DeploySettings
from contract_deployer.errors import VerificationFailed
from contract_deployer.models import VerificationOutcome

RETRYABLE_STATUS_CODES = {408, 429}
RETRYABLE_RESULTS = (
    "unable to locate contractcode",
    "does not have bytecode",
    "max rate limit reached",
)
ALREADY_VERIFIED = "already verified"
PENDING = "pending in queue"


class VerificationClient(Protocol):
    def verify(
        self, address: str, contract: str, constructor_args: Sequence[Any]
    ) -> VerificationOutcome:
        ...

    def close(self) -> None:
        ...


def _is_retryable_result(result: str) -> bool:
    lowered = result.lower()
    return any(marker in lowered for marker in RETRYABLE_RESULTS)


def encode_constructor_args(types: Sequence[str], args: Sequence[Any]) -> str:
    """ABI-encode constructor arguments as bare hex (no 0x prefix)."""
    if not types:
        return ""
    return encode(list(types), list(args)).hex()


class EtherscanVerifier:
    """Submits contract sources to an Etherscan v2 style API and waits for the verdict."""

    def __init__(
        self,
        api_url: str,
        api_key: str,
        chain_id: int,
        artifacts: ArtifactStore,
        client: httpx.Client | None = None,
        max_attempts: int = 5,
        retry_base_delay: float = 2.0,
        retry_max_delay: float = 30.0,
        poll_interval: float = 5.0,
        max_polls: int = 12,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self._api_url = api_url
        self._api_key = api_key
        self._chain_id = chain_id
        self._artifacts = artifacts
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=30.0)
        self._max_attempts = max_attempts
        self._retry_base_delay = retry_base_delay
        self._retry_max_delay = retry_max_delay
        self._poll_interval = poll_interval
        self._max_polls = max_polls
        self._sleep = sleep

    @classmethod
    def from_settings(
        cls, settings: DeploySettings, artifacts: ArtifactStore
    ) -> "EtherscanVerifier | None":
        """None when the network has no explorer or no API key is configured."""
        if not settings.verification_enabled:
            return None
        return cls(
            api_url=settings.etherscan_api_url,
            api_key=settings.etherscan_api_key,
            chain_id=settings.network.chain_id,
            artifacts=artifacts,
        )

    # ------------------------------------------------------------------
    # Public
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Release the HTTP client. An injected client is left to its owner."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "EtherscanVerifier":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def verify(
        self, address: str, contract: str, constructor_args: Sequence[Any]
    ) -> VerificationOutcome:
        try:
            guid = self._submit(address, contract, constructor_args)
            if guid is None:
                return VerificationOutcome.already_verified()
            return self._poll(guid)
        except Exception as exc:  # never fatal
            return VerificationOutcome.failed(str(exc) or type(exc).__name__)

    # ------------------------------------------------------------------
    # Explorer calls
    # ------------------------------------------------------------------

    def _submit(self, address: str, contract: str, constructor_args: Sequence[Any]) -> str | None:
        """Return the verification guid, or None if the explorer already has the source."""
        artifact = self._artifacts.get(contract)
        build = self._artifacts.build_info(contract)
        form = {
            "apikey": self._api_key,
            "module": "contract",
            "action": "verifysourcecode",
            "contractaddress": address,
            "sourceCode": json.dumps(build.input),
            "codeformat": "solidity-standard-json-input",
            "contractname": artifact.fully_qualified_name,
            "compilerversion": build.compiler_version,
            # Misspelling is part of the Etherscan API.
            "constructorArguements": encode_constructor_args(
                artifact.constructor_types, constructor_args
            ),
        }
        body = self._request("POST", data=form)
        result = str(body.get("result", ""))
        if body.get("status") == "1":
            return result
        if ALREADY_VERIFIED in result.lower():
            return None
        raise VerificationFailed(f"Explorer rejected submission: {result}")

    def _poll(self, guid: str) -> VerificationOutcome:
        params = {
            "apikey": self._api_key,
            "module": "contract",
            "action": "checkverifystatus",
            "guid": guid,
        }
        for _ in range(self._max_polls):
            self._sleep(self._poll_interval)
            body = self._request("GET", params=params)
            result = str(body.get("result", ""))
            lowered = result.lower()
            if PENDING in lowered:
                continue
            if ALREADY_VERIFIED in lowered:
                return VerificationOutcome.already_verified()
            if body.get("status") == "1" or lowered.startswith("pass"):
                return VerificationOutcome.verified()
            return VerificationOutcome.failed(result)
        return VerificationOutcome.failed(
            f"Verification {guid} still pending after {self._max_polls} status checks."
        )

    def _request(
        self,
        method: str,
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        query = {"chainid": self._chain_id, **(params or {})}
        last_error = ""
        for attempt in range(1, self._max_attempts + 1):
            try:
                response = self._client.request(method, self._api_url, params=query, data=data)
            except httpx.TransportError as exc:
                last_error = str(exc) or type(exc).__name__
            else:
                status = response.status_code
                if status in RETRYABLE_STATUS_CODES or status >= 500:
                    last_error = f"HTTP {status}"
                elif status >= 400:
                    raise VerificationFailed(f"Explorer returned HTTP {status}: {response.text[:256]}")
                else:
                    body = response.json()
                    if not isinstance(body, dict):
                        raise VerificationFailed("Explorer response is not a JSON object.")
                    result = str(body.get("result", ""))
                    if body.get("status") == "1" or not _is_retryable_result(result):
                        return body
                    last_error = result

            if attempt >= self._max_attempts:
                break
            display.verification_retry(attempt, self._max_attempts, last_error)
            self._sleep_backoff(attempt)

        raise VerificationFailed(
            f"Explorer call failed after {self._max_attempts} attempts: {last_error}"
        )

    def _sleep_backoff(self, attempt: int) -> None:
        base = max(0.0, self._retry_base_delay)
        cap = max(base, self._retry_max_delay)
        delay = min(cap, base * (2 ** (attempt - 1)))
        jitter = random.uniform(0.0, delay) if delay > 0 else 0.0
        self._sleep(delay + jitter)
