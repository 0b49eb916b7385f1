# artifacts.py
# Read-only access to Hardhat compiler output.
#
#   artifacts/<source path>/<Name>.json      abi + bytecode, used to deploy
#   artifacts/<source path>/<Name>.dbg.json  pointer to the build-info file
#   artifacts/build-info/<hash>.json         standard-JSON input, used to verify
#
# Compilation itself is out of scope; run `npx hardhat compile` first.

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from contract_deployer.errors import ArtifactNotFound


class ContractArtifact(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    contract_name: str = Field(..., alias="contractName")
    source_name: str = Field(..., alias="sourceName")
    abi: list[dict[str, Any]]
    bytecode: str

    @property
    def fully_qualified_name(self) -> str:
        return f"{self.source_name}:{self.contract_name}"

    @property
    def constructor_types(self) -> list[str]:
        for entry in self.abi:
            if entry.get("type") == "constructor":
                return [item["type"] for item in entry.get("inputs", [])]
        return []


class BuildInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    solc_long_version: str = Field(..., alias="solcLongVersion")
    input: dict[str, Any]

    @property
    def compiler_version(self) -> str:
        """Version string in the form block explorers expect, e.g. v0.8.9+commit.e5eed63a."""
        return f"v{self.solc_long_version}"


def _read_json(path: Path) -> dict[str, Any]:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ArtifactNotFound(f"Cannot read artifact file {path}: {exc}") from exc


class ArtifactStore:
    """Locates and caches contract artifacts under a Hardhat artifacts root."""

    def __init__(self, root: Path | str) -> None:
        self._root = Path(root)
        self._paths: dict[str, Path] = {}
        self._artifacts: dict[str, ContractArtifact] = {}

    @property
    def root(self) -> Path:
        return self._root

    def _locate(self, name: str) -> Path:
        if name in self._paths:
            return self._paths[name]

        matches = sorted(
            path
            for path in self._root.rglob(f"{name}.json")
            if "build-info" not in path.relative_to(self._root).parts
        )
        if not matches:
            raise ArtifactNotFound(f"No artifact named '{name}' under {self._root}.")
        if len(matches) > 1:
            listed = ", ".join(str(path) for path in matches)
            raise ArtifactNotFound(f"Artifact name '{name}' is ambiguous: {listed}.")

        self._paths[name] = matches[0]
        return matches[0]

    def get(self, name: str) -> ContractArtifact:
        if name not in self._artifacts:
            path = self._locate(name)
            try:
                self._artifacts[name] = ContractArtifact.model_validate(_read_json(path))
            except ValidationError as exc:
                raise ArtifactNotFound(f"Artifact {path} is not a Hardhat artifact: {exc}") from exc
        return self._artifacts[name]

    def build_info(self, name: str) -> BuildInfo:
        """Compiler input and version for `name`, resolved through its .dbg.json file."""
        path = self._locate(name)
        debug = _read_json(path.with_name(f"{name}.dbg.json"))
        pointer = debug.get("buildInfo")
        if not pointer:
            raise ArtifactNotFound(f"{name}.dbg.json does not reference a build-info file.")
        try:
            return BuildInfo.model_validate(_read_json((path.parent / pointer).resolve()))
        except ValidationError as exc:
            raise ArtifactNotFound(f"Build info for '{name}' is malformed: {exc}") from exc
