import json

import pytest

from contract_deployer.artifacts import ArtifactStore

SOLC_VERSION = "0.8.9+commit.e5eed63a"

ADMIN_ABI = [{"type": "constructor", "inputs": [], "stateMutability": "nonpayable"}]
TRAINER_ABI = [
    {
        "type": "constructor",
        "inputs": [{"name": "adminControl", "type": "address", "internalType": "address"}],
        "stateMutability": "nonpayable",
    },
    {
        "type": "function",
        "name": "setMinter",
        "inputs": [{"name": "minter", "type": "address", "internalType": "address"}],
        "outputs": [],
        "stateMutability": "nonpayable",
    },
]


def _write(path, payload):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload), encoding="utf-8")


@pytest.fixture
def artifacts_root(tmp_path):
    """A minimal Hardhat artifacts tree with two contracts from one source file."""
    root = tmp_path / "artifacts"
    source_dir = root / "contracts" / "Admin.sol"
    for name, abi in (("AdminControl", ADMIN_ABI), ("TrainerManagement", TRAINER_ABI)):
        _write(
            source_dir / f"{name}.json",
            {
                "_format": "hh-sol-artifact-1",
                "contractName": name,
                "sourceName": "contracts/Admin.sol",
                "abi": abi,
                "bytecode": "0x6080604052",
                "deployedBytecode": "0x6080604052",
                "linkReferences": {},
                "deployedLinkReferences": {},
            },
        )
        _write(
            source_dir / f"{name}.dbg.json",
            {"_format": "hh-sol-dbg-1", "buildInfo": "../../build-info/abc123.json"},
        )
    _write(
        root / "build-info" / "abc123.json",
        {
            "id": "abc123",
            "solcVersion": "0.8.9",
            "solcLongVersion": SOLC_VERSION,
            "input": {
                "language": "Solidity",
                "sources": {"contracts/Admin.sol": {"content": "// SPDX-License-Identifier: MIT"}},
                "settings": {"optimizer": {"enabled": True, "runs": 500}},
            },
            "output": {},
        },
    )
    return root


@pytest.fixture
def artifacts(artifacts_root):
    return ArtifactStore(artifacts_root)
