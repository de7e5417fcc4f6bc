"""Shared test fixtures for the NERO DEX deployer test suite.

Provides:
    - The NERO DEX registry
    - Temporary record stores
    - A simulated chain client
    - A minimal Hardhat artifacts tree on disk
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from nero_dex_deployer.domain.registry import UnitRegistry, nero_dex_registry
from nero_dex_deployer.infrastructure.record_store import JsonRecordStore
from nero_dex_deployer.infrastructure.simulated_chain import SimulatedChainClient

ADDR_A = "0x742d35Cc6634C0532925a3b844Bc9e7595f2bD18"
ADDR_B = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
ADDR_C = "0xe7f1725E7734CE288F8367e1Bb143E90bb3F0512"


# ---------------------------------------------------------------------------
# Domain Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def registry() -> UnitRegistry:
    """Return the NERO DEX registry with the default display symbol."""
    return nero_dex_registry()


@pytest.fixture
def record_path(tmp_path: Path) -> Path:
    return tmp_path / "deployments.json"


@pytest.fixture
def store(record_path: Path, registry: UnitRegistry) -> JsonRecordStore:
    return JsonRecordStore(
        record_path, contract_names={u.name: u.contract_name for u in registry}
    )


@pytest.fixture
def chain() -> SimulatedChainClient:
    return SimulatedChainClient()


# ---------------------------------------------------------------------------
# Artifact Fixtures
# ---------------------------------------------------------------------------


def write_artifact(
    root: Path,
    contract_name: str,
    constructor_inputs: list[dict] | None = None,
    bytecode: str = "0x6080604052",
    source_name: str | None = None,
) -> Path:
    """Write a Hardhat-style artifact, its .dbg.json and a shared build-info."""
    source_name = source_name or f"contracts/{contract_name}.sol"
    artifact_dir = root / source_name
    artifact_dir.mkdir(parents=True, exist_ok=True)

    abi: list[dict] = []
    if constructor_inputs is not None:
        abi.append(
            {"type": "constructor", "inputs": constructor_inputs, "stateMutability": "nonpayable"}
        )

    artifact_path = artifact_dir / f"{contract_name}.json"
    artifact_path.write_text(
        json.dumps(
            {
                "_format": "hh-sol-artifact-1",
                "contractName": contract_name,
                "sourceName": source_name,
                "abi": abi,
                "bytecode": bytecode,
            }
        ),
        encoding="utf-8",
    )

    build_info_dir = root / "build-info"
    build_info_dir.mkdir(parents=True, exist_ok=True)
    (build_info_dir / "abc123.json").write_text(
        json.dumps(
            {
                "solcVersion": "0.7.6",
                "solcLongVersion": "0.7.6+commit.7338295f",
                "input": {"language": "Solidity", "sources": {}, "settings": {}},
            }
        ),
        encoding="utf-8",
    )

    depth = len(Path(source_name).parts)
    relative = "/".join([".."] * depth) + "/build-info/abc123.json"
    (artifact_dir / f"{contract_name}.dbg.json").write_text(
        json.dumps({"_format": "hh-sol-dbg-1", "buildInfo": relative}), encoding="utf-8"
    )
    return artifact_path


@pytest.fixture
def artifacts_dir(tmp_path: Path) -> Path:
    """Artifacts for a router taking (address factory, address weth)."""
    root = tmp_path / "artifacts"
    write_artifact(
        root,
        "NeroDEXRouter",
        constructor_inputs=[
            {"name": "_factory", "type": "address"},
            {"name": "_WETH9", "type": "address"},
        ],
    )
    write_artifact(root, "NeroDEXFactory", constructor_inputs=[])
    return root
