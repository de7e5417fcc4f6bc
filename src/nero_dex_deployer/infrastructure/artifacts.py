"""Hardhat artifact loader.

Reads the compiler output Hardhat writes under ``artifacts/``:

    artifacts/contracts/<Source>.sol/<Name>.json      ABI + creation bytecode
    artifacts/contracts/<Source>.sol/<Name>.dbg.json  pointer to build-info
    artifacts/build-info/<id>.json                    standard JSON input + solc version

The chain client needs the first file to deploy; the explorer verification
service needs the build-info to resubmit the exact compiler input.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from functools import cached_property
from pathlib import Path
from typing import Any

from nero_dex_deployer.domain.exceptions import ArtifactNotFoundError, ConfigurationError


@dataclass(frozen=True)
class ContractArtifact:
    """Compiled contract as written by Hardhat."""

    contract_name: str
    source_name: str
    abi: list[dict[str, Any]]
    bytecode: str
    path: Path

    @property
    def fully_qualified_name(self) -> str:
        return f"{self.source_name}:{self.contract_name}"

    @property
    def constructor_input_types(self) -> list[str]:
        """ABI types of the constructor parameters, in order."""
        for item in self.abi:
            if item.get("type") == "constructor":
                return [_abi_type(i) for i in item.get("inputs", [])]
        return []


@dataclass(frozen=True)
class BuildInfo:
    """Compiler input and version for a set of sources."""

    solc_version: str
    solc_long_version: str
    input: dict[str, Any]

    @property
    def explorer_compiler_version(self) -> str:
        """Version string in the form explorers expect, e.g. v0.7.6+commit.7338295f."""
        return f"v{self.solc_long_version}"


def _abi_type(param: dict[str, Any]) -> str:
    # Tuples are spelled out from their components, keeping any array suffix
    abi_type = param["type"]
    if abi_type.startswith("tuple"):
        inner = ",".join(_abi_type(c) for c in param.get("components", []))
        return f"({inner}){abi_type[len('tuple'):]}"
    return abi_type


class HardhatArtifacts:
    """Looks up artifacts by contract name under a Hardhat artifacts directory."""

    def __init__(self, artifacts_dir: str | Path) -> None:
        self._root = Path(artifacts_dir)
        self._cache: dict[str, ContractArtifact] = {}

    @property
    def root(self) -> Path:
        return self._root

    @cached_property
    def _index(self) -> dict[str, list[Path]]:
        index: dict[str, list[Path]] = {}
        if not self._root.is_dir():
            return index
        for path in self._root.rglob("*.json"):
            if path.name.endswith(".dbg.json") or "build-info" in path.parts:
                continue
            index.setdefault(path.stem, []).append(path)
        return index

    def load(self, contract_name: str) -> ContractArtifact:
        """Return the deployable artifact for a contract name.

        Raises:
            ArtifactNotFoundError: If no artifact with bytecode exists.
            ConfigurationError: If several deployable artifacts share the name.
        """
        if contract_name in self._cache:
            return self._cache[contract_name]

        candidates = [
            a for a in (self._read(p) for p in self._index.get(contract_name, []))
            if a is not None and a.bytecode not in ("", "0x")
        ]
        if not candidates:
            raise ArtifactNotFoundError(contract_name, str(self._root))
        if len(candidates) > 1:
            names = ", ".join(a.fully_qualified_name for a in candidates)
            raise ConfigurationError(
                f"Contract name '{contract_name}' is ambiguous: {names}"
            )

        artifact = candidates[0]
        self._cache[contract_name] = artifact
        return artifact

    def build_info(self, contract_name: str) -> BuildInfo:
        """Return the build-info the contract was compiled from.

        Raises:
            ArtifactNotFoundError: If the debug file or build-info is missing.
        """
        artifact = self.load(contract_name)
        dbg_path = artifact.path.with_name(f"{artifact.contract_name}.dbg.json")
        try:
            dbg = json.loads(dbg_path.read_text(encoding="utf-8"))
            build_path = (dbg_path.parent / dbg["buildInfo"]).resolve()
            data = json.loads(build_path.read_text(encoding="utf-8"))
            return BuildInfo(
                solc_version=data["solcVersion"],
                solc_long_version=data["solcLongVersion"],
                input=data["input"],
            )
        except (OSError, KeyError, json.JSONDecodeError) as exc:
            raise ArtifactNotFoundError(
                f"{contract_name} (build-info: {exc})", str(self._root)
            ) from exc

    @staticmethod
    def _read(path: Path) -> ContractArtifact | None:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            return None
        if not isinstance(data, dict) or "abi" not in data or "bytecode" not in data:
            return None
        return ContractArtifact(
            contract_name=data.get("contractName", path.stem),
            source_name=data.get("sourceName", ""),
            abi=data["abi"],
            bytecode=data["bytecode"],
            path=path,
        )
