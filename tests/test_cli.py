"""Tests for the command line adapter.

All commands run with --dry-run (simulated chain, mock explorer) and a record
file under tmp_path, so nothing leaves the process.
"""

from __future__ import annotations

import json
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from nero_dex_deployer import cli
from nero_dex_deployer.cli import format_outcome_table, main
from nero_dex_deployer.config import get_settings
from nero_dex_deployer.domain.verification_protocol import VerificationOutcome
from nero_dex_deployer.infrastructure.artifacts import HardhatArtifacts
from nero_dex_deployer.infrastructure.record_store import JsonRecordStore
from nero_dex_deployer.infrastructure.simulated_chain import SimulatedChainClient
from nero_dex_deployer.infrastructure.web3_chain import Web3ChainClient

from conftest import ADDR_A

UNITS = ["WETH9", "factory", "tokenDescriptor", "positionManager", "router", "quoter"]


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Run every CLI test from an empty directory with no deployer env vars."""
    monkeypatch.chdir(tmp_path)
    for var in ("NETWORK", "WETH_ADDRESS", "PRIVATE_KEY", "DEPLOYMENT_FILE", "EXPLORER_API_URL"):
        monkeypatch.delenv(var, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def _deploy(record_path: Path, *extra: str) -> int:
    return main(["deploy", "--dry-run", "--deployment-file", str(record_path), *extra])


class _UnreachableEth:
    """AsyncWeb3 eth namespace of a node that refuses every connection."""

    @property
    def chain_id(self):
        return self._refuse()

    async def get_balance(self, address: str) -> int:
        return await self._refuse()

    async def _refuse(self) -> int:
        raise OSError("Connect call failed ('127.0.0.1', 8545)")


def _use_chain(monkeypatch: pytest.MonkeyPatch, chain) -> None:
    """Make a live (non dry-run) deploy use the given chain client."""
    monkeypatch.setattr(cli, "Web3ChainClient", MagicMock(**{"from_settings.return_value": chain}))


def _unreachable_chain(tmp_path: Path) -> Web3ChainClient:
    return Web3ChainClient(
        w3=SimpleNamespace(eth=_UnreachableEth()),
        account=SimpleNamespace(address=ADDR_A),
        artifacts=HardhatArtifacts(tmp_path / "artifacts"),
        endpoint="http://127.0.0.1:8545",
    )


class TestDeployCommand:
    def test_dry_run_deploys_all_units(
        self, record_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert _deploy(record_path) == 0

        record = JsonRecordStore(record_path).load()
        assert list(record.addresses()) == UNITS
        out = capsys.readouterr().out
        assert "Deployment complete" in out
        assert "positionManager" in out

    def test_default_dry_run_file(self, tmp_path: Path) -> None:
        assert main(["deploy", "--dry-run"]) == 0
        assert (tmp_path / "deployments.dry-run.json").exists()
        assert not (tmp_path / "deployments.json").exists()

    def test_rerun_resumes_without_redeploying(self, record_path: Path) -> None:
        _deploy(record_path)
        first = JsonRecordStore(record_path).load()

        assert _deploy(record_path) == 0
        assert JsonRecordStore(record_path).load() == first

    def test_override_flag(self, record_path: Path) -> None:
        assert _deploy(record_path, "--override", f"WETH9={ADDR_A}") == 0

        weth = JsonRecordStore(record_path).load().get("WETH9")
        assert weth.address == ADDR_A
        assert weth.overridden is True

    def test_weth_address_setting(
        self, record_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("WETH_ADDRESS", ADDR_A)
        assert _deploy(record_path) == 0
        assert JsonRecordStore(record_path).load().get("WETH9").overridden is True

    def test_unknown_override_unit(
        self, record_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert _deploy(record_path, "--override", f"pool={ADDR_A}") == 1
        assert "Deployment failed" in capsys.readouterr().out
        assert not record_path.exists()

    def test_malformed_override_flag(self, record_path: Path) -> None:
        with pytest.raises(SystemExit) as exc_info:
            _deploy(record_path, "--override", "WETH9")
        assert exc_info.value.code == 2

    def test_fresh_archives_previous_record(self, record_path: Path) -> None:
        _deploy(record_path)
        assert _deploy(record_path, "--fresh") == 0

        archived = [p for p in record_path.parent.glob("deployments.*.json")]
        assert len(archived) == 1
        assert record_path.exists()

    def test_deploy_and_verify(
        self, record_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert _deploy(record_path, "--verify") == 0
        out = capsys.readouterr().out
        assert "Verifying contracts" in out
        assert out.count("verified") >= len(UNITS)

    def test_verify_without_explorer_keeps_successful_deploy(
        self,
        record_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        _use_chain(monkeypatch, SimulatedChainClient())

        code = main(["deploy", "--verify", "--deployment-file", str(record_path)])

        assert code == 0
        assert list(JsonRecordStore(record_path).load().addresses()) == UNITS
        out = capsys.readouterr().out
        assert "Deployment complete" in out
        assert "Verification did not run" in out
        assert "EXPLORER_API_URL" in out

    def test_unreachable_node_on_balance(
        self,
        tmp_path: Path,
        record_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        _use_chain(monkeypatch, _unreachable_chain(tmp_path))

        assert main(["deploy", "--deployment-file", str(record_path)]) == 1

        err = capsys.readouterr().err
        assert "CHAIN_UNAVAILABLE" in err
        assert "127.0.0.1:8545" in err
        assert not record_path.exists()

    def test_unreachable_node_on_chain_id(
        self,
        tmp_path: Path,
        record_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        _use_chain(monkeypatch, _unreachable_chain(tmp_path))

        code = main(
            ["deploy", "--network", "nero-testnet", "--deployment-file", str(record_path)]
        )

        assert code == 1
        assert "CHAIN_UNAVAILABLE" in capsys.readouterr().err
        assert not record_path.exists()

    def test_missing_private_key(
        self, record_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert main(["deploy", "--deployment-file", str(record_path)]) == 1
        assert "PRIVATE_KEY" in capsys.readouterr().err

    def test_unknown_network(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["deploy", "--dry-run", "--network", "moonbase"]) == 1
        assert "CONFIGURATION_ERROR" in capsys.readouterr().err


class TestVerifyCommand:
    def test_requires_record(
        self, record_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert main(["verify", "--dry-run", "--deployment-file", str(record_path)]) == 1
        assert "No deployment record" in capsys.readouterr().out

    def test_dry_run_verify(
        self, record_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        _deploy(record_path)
        capsys.readouterr()

        assert main(["verify", "--dry-run", "--deployment-file", str(record_path)]) == 0
        assert "All recorded contracts verified" in capsys.readouterr().out

    def test_only_subset(self, record_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        _deploy(record_path)
        capsys.readouterr()

        code = main(
            ["verify", "--dry-run", "--deployment-file", str(record_path), "--only", "router"]
        )
        out = capsys.readouterr().out
        assert code == 0
        assert "router" in out
        assert "quoter" not in out

    def test_no_explorer_for_network(
        self, record_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        _deploy(record_path)
        assert main(["verify", "--deployment-file", str(record_path)]) == 1
        assert "EXPLORER_API_URL" in capsys.readouterr().err


class TestShowCommand:
    def test_show_json(self, record_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        _deploy(record_path)
        capsys.readouterr()

        assert main(["show", "--deployment-file", str(record_path), "--json"]) == 0
        document = json.loads(capsys.readouterr().out)
        assert list(document["entries"]) == UNITS
        assert document["chain_id"] == 31337

    def test_show_missing(self, record_path: Path) -> None:
        assert main(["show", "--deployment-file", str(record_path)]) == 1


class TestOutcomeTable:
    def test_marks_each_status(self) -> None:
        table = format_outcome_table(
            {
                "WETH9": VerificationOutcome.verified(),
                "factory": VerificationOutcome.failed("rejected: bad args"),
                "router": VerificationOutcome.skipped(),
            }
        )
        lines = table.splitlines()
        assert lines[0].startswith("✅")
        assert lines[1].startswith("❌") and "rejected: bad args" in lines[1]
        assert lines[2].startswith("⏭️") and "no address recorded" in lines[2]
