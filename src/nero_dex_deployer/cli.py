#!/usr/bin/env python3
"""NERO DEX Deployer — operator command line.

Thin adapter around the deployment executor and the verification driver:
reads settings, builds the collaborators, prints the record and outcome
tables and maps errors to exit codes.

Usage:
    # Deploy (resumes from deployments.json if it exists):
    nero-dex-deployer deploy --network nero-testnet

    # Rehearse without a node (writes deployments.dry-run.json):
    nero-dex-deployer deploy --dry-run --verify

    # Reuse an existing wrapped native token:
    nero-dex-deployer deploy --override WETH9=0x...

    # Verify every recorded unit, or only some of them:
    nero-dex-deployer verify
    nero-dex-deployer verify --only router quoter

    # Print the persisted record:
    nero-dex-deployer show
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import TYPE_CHECKING

from nero_dex_deployer.config import get_settings
from nero_dex_deployer.domain.exceptions import (
    ConfigurationError,
    DeployerError,
    TransactionError,
)
from nero_dex_deployer.domain.registry import nero_dex_registry
from nero_dex_deployer.infrastructure.artifacts import HardhatArtifacts
from nero_dex_deployer.infrastructure.record_store import JsonRecordStore
from nero_dex_deployer.infrastructure.simulated_chain import SimulatedChainClient
from nero_dex_deployer.infrastructure.web3_chain import Web3ChainClient
from nero_dex_deployer.logging_config import get_logger, setup_logging
from nero_dex_deployer.schemas.record import DeploymentRecordFile
from nero_dex_deployer.services.deployment_executor import (
    DeploymentExecutor,
    overrides_from_record,
)
from nero_dex_deployer.services.verification_driver import VerificationDriver
from nero_dex_deployer.verifiers import MockVerificationService, VerificationServiceFactory

if TYPE_CHECKING:
    from nero_dex_deployer.config import Settings
    from nero_dex_deployer.domain.record import DeploymentRecord
    from nero_dex_deployer.domain.registry import UnitRegistry
    from nero_dex_deployer.domain.verification_protocol import (
        VerificationOutcome,
        VerificationService,
    )

logger = get_logger("cli")

DRY_RUN_DEPLOYMENT_FILE = "deployments.dry-run.json"


# ---------------------------------------------------------------------------
# Output helpers
# ---------------------------------------------------------------------------


def format_record_table(record: DeploymentRecord, browser_url: str = "") -> str:
    """Render the record as an aligned table, one unit per line."""
    if not len(record):
        return "(no units recorded)"
    width = max(len(e.unit) for e in record)
    lines = [f"Network: {record.network or '-'}   Chain ID: {record.chain_id or '-'}", "=" * 60]
    for entry in record:
        note = " (override)" if entry.overridden else ""
        lines.append(f"{entry.unit:<{width}}  {entry.address}{note}")
        if browser_url:
            lines.append(f"{'':<{width}}  {browser_url.rstrip('/')}/address/{entry.address}")
    lines.append("=" * 60)
    return "\n".join(lines)


def format_outcome_table(outcomes: dict[str, VerificationOutcome]) -> str:
    """Render verification outcomes, one unit per line."""
    if not outcomes:
        return "(nothing to verify)"
    width = max(len(name) for name in outcomes)
    lines = []
    for name, outcome in outcomes.items():
        mark = "✅" if outcome.is_success else ("⏭️ " if outcome.status == "skipped" else "❌")
        reason = f"  {outcome.reason}" if outcome.reason else ""
        lines.append(f"{mark} {name:<{width}}  {outcome.status.value}{reason}")
    return "\n".join(lines)


def _parse_override(value: str) -> tuple[str, str]:
    name, sep, address = value.partition("=")
    if not sep or not name or not address:
        raise argparse.ArgumentTypeError(f"Expected UNIT=ADDRESS, got '{value}'")
    return name.strip(), address.strip()


# ---------------------------------------------------------------------------
# Collaborator wiring
# ---------------------------------------------------------------------------


def _store_for(args: argparse.Namespace, settings: Settings, registry: UnitRegistry) -> JsonRecordStore:
    path = args.deployment_file
    if path is None:
        path = DRY_RUN_DEPLOYMENT_FILE if args.dry_run else settings.deployment_file
    return JsonRecordStore(path, contract_names={u.name: u.contract_name for u in registry})


def _verification_service(settings: Settings, dry_run: bool) -> VerificationService:
    if dry_run:
        return MockVerificationService()
    if not settings.resolved_explorer_api_url:
        raise ConfigurationError(
            f"No explorer API URL for network '{settings.network}'. Set EXPLORER_API_URL."
        )
    return VerificationServiceFactory.create(
        "etherscan",
        api_url=settings.resolved_explorer_api_url,
        api_key=settings.explorer_api_key,
        artifacts=HardhatArtifacts(settings.artifacts_dir),
        poll_interval=settings.verification_poll_interval_seconds,
        max_polls=settings.verification_max_polls,
    )


async def _run_verification(
    record: DeploymentRecord,
    registry: UnitRegistry,
    settings: Settings,
    dry_run: bool,
    only: list[str] | None = None,
) -> dict[str, VerificationOutcome]:
    service = _verification_service(settings, dry_run)
    driver = VerificationDriver(
        service,
        registry=registry,
        concurrency=settings.verification_concurrency,
        timeout=settings.verification_timeout_seconds,
    )
    try:
        return await driver.run(record, only=only)
    finally:
        close = getattr(service, "aclose", None)
        if close is not None:
            await close()


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


async def cmd_deploy(args: argparse.Namespace, settings: Settings) -> int:
    registry = nero_dex_registry(settings.display_symbol)
    store = _store_for(args, settings, registry)

    prior = None
    if args.fresh:
        store.archive()
    else:
        prior = store.load()

    # Priority: previous record < WETH_ADDRESS setting < --override flags
    overrides = overrides_from_record(prior)
    if settings.weth_address:
        overrides["WETH9"] = settings.weth_address
    overrides.update(dict(args.override or []))

    if args.dry_run:
        chain = SimulatedChainClient()
    else:
        chain = Web3ChainClient.from_settings(settings, HardhatArtifacts(settings.artifacts_dir))
        expected_chain_id = settings.resolved_chain_id
        if expected_chain_id is not None and await chain.chain_id() != expected_chain_id:
            raise ConfigurationError(
                f"RPC endpoint for '{settings.network}' is not on chain {expected_chain_id}"
            )
        logger.info("deploy.account", address=chain.address, balance_wei=await chain.balance())

    executor = DeploymentExecutor(
        chain,
        store,
        confirmation_timeout=settings.confirmation_timeout_seconds,
        network=settings.network,
    )

    print(f"\n🚀 Deploying NERO DEX to {settings.network}{' (dry run)' if args.dry_run else ''}")
    try:
        record = await executor.run(registry, overrides, prior)
    except DeployerError as exc:
        unit = getattr(exc, "unit", None)
        print(f"\n❌ Deployment failed{f' at unit {unit}' if unit else ''}: {exc.message}")
        if isinstance(exc, TransactionError) and exc.tx_hash:
            print(f"   Transaction: {exc.tx_hash}")
        print(f"   Progress saved in {store.path}; rerun deploy to resume.")
        return 1

    print(f"\n🎉 Deployment complete. Record saved to {store.path}\n")
    print(format_record_table(record, settings.explorer_browser_url))

    if args.verify:
        print("\n🔍 Verifying contracts...")
        try:
            outcomes = await _run_verification(record, registry, settings, args.dry_run)
        except DeployerError as exc:
            # The deployment itself succeeded and is recorded
            print(f"⚠️  Verification did not run: {exc.message}")
            print("   Run the verify command once the explorer is configured.")
        else:
            print(format_outcome_table(outcomes))
    return 0


async def cmd_verify(args: argparse.Namespace, settings: Settings) -> int:
    registry = nero_dex_registry(settings.display_symbol)
    store = _store_for(args, settings, registry)

    record = store.load()
    if record is None:
        print(f"❌ No deployment record at {store.path}. Run the deploy command first.")
        return 1

    print(f"\n🔍 Verifying {len(record)} recorded units from {store.path}")
    outcomes = await _run_verification(record, registry, settings, args.dry_run, args.only)
    print(format_outcome_table(outcomes))

    failed = [name for name, o in outcomes.items() if o.status == "failed"]
    if failed:
        print(f"\n⚠️  {len(failed)} unit(s) failed. Retry with: verify --only {' '.join(failed)}")
        return 1
    print("\n🎉 All recorded contracts verified.")
    return 0


async def cmd_show(args: argparse.Namespace, settings: Settings) -> int:
    registry = nero_dex_registry(settings.display_symbol)
    store = _store_for(args, settings, registry)

    record = store.load()
    if record is None:
        print(f"No deployment record at {store.path}.")
        return 1
    if args.json:
        print(json.dumps(DeploymentRecordFile.from_domain(record).model_dump(mode="json"), indent=2))
    else:
        print(format_record_table(record, settings.explorer_browser_url))
    return 0


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nero-dex-deployer",
        description="Deploy and verify the NERO DEX contracts",
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--network", help="Network preset name (default: NETWORK setting).")
    common.add_argument(
        "--deployment-file",
        help="Record file path (default: DEPLOYMENT_FILE setting).",
    )
    common.add_argument(
        "--dry-run",
        action="store_true",
        help="Use the simulated chain / mock explorer instead of real endpoints.",
    )
    common.add_argument("--log-level", help="Log level (default: APP_LOG_LEVEL setting).")
    common.add_argument("--json-logs", action="store_true", help="Emit JSON log lines.")

    sub = parser.add_subparsers(dest="command", required=True)

    deploy = sub.add_parser("deploy", parents=[common], help="Deploy all units in order.")
    deploy.add_argument(
        "--override",
        action="append",
        type=_parse_override,
        metavar="UNIT=ADDRESS",
        help="Use an existing address instead of deploying a unit. Repeatable.",
    )
    deploy.add_argument(
        "--fresh",
        action="store_true",
        help="Archive the existing record and deploy everything again.",
    )
    deploy.add_argument(
        "--verify",
        action="store_true",
        help="Verify contracts on the explorer after a successful deployment.",
    )
    deploy.set_defaults(handler=cmd_deploy)

    verify = sub.add_parser("verify", parents=[common], help="Verify recorded units.")
    verify.add_argument("--only", nargs="+", metavar="UNIT", help="Verify only these units.")
    verify.set_defaults(handler=cmd_verify)

    show = sub.add_parser("show", parents=[common], help="Print the persisted record.")
    show.add_argument("--json", action="store_true", help="Print the raw record document.")
    show.set_defaults(handler=cmd_show)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    settings = get_settings()
    if args.network:
        settings = settings.model_copy(update={"network": args.network})

    setup_logging(
        log_level=args.log_level or settings.app_log_level,
        json_logs=args.json_logs or settings.log_json or not settings.is_development,
    )

    try:
        settings.preset()
        return asyncio.run(args.handler(args, settings))
    except DeployerError as exc:
        print(f"❌ {exc.code}: {exc.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
