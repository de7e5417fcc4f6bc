"""Deployment Executor — deploys registry units in order and records them.

Coordinates between:
    - UnitRegistry (deployment order, constructor-argument descriptors)
    - ChainClient (contract creation, confirmation)
    - JsonRecordStore (append + save after every unit)
    - UnitDeploymentStateMachine (per-unit lifecycle guard)

Units are deployed strictly one at a time. After each confirmation the entry
is appended and the record saved before the next unit starts, so a crash
loses at most the unit in flight. Rerunning with the recorded addresses as
overrides resumes where the previous run stopped.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from nero_dex_deployer.domain.chain_protocol import DeploymentRequest
from nero_dex_deployer.domain.exceptions import (
    ConfigurationError,
    DependencyUnsatisfiedError,
    DeployerError,
    TransactionError,
)
from nero_dex_deployer.domain.record import DeploymentRecord, RecordEntry
from nero_dex_deployer.domain.state_machine import UnitDeploymentStateMachine
from nero_dex_deployer.logging_config import deployment_context, get_logger
from nero_dex_deployer.schemas.record import checksum_address

if TYPE_CHECKING:
    from collections.abc import Mapping

    from nero_dex_deployer.domain.chain_protocol import ChainClient
    from nero_dex_deployer.domain.registry import UnitRegistry
    from nero_dex_deployer.domain.units import DeployableUnit
    from nero_dex_deployer.infrastructure.record_store import JsonRecordStore

logger = get_logger(__name__)


def overrides_from_record(record: DeploymentRecord | None) -> dict[str, str]:
    """Turn a previous run's record into overrides for a resumed run."""
    return record.addresses() if record is not None else {}


class DeploymentExecutor:
    """Runs one deployment over a registry."""

    def __init__(
        self,
        chain: ChainClient,
        store: JsonRecordStore,
        confirmation_timeout: float | None = 120.0,
        network: str | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            chain: Client that owns the signer and talks to the network.
            store: Record store; the executor is its only writer during a run.
            confirmation_timeout: Seconds to wait for each deployment to be
                mined. None waits forever.
            network: Network name stored in the record.
        """
        self._chain = chain
        self._store = store
        self._confirmation_timeout = confirmation_timeout
        self._network = network

    async def run(
        self,
        registry: UnitRegistry,
        overrides: Mapping[str, str] | None = None,
        prior: DeploymentRecord | None = None,
    ) -> DeploymentRecord:
        """Deploy every unit of the registry that has no override.

        Args:
            registry: Validated unit registry.
            overrides: Unit name or external input -> address.
            prior: Record of an earlier run. Entries whose address matches the
                override are carried over unchanged.

        Returns:
            The completed DeploymentRecord (also persisted by the store).

        Raises:
            ConfigurationError: Bad overrides, a missing external input value,
                a missing artifact or a chain mismatch with `prior`.
            DependencyUnsatisfiedError: A referenced address is missing.
            TransactionError: A deployment was rejected, reverted or timed out.
            PersistenceError: The record could not be saved.
        """
        resolved_overrides = self._check_overrides(registry, overrides or {})
        self._chain.check_deployable(
            unit.contract_name for unit in registry if unit.name not in resolved_overrides
        )
        chain_id = await self._chain.chain_id()

        if prior is not None and prior.chain_id is not None and prior.chain_id != chain_id:
            raise ConfigurationError(
                f"Existing record belongs to chain {prior.chain_id}, "
                f"but the client is connected to chain {chain_id}"
            )

        record = self._store.begin(network=self._network, chain_id=chain_id)

        with deployment_context(network=self._network, chain_id=chain_id):
            logger.info(
                "deploy.started",
                units=registry.names,
                overridden=sorted(k for k in resolved_overrides if k in registry),
            )
            for unit in registry.ordered():
                if unit.name in resolved_overrides:
                    self._record_override(unit, resolved_overrides, record, prior)
                else:
                    await self._deploy(unit, resolved_overrides, record)

            logger.info("deploy.completed", units=len(record))

        return record

    # ------------------------------------------------------------------
    # Pre-flight
    # ------------------------------------------------------------------

    @staticmethod
    def _check_overrides(
        registry: UnitRegistry, overrides: Mapping[str, str]
    ) -> dict[str, str]:
        """Validate overrides and external inputs without touching the network."""
        resolved: dict[str, str] = {}
        for name, value in overrides.items():
            unit = registry.get(name)
            if unit is None and name not in registry.external_inputs:
                raise ConfigurationError(
                    f"Override '{name}' matches no unit and no declared external input"
                )
            if unit is not None and not unit.overridable:
                raise ConfigurationError(f"Unit '{name}' must be deployed and cannot be overridden")
            try:
                resolved[name] = checksum_address(value)
            except ValueError as exc:
                raise ConfigurationError(f"Override '{name}': {exc}") from exc

        for unit in registry:
            if unit.name in resolved:
                continue
            for key in unit.external_inputs():
                if key not in resolved:
                    raise ConfigurationError(
                        f"Unit '{unit.name}' needs external input '{key}', "
                        "but no value was supplied"
                    )
        return resolved

    # ------------------------------------------------------------------
    # Per-unit steps
    # ------------------------------------------------------------------

    def _record_override(
        self,
        unit: DeployableUnit,
        overrides: dict[str, str],
        record: DeploymentRecord,
        prior: DeploymentRecord | None,
    ) -> None:
        sm = UnitDeploymentStateMachine()
        address = overrides[unit.name]
        sm.use_override()

        previous = prior.get(unit.name) if prior is not None else None
        if previous is not None and previous.address == address:
            entry = previous
        else:
            try:
                args = unit.resolve_args(record.addresses(), overrides)
            except DependencyUnsatisfiedError:
                args = None
            entry = RecordEntry(
                unit=unit.name,
                address=address,
                contract_name=unit.contract_name,
                args=args,
                overridden=True,
            )

        self._store.append_entry(entry)
        self._store.save()
        logger.info(
            "deploy.unit.overridden",
            unit=unit.name,
            address=address,
            carried_over=entry is previous,
        )

    async def _deploy(
        self,
        unit: DeployableUnit,
        overrides: dict[str, str],
        record: DeploymentRecord,
    ) -> None:
        sm = UnitDeploymentStateMachine()
        log = logger.bind(unit=unit.name, contract=unit.contract_name)

        try:
            args = unit.resolve_args(record.addresses(), overrides)
        except DependencyUnsatisfiedError as exc:
            sm.abort()
            log.error("deploy.unit.dependency_missing", dependency=exc.dependency)
            raise

        request = DeploymentRequest(unit=unit.name, contract_name=unit.contract_name, args=args)
        try:
            pending = await self._chain.submit_deployment(request)
        except DeployerError:
            sm.abort()
            log.error("deploy.unit.submit_failed")
            raise
        except Exception as exc:
            sm.abort()
            log.exception("deploy.unit.submit_failed")
            raise TransactionError(unit.name, str(exc)) from exc
        sm.submit()
        log.info("deploy.unit.submitted", tx_hash=pending.tx_hash)

        try:
            address = await asyncio.wait_for(
                self._chain.wait_for_address(pending),
                timeout=self._confirmation_timeout,
            )
        except TimeoutError as exc:
            sm.reject()
            log.error("deploy.unit.timeout", tx_hash=pending.tx_hash)
            raise TransactionError(
                unit.name,
                f"not confirmed within {self._confirmation_timeout}s",
                tx_hash=pending.tx_hash,
            ) from exc
        except DeployerError:
            sm.reject()
            log.error("deploy.unit.failed", tx_hash=pending.tx_hash)
            raise
        except Exception as exc:
            sm.reject()
            log.exception("deploy.unit.failed", tx_hash=pending.tx_hash)
            raise TransactionError(unit.name, str(exc), tx_hash=pending.tx_hash) from exc
        sm.confirm()

        self._store.append(
            unit.name,
            checksum_address(address),
            args,
            contract_name=unit.contract_name,
            tx_hash=pending.tx_hash,
        )
        self._store.save()
        log.info("deploy.unit.confirmed", address=address, tx_hash=pending.tx_hash)
