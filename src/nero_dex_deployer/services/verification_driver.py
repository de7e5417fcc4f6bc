"""Verification Driver — replays a deployment record against a verification service.

Each recorded unit is verified in its own task. Tasks run concurrently up to a
limit (explorers rate-limit aggressively), each under its own timeout, and any
failure, timeout or cancellation becomes that unit's outcome without touching
the others. Units the registry knows but the record lacks are reported as
skipped and never submitted.

The driver keeps no state between runs; retrying only the failed units is done
by running again with `only=`.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from nero_dex_deployer.domain.enums import ServiceVerdict
from nero_dex_deployer.domain.exceptions import ConfigurationError, DependencyUnsatisfiedError
from nero_dex_deployer.domain.verification_protocol import (
    VerificationOutcome,
    VerificationRequest,
)
from nero_dex_deployer.logging_config import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterable

    from nero_dex_deployer.domain.record import DeploymentRecord, RecordEntry
    from nero_dex_deployer.domain.registry import UnitRegistry
    from nero_dex_deployer.domain.verification_protocol import (
        VerificationResponse,
        VerificationService,
    )

logger = get_logger(__name__)


class VerificationDriver:
    """Verifies every unit of a deployment record independently."""

    def __init__(
        self,
        service: VerificationService,
        registry: UnitRegistry | None = None,
        concurrency: int = 2,
        timeout: float | None = 180.0,
    ) -> None:
        """Initialize the driver.

        Args:
            service: External verification service.
            registry: Used to report undeployed units as skipped and to rebuild
                constructor args for entries recorded without them.
            concurrency: Maximum verification calls in flight.
            timeout: Seconds allowed per unit. None waits forever.
        """
        if concurrency < 1:
            raise ConfigurationError("Verification concurrency must be at least 1")
        self._service = service
        self._registry = registry
        self._concurrency = concurrency
        self._timeout = timeout
        self._tasks: dict[str, asyncio.Task[VerificationOutcome]] = {}

    async def run(
        self,
        record: DeploymentRecord,
        only: Iterable[str] | None = None,
    ) -> dict[str, VerificationOutcome]:
        """Verify the recorded units and return one outcome per unit.

        Args:
            record: Deployment record to replay (read only).
            only: Restrict the run to these unit names.

        Returns:
            unit name -> VerificationOutcome, in registry order followed by
            record entries the registry does not know.
        """
        names = self._unit_names(record)
        if only is not None:
            wanted = set(only)
            unknown = wanted.difference(names)
            if unknown:
                raise ConfigurationError(f"Unknown units requested: {', '.join(sorted(unknown))}")
            names = [n for n in names if n in wanted]

        outcomes: dict[str, VerificationOutcome] = {}
        semaphore = asyncio.Semaphore(self._concurrency)

        for name in names:
            entry = record.get(name)
            if entry is None:
                outcomes[name] = VerificationOutcome.skipped()
                logger.info("verify.unit.skipped", unit=name)
                continue
            self._tasks[name] = asyncio.create_task(
                self._verify_unit(entry, record, semaphore), name=f"verify:{name}"
            )

        try:
            results = await asyncio.gather(*self._tasks.values(), return_exceptions=True)
            for name, result in zip(list(self._tasks), results, strict=True):
                if isinstance(result, asyncio.CancelledError):
                    outcomes[name] = VerificationOutcome.failed("verification cancelled")
                elif isinstance(result, BaseException):
                    outcomes[name] = VerificationOutcome.failed(f"{type(result).__name__}: {result}")
                else:
                    outcomes[name] = result
        finally:
            self._tasks = {}

        ordered = {name: outcomes[name] for name in names}
        logger.info(
            "verify.completed",
            total=len(ordered),
            failed=sorted(n for n, o in ordered.items() if o.status == "failed"),
        )
        return ordered

    def cancel(self, unit: str) -> bool:
        """Cancel one unit's in-flight verification. Others keep running."""
        task = self._tasks.get(unit)
        if task is None or task.done():
            return False
        return task.cancel()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _unit_names(self, record: DeploymentRecord) -> list[str]:
        names = list(self._registry.names) if self._registry is not None else []
        names.extend(e.unit for e in record if e.unit not in names)
        return names

    def _constructor_args(self, entry: RecordEntry, record: DeploymentRecord) -> tuple[Any, ...]:
        """Recorded args, or args rebuilt from the registry for legacy entries."""
        if entry.args is not None:
            return entry.args
        unit = self._registry.get(entry.unit) if self._registry is not None else None
        if unit is None:
            raise DependencyUnsatisfiedError(unit=entry.unit, dependency="constructor arguments")
        return unit.resolve_args(record.addresses())

    async def _verify_unit(
        self,
        entry: RecordEntry,
        record: DeploymentRecord,
        semaphore: asyncio.Semaphore,
    ) -> VerificationOutcome:
        log = logger.bind(unit=entry.unit, address=entry.address)

        try:
            args = self._constructor_args(entry, record)
        except DependencyUnsatisfiedError as exc:
            log.warning("verify.unit.args_unavailable", error=exc.message)
            return VerificationOutcome.failed(exc.message)

        request = VerificationRequest(
            unit=entry.unit,
            contract_name=entry.contract_name,
            address=entry.address,
            constructor_args=args,
        )

        async with semaphore:
            log.info("verify.unit.started")
            try:
                response = await asyncio.wait_for(
                    self._service.verify(request), timeout=self._timeout
                )
            except TimeoutError:
                log.warning("verify.unit.timeout", timeout=self._timeout)
                return VerificationOutcome.failed(f"timed out after {self._timeout}s")
            except Exception as exc:
                log.warning("verify.unit.error", error=str(exc))
                return VerificationOutcome.failed(str(exc))

        outcome = _outcome_from_response(response)
        log.info("verify.unit.finished", status=outcome.status.value, reason=outcome.reason)
        return outcome


def _outcome_from_response(response: VerificationResponse) -> VerificationOutcome:
    if response.verdict is ServiceVerdict.VERIFIED:
        return VerificationOutcome.verified(guid=response.guid)
    if response.verdict is ServiceVerdict.ALREADY_VERIFIED:
        return VerificationOutcome.already_verified()
    label = "rejected" if response.verdict is ServiceVerdict.REJECTED else "unreachable"
    return VerificationOutcome.failed(f"{label}: {response.message}", guid=response.guid)
