"""Deployable units and their constructor-argument descriptors.

A unit never holds another unit's address directly. It names the units it
depends on, and the executor resolves those names against the deployment
record at deployment time.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from nero_dex_deployer.domain.enums import ArgumentKind
from nero_dex_deployer.domain.exceptions import DependencyUnsatisfiedError


@dataclass(frozen=True)
class ConstructorArg:
    """One constructor argument: a literal, a unit address, or an override."""

    kind: ArgumentKind
    value: Any

    def resolve(
        self,
        unit: str,
        addresses: Mapping[str, str],
        overrides: Mapping[str, str],
    ) -> Any:
        """Return the concrete value of this argument.

        Raises:
            DependencyUnsatisfiedError: If the referenced unit or override is absent.
        """
        if self.kind is ArgumentKind.LITERAL:
            return self.value
        source = addresses if self.kind is ArgumentKind.UNIT else overrides
        if self.value not in source:
            raise DependencyUnsatisfiedError(unit=unit, dependency=self.value)
        return source[self.value]


def literal(value: Any) -> ConstructorArg:
    return ConstructorArg(ArgumentKind.LITERAL, value)


def unit_ref(name: str) -> ConstructorArg:
    return ConstructorArg(ArgumentKind.UNIT, name)


def override_ref(key: str) -> ConstructorArg:
    return ConstructorArg(ArgumentKind.OVERRIDE, key)


@dataclass(frozen=True)
class DeployableUnit:
    """Static description of one contract to deploy.

    Attributes:
        name: Unique name within a run; also the key in the deployment record.
        contract_name: Name of the compiled artifact to deploy.
        args: Ordered constructor-argument descriptors.
        overridable: Whether an externally supplied address may stand in for
            a fresh deployment.
    """

    name: str
    contract_name: str
    args: tuple[ConstructorArg, ...] = field(default=())
    overridable: bool = True

    def dependencies(self) -> list[str]:
        """Names of the units whose addresses this unit needs."""
        return [a.value for a in self.args if a.kind is ArgumentKind.UNIT]

    def external_inputs(self) -> list[str]:
        """Override keys this unit reads."""
        return [a.value for a in self.args if a.kind is ArgumentKind.OVERRIDE]

    def resolve_args(
        self,
        addresses: Mapping[str, str],
        overrides: Mapping[str, str] | None = None,
    ) -> tuple[Any, ...]:
        """Resolve every constructor argument, failing on the first missing one."""
        overrides = overrides or {}
        return tuple(arg.resolve(self.name, addresses, overrides) for arg in self.args)
