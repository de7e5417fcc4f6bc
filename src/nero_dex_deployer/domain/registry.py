"""Deployable Unit Registry.

Validates a set of units once, at construction, and exposes them in a
topological order: every unit comes strictly after all units it references.
Validation is a pure pass over the unit descriptions and never touches the
network, so a broken registry fails before any transaction is sent.

The fixed NERO DEX unit set is built by nero_dex_registry():

    WETH9            -> (no args)
    factory          -> (no args)
    tokenDescriptor  -> WETH9, "<display symbol>"
    positionManager  -> factory, WETH9, tokenDescriptor
    router           -> factory, WETH9
    quoter           -> factory, WETH9
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from nero_dex_deployer.domain.exceptions import ConfigurationError
from nero_dex_deployer.domain.units import DeployableUnit, literal, unit_ref

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator


class UnitRegistry:
    """Validated, topologically ordered collection of deployable units.

    Usage:
        registry = UnitRegistry([weth, factory, router], external_inputs=["FEE_TO"])
        for unit in registry.ordered():
            ...
    """

    def __init__(
        self,
        units: Iterable[DeployableUnit],
        external_inputs: Iterable[str] = (),
    ) -> None:
        self._declared = tuple(units)
        self._external_inputs = frozenset(external_inputs)
        self._by_name = self._index(self._declared)
        self._check_references()
        self._ordered = self._topological_order()

    @staticmethod
    def _index(units: tuple[DeployableUnit, ...]) -> dict[str, DeployableUnit]:
        by_name: dict[str, DeployableUnit] = {}
        for unit in units:
            if unit.name in by_name:
                raise ConfigurationError(f"Duplicate unit name '{unit.name}' in registry")
            by_name[unit.name] = unit
        return by_name

    def _check_references(self) -> None:
        for unit in self._declared:
            for dependency in unit.dependencies():
                if dependency not in self._by_name:
                    raise ConfigurationError(
                        f"Unit '{unit.name}' references unknown unit '{dependency}'"
                    )
            for key in unit.external_inputs():
                if key not in self._external_inputs:
                    raise ConfigurationError(
                        f"Unit '{unit.name}' references undeclared external input '{key}'"
                    )

    def _topological_order(self) -> tuple[DeployableUnit, ...]:
        """Stable topological sort: ties keep declaration order."""
        emitted: set[str] = set()
        ordered: list[DeployableUnit] = []
        remaining = list(self._declared)

        while remaining:
            ready = next(
                (u for u in remaining if all(d in emitted for d in u.dependencies())),
                None,
            )
            if ready is None:
                cycle = " -> ".join(self._find_cycle(remaining))
                raise ConfigurationError(f"Dependency cycle between units: {cycle}")
            ordered.append(ready)
            emitted.add(ready.name)
            remaining.remove(ready)

        return tuple(ordered)

    def _find_cycle(self, remaining: list[DeployableUnit]) -> list[str]:
        # Every remaining unit has at least one dependency that is also remaining,
        # so following those edges must revisit a unit.
        pending = {u.name for u in remaining}
        path: list[str] = []
        current = remaining[0].name
        while current not in path:
            path.append(current)
            current = next(d for d in self._by_name[current].dependencies() if d in pending)
        return [*path[path.index(current):], current]

    # ------------------------------------------------------------------
    # Read API
    # ------------------------------------------------------------------

    def ordered(self) -> tuple[DeployableUnit, ...]:
        """Return the units in deployment order."""
        return self._ordered

    @property
    def names(self) -> list[str]:
        return [u.name for u in self._ordered]

    @property
    def external_inputs(self) -> frozenset[str]:
        return self._external_inputs

    def get(self, name: str) -> DeployableUnit | None:
        return self._by_name.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[DeployableUnit]:
        return iter(self._ordered)

    def __len__(self) -> int:
        return len(self._ordered)


def nero_dex_registry(display_symbol: str = "NERO") -> UnitRegistry:
    """Build the registry for the NERO DEX protocol.

    Args:
        display_symbol: Native currency label baked into the token descriptor.
    """
    return UnitRegistry(
        [
            DeployableUnit("WETH9", "WETH9"),
            DeployableUnit("factory", "NeroDEXFactory"),
            DeployableUnit(
                "tokenDescriptor",
                "NonfungibleTokenPositionDescriptor",
                (unit_ref("WETH9"), literal(display_symbol)),
            ),
            DeployableUnit(
                "positionManager",
                "NeroPositionManager",
                (unit_ref("factory"), unit_ref("WETH9"), unit_ref("tokenDescriptor")),
            ),
            DeployableUnit(
                "router",
                "NeroDEXRouter",
                (unit_ref("factory"), unit_ref("WETH9")),
            ),
            DeployableUnit(
                "quoter",
                "Quoter",
                (unit_ref("factory"), unit_ref("WETH9")),
            ),
        ]
    )
