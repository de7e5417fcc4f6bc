"""Tests for the Deployable Unit Registry.

Registry validation is a pure pass: none of these tests need a chain client,
and the cycle test asserts that a client is never touched.
"""

from __future__ import annotations

import itertools
from unittest.mock import AsyncMock

import pytest

from nero_dex_deployer.domain.exceptions import ConfigurationError
from nero_dex_deployer.domain.registry import UnitRegistry, nero_dex_registry
from nero_dex_deployer.domain.units import DeployableUnit, literal, override_ref, unit_ref


def _assert_topological(registry: UnitRegistry) -> None:
    seen: set[str] = set()
    for unit in registry.ordered():
        assert all(dep in seen for dep in unit.dependencies()), unit.name
        seen.add(unit.name)


class TestNeroDexRegistry:
    def test_declared_order_is_kept(self, registry: UnitRegistry) -> None:
        assert registry.names == [
            "WETH9", "factory", "tokenDescriptor", "positionManager", "router", "quoter",
        ]

    def test_dependency_edges(self, registry: UnitRegistry) -> None:
        deps = {u.name: u.dependencies() for u in registry}
        assert deps == {
            "WETH9": [],
            "factory": [],
            "tokenDescriptor": ["WETH9"],
            "positionManager": ["factory", "WETH9", "tokenDescriptor"],
            "router": ["factory", "WETH9"],
            "quoter": ["factory", "WETH9"],
        }

    def test_display_symbol_is_literal_arg(self) -> None:
        descriptor = nero_dex_registry("TNERO").get("tokenDescriptor")
        assert descriptor is not None
        assert descriptor.args[1] == literal("TNERO")

    def test_contract_names(self, registry: UnitRegistry) -> None:
        assert registry.get("positionManager").contract_name == "NeroPositionManager"
        assert registry.get("quoter").contract_name == "Quoter"
        assert len(registry) == 6
        assert "router" in registry
        assert "pool" not in registry


class TestTopologicalOrder:
    def test_reverse_declared_units_are_reordered(self) -> None:
        units = [
            DeployableUnit("c", "C", (unit_ref("b"),)),
            DeployableUnit("b", "B", (unit_ref("a"),)),
            DeployableUnit("a", "A"),
        ]
        assert UnitRegistry(units).names == ["a", "b", "c"]

    def test_independent_units_keep_declaration_order(self) -> None:
        units = [
            DeployableUnit("z", "Z"),
            DeployableUnit("y", "Y", (unit_ref("x"),)),
            DeployableUnit("x", "X"),
            DeployableUnit("w", "W"),
        ]
        assert UnitRegistry(units).names == ["z", "x", "y", "w"]

    def test_every_permutation_yields_valid_order(self, registry: UnitRegistry) -> None:
        for perm in itertools.permutations(registry.ordered()):
            _assert_topological(UnitRegistry(perm))


class TestValidation:
    def test_cycle_raises_without_network_calls(self) -> None:
        chain = AsyncMock()
        units = [
            DeployableUnit("X", "X", (unit_ref("Y"),)),
            DeployableUnit("Y", "Y", (unit_ref("X"),)),
        ]
        with pytest.raises(ConfigurationError, match="cycle") as exc_info:
            UnitRegistry(units)

        assert "X" in exc_info.value.message and "Y" in exc_info.value.message
        assert chain.mock_calls == []

    def test_self_reference_is_a_cycle(self) -> None:
        with pytest.raises(ConfigurationError, match="cycle"):
            UnitRegistry([DeployableUnit("loop", "Loop", (unit_ref("loop"),))])

    def test_cycle_behind_valid_units(self) -> None:
        units = [
            DeployableUnit("root", "Root"),
            DeployableUnit("a", "A", (unit_ref("root"), unit_ref("c"))),
            DeployableUnit("b", "B", (unit_ref("a"),)),
            DeployableUnit("c", "C", (unit_ref("b"),)),
        ]
        with pytest.raises(ConfigurationError, match="a -> c -> b -> a"):
            UnitRegistry(units)

    def test_unknown_unit_reference(self) -> None:
        with pytest.raises(ConfigurationError, match="unknown unit 'factory'"):
            UnitRegistry([DeployableUnit("router", "Router", (unit_ref("factory"),))])

    def test_duplicate_names(self) -> None:
        with pytest.raises(ConfigurationError, match="Duplicate"):
            UnitRegistry([DeployableUnit("a", "A"), DeployableUnit("a", "A2")])

    def test_undeclared_external_input(self) -> None:
        with pytest.raises(ConfigurationError, match="undeclared external input"):
            UnitRegistry([DeployableUnit("fees", "Fees", (override_ref("TREASURY"),))])

    def test_declared_external_input(self) -> None:
        registry = UnitRegistry(
            [DeployableUnit("fees", "Fees", (override_ref("TREASURY"),))],
            external_inputs=["TREASURY"],
        )
        assert registry.external_inputs == frozenset({"TREASURY"})
