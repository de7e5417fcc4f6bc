"""Deployment Record — append-only map of unit name to deployed address.

The record is the single source of truth about deployment progress. Entries
are appended exactly once per unit and never rewritten or removed; the
durable copy lives in infrastructure/record_store.py.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from nero_dex_deployer.domain.exceptions import DuplicateEntryError

if TYPE_CHECKING:
    from collections.abc import Iterator


@dataclass(frozen=True)
class RecordEntry:
    """One deployed (or externally supplied) unit.

    Attributes:
        unit: Unit name from the registry.
        address: Checksummed contract address.
        contract_name: Artifact the address was deployed from.
        args: Resolved constructor arguments, or None when unknown
            (entries loaded from an address-only file).
        tx_hash: Creation transaction hash; None for overrides.
        overridden: True when the address was supplied instead of deployed.
    """

    unit: str
    address: str
    contract_name: str
    args: tuple[Any, ...] | None = None
    tx_hash: str | None = None
    overridden: bool = False


class DeploymentRecord:
    """Ordered, append-only collection of RecordEntry objects."""

    def __init__(self, network: str | None = None, chain_id: int | None = None) -> None:
        self.network = network
        self.chain_id = chain_id
        self._entries: dict[str, RecordEntry] = {}

    def append(self, entry: RecordEntry) -> None:
        """Add an entry for a unit that is not yet recorded.

        Raises:
            DuplicateEntryError: If the unit already has an entry.
        """
        if entry.unit in self._entries:
            raise DuplicateEntryError(entry.unit)
        self._entries[entry.unit] = entry

    def get(self, unit: str) -> RecordEntry | None:
        return self._entries.get(unit)

    def entries(self) -> list[RecordEntry]:
        return list(self._entries.values())

    def addresses(self) -> dict[str, str]:
        """Return {unit: address} in append order."""
        return {name: entry.address for name, entry in self._entries.items()}

    def __contains__(self, unit: object) -> bool:
        return unit in self._entries

    def __iter__(self) -> Iterator[RecordEntry]:
        return iter(list(self._entries.values()))

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DeploymentRecord):
            return NotImplemented
        return (
            self.network == other.network
            and self.chain_id == other.chain_id
            and list(self._entries.items()) == list(other._entries.items())
        )

    def __repr__(self) -> str:
        return f"<DeploymentRecord network={self.network} units={list(self._entries)}>"
