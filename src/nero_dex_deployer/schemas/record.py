"""Pydantic schemas for the persisted deployment record file.

These schemas define the on-disk JSON shape. They are kept separate from the
domain RecordEntry/DeploymentRecord so the domain stays free of pydantic.

Current format (version 1):
    {
      "version": 1,
      "network": "nero-testnet",
      "chain_id": 1002,
      "entries": {
        "factory": {"address": "0x...", "contract_name": "NeroDEXFactory",
                    "args": [], "tx_hash": "0x...", "overridden": false}
      }
    }

Legacy format (written by the original deploy script):
    {"WETH9": "0x...", "factory": "0x...", ...}
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Literal

from eth_utils import is_address, to_checksum_address
from pydantic import BaseModel, ConfigDict, Field, field_validator

from nero_dex_deployer.domain.record import DeploymentRecord, RecordEntry

if TYPE_CHECKING:
    from collections.abc import Mapping

RECORD_FORMAT_VERSION = 1


def checksum_address(value: str) -> str:
    """Validate a 20-byte hex address and return its checksummed form.

    Raises:
        ValueError: If the value is not an address.
    """
    if not isinstance(value, str) or not is_address(value):
        raise ValueError(f"Not a valid address: {value!r}")
    return to_checksum_address(value)


class RecordEntryModel(BaseModel):
    """One unit in the record file."""

    model_config = ConfigDict(extra="ignore")

    address: str
    contract_name: str
    args: list[Any] | None = None
    tx_hash: str | None = None
    overridden: bool = False

    @field_validator("address")
    @classmethod
    def _checksum(cls, value: str) -> str:
        return checksum_address(value)

    @classmethod
    def from_domain(cls, entry: RecordEntry) -> RecordEntryModel:
        return cls(
            address=entry.address,
            contract_name=entry.contract_name,
            args=list(entry.args) if entry.args is not None else None,
            tx_hash=entry.tx_hash,
            overridden=entry.overridden,
        )

    def to_domain(self, unit: str) -> RecordEntry:
        return RecordEntry(
            unit=unit,
            address=self.address,
            contract_name=self.contract_name,
            args=tuple(self.args) if self.args is not None else None,
            tx_hash=self.tx_hash,
            overridden=self.overridden,
        )


class DeploymentRecordFile(BaseModel):
    """Top-level shape of the record file."""

    model_config = ConfigDict(extra="ignore")

    version: Literal[1] = RECORD_FORMAT_VERSION
    network: str | None = None
    chain_id: int | None = None
    entries: dict[str, RecordEntryModel] = Field(default_factory=dict)

    @classmethod
    def from_domain(cls, record: DeploymentRecord) -> DeploymentRecordFile:
        return cls(
            network=record.network,
            chain_id=record.chain_id,
            entries={e.unit: RecordEntryModel.from_domain(e) for e in record},
        )

    def to_domain(self) -> DeploymentRecord:
        record = DeploymentRecord(network=self.network, chain_id=self.chain_id)
        for unit, entry in self.entries.items():
            record.append(entry.to_domain(unit))
        return record


def is_legacy_payload(payload: Any) -> bool:
    """A legacy file is a flat object of unit name to address string."""
    return (
        isinstance(payload, dict)
        and "entries" not in payload
        and all(isinstance(v, str) for v in payload.values())
    )


def parse_record_payload(
    payload: Any,
    contract_names: Mapping[str, str] | None = None,
) -> DeploymentRecord:
    """Turn decoded JSON into a DeploymentRecord.

    Args:
        payload: The decoded JSON document.
        contract_names: Unit name -> artifact name, used to upgrade legacy
            address-only files. Units not in the mapping keep their own name.

    Raises:
        pydantic.ValidationError: If the payload does not match either format.
    """
    if is_legacy_payload(payload):
        contract_names = contract_names or {}
        payload = {
            "entries": {
                unit: {"address": address, "contract_name": contract_names.get(unit, unit)}
                for unit, address in payload.items()
            }
        }
    return DeploymentRecordFile.model_validate(payload).to_domain()
