"""Tests for the in-memory deployment record and its file schema."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from nero_dex_deployer.domain.exceptions import DuplicateEntryError
from nero_dex_deployer.domain.record import DeploymentRecord, RecordEntry
from nero_dex_deployer.schemas.record import (
    DeploymentRecordFile,
    checksum_address,
    is_legacy_payload,
    parse_record_payload,
)

from conftest import ADDR_A, ADDR_B


def _entry(unit: str, address: str = ADDR_A, **kwargs) -> RecordEntry:
    return RecordEntry(unit=unit, address=address, contract_name=unit.upper(), **kwargs)


class TestDeploymentRecord:
    def test_append_and_lookup(self) -> None:
        record = DeploymentRecord(network="localhost", chain_id=31337)
        record.append(_entry("factory", ADDR_A, args=()))
        record.append(_entry("WETH9", ADDR_B, args=()))

        assert "factory" in record
        assert record.get("WETH9").address == ADDR_B
        assert record.get("router") is None
        assert len(record) == 2

    def test_addresses_keep_append_order(self) -> None:
        record = DeploymentRecord()
        record.append(_entry("b", ADDR_B))
        record.append(_entry("a", ADDR_A))
        assert list(record.addresses()) == ["b", "a"]
        assert [e.unit for e in record] == ["b", "a"]

    def test_entries_are_never_rewritten(self) -> None:
        record = DeploymentRecord()
        record.append(_entry("factory", ADDR_A))

        with pytest.raises(DuplicateEntryError) as exc_info:
            record.append(_entry("factory", ADDR_B))

        assert exc_info.value.unit == "factory"
        assert record.get("factory").address == ADDR_A

    def test_equality(self) -> None:
        left = DeploymentRecord(network="n", chain_id=1)
        right = DeploymentRecord(network="n", chain_id=1)
        left.append(_entry("a"))
        right.append(_entry("a"))
        assert left == right

        right_other_chain = DeploymentRecord(network="n", chain_id=2)
        right_other_chain.append(_entry("a"))
        assert left != right_other_chain


class TestChecksumAddress:
    def test_lowercase_is_checksummed(self) -> None:
        assert checksum_address(ADDR_A.lower()) == ADDR_A

    @pytest.mark.parametrize("value", ["0x1234", "not-an-address", "", 42])
    def test_rejects_non_addresses(self, value) -> None:
        with pytest.raises(ValueError):
            checksum_address(value)


class TestRecordFileSchema:
    def test_domain_round_trip_keeps_args_and_flags(self) -> None:
        record = DeploymentRecord(network="nero-testnet", chain_id=1002)
        record.append(_entry("WETH9", ADDR_A, overridden=True))
        record.append(_entry("descriptor", ADDR_B, args=(ADDR_A, "NERO"), tx_hash="0xabc"))

        document = DeploymentRecordFile.from_domain(record).model_dump(mode="json")
        assert document["version"] == 1
        assert document["entries"]["descriptor"]["args"] == [ADDR_A, "NERO"]

        assert parse_record_payload(document) == record

    def test_addresses_are_checksummed_on_load(self) -> None:
        payload = {
            "entries": {"factory": {"address": ADDR_A.lower(), "contract_name": "F", "args": []}}
        }
        assert parse_record_payload(payload).get("factory").address == ADDR_A

    def test_invalid_address_is_rejected(self) -> None:
        payload = {"entries": {"factory": {"address": "0xdead", "contract_name": "F"}}}
        with pytest.raises(ValidationError):
            parse_record_payload(payload)

    def test_unknown_version_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            parse_record_payload({"version": 2, "entries": {}})


class TestLegacyFormat:
    def test_detects_flat_address_map(self) -> None:
        assert is_legacy_payload({"factory": ADDR_A})
        assert not is_legacy_payload({"version": 1, "entries": {}})
        assert not is_legacy_payload([ADDR_A])

    def test_upgrades_flat_map(self) -> None:
        record = parse_record_payload(
            {"WETH9": ADDR_A, "factory": ADDR_B.lower()},
            contract_names={"factory": "NeroDEXFactory"},
        )

        assert record.addresses() == {"WETH9": ADDR_A, "factory": ADDR_B}
        factory = record.get("factory")
        assert factory.contract_name == "NeroDEXFactory"
        assert factory.args is None
        assert record.get("WETH9").contract_name == "WETH9"
