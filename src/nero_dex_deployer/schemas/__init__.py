"""Pydantic schemas for persisted files."""

from nero_dex_deployer.schemas.record import (
    DeploymentRecordFile,
    RecordEntryModel,
    checksum_address,
    parse_record_payload,
)

__all__ = [
    "DeploymentRecordFile",
    "RecordEntryModel",
    "checksum_address",
    "parse_record_payload",
]
