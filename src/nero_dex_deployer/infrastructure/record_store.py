"""Durable JSON store for the deployment record.

The executor is the only writer during a run (single-writer discipline, no
locking). Every save() replaces the file atomically, so after save() returns
a later load() observes every entry appended so far, even after a crash.

Usage:
    store = JsonRecordStore("deployments.json")
    store.begin(network="nero-testnet", chain_id=1002)
    store.append("factory", "0x...", (), contract_name="NeroDEXFactory", tx_hash="0x...")
    store.save()
    record = store.load()
"""

from __future__ import annotations

import json
import os
import tempfile
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from nero_dex_deployer.domain.exceptions import PersistenceError
from nero_dex_deployer.domain.record import DeploymentRecord, RecordEntry
from nero_dex_deployer.logging_config import get_logger
from nero_dex_deployer.schemas.record import DeploymentRecordFile, parse_record_payload

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = get_logger(__name__)


class JsonRecordStore:
    """Append-only deployment record persisted as a JSON file."""

    def __init__(
        self,
        path: str | Path,
        contract_names: Mapping[str, str] | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            path: Location of the record file.
            contract_names: Unit -> artifact name, used to upgrade legacy files.
        """
        self._path = Path(path)
        self._contract_names = dict(contract_names or {})
        self._record: DeploymentRecord | None = None

    @property
    def path(self) -> Path:
        return self._path

    @property
    def record(self) -> DeploymentRecord:
        """The record being written by the current run."""
        if self._record is None:
            raise RuntimeError("No record in progress. Call begin() first.")
        return self._record

    def exists(self) -> bool:
        return self._path.exists()

    def load(self) -> DeploymentRecord | None:
        """Read the persisted record, or None if nothing was saved yet.

        Raises:
            PersistenceError: If the file exists but cannot be read or parsed.
        """
        if not self._path.exists():
            return None
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
            record = parse_record_payload(payload, self._contract_names)
        except OSError as exc:
            raise PersistenceError(str(self._path), f"cannot read: {exc}") from exc
        except (json.JSONDecodeError, ValidationError) as exc:
            raise PersistenceError(str(self._path), f"malformed record: {exc}") from exc

        logger.debug("record.loaded", path=str(self._path), units=len(record))
        return record

    def begin(self, network: str | None = None, chain_id: int | None = None) -> DeploymentRecord:
        """Start a new, empty record for a deployment run."""
        self._record = DeploymentRecord(network=network, chain_id=chain_id)
        return self._record

    def append(
        self,
        unit: str,
        address: str,
        args: tuple[Any, ...] | None,
        *,
        contract_name: str,
        tx_hash: str | None = None,
        overridden: bool = False,
    ) -> RecordEntry:
        """Append one entry to the in-progress record. Call save() to persist it."""
        entry = RecordEntry(
            unit=unit,
            address=address,
            contract_name=contract_name,
            args=args,
            tx_hash=tx_hash,
            overridden=overridden,
        )
        self.append_entry(entry)
        return entry

    def append_entry(self, entry: RecordEntry) -> None:
        self.record.append(entry)

    def save(self) -> None:
        """Atomically write the in-progress record to disk.

        Raises:
            PersistenceError: If the file cannot be written.
        """
        document = DeploymentRecordFile.from_domain(self.record).model_dump(mode="json")
        data = json.dumps(document, indent=2) + "\n"

        tmp_name: str | None = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(data)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self._path)
            tmp_name = None
        except OSError as exc:
            raise PersistenceError(str(self._path), f"cannot write: {exc}") from exc
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)

        logger.debug("record.saved", path=str(self._path), units=len(self.record))

    def archive(self) -> Path | None:
        """Move an existing record file aside so a fresh run cannot clobber it.

        Returns:
            The archive path, or None if there was nothing to archive.
        """
        if not self._path.exists():
            return None
        stamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%SZ")
        target = self._path.with_name(f"{self._path.stem}.{stamp}{self._path.suffix}")
        try:
            os.replace(self._path, target)
        except OSError as exc:
            raise PersistenceError(str(self._path), f"cannot archive: {exc}") from exc
        logger.info("record.archived", path=str(self._path), archived_to=str(target))
        return target
