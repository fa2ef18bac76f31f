"""Persistence of extracted metadata records.

One record per media resource. Upserts are serialized per resource so
concurrent refreshes of the same media never produce duplicate records.
"""

import json
import logging
import os
import tempfile
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol

from pydantic import ValidationError

from metadata_engine.config import Settings
from metadata_engine.schemas import MetadataRecord

logger = logging.getLogger(__name__)

# Per-resource locking shares a fixed pool of locks
LOCK_STRIPES = 64


class MetadataStore(Protocol):
    """Record store keyed by resource id."""

    def upsert(
        self,
        resource_id: int,
        payload: dict[str, Any],
        extracted_at: datetime,
        extractors: dict[str, str] | None = None,
    ) -> MetadataRecord:
        """Create or overwrite the record for a resource."""
        ...

    def find(self, resource_id: int) -> MetadataRecord | None: ...

    def find_all(self, resource_id: int) -> list[MetadataRecord]: ...

    def delete(self, resource_id: int) -> bool:
        """Delete the record; returns False when there was none."""
        ...


class InMemoryMetadataStore:
    """Records kept in a dict for the lifetime of the process."""

    def __init__(self) -> None:
        self._records: dict[int, MetadataRecord] = {}
        self._lock = threading.Lock()

    def upsert(
        self,
        resource_id: int,
        payload: dict[str, Any],
        extracted_at: datetime,
        extractors: dict[str, str] | None = None,
    ) -> MetadataRecord:
        record = MetadataRecord(
            resource_id=resource_id,
            extracted_at=extracted_at,
            extractors=extractors or {},
            payload=payload,
        )
        with self._lock:
            self._records[resource_id] = record
        return record.model_copy(deep=True)

    def find(self, resource_id: int) -> MetadataRecord | None:
        with self._lock:
            record = self._records.get(resource_id)
        return record.model_copy(deep=True) if record else None

    def find_all(self, resource_id: int) -> list[MetadataRecord]:
        record = self.find(resource_id)
        return [record] if record else []

    def delete(self, resource_id: int) -> bool:
        with self._lock:
            return self._records.pop(resource_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


class JsonFileMetadataStore:
    """Records persisted as ``<directory>/<resource_id>.json``.

    Writes go to a temporary file that atomically replaces the record, so
    readers never see a partial record. Resources hashing to the same lock
    stripe serialize against each other.
    """

    def __init__(self, directory: str | os.PathLike):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        self._locks = [threading.Lock() for _ in range(LOCK_STRIPES)]

    def _path(self, resource_id: int) -> Path:
        return self.directory / f"{int(resource_id)}.json"

    def _lock_for(self, resource_id: int) -> threading.Lock:
        return self._locks[int(resource_id) % LOCK_STRIPES]

    def _read(self, resource_id: int) -> MetadataRecord | None:
        path = self._path(resource_id)
        if not path.exists():
            return None
        try:
            with open(path) as f:
                return MetadataRecord.model_validate(json.load(f))
        except (json.JSONDecodeError, OSError, ValidationError) as e:
            logger.warning(f"Ignoring unreadable metadata record {path}: {e}")
            return None

    def upsert(
        self,
        resource_id: int,
        payload: dict[str, Any],
        extracted_at: datetime,
        extractors: dict[str, str] | None = None,
    ) -> MetadataRecord:
        record = MetadataRecord(
            resource_id=resource_id,
            extracted_at=extracted_at,
            extractors=extractors or {},
            payload=payload,
        )
        path = self._path(resource_id)
        with self._lock_for(resource_id):
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{resource_id}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w") as f:
                    f.write(record.model_dump_json())
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        logger.debug(f"Saved metadata record for resource {resource_id}")
        return record

    def find(self, resource_id: int) -> MetadataRecord | None:
        with self._lock_for(resource_id):
            return self._read(resource_id)

    def find_all(self, resource_id: int) -> list[MetadataRecord]:
        record = self.find(resource_id)
        return [record] if record else []

    def delete(self, resource_id: int) -> bool:
        with self._lock_for(resource_id):
            try:
                self._path(resource_id).unlink()
            except FileNotFoundError:
                return False
        return True

    def __len__(self) -> int:
        return sum(1 for _ in self.directory.glob("*.json"))


def build_store(settings: Settings) -> MetadataStore:
    """Pick the record store for the configured storage."""
    if settings.store_dir:
        logger.info(f"Persisting metadata records to {settings.store_dir}")
        return JsonFileMetadataStore(settings.store_dir)
    return InMemoryMetadataStore()
