"""
Collection Registry
--------------------
The durable list of every searchable vector collection and the source label
of the file it came from. Federated search only ever queries collections
listed here, so a collection missing from the registry is effectively
soft-deleted.

Backings share one contract (append / load_all / reset):

  FileCollectionRegistry      -- one "<collectionId>|<sourceLabel>" line per
                                 record, appended with a single O_APPEND write
  InMemoryCollectionRegistry  -- process-local list, same semantics

The line format has no escaping, so ids and labels containing "|" or line
breaks are rejected at append time.

Re-ingestion resets the registry and must not run concurrently with search
traffic; this is an operational constraint, not an in-process lock.
"""
from __future__ import annotations

import os
from abc import ABC, abstractmethod
from pathlib import Path

from loguru import logger

from docqa.errors import RegistryError
from docqa.schemas import CollectionRecord

FIELD_SEPARATOR = "|"
_FORBIDDEN = (FIELD_SEPARATOR, "\n", "\r")


def _check_field(name: str, value: str) -> None:
    if not value:
        raise RegistryError(f"Registry {name} must not be empty")
    for ch in _FORBIDDEN:
        if ch in value:
            raise RegistryError(
                f"Registry {name} {value!r} contains forbidden character {ch!r}"
            )


class CollectionRegistry(ABC):
    """Append-only mapping from collection id to source label."""

    @abstractmethod
    def append(self, collection_id: str, source: str) -> CollectionRecord:
        """Durably record one collection."""
        ...

    @abstractmethod
    def load_all(self) -> list[CollectionRecord]:
        """Return every record in append order ([] if nothing was ingested)."""
        ...

    @abstractmethod
    def reset(self) -> None:
        """Irreversibly delete all records."""
        ...

    def __len__(self) -> int:
        return len(self.load_all())


class FileCollectionRegistry(CollectionRegistry):
    """Line-oriented registry file, e.g. app/collections.txt."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def append(self, collection_id: str, source: str) -> CollectionRecord:
        _check_field("collection id", collection_id)
        _check_field("source", source)

        entry = f"{collection_id}{FIELD_SEPARATOR}{source}\n".encode("utf-8")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            # One write() on an O_APPEND descriptor keeps concurrent appends
            # from interleaving inside a record.
            fd = os.open(self.path, os.O_WRONLY | os.O_APPEND | os.O_CREAT, 0o644)
            try:
                os.write(fd, entry)
                os.fsync(fd)
            finally:
                os.close(fd)
        except OSError as exc:
            raise RegistryError(f"Could not append to registry {self.path}: {exc}") from exc

        logger.info(f"[Registry] Saved collection {collection_id} -> {self.path}")
        return CollectionRecord(id=collection_id, source=source)

    def load_all(self) -> list[CollectionRecord]:
        if not self.path.exists():
            return []

        try:
            content = self.path.read_text(encoding="utf-8")
        except OSError as exc:
            raise RegistryError(f"Could not read registry {self.path}: {exc}") from exc

        records: list[CollectionRecord] = []
        for lineno, line in enumerate(content.splitlines(), start=1):
            line = line.strip()
            if not line:
                continue
            if FIELD_SEPARATOR not in line:
                logger.warning(f"[Registry] Skipping malformed line {lineno}: {line!r}")
                continue
            collection_id, source = line.split(FIELD_SEPARATOR, 1)
            records.append(CollectionRecord(id=collection_id, source=source))
        return records

    def reset(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:
            raise RegistryError(f"Could not reset registry {self.path}: {exc}") from exc
        logger.info(f"[Registry] Cleared {self.path}")


class InMemoryCollectionRegistry(CollectionRegistry):
    """Registry held in process memory; nothing survives a restart."""

    def __init__(self) -> None:
        self._records: list[CollectionRecord] = []

    def append(self, collection_id: str, source: str) -> CollectionRecord:
        _check_field("collection id", collection_id)
        _check_field("source", source)
        record = CollectionRecord(id=collection_id, source=source)
        self._records.append(record)
        return record

    def load_all(self) -> list[CollectionRecord]:
        return list(self._records)

    def reset(self) -> None:
        self._records.clear()
