"""Record store: the authoritative collection of patient records.

``RecordStore`` holds the create / update / merge rules. Subclasses only
decide how the collection is read and written:

* ``LocalRecordStore`` keeps the whole collection as one JSON array under a
  single key of a key-value medium and rewrites it on every change.
* ``FirestoreRecordStore`` (see ``firestore_record_store``) keeps one
  document per record.

Every read-modify-write runs under the store's lock so two callers cannot
lose each other's changes.

Stored entries that no longer validate as a ``PatientRecord`` are left out
of ``list()`` but are carried through every write as the raw dict they were
read as. Records are never dropped by a rewrite.
"""
from __future__ import annotations

import json
import threading
from typing import Any, Iterable, List, Optional, Union

from pydantic import ValidationError

from eyerecords.models.patient import PatientRecord
from eyerecords.services.errors import PersistenceFailure, StorageUnavailable
from eyerecords.services.identity import IdentityAssigner
from eyerecords.services.logger import log_debug

# A parsed record, or a stored entry kept verbatim because it did not parse
Entry = Union[PatientRecord, Any]


def entry_id(entry: Entry) -> Optional[str]:
    if isinstance(entry, PatientRecord):
        return entry.id
    if isinstance(entry, dict):
        value = entry.get("id")
        return value if isinstance(value, str) else None
    return None


def entry_created_at(entry: Entry) -> Optional[str]:
    if isinstance(entry, PatientRecord):
        return entry.created_at
    if isinstance(entry, dict):
        value = entry.get("createdAt")
        return value if isinstance(value, str) else None
    return None


class RecordStore:
    def __init__(self, identity: Optional[IdentityAssigner] = None):
        self.identity = identity or IdentityAssigner()
        self.lock = threading.RLock()

    # -------------------------
    # Medium hooks
    # -------------------------
    def _read_all(self) -> List[PatientRecord]:
        raise NotImplementedError

    def _read_for_write(self) -> List[Entry]:
        raise NotImplementedError

    def _insert(self, record: PatientRecord, existing: List[Entry]) -> None:
        raise NotImplementedError

    def _replace(self, record: PatientRecord, existing: List[Entry]) -> None:
        raise NotImplementedError

    def _append_many(self, records: List[PatientRecord], existing: List[Entry]) -> None:
        raise NotImplementedError

    # -------------------------
    # Core API
    # -------------------------
    def list(self) -> List[PatientRecord]:
        with self.lock:
            return self._read_all()

    def create(self, record: PatientRecord) -> PatientRecord:
        """Persist a new record, assigning its id and creation timestamp."""
        if record.id:
            raise ValueError("create() expects a record without an id; use update()")

        with self.lock:
            stored = record.with_total().model_copy(
                update={"id": self.identity.new_id(), "created_at": self.identity.now()}
            )
            existing = self._read_for_write()
            self._insert(stored, existing)

        log_debug("record_created", {"id": stored.id, "total": len(existing) + 1})
        return stored

    def update(self, record: PatientRecord) -> bool:
        """
        Replace the stored record carrying the same id.

        Returns False when the record has no id or no such record exists.
        The stored ``createdAt`` is kept.
        """
        if not record.id:
            log_debug("record_update_skipped", {"reason": "missing id"})
            return False

        with self.lock:
            existing = self._read_for_write()
            current = next((e for e in existing if entry_id(e) == record.id), None)
            if current is None:
                log_debug("record_update_skipped", {"reason": "not found", "id": record.id})
                return False

            stored = record.with_total().model_copy(update={"created_at": entry_created_at(current)})
            self._replace(stored, existing)

        log_debug("record_updated", {"id": stored.id})
        return True

    def merge(self, incoming: Iterable[PatientRecord]) -> int:
        """
        Adopt incoming records whose id is non-empty and not yet stored.

        Records without an id, or whose id is already present, are dropped;
        the stored copy always wins. Returns the number adopted.
        """
        with self.lock:
            existing = self._read_for_write()
            seen = {entry_id(e) for e in existing}
            adopted: List[PatientRecord] = []
            for record in incoming:
                if not record.id or record.id in seen:
                    continue
                seen.add(record.id)
                adopted.append(record)

            if adopted:
                self._append_many(adopted, existing)

        log_debug("records_merged", {"adopted": len(adopted), "existing": len(existing)})
        return len(adopted)


class LocalRecordStore(RecordStore):
    """Whole-collection snapshot kept under one key of a key-value medium."""

    def __init__(self, storage, key: str = "patient_records", identity: Optional[IdentityAssigner] = None):
        super().__init__(identity)
        self.storage = storage
        self.key = key

    def _load_items(self, strict: bool) -> list:
        raw = self.storage.get_item(self.key)
        if not raw:
            return []
        try:
            items = json.loads(raw)
        except json.JSONDecodeError as exc:
            items = None
            error = str(exc)
        else:
            error = "not a list"
        if isinstance(items, list):
            return items

        log_debug("snapshot_unreadable", {"key": self.key, "error": error})
        if strict:
            # Rewriting an unreadable snapshot would lose whatever it holds
            raise StorageUnavailable(f"Snapshot {self.key} is not a JSON array of records: {error}")
        return []

    def _parse(self, items: list, keep_invalid: bool) -> List[Entry]:
        entries: List[Entry] = []
        for item in items:
            try:
                entries.append(PatientRecord.model_validate(item))
            except ValidationError as exc:
                log_debug("snapshot_record_skipped", {"key": self.key, "id": entry_id(item), "error": str(exc)})
                if keep_invalid:
                    entries.append(item)
        return entries

    def _read_all(self) -> List[PatientRecord]:
        try:
            items = self._load_items(strict=False)
        except StorageUnavailable as exc:
            log_debug("storage_unavailable", {"key": self.key, "error": str(exc)})
            return []
        return self._parse(items, keep_invalid=False)

    def _read_for_write(self) -> List[Entry]:
        # An unreadable medium must not be overwritten with a partial collection
        return self._parse(self._load_items(strict=True), keep_invalid=True)

    def _save(self, entries: List[Entry]) -> None:
        payload = json.dumps(
            [e.to_document() if isinstance(e, PatientRecord) else e for e in entries],
            ensure_ascii=False,
        )
        try:
            self.storage.set_item(self.key, payload)
        except PersistenceFailure:
            raise
        except Exception as exc:
            raise PersistenceFailure(f"Could not save {self.key}: {exc}") from exc

    def _insert(self, record, existing):
        self._save([*existing, record])

    def _replace(self, record, existing):
        self._save([record if entry_id(e) == record.id else e for e in existing])

    def _append_many(self, records, existing):
        self._save([*existing, *records])
