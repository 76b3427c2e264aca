from __future__ import annotations

from typing import List, Optional

from google.api_core.exceptions import GoogleAPIError
from pydantic import ValidationError

from eyerecords.models.patient import PatientRecord
from eyerecords.services.errors import PersistenceFailure, StorageUnavailable
from eyerecords.services.identity import IdentityAssigner
from eyerecords.services.logger import log_debug
from eyerecords.services.record_store import Entry, RecordStore

BATCH_LIMIT = 500

# -------------------------
# Helpers
# -------------------------
def _doc_to_entry(doc, keep_invalid: bool) -> Optional[Entry]:
    data = doc.to_dict() or {}
    data.setdefault("id", doc.id)
    try:
        return PatientRecord.model_validate(data)
    except ValidationError as exc:
        log_debug("firestore_record_skipped", {"doc": doc.id, "error": str(exc)})
    if keep_invalid:
        # The document id is taken, whatever the document holds
        return {**data, "id": doc.id}
    return None


class FirestoreRecordStore(RecordStore):
    """
    One Firestore document per record:
      <collection>/{record_id}

    Transport errors never leave this class as Google exceptions: reads
    raise StorageUnavailable, writes raise PersistenceFailure.
    """

    def __init__(self, db, collection: str = "patient_records", identity: Optional[IdentityAssigner] = None):
        super().__init__(identity)
        self.db = db
        self.collection = collection

    def _coll(self):
        return self.db.collection(self.collection)

    def _read_entries(self, keep_invalid: bool) -> List[Entry]:
        try:
            docs = list(self._coll().stream())
        except GoogleAPIError as exc:
            raise StorageUnavailable(f"Firestore read failed: {exc}") from exc

        out = []
        for d in docs:
            entry = _doc_to_entry(d, keep_invalid)
            if entry is not None:
                out.append(entry)
        return out

    def _read_all(self) -> List[PatientRecord]:
        return self._read_entries(keep_invalid=False)

    def _read_for_write(self) -> List[Entry]:
        return self._read_entries(keep_invalid=True)

    def _insert(self, record, existing):
        try:
            self._coll().document(record.id).create(record.to_document())
        except GoogleAPIError as exc:
            raise PersistenceFailure(f"Firestore create failed for {record.id}: {exc}") from exc

    def _replace(self, record, existing):
        try:
            self._coll().document(record.id).set(record.to_document())
        except GoogleAPIError as exc:
            raise PersistenceFailure(f"Firestore update failed for {record.id}: {exc}") from exc

    def _append_many(self, records, existing):
        # Firestore caps a batch at 500 writes
        for start in range(0, len(records), BATCH_LIMIT):
            batch = self.db.batch()
            for record in records[start:start + BATCH_LIMIT]:
                batch.create(self._coll().document(record.id), record.to_document())
            try:
                batch.commit()
            except GoogleAPIError as exc:
                raise PersistenceFailure(
                    f"Firestore import commit failed after {start} records: {exc}"
                ) from exc
