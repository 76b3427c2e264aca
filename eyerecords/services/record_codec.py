"""Full-snapshot export and merge-on-import for a record store.

The snapshot format is a pretty-printed JSON array of records using the
camelCase field names, the same shape the local store keeps on disk.
"""
import json
from datetime import date
from pathlib import Path
from typing import Optional

from pydantic import TypeAdapter, ValidationError

from eyerecords.models.patient import ImportResult, PatientRecordList
from eyerecords.services.errors import MalformedImport, NothingToExport
from eyerecords.services.logger import log_debug

_records_adapter = TypeAdapter(PatientRecordList)


def export_filename(day: Optional[date] = None) -> str:
    day = day or date.today()
    return f"patient_records_{day.isoformat()}.json"


class RecordCodec:
    def __init__(self, store):
        self.store = store

    def export(self) -> str:
        """Serialize every stored record. Raises NothingToExport when empty."""
        with self.store.lock:
            records = self.store.list()

        if not records:
            raise NothingToExport("No records to export")

        log_debug("records_exported", {"count": len(records)})
        return json.dumps([r.to_document() for r in records], indent=2, ensure_ascii=False)

    def export_to_file(self, directory, day: Optional[date] = None) -> Path:
        """Write the snapshot to ``directory/patient_records_<date>.json``."""
        text = self.export()
        out_dir = Path(directory)
        out_dir.mkdir(parents=True, exist_ok=True)
        out = out_dir / export_filename(day)
        out.write_text(text, encoding="utf-8")
        return out

    def parse(self, text: str):
        """Validate a snapshot as a whole; nothing is adopted if any record is malformed."""
        try:
            items = json.loads(text)
        except (json.JSONDecodeError, TypeError) as exc:
            raise MalformedImport(f"Import is not valid JSON: {exc}") from exc

        if not isinstance(items, list):
            raise MalformedImport("Import must be a JSON array of patient records")

        try:
            return _records_adapter.validate_python(items)
        except ValidationError as exc:
            raise MalformedImport(f"Import contains invalid records: {exc}") from exc

    def import_text(self, text: str) -> ImportResult:
        records = self.parse(text)
        with self.store.lock:
            added = self.store.merge(records)

        log_debug("records_imported", {"parsed": len(records), "added": added})
        return ImportResult(added_count=added, parsed_count=len(records))

    def import_file(self, path) -> ImportResult:
        try:
            text = Path(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise MalformedImport(f"Could not read import file {path}: {exc}") from exc
        return self.import_text(text)
