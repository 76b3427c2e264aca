"""Name / mobile search over a record store."""
from datetime import datetime, timezone
from typing import List

from eyerecords.models.patient import PatientRecord, SearchType

_FIELDS = {
    "name": "patient_name",
    "mobile": "mobile_number",
}

# Records whose timestamp cannot be read sort after everything else
_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def effective_timestamp(record: PatientRecord) -> datetime:
    """
    createdAt if present, else the visit date (midnight UTC).
    Naive timestamps are treated as UTC.
    """
    if record.created_at:
        try:
            dt = datetime.fromisoformat(record.created_at.replace("Z", "+00:00"))
        except ValueError:
            return _OLDEST
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt
    return datetime(record.date.year, record.date.month, record.date.day, tzinfo=timezone.utc)


class QueryEngine:
    def __init__(self, store):
        self.store = store

    def search(self, query: str, field: SearchType = "mobile") -> List[PatientRecord]:
        """
        Case-insensitive substring match on patient name or mobile number,
        most recent first. An empty query matches every record.
        """
        if field not in _FIELDS:
            raise ValueError(f"Unknown search field: {field!r}")

        attr = _FIELDS[field]
        needle = query.casefold()
        matches = [
            r for r in self.store.list()
            if needle in getattr(r, attr).casefold()
        ]
        # sorted() is stable, so equal timestamps keep store order
        return sorted(matches, key=effective_timestamp, reverse=True)
