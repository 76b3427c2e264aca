import sys

from eyerecords.api.deps import build_record_store
from eyerecords.services.errors import RecordStoreError
from eyerecords.services.record_codec import RecordCodec


def import_records(path: str):
    print(f"--- Importing Patient Records from {path} ---")
    codec = RecordCodec(build_record_store())

    try:
        result = codec.import_file(path)
    except RecordStoreError as e:
        print(f"Import failed: {e}")
        sys.exit(1)

    print(f"Imported {result.added_count} of {result.parsed_count} records")
    skipped = result.parsed_count - result.added_count
    if skipped:
        print(f"Skipped {skipped} records (missing id or already present)")
    return result


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python scripts/import_records.py patient_records_YYYY-MM-DD.json")
        sys.exit(1)
    import_records(sys.argv[1])
