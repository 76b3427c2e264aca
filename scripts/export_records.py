import sys

from eyerecords.api.deps import build_record_store
from eyerecords.core.config import settings
from eyerecords.services.errors import NothingToExport
from eyerecords.services.record_codec import RecordCodec


def export_records(out_dir: str):
    print("--- Exporting Patient Records ---")
    codec = RecordCodec(build_record_store())

    try:
        path = codec.export_to_file(out_dir)
    except NothingToExport:
        print("No records to export")
        return None

    print(f"Exported snapshot to {path}")
    return path


if __name__ == "__main__":
    export_records(sys.argv[1] if len(sys.argv) > 1 else settings.EXPORT_DIR)
