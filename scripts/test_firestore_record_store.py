import unittest
from datetime import date

from google.api_core.exceptions import AlreadyExists, ServiceUnavailable

from eyerecords.models.patient import PatientRecord
from eyerecords.services.errors import PersistenceFailure, StorageUnavailable
from eyerecords.services.firestore_record_store import BATCH_LIMIT, FirestoreRecordStore
from eyerecords.services.query_engine import QueryEngine
from eyerecords.services.record_codec import RecordCodec


# -------------------------
# In-memory stand-in for the Firestore client
# -------------------------
class FakeSnapshot:
    def __init__(self, doc_id, data):
        self.id = doc_id
        self._data = data

    def to_dict(self):
        return dict(self._data)


class FakeDocRef:
    def __init__(self, db, coll, doc_id):
        self.db, self.coll, self.id = db, coll, doc_id

    def create(self, data):
        self.db.check_write()
        docs = self.db.data.setdefault(self.coll, {})
        if self.id in docs:
            raise AlreadyExists(f"{self.coll}/{self.id}")
        docs[self.id] = dict(data)

    def set(self, data):
        self.db.check_write()
        self.db.data.setdefault(self.coll, {})[self.id] = dict(data)


class FakeCollection:
    def __init__(self, db, name):
        self.db, self.name = db, name

    def document(self, doc_id):
        return FakeDocRef(self.db, self.name, doc_id)

    def stream(self):
        if self.db.fail_reads:
            raise ServiceUnavailable("firestore down")
        for doc_id, data in self.db.data.get(self.name, {}).items():
            yield FakeSnapshot(doc_id, data)


class FakeBatch:
    def __init__(self, db):
        self.db = db
        self.ops = []

    def create(self, ref, data):
        self.ops.append((ref, data))

    def commit(self):
        self.db.check_write()
        self.db.commits.append(len(self.ops))
        for ref, data in self.ops:
            ref.create(data)


class FakeFirestore:
    def __init__(self):
        self.data = {}
        self.commits = []
        self.fail_reads = False
        self.fail_writes = False

    def check_write(self):
        if self.fail_writes:
            raise ServiceUnavailable("firestore down")

    def collection(self, name):
        return FakeCollection(self, name)

    def batch(self):
        return FakeBatch(self)


def make_record(**overrides):
    data = {
        "date": date(2024, 4, 8),
        "patient_name": "Asha Rao",
        "mobile_number": "9876543210",
        "remarks": "Reading glasses",
        "frame_price": 300,
        "glass_price": 450,
    }
    data.update(overrides)
    return PatientRecord(**data)


class TestFirestoreRecordStore(unittest.TestCase):
    def setUp(self):
        self.db = FakeFirestore()
        self.store = FirestoreRecordStore(self.db, collection="patient_records")

    def test_create_writes_one_document_per_record(self):
        stored = self.store.create(make_record())
        doc = self.db.data["patient_records"][stored.id]
        self.assertEqual(doc["patientName"], "Asha Rao")
        self.assertEqual(doc["totalPrice"], 750)
        self.assertEqual(doc["createdAt"], stored.created_at)

    def test_list_and_search(self):
        stored = self.store.create(make_record())
        self.store.create(make_record(patient_name="Ravi", mobile_number="9000000000"))
        self.assertEqual(len(self.store.list()), 2)
        self.assertEqual([r.id for r in QueryEngine(self.store).search("9876", "mobile")], [stored.id])

    def test_update(self):
        stored = self.store.create(make_record())
        self.assertTrue(self.store.update(stored.model_copy(update={"remarks": "changed"})))
        self.assertEqual(self.db.data["patient_records"][stored.id]["remarks"], "changed")
        self.assertFalse(self.store.update(make_record(id="nonexistent-id")))
        self.assertEqual(len(self.db.data["patient_records"]), 1)

    def test_document_id_used_when_field_missing(self):
        self.db.data["patient_records"] = {
            "doc-1": make_record().to_document(),
            "broken": {"patientName": "no date"},
        }
        records = self.store.list()
        self.assertEqual([r.id for r in records], ["doc-1"])

    def test_import_skips_id_of_unparseable_document(self):
        broken = {"patientName": "no date"}
        self.db.data["patient_records"] = {"broken": dict(broken)}

        added = self.store.merge([make_record(id="broken"), make_record(id="fresh")])

        self.assertEqual(added, 1)
        self.assertEqual(self.db.data["patient_records"]["broken"], broken)
        self.assertIn("fresh", self.db.data["patient_records"])

    def test_read_failure_is_surfaced(self):
        self.db.fail_reads = True
        with self.assertRaises(StorageUnavailable):
            self.store.list()

    def test_write_failure_is_surfaced(self):
        self.db.fail_writes = True
        with self.assertRaises(PersistenceFailure):
            self.store.create(make_record())

    def test_import_merges_in_batches(self):
        stored = self.store.create(make_record())
        incoming = [make_record(id=f"imp-{i}") for i in range(BATCH_LIMIT + 5)]
        incoming.append(stored.model_copy(update={"remarks": "other copy"}))

        codec = RecordCodec(self.store)
        text = "[" + ",".join(r.model_dump_json(by_alias=True, exclude_none=True) for r in incoming) + "]"
        result = codec.import_text(text)

        self.assertEqual(result.added_count, BATCH_LIMIT + 5)
        self.assertEqual(self.db.commits, [BATCH_LIMIT, 5])
        self.assertEqual(self.db.data["patient_records"][stored.id]["remarks"], "Reading glasses")

    def test_import_commit_failure_is_surfaced(self):
        self.db.fail_writes = True
        with self.assertRaises(PersistenceFailure):
            self.store.merge([make_record(id="imp-1")])


if __name__ == '__main__':
    unittest.main()
