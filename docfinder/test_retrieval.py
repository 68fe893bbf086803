import unittest

from docfinder.document import Document
from docfinder.document_store import GetParams, InMemoryDocumentStore
from docfinder.retrieval import Retriever


class Note(Document):
    bucket_name = "notes"


class StoreTimeout(Exception):
    pass


class FlakyStore(InMemoryDocumentStore):
    """Fails reads of chosen keys the way a timing-out backend would."""

    def __init__(self, failing_keys=()):
        super().__init__()
        self.failing_keys = set(failing_keys)
        self.get_calls = []

    def get(self, bucket, key, params=None):
        self.get_calls.append((key, params))
        if key in self.failing_keys:
            raise StoreTimeout(f"timed out reading {key}")
        return super().get(bucket, key, params)

    def evaluate(self, bucket, predicate, params=None):
        if self.failing_keys:
            raise StoreTimeout("map phase timed out")
        return super().evaluate(bucket, predicate, params)


class TestRetriever(unittest.TestCase):
    def setUp(self):
        self.store = FlakyStore()
        self.store.put("notes", "n1", {"title": "Plan", "category": "work"})
        self.store.put("notes", "n2", {"title": "Milk", "category": "personal"})
        self.store.put("notes", "n3", {"title": "Ship", "category": "work"})
        self.retriever = Retriever(self.store, "notes", Note, GetParams(r="quorum"))

    def test_get_one(self):
        record = self.retriever.get_one("n1")
        self.assertEqual(record.key, "n1")
        self.assertEqual(record.data["title"], "Plan")

    def test_get_one_passes_read_params(self):
        self.retriever.get_one("n1")
        self.assertEqual(self.store.get_calls[-1][1].r, "quorum")
        self.retriever.get_one("n1", GetParams(r="one"))
        self.assertEqual(self.store.get_calls[-1][1].r, "one")

    def test_get_one_missing_is_none(self):
        self.assertIsNone(self.retriever.get_one("missing"))
        self.assertIsNone(self.retriever.find_one("missing"))

    def test_get_one_propagates_other_failures(self):
        self.store.failing_keys.add("n1")
        with self.assertRaises(StoreTimeout):
            self.retriever.get_one("n1")

    def test_find_one_materializes(self):
        doc = self.retriever.find_one("n2")
        self.assertIsInstance(doc, Note)
        self.assertEqual(doc.key, "n2")
        self.assertFalse(doc.new_record)

    def test_scan_all_follows_key_listing(self):
        docs = self.retriever.scan_all()
        self.assertEqual([d.key for d in docs], list(self.store.list_keys("notes")))

    def test_scan_all_skips_keys_that_vanish(self):
        original_list_keys = self.store.list_keys

        def list_keys_with_ghost(bucket):
            yield "ghost"
            yield from original_list_keys(bucket)

        self.store.list_keys = list_keys_with_ghost
        self.assertEqual([d.key for d in self.retriever.scan_all()], ["n1", "n2", "n3"])

    def test_scan_empty_bucket(self):
        retriever = Retriever(InMemoryDocumentStore(), "empty", Note)
        self.assertEqual(retriever.scan_all(), [])
        seen = []
        self.assertIsNone(retriever.scan_all_streaming(seen.append))
        self.assertEqual(seen, [])

    def test_scan_all_streaming(self):
        seen = []
        result = self.retriever.scan_all_streaming(seen.append)
        self.assertIsNone(result)
        self.assertEqual([d.key for d in seen], ["n1", "n2", "n3"])

    def test_scan_reads_one_key_at_a_time(self):
        self.retriever.scan_all()
        self.assertEqual([k for k, _ in self.store.get_calls], ["n1", "n2", "n3"])

    def test_failure_mid_scan_aborts(self):
        self.store.failing_keys.add("n2")
        with self.assertRaises(StoreTimeout):
            self.retriever.scan_all()

        seen = []
        with self.assertRaises(StoreTimeout):
            self.retriever.scan_all_streaming(seen.append)
        self.assertEqual([d.key for d in seen], ["n1"])

    def test_query(self):
        docs = self.retriever.query({"category": "work"})
        self.assertEqual(sorted(d.key for d in docs), ["n1", "n3"])
        self.assertTrue(all(isinstance(d, Note) and not d.new_record for d in docs))
        self.assertEqual(docs[0].attributes["category"], "work")

    def test_query_keys_documents_by_record_key(self):
        self.store.put("notes", "n4", {"key": "stale", "title": "Moved", "category": "archive"})
        doc = self.retriever.query({"category": "archive"})[0]
        self.assertEqual(doc.key, "n4")
        self.assertEqual(doc.robject.key, "n4")

    def test_query_without_matches_is_empty_list(self):
        self.assertEqual(self.retriever.query({"category": "nope"}), [])

    def test_query_failure_propagates(self):
        self.store.failing_keys.add("n1")
        with self.assertRaises(StoreTimeout):
            self.retriever.query({"category": "work"})


if __name__ == "__main__":
    unittest.main()
