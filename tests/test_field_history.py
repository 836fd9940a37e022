import os
import tempfile
import unittest

from tests import fakes  # noqa: F401

from app.core.kv_store import MemoryKeyValueStore, SqliteKeyValueStore
from app.schemas.resume import FormData
from app.services.field_history import FIELD_HISTORY_NAMESPACE, FieldHistoryStore, history_key


class FieldHistoryStoreTests(unittest.TestCase):
    def setUp(self):
        self.kv = MemoryKeyValueStore()
        self.history = FieldHistoryStore(self.kv)

    def test_most_recent_first_without_duplicates(self):
        self.history.record("skills", "Python")
        self.history.record("skills", "Go")
        self.history.record("skills", "Python")
        self.assertEqual(self.history.suggestions("skills"), ["Python", "Go"])

    def test_keeps_at_most_five_entries(self):
        for index in range(7):
            self.history.record("email", f"user{index}@example.com")
        suggestions = self.history.suggestions("email")
        self.assertEqual(len(suggestions), 5)
        self.assertEqual(suggestions[0], "user6@example.com")
        self.assertEqual(suggestions[-1], "user2@example.com")

    def test_blank_values_are_ignored(self):
        self.history.record("name", "   ")
        self.assertEqual(self.history.load(), {})
        self.assertIsNone(self.kv.get(FIELD_HISTORY_NAMESPACE))

    def test_values_are_cleaned_before_deduplication(self):
        self.history.record("skills", "Python\x00  ")
        self.history.record("skills", "  Python")
        self.history.record("skills", "\x07\x08")
        self.assertEqual(self.history.load(), {"skills": ["Python"]})

    def test_corrupt_payload_loads_empty(self):
        self.kv.set(FIELD_HISTORY_NAMESPACE, "{not json")
        self.assertEqual(self.history.load(), {})
        self.history.record("name", "Jane Doe")
        self.assertEqual(self.history.load(), {"name": ["Jane Doe"]})

    def test_record_form_uses_field_aliases_and_cleaned_values(self):
        form = FormData(name="Jane Doe", skills='Python |  "SQL"', job_description="Backend role\n\n\nRemote")
        history = self.history.record_form(form)
        self.assertEqual(history["name"], ["Jane Doe"])
        self.assertEqual(history["skills"], ["Python 'SQL'"])
        self.assertEqual(history["jobDescription"], ["Backend role\nRemote"])
        self.assertNotIn("email", history)

    def test_history_key_is_scoped_per_user(self):
        self.assertEqual(history_key("abc"), "resumeFieldHistory:abc")
        self.assertEqual(history_key(None), FIELD_HISTORY_NAMESPACE)


class SqliteKeyValueStoreTests(unittest.TestCase):
    def test_values_survive_a_new_connection(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "nested", "kv.db")
            store = SqliteKeyValueStore(path)
            FieldHistoryStore(store, key="k").record("github", "github.com/jane")
            store.set("other", "1")
            store.set("other", "2")
            store.close()

            reopened = SqliteKeyValueStore(path)
            self.assertEqual(FieldHistoryStore(reopened, key="k").suggestions("github"), ["github.com/jane"])
            self.assertEqual(reopened.get("other"), "2")
            self.assertIsNone(reopened.get("missing"))
            reopened.close()


if __name__ == "__main__":
    unittest.main()
