"""
Tests for the fallback LocalStore, in memory and backed by a JSON file.
"""
import json
import tempfile
import unittest
from pathlib import Path

from services.errors import BackendError, ValidationError
from services.local_store import APPLICATIONS_KEY, LocalStore


class TestLocalStoreInMemory(unittest.TestCase):
    def setUp(self):
        self.store = LocalStore()

    def test_create_then_find(self):
        """createApplication then findById returns the Pending record."""
        created = self.store.create_application("Jane Doe", 500)
        self.assertRegex(created.application_id, r"^APP-[A-Z0-9]{6}$")
        found = self.store.find_by_id(created.application_id)
        self.assertIsNotNone(found)
        self.assertEqual(found.status, "Pending")
        self.assertEqual(found.loan_amount, 500)

    def test_find_missing(self):
        self.assertIsNone(self.store.find_by_id("APP-NOPE00"))

    def test_find_by_customer_name_is_case_insensitive_exact(self):
        self.store.create_application("Jane Doe", 500)
        self.store.create_application("Jane Doerr", 700)
        matches = self.store.find_by_customer_name("jane doe")
        self.assertEqual([m.customer_name for m in matches], ["Jane Doe"])

    def test_list_is_stable(self):
        ids = [self.store.create_application(f"Customer {i}", 100 + i).application_id for i in range(5)]
        self.assertEqual(self.store.list_application_ids(), ids)
        self.assertEqual([a.application_id for a in self.store.list_applications()], ids)

    def test_update_status_with_reason(self):
        app = self.store.create_application("Jane Doe", 500)
        self.assertTrue(self.store.update_status(app.application_id, "Rejected", rejection_reason="insufficient income"))
        rejected = self.store.find_by_id(app.application_id)
        self.assertEqual(rejected.status, "Rejected")
        self.assertEqual(rejected.rejection_reason, "insufficient income")

        self.assertTrue(self.store.update_status(app.application_id, "Approved"))
        approved = self.store.find_by_id(app.application_id)
        self.assertEqual(approved.status, "Approved")
        self.assertIsNone(approved.status_note)

    def test_update_status_missing_is_noop(self):
        app = self.store.create_application("Jane Doe", 500)
        self.assertFalse(self.store.update_status("APP-NOPE00", "Approved"))
        self.assertEqual(self.store.find_by_id(app.application_id).status, "Pending")

    def test_update_status_rejects_missing_reason(self):
        app = self.store.create_application("Jane Doe", 500)
        with self.assertRaises(ValidationError):
            self.store.update_status(app.application_id, "Rejected")
        self.assertEqual(self.store.find_by_id(app.application_id).status, "Pending")

    def test_payments(self):
        app = self.store.create_application("Jane Doe", 500)
        other = self.store.create_application("John Roe", 900)
        payment = self.store.create_payment(app.application_id, 50)
        self.store.create_payment(other.application_id, 75)
        self.assertRegex(payment.payment_id, r"^PAY-[A-Z0-9]{6}$")
        self.assertEqual(len(self.store.list_payments()), 2)
        self.assertEqual(
            [p.payment_id for p in self.store.find_payments_by_application(app.application_id)],
            [payment.payment_id],
        )

    def test_clear_all(self):
        app = self.store.create_application("Jane Doe", 500)
        self.store.create_payment(app.application_id, 50)
        self.store.clear_all()
        self.assertEqual(self.store.list_applications(), [])
        self.assertEqual(self.store.list_payments(), [])


class TestLocalStoreFile(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.path = Path(self._tmp.name) / "store.json"

    def tearDown(self):
        self._tmp.cleanup()

    def test_persists_across_instances(self):
        app = LocalStore(self.path).create_application("Jane Doe", 1500)
        reopened = LocalStore(self.path)
        self.assertEqual(reopened.find_by_id(app.application_id).customer_name, "Jane Doe")

    def test_collections_stored_as_camel_case(self):
        LocalStore(self.path).create_application("Jane Doe", 1500, loan_type="Auto")
        data = json.loads(self.path.read_text())
        record = data[APPLICATIONS_KEY][0]
        self.assertEqual(record["customerName"], "Jane Doe")
        self.assertEqual(record["loanType"], "Auto")
        self.assertEqual(record["status"], "Pending")

    def test_corrupt_file_raises_backend_error(self):
        self.path.write_text("{not json")
        with self.assertRaises(BackendError):
            LocalStore(self.path).list_applications()

    def test_clear_all_keeps_file_readable(self):
        store = LocalStore(self.path)
        store.create_application("Jane Doe", 1500)
        store.clear_all()
        self.assertEqual(LocalStore(self.path).list_applications(), [])


if __name__ == "__main__":
    unittest.main()
