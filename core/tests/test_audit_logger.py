"""
core/tests/test_audit_logger.py

AuditLogger persistence and query filters (in-memory SQLite).
"""
from __future__ import annotations

import unittest

from core.audit_logging.logic.audit_logger import AuditLogger


class TestAuditLogger(unittest.TestCase):
    def setUp(self) -> None:
        self.audit = AuditLogger(":memory:")

    def tearDown(self) -> None:
        self.audit.close()

    def test_log_returns_entry_with_id(self) -> None:
        entry = self.audit.log("ContractSigning", "SessionSaved", username="jane@example.com",
                               reference_id="7", data={"fields": {"f1": "ab12"}})
        self.assertIsNotNone(entry.id)
        self.assertEqual(entry.log_level, "INFO")
        self.assertIsNotNone(entry.timestamp.tzinfo)

    def test_query_filters_and_order(self) -> None:
        self.audit.log("ContractSigning", "SessionOpened", reference_id="1")
        self.audit.log("ContractSigning", "SessionSaved", reference_id="1", data={"n": 2})
        self.audit.log("ContractSigning", "SessionSaved", reference_id="2", level="warning")

        saved = self.audit.query_logs(event="SessionSaved")
        self.assertEqual([e.reference_id for e in saved], ["2", "1"])
        self.assertEqual(saved[1].data, {"n": 2})
        self.assertEqual(len(self.audit.query_logs(level="WARNING")), 1)
        self.assertEqual(len(self.audit.query_logs(reference_id="1")), 2)

    def test_missing_username_is_unknown(self) -> None:
        entry = self.audit.log("ContractSigning", "DocumentComposed")
        self.assertEqual(entry.username, "unknown")

    def test_clear_logs(self) -> None:
        self.audit.log("ContractSigning", "SessionOpened")
        self.audit.clear_logs()
        self.assertEqual(self.audit.query_logs(), [])

    def test_as_dict_contains_decoded_data(self) -> None:
        entry = self.audit.log("ContractSigning", "SessionSaved", data={"party": "CLIENT"})
        fetched = self.audit.query_logs()[0].as_dict()
        self.assertEqual(fetched["data"], {"party": "CLIENT"})
        self.assertEqual(fetched["id"], entry.id)


if __name__ == "__main__":
    unittest.main()
