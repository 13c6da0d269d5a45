"""
contract_signing/tests/test_sqlite_signing_store.py

Read-then-write transactions, write-once columns and stale detection.
"""
from __future__ import annotations

import unittest

from contract_signing.exceptions import (
    FieldAlreadySignedError, InvalidFieldReferenceError, StaleDocumentError,
    UnauthorizedFieldError,
)
from contract_signing.logic.repository import SqliteSigningStore
from contract_signing.logic.signing_session import SigningSession
from contract_signing.models import FieldType, SigningParty
from signing_fixtures import fixed_clock, jane, make_artwork, make_field, make_pdf


class TestSqliteSigningStore(unittest.TestCase):
    def setUp(self) -> None:
        self.store = SqliteSigningStore(":memory:")
        self.pdf = make_pdf()
        self.doc = self.store.add_document("NDA", self.pdf)
        self.store.add_fields(self.doc, [
            make_field("c1", y=30),
            make_field("d1", y=40, field_type=FieldType.DATE),
            make_field("p1", y=70, party=SigningParty.PARTNER),
        ])

    def tearDown(self) -> None:
        self.store.close()

    def _client_submission(self, current: bytes):
        session = SigningSession(self.store.list_fields(self.doc), "CLIENT", clock=fixed_clock)
        session.attach("c1", make_artwork())
        session.sign("d1")
        return session.save(current, jane())

    def test_fields_round_trip_in_order(self) -> None:
        fields = self.store.list_fields(self.doc)
        self.assertEqual([f.id for f in fields], ["c1", "d1", "p1"])
        self.assertIs(fields[1].field_type, FieldType.DATE)
        self.assertIs(fields[2].assigned_party, SigningParty.PARTNER)
        self.assertIsNone(fields[0].committed_mark)

    def test_record_commits_marks_and_bumps_revision(self) -> None:
        with self.store.transaction(self.doc) as tx:
            self.assertEqual(tx.revision, 0)
            sub = self._client_submission(tx.current_bytes)
            tx.record(sub)

        self.assertEqual(self.store.revision(self.doc), 1)
        self.assertEqual(self.store.current_bytes(self.doc), sub.document_bytes)
        self.assertEqual(self.store.original_bytes(self.doc), self.pdf)
        marks = {f.id: f.committed_mark for f in self.store.list_fields(self.doc)}
        self.assertEqual(marks["c1"].signed_by_name, "Jane R. Doe")
        self.assertEqual(marks["d1"].value, "January 16, 2026")
        self.assertEqual(marks["c1"].signed_at, sub.submitted_at)
        self.assertIsNone(marks["p1"])
        self.assertFalse(self.store.is_fully_executed(self.doc))

        art = self.store.load_artwork(marks["c1"].artwork_ref)
        self.assertEqual(art.png_bytes, sub.records[0].artwork_png)
        self.assertIsNone(self.store.load_artwork("sha256:missing"))

    def test_committed_columns_are_write_once(self) -> None:
        sub = self._client_submission(self.pdf)
        with self.store.transaction(self.doc) as tx:
            tx.record(sub)
        with self.assertRaises(FieldAlreadySignedError):
            with self.store.transaction(self.doc) as tx:
                tx.record(sub)
        self.assertEqual(self.store.revision(self.doc), 1)

    def test_failure_rolls_back_everything(self) -> None:
        sub = self._client_submission(self.pdf)
        with self.assertRaises(RuntimeError):
            with self.store.transaction(self.doc) as tx:
                tx.record(sub)
                raise RuntimeError("boom")
        self.assertEqual(self.store.revision(self.doc), 0)
        self.assertEqual(self.store.current_bytes(self.doc), self.pdf)
        self.assertTrue(all(f.committed_mark is None for f in self.store.list_fields(self.doc)))

    def test_stale_revision(self) -> None:
        with self.assertRaises(StaleDocumentError):
            with self.store.transaction(self.doc, expected_revision=3):
                pass

    def test_party_mismatch_is_rejected(self) -> None:
        sub = self._client_submission(self.pdf)
        forged = type(sub)(document_bytes=sub.document_bytes, signer=sub.signer,
                           party=SigningParty.PARTNER, records=sub.records,
                           submitted_at=sub.submitted_at)
        with self.assertRaises(UnauthorizedFieldError):
            with self.store.transaction(self.doc) as tx:
                tx.record(forged)
        self.assertEqual(self.store.revision(self.doc), 0)

    def test_unknown_document_and_duplicate_field(self) -> None:
        with self.assertRaises(InvalidFieldReferenceError):
            self.store.list_fields(999)
        with self.assertRaises(InvalidFieldReferenceError):
            self.store.add_fields(self.doc, [make_field("c1")])

    def test_fully_executed_after_both_parties(self) -> None:
        with self.store.transaction(self.doc) as tx:
            tx.record(self._client_submission(tx.current_bytes))
        with self.store.transaction(self.doc) as tx:
            session = SigningSession(tx.fields, "PARTNER", clock=fixed_clock)
            session.attach("p1", make_artwork(300, 100))
            tx.record(session.save(tx.current_bytes, jane()))
        self.assertTrue(self.store.is_fully_executed(self.doc))
        self.assertEqual(self.store.revision(self.doc), 2)


if __name__ == "__main__":
    unittest.main()
