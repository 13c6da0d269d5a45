"""
contract_signing/tests/test_signing_session.py

Per-field state machine, completion gate, reuse and withdrawal.
"""
from __future__ import annotations

import unittest
from unittest import mock

from contract_signing.exceptions import (
    EmptyInputError, IncompleteSigningError,
    InvalidSignerIdentityError, NothingToSignError, SessionClosedError,
    UnauthorizedFieldError,
)
from contract_signing.logic.document_mutator import DocumentMutator
from contract_signing.logic.signing_session import SigningSession
from contract_signing.models import (
    FieldState, FieldType, SignerIdentity, SigningParty, StrokeCapture, TypedCapture,
)
from signing_fixtures import (
    fixed_clock, jane, make_artwork, make_field, make_pdf, make_producer, wave_strokes,
)


def _fields():
    return [
        make_field("sig1", y=30),
        make_field("sig2", y=60),
        make_field("ini1", y=80, width=8, field_type=FieldType.INITIALS),
        make_field("partner_sig", y=90, party=SigningParty.PARTNER),
    ]


class TestSessionStates(unittest.TestCase):
    def setUp(self) -> None:
        self.mutator = mock.Mock(spec=DocumentMutator)
        self.mutator.mutate.return_value = b"%PDF-new"
        self.session = SigningSession(_fields(), "CLIENT",
                                      producer=make_producer(),
                                      mutator=self.mutator, clock=fixed_clock)

    def test_partition_and_read_only(self) -> None:
        self.assertEqual([f.id for f in self.session.my_fields], ["sig1", "sig2", "ini1"])
        self.assertEqual([f.id for f in self.session.other_fields], ["partner_sig"])
        self.assertTrue(self.session.is_read_only("partner_sig"))
        self.assertFalse(self.session.is_read_only("sig1"))

    def test_unsigned_to_pending(self) -> None:
        self.assertEqual(self.session.state_of("sig1"), FieldState.UNSIGNED)
        self.session.sign("sig1", StrokeCapture(wave_strokes()))
        self.assertEqual(self.session.state_of("sig1"), FieldState.PENDING_LOCAL)
        self.assertEqual(self.session.signed_count, 1)
        self.assertEqual([f.id for f in self.session.remaining_fields()], ["sig2", "ini1"])

    def test_other_party_field_is_rejected_without_state_change(self) -> None:
        with self.assertRaises(UnauthorizedFieldError):
            self.session.sign("partner_sig", TypedCapture("Jane R. Doe"))
        with self.assertRaises(UnauthorizedFieldError):
            self.session.attach("partner_sig", make_artwork())
        self.assertEqual(self.session.state_of("partner_sig"), FieldState.UNSIGNED)
        self.assertEqual(self.session.pending_marks, [])

    def test_save_with_unsigned_field_does_not_mutate(self) -> None:
        self.session.sign("sig1", TypedCapture("Jane R. Doe"))
        self.session.sign("sig2", TypedCapture("Jane R. Doe"))
        with self.assertRaises(IncompleteSigningError) as ctx:
            self.session.save(b"%PDF-current", jane())
        self.assertEqual(ctx.exception.remaining, 1)
        self.assertEqual(str(ctx.exception), "Please sign all 1 remaining field")
        self.mutator.mutate.assert_not_called()
        self.assertFalse(self.session.closed)

    def test_invalid_identity_does_not_mutate(self) -> None:
        for fid in ("sig1", "sig2", "ini1"):
            self.session.attach(fid, make_artwork())
        bad = SignerIdentity(full_name="Jane", title="", organization="Acme", email="jane@example.com")
        with self.assertRaises(InvalidSignerIdentityError) as ctx:
            self.session.save(b"%PDF-current", bad)
        self.assertEqual(ctx.exception.missing, ("title",))
        with self.assertRaises(InvalidSignerIdentityError):
            self.session.save(b"%PDF-current", SignerIdentity("Jane", "CEO", "Acme", "not-an-email"))
        self.mutator.mutate.assert_not_called()

    def test_reuse_saved_signature(self) -> None:
        first = self.session.sign("sig1", TypedCapture("Jane R. Doe"))
        again = self.session.reuse_saved("sig2")
        self.assertEqual(first.artwork.ref, again.artwork.ref)
        with self.assertRaises(EmptyInputError):
            self.session.reuse_saved("ini1")  # no initials captured yet
        with self.assertRaises(UnauthorizedFieldError):
            self.session.reuse_saved("partner_sig")

    def test_withdraw_returns_field_to_unsigned(self) -> None:
        self.session.attach("sig1", make_artwork())
        self.session.withdraw("sig1")
        self.assertEqual(self.session.state_of("sig1"), FieldState.UNSIGNED)

    def test_cancel_discards_and_closes(self) -> None:
        self.session.attach("sig1", make_artwork())
        self.session.cancel()
        self.assertTrue(self.session.closed)
        self.assertEqual(self.session.pending_marks, [])
        with self.assertRaises(SessionClosedError):
            self.session.sign("sig2", TypedCapture("Jane"))

    def test_failing_persistence_keeps_pending_marks(self) -> None:
        for fid in ("sig1", "sig2", "ini1"):
            self.session.attach(fid, make_artwork())

        def reject(_submission):
            raise RuntimeError("store offline")

        with self.assertRaises(RuntimeError):
            self.session.save(b"%PDF-current", jane(), on_submit=reject)
        self.assertFalse(self.session.closed)
        self.assertEqual(self.session.state_of("sig1"), FieldState.PENDING_LOCAL)

    def test_suggested_text(self) -> None:
        self.assertEqual(self.session.suggested_text("ini1", jane()), "JRD")
        self.assertEqual(self.session.suggested_text("sig1", jane()), "Jane R. Doe")
        mark = self.session.sign_text("ini1", jane())
        self.assertEqual(mark.value, "JRD")


class TestSessionSave(unittest.TestCase):
    def setUp(self) -> None:
        self.session = SigningSession(_fields(), SigningParty.CLIENT,
                                      producer=make_producer(),
                                      clock=fixed_clock)

    def test_save_commits_and_closes(self) -> None:
        self.session.sign("sig1", StrokeCapture(wave_strokes()))
        self.session.reuse_saved("sig2")
        self.session.sign("ini1", TypedCapture("JRD", "Allura"))
        pdf = make_pdf()

        sub = self.session.save(pdf, jane())

        self.assertTrue(sub.document_bytes.startswith(b"%PDF"))
        self.assertNotEqual(sub.document_bytes, pdf)
        self.assertEqual(sub.field_ids, ["sig1", "sig2", "ini1"])
        self.assertEqual(sub.party, SigningParty.CLIENT)
        self.assertTrue(all(r.signed_by_name == "Jane R. Doe" for r in sub.records))
        self.assertEqual(self.session.state_of("sig1"), FieldState.COMMITTED)
        self.assertEqual(self.session.state_of("partner_sig"), FieldState.UNSIGNED)
        self.assertTrue(self.session.closed)
        self.assertIs(self.session.submission, sub)
        manifest = sub.manifest()
        self.assertTrue(manifest[0]["signature_data_url"].startswith("data:image/png;base64,"))
        self.assertEqual(manifest[2]["value"], "JRD")

        with self.assertRaises(SessionClosedError):
            self.session.save(pdf, jane())
        committed = {f.id: f.committed_mark for f in self.session.fields}
        self.assertEqual(committed["sig1"].artwork_ref, sub.records[0].artwork_ref)
        self.assertIsNone(committed["partner_sig"])
        with self.assertRaises(SessionClosedError):
            self.session.withdraw("sig1")

    def test_nothing_left_to_sign(self) -> None:
        done = SigningSession([make_field("p", party=SigningParty.PARTNER)], SigningParty.CLIENT)
        with self.assertRaises(NothingToSignError):
            done.save(make_pdf(), jane())


if __name__ == "__main__":
    unittest.main()
