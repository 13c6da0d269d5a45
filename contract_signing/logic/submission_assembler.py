from __future__ import annotations
from datetime import datetime
from typing import Sequence

from ..models.pending_mark import PendingMark
from ..models.signature_enums import SigningParty
from ..models.signer_identity import SignerIdentity
from ..models.submission import SignedFieldRecord, Submission


class SubmissionAssembler:
    """Packages new document bytes and per-field records for persistence."""

    def assemble(self, document_bytes: bytes, signer: SignerIdentity,
                 pending_marks: Sequence[PendingMark], party: SigningParty | str,
                 signed_at: datetime) -> Submission:
        records = tuple(
            SignedFieldRecord(
                field_id=m.field_id,
                field_type=m.field.field_type,
                artwork_png=m.artwork.png_bytes,
                artwork_ref=m.artwork.ref,
                value=m.value,
                signed_by_name=signer.full_name,
                signed_at=signed_at,
            )
            for m in pending_marks
        )
        return Submission(
            document_bytes=document_bytes,
            signer=signer,
            party=SigningParty.parse(party),
            records=records,
            submitted_at=signed_at,
        )
