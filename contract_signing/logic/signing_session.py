"""
One signer's pass over one document.

Per field: Unsigned -> PendingLocal (artwork attached in memory) -> Committed
(after a successful save). Committed is terminal. Fields of other parties are
read-only whatever their state. Nothing touches the document until ``save``,
so abandoning a session simply drops the pending marks.
"""
from __future__ import annotations
import logging
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional

from core.helpers.date_time_helper import Clock, local_now
from ..exceptions.errors import (
    EmptyInputError, FieldAlreadySignedError, IncompleteSigningError,
    NothingToSignError, SessionClosedError,
)
from ..models.artwork import CaptureInput, RasterArtwork, TypedCapture
from ..models.pending_mark import PendingMark
from ..models.signature_enums import FieldState, FieldType, SigningParty
from ..models.signature_field import CommittedMark, SignatureField
from ..models.signer_identity import SignerIdentity
from ..models.submission import Submission
from .artwork_producer import ArtworkProducer
from .document_mutator import DocumentMutator
from .field_model import FieldModel, ensure_can_sign
from .submission_assembler import SubmissionAssembler

logger = logging.getLogger(__name__)


class SigningSession:
    def __init__(self, fields: Iterable[SignatureField], party: SigningParty | str, *,
                 producer: Optional[ArtworkProducer] = None,
                 mutator: Optional[DocumentMutator] = None,
                 assembler: Optional[SubmissionAssembler] = None,
                 clock: Clock = local_now,
                 document_id: Optional[int] = None) -> None:
        self.document_id = document_id
        self._model = FieldModel(fields)
        self._party = SigningParty.parse(party)
        self._producer = producer or ArtworkProducer(clock=clock)
        self._mutator = mutator or DocumentMutator()
        self._assembler = assembler or SubmissionAssembler()
        self._clock = clock
        self._pending: Dict[str, PendingMark] = {}
        # last artwork per reusable field type, for quick re-application
        self._saved: Dict[FieldType, RasterArtwork] = {}
        self._closed = False
        self._submission: Optional[Submission] = None

    # -------- read side -------------------------------------------------------
    @property
    def party(self) -> SigningParty:
        return self._party

    @property
    def fields(self) -> List[SignatureField]:
        return list(self._model)

    @property
    def my_fields(self) -> List[SignatureField]:
        return self._model.fields_for(self._party)

    @property
    def other_fields(self) -> List[SignatureField]:
        return self._model.fields_not_for(self._party)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def submission(self) -> Optional[Submission]:
        return self._submission

    def state_of(self, field_id: str) -> FieldState:
        field = self._model.get(field_id)
        if field.committed_mark is not None:
            return FieldState.COMMITTED
        if field_id in self._pending:
            return FieldState.PENDING_LOCAL
        return FieldState.UNSIGNED

    def is_read_only(self, field_id: str) -> bool:
        field = self._model.get(field_id)
        return field.assigned_party != self._party or field.committed_mark is not None

    @property
    def pending_marks(self) -> List[PendingMark]:
        """Pending marks in field order."""
        return [self._pending[f.id] for f in self._model if f.id in self._pending]

    def remaining_fields(self) -> List[SignatureField]:
        return [f for f in self.my_fields
                if f.committed_mark is None and f.id not in self._pending]

    @property
    def signed_count(self) -> int:
        return len(self.my_fields) - len(self.remaining_fields())

    @property
    def is_complete(self) -> bool:
        return not self.remaining_fields()

    def saved_artwork(self, field_type: FieldType | str) -> Optional[RasterArtwork]:
        return self._saved.get(FieldType.parse(field_type))

    def suggested_text(self, field_id: str, signer: SignerIdentity) -> str:
        """Prefill for typed capture: initials for INITIALS fields, full name otherwise."""
        field = self._model.get(field_id)
        if field.field_type == FieldType.INITIALS:
            return signer.initials
        return (signer.full_name or "").strip()

    # -------- write side ------------------------------------------------------
    def sign(self, field_id: str, capture: Optional[CaptureInput] = None) -> PendingMark:
        """Capture artwork for one of this party's fields and keep it pending."""
        field = self._authorize(field_id)
        artwork = self._producer.produce(field.field_type, capture)
        return self._put(field, artwork)

    def sign_text(self, field_id: str, signer: SignerIdentity, font_name: str = "Dancing Script") -> PendingMark:
        """Typed capture using :meth:`suggested_text` as the text."""
        return self.sign(field_id, TypedCapture(self.suggested_text(field_id, signer), font_name))

    def attach(self, field_id: str, artwork: RasterArtwork) -> PendingMark:
        """Attach ready-made artwork (e.g. from the saved-signature vault)."""
        field = self._authorize(field_id)
        return self._put(field, artwork)

    def remember(self, field_type: FieldType | str, artwork: RasterArtwork) -> None:
        """Seed the reuse slot, e.g. with artwork loaded from the vault."""
        ft = FieldType.parse(field_type)
        if ft.reusable:
            self._saved[ft] = artwork

    def reuse_saved(self, field_id: str) -> PendingMark:
        """Re-apply the last artwork of the same type; authorisation still applies."""
        field = self._authorize(field_id)
        artwork = self._saved.get(field.field_type) if field.field_type.reusable else None
        if artwork is None:
            raise EmptyInputError(
                f"No saved {field.field_type.value.lower()} to reuse for field '{field_id}'."
            )
        return self._put(field, artwork)

    def withdraw(self, field_id: str) -> None:
        """PendingLocal -> Unsigned. Committed marks cannot be withdrawn."""
        self._ensure_open()
        field = self._model.get(field_id)
        ensure_can_sign(field, self._party)
        self._pending.pop(field_id, None)

    def cancel(self) -> None:
        if not self._closed:
            logger.info("Signing session for %s cancelled with %d pending mark(s)",
                        self._party.value, len(self._pending))
        self._pending.clear()
        self._closed = True

    def save(self, current_bytes: bytes, signer: SignerIdentity, *,
             on_submit: Optional[Callable[[Submission], None]] = None) -> Submission:
        """
        Embed all pending marks and package the result.

        Completion is checked before anything else; the mutator only runs when
        every field of this party is pending or committed and the signer's
        identity is complete. ``on_submit`` receives the submission before the
        marks are committed locally; if it raises, the session stays open with
        its pending marks. On success the pending marks become committed and
        the session closes.
        """
        self._ensure_open()
        remaining = self.remaining_fields()
        if remaining:
            raise IncompleteSigningError(len(remaining), [f.id for f in remaining])
        marks = self.pending_marks
        if not marks:
            raise NothingToSignError("All of your fields are already signed; nothing to save.")
        signer = signer.validate()

        signed_at: datetime = self._clock()
        new_bytes = self._mutator.mutate(current_bytes, marks, signer)
        submission = self._assembler.assemble(new_bytes, signer, marks, self._party, signed_at)
        if on_submit is not None:
            on_submit(submission)

        for mark in marks:
            self._model.commit(mark.field_id, CommittedMark(
                signed_by_name=signer.full_name,
                signed_at=signed_at,
                artwork_ref=mark.artwork.ref,
                value=mark.value,
            ), self._party)
        self._pending.clear()
        self._closed = True
        self._submission = submission
        logger.info("Session for %s saved %d field(s)", self._party.value, len(marks))
        return submission

    # -------- internals -------------------------------------------------------
    def _ensure_open(self) -> None:
        if self._closed:
            raise SessionClosedError("This signing session has already been saved or cancelled.")

    def _authorize(self, field_id: str) -> SignatureField:
        self._ensure_open()
        field = self._model.get(field_id)
        ensure_can_sign(field, self._party)
        return field

    def _put(self, field: SignatureField, artwork: RasterArtwork) -> PendingMark:
        if field.committed_mark is not None:
            raise FieldAlreadySignedError(field.id)
        mark = PendingMark(field=field, artwork=artwork)
        self._pending[field.id] = mark
        if field.field_type.reusable:
            self._saved[field.field_type] = artwork
        logger.debug("Field %s pending (%s)", field.id, artwork.mode.value)
        return mark
