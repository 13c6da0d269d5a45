# contract_signing/logic/signing_service.py
from __future__ import annotations
import logging
from typing import Optional

from core.audit_logging.logic.audit_logger import AuditLogger
from core.config.config_service import ConfigService
from core.helpers.date_time_helper import Clock, local_now
from ..exceptions.errors import SigningError
from ..models.artwork import RasterArtwork
from ..models.signature_enums import FieldType, SigningParty
from ..models.signer_identity import SignerIdentity
from ..models.submission import Submission
from .artwork_producer import ArtworkProducer
from .artwork_vault import ArtworkVault
from .document_mutator import DocumentMutator
from .encryption import KeyRing
from .font_catalog import FontCatalog
from .repository.signing_store import SigningStore
from .signing_session import SigningSession

logger = logging.getLogger(__name__)

_FEATURE_ID = "ContractSigning"


class SigningService:
    """
    Orchestrates store, session, mutator, vault and audit log (no UI).

    Typical flow::

        session = service.open_session(doc_id, "CLIENT", owner="jane@example.com")
        session.sign("f1", StrokeCapture(points))
        service.save(session, identity)
    """

    def __init__(self, store: SigningStore, *,
                 audit: Optional[AuditLogger] = None,
                 producer: Optional[ArtworkProducer] = None,
                 mutator: Optional[DocumentMutator] = None,
                 vault: Optional[ArtworkVault] = None,
                 clock: Clock = local_now) -> None:
        self._store = store
        self._audit = audit
        self._clock = clock
        self._producer = producer or ArtworkProducer(clock=clock)
        self._mutator = mutator or DocumentMutator()
        self._vault = vault

    @classmethod
    def from_config(cls, config: ConfigService, store: SigningStore, *,
                    clock: Clock = local_now) -> "SigningService":
        storage = config.storage
        return cls(
            store,
            audit=AuditLogger(storage.audit_database),
            producer=ArtworkProducer(config.artwork, fonts=FontCatalog(config.fonts), clock=clock),
            mutator=DocumentMutator(config.placement),
            vault=ArtworkVault(storage.vault_dir, KeyRing.from_config(storage)),
            clock=clock,
        )

    # -------- sessions --------------------------------------------------------
    def open_session(self, document_id: int, party: SigningParty | str, *,
                     owner: Optional[str] = None) -> SigningSession:
        """
        Start a session over the document's full field set. When ``owner`` is
        given, the owner's saved signature and initials are offered for reuse.
        """
        party = SigningParty.parse(party)
        session = SigningSession(self._store.list_fields(document_id), party,
                                 producer=self._producer, mutator=self._mutator,
                                 clock=self._clock, document_id=document_id)
        if owner and self._vault is not None:
            for ft in (FieldType.SIGNATURE, FieldType.INITIALS):
                art = self._vault.load(owner, ft)
                if art is not None:
                    session.remember(ft, art)
        self._log("SessionOpened", reference_id=document_id, username=owner,
                  message=f"{party.value}: {len(session.my_fields)} field(s) assigned",
                  data={"party": party.value, "assigned": [f.id for f in session.my_fields]})
        return session

    def save(self, session: SigningSession, signer: SignerIdentity) -> Submission:
        """
        Read current bytes, embed, and store new bytes in one store transaction.
        Any failure rolls the store back and leaves the session's pending marks
        in place.
        """
        if session.document_id is None:
            raise ValueError("Session is not bound to a stored document.")
        document_id = session.document_id
        try:
            with self._store.transaction(document_id) as tx:
                submission = session.save(tx.current_bytes, signer, on_submit=tx.record)
        except SigningError as exc:
            self._log("SessionSaveFailed", reference_id=document_id, username=signer.email,
                      level="WARNING", message=str(exc),
                      data={"party": session.party.value, "error": type(exc).__name__})
            raise
        self._log("SessionSaved", reference_id=document_id, username=submission.signer.email,
                  message=f"{submission.signer.full_name} signed {len(submission.records)} field(s)",
                  data={
                      "party": submission.party.value,
                      "signer": submission.signer.full_name,
                      "fields": {r.field_id: r.artwork_ref.split(":", 1)[1] for r in submission.records},
                      "fully_executed": self._store.is_fully_executed(document_id),
                  })
        return submission

    # -------- composition -----------------------------------------------------
    def compose(self, document_id: int) -> bytes:
        """Executed document rebuilt from the pristine original and all committed marks."""
        fields = self._store.list_fields(document_id)
        out = self._mutator.compose(
            self._store.original_bytes(document_id), fields,
            lambda f: self._store.load_artwork(f.committed_mark.artwork_ref),
        )
        self._log("DocumentComposed", reference_id=document_id,
                  data={"committed": sum(1 for f in fields if f.is_signed), "total": len(fields)})
        return out

    def is_fully_executed(self, document_id: int) -> bool:
        return self._store.is_fully_executed(document_id)

    # -------- saved artwork ---------------------------------------------------
    def remember_artwork(self, owner: str, field_type: FieldType | str, artwork: RasterArtwork) -> None:
        self._require_vault().save(owner, field_type, artwork)

    def saved_artwork(self, owner: str, field_type: FieldType | str) -> Optional[RasterArtwork]:
        return self._require_vault().load(owner, field_type)

    def forget_artwork(self, owner: str, field_type: FieldType | str) -> bool:
        return self._require_vault().delete(owner, field_type)

    # -------- internals -------------------------------------------------------
    def _require_vault(self) -> ArtworkVault:
        if self._vault is None:
            raise RuntimeError("No artwork vault configured.")
        return self._vault

    def _log(self, event: str, *, reference_id, username: Optional[str] = None,
             level: str = "INFO", message: Optional[str] = None, data: Optional[dict] = None) -> None:
        if self._audit is None:
            logger.debug("%s ref=%s %s", event, reference_id, message or "")
            return
        self._audit.log(_FEATURE_ID, event, username=username, level=level,
                        reference_id=str(reference_id), message=message, data=data)
