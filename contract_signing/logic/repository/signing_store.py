"""
===============================================================================
Signing Store Protocol – persistence contract of the signing engine
-------------------------------------------------------------------------------
Purpose:
    Define what the engine needs from its storage collaborator: current
    document bytes, the field set, write-once committed marks, stored artwork
    and a read-then-write transaction per document.

Design:
    - Protocol only; no implementation details.
    - ``transaction`` must be atomic against other writers of the same
      document: fetch current bytes, embed, store new bytes.
===============================================================================
"""
from __future__ import annotations
from typing import ContextManager, List, Optional, Protocol, Sequence

from ...models.artwork import RasterArtwork
from ...models.signature_field import SignatureField
from ...models.submission import Submission


class DocumentTransaction(Protocol):
    """
    Open read-then-write unit on one document.

    Attributes
    ----------
    document_id : int
    revision : int
        Revision of ``current_bytes``; bumped by every recorded submission.
    current_bytes : bytes
        Canonical document including all previously committed marks.
    fields : list[SignatureField]
        Full field set of all parties, with committed marks.
    """
    document_id: int
    revision: int
    current_bytes: bytes
    fields: List[SignatureField]

    def record(self, submission: Submission) -> None:
        """Store new bytes and commit every record's mark (write-once)."""
        ...


class SigningStore(Protocol):
    """
    Persistence contract.

    Methods
    -------
    add_document(title, pdf_bytes) -> int
    add_fields(document_id, fields) -> None
    list_fields(document_id) -> list[SignatureField]
    current_bytes(document_id) / original_bytes(document_id) -> bytes
    revision(document_id) -> int
    transaction(document_id, expected_revision=None) -> context manager
        Yields a DocumentTransaction; commits on normal exit, rolls back on
        any exception. A mismatching ``expected_revision`` raises
        StaleDocumentError.
    load_artwork(ref) -> RasterArtwork | None
    is_fully_executed(document_id) -> bool
    """

    def add_document(self, title: str, pdf_bytes: bytes) -> int:
        ...

    def add_fields(self, document_id: int, fields: Sequence[SignatureField]) -> None:
        ...

    def list_fields(self, document_id: int) -> List[SignatureField]:
        ...

    def current_bytes(self, document_id: int) -> bytes:
        ...

    def original_bytes(self, document_id: int) -> bytes:
        ...

    def revision(self, document_id: int) -> int:
        ...

    def transaction(self, document_id: int,
                    expected_revision: Optional[int] = None) -> ContextManager[DocumentTransaction]:
        ...

    def load_artwork(self, ref: str) -> Optional[RasterArtwork]:
        ...

    def is_fully_executed(self, document_id: int) -> bool:
        ...
