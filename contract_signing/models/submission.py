from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from .signature_enums import FieldType, SigningParty
from .signer_identity import SignerIdentity


@dataclass(frozen=True)
class SignedFieldRecord:
    """Structured per-field result handed to persistence."""
    field_id: str
    field_type: FieldType
    artwork_png: bytes = field(repr=False)
    artwork_ref: str
    value: Optional[str]
    signed_by_name: str
    signed_at: datetime


@dataclass(frozen=True)
class Submission:
    """New document bytes + signer identity + per-field records of one session."""
    document_bytes: bytes = field(repr=False)
    signer: SignerIdentity
    party: SigningParty
    records: Tuple[SignedFieldRecord, ...]
    submitted_at: datetime

    @property
    def field_ids(self) -> List[str]:
        return [r.field_id for r in self.records]

    def manifest(self) -> List[Dict[str, Any]]:
        """[{field_id, signature_data_url, value}], the shape the persistence API expects."""
        # lazy import keeps models free of Pillow/base64 concerns
        from ..logic.artwork_codec import to_data_url
        return [
            {
                "field_id": r.field_id,
                "signature_data_url": to_data_url(r.artwork_png),
                "value": r.value,
            }
            for r in self.records
        ]
