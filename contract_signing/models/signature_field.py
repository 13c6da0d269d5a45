from __future__ import annotations
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional

from .signature_enums import FieldType, SigningParty
from ..exceptions.errors import FieldAlreadySignedError


@dataclass(frozen=True)
class CommittedMark:
    """
    Permanently embedded mark of a field.

    ``artwork_ref`` points at the stored raster (persistence decides the format,
    the engine uses ``sha256:<hex>``); ``value`` holds the literal text for
    DATE fields and typed signatures.
    """
    signed_by_name: str
    signed_at: datetime
    artwork_ref: Optional[str] = None
    value: Optional[str] = None


@dataclass(frozen=True)
class SignatureField:
    """
    A required mark on a document page.

    Position is the field CENTER in percent of page width/height, measured from
    the top-left corner of the page (layout space).
    """
    id: str
    page_number: int                 # 1-based
    x_percent: float
    y_percent: float
    width_percent: float
    height_percent: float
    field_type: FieldType
    assigned_party: SigningParty
    label: Optional[str] = None
    committed_mark: Optional[CommittedMark] = None

    def __post_init__(self) -> None:
        if not str(self.id).strip():
            raise ValueError("Field id must not be empty.")
        if int(self.page_number) < 1:
            raise ValueError(f"Field '{self.id}': page_number must be >= 1, got {self.page_number}.")
        for name in ("x_percent", "y_percent", "width_percent", "height_percent"):
            val = float(getattr(self, name))
            if not 0.0 <= val <= 100.0:
                raise ValueError(f"Field '{self.id}': {name} must be within 0..100, got {val}.")
        if float(self.width_percent) <= 0.0:
            raise ValueError(f"Field '{self.id}': width_percent must be > 0.")
        # normalise loose inputs (strings from a DB row / JSON payload)
        object.__setattr__(self, "field_type", FieldType.parse(self.field_type))
        object.__setattr__(self, "assigned_party", SigningParty.parse(self.assigned_party))

    @property
    def is_signed(self) -> bool:
        return self.committed_mark is not None

    def with_committed_mark(self, mark: CommittedMark) -> "SignatureField":
        """Return a copy carrying ``mark``; a field is committed at most once."""
        if self.committed_mark is not None:
            raise FieldAlreadySignedError(self.id)
        return replace(self, committed_mark=mark)
