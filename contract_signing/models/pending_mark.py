from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from .artwork import RasterArtwork
from .signature_field import SignatureField


@dataclass(frozen=True)
class PendingMark:
    """Session-local artwork for one field, not yet embedded into the document."""
    field: SignatureField
    artwork: RasterArtwork

    @property
    def field_id(self) -> str:
        return self.field.id

    @property
    def value(self) -> Optional[str]:
        return self.artwork.text
