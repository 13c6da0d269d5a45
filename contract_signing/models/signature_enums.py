# contract_signing/models/signature_enums.py
from __future__ import annotations
from enum import Enum


class FieldType(str, Enum):
    """What kind of mark a field requires."""
    SIGNATURE = "SIGNATURE"
    INITIALS = "INITIALS"
    DATE = "DATE"

    @classmethod
    def parse(cls, value: "str | FieldType") -> "FieldType":
        """Case-insensitive lookup ("signature", "Signature", FieldType.SIGNATURE)."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValueError(f"Unknown field type: {value!r}") from None

    @property
    def reusable(self) -> bool:
        """Artwork of this type may be re-applied to other fields of the same type."""
        return self in (FieldType.SIGNATURE, FieldType.INITIALS)


class SigningParty(str, Enum):
    """Closed set of signing roles; compared by value, never by free text."""
    CLIENT = "CLIENT"
    PARTNER = "PARTNER"
    ADMIN = "ADMIN"

    @classmethod
    def parse(cls, value: "str | SigningParty") -> "SigningParty":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValueError(f"Unknown signing party: {value!r}") from None


class FieldState(str, Enum):
    """Per-field state inside one signing session."""
    UNSIGNED = "unsigned"
    PENDING_LOCAL = "pending_local"
    COMMITTED = "committed"


class CaptureMode(str, Enum):
    DRAW = "draw"
    TYPE = "type"
    UPLOAD = "upload"
