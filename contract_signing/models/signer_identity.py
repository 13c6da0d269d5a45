from __future__ import annotations
import re
from dataclasses import dataclass, fields
from typing import List

from ..exceptions.errors import InvalidSignerIdentityError

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


@dataclass(frozen=True)
class SignerIdentity:
    """Who signs in this session; attached to every mark of the submission."""
    full_name: str
    title: str
    organization: str
    email: str

    def normalized(self) -> "SignerIdentity":
        return SignerIdentity(*(str(getattr(self, f.name) or "").strip() for f in fields(self)))

    def missing_fields(self) -> List[str]:
        return [f.name for f in fields(self) if not str(getattr(self, f.name) or "").strip()]

    def validate(self) -> "SignerIdentity":
        """Return the stripped identity or raise InvalidSignerIdentityError."""
        missing = self.missing_fields()
        if missing:
            raise InvalidSignerIdentityError(missing)
        ident = self.normalized()
        if not _EMAIL_RE.match(ident.email):
            raise InvalidSignerIdentityError((), detail=f"'{ident.email}' is not a valid email address")
        return ident

    @property
    def initials(self) -> str:
        """Initials of the full name, e.g. Jane R. Doe -> JRD."""
        return "".join(part[0] for part in self.full_name.split() if part).upper()
