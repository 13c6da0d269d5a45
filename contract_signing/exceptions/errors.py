"""Signing feature exceptions.

Every error is raised synchronously and is non-retryable without changed
input. ``str(error)`` is a user-facing, actionable message.
"""
from __future__ import annotations

from typing import Iterable, Optional


class SigningError(Exception):
    """Base exception for the signing feature."""


# --- capture ------------------------------------------------------------------
class EmptyInputError(SigningError, ValueError):
    """Capture produced no usable artwork (no stroke points, blank text, no image)."""


class UnsupportedFontError(SigningError, ValueError):
    """Typed signature requested with a font outside the signature font catalogue."""

    def __init__(self, font_name: str, available: Iterable[str]) -> None:
        self.font_name = font_name
        self.available = tuple(available)
        super().__init__(
            f"Font '{font_name}' is not available for typed signatures. "
            f"Choose one of: {', '.join(self.available)}."
        )


class FontNotInstalledError(UnsupportedFontError):
    """A catalogue font is known but its TTF file could not be loaded."""

    def __init__(self, font_name: str, file_name: str, searched: Iterable[str]) -> None:
        self.font_name = font_name
        self.file_name = file_name
        self.searched = tuple(searched)
        self.available = ()
        SigningError.__init__(
            self,
            f"Font '{font_name}' is not installed ({file_name} not found in "
            f"{', '.join(self.searched)}). Set [Fonts] font_dir to the folder holding it.",
        )


class ArtworkDecodeError(SigningError):
    """Raster artwork bytes could not be decoded."""


# --- field model / session ----------------------------------------------------
class UnauthorizedFieldError(SigningError, PermissionError):
    """Acting party tried to mark a field assigned to another party."""

    def __init__(self, field_id: str, assigned_party: str, acting_party: str) -> None:
        self.field_id = field_id
        self.assigned_party = assigned_party
        self.acting_party = acting_party
        super().__init__(
            f"Field '{field_id}' must be signed by {assigned_party}; "
            f"{acting_party} is not allowed to sign it."
        )


class FieldAlreadySignedError(SigningError):
    """Field already carries a committed mark; committed marks are write-once."""

    def __init__(self, field_id: str) -> None:
        self.field_id = field_id
        super().__init__(f"Field '{field_id}' has already been signed and cannot be signed again.")


class IncompleteSigningError(SigningError):
    """Save attempted while assigned fields are still unsigned."""

    def __init__(self, remaining: int, field_ids: Optional[Iterable[str]] = None) -> None:
        self.remaining = int(remaining)
        self.field_ids = tuple(field_ids or ())
        noun = "field" if self.remaining == 1 else "fields"
        super().__init__(f"Please sign all {self.remaining} remaining {noun}")


class InvalidSignerIdentityError(SigningError, ValueError):
    """Signer identity is incomplete or malformed."""

    def __init__(self, missing: Iterable[str], detail: Optional[str] = None) -> None:
        self.missing = tuple(missing)
        msg = "Please fill in all signer information"
        if self.missing:
            msg += f" (missing: {', '.join(self.missing)})"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class NothingToSignError(SigningError):
    """Save attempted although the session has no pending marks."""


class SessionClosedError(SigningError):
    """Session was already saved or cancelled."""


# --- mutation / persistence ---------------------------------------------------
class DocumentParseError(SigningError):
    """Current document bytes are unreadable, corrupt or encrypted."""


class InvalidFieldReferenceError(SigningError):
    """A field references a page or id that does not exist."""


class StaleDocumentError(SigningError):
    """Document changed between read and write; reload and sign again."""
