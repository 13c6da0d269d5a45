from .errors import (
    ArtworkDecodeError,
    DocumentParseError,
    EmptyInputError,
    FieldAlreadySignedError,
    FontNotInstalledError,
    IncompleteSigningError,
    InvalidFieldReferenceError,
    InvalidSignerIdentityError,
    NothingToSignError,
    SessionClosedError,
    SigningError,
    StaleDocumentError,
    UnauthorizedFieldError,
    UnsupportedFontError,
)

__all__ = [
    "ArtworkDecodeError",
    "DocumentParseError",
    "EmptyInputError",
    "FieldAlreadySignedError",
    "FontNotInstalledError",
    "IncompleteSigningError",
    "InvalidFieldReferenceError",
    "InvalidSignerIdentityError",
    "NothingToSignError",
    "SessionClosedError",
    "SigningError",
    "StaleDocumentError",
    "UnauthorizedFieldError",
    "UnsupportedFontError",
]
