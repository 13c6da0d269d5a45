from .artwork import CaptureInput, ImageCapture, Point, RasterArtwork, StrokeCapture, TypedCapture
from .pending_mark import PendingMark
from .signature_enums import CaptureMode, FieldState, FieldType, SigningParty
from .signature_field import CommittedMark, SignatureField
from .signature_placement import PageBox, SignaturePlacement, TextPlacement
from .signer_identity import SignerIdentity
from .submission import SignedFieldRecord, Submission

__all__ = [
    "CaptureInput", "CaptureMode", "CommittedMark", "FieldState", "FieldType",
    "ImageCapture", "PageBox", "PendingMark", "Point", "RasterArtwork",
    "SignatureField", "SignaturePlacement", "SignedFieldRecord", "SignerIdentity",
    "SigningParty", "StrokeCapture", "Submission", "TextPlacement", "TypedCapture",
]
