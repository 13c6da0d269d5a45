from __future__ import annotations
import logging
from dataclasses import dataclass
from io import BytesIO
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from PIL import Image
from pypdf import PdfReader, PdfWriter
from pypdf.errors import PyPdfError
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from core.config.config_service import PlacementConfig
from ..exceptions.errors import (
    ArtworkDecodeError, DocumentParseError, FieldAlreadySignedError, InvalidFieldReferenceError,
)
from ..models.artwork import RasterArtwork
from ..models.pending_mark import PendingMark
from ..models.signature_enums import FieldType
from ..models.signature_field import SignatureField
from ..models.signature_placement import PageBox
from ..models.signer_identity import SignerIdentity
from .artwork_codec import decode_image
from .coordinate_transform import artwork_placement, text_placement

logger = logging.getLogger(__name__)

ArtworkResolver = Callable[[SignatureField], Optional[RasterArtwork]]


@dataclass(frozen=True)
class _Stamp:
    """One validated mark, ready to draw: either an image or a line of text."""
    field: SignatureField
    image: Optional[Image.Image] = None
    aspect_ratio: float = 1.0
    text: Optional[str] = None


class DocumentMutator:
    """
    Embeds marks into PDF bytes.

    Every call is "load bytes -> draw overlays -> emit new bytes". Existing page
    content is never read back or cleared; each touched page gets one reportlab
    overlay merged on top, so marks from earlier rounds survive untouched.
    All marks are validated and decoded before the first page is touched, and the
    output is only serialised once everything was drawn.
    """

    def __init__(self, config: Optional[PlacementConfig] = None) -> None:
        self._cfg = config or PlacementConfig()

    # -------- public ----------------------------------------------------------
    def mutate(self, current_bytes: bytes, pending_marks: Sequence[PendingMark],
               signer: Optional[SignerIdentity] = None) -> bytes:
        """Embed one session's pending marks into the current document bytes."""
        reader = self._open(current_bytes)
        page_count = len(reader.pages)
        seen: set = set()
        stamps: List[_Stamp] = []
        for mark in pending_marks:
            field = mark.field
            if field.id in seen:
                raise InvalidFieldReferenceError(f"Field '{field.id}' appears twice in one submission.")
            seen.add(field.id)
            if field.committed_mark is not None:
                raise FieldAlreadySignedError(field.id)
            self._check_page(field, page_count)
            stamps.append(self._stamp(field, mark.artwork))

        out = self._embed(reader, stamps)
        logger.info("Embedded %d mark(s) for %s into %d-page document",
                    len(stamps), signer.full_name if signer else "<unknown signer>", page_count)
        return out

    def compose(self, original_bytes: bytes, fields: Iterable[SignatureField],
                resolve_artwork: ArtworkResolver) -> bytes:
        """
        Rebuild the executed document from the pristine original and every
        committed mark. Unsigned fields are skipped; DATE fields with a stored
        value are drawn as text, everything else through ``resolve_artwork``.
        """
        reader = self._open(original_bytes)
        page_count = len(reader.pages)
        stamps: List[_Stamp] = []
        for field in fields:
            mark = field.committed_mark
            if mark is None:
                continue
            self._check_page(field, page_count)
            if field.field_type == FieldType.DATE and mark.value:
                stamps.append(_Stamp(field=field, text=mark.value))
                continue
            artwork = resolve_artwork(field)
            if artwork is None:
                raise InvalidFieldReferenceError(
                    f"No stored artwork for committed field '{field.id}' ({mark.artwork_ref})."
                )
            stamps.append(self._stamp(field, artwork))
        return self._embed(reader, stamps)

    # -------- internals -------------------------------------------------------
    @staticmethod
    def _open(data: bytes) -> PdfReader:
        if not data:
            raise DocumentParseError("Document is empty.")
        try:
            reader = PdfReader(BytesIO(data))
            if reader.is_encrypted:
                raise DocumentParseError("Document is encrypted and cannot be signed.")
            # touch the page tree now so corruption surfaces before drawing
            _ = len(reader.pages)
        except DocumentParseError:
            raise
        except (PyPdfError, ValueError, KeyError, TypeError, OSError) as exc:
            raise DocumentParseError(f"Document could not be read: {exc}") from exc
        return reader

    @staticmethod
    def _check_page(field: SignatureField, page_count: int) -> None:
        if not 1 <= field.page_number <= page_count:
            raise InvalidFieldReferenceError(
                f"Field '{field.id}' references page {field.page_number}, "
                f"document has {page_count} page(s)."
            )

    @staticmethod
    def _stamp(field: SignatureField, artwork: RasterArtwork) -> _Stamp:
        if field.field_type == FieldType.DATE and artwork.text:
            return _Stamp(field=field, text=artwork.text)
        if not artwork.png_bytes:
            raise ArtworkDecodeError(f"Artwork for field '{field.id}' is empty.")
        img = decode_image(artwork.png_bytes).convert("RGBA")
        return _Stamp(field=field, image=img, aspect_ratio=img.width / img.height)

    @staticmethod
    def _page_box(page) -> PageBox:
        box = page.mediabox
        return PageBox(width=float(box.width), height=float(box.height),
                       left=float(box.left), bottom=float(box.bottom))

    def _overlay(self, box: PageBox, stamps: List[_Stamp]) -> bytes:
        buf = BytesIO()
        c = canvas.Canvas(buf, pagesize=(box.left + box.width, box.bottom + box.height))
        for s in stamps:
            if s.text is not None:
                pos = text_placement(s.field, box,
                                     x_offset=self._cfg.date_text_x_offset,
                                     baseline_offset=self._cfg.date_baseline_offset)
                c.setFillColorRGB(0, 0, 0)
                c.setFont(self._cfg.date_font, self._cfg.date_font_size)
                c.drawString(pos.x, pos.y, s.text)
            else:
                pos = artwork_placement(s.field, box, s.aspect_ratio)
                c.drawImage(ImageReader(s.image), pos.x, pos.y,
                            width=pos.target_width, height=pos.target_height, mask="auto")
        c.save()
        return buf.getvalue()

    def _embed(self, reader: PdfReader, stamps: List[_Stamp]) -> bytes:
        by_page: Dict[int, List[_Stamp]] = {}
        for s in stamps:
            by_page.setdefault(s.field.page_number - 1, []).append(s)

        writer = PdfWriter()
        try:
            for i, page in enumerate(reader.pages):
                writer_page = writer.add_page(page)
                if i in by_page:
                    overlay = PdfReader(BytesIO(self._overlay(self._page_box(page), by_page[i])))
                    writer_page.merge_page(overlay.pages[0])
            if reader.metadata:
                writer.add_metadata({k: str(v) for k, v in reader.metadata.items()})
            out = BytesIO()
            writer.write(out)
        except (PyPdfError, ValueError, KeyError, TypeError) as exc:
            raise DocumentParseError(f"Document could not be rewritten: {exc}") from exc
        return out.getvalue()
