# contract_signing/logic/artwork_producer.py
from __future__ import annotations
import logging
import math
from typing import Optional, Sequence

from PIL import Image, ImageDraw

from core.config.config_service import ArtworkConfig
from core.helpers.date_time_helper import Clock, format_long_date, local_now
from ..exceptions.errors import EmptyInputError
from ..models.artwork import (
    CaptureInput, ImageCapture, Point, RasterArtwork, StrokeCapture, TypedCapture,
)
from ..models.signature_enums import CaptureMode, FieldType
from .artwork_codec import WHITE, decode_image, encode_png, flatten_on_white
from .font_catalog import FontCatalog

logger = logging.getLogger(__name__)

INK = (0, 0, 0, 255)


class ArtworkProducer:
    """
    Turns captured signer input into PNG artwork.

    Pure with respect to its inputs: the same strokes / text / image always yield
    byte-identical PNGs. The only ambient input is the clock used for DATE
    stamps, which is injectable.
    """

    def __init__(self, config: Optional[ArtworkConfig] = None, *,
                 fonts: Optional[FontCatalog] = None,
                 clock: Clock = local_now) -> None:
        self._cfg = config or ArtworkConfig()
        self._fonts = fonts or FontCatalog()
        self._clock = clock
        if not 0 < self._cfg.pen_min_width <= self._cfg.pen_max_width:
            raise ValueError("pen widths must satisfy 0 < pen_min_width <= pen_max_width")

    # -------- dispatch --------------------------------------------------------
    def produce(self, field_type: FieldType, capture: Optional[CaptureInput] = None) -> RasterArtwork:
        """Artwork for a field; DATE fields ignore ``capture`` and stamp today's date."""
        field_type = FieldType.parse(field_type)
        if field_type == FieldType.DATE:
            return self.date_stamp()
        if isinstance(capture, StrokeCapture):
            return self.from_strokes(capture)
        if isinstance(capture, TypedCapture):
            return self.from_text(capture, field_type)
        if isinstance(capture, ImageCapture):
            return self.from_image(capture)
        raise EmptyInputError("No signature input was captured.")

    # -------- freehand --------------------------------------------------------
    def from_strokes(self, capture: StrokeCapture) -> RasterArtwork:
        """
        Rasterise freehand strokes onto an opaque white canvas.

        Segment width follows pen speed (fast = thin) between pen_min_width and
        pen_max_width; speed is distance per millisecond when points carry a
        timestamp, distance per sample otherwise.
        """
        strokes = [list(s) for s in (capture.strokes or ()) if len(s) > 0]
        if not strokes:
            raise EmptyInputError("The signature pad is empty. Please draw your signature.")

        w, h = capture.canvas_size or (self._cfg.canvas_width, self._cfg.canvas_height)
        img = Image.new("RGBA", (int(w), int(h)), WHITE)
        drw = ImageDraw.Draw(img)
        for stroke in strokes:
            self._draw_stroke(drw, stroke)
        return RasterArtwork(width=img.width, height=img.height, png_bytes=encode_png(img),
                             mode=CaptureMode.DRAW)

    def _draw_stroke(self, drw: ImageDraw.ImageDraw, stroke: Sequence[Point]) -> None:
        max_w = self._cfg.pen_max_width
        if len(stroke) == 1:
            self._dot(drw, stroke[0], max_w)
            return
        weight = self._cfg.velocity_filter_weight
        velocity = 0.0
        for p0, p1 in zip(stroke, stroke[1:]):
            dist = math.hypot(p1[0] - p0[0], p1[1] - p0[1])
            dt = (p1[2] - p0[2]) if len(p1) > 2 and len(p0) > 2 else 0.0
            raw = dist / dt if dt > 0 else dist / 10.0
            velocity = weight * raw + (1.0 - weight) * velocity
            width = self._pen_width(velocity)
            drw.line([(p0[0], p0[1]), (p1[0], p1[1])], fill=INK, width=max(1, round(width)))
            self._dot(drw, p1, width)
        self._dot(drw, stroke[0], self._pen_width(0.0))

    def _pen_width(self, velocity: float) -> float:
        return max(self._cfg.pen_max_width / (velocity + 1.0), self._cfg.pen_min_width)

    @staticmethod
    def _dot(drw: ImageDraw.ImageDraw, p: Point, width: float) -> None:
        r = width / 2.0
        drw.ellipse([p[0] - r, p[1] - r, p[0] + r, p[1] + r], fill=INK)

    # -------- typed -----------------------------------------------------------
    def from_text(self, capture: TypedCapture, field_type: FieldType = FieldType.SIGNATURE) -> RasterArtwork:
        text = (capture.text or "").strip()
        if not text:
            raise EmptyInputError("Please type your name.")
        size = (self._cfg.initials_font_size if FieldType.parse(field_type) == FieldType.INITIALS
                else self._cfg.signature_font_size)
        font = self._fonts.signature_font(capture.font_name, size)
        return self._render_text(text, font, CaptureMode.TYPE)

    # -------- date ------------------------------------------------------------
    def date_stamp(self) -> RasterArtwork:
        """Today's date as "Month D, YYYY", rendered in the neutral font; text kept alongside."""
        text = format_long_date(self._clock())
        size = self._cfg.initials_font_size
        return self._render_text(text, self._fonts.neutral_font(size), CaptureMode.TYPE)

    def _render_text(self, text: str, font, mode: CaptureMode) -> RasterArtwork:
        pad = self._cfg.text_padding
        measure = ImageDraw.Draw(Image.new("RGBA", (1, 1)))
        left, top, right, bottom = measure.textbbox((0, 0), text, font=font)
        left, top = math.floor(left), math.floor(top)
        w = math.ceil(right) - left + pad * 2
        h = math.ceil(bottom) - top + pad * 2
        img = Image.new("RGBA", (w, h), WHITE)
        # shift so the ink box starts exactly at the padding
        ImageDraw.Draw(img).text((pad - left, pad - top), text, font=font, fill=INK)
        logger.debug("Rendered text artwork %dx%d (%d chars)", w, h, len(text))
        return RasterArtwork(width=w, height=h, png_bytes=encode_png(img), text=text, mode=mode)

    # -------- upload ----------------------------------------------------------
    def from_image(self, capture: ImageCapture) -> RasterArtwork:
        img = flatten_on_white(decode_image(capture.data))
        return RasterArtwork(width=img.width, height=img.height, png_bytes=encode_png(img),
                             mode=CaptureMode.UPLOAD)
