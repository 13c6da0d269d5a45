from __future__ import annotations
import hashlib
from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple, Union

from .signature_enums import CaptureMode

# (x, y) in canvas pixels, optionally (x, y, t) with t in milliseconds
Point = Union[Tuple[float, float], Tuple[float, float, float]]


@dataclass(frozen=True)
class RasterArtwork:
    """
    PNG raster of a signature, initials or date stamp.

    ``text`` is set when the artwork was rendered from text (typed signature or
    date stamp); DATE fields embed that text natively instead of the raster.
    """
    width: int
    height: int
    png_bytes: bytes = field(repr=False)
    text: Optional[str] = None
    mode: CaptureMode = CaptureMode.DRAW

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Artwork size must be positive, got {self.width}x{self.height}.")

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    @property
    def sha256(self) -> str:
        return hashlib.sha256(self.png_bytes).hexdigest()

    @property
    def ref(self) -> str:
        return f"sha256:{self.sha256}"


@dataclass(frozen=True)
class StrokeCapture:
    """Freehand strokes already collected by a capture UI."""
    strokes: Sequence[Sequence[Point]]
    canvas_size: Optional[Tuple[int, int]] = None

    mode = CaptureMode.DRAW


@dataclass(frozen=True)
class TypedCapture:
    """Free text rendered with one of the cursive signature fonts."""
    text: str
    font_name: str = "Dancing Script"

    mode = CaptureMode.TYPE


@dataclass(frozen=True)
class ImageCapture:
    """Uploaded PNG/JPEG/GIF image."""
    data: bytes = field(repr=False)

    mode = CaptureMode.UPLOAD


CaptureInput = Union[StrokeCapture, TypedCapture, ImageCapture]
