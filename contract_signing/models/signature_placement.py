from __future__ import annotations
from dataclasses import dataclass


@dataclass(frozen=True)
class PageBox:
    """Native page geometry in points; (left, bottom) is the media box origin."""
    width: float
    height: float
    left: float = 0.0
    bottom: float = 0.0


@dataclass(frozen=True)
class SignaturePlacement:
    """
    Absolute placement on a PDF page (points; 1 pt = 1/72 inch), origin bottom-left.
    (x, y) is the lower-left corner of the drawn image.
    """
    page_index: int
    x: float
    y: float
    target_width: float
    target_height: float


@dataclass(frozen=True)
class TextPlacement:
    """Baseline start of natively drawn text, origin bottom-left."""
    page_index: int
    x: float
    y: float
