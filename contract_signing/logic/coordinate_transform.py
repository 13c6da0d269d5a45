"""
Layout space -> PDF page space.

Layout space: percentages of the page, origin top-left, y grows downward; a
field's (x_percent, y_percent) is its CENTER.
Page space: PDF points, origin bottom-left of the media box, y grows upward.

Artwork is scaled by width only (height follows the artwork's aspect ratio) and
centred on the field anchor. Origins are clamped after the media-box offset is
added: never left of or below the box origin, and never below zero, so a box
with a negative left or bottom still yields non-negative coordinates.

Date text is drawn natively; its baseline starts ``date_text_x_offset`` points
left of the anchor (half the width of a 12 pt Helvetica long date, measured
once) and ``date_baseline_offset`` points below it.
"""
from __future__ import annotations
import logging
from typing import Tuple

from ..models.signature_field import SignatureField
from ..models.signature_placement import PageBox, SignaturePlacement, TextPlacement

logger = logging.getLogger(__name__)

DATE_TEXT_X_OFFSET = 50.0
DATE_BASELINE_OFFSET = 0.0


def flip_y(y_from_top: float, page_height: float) -> float:
    return page_height - y_from_top


def _clamp(origin: float, offset: float) -> float:
    """Absolute coordinate origin + offset, kept at or above both the box origin and 0."""
    return max(0.0, origin, origin + offset)


def anchor_point(field: SignatureField, page: PageBox) -> Tuple[float, float]:
    """Field centre in page space, relative to the media box origin: (x, y_from_bottom)."""
    abs_x = (float(field.x_percent) / 100.0) * page.width
    abs_y_from_top = (float(field.y_percent) / 100.0) * page.height
    return abs_x, flip_y(abs_y_from_top, page.height)


def target_size(field: SignatureField, page: PageBox, aspect_ratio: float) -> Tuple[float, float]:
    """Width from the field's width_percent, height from the artwork aspect ratio (w/h)."""
    if aspect_ratio <= 0:
        raise ValueError(f"aspect ratio must be positive, got {aspect_ratio}")
    target_w = (float(field.width_percent) / 100.0) * page.width
    return target_w, target_w / aspect_ratio


def artwork_placement(field: SignatureField, page: PageBox, aspect_ratio: float) -> SignaturePlacement:
    abs_x, abs_y = anchor_point(field, page)
    target_w, target_h = target_size(field, page, aspect_ratio)
    placement = SignaturePlacement(
        page_index=field.page_number - 1,
        x=_clamp(page.left, abs_x - target_w / 2.0),
        y=_clamp(page.bottom, abs_y - target_h / 2.0),
        target_width=target_w,
        target_height=target_h,
    )
    logger.debug("field %s -> %s", field.id, placement)
    return placement


def text_placement(field: SignatureField, page: PageBox, *,
                   x_offset: float = DATE_TEXT_X_OFFSET,
                   baseline_offset: float = DATE_BASELINE_OFFSET) -> TextPlacement:
    abs_x, abs_y = anchor_point(field, page)
    return TextPlacement(
        page_index=field.page_number - 1,
        x=_clamp(page.left, abs_x - x_offset),
        y=_clamp(page.bottom, abs_y - baseline_offset),
    )
