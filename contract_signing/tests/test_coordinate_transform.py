"""Layout-space percentages -> PDF page-space points."""
from __future__ import annotations

import pytest

from contract_signing.logic.coordinate_transform import (
    anchor_point, artwork_placement, flip_y, target_size, text_placement,
)
from contract_signing.models import PageBox
from signing_fixtures import make_field

PAGE = PageBox(width=800, height=1000)

def test_centre_field_round_trip() -> None:
    field = make_field("f1", x=50, y=50, width=20)
    assert anchor_point(field, PAGE) == (400, 500)
    assert target_size(field, PAGE, 2.0) == (160, 80)

    placed = artwork_placement(field, PAGE, 2.0)
    assert placed.page_index == 0
    assert placed.x == pytest.approx(320)
    # anchor y 500 minus half of targetH 80
    assert placed.y == pytest.approx(460)
    assert (placed.target_width, placed.target_height) == (160, 80)

def test_axis_flip() -> None:
    assert flip_y(100, 1000) == 900
    near_top = make_field("top", x=50, y=10, width=10)
    assert anchor_point(near_top, PAGE)[1] == pytest.approx(900)

def test_height_follows_aspect_ratio_only() -> None:
    field = make_field("f", width=25, height=1)
    w, h = target_size(field, PAGE, 4.0)
    assert (w, h) == (200, 50)

def test_clamped_at_page_origin() -> None:
    corner = make_field("c", x=0, y=100, width=30, page=2)
    placed = artwork_placement(corner, PAGE, 3.0)
    assert placed.page_index == 1
    assert placed.x == 0
    assert placed.y == 0

def test_media_box_offset_is_added() -> None:
    shifted = PageBox(width=800, height=1000, left=10, bottom=20)
    placed = artwork_placement(make_field("f1"), shifted, 2.0)
    assert placed.x == pytest.approx(330)
    assert placed.y == pytest.approx(480)

def test_negative_media_box_origin_never_goes_below_zero() -> None:
    box = PageBox(width=800, height=1000, left=-50, bottom=-40)
    corner = artwork_placement(make_field("c", x=0, y=100, width=30), box, 3.0)
    assert (corner.x, corner.y) == (0, 0)
    # far from the edge the offset still applies: 320 - 50, 460 - 40
    centre = artwork_placement(make_field("f1"), box, 2.0)
    assert centre.x == pytest.approx(270)
    assert centre.y == pytest.approx(420)
    edge = text_placement(make_field("d", x=1, y=99), box, x_offset=50, baseline_offset=0)
    assert (edge.x, edge.y) == (0, 0)

def test_clamped_at_shifted_box_origin() -> None:
    shifted = PageBox(width=800, height=1000, left=10, bottom=20)
    placed = artwork_placement(make_field("c", x=0, y=100, width=30), shifted, 3.0)
    assert (placed.x, placed.y) == (10, 20)

def test_text_baseline_offsets() -> None:
    pos = text_placement(make_field("d"), PAGE, x_offset=50, baseline_offset=4)
    assert (pos.x, pos.y) == (350, 496)
    edge = text_placement(make_field("d", x=1), PAGE, x_offset=50, baseline_offset=0)
    assert edge.x == 0

def test_non_positive_aspect_ratio() -> None:
    with pytest.raises(ValueError):
        target_size(make_field("f"), PAGE, 0)
