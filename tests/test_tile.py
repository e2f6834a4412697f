"""
Unit tests for tiles and rectangle geometry.
"""

import pytest

from zonetiler.protocol import Rect
from zonetiler.tile import Tile, tile_from_record


@pytest.mark.unit
class TestRect:
    """Test rectangle helpers."""

    def test_intersection(self):
        a = Rect(0, 0, 100, 100)
        b = Rect(50, 50, 100, 100)

        assert a.intersection(b) == Rect(50, 50, 50, 50)

    def test_touching_rects_do_not_intersect(self):
        assert Rect(0, 0, 100, 100).intersection(Rect(100, 0, 50, 50)) is None

    def test_degenerate_area_is_zero(self):
        assert Rect(0, 0, 0, 100).area == 0
        assert Rect(0, 0, -5, 10).area == 0

    def test_approximately_equals_checks_every_edge(self):
        rect = Rect(0, 0, 100, 100)

        assert rect.approximately_equals(Rect(10, -10, 90, 110))
        # Right edge moves by 11
        assert not rect.approximately_equals(Rect(0, 0, 111, 100))

    def test_dict_form(self):
        rect = Rect(1, 2, 3, 4)

        assert rect.to_dict() == {"x": 1, "y": 2, "w": 3, "h": 4}
        assert Rect.from_dict({"x": 1, "y": 2, "w": 3, "h": 4}) == rect


@pytest.mark.unit
class TestTile:
    """Test tile overlap and metadata."""

    def test_overlap_is_normalized_by_window_area(self):
        tile = Tile(0, 0, 1000, 1000)

        # A small window fully inside a large tile is fully covered
        assert tile.overlap_percentage(Rect(10, 10, 100, 100)) == 1.0

    def test_partial_overlap(self):
        tile = Tile(0, 0, 100, 100)

        assert tile.overlap_percentage(Rect(50, 0, 100, 100)) == pytest.approx(0.5)

    def test_overlap_bounds(self):
        tile = Tile(0, 0, 100, 100)
        rects = [
            Rect(0, 0, 100, 100),
            Rect(-50, -50, 300, 300),
            Rect(500, 500, 10, 10),
            Rect(10, 10, 0, 0),
        ]

        for rect in rects:
            assert 0.0 <= tile.overlap_percentage(rect) <= 1.0

    def test_degenerate_window_has_no_overlap(self):
        assert Tile(0, 0, 100, 100).overlap_percentage(Rect(10, 10, 0, 50)) == 0.0

    def test_distance_from_center(self):
        tile = Tile(0, 0, 100, 100)

        assert tile.distance_from_center(50, 50) == 0
        assert tile.distance_from_center(80, 90) == pytest.approx(50)

    def test_tags_are_immutable(self):
        tile = Tile(0, 0, 10, 10)
        tagged = tile.with_tag("editor")

        assert tagged.has_tag("editor")
        assert not tile.has_tag("editor")

    def test_scaled_to(self):
        tile = Tile(0, 0, 960, 1080, description="left")
        scaled = tile.scaled_to(Rect(0, 0, 1920, 1080), Rect(1920, 0, 2560, 1440))

        r = scaled.rect
        assert (r.x, r.y, r.width, r.height) == pytest.approx((1920, 0, 1280, 1440))
        assert scaled.description == "left"

    def test_from_record_accepts_both_key_styles(self):
        short = tile_from_record({"x": 1, "y": 2, "w": 3, "h": 4})
        long = tile_from_record({"x": 1, "y": 2, "width": 3, "height": 4, "description": "d"})

        assert short.rect == long.rect == Rect(1, 2, 3, 4)
        assert long.description == "d"

    def test_record_round_trip_keeps_metadata(self):
        tile = Tile(0, 0, 10, 20, description="Left", tags=frozenset({"a"}), metadata={"k": 1})

        restored = tile_from_record(tile.to_record())

        assert restored == tile
        assert restored.metadata == {"k": 1}
