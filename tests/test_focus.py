"""
Unit tests for focus cycling within zones.
"""

import cairo
import pytest
from pubsub import pub

from zonetiler import topics
from zonetiler.protocol import Rect


@pytest.fixture
def zone_windows(tiler, window_system):
    """Two windows assigned to "left", one overlapping it, one in "right"."""
    left = tiler.registry.get("left_S")
    window_system.add_window(1, frame=Rect(0, 0, 960, 1080))
    window_system.add_window(2, frame=Rect(0, 0, 960, 540))
    window_system.add_window(3, frame=Rect(100, 600, 600, 400))
    window_system.add_window(4, frame=Rect(960, 0, 960, 1080))
    left.add_window(1, 1)
    left.add_window(2, 2)
    return left


@pytest.mark.unit
class TestZoneFocusCycler:
    """Test cycling focus through a zone."""

    def test_candidates(self, tiler, zone_windows):
        assert tiler.focus_cycler.zone_windows(zone_windows, "S") == [1, 2, 3]

    def test_cycles_from_focused_window(self, tiler, window_system, zone_windows):
        window_system.focused = 1
        focused = []

        for _ in range(3):
            pub.sendMessage(topics.CMD_FOCUS_NEXT_IN_ZONE, zone_id="left")
            focused.append(window_system.focused)

        assert focused == [2, 3, 1]

    def test_remembers_position_when_focus_is_elsewhere(self, tiler, window_system, zone_windows):
        window_system.focused = 4
        assert tiler.focus_cycler.focus_next_in_zone("left") == 1

        window_system.focused = 4
        assert tiler.focus_cycler.focus_next_in_zone("left") == 2

    def test_skips_minimized_and_other_screens(self, tiler, window_system, zone_windows, side_screen):
        window_system.set_screens(window_system.screens() + [side_screen])
        window_system.add_window(5, frame=Rect(0, 0, 960, 1080), is_minimized=True)
        window_system.add_window(6, frame=Rect(0, 0, 960, 1080), screen_id="T")

        assert tiler.focus_cycler.zone_windows(zone_windows, "S") == [1, 2, 3]

    def test_empty_zone(self, tiler, window_system):
        window_system.add_window(1, frame=Rect(960, 0, 960, 1080))
        window_system.focused = 1

        assert tiler.focus_cycler.focus_next_in_zone("left") is None
        assert window_system.focus_calls == []

    def test_no_focused_window(self, tiler, zone_windows):
        assert tiler.focus_cycler.focus_next_in_zone("left") is None

    def test_rebuild_resets_positions(self, tiler, window_system, zone_windows):
        window_system.focused = 4
        tiler.focus_cycler.focus_next_in_zone("left")

        tiler.registry.init_for_all_screens()

        assert tiler.focus_cycler.focus_indices == {}

    def test_flash(self, tiler, window_system, zone_windows, config):
        config.flash_on_focus = True
        window_system.focused = 1

        tiler.focus_cycler.focus_next_in_zone("left")

        frame, surface, duration = window_system.overlays[0]
        assert frame == Rect(0, 0, 960, 540)
        assert isinstance(surface, cairo.ImageSurface)
        assert (surface.get_width(), surface.get_height()) == (960, 540)
        assert duration == config.flash_duration

    def test_no_flash_by_default(self, tiler, window_system, zone_windows):
        window_system.focused = 1

        tiler.focus_cycler.focus_next_in_zone("left")

        assert window_system.overlays == []
