"""
Unit tests for verified frame application.
"""

import pytest
from pubsub import pub

from zonetiler import topics
from zonetiler.placement import PlacementPhase
from zonetiler.protocol import Rect

TARGET = Rect(0, 0, 960, 540)


@pytest.fixture
def placer(ctx, window_system):
    window_system.add_window(1, frame=Rect(100, 100, 800, 600))
    return ctx.placer


@pytest.mark.unit
class TestPlacementVerifier:
    """Test the placement state machine."""

    def test_apply_without_verification(self, placer, window_system):
        assert placer.apply(1, TARGET, verify=False)

        assert window_system.frame_of(1) == TARGET
        assert not placer.is_placing(1)

    def test_accepted(self, placer, window_system):
        placer.apply(1, TARGET)

        assert placer.is_placing(1)
        assert placer.attempts[1].phase is PlacementPhase.APPLIED
        assert placer.verify(1) is PlacementPhase.ACCEPTED
        assert not placer.is_placing(1)

    def test_accepts_within_tolerance(self, placer, window_system):
        placer.apply(1, TARGET)
        window_system.move_window(1, Rect(8, 0, 955, 545))

        assert placer.verify(1) is PlacementPhase.ACCEPTED

    def test_reapplies_once(self, placer, window_system):
        window_system.ignore_set_frame = 1
        placer.apply(1, TARGET, screen_id="S")

        assert placer.verify(1) is PlacementPhase.REAPPLIED
        assert window_system.move_calls == [(1, "S")]
        assert window_system.frame_of(1) == TARGET
        assert placer.verify(1) is PlacementPhase.ACCEPTED
        assert len(window_system.set_frame_calls) == 2

    def test_fails_after_second_mismatch(self, placer, window_system, caplog):
        window_system.ignore_set_frame = 2
        placer.apply(1, TARGET)

        assert placer.verify(1) is PlacementPhase.REAPPLIED
        assert placer.verify(1) is PlacementPhase.FAILED
        assert window_system.frame_of(1) == Rect(100, 100, 800, 600)
        assert len(window_system.set_frame_calls) == 2
        assert "did not accept" in caplog.text

    def test_stale_window(self, placer, window_system):
        placer.apply(1, TARGET)
        window_system.close_window(1)

        assert placer.verify(1) is PlacementPhase.STALE
        assert not placer.is_placing(1)

    def test_vanished_window_is_not_placed(self, placer, window_system):
        assert not placer.apply(99, TARGET)
        assert window_system.set_frame_calls == []

    def test_verify_without_attempt(self, placer):
        assert placer.verify(1) is None

    def test_timers_drive_verification(self, placer, window_system, timers):
        window_system.ignore_set_frame = 1
        received = []

        def on_verified(window_id, phase):
            received.append((window_id, phase))

        pub.subscribe(on_verified, topics.PLACEMENT_VERIFIED)
        placer.apply(1, TARGET)

        timers.advance(0.2)
        assert received == []
        timers.advance(0.2)

        assert received == [(1, "ACCEPTED")]
        assert window_system.frame_of(1) == TARGET

    def test_new_apply_replaces_attempt(self, placer, window_system, timers):
        other = Rect(960, 0, 960, 540)
        placer.apply(1, TARGET)
        placer.apply(1, other)

        assert placer.attempts[1].target == other
        timers.advance(1)

        assert not placer.is_placing(1)
        assert window_system.frame_of(1) == other

    def test_moves_to_target_screen(self, placer, window_system, side_screen):
        window_system.set_screens(window_system.screens() + [side_screen])

        placer.apply(1, Rect(1920, 0, 100, 100), screen_id="T", verify=False)

        assert window_system.move_calls == [(1, "T")]
        assert window_system.window_info(1).screen_id == "T"

    def test_is_final(self):
        assert PlacementPhase.ACCEPTED.is_final
        assert PlacementPhase.STALE.is_final
        assert not PlacementPhase.REAPPLIED.is_final
