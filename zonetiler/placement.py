"""
Placement Verification

Applies frames to windows and checks, after a short delay, that the window
system honoured them. Each window gets a short-lived attempt that moves
through explicit phases:

    APPLIED -> VERIFYING -> ACCEPTED
    APPLIED -> VERIFYING -> REAPPLIED -> VERIFYING -> ACCEPTED | FAILED

A window that disappears in between ends as STALE. There is exactly one
forced re-application; a second mismatch is logged and left as is.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, Dict, Optional
import logging

from . import topics
from .protocol import Rect, ScreenId, WindowId
from .timers import TimerHandle

if TYPE_CHECKING:
    from .context import TilerContext

log = logging.getLogger(__name__)


class PlacementPhase(Enum):
    """Phase of a placement attempt."""

    APPLIED = auto()
    VERIFYING = auto()
    REAPPLIED = auto()
    ACCEPTED = auto()
    FAILED = auto()
    STALE = auto()

    @property
    def is_final(self) -> bool:
        return self in (PlacementPhase.ACCEPTED, PlacementPhase.FAILED, PlacementPhase.STALE)


@dataclass
class PlacementAttempt:
    """In-flight placement of one window."""

    window_id: WindowId
    target: Rect
    screen_id: Optional[ScreenId]
    phase: PlacementPhase = PlacementPhase.APPLIED
    reapplied: bool = False
    timer: Optional[TimerHandle] = field(default=None, repr=False)


class PlacementVerifier:
    """Applies frames and drives the per-window verification state machine.

    verify() advances an attempt by one step. The timer queue calls it
    verify_delay seconds after each application; tests may call it directly.
    """

    def __init__(self, ctx: TilerContext):
        self.ctx = ctx
        self.attempts: Dict[WindowId, PlacementAttempt] = {}

    @property
    def _memory_config(self):
        return self.ctx.config.window_memory

    def apply(
        self,
        window_id: WindowId,
        frame: Rect,
        screen_id: Optional[ScreenId] = None,
        verify: bool = True,
    ) -> bool:
        """Move a window to screen_id if needed, then set its frame.

        Idempotent: applying the same frame twice requests the same geometry.
        Returns False if the window no longer exists.
        """
        ws = self.ctx.window_system
        info = ws.window_info(window_id)
        if info is None:
            log.debug("Window %s vanished before placement", window_id)
            return False

        self.forget(window_id)
        if screen_id is not None and info.screen_id != screen_id:
            log.debug("Moving window %s to screen %s before placement", window_id, screen_id)
            ws.move_to_screen(window_id, screen_id)
        ws.set_frame(window_id, frame)

        if verify:
            attempt = PlacementAttempt(window_id, frame, screen_id)
            self.attempts[window_id] = attempt
            self._schedule(attempt)
        return True

    def verify(self, window_id: WindowId) -> Optional[PlacementPhase]:
        """Check the window's frame against its attempt and advance the phase.

        Returns the resulting phase, or None if no attempt is in flight.
        """
        attempt = self.attempts.get(window_id)
        if attempt is None:
            return None
        if attempt.timer is not None:
            attempt.timer.cancel()
            attempt.timer = None

        info = self.ctx.window_system.window_info(window_id)
        if info is None:
            return self._finish(attempt, PlacementPhase.STALE)

        attempt.phase = PlacementPhase.VERIFYING
        if info.frame.approximately_equals(attempt.target, self._memory_config.tolerance):
            return self._finish(attempt, PlacementPhase.ACCEPTED)

        if attempt.reapplied:
            log.warning(
                "Window %s did not accept frame %s (got %s); leaving it",
                window_id,
                attempt.target,
                info.frame,
            )
            return self._finish(attempt, PlacementPhase.FAILED)

        self._force_apply(attempt)
        return attempt.phase

    def _force_apply(self, attempt: PlacementAttempt):
        """Second, more aggressive application: explicit screen move plus frame."""
        ws = self.ctx.window_system
        log.debug("Re-applying frame %s to window %s", attempt.target, attempt.window_id)
        if attempt.screen_id is not None:
            ws.move_to_screen(attempt.window_id, attempt.screen_id)
        ws.set_frame(attempt.window_id, attempt.target)
        attempt.phase = PlacementPhase.REAPPLIED
        attempt.reapplied = True
        self._schedule(attempt)

    def _schedule(self, attempt: PlacementAttempt):
        attempt.timer = self.ctx.timers.call_later(
            self._memory_config.verify_delay, self.verify, attempt.window_id
        )

    def _finish(self, attempt: PlacementAttempt, phase: PlacementPhase) -> PlacementPhase:
        attempt.phase = phase
        self.attempts.pop(attempt.window_id, None)
        log.debug("Placement of window %s ended %s", attempt.window_id, phase.name)
        self.ctx.bus.sendMessage(
            topics.PLACEMENT_VERIFIED, window_id=attempt.window_id, phase=phase.name
        )
        return phase

    def is_placing(self, window_id: WindowId) -> bool:
        """Whether a placement of this window is still being verified."""
        return window_id in self.attempts

    def forget(self, window_id: WindowId):
        """Drop an in-flight attempt without finishing it."""
        attempt = self.attempts.pop(window_id, None)
        if attempt is not None and attempt.timer is not None:
            attempt.timer.cancel()
