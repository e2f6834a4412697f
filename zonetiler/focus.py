"""
Zone Focus Cycler

Cycles keyboard focus through the windows that belong to a zone on the
focused window's screen.
"""

from __future__ import annotations
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple
import logging

from .protocol import ScreenId, WindowId

if TYPE_CHECKING:
    from .context import TilerContext
    from .overlay import OverlayRenderer
    from .zone import Zone

log = logging.getLogger(__name__)

# Unassigned windows covering at least this share of a tile count as in the zone
ZONE_OVERLAP_THRESHOLD = 0.5


class ZoneFocusCycler:
    """Focuses the next window of a zone.

    This component subscribes to the focus-in-zone command.

    Candidates are the zone's assigned windows plus other visible standard
    windows on the same screen that mostly overlap one of its tiles. The
    last focused position is remembered per (zone, screen) so repeated
    presses keep moving even when focus left the zone in between.

    Responsibilities:
    - CMD_FOCUS_NEXT_IN_ZONE: Focus next window in a zone
    """

    def __init__(self, bus, ctx: TilerContext, renderer: Optional[OverlayRenderer] = None):
        """Initialize focus cycler.

        Args:
            bus: Event bus instance (Pypubsub)
            ctx: Shared tiler context
            renderer: Overlay renderer used for the focus flash
        """
        self.bus = bus
        self.ctx = ctx
        self.renderer = renderer
        self.focus_indices: Dict[Tuple[str, ScreenId], int] = {}
        self._setup_subscriptions()

    def _setup_subscriptions(self):
        """Subscribe to focus command events."""
        from . import topics

        self.bus.subscribe(self._on_focus_next_in_zone, topics.CMD_FOCUS_NEXT_IN_ZONE)
        self.bus.subscribe(self._on_zones_rebuilt, topics.ZONES_REBUILT)

    def _on_focus_next_in_zone(self, zone_id: str):
        """Handle CMD_FOCUS_NEXT_IN_ZONE command."""
        self.focus_next_in_zone(zone_id)

    def _on_zones_rebuilt(self, zone_count: int):
        """Forget focus positions of zones that were just replaced."""
        self.focus_indices.clear()

    def zone_windows(self, zone: Zone, screen_id: ScreenId) -> List[WindowId]:
        """Focus candidates of a zone on one screen, assigned windows first."""
        ws = self.ctx.window_system
        candidates: List[WindowId] = []

        for window_id in zone.windows():
            info = ws.window_info(window_id)
            if info and info.is_standard and not info.is_minimized and info.screen_id == screen_id:
                candidates.append(window_id)

        for info in ws.all_windows():
            if not info.is_standard or info.is_minimized or info.screen_id != screen_id:
                continue
            if info.window_id in candidates:
                continue
            if any(t.overlap_percentage(info.frame) >= ZONE_OVERLAP_THRESHOLD for t in zone.tiles):
                candidates.append(info.window_id)

        return candidates

    def focus_next_in_zone(self, zone_id: str) -> Optional[WindowId]:
        """Focus the window after the focused one in a zone.

        Returns the newly focused window id, or None if nothing changed.
        """
        ws = self.ctx.window_system
        current = ws.focused_window()
        info = ws.window_info(current) if current is not None else None
        if info is None:
            log.debug("No focused window")
            return None

        zone = self.ctx.registry.resolve(zone_id, info.screen_id)
        if zone is None:
            log.debug("No zone %s on screen %s", zone_id, info.screen_id)
            return None

        candidates = self.zone_windows(zone, info.screen_id)
        if not candidates:
            log.debug("No windows in zone %s", zone.qualified_id)
            return None

        focus_key = (zone.qualified_id, info.screen_id)
        if current in candidates:
            next_idx = (candidates.index(current) + 1) % len(candidates)
        elif focus_key in self.focus_indices:
            next_idx = (self.focus_indices[focus_key] + 1) % len(candidates)
        else:
            next_idx = 0
        self.focus_indices[focus_key] = next_idx

        target = candidates[next_idx]
        ws.focus(target)
        log.debug(
            "Focused window %s in zone %s (%d of %d)",
            target,
            zone.qualified_id,
            next_idx + 1,
            len(candidates),
        )

        if self.ctx.config.flash_on_focus:
            self._flash(target)
        return target

    def _flash(self, window_id: WindowId):
        info = self.ctx.window_system.window_info(window_id)
        if info is None or self.renderer is None:
            return
        surface = self.renderer.render_flash(info.frame, self.ctx.config.flash_color)
        self.ctx.window_system.show_overlay(info.frame, surface, self.ctx.config.flash_duration)
