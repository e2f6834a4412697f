"""
Zone Controller

Handles the zone and screen commands bound to hotkeys (cycle-or-assign,
move to next/previous screen).
"""

from __future__ import annotations
from typing import TYPE_CHECKING, Optional
import logging

from .protocol import ScreenId, WindowId

if TYPE_CHECKING:
    from .context import TilerContext

log = logging.getLogger(__name__)


class ZoneController:
    """Handles zone commands.

    This component subscribes to command events and operates on the given
    window, or the focused window when none is given.

    Responsibilities:
    - CMD_CYCLE_OR_ASSIGN: Cycle a window through a zone, assigning it first
    - CMD_MOVE_TO_NEXT_SCREEN: Move focused window to the next screen
    - CMD_MOVE_TO_PREV_SCREEN: Move focused window to the previous screen
    """

    def __init__(self, bus, ctx: TilerContext):
        """Initialize zone controller.

        Args:
            bus: Event bus instance (Pypubsub)
            ctx: Shared tiler context
        """
        self.bus = bus
        self.ctx = ctx
        self._setup_subscriptions()

    def _setup_subscriptions(self):
        """Subscribe to zone command events."""
        from . import topics

        self.bus.subscribe(self._on_cycle_or_assign, topics.CMD_CYCLE_OR_ASSIGN)
        self.bus.subscribe(self._on_move_to_next_screen, topics.CMD_MOVE_TO_NEXT_SCREEN)
        self.bus.subscribe(self._on_move_to_prev_screen, topics.CMD_MOVE_TO_PREV_SCREEN)

    def _on_cycle_or_assign(self, zone_id: str, window_id: Optional[WindowId] = None):
        """Handle CMD_CYCLE_OR_ASSIGN command."""
        self.cycle_or_assign(zone_id, window_id)

    def _on_move_to_next_screen(self):
        """Handle CMD_MOVE_TO_NEXT_SCREEN command."""
        self.move_to_screen(1)

    def _on_move_to_prev_screen(self):
        """Handle CMD_MOVE_TO_PREV_SCREEN command."""
        self.move_to_screen(-1)

    def cycle_or_assign(self, zone_id: str, window_id: Optional[WindowId] = None) -> Optional[int]:
        """Cycle a window within a zone of its screen, assigning it if needed.

        Returns the tile index the window landed on, or None if the window or
        zone could not be found.
        """
        ws = self.ctx.window_system
        if window_id is None:
            window_id = ws.focused_window()
        info = ws.window_info(window_id) if window_id is not None else None
        if info is None:
            log.debug("No window to place in zone %s", zone_id)
            return None

        zone = self.ctx.registry.resolve(zone_id, info.screen_id)
        if zone is None:
            log.warning("No zone %s on screen %s", zone_id, info.screen_id)
            return None

        tile_idx = zone.cycle_window(window_id)
        if tile_idx is not None:
            zone.resize_window(window_id)
        return tile_idx

    def move_to_screen(self, step: int) -> Optional[ScreenId]:
        """Move the focused window step screens along; returns the target screen id."""
        ws = self.ctx.window_system
        window_id = ws.focused_window()
        info = ws.window_info(window_id) if window_id is not None else None
        if info is None:
            log.debug("No focused window")
            return None

        screens = ws.screens()
        if len(screens) < 2:
            log.debug("Only one screen available")
            return None

        ids = [screen.id for screen in screens]
        if info.screen_id not in ids:
            log.error("Window %s is on unknown screen %s", window_id, info.screen_id)
            return None
        target = screens[(ids.index(info.screen_id) + step) % len(screens)]

        log.debug("Moving window %s to screen %s", window_id, target.name)
        ws.move_to_screen(window_id, target.id)
        self.ctx.timers.call_later(
            self.ctx.config.window_memory.screen_move_delay,
            self._place_on_screen,
            window_id,
            info.screen_id,
            target.id,
        )
        return target.id

    def _place_on_screen(self, window_id: WindowId, source_id: ScreenId, target_id: ScreenId):
        """Settle a window that was just moved to another screen."""
        info = self.ctx.window_system.window_info(window_id)
        if info is None:
            return

        position = self.ctx.memory.get(info.app_name, target_id)
        if position is not None:
            if position.is_zone:
                zone = self.ctx.registry.resolve(position.zone_id, target_id, position.zone_name)
                if zone is not None and zone.add_window(window_id, position.tile_idx or 1):
                    zone.resize_window(window_id)
                    return
            else:
                self.ctx.placer.apply(window_id, position.frame, target_id, verify=True)
                return

        # Same zone, same tile on the new screen
        state = self.ctx.tracker.get(window_id)
        if state is None or state.zone_name is None or state.screen_id != source_id:
            return
        zone = self.ctx.registry.find(state.zone_name, target_id)
        if zone is None:
            self._scale_to_screen(window_id, source_id, target_id)
            return
        tile_idx = state.tile_idx if zone.tile(state.tile_idx or 1) else 1
        if zone.add_window(window_id, tile_idx):
            zone.resize_window(window_id)

    def _scale_to_screen(self, window_id: WindowId, source_id: ScreenId, target_id: ScreenId):
        """Map the window's current tile proportionally onto the target screen."""
        ws = self.ctx.window_system
        old_zone = self.ctx.registry.zone_for_window(window_id)
        tile = old_zone.current_tile(window_id) if old_zone is not None else None
        source, target = ws.screen(source_id), ws.screen(target_id)
        if tile is None or source is None or target is None:
            return

        old_zone.remove_window(window_id)
        scaled = tile.scaled_to(source.frame, target.frame)
        self.ctx.placer.apply(window_id, scaled.rect, target_id, verify=True)
