"""
Placement Reconciler

Places new windows and keeps remembered positions current:

- window created: after a settle delay, try the remembered position for
  (app, screen), then the placement matcher, then the configured fallback
  zone
- window moved/resized: debounce per window, then remember the new position
- screens changed: rebuild zones, restore assignments and re-apply tiles
"""

from __future__ import annotations
from typing import TYPE_CHECKING, Optional
import logging

from .matcher import find_best_zone_for_window
from .protocol import WindowId, WindowInfo
from .zone import Zone

if TYPE_CHECKING:
    from .context import TilerContext

log = logging.getLogger(__name__)

PLACED_REMEMBERED = "remembered"
PLACED_MATCHED = "matched"
PLACED_FALLBACK = "fallback"


class PlacementReconciler:
    """Reconciles window-system notifications with zones and memory.

    This component subscribes to window and screen notifications and to the
    position capture/apply commands.

    Responsibilities:
    - WINDOW_CREATED: schedule placement of new windows
    - WINDOW_MOVED / WINDOW_RESIZED: debounce, then remember the position
    - WINDOW_CLOSED: cancel pending work and unassign the window
    - SCREENS_CHANGED: rebuild zones for the new screen layout
    - CMD_CAPTURE_POSITIONS / CMD_APPLY_POSITIONS / CMD_REFRESH
    """

    def __init__(self, bus, ctx: TilerContext):
        """Initialize the reconciler.

        Args:
            bus: Event bus instance (Pypubsub)
            ctx: Shared tiler context
        """
        self.bus = bus
        self.ctx = ctx
        self._setup_subscriptions()

    def _setup_subscriptions(self):
        """Subscribe to events the reconciler cares about."""
        from . import topics

        # Notification events
        self.bus.subscribe(self._on_window_created, topics.WINDOW_CREATED)
        self.bus.subscribe(self._on_window_moved, topics.WINDOW_MOVED)
        self.bus.subscribe(self._on_window_resized, topics.WINDOW_RESIZED)
        self.bus.subscribe(self._on_window_closed, topics.WINDOW_CLOSED)
        self.bus.subscribe(self._on_screens_changed, topics.SCREENS_CHANGED)

        # Command events
        self.bus.subscribe(self._on_capture_positions, topics.CMD_CAPTURE_POSITIONS)
        self.bus.subscribe(self._on_apply_positions, topics.CMD_APPLY_POSITIONS)
        self.bus.subscribe(self._on_refresh, topics.CMD_REFRESH)

    @property
    def settings(self):
        return self.ctx.config.window_memory

    # Window creation

    def _on_window_created(self, window_id: WindowId):
        """Handle WINDOW_CREATED event."""
        self.on_window_created(window_id)

    def on_window_created(self, window_id: WindowId) -> bool:
        """Schedule placement of a new window. Returns True if scheduled."""
        if not self.settings.enabled:
            return False

        info = self.ctx.window_system.window_info(window_id)
        if info is None or not info.is_standard or info.is_fullscreen:
            return False
        if window_id in self.ctx.tracker:
            log.debug("Window %s already tracked, not placing", window_id)
            return False
        if self.ctx.memory.is_excluded(info.app_name):
            log.debug("Skipping excluded app: %s", info.app_name)
            return False

        delay = self.settings.settle_delay
        if self.ctx.is_problem_app(info.app_name):
            delay = self.settings.problem_app_delay
            log.debug("Using longer settle delay for problem app: %s", info.app_name)

        self.ctx.timers.call_later(delay, self.place_new_window, window_id)
        return True

    def place_new_window(self, window_id: WindowId) -> Optional[str]:
        """Place a settled window. Returns how it was placed, or None."""
        info = self.ctx.window_system.window_info(window_id)
        if info is None or not info.is_standard:
            log.debug("Window %s is no longer valid", window_id)
            return None
        if window_id in self.ctx.tracker:
            return None

        if self.apply_remembered_position(info):
            return PLACED_REMEMBERED

        match = find_best_zone_for_window(self.ctx.registry, info.frame, info.screen_id)
        if match is not None:
            log.debug(
                "Matched window %s to zone %s tile %d (score %.2f)",
                window_id,
                match.zone.qualified_id,
                match.tile_idx,
                match.score,
            )
            self.place_in_zone(window_id, match.zone, match.tile_idx)
            return PLACED_MATCHED

        if self.settings.auto_tile_fallback and self.apply_fallback_position(info):
            return PLACED_FALLBACK

        log.debug("No placement for window %s (%s)", window_id, info.app_name)
        return None

    def apply_remembered_position(self, info: WindowInfo) -> bool:
        """Apply the remembered zone or frame of the window's app on its screen."""
        position = self.ctx.memory.get(info.app_name, info.screen_id)
        if position is None:
            return False

        if position.is_zone:
            zone = self.ctx.registry.resolve(position.zone_id, info.screen_id, position.zone_name)
            if zone is None:
                log.debug("Remembered zone %s not found on screen %s", position.zone_id, info.screen_id)
                return False
            tile_idx = position.tile_idx if zone.tile(position.tile_idx or 1) else 1
            log.debug("Restoring %s to zone %s tile %d", info.app_name, zone.qualified_id, tile_idx)
            return self.place_in_zone(info.window_id, zone, tile_idx)

        log.debug("Restoring remembered frame of %s", info.app_name)
        return self.ctx.placer.apply(info.window_id, position.frame, info.screen_id, verify=True)

    def apply_fallback_position(self, info: WindowInfo) -> bool:
        """Assign the window to its app's configured zone, or the default zone."""
        zone_ref = self.settings.app_zones.get(info.app_name, self.settings.default_zone)
        zone = self.ctx.registry.resolve(zone_ref, info.screen_id)
        if zone is None:
            log.debug("Fallback zone %s not found on screen %s", zone_ref, info.screen_id)
            return False
        return self.place_in_zone(info.window_id, zone, 1)

    def place_in_zone(self, window_id: WindowId, zone: Zone, tile_idx: int) -> bool:
        if not zone.add_window(window_id, tile_idx):
            return False
        return zone.resize_window(window_id, verify=True) is not None

    # Moves and resizes

    def _on_window_moved(self, window_id: WindowId):
        """Handle WINDOW_MOVED event."""
        self.on_window_changed(window_id)

    def _on_window_resized(self, window_id: WindowId):
        """Handle WINDOW_RESIZED event."""
        self.on_window_changed(window_id)

    def on_window_changed(self, window_id: WindowId) -> bool:
        """Debounce a move/resize notification. Returns True if scheduled."""
        info = self.ctx.window_system.window_info(window_id)
        if info is None or not info.is_standard:
            return False
        if self.ctx.placer.is_placing(window_id):
            # Our own placement is still settling
            return False

        self.ctx.debouncer.schedule(
            window_id, self.settings.debounce_delay, self.remember_window, window_id
        )
        return True

    def remember_window(self, window_id: WindowId) -> bool:
        """Remember the window's zone assignment, or its exact frame."""
        info = self.ctx.window_system.window_info(window_id)
        if info is None or not info.is_standard:
            return False

        memory = self.ctx.memory
        if memory.is_excluded(info.app_name):
            return False

        state = self.ctx.tracker.get(window_id)
        if state is not None and state.zone_id is not None:
            return memory.remember_zone(
                info.app_name, info.screen_id, state.zone_id, state.zone_name, state.tile_idx or 1
            )
        return memory.remember_frame(info.app_name, info.screen_id, info.frame)

    # Window close

    def _on_window_closed(self, window_id: WindowId):
        """Handle WINDOW_CLOSED event."""
        self.ctx.debouncer.cancel(window_id)
        zone = self.ctx.registry.zone_for_window(window_id)
        if zone is not None:
            zone.remove_window(window_id)
        else:
            self.ctx.tracker.remove(window_id)

    # Screens

    def _on_screens_changed(self):
        """Handle SCREENS_CHANGED event."""
        log.info("Screen configuration change detected")
        self.ctx.timers.call_later(self.settings.screen_change_delay, self.rebuild)

    def rebuild(self) -> int:
        """Rebuild zones for the current screens and re-place tracked windows.

        Returns the number of windows re-applied to their tiles.
        """
        registry = self.ctx.registry
        registry.init_for_all_screens()
        registry.restore_assignments()
        self.ctx.memory.reload()
        self.map_existing_windows()

        resized = 0
        for zone in registry:
            for window_id in zone.windows():
                if zone.resize_window(window_id) is not None:
                    resized += 1
        log.info("Re-applied %d windows after screen change", resized)
        return resized

    def map_existing_windows(self) -> int:
        """Assign untracked visible windows to their best-matching zones."""
        mapped = 0
        for info in self.ctx.window_system.all_windows():
            if not info.is_standard or info.is_minimized:
                continue
            if info.window_id in self.ctx.tracker:
                continue

            match = find_best_zone_for_window(self.ctx.registry, info.frame, info.screen_id)
            if match is not None and match.zone.add_window(info.window_id, match.tile_idx):
                mapped += 1

        log.info("Mapped %d windows to zones", mapped)
        return mapped

    # Commands

    def _on_capture_positions(self):
        """Handle CMD_CAPTURE_POSITIONS command."""
        self.capture_all_positions()

    def _on_apply_positions(self):
        """Handle CMD_APPLY_POSITIONS command."""
        self.apply_all_positions()

    def _on_refresh(self):
        """Handle CMD_REFRESH command."""
        self.ctx.registry.init_for_all_screens()
        self.ctx.registry.restore_assignments()
        self.map_existing_windows()

    def capture_all_positions(self) -> int:
        """Remember the position of every visible standard window."""
        captured = sum(
            1
            for info in self.ctx.window_system.all_windows()
            if info.is_standard and not info.is_minimized and self.remember_window(info.window_id)
        )
        log.info("Captured positions of %d windows", captured)
        return captured

    def apply_all_positions(self) -> int:
        """Apply remembered positions to every visible standard window."""
        applied = sum(
            1
            for info in self.ctx.window_system.all_windows()
            if info.is_placeable and self.apply_remembered_position(info)
        )
        log.info("Applied remembered positions to %d windows", applied)
        return applied
