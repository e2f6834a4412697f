"""
Zone Registry

Holds every zone across every screen, indexed by structured key
(logical id, screen id), by screen-qualified id, and by logical id.
Rebuilt wholesale when screens or layouts change; zones are mutated in
place between rebuilds.
"""

from __future__ import annotations
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Mapping, Optional
import logging
import re

from . import topics
from .errors import ConfigurationMissing, InvalidRegion
from .grid import Grid, grid_for_screen, region_from_record
from .protocol import Rect, Screen, ScreenId, WindowId
from .tile import Tile, tile_from_record
from .zone import Zone, ZoneKey

if TYPE_CHECKING:
    from .context import TilerContext

log = logging.getLogger(__name__)

CENTER_ZONE = "center"
CENTER_KEY = "0"

# Layout keys that never become zones of their own
RESERVED_KEYS = ("default", CENTER_KEY, CENTER_ZONE)


def center_fallback_tiles(frame: Rect) -> List[Tile]:
    """Quarter, two-thirds and full-screen tiles centred on frame."""
    return [
        Tile(frame.x + frame.width / 4, frame.y + frame.height / 4,
             frame.width / 2, frame.height / 2, description="Center"),
        Tile(frame.x + frame.width / 6, frame.y + frame.height / 6,
             frame.width * 2 / 3, frame.height * 2 / 3, description="Large center"),
        Tile(frame.x, frame.y, frame.width, frame.height, description="Full screen"),
    ]


class ZoneRegistry:
    """All zones of all screens, in insertion order."""

    def __init__(self, ctx: TilerContext):
        self.ctx = ctx
        self._zones: Dict[ZoneKey, Zone] = {}
        self._by_qualified: Dict[str, Zone] = {}
        self._by_logical: Dict[str, Dict[Optional[ScreenId], Zone]] = {}

    def add(self, zone: Zone) -> Zone:
        """Register a zone, replacing any zone with the same key."""
        old = self._zones.pop(zone.key, None)
        if old is not None:
            log.debug("Replacing zone %s", old.qualified_id)
        self._zones[zone.key] = zone
        self._by_qualified[zone.qualified_id] = zone
        self._by_logical.setdefault(zone.id, {})[zone.screen_id] = zone
        return zone

    def get(self, qualified_id: str) -> Optional[Zone]:
        return self._by_qualified.get(qualified_id)

    def find(self, logical_id: str, screen_id: Optional[ScreenId]) -> Optional[Zone]:
        return self._by_logical.get(logical_id, {}).get(screen_id)

    def zones_on_screen(self, screen_id: ScreenId) -> List[Zone]:
        return [zone for zone in self._zones.values() if zone.screen_id == screen_id]

    def resolve(
        self, zone_ref: str, screen_id: ScreenId, zone_name: Optional[str] = None
    ) -> Optional[Zone]:
        """Find the zone a reference means on a given screen.

        An exact screen-qualified id on that screen wins; otherwise the zone
        with the same logical id on that screen. The key "0" names the
        center zone.
        """
        zone = self._by_qualified.get(zone_ref)
        if zone is not None and zone.screen_id == screen_id:
            return zone

        logical_id = zone_name or (zone.id if zone is not None else zone_ref)
        if logical_id == CENTER_KEY:
            logical_id = CENTER_ZONE
        return self.find(logical_id, screen_id)

    def zone_for_window(self, window_id: WindowId) -> Optional[Zone]:
        state = self.ctx.tracker.get(window_id)
        if state is None or state.zone_id is None:
            return None
        return self.get(state.zone_id)

    def remove_window_elsewhere(self, window_id: WindowId, keep: Optional[Zone] = None) -> int:
        """Remove a window from every zone except keep. Returns how many lost it."""
        removed = 0
        for zone in list(self._zones.values()):
            if zone is not keep and zone.has_window(window_id):
                zone.remove_window(window_id)
                removed += 1
        return removed

    def clear(self):
        self._zones.clear()
        self._by_qualified.clear()
        self._by_logical.clear()

    def __iter__(self) -> Iterator[Zone]:
        return iter(list(self._zones.values()))

    def __len__(self):
        return len(self._zones)

    def __contains__(self, qualified_id: str) -> bool:
        return qualified_id in self._by_qualified

    # Building zones from layout configuration

    def select_layout(self, screen: Screen, grid: Grid) -> Mapping[str, Any]:
        """Pick the layout for a screen: by screen name, by grid size, then "default"."""
        layouts = self.ctx.config.layouts
        custom = layouts.get("custom", {})
        if screen.name in custom:
            log.debug("Using custom layout for screen %s", screen.name)
            return custom[screen.name]
        if grid.name in layouts:
            log.debug("Using %s layout for screen %s", grid.name, screen.name)
            return layouts[grid.name]
        if "default" in layouts:
            log.debug("Using default layout for screen %s", screen.name)
            return layouts["default"]
        raise ConfigurationMissing(screen.name)

    def _tile_from_spec(self, grid: Grid, spec: Any) -> Optional[Tile]:
        try:
            if isinstance(spec, Mapping) and "x" in spec:
                return tile_from_record(spec)
            if isinstance(spec, Mapping):
                return grid.tile_for(region_from_record(spec))
            return grid.tile_for(spec)
        except (InvalidRegion, KeyError, TypeError, ValueError) as e:
            log.warning("Skipping tile spec %r: %s", spec, e)
            return None

    def create_zones_for_screen(self, screen: Screen) -> List[Zone]:
        """Build and register the zones of one screen.

        Every configured zone gets at least one tile, and a center zone is
        always added. Returns [] when no layout applies to the screen.
        """
        try:
            grid = grid_for_screen(screen, self.ctx.config)
        except (TypeError, ValueError, re.error) as e:
            log.error("Cannot choose a grid for screen %s: %s", screen.name, e)
            return []
        try:
            zone_configs = self.select_layout(screen, grid)
        except ConfigurationMissing as e:
            log.error("%s", e)
            return []

        zones = []
        for key, tile_specs in zone_configs.items():
            if key in RESERVED_KEYS:
                continue

            zone = Zone(key, self.ctx, screen, description=f"Zone {key} - Screen: {screen.name}")
            for spec in tile_specs:
                tile = self._tile_from_spec(grid, spec)
                if tile is not None:
                    zone.add_tile(tile)

            if not zone.tiles:
                log.debug("No tiles configured for zone %s, adding default", key)
                zone.add_tile(grid.tile_for("full").with_description("Default size"))

            zones.append(self.add(zone))

        zones.append(self.add(self._create_center_zone(screen, grid, zone_configs)))
        log.debug("Created %d zones on screen %s (%s grid)", len(zones), screen.name, grid.name)
        return zones

    def _create_center_zone(
        self, screen: Screen, grid: Grid, zone_configs: Mapping[str, Any]
    ) -> Zone:
        center = Zone(
            CENTER_ZONE, self.ctx, screen, description=f"Center zone - Screen: {screen.name}"
        )
        specs = zone_configs.get(CENTER_KEY) or zone_configs.get(CENTER_ZONE) or []
        for spec in specs:
            tile = self._tile_from_spec(grid, spec)
            if tile is not None:
                center.add_tile(tile)

        if not center.tiles:
            for tile in center_fallback_tiles(screen.frame):
                center.add_tile(tile)
        return center

    def init_for_all_screens(self) -> int:
        """Clear the registry and rebuild zones for every attached screen."""
        self.clear()
        for screen in self.ctx.window_system.screens():
            self.create_zones_for_screen(screen)

        log.info("Initialized %d zones", len(self._zones))
        self.ctx.bus.sendMessage(topics.ZONES_REBUILT, zone_count=len(self._zones))
        return len(self._zones)

    def restore_assignments(self) -> int:
        """Re-attach tracked windows to the rebuilt zones.

        Windows whose zone no longer exists (or whose tile index is out of
        range) are dropped from the tracker.
        """
        restored = 0
        tracker = self.ctx.tracker
        for state in tracker:
            zone = self.get(state.zone_id) if state.zone_id else None
            if zone is None and state.zone_name:
                zone = self.find(state.zone_name, state.screen_id)

            if zone is None or state.tile_idx is None or zone.tile(state.tile_idx) is None:
                log.debug("Dropping assignment of window %s to %s", state.window_id, state.zone_id)
                tracker.remove(state.window_id)
                continue

            zone.window_to_tile_idx[state.window_id] = state.tile_idx
            if zone.qualified_id != state.zone_id:
                tracker.track(state.window_id, zone.qualified_id, zone.id, zone.screen_id, state.tile_idx)
            restored += 1

        log.debug("Restored %d zone assignments", restored)
        return restored
