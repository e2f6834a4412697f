"""
Zone

A named region of one screen holding an ordered list of candidate tiles and
the tile index each assigned window currently occupies.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Dict, FrozenSet, Iterable, List, Optional, Union
import logging

from . import topics
from .protocol import Rect, Screen, ScreenId, WindowId
from .tile import Tile

if TYPE_CHECKING:
    from .context import TilerContext

log = logging.getLogger(__name__)


class CycleDirection(Enum):
    """Named cycle directions. An int direction selects a tile explicitly."""

    FORWARD = "forward"
    BACKWARD = "backward"
    FIRST = "first"
    LAST = "last"


Direction = Union[CycleDirection, str, int]


def next_tile_index(current: int, direction: Direction, count: int) -> int:
    """Compute the 1-based tile index reached from current.

    forward = (i mod N) + 1, backward = ((i - 2) mod N) + 1, first = 1,
    last = N, numeric d = ((d - 1) mod N) + 1.
    """
    if count < 1:
        raise ValueError("Cannot cycle through a zone without tiles")
    if isinstance(direction, int) and not isinstance(direction, bool):
        return ((direction - 1) % count) + 1

    direction = CycleDirection(direction)
    if direction is CycleDirection.FORWARD:
        return (current % count) + 1
    elif direction is CycleDirection.BACKWARD:
        return ((current - 2) % count) + 1
    elif direction is CycleDirection.FIRST:
        return 1
    return count


@dataclass(frozen=True)
class ZoneKey:
    """Structured zone identity: logical id plus the screen it is bound to."""

    logical_id: str
    screen_id: Optional[ScreenId] = None

    @property
    def qualified_id(self) -> str:
        if self.screen_id is None:
            return self.logical_id
        return f"{self.logical_id}_{self.screen_id}"


class Zone:
    """A screen region offering several tiles to cycle a window through.

    Invariants:
    - every tile index in window_to_tile_idx is a valid 1-based index
    - a window is in at most one zone; add_window evicts it from the others
      through the registry before assigning it here
    """

    def __init__(
        self,
        zone_id: str,
        ctx: TilerContext,
        screen: Optional[Screen] = None,
        tiles: Optional[Iterable[Tile]] = None,
        tags: Iterable[str] = (),
        description: str = "",
    ):
        self.id = zone_id
        self.ctx = ctx
        self.screen = screen
        self.tiles: List[Tile] = list(tiles or ())
        self.tags: FrozenSet[str] = frozenset(tags)
        self.description = description
        self.window_to_tile_idx: Dict[WindowId, int] = {}

    @property
    def key(self) -> ZoneKey:
        return ZoneKey(self.id, self.screen.id if self.screen else None)

    @property
    def qualified_id(self) -> str:
        return self.key.qualified_id

    @property
    def screen_id(self) -> Optional[ScreenId]:
        return self.screen.id if self.screen else None

    @property
    def tile_count(self) -> int:
        return len(self.tiles)

    def add_tile(self, tile: Tile) -> Zone:
        self.tiles.append(tile)
        return self

    def tile(self, tile_idx: int) -> Optional[Tile]:
        if 1 <= tile_idx <= len(self.tiles):
            return self.tiles[tile_idx - 1]
        return None

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags

    def has_window(self, window_id: WindowId) -> bool:
        return window_id in self.window_to_tile_idx

    def windows(self) -> List[WindowId]:
        return list(self.window_to_tile_idx)

    def current_tile(self, window_id: WindowId) -> Optional[Tile]:
        tile_idx = self.window_to_tile_idx.get(window_id)
        return self.tile(tile_idx) if tile_idx is not None else None

    def add_window(self, window_id: WindowId, tile_idx: int = 1) -> bool:
        """Assign a window to this zone at tile_idx.

        Removes the window from every other zone first, records the
        assignment in the tracker and remembers it for the window's
        application on this zone's screen.
        """
        if self.tile(tile_idx) is None:
            log.warning(
                "Cannot add window %s to zone %s: invalid tile index %s",
                window_id,
                self.qualified_id,
                tile_idx,
            )
            return False

        if self.ctx.registry is not None:
            self.ctx.registry.remove_window_elsewhere(window_id, keep=self)

        self.window_to_tile_idx[window_id] = tile_idx
        self.ctx.tracker.track(window_id, self.qualified_id, self.id, self.screen_id, tile_idx)
        log.debug("Added window %s to zone %s at tile %d", window_id, self.qualified_id, tile_idx)

        self._remember(window_id, tile_idx)
        self.ctx.bus.sendMessage(
            topics.ZONE_WINDOW_ADDED,
            window_id=window_id,
            zone_id=self.qualified_id,
            tile_idx=tile_idx,
        )
        return True

    def remove_window(self, window_id: WindowId) -> bool:
        """Unassign a window. Returns False if it was not in this zone."""
        if window_id not in self.window_to_tile_idx:
            log.debug("Window %s not in zone %s", window_id, self.qualified_id)
            return False

        del self.window_to_tile_idx[window_id]
        state = self.ctx.tracker.get(window_id)
        if state is not None and state.zone_id == self.qualified_id:
            self.ctx.tracker.remove(window_id)
        log.debug("Removed window %s from zone %s", window_id, self.qualified_id)

        self.ctx.bus.sendMessage(
            topics.ZONE_WINDOW_REMOVED, window_id=window_id, zone_id=self.qualified_id
        )
        return True

    def cycle_window(self, window_id: WindowId, direction: Direction = "forward") -> Optional[int]:
        """Advance a window to another tile and return the landing index.

        A window not yet in this zone is added at tile 1 instead. Returns
        None when the zone has no tiles.
        """
        if not self.tiles:
            log.error("Cannot cycle window %s: zone %s has no tiles", window_id, self.qualified_id)
            return None

        current = self.window_to_tile_idx.get(window_id)
        if current is None:
            return 1 if self.add_window(window_id, 1) else None

        next_idx = next_tile_index(current, direction, len(self.tiles))
        self.window_to_tile_idx[window_id] = next_idx
        self.ctx.tracker.track(window_id, self.qualified_id, self.id, self.screen_id, next_idx)
        log.debug(
            "Cycled window %s to tile %d in zone %s (%s)",
            window_id,
            next_idx,
            self.qualified_id,
            self.tiles[next_idx - 1].description,
        )

        self._remember(window_id, next_idx)
        self.ctx.bus.sendMessage(
            topics.ZONE_TILE_CHANGED,
            window_id=window_id,
            zone_id=self.qualified_id,
            tile_idx=next_idx,
        )
        return next_idx

    def resize_window(self, window_id: WindowId, verify: Optional[bool] = None) -> Optional[Rect]:
        """Apply the window's assigned tile, moving it to this zone's screen first.

        Returns the requested frame, or None when the window is not in this
        zone or no longer exists. Verification defaults to on for problem
        applications only.
        """
        tile = self.current_tile(window_id)
        if tile is None:
            log.warning("Cannot resize window %s: not in zone %s", window_id, self.qualified_id)
            return None

        info = self.ctx.window_system.window_info(window_id)
        if info is None:
            log.debug("Window %s vanished before resize", window_id)
            return None

        target_screen = self.screen_id if self.screen else info.screen_id
        if verify is None:
            verify = self.ctx.is_problem_app(info.app_name)
        self.ctx.placer.apply(window_id, tile.rect, target_screen, verify=verify)
        return tile.rect

    def _remember(self, window_id: WindowId, tile_idx: int):
        if self.screen is None or self.ctx.memory is None:
            return
        info = self.ctx.window_system.window_info(window_id)
        if info is None:
            return
        self.ctx.memory.remember_zone(
            info.app_name, self.screen.id, self.qualified_id, self.id, tile_idx
        )

    def __repr__(self):
        return f"Zone({self.qualified_id!r}, tiles={len(self.tiles)}, windows={len(self.window_to_tile_idx)})"

