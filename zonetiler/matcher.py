"""
Placement Matcher

Scores every tile of every zone on a window's screen against the window's
frame and picks the most plausible (zone, tile) pair.

    score = 0.5 * overlap + 0.3 * size similarity + 0.2 * center proximity

Weights and the rejection threshold are tuned constants; keep them as is.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Optional

from .protocol import Rect, ScreenId
from .tile import Tile

if TYPE_CHECKING:
    from .registry import ZoneRegistry
    from .zone import Zone

OVERLAP_WEIGHT = 0.5
SIZE_WEIGHT = 0.3
PROXIMITY_WEIGHT = 0.2

# Candidates scoring at or below this are not a match
MATCH_THRESHOLD = 0.4


@dataclass(frozen=True)
class ZoneMatch:
    """Best-scoring zone and 1-based tile index for a window."""

    zone: Zone
    tile_idx: int
    score: float


def _ratio(a: float, b: float) -> float:
    larger = max(a, b)
    if larger <= 0:
        return 0.0
    return min(a, b) / larger


def size_similarity(tile: Tile, rect: Rect) -> float:
    """Mean of the width and height ratios (smaller over larger), in [0, 1]."""
    return (_ratio(tile.width, rect.width) + _ratio(tile.height, rect.height)) / 2


def center_proximity(tile: Tile, rect: Rect, screen_diagonal: float) -> float:
    """1 - center distance / screen diagonal, clamped to [0, 1]."""
    if screen_diagonal <= 0:
        return 0.0
    distance = tile.distance_from_center(*rect.center)
    return max(0.0, min(1.0, 1.0 - distance / screen_diagonal))


def score_tile(tile: Tile, rect: Rect, screen_diagonal: float) -> float:
    return (
        OVERLAP_WEIGHT * tile.overlap_percentage(rect)
        + SIZE_WEIGHT * size_similarity(tile, rect)
        + PROXIMITY_WEIGHT * center_proximity(tile, rect, screen_diagonal)
    )


def best_match(zones: Iterable[Zone], rect: Rect, screen_diagonal: float) -> Optional[ZoneMatch]:
    """Return the strict-maximum candidate, first one winning ties."""
    best: Optional[ZoneMatch] = None
    for zone in zones:
        for tile_idx, tile in enumerate(zone.tiles, start=1):
            score = score_tile(tile, rect, screen_diagonal)
            if best is None or score > best.score:
                best = ZoneMatch(zone, tile_idx, score)

    if best is None or best.score <= MATCH_THRESHOLD:
        return None
    return best


def find_best_zone_for_window(
    registry: ZoneRegistry, window_rect: Rect, screen_id: ScreenId
) -> Optional[ZoneMatch]:
    """Match a window frame against the zones bound to screen_id."""
    zones = registry.zones_on_screen(screen_id)
    if not zones:
        return None

    screen = zones[0].screen
    diagonal = screen.diagonal if screen is not None else window_rect.diagonal
    return best_match(zones, window_rect, diagonal)
