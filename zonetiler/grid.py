"""
Screen Grids

Partitions a screen into a cols x rows grid and resolves region specs
("b3", "a1:c3", "left-half", ...) into tiles. Also picks a grid size for a
screen from configuration, its name, or its resolution.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple, Union
import logging
import math
import re

from .config import Margins, TilerConfig, parse_grid_spec
from .errors import InvalidRegion
from .protocol import Rect, Screen
from .tile import Tile

log = logging.getLogger(__name__)

COLUMNS = "abcdefghijklmno"

Bound = Union[int, str]

_COORD_RE = re.compile(r"^([a-o])(\d+)$")
_REGION_RE = re.compile(r"^([a-o]\d+)(?::([a-o]\d+))?$")
_PERCENT_RE = re.compile(r"^(\d+(?:\.\d+)?)%$")
_SIZE_RE = re.compile(r"(\d+(?:\.\d+)?)[\s-]?inch", re.IGNORECASE)


@dataclass(frozen=True)
class Region:
    """Grid region bounds, 1-based and inclusive.

    Bounds may be negative (counted from the last column/row) or a
    percentage string such as "50%".
    """

    start_col: Bound
    start_row: Bound
    end_col: Bound
    end_row: Bound


NAMED_REGIONS: Dict[str, Region] = {
    "full": Region(1, 1, -1, -1),
    "center": Region(2, 2, -2, -2),
    "left-half": Region(1, 1, "50%", -1),
    "right-half": Region("50%", 1, -1, -1),
    "top-half": Region(1, 1, -1, "50%"),
    "bottom-half": Region(1, "50%", -1, -1),
}


def parse_coordinates(coords: str) -> Tuple[int, int]:
    """Parse a cell such as "b3" into (col, row) = (2, 3)."""
    match = _COORD_RE.match(coords.strip().lower()) if isinstance(coords, str) else None
    if not match:
        raise InvalidRegion(f"Invalid coordinate format: {coords!r}")
    return COLUMNS.index(match.group(1)) + 1, int(match.group(2))


def column_to_letter(col: int) -> str:
    if not 1 <= col <= len(COLUMNS):
        raise InvalidRegion(f"Invalid column number: {col}")
    return COLUMNS[col - 1]


def parse_region(spec: str) -> Region:
    """Parse "a1:c3", a single cell "a1", or a named region like "left-half"."""
    if not isinstance(spec, str):
        raise InvalidRegion(f"Invalid region: {spec!r}")
    key = spec.strip().lower()
    if key in NAMED_REGIONS:
        return NAMED_REGIONS[key]

    match = _REGION_RE.match(key)
    if not match:
        raise InvalidRegion(f"Invalid region format: {spec!r}")
    start_col, start_row = parse_coordinates(match.group(1))
    end_col, end_row = parse_coordinates(match.group(2) or match.group(1))
    return Region(start_col, start_row, end_col, end_row)


def region_from_record(record: Mapping[str, Any]) -> Region:
    """Build a Region from a {start_col, start_row, end_col, end_row} mapping."""
    try:
        return Region(
            record["start_col"], record["start_row"], record["end_col"], record["end_row"]
        )
    except KeyError as e:
        raise InvalidRegion(f"Region record is missing {e.args[0]!r}") from e


def _resolve_bound(value: Bound, count: int, is_start: bool) -> int:
    if isinstance(value, str):
        match = _PERCENT_RE.match(value.strip())
        if not match:
            raise InvalidRegion(f"Invalid region bound: {value!r}")
        scaled = count * float(match.group(1)) / 100
        # Start bounds round up and end bounds round down
        return max(1, math.ceil(scaled)) if is_start else min(count, math.floor(scaled))
    if value < 0:
        return count + value + 1
    return value


@dataclass
class Grid:
    """A cols x rows partition of one screen frame."""

    cols: int
    rows: int
    frame: Rect
    margins: Margins = field(default_factory=Margins)

    def __post_init__(self):
        if self.cols < 1 or self.rows < 1:
            raise ValueError(f"Grid dimensions must be positive: {self.cols}x{self.rows}")

    @property
    def name(self) -> str:
        return f"{self.cols}x{self.rows}"

    @property
    def cell_width(self) -> float:
        return self.frame.width / self.cols

    @property
    def cell_height(self) -> float:
        return self.frame.height / self.rows

    def bounds(self, region: Region) -> Tuple[int, int, int, int]:
        """Resolve a region into clamped (start_col, start_row, end_col, end_row)."""
        start_col = _resolve_bound(region.start_col, self.cols, True)
        start_row = _resolve_bound(region.start_row, self.rows, True)
        end_col = _resolve_bound(region.end_col, self.cols, False)
        end_row = _resolve_bound(region.end_row, self.rows, False)

        start_col = max(1, min(start_col, self.cols))
        start_row = max(1, min(start_row, self.rows))
        end_col = max(1, min(end_col, self.cols))
        end_row = max(1, min(end_row, self.rows))

        if start_col > end_col:
            start_col, end_col = end_col, start_col
        if start_row > end_row:
            start_row, end_row = end_row, start_row
        return start_col, start_row, end_col, end_row

    def _insets(self, start: int, end: int, count: int) -> Tuple[float, float]:
        """Leading and trailing inset along one axis.

        Interior edges take half a margin each so neighbouring tiles end up
        exactly one margin apart.
        """
        size = self.margins.active_size
        if not size:
            return 0.0, 0.0
        edge = size if self.margins.screen_edge else 0.0
        lead = edge if start == 1 else size / 2
        trail = edge if end == count else size / 2
        return lead, trail

    def rect_for_bounds(self, start_col: int, start_row: int, end_col: int, end_row: int) -> Rect:
        x0 = self.frame.x + (start_col - 1) * self.cell_width
        y0 = self.frame.y + (start_row - 1) * self.cell_height
        x1 = self.frame.x + end_col * self.cell_width
        y1 = self.frame.y + end_row * self.cell_height

        left, right = self._insets(start_col, end_col, self.cols)
        top, bottom = self._insets(start_row, end_row, self.rows)
        return Rect(x0 + left, y0 + top, (x1 - x0) - left - right, (y1 - y0) - top - bottom)

    def tile_for(self, spec: Union[str, Region]) -> Tile:
        """Resolve a region spec into a tile described by its cell range."""
        region = spec if isinstance(spec, Region) else parse_region(spec)
        start_col, start_row, end_col, end_row = self.bounds(region)
        rect = self.rect_for_bounds(start_col, start_row, end_col, end_row)

        description = f"{column_to_letter(start_col)}{start_row}"
        if (start_col, start_row) != (end_col, end_row):
            description += f":{column_to_letter(end_col)}{end_row}"
        return Tile(rect.x, rect.y, rect.width, rect.height, description=description)

    def cell(self, coords: str) -> Tile:
        col, row = parse_coordinates(coords)
        if not (1 <= col <= self.cols and 1 <= row <= self.rows):
            raise InvalidRegion(
                f"Cell {coords} out of bounds (grid is {self.cols}x{self.rows})"
            )
        return self.tile_for(Region(col, row, col, row))


def _size_rule_matches(size: float, rule: Mapping[str, Any]) -> bool:
    if "min" in rule and size < rule["min"]:
        return False
    if "max" in rule and size > rule["max"]:
        return False
    return "min" in rule or "max" in rule


def _grid_from_size(screen: Screen, rules: Mapping[str, Any]) -> Optional[Tuple[int, int]]:
    match = _SIZE_RE.search(screen.name)
    if not match:
        return None
    size = float(match.group(1))
    for rule in rules.values():
        if _size_rule_matches(size, rule) and "layout" in rule:
            log.debug("Using %s-inch size rule for screen %s", size, screen.name)
            return parse_grid_spec(rule["layout"])
    return None


def _grid_from_resolution(screen: Screen) -> Tuple[int, int]:
    width, height = screen.frame.width, screen.frame.height
    if screen.is_portrait:
        if width >= 1440 or height >= 2560:
            return 1, 3
        return 1, 2
    if width >= 3840 or height >= 2160:
        return 4, 3
    if width >= 3440 or (height and width / height > 2.0):
        return 4, 2
    if width >= 2560 or height >= 1440:
        return 3, 3
    if width >= 1920 or height >= 1080:
        return 3, 2
    return 2, 2


def grid_for_screen(screen: Screen, config: TilerConfig) -> Grid:
    """Choose a grid for a screen.

    Order: explicit custom_screens entry, screen-name pattern, size parsed
    from the screen name, then a resolution-based fallback.
    """
    dims: Optional[Tuple[int, int]] = None

    custom = config.custom_screens.get(screen.name)
    if custom and "grid" in custom:
        dims = parse_grid_spec(custom["grid"])
        log.debug("Using custom grid for screen %s", screen.name)

    detection = config.screen_detection
    if dims is None:
        for pattern, spec in detection.get("patterns", {}).items():
            if re.search(pattern, screen.name):
                dims = parse_grid_spec(spec)
                log.debug("Screen %s matched pattern %r", screen.name, pattern)
                break

    if dims is None:
        rules = detection.get("portrait" if screen.is_portrait else "sizes", {})
        dims = _grid_from_size(screen, rules)

    if dims is None:
        dims = _grid_from_resolution(screen)

    cols, rows = dims
    log.debug("Using %dx%d grid for screen %s", cols, rows, screen.name)
    return Grid(cols, rows, screen.frame, config.margins)
