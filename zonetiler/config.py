"""
Tiler Configuration

Dataclasses describing layouts, screen detection, margins and window-memory
behaviour, plus helpers to load them from JSON.
"""

from __future__ import annotations
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union
import copy
import json
import os
import re

GridSpec = Union[str, Dict[str, int]]

_GRID_SPEC_RE = re.compile(r"^\s*(\d+)\s*x\s*(\d+)\s*$")


def parse_grid_spec(spec: GridSpec) -> Tuple[int, int]:
    """
    Parse a grid size into (cols, rows).

    Accepts:
    - String: "4x3"
    - Dict: {"cols": 4, "rows": 3}
    """
    if isinstance(spec, str):
        match = _GRID_SPEC_RE.match(spec)
        if not match:
            raise ValueError(f"Invalid grid spec: {spec!r}. Use 'COLSxROWS'")
        cols, rows = int(match.group(1)), int(match.group(2))
    elif isinstance(spec, dict) and "cols" in spec and "rows" in spec:
        cols, rows = int(spec["cols"]), int(spec["rows"])
    else:
        raise ValueError(f"Invalid grid spec type: {type(spec)}. Use 'COLSxROWS' or dict")
    if cols < 1 or rows < 1:
        raise ValueError(f"Grid dimensions must be positive: {cols}x{rows}")
    return cols, rows


def parse_color(color: Union[str, Tuple[int, int, int, int]]) -> Tuple[int, int, int, int]:
    """
    Parse a color value into RGBA tuple.

    Accepts:
    - Hex string: "#RRGGBB" or "#RRGGBBAA"
    - Tuple: (R, G, B, A) where each value is 0-255
    """
    if isinstance(color, str):
        value = color.lstrip("#")
        if len(value) == 6:
            return (int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16), 0xFF)
        elif len(value) == 8:
            return (
                int(value[0:2], 16),
                int(value[2:4], 16),
                int(value[4:6], 16),
                int(value[6:8], 16),
            )
        raise ValueError(f"Invalid color format: {color}. Use #RRGGBB or #RRGGBBAA")
    elif isinstance(color, (tuple, list)) and len(color) == 4:
        return tuple(int(c) for c in color)
    raise ValueError(f"Invalid color type: {type(color)}. Use hex string or RGBA tuple")


# Zone key -> list of region specs, per layout name ("4x3", "default", ...)
DEFAULT_LAYOUTS: Dict[str, Dict[str, List[Any]]] = {
    "4x3": {
        "y": ["a1:a2", "a1", "a1:b2"],
        "h": ["a1:b3", "a1:a3", "a1:c3", "a2"],
        "n": ["a3", "a2:a3", "a3:b3"],
        "u": ["b1:b3", "b1:b2", "b1"],
        "j": ["b1:c3", "b1:b3", "b2"],
        "m": ["b1:b3", "b2:c3", "b3"],
        "i": ["d1:d3", "d1:d2", "d1"],
        "k": ["c1:d3", "c1:c3", "c2"],
        ",": ["d1:d3", "d2:d3", "d3"],
        "o": ["c1:d1", "d1", "c1:d2"],
        "l": ["d1:d3", "c1:d3", "b1:d3", "d2"],
        ".": ["d3", "d2:d3", "c3:d3"],
    },
    "2x2": {
        "y": ["a1", "a1:a2", "a1:b1"],
        "h": ["a1:a2", "a1:b2"],
        "n": ["a2", "a2:b2"],
        "u": ["a1:b1", "b1"],
        "j": ["a1:b2"],
        "m": ["a2:b2", "b2"],
        "i": ["b1", "a1:b1"],
        "k": ["b1:b2", "b2"],
        "0": ["a1:b2", "a1:b1", "a2:b2"],
        ",": ["b2", "a2:b2"],
    },
    "1x3": {
        "y": ["a1", "a1:a2"],
        "h": ["a2", "a1:a3"],
        "n": ["a3", "a2:a3"],
        "0": ["a1:a3", "a2", "a1"],
    },
    "1x2": {
        "y": ["a1"],
        "h": ["a2"],
        "0": ["a1:a2", "a1", "a2"],
    },
    "default": {
        "default": ["full", "center", "left-half", "right-half", "top-half", "bottom-half"],
    },
}


@dataclass
class Margins:
    """Gaps between grid cells and, optionally, along the screen edges."""

    enabled: bool = False
    size: float = 0
    screen_edge: bool = False

    def __post_init__(self):
        if self.size < 0:
            raise ValueError(f"Margin size must not be negative: {self.size}")

    @property
    def active_size(self) -> float:
        return self.size if self.enabled else 0


@dataclass
class WindowMemoryConfig:
    """Remembered-position behaviour and reconciler timing."""

    enabled: bool = True
    cache_dir: str = "~/.config/zonetiler"
    excluded_apps: List[str] = field(default_factory=list)

    # Fallback auto-tiling when neither memory nor the matcher place a window
    auto_tile_fallback: bool = False
    default_zone: str = "center"
    app_zones: Dict[str, str] = field(default_factory=dict)

    # Timing (seconds)
    settle_delay: float = 0.3
    problem_app_delay: float = 0.5
    debounce_delay: float = 0.5
    verify_delay: float = 0.2
    screen_change_delay: float = 0.5
    screen_move_delay: float = 0.1

    # Per-edge tolerance (pixels) when verifying an applied frame
    tolerance: float = 10

    def __post_init__(self):
        self.cache_dir = os.path.expanduser(self.cache_dir)


@dataclass
class TilerConfig:
    """Tiler configuration."""

    # Layout name ("4x3", screen name under "custom", "default") -> zone key -> region specs
    layouts: Dict[str, Any] = field(default_factory=lambda: copy.deepcopy(DEFAULT_LAYOUTS))

    # Screen name -> {"grid": {"cols": .., "rows": ..}}
    custom_screens: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    # {"patterns": {regex: grid}, "sizes": {...}, "portrait": {...}}
    screen_detection: Dict[str, Any] = field(default_factory=dict)

    margins: Margins = field(default_factory=Margins)

    # Applications that misreport geometry right after launch
    problem_apps: List[str] = field(default_factory=list)

    # Focus feedback
    flash_on_focus: bool = False
    flash_color: Union[str, Tuple[int, int, int, int]] = "#8080ff4c"
    flash_duration: float = 0.2

    window_memory: WindowMemoryConfig = field(default_factory=WindowMemoryConfig)

    def __post_init__(self):
        """Normalize nested sections given as plain dicts."""
        if isinstance(self.margins, dict):
            self.margins = Margins(**self.margins)
        if isinstance(self.window_memory, dict):
            self.window_memory = WindowMemoryConfig(**self.window_memory)
        self.flash_color = parse_color(self.flash_color)
        for screen_conf in self.custom_screens.values():
            if "grid" in screen_conf:
                parse_grid_spec(screen_conf["grid"])

    def is_problem_app(self, app_name: str) -> bool:
        return app_name in self.problem_apps

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> TilerConfig:
        """Build a config from plain data, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")
        return cls(**data)


def load_config(path: Union[str, Path]) -> TilerConfig:
    """Load a TilerConfig from a JSON file."""
    path = Path(path).expanduser()
    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Configuration root must be an object: {path}")
    return TilerConfig.from_dict(data)


def default_config_path() -> Optional[Path]:
    """Return the user's config file if one exists."""
    env_path = os.getenv("ZONETILER_CONFIG")
    if env_path:
        return Path(env_path).expanduser()
    path = Path("~/.config/zonetiler/config.json").expanduser()
    return path if path.exists() else None
