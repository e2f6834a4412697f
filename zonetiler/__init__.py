"""
Zone Tiler (zonetiler)

Zone-based window placement for any host window system.

This package provides:
- Screen grids and region specs ("a1:c3", "left-half") resolved into tiles
- Zones holding ordered tiles that windows cycle through
- A placement matcher that snaps windows to the most plausible zone
- Per-application, per-screen remembered positions
- Debounced position tracking and verified frame application
- Focus cycling within zones and cairo-rendered zone overlays

The host implements WindowSystem, publishes window notifications on the
event bus (see zonetiler.topics) and calls Tiler.tick() from its loop.

Example usage:
    from pubsub import pub
    from zonetiler import Tiler, topics

    tiler = Tiler.from_config_file(MyWindowSystem())
    tiler.start()

    pub.sendMessage(topics.WINDOW_CREATED, window_id=42)
    pub.sendMessage(topics.CMD_CYCLE_OR_ASSIGN, zone_id="h", window_id=42)

Or preview a layout:
    python -m zonetiler preview.png --size 2560x1440
"""

__version__ = "0.1.0"
__author__ = "zonetiler contributors"

from . import topics

from .protocol import Rect, Screen, WindowInfo, WindowSystem, StaticWindowSystem

from .errors import TilerError, ConfigurationMissing, InvalidRegion, PersistenceUnavailable

from .config import TilerConfig, WindowMemoryConfig, Margins, load_config

from .tile import Tile
from .grid import Grid, Region, grid_for_screen, parse_region
from .zone import Zone, ZoneKey, CycleDirection, next_tile_index
from .registry import ZoneRegistry
from .matcher import ZoneMatch, find_best_zone_for_window
from .memory import PositionMemory, PositionStore, JsonFileStore, RememberedPosition
from .placement import PlacementPhase, PlacementVerifier
from .window_state import WindowState, WindowStateTracker
from .timers import TimerQueue, Debouncer
from .context import TilerContext
from .overlay import OverlayRenderer, OverlayStyle
from .tiler import Tiler, setup_logging

__all__ = [
    # Bus topics
    "topics",
    # Window system interface
    "Rect",
    "Screen",
    "WindowInfo",
    "WindowSystem",
    "StaticWindowSystem",
    # Errors
    "TilerError",
    "ConfigurationMissing",
    "InvalidRegion",
    "PersistenceUnavailable",
    # Configuration
    "TilerConfig",
    "WindowMemoryConfig",
    "Margins",
    "load_config",
    # Zones
    "Tile",
    "Grid",
    "Region",
    "grid_for_screen",
    "parse_region",
    "Zone",
    "ZoneKey",
    "CycleDirection",
    "next_tile_index",
    "ZoneRegistry",
    "ZoneMatch",
    "find_best_zone_for_window",
    # Memory and placement
    "PositionMemory",
    "PositionStore",
    "JsonFileStore",
    "RememberedPosition",
    "PlacementPhase",
    "PlacementVerifier",
    "WindowState",
    "WindowStateTracker",
    "TimerQueue",
    "Debouncer",
    "TilerContext",
    # Rendering
    "OverlayRenderer",
    "OverlayStyle",
    # Main
    "Tiler",
    "setup_logging",
]
