"""
Event Topics for zonetiler

All pub/sub topics are defined here for easy discovery and documentation.
Topic naming convention: <category>.<action>

Every topic keeps one fixed set of keyword arguments: PyPubSub infers a
topic's message signature from its first use and rejects later sends that
differ from it.
"""

# Window notifications (bridged in from the host window system)
WINDOW_CREATED = "window.created"
"""Published when the window system reports a new window. Args: window_id"""

WINDOW_MOVED = "window.moved"
"""Published when a window was moved. Args: window_id"""

WINDOW_RESIZED = "window.resized"
"""Published when a window was resized. Args: window_id"""

WINDOW_CLOSED = "window.closed"
"""Published when a window was closed/destroyed. Args: window_id"""

# Screen notifications
SCREENS_CHANGED = "screens.changed"
"""Published when screens were added, removed or resized."""

# Zone notifications (published by the core)
ZONE_WINDOW_ADDED = "zone.window_added"
"""Published when a window is assigned to a zone. Args: window_id, zone_id, tile_idx"""

ZONE_WINDOW_REMOVED = "zone.window_removed"
"""Published when a window leaves a zone. Args: window_id, zone_id"""

ZONE_TILE_CHANGED = "zone.tile_changed"
"""Published when a window cycled to another tile. Args: window_id, zone_id, tile_idx"""

ZONES_REBUILT = "zones.rebuilt"
"""Published after the zone registry was rebuilt. Args: zone_count"""

# Memory notifications
MEMORY_POSITION_SAVED = "memory.position_saved"
"""Published after a remembered position was written. Args: app_name, screen_id, kind"""

# Placement notifications
PLACEMENT_VERIFIED = "placement.verified"
"""Published when a placement attempt reached a final phase. Args: window_id, phase"""

# Command events (imperative - tell components to do something)
# These are triggered by hotkeys or other host-side triggers

CMD_CYCLE_OR_ASSIGN = "cmd.cycle_or_assign"
"""Command: Cycle a window through a zone, assigning it first if needed.

Args: zone_id, window_id (None means the focused window)
"""

CMD_FOCUS_NEXT_IN_ZONE = "cmd.focus_next_in_zone"
"""Command: Focus the next window in a zone. Args: zone_id"""

CMD_MOVE_TO_NEXT_SCREEN = "cmd.move_to_next_screen"
"""Command: Move the focused window to the next screen."""

CMD_MOVE_TO_PREV_SCREEN = "cmd.move_to_prev_screen"
"""Command: Move the focused window to the previous screen."""

CMD_CAPTURE_POSITIONS = "cmd.capture_positions"
"""Command: Remember the position of every window."""

CMD_APPLY_POSITIONS = "cmd.apply_positions"
"""Command: Apply remembered positions to every window."""

CMD_REFRESH = "cmd.refresh"
"""Command: Rebuild zones and map existing windows."""
