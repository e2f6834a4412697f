"""
Window-State Tracker

Single source of truth for which zone/tile/screen each window is assigned
to. Zones write through to it on every mutation, so an assignment can be
reconstructed from the tracker alone (e.g. after zones are rebuilt).
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional
import time

from .protocol import ScreenId, WindowId


@dataclass(frozen=True)
class WindowState:
    """Current assignment of one window."""

    window_id: WindowId
    zone_id: Optional[str]
    zone_name: Optional[str]
    screen_id: Optional[ScreenId]
    tile_idx: Optional[int]
    last_updated: float = field(default_factory=time.time)


class WindowStateTracker:
    """Maps window ids to their WindowState records."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._states: Dict[WindowId, WindowState] = {}

    def track(
        self,
        window_id: WindowId,
        zone_id: Optional[str],
        zone_name: Optional[str],
        screen_id: Optional[ScreenId],
        tile_idx: Optional[int],
    ) -> WindowState:
        """Create or replace the record for a window."""
        state = WindowState(
            window_id=window_id,
            zone_id=zone_id,
            zone_name=zone_name,
            screen_id=screen_id,
            tile_idx=tile_idx,
            last_updated=self._clock(),
        )
        self._states[window_id] = state
        return state

    def get(self, window_id: WindowId) -> Optional[WindowState]:
        return self._states.get(window_id)

    def remove(self, window_id: WindowId) -> bool:
        return self._states.pop(window_id, None) is not None

    def windows_in_zone(self, zone_id: str) -> List[WindowId]:
        return [wid for wid, state in self._states.items() if state.zone_id == zone_id]

    def clear(self):
        self._states.clear()

    def __contains__(self, window_id: WindowId) -> bool:
        return window_id in self._states

    def __iter__(self) -> Iterator[WindowState]:
        return iter(list(self._states.values()))

    def __len__(self):
        return len(self._states)
