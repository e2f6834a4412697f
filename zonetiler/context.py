"""
Tiler Context

The shared collaborators handed to every component at construction time.
Owned by Tiler, which creates it at startup and tears it down at shutdown.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

from .config import TilerConfig
from .timers import Debouncer, TimerQueue
from .window_state import WindowStateTracker

if TYPE_CHECKING:
    from .memory import PositionMemory
    from .placement import PlacementVerifier
    from .protocol import WindowSystem
    from .registry import ZoneRegistry


@dataclass
class TilerContext:
    """Collaborators shared by zones, the registry and the reconciler."""

    bus: Any
    window_system: WindowSystem
    config: TilerConfig = field(default_factory=TilerConfig)
    timers: TimerQueue = field(default_factory=TimerQueue)
    tracker: WindowStateTracker = field(default_factory=WindowStateTracker)

    # Wired by Tiler (or a test fixture) once the components exist
    registry: Optional[ZoneRegistry] = None
    memory: Optional[PositionMemory] = None
    placer: Optional[PlacementVerifier] = None

    debouncer: Debouncer = field(init=False)

    def __post_init__(self):
        self.debouncer = Debouncer(self.timers)

    def is_problem_app(self, app_name: str) -> bool:
        return self.config.is_problem_app(app_name)
