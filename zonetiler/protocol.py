"""
Window System Capability Interface

Geometry primitives and the abstract window-system interface consumed by the
tiler. Host adapters implement WindowSystem; the core never talks to the
operating system directly.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Hashable, List, Optional, Tuple
import math

WindowId = Hashable
ScreenId = Hashable


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle in global screen coordinates."""

    x: float
    y: float
    width: float
    height: float

    @property
    def area(self) -> float:
        if self.width <= 0 or self.height <= 0:
            return 0.0
        return self.width * self.height

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    @property
    def diagonal(self) -> float:
        return math.hypot(self.width, self.height)

    def intersection(self, other: Rect) -> Optional[Rect]:
        """Return the overlapping rectangle, or None if the rects do not overlap."""
        left = max(self.x, other.x)
        top = max(self.y, other.y)
        right = min(self.right, other.right)
        bottom = min(self.bottom, other.bottom)
        if right <= left or bottom <= top:
            return None
        return Rect(left, top, right - left, bottom - top)

    def approximately_equals(self, other: Rect, tolerance: float = 10) -> bool:
        """Check that every edge is within tolerance of the other rect's edge."""
        return (
            abs(self.x - other.x) <= tolerance
            and abs(self.y - other.y) <= tolerance
            and abs(self.right - other.right) <= tolerance
            and abs(self.bottom - other.bottom) <= tolerance
        )

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "w": self.width, "h": self.height}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Rect:
        """Build a Rect from a {x, y, w, h} mapping."""
        return cls(
            float(data["x"]), float(data["y"]), float(data["w"]), float(data["h"])
        )


@dataclass(frozen=True)
class Screen:
    """A display attached to the system."""

    id: ScreenId
    name: str
    frame: Rect

    @property
    def is_portrait(self) -> bool:
        return self.frame.height > self.frame.width

    @property
    def diagonal(self) -> float:
        return self.frame.diagonal


@dataclass(frozen=True)
class WindowInfo:
    """Snapshot of a window as reported by the window system."""

    window_id: WindowId
    app_name: str
    frame: Rect
    screen_id: ScreenId
    is_standard: bool = True
    is_minimized: bool = False
    is_fullscreen: bool = False

    @property
    def is_placeable(self) -> bool:
        """Whether the tiler may move this window."""
        return self.is_standard and not self.is_minimized and not self.is_fullscreen


class WindowSystem(ABC):
    """Capabilities the tiler needs from the host window system.

    Notifications (window created/moved/resized/closed, screens changed) are
    not part of this interface: the host adapter publishes them on the event
    bus using the topics in zonetiler.topics.
    """

    @abstractmethod
    def all_windows(self) -> List[WindowInfo]:
        """Return every window currently known to the window system."""

    @abstractmethod
    def screens(self) -> List[Screen]:
        """Return attached screens in a stable order."""

    @abstractmethod
    def window_info(self, window_id: WindowId) -> Optional[WindowInfo]:
        """Return a fresh snapshot of a window, or None if it no longer exists."""

    @abstractmethod
    def set_frame(self, window_id: WindowId, frame: Rect) -> None:
        """Request a new frame for a window. The request may be ignored."""

    @abstractmethod
    def move_to_screen(self, window_id: WindowId, screen_id: ScreenId) -> None:
        """Request that a window moves to another screen."""

    @abstractmethod
    def focused_window(self) -> Optional[WindowId]:
        """Return the focused window id, if any."""

    @abstractmethod
    def focus(self, window_id: WindowId) -> None:
        """Give focus to a window."""

    def show_overlay(self, frame: Rect, surface: Any, duration: float) -> None:
        """Display a rendered overlay over frame for duration seconds.

        Optional capability; hosts without overlay support keep this no-op.
        """

    def screen(self, screen_id: ScreenId) -> Optional[Screen]:
        for screen in self.screens():
            if screen.id == screen_id:
                return screen
        return None


class StaticWindowSystem(WindowSystem):
    """Fixed screens and no windows. Used to build zones without a live host."""

    def __init__(self, screens: List[Screen]):
        self._screens = list(screens)

    def all_windows(self) -> List[WindowInfo]:
        return []

    def screens(self) -> List[Screen]:
        return list(self._screens)

    def window_info(self, window_id: WindowId) -> Optional[WindowInfo]:
        return None

    def set_frame(self, window_id: WindowId, frame: Rect) -> None:
        pass

    def move_to_screen(self, window_id: WindowId, screen_id: ScreenId) -> None:
        pass

    def focused_window(self) -> Optional[WindowId]:
        return None

    def focus(self, window_id: WindowId) -> None:
        pass
