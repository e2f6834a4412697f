"""
Shared pytest fixtures for zonetiler tests.
"""

from dataclasses import replace

import pytest
from pubsub import pub

from zonetiler.config import DEFAULT_LAYOUTS, TilerConfig
from zonetiler.context import TilerContext
from zonetiler.errors import PersistenceUnavailable
from zonetiler.memory import PositionMemory, PositionStore
from zonetiler.placement import PlacementVerifier
from zonetiler.protocol import Rect, Screen, WindowInfo, WindowSystem
from zonetiler.registry import ZoneRegistry
from zonetiler.tiler import Tiler
from zonetiler.timers import TimerQueue


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without a real window system")


# Zones used across the tests. On a 1920x1080 screen with a 2x2 grid:
#   left:  a1:a2 (0,0,960,1080), a1 (0,0,960,540), a2 (0,540,960,540)
#   right: b1:b2 (960,0,960,1080), b1, b2
#   top:   a1:b1 (0,0,1920,540)
#   center ("0"): a1:b2, the whole screen
TEST_LAYOUT = {
    "left": ["a1:a2", "a1", "a2"],
    "right": ["b1:b2", "b1", "b2"],
    "top": ["a1:b1"],
    "0": ["a1:b2"],
}


class FakeWindowSystem(WindowSystem):
    """In-memory window system that records every request it gets."""

    def __init__(self, screens=()):
        self._screens = list(screens)
        self.windows = {}
        self.focused = None
        self.set_frame_calls = []
        self.move_calls = []
        self.focus_calls = []
        self.overlays = []
        # Number of upcoming set_frame requests to silently drop
        self.ignore_set_frame = 0

    def add_window(self, window_id, app_name="App", frame=None, screen_id=None, **flags):
        if screen_id is None:
            screen_id = self._screens[0].id
        info = WindowInfo(
            window_id=window_id,
            app_name=app_name,
            frame=frame or Rect(100, 100, 800, 600),
            screen_id=screen_id,
            **flags,
        )
        self.windows[window_id] = info
        return info

    def move_window(self, window_id, frame):
        """Simulate the user dragging a window."""
        self.windows[window_id] = replace(self.windows[window_id], frame=frame)

    def close_window(self, window_id):
        self.windows.pop(window_id, None)

    def set_screens(self, screens):
        self._screens = list(screens)

    def frame_of(self, window_id):
        return self.windows[window_id].frame

    def all_windows(self):
        return list(self.windows.values())

    def screens(self):
        return list(self._screens)

    def window_info(self, window_id):
        return self.windows.get(window_id)

    def set_frame(self, window_id, frame):
        self.set_frame_calls.append((window_id, frame))
        if self.ignore_set_frame > 0:
            self.ignore_set_frame -= 1
            return
        if window_id in self.windows:
            self.windows[window_id] = replace(self.windows[window_id], frame=frame)

    def move_to_screen(self, window_id, screen_id):
        self.move_calls.append((window_id, screen_id))
        if window_id in self.windows:
            self.windows[window_id] = replace(self.windows[window_id], screen_id=screen_id)

    def focused_window(self):
        return self.focused

    def focus(self, window_id):
        self.focus_calls.append(window_id)
        self.focused = window_id

    def show_overlay(self, frame, surface, duration):
        self.overlays.append((frame, surface, duration))


class FakeStore(PositionStore):
    """Dict-backed position store."""

    def __init__(self, data=None):
        self.data = dict(data or {})
        self.saves = []
        self.fail = False

    def load(self, screen_key):
        if self.fail:
            raise PersistenceUnavailable("store offline")
        records = self.data.get(screen_key)
        return dict(records) if records is not None else None

    def save(self, screen_key, records):
        if self.fail:
            raise PersistenceUnavailable("store offline")
        self.saves.append((screen_key, records))
        self.data[screen_key] = dict(records)


@pytest.fixture(autouse=True)
def reset_pubsub():
    """Drop every subscription after each test."""
    yield
    pub.unsubAll()
    pub.setListenerExcHandler(None)


@pytest.fixture
def main_screen():
    """1920x1080 screen with a 2x2 test layout."""
    return Screen(id="S", name="Main", frame=Rect(0, 0, 1920, 1080))


@pytest.fixture
def side_screen():
    """2560x1440 screen right of the main screen, also 2x2."""
    return Screen(id="T", name="Side", frame=Rect(1920, 0, 2560, 1440))


@pytest.fixture
def plain_screen():
    """1920x1080 screen below the main screen with only the default layout."""
    return Screen(id="U", name="Plain", frame=Rect(0, 1080, 1920, 1080))


@pytest.fixture
def window_system(main_screen):
    return FakeWindowSystem([main_screen])


@pytest.fixture
def config():
    return TilerConfig(
        layouts={"2x2": dict(TEST_LAYOUT), "default": DEFAULT_LAYOUTS["default"]},
        custom_screens={"Main": {"grid": "2x2"}, "Side": {"grid": "2x2"}},
    )


@pytest.fixture
def timers():
    """Timer queue on a frozen clock; tests move time with advance()."""
    return TimerQueue(clock=lambda: 0.0)


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def store_factory():
    """Factory fixture for stores with preloaded records."""
    return FakeStore


@pytest.fixture
def ctx(window_system, config, timers, store):
    """Fully wired context without the event-driven components."""
    context = TilerContext(bus=pub, window_system=window_system, config=config, timers=timers)
    context.memory = PositionMemory(store, config.window_memory, bus=pub)
    context.registry = ZoneRegistry(context)
    context.placer = PlacementVerifier(context)
    return context


@pytest.fixture
def tiler(window_system, config, timers, store):
    """Started tiler over the fake window system."""
    t = Tiler(window_system, config=config, store=store, timers=timers)
    t.start()
    yield t
    t.shutdown()
