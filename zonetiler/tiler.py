"""
Zone Tiler

Wires the tiler components together around a host window system and owns
their lifecycle.
"""

from __future__ import annotations
from pathlib import Path
from typing import Optional, Union
import logging
import os
import time

from pubsub import pub

from .commands import ZoneController
from .config import TilerConfig, default_config_path, load_config
from .context import TilerContext
from .focus import ZoneFocusCycler
from .memory import JsonFileStore, PositionMemory, PositionStore
from .overlay import OverlayRenderer
from .placement import PlacementVerifier
from .protocol import ScreenId, WindowSystem
from .reconciler import PlacementReconciler
from .registry import ZoneRegistry
from .timers import TimerQueue

log = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s: %(message)s"


def setup_logging(debug: bool = False):
    """Send zonetiler logs to stderr. For hosts without their own logging setup."""
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S"))
    logger = logging.getLogger("zonetiler")
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)


class ListenerErrorLogger:
    """PyPubSub listener exception handler: log and keep delivering."""

    def __call__(self, listener_id: str, topic_obj):
        log.exception("Listener %s failed on topic %s", listener_id, topic_obj.getName())


class Tiler:
    """
    Zone Tiler

    Owns the shared context and every component built on it.
    """

    def __init__(
        self,
        window_system: WindowSystem,
        config: Optional[TilerConfig] = None,
        store: Optional[PositionStore] = None,
        timers: Optional[TimerQueue] = None,
        bus=pub,
    ):
        """Initialize the tiler.

        Architecture:
        1. Build the shared context (config, timers, tracker)
        2. Create components - they self-subscribe to events
        3. The host bridges window-system notifications into the bus
        4. The host calls tick() from its event loop
        """
        self.bus = bus
        self.config = config if config is not None else TilerConfig()
        self.ctx = TilerContext(
            bus=bus,
            window_system=window_system,
            config=self.config,
            timers=timers if timers is not None else TimerQueue(),
        )

        # Setup debug event logging if enabled
        if os.getenv("ZONETILER_DEBUG"):
            self.bus.subscribe(self.debug_event_logger, pub.ALL_TOPICS)

        # Listener failures are logged instead of reaching the host
        self.bus.setListenerExcHandler(ListenerErrorLogger())

        memory_config = self.config.window_memory
        self.ctx.memory = PositionMemory(
            store if store is not None else JsonFileStore(memory_config.cache_dir),
            memory_config,
            bus=bus,
            screen_key=self._screen_key,
        )
        self.ctx.registry = ZoneRegistry(self.ctx)
        self.ctx.placer = PlacementVerifier(self.ctx)

        self.renderer = OverlayRenderer()

        # Components (self-subscribe to events)
        self.reconciler = PlacementReconciler(bus=bus, ctx=self.ctx)
        self.controller = ZoneController(bus=bus, ctx=self.ctx)
        self.focus_cycler = ZoneFocusCycler(bus=bus, ctx=self.ctx, renderer=self.renderer)

    @classmethod
    def from_config_file(
        cls, window_system: WindowSystem, path: Optional[Union[str, Path]] = None, **kwargs
    ) -> Tiler:
        """Create a tiler from a JSON config file (default: the user's config)."""
        path = path or default_config_path()
        config = load_config(path) if path else TilerConfig()
        return cls(window_system, config=config, **kwargs)

    @property
    def registry(self) -> ZoneRegistry:
        return self.ctx.registry

    @property
    def tracker(self):
        return self.ctx.tracker

    @property
    def memory(self) -> PositionMemory:
        return self.ctx.memory

    @property
    def timers(self) -> TimerQueue:
        return self.ctx.timers

    def debug_event_logger(self, topic=pub.AUTO_TOPIC, **kwargs):
        """Log all events published on the event bus."""
        data_str = ", ".join(f"{k}={v!r}" for k, v in kwargs.items())
        log.debug("EVENT: %s | %s", topic.getName(), data_str)

    def _screen_key(self, screen_id: ScreenId) -> str:
        # Screen names survive reconnects, ids may not
        screen = self.ctx.window_system.screen(screen_id)
        return screen.name if screen is not None else str(screen_id)

    def start(self) -> int:
        """Build zones for all screens and adopt existing windows."""
        zone_count = self.registry.init_for_all_screens()
        self.reconciler.map_existing_windows()
        log.info("Zone tiler started with %d zones", zone_count)
        return zone_count

    def tick(self) -> int:
        """Run due timers. Call from the host event loop."""
        return self.timers.run_due()

    def run(self, poll_interval: float = 0.05):
        """Minimal blocking loop for hosts that deliver events from other code paths."""
        self.start()
        try:
            while True:
                self.tick()
                wait = self.timers.wait_time()
                time.sleep(poll_interval if wait is None else min(wait, poll_interval))
        except KeyboardInterrupt:
            log.info("Interrupted")
        finally:
            self.shutdown()

    def shutdown(self):
        """Cancel pending work and drop all zone state."""
        self.timers.cancel_all()
        self.registry.clear()
        self.tracker.clear()
        self.bus.setListenerExcHandler(None)
        log.info("Zone tiler stopped")

    def preview_layout(self, screen_id: ScreenId, path: Union[str, Path]) -> bool:
        """Write a PNG preview of the zones of one screen."""
        screen = self.ctx.window_system.screen(screen_id)
        if screen is None:
            log.warning("Cannot preview unknown screen %s", screen_id)
            return False
        surface = self.renderer.render_screen(screen.frame, self.registry.zones_on_screen(screen_id))
        self.renderer.write_png(surface, str(path))
        return True


def main(argv=None):
    """Render the zones a screen would get to a PNG file."""
    import argparse

    from .config import parse_grid_spec
    from .protocol import Rect, Screen, StaticWindowSystem

    parser = argparse.ArgumentParser(prog="zonetiler", description=main.__doc__)
    parser.add_argument("output", help="PNG file to write")
    parser.add_argument("--config", help="JSON configuration file")
    parser.add_argument("--screen-name", default="Preview", help="Screen name used for layout selection")
    parser.add_argument("--size", default="1920x1080", help="Screen size as WIDTHxHEIGHT")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    setup_logging(args.debug)
    try:
        width, height = parse_grid_spec(args.size)
        config = load_config(args.config) if args.config else TilerConfig()
    except (OSError, ValueError) as e:
        log.error("%s", e)
        return 1

    screen = Screen(id=1, name=args.screen_name, frame=Rect(0, 0, width, height))
    tiler = Tiler(StaticWindowSystem([screen]), config=config, store=_NullStore())
    try:
        tiler.start()
        if not tiler.preview_layout(screen.id, args.output):
            return 1
        log.info("Wrote %s", args.output)
    finally:
        tiler.shutdown()
    return 0


class _NullStore(PositionStore):
    """Store that remembers nothing, for previews."""

    def load(self, screen_key):
        return None

    def save(self, screen_key, records):
        pass
