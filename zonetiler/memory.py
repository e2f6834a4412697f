"""
Remembered Positions

Per-(application, screen) memory of where windows were last placed: either
a zone/tile reference or an exact frame. Records are partitioned by screen
and persisted through a PositionStore.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Hashable, List, Mapping, Optional, Set
import json
import logging
import re
import time

from . import topics
from .config import WindowMemoryConfig
from .errors import PersistenceUnavailable
from .protocol import Rect, ScreenId

log = logging.getLogger(__name__)

Records = Dict[str, Dict[str, Any]]


@dataclass(frozen=True)
class RememberedPosition:
    """Either a zone reference (zone_id, tile_idx) or an exact frame."""

    zone_id: Optional[str] = None
    zone_name: Optional[str] = None
    tile_idx: Optional[int] = None
    frame: Optional[Rect] = None
    timestamp: float = field(default_factory=time.time)

    def __post_init__(self):
        if (self.zone_id is None) == (self.frame is None):
            raise ValueError("A remembered position needs exactly one of zone_id or frame")

    @property
    def is_zone(self) -> bool:
        return self.zone_id is not None

    def to_dict(self) -> Dict[str, Any]:
        if self.is_zone:
            data: Dict[str, Any] = {"zone_id": self.zone_id, "tile_idx": self.tile_idx or 1}
            if self.zone_name:
                data["zone_name"] = self.zone_name
        else:
            data = {"frame": self.frame.to_dict()}
        data["timestamp"] = self.timestamp
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> RememberedPosition:
        if not isinstance(data, Mapping):
            raise ValueError(f"Remembered position is not a record: {data!r}")
        timestamp = float(data.get("timestamp", 0))
        if data.get("zone_id") is not None:
            return cls(
                zone_id=str(data["zone_id"]),
                zone_name=data.get("zone_name"),
                tile_idx=int(data.get("tile_idx") or 1),
                timestamp=timestamp,
            )
        if data.get("frame") is not None:
            return cls(frame=Rect.from_dict(data["frame"]), timestamp=timestamp)
        raise ValueError(f"Remembered position has neither zone nor frame: {data!r}")


class PositionStore(ABC):
    """Load/save remembered positions, one partition per screen.

    Implementations raise PersistenceUnavailable when the backing storage
    cannot be read or written.
    """

    @abstractmethod
    def load(self, screen_key: str) -> Optional[Records]:
        """Return app name -> record for a screen, or None if nothing was saved."""

    @abstractmethod
    def save(self, screen_key: str, records: Records) -> None:
        """Replace the saved records of a screen."""


_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def sanitize_screen_name(name: str) -> str:
    return _UNSAFE_CHARS.sub("_", name).strip("_") or "screen"


class JsonFileStore(PositionStore):
    """One JSON file per screen under cache_dir.

    File format:
        {"screen_name": ..., "timestamp": ..., "apps": {app_name: record}}
    """

    def __init__(self, cache_dir: str):
        self.cache_dir = Path(cache_dir).expanduser()

    def path_for(self, screen_key: str) -> Path:
        return self.cache_dir / f"window_position_cache_{sanitize_screen_name(screen_key)}.json"

    def load(self, screen_key: str) -> Optional[Records]:
        path = self.path_for(screen_key)
        if not path.exists():
            return None
        try:
            with path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise PersistenceUnavailable(f"Cannot read {path}: {e}") from e
        if not isinstance(data, dict):
            raise PersistenceUnavailable(f"Malformed position cache {path}")
        apps = data.get("apps", {})
        if not isinstance(apps, dict):
            raise PersistenceUnavailable(f"Malformed position cache {path}: apps is not a mapping")
        return apps

    def save(self, screen_key: str, records: Records) -> None:
        path = self.path_for(screen_key)
        payload = {"screen_name": screen_key, "timestamp": time.time(), "apps": records}
        tmp_path = path.with_suffix(".tmp")
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)
            tmp_path.replace(path)
        except OSError as e:
            raise PersistenceUnavailable(f"Cannot write {path}: {e}") from e


class PositionMemory:
    """Read-through, write-through cache of remembered positions.

    Each screen's partition is loaded from the store on first use. Store
    failures degrade to "nothing remembered" on load and "save skipped" on
    save.
    """

    def __init__(
        self,
        store: PositionStore,
        config: Optional[WindowMemoryConfig] = None,
        bus=None,
        screen_key: Optional[Callable[[ScreenId], str]] = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize position memory.

        Args:
            store: Persistence backend
            config: Window memory settings (exclusions, enabled flag)
            bus: Event bus instance (Pypubsub), optional
            screen_key: Maps a screen id to its store partition key
            clock: Timestamp source
        """
        self.store = store
        self.config = config if config is not None else WindowMemoryConfig()
        self.bus = bus
        self._screen_key = screen_key or str
        self._clock = clock
        self._cache: Dict[Hashable, Dict[str, RememberedPosition]] = {}
        self._loaded: Set[Hashable] = set()

    def is_excluded(self, app_name: str) -> bool:
        return app_name in self.config.excluded_apps

    def _partition(self, screen_id: ScreenId) -> Dict[str, RememberedPosition]:
        if screen_id not in self._loaded:
            self._loaded.add(screen_id)
            self._cache[screen_id] = self._load(screen_id)
        return self._cache[screen_id]

    def _load(self, screen_id: ScreenId) -> Dict[str, RememberedPosition]:
        key = self._screen_key(screen_id)
        try:
            raw = self.store.load(key) or {}
        except PersistenceUnavailable as e:
            log.warning("Remembered positions unavailable for screen %s: %s", key, e)
            return {}
        if not isinstance(raw, Mapping):
            log.warning("Ignoring malformed remembered positions for screen %s", key)
            return {}

        partition = {}
        for app_name, data in raw.items():
            try:
                partition[app_name] = RememberedPosition.from_dict(data)
            except (TypeError, KeyError, ValueError) as e:
                log.warning("Ignoring remembered position for %s: %s", app_name, e)
        log.debug("Loaded %d remembered positions for screen %s", len(partition), key)
        return partition

    def get(self, app_name: str, screen_id: ScreenId) -> Optional[RememberedPosition]:
        if not self.config.enabled:
            return None
        return self._partition(screen_id).get(app_name)

    def save(self, app_name: str, screen_id: ScreenId, position: RememberedPosition) -> bool:
        """Store a position, replacing any previous one for (app, screen)."""
        if not self.config.enabled or self.is_excluded(app_name):
            return False

        partition = self._partition(screen_id)
        partition[app_name] = position

        key = self._screen_key(screen_id)
        try:
            self.store.save(key, {app: pos.to_dict() for app, pos in partition.items()})
        except PersistenceUnavailable as e:
            log.warning("Could not persist position of %s on %s: %s", app_name, key, e)

        if self.bus is not None:
            self.bus.sendMessage(
                topics.MEMORY_POSITION_SAVED,
                app_name=app_name,
                screen_id=screen_id,
                kind="zone" if position.is_zone else "frame",
            )
        return True

    def remember_zone(
        self,
        app_name: str,
        screen_id: ScreenId,
        zone_id: str,
        zone_name: Optional[str],
        tile_idx: int,
    ) -> bool:
        log.debug("Remembering %s on screen %s: zone=%s tile=%d", app_name, screen_id, zone_id, tile_idx)
        return self.save(
            app_name,
            screen_id,
            RememberedPosition(
                zone_id=zone_id, zone_name=zone_name, tile_idx=tile_idx, timestamp=self._clock()
            ),
        )

    def remember_frame(self, app_name: str, screen_id: ScreenId, frame: Rect) -> bool:
        log.debug("Remembering frame of %s on screen %s: %s", app_name, screen_id, frame)
        return self.save(app_name, screen_id, RememberedPosition(frame=frame, timestamp=self._clock()))

    def apps_on_screen(self, screen_id: ScreenId) -> List[str]:
        return list(self._partition(screen_id))

    def reload(self):
        """Forget cached partitions so they are re-read on next use."""
        self._cache.clear()
        self._loaded.clear()
