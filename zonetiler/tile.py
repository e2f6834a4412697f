"""
Tile

A candidate rectangle inside a zone, with descriptive metadata and the
geometric queries used for matching windows against zones.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple
import math

from .protocol import Rect


@dataclass(frozen=True)
class Tile:
    """Immutable tile geometry plus metadata.

    Zones replace tiles rather than mutate them, e.g. when re-targeting a
    zone to a screen of a different size.
    """

    x: float
    y: float
    width: float
    height: float
    description: str = ""
    tags: FrozenSet[str] = frozenset()
    metadata: Mapping[str, Any] = field(default_factory=dict, compare=False)

    @property
    def rect(self) -> Rect:
        return Rect(self.x, self.y, self.width, self.height)

    @property
    def area(self) -> float:
        return self.rect.area

    @property
    def center(self) -> Tuple[float, float]:
        return self.rect.center

    def overlap_area(self, rect: Rect) -> float:
        overlap = self.rect.intersection(rect)
        return overlap.area if overlap else 0.0

    def overlap_percentage(self, rect: Rect) -> float:
        """Fraction of rect's area covered by this tile, in [0, 1].

        Normalized against rect (the window), so a window fully inside a
        larger tile scores 1.0. Degenerate rects score 0.
        """
        if rect.area <= 0:
            return 0.0
        return min(1.0, self.overlap_area(rect) / rect.area)

    def distance_from_center(self, x: float, y: float) -> float:
        cx, cy = self.center
        return math.hypot(cx - x, cy - y)

    def approximately_equals(self, rect: Rect, tolerance: float = 10) -> bool:
        return self.rect.approximately_equals(rect, tolerance)

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags

    def with_tag(self, tag: str) -> Tile:
        return replace(self, tags=self.tags | {tag})

    def with_description(self, description: str) -> Tile:
        return replace(self, description=description)

    def scaled_to(self, source: Rect, target: Rect) -> Tile:
        """Return a copy mapped proportionally from source frame into target frame."""
        scale_x = target.width / source.width if source.width else 1.0
        scale_y = target.height / source.height if source.height else 1.0
        return replace(
            self,
            x=target.x + (self.x - source.x) * scale_x,
            y=target.y + (self.y - source.y) * scale_y,
            width=self.width * scale_x,
            height=self.height * scale_y,
        )

    def to_record(self) -> Dict[str, Any]:
        record: Dict[str, Any] = {
            "x": self.x,
            "y": self.y,
            "w": self.width,
            "h": self.height,
        }
        if self.description:
            record["description"] = self.description
        if self.tags:
            record["tags"] = sorted(self.tags)
        if self.metadata:
            record["metadata"] = dict(self.metadata)
        return record

    def __str__(self):
        label = f" ({self.description})" if self.description else ""
        return (
            f"Tile[x={self.x:g}, y={self.y:g}, w={self.width:g}, h={self.height:g}]"
            f"{label}"
        )


def tile_from_record(record: Mapping[str, Any], description: Optional[str] = None) -> Tile:
    """Build a Tile from a plain record.

    Accepts both {x, y, w, h} and {x, y, width, height} keys; an explicit
    description overrides the record's.
    """
    width = record["w"] if "w" in record else record["width"]
    height = record["h"] if "h" in record else record["height"]
    return Tile(
        x=float(record["x"]),
        y=float(record["y"]),
        width=float(width),
        height=float(height),
        description=description
        if description is not None
        else str(record.get("description", "")),
        tags=frozenset(record.get("tags", ())),
        metadata=dict(record.get("metadata", {})),
    )
