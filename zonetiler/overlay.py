"""
Zone Overlay Rendering with Cairo

Provides OverlayStyle and OverlayRenderer for drawing zone previews and the
focus flash rectangle onto cairo image surfaces.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Optional, Tuple
import cairo

from .protocol import Rect

if TYPE_CHECKING:
    from .zone import Zone

Color = Tuple[int, int, int, int]


@dataclass
class OverlayStyle:
    """Styling configuration for zone overlays."""

    background_color: Color = (46, 52, 64, 255)
    tile_color: Color = (94, 129, 172, 90)
    highlight_color: Color = (136, 192, 208, 160)
    border_color: Color = (216, 222, 233, 255)
    text_color: Color = (236, 239, 244, 255)
    border_width: float = 2.0
    font_family: str = "sans-serif"
    font_size: int = 14


class OverlayRenderer:
    """Renders zones onto a surface scaled down from screen coordinates."""

    def __init__(self, style: Optional[OverlayStyle] = None, scale: float = 0.25):
        """Initialize the renderer.

        Args:
            style: Overlay styling configuration
            scale: Surface pixels per screen pixel
        """
        self.style = style or OverlayStyle()
        self.scale = scale

    def create_surface(self, frame: Rect) -> cairo.ImageSurface:
        width = max(1, int(round(frame.width * self.scale)))
        height = max(1, int(round(frame.height * self.scale)))
        return cairo.ImageSurface(cairo.FORMAT_ARGB32, width, height)

    def render_zone(self, zone: Zone, highlight: Optional[int] = None) -> cairo.ImageSurface:
        """Render all tiles of a zone, numbered in cycle order.

        Args:
            zone: Zone to draw; its screen frame sets the surface size
            highlight: 1-based tile index to emphasise
        """
        frame = zone.screen.frame if zone.screen else _bounding_rect(t.rect for t in zone.tiles)
        surface = self.create_surface(frame)
        ctx = cairo.Context(surface)
        self._fill_background(ctx, surface)

        for idx, tile in enumerate(zone.tiles, start=1):
            self._draw_tile(ctx, frame, tile.rect, str(idx), highlight == idx)

        surface.flush()
        return surface

    def render_screen(self, frame: Rect, zones: Iterable[Zone]) -> cairo.ImageSurface:
        """Render the first tile of every zone on one screen, labelled by zone id."""
        surface = self.create_surface(frame)
        ctx = cairo.Context(surface)
        self._fill_background(ctx, surface)

        for zone in zones:
            if zone.tiles:
                self._draw_tile(ctx, frame, zone.tiles[0].rect, zone.id, False)

        surface.flush()
        return surface

    def render_flash(self, frame: Rect, color: Color) -> cairo.ImageSurface:
        """Render a solid translucent rectangle the size of frame."""
        surface = cairo.ImageSurface(
            cairo.FORMAT_ARGB32, max(1, int(frame.width)), max(1, int(frame.height))
        )
        ctx = cairo.Context(surface)
        self._set_color(ctx, color)
        ctx.rectangle(0, 0, surface.get_width(), surface.get_height())
        ctx.fill()
        surface.flush()
        return surface

    def write_png(self, surface: cairo.ImageSurface, path: str):
        surface.write_to_png(path)

    def _fill_background(self, ctx: cairo.Context, surface: cairo.ImageSurface):
        self._set_color(ctx, self.style.background_color)
        ctx.rectangle(0, 0, surface.get_width(), surface.get_height())
        ctx.fill()

    def _draw_tile(self, ctx: cairo.Context, frame: Rect, rect: Rect, label: str, highlighted: bool):
        """Draw one tile with a border and a centred label.

        Args:
            ctx: Cairo context
            frame: Screen frame the surface represents
            rect: Tile rectangle in screen coordinates
            label: Text drawn in the middle of the tile
            highlighted: Whether to use the highlight fill
        """
        x = (rect.x - frame.x) * self.scale
        y = (rect.y - frame.y) * self.scale
        w = rect.width * self.scale
        h = rect.height * self.scale

        self._set_color(ctx, self.style.highlight_color if highlighted else self.style.tile_color)
        ctx.rectangle(x, y, w, h)
        ctx.fill()

        self._set_color(ctx, self.style.border_color)
        ctx.set_line_width(self.style.border_width)
        ctx.rectangle(x, y, w, h)
        ctx.stroke()

        ctx.select_font_face(
            self.style.font_family, cairo.FONT_SLANT_NORMAL, cairo.FONT_WEIGHT_BOLD
        )
        ctx.set_font_size(self.style.font_size)
        self._set_color(ctx, self.style.text_color)
        extents = ctx.text_extents(label)
        ctx.move_to(x + (w - extents.width) / 2, y + (h + extents.height) / 2)
        ctx.show_text(label)

    def _set_color(self, ctx: cairo.Context, color: Color):
        r, g, b, a = color
        ctx.set_source_rgba(r / 255, g / 255, b / 255, a / 255)


def _bounding_rect(rects: Iterable[Rect]) -> Rect:
    rects = list(rects)
    if not rects:
        return Rect(0, 0, 1, 1)
    left = min(r.x for r in rects)
    top = min(r.y for r in rects)
    right = max(r.right for r in rects)
    bottom = max(r.bottom for r in rects)
    return Rect(left, top, right - left, bottom - top)
