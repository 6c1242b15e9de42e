"""
Raster Context
==============

A canvas-style 2D drawing context over a Pillow RGBA surface.

Every drawing call renders into a transparent layer, which is then masked by
the active clip region and global alpha and composited onto the surface with
the active blend mode. ``save``/``restore`` scope clip regions and state the
way a canvas context does.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple, TYPE_CHECKING

from PIL import Image, ImageChops, ImageColor, ImageDraw, ImageFilter

from xcanvas.config.logging import get_logger

if TYPE_CHECKING:
    from xcanvas.core.rendering.surface import RasterSurface

logger = get_logger(__name__)

Color = Tuple[int, int, int, int]

BLEND_MODES: Dict[str, Optional[Callable[[Image.Image, Image.Image], Image.Image]]] = {
    "source-over": None,
    "normal": None,
    "multiply": ImageChops.multiply,
    "screen": ImageChops.screen,
    "overlay": ImageChops.overlay,
    "darken": ImageChops.darker,
    "lighten": ImageChops.lighter,
    "difference": ImageChops.difference,
    "lighter": ImageChops.add,
    "soft-light": ImageChops.soft_light,
    "hard-light": ImageChops.hard_light,
}

TEXT_ANCHORS = {"left": "lm", "right": "rm", "center": "mm"}


def parse_color(value: Optional[str], fallback: Color = (0, 0, 0, 255)) -> Color:
    """Parse a CSS-like color string, returning ``fallback`` when it is invalid."""
    if not value:
        return fallback
    try:
        rgba = ImageColor.getcolor(value, "RGBA")
    except ValueError:
        logger.warning("Invalid color, using fallback", color=value)
        return fallback
    return rgba  # type: ignore[return-value]


@dataclass
class ShadowStyle:
    """Resolved shadow: blur size, color and number of stacked passes."""
    size: float
    color: Color
    repeat: int = 1


@dataclass
class _State:
    clip: Optional[Image.Image]
    global_alpha: float
    composite: str


class RasterContext:
    """Canvas-like drawing context bound to one :class:`RasterSurface`."""

    def __init__(self, surface: "RasterSurface"):
        self.surface = surface
        self.clip: Optional[Image.Image] = None
        self.global_alpha = 1.0
        self.composite = "source-over"
        self._stack: List[_State] = []
        self.draw_calls = 0

    @property
    def image(self) -> Image.Image:
        return self.surface.image

    @property
    def size(self) -> Tuple[int, int]:
        return self.image.size

    # State

    def save(self) -> None:
        self._stack.append(_State(self.clip, self.global_alpha, self.composite))

    def restore(self) -> None:
        if not self._stack:
            return
        state = self._stack.pop()
        self.clip = state.clip
        self.global_alpha = state.global_alpha
        self.composite = state.composite

    @contextmanager
    def scope(self) -> Iterator["RasterContext"]:
        """``save``, then ``restore`` on exit even when the draw raises."""
        self.save()
        try:
            yield self
        finally:
            self.restore()

    def set_composite(self, mode: Optional[str]) -> None:
        """Set the blend mode for subsequent draws; unknown modes fall back to source-over."""
        if not mode or mode not in BLEND_MODES:
            if mode:
                logger.warning("Unsupported blend mode, using source-over", mode=mode)
            self.composite = "source-over"
            return
        self.composite = mode

    # Clipping

    def clip_mask(self, mask: Image.Image) -> None:
        """Intersect the active clip region with an ``L`` mask."""
        self.clip = mask if self.clip is None else ImageChops.multiply(self.clip, mask)

    def clip_rounded_rect(self, x: float, y: float, w: float, h: float, radius: float) -> None:
        mask = Image.new("L", self.size, 0)
        box = _box(x, y, w, h)
        if box is not None:
            ImageDraw.Draw(mask).rounded_rectangle(box, radius=max(0, radius), fill=255)
        self.clip_mask(mask)

    def clip_polygon(self, points: Sequence[Tuple[float, float]]) -> None:
        mask = Image.new("L", self.size, 0)
        if len(points) >= 3:
            ImageDraw.Draw(mask).polygon([(px, py) for px, py in points], fill=255)
        self.clip_mask(mask)

    # Drawing

    def fill_rect(self, x: float, y: float, w: float, h: float, color: Color) -> None:
        box = _box(x, y, w, h)
        if box is None:
            return
        layer = self._layer()
        ImageDraw.Draw(layer).rectangle(box, fill=color)
        self._composite(layer)

    def stroke_rounded_rect(
        self, x: float, y: float, w: float, h: float, radius: float, line_width: float, color: Color
    ) -> None:
        """Stroke a rounded rectangle whose path runs through the middle of the line."""
        half = line_width / 2
        box = _box(x - half, y - half, w + line_width, h + line_width)
        if box is None or line_width <= 0:
            return
        layer = self._layer()
        ImageDraw.Draw(layer).rounded_rectangle(
            box, radius=max(0, radius + half), outline=color, width=max(1, int(round(line_width)))
        )
        self._composite(layer)

    def draw_image(self, image: Image.Image, x: float, y: float, shadow: Optional[ShadowStyle] = None) -> None:
        """Composite an already sized RGBA image with its top-left corner at ``(x, y)``."""
        layer = self._layer()
        layer.paste(image.convert("RGBA"), (int(round(x)), int(round(y))))
        self._composite_with_shadow(layer, shadow)

    def fill_text(
        self,
        text: str,
        x: float,
        y: float,
        font: Any,
        color: Color,
        align: str = "left",
        shadow: Optional[ShadowStyle] = None,
    ) -> None:
        """Draw one line of text with its vertical middle at ``y``."""
        layer = self._layer()
        ImageDraw.Draw(layer).text((x, y), text, font=font, fill=color, anchor=TEXT_ANCHORS.get(align, "lm"))
        self._composite_with_shadow(layer, shadow)

    @staticmethod
    def measure_text(text: str, font: Any) -> float:
        """Advance width of one line of ``text``."""
        return float(font.getlength(text))

    # Internals

    def _layer(self) -> Image.Image:
        return Image.new("RGBA", self.size, (0, 0, 0, 0))

    def _composite_with_shadow(self, layer: Image.Image, shadow: Optional[ShadowStyle]) -> None:
        if shadow is None:
            self._composite(layer)
            return
        shadow_layer = Image.new("RGBA", self.size, shadow.color[:3] + (0,))
        alpha = layer.getchannel("A")
        if shadow.size > 0:
            alpha = alpha.filter(ImageFilter.GaussianBlur(shadow.size / 2))
        if shadow.color[3] < 255:
            alpha = alpha.point(lambda v: v * shadow.color[3] // 255)
        shadow_layer.putalpha(alpha)
        for _ in range(shadow.repeat):
            self._composite(shadow_layer.copy())
            self._composite(layer.copy())

    def _composite(self, layer: Image.Image) -> None:
        alpha = layer.getchannel("A")
        if self.clip is not None:
            alpha = ImageChops.multiply(alpha, self.clip)
        if self.global_alpha < 1:
            factor = max(0.0, self.global_alpha)
            alpha = alpha.point(lambda v: int(round(v * factor)))
        layer.putalpha(alpha)

        blend = BLEND_MODES.get(self.composite)
        if blend is not None:
            source = layer.convert("RGB")
            # over transparent destination pixels the source is drawn as is
            mixed = Image.composite(blend(self.image.convert("RGB"), source), source, self.image.getchannel("A"))
            layer = mixed.convert("RGBA")
            layer.putalpha(alpha)
        self.image.alpha_composite(layer)
        self.draw_calls += 1


def _box(x: float, y: float, w: float, h: float) -> Optional[List[float]]:
    """Pillow's inclusive box for a rectangle, None when it has no area."""
    if w < 1 or h < 1:
        return None
    return [x, y, x + w - 1, y + h - 1]
