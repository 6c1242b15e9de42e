"""
Raster Painter
==============

Depth-first paint of a structure tree onto a raster surface.

A full paint waits until every requested resource has settled, then clears
the surface and draws each node: clips, background, borders, image, text,
children, and finally pops its clips.
"""

from enum import Enum
from typing import Any, List, Optional

from PIL import Image

from xcanvas.config.logging import get_logger
from xcanvas.core.layout.size import fix_number
from xcanvas.core.layout.solver import resolved_font_size
from xcanvas.core.loading.cache import ResourceCache
from xcanvas.core.loading.loader import image_key
from xcanvas.core.rendering.context import RasterContext, ShadowStyle, parse_color
from xcanvas.core.rendering.filters import alpha_gradient, crop_rect, fit_image, unsharp_mask
from xcanvas.core.rendering.fonts import FontBook
from xcanvas.core.rendering.surface import RasterSurface
from xcanvas.models.schemas import (
    Border,
    BoxProps,
    ContainerNode,
    ImageNode,
    ObjectFit,
    Overflow,
    Position,
    Shadow,
    Structure,
    TextAlign,
)

logger = get_logger(__name__)


class PaintResult(str, Enum):
    """Outcome of one paint attempt."""
    NO_STRUCTURE = "no_structure"
    PENDING = "pending"
    PAINTED = "painted"


class Painter:
    """Draws structure trees with a :class:`RasterContext`."""

    def __init__(
        self,
        surface: RasterSurface,
        cache: ResourceCache,
        fonts: FontBook,
        font_size: float = 16,
        font_color: str = "#000000",
        generator_key: str = "canvas",
    ):
        self.surface = surface
        self.cache = cache
        self.fonts = fonts
        self.font_size = font_size
        self.font_color = font_color
        self.generator_key = generator_key
        self.logger: Any = logger.bind(component="painter")
        self.paint_count = 0

    def paint(self, structure: Optional[Structure]) -> PaintResult:
        """
        Paint the whole tree if every requested resource has settled.

        Raises:
            SurfaceContextUnavailable: If the surface cannot be drawn on
        """
        if structure is None:
            return PaintResult.NO_STRUCTURE
        if not self.cache.is_settled():
            self.logger.debug(
                "Paint deferred",
                requested=self.cache.requested_count,
                settled=self.cache.settled_count,
            )
            return PaintResult.PENDING
        ctx = self.surface.get_context()
        self.surface.clear()
        self.draw(ctx, structure)
        self.paint_count += 1
        self.logger.debug("Tree painted", paint=self.paint_count, draw_calls=ctx.draw_calls)
        return PaintResult.PAINTED

    def draw(self, ctx: RasterContext, structure: Structure) -> None:
        """Draw one node and its descendants."""
        elem = structure.elem
        if not isinstance(elem, (ContainerNode, ImageNode)):
            return
        pos = structure.pos
        props = elem.props
        scopes = 0
        try:
            if props.overflow == Overflow.HIDDEN:
                ctx.save()
                scopes += 1
                ctx.clip_rounded_rect(pos.x, pos.y, pos.w, pos.h, self.radius(props, pos))
            if props.clip_path_line:
                ctx.save()
                scopes += 1
                ctx.clip_polygon(self.clip_points(props.clip_path_line, pos))
            try:
                self.draw_node(ctx, pos, elem)
            except Exception as e:
                self.logger.error(
                    "Node paint failed", node=elem.type, x=pos.x, y=pos.y, error=str(e), exc_info=True
                )
            for inner in structure.inner or []:
                self.draw(ctx, inner)
        finally:
            for _ in range(scopes):
                ctx.restore()

    def draw_node(self, ctx: RasterContext, pos: Position, elem: Any) -> None:
        self.draw_background(ctx, pos, elem.props)
        if isinstance(elem, ImageNode):
            key = image_key(elem, self.generator_key)
            entry = self.cache.entry(key)
            if entry is None or entry.failed:
                self.logger.debug("Image skipped", key=key, error=entry.error if entry else "pending")
            else:
                self.draw_image(ctx, pos, entry.image, elem.props)
        elif elem.text is not None:
            self.draw_text(ctx, pos, elem.text, elem.props)

    def draw_background(self, ctx: RasterContext, pos: Position, props: BoxProps) -> None:
        if props.background_color:
            ctx.fill_rect(pos.x, pos.y, pos.w, pos.h, parse_color(props.background_color))
        if props.background_image:
            bitmap = self.cache.get(props.background_image)
            if bitmap is not None:
                with ctx.scope():
                    ctx.set_composite(props.background_blend_mode)
                    self.draw_fitted(ctx, pos, bitmap, object_fit=props.object_fit)
        if props.border:
            self.draw_borders(ctx, pos, props)

    def draw_borders(self, ctx: RasterContext, pos: Position, props: BoxProps) -> None:
        borders: List[Border] = props.border if isinstance(props.border, list) else [props.border]
        radius = self.radius(props, pos)
        for border in borders:
            inset = border.offset + border.width / 2
            ctx.stroke_rounded_rect(
                pos.x + inset,
                pos.y + inset,
                pos.w - inset * 2,
                pos.h - inset * 2,
                max(radius - inset, 0),
                border.width,
                parse_color(border.color),
            )

    def draw_image(self, ctx: RasterContext, pos: Position, bitmap: Image.Image, props: Any) -> None:
        with ctx.scope():
            if props.opacity is not None:
                ctx.global_alpha = props.opacity
            self.draw_fitted(
                ctx,
                pos,
                bitmap,
                object_fit=props.object_fit,
                crop=props.clip_img_rect,
                props=props,
                shadow=self.shadow_style(props.shadow),
            )

    def draw_fitted(
        self,
        ctx: RasterContext,
        pos: Position,
        bitmap: Image.Image,
        object_fit: Optional[ObjectFit] = None,
        crop: Optional[Any] = None,
        props: Optional[Any] = None,
        shadow: Optional[ShadowStyle] = None,
    ) -> None:
        """Crop, fit and filter a bitmap into ``pos``, then composite it."""
        source = crop_rect(bitmap.width, bitmap.height, crop, self.font_size)
        placement = fit_image(source, (pos.x, pos.y, pos.w, pos.h), object_fit)
        if placement is None:
            return
        size = (max(1, int(round(placement.dw))), max(1, int(round(placement.dh))))
        box = (placement.sx, placement.sy, placement.sx + placement.sw, placement.sy + placement.sh)
        region = bitmap.convert("RGBA").resize(size, Image.Resampling.LANCZOS, box=box)
        if props is not None and props.opacity_gradient is not None:
            region = alpha_gradient(region, props.opacity_gradient, self.font_size)
        if props is not None and props.unsharp_mask is not None:
            mask = props.unsharp_mask
            region = unsharp_mask(region, mask.amount, mask.radius, mask.threshold)
        ctx.draw_image(region, placement.dx, placement.dy, shadow=shadow)

    def draw_text(self, ctx: RasterContext, pos: Position, text: str, props: Any) -> None:
        align = props.text_align or TextAlign.LEFT
        if align == TextAlign.RIGHT:
            x = pos.x + pos.w
        elif align == TextAlign.CENTER:
            x = pos.x + pos.w / 2
        else:
            x = pos.x
        size = resolved_font_size(props.font_size, self.font_size)
        color = parse_color(props.color or self.font_color, parse_color(self.font_color))
        with ctx.scope():
            if props.opacity is not None:
                ctx.global_alpha = props.opacity
            ctx.fill_text(
                text,
                x,
                pos.y + pos.h / 2,
                self.fonts.get(size),
                color,
                align=align.value,
                shadow=self.shadow_style(props.shadow),
            )

    def radius(self, props: BoxProps, pos: Position) -> float:
        return fix_number(props.border_radius, min(pos.w, pos.h), 0, font_size=self.font_size)

    def clip_points(self, line: List[Any], pos: Position) -> List[tuple]:
        """Resolve a flat ``x, y, x, y, ...`` list against the node rectangle."""
        points = []
        for i in range(0, len(line) - 1, 2):
            x = pos.x + fix_number(line[i], pos.w, 0, font_size=self.font_size)
            y = pos.y + fix_number(line[i + 1], pos.h, 0, font_size=self.font_size)
            points.append((x, y))
        return points

    @staticmethod
    def shadow_style(shadow: Optional[Shadow]) -> Optional[ShadowStyle]:
        if shadow is None:
            return None
        return ShadowStyle(size=shadow.size, color=parse_color(shadow.color), repeat=shadow.repeat)
