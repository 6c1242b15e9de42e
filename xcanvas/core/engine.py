"""
Render Engine
=============

Owns a raster surface, the current options, the resource cache and the latest
structure tree, and drives the pipeline for each render request:

1. the layout solver builds the structure tree,
2. the resource loader starts every load the tree needs,
3. the painter paints immediately and again each time a load settles.

Render calls return before loads finish; ``settle()`` waits for them.
"""

from typing import Any, Dict, Optional, Union

from xcanvas.config.logging import get_logger, set_debug_mode
from xcanvas.config.settings import get_settings
from xcanvas.core.errors import SurfaceContextUnavailable, XCanvasError
from xcanvas.core.layout.solver import LayoutSolver
from xcanvas.core.loading.cache import EngineState
from xcanvas.core.loading.fetcher import ImageFetcher
from xcanvas.core.loading.loader import ResourceLoader
from xcanvas.core.rendering.fonts import FontBook
from xcanvas.core.rendering.painter import Painter, PaintResult
from xcanvas.core.rendering.surface import RasterSurface
from xcanvas.models.schemas import ContainerNode, Options, RenderRequest, Structure

logger = get_logger(__name__)

Message = Union[RenderRequest, Dict[str, Any]]


class Engine:
    """Single-surface render engine."""

    def __init__(
        self,
        surface: RasterSurface,
        options: Optional[Options] = None,
        fetcher: Optional[ImageFetcher] = None,
    ):
        self.settings = get_settings()
        self.surface = surface
        self.state = EngineState()
        self.disabled = False
        self.logger: Any = logger.bind(component="engine")
        self.loader = ResourceLoader(self.state.cache, self._on_loaded, fetcher)
        self.apply_options(options)
        self._check_surface()

    @classmethod
    def from_message(cls, message: Message, fetcher: Optional[ImageFetcher] = None) -> "Engine":
        """
        Create an engine from the first host message and handle it.

        Args:
            message: Render request carrying the surface
            fetcher: Optional image fetcher override

        Returns:
            The engine bound to the message's surface

        Raises:
            XCanvasError: If the message carries no surface
        """
        request = _as_request(message)
        if request.surface is None:
            raise XCanvasError("The first message must carry a surface")
        engine = cls(request.surface, request.options, fetcher=fetcher)
        engine.render(request.root)
        return engine

    @property
    def cache(self):
        return self.state.cache

    @property
    def structure(self) -> Optional[Structure]:
        return self.state.structure

    def _check_surface(self) -> None:
        try:
            self.surface.get_context()
        except SurfaceContextUnavailable as e:
            self._disable(e)

    def _disable(self, error: SurfaceContextUnavailable) -> None:
        self.logger.error("Surface context unavailable, engine disabled", error=str(error))
        self.disabled = True

    def handle_message(self, message: Message) -> Optional[PaintResult]:
        """Handle a later host message. The surface is bound once and never replaced."""
        if self.disabled:
            self.logger.warning("Message ignored, engine is disabled")
            return None
        request = _as_request(message)
        if request.surface is not None and request.surface is not self.surface:
            self.logger.debug("Surface in later message ignored")
        if request.options is not None:
            self.apply_options(request.options)
        return self.render(request.root)

    def apply_options(self, options: Optional[Options] = None) -> None:
        """
        Replace the option set. Unset fields revert to defaults; the canvas
        size changes only when given. Takes effect on the next render.
        """
        options = options or Options()
        self.options = options
        settings = self.settings

        if options.canvas_width or options.canvas_height:
            self.surface.resize(
                min(options.canvas_width, settings.max_canvas_width) if options.canvas_width else None,
                min(options.canvas_height, settings.max_canvas_height) if options.canvas_height else None,
            )

        family, font_path = options.font_face or (settings.default_font_family, None)
        self.font_size = options.font_size or settings.default_font_size
        self.font_color = options.font_color or settings.default_font_color
        self.fonts = FontBook(
            family or settings.default_font_family,
            font_path,
            settings.font_search_paths,
            settings.sans_serif_font_files,
        )
        self.solver = LayoutSolver(self.fonts.measure, self.font_size, settings.line_height_ratio)
        self.painter = Painter(
            self.surface,
            self.state.cache,
            self.fonts,
            font_size=self.font_size,
            font_color=self.font_color,
            generator_key=settings.default_generator_key,
        )
        set_debug_mode(options.debug_mode)
        self.logger.debug("Options applied", font_family=family, font_size=self.font_size)

    def render(self, root: ContainerNode) -> Optional[PaintResult]:
        """
        Lay out ``root``, start its loads and paint what is ready.

        Must run on an event loop when the tree has external or generated images.
        """
        if self.disabled:
            self.logger.warning("Render ignored, engine is disabled")
            return None
        self.state.renders += 1
        structure = self.solver.build(root, self.surface.width, self.surface.height)
        self.state.structure = structure
        started = self.loader.scan(structure)
        self.logger.debug("Render started", render=self.state.renders, loads=started)
        return self.repaint()

    def repaint(self) -> Optional[PaintResult]:
        """Attempt a full paint of the current structure."""
        if self.disabled:
            return None
        try:
            return self.painter.paint(self.state.structure)
        except SurfaceContextUnavailable as e:
            self._disable(e)
            return None

    def _on_loaded(self, key: str) -> None:
        result = self.repaint()
        self.logger.debug("Resource settled", key=key, paint=result.value if result else None)

    async def settle(self) -> None:
        """Wait for every outstanding resource load."""
        await self.loader.settle()

    async def close(self) -> None:
        await self.loader.close()

    def to_png(self) -> bytes:
        return self.surface.to_png()


def _as_request(message: Message) -> RenderRequest:
    if isinstance(message, RenderRequest):
        return message
    return RenderRequest.model_validate(message)
