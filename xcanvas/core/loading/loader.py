"""
Resource Loader
===============

Scans a structure tree for image-bearing nodes and loads their bitmaps in the
background, asking for a repaint each time one settles.
"""

from typing import Any, Awaitable, Callable, Coroutine, Optional, Set
import asyncio
import inspect

from PIL import Image

from xcanvas.config.logging import get_logger
from xcanvas.config.settings import get_settings
from xcanvas.core.errors import ResourceLoadFailure
from xcanvas.core.loading.cache import ResourceCache
from xcanvas.core.loading.fetcher import ImageFetcher, ImageFetchError
from xcanvas.core.rendering.surface import RasterSurface
from xcanvas.models.schemas import ContainerNode, ImageNode, Position, Structure

logger = get_logger(__name__)

Generator = Callable[[RasterSurface], Optional[Awaitable[None]]]


def image_key(node: ImageNode, generator_key: str = "canvas") -> str:
    """Cache key of an image node: its ``id``, else derived from the source."""
    if node.props.id:
        return node.props.id
    src = node.src
    if isinstance(src, str):
        return src
    if isinstance(src, Image.Image):
        return f"bitmap:{id(src)}"
    return generator_key


class ResourceLoader:
    """Issues loads for a structure tree into a shared cache."""

    def __init__(
        self,
        cache: ResourceCache,
        on_loaded: Callable[[str], None],
        fetcher: Optional[ImageFetcher] = None,
    ):
        self.cache = cache
        self.on_loaded = on_loaded
        self.fetcher = fetcher or ImageFetcher()
        self.settings = get_settings()
        self.logger: Any = logger.bind(component="resource_loader")
        self._tasks: Set[asyncio.Task] = set()

    @property
    def outstanding(self) -> int:
        return len(self._tasks)

    def scan(self, structure: Structure) -> int:
        """
        Walk ``structure`` and start every load it needs.

        Returns:
            Number of loads started
        """
        before = len(self._tasks)
        self._visit(structure)
        started = len(self._tasks) - before
        if started:
            self.logger.debug("Loads started", count=started, pending=len(self.cache.pending))
        return started

    def _visit(self, structure: Structure) -> None:
        elem = structure.elem
        if isinstance(elem, (ContainerNode, ImageNode)):
            if elem.props.background_image:
                self.load_source(elem.props.background_image)
            if isinstance(elem, ImageNode):
                self.load_node(elem, structure.pos)
        for inner in structure.inner or []:
            self._visit(inner)

    def load_node(self, node: ImageNode, pos: Position) -> None:
        key = image_key(node, self.settings.default_generator_key)
        src = node.src
        if isinstance(src, str):
            self.load_source(src, key)
        elif isinstance(src, Image.Image):
            if self.cache.request(key):
                self.cache.store(key, src.convert("RGBA"))
        elif callable(src):
            self.load_generator(key, src, pos, node.props.refresh)

    def load_source(self, src: str, key: Optional[str] = None) -> None:
        """Fetch a string source once per key."""
        key = key or src
        if key in self.cache:
            return
        self._spawn(key, self._fetch(key, src))

    def load_generator(self, key: str, func: Generator, pos: Position, refresh: bool = True) -> None:
        """Run a generator, again on every call when ``refresh`` is set."""
        if key in self.cache and not refresh:
            return
        width = max(0, int(round(pos.w)))
        height = max(0, int(round(pos.h)))
        self._spawn(key, self._generate(key, func, width, height))

    def _spawn(self, key: str, coro: Coroutine[Any, Any, Image.Image]) -> None:
        """
        Schedule a load and register its key.

        Raises:
            RuntimeError: If no event loop is running; the key stays unrequested
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            raise
        task = loop.create_task(self._run(key, coro))
        self.cache.request(key)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, key: str, coro: Awaitable[Image.Image]) -> None:
        try:
            image = await coro
        except ResourceLoadFailure as e:
            self.logger.warning("Resource load failed", key=key, error=str(e))
            self.cache.fail(key, str(e))
        except Exception as e:
            self.logger.error("Unexpected resource load error", key=key, error=str(e), exc_info=True)
            self.cache.fail(key, f"{type(e).__name__}: {e}")
        else:
            self.cache.store(key, image)
        finally:
            self.on_loaded(key)

    async def _fetch(self, key: str, src: str) -> Image.Image:
        try:
            return await self.fetcher.fetch(src)
        except ImageFetchError as e:
            raise ResourceLoadFailure(key, str(e)) from e

    async def _generate(self, key: str, func: Generator, width: int, height: int) -> Image.Image:
        try:
            surface = RasterSurface(width, height)
            result = func(surface)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            raise ResourceLoadFailure(key, f"generator raised {type(e).__name__}: {e}") from e
        return surface.image.copy()

    async def settle(self) -> None:
        """Wait until every started load, including ones started meanwhile, has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def close(self) -> None:
        await self.settle()
        await self.fetcher.close()
