"""
Raster Surface
==============

The drawing target owned by the host and bound to an engine once.
"""

from typing import Any, Optional
import io

from PIL import Image

from xcanvas.config.logging import get_logger
from xcanvas.core.errors import SurfaceContextUnavailable
from xcanvas.core.rendering.context import RasterContext

logger = get_logger(__name__)


class RasterSurface:
    """A resizable RGBA pixel surface."""

    def __init__(self, width: int, height: int, image: Optional[Image.Image] = None):
        self.image = image if image is not None else Image.new("RGBA", (width, height), (0, 0, 0, 0))
        self.logger: Any = logger.bind(component="surface")

    @classmethod
    def from_image(cls, image: Image.Image) -> "RasterSurface":
        """Wrap an existing Pillow image."""
        return cls(image.width, image.height, image=image)

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    def resize(self, width: Optional[int] = None, height: Optional[int] = None) -> None:
        """Resize the surface. Like a canvas, resizing clears the pixels."""
        width = width or self.width
        height = height or self.height
        if (width, height) == self.image.size:
            return
        self.image = Image.new("RGBA", (width, height), (0, 0, 0, 0))
        self.logger.debug("Surface resized", width=width, height=height)

    def clear(self) -> None:
        self.image.paste((0, 0, 0, 0), (0, 0, self.width, self.height))

    def get_context(self) -> RasterContext:
        """
        Create a 2D drawing context over this surface.

        Raises:
            SurfaceContextUnavailable: If the surface has no pixels or is not RGBA
        """
        if self.image.mode != "RGBA":
            raise SurfaceContextUnavailable(f"Surface mode {self.image.mode} is not RGBA")
        if self.width <= 0 or self.height <= 0:
            raise SurfaceContextUnavailable(f"Surface size {self.width}x{self.height} is empty")
        return RasterContext(self)

    def to_png(self, optimize: bool = True) -> bytes:
        """Encode the current pixels as PNG."""
        output = io.BytesIO()
        self.image.save(output, format="PNG", optimize=optimize)
        return output.getvalue()

    def save(self, path: Any) -> None:
        self.image.save(path, format="PNG")

