"""
xcanvas
=======

Declarative layout trees rendered to raster images.

A tree of boxes and images, styled with box-model properties, is laid out by a
constraint-based solver and painted into a Pillow surface. External images and
generated sub-surfaces load asynchronously; the surface is repainted as each
one arrives.

This package provides:
- A layout solver with percentage, rem and auto resolution
- An asyncio resource loader with a process-wide cache
- A raster painter with clipping, borders, blend modes and text
- Pixel filters (Gaussian blur, unsharp mask, alpha gradient, source crop)
- A JSON/YAML document loader and a command line renderer
"""

__version__ = "0.4.0"
__author__ = "xcanvas contributors"

from xcanvas.core.engine import Engine
from xcanvas.core.rendering.surface import RasterSurface
from xcanvas.models.elements import div, img

__all__ = ["Engine", "RasterSurface", "div", "img", "__version__"]
