"""
Test Helpers
============

Helper functions for common testing operations.
"""

import asyncio
import time
from pathlib import Path
from typing import Callable, Tuple

from PIL import Image

from xcanvas.core.rendering.surface import RasterSurface

RGBA = Tuple[int, int, int, int]


def fixed_measure(text: str, size: float) -> float:
    """Deterministic text measurer: every character is half the font size wide."""
    return len(text) * size * 0.5


def solid_image(size: Tuple[int, int], color: RGBA = (255, 0, 0, 255)) -> Image.Image:
    """Create a single-colour RGBA image."""
    return Image.new("RGBA", size, color)


def split_image(size: Tuple[int, int], left: RGBA, right: RGBA) -> Image.Image:
    """Create an image whose left half and right half have different colours."""
    image = Image.new("RGBA", size, left)
    image.paste(right, (size[0] // 2, 0, size[0], size[1]))
    return image


def write_png(path: Path, size: Tuple[int, int] = (10, 10), color: RGBA = (255, 0, 0, 255)) -> Path:
    """Write a single-colour PNG and return its path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    solid_image(size, color).save(path, format="PNG")
    return path


def pixel(surface: RasterSurface, x: int, y: int) -> RGBA:
    """Read one RGBA pixel from a surface."""
    return surface.image.getpixel((x, y))


def count_opaque(image: Image.Image) -> int:
    """Number of pixels with non-zero alpha."""
    return sum(1 for value in image.getchannel("A").getdata() if value > 0)


async def wait_for_condition(
    condition: Callable[[], bool],
    timeout: float = 5.0,
    interval: float = 0.01,
    error_message: str = "Condition not met within timeout",
) -> None:
    """Wait for a condition to become true."""
    start_time = time.time()

    while time.time() - start_time < timeout:
        if condition():
            return
        await asyncio.sleep(interval)

    raise TimeoutError(error_message)
