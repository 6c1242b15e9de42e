"""
Font Management
===============

Font lookup and single-line text measurement with Pillow.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any, List, Optional, Sequence

from PIL import ImageFont

from xcanvas.config.logging import get_logger
from xcanvas.core.rendering.context import RasterContext

logger = get_logger(__name__)

FontType = Any  # ImageFont.FreeTypeFont | ImageFont.ImageFont


class FontBook:
    """Loads one font family at any pixel size and measures text with it."""

    def __init__(
        self,
        family: str = "sans-serif",
        path: Optional[str] = None,
        search_paths: Sequence[Path] = (),
        candidates: Sequence[str] = (),
    ):
        self.family = family
        self.logger: Any = logger.bind(component="fonts", family=family)
        self.path = self._locate(path, search_paths, candidates)
        self._load = lru_cache(maxsize=64)(self._load_font)

    def _locate(self, path: Optional[str], search_paths: Sequence[Path], candidates: Sequence[str]) -> Optional[str]:
        if path:
            if Path(path).is_file():
                return path
            self.logger.warning("Font file not found, using fallback", path=path)
        names: List[str] = [f"{self.family}.ttf", *candidates]
        for directory in search_paths:
            for name in names:
                candidate = Path(directory) / name
                if candidate.is_file():
                    return str(candidate)
        return None

    def _load_font(self, size: int) -> FontType:
        if self.path:
            try:
                return ImageFont.truetype(self.path, size)
            except OSError as e:
                self.logger.warning("Font load failed, using default font", path=self.path, error=str(e))
        return ImageFont.load_default(size=size)

    def get(self, size: float) -> FontType:
        """Font instance at ``size`` pixels."""
        return self._load(max(1, int(round(size))))

    def measure(self, text: str, size: float) -> float:
        """Advance width of ``text`` in pixels."""
        return RasterContext.measure_text(text, self.get(size))
