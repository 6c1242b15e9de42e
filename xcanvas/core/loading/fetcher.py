"""
Image Fetcher
=============

Fetches and decodes image sources: absolute URLs over HTTP, relative sources
against the configured base URL, or local files read on a worker thread.
"""

from pathlib import Path
from typing import Any, Optional
from urllib.parse import urljoin
import asyncio
import io

import aiohttp
from PIL import Image, UnidentifiedImageError

from xcanvas.config.logging import get_logger
from xcanvas.config.settings import get_settings

logger = get_logger(__name__)


class ImageFetchError(Exception):
    """Raised when an image source cannot be read or decoded."""

    pass


def decode_image(data: bytes) -> Image.Image:
    """Decode encoded image bytes into an RGBA bitmap."""
    try:
        with Image.open(io.BytesIO(data)) as image:
            image.load()
            return image.convert("RGBA")
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise ImageFetchError(f"Undecodable image data: {e}") from e


class ImageFetcher:
    """Loads bitmaps for string image sources."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        root: Optional[Path] = None,
        timeout: Optional[float] = None,
    ):
        self.settings = get_settings()
        self.base_url = base_url if base_url is not None else self.settings.resource_base_url
        self.root = Path(root) if root is not None else self.settings.resource_root
        self.timeout = timeout if timeout is not None else self.settings.fetch_timeout
        self.logger: Any = logger.bind(component="image_fetcher")
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout))
        return self._session

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    def resolve(self, src: str) -> str:
        """Absolute URL or filesystem path for ``src``."""
        if src.startswith(("http://", "https://")):
            return src
        if self.base_url:
            return urljoin(self.base_url, src)
        path = Path(src)
        return str(path if path.is_absolute() else self.root / path)

    async def fetch(self, src: str) -> Image.Image:
        """
        Fetch and decode one image source.

        Raises:
            ImageFetchError: If the source cannot be read or decoded
        """
        location = self.resolve(src)
        if location.startswith(("http://", "https://")):
            data = await self.fetch_url(location)
        else:
            data = await asyncio.to_thread(self.read_file, Path(location))
        return decode_image(data)

    async def fetch_url(self, url: str) -> bytes:
        try:
            session = await self._get_session()
            async with session.get(url) as response:
                if response.status != 200:
                    raise ImageFetchError(f"GET {url} returned {response.status}")
                data = await response.read()
                self.logger.debug("Image fetched", url=url, bytes=len(data))
                return data
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ImageFetchError(f"GET {url} failed: {e}") from e

    def read_file(self, path: Path) -> bytes:
        try:
            return path.read_bytes()
        except OSError as e:
            raise ImageFetchError(f"Cannot read {path}: {e}") from e
