"""
Resource Cache
==============

Keyed store of decoded bitmaps and generated sub-surfaces, shared by every
render call of one engine.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from PIL import Image

from xcanvas.config.logging import get_logger
from xcanvas.models.schemas import Structure

logger = get_logger(__name__)


@dataclass
class CacheEntry:
    """A settled load. ``image`` is None when the load failed."""
    key: str
    image: Optional[Image.Image]
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.image is None


class ResourceCache:
    """
    Requested keys and settled entries.

    A key is requested at most once. It becomes settled when its load
    completes or fails; the paint gate compares the two counts.
    """

    def __init__(self) -> None:
        self._requested: List[str] = []
        self._entries: Dict[str, CacheEntry] = {}
        self.logger: Any = logger.bind(component="resource_cache")

    def __contains__(self, key: str) -> bool:
        return key in self._requested

    @property
    def requested_count(self) -> int:
        return len(self._requested)

    @property
    def settled_count(self) -> int:
        return len(self._entries)

    @property
    def pending(self) -> List[str]:
        return [key for key in self._requested if key not in self._entries]

    def is_settled(self) -> bool:
        return self.requested_count == self.settled_count

    def request(self, key: str) -> bool:
        """Register ``key``; returns False if it was already requested."""
        if key in self._requested:
            return False
        self._requested.append(key)
        return True

    def store(self, key: str, image: Image.Image) -> None:
        """Record a loaded bitmap, replacing any previous entry for ``key``."""
        self.request(key)
        self._entries[key] = CacheEntry(key=key, image=image)
        self.logger.debug("Resource stored", key=key, size=image.size)

    def fail(self, key: str, error: str) -> None:
        """Record a failed load so the key still counts as settled."""
        self.request(key)
        self._entries[key] = CacheEntry(key=key, image=None, error=error)

    def get(self, key: str) -> Optional[Image.Image]:
        """The bitmap for ``key``, None if it is pending, failed or unknown."""
        entry = self._entries.get(key)
        return entry.image if entry else None

    def entry(self, key: str) -> Optional[CacheEntry]:
        """The settled entry for ``key``, None while it is pending or unknown."""
        return self._entries.get(key)


@dataclass
class EngineState:
    """Mutable state owned by one engine and touched only on its event loop."""
    cache: ResourceCache = field(default_factory=ResourceCache)
    structure: Optional[Structure] = None
    renders: int = 0
