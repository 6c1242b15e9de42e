"""
Engine Errors
=============

Exception hierarchy shared by the layout, loading and rendering components.
"""

from typing import Any, Optional


class XCanvasError(Exception):
    """Base class for all engine errors."""

    pass


class ResourceLoadFailure(XCanvasError):
    """Raised when an image fetch or surface generator fails."""

    def __init__(self, key: Any, message: str):
        super().__init__(f"Failed to load resource {key!r}: {message}")
        self.key = key


class SurfaceContextUnavailable(XCanvasError):
    """Raised when the raster surface cannot produce a drawing context."""

    pass


class InvalidSize(XCanvasError):
    """An unparseable length. Only raised by strict parsing helpers."""

    def __init__(self, value: Any, reason: Optional[str] = None):
        super().__init__(f"Invalid size {value!r}" + (f": {reason}" if reason else ""))
        self.value = value


class DocumentParseError(XCanvasError):
    """Raised when a render document cannot be parsed."""

    pass
