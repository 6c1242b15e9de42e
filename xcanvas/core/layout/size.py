"""
Size Resolution
===============

Resolve lengths written as numbers, percentages, rem units or ``"auto"``.
This is the only place unit semantics live; the solver and the painter call
it for every length they touch.
"""

import math
from typing import Any, Optional, Union

from xcanvas.core.errors import InvalidSize

AUTO = "auto"

Resolved = Union[float, str]


def _parse_number(text: str) -> Optional[float]:
    try:
        value = float(text)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def fix_size(
    size: Any,
    length: Optional[float] = None,
    default: Resolved = AUTO,
    *,
    font_size: float = 16,
) -> Resolved:
    """
    Resolve a length to pixels.

    Args:
        size: Number, ``"<n>%"``, ``"<n>rem"``, ``"auto"`` or None
        length: Context length percentages resolve against
        default: Returned when the value cannot be resolved
        font_size: Base font size for rem units

    Returns:
        The resolved number, or ``default`` (``AUTO`` unless given)
    """
    if size is None or isinstance(size, bool):
        return default
    if isinstance(size, (int, float)):
        return size
    if isinstance(size, str):
        text = size.strip()
        if text.endswith("rem"):
            number = _parse_number(text[:-3])
            if number is not None:
                return number * font_size
        if text.endswith("%") and length is not None:
            number = _parse_number(text[:-1])
            if number is not None:
                return number / 100 * length
    return default


def fix_number(size: Any, length: Optional[float], default: float, *, font_size: float = 16) -> float:
    """Like :func:`fix_size` but always returns a number."""
    value = fix_size(size, length, default, font_size=font_size)
    return default if value == AUTO else float(value)


def percent_fraction(size: Any) -> Optional[float]:
    """Return ``0.5`` for ``"50%"``, None for anything that is not a percentage."""
    if not isinstance(size, str):
        return None
    text = size.strip()
    if not text.endswith("%"):
        return None
    number = _parse_number(text[:-1])
    return None if number is None else number / 100


def is_auto(size: Any) -> bool:
    return isinstance(size, str) and size.strip() == AUTO


def validate_size(size: Any) -> Any:
    """
    Check that a length is well formed.

    Raises:
        InvalidSize: If the value is neither a number, ``"auto"``, a
            percentage nor a rem length
    """
    if size is None or is_auto(size):
        return size
    if isinstance(size, bool):
        raise InvalidSize(size, "booleans are not lengths")
    if isinstance(size, (int, float)):
        return size
    if isinstance(size, str):
        text = size.strip()
        for suffix in ("rem", "%"):
            if text.endswith(suffix) and _parse_number(text[: -len(suffix)]) is not None:
                return size
    raise InvalidSize(size)
