"""
Post-Processing Filters
=======================

Pure pixel transforms applied to images at draw time, plus the placement math
that maps a source bitmap onto a destination rectangle.

Array functions take and return ``H x W x 4`` RGBA arrays; the image helpers
wrap them for Pillow images. Nothing here keeps state between calls.
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np
from PIL import Image

from xcanvas.core.layout.size import fix_number
from xcanvas.models.schemas import GradientDirection, ObjectFit, OpacityGradient


@dataclass(frozen=True)
class Placement:
    """Source rectangle ``(sx, sy, sw, sh)`` drawn into destination ``(dx, dy, dw, dh)``."""
    sx: float
    sy: float
    sw: float
    sh: float
    dx: float
    dy: float
    dw: float
    dh: float


def gaussian_kernel(radius: int) -> np.ndarray:
    """Normalized 1D Gaussian weights for ``i`` in ``[-radius, radius]``, sigma ``radius / 3``."""
    if radius <= 0:
        return np.ones(1)
    sigma = radius / 3
    i = np.arange(-radius, radius + 1, dtype=np.float64)
    kernel = np.exp(-(i ** 2) / (2 * sigma ** 2))
    return kernel / kernel.sum()


def _convolve_axis(values: np.ndarray, kernel: np.ndarray, axis: int) -> np.ndarray:
    radius = len(kernel) // 2
    pad = [(0, 0)] * values.ndim
    pad[axis] = (radius, radius)
    padded = np.pad(values, pad, mode="edge")
    n = values.shape[axis]
    out = np.zeros_like(values)
    for offset, weight in enumerate(kernel):
        out += weight * np.take(padded, np.arange(offset, offset + n), axis=axis)
    return out


def blur_array(pixels: np.ndarray, radius: int) -> np.ndarray:
    """
    Separable Gaussian blur of the RGB channels, horizontal then vertical.

    Args:
        pixels: ``H x W x 4`` RGBA array
        radius: Kernel radius in pixels; 0 returns the input unchanged

    Returns:
        Float array of the same shape, alpha copied from the input
    """
    result = pixels.astype(np.float64)
    if radius <= 0 or result.size == 0:
        return result
    kernel = gaussian_kernel(radius)
    rgb = result[..., :3]
    rgb = _convolve_axis(rgb, kernel, axis=1)
    rgb = _convolve_axis(rgb, kernel, axis=0)
    result[..., :3] = rgb
    return result


def unsharp_array(pixels: np.ndarray, amount: float, radius: int, threshold: float = 0) -> np.ndarray:
    """Sharpen RGB where ``|orig - blurred| > threshold``; output clamped to ``[0, 255]``."""
    original = pixels.astype(np.float64)
    blurred = blur_array(original, radius)
    diff = original[..., :3] - blurred[..., :3]
    sharpened = np.where(np.abs(diff) > threshold, original[..., :3] + diff * amount, original[..., :3])
    result = original.copy()
    result[..., :3] = np.clip(sharpened, 0, 255)
    return result


def gradient_factors(length: int, stops: Sequence[Tuple[float, float]]) -> np.ndarray:
    """Per-pixel opacity along an axis, linear between stops, clamped to the end stops."""
    if not stops:
        return np.ones(length)
    ordered = sorted(stops, key=lambda stop: stop[0])
    positions = [position for position, _ in ordered]
    opacities = [opacity for _, opacity in ordered]
    return np.clip(np.interp(np.arange(length, dtype=np.float64), positions, opacities), 0.0, 1.0)


def alpha_gradient_array(
    pixels: np.ndarray, gradient: OpacityGradient, font_size: float = 16
) -> np.ndarray:
    """Multiply alpha by a directional gradient; stops resolve against the axis length."""
    result = pixels.astype(np.float64)
    if not gradient.stops or all(opacity == 1 for _, opacity in gradient.stops):
        return result
    height, width = result.shape[:2]
    horizontal = gradient.direction == GradientDirection.TO_RIGHT
    length = width if horizontal else height
    stops = [(fix_number(position, length, 0, font_size=font_size), opacity) for position, opacity in gradient.stops]
    factors = gradient_factors(length, stops)
    if horizontal:
        result[..., 3] *= factors[np.newaxis, :]
    else:
        result[..., 3] *= factors[:, np.newaxis]
    return result


def _to_array(image: Image.Image) -> np.ndarray:
    return np.asarray(image.convert("RGBA"))


def _to_image(values: np.ndarray) -> Image.Image:
    return Image.fromarray(np.clip(np.round(values), 0, 255).astype(np.uint8), "RGBA")


def unsharp_mask(image: Image.Image, amount: float, radius: int, threshold: float = 0) -> Image.Image:
    return _to_image(unsharp_array(_to_array(image), amount, radius, threshold))


def alpha_gradient(image: Image.Image, gradient: OpacityGradient, font_size: float = 16) -> Image.Image:
    return _to_image(alpha_gradient_array(_to_array(image), gradient, font_size))


def crop_rect(
    width: float, height: float, rect: Optional[Sequence], font_size: float = 16
) -> Tuple[float, float, float, float]:
    """
    Resolve a ``(top, right, bottom, left)`` source crop in source pixels.

    Insets are clamped to the image, so negative or oversized values never
    produce a rectangle outside it.

    Returns:
        ``(sx, sy, sw, sh)``; the full image when ``rect`` is None
    """
    if not rect:
        return 0.0, 0.0, float(width), float(height)
    top, right, bottom, left = (
        fix_number(value, length, 0, font_size=font_size)
        for value, length in zip(rect, (height, width, height, width))
    )
    left = min(max(0.0, left), width)
    top = min(max(0.0, top), height)
    right = min(max(0.0, right), width - left)
    bottom = min(max(0.0, bottom), height - top)
    return left, top, width - left - right, height - top - bottom


def fit_image(
    source: Tuple[float, float, float, float],
    dest: Tuple[float, float, float, float],
    object_fit: Optional[ObjectFit] = None,
) -> Optional[Placement]:
    """
    Place a source rectangle inside a destination rectangle.

    ``contain`` (default) scales the source to fit and centers it along the
    other axis. ``cover`` fills the destination exactly and crops the source
    symmetrically along the axis that overflows.

    Returns:
        The placement, or None when either rectangle is empty
    """
    sx, sy, sw, sh = source
    x, y, w, h = dest
    if sw <= 0 or sh <= 0 or w <= 0 or h <= 0:
        return None
    dest_ratio = w / h
    src_ratio = sw / sh

    if object_fit == ObjectFit.COVER:
        if dest_ratio < src_ratio:
            cropped = sh * dest_ratio
            return Placement(sx + (sw - cropped) / 2, sy, cropped, sh, x, y, w, h)
        if src_ratio < dest_ratio:
            cropped = sw / dest_ratio
            return Placement(sx, sy + (sh - cropped) / 2, sw, cropped, x, y, w, h)
        return Placement(sx, sy, sw, sh, x, y, w, h)

    if dest_ratio < src_ratio:
        fitted_h = sh * w / sw
        return Placement(sx, sy, sw, sh, x, y + h / 2 - fitted_h / 2, w, fitted_h)
    fitted_w = sw * h / sh
    return Placement(sx, sy, sw, sh, x + w / 2 - fitted_w / 2, y, fitted_w, h)
