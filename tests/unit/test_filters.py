"""
Unit Tests for Post-Processing Filters
======================================

Tests for the Gaussian blur, unsharp mask, alpha gradient, source crop and
object-fit placement.
"""

import numpy as np
import pytest
from PIL import Image

from xcanvas.core.rendering.filters import (
    alpha_gradient,
    alpha_gradient_array,
    blur_array,
    crop_rect,
    fit_image,
    gaussian_kernel,
    gradient_factors,
    unsharp_array,
    unsharp_mask,
)
from xcanvas.models.schemas import ObjectFit, OpacityGradient


def step_pixels(width: int = 20, height: int = 3) -> np.ndarray:
    """Black left half, white right half, fully opaque."""
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    pixels[:, width // 2 :, :3] = 255
    pixels[..., 3] = 255
    return pixels


class TestGaussianBlur:
    """Test the separable Gaussian blur."""

    @pytest.mark.parametrize("radius", [1, 2, 5, 10])
    def test_kernel_is_normalized_and_symmetric(self, radius):
        kernel = gaussian_kernel(radius)
        assert len(kernel) == 2 * radius + 1
        assert kernel.sum() == pytest.approx(1.0)
        assert np.allclose(kernel, kernel[::-1])
        assert kernel.argmax() == radius

    def test_radius_zero_is_identity(self):
        pixels = step_pixels()
        assert gaussian_kernel(0).tolist() == [1.0]
        assert np.array_equal(blur_array(pixels, 0), pixels.astype(np.float64))

    def test_uniform_image_is_unchanged(self):
        pixels = np.full((8, 8, 4), 120, dtype=np.uint8)
        assert np.allclose(blur_array(pixels, 3), 120)

    def test_step_edge_is_smoothed(self):
        blurred = blur_array(step_pixels(), 3)
        row = blurred[1, :, 0]
        assert row[0] == pytest.approx(0)
        assert row[-1] == pytest.approx(255)
        assert 0 < row[9] < 255
        assert 0 < row[10] < 255
        assert np.all(np.diff(row) >= -1e-9)

    def test_alpha_is_untouched(self):
        pixels = step_pixels()
        pixels[:, :5, 3] = 0
        blurred = blur_array(pixels, 2)
        assert np.array_equal(blurred[..., 3], pixels[..., 3])


class TestUnsharpMask:
    """Test unsharp masking."""

    def test_output_stays_in_byte_range(self):
        rng = np.random.default_rng(7)
        pixels = rng.integers(0, 256, size=(16, 16, 4), dtype=np.uint8)
        result = unsharp_array(pixels, amount=5.0, radius=2)
        assert result.min() >= 0
        assert result.max() <= 255

    def test_edges_are_amplified(self):
        result = unsharp_array(step_pixels(), amount=1.0, radius=2)
        row = result[1, :, 0]
        assert row[9] == 0
        assert row[10] == 255

    def test_high_threshold_leaves_pixels_unchanged(self):
        pixels = step_pixels()
        result = unsharp_array(pixels, amount=2.0, radius=2, threshold=255)
        assert np.array_equal(result, pixels.astype(np.float64))

    def test_alpha_is_untouched(self):
        pixels = step_pixels()
        pixels[..., 3] = 90
        result = unsharp_mask(Image.fromarray(pixels, "RGBA"), 3.0, 2)
        assert set(result.getchannel("A").getdata()) == {90}


class TestAlphaGradient:
    """Test directional alpha gradients."""

    def test_factors_interpolate_and_clamp(self):
        factors = gradient_factors(11, [(2, 0.0), (6, 1.0)])
        assert factors[0] == 0
        assert factors[4] == pytest.approx(0.5)
        assert factors[10] == 1

    def test_left_to_right_fade(self):
        pixels = np.full((2, 11, 4), 255, dtype=np.uint8)
        gradient = OpacityGradient(direction="to right", stops=[(0, 0.0), (10, 1.0)])
        result = alpha_gradient_array(pixels, gradient)
        assert result[0, 0, 3] == 0
        assert result[0, 5, 3] == pytest.approx(127.5)
        assert result[0, 10, 3] == 255
        assert np.array_equal(result[..., :3], pixels[..., :3])

    def test_top_to_bottom_with_percentages(self):
        pixels = np.full((11, 2, 4), 255, dtype=np.uint8)
        gradient = OpacityGradient.model_validate(["to bottom", [0, 1.0], ["50%", 0.0]])
        result = alpha_gradient_array(pixels, gradient)
        assert result[0, 0, 3] == 255
        assert result[10, 1, 3] == 0

    def test_all_opaque_stops_are_a_no_op(self):
        pixels = np.full((3, 3, 4), 200, dtype=np.uint8)
        gradient = OpacityGradient(stops=[(0, 1), ("100%", 1)])
        assert np.array_equal(alpha_gradient_array(pixels, gradient), pixels.astype(np.float64))

    def test_image_wrapper(self):
        image = Image.new("RGBA", (11, 1), (0, 0, 255, 255))
        gradient = OpacityGradient(stops=[(0, 0.0), (10, 1.0)])
        result = alpha_gradient(image, gradient)
        assert result.getpixel((0, 0))[3] == 0
        assert result.getpixel((10, 0)) == (0, 0, 255, 255)


class TestCropRect:
    """Test source crop resolution."""

    def test_no_crop_is_full_image(self):
        assert crop_rect(100, 50, None) == (0, 0, 100, 50)

    def test_crop_sides_resolve_against_their_axis(self):
        # top, right, bottom, left
        assert crop_rect(200, 100, ("10%", 0, 0, 20)) == (20, 10, 180, 90)

    def test_rem_crop(self):
        assert crop_rect(100, 100, (0, "1rem", 0, "1rem"), font_size=10) == (10, 0, 80, 100)

    def test_oversized_crop_is_empty(self):
        assert crop_rect(10, 10, (0, 8, 0, 8))[2] == 0

    def test_negative_insets_stay_inside_the_image(self):
        assert crop_rect(100, 50, (0, 0, 0, -10)) == (0, 0, 100, 50)
        assert crop_rect(100, 50, (-5, -5, -5, -5)) == (0, 0, 100, 50)

    def test_insets_past_the_edge_are_clamped(self):
        sx, sy, sw, sh = crop_rect(100, 50, (80, 0, 0, 150))
        assert (sx, sy) == (100, 50)
        assert (sw, sh) == (0, 0)


class TestFitImage:
    """Test object-fit placement."""

    def test_contain_letterboxes_wide_image(self):
        placement = fit_image((0, 0, 100, 50), (0, 0, 100, 100))
        assert (placement.dx, placement.dy, placement.dw, placement.dh) == (0, 25, 100, 50)
        assert (placement.sw, placement.sh) == (100, 50)

    def test_contain_pillarboxes_square_image_in_wide_area(self):
        placement = fit_image((0, 0, 100, 100), (0, 0, 200, 100), ObjectFit.CONTAIN)
        assert (placement.dx, placement.dy, placement.dw, placement.dh) == (50, 0, 100, 100)

    def test_cover_fills_destination_width(self):
        placement = fit_image((0, 0, 100, 100), (0, 0, 200, 100), ObjectFit.COVER)
        assert (placement.dx, placement.dy, placement.dw, placement.dh) == (0, 0, 200, 100)
        assert (placement.sx, placement.sy, placement.sw, placement.sh) == (0, 25, 100, 50)

    def test_cover_crops_wide_source_horizontally(self):
        placement = fit_image((0, 0, 200, 100), (10, 10, 50, 50), ObjectFit.COVER)
        assert (placement.sx, placement.sy, placement.sw, placement.sh) == (50, 0, 100, 100)
        assert (placement.dx, placement.dy, placement.dw, placement.dh) == (10, 10, 50, 50)

    def test_cover_composes_with_source_crop(self):
        placement = fit_image((20, 0, 100, 100), (0, 0, 100, 50), ObjectFit.COVER)
        assert (placement.sx, placement.sy, placement.sw, placement.sh) == (20, 25, 100, 50)

    def test_matching_ratio_maps_directly(self):
        placement = fit_image((0, 0, 40, 20), (5, 5, 80, 40), ObjectFit.COVER)
        assert (placement.sx, placement.sy, placement.sw, placement.sh) == (0, 0, 40, 20)
        assert (placement.dw, placement.dh) == (80, 40)

    @pytest.mark.parametrize("source,dest", [((0, 0, 0, 10), (0, 0, 10, 10)), ((0, 0, 10, 10), (0, 0, 10, 0))])
    def test_empty_rectangles_place_nothing(self, source, dest):
        assert fit_image(source, dest) is None
