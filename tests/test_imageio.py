"""
Tests for image loading, saving and resizing.

License: MIT
"""

import numpy as np
import pytest
from PIL import Image

from polyevo.data import fit_dimensions, load_image, resize, save_image
from polyevo.genome import PixelBuffer


# ============================================================================
# Resize Tests
# ============================================================================

class TestResize:
    """Test target downscaling."""

    @pytest.mark.parametrize(
        "size,expected",
        [
            ((800, 600), (540, 405)),
            ((400, 800), (270, 540)),
            ((300, 200), (300, 200)),
            ((540, 540), (540, 540)),
            ((2000, 3), (540, 1)),
        ],
    )
    def test_fit_dimensions(self, size, expected):
        assert fit_dimensions(*size, 540) == expected

    def test_resize_landscape(self):
        buffer = PixelBuffer.blank(800, 600, (10, 20, 30, 255))
        resized = resize(buffer, 540)

        assert resized.size == (540, 405)
        assert tuple(resized.pixels[200, 270]) == (10, 20, 30, 255)

    def test_resize_portrait(self):
        resized = resize(PixelBuffer.blank(400, 800), 540)
        assert resized.size == (270, 540)

    def test_small_image_is_untouched(self):
        buffer = PixelBuffer.blank(100, 50)
        assert resize(buffer, 540) is buffer

    def test_invalid_max_dimension(self):
        with pytest.raises(ValueError):
            resize(PixelBuffer.blank(10, 10), 0)


# ============================================================================
# Load / Save Tests
# ============================================================================

class TestImageFiles:
    """Test reading and writing image files."""

    def test_save_and_load(self, temp_dir, checkerboard):
        path = save_image(temp_dir / "nested" / "board.png", checkerboard)

        assert path.exists()
        assert load_image(path).equals(checkerboard)

    def test_load_converts_to_rgba(self, temp_dir):
        path = temp_dir / "rgb.jpg"
        Image.new("RGB", (12, 8), (200, 100, 50)).save(path)

        buffer = load_image(path)

        assert buffer.size == (12, 8)
        assert np.all(buffer.pixels[..., 3] == 255)

    def test_missing_file(self, temp_dir):
        with pytest.raises(FileNotFoundError):
            load_image(temp_dir / "missing.png")
