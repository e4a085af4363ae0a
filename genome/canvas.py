"""
Pixel Buffer & Polygon Renderer

A fixed-size RGBA raster backed by a ``(height, width, 4)`` uint8 numpy
array, plus the polygon primitive used to paint candidate images.

Polygons are rasterised with Pillow on a transparent layer cropped to the
polygon's bounding box and alpha-composited onto the buffer, so translucent
fills blend with what is already painted.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from PIL import Image, ImageDraw


RGBA = tuple[int, int, int, int]

CHANNELS = 4
MIN_VERTICES = 3

# Random fill alpha stays in [50, 255] so new shapes are never invisible
MIN_ALPHA = 50


def random_rgba(rng: np.random.Generator) -> RGBA:
    """Random color with alpha between 50 and 255."""
    r, g, b = (int(c) for c in rng.integers(0, 256, size=3))
    a = int(rng.integers(MIN_ALPHA, 256))
    return (r, g, b, a)


# =============================================================================
# Polygon
# =============================================================================


@dataclass
class Polygon:
    """A filled polygon: ordered integer vertices and an RGBA color."""

    points: list[tuple[int, int]]
    color: RGBA

    def __post_init__(self) -> None:
        if len(self.points) < MIN_VERTICES:
            raise ValueError(
                f"Polygon needs at least {MIN_VERTICES} vertices, got {len(self.points)}"
            )

    def bounds(self) -> tuple[int, int, int, int]:
        """Inclusive bounding box ``(x0, y0, x1, y1)``."""
        xs = [x for x, _ in self.points]
        ys = [y for _, y in self.points]
        return (min(xs), min(ys), max(xs), max(ys))


def random_polygon(
    rng: np.random.Generator,
    width: int,
    height: int,
    radius: int,
    num_vertices: int,
) -> Polygon:
    """
    Random polygon around a random anchor point.

    Each vertex is offset from the anchor by up to ``radius`` pixels per axis
    and clamped to the canvas.
    """
    radius = max(1, radius)
    anchor_x = int(rng.integers(width))
    anchor_y = int(rng.integers(height))

    offsets = rng.integers(0, 2 * radius, size=(num_vertices, 2)) - radius
    xs = np.clip(anchor_x + offsets[:, 0], 0, width - 1)
    ys = np.clip(anchor_y + offsets[:, 1], 0, height - 1)

    return Polygon(
        points=[(int(x), int(y)) for x, y in zip(xs, ys)],
        color=random_rgba(rng),
    )


# =============================================================================
# Pixel Buffer
# =============================================================================


class PixelBuffer:
    """
    Fixed-size RGBA raster.

    ``pixels`` is exposed directly for vectorised access; its shape never
    changes after construction.
    """

    __slots__ = ("pixels",)

    def __init__(self, pixels: np.ndarray):
        pixels = np.ascontiguousarray(pixels, dtype=np.uint8)
        if pixels.ndim != 3 or pixels.shape[2] != CHANNELS:
            raise ValueError(f"Expected (height, width, 4) array, got shape {pixels.shape}")
        if pixels.shape[0] == 0 or pixels.shape[1] == 0:
            raise ValueError("Pixel buffer must be at least 1x1")
        self.pixels = pixels

    @classmethod
    def blank(cls, width: int, height: int, color: RGBA = (0, 0, 0, 0)) -> PixelBuffer:
        """Buffer of ``width`` x ``height`` filled with ``color``."""
        pixels = np.empty((height, width, CHANNELS), dtype=np.uint8)
        pixels[:] = color
        return cls(pixels)

    @classmethod
    def from_image(cls, image: Image.Image) -> PixelBuffer:
        """Copy a Pillow image (any mode) into an RGBA buffer."""
        return cls(np.array(image.convert("RGBA")))

    def to_image(self) -> Image.Image:
        """Pillow RGBA image holding a copy of the pixels."""
        return Image.fromarray(self.pixels.copy())

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def size(self) -> tuple[int, int]:
        """``(width, height)``, Pillow order."""
        return (self.width, self.height)

    @property
    def area(self) -> int:
        return self.width * self.height

    def same_shape(self, other: PixelBuffer) -> bool:
        return self.pixels.shape == other.pixels.shape

    def copy(self) -> PixelBuffer:
        """Independent deep copy (always writeable)."""
        return PixelBuffer(self.pixels.copy())

    def freeze(self) -> PixelBuffer:
        """Mark the underlying array read-only and return self."""
        self.pixels.flags.writeable = False
        return self

    def fill(self, color: RGBA) -> None:
        """Overwrite every pixel with ``color``."""
        self.pixels[:] = color

    def draw_polygon(self, polygon: Polygon) -> None:
        """
        Alpha-composite a filled polygon onto the buffer.

        Vertices outside the canvas are clipped to it.
        """
        x0, y0, x1, y1 = polygon.bounds()
        x0 = max(0, x0)
        y0 = max(0, y0)
        x1 = min(self.width - 1, x1)
        y1 = min(self.height - 1, y1)
        if x1 < x0 or y1 < y0:
            return

        region = self.pixels[y0:y1 + 1, x0:x1 + 1]
        base = Image.fromarray(np.ascontiguousarray(region))

        layer = Image.new("RGBA", base.size, (0, 0, 0, 0))
        ImageDraw.Draw(layer).polygon(
            [(x - x0, y - y0) for x, y in polygon.points],
            fill=tuple(polygon.color),
        )

        region[...] = np.asarray(Image.alpha_composite(base, layer))

    def equals(self, other: PixelBuffer) -> bool:
        """Pixel-exact comparison."""
        return self.same_shape(other) and bool(np.array_equal(self.pixels, other.pixels))

    def __repr__(self) -> str:
        return f"PixelBuffer(width={self.width}, height={self.height})"


__all__ = [
    "RGBA",
    "Polygon",
    "PixelBuffer",
    "random_polygon",
    "random_rgba",
]
