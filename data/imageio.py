"""
Image I/O for PolyEvo.

Thin Pillow wrappers around the pixel buffer:
- load_image: decode any Pillow-readable file into an RGBA buffer
- save_image: encode a buffer as PNG
- resize: bilinear downscale so the larger side fits a maximum dimension

License: MIT
"""

from __future__ import annotations

from pathlib import Path

from PIL import Image
from loguru import logger

from polyevo.genome.canvas import PixelBuffer


def load_image(path: str | Path) -> PixelBuffer:
    """
    Decode an image file into an RGBA pixel buffer.

    Raises:
        FileNotFoundError: If the file does not exist
        PIL.UnidentifiedImageError: If the file is not a readable image
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Image not found: {path}")

    with Image.open(path) as image:
        buffer = PixelBuffer.from_image(image)

    logger.debug(f"Loaded image {path}", width=buffer.width, height=buffer.height)
    return buffer


def save_image(path: str | Path, buffer: PixelBuffer) -> Path:
    """Encode ``buffer`` as PNG at ``path`` (parent directories are created)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    buffer.to_image().save(path, format="PNG")
    return path


def fit_dimensions(width: int, height: int, max_dim: int) -> tuple[int, int]:
    """
    Dimensions scaled so the larger side equals ``max_dim``, aspect preserved.

    Returns the input unchanged when both sides already fit.
    """
    if width <= max_dim and height <= max_dim:
        return width, height

    if width > height:
        return max_dim, max(1, int(height * max_dim / width))
    return max(1, int(width * max_dim / height)), max_dim


def resize(buffer: PixelBuffer, max_dim: int) -> PixelBuffer:
    """
    Bilinear resize so neither side exceeds ``max_dim``.

    The same buffer is returned when no resizing is needed.
    """
    if max_dim < 1:
        raise ValueError(f"max_dim must be >= 1, got {max_dim}")

    new_size = fit_dimensions(buffer.width, buffer.height, max_dim)
    if new_size == buffer.size:
        return buffer

    resized = buffer.to_image().resize(new_size, resample=Image.Resampling.BILINEAR)

    logger.debug(
        "Resized image",
        original=f"{buffer.width}x{buffer.height}",
        resized=f"{new_size[0]}x{new_size[1]}",
    )
    return PixelBuffer.from_image(resized)


__all__ = [
    "fit_dimensions",
    "load_image",
    "resize",
    "save_image",
]
