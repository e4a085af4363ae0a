"""
Image Data Module for PolyEvo.

Loading, saving and resizing of target and snapshot images.

License: MIT
"""

from .imageio import (
    fit_dimensions,
    load_image,
    resize,
    save_image,
)

__all__ = [
    "fit_dimensions",
    "load_image",
    "resize",
    "save_image",
]

__version__ = "0.1.0"
