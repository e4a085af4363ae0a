"""
Command Line Interface for PolyEvo.

Commands:
- polyevo evolve: Evolve a polygon painting of a target image
- polyevo resize: Downscale an image for use as a target
- polyevo config: Configuration management

License: MIT
"""

from .commands import cli

__all__ = ["cli"]
__version__ = "0.1.0"
