"""
Individual - one candidate image in the population.

An individual owns a pixel buffer and the scalar fitness last computed for
it. Polygons are only a drawing primitive: once rendered, the individual
keeps the raster, not the shape history.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable

import numpy as np

from .canvas import PixelBuffer, Polygon, random_polygon, random_rgba


# Initial synthesis draws 3-7 polygons of 3-6 vertices
MIN_INITIAL_POLYGONS = 3
MAX_INITIAL_POLYGONS = 7
MIN_VERTICES = 3
MAX_VERTICES = 6


@dataclass
class Individual:
    """A genome: RGBA pixel buffer plus fitness (lower is better, inf = unscored)."""

    pixels: PixelBuffer
    fitness: float = math.inf

    @classmethod
    def random(cls, width: int, height: int, rng: np.random.Generator) -> Individual:
        """
        Synthesise a random individual.

        The canvas is flooded with a random background color, then a handful
        of random polygons is painted within ``(width + height) // 8`` pixels
        of their anchors.
        """
        individual = cls(PixelBuffer.blank(width, height, random_rgba(rng)))

        region = (width + height) // 8
        num_polygons = int(rng.integers(MIN_INITIAL_POLYGONS, MAX_INITIAL_POLYGONS + 1))
        individual.add_polygons(
            random_polygon(
                rng,
                width,
                height,
                region,
                int(rng.integers(MIN_VERTICES, MAX_VERTICES + 1)),
            )
            for _ in range(num_polygons)
        )
        return individual

    @property
    def width(self) -> int:
        return self.pixels.width

    @property
    def height(self) -> int:
        return self.pixels.height

    @property
    def is_evaluated(self) -> bool:
        return math.isfinite(self.fitness)

    def clone(self) -> Individual:
        """Deep copy: the clone's buffer is independent of this one."""
        return Individual(pixels=self.pixels.copy(), fitness=self.fitness)

    def add_polygons(self, polygons: Iterable[Polygon]) -> None:
        """Render polygons onto this individual's buffer, in order. Invalidates fitness."""
        for polygon in polygons:
            self.pixels.draw_polygon(polygon)
        self.fitness = math.inf

    def __repr__(self) -> str:
        return (
            f"Individual(fitness={self.fitness:.4f}, "
            f"size={self.width}x{self.height})"
        )


__all__ = ["Individual"]
