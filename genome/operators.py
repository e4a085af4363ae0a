"""
Image Evolution Operators - Crossover & Mutation

This module implements the genetic operators that act on pixel buffers:
- Crossover: recombine two parent rasters into two children using one of
  four strategies (blend, point split, Gaussian perturbation, patch swap)
- Mutation: paint a few random translucent polygons onto a copy of an
  individual, with a polygon size that scales with image area and the
  current mutation rate

All operators preserve image dimensions. Randomness always comes from the
``numpy.random.Generator`` passed in by the calling task.
"""

from __future__ import annotations

import math
import threading
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Iterable

import numpy as np
from loguru import logger

from .canvas import PixelBuffer, Polygon, random_polygon
from .individual import Individual
from .numeric import clamp, fast_log10, floor_power_of_ten, random_between
from .parallel import WorkerPool, row_bands


# =============================================================================
# Enums & Configuration
# =============================================================================


class CrossoverType(Enum):
    """Recombination strategies between two parent rasters."""

    BLEND = auto()               # Per-strip weighted average of both parents
    POINT = auto()               # Single horizontal or vertical split
    GAUSSIAN = auto()            # Parent mean +/- a small noise sample
    PATCH = auto()               # Swap random 8x8 tiles


@dataclass
class CrossoverConfig:
    """Configuration for crossover operations."""

    # Strategy weights (categorical distribution)
    blend_rate: float = 0.3
    point_rate: float = 0.4
    gaussian_rate: float = 0.2
    patch_rate: float = 0.1

    # Gaussian perturbation
    noise_scale: float = 0.1

    # Patch swap
    patch_size: int = 8
    patch_swap_probability: float = 0.3

    def validate(self) -> tuple[bool, list[str]]:
        """Validate configuration."""
        errors = []

        rates = (self.blend_rate, self.point_rate, self.gaussian_rate, self.patch_rate)
        if any(rate < 0 for rate in rates):
            errors.append("Crossover rates must be >= 0")

        total_rate = sum(rates)
        if not (0.99 <= total_rate <= 1.01):
            errors.append(f"Crossover rates should sum to ~1.0 (got {total_rate})")

        if self.noise_scale < 0:
            errors.append("noise_scale must be >= 0")

        if self.patch_size < 1:
            errors.append("patch_size must be >= 1")

        if not (0.0 <= self.patch_swap_probability <= 1.0):
            errors.append("patch_swap_probability must be in [0, 1]")

        return (len(errors) == 0, errors)

    def weights(self) -> list[tuple[CrossoverType, float]]:
        return [
            (CrossoverType.BLEND, self.blend_rate),
            (CrossoverType.POINT, self.point_rate),
            (CrossoverType.GAUSSIAN, self.gaussian_rate),
            (CrossoverType.PATCH, self.patch_rate),
        ]


@dataclass
class MutationConfig:
    """Configuration for polygon-injection mutation."""

    # Polygons painted per mutation
    min_iterations: int = 1
    max_iterations: int = 3
    max_extra_iterations: int = 2      # Added when stagnating

    # Rates above this count as "stagnating": more polygons, more vertices
    aggressive_threshold: float = 0.1

    # Vertices per polygon
    min_vertices: int = 3
    max_vertices: int = 6
    max_vertices_aggressive: int = 8

    # Lower bound of the random divisor applied to the image area
    divisor_floor: int = 50

    # Region limit never exceeds area >> area_shift (1/16 of the canvas)
    area_shift: int = 4

    def validate(self) -> tuple[bool, list[str]]:
        """Validate configuration."""
        errors = []

        if self.min_iterations < 1:
            errors.append("min_iterations must be >= 1")

        if self.max_iterations < self.min_iterations:
            errors.append("max_iterations must be >= min_iterations")

        if self.max_extra_iterations < 0:
            errors.append("max_extra_iterations must be >= 0")

        if self.min_vertices < 3:
            errors.append("min_vertices must be >= 3")

        if self.max_vertices < self.min_vertices:
            errors.append("max_vertices must be >= min_vertices")

        if self.max_vertices_aggressive < self.max_vertices:
            errors.append("max_vertices_aggressive must be >= max_vertices")

        if self.divisor_floor < 1:
            errors.append("divisor_floor must be >= 1")

        if self.area_shift < 0:
            errors.append("area_shift must be >= 0")

        return (len(errors) == 0, errors)


# =============================================================================
# Crossover Operator
# =============================================================================


class CrossoverOperator:
    """Combines two parent rasters into two children."""

    def __init__(self, config: CrossoverConfig | None = None, pool: WorkerPool | None = None):
        """
        Initialize crossover operator.

        Args:
            config: Crossover configuration (uses defaults if None)
            pool: Worker pool for strip-parallel blending (sequential if None)
        """
        self.config = config or CrossoverConfig()
        self.pool = pool

        # Validate configuration
        is_valid, errors = self.config.validate()
        if not is_valid:
            raise ValueError(f"Invalid crossover config: {', '.join(errors)}")

        logger.debug(
            "Initialized CrossoverOperator",
            blend_rate=self.config.blend_rate,
            point_rate=self.config.point_rate,
            gaussian_rate=self.config.gaussian_rate,
            patch_rate=self.config.patch_rate,
        )

    def crossover(
        self,
        parent1: Individual,
        parent2: Individual,
        rng: np.random.Generator,
        crossover_type: CrossoverType | None = None,
    ) -> tuple[Individual, Individual]:
        """
        Perform crossover between two parents.

        Args:
            parent1: First parent
            parent2: Second parent (same dimensions)
            rng: Random generator owned by the calling task
            crossover_type: Force a strategy instead of sampling one

        Returns:
            Two unscored children with the parents' dimensions
        """
        assert parent1.pixels.same_shape(parent2.pixels), (
            f"Parent size mismatch: {parent1.pixels.size} vs {parent2.pixels.size}"
        )

        if crossover_type is None:
            crossover_type = self.select_crossover_type(rng)

        a = parent1.pixels.pixels
        b = parent2.pixels.pixels

        match crossover_type:
            case CrossoverType.BLEND:
                child1, child2 = self._blend_crossover(a, b, rng)

            case CrossoverType.POINT:
                child1, child2 = self._point_crossover(a, b, rng)

            case CrossoverType.GAUSSIAN:
                child1, child2 = self._gaussian_crossover(a, b, rng)

            case CrossoverType.PATCH:
                child1, child2 = self._patch_crossover(a, b, rng)

            case _:
                raise ValueError(f"Unknown crossover type: {crossover_type}")

        return _child(child1), _child(child2)

    def select_crossover_type(self, rng: np.random.Generator) -> CrossoverType:
        """Sample a strategy from the configured weights with a single draw."""
        roll = rng.random()
        cumulative = 0.0

        weights = self.config.weights()
        for crossover_type, rate in weights:
            cumulative += rate
            if roll < cumulative:
                return crossover_type

        return weights[-1][0]

    def _map_bands(self, fn: Callable, items: Iterable) -> None:
        if self.pool is None:
            for item in items:
                fn(item)
        else:
            self.pool.map_bands(fn, items)

    def _blend_crossover(
        self,
        a: np.ndarray,
        b: np.ndarray,
        rng: np.random.Generator,
    ) -> tuple[np.ndarray, np.ndarray]:
        """Blend crossover: one random alpha per row strip, complementary mixes."""
        child1 = np.empty_like(a)
        child2 = np.empty_like(a)

        workers = self.pool.workers if self.pool is not None else 1
        bands = row_bands(a.shape[0], workers)
        alphas = rng.random(len(bands))

        def blend_band(job: tuple[tuple[int, int], float]) -> None:
            (start, end), alpha = job
            p1 = a[start:end].astype(np.float64)
            p2 = b[start:end].astype(np.float64)
            child1[start:end] = (p1 * (1.0 - alpha) + p2 * alpha).astype(np.uint8)
            child2[start:end] = (p1 * alpha + p2 * (1.0 - alpha)).astype(np.uint8)

        self._map_bands(blend_band, zip(bands, alphas))
        return child1, child2

    def _point_crossover(
        self,
        a: np.ndarray,
        b: np.ndarray,
        rng: np.random.Generator,
    ) -> tuple[np.ndarray, np.ndarray]:
        """
        Single-point crossover along a horizontal or vertical split.

        child1 takes parent1 before the split and parent2 after it; child2 is
        the mirror. An axis of length 1 cannot be split, so the other axis is
        used; a 1x1 image yields copies of the parents.
        """
        height, width = a.shape[:2]
        horizontal = rng.random() <= 0.5

        if height < 2 and width < 2:
            return a.copy(), b.copy()
        if horizontal and height < 2:
            horizontal = False
        elif not horizontal and width < 2:
            horizontal = True

        child1 = b.copy()
        child2 = a.copy()

        if horizontal:
            split = int(rng.integers(1, height))
            child1[:split] = a[:split]
            child2[:split] = b[:split]
        else:
            split = int(rng.integers(1, width))
            child1[:, :split] = a[:, :split]
            child2[:, :split] = b[:, :split]

        return child1, child2

    def _gaussian_crossover(
        self,
        a: np.ndarray,
        b: np.ndarray,
        rng: np.random.Generator,
    ) -> tuple[np.ndarray, np.ndarray]:
        """Parent mean plus (child1) or minus (child2) one noise sample per row."""
        mean = (a.astype(np.float64) + b.astype(np.float64)) / 2.0
        noise = rng.standard_normal(a.shape[0]) * self.config.noise_scale
        noise = noise[:, np.newaxis, np.newaxis]

        child1 = np.clip(mean + noise, 0, 255).astype(np.uint8)
        child2 = np.clip(mean - noise, 0, 255).astype(np.uint8)
        return child1, child2

    def _patch_crossover(
        self,
        a: np.ndarray,
        b: np.ndarray,
        rng: np.random.Generator,
    ) -> tuple[np.ndarray, np.ndarray]:
        """Swap whole tiles between copies of the parents; edge tiles are clipped."""
        height, width = a.shape[:2]
        size = self.config.patch_size

        tiles = rng.random((math.ceil(height / size), math.ceil(width / size)))
        swap = tiles < self.config.patch_swap_probability

        mask = np.repeat(np.repeat(swap, size, axis=0), size, axis=1)[:height, :width]
        mask = mask[:, :, np.newaxis]

        child1 = np.where(mask, b, a)
        child2 = np.where(mask, a, b)
        return child1, child2


def _child(pixels: np.ndarray) -> Individual:
    return Individual(PixelBuffer(pixels))


# =============================================================================
# Mutation Operator
# =============================================================================


@dataclass(frozen=True)
class RadiusHeuristics:
    """Per-image-area constants used to size mutation polygons."""

    area: int
    max_limit: int
    log_size: float
    floor_power: int

    @classmethod
    def for_area(cls, area: int, area_shift: int = 4) -> RadiusHeuristics:
        return cls(
            area=area,
            max_limit=max(1, area >> area_shift),
            log_size=fast_log10(area) + 1,
            floor_power=floor_power_of_ten(area),
        )


class RadiusCache:
    """
    Thread-safe memo of ``RadiusHeuristics`` keyed by image area.

    Lookups are lock-free; inserts take a lock and keep whichever entry got
    there first, so a race only costs a duplicate (identical) computation.
    """

    def __init__(self, area_shift: int = 4):
        self.area_shift = area_shift
        self._entries: dict[int, RadiusHeuristics] = {}
        self._lock = threading.Lock()

    def get(self, area: int) -> RadiusHeuristics:
        entry = self._entries.get(area)
        if entry is not None:
            return entry

        entry = RadiusHeuristics.for_area(area, self.area_shift)
        with self._lock:
            return self._entries.setdefault(area, entry)

    def __contains__(self, area: int) -> bool:
        return area in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class MutationOperator:
    """Paints random translucent polygons onto copies of individuals."""

    def __init__(
        self,
        config: MutationConfig | None = None,
        pool: WorkerPool | None = None,
        cache: RadiusCache | None = None,
    ):
        """
        Initialize mutation operator.

        Args:
            config: Mutation configuration (uses defaults if None)
            pool: Worker pool for concurrent polygon sampling (sequential if None)
            cache: Radius heuristics cache (a fresh one if None)
        """
        self.config = config or MutationConfig()
        self.pool = pool

        # Validate configuration
        is_valid, errors = self.config.validate()
        if not is_valid:
            raise ValueError(f"Invalid mutation config: {', '.join(errors)}")

        self.cache = cache if cache is not None else RadiusCache(self.config.area_shift)

        logger.debug(
            "Initialized MutationOperator",
            iterations=f"{self.config.min_iterations}-{self.config.max_iterations}",
            aggressive_threshold=self.config.aggressive_threshold,
        )

    def mutate(
        self,
        individual: Individual,
        mutation_rate: float,
        rng: np.random.Generator,
    ) -> Individual:
        """
        Mutate an individual with probability ``mutation_rate``.

        Args:
            individual: Individual to mutate (never modified)
            mutation_rate: Current mutation rate in [0, 1]
            rng: Random generator owned by the calling task

        Returns:
            ``individual`` itself when no mutation happens, otherwise a new
            unscored individual with 1-5 polygons painted on it
        """
        if rng.random() > mutation_rate:
            return individual

        child = individual.clone()
        iterations = self.num_iterations(mutation_rate, rng)

        width, height = child.width, child.height
        heuristics = self.cache.get(width * height)

        def sample(task_rng: np.random.Generator) -> Polygon:
            return random_polygon(
                task_rng,
                width,
                height,
                self.region_limit(heuristics, mutation_rate, task_rng),
                self.num_vertices(mutation_rate, task_rng),
            )

        task_rngs = rng.spawn(iterations)
        if self.pool is None:
            polygons = [sample(task_rng) for task_rng in task_rngs]
        else:
            polygons = self.pool.map_bands(sample, task_rngs)

        # Rendering onto one buffer stays sequential
        child.add_polygons(polygons)
        return child

    def num_iterations(self, mutation_rate: float, rng: np.random.Generator) -> int:
        """Polygons to paint: 1-3, plus up to 2 more when stagnating."""
        cfg = self.config
        iterations = int(rng.integers(cfg.min_iterations, cfg.max_iterations + 1))

        if mutation_rate > cfg.aggressive_threshold and rng.random() < mutation_rate * 2:
            iterations += int(rng.integers(0, cfg.max_extra_iterations + 1))

        return iterations

    def num_vertices(self, mutation_rate: float, rng: np.random.Generator) -> int:
        cfg = self.config
        upper = cfg.max_vertices
        if mutation_rate > cfg.aggressive_threshold:
            upper = cfg.max_vertices_aggressive
        return int(rng.integers(cfg.min_vertices, upper + 1))

    def region_limit(
        self,
        heuristics: RadiusHeuristics,
        mutation_rate: float,
        rng: np.random.Generator,
    ) -> int:
        """
        Jitter radius for one polygon.

        ``(area / max(1, rate * U(50, floor_pow10(area)))) / U(1, 5 * log_size)``
        clamped to ``[1, area / 16]``.
        """
        scale = random_between(rng, 1, int(heuristics.log_size * 5))
        divisor = mutation_rate * random_between(
            rng, self.config.divisor_floor, heuristics.floor_power
        )

        limit = (heuristics.area // int(max(divisor, 1))) // scale
        return clamp(limit, 1, heuristics.max_limit)


__all__ = [
    "CrossoverType",
    "CrossoverConfig",
    "CrossoverOperator",
    "MutationConfig",
    "MutationOperator",
    "RadiusCache",
    "RadiusHeuristics",
]
