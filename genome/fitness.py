"""
Fitness Evaluation Module

Scores a candidate image against the target image.

Fitness Function:
    fitness = sum over pixels of ||candidate_rgba - target_rgba||_2 / (width * height)

Lower is better; identical images score exactly 0. Rows are split into
contiguous bands evaluated concurrently and the partial sums are added
after all bands have finished.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
from loguru import logger

from .canvas import PixelBuffer
from .individual import Individual
from .parallel import WorkerPool, row_bands


def band_distance(candidate: np.ndarray, target: np.ndarray, start: int, end: int) -> float:
    """Sum of per-pixel RGBA Euclidean distances over rows ``[start, end)``."""
    diff = candidate[start:end].astype(np.int32) - target[start:end].astype(np.int32)
    squared = np.einsum("ijk,ijk->ij", diff, diff)
    return float(np.sqrt(squared.astype(np.float64)).sum())


def calculate_fitness(
    candidate: PixelBuffer,
    target: PixelBuffer,
    pool: WorkerPool | None = None,
) -> float:
    """
    Mean color distance between ``candidate`` and ``target``.

    Args:
        candidate: Buffer being scored
        target: Reference buffer (same dimensions)
        pool: Optional worker pool; without one the whole image is a single band

    Returns:
        Non-negative fitness, 0.0 for identical buffers
    """
    assert candidate.same_shape(target), (
        f"Buffer size mismatch: candidate {candidate.size}, target {target.size}"
    )

    cand = candidate.pixels
    ref = target.pixels

    if pool is None:
        total = band_distance(cand, ref, 0, target.height)
    else:
        partials = pool.map_bands(
            lambda band: band_distance(cand, ref, band[0], band[1]),
            row_bands(target.height, pool.workers),
        )
        total = sum(partials)

    return total / target.area


class FitnessEvaluator:
    """
    Evaluates individuals against a shared, read-only target.

    The target is copied and frozen at construction so concurrent
    evaluations can read it without locking.
    """

    def __init__(self, target: PixelBuffer, pool: WorkerPool | None = None):
        """
        Initialize fitness evaluator.

        Args:
            target: Target image buffer
            pool: Worker pool for row-band parallelism (sequential if None)
        """
        self.target = target.copy().freeze()
        self.pool = pool

        logger.debug(
            "Initialized FitnessEvaluator",
            width=self.target.width,
            height=self.target.height,
            parallel=pool is not None,
        )

    def evaluate(self, individual: Individual) -> float:
        """Compute, store and return the individual's fitness."""
        individual.fitness = calculate_fitness(individual.pixels, self.target, self.pool)
        return individual.fitness

    def evaluate_all(self, individuals: Sequence[Individual]) -> list[float]:
        """Score many individuals, concurrently when a pool is available."""
        if self.pool is None:
            return [self.evaluate(ind) for ind in individuals]
        return self.pool.map_tasks(self.evaluate, individuals)


__all__ = [
    "FitnessEvaluator",
    "band_distance",
    "calculate_fitness",
]
