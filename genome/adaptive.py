"""
Adaptive Mutation Control

Tracks fitness progress across generations and derives the mutation rate for
the next generation:
- Higher when the population stagnates or sits on a plateau
- Higher when the population has converged (low diversity)
- Lower as the run approaches its final generation
- Jittered by +/-5% so the rate never locks onto a fixed point

The controller is driven strictly sequentially, once per generation.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np
from loguru import logger

from .individual import Individual
from .numeric import clamp
from .population import fitness_diversity


# Window of average-fitness samples used for the stagnation score
HISTORY_SIZE = 10

# Best-fitness change below this counts as a plateau generation
PLATEAU_THRESHOLD = 0.01

# Mean relative improvement below this counts as stagnation
STAGNATION_THRESHOLD = 0.001


# =============================================================================
# Fitness History
# =============================================================================


class MutationHistory:
    """Fixed-length circular buffer of average fitness plus plateau tracking."""

    def __init__(self, size: int = HISTORY_SIZE):
        if size < 2:
            raise ValueError("History size must be >= 2")

        self.size = size
        self.history = [0.0] * size
        self.index = 0
        self.samples = 0
        self.last_best: float | None = None
        self.plateau_count = 0

    def record(self, avg_fitness: float, best_fitness: float) -> None:
        """Store an average-fitness sample and update the plateau counter."""
        self.history[self.index] = avg_fitness
        self.index = (self.index + 1) % self.size
        self.samples += 1

        if self.last_best is not None and abs(best_fitness - self.last_best) < PLATEAU_THRESHOLD:
            self.plateau_count += 1
        else:
            self.plateau_count = 0
        self.last_best = best_fitness

    @property
    def is_full(self) -> bool:
        return self.samples >= self.size

    def ordered(self) -> list[float]:
        """Samples from oldest to newest."""
        return self.history[self.index:] + self.history[:self.index]

    def improvement_score(self) -> float:
        """
        Mean relative improvement across consecutive samples.

        Positive when average fitness is decreasing (getting better). Pairs
        whose older sample is zero or non-finite contribute 0.
        """
        samples = self.ordered()
        total = 0.0
        for prev, cur in zip(samples, samples[1:]):
            if prev == 0 or not math.isfinite(prev) or not math.isfinite(cur):
                continue
            total += (prev - cur) / prev
        return total / (self.size - 1)


# =============================================================================
# Adaptive Controller
# =============================================================================


@dataclass
class MutationRateFactors:
    """Inputs behind one computed rate, kept for logging and tests."""

    stagnation: float
    diversity: float
    progress: float
    plateau_count: int
    rate: float


class AdaptiveMutationController:
    """Computes the per-generation mutation rate from fitness history."""

    DIVERSITY_FACTOR = 0.5
    STAGNATION_FACTOR = 2.0
    PROGRESS_FACTOR = 0.7
    PLATEAU_TRIGGER = 5
    MAX_PLATEAU_BOOST = 2.0
    JITTER = 0.05

    def __init__(
        self,
        base_rate: float,
        rng: np.random.Generator | None = None,
        history_size: int = HISTORY_SIZE,
    ):
        """
        Initialize adaptive controller.

        Args:
            base_rate: Configured mutation rate in [0, 1]
            rng: Random generator for the jitter draw
            history_size: Length of the average-fitness window
        """
        self.base_rate = base_rate
        self.min_rate = max(0.01, 0.2 * base_rate)
        # A tiny base rate can push the upper bound below the lower one
        self.max_rate = max(self.min_rate, min(0.4, 5.0 * base_rate))
        self.history = MutationHistory(history_size)
        self.rng = rng or np.random.default_rng()

        self.current_rate = base_rate
        self.last_factors: MutationRateFactors | None = None

        logger.debug(
            "Initialized AdaptiveMutationController",
            base_rate=base_rate,
            min_rate=self.min_rate,
            max_rate=self.max_rate,
        )

    @property
    def plateau_count(self) -> int:
        return self.history.plateau_count

    def update(
        self,
        population: Sequence[Individual],
        generation: int,
        total_generations: int,
    ) -> float:
        """
        Record the population's fitness and compute the next mutation rate.

        Args:
            population: Current population, sorted ascending by fitness
            generation: Current generation (0-based)
            total_generations: Configured number of generations

        Returns:
            Mutation rate within ``[min_rate, max_rate]``
        """
        fitness = [ind.fitness for ind in population]
        avg_fitness = sum(fitness) / len(fitness)
        best_fitness = population[0].fitness
        self.history.record(avg_fitness, best_fitness)

        stagnation = 0.0
        if generation >= self.history.size:
            improvement = self.history.improvement_score()
            if improvement < STAGNATION_THRESHOLD:
                stagnation = 1.0 - improvement * 1000

        diversity = fitness_diversity(best_fitness, avg_fitness)
        progress = generation / total_generations if total_generations > 0 else 0.0

        rate = self.compute_rate(stagnation, diversity, progress)
        self.current_rate = rate
        self.last_factors = MutationRateFactors(
            stagnation=stagnation,
            diversity=diversity,
            progress=progress,
            plateau_count=self.history.plateau_count,
            rate=rate,
        )
        return rate

    def compute_rate(self, stagnation: float, diversity: float, progress: float) -> float:
        """Combine the factors multiplicatively, jitter, and clamp."""
        rate = self.base_rate
        rate *= 1.0 + stagnation * self.STAGNATION_FACTOR
        rate *= 1.0 + (1.0 - diversity) * self.DIVERSITY_FACTOR
        rate *= 1.0 - progress * self.PROGRESS_FACTOR

        if self.history.plateau_count > self.PLATEAU_TRIGGER:
            rate *= 1.0 + min(self.MAX_PLATEAU_BOOST, self.history.plateau_count / 10.0)

        rate *= 1.0 + (self.rng.random() * 2 * self.JITTER - self.JITTER)

        if not math.isfinite(rate):
            rate = self.max_rate if rate > 0 else self.min_rate

        return clamp(rate, self.min_rate, self.max_rate)


__all__ = [
    "HISTORY_SIZE",
    "AdaptiveMutationController",
    "MutationHistory",
    "MutationRateFactors",
]
