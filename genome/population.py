"""
Population Management for Image Evolution

This module covers the population-level helpers of the engine:
- Tournament selection of parents
- Fitness ordering (population[0] is always the best)
- Population statistics for progress reporting and mutation control
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from .individual import Individual


# Independent mini-tournaments per selection; the best winner is returned
NUM_TOURNAMENTS = 4


# =============================================================================
# Selection
# =============================================================================


def tournament_select(
    population: Sequence[Individual],
    tournament_size: int,
    rng: np.random.Generator,
) -> Individual:
    """
    Select a parent with repeated small tournaments.

    Runs ``NUM_TOURNAMENTS`` tournaments, each drawing ``tournament_size``
    individuals uniformly with replacement, and returns the fittest
    (lowest fitness) winner across all of them.

    Args:
        population: Candidates to draw from (non-empty)
        tournament_size: Draws per tournament (>= 1)
        rng: Random generator owned by the calling task

    Returns:
        The selected individual (shared, not copied)
    """
    draws = rng.integers(0, len(population), size=(NUM_TOURNAMENTS, tournament_size))

    best: Individual | None = None
    for tournament in draws:
        winner = population[tournament[0]]
        for idx in tournament[1:]:
            participant = population[idx]
            if participant.fitness < winner.fitness:
                winner = participant

        if best is None or winner.fitness < best.fitness:
            best = winner

    return best


def sort_population(population: list[Individual]) -> list[Individual]:
    """Sort in place ascending by fitness (stable) and return the list."""
    population.sort(key=lambda ind: ind.fitness)
    return population


def is_sorted(population: Sequence[Individual]) -> bool:
    return all(
        population[i].fitness <= population[i + 1].fitness
        for i in range(len(population) - 1)
    )


# =============================================================================
# Population Statistics
# =============================================================================


@dataclass
class PopulationStatistics:
    """Statistics about the current population."""

    generation: int
    population_size: int

    best_fitness: float
    avg_fitness: float
    worst_fitness: float
    std_fitness: float

    # |best - avg| / best, 0 for a converged population
    diversity: float

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "generation": self.generation,
            "population_size": self.population_size,
            "best_fitness": self.best_fitness,
            "avg_fitness": self.avg_fitness,
            "worst_fitness": self.worst_fitness,
            "std_fitness": self.std_fitness,
            "diversity": self.diversity,
        }


def fitness_diversity(best_fitness: float, avg_fitness: float) -> float:
    """Relative spread between best and average fitness (0 when undefined)."""
    if best_fitness <= 0 or not math.isfinite(best_fitness) or not math.isfinite(avg_fitness):
        return 0.0
    return abs(best_fitness - avg_fitness) / best_fitness


def compute_statistics(population: Sequence[Individual], generation: int) -> PopulationStatistics:
    """
    Compute statistics for a fitness-sorted population.

    Args:
        population: Population sorted ascending by fitness
        generation: Current generation number

    Returns:
        Population statistics
    """
    if not population:
        return PopulationStatistics(
            generation=generation,
            population_size=0,
            best_fitness=math.inf,
            avg_fitness=math.inf,
            worst_fitness=math.inf,
            std_fitness=0.0,
            diversity=0.0,
        )

    fitness = np.array([ind.fitness for ind in population], dtype=np.float64)
    best = float(fitness.min())
    avg = float(fitness.mean())

    return PopulationStatistics(
        generation=generation,
        population_size=len(population),
        best_fitness=best,
        avg_fitness=avg,
        worst_fitness=float(fitness.max()),
        std_fitness=float(fitness.std()),
        diversity=fitness_diversity(best, avg),
    )


__all__ = [
    "NUM_TOURNAMENTS",
    "PopulationStatistics",
    "compute_statistics",
    "fitness_diversity",
    "is_sorted",
    "sort_population",
    "tournament_select",
]
