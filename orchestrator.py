"""
Evolution Orchestrator

Coordinates multi-generation image evolution.

Features:
- Random population initialisation and scoring
- Parallel generation step: tournament selection, crossover, mutation,
  scoring and best-2-of-4 survivor selection, dispatched in fork-join batches
- Adaptive mutation rate per generation
- Best-ever tracking and periodic progress snapshots to a caller sink
"""

from __future__ import annotations

import math
import queue
import time
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Protocol, Sequence

import numpy as np
from loguru import logger
from pydantic import ValidationError

from polyevo.config import EvolutionConfig, InvalidConfigurationError
from polyevo.genome import (
    AdaptiveMutationController,
    CrossoverConfig,
    CrossoverOperator,
    FitnessEvaluator,
    Individual,
    MutationConfig,
    MutationOperator,
    PixelBuffer,
    PopulationStatistics,
    WorkerPool,
    compute_statistics,
    sort_population,
    tournament_select,
)
from polyevo.monitoring.logging_config import (
    log_evolution_complete,
    log_evolution_generation,
    log_evolution_start,
)


# =============================================================================
# Progress Reporting
# =============================================================================


@dataclass
class ProgressRecord:
    """Snapshot published to the caller's sink."""

    generation: int
    image: PixelBuffer
    fitness: float
    mutation_rate: float


class ProgressSink(Protocol):
    """Receives progress records; closed once the run returns."""

    def send(self, record: ProgressRecord) -> None: ...

    def close(self) -> None: ...


class QueueSink:
    """
    Thread-safe sink backed by a queue.

    Iterating yields records until the producer closes the sink, so a
    consumer thread can simply ``for record in sink: ...``.
    """

    _CLOSED = object()

    def __init__(self, maxsize: int = 0):
        self._queue: queue.Queue = queue.Queue(maxsize=maxsize)

    def send(self, record: ProgressRecord) -> None:
        self._queue.put(record)

    def close(self) -> None:
        self._queue.put(self._CLOSED)

    def __iter__(self) -> Iterator[ProgressRecord]:
        while True:
            item = self._queue.get()
            if item is self._CLOSED:
                return
            yield item


class CallbackSink:
    """Sink that forwards each record to a callable."""

    def __init__(
        self,
        callback: Callable[[ProgressRecord], None],
        on_close: Callable[[], None] | None = None,
    ):
        self.callback = callback
        self.on_close = on_close
        self.closed = False

    def send(self, record: ProgressRecord) -> None:
        self.callback(record)

    def close(self) -> None:
        self.closed = True
        if self.on_close is not None:
            self.on_close()


class NullSink:
    """Discards every record."""

    def send(self, record: ProgressRecord) -> None:
        pass

    def close(self) -> None:
        pass


# =============================================================================
# Generation State
# =============================================================================


@dataclass
class GenerationState:
    """State recorded after a single generation."""

    generation: int
    statistics: PopulationStatistics
    mutation_rate: float
    best_ever_fitness: float
    elapsed: float


# =============================================================================
# Validation
# =============================================================================


def build_config(config: EvolutionConfig | None, overrides: dict[str, Any]) -> EvolutionConfig:
    """Merge keyword overrides into a config, re-running validation."""
    base = config.model_dump() if config is not None else {}
    try:
        return EvolutionConfig.model_validate({**base, **overrides})
    except ValidationError as e:
        raise InvalidConfigurationError(f"Invalid evolution config: {e}") from e


def validate_parameters(target: PixelBuffer | None, config: EvolutionConfig) -> None:
    """
    Check construction constraints.

    Raises:
        InvalidConfigurationError: listing every violated constraint
    """
    errors = []

    if target is None:
        errors.append("target image is required")

    if config.population_size <= 0:
        errors.append("population_size must be > 0")

    if config.num_generations <= 0:
        errors.append("num_generations must be > 0")

    if not (0.0 <= config.mutation_rate <= 1.0):
        errors.append("mutation_rate must be in [0, 1]")

    if not (1 <= config.tournament_size <= config.population_size):
        errors.append("tournament_size must be in [1, population_size]")

    if config.report_every < 1:
        errors.append("report_every must be >= 1")

    if errors:
        raise InvalidConfigurationError(f"Invalid evolution config: {', '.join(errors)}")


# =============================================================================
# Evolution Orchestrator
# =============================================================================


class EvolutionOrchestrator:
    """
    Orchestrate multi-generation image evolution.

    Lifecycle: construction initialises and scores the population
    (sorted ascending by fitness); ``run`` evolves it for the configured
    number of generations and returns the best individual ever seen.
    """

    def __init__(
        self,
        target: PixelBuffer,
        config: EvolutionConfig | None = None,
        *,
        crossover_config: CrossoverConfig | None = None,
        mutation_config: MutationConfig | None = None,
        pool: WorkerPool | None = None,
        **overrides: Any,
    ):
        """
        Initialize evolution orchestrator.

        Args:
            target: Target image buffer
            config: Evolution configuration (defaults if None)
            crossover_config: Crossover strategy weights
            mutation_config: Mutation shape parameters
            pool: Shared worker pool (one is created and owned if None)
            **overrides: EvolutionConfig fields overriding ``config``

        Raises:
            InvalidConfigurationError: if any parameter is out of range
        """
        self.config = build_config(config, overrides)
        validate_parameters(target, self.config)

        self.target = target.copy().freeze()

        # Independent random streams per component and per task
        seed_sequence = np.random.SeedSequence(self.config.seed)
        init_seq, controller_seq, task_seq = seed_sequence.spawn(3)
        self._init_rng = np.random.default_rng(init_seq)
        self._task_rng = np.random.default_rng(task_seq)

        self._owns_pool = pool is None
        self.pool = pool or WorkerPool(self.config.workers)

        self.evaluator = FitnessEvaluator(self.target, self.pool)
        self.crossover_operator = CrossoverOperator(crossover_config, self.pool)
        self.mutation_operator = MutationOperator(mutation_config, self.pool)
        self.controller = AdaptiveMutationController(
            self.config.mutation_rate,
            rng=np.random.default_rng(controller_seq),
        )

        # State
        self.mutation_rate = self.config.mutation_rate
        self.current_generation = 0
        self.generation_history: list[GenerationState] = []
        self.best_individual: Individual | None = None

        self.population = self._initialize_population()

        logger.info(
            "Initialized EvolutionOrchestrator",
            width=self.target.width,
            height=self.target.height,
            population_size=self.config.population_size,
            num_generations=self.config.num_generations,
            mutation_rate=self.config.mutation_rate,
            tournament_size=self.config.tournament_size,
            workers=self.pool.workers,
            initial_best=f"{self.population[0].fitness:.4f}",
        )

    @property
    def population_size(self) -> int:
        return self.config.population_size

    def _initialize_population(self) -> list[Individual]:
        """Synthesise and score ``population_size`` random individuals."""
        width, height = self.target.size
        rngs = self._init_rng.spawn(self.config.population_size)

        population = self.pool.map_tasks(
            lambda rng: Individual.random(width, height, rng),
            rngs,
        )
        self.evaluator.evaluate_all(population)
        return sort_population(population)

    def batch_size(self) -> int:
        """
        Output slots per fork-join batch.

        Roughly 1.5 tasks (pairs) per worker, always even, capped at the
        even part of the population.
        """
        even_size = self.population_size - self.population_size % 2
        size = (self.pool.workers * 3) // 2 * 2
        return max(2, min(size, even_size))

    def run(
        self,
        sink: ProgressSink | None = None,
        report_every: int | None = None,
    ) -> Individual:
        """
        Run the complete evolution process.

        Args:
            sink: Receives a ProgressRecord every ``report_every`` generations
                and on the final generation; closed when the run returns
            report_every: Reporting interval (config value if None)

        Returns:
            Best individual found
        """
        sink = sink if sink is not None else NullSink()
        report_every = self.config.report_every if report_every is None else report_every
        total = self.config.num_generations

        if report_every < 1:
            sink.close()
            raise InvalidConfigurationError("report_every must be >= 1")

        log_evolution_start(total, self.population_size, self.target.width, self.target.height)

        best_fitness = math.inf
        best: Individual | None = None
        start_time = time.perf_counter()

        try:
            for gen in range(total):
                self.current_generation = gen
                gen_start = time.perf_counter()

                self.mutation_rate = self.controller.update(self.population, gen, total)
                self.population = self.evolve_population(self.population)

                current_best = self.population[0]
                if current_best.fitness < best_fitness:
                    best_fitness = current_best.fitness
                    best = current_best.clone()

                self._save_generation_state(gen, best_fitness, time.perf_counter() - gen_start)

                if gen % report_every == 0 or gen == total - 1:
                    sink.send(ProgressRecord(
                        generation=gen,
                        image=best.pixels,
                        fitness=best_fitness,
                        mutation_rate=self.mutation_rate,
                    ))
                    log_evolution_generation(gen, best_fitness, self.mutation_rate)
        finally:
            sink.close()

        self.best_individual = best

        log_evolution_complete(best_fitness, total, time.perf_counter() - start_time)

        return best

    def evolve_population(self, population: Sequence[Individual]) -> list[Individual]:
        """
        Produce the next generation.

        Output slots are filled pairwise by concurrent tasks, one fork-join
        batch at a time. With an odd population size the last slot receives
        a copy of the previous generation's best. If no pair carried the
        previous best forward, it replaces the worst newcomer.

        Args:
            population: Current population, sorted ascending by fitness

        Returns:
            New population of the same size, sorted ascending by fitness
        """
        size = self.population_size
        even_size = size - size % 2
        batch_size = self.batch_size()
        mutation_rate = self.mutation_rate

        new_population: list[Individual | None] = [None] * size

        for start in range(0, even_size, batch_size):
            end = min(start + batch_size, even_size)
            slots = range(start, end, 2)
            rngs = self._task_rng.spawn(len(slots))

            results = self.pool.map_tasks(
                lambda rng: self._breed_pair(population, mutation_rate, rng),
                rngs,
            )

            for slot, (first, second) in zip(slots, results):
                new_population[slot] = first
                new_population[slot + 1] = second

        if size % 2 != 0:
            new_population[size - 1] = population[0].clone()

        sort_population(new_population)

        # The previous best is never lost, even if no tournament drew it
        if new_population[0].fitness > population[0].fitness:
            new_population[-1] = population[0].clone()
            sort_population(new_population)

        return new_population

    def _breed_pair(
        self,
        population: Sequence[Individual],
        mutation_rate: float,
        rng: np.random.Generator,
    ) -> tuple[Individual, Individual]:
        """
        One generation task: select, cross, mutate, score, keep best two.

        Parents are only read; the returned individuals are fresh copies
        owned by the caller.
        """
        tournament_size = self.config.tournament_size
        parent1 = tournament_select(population, tournament_size, rng)
        parent2 = tournament_select(population, tournament_size, rng)

        child1, child2 = self.crossover_operator.crossover(parent1, parent2, rng)
        child1 = self.mutation_operator.mutate(child1, mutation_rate, rng)
        child2 = self.mutation_operator.mutate(child2, mutation_rate, rng)
        self.evaluator.evaluate(child1)
        self.evaluator.evaluate(child2)

        candidates = sorted(
            (child1, child2, parent1, parent2),
            key=lambda ind: ind.fitness,
        )
        return candidates[0].clone(), candidates[1].clone()

    def _save_generation_state(self, generation: int, best_ever: float, elapsed: float) -> None:
        """Append a GenerationState for ``generation`` to the history."""
        stats = compute_statistics(self.population, generation)
        self.generation_history.append(GenerationState(
            generation=generation,
            statistics=stats,
            mutation_rate=self.mutation_rate,
            best_ever_fitness=best_ever,
            elapsed=elapsed,
        ))

        logger.debug(
            f"Generation {generation} complete",
            best_fitness=f"{stats.best_fitness:.4f}",
            avg_fitness=f"{stats.avg_fitness:.4f}",
            diversity=f"{stats.diversity:.4f}",
            mutation_rate=f"{self.mutation_rate:.4f}",
            time=f"{elapsed:.3f}s",
        )

    def get_statistics(self) -> dict[str, Any]:
        """
        Summarise the run so far.

        Returns:
            Dictionary of run statistics
        """
        if not self.generation_history:
            current = compute_statistics(self.population, self.current_generation)
            return {
                "generations_completed": 0,
                "best_fitness": current.best_fitness,
                "avg_fitness": current.avg_fitness,
                "mutation_rate": self.mutation_rate,
            }

        last = self.generation_history[-1]
        return {
            "generations_completed": len(self.generation_history),
            "best_fitness": last.best_ever_fitness,
            "avg_fitness": last.statistics.avg_fitness,
            "mutation_rate": last.mutation_rate,
            "plateau_count": self.controller.plateau_count,
            "total_time": sum(state.elapsed for state in self.generation_history),
            "fitness_history": [state.statistics.best_fitness for state in self.generation_history],
        }

    def close(self) -> None:
        """Release the worker pool if this orchestrator created it."""
        if self._owns_pool:
            self.pool.close()

    def __enter__(self) -> EvolutionOrchestrator:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


__all__ = [
    "CallbackSink",
    "EvolutionOrchestrator",
    "GenerationState",
    "NullSink",
    "ProgressRecord",
    "ProgressSink",
    "QueueSink",
    "build_config",
    "validate_parameters",
]
