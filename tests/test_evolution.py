"""
Integration tests for the Evolution Orchestrator.

Tests cover:
- Population initialisation and the sorted/fixed-size invariants
- Fork-join batching, including odd population sizes
- Progress sinks and reporting intervals
- Configuration validation
- End-to-end improvement on a structured target

License: MIT
"""

import numpy as np
import pytest

from polyevo.config import EvolutionConfig, InvalidConfigurationError
from polyevo.genome import MutationConfig, WorkerPool, is_sorted
from polyevo.orchestrator import (
    CallbackSink,
    EvolutionOrchestrator,
    ProgressRecord,
    QueueSink,
)

from conftest import make_checkerboard


@pytest.fixture
def small_target():
    return make_checkerboard(8, 8, cell=2)


def make_orchestrator(target, **overrides):
    params = dict(
        population_size=10,
        num_generations=3,
        mutation_rate=0.05,
        tournament_size=3,
        seed=7,
        workers=2,
    )
    params.update(overrides)
    return EvolutionOrchestrator(target, **params)


# ============================================================================
# Orchestrator Tests
# ============================================================================

class TestEvolutionOrchestrator:
    """Test the evolution orchestrator."""

    def test_orchestrator_initialization(self, small_target):
        """Construction produces a scored, sorted population."""
        with make_orchestrator(small_target) as orchestrator:
            assert len(orchestrator.population) == 10
            assert is_sorted(orchestrator.population)
            assert all(ind.is_evaluated for ind in orchestrator.population)
            assert orchestrator.current_generation == 0
            assert orchestrator.generation_history == []

    def test_target_is_copied(self, small_target):
        with make_orchestrator(small_target) as orchestrator:
            small_target.fill((0, 0, 0, 0))
            assert not orchestrator.target.equals(small_target)

    def test_odd_population_keeps_size(self, small_target):
        """An odd population is refilled to exactly the same size every generation."""
        with make_orchestrator(small_target, population_size=49) as orchestrator:
            for _ in range(3):
                orchestrator.population = orchestrator.evolve_population(orchestrator.population)
                assert len(orchestrator.population) == 49
                assert is_sorted(orchestrator.population)

    def test_population_best_never_regresses(self, small_target):
        with make_orchestrator(small_target, population_size=12) as orchestrator:
            previous = orchestrator.population[0].fitness
            for _ in range(5):
                orchestrator.population = orchestrator.evolve_population(orchestrator.population)
                assert orchestrator.population[0].fitness <= previous
                previous = orchestrator.population[0].fitness

    def test_single_individual_population(self, small_target):
        with make_orchestrator(small_target, population_size=1, tournament_size=1) as orchestrator:
            best = orchestrator.run()
            assert len(orchestrator.population) == 1
            assert best.fitness == orchestrator.population[0].fitness

    def test_returned_fitness_matches_population_best(self, small_target):
        with make_orchestrator(small_target, num_generations=6) as orchestrator:
            best = orchestrator.run()

            assert best.fitness == orchestrator.population[0].fitness
            assert orchestrator.best_individual is best
            assert len(orchestrator.generation_history) == 6

    def test_batch_size(self, small_target):
        with WorkerPool(workers=4) as pool:
            with make_orchestrator(small_target, population_size=49, pool=pool) as orchestrator:
                assert orchestrator.batch_size() == 12
            with make_orchestrator(small_target, population_size=5, pool=pool) as orchestrator:
                assert orchestrator.batch_size() == 4
            with make_orchestrator(
                small_target, population_size=1, tournament_size=1, pool=pool
            ) as orchestrator:
                assert orchestrator.batch_size() == 2

    def test_shared_pool_is_not_closed(self, small_target):
        with WorkerPool(workers=2) as pool:
            with make_orchestrator(small_target, pool=pool):
                pass
            assert pool.map_tasks(lambda x: x + 1, [1]) == [2]

    def test_mutation_config_sets_cache_shift(self, small_target):
        with make_orchestrator(small_target, mutation_config=MutationConfig(area_shift=2)) as orchestrator:
            assert orchestrator.mutation_operator.cache.area_shift == 2

    def test_seed_reproducibility(self, small_target):
        with make_orchestrator(small_target, num_generations=4) as first:
            best1 = first.run()
        with make_orchestrator(small_target, num_generations=4) as second:
            best2 = second.run()

        assert best1.fitness == best2.fitness
        assert best1.pixels.equals(best2.pixels)

    def test_get_statistics(self, small_target):
        with make_orchestrator(small_target) as orchestrator:
            assert orchestrator.get_statistics()["generations_completed"] == 0

            orchestrator.run()
            stats = orchestrator.get_statistics()

            assert stats["generations_completed"] == 3
            assert len(stats["fitness_history"]) == 3
            assert stats["best_fitness"] == orchestrator.population[0].fitness


# ============================================================================
# Progress Reporting Tests
# ============================================================================

class TestProgressReporting:
    """Test progress sinks."""

    @pytest.mark.parametrize(
        "generations,report_every,expected",
        [(10, 3, [0, 3, 6, 9]), (8, 3, [0, 3, 6, 7]), (4, 1, [0, 1, 2, 3])],
    )
    def test_reporting_interval(self, small_target, generations, report_every, expected):
        records = []
        sink = CallbackSink(records.append)

        with make_orchestrator(small_target, num_generations=generations) as orchestrator:
            orchestrator.run(sink, report_every=report_every)

        assert [record.generation for record in records] == expected
        assert sink.closed

    def test_final_record_holds_best(self, small_target):
        records: list[ProgressRecord] = []

        with make_orchestrator(small_target, num_generations=5) as orchestrator:
            best = orchestrator.run(CallbackSink(records.append))

        final = records[-1]
        assert final.generation == 4
        assert final.fitness == best.fitness
        assert final.image.equals(best.pixels)
        assert 0.0 <= final.mutation_rate <= 1.0

    def test_queue_sink_drains_until_closed(self, small_target):
        sink = QueueSink()

        with make_orchestrator(small_target, num_generations=4, report_every=2) as orchestrator:
            orchestrator.run(sink)

        assert [record.generation for record in sink] == [0, 2, 3]

    @pytest.mark.parametrize("report_every", [0, -1])
    def test_sink_closed_on_invalid_interval(self, small_target, mocker, report_every):
        on_close = mocker.Mock()
        sink = CallbackSink(mocker.Mock(), on_close=on_close)

        with make_orchestrator(small_target) as orchestrator:
            with pytest.raises(InvalidConfigurationError):
                orchestrator.run(sink, report_every=report_every)

        on_close.assert_called_once()

    def test_sink_closed_when_generation_fails(self, small_target, mocker):
        sink = CallbackSink(mocker.Mock())

        with make_orchestrator(small_target) as orchestrator:
            mocker.patch.object(orchestrator, "evolve_population", side_effect=RuntimeError("boom"))
            with pytest.raises(RuntimeError):
                orchestrator.run(sink)

        assert sink.closed


# ============================================================================
# Validation Tests
# ============================================================================

class TestValidation:
    """Test construction-time parameter checks."""

    @pytest.mark.parametrize(
        "overrides",
        [
            {"population_size": 0},
            {"num_generations": 0},
            {"mutation_rate": 1.5},
            {"mutation_rate": -0.1},
            {"tournament_size": 0},
            {"tournament_size": 11},
            {"report_every": 0},
        ],
    )
    def test_invalid_parameters(self, small_target, overrides):
        with pytest.raises(InvalidConfigurationError):
            make_orchestrator(small_target, **overrides)

    def test_missing_target(self):
        with pytest.raises(InvalidConfigurationError, match="target image is required"):
            EvolutionOrchestrator(None, EvolutionConfig(population_size=4, tournament_size=2))

    def test_config_object_with_overrides(self, small_target):
        config = EvolutionConfig(population_size=6, num_generations=2, tournament_size=2, workers=2)
        with EvolutionOrchestrator(small_target, config, seed=3) as orchestrator:
            assert orchestrator.config.population_size == 6
            assert orchestrator.config.seed == 3
            assert len(orchestrator.population) == 6


# ============================================================================
# End-to-End Tests
# ============================================================================

@pytest.mark.slow
class TestEndToEnd:
    """Evolution improves fitness on a structured target."""

    def test_checkerboard_improves(self, checkerboard):
        with EvolutionOrchestrator(
            checkerboard,
            population_size=40,
            num_generations=100,
            mutation_rate=0.05,
            tournament_size=3,
            seed=42,
        ) as orchestrator:
            initial_best = orchestrator.population[0].fitness
            best = orchestrator.run()

            generation_zero = orchestrator.generation_history[0].statistics.best_fitness

        assert best.fitness < generation_zero
        assert best.fitness < initial_best
        assert np.isfinite(best.fitness)
