"""
Pytest configuration and shared fixtures for PolyEvo tests.

This module provides reusable test fixtures for:
- Temporary directories and file management
- Target images (checkerboard, solid colors)
- Seeded random generators and small worker pools
- Sample individuals and populations

License: MIT
"""

import tempfile
from pathlib import Path

import numpy as np
import pytest

from polyevo.genome import (
    FitnessEvaluator,
    Individual,
    PixelBuffer,
    WorkerPool,
    sort_population,
)


CHECKER_LIGHT = (180, 50, 90, 255)
CHECKER_DARK = (60, 200, 180, 255)


def pytest_configure(config):
    config.addinivalue_line("markers", "slow: long-running end-to-end evolution runs")


def make_checkerboard(width: int, height: int, cell: int = 5) -> PixelBuffer:
    """Two-color checkerboard with square cells of ``cell`` pixels."""
    ys, xs = np.mgrid[0:height, 0:width]
    light = ((xs // cell) + (ys // cell)) % 2 == 0

    pixels = np.empty((height, width, 4), dtype=np.uint8)
    pixels[light] = CHECKER_LIGHT
    pixels[~light] = CHECKER_DARK
    return PixelBuffer(pixels)


# ============================================================================
# Directory Fixtures
# ============================================================================

@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


# ============================================================================
# Randomness & Parallelism Fixtures
# ============================================================================

@pytest.fixture
def rng():
    """Seeded random generator."""
    return np.random.default_rng(1234)


@pytest.fixture
def pool():
    """Small worker pool, shut down after the test."""
    with WorkerPool(workers=4) as worker_pool:
        yield worker_pool


# ============================================================================
# Image Fixtures
# ============================================================================

@pytest.fixture
def checkerboard():
    """20x20 checkerboard target."""
    return make_checkerboard(20, 20)


@pytest.fixture
def odd_target():
    """Target with odd dimensions (17 wide, 13 tall)."""
    return make_checkerboard(17, 13, cell=3)


@pytest.fixture
def white_buffer():
    return PixelBuffer.blank(16, 12, (255, 255, 255, 255))


@pytest.fixture
def black_buffer():
    return PixelBuffer.blank(16, 12, (0, 0, 0, 255))


# ============================================================================
# Population Fixtures
# ============================================================================

@pytest.fixture
def sample_individual(checkerboard, rng):
    """Random individual sized like the checkerboard target."""
    return Individual.random(checkerboard.width, checkerboard.height, rng)


@pytest.fixture
def scored_population(checkerboard, rng):
    """Ten random individuals scored against the checkerboard, sorted."""
    evaluator = FitnessEvaluator(checkerboard)
    population = [
        Individual.random(checkerboard.width, checkerboard.height, rng)
        for _ in range(10)
    ]
    evaluator.evaluate_all(population)
    return sort_population(population)
