"""
PolyEvo Genome System

Candidate images, their fitness, and the genetic operators that evolve them
toward a target image.

Components:
- Pixel buffers and polygon rendering (numpy + Pillow)
- Individuals (pixel buffer + fitness)
- Row-band parallel fitness evaluation
- Tournament selection and population statistics
- Crossover (blend, point, Gaussian, patch) and polygon mutation
- Adaptive mutation-rate control
"""

# Rasters
from .canvas import (
    RGBA,
    PixelBuffer,
    Polygon,
    random_polygon,
    random_rgba,
)

# Individuals
from .individual import Individual

# Fitness evaluation
from .fitness import (
    FitnessEvaluator,
    calculate_fitness,
)

# Evolution operators
from .operators import (
    CrossoverConfig,
    CrossoverOperator,
    CrossoverType,
    MutationConfig,
    MutationOperator,
    RadiusCache,
)

# Population management
from .population import (
    NUM_TOURNAMENTS,
    PopulationStatistics,
    compute_statistics,
    is_sorted,
    sort_population,
    tournament_select,
)

# Mutation control
from .adaptive import (
    AdaptiveMutationController,
    MutationHistory,
)

# Parallelism
from .parallel import (
    WorkerPool,
    fork_join,
    row_bands,
)

__all__ = [
    # Rasters
    "RGBA",
    "PixelBuffer",
    "Polygon",
    "random_polygon",
    "random_rgba",
    # Individuals
    "Individual",
    # Fitness
    "FitnessEvaluator",
    "calculate_fitness",
    # Operators
    "CrossoverConfig",
    "CrossoverOperator",
    "CrossoverType",
    "MutationConfig",
    "MutationOperator",
    "RadiusCache",
    # Population
    "NUM_TOURNAMENTS",
    "PopulationStatistics",
    "compute_statistics",
    "is_sorted",
    "sort_population",
    "tournament_select",
    # Mutation control
    "AdaptiveMutationController",
    "MutationHistory",
    # Parallelism
    "WorkerPool",
    "fork_join",
    "row_bands",
]

__version__ = "0.1.0"
