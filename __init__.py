"""
PolyEvo - Evolutionary Polygon Image Approximation

A parallel genetic algorithm that evolves images built from translucent
polygons toward a target picture.
"""

# Core genome system
from polyevo.genome import (
    AdaptiveMutationController,
    CrossoverConfig,
    CrossoverOperator,
    CrossoverType,
    FitnessEvaluator,
    Individual,
    MutationConfig,
    MutationOperator,
    PixelBuffer,
    Polygon,
    RadiusCache,
    WorkerPool,
    calculate_fitness,
    tournament_select,
)

# Configuration
from polyevo.config import (
    PolyEvoConfig,
    EvolutionConfig,
    ImageConfig,
    LoggingConfig,
    InvalidConfigurationError,
    load_config,
)

# Orchestrator
from polyevo.orchestrator import (
    EvolutionOrchestrator,
    GenerationState,
    ProgressRecord,
    QueueSink,
    CallbackSink,
)

# Image I/O
from polyevo.data import (
    load_image,
    resize,
    save_image,
)

__all__ = [
    # Genome system
    "AdaptiveMutationController",
    "CrossoverConfig",
    "CrossoverOperator",
    "CrossoverType",
    "FitnessEvaluator",
    "Individual",
    "MutationConfig",
    "MutationOperator",
    "PixelBuffer",
    "Polygon",
    "RadiusCache",
    "WorkerPool",
    "calculate_fitness",
    "tournament_select",
    # Configuration
    "PolyEvoConfig",
    "EvolutionConfig",
    "ImageConfig",
    "LoggingConfig",
    "InvalidConfigurationError",
    "load_config",
    # Orchestrator
    "EvolutionOrchestrator",
    "GenerationState",
    "ProgressRecord",
    "QueueSink",
    "CallbackSink",
    # Image I/O
    "load_image",
    "resize",
    "save_image",
]

__version__ = "0.1.0"
