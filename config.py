"""
PolyEvo Configuration System

Pydantic v2-based configuration with YAML/JSON support and environment overrides.

Features:
- Type-safe configuration models
- YAML/JSON file loading
- Environment variable overrides (POLYEVO_EVOLUTION__POPULATION_SIZE=100)
- Validation with defaults
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator
from loguru import logger


class InvalidConfigurationError(ValueError):
    """Raised when evolution parameters violate their constraints."""


# =============================================================================
# Evolution Configuration
# =============================================================================


class EvolutionConfig(BaseModel):
    """Configuration for the genetic algorithm."""

    # Population
    population_size: int = Field(
        default=500,
        ge=1,
        le=100_000,
        description="Number of individuals in the population",
    )

    # Generations
    num_generations: int = Field(
        default=10_000,
        ge=1,
        description="Number of evolution generations",
    )

    # Mutation
    mutation_rate: float = Field(
        default=0.05,
        ge=0.0,
        le=1.0,
        description="Base mutation rate fed to the adaptive controller",
    )

    # Selection
    tournament_size: int = Field(
        default=6,
        ge=1,
        description="Individuals drawn per mini-tournament",
    )

    # Reporting
    report_every: int = Field(
        default=100,
        ge=1,
        description="Publish a progress snapshot every N generations",
    )

    # Runtime
    seed: int | None = Field(
        default=None,
        ge=0,
        description="Seed for reproducible random streams",
    )

    workers: int | None = Field(
        default=None,
        ge=1,
        le=1024,
        description="Worker threads (defaults to the CPU count)",
    )

    @model_validator(mode="after")
    def validate_tournament(self) -> EvolutionConfig:
        """Ensure tournament_size does not exceed population_size."""
        if self.tournament_size > self.population_size:
            raise ValueError(
                f"tournament_size ({self.tournament_size}) must be <= "
                f"population_size ({self.population_size})"
            )
        return self


# =============================================================================
# Image Configuration
# =============================================================================


class ImageConfig(BaseModel):
    """Configuration for target loading and snapshot output."""

    target_path: Path | None = Field(
        default=None,
        description="Path to the target image",
    )

    output_dir: Path = Field(
        default=Path("output"),
        description="Directory for progress snapshots and the final image",
    )

    compress: bool = Field(
        default=True,
        description="Downscale the target before evolving",
    )

    max_dimension: int = Field(
        default=540,
        ge=1,
        le=10_000,
        description="Largest side after downscaling",
    )

    @field_validator("target_path", "output_dir", mode="before")
    @classmethod
    def expand_path(cls, v: str | Path | None) -> Path | None:
        """Expand user home in paths."""
        if v is None:
            return None
        return Path(v).expanduser()


# =============================================================================
# Logging Configuration
# =============================================================================


class LoggingConfig(BaseModel):
    """Configuration for loguru sinks."""

    level: Literal["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Minimum log level",
    )

    log_file: Path | None = Field(
        default=None,
        description="Optional log file",
    )

    rotation: str = Field(
        default="100 MB",
        description="Log file rotation",
    )

    retention: str = Field(
        default="30 days",
        description="Log file retention",
    )

    serialize: bool = Field(
        default=False,
        description="Emit JSON log records",
    )

    @field_validator("level", mode="before")
    @classmethod
    def upper_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


# =============================================================================
# Main Configuration
# =============================================================================


class PolyEvoConfig(BaseModel):
    """Main PolyEvo configuration."""

    project_name: str = Field(
        default="polyevo",
        description="Project name",
    )

    version: str = Field(
        default="0.1.0",
        description="Configuration version",
    )

    evolution: EvolutionConfig = Field(
        default_factory=EvolutionConfig,
        description="Genetic algorithm configuration",
    )

    image: ImageConfig = Field(
        default_factory=ImageConfig,
        description="Image I/O configuration",
    )

    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging configuration",
    )

    @classmethod
    def from_yaml(cls, path: str | Path) -> PolyEvoConfig:
        """
        Load configuration from YAML file.

        Args:
            path: Path to YAML file

        Returns:
            PolyEvoConfig instance
        """
        import yaml

        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        logger.info(f"Loaded configuration from {path}")
        return cls(**data)

    @classmethod
    def from_json(cls, path: str | Path) -> PolyEvoConfig:
        """
        Load configuration from JSON file.

        Args:
            path: Path to JSON file

        Returns:
            PolyEvoConfig instance
        """
        import json

        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, "r") as f:
            data = json.load(f)

        logger.info(f"Loaded configuration from {path}")
        return cls(**data)

    @classmethod
    def from_env(cls, prefix: str = "POLYEVO_") -> PolyEvoConfig:
        """
        Load configuration from environment variables.

        Environment variables should be in the format:
        POLYEVO_EVOLUTION__POPULATION_SIZE=100
        POLYEVO_IMAGE__OUTPUT_DIR=./runs

        Args:
            prefix: Environment variable prefix

        Returns:
            PolyEvoConfig instance
        """
        config_dict: dict[str, Any] = {}

        for key, value in os.environ.items():
            if not key.startswith(prefix):
                continue

            # Remove prefix and convert to nested dict
            key = key[len(prefix):].lower()
            parts = key.split("__")

            current = config_dict
            for part in parts[:-1]:
                current = current.setdefault(part, {})

            current[parts[-1]] = _parse_env_value(value)

        logger.info(f"Loaded configuration from environment variables (prefix={prefix})")
        return cls(**config_dict)

    def to_yaml(self, path: str | Path) -> None:
        """
        Save configuration to YAML file.

        Args:
            path: Path to YAML file
        """
        import yaml

        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            yaml.safe_dump(
                self.model_dump(mode="json"),
                f,
                default_flow_style=False,
                sort_keys=False,
            )

        logger.info(f"Saved configuration to {path}")

    def to_json(self, path: str | Path) -> None:
        """
        Save configuration to JSON file.

        Args:
            path: Path to JSON file
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            f.write(self.model_dump_json(indent=2))

        logger.info(f"Saved configuration to {path}")


def _parse_env_value(value: str) -> Any:
    """Best-effort conversion of an environment string to bool/int/float."""
    if value.lower() in ("true", "false"):
        return value.lower() == "true"
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        return value


# =============================================================================
# Configuration Factory
# =============================================================================


def load_config(
    config_path: str | Path | None = None,
    env_prefix: str = "POLYEVO_",
) -> PolyEvoConfig:
    """
    Load configuration with automatic format detection.

    Priority:
    1. Explicit config file (YAML or JSON)
    2. Environment variables
    3. Defaults

    Args:
        config_path: Path to config file (YAML or JSON)
        env_prefix: Environment variable prefix

    Returns:
        PolyEvoConfig instance
    """
    if config_path:
        path = Path(config_path)
        if path.suffix in (".yaml", ".yml"):
            return PolyEvoConfig.from_yaml(path)
        elif path.suffix == ".json":
            return PolyEvoConfig.from_json(path)
        else:
            raise ValueError(f"Unknown config format: {path.suffix}")

    if any(key.startswith(env_prefix) for key in os.environ):
        logger.info("Using configuration from environment variables")
        return PolyEvoConfig.from_env(env_prefix)

    logger.info("Using default configuration")
    return PolyEvoConfig()


__all__ = [
    "InvalidConfigurationError",
    "EvolutionConfig",
    "ImageConfig",
    "LoggingConfig",
    "PolyEvoConfig",
    "load_config",
]
