"""
Logging Configuration for PolyEvo.

Provides structured logging with loguru integration:
- Console sink on stderr, optional rotating file sink
- Settings-driven setup from ``LoggingConfig``
- Component-bound loggers and scoped context for evolution runs

License: MIT
"""

import sys
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from polyevo.config import LoggingConfig


CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[component]}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | "
    "{extra[component]} | {name}:{function}:{line} - {message} | {extra}"
)


def configure_logging(
    log_level: str = "INFO",
    log_file: Optional[Path] = None,
    rotation: str = "100 MB",
    retention: str = "30 days",
    format_string: Optional[str] = None,
    serialize: bool = False,
) -> None:
    """
    Replace all loguru sinks with PolyEvo's console (and optional file) sink.

    Args:
        log_level: Minimum level for every sink
        log_file: Optional log file path (parent directories are created)
        rotation: File rotation size/time
        retention: File retention period
        format_string: Custom format for both sinks
        serialize: Emit JSON records instead of formatted text
    """
    level = log_level.upper()

    handlers: list[dict[str, Any]] = [{
        "sink": sys.stderr,
        "format": format_string or ("{message}" if serialize else CONSOLE_FORMAT),
        "level": level,
        "colorize": not serialize,
        "serialize": serialize,
    }]

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append({
            "sink": str(log_file),
            "format": format_string or FILE_FORMAT,
            "level": level,
            "rotation": rotation,
            "retention": retention,
            "compression": "zip",
            "serialize": serialize,
            # Snapshot writer and pool threads log concurrently
            "enqueue": True,
        })

    logger.configure(handlers=handlers, extra={"component": "polyevo"})


def configure_from_settings(settings: LoggingConfig, verbose: bool = False) -> None:
    """Apply a ``LoggingConfig``; ``verbose`` forces DEBUG."""
    configure_logging(
        log_level="DEBUG" if verbose else settings.level,
        log_file=settings.log_file,
        rotation=settings.rotation,
        retention=settings.retention,
        serialize=settings.serialize,
    )


def get_logger(name: str):
    """Logger bound to component ``name``."""
    return logger.bind(component=name)


class LogContext:
    """
    Scoped structured context.

    Every record logged inside the block (from any module) carries the
    given key-value pairs in ``extra``.
    """

    def __init__(self, **kwargs):
        self.context = kwargs
        self._scope = None

    def __enter__(self):
        self._scope = logger.contextualize(**self.context)
        self._scope.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._scope is not None:
            self._scope.__exit__(exc_type, exc_val, exc_tb)
            self._scope = None


def log_evolution_start(generations: int, population_size: int, width: int, height: int):
    """Log evolution start."""
    with LogContext(phase="evolution"):
        logger.info(
            f"Starting evolution: generations={generations}, "
            f"population_size={population_size}, target={width}x{height}"
        )


def log_evolution_generation(generation: int, best_fitness: float, mutation_rate: float):
    """Log a reported generation."""
    with LogContext(phase="evolution", generation=generation):
        logger.info(
            f"Generation {generation} - Best fitness: {best_fitness:.2f} - "
            f"Mutation Rate: {mutation_rate:.2f}"
        )


def log_evolution_complete(best_fitness: float, total_generations: int, total_time: float):
    """Log evolution completion."""
    with LogContext(phase="evolution"):
        logger.success(
            f"Evolution complete: "
            f"best_fitness={best_fitness:.4f}, "
            f"generations={total_generations}, "
            f"total_time={total_time:.2f}s"
        )


def log_snapshot_saved(path: Path, generation: int):
    """Log a progress snapshot written to disk."""
    with LogContext(phase="output", generation=generation):
        logger.debug(f"Snapshot saved: {path}")


__all__ = [
    "LogContext",
    "configure_from_settings",
    "configure_logging",
    "get_logger",
    "log_evolution_complete",
    "log_evolution_generation",
    "log_evolution_start",
    "log_snapshot_saved",
]
