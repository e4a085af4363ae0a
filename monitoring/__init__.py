"""
Monitoring and Observability for PolyEvo.

Structured logging with loguru: console/file sinks, component loggers
and evolution progress helpers.

License: MIT
"""

from .logging_config import (
    LogContext,
    configure_from_settings,
    configure_logging,
    get_logger,
    log_evolution_complete,
    log_evolution_generation,
    log_evolution_start,
    log_snapshot_saved,
)

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

__version__ = "0.1.0"
