"""
Tests for PolyEvo logging setup.

License: MIT
"""

import sys

import pytest
from loguru import logger

from polyevo.config import LoggingConfig
from polyevo.monitoring import (
    LogContext,
    configure_from_settings,
    configure_logging,
    get_logger,
    log_evolution_generation,
)


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    logger.remove()
    logger.add(sys.stderr)


class TestLogging:
    """Test loguru configuration and context helpers."""

    def test_file_sink_receives_records(self, temp_dir):
        log_file = temp_dir / "logs" / "polyevo.log"
        configure_logging(log_level="debug", log_file=log_file)

        get_logger("tests").info("hello from tests")
        logger.complete()

        content = log_file.read_text()
        assert "hello from tests" in content
        assert "tests" in content

    def test_context_is_attached(self):
        records = []
        configure_logging()
        logger.add(lambda message: records.append(message.record), level="INFO")

        with LogContext(run="abc"):
            logger.info("inside")
        logger.info("outside")

        assert records[0]["extra"]["run"] == "abc"
        assert "run" not in records[1]["extra"]

    def test_generation_helper(self):
        records = []
        configure_logging()
        logger.add(lambda message: records.append(message.record), level="INFO")

        log_evolution_generation(12, 3.25, 0.07)

        assert records[-1]["extra"]["generation"] == 12
        assert "Best fitness: 3.25" in records[-1]["message"]

    def test_settings_level_and_verbose(self, temp_dir):
        quiet_file = temp_dir / "quiet.log"
        configure_from_settings(LoggingConfig(level="WARNING", log_file=quiet_file))
        logger.debug("hidden record")
        logger.warning("shown record")
        logger.complete()

        quiet = quiet_file.read_text()
        assert "shown record" in quiet
        assert "hidden record" not in quiet

        verbose_file = temp_dir / "verbose.log"
        configure_from_settings(LoggingConfig(level="WARNING", log_file=verbose_file), verbose=True)
        logger.debug("debug record")
        logger.complete()

        assert "debug record" in verbose_file.read_text()
