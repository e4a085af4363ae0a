"""
Tests for the PolyEvo command line interface.

License: MIT
"""

import sys

import pytest
import yaml
from click.testing import CliRunner
from loguru import logger

from polyevo.cli import cli
from polyevo.data import load_image, save_image
from polyevo.genome import PixelBuffer

from conftest import make_checkerboard


@pytest.fixture(autouse=True)
def restore_logging():
    """The CLI points loguru at the runner's stream; reattach the real stderr afterwards."""
    yield
    logger.remove()
    logger.add(sys.stderr)


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def target_file(temp_dir):
    return save_image(temp_dir / "target.png", make_checkerboard(12, 10, cell=2))


# ============================================================================
# Evolve Command Tests
# ============================================================================

class TestEvolveCommand:
    """Test the evolve command."""

    def test_evolve_writes_snapshots(self, runner, temp_dir, target_file):
        out = temp_dir / "out"
        result = runner.invoke(cli, [
            "evolve",
            "--target", str(target_file),
            "--out", str(out),
            "--pop", "6",
            "--gen", "4",
            "--tour", "2",
            "--report-every", "2",
            "--seed", "1",
            "--workers", "2",
        ])

        assert result.exit_code == 0, result.output
        assert (out / "final_result.png").exists()
        assert (out / "best_gen_0.png").exists()
        assert (out / "best_gen_2.png").exists()
        assert (out / "best_gen_3.png").exists()
        assert load_image(out / "final_result.png").size == (12, 10)

    def test_evolve_continues_after_failed_snapshot(self, runner, temp_dir, target_file):
        out = temp_dir / "out"
        # A directory in place of the first snapshot makes that save fail
        (out / "best_gen_0.png").mkdir(parents=True)

        result = runner.invoke(cli, [
            "evolve",
            "--target", str(target_file),
            "--out", str(out),
            "--pop", "6",
            "--gen", "5",
            "--tour", "2",
            "--report-every", "2",
            "--seed", "1",
            "--workers", "2",
        ])

        assert result.exit_code == 0, result.output
        assert "Snapshot save failed for generation 0" in result.output
        assert (out / "best_gen_0.png").is_dir()
        assert (out / "best_gen_2.png").exists()
        assert (out / "best_gen_4.png").exists()
        assert (out / "final_result.png").exists()

    def test_evolve_compresses_large_target(self, runner, temp_dir):
        target = save_image(temp_dir / "wide.png", PixelBuffer.blank(60, 30, (5, 5, 5, 255)))
        config_path = temp_dir / "small.yaml"
        config_path.write_text(yaml.safe_dump({"image": {"max_dimension": 20}}))
        out = temp_dir / "out"

        result = runner.invoke(cli, [
            "--config", str(config_path),
            "evolve",
            "--target", str(target),
            "--out", str(out),
            "--pop", "4",
            "--gen", "1",
            "--tour", "2",
            "--workers", "2",
        ])

        assert result.exit_code == 0, result.output
        assert load_image(out / "final_result.png").size == (20, 10)

    def test_evolve_missing_target(self, runner, temp_dir):
        result = runner.invoke(cli, ["evolve", "--target", str(temp_dir / "nope.png")])
        assert result.exit_code == 1

    def test_evolve_invalid_parameters(self, runner, temp_dir, target_file):
        result = runner.invoke(cli, [
            "evolve",
            "--target", str(target_file),
            "--out", str(temp_dir / "out"),
            "--pop", "2",
            "--tour", "5",
        ])
        assert result.exit_code == 1


# ============================================================================
# Utility Command Tests
# ============================================================================

class TestUtilityCommands:
    """Test resize and config commands."""

    def test_resize(self, runner, temp_dir):
        source = save_image(temp_dir / "big.png", PixelBuffer.blank(800, 600))
        destination = temp_dir / "small.png"

        result = runner.invoke(cli, ["resize", str(source), str(destination)])

        assert result.exit_code == 0, result.output
        assert "540x405" in result.output
        assert load_image(destination).size == (540, 405)

    def test_config_init_and_show(self, runner, temp_dir):
        path = temp_dir / "polyevo.yaml"

        result = runner.invoke(cli, ["config", "init", str(path)])
        assert result.exit_code == 0, result.output
        assert path.exists()

        result = runner.invoke(cli, ["--config", str(path), "config", "show"])
        assert result.exit_code == 0, result.output
        assert "population_size: 500" in result.output

    def test_config_init_refuses_overwrite(self, runner, temp_dir):
        path = temp_dir / "polyevo.yaml"
        path.write_text("")

        result = runner.invoke(cli, ["config", "init", str(path)])

        assert result.exit_code == 1
