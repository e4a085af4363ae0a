"""
CLI Commands for PolyEvo.

Provides command-line interface using Click framework.

License: MIT
"""

from typing import Optional
from pathlib import Path
import sys
import threading
import time

import click
from loguru import logger

from polyevo.config import PolyEvoConfig, load_config
from polyevo.data import load_image, resize, save_image
from polyevo.monitoring import configure_from_settings, configure_logging, log_snapshot_saved
from polyevo.orchestrator import EvolutionOrchestrator, QueueSink


# Main CLI group
@click.group()
@click.version_option(version="0.1.0")
@click.option("--config", "-c", type=click.Path(exists=True), help="Config file path")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.pass_context
def cli(ctx, config: Optional[str], verbose: bool):
    """
    PolyEvo - evolve polygon paintings toward a target image.
    """
    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["verbose"] = verbose

    configure_logging(log_level="DEBUG" if verbose else "INFO")


def _load_settings(ctx) -> PolyEvoConfig:
    """Load the config named on the group, reconfiguring logging from it."""
    settings = load_config(ctx.obj.get("config"))
    configure_from_settings(settings.logging, verbose=ctx.obj.get("verbose", False))
    return settings


def _snapshot_writer(sink: QueueSink, output_dir: Path) -> None:
    """Drain ``sink`` and save every record as best_gen_<n>.png.

    A failed save is logged and skipped; later snapshots are still written.
    """
    for record in sink:
        try:
            path = save_image(output_dir / f"best_gen_{record.generation}.png", record.image)
        except OSError as e:
            logger.error(f"Snapshot save failed for generation {record.generation}: {e}")
            continue
        log_snapshot_saved(path, record.generation)


# Evolution command
@cli.command()
@click.option("--target", "-t", type=click.Path(), help="Target image path")
@click.option("--out", "-o", type=click.Path(), help="Output directory")
@click.option("--pop", type=int, help="Population size")
@click.option("--gen", type=int, help="Number of generations")
@click.option("--mut", type=float, help="Base mutation rate")
@click.option("--tour", type=int, help="Tournament size")
@click.option("--report-every", type=int, help="Snapshot interval in generations")
@click.option("--seed", type=int, help="Random seed")
@click.option("--workers", "-w", type=int, help="Worker threads")
@click.option("--nocompress", is_flag=True, help="Do not downscale the target")
@click.pass_context
def evolve(
    ctx,
    target: Optional[str],
    out: Optional[str],
    pop: Optional[int],
    gen: Optional[int],
    mut: Optional[float],
    tour: Optional[int],
    report_every: Optional[int],
    seed: Optional[int],
    workers: Optional[int],
    nocompress: bool,
):
    """Evolve a polygon painting of a target image."""
    try:
        settings = _load_settings(ctx)

        target_path = Path(target) if target else settings.image.target_path
        if target_path is None:
            logger.error("No target image given (use --target or image.target_path)")
            sys.exit(1)

        output_dir = Path(out) if out else settings.image.output_dir

        overrides = {
            "population_size": pop,
            "num_generations": gen,
            "mutation_rate": mut,
            "tournament_size": tour,
            "report_every": report_every,
            "seed": seed,
            "workers": workers,
        }
        overrides = {key: value for key, value in overrides.items() if value is not None}

        image = load_image(target_path)
        if settings.image.compress and not nocompress:
            image = resize(image, settings.image.max_dimension)

        logger.info(
            f"Evolving toward {target_path}",
            width=image.width,
            height=image.height,
            output_dir=str(output_dir),
        )

        start = time.perf_counter()

        with EvolutionOrchestrator(image, settings.evolution, **overrides) as orchestrator:
            sink = QueueSink()
            writer = threading.Thread(
                target=_snapshot_writer,
                args=(sink, output_dir),
                name="snapshot-writer",
                daemon=True,
            )
            writer.start()

            try:
                best = orchestrator.run(sink)
            finally:
                writer.join()

        final_path = save_image(output_dir / "final_result.png", best.pixels)

        logger.success(
            f"Evolution complete! Best fitness: {best.fitness:.4f}",
            elapsed=f"{time.perf_counter() - start:.1f}s",
            output=str(final_path),
        )
        click.echo(f"Final image: {final_path}")

    except (OSError, ValueError) as e:
        logger.error(f"Evolution failed: {e}")
        sys.exit(1)


# Resize command
@cli.command(name="resize")
@click.argument("source", type=click.Path(exists=True))
@click.argument("destination", type=click.Path())
@click.option("--max-dimension", "-m", type=int, default=540, help="Largest side after resizing")
def resize_command(source: str, destination: str, max_dimension: int):
    """Downscale an image the way targets are prepared for evolution."""
    try:
        image = resize(load_image(source), max_dimension)
        path = save_image(destination, image)
        logger.success(f"Resized image saved to {path}", width=image.width, height=image.height)
        click.echo(f"{image.width}x{image.height}")

    except (OSError, ValueError) as e:
        logger.error(f"Resize failed: {e}")
        sys.exit(1)


# Config commands
@cli.group()
def config():
    """Manage configuration files."""
    pass


@config.command(name="show")
@click.pass_context
def config_show(ctx):
    """Show the effective configuration as YAML."""
    import yaml

    try:
        settings = load_config(ctx.obj.get("config"))
        click.echo(yaml.safe_dump(settings.model_dump(mode="json"), default_flow_style=False, sort_keys=False))

    except (OSError, ValueError) as e:
        logger.error(f"Failed to show config: {e}")
        sys.exit(1)


@config.command(name="init")
@click.argument("path", type=click.Path(), default="polyevo.yaml")
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def config_init(path: str, force: bool):
    """Write a default configuration file."""
    path = Path(path)
    if path.exists() and not force:
        logger.error(f"Config already exists: {path} (use --force to overwrite)")
        sys.exit(1)

    settings = PolyEvoConfig()
    if path.suffix == ".json":
        settings.to_json(path)
    else:
        settings.to_yaml(path)

    logger.success(f"Config created: {path}")


if __name__ == "__main__":
    cli()
