"""
Complete Evolution Example

Demonstrates an end-to-end polygon evolution run against a generated
checkerboard target, with progress snapshots written from a consumer thread.

Run: python examples/complete_evolution.py
"""

import threading
from pathlib import Path

import numpy as np

from polyevo import (
    EvolutionOrchestrator,
    PixelBuffer,
    PolyEvoConfig,
    QueueSink,
    load_config,
    save_image,
)


def checkerboard(width: int, height: int, cell: int) -> PixelBuffer:
    ys, xs = np.mgrid[0:height, 0:width]
    light = ((xs // cell) + (ys // cell)) % 2 == 0

    pixels = np.empty((height, width, 4), dtype=np.uint8)
    pixels[light] = (180, 50, 90, 255)
    pixels[~light] = (60, 200, 180, 255)
    return PixelBuffer(pixels)


def main():
    print("=" * 80)
    print("POLYEVO COMPLETE EVOLUTION EXAMPLE")
    print("=" * 80)
    print()

    # ==========================================================================
    # STEP 1: Load Configuration
    # ==========================================================================
    print("Step 1: Loading configuration...")

    try:
        config = load_config("polyevo.yaml")
        print("   Loaded config from polyevo.yaml")
    except FileNotFoundError:
        config = PolyEvoConfig()
        print("   Using default configuration")

    evolution = config.evolution.model_copy(update={
        "population_size": 60,
        "num_generations": 300,
        "tournament_size": 3,
        "report_every": 50,
        "seed": 42,
    })

    print(f"   Population: {evolution.population_size}")
    print(f"   Generations: {evolution.num_generations}")
    print(f"   Base mutation rate: {evolution.mutation_rate}")
    print()

    # ==========================================================================
    # STEP 2: Build Target
    # ==========================================================================
    print("Step 2: Building target image...")

    target = checkerboard(64, 48, cell=8)
    output_dir = Path(config.image.output_dir) / "example"
    save_image(output_dir / "target.png", target)

    print(f"   Target: {target.width}x{target.height}")
    print(f"   Output dir: {output_dir}")
    print()

    # ==========================================================================
    # STEP 3: Run Evolution
    # ==========================================================================
    print("Step 3: Starting evolution...")
    print("-" * 80)

    sink = QueueSink()

    def write_snapshots():
        for record in sink:
            save_image(output_dir / f"best_gen_{record.generation}.png", record.image)
            print(
                f"   gen {record.generation:>5} | "
                f"fitness {record.fitness:>8.3f} | "
                f"mutation {record.mutation_rate:.3f}"
            )

    writer = threading.Thread(target=write_snapshots, daemon=True)

    with EvolutionOrchestrator(target, evolution) as orchestrator:
        initial_best = orchestrator.population[0].fitness
        writer.start()
        best = orchestrator.run(sink)
        writer.join()
        stats = orchestrator.get_statistics()

    print("-" * 80)
    print()

    # ==========================================================================
    # STEP 4: Results
    # ==========================================================================
    print("Step 4: Evolution Results")
    print()

    final_path = save_image(output_dir / "final_result.png", best.pixels)
    improvement = initial_best - best.fitness

    print(f"   Generations Completed: {stats['generations_completed']}")
    print(f"   Initial Best Fitness: {initial_best:.3f}")
    print(f"   Final Best Fitness: {best.fitness:.3f}")
    print(f"   Improvement: {improvement:.3f} ({improvement / initial_best * 100:.1f}%)")
    print(f"   Total Time: {stats['total_time']:.1f}s")
    print(f"   Final image: {final_path}")
    print()


if __name__ == "__main__":
    main()
