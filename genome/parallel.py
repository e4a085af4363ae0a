"""
Fork-Join Helpers

Thread-pool scaffolding used by the evolutionary engine:
- WorkerPool: owns the executors for generation tasks and row-band work
- fork_join: spawn N jobs, wait on the barrier, collect N results by index
- row_bands: split an image height into contiguous row ranges

Two executors are kept apart on purpose: generation tasks block on row-band
jobs, and row-band jobs never submit further work, so the band pool always
drains.
"""

from __future__ import annotations

import os
from concurrent.futures import Executor, ThreadPoolExecutor, wait
from typing import Callable, Iterable, TypeVar

from loguru import logger


T = TypeVar("T")
R = TypeVar("R")


def default_worker_count() -> int:
    """Number of available processing units (at least 1)."""
    return os.cpu_count() or 1


def row_bands(height: int, num_bands: int) -> list[tuple[int, int]]:
    """
    Split ``[0, height)`` into contiguous ``(start, end)`` row ranges.

    At most ``num_bands`` ranges are produced and none is empty; the last
    range absorbs the remainder rows.
    """
    if height <= 0:
        return []

    num_bands = max(1, min(num_bands, height))
    rows_per_band = height // num_bands

    bands = []
    for i in range(num_bands):
        start = i * rows_per_band
        end = height if i == num_bands - 1 else start + rows_per_band
        bands.append((start, end))
    return bands


def fork_join(executor: Executor, fn: Callable[[T], R], items: Iterable[T]) -> list[R]:
    """
    Run ``fn`` over ``items`` on ``executor`` and return results in input order.

    Blocks until every job has finished; the first job exception (in input
    order) is re-raised after the barrier.
    """
    futures = [executor.submit(fn, item) for item in items]
    wait(futures)
    return [future.result() for future in futures]


class WorkerPool:
    """
    Executors shared by one orchestrator run.

    ``tasks`` runs per-pair generation tasks and population scoring;
    ``bands`` runs row-band kernels (fitness, blend crossover, polygon
    sampling).
    """

    def __init__(self, workers: int | None = None):
        self.workers = workers or default_worker_count()
        self.tasks = ThreadPoolExecutor(
            max_workers=self.workers,
            thread_name_prefix="polyevo-task",
        )
        self.bands = ThreadPoolExecutor(
            max_workers=self.workers,
            thread_name_prefix="polyevo-band",
        )
        self._closed = False

        logger.debug("Initialized WorkerPool", workers=self.workers)

    def map_tasks(self, fn: Callable[[T], R], items: Iterable[T]) -> list[R]:
        """Fork-join ``fn`` over ``items`` on the task executor."""
        return fork_join(self.tasks, fn, items)

    def map_bands(self, fn: Callable[[T], R], items: Iterable[T]) -> list[R]:
        """Fork-join ``fn`` over ``items`` on the band executor."""
        return fork_join(self.bands, fn, items)

    def close(self) -> None:
        """Shut both executors down, waiting for in-flight work."""
        if self._closed:
            return
        self.tasks.shutdown(wait=True)
        self.bands.shutdown(wait=True)
        self._closed = True

    def __enter__(self) -> WorkerPool:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


__all__ = [
    "WorkerPool",
    "default_worker_count",
    "fork_join",
    "row_bands",
]
