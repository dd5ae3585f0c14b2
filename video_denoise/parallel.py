"""Row-band partitioning and the thread pool that runs band workers."""

import logging
import os
from concurrent.futures import Executor, ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from video_denoise.utils import InvalidArgumentError, WorkerFailureError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Band:
    """Half-open row range [start, end) owned by one worker."""

    start: int
    end: int

    @property
    def height(self) -> int:
        return self.end - self.start

    @property
    def rows(self) -> slice:
        return slice(self.start, self.end)


def default_worker_count() -> int:
    """Number of workers matching the available hardware parallelism."""
    return os.cpu_count() or 1


def partition(total_rows: int, worker_count: int) -> list[Band]:
    """Split [0, total_rows) into contiguous bands.

    Band heights differ by at most one row; the trailing
    ``total_rows % n`` bands each take one extra row. No empty band is
    produced, so fewer than ``worker_count`` bands come back when the frame
    has fewer rows than workers.

    Args:
        total_rows: Frame height
        worker_count: Number of workers

    Returns:
        Ordered list of bands covering every row exactly once
    """
    if worker_count <= 0:
        raise InvalidArgumentError(f"Worker count must be positive, got {worker_count}")
    if total_rows < 0:
        raise InvalidArgumentError(f"Row count must not be negative, got {total_rows}")
    if total_rows == 0:
        return []

    count = min(worker_count, total_rows)
    base, remainder = divmod(total_rows, count)
    first_long = count - remainder

    bands = []
    start = 0
    for i in range(count):
        height = base + (1 if i >= first_long else 0)
        bands.append(Band(start, start + height))
        start += height
    return bands


def run_parallel(
    count: int,
    fn: Callable[[int], T],
    executor: Optional[Executor] = None,
) -> list[T]:
    """Run fn(0) .. fn(count - 1) concurrently and wait for all of them.

    Every task is joined even when one fails; the first failure observed is
    then raised as WorkerFailureError.

    Args:
        count: Number of tasks
        fn: Task body, called with the task index
        executor: Pool to submit to (a temporary pool is used if None)

    Returns:
        Results in task index order
    """
    if count <= 0:
        return []

    if executor is None:
        with ThreadPoolExecutor(max_workers=count) as pool:
            return run_parallel(count, fn, pool)

    futures = {executor.submit(fn, i): i for i in range(count)}
    results: list = [None] * count
    first_error: Optional[BaseException] = None
    failed_index = -1

    for future in as_completed(futures):
        index = futures[future]
        error = future.exception()
        if error is not None:
            if first_error is None:
                first_error = error
                failed_index = index
            continue
        results[index] = future.result()

    if first_error is not None:
        logger.error("Worker %d failed: %s", failed_index, first_error)
        raise WorkerFailureError(f"Worker {failed_index} failed: {first_error}") from first_error

    return results


class WorkDispatcher:
    """Fixed pool of band workers.

    Use as a context manager so the pool threads are released:

        with WorkDispatcher(workers=4) as dispatcher:
            dispatcher.run_bands(height, lambda band: ...)
    """

    def __init__(self, workers: Optional[int] = None):
        """Initialize dispatcher.

        Args:
            workers: Pool size (None = hardware parallelism)
        """
        if workers is None:
            workers = default_worker_count()
        if workers <= 0:
            raise InvalidArgumentError(f"Worker count must be positive, got {workers}")
        self.workers = workers
        self._executor: Optional[ThreadPoolExecutor] = None

    def _get_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self.workers,
                thread_name_prefix="band",
            )
        return self._executor

    def run_bands(self, height: int, fn: Callable[[Band], None]) -> list[Band]:
        """Run fn once per band of a frame and wait for every band.

        Args:
            height: Frame height to partition
            fn: Band worker; must only write rows inside its band

        Returns:
            The bands that were processed
        """
        bands = partition(height, self.workers)
        run_parallel(len(bands), lambda i: fn(bands[i]), self._get_executor())
        return bands

    def close(self) -> None:
        """Shut down the pool, waiting for running workers."""
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self) -> "WorkDispatcher":
        return self

    def __exit__(self, *args) -> None:
        self.close()

