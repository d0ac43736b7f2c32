"""Result aggregation for parallel command execution.

This module provides the ResultAggregator class that collects results from
worker processes as they finish, in whatever order that happens, and hands
them back in worker-index order.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from forklift.parallel.pool import WorkerResult


class ResultAggregator:
    """Aggregates results from parallel worker processes.

    Thread-safe collection of results with outcome counts. Each worker may
    report exactly once.

    Attributes:
        total_workers: Total number of workers launched.
        completed: Number of workers that have reported.

    Example:
        >>> aggregator = ResultAggregator(total_workers=2)
        >>> aggregator.add_result(WorkerResult(worker_index=1, exit_code=0))
        >>> aggregator.add_result(WorkerResult(worker_index=0, exit_code=3))
        >>> [r.worker_index for r in aggregator.get_results()]
        [0, 1]
    """

    def __init__(self, total_workers: int) -> None:
        """Initialize the result aggregator.

        Args:
            total_workers: Total number of workers to be collected.
        """
        self._total_workers = total_workers
        self._results: dict[int, WorkerResult] = {}
        self._lock = threading.Lock()
        self._succeeded = 0
        self._failed = 0
        self._timeout = 0

    @property
    def total_workers(self) -> int:
        """Return the total number of workers."""
        return self._total_workers

    @property
    def completed(self) -> int:
        """Return the number of collected results."""
        with self._lock:
            return len(self._results)

    @property
    def succeeded_count(self) -> int:
        """Return the number of workers that exited with code 0."""
        with self._lock:
            return self._succeeded

    @property
    def failed_count(self) -> int:
        """Return the number of workers with a non-zero or missing exit code."""
        with self._lock:
            return self._failed

    @property
    def timeout_count(self) -> int:
        """Return the number of workers killed by the timeout."""
        with self._lock:
            return self._timeout

    def add_result(self, result: WorkerResult) -> None:
        """Add a result from a worker.

        Thread-safe method to add a result to the aggregator.

        Args:
            result: The worker result to add.

        Raises:
            ValueError: If the worker index is out of range or already reported.
        """
        if not 0 <= result.worker_index < self._total_workers:
            msg = f'Worker index {result.worker_index} out of range for {self._total_workers} workers'
            raise ValueError(msg)

        with self._lock:
            if result.worker_index in self._results:
                msg = f'Worker {result.worker_index} already reported'
                raise ValueError(msg)
            self._results[result.worker_index] = result
            self._update_outcome_count(result)

    def get_results(self) -> list[WorkerResult]:
        """Get all results sorted by worker index.

        Returns:
            List of WorkerResult objects sorted by worker_index.
        """
        with self._lock:
            return [self._results[index] for index in sorted(self._results)]

    def _update_outcome_count(self, result: WorkerResult) -> None:
        """Update outcome counts. Must be called with lock held."""
        if result.timed_out:
            self._timeout += 1
        if result.exit_code == 0:
            self._succeeded += 1
        else:
            self._failed += 1
