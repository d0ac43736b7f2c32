"""Worker pool for parallel command execution.

This module provides the WorkerPool class that launches one external process
per worker and collects their results.

Every process is started before any is waited upon. Collection then waits
on all workers concurrently from a thread pool, so a slow worker never holds
up reading another worker's pipes. Results are handed back in worker-index
order no matter which worker finished first.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
import logging
import subprocess
import time
from typing import TYPE_CHECKING, Self

from forklift.errors import SpawnFailure
from forklift.parallel.aggregator import ResultAggregator


if TYPE_CHECKING:
    from collections.abc import Sequence


logger = logging.getLogger(__name__)

PLACEHOLDER = '{}'


@dataclass(frozen=True)
class WorkerResult:
    """Result from a worker process.

    Attributes:
        worker_index: 0-based index of the worker, in launch order.
        exit_code: Process exit code, or None if the process did not exit
            normally (killed by a signal or by the timeout).
        stdout: Captured standard output. Empty in silent mode.
        stderr: Captured standard error. Empty in silent mode.
        timed_out: True if the worker was killed after exceeding the timeout.
        execution_time_ms: Time from launch until the worker was reaped.
    """

    worker_index: int
    exit_code: int | None
    stdout: bytes = b''
    stderr: bytes = b''
    timed_out: bool = False
    execution_time_ms: float | None = field(default=None, compare=False)


def replace_placeholder(
    template: Sequence[str],
    substitutes: Sequence[str],
    placeholder: str = PLACEHOLDER,
) -> list[str]:
    """Replace the first placeholder token in a command template.

    The placeholder is removed and every substitute is inserted at its
    position, in order. Only whole tokens match; 'x{}' is left alone. If the
    template has no placeholder it is returned unchanged.

    Args:
        template: Command template; not modified.
        substitutes: Arguments to insert.
        placeholder: Token to replace.

    Returns:
        A new argument list.

    Example:
        >>> replace_placeholder(['foo', '{}', 'bar'], ['baz', 'qux'])
        ['foo', 'baz', 'qux', 'bar']
        >>> replace_placeholder(['foo', 'bar'], ['baz'])
        ['foo', 'bar']
    """
    command = list(template)
    try:
        idx = command.index(placeholder)
    except ValueError:
        return command
    command[idx : idx + 1] = substitutes
    return command


def build_commands(template: Sequence[str], buckets: Sequence[Sequence[str]]) -> list[list[str]]:
    """Build one argument vector per bucket.

    Args:
        template: Command template containing at most one placeholder to fill.
        buckets: Input lines for each worker.

    Returns:
        Argument vectors, one per bucket, in bucket order.
    """
    return [replace_placeholder(template, bucket) for bucket in buckets]


def _wait_for_worker(
    worker_index: int,
    process: subprocess.Popen[bytes],
    started: float,
    timeout: float | None,
) -> WorkerResult:
    """Wait for a worker process and read its captured output.

    Runs on a collector thread, one call per worker.

    Args:
        worker_index: Index of the worker.
        process: The running process.
        started: time.monotonic() value taken when the process was launched.
        timeout: Seconds to wait before killing the process, or None.

    Returns:
        WorkerResult for the finished process.
    """
    timed_out = False
    try:
        stdout, stderr = process.communicate(timeout=timeout)
    except subprocess.TimeoutExpired:
        timed_out = True
        process.kill()
        stdout, stderr = process.communicate()
        logger.warning('Worker %d killed after exceeding timeout of %ss', worker_index, timeout)

    execution_time_ms = (time.monotonic() - started) * 1000

    returncode = process.returncode
    # Negative return codes mean the process was terminated by a signal
    exit_code = None if timed_out or returncode < 0 else returncode

    logger.debug(
        'Worker %d finished with exit code %s in %.1fms (%d bytes stderr)',
        worker_index,
        exit_code,
        execution_time_ms,
        len(stderr or b''),
    )

    return WorkerResult(
        worker_index=worker_index,
        exit_code=exit_code,
        stdout=stdout or b'',
        stderr=stderr or b'',
        timed_out=timed_out,
        execution_time_ms=execution_time_ms,
    )


class WorkerPool:
    """Launches worker processes and collects their results.

    Attributes:
        silent: Whether worker stdout/stderr are discarded instead of captured.
        timeout: Seconds a worker may run before it is killed, or None.

    Example:
        >>> with WorkerPool() as pool:
        ...     pool.launch([['true'], ['true']])
        ...     [r.exit_code for r in pool.collect()]
        [0, 0]
    """

    def __init__(self, silent: bool = False, timeout: float | None = None) -> None:
        """Initialize the worker pool.

        Args:
            silent: Discard worker output instead of capturing it.
            timeout: Seconds a worker may run before it is killed. None waits forever.
        """
        self._silent = silent
        self._timeout = timeout
        self._processes: list[tuple[subprocess.Popen[bytes], float]] = []
        self._active = False
        self._shutdown_called = False

    @property
    def silent(self) -> bool:
        """Return True if worker output is discarded."""
        return self._silent

    @property
    def timeout(self) -> float | None:
        """Return the per-worker timeout in seconds."""
        return self._timeout

    @property
    def launched(self) -> int:
        """Return the number of processes launched and not yet collected."""
        return len(self._processes)

    def __enter__(self) -> Self:
        """Enter the context manager, activating the pool."""
        self._active = True
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Exit the context manager, shutting down the pool."""
        self.shutdown()

    def shutdown(self) -> None:
        """Shutdown the worker pool.

        Processes that were launched but never collected are not killed;
        they are left to run to completion on their own.
        """
        if self._shutdown_called:
            return

        self._shutdown_called = True
        self._active = False
        if self._processes:
            logger.debug('Abandoning %d uncollected workers', len(self._processes))
            self._processes = []

    def launch(self, commands: Sequence[Sequence[str]]) -> None:
        """Start one process per command, in order, without waiting.

        Args:
            commands: Argument vectors; index i becomes worker i.

        Raises:
            RuntimeError: If the pool is not active (not in context).
            SpawnFailure: If a process cannot be started. No later commands are launched.
        """
        if not self._active:
            msg = 'WorkerPool is not active. Use as context manager.'
            raise RuntimeError(msg)

        output = subprocess.DEVNULL if self._silent else subprocess.PIPE

        for command in commands:
            worker_index = len(self._processes)
            argv = list(command)
            logger.debug('Launching worker %d: %s', worker_index, argv)
            try:
                process = subprocess.Popen(  # noqa: S603
                    argv,
                    stdin=subprocess.DEVNULL,
                    stdout=output,
                    stderr=output,
                )
            except (OSError, ValueError) as e:
                raise SpawnFailure(worker_index, argv, e) from e
            self._processes.append((process, time.monotonic()))

    def collect(self) -> list[WorkerResult]:
        """Wait for every launched process and gather results.

        Each process is waited on exactly once. Waiting happens concurrently;
        the returned list is ordered by worker index.

        Returns:
            One WorkerResult per launched process, sorted by worker_index.
        """
        processes, self._processes = self._processes, []
        aggregator = ResultAggregator(total_workers=len(processes))

        if not processes:
            return aggregator.get_results()

        with ThreadPoolExecutor(max_workers=len(processes), thread_name_prefix='forklift-collect') as executor:
            futures = [
                executor.submit(_wait_for_worker, worker_index, process, started, self._timeout)
                for worker_index, (process, started) in enumerate(processes)
            ]
            for future in as_completed(futures):
                aggregator.add_result(future.result())

        logger.debug(
            'Collected %d workers: %d succeeded, %d failed, %d timed out',
            aggregator.completed,
            aggregator.succeeded_count,
            aggregator.failed_count,
            aggregator.timeout_count,
        )
        return aggregator.get_results()


def run_commands(
    commands: Sequence[Sequence[str]],
    silent: bool = False,
    timeout: float | None = None,
) -> list[WorkerResult]:
    """Launch every command concurrently and collect results in order.

    Args:
        commands: One argument vector per worker.
        silent: Discard worker output instead of capturing it.
        timeout: Seconds a worker may run before it is killed.

    Returns:
        WorkerResults ordered by worker index.

    Raises:
        SpawnFailure: If any worker cannot be started.
    """
    if not commands:
        return []

    with WorkerPool(silent=silent, timeout=timeout) as pool:
        pool.launch(commands)
        return pool.collect()


def dispatch(
    template: Sequence[str],
    buckets: Sequence[Sequence[str]],
    silent: bool = False,
    timeout: float | None = None,
) -> list[WorkerResult]:
    """Run the command template once per bucket.

    An empty template or an empty bucket list is a no-op.

    Args:
        template: Command template; the first '{}' receives each bucket's lines.
        buckets: Input lines for each worker.
        silent: Discard worker output instead of capturing it.
        timeout: Seconds a worker may run before it is killed.

    Returns:
        WorkerResults ordered by worker index.

    Raises:
        SpawnFailure: If any worker cannot be started.
    """
    if not template or not buckets:
        return []

    return run_commands(build_commands(template, buckets), silent=silent, timeout=timeout)
