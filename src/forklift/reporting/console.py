"""Console reporter for worker results.

Writes each worker's exit code and captured output to the terminal, one
block per worker in worker-index order.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, TextIO

from forklift.errors import DecodeFailure


if TYPE_CHECKING:
    from collections.abc import Iterable

    from forklift.parallel.pool import WorkerResult


class ConsoleReporter:
    """Reporter that writes worker results to the console.

    Produces output in the following format:

        [Worker 0] exited with code 0:
        output of worker 0

        [Worker 1] exited with code none (timed out):
        partial output of worker 1

    Output is decoded as UTF-8 only when its block is written, so blocks for
    earlier workers are already out when a later one fails to decode.

    Attributes:
        output: The file-like object to write to.
    """

    MISSING_EXIT_CODE = 'none'

    def __init__(self, output: TextIO | None = None) -> None:
        """Initialize the console reporter.

        Args:
            output: File-like object to write to. Defaults to sys.stdout.
        """
        self.output = output or sys.stdout

    def write_results(self, results: Iterable[WorkerResult]) -> None:
        """Write one block per result, in worker-index order.

        Args:
            results: Results to report.

        Raises:
            DecodeFailure: If a worker's stdout is not valid UTF-8.
        """
        for result in sorted(results, key=lambda r: r.worker_index):
            self.write_result(result)

    def write_result(self, result: WorkerResult) -> None:
        """Write the block for a single worker.

        Args:
            result: The result to report.

        Raises:
            DecodeFailure: If the worker's stdout is not valid UTF-8.
        """
        try:
            text = result.stdout.decode('utf-8')
        except UnicodeDecodeError as e:
            raise DecodeFailure(result.worker_index, e) from e

        self._write_line(self._format_header(result))
        self._write_line(text)
        self.output.flush()

    def _format_header(self, result: WorkerResult) -> str:
        """Format the header line for a worker block."""
        code = self.MISSING_EXIT_CODE if result.exit_code is None else str(result.exit_code)
        suffix = ' (timed out)' if result.timed_out else ''
        return f'[Worker {result.worker_index}] exited with code {code}{suffix}:'

    def _write_line(self, text: str) -> None:
        """Write a line of text followed by newline."""
        self.output.write(text + '\n')
