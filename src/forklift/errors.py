"""Error types raised by forklift.

Every error here is fatal to the invocation. The CLI maps each kind to a
process exit code; a worker's own non-zero exit status is never an error.
"""

from __future__ import annotations


class ForkliftError(Exception):
    """Base class for all forklift errors."""


class InvalidConfiguration(ForkliftError, ValueError):
    """Raised for an invalid worker count, distribution mode, or timeout."""


class InputReadFailure(ForkliftError):
    """Raised when standard input cannot be read as text lines."""


class SpawnFailure(ForkliftError):
    """Raised when a worker process cannot be started.

    Attributes:
        worker_index: Index of the worker that failed to start.
        command: The argument vector that was being launched.
    """

    def __init__(self, worker_index: int, command: list[str], reason: OSError | ValueError) -> None:
        self.worker_index = worker_index
        self.command = command
        program = command[0] if command else '<empty>'
        detail = getattr(reason, 'strerror', None) or reason
        super().__init__(f'failed to start worker {worker_index} ({program}): {detail}')


class DecodeFailure(ForkliftError):
    """Raised when a worker's captured output is not valid UTF-8.

    Attributes:
        worker_index: Index of the worker whose output failed to decode.
    """

    def __init__(self, worker_index: int, reason: UnicodeDecodeError) -> None:
        self.worker_index = worker_index
        super().__init__(f'failed to decode output of worker {worker_index}: {reason.reason} at byte {reason.start}')


__all__ = [
    'DecodeFailure',
    'ForkliftError',
    'InputReadFailure',
    'InvalidConfiguration',
    'SpawnFailure',
]
