"""Input distribution strategies for parallel execution.

This module provides strategies for splitting input lines into buckets, one
bucket per worker process. Every strategy is deterministic, preserves the
relative order of lines within a bucket, and never produces an empty bucket:
with fewer lines than workers, fewer buckets are returned.
"""

from __future__ import annotations

import logging
import math
from typing import Protocol

from forklift.config import DistributionMode
from forklift.errors import InvalidConfiguration


logger = logging.getLogger(__name__)


class DistributionStrategy(Protocol):
    """Protocol for input distribution strategies.

    Implementations partition input lines into buckets for parallel workers.
    """

    def distribute(self, lines: list[str], num_workers: int) -> list[list[str]]:
        """Distribute lines across workers.

        Args:
            lines: Input lines, in order.
            num_workers: Maximum number of buckets to produce.

        Returns:
            At most num_workers non-empty buckets.
        """
        ...


class StripeDistribution:
    """Round-robin distribution strategy.

    Assigns line N to worker N % num_workers, so bucket sizes differ by at
    most one. Six lines come out as:

    - 1 bucket: [1, 2, 3, 4, 5, 6]
    - 2 buckets: [1, 3, 5] [2, 4, 6]
    - 3 buckets: [1, 4] [2, 5] [3, 6]

    Example:
        >>> StripeDistribution().distribute(['foo', 'bar', 'baz'], num_workers=2)
        [['foo', 'baz'], ['bar']]
    """

    def distribute(self, lines: list[str], num_workers: int) -> list[list[str]]:
        """Distribute lines round-robin across workers.

        Args:
            lines: Input lines, in order.
            num_workers: Maximum number of buckets to produce.

        Returns:
            min(len(lines), num_workers) buckets with lines striped across them.
        """
        buckets: list[list[str]] = [[] for _ in range(min(len(lines), num_workers))]

        for i, line in enumerate(lines):
            buckets[i % num_workers].append(line)

        return buckets


class ChunkDistribution:
    """Contiguous-block distribution strategy.

    Splits the input into runs of ceil(n / num_workers) lines; the last run
    may be shorter. Six lines come out as:

    - 1 bucket: [1, 2, 3, 4, 5, 6]
    - 2 buckets: [1, 2, 3] [4, 5, 6]
    - 3 buckets: [1, 2] [3, 4] [5, 6]

    Example:
        >>> ChunkDistribution().distribute(['foo', 'bar', 'baz'], num_workers=2)
        [['foo', 'bar'], ['baz']]
    """

    def distribute(self, lines: list[str], num_workers: int) -> list[list[str]]:
        """Distribute lines in contiguous chunks.

        Args:
            lines: Input lines, in order.
            num_workers: Maximum number of buckets to produce.

        Returns:
            Consecutive slices of the input, none empty.
        """
        if not lines:
            return []

        size = math.ceil(len(lines) / num_workers)
        return [lines[start : start + size] for start in range(0, len(lines), size)]


def get_strategy(mode: DistributionMode) -> DistributionStrategy:
    """Return the strategy implementing a distribution mode.

    Args:
        mode: The configured distribution mode.

    Returns:
        A strategy instance for that mode.
    """
    if mode is DistributionMode.STRIPE:
        return StripeDistribution()
    if mode is DistributionMode.CHUNK:
        return ChunkDistribution()
    msg = f'Unexpected distribution mode: {mode}'  # pragma: no cover
    raise ValueError(msg)  # pragma: no cover


def partition(mode: DistributionMode, num_workers: int, lines: list[str]) -> list[list[str]]:
    """Split input lines into worker buckets.

    Args:
        mode: Distribution mode to apply.
        num_workers: Maximum number of buckets. Must be at least 1.
        lines: Input lines, in order.

    Returns:
        Non-empty buckets, at most num_workers of them. Empty input gives no buckets.

    Raises:
        InvalidConfiguration: If num_workers is less than 1.
    """
    if num_workers < 1:
        msg = f'threads must be > 0, got {num_workers}'
        raise InvalidConfiguration(msg)

    buckets = get_strategy(mode).distribute(lines, num_workers)
    logger.debug(
        'Distributed %d lines into %d buckets (%s): sizes %s',
        len(lines),
        len(buckets),
        mode,
        [len(bucket) for bucket in buckets],
    )
    return buckets
