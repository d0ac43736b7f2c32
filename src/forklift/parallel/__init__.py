"""Parallel execution module for forklift.

This module provides components for running a command across workers:

- DistributionStrategy: Partitions input lines across workers
- WorkerPool: Launches worker processes and waits on them concurrently
- ResultAggregator: Collects results and orders them by worker index
"""

from __future__ import annotations
