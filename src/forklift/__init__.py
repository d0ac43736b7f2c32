"""forklift: run a command across parallel workers fed from standard input.

Like a fork, but cooler.

forklift reads lines from standard input, splits them into buckets, and
launches one process per bucket with the bucket's lines substituted into the
command template at the ``{}`` placeholder. Once every worker has finished,
each worker's exit code and captured output are reported in worker order.

Example:
    Grep four shards of a file list concurrently::

        $ find . -name '*.py' | forklift -t 4 -- grep -l TODO {}

    Give each worker a contiguous block instead of a round-robin stripe::

        $ seq 100 | forklift --mode chunk -- echo {}
"""

from __future__ import annotations


__version__ = '0.3.0'
__all__ = ['__version__']
