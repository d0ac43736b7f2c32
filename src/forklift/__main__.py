"""Allow running forklift with ``python -m forklift``."""

from __future__ import annotations

from forklift.cli import entry_point


if __name__ == '__main__':
    entry_point()
