"""Shared pytest configuration and fixtures for forklift tests."""

from __future__ import annotations

from collections.abc import Callable
import io
from pathlib import Path
import sys

import pytest


# Register markers for test categories
def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line('markers', 'small: Fast, isolated unit tests (< 100ms)')
    config.addinivalue_line('markers', 'medium: Integration tests with real resources (< 10s)')
    config.addinivalue_line('markers', 'large: End-to-end system tests (< 60s)')


# Auto-mark tests based on directory
def pytest_collection_modifyitems(
    config: pytest.Config,  # noqa: ARG001
    items: list[pytest.Item],
) -> None:
    """Automatically apply markers based on test directory."""
    for item in items:
        path_parts = Path(str(item.path)).parts

        if 'small' in path_parts:
            item.add_marker(pytest.mark.small)
        elif 'medium' in path_parts:
            item.add_marker(pytest.mark.medium)
        elif 'large' in path_parts:
            item.add_marker(pytest.mark.large)


class TerminalInput(io.StringIO):
    """A stdin stand-in that reports itself as an interactive terminal."""

    def isatty(self) -> bool:
        return True


ECHO_ARGS = 'import sys; print(" ".join(sys.argv[1:]))'


@pytest.fixture
def terminal_stdin() -> TerminalInput:
    """Provide a stdin that looks like a terminal with nothing piped."""
    return TerminalInput()


@pytest.fixture
def isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run the test from an empty directory so no pyproject.toml is picked up."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def python_command() -> Callable[..., list[str]]:
    """Return a builder for argument vectors that run a Python snippet."""

    def build(code: str, *args: str) -> list[str]:
        return [sys.executable, '-c', code, *args]

    return build


@pytest.fixture
def echo_args_template() -> list[str]:
    """Command template that prints its arguments on one line."""
    return [sys.executable, '-c', ECHO_ARGS, '{}']
