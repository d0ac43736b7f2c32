"""Reading worker input from standard input."""

from __future__ import annotations

from typing import TextIO

from forklift.errors import InputReadFailure


def stdin_has_input(stream: TextIO | None) -> bool:
    """Return True if the stream is a piped or redirected input source.

    An interactive terminal, a closed stream, or a missing stream (for
    example under pythonw) carries no input.

    Args:
        stream: The stream to inspect, usually sys.stdin.

    Returns:
        False for a TTY or unusable stream, True otherwise.
    """
    if stream is None or stream.closed:
        return False
    try:
        return not stream.isatty()
    except (OSError, ValueError):
        return False


def read_lines(stream: TextIO) -> list[str]:
    """Read every line from a stream.

    Only the line terminator ('\\n' or '\\r\\n') is removed; all other
    whitespace is preserved, including a '\\r' not followed by '\\n'.

    Args:
        stream: Text stream to read until EOF.

    Returns:
        The lines in input order.

    Raises:
        InputReadFailure: If the stream cannot be read or is not valid text.
    """
    try:
        return [_strip_terminator(line) for line in stream]
    except (OSError, UnicodeDecodeError) as e:
        msg = f'failed to read standard input: {e}'
        raise InputReadFailure(msg) from e


def _strip_terminator(line: str) -> str:
    if line.endswith('\n'):
        return line[:-1].removesuffix('\r')
    return line

