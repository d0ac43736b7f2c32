"""Tests for reading worker input from standard input."""

from __future__ import annotations

import io

import pytest

from forklift.errors import InputReadFailure
from forklift.reader import read_lines, stdin_has_input


class FailingInput(io.StringIO):
    """A stream whose reads fail partway through."""

    def __iter__(self) -> FailingInput:
        return self

    def __next__(self) -> str:
        msg = 'device went away'
        raise OSError(msg)


class TestStdinHasInput:
    """Tests for detecting piped input."""

    def test_piped_stream_has_input(self) -> None:
        """A non-terminal stream is treated as piped input."""
        assert stdin_has_input(io.StringIO('foo\n')) is True

    def test_empty_piped_stream_still_counts(self) -> None:
        """An empty pipe is still input, just with no lines."""
        assert stdin_has_input(io.StringIO('')) is True

    def test_terminal_has_no_input(self, terminal_stdin: io.StringIO) -> None:
        """An interactive terminal carries no input."""
        assert stdin_has_input(terminal_stdin) is False

    def test_missing_stream_has_no_input(self) -> None:
        """sys.stdin can be None, e.g. under pythonw."""
        assert stdin_has_input(None) is False

    def test_closed_stream_has_no_input(self) -> None:
        """A closed stream carries no input."""
        stream = io.StringIO('foo\n')
        stream.close()
        assert stdin_has_input(stream) is False


class TestReadLines:
    """Tests for reading lines."""

    def test_strips_only_terminators(self) -> None:
        """Leading and trailing spaces survive; newlines do not."""
        assert read_lines(io.StringIO('  foo \nbar\t\n\nbaz')) == ['  foo ', 'bar\t', '', 'baz']

    def test_strips_crlf(self) -> None:
        """Windows line endings are removed as a unit."""
        assert read_lines(io.StringIO('foo\r\nbar\r\n', newline='')) == ['foo', 'bar']

    def test_lone_carriage_return_is_data(self) -> None:
        """A carriage return without a following newline is kept."""
        assert read_lines(io.StringIO('a\r\nb\r', newline='')) == ['a', 'b\r']

    def test_empty_input(self) -> None:
        """Empty input gives no lines."""
        assert read_lines(io.StringIO('')) == []

    def test_io_error_raises_input_read_failure(self) -> None:
        """An I/O error while reading aborts with InputReadFailure."""
        with pytest.raises(InputReadFailure, match='device went away'):
            read_lines(FailingInput())

    def test_invalid_text_raises_input_read_failure(self) -> None:
        """Undecodable bytes on stdin abort with InputReadFailure."""
        stream = io.TextIOWrapper(io.BytesIO(b'ok\n\xff\xfe\n'), encoding='utf-8')
        with pytest.raises(InputReadFailure):
            read_lines(stream)
