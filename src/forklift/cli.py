"""Command-line interface for forklift.

Usage:
    forklift [-t N] [-s] [-m {stripe,chunk}] [--timeout SECONDS] -- command [args...]

Lines read from standard input are split across N workers and inserted into
the command at the first '{}' argument. When standard input is a terminal,
N copies of the command are run as-is.

Exit Codes:
    0: All workers were run (whatever their own exit codes)
    1: Input could not be read, a worker could not start, or output was not UTF-8
    2: Invalid configuration or usage
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys
from typing import TYPE_CHECKING, NoReturn, TextIO

from forklift import __version__
from forklift.config import DEFAULT_THREADS, DistributionMode, load_config, merge_configs
from forklift.errors import ForkliftError, InvalidConfiguration
from forklift.parallel.distribution import partition
from forklift.parallel.pool import dispatch, run_commands
from forklift.reader import read_lines, stdin_has_input
from forklift.reporting.console import ConsoleReporter


if TYPE_CHECKING:
    from collections.abc import Sequence

    from forklift.config import RunConfig


logger = logging.getLogger(__name__)

PROG = 'forklift'
SEPARATOR = '--'
EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def split_command(argv: Sequence[str]) -> tuple[list[str], list[str]]:
    """Split arguments at the first '--' into options and command template.

    Args:
        argv: Arguments after the program name.

    Returns:
        Tuple of (option arguments, command template).

    Example:
        >>> split_command(['-t', '2', '--', 'echo', '--', '{}'])
        (['-t', '2'], ['echo', '--', '{}'])
    """
    args = list(argv)
    if SEPARATOR not in args:
        return args, []
    idx = args.index(SEPARATOR)
    return args[:idx], args[idx + 1 :]


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the options before '--'."""
    parser = argparse.ArgumentParser(
        prog=PROG,
        usage=f'{PROG} [options] -- command [args...]',
        description='Like a fork, but cooler. Run a command across parallel workers fed from standard input.',
        epilog="The first '{}' argument of the command is replaced by each worker's input lines.",
    )
    parser.add_argument(
        '-t',
        '--threads',
        type=int,
        default=None,
        metavar='N',
        help=f'Number of workers (default: {DEFAULT_THREADS})',
    )
    parser.add_argument(
        '-s',
        '--silent',
        action='store_true',
        default=None,
        help='Suppress stdout and stderr',
    )
    parser.add_argument(
        '-m',
        '--mode',
        default=None,
        metavar='{' + ','.join(DistributionMode.choices()) + '}',
        help=f'Distribution mode (default: {DistributionMode.STRIPE})',
    )
    parser.add_argument(
        '--timeout',
        type=float,
        default=None,
        metavar='SECONDS',
        help='Kill workers still running after this many seconds (default: no limit)',
    )
    parser.add_argument(
        '-v',
        '--verbose',
        action='store_true',
        help='Log debug information to stderr',
    )
    parser.add_argument(
        '-V',
        '--version',
        action='version',
        version=f'%(prog)s {__version__}',
    )
    return parser


def configure_logging(verbose: bool) -> None:
    """Send log records to stderr, at DEBUG level when verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(name)s: %(levelname)s: %(message)s',
        stream=sys.stderr,
    )


def run(config: RunConfig, stdin: TextIO | None, reporter: ConsoleReporter) -> int:
    """Run the configured command across workers and report the results.

    Args:
        config: Validated run configuration.
        stdin: Input stream to distribute; a terminal means no input.
        reporter: Where worker results are written.

    Returns:
        Process exit code.

    Raises:
        InputReadFailure: If stdin cannot be read.
        SpawnFailure: If a worker cannot be started.
        DecodeFailure: If a worker's output is not valid UTF-8.
    """
    if not config.command:
        logger.debug('No command given, nothing to run')
        return EXIT_OK

    if stdin is not None and stdin_has_input(stdin):
        lines = read_lines(stdin)
        buckets = partition(config.mode, config.threads, lines)
        results = dispatch(config.command, buckets, silent=config.silent, timeout=config.timeout)
    else:
        logger.debug('No piped input, running %d copies of %s', config.threads, list(config.command))
        commands = [list(config.command) for _ in range(config.threads)]
        results = run_commands(commands, silent=config.silent, timeout=config.timeout)

    if not config.silent:
        reporter.write_results(results)

    return EXIT_OK


def _report_error(error: Exception) -> None:
    print(f'{PROG}: error: {error}', file=sys.stderr)


def main(
    argv: Sequence[str] | None = None,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
) -> int:
    """Run forklift from the command line.

    Args:
        argv: Arguments after the program name. Defaults to sys.argv[1:].
        stdin: Input stream. Defaults to sys.stdin.
        stdout: Report stream. Defaults to sys.stdout.

    Returns:
        Exit code (0 = success, 1 = runtime failure, 2 = invalid configuration).
    """
    options, command = split_command(sys.argv[1:] if argv is None else argv)
    args = build_parser().parse_args(options)
    configure_logging(args.verbose)

    try:
        config = merge_configs(
            load_config(Path.cwd()),
            cli_threads=args.threads,
            cli_silent=args.silent,
            cli_mode=args.mode,
            cli_timeout=args.timeout,
            command=command,
        )
    except InvalidConfiguration as e:
        _report_error(e)
        return EXIT_USAGE

    try:
        return run(config, sys.stdin if stdin is None else stdin, ConsoleReporter(stdout))
    except ForkliftError as e:
        _report_error(e)
        return EXIT_FAILURE


def entry_point() -> NoReturn:
    """Console script entry point."""
    sys.exit(main())
