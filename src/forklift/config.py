"""Configuration for forklift runs.

This module defines the immutable RunConfig passed to the partitioner and
dispatcher, the closed set of distribution modes, and loading of defaults
from the [tool.forklift] section of pyproject.toml.

Precedence is: command-line flags, then pyproject.toml, then built-in
defaults.

Example:
    >>> config = RunConfig(threads=4, mode=DistributionMode.CHUNK, command=('echo', '{}'))
    >>> config.threads
    4
    >>> config.mode.value
    'chunk'
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
import tomllib
from typing import TYPE_CHECKING, Any

from forklift.errors import InvalidConfiguration


if TYPE_CHECKING:
    from pathlib import Path


logger = logging.getLogger(__name__)


DEFAULT_THREADS = 8
CONFIG_SECTION = 'forklift'


class DistributionMode(Enum):
    """How input lines are assigned to workers.

    Attributes:
        STRIPE: Round-robin; line i goes to worker i % threads.
        CHUNK: Contiguous blocks of ceil(n / threads) lines.
    """

    STRIPE = 'stripe'
    CHUNK = 'chunk'

    @classmethod
    def choices(cls) -> list[str]:
        """Return the valid mode names, sorted."""
        return sorted(mode.value for mode in cls)

    @classmethod
    def parse(cls, text: str) -> DistributionMode:
        """Parse a mode name.

        Args:
            text: Mode name as given on the command line or in pyproject.toml.

        Returns:
            The matching DistributionMode.

        Raises:
            InvalidConfiguration: If the name is not a known mode.

        Example:
            >>> DistributionMode.parse('chunk')
            <DistributionMode.CHUNK: 'chunk'>
        """
        modes = {
            'stripe': cls.STRIPE,
            'chunk': cls.CHUNK,
        }
        try:
            return modes[text]
        except KeyError:
            msg = f'invalid mode {text!r}; valid modes are: {", ".join(cls.choices())}'
            raise InvalidConfiguration(msg) from None

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, eq=True)
class RunConfig:
    """Settings for a single forklift invocation.

    Attributes:
        threads: Number of workers to spread input across. Must be >= 1.
        silent: Discard worker stdout/stderr and print no report.
        mode: Input distribution strategy.
        timeout: Seconds after which a still-running worker is killed.
            None means workers always run to completion.
        command: Command template; the first '{}' token receives the input lines.
    """

    threads: int = DEFAULT_THREADS
    silent: bool = False
    mode: DistributionMode = DistributionMode.STRIPE
    timeout: float | None = None
    command: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        """Validate configuration values.

        Raises:
            InvalidConfiguration: If any configuration value is invalid.
        """
        if self.threads < 1:
            msg = f'threads must be > 0, got {self.threads}'
            raise InvalidConfiguration(msg)

        if self.timeout is not None and self.timeout <= 0:
            msg = f'timeout must be positive, got {self.timeout}'
            raise InvalidConfiguration(msg)


@dataclass
class FileConfig:
    """Defaults read from pyproject.toml.

    All fields default to None, meaning the value was not set in the file.

    Attributes:
        threads: Default worker count.
        silent: Default for silent mode.
        mode: Default distribution mode name.
        timeout: Default worker timeout in seconds.
    """

    threads: int | None = None
    silent: bool | None = None
    mode: str | None = None
    timeout: float | None = None


def _typed(table: dict[str, Any], key: str, kinds: tuple[type, ...]) -> Any:  # noqa: ANN401
    value = table.get(key)
    if value is None:
        return None
    # bool is an int subclass
    is_stray_bool = isinstance(value, bool) and bool not in kinds
    if isinstance(value, kinds) and not is_stray_bool:
        return value
    expected = ' or '.join(kind.__name__ for kind in kinds)
    msg = f'[tool.{CONFIG_SECTION}] {key} must be {expected}, got {value!r}'
    raise InvalidConfiguration(msg)


def load_config(rootdir: Path) -> FileConfig:
    """Load defaults from pyproject.toml.

    Reads the [tool.forklift] section from pyproject.toml in the given
    directory. Returns an empty FileConfig if the file or section does not
    exist, or if the file is not valid TOML (a warning is logged).

    Args:
        rootdir: Directory containing pyproject.toml.

    Returns:
        FileConfig with values from pyproject.toml.

    Raises:
        InvalidConfiguration: If the section is not a table or a value has the wrong type.
    """
    pyproject_path = rootdir / 'pyproject.toml'

    if not pyproject_path.exists():
        return FileConfig()

    try:
        with pyproject_path.open('rb') as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        logger.warning('Ignoring %s: %s', pyproject_path, e)
        return FileConfig()

    tool = data.get('tool', {})
    tool_config = tool.get(CONFIG_SECTION, {}) if isinstance(tool, dict) else None
    if not isinstance(tool_config, dict):
        msg = f'[tool.{CONFIG_SECTION}] must be a table'
        raise InvalidConfiguration(msg)

    return FileConfig(
        threads=_typed(tool_config, 'threads', (int,)),
        silent=_typed(tool_config, 'silent', (bool,)),
        mode=_typed(tool_config, 'mode', (str,)),
        timeout=_typed(tool_config, 'timeout', (int, float)),
    )


def merge_configs(
    file_config: FileConfig,
    cli_threads: int | None = None,
    cli_silent: bool | None = None,
    cli_mode: str | None = None,
    cli_timeout: float | None = None,
    command: list[str] | tuple[str, ...] = (),
) -> RunConfig:
    """Merge CLI arguments with file configuration into a RunConfig.

    CLI arguments take precedence over pyproject.toml configuration. None
    means the flag was not given.

    Args:
        file_config: Configuration loaded from pyproject.toml.
        cli_threads: Worker count from --threads.
        cli_silent: True if --silent was given.
        cli_mode: Mode name from --mode.
        cli_timeout: Seconds from --timeout.
        command: Command template from after the '--' separator.

    Returns:
        A validated RunConfig.

    Raises:
        InvalidConfiguration: If the merged values are invalid.
    """
    threads = cli_threads if cli_threads is not None else file_config.threads
    silent = cli_silent if cli_silent is not None else file_config.silent
    mode = cli_mode if cli_mode is not None else file_config.mode
    timeout = cli_timeout if cli_timeout is not None else file_config.timeout

    return RunConfig(
        threads=threads if threads is not None else DEFAULT_THREADS,
        silent=bool(silent),
        mode=DistributionMode.parse(mode) if mode is not None else DistributionMode.STRIPE,
        timeout=timeout,
        command=tuple(command),
    )
