"""Console output and repository helpers for the testpilot CLI."""

import shutil
from collections.abc import Callable
from pathlib import Path

import click

from testpilot_cli.core.constants import Icons, ProjectFiles
from testpilot_logging import get_cli_logger

logger = get_cli_logger(__name__)


def _styled(fg: str, icon: str = "") -> Callable[[str], str]:
    prefix = f"{icon} " if icon else ""
    return lambda msg: click.style(f"{prefix}{msg}", fg=fg)


class CliOutput:
    """Console writer shared by every command.

    Runs of blank lines collapse into one, so commands may emit spacing
    freely. Errors go to stderr unless told otherwise.
    """

    _last_was_blank: bool = False

    @staticmethod
    def _emit(
        message: str,
        *,
        err: bool = False,
        formatter: Callable[[str], str] | None = None,
    ) -> None:
        if not message.strip():
            if not CliOutput._last_was_blank:
                click.echo("", err=err)
                CliOutput._last_was_blank = True
            return
        click.echo(formatter(message) if formatter else message, err=err)
        CliOutput._last_was_blank = False

    @staticmethod
    def success(message: str) -> None:
        """Green text."""
        CliOutput._emit(message, formatter=_styled("green"))

    @staticmethod
    def error(message: str, err: bool = True) -> None:
        """Red text behind the error icon.

        Parameters
        ----------
        message : str
            Text to print
        err : bool
            Print to stderr, the default
        """
        CliOutput._emit(message, err=err, formatter=_styled("red", Icons.ERROR))

    @staticmethod
    def warning(message: str) -> None:
        """Yellow text."""
        CliOutput._emit(message, formatter=_styled("yellow"))

    @staticmethod
    def info(message: str) -> None:
        """Blue text."""
        CliOutput._emit(message, formatter=_styled("blue"))

    @staticmethod
    def plain(message: str, err: bool = False) -> None:
        """Unstyled text, to stdout unless ``err`` is set."""
        CliOutput._emit(message, err=err)

    @staticmethod
    def separator(char: str = "=", length: int | None = None) -> None:
        """Print a rule of ``char``.

        The rule spans the terminal less two columns, capped at 80, unless
        ``length`` is given.
        """
        if length is None:
            length = min(shutil.get_terminal_size((80, 24)).columns - 2, 80)
        click.echo(char * length)
        CliOutput._last_was_blank = False

    @staticmethod
    def section(title: str, icon: str | None = None) -> None:
        """Echo a section heading followed by a separator."""
        CliOutput.plain("")
        heading = f"{icon} {title}" if icon else title
        click.echo(click.style(heading, bold=True))
        CliOutput.separator("-")


def find_repo_root(start_path: Path | None = None) -> Path:
    """Find the repository root directory.

    Walks up from ``start_path`` until a directory holding one of the root
    markers (``.git``, ``pyproject.toml``, a testpilot config) is found.

    Parameters
    ----------
    start_path : Path, optional
        Path to start searching from, defaults to current directory

    Returns
    -------
    Path
        Repository root path, or the start path when no marker is found
    """
    start = (start_path or Path.cwd()).resolve()
    for candidate in (start, *start.parents):
        if any((candidate / marker).exists() for marker in ProjectFiles.ROOT_MARKERS):
            return candidate
    logger.debug("No repository marker found above %s", start)
    return start
