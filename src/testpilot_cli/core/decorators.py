"""Click decorators shared by the testpilot commands."""

import functools
import traceback
from collections.abc import Callable
from pathlib import Path
from typing import Any, NoReturn, TypeVar

import click

from testpilot.common.errors import ConfigurationError, TestpilotError
from testpilot_cli.core.constants import ExitCode
from testpilot_cli.core.utils import CliOutput
from testpilot_logging import get_cli_logger

logger = get_cli_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def _fail(message: str, code: int) -> NoReturn:
    CliOutput.error(message)
    click.get_current_context().exit(code)


def handle_exceptions(func: F) -> F:
    """Turn errors escaping a command into a message and an exit code.

    ``ConfigurationError`` exits with ``CONFIG_ERROR``, ``PermissionError``
    with ``PERMISSION_ERROR``; every other failure exits with ``FAILURE``.
    Unexpected exceptions print their traceback only under ``--verbose``.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs) -> Any:
        try:
            return func(*args, **kwargs)
        except click.exceptions.Exit:
            raise
        except KeyboardInterrupt:
            CliOutput.warning("Interrupted")
            click.get_current_context().exit(ExitCode.FAILURE)
        except ConfigurationError as e:
            logger.debug("Configuration error: %s", e)
            _fail(f"Configuration error: {e}", ExitCode.CONFIG_ERROR)
        except TestpilotError as e:
            _fail(str(e), ExitCode.FAILURE)
        except PermissionError as e:
            _fail(f"Permission denied: {e}", ExitCode.PERMISSION_ERROR)
        except Exception as e:
            logger.exception("Unexpected error")
            if getattr(click.get_current_context().obj, "verbose", False):
                CliOutput.error(traceback.format_exc())
            else:
                CliOutput.info("Re-run with --verbose for full traceback")
            _fail(f"Unexpected error: {e}", ExitCode.FAILURE)

    return wrapper  # type: ignore[return-value]


def config_option(func: F) -> F:
    """Add ``--config/-c``, stored as ``config_file``."""
    return click.option(
        "--config",
        "-c",
        "config_file",
        type=click.Path(dir_okay=False, path_type=Path),
        default=None,
        help="Configuration file (YAML or JSON), defaults to testpilot.yaml",
    )(func)
