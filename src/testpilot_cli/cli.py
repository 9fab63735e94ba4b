"""The ``testpilot`` command group and the state its subcommands share."""

import os
from pathlib import Path

import click

from testpilot_cli.commands import config, test
from testpilot_cli.core.constants import EnvVars, LogLevel
from testpilot_cli.core.utils import find_repo_root
from testpilot_cli.services import CommandExecutor
from testpilot_logging import get_cli_logger, set_global_level

logger = get_cli_logger(__name__)


class Context:
    """State handed to every subcommand through ``ctx.obj``.

    Parameters
    ----------
    repo_root : Path | None
        Repository to work in, found from the working directory when omitted
    """

    def __init__(self, repo_root: Path | None = None) -> None:
        self.verbose: bool = False
        self.repo_root: Path = repo_root or find_repo_root()
        self._command_executor: CommandExecutor | None = None

    @property
    def resolved_env(self) -> dict[str, str]:
        """Environment the runner processes inherit."""
        return dict(os.environ)

    @property
    def command_executor(self) -> CommandExecutor:
        """Executor shared by the commands of one invocation."""
        if self._command_executor is None:
            self._command_executor = CommandExecutor(
                ctx=click.get_current_context(silent=True),
            )
        return self._command_executor


pass_context = click.make_pass_decorator(Context, ensure=True)


@click.group()
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output and debug logging on the console",
)
@click.option(
    "--log-level",
    type=click.Choice([level.value for level in LogLevel]),
    envvar=EnvVars.LOG_LEVEL,
    help="Set logging level",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, log_level: str | None) -> None:
    """testpilot - run test suites and explain their failures."""
    ctx.ensure_object(Context)
    tp_ctx: Context = ctx.obj
    tp_ctx.verbose = verbose

    if log_level or verbose:
        effective_level = log_level or LogLevel.DEBUG.value
        set_global_level(effective_level, to_console=verbose or None)
        logger.info("testpilot starting with repo root: %s", tp_ctx.repo_root)


cli.add_command(test.run)
cli.add_command(test.list_suites)
cli.add_command(config.init)
cli.add_command(config.show)


def main() -> None:
    """Console script entry point."""
    cli(prog_name="testpilot")


if __name__ == "__main__":
    main()
