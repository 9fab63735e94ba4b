"""Configuration commands for the testpilot CLI.

Handles the project configuration file.
"""

from pathlib import Path

import click
import yaml

from testpilot_cli.core.config import load_merged_config, sample_config
from testpilot_cli.core.constants import ExitCode, Icons, ProjectFiles
from testpilot_cli.core.decorators import config_option, handle_exceptions
from testpilot_cli.core.io import safe_write_yaml
from testpilot_cli.core.utils import CliOutput
from testpilot_logging import get_cli_logger

logger = get_cli_logger(__name__)


@click.command()
@click.option(
    "--path",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help=f"Where to write the config, defaults to {ProjectFiles.DEFAULT_CONFIG}",
)
@click.option(
    "--force",
    is_flag=True,
    help="Overwrite an existing configuration file",
)
@click.pass_context
@handle_exceptions
def init(ctx: click.Context, config_path: Path | None, force: bool) -> None:
    """Write a starter configuration file."""
    repo_root = ctx.obj.repo_root
    path = config_path or Path(ProjectFiles.DEFAULT_CONFIG)
    if not path.is_absolute():
        path = repo_root / path

    if path.exists() and not force:
        CliOutput.error(f"{path} already exists, use --force to overwrite")
        ctx.exit(ExitCode.FAILURE)

    safe_write_yaml(path, sample_config())
    logger.info("Wrote starter config to %s", path)
    CliOutput.success(f"Created {path}")
    CliOutput.plain("Edit the suites section, then run 'testpilot run'")


@click.command()
@config_option
@click.pass_context
@handle_exceptions
def show(ctx: click.Context, config_file: Path | None) -> None:
    """Show the merged configuration.

    \b
    Built-in defaults, the user config and the project config are merged in
    that order.
    """  # noqa: W605
    merged = load_merged_config(ctx.obj.repo_root, config_file)
    CliOutput.section("Configuration", Icons.CONFIG)
    click.echo(yaml.safe_dump(merged, default_flow_style=False, sort_keys=False))
