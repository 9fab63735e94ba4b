"""Test commands for the testpilot CLI.

Runs configured suites and lists what is configured.
"""

import asyncio
import dataclasses
from pathlib import Path

import click

from testpilot.models.config import OrchestratorConfig
from testpilot.models.enums import DetailLevel, ReportFormat
from testpilot_cli.core.config import load_orchestrator_config
from testpilot_cli.core.constants import ExitCode, Icons
from testpilot_cli.core.decorators import config_option, handle_exceptions
from testpilot_cli.core.utils import CliOutput
from testpilot_cli.managers.test import TestOrchestrator
from testpilot_cli.services.test import TestReportingService
from testpilot_logging import get_cli_logger

logger = get_cli_logger(__name__)


def _enum(enum_type, value):
    return enum_type(value) if value is not None else None


def apply_overrides(config: OrchestratorConfig, **options) -> OrchestratorConfig:
    """Apply command line overrides to a loaded configuration.

    Options left as ``None`` keep the configured value.
    """
    execution_changes = {
        "max_parallel_suites": options.get("parallel"),
        "global_timeout": options.get("timeout"),
        "continue_on_failure": options.get("continue_on_failure"),
        "retry_failed_tests": options.get("retry_failed"),
    }
    report_changes = {
        "format": _enum(ReportFormat, options.get("report_format")),
        "include_stack_traces": options.get("stack_traces"),
        "include_metrics": options.get("metrics"),
        "detail_level": _enum(DetailLevel, options.get("detail_level")),
        "output_path": options.get("output"),
    }
    execution_changes = {k: v for k, v in execution_changes.items() if v is not None}
    report_changes = {k: v for k, v in report_changes.items() if v is not None}

    return dataclasses.replace(
        config,
        execution=dataclasses.replace(config.execution, **execution_changes),
        report=dataclasses.replace(config.report, **report_changes),
    )


@click.command()
@config_option
@click.option(
    "--suite",
    "-s",
    "suites",
    multiple=True,
    help="Suite to run (repeatable), all suites when omitted",
)
@click.option(
    "--format",
    "-f",
    "report_format",
    type=click.Choice([fmt.value for fmt in ReportFormat]),
    help="Report format",
)
@click.option(
    "--parallel",
    "-p",
    type=click.IntRange(min=1),
    help="Number of non-critical suites run at once",
)
@click.option(
    "--timeout",
    type=click.IntRange(min=1),
    help="Global timeout for the whole run in milliseconds",
)
@click.option(
    "--continue-on-failure/--no-continue-on-failure",
    default=None,
    help="Keep going after a critical suite fails",
)
@click.option(
    "--stack-traces/--no-stack-traces",
    default=None,
    help="Include stack traces in reports",
)
@click.option(
    "--metrics/--no-metrics",
    default=None,
    help="Include metrics in reports",
)
@click.option(
    "--detail-level",
    type=click.Choice([level.value for level in DetailLevel]),
    help="How much per-test detail reports carry",
)
@click.option(
    "--output",
    "-o",
    help="Write the report to this path ({timestamp} is substituted)",
)
@click.option(
    "--retry-failed/--no-retry-failed",
    default=None,
    help="Retry suites whose tests failed, not only faulted suites",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    help="Hide per-suite progress lines",
)
@click.pass_context
@handle_exceptions
def run(
    ctx: click.Context,
    config_file: Path | None,
    suites: tuple[str, ...],
    quiet: bool,
    **options,
) -> None:
    """Run the configured test suites.

    \b
    Exit codes:
      0  every suite passed
      1  a critical suite failed
      2  only non-critical suites failed
      3  configuration error
    """  # noqa: W605
    repo_root = ctx.obj.repo_root
    config = apply_overrides(load_orchestrator_config(repo_root, config_file), **options)
    fmt = config.report.format

    orchestrator = TestOrchestrator(
        config,
        repo_root=repo_root,
        command_executor=ctx.obj.command_executor,
        ctx=ctx,
        show_progress=not quiet and fmt == ReportFormat.SUMMARY,
    )
    if fmt == ReportFormat.SUMMARY and not quiet:
        CliOutput.section("Running test suites", Icons.ROCKET)

    coro = orchestrator.run_subset(suites) if suites else orchestrator.run_all()
    result = asyncio.run(coro)

    reporting = orchestrator.get_service(TestReportingService)
    if fmt == ReportFormat.SUMMARY:
        reporting.print_summary(result)
    else:
        click.echo(reporting.render(result))

    if config.report.output_path:
        path = reporting.save_report(result)
        message = f"Report saved to {path}"
        if fmt == ReportFormat.SUMMARY:
            CliOutput.info(message)
        else:
            CliOutput.plain(message, err=True)

    logger.info("Run finished: %s", result.summary.overall_status.value)
    ctx.exit(ExitCode.for_status(result.summary.overall_status))


@click.command(name="list")
@config_option
@click.pass_context
@handle_exceptions
def list_suites(ctx: click.Context, config_file: Path | None) -> None:
    """List the configured test suites."""
    config = load_orchestrator_config(ctx.obj.repo_root, config_file)
    CliOutput.section("Configured suites", Icons.TEST)

    if not config.suites:
        CliOutput.warning("No suites configured, run 'testpilot init' to create a config")
        return

    for suite in config.suites:
        marker = " [critical]" if suite.critical else ""
        CliOutput.plain(f"{suite.name}{marker}")
        CliOutput.plain(f"  file: {suite.file_path}")
        CliOutput.plain(
            f"  category: {suite.category.value}, timeout: {suite.timeout}ms, "
            f"retries: {suite.retries}, parallel: {str(suite.parallel).lower()}",
        )
        if suite.description:
            CliOutput.plain(f"  {suite.description}")
