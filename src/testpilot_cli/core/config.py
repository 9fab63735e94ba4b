"""Project and user configuration loading for testpilot.

Configuration is assembled from built-in defaults, the user file
(``~/.config/testpilot/config.yaml``) and the project file (``testpilot.yaml``
at the repository root, or an explicit ``--config``), deep-merged in that
order, then converted into an :class:`OrchestratorConfig`.
"""

import dataclasses
import os
import shlex
from pathlib import Path
from typing import Any, TypeVar

from testpilot.common.errors import ConfigurationError, FileOperationError
from testpilot.models.config import (
    DEFAULT_FUNCTIONAL_RULES,
    BenchmarkTargets,
    ExecutionConfig,
    FunctionalRule,
    OrchestratorConfig,
    PerformanceThresholds,
    ReportConfig,
    RunnerConfig,
    SuiteConfig,
)
from testpilot.models.enums import (
    DetailLevel,
    ReportFormat,
    RunnerKind,
    Severity,
    SuiteCategory,
)
from testpilot_cli.core.constants import EnvVars, ProjectFiles
from testpilot_cli.core.io import safe_read_json, safe_read_yaml
from testpilot_logging import get_cli_logger

logger = get_cli_logger(__name__)

T = TypeVar("T")

_ENUM_FIELDS: dict[str, type] = {
    "category": SuiteCategory,
    "format": ReportFormat,
    "detail_level": DetailLevel,
    "kind": RunnerKind,
    "severity": Severity,
}


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge two dictionaries in place and return ``base``.

    Values from ``override`` take precedence. Nested dicts are merged
    recursively; other values (lists included) are replaced.
    """
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def default_config() -> dict[str, Any]:
    """Return the default configuration structure."""
    execution = ExecutionConfig()
    report = ReportConfig()
    runner = RunnerConfig()
    return {
        "suites": [],
        "execution": dataclasses.asdict(execution),
        "report": {
            **dataclasses.asdict(report),
            "format": report.format.value,
            "detail_level": report.detail_level.value,
        },
        "runner": {
            "kind": runner.kind.value,
            "command": list(runner.command),
            "json_report": runner.json_report,
            "xdist": runner.xdist,
            "extra_args": [],
        },
        "thresholds": dataclasses.asdict(PerformanceThresholds()),
        "benchmarks": dataclasses.asdict(BenchmarkTargets()),
    }


def load_config_file(path: Path) -> dict[str, Any]:
    """Read a YAML or JSON configuration file.

    Raises
    ------
    ConfigurationError
        If the file is missing or cannot be parsed
    """
    try:
        if path.suffix.lower() == ".json":
            return safe_read_json(path)
        return safe_read_yaml(path)
    except FileOperationError as e:
        raise ConfigurationError(str(e)) from e


def load_yaml(path: Path) -> dict[str, Any]:
    """Load an optional YAML file, returning an empty dict when unusable."""
    try:
        if not path.exists():
            return {}
        return safe_read_yaml(path)
    except FileOperationError as e:
        logger.warning("Ignoring unreadable config %s: %s", path, e)
        return {}


def get_user_config_path() -> Path:
    """Get path to the user-level configuration file."""
    return Path.home() / ".config" / "testpilot" / "config.yaml"


def get_project_config_path(repo_root: Path) -> Path | None:
    """Get the first existing project configuration file, if any."""
    for name in ProjectFiles.CONFIG_CANDIDATES:
        candidate = repo_root / name
        if candidate.exists():
            return candidate
    return None


def load_merged_config(
    repo_root: Path,
    config_file: Path | None = None,
) -> dict[str, Any]:
    """Load default + user + project configuration into a single dict.

    Parameters
    ----------
    repo_root : Path
        Repository root
    config_file : Path | None
        Explicit project config; ``TESTPILOT_CONFIG`` or the root lookup
        otherwise

    Returns
    -------
    dict[str, Any]
        Merged configuration data

    Raises
    ------
    ConfigurationError
        If the project config cannot be read
    """
    cfg = default_config()

    user_cfg = load_yaml(get_user_config_path())
    if user_cfg:
        deep_merge(cfg, user_cfg)

    if config_file is None and os.environ.get(EnvVars.CONFIG):
        config_file = Path(os.environ[EnvVars.CONFIG])
    if config_file is None:
        config_file = get_project_config_path(repo_root)
    elif not config_file.is_absolute():
        config_file = repo_root / config_file

    if config_file is not None:
        logger.debug("Loading project config from %s", config_file)
        deep_merge(cfg, load_config_file(config_file))

    return cfg


def _coerce(field_name: str, value: Any) -> Any:
    enum_type = _ENUM_FIELDS.get(field_name)
    if enum_type is None or isinstance(value, enum_type):
        return value
    try:
        return enum_type(str(value).lower())
    except ValueError as e:
        valid = ", ".join(member.value for member in enum_type)
        msg = f"Invalid {field_name} '{value}', expected one of: {valid}"
        raise ConfigurationError(msg) from e


def _build(record_type: type[T], section: str, data: Any) -> T:
    if data is None:
        data = {}
    if not isinstance(data, dict):
        msg = f"Section '{section}' must be a mapping"
        raise ConfigurationError(msg)

    field_names = {f.name for f in dataclasses.fields(record_type)}  # type: ignore[arg-type]
    unknown = sorted(set(data) - field_names)
    if unknown:
        msg = f"Unknown keys in '{section}': {', '.join(unknown)}"
        raise ConfigurationError(msg)

    values = {key: _coerce(key, value) for key, value in data.items()}
    return record_type(**values)


def _parse_suite(index: int, data: Any) -> SuiteConfig:
    if not isinstance(data, dict):
        msg = f"Suite #{index + 1} must be a mapping"
        raise ConfigurationError(msg)
    data = dict(data)
    if "file" in data:
        data["file_path"] = data.pop("file")
    data.setdefault("name", "")
    data.setdefault("file_path", "")

    suite = _build(SuiteConfig, f"suites[{index}]", data)
    if suite.timeout <= 0:
        msg = f"Suite '{suite.name}' has a non-positive timeout"
        raise ConfigurationError(msg)
    if suite.retries < 0:
        msg = f"Suite '{suite.name}' has negative retries"
        raise ConfigurationError(msg)
    return suite


def _parse_runner(data: Any) -> RunnerConfig:
    data = dict(data or {})
    command = data.get("command")
    if isinstance(command, str):
        data["command"] = tuple(shlex.split(command))
    elif command is not None:
        data["command"] = tuple(str(part) for part in command)
    if "extra_args" in data:
        data["extra_args"] = tuple(str(arg) for arg in data["extra_args"] or ())
    runner = _build(RunnerConfig, "runner", data)
    if not runner.command:
        msg = "Runner command must not be empty"
        raise ConfigurationError(msg)
    return runner


def _parse_functional_rules(data: Any) -> tuple[FunctionalRule, ...]:
    if not data or "rules" not in data:
        return DEFAULT_FUNCTIONAL_RULES
    rules = []
    for index, raw in enumerate(data["rules"] or ()):
        raw = dict(raw)
        raw["keywords"] = tuple(str(k).lower() for k in raw.get("keywords", ()))
        rules.append(_build(FunctionalRule, f"functional_validation.rules[{index}]", raw))
    return tuple(rules)


def build_orchestrator_config(data: dict[str, Any]) -> OrchestratorConfig:
    """Convert merged configuration data into an :class:`OrchestratorConfig`.

    Parameters
    ----------
    data : dict[str, Any]
        Merged configuration

    Returns
    -------
    OrchestratorConfig
        Typed configuration

    Raises
    ------
    ConfigurationError
        If a section is malformed or holds an invalid value
    """
    execution = _build(ExecutionConfig, "execution", data.get("execution"))
    if execution.max_parallel_suites < 1:
        msg = "execution.max_parallel_suites must be at least 1"
        raise ConfigurationError(msg)

    return OrchestratorConfig(
        suites=tuple(
            _parse_suite(index, raw) for index, raw in enumerate(data.get("suites") or ())
        ),
        execution=execution,
        report=_build(ReportConfig, "report", data.get("report")),
        runner=_parse_runner(data.get("runner")),
        thresholds=_build(PerformanceThresholds, "thresholds", data.get("thresholds")),
        benchmarks=_build(BenchmarkTargets, "benchmarks", data.get("benchmarks")),
        functional_rules=_parse_functional_rules(data.get("functional_validation")),
    )


def load_orchestrator_config(
    repo_root: Path,
    config_file: Path | None = None,
) -> OrchestratorConfig:
    """Load and convert the merged configuration for a repository."""
    return build_orchestrator_config(load_merged_config(repo_root, config_file))


def sample_config() -> dict[str, Any]:
    """Starter project configuration written by ``testpilot init``."""
    return {
        "suites": [
            {
                "name": "unit",
                "file": "tests/unit",
                "timeout": 60000,
                "retries": 0,
                "parallel": True,
                "critical": True,
                "category": SuiteCategory.UNIT.value,
            },
            {
                "name": "integration",
                "file": "tests/integration",
                "timeout": 120000,
                "retries": 1,
                "parallel": False,
                "critical": False,
                "category": SuiteCategory.INTEGRATION.value,
            },
        ],
        "execution": {
            "max_parallel_suites": 3,
            "continue_on_failure": True,
        },
        "report": {
            "format": ReportFormat.SUMMARY.value,
            "output_path": "reports/test-report-{timestamp}.json",
        },
    }
