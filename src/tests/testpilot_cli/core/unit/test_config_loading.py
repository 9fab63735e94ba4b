"""Unit tests for configuration loading and merging."""

import json
from pathlib import Path

import pytest
import yaml

from testpilot.common.errors import ConfigurationError
from testpilot.models.config import DEFAULT_FUNCTIONAL_RULES
from testpilot.models.enums import (
    DetailLevel,
    ReportFormat,
    RunnerKind,
    Severity,
    SuiteCategory,
)
from testpilot_cli.core.config import (
    build_orchestrator_config,
    deep_merge,
    default_config,
    get_project_config_path,
    get_user_config_path,
    load_merged_config,
    load_orchestrator_config,
    sample_config,
)


def _write_yaml(path: Path, data) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data))
    return path


class TestDeepMerge:
    """Test deep_merge."""

    def test_nested_merge(self):
        """Test nested dicts merge and scalars are replaced."""
        base = {"a": {"x": 1, "y": 2}, "b": [1, 2]}

        result = deep_merge(base, {"a": {"y": 3}, "b": [9]})

        assert result == {"a": {"x": 1, "y": 3}, "b": [9]}
        assert result is base


class TestLoadMergedConfig:
    """Test the layered configuration lookup."""

    def test_defaults_only(self, tmp_path):
        """Test a repository without config files gets the defaults."""
        assert load_merged_config(tmp_path) == default_config()

    def test_project_file_found_at_root(self, tmp_path):
        """Test the project file overrides defaults."""
        _write_yaml(tmp_path / "testpilot.yaml", {"execution": {"max_parallel_suites": 7}})

        merged = load_merged_config(tmp_path)

        assert merged["execution"]["max_parallel_suites"] == 7
        assert merged["execution"]["continue_on_failure"] is True

    def test_user_config_below_project(self, tmp_path):
        """Test the project file wins over the user file."""
        _write_yaml(
            get_user_config_path(),
            {"execution": {"max_parallel_suites": 2, "retry_backoff_ms": 5}},
        )
        _write_yaml(tmp_path / "testpilot.yaml", {"execution": {"max_parallel_suites": 4}})

        merged = load_merged_config(tmp_path)

        assert merged["execution"]["max_parallel_suites"] == 4
        assert merged["execution"]["retry_backoff_ms"] == 5

    def test_unreadable_user_config_is_ignored(self, tmp_path):
        """Test a broken user file does not stop loading."""
        path = get_user_config_path()
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("execution: [unclosed")

        assert load_merged_config(tmp_path) == default_config()

    def test_env_var_selects_file(self, tmp_path, monkeypatch):
        """Test TESTPILOT_CONFIG points at the project file."""
        path = _write_yaml(tmp_path / "ci.yaml", {"report": {"format": "json"}})
        monkeypatch.setenv("TESTPILOT_CONFIG", str(path))

        assert load_merged_config(tmp_path)["report"]["format"] == "json"

    def test_relative_explicit_file(self, tmp_path):
        """Test explicit relative paths resolve against the repo root."""
        _write_yaml(tmp_path / "conf" / "tp.yaml", {"report": {"format": "markdown"}})

        merged = load_merged_config(tmp_path, Path("conf/tp.yaml"))

        assert merged["report"]["format"] == "markdown"

    def test_json_project_file(self, tmp_path):
        """Test JSON project files are read."""
        (tmp_path / "testpilot.json").write_text(
            json.dumps({"execution": {"global_timeout": 1000}}),
        )

        assert load_merged_config(tmp_path)["execution"]["global_timeout"] == 1000

    def test_missing_explicit_file(self, tmp_path):
        """Test a missing explicit file is a configuration error."""
        with pytest.raises(ConfigurationError, match="does not exist"):
            load_merged_config(tmp_path, tmp_path / "missing.yaml")

    def test_candidate_order(self, tmp_path):
        """Test testpilot.yaml is preferred over other candidates."""
        (tmp_path / "testpilot.json").write_text("{}")
        (tmp_path / "testpilot.yaml").write_text("{}")

        assert get_project_config_path(tmp_path) == tmp_path / "testpilot.yaml"


class TestBuildOrchestratorConfig:
    """Test conversion into typed records."""

    def test_defaults(self):
        """Test the default data builds the default records."""
        config = build_orchestrator_config(default_config())

        assert config.suites == ()
        assert config.execution.max_parallel_suites == 3
        assert config.report.format == ReportFormat.SUMMARY
        assert config.runner.kind == RunnerKind.PYTEST
        assert config.functional_rules == DEFAULT_FUNCTIONAL_RULES

    def test_suites_and_enums(self):
        """Test suites accept the file alias and enum strings."""
        data = default_config()
        data["suites"] = [
            {
                "name": "api",
                "file": "tests/api",
                "category": "INTEGRATION",
                "critical": True,
                "timeout": 5000,
            },
        ]
        data["report"]["detail_level"] = "verbose"

        config = build_orchestrator_config(data)

        [suite] = config.suites
        assert suite.file_path == "tests/api"
        assert suite.category == SuiteCategory.INTEGRATION
        assert suite.critical is True
        assert config.report.detail_level == DetailLevel.VERBOSE

    def test_runner_command_string(self):
        """Test a command string is split like a shell would."""
        data = default_config()
        data["runner"] = {"kind": "command", "command": "node 'my runner.js'"}

        runner = build_orchestrator_config(data).runner

        assert runner.kind == RunnerKind.COMMAND
        assert runner.command == ("node", "my runner.js")

    def test_functional_rules(self):
        """Test custom functional rules replace the defaults."""
        data = default_config()
        data["functional_validation"] = {
            "rules": [
                {
                    "name": "auth",
                    "keywords": ["Login", "logout"],
                    "threshold": 99,
                    "severity": "critical",
                },
            ],
        }

        [rule] = build_orchestrator_config(data).functional_rules

        assert rule.keywords == ("login", "logout")
        assert rule.severity == Severity.CRITICAL

    @pytest.mark.parametrize(
        ("section", "value", "message"),
        [
            ("execution", {"max_parallel_suites": 0}, "at least 1"),
            ("execution", {"parallelism": 2}, "Unknown keys in 'execution'"),
            ("report", {"format": "html"}, "Invalid format 'html'"),
            ("report", ["json"], "must be a mapping"),
            ("runner", {"command": []}, "must not be empty"),
        ],
    )
    def test_invalid_sections(self, section, value, message):
        """Test malformed sections raise configuration errors."""
        data = default_config()
        data[section] = value

        with pytest.raises(ConfigurationError, match=message):
            build_orchestrator_config(data)

    @pytest.mark.parametrize(
        ("suite", "message"),
        [
            ({"name": "a", "file": "t", "timeout": 0}, "non-positive timeout"),
            ({"name": "a", "file": "t", "retries": -1}, "negative retries"),
            ("unit", "must be a mapping"),
            ({"name": "a", "file": "t", "flaky": True}, "Unknown keys"),
        ],
    )
    def test_invalid_suites(self, suite, message):
        """Test malformed suites raise configuration errors."""
        data = default_config()
        data["suites"] = [suite]

        with pytest.raises(ConfigurationError, match=message):
            build_orchestrator_config(data)


class TestSampleConfig:
    """Test the starter configuration."""

    def test_sample_round_trips_through_loader(self, tmp_path):
        """Test the starter file loads into a valid configuration."""
        _write_yaml(tmp_path / "testpilot.yaml", sample_config())

        config = load_orchestrator_config(tmp_path)

        assert [s.name for s in config.suites] == ["unit", "integration"]
        assert config.suites[0].critical is True
        assert config.report.output_path == "reports/test-report-{timestamp}.json"
