from __future__ import annotations

import pytest

from nestspec.config import RunConfig, apply_env, load_config, resolve_config
from nestspec.core.errors import ConfigurationError


def test_defaults() -> None:
    config = resolve_config(environ={})
    assert config == RunConfig()
    assert config.report == "tree"
    assert config.color is True
    assert config.jobs == 1


def test_yaml_file_is_loaded(tmp_path) -> None:
    path = tmp_path / "nestspec.yaml"
    path.write_text("label_filter: fast\njobs: 2\nnames: [adds]\ninclude_pending: true\n", encoding="utf-8")
    config = load_config(str(path))
    assert config.label_filter == "fast"
    assert config.jobs == 2
    assert config.names == ("adds",)
    assert config.include_pending is True


@pytest.mark.parametrize("content", ["jobs: 0\n", "unknown_option: 1\n", "report: html\n", "- a\n- b\n"])
def test_invalid_yaml_config_raises(tmp_path, content: str) -> None:
    path = tmp_path / "bad.yaml"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_config(str(path))


def test_missing_config_file_raises(tmp_path) -> None:
    with pytest.raises(ConfigurationError, match="not found"):
        load_config(str(tmp_path / "missing.yaml"))


def test_environment_overrides_file(tmp_path) -> None:
    path = tmp_path / "nestspec.yaml"
    path.write_text("label_filter: fast\n", encoding="utf-8")
    environ = {"NESTSPEC_LABEL_FILTER": "slow", "NESTSPEC_FAIL_ON_FOCUS": "TRUE", "NO_COLOR": ""}
    config = resolve_config(str(path), environ=environ)
    assert config.label_filter == "slow"
    assert config.fail_on_focus is True
    assert config.color is False


@pytest.mark.parametrize("value, expected", [("1", True), ("true", True), ("True", True), ("0", False), ("yes", False)])
def test_fail_on_focus_env_values(value: str, expected: bool) -> None:
    config = apply_env(RunConfig(), {"NESTSPEC_FAIL_ON_FOCUS": value})
    assert config.fail_on_focus is expected


def test_explicit_overrides_win_and_none_is_ignored() -> None:
    config = resolve_config(
        environ={"NESTSPEC_LABEL_FILTER": "slow"},
        label_filter="fast",
        report=None,
        names=["adds"],
    )
    assert config.label_filter == "fast"
    assert config.report == "tree"
    assert config.names == ("adds",)


def test_unknown_override_and_bad_values_raise() -> None:
    with pytest.raises(ConfigurationError, match="Unknown config option"):
        resolve_config(environ={}, colour=False)
    with pytest.raises(ConfigurationError, match="report format"):
        resolve_config(environ={}, report="html")
    with pytest.raises(ConfigurationError, match="jobs"):
        resolve_config(environ={}, jobs=0)


def test_from_env_reads_environment() -> None:
    config = RunConfig.from_env({"NESTSPEC_LABEL_FILTER": "db"})
    assert config.label_filter == "db"
    assert config.fail_on_focus is False
