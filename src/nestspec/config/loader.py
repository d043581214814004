"""Configuration loading: YAML file, environment variables, and overrides."""
from __future__ import annotations

import dataclasses
import os
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml
from jsonschema import Draft7Validator

from nestspec.core.errors import ConfigurationError

from .models import REPORT_FORMATS, RunConfig

ENV_LABEL_FILTER = "NESTSPEC_LABEL_FILTER"
ENV_FAIL_ON_FOCUS = "NESTSPEC_FAIL_ON_FOCUS"
ENV_NO_COLOR = "NO_COLOR"

CONFIG_SCHEMA = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "label_filter": {"type": ["string", "null"]},
        "names": {"type": "array", "items": {"type": "string", "minLength": 1}},
        "exact_names": {"type": "boolean"},
        "include_pending": {"type": "boolean"},
        "list_only": {"type": "boolean"},
        "fail_on_focus": {"type": "boolean"},
        "color": {"type": "boolean"},
        "report": {"type": "string", "enum": list(REPORT_FORMATS)},
        "report_path": {"type": ["string", "null"]},
        "jobs": {"type": "integer", "minimum": 1},
    },
}
_validator = Draft7Validator(CONFIG_SCHEMA)


def load_config(path: str, base: Optional[RunConfig] = None) -> RunConfig:
    """Load and validate a YAML config file on top of ``base``."""

    config_path = Path(path).expanduser().resolve()
    if not config_path.exists():
        raise ConfigurationError(f"Config file not found: {config_path}")
    try:
        raw = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Config file {config_path} is not valid YAML: {exc}") from exc
    if not isinstance(raw, Mapping):
        raise ConfigurationError("Config file must contain a mapping at the top level")
    errors = sorted(_validator.iter_errors(raw), key=lambda e: list(e.path))
    if errors:
        messages = "; ".join(f"{'/'.join(map(str, err.path)) or 'root'}: {err.message}" for err in errors)
        raise ConfigurationError(f"Config schema validation failed: {messages}")
    values = dict(raw)
    if "names" in values:
        values["names"] = tuple(values["names"])
    return dataclasses.replace(base or RunConfig(), **values)


def apply_env(config: RunConfig, environ: Optional[Mapping[str, str]] = None) -> RunConfig:
    """Overlay environment variables onto ``config``."""

    env = os.environ if environ is None else environ
    updates: dict[str, Any] = {}
    label_filter = env.get(ENV_LABEL_FILTER)
    if label_filter:
        updates["label_filter"] = label_filter
    if _truthy(env.get(ENV_FAIL_ON_FOCUS)):
        updates["fail_on_focus"] = True
    if ENV_NO_COLOR in env:
        updates["color"] = False
    if not updates:
        return config
    return dataclasses.replace(config, **updates)


def resolve_config(
    config_path: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
    **overrides: Any,
) -> RunConfig:
    """Build a RunConfig: defaults < config file < environment < overrides.

    ``None`` override values are ignored so callers can pass unset CLI options
    straight through.
    """

    config = RunConfig()
    if config_path:
        config = load_config(config_path, config)
    config = apply_env(config, environ)
    explicit = {key: value for key, value in overrides.items() if value is not None}
    unknown = set(explicit) - {f.name for f in dataclasses.fields(RunConfig)}
    if unknown:
        raise ConfigurationError(f"Unknown config option(s): {', '.join(sorted(unknown))}")
    if "names" in explicit:
        explicit["names"] = tuple(explicit["names"])
    config = dataclasses.replace(config, **explicit)
    if config.report not in REPORT_FORMATS:
        raise ConfigurationError(f"Unknown report format '{config.report}'")
    if config.jobs < 1:
        raise ConfigurationError("jobs must be >= 1")
    return config


def _truthy(value: Optional[str]) -> bool:
    if value is None:
        return False
    return value == "1" or value.strip().lower() == "true"
