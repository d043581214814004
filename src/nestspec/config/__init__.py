"""Run configuration for nestspec."""

from .loader import apply_env, load_config, resolve_config
from .models import REPORT_FORMATS, RunConfig

__all__ = [
    "REPORT_FORMATS",
    "RunConfig",
    "apply_env",
    "load_config",
    "resolve_config",
]
