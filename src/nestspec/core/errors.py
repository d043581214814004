"""Exception types raised by the nestspec engine."""
from __future__ import annotations


class NestspecError(Exception):
    """Base class for engine-level errors."""


class ConfigurationError(NestspecError, ValueError):
    """Invalid tree, filter, or run configuration detected before execution."""


class LabelFilterError(ConfigurationError):
    """Malformed label filter expression."""


class FocusSelectionError(NestspecError):
    """Focus markers are present but no case was selected."""


class HookError(NestspecError):
    """A lifecycle hook raised; wraps the original exception."""

    def __init__(self, kind: str, original: BaseException) -> None:
        self.kind = kind
        self.original = original
        super().__init__(f"{kind} hook failed: {describe_exception(original)}")


class SkipCase(Exception):
    """Raised by :func:`nestspec.skip` to skip the running case."""

    def __init__(self, reason: str = "") -> None:
        self.reason = reason
        super().__init__(reason)


class CaseCancelled(Exception):
    """Raised inside a body whose attempt was cancelled by a timeout."""


def describe_exception(exc: BaseException) -> str:
    text = str(exc)
    if isinstance(exc, HookError):
        return text
    if not text:
        return type(exc).__name__
    if isinstance(exc, AssertionError):
        return text
    return f"{type(exc).__name__}: {text}"
