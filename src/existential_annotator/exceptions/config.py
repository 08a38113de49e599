"""Configuration exceptions: project paths and settings."""

from pathlib import Path
from typing import Any

from .base import AnnotatorError


class ConfigurationError(AnnotatorError):
    """Invalid configuration file, environment variable or option."""


class InvalidPathError(ConfigurationError):
    """The project root cannot be scanned."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Cannot annotate {path}", details={"path": str(path), "reason": reason})
        self.path = path
        self.reason = reason


class InvalidConfigError(ConfigurationError):
    """A configuration value failed validation."""

    def __init__(self, key: str, value: Any, reason: str):
        super().__init__(
            f"Invalid value for '{key}': {value!r}",
            details={"key": key, "value": repr(value), "reason": reason},
        )
        self.key = key
        self.value = value
        self.reason = reason
