"""Exception hierarchy for the existential annotator."""

from .base import AnnotatorError
from .config import (
    ConfigurationError,
    InvalidConfigError,
    InvalidPathError,
)
from .processing import (
    FileAccessError,
    GrammarUnavailableError,
    ParsingError,
    ProcessingError,
    WriteError,
)

__all__ = [
    "AnnotatorError",
    "ProcessingError",
    "FileAccessError",
    "ParsingError",
    "WriteError",
    "GrammarUnavailableError",
    "ConfigurationError",
    "InvalidPathError",
    "InvalidConfigError",
]
