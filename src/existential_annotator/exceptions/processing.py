"""Processing exceptions: file access, parsing, write-back."""

from pathlib import Path
from typing import List

from .base import AnnotatorError


class ProcessingError(AnnotatorError):
    """Base class for errors raised while processing source files."""
    pass


class FileAccessError(ProcessingError):
    """Raised when a file cannot be accessed or read."""

    def __init__(self, filepath: Path, reason: str):
        super().__init__(
            f"Cannot access file: {filepath}",
            details={"filepath": str(filepath), "reason": reason},
        )
        self.filepath = filepath
        self.reason = reason


class ParsingError(ProcessingError):
    """Raised when file content cannot be parsed into a syntax tree."""

    def __init__(self, filepath: Path, reason: str, language: str = "swift"):
        super().__init__(
            f"Failed to parse {language} file: {filepath}",
            details={"filepath": str(filepath), "language": language, "reason": reason},
        )
        self.filepath = filepath
        self.language = language
        self.reason = reason


class WriteError(ProcessingError):
    """Raised when an annotated file cannot be written back."""

    def __init__(self, filepath: Path, reason: str):
        super().__init__(
            f"Failed to write annotated file: {filepath}",
            details={"filepath": str(filepath), "reason": reason},
        )
        self.filepath = filepath
        self.reason = reason


class GrammarUnavailableError(ProcessingError):
    """Raised when tree-sitter or the requested grammar is not installed."""

    def __init__(self, language: str, available: List[str]):
        super().__init__(
            f"No tree-sitter grammar available for: {language}",
            details={
                "language": language,
                "available": ", ".join(available) or "none",
                "hint": "pip install tree-sitter tree-sitter-swift",
            },
        )
        self.language = language
        self.available = available
