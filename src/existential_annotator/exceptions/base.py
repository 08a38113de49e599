"""Base exception for the existential annotator."""

from typing import Dict, Optional

# Detail keys already rendered as part of the message
_INLINE_KEYS = ("filepath", "path", "key", "value", "reason")


class AnnotatorError(Exception):
    """Base exception for all annotator errors.

    ``details`` holds structured context: the offending file, the reason and
    optional hints. The reason is rendered after the message; everything
    else is appended in parentheses.
    """

    def __init__(self, message: str, details: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, str]:
        """Error as a flat mapping, used for ``--json`` output."""
        return {"error": type(self).__name__, "message": self.message, **self.details}

    def __str__(self) -> str:
        text = self.message
        reason = self.details.get("reason")
        if reason:
            text = f"{text}: {reason}"
        extra = [f"{k}={v}" for k, v in self.details.items() if k not in _INLINE_KEYS]
        if extra:
            text = f"{text} ({', '.join(extra)})"
        return text
