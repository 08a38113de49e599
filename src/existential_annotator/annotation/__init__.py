"""Protocol discovery and existential annotation."""

from .classifier import NodeKind, ReferenceClassifier
from .collector import DeclarationCollector
from .models import (
    EXISTENTIAL_MARKER,
    AnnotationSummary,
    Optionality,
    ReferenceContext,
    TextEdit,
    TypeReferenceSite,
)
from .processor import Processor, RunPhase
from .rewriter import EDIT_BUILDERS, Rewriter, apply_edits

__all__ = [
    "DeclarationCollector",
    "ReferenceClassifier",
    "NodeKind",
    "Rewriter",
    "EDIT_BUILDERS",
    "apply_edits",
    "Processor",
    "RunPhase",
    "AnnotationSummary",
    "ReferenceContext",
    "Optionality",
    "TypeReferenceSite",
    "TextEdit",
    "EXISTENTIAL_MARKER",
]
