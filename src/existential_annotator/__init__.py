"""
Existential Annotator - marks existential protocol types in Swift code

Scans a Swift project, discovers every protocol it declares, and inserts the
``any`` keyword wherever one of those protocols is used as a type.
"""

__version__ = "0.1.0"

from .annotation import (
    AnnotationSummary,
    DeclarationCollector,
    Processor,
    ReferenceClassifier,
    Rewriter,
)
from .api import annotate, annotate_source
from .config import AnnotatorConfig, load_config

__all__ = [
    "annotate",  # Main entry point
    "annotate_source",
    "Processor",
    "Rewriter",
    "ReferenceClassifier",
    "DeclarationCollector",
    "AnnotationSummary",
    "AnnotatorConfig",
    "load_config",
]
