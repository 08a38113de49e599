"""Public API for the existential annotator.

Example:
    >>> from existential_annotator import annotate, annotate_source
    >>>
    >>> summary = annotate("/path/to/ios-app")
    >>> summary.files_changed
    12
    >>>
    >>> annotate_source("let repo: ArticleRepository", {"ArticleRepository"})
    'let repo: any ArticleRepository'
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Optional

from .annotation import AnnotationSummary, DeclarationCollector, Processor, Rewriter
from .config import load_config
from .logging_config import get_logger
from .scanning import TreeSitterParser

logger = get_logger(__name__)


def annotate(
    path: "str | Path" = ".",
    config_file: Optional[Path] = None,
    **overrides,
) -> AnnotationSummary:
    """Annotate every Swift file under ``path`` in place.

    Args:
        path: Project root (default: current directory)
        config_file: Optional explicit config file path
        **overrides: Configuration overrides (e.g. extra_protocols=[...], dry_run=True)

    Returns:
        AnnotationSummary describing the run

    Raises:
        AnnotatorError: On invalid configuration, unparsable input or a failed write
    """
    config = load_config(config_file=config_file, **overrides)
    logger.debug(
        f"Configuration: {len(config.protocol_names)} external protocols, "
        f"workers={config.workers or 'auto'}, dry_run={config.dry_run}"
    )
    return Processor(config).process_directory(Path(path))


def annotate_source(source: str, names: Iterable[str]) -> str:
    """Annotate a single buffer of Swift source against ``names``.

    Protocols declared in ``source`` itself are added to ``names``.
    """
    parser = TreeSitterParser()
    tree = parser.parse(source.encode("utf-8"))
    all_names = frozenset(names) | DeclarationCollector(parser).collect(tree)
    return Rewriter(all_names, parser).rewrite(tree).text()
