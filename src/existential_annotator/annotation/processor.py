"""Whole-project annotation pipeline.

The run has two phases separated by a hard barrier:

    DISCOVERY  parse every file and collect every declared protocol
    REWRITE    annotate each file against the complete name set and write
               back the files whose rendering changed

A protocol declared in one file may be referenced from any other, so no file
is rewritten before discovery has seen all of them. Either phase may fan out
over a thread pool; the name set is frozen before the rewrite phase starts
and writes are always sequential.
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, TypeVar

from ..config import AnnotatorConfig
from ..exceptions import ParsingError, ProcessingError
from ..file_ops import atomic_write_bytes, read_source_bytes
from ..logging_config import get_logger
from ..scanning.discovery import FileProvider, SourceFileProvider, validate_root_directory
from ..scanning.syntax import SourceFile
from ..scanning.treesitter_parser import TreeSitterParser, first_error_location
from .collector import DeclarationCollector
from .models import AnnotationSummary
from .rewriter import Rewriter

logger = get_logger(__name__)

# Default worker count: use CPU count, capped at 8 to avoid overwhelming I/O
_DEFAULT_WORKERS = min(os.cpu_count() or 4, 8)

# Below this many files the pool costs more than it saves
PARALLEL_THRESHOLD = 10

_T = TypeVar("_T")
_R = TypeVar("_R")


class RunPhase(Enum):
    DISCOVERY = "discovery"
    REWRITE = "rewrite"


class Processor:
    """Drives discovery and rewriting over a set of files.

    Args:
        config: Run configuration (allow-list, workers, dry run, discovery)
        parser: Shared parser; one is created if omitted
        provider: File enumeration used by ``process_directory``
    """

    def __init__(
        self,
        config: Optional[AnnotatorConfig] = None,
        parser: Optional[TreeSitterParser] = None,
        provider: Optional[FileProvider] = None,
    ) -> None:
        self.config = config or AnnotatorConfig()
        self._parser = parser or TreeSitterParser()
        self._collector = DeclarationCollector(self._parser)
        self._provider = provider or SourceFileProvider(self.config)
        self._workers = self.config.workers or _DEFAULT_WORKERS
        self.phase = RunPhase.DISCOVERY

    def process_directory(
        self, root: Path, allow_list: Optional[Iterable[str]] = None
    ) -> AnnotationSummary:
        """Annotate every source file under ``root``."""
        root = validate_root_directory(Path(root))
        logger.info(f"Scanning {root}")
        return self.process_files(self._provider.find_source_files(root), allow_list)

    def process_files(
        self, paths: Iterable[Path], allow_list: Optional[Iterable[str]] = None
    ) -> AnnotationSummary:
        """Annotate ``paths``.

        Args:
            paths: Files making up the project
            allow_list: External protocol names; defaults to the configured
                allow-list

        Returns:
            AnnotationSummary with counts and the changed paths

        Raises:
            FileAccessError: A file could not be read (nothing written)
            ParsingError: A file did not parse, before or after annotation
                (nothing written)
            WriteError: A write failed; earlier writes are kept
        """
        external = self.config.protocol_names if allow_list is None else frozenset(allow_list)
        paths = sorted(Path(p) for p in paths)

        self.phase = RunPhase.DISCOVERY
        sources = self._map(self._parse_file, paths)
        declared = self._collector.collect_all(source.original for source in sources)
        logger.info(f"Found {len(declared)} declared protocols in {len(sources)} files")

        self.phase = RunPhase.REWRITE
        changed = self._rewrite_all(sources, external | declared)

        for source in changed:
            if self.config.dry_run:
                logger.info(f"Would annotate: {source.path}")
                continue
            logger.info(f"Annotating: {source.path}")
            atomic_write_bytes(source.path, source.rewritten.render())

        verb = "Would annotate" if self.config.dry_run else "Annotated"
        logger.info(f"{verb} {len(changed)} files")

        return AnnotationSummary(
            files_scanned=len(sources),
            protocols_found=len(declared),
            files_changed=len(changed),
            changed_paths=[source.path for source in changed],
            dry_run=self.config.dry_run,
        )

    def _rewrite_all(self, sources: list[SourceFile], names: frozenset[str]) -> list[SourceFile]:
        """Rewrite every file against the frozen name set; return the dirty ones.

        Raises:
            ProcessingError: If discovery has not completed
            ParsingError: If an annotated file no longer parses (nothing written)
        """
        if self.phase is not RunPhase.REWRITE:
            raise ProcessingError("Rewrite requested before protocol discovery completed")

        rewriter = Rewriter(names, self._parser)

        def _rewrite(source: SourceFile) -> SourceFile:
            source.rewritten = rewriter.rewrite(source.original)
            return source

        changed = [source for source in self._map(_rewrite, sources) if source.is_dirty]
        for source in changed:
            if source.rewritten.has_error and not source.original.has_error:
                location = first_error_location(source.rewritten)
                where = f"line {location[0]}, column {location[1]}" if location else "unknown position"
                raise ParsingError(source.path, f"annotated output does not parse at {where}")
        return changed

    def _parse_file(self, path: Path) -> SourceFile:
        logger.debug(f"Parsing {path}")
        tree = self._parser.parse(read_source_bytes(path), path)
        return SourceFile(path=path, original=tree)

    def _map(self, fn: Callable[[_T], _R], items: list[_T]) -> list[_R]:
        """Apply ``fn`` to every item, in order; the first failure propagates."""
        if self._workers == 1 or len(items) < PARALLEL_THRESHOLD:
            return [fn(item) for item in items]
        with ThreadPoolExecutor(max_workers=self._workers) as executor:
            return list(executor.map(fn, items))
