"""Source file discovery.

Enumerates the Swift files under a project root, skipping hidden entries,
dependency checkouts and bundle directories such as ``*.xcodeproj``.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional, Protocol

from ..config import AnnotatorConfig
from ..exceptions import FileAccessError, InvalidPathError
from ..logging_config import get_logger

logger = get_logger(__name__)


class FileProvider(Protocol):
    """Anything that can list the source files under a root directory."""

    def find_source_files(self, root: Path) -> list[Path]: ...


def validate_root_directory(path: Path) -> Path:
    """
    Validate that a root directory can be scanned.

    Args:
        path: Directory path to validate ("." means the working directory)

    Returns:
        Resolved absolute path

    Raises:
        InvalidPathError: If path is invalid
    """
    try:
        resolved = path.resolve()
    except (OSError, RuntimeError) as e:
        raise InvalidPathError(path, f"Cannot resolve path: {e}")

    if not resolved.exists():
        raise InvalidPathError(resolved, "Directory does not exist")

    if not resolved.is_dir():
        raise InvalidPathError(resolved, "Path is not a directory")

    if not os.access(resolved, os.R_OK):
        raise InvalidPathError(resolved, "Directory is not readable")

    return resolved


class SourceFileProvider:
    """Default FileProvider driven by AnnotatorConfig."""

    def __init__(self, config: Optional[AnnotatorConfig] = None) -> None:
        self.config = config or AnnotatorConfig()
        self._skip_dirs = frozenset(self.config.skip_dirs)
        self._package_extensions = tuple(self.config.package_extensions)
        self._extensions = tuple(self.config.extensions)

    def should_skip_dir(self, name: str) -> bool:
        if name.startswith(".") and not self.config.allow_hidden_files:
            return True
        if name in self._skip_dirs:
            return True
        return name.endswith(self._package_extensions)

    def is_source_file(self, path: Path) -> bool:
        if path.name.startswith(".") and not self.config.allow_hidden_files:
            return False
        if not path.name.endswith(self._extensions):
            return False
        if path.is_symlink() and not self.config.follow_symlinks:
            return False
        return True

    def find_source_files(self, root: Path) -> list[Path]:
        """List matching source files under ``root``, sorted by path.

        A file reachable through several symlinks is listed once, under the
        first of its paths in sorted order.

        Raises:
            FileAccessError: If a matching file cannot be inspected or exceeds
                the configured size limit; a skipped file would hide the
                protocols it declares from every other file
        """
        candidates: list[Path] = []

        for dirpath, dirnames, filenames in os.walk(root, followlinks=self.config.follow_symlinks):
            # Prune in place so os.walk never descends into skipped directories
            dirnames[:] = sorted(d for d in dirnames if not self.should_skip_dir(d))

            for filename in filenames:
                path = Path(dirpath) / filename
                if self.is_source_file(path):
                    candidates.append(path)

        files: list[Path] = []
        seen: set[Path] = set()
        for path in sorted(candidates):
            try:
                target = path.resolve()
                size = target.stat().st_size
            except (OSError, RuntimeError) as e:
                raise FileAccessError(path, f"Cannot stat file: {e}")
            if target in seen:
                logger.debug(f"Skipping {path}: same file as an earlier path")
                continue
            if size > self.config.max_file_size_bytes:
                raise FileAccessError(
                    path,
                    f"{size / (1024 * 1024):.2f}MB exceeds limit of "
                    f"{self.config.max_file_size_mb:.2f}MB",
                )
            seen.add(target)
            files.append(path)

        logger.debug(f"Discovered {len(files)} source files under {root}")
        return files
