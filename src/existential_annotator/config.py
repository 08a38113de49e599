"""Configuration loading and management for the existential annotator.

Configuration sources are merged in priority order:
    1. Defaults (defined in AnnotatorConfig)
    2. Global config (~/.existential-annotator.toml)
    3. Project config (./existential-annotator.toml)
    4. Explicit config file
    5. Environment variables (ANNOTATOR_* prefix)
    6. Keyword overrides (typically CLI flags)

Example:
    >>> config = load_config(extra_protocols=["AnalyticsTracking"])
    >>> "AnalyticsTracking" in config.protocol_names
    True
    >>> "Decodable" in config.protocol_names
    True
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Optional, get_type_hints

from .exceptions import ConfigurationError, InvalidConfigError

Verbosity = Literal["quiet", "normal", "verbose"]

CONFIG_FILE_NAME = "existential-annotator.toml"
ENV_PREFIX = "ANNOTATOR_"

# Protocols declared outside any scanned tree (Swift standard library,
# Foundation, CoreData) that are commonly used as existential types.
DEFAULT_EXTERNAL_PROTOCOLS: tuple[str, ...] = (
    "Decodable",
    "Encodable",
    "Error",
    "LocalizedError",
    "NSCoding",
    "NSSecureCoding",
    "NSCopying",
    "NSFetchRequestResult",
    "CustomStringConvertible",
    "CodingKey",
)

# Directories holding dependencies or build products rather than project sources.
DEFAULT_SKIP_DIRS: tuple[str, ...] = (
    ".build",
    "Pods",
    "Carthage",
    "DerivedData",
    "SourcePackages",
    "node_modules",
)

# Directory suffixes of bundles the Finder presents as single files.
DEFAULT_PACKAGE_EXTENSIONS: tuple[str, ...] = (
    ".xcodeproj",
    ".xcworkspace",
    ".xcassets",
    ".xcframework",
    ".framework",
    ".bundle",
    ".app",
    ".playground",
)

_VERBOSITY_LEVELS = ("quiet", "normal", "verbose")


def _is_protocol_name(name: str) -> bool:
    return bool(name) and name.isidentifier()


@dataclass(frozen=True)
class AnnotatorConfig:
    """Configuration for an annotation run.

    Attributes:
        Protocol names:
            allow_list: External protocol names treated as declared in-tree.
                Replaces the default table when set explicitly.
            extra_protocols: Names added on top of ``allow_list``.

        File discovery:
            extensions: Source file suffixes to process
            skip_dirs: Directory names never descended into
            package_extensions: Directory suffixes treated as opaque bundles
            allow_hidden_files: Include hidden files (starting with .)
            follow_symlinks: Follow symbolic links during scanning
            max_file_size_mb: Files larger than this abort the run

        Execution:
            workers: Parallel parse/rewrite workers (None = auto-detect)
            dry_run: Compute changes without writing any file

        Output control:
            verbosity: Logging verbosity level
    """

    allow_list: list[str] = field(default_factory=lambda: list(DEFAULT_EXTERNAL_PROTOCOLS))
    extra_protocols: list[str] = field(default_factory=list)

    extensions: list[str] = field(default_factory=lambda: [".swift"])
    skip_dirs: list[str] = field(default_factory=lambda: list(DEFAULT_SKIP_DIRS))
    package_extensions: list[str] = field(
        default_factory=lambda: list(DEFAULT_PACKAGE_EXTENSIONS)
    )
    allow_hidden_files: bool = False
    follow_symlinks: bool = False
    max_file_size_mb: float = 10.0

    workers: Optional[int] = None
    dry_run: bool = False

    verbosity: Verbosity = "normal"

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        for key in ("allow_list", "extra_protocols"):
            for name in getattr(self, key):
                if not isinstance(name, str) or not _is_protocol_name(name):
                    raise InvalidConfigError(key, name, "not a valid protocol identifier")

        if not self.extensions:
            raise InvalidConfigError("extensions", self.extensions, "must not be empty")
        for ext in self.extensions:
            if not ext.startswith("."):
                raise InvalidConfigError("extensions", ext, "must start with '.'")

        if self.workers is not None and self.workers < 1:
            raise InvalidConfigError("workers", self.workers, "must be at least 1")
        if self.max_file_size_mb <= 0:
            raise InvalidConfigError("max_file_size_mb", self.max_file_size_mb, "must be positive")
        if self.verbosity not in _VERBOSITY_LEVELS:
            raise InvalidConfigError(
                "verbosity", self.verbosity, f"expected one of {', '.join(_VERBOSITY_LEVELS)}"
            )

    @property
    def protocol_names(self) -> frozenset[str]:
        """The allow-list as passed to the processor."""
        return frozenset(self.allow_list) | frozenset(self.extra_protocols)

    @property
    def max_file_size_bytes(self) -> int:
        """Get max file size in bytes."""
        return int(self.max_file_size_mb * 1024 * 1024)


_LIST_FIELDS = ("allow_list", "extra_protocols", "extensions", "skip_dirs", "package_extensions")
_TRUE = frozenset({"true", "1", "yes", "on"})
_FALSE = frozenset({"false", "0", "no", "off"})


def config_file_candidates(explicit: Optional[Path] = None) -> list[tuple[str, Path]]:
    """Config files consulted by ``load_config``, lowest priority first."""
    candidates = [
        ("global", Path.home() / f".{CONFIG_FILE_NAME}"),
        ("project", Path.cwd() / CONFIG_FILE_NAME),
    ]
    if explicit is not None:
        candidates.append(("explicit", explicit))
    return candidates


def load_config(config_file: Optional[Path] = None, **overrides) -> AnnotatorConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from CLI flags). ``None``
            values are ignored so unset CLI options keep lower-priority values;
            ``verbose``/``quiet`` booleans are folded into ``verbosity``.

    Returns:
        Validated AnnotatorConfig instance

    Raises:
        ConfigurationError: If a config file is invalid or missing
        InvalidConfigError: If a value fails validation
    """
    if config_file is not None and not config_file.exists():
        raise ConfigurationError(f"Config file not found: {config_file}")

    merged: dict[str, Any] = {}
    for kind, path in config_file_candidates(config_file):
        if kind != "explicit" and not path.exists():
            continue
        try:
            merged.update(_load_toml_file(path))
        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(f"Invalid {kind} config '{path}': {e}")

    merged.update(_load_env_vars())
    merged.update(_fold_verbosity_flags(overrides))

    for key in _LIST_FIELDS:
        if key in merged and not isinstance(merged[key], list):
            merged[key] = list(merged[key])

    try:
        return AnnotatorConfig(**merged)
    except TypeError as e:
        # Unknown key in a config file
        raise ConfigurationError(f"Invalid configuration: {e}")


def _fold_verbosity_flags(overrides: dict[str, Any]) -> dict[str, Any]:
    result = {k: v for k, v in overrides.items() if v is not None and k not in ("verbose", "quiet")}
    if overrides.get("quiet"):
        result["verbosity"] = "quiet"
    elif overrides.get("verbose"):
        result["verbosity"] = "verbose"
    return result


def _load_env_vars() -> dict[str, Any]:
    """Read ``ANNOTATOR_<FIELD>`` variables.

    List fields are comma-separated, e.g.
    ``ANNOTATOR_EXTRA_PROTOCOLS=AnalyticsTracking,Routing``.
    """
    type_hints = get_type_hints(AnnotatorConfig)
    result: dict[str, Any] = {}

    for field_name in AnnotatorConfig.__dataclass_fields__:
        env_key = f"{ENV_PREFIX}{field_name.upper()}"
        raw = os.environ.get(env_key)
        if raw is None:
            continue
        try:
            parsed = _parse_env_value(raw, type_hints[field_name])
        except ValueError as e:
            raise InvalidConfigError(field_name, raw, f"{env_key}: {e}")
        if parsed is not None:
            result[field_name] = parsed

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Convert an environment string according to a field's annotation.

    Raises:
        ValueError: If the value does not fit the field's type
    """
    # Optional[X] -> X
    args = [a for a in getattr(type_hint, "__args__", ()) if a is not type(None)]
    if type(None) in getattr(type_hint, "__args__", ()) and args:
        type_hint = args[0]
    origin = getattr(type_hint, "__origin__", None)

    if origin is list:
        return [item.strip() for item in value.split(",") if item.strip()]
    if type_hint is bool:
        lowered = value.strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        raise ValueError(f"expected true/false, got '{value}'")
    if type_hint in (int, float):
        return type_hint(value)
    if type_hint is str or origin is Literal:
        return value
    return None


def _load_toml_file(path: Path) -> dict[str, Any]:
    """Parse a TOML config file.

    Settings may sit at the top level or in an ``[existential-annotator]``
    table, so they can share a file with other tools.
    """
    try:
        import tomllib
    except ModuleNotFoundError:
        try:
            import tomli as tomllib  # type: ignore
        except ImportError:
            raise ConfigurationError(
                "TOML support requires Python 3.11+ or 'tomli' package. "
                "Install with: pip install tomli"
            )

    with open(path, "rb") as f:
        data = tomllib.load(f)

    section = data.get("existential-annotator")
    return dict(section) if isinstance(section, dict) else data
