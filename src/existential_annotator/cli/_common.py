"""Shared CLI helpers."""

from pathlib import Path
from typing import List, Optional

from rich.console import Console

from ..config import AnnotatorConfig, load_config

console = Console()


def resolve_config(
    config: Optional[Path] = None,
    allow: Optional[List[str]] = None,
    no_default_protocols: bool = False,
    check: bool = False,
    workers: Optional[int] = None,
    verbose: bool = False,
    quiet: bool = False,
) -> AnnotatorConfig:
    """Build configuration from CLI options."""
    overrides: dict = {}
    if allow:
        base = load_config(config_file=config)
        overrides["extra_protocols"] = list(base.extra_protocols) + list(allow)
    if no_default_protocols:
        overrides["allow_list"] = []
    if check:
        overrides["dry_run"] = True
    if workers is not None:
        overrides["workers"] = workers
    overrides["verbose"] = verbose
    overrides["quiet"] = quiet
    return load_config(config_file=config, **overrides)
