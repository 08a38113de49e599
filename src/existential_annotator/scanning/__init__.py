"""Swift source scanning: discovery, parsing, syntax trees."""

from .discovery import FileProvider, SourceFileProvider, validate_root_directory
from .syntax import SourceFile, SyntaxTree
from .treesitter_parser import (
    TREE_SITTER_AVAILABLE,
    TreeSitterParser,
    first_error_location,
    get_supported_languages,
)

__all__ = [
    "FileProvider",
    "SourceFileProvider",
    "validate_root_directory",
    "SourceFile",
    "SyntaxTree",
    "TREE_SITTER_AVAILABLE",
    "TreeSitterParser",
    "first_error_location",
    "get_supported_languages",
]
