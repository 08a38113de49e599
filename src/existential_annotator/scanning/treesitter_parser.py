"""Tree-sitter parser wrapper for Swift sources.

Parses source bytes into a SyntaxTree and runs S-expression queries over it.
The grammar comes from the tree-sitter-swift package.

Usage:
    if TREE_SITTER_AVAILABLE:
        parser = TreeSitterParser()
        tree = parser.parse(code_bytes, path)
        captures = parser.query(tree, "(protocol_declaration) @protocol")
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

from ..exceptions import GrammarUnavailableError, ParsingError
from ..logging_config import get_logger
from .syntax import SyntaxTree

logger = get_logger(__name__)

TREE_SITTER_AVAILABLE = False
_tree_sitter_module: Any = None
_language_modules: dict[str, Any] = {}

try:
    import tree_sitter as _tree_sitter_module  # type: ignore[no-redef]

    TREE_SITTER_AVAILABLE = True

    try:
        import tree_sitter_swift

        _language_modules["swift"] = tree_sitter_swift
    except ImportError:
        pass

except ImportError:
    TREE_SITTER_AVAILABLE = False


if TYPE_CHECKING:

    class Node:
        type: str
        start_byte: int
        end_byte: int
        start_point: tuple[int, int]
        parent: Node | None
        children: list[Node]
        named_children: list[Node]
        has_error: bool
        is_missing: bool

    Capture = tuple[Node, str]


def get_supported_languages() -> list[str]:
    """Get list of languages with installed grammars."""
    if not TREE_SITTER_AVAILABLE:
        return []
    return list(_language_modules.keys())


def _load_language(lang_module: Any) -> Any:
    lang_fn = getattr(lang_module, "language", None)
    if lang_fn is None:
        raise AttributeError(f"{lang_module.__name__} exposes no language()")
    # tree-sitter >= 0.23 returns PyCapsule; wrap in Language()
    return _tree_sitter_module.Language(lang_fn())


def first_error_location(tree: SyntaxTree) -> Optional[tuple[int, int]]:
    """Return the 1-based (line, column) of the first syntax error, if any."""
    for node in tree.walk():
        if node.type == "ERROR" or node.is_missing:
            row, column = node.start_point
            return row + 1, column + 1
    return None


class TreeSitterParser:
    """Wrapper around tree-sitter for Swift parsing.

    The language object is shared; each thread gets its own tree-sitter
    parser because parser instances are not safe to share across threads.
    """

    def __init__(self, language: str = "swift") -> None:
        if language not in get_supported_languages():
            raise GrammarUnavailableError(language, get_supported_languages())
        self.language_name = language
        self._language = _load_language(_language_modules[language])
        self._local = threading.local()

    def _parser(self) -> Any:
        parser = getattr(self._local, "parser", None)
        if parser is None:
            parser = _tree_sitter_module.Parser(self._language)
            self._local.parser = parser
        return parser

    def parse(
        self, code: bytes, path: Optional[Path] = None, strict: bool = True
    ) -> SyntaxTree:
        """Parse code and return a syntax tree.

        Args:
            code: Source code as bytes
            path: Originating file, used in error messages
            strict: Raise if the tree contains error or missing nodes

        Returns:
            SyntaxTree over exactly ``code``

        Raises:
            ParsingError: If ``strict`` and the source does not parse cleanly
        """
        raw_tree = self._parser().parse(code)
        tree = SyntaxTree(source=code, tree=raw_tree, path=path)

        if strict and tree.has_error:
            location = first_error_location(tree)
            where = f"line {location[0]}, column {location[1]}" if location else "unknown position"
            raise ParsingError(path or Path("<memory>"), f"syntax error at {where}", self.language_name)

        return tree

    def query(self, tree: SyntaxTree, query_str: str) -> list[Capture]:
        """Run a query on a syntax tree.

        Args:
            tree: Syntax tree from parse()
            query_str: S-expression query string

        Returns:
            List of (node, capture_name) tuples in document order
        """
        query = _tree_sitter_module.Query(self._language, query_str)
        # tree-sitter 0.25+: use QueryCursor for execution
        cursor = _tree_sitter_module.QueryCursor(query)
        matches = cursor.matches(tree.root_node)
        result: list[Capture] = []
        for _pattern_id, captures_dict in matches:
            for capture_name, nodes in captures_dict.items():
                for node in nodes:
                    result.append((node, capture_name))
        result.sort(key=lambda capture: capture[0].start_byte)
        return result
