"""Syntax models for parsed Swift files.

SyntaxTree pairs the exact source bytes with the tree-sitter tree built from
them. Rendering a tree returns those bytes unchanged, so whitespace and
comments survive untouched.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional


@dataclass(frozen=True, eq=False)
class SyntaxTree:
    """An immutable parsed source file.

    Attributes:
        source: The bytes the tree was parsed from
        tree: The underlying tree-sitter tree
        path: Originating file, if any
    """

    source: bytes
    tree: Any
    path: Optional[Path] = None

    @property
    def root_node(self) -> Any:
        return self.tree.root_node

    @property
    def has_error(self) -> bool:
        return bool(self.root_node.has_error)

    def render(self) -> bytes:
        """Serialize the tree back to source bytes."""
        return self.source

    def text(self, encoding: str = "utf-8") -> str:
        return self.source.decode(encoding)

    def node_text(self, node: Any) -> str:
        """Exact source text spanned by ``node``."""
        return self.source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")

    def walk(self) -> Iterator[Any]:
        """Yield every node in depth-first pre-order.

        Iterative so that deeply nested expressions cannot exhaust the
        interpreter's recursion limit.
        """
        stack = [self.root_node]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SyntaxTree):
            return NotImplemented
        return self.source == other.source

    def __hash__(self) -> int:
        return hash(self.source)


@dataclass
class SourceFile:
    """One file of the project being annotated.

    Attributes:
        path: Location on disk
        original: Tree parsed from the file's current contents
        rewritten: Tree produced by the rewriter, once it has run
    """

    path: Path
    original: SyntaxTree
    rewritten: Optional[SyntaxTree] = None

    @property
    def is_dirty(self) -> bool:
        """True if the rewritten rendering differs from the original bytes."""
        if self.rewritten is None:
            return False
        return self.rewritten.render() != self.original.render()
