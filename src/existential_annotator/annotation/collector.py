"""Protocol declaration discovery."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Optional

from ..logging_config import get_logger
from ..scanning.syntax import SyntaxTree
from ..scanning.treesitter_parser import TreeSitterParser

logger = get_logger(__name__)

PROTOCOL_QUERY = "(protocol_declaration) @protocol"


class DeclarationCollector:
    """Collects the names of all protocols declared in a tree.

    The query matches at any depth, so protocols nested in types or
    extensions are found as well.
    """

    def __init__(self, parser: Optional[TreeSitterParser] = None) -> None:
        self._parser = parser or TreeSitterParser()

    def collect(self, tree: SyntaxTree) -> frozenset[str]:
        names = set()
        for node, _capture in self._parser.query(tree, PROTOCOL_QUERY):
            name = self._declared_name(node, tree)
            if name:
                names.add(name)
        if names:
            logger.debug(f"Protocols in {tree.path or '<memory>'}: {', '.join(sorted(names))}")
        return frozenset(names)

    def collect_all(self, trees: Iterable[SyntaxTree]) -> frozenset[str]:
        """Union of the names declared across ``trees``."""
        names: frozenset[str] = frozenset()
        for tree in trees:
            names |= self.collect(tree)
        return names

    @staticmethod
    def _declared_name(node: Any, tree: SyntaxTree) -> Optional[str]:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            # Inherited protocols sit under inheritance_specifier, so the
            # only direct type_identifier child is the declared name.
            name_node = next((c for c in node.children if c.type == "type_identifier"), None)
        if name_node is None:
            return None
        return tree.node_text(name_node).strip()
