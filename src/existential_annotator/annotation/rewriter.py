"""Existential annotation rewriter.

Walks a SyntaxTree, classifies every node, and turns each resulting site into
byte insertions anchored at that node's own span. The edited source is then
re-parsed into a new tree. Nothing outside the insertion points changes, and
when no site matches the input tree itself is returned, so ``result is tree``
is a cheap "unchanged" test.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Callable, Optional

from ..logging_config import get_logger
from ..scanning.syntax import SyntaxTree
from ..scanning.treesitter_parser import TreeSitterParser
from .classifier import ReferenceClassifier
from .models import EXISTENTIAL_MARKER, ReferenceContext, TextEdit, TypeReferenceSite

logger = get_logger(__name__)

_PREFIX = f"{EXISTENTIAL_MARKER} ".encode()
_OPEN = f"({EXISTENTIAL_MARKER} ".encode()
_CLOSE = b")"


def _prefix_or_wrap(site: TypeReferenceSite) -> list[TextEdit]:
    """``P`` -> ``any P``; ``P?`` -> ``(any P)?``; ``P!`` -> ``(any P)!``."""
    if site.needs_parentheses:
        return [TextEdit(site.start_byte, _OPEN), TextEdit(site.end_byte, _CLOSE)]
    return [TextEdit(site.start_byte, _PREFIX)]


def _no_edit(site: TypeReferenceSite) -> list[TextEdit]:
    # Members are covered by the single edit made for their composition
    return []


EDIT_BUILDERS: dict[ReferenceContext, Callable[[TypeReferenceSite], list[TextEdit]]] = {
    ReferenceContext.DECLARATION_TYPE: _prefix_or_wrap,
    ReferenceContext.PARAMETER_TYPE: _prefix_or_wrap,
    ReferenceContext.RETURN_TYPE: _prefix_or_wrap,
    ReferenceContext.GENERIC_ARGUMENT: _prefix_or_wrap,
    ReferenceContext.ARRAY_ELEMENT: _prefix_or_wrap,
    ReferenceContext.DICTIONARY_ELEMENT: _prefix_or_wrap,
    ReferenceContext.CAST_TARGET: _prefix_or_wrap,
    ReferenceContext.COMPOSITION_MEMBER: _no_edit,
}


def apply_edits(source: bytes, edits: Iterable[TextEdit]) -> bytes:
    """Apply insertions to ``source``; ties keep their given order."""
    parts: list[bytes] = []
    last = 0
    for edit in sorted(edits, key=lambda e: e.offset):
        parts.append(source[last : edit.offset])
        parts.append(edit.text)
        last = edit.offset
    parts.append(source[last:])
    return b"".join(parts)


class Rewriter:
    """Inserts the existential marker before references to known protocols.

    Args:
        names: The global set of annotatable protocol names
        parser: Parser used to rebuild the tree after editing
    """

    def __init__(self, names: Iterable[str], parser: Optional[TreeSitterParser] = None) -> None:
        self.names = frozenset(names)
        self._classifier = ReferenceClassifier(self.names)
        self._parser = parser

    def sites(self, tree: SyntaxTree) -> list[TypeReferenceSite]:
        """All candidate sites in ``tree``, in document order."""
        if not self.names:
            return []
        found = []
        for node in tree.walk():
            site = self._classifier.classify(node, tree)
            if site is not None:
                found.append(site)
        return found

    def plan(self, tree: SyntaxTree) -> list[TextEdit]:
        """Edits ``rewrite`` would apply to ``tree``."""
        edits: list[TextEdit] = []
        for site in self.sites(tree):
            site_edits = EDIT_BUILDERS[site.context](site)
            if site_edits:
                logger.debug(
                    f"{tree.path or '<memory>'}: {site.context.value} '{site.name}' "
                    f"at byte {site.start_byte}"
                )
            edits.extend(site_edits)
        return edits

    def rewrite(self, tree: SyntaxTree) -> SyntaxTree:
        """Return ``tree`` annotated, or ``tree`` itself if nothing matched."""
        edits = self.plan(tree)
        if not edits:
            return tree

        if self._parser is None:
            self._parser = TreeSitterParser()
        source = apply_edits(tree.source, edits)
        rewritten = self._parser.parse(source, tree.path, strict=False)
        if rewritten.has_error and not tree.has_error:
            logger.warning(f"Annotated output of {tree.path or '<memory>'} no longer parses cleanly")
        return rewritten
