"""Classification of type references.

Decides whether a syntax node is a reference to a known protocol that needs
the ``any`` marker, and in which syntactic context it sits. Only two node
kinds can ever be candidates: a plain type name (``user_type``) and a
protocol composition (``A & B``). Everything else is "not a candidate".

Matching is exact: the whole text of the type node must equal a known name,
so qualified names (``Module.Proto``), generic instantiations
(``Proto<T>``) and identifiers inside expressions never match.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from enum import Enum
from typing import Any, Callable, Optional

from ..scanning.syntax import SyntaxTree
from .models import Optionality, ReferenceContext, TypeReferenceSite

# Types already carrying an existential or opaque marker
_MARKED_TYPES = frozenset({"existential_type", "opaque_type"})
_COMMENT_TYPES = frozenset({"comment", "multiline_comment"})
_PARENTHESIZING_TYPES = frozenset({"tuple_type", "tuple_type_item"})

_SLOT_CONTEXTS = {
    "type_annotation": ReferenceContext.DECLARATION_TYPE,
    "parameter": ReferenceContext.PARAMETER_TYPE,
    "lambda_parameter": ReferenceContext.PARAMETER_TYPE,
    "type_arguments": ReferenceContext.GENERIC_ARGUMENT,
    "array_type": ReferenceContext.ARRAY_ELEMENT,
    "dictionary_type": ReferenceContext.DICTIONARY_ELEMENT,
    "as_expression": ReferenceContext.CAST_TARGET,
}

# Declarations whose return type follows "->"
_RETURN_TYPE_OWNERS = frozenset(
    {"function_declaration", "protocol_function_declaration", "subscript_declaration"}
)

_ARROW = frozenset({"->"})
_CAST_OPERATORS = frozenset({"as", "as?", "as!"})

# "lazy", possibly followed by further modifiers, before "var"
_LAZY_PROPERTY = re.compile(rb"(?<![\w@$`])lazy\s+(?:[\w()]+\s+)*var\b")


class NodeKind(Enum):
    """Node kinds the classifier inspects."""

    USER_TYPE = "user_type"
    COMPOSITION = "protocol_composition_type"

    @classmethod
    def of(cls, node: Any) -> Optional[NodeKind]:
        try:
            return cls(node.type)
        except ValueError:
            return None


def _significant_children(node: Any) -> list[Any]:
    return [c for c in node.named_children if c.type not in _COMMENT_TYPES]


def _previous_token(node: Any) -> Optional[Any]:
    sibling = node.prev_sibling
    while sibling is not None and sibling.type in _COMMENT_TYPES:
        sibling = sibling.prev_sibling
    return sibling


def _composition_members(node: Any) -> list[Any]:
    """Members of a composition, with nested compositions flattened."""
    members = []
    for child in _significant_children(node):
        if child.type == NodeKind.COMPOSITION.value:
            members.extend(_composition_members(child))
        else:
            members.append(child)
    return members


class ReferenceClassifier:
    """Maps syntax nodes to TypeReferenceSite values.

    Args:
        names: The global set of annotatable protocol names
    """

    def __init__(self, names: Iterable[str]) -> None:
        self.names = frozenset(names)
        self._handlers: dict[NodeKind, Callable[[Any, SyntaxTree], Optional[TypeReferenceSite]]] = {
            NodeKind.USER_TYPE: self._classify_user_type,
            NodeKind.COMPOSITION: self._classify_composition,
        }

    def classify(self, node: Any, tree: SyntaxTree) -> Optional[TypeReferenceSite]:
        """Return the site ``node`` represents, or None if it is not a candidate."""
        if not self.names:
            return None
        kind = NodeKind.of(node)
        if kind is None:
            return None
        return self._handlers[kind](node, tree)

    def matches(self, node: Any, tree: SyntaxTree) -> bool:
        """True if the node's whole text is exactly a known protocol name."""
        return tree.node_text(node).strip() in self.names

    # ------------------------------------------------------------------
    # Per-kind handlers
    # ------------------------------------------------------------------

    def _classify_user_type(self, node: Any, tree: SyntaxTree) -> Optional[TypeReferenceSite]:
        if not self.matches(node, tree):
            return None

        parent = node.parent
        if parent is None or parent.type in _MARKED_TYPES:
            return None

        name = tree.node_text(node).strip()
        if parent.type == NodeKind.COMPOSITION.value:
            return TypeReferenceSite(
                name=name,
                context=ReferenceContext.COMPOSITION_MEMBER,
                start_byte=node.start_byte,
                end_byte=node.end_byte,
            )

        return self._site_in_slot(node, name, tree, composition=False)

    def _classify_composition(self, node: Any, tree: SyntaxTree) -> Optional[TypeReferenceSite]:
        parent = node.parent
        if parent is None or parent.type in _MARKED_TYPES:
            return None
        if parent.type == NodeKind.COMPOSITION.value:
            return None

        members = _composition_members(node)
        if not members or members[0].type in _MARKED_TYPES:
            return None
        if not any(
            m.type == NodeKind.USER_TYPE.value and self.matches(m, tree) for m in members
        ):
            return None

        return self._site_in_slot(node, tree.node_text(node), tree, composition=True)

    # ------------------------------------------------------------------
    # Slot resolution
    # ------------------------------------------------------------------

    def _site_in_slot(
        self, node: Any, name: str, tree: SyntaxTree, composition: bool
    ) -> Optional[TypeReferenceSite]:
        target = node
        parent = node.parent
        parenthesized = False

        # (P) and (A & B) behave like the bare type inside them
        while (
            parent is not None
            and parent.type in _PARENTHESIZING_TYPES
            and len(_significant_children(parent)) == 1
        ):
            parenthesized = parenthesized or parent.type == "tuple_type"
            target, parent = parent, parent.parent

        optionality = Optionality.NONE
        if parent is not None and parent.type == "optional_type":
            optionality = Optionality.OPTIONAL
            target, parent = parent, parent.parent
        elif self._followed_by_bang(target, tree):
            optionality = Optionality.IMPLICITLY_UNWRAPPED

        context = self._context_of(target, parent, tree)
        if context is None:
            return None

        return TypeReferenceSite(
            name=name,
            context=context,
            start_byte=node.start_byte,
            end_byte=node.end_byte,
            optionality=optionality,
            lazy=self._is_lazy(target, context, tree),
            composition=composition,
            parenthesized=parenthesized,
        )

    def _context_of(
        self, target: Any, parent: Optional[Any], tree: SyntaxTree
    ) -> Optional[ReferenceContext]:
        if parent is None:
            return None

        context = _SLOT_CONTEXTS.get(parent.type)
        if context is ReferenceContext.CAST_TARGET:
            # The left operand of "as" is an expression, never a cast target
            return context if self._follows(target, tree, _CAST_OPERATORS) else None
        if context is not None:
            return context

        if parent.type in _RETURN_TYPE_OWNERS and self._follows(target, tree, _ARROW):
            return ReferenceContext.RETURN_TYPE
        return None

    @staticmethod
    def _follows(node: Any, tree: SyntaxTree, tokens: frozenset[str]) -> bool:
        previous = _previous_token(node)
        if previous is None:
            return False
        return previous.type in tokens or tree.node_text(previous).strip() in tokens

    @staticmethod
    def _followed_by_bang(node: Any, tree: SyntaxTree) -> bool:
        following = tree.source[node.end_byte : node.end_byte + 2]
        return following[:1] == b"!" and following != b"!="

    @staticmethod
    def _is_lazy(target: Any, context: ReferenceContext, tree: SyntaxTree) -> bool:
        if context is not ReferenceContext.DECLARATION_TYPE:
            return False
        annotation = target.parent
        declaration = annotation.parent
        depth = 0
        while declaration is not None and declaration.type != "property_declaration" and depth < 3:
            declaration = declaration.parent
            depth += 1
        if declaration is None or declaration.type != "property_declaration":
            return False
        prefix = tree.source[declaration.start_byte : annotation.start_byte]
        return _LAZY_PROPERTY.search(prefix) is not None
