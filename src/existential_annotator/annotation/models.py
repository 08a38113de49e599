"""Value types shared by the classifier, rewriter and processor."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

EXISTENTIAL_MARKER = "any"


class ReferenceContext(Enum):
    """Syntactic position of a type reference."""

    DECLARATION_TYPE = "declaration-type"
    PARAMETER_TYPE = "parameter-type"
    RETURN_TYPE = "return-type"
    GENERIC_ARGUMENT = "generic-argument"
    ARRAY_ELEMENT = "array-element"
    DICTIONARY_ELEMENT = "dictionary-element"
    CAST_TARGET = "cast-target"
    COMPOSITION_MEMBER = "composition-member"


class Optionality(Enum):
    """Optionality marker following a type name, kept verbatim."""

    NONE = ""
    OPTIONAL = "?"
    IMPLICITLY_UNWRAPPED = "!"


@dataclass(frozen=True)
class TypeReferenceSite:
    """One annotatable occurrence of a protocol name.

    Attributes:
        name: Reference text without optionality markers
        context: Where the reference occurs
        start_byte: Start of the edited node in the source
        end_byte: End of the edited node in the source
        optionality: Marker following the reference
        lazy: Reference is the declared type of a ``lazy`` property
        composition: The site spans a whole ``A & B`` composition
        parenthesized: Already enclosed in parentheses, e.g. ``(P)?``
    """

    name: str
    context: ReferenceContext
    start_byte: int
    end_byte: int
    optionality: Optionality = Optionality.NONE
    lazy: bool = False
    composition: bool = False
    parenthesized: bool = False

    @property
    def needs_parentheses(self) -> bool:
        """``P?`` must become ``(any P)?``, not ``any P?``."""
        return self.optionality is not Optionality.NONE and not self.parenthesized


@dataclass(frozen=True)
class TextEdit:
    """Insertion of ``text`` at byte ``offset`` of the original source."""

    offset: int
    text: bytes


@dataclass
class AnnotationSummary:
    """Outcome of a processor run.

    Attributes:
        files_scanned: Files parsed during discovery
        protocols_found: Protocol declarations collected across all files
        files_changed: Files whose rendering changed (written unless dry run)
        changed_paths: Those files, in write order
        dry_run: True if nothing was written
    """

    files_scanned: int = 0
    protocols_found: int = 0
    files_changed: int = 0
    changed_paths: list[Path] = field(default_factory=list)
    dry_run: bool = False

    def to_dict(self) -> dict:
        return {
            "files_scanned": self.files_scanned,
            "protocols_found": self.protocols_found,
            "files_changed": self.files_changed,
            "changed_paths": [str(p) for p in self.changed_paths],
            "dry_run": self.dry_run,
        }
