"""Metadata records produced while lowering one element.

AttributeMetadata is produced per attribute by the normalizer and merged
into the owning ElementMetadata. ElementMetadata lives in the compilation
context's side-table, keyed by element identity, until the parent has
consumed the element's lowered value.
"""

from __future__ import annotations

import ast
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tessera.nodes import Element


@dataclass(slots=True)
class AttributeMetadata:
    """Classification of one raw attribute."""

    directive: str | None = None
    modifier: str | None = None
    event: str | None = None
    is_slot: bool = False
    expression_container: bool = False
    has_name_attribute: bool = False
    # Extracted special values
    root_element: str | None = None
    maybe_slot_name_def: str | None = None
    slot: str | None = None
    for_args: tuple[str, ...] | None = None


@dataclass(slots=True)
class NormalizedAttribute:
    """Attribute after name/value normalization, before grouping.

    ``key`` is the attribute name as written (event prefix stripped, SVG
    namespace rejoined); ``value`` is an expression, still un-rewritten.
    ``for_iterable`` holds the iterable part of a for-statement literal.
    """

    key: str
    value: ast.expr
    meta: AttributeMetadata
    lineno: int
    col_offset: int
    for_iterable: str | None = None


@dataclass(slots=True)
class ElementMetadata:
    """Per-element record consumed by the parent when it assembles children.

    Attributes:
        directives: Structural directive kind ("if", "for", "else", "is")
            to its resolved expression. Keys are unique per element.
        used_directives: Directive namespaces present ("set", "bind", ...).
        modifiers: Modifier kinds present.
        for_args: Iteration argument names when the element repeats.
        declarations: Hoisted statements of the element's closed iteration
            frame, held until the parent builds the iterator.
    """

    directives: dict[str, ast.expr] = field(default_factory=dict)
    used_directives: set[str] = field(default_factory=set)
    modifiers: set[str] = field(default_factory=set)
    for_args: tuple[str, ...] = ()
    declarations: list[ast.stmt] = field(default_factory=list)
    root_element: str | None = None
    maybe_slot_name_def: str | None = None
    slot: str | None = None
    is_slot_tag: bool = False
    is_custom_element_tag: bool = False
    is_template: bool = False

    @property
    def repeats(self) -> bool:
        return "for" in self.directives

    @property
    def is_conditional(self) -> bool:
        return "if" in self.directives

    @property
    def is_else(self) -> bool:
        return "else" in self.directives


@dataclass(frozen=True, slots=True)
class Lowered:
    """A lowered child as seen by its parent.

    Attributes:
        expr: The child's replacement expression.
        node: Source element, the key of its metadata in the context's
            side-table. None for text and expression children.
        nested: True when the value may be a list at render time (slot
            outlets, iterations, conditionals with a list branch). Siblings
            of a nested child need flattening.
        iteration: True when ``expr`` is an iterator call.
        slot: Slot-content group the value belongs to on a custom element.
        children: Items of a transparent template, spliced into the parent.
    """

    expr: ast.expr
    node: Element | None = None
    nested: bool = False
    iteration: bool = False
    slot: str | None = None
    children: tuple[Lowered, ...] = ()
