"""Markup nodes: the tree a host parser hands to the compiler.

The grammar is deliberately small. Elements carry attributes and children;
text and expression placeholders are leaves; fragments group children
without contributing an element of their own.

Expressions are plain Python ``ast.expr`` nodes, so ``{it.name}`` arrives as
``ast.parse("it.name", mode="eval").body``.
"""

from __future__ import annotations

import ast
from collections.abc import Sequence
from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class Node:
    """Any markup node. ``lineno`` is 1-based, ``col_offset`` 0-based."""

    lineno: int
    col_offset: int


@dataclass(frozen=True, slots=True)
class Markup(Node):
    """Base class for nodes that may appear as element children."""


@dataclass(frozen=True, slots=True)
class Literal(Node):
    """Literal attribute value: title="Hello" """

    value: str | bool | int | float


@dataclass(frozen=True, slots=True)
class ExpressionContainer(Markup):
    """Expression placeholder: {user.name}

    ``expression`` is None for an empty container such as ``{}``.
    """

    expression: ast.expr | None


@dataclass(frozen=True, slots=True)
class Text(Markup):
    """Raw text between tags."""

    value: str


@dataclass(frozen=True, slots=True)
class Attribute(Node):
    """Element attribute: name, ns:name, name={expr} or bare name.

    A missing value means a boolean attribute (``<input disabled>``).
    """

    name: str
    namespace: str | None = None
    value: Literal | ExpressionContainer | Element | None = None

    @property
    def qualified_name(self) -> str:
        if self.namespace:
            return f"{self.namespace}:{self.name}"
        return self.name


@dataclass(frozen=True, slots=True)
class Element(Markup):
    """Element: <tag attr="value">children</tag>"""

    tag: str
    namespace: str | None = None
    attributes: Sequence[Attribute] = ()
    children: Sequence[Markup] = field(default_factory=tuple)

    @property
    def qualified_tag(self) -> str:
        if self.namespace:
            return f"{self.namespace}:{self.tag}"
        return self.tag


@dataclass(frozen=True, slots=True)
class Fragment(Markup):
    """Transparent grouping: <>children</>"""

    children: Sequence[Markup] = ()


@dataclass(frozen=True, slots=True)
class Template(Node):
    """Root of a compilation unit.

    ``body`` holds the top-level statements. A valid unit has exactly one,
    a ``<template>`` element.
    """

    body: Sequence[Markup] = ()
