"""Markup tree nodes consumed by the Tessera compiler.

Node kinds form a closed set:

- **Element**: tag, attributes, children
- **Text**: literal text
- **ExpressionContainer**: ``{expr}`` placeholder holding a Python ``ast.expr``
- **Fragment**: transparent grouping of children

plus the non-child nodes ``Attribute``, ``Literal`` and the ``Template`` root.
"""

from __future__ import annotations

from tessera.nodes.markup import (
    Attribute,
    Element,
    ExpressionContainer,
    Fragment,
    Literal,
    Markup,
    Node,
    Template,
    Text,
)

__all__ = [
    "Attribute",
    "Element",
    "ExpressionContainer",
    "Fragment",
    "Literal",
    "Markup",
    "Node",
    "Template",
    "Text",
]
