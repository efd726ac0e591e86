"""Tessera compiler: markup tree to render-function module.

The Compiler is assembled from mixins:

- **AttributeNormalizationMixin**: attribute classification, normalization
  and grouping into the attributes dict
- **DirectiveMixin**: conditionals, iteration closures, bound-callback
  memoization and slot outlets
- **ElementLoweringMixin**: rendering-API calls, children assembly and
  slot-content grouping
"""

from __future__ import annotations

from tessera.compiler.attributes import ForStatement, parse_for_statement
from tessera.compiler.core import Compiler
from tessera.compiler.output import CompiledTemplate

__all__ = [
    "CompiledTemplate",
    "Compiler",
    "ForStatement",
    "parse_for_statement",
]
