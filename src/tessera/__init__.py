"""Tessera: template-to-render-function compiler.

Lowers a parsed markup tree into a Python module whose render function,
called with a rendering API and a component instance, builds a
virtual-element tree.

Quickstart:
    >>> import ast
    >>> from tessera import compile_template
    >>> from tessera.nodes import Element, ExpressionContainer, Template
    >>>
    >>> title = ExpressionContainer(
    ...     lineno=1, col_offset=14, expression=ast.parse("title", mode="eval").body
    ... )
    >>> h1 = Element(lineno=1, col_offset=10, tag="h1", children=(title,))
    >>> root = Element(lineno=1, col_offset=0, tag="template", children=(h1,))
    >>> compiled = compile_template(Template(lineno=1, col_offset=0, body=(root,)))
    >>> ast.unparse(compiled.function.body[-1])
    "return [api.h('h1', {}, [api.t(cmp.title)])]"
    >>> compiled.used_ids
    ('title',)

Architecture:
Markup tree → Attribute Normalizer → Directive Processor → Element Lowering → Python AST

Template expressions are Python expressions restricted to names, member
chains and literals. Free names read the component instance (``title`` →
``cmp.title``); names bound by ``repeat:for`` stay local.

Thread-Safety:
Compilation keeps all mutable state on a per-call context, so one Compiler
may compile many templates concurrently.

"""

from __future__ import annotations

from typing import TYPE_CHECKING

from tessera.compiler import CompiledTemplate, Compiler, ForStatement, parse_for_statement
from tessera.config import DEFAULT_CONFIG, CompilerConfig, RenderPrimitives
from tessera.exceptions import (
    ErrorCode,
    SourceSnippet,
    TemplateError,
    TemplateSyntaxError,
    build_source_snippet,
)

if TYPE_CHECKING:
    from tessera.nodes import Template

__version__ = "0.1.0"


def compile_template(
    template: Template,
    *,
    name: str | None = None,
    filename: str | None = None,
    source: str | None = None,
    config: CompilerConfig | None = None,
) -> CompiledTemplate:
    """Compile a template tree with a fresh Compiler.

    Args:
        template: Parsed ``tessera.nodes.Template`` unit
        name: Template name for error messages
        filename: Source filename for error messages
        source: Template source text, for error snippets
        config: Compiler configuration (defaults to DEFAULT_CONFIG)

    Returns:
        CompiledTemplate for the unit
    """
    return Compiler(config).compile(template, name=name, filename=filename, source=source)


__all__ = [
    "DEFAULT_CONFIG",
    "CompiledTemplate",
    "Compiler",
    "CompilerConfig",
    "ErrorCode",
    "ForStatement",
    "RenderPrimitives",
    "SourceSnippet",
    "TemplateError",
    "TemplateSyntaxError",
    "__version__",
    "build_source_snippet",
    "compile_template",
    "parse_for_statement",
]
