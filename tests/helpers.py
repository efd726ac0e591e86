"""Builders for markup trees and a fake rendering API.

Markup is built directly as node trees, the way a host parser would hand it
over. Attribute values follow a small shorthand:

- ``"{expr}"`` -> ExpressionContainer holding ``ast.parse(expr)``; ``"{}"`` is empty
- any other ``str`` / ``bool`` / number -> Literal
- ``None`` -> bare boolean attribute
- an Element -> passed through (invalid as a value, used for error tests)
"""

from __future__ import annotations

import ast
from typing import Any

from tessera import Compiler, CompiledTemplate
from tessera.nodes import (
    Attribute,
    Element,
    ExpressionContainer,
    Fragment,
    Literal,
    Markup,
    Template,
    Text,
)


def expr(source: str) -> ast.expr:
    """Parse a Python expression the way a host parser does for ``{...}``."""
    return ast.parse(source, mode="eval").body


def expression(source: str | None, lineno: int = 1, col_offset: int = 0) -> ExpressionContainer:
    return ExpressionContainer(
        lineno=lineno,
        col_offset=col_offset,
        expression=None if source is None else expr(source),
    )


def text(value: str, lineno: int = 1, col_offset: int = 0) -> Text:
    return Text(lineno=lineno, col_offset=col_offset, value=value)


def attr(
    name: str,
    value: Any = None,
    *,
    ns: str | None = None,
    lineno: int = 1,
    col_offset: int = 0,
) -> Attribute:
    if ":" in name and ns is None:
        ns, name = name.split(":", 1)

    node_value: Any
    if value is None or isinstance(value, Element):
        node_value = value
    elif isinstance(value, str) and value.startswith("{") and value.endswith("}"):
        inner = value[1:-1].strip()
        node_value = expression(inner or None, lineno, col_offset)
    else:
        node_value = Literal(lineno=lineno, col_offset=col_offset, value=value)
    return Attribute(
        lineno=lineno, col_offset=col_offset, name=name, namespace=ns, value=node_value
    )


def el(
    tag: str,
    *children: Markup | str,
    attrs: dict[str, Any] | None = None,
    lineno: int = 1,
    col_offset: int = 0,
) -> Element:
    """Build an element; ``str`` children become Text, ``ns:tag`` a namespaced tag."""
    namespace = None
    if ":" in tag:
        namespace, tag = tag.split(":", 1)
    return Element(
        lineno=lineno,
        col_offset=col_offset,
        tag=tag,
        namespace=namespace,
        attributes=tuple(
            attr(name, value, lineno=lineno, col_offset=col_offset)
            for name, value in (attrs or {}).items()
        ),
        children=tuple(text(c, lineno) if isinstance(c, str) else c for c in children),
    )


def fragment(*children: Markup) -> Fragment:
    return Fragment(lineno=1, col_offset=0, children=children)


def template(*children: Markup | str, attrs: dict[str, Any] | None = None) -> Template:
    """A unit whose single root is ``<template>`` holding ``children``."""
    return Template(lineno=1, col_offset=0, body=(el("template", *children, attrs=attrs),))


def compile_tree(tree: Template, **kwargs: Any) -> CompiledTemplate:
    config = kwargs.pop("config", None)
    return Compiler(config).compile(tree, **kwargs)


def returned(compiled: CompiledTemplate) -> str:
    """Source of the render function's return value."""
    ret = compiled.function.body[-1]
    assert isinstance(ret, ast.Return)
    return ast.unparse(ret.value)


def hoisted(compiled: CompiledTemplate) -> list[str]:
    """Source of each hoisted declaration in the render function."""
    return [ast.unparse(stmt) for stmt in compiled.function.body[:-1]]


def lower(*children: Markup | str, **kwargs: Any) -> str:
    """Compile ``<template>children</template>`` and return its return value."""
    return returned(compile_tree(template(*children), **kwargs))


class FakeApi:
    """Rendering API that builds plain tuples, for executing compiled code."""

    def h(self, tag, data, children):
        return ("h", tag, data, list(children))

    def c(self, specifier, module, data):
        return ("c", specifier, data)

    def v(self, ref, data, children):
        return ("v", ref, data, list(children))

    def t(self, value):
        return ("t", value)

    def i(self, iterable, fn):
        arity = fn.__code__.co_argcount
        return [fn(*(item, index)[:arity]) for index, item in enumerate(iterable)]

    def f(self, items):
        flat = []
        for item in items:
            if isinstance(item, list):
                flat.extend(item)
            else:
                flat.append(item)
        return flat

    def e(self):
        return None


class Instance:
    """Component instance with arbitrary attributes."""

    def __init__(self, **state: Any) -> None:
        self.__dict__.update(state)


def run(compiled: CompiledTemplate, instance: Any, slotset: dict | None = None, ctx: dict | None = None):
    """Execute the compiled module and call its render function."""
    namespace: dict[str, Any] = {}
    exec(compiled.compile(), namespace)
    render = namespace[compiled.function.name]
    return render(FakeApi(), instance, slotset or {}, {} if ctx is None else ctx)


def module_source(compiled: CompiledTemplate) -> str:
    return ast.unparse(compiled.module)
