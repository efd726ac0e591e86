"""Identifier rewriting for template expressions.

Template expressions read component state through bare names:

    {title}          ->  cmp.title
    {user.name}      ->  cmp.user.name
    {rows[index]}    ->  cmp.rows[cmp.index]

Names bound by an enclosing iteration scope are left alone, so inside
``repeat:for="item in items"`` the expression ``{item.name}`` stays
``item.name``. Only the root of a member chain (and computed subscript keys)
are names; attribute names after a dot are never rewritten.

Every rewritten root is recorded as a used identifier.
"""

from __future__ import annotations

import ast
import copy
import keyword
from typing import TYPE_CHECKING

from tessera.exceptions import ErrorCode
from tessera.utils.constants import SELF_REFERENCE

if TYPE_CHECKING:
    from tessera.compiler.context import CompilationContext
    from tessera.nodes import Node

# Node kinds an expression may contain anywhere in its tree
_ALLOWED_NODES = (ast.Name, ast.Attribute, ast.Subscript, ast.Constant, ast.expr_context)

# Node kinds an expression may be at its root
_MEMBER_NODES = (ast.Name, ast.Attribute, ast.Subscript)


class IdentifierRewriter(ast.NodeTransformer):
    """Rewrite free names to attribute access on the component instance.

    Works in place; callers pass a copy of the input expression.
    """

    def __init__(self, ctx: CompilationContext) -> None:
        self._ctx = ctx

    def visit_Name(self, node: ast.Name) -> ast.expr:
        if self._ctx.scope.is_bound(node.id):
            return node
        self._ctx.dependencies.record_used_identifier(node.id)
        # The replacement is returned without visiting it again
        return ast.Attribute(value=self._ctx.instance(), attr=node.id, ctx=ast.Load())


def validate_expression(
    expr: ast.expr,
    ctx: CompilationContext,
    node: Node,
    *,
    in_attribute: bool = False,
) -> None:
    """Reject anything but names, member chains and literals.

    Args:
        expr: Expression to check.
        ctx: Compilation context (for error locations).
        node: Markup node the expression belongs to.
        in_attribute: True for attribute values, which report disallowed
            node kinds by name.

    Raises:
        TemplateSyntaxError: For ``self`` references, calls, operators and
            every other non-member expression.
    """
    for child in ast.walk(expr):
        if isinstance(child, ast.Name) and child.id == SELF_REFERENCE:
            raise ctx.error(
                f"You can't use `{SELF_REFERENCE}` within a template",
                node,
                ErrorCode.SELF_REFERENCE,
            )
        if not isinstance(child, _ALLOWED_NODES):
            if in_attribute:
                raise ctx.error(
                    f"Disallowed expression in attribute value: "
                    f"node type {type(child).__name__} is not allowed",
                    node,
                    ErrorCode.DISALLOWED_EXPRESSION,
                )
            raise ctx.error(
                f"Expression evaluation is not allowed (found {type(child).__name__})",
                node,
                ErrorCode.EXPRESSION_EVALUATION,
            )
    if not isinstance(expr, _MEMBER_NODES):
        raise ctx.error(
            "Expression evaluation is not allowed: "
            "only identifiers and member expressions may be used",
            node,
            ErrorCode.EXPRESSION_EVALUATION,
        )


def rewrite_expression(expr: ast.expr, ctx: CompilationContext) -> ast.expr:
    """Return a rewritten copy of ``expr``; the input is left untouched."""
    return IdentifierRewriter(ctx).visit(copy.deepcopy(expr))


def is_identifier(name: str) -> bool:
    return name.isidentifier() and not keyword.iskeyword(name)


def binding_from_literal(text: str, ctx: CompilationContext, node: Node) -> ast.expr:
    """Resolve a string-literal binding such as ``set:if="user.isAdmin"``.

    A dotted identifier path is rewritten like an expression. A dashed name
    (``"is-open"``) cannot be an identifier and becomes a subscript on the
    instance: ``cmp["is-open"]``.
    """
    text = text.strip()
    parts = text.split(".")
    if all(is_identifier(part) for part in parts):
        if parts[0] == SELF_REFERENCE:
            raise ctx.error(
                f"You can't use `{SELF_REFERENCE}` within a template",
                node,
                ErrorCode.SELF_REFERENCE,
            )
        expr: ast.expr = ast.Name(id=parts[0], ctx=ast.Load())
        for part in parts[1:]:
            expr = ast.Attribute(value=expr, attr=part, ctx=ast.Load())
        return IdentifierRewriter(ctx).visit(expr)

    if "-" in text and "." not in text and all(p.isidentifier() for p in text.split("-") if p):
        ctx.dependencies.record_used_identifier(text)
        return ast.Subscript(value=ctx.instance(), slice=ast.Constant(value=text), ctx=ast.Load())

    raise ctx.error(f"Invalid binding '{text}'", node, ErrorCode.INVALID_BINDING)
