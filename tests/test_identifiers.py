"""Tests for identifier rewriting and expression validation."""

from __future__ import annotations

import ast

import pytest

from tessera import DEFAULT_CONFIG, ErrorCode, TemplateSyntaxError
from tessera.compiler.context import CompilationContext
from tessera.compiler.identifiers import (
    binding_from_literal,
    rewrite_expression,
    validate_expression,
)

from .helpers import el, expr, expression, lower, text


@pytest.fixture
def ctx():
    context = CompilationContext(DEFAULT_CONFIG)
    context.scope.open_scope()
    return context


def rewritten(source: str, ctx: CompilationContext) -> str:
    return ast.unparse(rewrite_expression(expr(source), ctx))


class TestRewriteExpression:
    def test_bare_name(self, ctx):
        assert rewritten("title", ctx) == "cmp.title"
        assert ctx.dependencies.used_identifiers == ("title",)

    def test_only_member_root_rewritten(self, ctx):
        assert rewritten("foo.bar.baz", ctx) == "cmp.foo.bar.baz"
        assert ctx.dependencies.used_identifiers == ("foo",)

    def test_computed_subscript_key_rewritten(self, ctx):
        assert rewritten("rows[index].name", ctx) == "cmp.rows[cmp.index].name"
        assert ctx.dependencies.used_identifiers == ("rows", "index")

    def test_constant_subscript(self, ctx):
        assert rewritten("labels['ok']", ctx) == "cmp.labels['ok']"

    def test_scope_bound_name_untouched(self, ctx):
        ctx.scope.open_scope(["item"])
        assert rewritten("item.name", ctx) == "item.name"
        assert rewritten("items[item]", ctx) == "cmp.items[item]"
        assert ctx.dependencies.used_identifiers == ("items",)

    def test_input_not_mutated(self, ctx):
        original = expr("user.name")
        rewrite_expression(original, ctx)
        assert ast.unparse(original) == "user.name"

    def test_custom_instance_name(self):
        context = CompilationContext(DEFAULT_CONFIG.with_overrides(instance_param="self_"))
        context.scope.open_scope()
        assert ast.unparse(rewrite_expression(expr("a.b"), context)) == "self_.a.b"


class TestValidateExpression:
    node = text("placeholder")

    @pytest.mark.parametrize("source", ["a", "a.b", "a[0]", "a[b].c", "a['k']"])
    def test_member_expressions_allowed(self, ctx, source):
        validate_expression(expr(source), ctx, self.node)

    @pytest.mark.parametrize(
        ("source", "found"),
        [
            ("f()", "Call"),
            ("a + b", "BinOp"),
            ("not a", "UnaryOp"),
            ("a if b else c", "IfExp"),
            ("[a]", "List"),
            ("lambda: a", "Lambda"),
        ],
    )
    def test_evaluation_rejected(self, ctx, source, found):
        with pytest.raises(TemplateSyntaxError) as exc_info:
            validate_expression(expr(source), ctx, self.node)
        assert exc_info.value.message == f"Expression evaluation is not allowed (found {found})"
        assert exc_info.value.code is ErrorCode.EXPRESSION_EVALUATION

    def test_bare_literal_rejected(self, ctx):
        with pytest.raises(TemplateSyntaxError) as exc_info:
            validate_expression(expr("42"), ctx, self.node)
        assert exc_info.value.code is ErrorCode.EXPRESSION_EVALUATION

    @pytest.mark.parametrize("source", ["self", "self.title", "items[self]"])
    def test_self_reference_rejected(self, ctx, source):
        with pytest.raises(TemplateSyntaxError) as exc_info:
            validate_expression(expr(source), ctx, self.node)
        assert exc_info.value.message == "You can't use `self` within a template"
        assert exc_info.value.code is ErrorCode.SELF_REFERENCE

    def test_attribute_wording(self, ctx):
        with pytest.raises(TemplateSyntaxError) as exc_info:
            validate_expression(expr("f(x)"), ctx, self.node, in_attribute=True)
        assert exc_info.value.code is ErrorCode.DISALLOWED_EXPRESSION


class TestBindingFromLiteral:
    def test_dotted(self, ctx):
        assert ast.unparse(binding_from_literal(" user.name ", ctx, text("x"))) == "cmp.user.name"

    def test_dashed(self, ctx):
        assert ast.unparse(binding_from_literal("is-open", ctx, text("x"))) == "cmp['is-open']"

    def test_scope_bound(self, ctx):
        ctx.scope.open_scope(["row"])
        assert ast.unparse(binding_from_literal("row.cells", ctx, text("x"))) == "row.cells"

    def test_self(self, ctx):
        with pytest.raises(TemplateSyntaxError) as exc_info:
            binding_from_literal("self.items", ctx, text("x"))
        assert exc_info.value.code is ErrorCode.SELF_REFERENCE


class TestTextExpressions:
    def test_text_wrap(self):
        assert lower(el("p", expression("user.name"))) == "[api.h('p', {}, [api.t(cmp.user.name)])]"

    def test_call_in_text_rejected(self):
        with pytest.raises(TemplateSyntaxError, match="Expression evaluation is not allowed"):
            lower(el("p", expression("format(x)")))

    def test_self_in_text_rejected(self):
        with pytest.raises(TemplateSyntaxError, match="can't use `self`"):
            lower(el("p", expression("self.title")))

    def test_empty_expression_dropped(self):
        assert lower(el("p", expression(None), "a")) == "[api.h('p', {}, ['a'])]"
