"""Tests for conditionals, iteration and slot outlets."""

from __future__ import annotations

import pytest

from tessera import ErrorCode, TemplateSyntaxError

from .helpers import compile_tree, el, expression, hoisted, lower, returned, template


class TestIfElse:
    def test_if_without_else_uses_empty(self):
        assert lower(el("p", "A", attrs={"set:if": "{show}"})) == (
            "[api.h('p', {}, ['A']) if cmp.show else api.e()]"
        )

    def test_if_else_pair_consumes_else_sibling(self):
        assert lower(
            el("p", "A", attrs={"set:if": "{show}"}),
            el("p", "B", attrs={"set:else": None}),
        ) == "[api.h('p', {}, ['A']) if cmp.show else api.h('p', {}, ['B'])]"

    def test_whitespace_between_pair_ignored(self):
        assert lower(
            el("p", "A", attrs={"set:if": "{show}"}),
            "\n    ",
            el("p", "B", attrs={"set:else": None}),
        ) == "[api.h('p', {}, ['A']) if cmp.show else api.h('p', {}, ['B'])]"

    def test_else_if_chain(self):
        assert lower(
            el("p", "A", attrs={"set:if": "{a}"}),
            el("p", "B", attrs={"set:else": None, "set:if": "{b}"}),
            el("p", "C", attrs={"set:else": None}),
            el("hr"),
        ) == (
            "[api.h('p', {}, ['A']) if cmp.a else api.h('p', {}, ['B']) "
            "if cmp.b else api.h('p', {}, ['C']), api.h('hr', {}, [])]"
        )

    def test_chain_ending_without_else(self):
        assert lower(
            el("p", "A", attrs={"set:if": "{a}"}),
            el("p", "B", attrs={"set:else": None, "set:if": "{b}"}),
        ) == "[api.h('p', {}, ['A']) if cmp.a else api.h('p', {}, ['B']) if cmp.b else api.e()]"

    def test_else_before_if(self):
        with pytest.raises(TemplateSyntaxError) as exc_info:
            lower(el("p", attrs={"set:else": None}))
        assert exc_info.value.message == "Else statement found before if statement"
        assert exc_info.value.code is ErrorCode.ELSE_BEFORE_IF

    def test_else_separated_from_if(self):
        with pytest.raises(TemplateSyntaxError, match="Else statement found before if"):
            lower(
                el("p", attrs={"set:if": "{a}"}),
                el("hr"),
                el("p", attrs={"set:else": None}),
            )

    def test_template_if_does_not_pair(self):
        with pytest.raises(TemplateSyntaxError) as exc_info:
            lower(
                el("template", el("p"), attrs={"set:if": "{a}"}),
                el("p", attrs={"set:else": None}),
            )
        assert exc_info.value.code is ErrorCode.ELSE_BEFORE_IF

    def test_template_as_else_branch(self):
        assert lower(
            el("p", "A", attrs={"set:if": "{a}"}),
            el("template", el("b"), el("i"), attrs={"set:else": None}),
        ) == (
            "api.f([api.h('p', {}, ['A']) if cmp.a else "
            "[api.h('b', {}, []), api.h('i', {}, [])]])"
        )


class TestTemplateIf:
    def test_condition_hoisted_once(self):
        compiled = compile_tree(
            template(el("template", el("p", "A"), el("p", "B"), attrs={"set:if": "{ready}"}))
        )
        assert hoisted(compiled) == ["_expr0 = cmp.ready or None"]
        assert returned(compiled) == (
            "[_expr0 and api.h('p', {}, ['A']), _expr0 and api.h('p', {}, ['B'])]"
        )

    def test_each_template_gets_its_own_temporary(self):
        compiled = compile_tree(
            template(
                el("template", el("p"), attrs={"set:if": "{a}"}),
                el("template", el("p"), attrs={"set:if": "{b}"}),
            )
        )
        assert hoisted(compiled) == ["_expr0 = cmp.a or None", "_expr1 = cmp.b or None"]

    def test_empty_template_hoists_nothing(self):
        compiled = compile_tree(template(el("template", attrs={"set:if": "{a}"})))
        assert hoisted(compiled) == []
        assert returned(compiled) == "[]"

    def test_root_template_if(self):
        compiled = compile_tree(template(el("p"), attrs={"set:if": "{on}"}))
        assert hoisted(compiled) == ["_expr0 = cmp.on or None"]
        assert returned(compiled) == "[_expr0 and api.h('p', {}, [])]"


class TestRepeat:
    def test_destructured_arguments(self):
        assert lower(
            el(
                "ul",
                el(
                    "li",
                    expression("item.name"),
                    attrs={"repeat:for": "(item, index) in items", "key": "{index}"},
                ),
            )
        ) == (
            "[api.h('ul', {}, api.i(cmp.items, lambda item, index: "
            "api.h('li', {'key': index}, [api.t(item.name)])))]"
        )

    def test_iterable_resolved_in_enclosing_scope(self):
        assert lower(
            el(
                "div",
                el(
                    "ul",
                    el("li", expression("cell"), attrs={"repeat:for": "cell in row.cells"}),
                    attrs={"repeat:for": "row in rows"},
                ),
            )
        ) == (
            "[api.h('div', {}, api.i(cmp.rows, lambda row: api.h('ul', {}, "
            "api.i(row.cells, lambda cell: api.h('li', {}, [api.t(cell)])))))]"
        )

    def test_iteration_variable_shadowing_ends_with_element(self):
        compiled = compile_tree(
            template(
                el("ul", el("li", expression("item"), attrs={"repeat:for": "item in items"})),
                el("p", expression("item")),
            )
        )
        assert "lambda item: api.h('li', {}, [api.t(item)])" in returned(compiled)
        assert "api.h('p', {}, [api.t(cmp.item)])" in returned(compiled)
        assert compiled.used_ids == ("items", "item")

    def test_if_applied_per_item(self):
        assert lower(
            el(
                "ul",
                el("li", "x", attrs={"repeat:for": "item in items", "set:if": "{item.visible}"}),
            )
        ) == (
            "[api.h('ul', {}, api.i(cmp.items, lambda item: "
            "api.h('li', {}, ['x']) if item.visible else api.e()))]"
        )

    def test_object_form(self):
        assert lower(
            el(
                "ul",
                el(
                    "li",
                    attrs={"for:each": "{items}", "for:item": "it", "for:index": "i"},
                ),
            )
        ) == "[api.h('ul', {}, api.i(cmp.items, lambda it, i: api.h('li', {}, [])))]"

    def test_object_form_with_literal_iterable(self):
        assert "api.i(cmp.data.rows, lambda it:" in lower(
            el("p", attrs={"for:each": "data.rows", "for:item": "it"})
        )

    def test_template_with_several_children_flattened(self):
        assert lower(
            el(
                "dl",
                el(
                    "template",
                    el("dt", expression("row.k")),
                    el("dd", expression("row.v")),
                    attrs={"repeat:for": "row in rows"},
                ),
            )
        ) == (
            "[api.h('dl', {}, api.f(api.i(cmp.rows, lambda row: "
            "[api.h('dt', {}, [api.t(row.k)]), api.h('dd', {}, [api.t(row.v)])])))]"
        )

    def test_temporaries_move_into_loop_function(self):
        compiled = compile_tree(
            template(
                el(
                    "ul",
                    el(
                        "template",
                        el(
                            "template",
                            el("li", expression("item.name")),
                            attrs={"set:if": "{item.visible}"},
                        ),
                        attrs={"repeat:for": "item in items"},
                    ),
                )
            )
        )
        assert hoisted(compiled) == [
            "def _loop0(item):\n"
            "    _expr0 = item.visible or None\n"
            "    return _expr0 and api.h('li', {}, [api.t(item.name)])"
        ]
        assert returned(compiled) == "[api.h('ul', {}, api.i(cmp.items, _loop0))]"


class TestRepeatWithIf:
    def test_else_sibling_is_per_item_branch(self):
        assert lower(
            el("li", attrs={"repeat:for": "x in xs", "set:if": "{x.ok}"}),
            el("p", attrs={"set:else": None}),
        ) == "api.i(cmp.xs, lambda x: api.h('li', {}, []) if x.ok else api.h('p', {}, []))"

    def test_else_if_chain_inside_iteration(self):
        assert lower(
            el("li", attrs={"repeat:for": "x in xs", "set:if": "{x.ok}"}),
            el("p", attrs={"set:else": None, "set:if": "{b}"}),
            el("hr", attrs={"set:else": None}),
            el("footer"),
        ) == (
            "api.f([api.i(cmp.xs, lambda x: api.h('li', {}, []) if x.ok else "
            "api.h('p', {}, []) if cmp.b else api.h('hr', {}, [])), api.h('footer', {}, [])])"
        )

    def test_list_else_branch_flattens_iterator(self):
        assert lower(
            el("li", attrs={"repeat:for": "x in xs", "set:if": "{x.ok}"}),
            el("template", el("b"), el("i"), attrs={"set:else": None}),
        ) == (
            "api.f(api.i(cmp.xs, lambda x: api.h('li', {}, []) if x.ok else "
            "[api.h('b', {}, []), api.h('i', {}, [])]))"
        )

    def test_repeating_else_branch(self):
        assert lower(
            el("li", attrs={"repeat:for": "x in xs", "set:if": "{x.ok}"}),
            el("p", attrs={"set:else": None, "repeat:for": "y in ys"}),
        ) == (
            "api.f(api.i(cmp.xs, lambda x: api.h('li', {}, []) if x.ok else "
            "api.i(cmp.ys, lambda y: api.h('p', {}, []))))"
        )

    def test_temporaries_with_else_branch(self):
        compiled = compile_tree(
            template(
                el(
                    "li",
                    el("template", el("b"), attrs={"set:if": "{x.ok}"}),
                    attrs={"repeat:for": "x in xs", "set:if": "{x.on}"},
                ),
                el("p", attrs={"set:else": None}),
            )
        )
        assert hoisted(compiled) == [
            "def _loop0(x):\n"
            "    _expr0 = x.ok or None\n"
            "    return api.h('li', {}, [_expr0 and api.h('b', {}, [])]) "
            "if x.on else api.h('p', {}, [])"
        ]
        assert returned(compiled) == "api.i(cmp.xs, _loop0)"

    def test_else_after_iteration_without_if(self):
        with pytest.raises(TemplateSyntaxError) as exc_info:
            lower(
                el("li", attrs={"repeat:for": "x in xs"}),
                el("p", attrs={"set:else": None}),
            )
        assert exc_info.value.code is ErrorCode.ELSE_BEFORE_IF


class TestRepeatErrors:
    @pytest.mark.parametrize(
        "attrs",
        [
            {"repeat:for": "items"},
            {"repeat:for": "{items}"},
            {"repeat:for": "cmp in items"},
            {"repeat:for": "(item, api) in items"},
            {"for:each": "{items}"},
            {"for:item": "it"},
            {"for:each": "{items}", "for:item": "it", "for:index": "it"},
            {"for:each": "{items}", "for:item": "{it}"},
            {"repeat:for": "a in xs", "for:each": "{ys}", "for:item": "b"},
        ],
    )
    def test_invalid_iteration(self, attrs):
        with pytest.raises(TemplateSyntaxError) as exc_info:
            lower(el("li", attrs=attrs))
        assert exc_info.value.code in (
            ErrorCode.INVALID_FOR_SYNTAX,
            ErrorCode.DUPLICATE_DIRECTIVE,
        )

    def test_malformed_message(self):
        with pytest.raises(TemplateSyntaxError, match="For-loop value syntax is not correct"):
            lower(el("li", attrs={"repeat:for": "items"}))


class TestSlotOutlet:
    def test_default_slot_with_fallback(self):
        assert lower(el("slot", el("p", "fallback"))) == (
            "api.f([slotset.get('$default$') or [api.h('p', {}, ['fallback'])]])"
        )

    def test_named_slot(self):
        assert lower(el("slot", attrs={"name": "header"})) == (
            "api.f([slotset.get('header') or []])"
        )

    def test_slot_forces_flattening_of_siblings(self):
        assert lower(el("div", el("h1"), el("slot"))) == (
            "[api.h('div', {}, api.f([api.h('h1', {}, []), slotset.get('$default$') or []]))]"
        )

    @pytest.mark.parametrize(
        "attrs",
        [
            {"set:if": "{a}"},
            {"repeat:for": "a in b"},
            {"onclick": "{go}"},
            {"is": "x-foo"},
        ],
    )
    def test_directive_on_slot(self, attrs):
        with pytest.raises(TemplateSyntaxError) as exc_info:
            lower(el("slot", attrs=attrs))
        assert exc_info.value.code is ErrorCode.DIRECTIVE_ON_SLOT
