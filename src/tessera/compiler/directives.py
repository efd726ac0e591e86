"""Structural directive lowering for the Tessera compiler.

Provides the mixin that turns element metadata into control flow:

    set:if / set:else      child if cond else other
    repeat:for + set:if    api.i(items, lambda item: child if cond else other)
    <template set:if>      _expr0 = cond or None; _expr0 and child ...
    repeat:for             api.i(items, lambda item, index: child)
    bind:on*               ctx.get("tmpl:_m0") or ctx.setdefault("tmpl:_m0", cmp.handler)
    <slot>                 slotset.get("name") or [default children]

Uses inline TYPE_CHECKING declarations for host attributes.
"""

from __future__ import annotations

import ast
from typing import TYPE_CHECKING

from tessera.compiler.metadata import Lowered
from tessera.exceptions import ErrorCode

if TYPE_CHECKING:
    from collections.abc import Sequence

    from tessera.compiler.context import CompilationContext
    from tessera.compiler.metadata import ElementMetadata
    from tessera.nodes import Element


class DirectiveMixin:
    """Mixin for if/else, iteration, binding and slot-outlet lowering.

    Host attributes and cross-mixin dependencies are declared via inline
    TYPE_CHECKING blocks.

    """

    if TYPE_CHECKING:
        # From ElementLoweringMixin
        def _assemble_children(
            self, items: Sequence[Lowered], ctx: CompilationContext
        ) -> ast.expr: ...

    # ─────────────────────────────────────────────────────────────────────────
    # Sibling structure
    # ─────────────────────────────────────────────────────────────────────────

    def _resolve_sibling(
        self,
        item: Lowered,
        meta: ElementMetadata,
        siblings: Sequence[Lowered],
        index: int,
        ctx: CompilationContext,
    ) -> tuple[Lowered, int]:
        """Finish a lowered element against the siblings that follow it.

        ``index`` points at the sibling after ``item``. Repeating elements
        get their iterator here, conditionals their else-branch.

        Returns:
            The finished child and the index of the next unconsumed sibling.
        """
        if meta.repeats and not meta.is_template:
            return self._apply_repeat_item(item, meta, siblings, index, ctx)
        if meta.is_conditional and not meta.is_template:
            return self._apply_if(item, meta, siblings, index, ctx)
        return item, index

    def _else_branch(
        self, siblings: Sequence[Lowered], index: int, ctx: CompilationContext
    ) -> tuple[Lowered | None, int]:
        """Consume the ``else`` sibling at ``index``, if there is one.

        An ``else`` that carries an ``if`` of its own continues the chain
        with the sibling after it.
        """
        if index >= len(siblings):
            return None, index
        candidate = siblings[index]
        candidate_meta = ctx.meta_for(candidate.node) if candidate.node else None
        if candidate_meta is None or not candidate_meta.is_else:
            return None, index
        return self._resolve_sibling(candidate, candidate_meta, siblings, index + 1, ctx)

    # ─────────────────────────────────────────────────────────────────────────
    # Conditionals
    # ─────────────────────────────────────────────────────────────────────────

    def _apply_if(
        self,
        item: Lowered,
        meta: ElementMetadata,
        siblings: Sequence[Lowered],
        index: int,
        ctx: CompilationContext,
    ) -> tuple[Lowered, int]:
        """Pair a conditional child with its ``else`` sibling.

        Generates:
            child if cond else other
        """
        orelse, index = self._else_branch(siblings, index, ctx)
        conditional = ast.IfExp(
            test=meta.directives["if"],
            body=item.expr,
            orelse=self._or_empty(orelse, ctx),
        )
        nested = item.nested or (orelse is not None and orelse.nested)
        return (
            Lowered(expr=conditional, node=item.node, nested=nested, slot=item.slot),
            index,
        )

    @staticmethod
    def _or_empty(branch: Lowered | None, ctx: CompilationContext) -> ast.expr:
        if branch is None:
            return ctx.call_primitive(ctx.config.primitives.empty)
        return branch.expr

    def _apply_template_if(
        self,
        condition: ast.expr,
        items: Sequence[Lowered],
        ctx: CompilationContext,
    ) -> list[Lowered]:
        """Guard every child of a conditional template with one hoisted test.

        ``_exprN = cond or None`` is queued on the innermost frame so the
        condition is evaluated once, however many children the template has.
        """
        if not items:
            return []

        name = ctx.unique_name("expr")
        ctx.scope.queue_declaration(
            ast.Assign(
                targets=[ast.Name(id=name, ctx=ast.Store())],
                value=ast.BoolOp(op=ast.Or(), values=[condition, ast.Constant(value=None)]),
            )
        )
        return [
            Lowered(
                expr=ast.BoolOp(
                    op=ast.And(),
                    values=[ast.Name(id=name, ctx=ast.Load()), item.expr],
                ),
                node=item.node,
                # A guarded value may be None, so even an iteration needs
                # flattening from here on
                nested=item.nested or item.iteration,
                slot=item.slot,
            )
            for item in items
        ]

    # ─────────────────────────────────────────────────────────────────────────
    # Iteration
    # ─────────────────────────────────────────────────────────────────────────

    def _apply_repeat_item(
        self,
        item: Lowered,
        meta: ElementMetadata,
        siblings: Sequence[Lowered],
        index: int,
        ctx: CompilationContext,
    ) -> tuple[Lowered, int]:
        """Wrap a repeating element's per-item call in an iterator.

        An ``if`` on the same element guards each item, and the ``else``
        sibling, if any, is rendered for the items that fail it:

            api.i(cmp.rows, lambda row: api.h('li', ...) if row.ok else api.h('p', ...))
        """
        body = item.expr
        flatten = False
        if meta.is_conditional:
            orelse, index = self._else_branch(siblings, index, ctx)
            body = ast.IfExp(
                test=meta.directives["if"], body=body, orelse=self._or_empty(orelse, ctx)
            )
            flatten = orelse is not None and (orelse.nested or orelse.iteration)
        return (
            Lowered(
                expr=self._apply_repeat(body, meta, ctx, flatten=flatten),
                node=item.node,
                nested=True,
                iteration=True,
                slot=item.slot,
            ),
            index,
        )

    def _apply_repeat(
        self,
        body: ast.expr,
        meta: ElementMetadata,
        ctx: CompilationContext,
        *,
        flatten: bool = False,
    ) -> ast.expr:
        """Wrap ``body`` in an iterator over the element's closed frame.

        The per-item function is a lambda unless the frame queued hoisted
        temporaries (``meta.declarations``); then a nested
        ``def _loopN(...)`` carrying them is queued on the enclosing frame
        and passed by name.

        Generates:
            api.i(cmp.items, lambda item, index: body)

        or, with temporaries:
            def _loop0(item, index):
                _expr0 = item.visible or None
                return body
            ...
            api.i(cmp.items, _loop0)
        """
        arguments = ast.arguments(
            posonlyargs=[],
            args=[ast.arg(arg=name) for name in meta.for_args],
            vararg=None,
            kwonlyargs=[],
            kw_defaults=[],
            kwarg=None,
            defaults=[],
        )

        if meta.declarations:
            name = ctx.unique_name("loop")
            ctx.scope.queue_declaration(
                ast.FunctionDef(
                    name=name,
                    args=arguments,
                    body=[*meta.declarations, ast.Return(value=body)],
                    decorator_list=[],
                    returns=None,
                )
            )
            func: ast.expr = ast.Name(id=name, ctx=ast.Load())
        else:
            func = ast.Lambda(args=arguments, body=body)

        iterator: ast.expr = ctx.call_primitive(
            ctx.config.primitives.iterator, meta.directives["for"], func
        )
        if flatten:
            iterator = ctx.call_primitive(ctx.config.primitives.flatten, iterator)
        return iterator

    # ─────────────────────────────────────────────────────────────────────────
    # Bound callbacks
    # ─────────────────────────────────────────────────────────────────────────

    def _bind_callback(self, value: ast.expr, ctx: CompilationContext) -> ast.expr:
        """Bind a callback to the instance and memoize it per instance.

        ``cmp.handleClick`` is already a bound method. Anything else
        (``cmp.handlers.save``, ``row.select``) is bound through the
        module's ``types.MethodType`` alias, so it receives the instance
        as its first argument. The memo keeps the reference stable across
        renders:

            ctx.get('tmpl:_m0') or ctx.setdefault('tmpl:_m0', _bind(cmp.handlers.save, cmp))

        Callbacks that depend on an iteration variable anywhere (as root or
        as subscript key) differ per item and are not memoized.
        """
        instance = ctx.config.instance_param
        target = value
        if not (
            isinstance(value, ast.Attribute)
            and isinstance(value.value, ast.Name)
            and value.value.id == instance
        ):
            ctx.binds_callbacks = True
            value = ast.Call(
                func=ast.Name(id=ctx.config.bind_helper, ctx=ast.Load()),
                args=[value, ctx.instance()],
                keywords=[],
            )

        root = target
        while isinstance(root, (ast.Attribute, ast.Subscript)):
            root = root.value
        if not (isinstance(root, ast.Name) and root.id == instance):
            return value
        if any(
            isinstance(node, ast.Name) and ctx.scope.is_bound(node.id)
            for node in ast.walk(value)
        ):
            return value

        key = ast.Constant(value=ctx.memo_key())
        memo = ast.Name(id=ctx.config.context_param, ctx=ast.Load())
        return ast.BoolOp(
            op=ast.Or(),
            values=[
                ast.Call(
                    func=ast.Attribute(value=memo, attr="get", ctx=ast.Load()),
                    args=[key],
                    keywords=[],
                ),
                ast.Call(
                    func=ast.Attribute(value=memo, attr="setdefault", ctx=ast.Load()),
                    args=[key, value],
                    keywords=[],
                ),
            ],
        )

    # ─────────────────────────────────────────────────────────────────────────
    # Slot outlets
    # ─────────────────────────────────────────────────────────────────────────

    def _check_slot_outlet(
        self, element: Element, meta: ElementMetadata, ctx: CompilationContext
    ) -> None:
        if meta.used_directives or meta.modifiers:
            raise ctx.error(
                "Directives are not allowed on a <slot> element",
                element,
                ErrorCode.DIRECTIVE_ON_SLOT,
            )

    def _slot_outlet(
        self,
        element: Element,
        meta: ElementMetadata,
        items: Sequence[Lowered],
        ctx: CompilationContext,
    ) -> Lowered:
        """Lower ``<slot name="x">`` to provided content or its own children.

        Generates:
            slotset.get('x') or [default children]
        """
        name = meta.maybe_slot_name_def or ctx.config.default_slot_name
        provided = ast.Call(
            func=ast.Attribute(
                value=ast.Name(id=ctx.config.slotset_param, ctx=ast.Load()),
                attr="get",
                ctx=ast.Load(),
            ),
            args=[ast.Constant(value=name)],
            keywords=[],
        )
        fallback = self._assemble_children(items, ctx)
        return Lowered(
            expr=ast.BoolOp(op=ast.Or(), values=[provided, fallback]),
            node=element,
            nested=True,
            slot=meta.slot,
        )
