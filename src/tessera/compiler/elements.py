"""Element lowering for the Tessera compiler.

Converts one markup element, with its already-lowered children, into a call
against a rendering-API primitive:

    <div class="row">{label}</div>      api.h('div', {'class': 'row'}, [api.t(cmp.label)])
    <x-user-card user={user}/>          api.c('x.user_card', _x_user_card, {'props': {...}})
    <div is="x-panel">...</div>         api.v(_x_panel, {...}, [...])
    <x:icon/>                           api.v(_x_icon, {}, [])

Children are lowered bottom-up, paired into conditionals, spliced when they
come from transparent templates and fragments, and flattened only when a
child may itself be a list at render time.

Uses inline TYPE_CHECKING declarations for host attributes.
"""

from __future__ import annotations

import ast
import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from tessera.compiler.identifiers import is_identifier, rewrite_expression, validate_expression
from tessera.compiler.metadata import ElementMetadata, Lowered
from tessera.exceptions import ErrorCode
from tessera.utils.constants import IS, SLOT_TAG, SLOTSET, TEMPLATE_TAG
from tessera.utils.text import clean_text, component_specifier, module_specifier

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from tessera.compiler.context import CompilationContext
    from tessera.compiler.metadata import NormalizedAttribute
    from tessera.nodes import Attribute, Element, ExpressionContainer, Fragment, Markup, Text

logger = logging.getLogger(__name__)


class ElementLoweringMixin:
    """Mixin for lowering elements, text, expressions and fragments.

    Host attributes and cross-mixin dependencies are declared via inline
    TYPE_CHECKING blocks.

    """

    # ─────────────────────────────────────────────────────────────────────────
    # Host attributes and cross-mixin dependencies (type-check only)
    # ─────────────────────────────────────────────────────────────────────────
    if TYPE_CHECKING:
        _node_dispatch: dict[str, Callable[..., list[Lowered]]]

        # From AttributeNormalizationMixin
        def _normalize_attribute(
            self, attr: Attribute, ctx: CompilationContext
        ) -> NormalizedAttribute: ...

        def _group_attr_metadata(
            self,
            element_meta: ElementMetadata,
            normalized: NormalizedAttribute,
            attr: Attribute,
            ctx: CompilationContext,
        ) -> None: ...

        def _resolve_iterable(
            self, attrs: list[NormalizedAttribute], element: Element, ctx: CompilationContext
        ) -> ast.expr | None: ...

        def _iteration_args(self, attrs: list[NormalizedAttribute]) -> tuple[str, ...]: ...

        def _build_attributes(
            self,
            attrs: list[NormalizedAttribute],
            element_meta: ElementMetadata,
            element: Element,
            ctx: CompilationContext,
        ) -> ast.Dict: ...

        # From DirectiveMixin
        def _resolve_sibling(
            self,
            item: Lowered,
            meta: ElementMetadata,
            siblings: Sequence[Lowered],
            index: int,
            ctx: CompilationContext,
        ) -> tuple[Lowered, int]: ...

        def _apply_template_if(
            self, condition: ast.expr, items: Sequence[Lowered], ctx: CompilationContext
        ) -> list[Lowered]: ...

        def _apply_repeat(
            self,
            body: ast.expr,
            meta: ElementMetadata,
            ctx: CompilationContext,
            *,
            flatten: bool = False,
        ) -> ast.expr: ...

        def _check_slot_outlet(
            self, element: Element, meta: ElementMetadata, ctx: CompilationContext
        ) -> None: ...

        def _slot_outlet(
            self,
            element: Element,
            meta: ElementMetadata,
            items: Sequence[Lowered],
            ctx: CompilationContext,
        ) -> Lowered: ...

    # ─────────────────────────────────────────────────────────────────────────
    # Dispatch
    # ─────────────────────────────────────────────────────────────────────────

    def _lower_child(self, node: Markup, ctx: CompilationContext) -> list[Lowered]:
        """Lower one markup node to zero or more children of its parent.

        Complexity: O(1) type dispatch using class name lookup.
        """
        handler = self._get_node_dispatch().get(type(node).__name__)
        if handler is None:
            raise TypeError(f"Unsupported markup node: {type(node).__name__}")
        return handler(node, ctx)

    def _get_node_dispatch(self) -> dict[str, Callable[..., list[Lowered]]]:
        """Get node type dispatch table (cached on first call)."""
        if not hasattr(self, "_node_dispatch"):
            self._node_dispatch = {
                "Element": lambda node, ctx: [self._lower_element(node, ctx)],
                "Text": self._lower_text,
                "ExpressionContainer": self._lower_expression,
                "Fragment": self._lower_fragment,
            }
        return self._node_dispatch

    def _lower_text(self, node: Text, ctx: CompilationContext) -> list[Lowered]:
        value = clean_text(node.value)
        if not value:
            return []
        return [Lowered(expr=ast.Constant(value=value))]

    def _lower_expression(
        self, node: ExpressionContainer, ctx: CompilationContext
    ) -> list[Lowered]:
        """Lower ``{expr}`` in child position to ``api.t(expr)``; ``{}`` vanishes."""
        if node.expression is None:
            return []
        validate_expression(node.expression, ctx, node)
        return [
            Lowered(
                expr=ctx.call_primitive(
                    ctx.config.primitives.text, rewrite_expression(node.expression, ctx)
                )
            )
        ]

    def _lower_fragment(self, node: Fragment, ctx: CompilationContext) -> list[Lowered]:
        lowered: list[Lowered] = []
        for child in node.children:
            lowered.extend(self._lower_child(child, ctx))
        return lowered

    # ─────────────────────────────────────────────────────────────────────────
    # Elements
    # ─────────────────────────────────────────────────────────────────────────

    def _lower_element(self, element: Element, ctx: CompilationContext) -> Lowered:
        """Lower one element and register its metadata for the parent.

        Order matters: the iterable of an iteration directive resolves in the
        enclosing scope, everything else (attributes, children) inside the
        iteration scope the element opens.
        """
        if "." in element.tag:
            raise ctx.error(
                f"Member expressions are not supported as tag names: <{element.qualified_tag}>",
                element,
                ErrorCode.MEMBER_TAG,
            )

        meta = ElementMetadata()
        normalized: list[NormalizedAttribute] = []
        for attr in element.attributes:
            attribute = self._normalize_attribute(attr, ctx)
            self._group_attr_metadata(meta, attribute, attr, ctx)
            normalized.append(attribute)

        self._classify_tag(element, meta)
        ctx.set_meta(element, meta)

        if meta.is_slot_tag:
            self._check_slot_outlet(element, meta, ctx)

        iterable = self._resolve_iterable(normalized, element, ctx)
        if iterable is not None:
            try:
                meta.for_args = self._iteration_args(normalized)
            except ValueError as e:
                raise ctx.error(str(e), element, ErrorCode.INVALID_FOR_SYNTAX) from e
            meta.directives["for"] = iterable
            ctx.scope.open_scope(meta.for_args)

        attributes = self._build_attributes(normalized, meta, element, ctx)
        items = self._collect_children(element.children, ctx)

        if meta.is_template:
            return self._lower_template(element, meta, items, ctx)
        if meta.is_slot_tag:
            return self._slot_outlet(element, meta, items, ctx)

        call = self._element_call(element, meta, attributes, items, ctx)
        if meta.repeats:
            # The parent wraps the per-item call once it has seen the siblings
            meta.declarations = ctx.scope.close_scope()
        return Lowered(expr=call, node=element, slot=meta.slot)

    def _classify_tag(self, element: Element, meta: ElementMetadata) -> None:
        plain = element.namespace is None
        meta.is_template = plain and element.tag == TEMPLATE_TAG
        meta.is_slot_tag = plain and element.tag == SLOT_TAG
        meta.is_custom_element_tag = not (meta.is_template or meta.is_slot_tag) and (
            not plain or IS in meta.modifiers or "-" in element.tag
        )

    def _lower_template(
        self,
        element: Element,
        meta: ElementMetadata,
        items: list[Lowered],
        ctx: CompilationContext,
    ) -> Lowered:
        """Lower a transparent ``<template>``.

        Without iteration the template contributes its items, spliced into
        the parent's children. An iterated template returns its single item
        unwrapped, or a list of items with the iterator flattened.
        """
        if meta.is_conditional:
            items = self._apply_template_if(meta.directives["if"], items, ctx)

        if not meta.repeats:
            return Lowered(
                expr=self._assemble_children(items, ctx),
                node=element,
                nested=True,
                slot=meta.slot,
                children=tuple(items),
            )

        meta.declarations = ctx.scope.close_scope()
        if len(items) == 1:
            body, flatten = items[0].expr, items[0].nested or items[0].iteration
        else:
            body, flatten = self._assemble_children(items, ctx), bool(items)
        return Lowered(
            expr=self._apply_repeat(body, meta, ctx, flatten=flatten),
            node=element,
            nested=True,
            iteration=True,
            slot=meta.slot,
        )

    def _element_call(
        self,
        element: Element,
        meta: ElementMetadata,
        attributes: ast.Dict,
        items: list[Lowered],
        ctx: CompilationContext,
    ) -> ast.Call:
        primitives = ctx.config.primitives

        if element.namespace is not None:
            reference = self._import_component(
                module_specifier(element.namespace, element.tag), element, ctx
            )
            return ctx.call_primitive(
                primitives.virtual_element,
                reference,
                attributes,
                self._assemble_children(items, ctx),
            )

        if IS in meta.modifiers:
            return ctx.call_primitive(
                primitives.virtual_element,
                self._dynamic_tag_reference(element, meta, ctx),
                attributes,
                self._assemble_children(items, ctx),
            )

        if meta.is_custom_element_tag:
            specifier = component_specifier(element.tag)
            reference = self._import_component(specifier, element, ctx)
            slotset = self._group_slots(items, ctx)
            if slotset is not None:
                attributes.keys.append(ast.Constant(value=SLOTSET))
                attributes.values.append(slotset)
            return ctx.call_primitive(
                primitives.custom_element,
                ast.Constant(value=specifier),
                reference,
                attributes,
            )

        return ctx.call_primitive(
            primitives.element,
            ast.Constant(value=element.tag),
            attributes,
            self._assemble_children(items, ctx),
        )

    def _dynamic_tag_reference(
        self, element: Element, meta: ElementMetadata, ctx: CompilationContext
    ) -> ast.expr:
        """Resolve the component behind an ``is`` directive.

        A literal name is imported; an expression is looked up at render
        time.
        """
        if meta.root_element:
            return self._import_component(
                component_specifier(meta.root_element), element, ctx
            )
        reference = meta.directives.get(IS)
        if reference is None or isinstance(reference, ast.Constant):
            raise ctx.error(
                "The is directive needs a component name or an expression",
                element,
                ErrorCode.INVALID_ATTRIBUTE_VALUE,
            )
        return reference

    def _import_component(
        self, specifier: str, element: Element, ctx: CompilationContext
    ) -> ast.Name:
        """Record a component import and reference its module alias.

        Raises:
            TemplateSyntaxError: When a path segment is a keyword or not an
                identifier (``<x-class>``, ``<my-2col>``).
        """
        if not all(is_identifier(part) for part in specifier.split(".")):
            raise ctx.error(
                f"Component '{specifier}' is not an importable module path",
                element,
                ErrorCode.INVALID_COMPONENT_NAME,
            )
        alias = ctx.component_alias(specifier)
        if specifier not in ctx.dependencies.component_dependencies:
            logger.debug(f"Importing component {specifier} as {alias}")
        ctx.dependencies.record_component_dependency(specifier)
        return ast.Name(id=alias, ctx=ast.Load())

    # ─────────────────────────────────────────────────────────────────────────
    # Children
    # ─────────────────────────────────────────────────────────────────────────

    def _collect_children(
        self, children: Sequence[Markup], ctx: CompilationContext
    ) -> list[Lowered]:
        """Lower children and resolve sibling structure.

        Pairs conditionals with their ``else`` sibling, wraps repeating
        elements in their iterator, splices transparent templates, and drops
        the metadata of every child once consumed.

        Raises:
            TemplateSyntaxError: For an ``else`` without a preceding ``if``.
        """
        lowered: list[Lowered] = []
        for child in children:
            lowered.extend(self._lower_child(child, ctx))

        items: list[Lowered] = []
        index = 0
        while index < len(lowered):
            item = lowered[index]
            index += 1
            meta = ctx.meta_for(item.node) if item.node is not None else None
            if meta is None:
                items.append(item)
                continue

            if meta.is_else:
                raise ctx.error(
                    "Else statement found before if statement",
                    item.node,
                    ErrorCode.ELSE_BEFORE_IF,
                )

            if meta.is_template and not meta.repeats:
                items.extend(
                    replace(child, slot=child.slot or meta.slot) for child in item.children
                )
            else:
                item, index = self._resolve_sibling(item, meta, lowered, index, ctx)
                items.append(item)

        for item in lowered:
            if item.node is not None:
                ctx.discard_meta(item.node)
        return items

    def _assemble_children(
        self, items: Sequence[Lowered], ctx: CompilationContext
    ) -> ast.expr:
        """Build the children argument, flattening only when needed.

        A sole iteration is returned bare. Any other child that may be a
        list at render time, or an iteration among siblings, wraps the list
        in the flattening primitive.
        """
        needs_flattening = any(item.nested and not item.iteration for item in items)
        has_iteration = any(item.iteration for item in items)

        if not needs_flattening and has_iteration and len(items) == 1:
            return items[0].expr

        children = ast.List(elts=[item.expr for item in items], ctx=ast.Load())
        if needs_flattening or (has_iteration and len(items) > 1):
            return ctx.call_primitive(ctx.config.primitives.flatten, children)
        return children

    def _group_slots(
        self, items: Sequence[Lowered], ctx: CompilationContext
    ) -> ast.Dict | None:
        """Group a component's children into its slot-content map.

        Children without a ``slot`` attribute go to the default slot. Each
        group is assembled with the same flattening rules as children.
        """
        groups: dict[str, list[Lowered]] = {}
        for item in items:
            groups.setdefault(item.slot or ctx.config.default_slot_name, []).append(item)
        if not groups:
            return None
        return ast.Dict(
            keys=[ast.Constant(value=name) for name in groups],
            values=[self._assemble_children(group, ctx) for group in groups.values()],
        )
