"""Attribute normalization for the Tessera compiler.

Classifies every raw attribute (plain prop, directive, modifier, event
binding, dataset entry, namespaced SVG attribute, slot marker), normalizes
its name and value, and finally groups the element's attributes into the
dict passed to the rendering API:

    <button class="btn" data-row-id={row.id} onclick={select} title="Pick">

    {"class": "btn",
     "dataset": {"rowId": row.id},
     "on": {"click": ctx.get("tmpl:_m0") or ctx.setdefault("tmpl:_m0", cmp.select)},
     "attrs": {"title": "Pick"}}

Uses inline TYPE_CHECKING declarations for host attributes.
"""

from __future__ import annotations

import ast
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from tessera.compiler.identifiers import (
    binding_from_literal,
    is_identifier,
    rewrite_expression,
    validate_expression,
)
from tessera.compiler.metadata import AttributeMetadata, NormalizedAttribute
from tessera.exceptions import ErrorCode
from tessera.nodes import Attribute, Element, ExpressionContainer, Literal
from tessera.utils.constants import (
    ATTRS,
    BIND,
    DATASET,
    DIRECTIVES,
    EVENT_PREFIX,
    FOR_EACH_MODIFIERS,
    IS,
    IS_ATTRIBUTE,
    MODIFIERS,
    NAME_ATTRIBUTE,
    ON,
    PROPS,
    REPEAT,
    SLOT_ATTRIBUTE,
    SVG_NAMESPACES,
    TOP_LEVEL_PROPS,
)
from tessera.utils.text import (
    dataset_key,
    is_data_attribute,
    is_namespaced_attribute,
    parse_styles,
    to_camel_case,
)

if TYPE_CHECKING:
    from tessera.compiler.context import CompilationContext
    from tessera.compiler.metadata import ElementMetadata


_FOR_STATEMENT = re.compile(r"^\s*(.*?)\s+(?:in|of)\s+(.*?)\s*$", re.DOTALL)
_FOR_ALIAS_GROUP = re.compile(
    r"^\(\s*([^,()]+?)\s*,\s*([^,()]+?)\s*(?:,\s*([^,()]+?)\s*)?\)$"
)


@dataclass(frozen=True, slots=True)
class ForStatement:
    """Parsed ``repeat:for`` value: ``(item, index) in items``."""

    iterable: str
    args: tuple[str, ...]


def parse_for_statement(text: str) -> ForStatement:
    """Parse ``<alias> (in|of) <iterable>``.

    The alias is a single identifier or a parenthesized group of two or
    three identifiers (item, index and optionally key).

    Example:
        >>> parse_for_statement("(row, i) of table.rows")
        ForStatement(iterable='table.rows', args=('row', 'i'))

    Raises:
        ValueError: If the text has no ``in``/``of`` separator or the alias
            is malformed.
    """
    match = _FOR_STATEMENT.match(text)
    if not match or not match.group(1) or not match.group(2):
        raise ValueError(f"For-loop value syntax is not correct: {text!r}")

    alias, iterable = match.group(1).strip(), match.group(2).strip()
    group = _FOR_ALIAS_GROUP.match(alias)
    if group:
        args = tuple(arg for arg in group.groups() if arg is not None)
    else:
        args = (alias,)

    for arg in args:
        if not is_identifier(arg):
            raise ValueError(f"Invalid for-loop argument {arg!r} in {text!r}")
    if len(set(args)) != len(args):
        raise ValueError(f"Duplicate for-loop argument in {text!r}")
    return ForStatement(iterable=iterable, args=args)


class AttributeNormalizationMixin:
    """Mixin for normalizing and grouping element attributes.

    Host attributes and cross-mixin dependencies are declared via inline
    TYPE_CHECKING blocks.

    """

    if TYPE_CHECKING:
        # From DirectiveMixin
        def _bind_callback(self, value: ast.expr, ctx: CompilationContext) -> ast.expr: ...

    # ─────────────────────────────────────────────────────────────────────────
    # Per-attribute normalization
    # ─────────────────────────────────────────────────────────────────────────

    def _normalize_attribute(
        self, attr: Attribute, ctx: CompilationContext
    ) -> NormalizedAttribute:
        """Classify one attribute and normalize its name and value."""
        key, meta = self._normalize_attribute_name(attr, ctx)
        value = self._normalize_attribute_value(attr, meta, ctx)
        normalized = NormalizedAttribute(
            key=key,
            value=value,
            meta=meta,
            lineno=attr.lineno,
            col_offset=attr.col_offset,
        )
        self._extract_special_values(normalized, attr, ctx)
        return normalized

    def _normalize_attribute_name(
        self, attr: Attribute, ctx: CompilationContext
    ) -> tuple[str, AttributeMetadata]:
        meta = AttributeMetadata()
        name = attr.name

        if attr.namespace:
            if attr.namespace in SVG_NAMESPACES:
                # xlink:href stays one namespaced attribute name
                return f"{attr.namespace}:{name}", meta

            if attr.namespace not in DIRECTIVES:
                raise ctx.error(
                    f"Unknown attribute namespace '{attr.namespace}' in '{attr.qualified_name}'",
                    attr,
                    ErrorCode.UNKNOWN_NAMESPACE,
                )
            meta.directive = DIRECTIVES[attr.namespace]
            if name in MODIFIERS:
                meta.modifier = name
            elif self._is_event_name(name):
                meta.event = name = name[len(EVENT_PREFIX) :]
            return name, meta

        if self._is_event_name(name):
            # Event handlers are bound to the instance implicitly
            meta.event = name = name[len(EVENT_PREFIX) :]
            meta.directive = BIND
        elif name == IS_ATTRIBUTE:
            meta.directive = IS
        elif name == NAME_ATTRIBUTE:
            meta.has_name_attribute = True
        elif name == SLOT_ATTRIBUTE:
            meta.is_slot = True
        return name, meta

    @staticmethod
    def _is_event_name(name: str) -> bool:
        return name.startswith(EVENT_PREFIX) and len(name) > len(EVENT_PREFIX)

    def _normalize_attribute_value(
        self, attr: Attribute, meta: AttributeMetadata, ctx: CompilationContext
    ) -> ast.expr:
        value = attr.value
        if value is None:
            return ast.Constant(value=True)

        if isinstance(value, ExpressionContainer):
            if value.expression is None:
                raise ctx.error(
                    f"Empty expression in attribute '{attr.qualified_name}'",
                    attr,
                    ErrorCode.INVALID_ATTRIBUTE_VALUE,
                )
            validate_expression(value.expression, ctx, attr, in_attribute=True)
            meta.expression_container = True
            return value.expression

        if isinstance(value, Literal):
            return ast.Constant(value=value.value)

        kind = type(value).__name__ if isinstance(value, Element) else repr(value)
        raise ctx.error(
            f"Attribute '{attr.qualified_name}' must be a literal or an expression, not {kind}",
            attr,
            ErrorCode.INVALID_ATTRIBUTE_VALUE,
        )

    def _extract_special_values(
        self, normalized: NormalizedAttribute, attr: Attribute, ctx: CompilationContext
    ) -> None:
        """Pull out values that steer lowering rather than render."""
        meta = normalized.meta
        literal = _string_literal(normalized.value)

        if meta.directive == IS and literal is not None:
            meta.root_element = literal

        if meta.has_name_attribute and literal is not None:
            # Kept so a slot outlet can resolve its name
            meta.maybe_slot_name_def = literal

        if meta.is_slot and not _is_boolean_literal(normalized.value):
            if literal is None:
                raise ctx.error(
                    "The slot attribute must be a string literal",
                    attr,
                    ErrorCode.INVALID_ATTRIBUTE_VALUE,
                )
            meta.slot = literal

        if meta.directive != REPEAT:
            return

        if meta.modifier == "for":
            if literal is None:
                raise ctx.error(
                    "repeat:for expects a string such as \"item in items\"",
                    attr,
                    ErrorCode.INVALID_FOR_SYNTAX,
                )
            try:
                statement = parse_for_statement(literal)
            except ValueError as e:
                raise ctx.error(str(e), attr, ErrorCode.INVALID_FOR_SYNTAX) from e
            self._check_iteration_args(statement.args, attr, ctx)
            normalized.for_iterable = statement.iterable
            meta.for_args = statement.args

        elif meta.modifier in ("item", "index"):
            if literal is None or not is_identifier(literal):
                raise ctx.error(
                    f"for:{meta.modifier} expects an identifier string",
                    attr,
                    ErrorCode.INVALID_FOR_SYNTAX,
                )
            self._check_iteration_args((literal,), attr, ctx)
            meta.for_args = (literal,)

        elif meta.modifier is None:
            raise ctx.error(
                f"Unknown iteration modifier '{attr.qualified_name}'",
                attr,
                ErrorCode.INVALID_FOR_SYNTAX,
            )

    def _check_iteration_args(
        self, args: tuple[str, ...], attr: Attribute, ctx: CompilationContext
    ) -> None:
        reserved = ctx.config.reserved_names
        for arg in args:
            if arg in reserved:
                raise ctx.error(
                    f"'{arg}' is reserved by the generated module and can't be an iteration argument",
                    attr,
                    ErrorCode.INVALID_FOR_SYNTAX,
                )

    # ─────────────────────────────────────────────────────────────────────────
    # Element-level grouping
    # ─────────────────────────────────────────────────────────────────────────

    def _group_attr_metadata(
        self,
        element_meta: ElementMetadata,
        normalized: NormalizedAttribute,
        attr: Attribute,
        ctx: CompilationContext,
    ) -> None:
        """Merge one attribute's metadata into its element's record."""
        meta = normalized.meta
        if meta.directive:
            element_meta.used_directives.add(meta.directive)

        if meta.modifier:
            if meta.modifier in element_meta.modifiers:
                raise ctx.error(
                    f"Duplicate directive '{attr.qualified_name}'",
                    attr,
                    ErrorCode.DUPLICATE_DIRECTIVE,
                )
            element_meta.modifiers.add(meta.modifier)

        if meta.directive == IS:
            if IS in element_meta.modifiers:
                raise ctx.error("Duplicate directive 'is'", attr, ErrorCode.DUPLICATE_DIRECTIVE)
            element_meta.modifiers.add(IS)

        if meta.root_element:
            element_meta.root_element = meta.root_element

        if meta.is_slot:
            element_meta.slot = meta.slot

        if meta.maybe_slot_name_def:
            element_meta.maybe_slot_name_def = meta.maybe_slot_name_def

    def _iteration_args(self, attrs: list[NormalizedAttribute]) -> tuple[str, ...]:
        """Collect iteration arguments from either iteration form."""
        by_modifier = {a.meta.modifier: a for a in attrs if a.meta.directive == REPEAT}
        if "for" in by_modifier:
            return by_modifier["for"].meta.for_args or ()
        args: list[str] = []
        for modifier in ("item", "index"):
            attr = by_modifier.get(modifier)
            if attr is not None and attr.meta.for_args:
                args.extend(attr.meta.for_args)
        if len(set(args)) != len(args):
            raise ValueError("for:item and for:index must differ")
        return tuple(args)

    def _resolve_iterable(
        self,
        attrs: list[NormalizedAttribute],
        element: Element,
        ctx: CompilationContext,
    ) -> ast.expr | None:
        """Resolve the iterable of an iteration directive, if any.

        Called before the element's iteration scope opens: the iterable
        belongs to the enclosing scope.
        """
        repeat_attrs = {a.meta.modifier: a for a in attrs if a.meta.directive == REPEAT}
        if not repeat_attrs:
            return None

        if "for" in repeat_attrs:
            if FOR_EACH_MODIFIERS & repeat_attrs.keys():
                raise ctx.error(
                    "repeat:for can't be combined with for:each/for:item/for:index",
                    element,
                    ErrorCode.DUPLICATE_DIRECTIVE,
                )
            attr = repeat_attrs["for"]
            return binding_from_literal(attr.for_iterable or "", ctx, element)

        each = repeat_attrs.get("each")
        if each is None:
            raise ctx.error(
                "for:item and for:index require for:each",
                element,
                ErrorCode.INVALID_FOR_SYNTAX,
            )
        if "item" not in repeat_attrs:
            raise ctx.error(
                "for:each requires for:item",
                element,
                ErrorCode.INVALID_FOR_SYNTAX,
            )
        return self._resolve_binding_value(each, ctx, element)

    def _resolve_binding_value(
        self, attr: NormalizedAttribute, ctx: CompilationContext, element: Element
    ) -> ast.expr:
        """Rewrite an expression value or resolve a directive's string literal."""
        if attr.meta.expression_container:
            return rewrite_expression(attr.value, ctx)
        literal = _string_literal(attr.value)
        if attr.meta.directive and literal is not None:
            return binding_from_literal(literal, ctx, element)
        return attr.value

    def _build_attributes(
        self,
        attrs: list[NormalizedAttribute],
        element_meta: ElementMetadata,
        element: Element,
        ctx: CompilationContext,
    ) -> ast.Dict:
        """Transform attribute values and group them into the attributes dict.

        Structural directives (if, else, is) are stored on the element
        metadata instead; slot markers and iteration attributes are consumed.
        """
        top_level: list[tuple[str, ast.expr]] = []
        groups: dict[str, list[tuple[str, ast.expr]]] = {}

        for attr in attrs:
            meta = attr.meta
            if meta.directive == REPEAT:
                continue

            if meta.directive == IS:
                element_meta.directives["is"] = (
                    rewrite_expression(attr.value, ctx)
                    if meta.expression_container
                    else attr.value
                )
                continue

            value = self._resolve_binding_value(attr, ctx, element)

            if meta.modifier in ("if", "else"):
                element_meta.directives[meta.modifier] = value
                continue

            if meta.is_slot:
                continue

            if meta.directive == BIND and meta.event:
                value = self._bind_callback(value, ctx)

            name = attr.key
            if name in TOP_LEVEL_PROPS:
                literal = _string_literal(value)
                if name == "style" and literal is not None:
                    value = _constant_dict(parse_styles(literal))
                top_level.append((name, value))
                continue

            group = PROPS if element_meta.is_custom_element_tag else ATTRS
            if is_data_attribute(name):
                group, name = DATASET, dataset_key(name)
            elif element_meta.is_custom_element_tag and not is_namespaced_attribute(name):
                name = to_camel_case(name)

            if meta.event:
                group = ON

            groups.setdefault(group, []).append((name, value))

        keys: list[ast.expr | None] = []
        values: list[ast.expr] = []
        for name, value in top_level:
            keys.append(ast.Constant(value=name))
            values.append(value)
        for group, entries in groups.items():
            keys.append(ast.Constant(value=group))
            values.append(
                ast.Dict(
                    keys=[ast.Constant(value=name) for name, _ in entries],
                    values=[value for _, value in entries],
                )
            )
        return ast.Dict(keys=keys, values=values)


def _string_literal(node: ast.expr) -> str | None:
    if isinstance(node, ast.Constant) and isinstance(node.value, str):
        return node.value
    return None


def _is_boolean_literal(node: ast.expr) -> bool:
    return isinstance(node, ast.Constant) and isinstance(node.value, bool)


def _constant_dict(mapping: dict[str, Any]) -> ast.Dict:
    return ast.Dict(
        keys=[ast.Constant(value=key) for key in mapping],
        values=[ast.Constant(value=value) for value in mapping.values()],
    )
