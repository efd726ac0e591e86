"""Tessera compiler core: the Compiler class.

The Compiler lowers a markup tree into a Python module holding a render
function. Uses a mixin-based design for maintainability.

Design Principles:
1. **AST-to-AST**: Generate `ast.Module`, not source strings
2. **Bottom-up fold**: Each element is lowered from its already-lowered
   children; the input tree is never mutated
3. **Side-table metadata**: Per-element metadata lives in the
   compilation context, keyed by node identity
4. **Fresh state per unit**: Scope stack, dependency registry and name
   counters belong to one `compile()` call

Generated module:

    import x.user_card as _x_user_card

    def tmpl(api, cmp, slotset, ctx):
        _expr0 = cmp.visible or None
        return [_expr0 and api.c('x.user_card', _x_user_card, {...})]

    used_ids = ('visible', 'user')

"""

from __future__ import annotations

import ast
import logging
from typing import TYPE_CHECKING

from tessera.compiler.attributes import AttributeNormalizationMixin
from tessera.compiler.context import CompilationContext
from tessera.compiler.directives import DirectiveMixin
from tessera.compiler.elements import ElementLoweringMixin
from tessera.compiler.output import CompiledTemplate
from tessera.config import DEFAULT_CONFIG
from tessera.exceptions import ErrorCode
from tessera.nodes import Element, Text
from tessera.utils.constants import TEMPLATE_TAG
from tessera.utils.text import clean_text

if TYPE_CHECKING:
    from tessera.config import CompilerConfig
    from tessera.nodes import Markup, Template

logger = logging.getLogger(__name__)


class Compiler(
    AttributeNormalizationMixin,
    DirectiveMixin,
    ElementLoweringMixin,
):
    """Compile a markup tree to a render-function module.

    Mixins:
        - AttributeNormalizationMixin: attribute classification and grouping
        - DirectiveMixin: conditionals, iteration, bindings, slot outlets
        - ElementLoweringMixin: element calls, children assembly, slot grouping

    Example:
            >>> import ast
            >>> from tessera.compiler import Compiler
            >>> from tessera.nodes import Element, ExpressionContainer, Template
            >>>
            >>> name = ast.parse("name", mode="eval").body
            >>> root = Element(
            ...     lineno=1,
            ...     col_offset=0,
            ...     tag="template",
            ...     children=(
            ...         Element(
            ...             lineno=1,
            ...             col_offset=10,
            ...             tag="p",
            ...             children=(ExpressionContainer(lineno=1, col_offset=13, expression=name),),
            ...         ),
            ...     ),
            ... )
            >>> result = Compiler().compile(Template(lineno=1, col_offset=0, body=(root,)))
            >>> ast.unparse(result.function.body[-1])
            "return [api.h('p', {}, [api.t(cmp.name)])]"
            >>> result.used_ids
            ('name',)

    """

    __slots__ = ("_config", "_node_dispatch")

    def __init__(self, config: CompilerConfig | None = None):
        self._config = config or DEFAULT_CONFIG

    @property
    def config(self) -> CompilerConfig:
        return self._config

    def compile(
        self,
        template: Template,
        name: str | None = None,
        filename: str | None = None,
        source: str | None = None,
    ) -> CompiledTemplate:
        """Compile a template tree to a render-function module.

        Args:
            template: Parsed template unit
            name: Template name for error messages
            filename: Source filename for error messages
            source: Template source text, for error snippets

        Returns:
            CompiledTemplate holding the module, the render function and
            the dependency manifest

        Raises:
            TemplateSyntaxError: On any grammar or directive violation.
                Nothing is emitted for a failed unit.
        """
        ctx = CompilationContext(self._config, name=name, filename=filename, source=source)
        logger.debug(f"Compiling template {name or filename or '<template>'}")

        ctx.scope.open_scope()
        tree = self._lower_root(template, ctx)
        declarations = ctx.scope.close_scope()

        function = self._make_render_function(declarations, tree)
        imports = tuple(
            ast.Import(
                names=[ast.alias(name=specifier, asname=ctx.component_alias(specifier))]
            )
            for specifier in ctx.dependencies.component_dependencies
        )
        manifest = ast.Assign(
            targets=[ast.Name(id=self._config.used_ids_name, ctx=ast.Store())],
            value=ast.Tuple(
                elts=[ast.Constant(value=used) for used in ctx.dependencies.used_identifiers],
                ctx=ast.Load(),
            ),
        )
        helpers: list[ast.stmt] = []
        if ctx.binds_callbacks:
            # from types import MethodType as _bind
            helpers.append(
                ast.ImportFrom(
                    module="types",
                    names=[ast.alias(name="MethodType", asname=self._config.bind_helper)],
                    level=0,
                )
            )
        module = ast.Module(body=[*helpers, *imports, function, manifest], type_ignores=[])

        # Fix missing locations for Python 3.8+
        ast.fix_missing_locations(module)

        logger.debug(
            f"Compiled template {name or filename or '<template>'}: "
            f"{len(imports)} component imports, "
            f"{len(ctx.dependencies.used_identifiers)} used identifiers"
        )
        return CompiledTemplate(
            module=module,
            function=function,
            imports=imports,
            used_ids=ctx.dependencies.used_identifiers,
            dependencies=ctx.dependencies.component_dependencies,
            name=name,
            filename=filename,
        )

    def _lower_root(self, template: Template, ctx: CompilationContext) -> ast.expr:
        """Validate the unit's single ``<template>`` root and lower it."""
        body = [node for node in template.body if not _is_blank(node)]
        if not body:
            raise ctx.error("Missing root template tag", template, ErrorCode.MISSING_ROOT)
        if len(body) > 1:
            raise ctx.error("Unexpected token", body[1], ErrorCode.UNEXPECTED_TOKEN)

        root = body[0]
        if not (
            isinstance(root, Element) and root.namespace is None and root.tag == TEMPLATE_TAG
        ):
            raise ctx.error("Root tag should be a template", root, ErrorCode.ROOT_NOT_TEMPLATE)

        lowered = self._lower_element(root, ctx)
        ctx.discard_meta(root)
        return lowered.expr

    def _make_render_function(
        self, declarations: list[ast.stmt], tree: ast.expr
    ) -> ast.FunctionDef:
        """Generate the render function.

        Generates:
            def tmpl(api, cmp, slotset, ctx):
                <hoisted declarations>
                return <tree>
        """
        config = self._config
        return ast.FunctionDef(
            name=config.function_name,
            args=ast.arguments(
                posonlyargs=[],
                args=[
                    ast.arg(arg=config.api_param),
                    ast.arg(arg=config.instance_param),
                    ast.arg(arg=config.slotset_param),
                    ast.arg(arg=config.context_param),
                ],
                vararg=None,
                kwonlyargs=[],
                kw_defaults=[],
                kwarg=None,
                defaults=[],
            ),
            body=[*declarations, ast.Return(value=tree)],
            decorator_list=[],
            returns=None,
        )


def _is_blank(node: Markup) -> bool:
    return isinstance(node, Text) and not clean_text(node.value)
