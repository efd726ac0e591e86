"""Per-compilation state.

Everything mutable during a compilation lives on one CompilationContext,
created fresh by ``Compiler.compile()`` and threaded through every lowering
method. Nothing is stored on the input tree and nothing survives the call,
so concurrent compilations never share state.
"""

from __future__ import annotations

import ast
import re
from typing import TYPE_CHECKING

from tessera.analysis.dependencies import DependencyRegistry
from tessera.compiler.scope import ScopeTracker
from tessera.exceptions import ErrorCode, TemplateSyntaxError
from tessera.utils.text import local_alias

if TYPE_CHECKING:
    from tessera.compiler.metadata import ElementMetadata
    from tessera.config import CompilerConfig
    from tessera.nodes import Node

# Names unique_name() hands out for hoisted locals
_GENERATED_LOCAL = re.compile(r"_(?:expr|loop)\d+")


class CompilationContext:
    """Scope stack, dependency registry and metadata side-table for one unit."""

    __slots__ = (
        "_aliases",
        "_counters",
        "_element_meta",
        "binds_callbacks",
        "config",
        "dependencies",
        "filename",
        "name",
        "scope",
        "source",
    )

    def __init__(
        self,
        config: CompilerConfig,
        name: str | None = None,
        filename: str | None = None,
        source: str | None = None,
    ) -> None:
        self.config = config
        self.name = name
        self.filename = filename
        self.source = source
        self.scope = ScopeTracker()
        self.dependencies = DependencyRegistry()
        # id(element) -> metadata; the elements stay referenced by the
        # template tree for the whole compilation, so ids are stable.
        self._element_meta: dict[int, ElementMetadata] = {}
        self._counters: dict[str, int] = {}
        self._aliases: dict[str, str] = {}
        # Set once a callback is wrapped in the bind helper
        self.binds_callbacks = False

    # ─────────────────────────────────────────────────────────────────────
    # Metadata side-table
    # ─────────────────────────────────────────────────────────────────────

    def set_meta(self, node: Node, meta: ElementMetadata) -> None:
        self._element_meta[id(node)] = meta

    def meta_for(self, node: Node) -> ElementMetadata | None:
        return self._element_meta.get(id(node))

    def discard_meta(self, node: Node) -> None:
        self._element_meta.pop(id(node), None)

    # ─────────────────────────────────────────────────────────────────────
    # Names
    # ─────────────────────────────────────────────────────────────────────

    def unique_name(self, prefix: str) -> str:
        """Generate ``_<prefix><n>``, unique within this compilation."""
        count = self._counters.get(prefix, 0)
        self._counters[prefix] = count + 1
        return f"_{prefix}{count}"

    def component_alias(self, specifier: str) -> str:
        """Module-level alias for an imported component, stable per specifier.

        ``x.foo_bar`` becomes ``_x_foo_bar``. An alias already handed out
        to another specifier (``x_foo.bar`` flattens to the same text), or
        one that would shadow a name the module binds itself, gets a
        ``_<n>`` suffix.
        """
        alias = self._aliases.get(specifier)
        if alias is not None:
            return alias
        taken = {*self._aliases.values(), self.config.bind_helper}
        base = alias = local_alias(specifier)
        suffix = 0
        while alias in taken or _GENERATED_LOCAL.fullmatch(alias):
            suffix += 1
            alias = f"{base}_{suffix}"
        self._aliases[specifier] = alias
        return alias

    def memo_key(self) -> str:
        """Key of one memoized callback in the per-instance ``ctx`` mapping.

        Prefixed with the unit name so templates rendered against the same
        instance keep separate entries: ``card.html:_m0``.
        """
        unit = self.name or self.filename or self.config.function_name
        return f"{unit}:{self.unique_name('m')}"

    def instance(self) -> ast.Name:
        return ast.Name(id=self.config.instance_param, ctx=ast.Load())

    def primitive(self, name: str) -> ast.Attribute:
        """Reference a rendering-API primitive: ``api.<name>``."""
        return ast.Attribute(
            value=ast.Name(id=self.config.api_param, ctx=ast.Load()),
            attr=name,
            ctx=ast.Load(),
        )

    def call_primitive(self, name: str, *args: ast.expr) -> ast.Call:
        return ast.Call(func=self.primitive(name), args=list(args), keywords=[])

    # ─────────────────────────────────────────────────────────────────────
    # Errors
    # ─────────────────────────────────────────────────────────────────────

    def error(
        self,
        message: str,
        node: Node | None = None,
        code: ErrorCode | None = None,
    ) -> TemplateSyntaxError:
        """Build a TemplateSyntaxError located at markup ``node``.

        Expression nodes carry positions relative to their own source, so
        errors inside expressions are reported at the owning markup node.
        """
        lineno = getattr(node, "lineno", None)
        col_offset = getattr(node, "col_offset", None)
        return TemplateSyntaxError(
            message,
            lineno=lineno,
            name=self.name,
            filename=self.filename,
            source=self.source,
            col_offset=col_offset,
            code=code,
        )
