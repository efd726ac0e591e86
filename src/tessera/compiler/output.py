"""Compilation result."""

from __future__ import annotations

import ast
import types
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class CompiledTemplate:
    """One compiled template module.

    Attributes:
        module: The full module: the bind-helper import when a callback
            needs it, component imports, the render function and the
            used-identifier manifest.
        function: The render function definition inside ``module``.
        imports: One import per referenced component module.
        used_ids: Free identifiers read from the component instance, in
            order of first use.
        dependencies: Component module specifiers, in order of first use.
        name: Template name used in error messages.
        filename: Source filename used in error messages and code objects.
    """

    module: ast.Module
    function: ast.FunctionDef
    imports: tuple[ast.Import, ...]
    used_ids: tuple[str, ...]
    dependencies: tuple[str, ...]
    name: str | None = None
    filename: str | None = None

    def compile(self) -> types.CodeType:
        """Compile the module to a code object. Nothing is executed."""
        return compile(self.module, self.filename or "<template>", "exec")
