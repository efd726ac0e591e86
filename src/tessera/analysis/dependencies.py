"""Dependency collection for compiled templates.

Records what a compiled render function needs from the outside world:

- **Used identifiers**: free names read from the component instance
  (``{title}`` -> ``cmp.title`` records ``title``). Downstream tooling uses
  them for static dependency analysis.
- **Component dependencies**: module specifiers of sub-components referenced
  by custom tags or ``is`` directives. The compiler emits one import per
  entry.

Both collections are ordered by first use so output is deterministic, and
both only grow: there is no removal during a compilation.
"""

from __future__ import annotations


class DependencyRegistry:
    """Per-compilation registry of identifier and component dependencies.

    Not shared between compilations; the compiler creates one per unit.

    Example:
            >>> deps = DependencyRegistry()
            >>> deps.record_used_identifier("items")
            >>> deps.record_used_identifier("title")
            >>> deps.record_used_identifier("items")
            >>> deps.used_identifiers
            ('items', 'title')

    """

    __slots__ = ("_components", "_used_ids")

    def __init__(self) -> None:
        # dicts as insertion-ordered sets
        self._used_ids: dict[str, None] = {}
        self._components: dict[str, None] = {}

    def record_used_identifier(self, name: str) -> None:
        """Record a free identifier read from the instance. Idempotent."""
        self._used_ids.setdefault(name, None)

    def record_component_dependency(self, specifier: str) -> None:
        """Record a sub-component module specifier. Idempotent."""
        self._components.setdefault(specifier, None)

    @property
    def used_identifiers(self) -> tuple[str, ...]:
        return tuple(self._used_ids)

    @property
    def component_dependencies(self) -> tuple[str, ...]:
        return tuple(self._components)

    def __contains__(self, name: object) -> bool:
        return name in self._used_ids

    def __repr__(self) -> str:
        return (
            f"DependencyRegistry(used_ids={self.used_identifiers!r}, "
            f"components={self.component_dependencies!r})"
        )
