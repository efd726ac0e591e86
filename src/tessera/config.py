"""Compiler configuration.

Generated code talks to a rendering API through a handful of short
primitive names and receives its inputs through fixed parameter names.
Both are configurable so the same compiler can target different runtimes:

    >>> from tessera.config import CompilerConfig, RenderPrimitives
    >>> config = CompilerConfig(
    ...     instance_param="component",
    ...     primitives=RenderPrimitives(element="create_element"),
    ... )

"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

from tessera.utils.constants import DEFAULT_SLOT_NAME


@dataclass(frozen=True, slots=True)
class RenderPrimitives:
    """Attribute names of the rendering-API primitives."""

    element: str = "h"
    custom_element: str = "c"
    virtual_element: str = "v"
    text: str = "t"
    iterator: str = "i"
    flatten: str = "f"
    empty: str = "e"


@dataclass(frozen=True, slots=True)
class CompilerConfig:
    """Names baked into every compiled module.

    Attributes:
        function_name: Name of the generated render function.
        api_param: Parameter holding the rendering API.
        instance_param: Parameter holding the component instance. Free
            identifiers in expressions are rewritten to attributes of it.
        slotset_param: Parameter holding the slot-content map.
        context_param: Parameter holding the per-instance memo mapping.
        used_ids_name: Module-level name of the used-identifier manifest.
        bind_helper: Module-level alias of ``types.MethodType``, imported
            when a callback has to be bound to the instance.
        default_slot_name: Slot-content key for unnamed slot content.
        primitives: Rendering-API primitive names.
    """

    function_name: str = "tmpl"
    api_param: str = "api"
    instance_param: str = "cmp"
    slotset_param: str = "slotset"
    context_param: str = "ctx"
    used_ids_name: str = "used_ids"
    bind_helper: str = "_bind"
    default_slot_name: str = DEFAULT_SLOT_NAME
    primitives: RenderPrimitives = field(default_factory=RenderPrimitives)

    @property
    def reserved_names(self) -> frozenset[str]:
        """Names the generated module binds itself."""
        return frozenset(
            {
                self.api_param,
                self.instance_param,
                self.slotset_param,
                self.context_param,
                self.bind_helper,
            }
        )

    def with_overrides(self, **changes: Any) -> CompilerConfig:
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)


DEFAULT_CONFIG = CompilerConfig()
