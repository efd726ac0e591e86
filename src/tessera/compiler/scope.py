"""Lexical scopes for iteration directives.

Each ``repeat:for`` / ``for:each`` element opens a frame binding its
iteration arguments for the element's subtree. Names bound by any open frame
are never rewritten to component-instance access.

Frames also own the temporaries (memoized conditions, nested loop
functions) that must be hoisted to the top of the function body the frame
becomes: the render function for the root frame, the per-item function for
an iteration frame.
"""

from __future__ import annotations

import ast
import logging
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


class ScopeError(RuntimeError):
    """Scope stack misuse. A compiler bug, never a template error."""


@dataclass(slots=True)
class ScopeFrame:
    """One nesting level.

    Attributes:
        names: Every name visible at this level, own and inherited.
        own_names: Names introduced by this frame, in declaration order.
        declarations: Statements queued for hoisting, in queue order.
    """

    names: frozenset[str]
    own_names: tuple[str, ...] = ()
    declarations: list[ast.stmt] = field(default_factory=list)


class ScopeTracker:
    """Stack of scope frames for one compilation unit.

    Example:
            >>> scope = ScopeTracker()
            >>> scope.open_scope(["item", "index"])
            >>> scope.is_bound("item")
            True
            >>> scope.close_scope()
            []
            >>> scope.is_bound("item")
            False

    """

    __slots__ = ("_frames",)

    def __init__(self) -> None:
        self._frames: list[ScopeFrame] = []

    @property
    def depth(self) -> int:
        return len(self._frames)

    def open_scope(self, bound_names: tuple[str, ...] | list[str] = ()) -> None:
        """Push a frame binding ``bound_names`` on top of the parent's names."""
        own = tuple(bound_names)
        inherited = self._frames[-1].names if self._frames else frozenset()
        self._frames.append(ScopeFrame(names=inherited | frozenset(own), own_names=own))
        logger.debug(f"Opened scope {len(self._frames)} binding {own!r}")

    def close_scope(self) -> list[ast.stmt]:
        """Pop the innermost frame and return its queued declarations."""
        if not self._frames:
            raise ScopeError("close_scope() called with no open scope")
        frame = self._frames.pop()
        logger.debug(
            f"Closed scope {len(self._frames) + 1} with {len(frame.declarations)} hoisted declarations"
        )
        return frame.declarations

    def is_bound(self, name: str) -> bool:
        """Check whether any open frame binds ``name``."""
        # Frames inherit their parent's names, so the innermost frame is
        # authoritative for the whole stack.
        return bool(self._frames) and name in self._frames[-1].names

    def visible_names(self) -> tuple[str, ...]:
        """All bound names, outermost frame first, in declaration order."""
        seen: dict[str, None] = {}
        for frame in self._frames:
            for name in frame.own_names:
                seen.setdefault(name, None)
        return tuple(seen)

    def queue_declaration(self, statement: ast.stmt) -> None:
        """Queue a statement for hoisting into the innermost frame's body."""
        if not self._frames:
            raise ScopeError("queue_declaration() called with no open scope")
        self._frames[-1].declarations.append(statement)
