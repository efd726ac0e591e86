"""Static analysis of compiled templates."""

from __future__ import annotations

from tessera.analysis.dependencies import DependencyRegistry

__all__ = ["DependencyRegistry"]
