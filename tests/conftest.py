"""Pytest configuration and fixtures for Tessera tests."""

import pytest

from tessera import Compiler, CompilerConfig, RenderPrimitives
from tessera.utils import terminal


@pytest.fixture(autouse=True)
def _plain_diagnostics(monkeypatch):
    """Compare error messages without ANSI codes, whatever the CI terminal."""
    monkeypatch.setattr(terminal, "_USE_COLORS", False)


@pytest.fixture
def compiler():
    """Create a Compiler with the default configuration."""
    return Compiler()


@pytest.fixture
def long_names_config():
    """Create a configuration with spelled-out parameter and primitive names."""
    return CompilerConfig(
        function_name="render",
        api_param="renderer",
        instance_param="component",
        primitives=RenderPrimitives(
            element="element",
            iterator="each",
            flatten="flatten",
            text="text",
            empty="empty",
        ),
    )
