"""String helpers for attribute and text normalization."""

from __future__ import annotations

import re

from tessera.utils.constants import DATA_ATTRIBUTE_PREFIX

_DASH_LOWER = re.compile(r"-([a-z])")


def to_camel_case(name: str) -> str:
    """Convert a dashed name to camelCase: ``max-length`` -> ``maxLength``."""
    return _DASH_LOWER.sub(lambda m: m.group(1).upper(), name)


def dataset_key(name: str) -> str:
    """Map ``data-foo-bar`` to its DOM dataset key ``fooBar``.

    https://html.spec.whatwg.org/multipage/dom.html#dom-dataset
    """
    return to_camel_case(name[len(DATA_ATTRIBUTE_PREFIX) :])


def is_data_attribute(name: str) -> bool:
    return name.startswith(DATA_ATTRIBUTE_PREFIX)


def is_namespaced_attribute(name: str) -> bool:
    return ":" in name


def parse_styles(style: str) -> dict[str, str]:
    """Parse an inline style declaration into a dict with camelCase keys.

    Example:
        >>> parse_styles("color: red; font-size: 12px;")
        {'color': 'red', 'fontSize': '12px'}
    """
    styles: dict[str, str] = {}
    for declaration in style.split(";"):
        prop, sep, value = declaration.partition(":")
        prop = prop.strip()
        if not sep or not prop:
            continue
        styles[to_camel_case(prop)] = value.strip()
    return styles


def clean_text(value: str) -> str:
    """Collapse raw text the way JSX does.

    Lines are trimmed (except the leading edge of the first line and the
    trailing edge of the last), whitespace-only lines are dropped and the
    remainder joined with single spaces. Returns "" for whitespace-only text.
    """
    lines = value.split("\n")
    last_non_empty = 0
    for i, line in enumerate(lines):
        if line.strip(" \t\r"):
            last_non_empty = i

    parts: list[str] = []
    for i, line in enumerate(lines):
        line = line.replace("\t", " ")
        if i != 0:
            line = line.lstrip(" \r")
        if i != len(lines) - 1:
            line = line.rstrip(" \r")
        if line:
            if i != last_non_empty:
                line += " "
            parts.append(line)
    return "".join(parts)


def module_specifier(namespace: str, name: str) -> str:
    """Build the import path for a component: (``x``, ``foo-bar``) -> ``x.foo_bar``."""
    if not name:
        return namespace
    return f"{namespace}.{name.replace('-', '_')}"


def component_specifier(tag: str) -> str:
    """Module specifier for a dashed custom tag: ``x-foo-bar`` -> ``x.foo_bar``."""
    namespace, _, name = tag.partition("-")
    return module_specifier(namespace, name)


def local_alias(specifier: str) -> str:
    """Local binding for an imported component module: ``x.foo_bar`` -> ``_x_foo_bar``.

    ``x_foo.bar`` flattens to the same text; CompilationContext.component_alias
    resolves such clashes.
    """
    return "_" + specifier.replace(".", "_")
